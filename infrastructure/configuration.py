import json
import os
from decimal import Decimal
from typing import Optional

from domain.money import to_decimal
from infrastructure.logging_service import get_module_logger

logger = get_module_logger("Configuration", "configuration.log")

APP_NAME = "BPOffice"

DEFAULTS = {
    "invoice_prefix": "BP-2248",
    "offer_prefix": "ANG-2248",
    # 01 is reserved, new sequences start at 02
    "number_seed": 2,
    "number_width": 2,
    "number_retry_attempts": 3,
    "default_hourly_rate": 55,
    "default_vat_percent": 0,
    "payment_term_days": 14,
    "reminder_payment_term_days": 7,
    "currency": "EUR",
    "database_path": None,
}


def app_data_dir() -> str:
    """Per-user data folder (LOCALAPPDATA on Windows)."""
    app_data = os.environ.get('LOCALAPPDATA', os.path.expanduser(os.path.join('~', '.local', 'share')))
    path = os.path.join(app_data, APP_NAME)
    os.makedirs(path, exist_ok=True)
    return path


class ConfigurationService:
    """Service to load and manage application configuration."""

    _instance = None  # Singleton instance

    @classmethod
    def get_instance(cls) -> 'ConfigurationService':
        if cls._instance is None:
            cls._instance = ConfigurationService()
        return cls._instance

    def __init__(self, config_path: str = None):
        if config_path is None:
            config_path = os.path.join(app_data_dir(), "app_config.json")
        self.config_path = config_path
        self.config = self._load_config()

    def _load_config(self) -> dict:
        config = dict(DEFAULTS)
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    config.update(json.load(f))
            except (OSError, ValueError) as e:
                logger.warning(f"Invalid configuration file {self.config_path}, using defaults: {e}")
        return config

    def save(self):
        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump(self.config, f, indent=2, ensure_ascii=False)

    def get(self, key: str, default=None):
        return self.config.get(key, DEFAULTS.get(key, default))

    def set(self, key: str, value):
        self.config[key] = value
        self.save()

    def get_invoice_prefix(self) -> str:
        return self.get("invoice_prefix")

    def get_offer_prefix(self) -> str:
        return self.get("offer_prefix")

    def get_number_seed(self) -> int:
        return int(self.get("number_seed"))

    def get_number_width(self) -> int:
        return int(self.get("number_width"))

    def get_number_retry_attempts(self) -> int:
        return int(self.get("number_retry_attempts"))

    def get_default_hourly_rate(self) -> Decimal:
        return to_decimal(self.get("default_hourly_rate"))

    def get_default_vat_percent(self) -> Decimal:
        return to_decimal(self.get("default_vat_percent"))

    def get_payment_term_days(self) -> int:
        return int(self.get("payment_term_days"))

    def get_reminder_payment_term_days(self) -> int:
        return int(self.get("reminder_payment_term_days"))

    def get_database_path(self) -> Optional[str]:
        """Configured SQLite file, or the default one in the data folder."""
        path = self.get("database_path")
        if not path:
            path = os.path.join(app_data_dir(), "bpoffice.db")
        return path
