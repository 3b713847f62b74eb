import os
import sys

import pytest

# Racine du projet en tête du sys.path
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from infrastructure.logging_service import disable_all_logging  # noqa: E402

# Pas de dossier logs/ pendant les tests
disable_all_logging()

from infrastructure.configuration import ConfigurationService  # noqa: E402
from infrastructure.database import Database  # noqa: E402


@pytest.fixture
def temp_db(tmp_path):
    """Base SQLite temporaire."""
    return Database(str(tmp_path / "test.db"))


@pytest.fixture
def temp_config(tmp_path):
    """Configuration par défaut, fichier temporaire."""
    return ConfigurationService(config_path=str(tmp_path / "app_config.json"))
