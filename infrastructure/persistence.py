# infrastructure/persistence.py
import dataclasses
import datetime
import json
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from domain.calculator import QuotationBreakdown, QuotationModifiers
from domain.money import to_decimal


class EnhancedJSONEncoder(json.JSONEncoder):
    def default(self, o):
        if dataclasses.is_dataclass(o):
            return dataclasses.asdict(o)
        if isinstance(o, Enum):
            return o.value
        if isinstance(o, Decimal):
            # String keeps every digit; floats would drift
            return str(o)
        if isinstance(o, (datetime.date, datetime.datetime)):
            return o.isoformat()
        return super().default(o)


class PersistenceService:
    """Serialization of the snapshot columns stored alongside offers and invoices."""

    @staticmethod
    def to_json(obj: Any) -> str:
        return json.dumps(obj, cls=EnhancedJSONEncoder)

    @staticmethod
    def breakdown_from_json(text: Optional[str]) -> Optional[QuotationBreakdown]:
        if not text:
            return None
        return QuotationBreakdown.from_dict(json.loads(text))

    @staticmethod
    def modifiers_from_json(text: Optional[str]) -> QuotationModifiers:
        if not text:
            return QuotationModifiers()
        return PersistenceService.modifiers_from_dict(json.loads(text))

    @staticmethod
    def modifiers_from_dict(data: Dict[str, Any]) -> QuotationModifiers:
        return QuotationModifiers(
            global_discount_percent=to_decimal(data.get('global_discount_percent')),
            express_enabled=bool(data.get('express_enabled', False)),
            express_surcharge_percent=to_decimal(data.get('express_surcharge_percent')),
            hosting_enabled=bool(data.get('hosting_enabled', False)),
            hosting_fee=to_decimal(data.get('hosting_fee')),
            maintenance_enabled=bool(data.get('maintenance_enabled', False)),
            maintenance_months=to_decimal(data.get('maintenance_months')),
            maintenance_monthly_fee=to_decimal(data.get('maintenance_monthly_fee')),
            vat_percent=to_decimal(data.get('vat_percent')),
        )
