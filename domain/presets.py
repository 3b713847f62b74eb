from decimal import Decimal
from typing import List

from .errors import ValidationError
from .line_item import LineItem

SERVICE_NAMES = [
    "Beratung & Konzept",
    "Design",
    "Frontend Umsetzung",
    "Backend/Datenbank",
    "SEO Basics",
    "Testing & Übergabe",
]

# Heures par service, dans l'ordre de SERVICE_NAMES
PACKAGE_PRESETS = {
    "onepage_no_db": {"label": "OnePage (ohne DB)", "hours": [3, 8, 10, 0, 2, 3]},
    "onepage_with_db": {"label": "OnePage (mit DB)", "hours": [3, 9, 12, 12, 3, 4]},
    "multipage_no_db": {"label": "MultiPage (ohne DB)", "hours": [4, 15, 25, 0, 4, 4]},
    "multipage_with_db": {"label": "MultiPage (mit DB)", "hours": [5, 16, 28, 20, 5, 5]},
}


def items_from_preset(preset_key: str, hourly_rate=Decimal("55")) -> List[LineItem]:
    """One hours-based position per standard service, without discount."""
    preset = PACKAGE_PRESETS.get(preset_key)
    if preset is None:
        raise ValidationError(f"Unknown package preset '{preset_key}'")
    return [
        LineItem.hourly(position, name, hours, hourly_rate)
        for position, (name, hours) in enumerate(zip(SERVICE_NAMES, preset["hours"]), start=1)
    ]
