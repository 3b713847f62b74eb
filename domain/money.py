import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from .errors import ValidationError

Number = Union[Decimal, int, float, str]

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")

# "1.234,50" or "19,5"; a comma anywhere else is ambiguous
_GERMAN_GROUPED = re.compile(r"^-?\d{1,3}(\.\d{3})*(,\d+)?$")
_GERMAN_PLAIN = re.compile(r"^-?\d+(,\d+)?$")


def to_decimal(value: Number = None) -> Decimal:
    """Coerce user/database input to Decimal. None and '' become 0.

    Floats go through str() so that 0.1 stays 0.1 and not its binary expansion.
    Strings with a comma must be German-formatted; anything unparsable raises
    ValidationError.
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, str):
        text = value.strip().replace(" ", "")
        if "," in text:
            # Saisie allemande: "1.234,50"
            if not (_GERMAN_GROUPED.match(text) or _GERMAN_PLAIN.match(text)):
                raise ValidationError(f"Ambiguous amount '{value}': use 1.234,50 or 1234.50")
            text = text.replace(".", "").replace(",", ".")
        try:
            result = Decimal(text)
        except InvalidOperation:
            raise ValidationError(f"Not a number: '{value}'") from None
        if not result.is_finite():
            raise ValidationError(f"Not a number: '{value}'")
        return result
    return Decimal(value)


def percent_of(base: Decimal, percent: Number) -> Decimal:
    return base * to_decimal(percent) / HUNDRED


def round_money(value: Number) -> Decimal:
    """Commercial rounding to cents. Display and bookkeeping only."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_number(value: Number, decimals: int = 2) -> str:
    """de-DE formatting: 1234.5 -> '1.234,50'."""
    quantum = Decimal(1).scaleb(-decimals)
    rounded = to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
    if rounded == 0:
        rounded = abs(rounded)  # no "-0,00"
    text = f"{rounded:,.{decimals}f}"
    # 1,234.50 -> 1.234,50
    return text.replace(",", "\x00").replace(".", ",").replace("\x00", ".")


def format_currency(value: Number, symbol: str = "€") -> str:
    """de-DE currency: 1234.5 -> '1.234,50 €'."""
    return f"{format_number(value, 2)} {symbol}"
