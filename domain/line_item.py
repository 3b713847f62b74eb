from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from .money import HUNDRED, ZERO, to_decimal


class BillingType(Enum):
    IT = "it"  # heures x taux horaire
    BAU = "bau"  # forfait (chantier)


@dataclass
class LineItem:
    """A priced position on an offer or invoice.

    Hours-based when `net_total` is None: the net total is derived from
    hours, hourly_rate and discount_percent. Fixed-price when `net_total` is
    given: the amount is final and the discount is not applied again.
    """
    position: int
    description: str = ""
    hours: Optional[Decimal] = None
    hourly_rate: Optional[Decimal] = None
    discount_percent: Decimal = ZERO
    net_total: Optional[Decimal] = None

    def __post_init__(self):
        if self.hours is not None:
            self.hours = to_decimal(self.hours)
        if self.hourly_rate is not None:
            self.hourly_rate = to_decimal(self.hourly_rate)
        self.discount_percent = to_decimal(self.discount_percent)
        if self.net_total is not None:
            self.net_total = to_decimal(self.net_total)

    @classmethod
    def hourly(cls, position: int, description: str, hours, hourly_rate, discount_percent=0) -> "LineItem":
        return cls(position=position, description=description, hours=hours,
                   hourly_rate=hourly_rate, discount_percent=discount_percent)

    @classmethod
    def fixed(cls, position: int, description: str, net_total) -> "LineItem":
        return cls(position=position, description=description, net_total=net_total)

    @property
    def is_fixed_price(self) -> bool:
        return self.net_total is not None

    @property
    def billable_hours(self) -> Decimal:
        """Hours counted towards the effective rate. Fixed-price items count 0."""
        if self.is_fixed_price:
            return ZERO
        return self.hours or ZERO

    def computed_net_total(self) -> Decimal:
        if self.is_fixed_price:
            return self.net_total
        hours = self.hours or ZERO
        rate = self.hourly_rate or ZERO
        return hours * rate * (1 - self.discount_percent / HUNDRED)


@dataclass
class InvoiceLine:
    """Invoice position: quantity x unit price, less a line discount."""
    position: int
    description: str = ""
    quantity: Decimal = Decimal("1")
    unit: str = "Stk"
    unit_price: Decimal = ZERO
    vat_percent: Decimal = ZERO
    discount_percent: Decimal = ZERO

    def __post_init__(self):
        self.quantity = to_decimal(self.quantity)
        self.unit_price = to_decimal(self.unit_price)
        self.vat_percent = to_decimal(self.vat_percent)
        self.discount_percent = to_decimal(self.discount_percent)

    @property
    def total(self) -> Decimal:
        return self.quantity * self.unit_price * (1 - self.discount_percent / HUNDRED)

    def as_line_item(self) -> LineItem:
        """The line total enters the calculator as a final, fixed-price amount."""
        return LineItem.fixed(self.position, self.description, self.total)

