from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Dict, Iterable

from .line_item import LineItem
from .money import ZERO, percent_of, to_decimal


@dataclass
class QuotationModifiers:
    """Global options applied on top of the positions."""
    global_discount_percent: Decimal = ZERO
    express_enabled: bool = False
    express_surcharge_percent: Decimal = ZERO
    hosting_enabled: bool = False
    hosting_fee: Decimal = ZERO
    maintenance_enabled: bool = False
    maintenance_months: Decimal = ZERO
    maintenance_monthly_fee: Decimal = ZERO
    vat_percent: Decimal = ZERO

    def __post_init__(self):
        for name in ("global_discount_percent", "express_surcharge_percent", "hosting_fee",
                     "maintenance_months", "maintenance_monthly_fee", "vat_percent"):
            setattr(self, name, to_decimal(getattr(self, name)))


def has_vat_line(vat_percent) -> bool:
    """A VAT line is rendered for any non-zero rate, even on a zero subtotal.

    0 % is the small-business exemption (Kleinunternehmer): no VAT line at all.
    """
    return to_decimal(vat_percent) != ZERO


@dataclass(frozen=True)
class QuotationBreakdown:
    """Detailed breakdown of an offer/invoice total. Unrounded."""
    sum_positions: Decimal
    global_discount_amount: Decimal
    after_global_discount: Decimal
    express_surcharge_amount: Decimal
    after_express: Decimal
    hosting_total: Decimal
    maintenance_total: Decimal
    subtotal_before_vat: Decimal
    vat_amount: Decimal
    total: Decimal
    total_hours: Decimal
    effective_hourly_rate: Decimal

    def to_dict(self) -> Dict[str, str]:
        return {f.name: str(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict) -> "QuotationBreakdown":
        return cls(**{f.name: to_decimal(data.get(f.name)) for f in fields(cls)})


class Calculator:
    """Central engine for offer and invoice totals.

    The stage order is fixed: positions, global discount, express surcharge
    (on the discounted base), flat hosting and maintenance, then VAT on
    everything. Inputs are not validated here; negative values must be
    rejected by the caller.
    """

    @staticmethod
    def calculate(items: Iterable[LineItem], modifiers: QuotationModifiers = None) -> QuotationBreakdown:
        items = list(items)
        m = modifiers if modifiers is not None else QuotationModifiers()

        # 1. Positions
        sum_positions = sum((item.computed_net_total() for item in items), ZERO)

        # 2. Remise globale
        global_discount_amount = percent_of(sum_positions, m.global_discount_percent)
        after_global_discount = sum_positions - global_discount_amount

        # 3. Express surcharge, computed on the discounted base
        express_surcharge_amount = (
            percent_of(after_global_discount, m.express_surcharge_percent) if m.express_enabled else ZERO
        )
        after_express = after_global_discount + express_surcharge_amount

        # 4./5. Flat extras
        hosting_total = m.hosting_fee if m.hosting_enabled else ZERO
        maintenance_total = m.maintenance_months * m.maintenance_monthly_fee if m.maintenance_enabled else ZERO

        subtotal_before_vat = after_express + hosting_total + maintenance_total

        # 6. TVA en dernier
        vat_amount = percent_of(subtotal_before_vat, m.vat_percent)
        total = subtotal_before_vat + vat_amount

        total_hours = sum((item.billable_hours for item in items), ZERO)
        effective_hourly_rate = total / total_hours if total_hours > 0 else ZERO

        return QuotationBreakdown(
            sum_positions=sum_positions,
            global_discount_amount=global_discount_amount,
            after_global_discount=after_global_discount,
            express_surcharge_amount=express_surcharge_amount,
            after_express=after_express,
            hosting_total=hosting_total,
            maintenance_total=maintenance_total,
            subtotal_before_vat=subtotal_before_vat,
            vat_amount=vat_amount,
            total=total,
            total_hours=total_hours,
            effective_hourly_rate=effective_hourly_rate,
        )


def calculate(items: Iterable[LineItem], modifiers: QuotationModifiers = None) -> QuotationBreakdown:
    return Calculator.calculate(items, modifiers)
