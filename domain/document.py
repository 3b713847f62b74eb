import datetime
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from .calculator import Calculator, QuotationBreakdown, QuotationModifiers
from .errors import ValidationError
from .line_item import BillingType, InvoiceLine, LineItem
from .money import HUNDRED, ZERO, to_decimal
from .status import InvoiceStatus, OfferStatus


@dataclass
class Offer:
    client_id: int
    items: List[LineItem] = field(default_factory=list)
    modifiers: QuotationModifiers = field(default_factory=QuotationModifiers)
    offer_type: BillingType = BillingType.IT
    number: Optional[str] = None
    status: OfferStatus = OfferStatus.DRAFT
    project_id: Optional[int] = None
    date: datetime.date = field(default_factory=datetime.date.today)
    valid_until: Optional[datetime.date] = None
    consultant_name: str = ""
    currency: str = "EUR"
    breakdown: Optional[QuotationBreakdown] = None
    id: Optional[int] = None

    def recalculate(self) -> QuotationBreakdown:
        """Snapshot the breakdown from the current items and modifiers."""
        self.breakdown = Calculator.calculate(self.items, self.modifiers)
        return self.breakdown

    @property
    def total(self) -> Decimal:
        return self.breakdown.total if self.breakdown else ZERO


@dataclass
class Invoice:
    client_id: int
    lines: List[InvoiceLine] = field(default_factory=list)
    vat_percent: Decimal = ZERO
    invoice_type: BillingType = BillingType.IT
    number: Optional[str] = None
    status: InvoiceStatus = InvoiceStatus.DRAFT
    project_id: Optional[int] = None
    offer_id: Optional[int] = None
    invoice_date: datetime.date = field(default_factory=datetime.date.today)
    payment_term_days: int = 14
    customer_number: Optional[str] = None
    is_partial_payment: bool = False
    partial_payment_of_total: Optional[Decimal] = None
    currency: str = "EUR"
    notes: Optional[str] = None
    breakdown: Optional[QuotationBreakdown] = None
    id: Optional[int] = None

    def __post_init__(self):
        self.vat_percent = to_decimal(self.vat_percent)
        if self.partial_payment_of_total is not None:
            self.partial_payment_of_total = to_decimal(self.partial_payment_of_total)

    def recalculate(self) -> QuotationBreakdown:
        modifiers = QuotationModifiers(vat_percent=self.vat_percent)
        self.breakdown = Calculator.calculate([line.as_line_item() for line in self.lines], modifiers)
        return self.breakdown

    @property
    def net_amount(self) -> Decimal:
        return self.breakdown.subtotal_before_vat if self.breakdown else ZERO

    @property
    def vat_amount(self) -> Decimal:
        return self.breakdown.vat_amount if self.breakdown else ZERO

    @property
    def total_amount(self) -> Decimal:
        return self.breakdown.total if self.breakdown else ZERO

    @property
    def due_date(self) -> datetime.date:
        return self.invoice_date + datetime.timedelta(days=self.payment_term_days)

    def payment_amount(self) -> Decimal:
        """Amount booked as income when the invoice is paid."""
        if self.is_partial_payment and self.partial_payment_of_total is not None:
            return self.partial_payment_of_total
        return self.total_amount


def validate_line_items(items: List[LineItem]) -> None:
    """Caller-side precondition for the calculator."""
    for item in items:
        for name in ("hours", "hourly_rate", "net_total"):
            value = getattr(item, name)
            if value is not None and value < 0:
                raise ValidationError(f"Position {item.position}: {name} must not be negative")
        if not ZERO <= item.discount_percent <= HUNDRED:
            raise ValidationError(f"Position {item.position}: discount must be between 0 and 100")


def validate_modifiers(modifiers: QuotationModifiers) -> None:
    for name in ("global_discount_percent", "express_surcharge_percent", "vat_percent"):
        value = getattr(modifiers, name)
        if not ZERO <= value <= HUNDRED:
            raise ValidationError(f"{name} must be between 0 and 100")
    for name in ("hosting_fee", "maintenance_months", "maintenance_monthly_fee"):
        if getattr(modifiers, name) < 0:
            raise ValidationError(f"{name} must not be negative")


def validate_invoice_lines(lines: List[InvoiceLine]) -> None:
    for line in lines:
        if line.quantity < 0 or line.unit_price < 0:
            raise ValidationError(f"Position {line.position}: quantity and unit price must not be negative")
        if not ZERO <= line.discount_percent <= HUNDRED:
            raise ValidationError(f"Position {line.position}: discount must be between 0 and 100")


def validate_invoice(invoice: Invoice) -> None:
    """Lines plus the partial-payment amount, for both create and edit."""
    validate_invoice_lines(invoice.lines)
    if invoice.is_partial_payment:
        if invoice.partial_payment_of_total is None or invoice.partial_payment_of_total < 0:
            raise ValidationError("Partial payment amount is required and must not be negative")


def invoice_lines_from_offer(offer: Offer) -> List[InvoiceLine]:
    """Take over the offer positions: one unit each at the position's net total."""
    lines = []
    for index, item in enumerate(sorted(offer.items, key=lambda i: i.position), start=1):
        net = item.computed_net_total()
        lines.append(InvoiceLine(
            position=index,
            description=item.description,
            quantity=Decimal("1"),
            unit="Stk",
            unit_price=net,
            vat_percent=offer.modifiers.vat_percent,
        ))
    return lines


def reminder_for(invoice: Invoice, today: datetime.date = None, payment_term_days: int = 7) -> Invoice:
    """Build the draft payment reminder (Mahnung) for a sent or overdue invoice."""
    if invoice.status not in (InvoiceStatus.SENT, InvoiceStatus.OVERDUE):
        raise ValidationError(
            f"Reminders are only possible for sent or overdue invoices (status: {invoice.status.value})")
    reminder = Invoice(
        client_id=invoice.client_id,
        lines=[InvoiceLine(l.position, l.description, l.quantity, l.unit, l.unit_price,
                           l.vat_percent, l.discount_percent) for l in invoice.lines],
        vat_percent=invoice.vat_percent,
        invoice_type=invoice.invoice_type,
        number=f"{invoice.number}-Mahnung",
        status=InvoiceStatus.DRAFT,
        project_id=invoice.project_id,
        offer_id=invoice.offer_id,
        invoice_date=today or datetime.date.today(),
        payment_term_days=payment_term_days,
        customer_number=invoice.customer_number,
        is_partial_payment=False,
        partial_payment_of_total=None,
        currency=invoice.currency,
        notes=f"Mahnung für Rechnung {invoice.number}",
    )
    # Amounts of the original invoice, not a fresh computation
    reminder.breakdown = invoice.breakdown
    return reminder
