import datetime
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from .money import ZERO, to_decimal
from .status import TransactionType

INVOICE_INCOME_CATEGORY = "Rechnung"


@dataclass
class Transaction:
    type: TransactionType
    amount: Decimal
    description: str = ""
    category: Optional[str] = None
    date: datetime.date = field(default_factory=datetime.date.today)
    notes: Optional[str] = None
    related_invoice_id: Optional[int] = None
    id: Optional[int] = None

    def __post_init__(self):
        self.amount = to_decimal(self.amount)

    @classmethod
    def income_for_invoice(cls, invoice, on: datetime.date = None) -> "Transaction":
        """Income booked when an invoice is marked paid."""
        return cls(
            type=TransactionType.INCOME,
            amount=invoice.payment_amount(),
            description=f"Rechnung {invoice.number}",
            category=INVOICE_INCOME_CATEGORY,
            date=on or datetime.date.today(),
            notes=f"Automatisch erstellt bei Bezahlung der Rechnung {invoice.number}",
            related_invoice_id=invoice.id,
        )


@dataclass
class LedgerSummary:
    income: Decimal = ZERO
    expenses: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses


def summarize(transactions: Iterable[Transaction]) -> LedgerSummary:
    summary = LedgerSummary()
    for t in transactions:
        if t.type == TransactionType.INCOME:
            summary.income += t.amount
        else:
            summary.expenses += t.amount
    return summary


def month_start(day: datetime.date, months_back: int = 0) -> datetime.date:
    """First day of the month `months_back` months before `day`."""
    index = day.year * 12 + (day.month - 1) - months_back
    return datetime.date(index // 12, index % 12 + 1, 1)


def month_end(day: datetime.date) -> datetime.date:
    return month_start(day, -1) - datetime.timedelta(days=1)


def monthly_series(transactions: Iterable[Transaction], today: datetime.date = None,
                   months: int = 6) -> List[Dict]:
    """Income, expenses and balance per month, oldest first, ending with today's month."""
    today = today or datetime.date.today()
    transactions = list(transactions)
    series = []
    for back in range(months - 1, -1, -1):
        start = month_start(today, back)
        end = month_end(start)
        summary = summarize(t for t in transactions if start <= t.date <= end)
        series.append({
            "month": start.strftime("%Y-%m"),
            "income": summary.income,
            "expenses": summary.expenses,
            "balance": summary.net,
        })
    return series
