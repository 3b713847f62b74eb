"""Domain models package.

Exports core domain classes for easier imports:
- `LineItem`, `InvoiceLine`, `BillingType`
- `QuotationModifiers`, `QuotationBreakdown`, `Calculator`, `calculate`
- `Offer`, `Invoice`, `Client`, `Project`, `TimeEntry`, `Transaction`
"""

from .line_item import BillingType, InvoiceLine, LineItem
from .calculator import Calculator, QuotationBreakdown, QuotationModifiers, calculate
from .document import Invoice, Offer
from .project import Client, Project, TimeEntry
from .bookkeeping import Transaction

__all__ = [
    "BillingType", "InvoiceLine", "LineItem",
    "Calculator", "QuotationBreakdown", "QuotationModifiers", "calculate",
    "Invoice", "Offer", "Client", "Project", "TimeEntry", "Transaction",
]
