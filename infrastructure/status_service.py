# infrastructure/status_service.py
import datetime
import sqlite3
from dataclasses import dataclass
from typing import Optional, Union

from domain.bookkeeping import Transaction
from domain.document import Invoice
from domain.errors import PartialFailureError
from domain.status import ClientStatus, InvoiceStatus, OfferStatus, ProjectStatus, parse_status, validate_transition
from infrastructure.database import Database
from infrastructure.logging_service import get_module_logger

logger = get_module_logger("StatusService", "status.log")


@dataclass
class InvoiceStatusChange:
    invoice: Invoice
    previous_status: InvoiceStatus
    income: Optional[Transaction] = None
    removed_income_count: int = 0


class StatusService:
    """Status writes for clients, projects, offers and invoices.

    Any status may follow any other within its enum. Invoices are the only
    coupled case: becoming paid books the income, leaving paid removes it,
    both in the same database transaction as the status itself.
    """

    def __init__(self, db: Database):
        self.db = db

    def set_client_status(self, client_id: int, new_status: Union[str, ClientStatus]) -> ClientStatus:
        status = parse_status(ClientStatus, new_status)
        self.db.update_client_status(client_id, status)
        return status

    def set_project_status(self, project_id: int, new_status: Union[str, ProjectStatus]) -> ProjectStatus:
        status = parse_status(ProjectStatus, new_status)
        self.db.update_project_status(project_id, status)
        return status

    def set_offer_status(self, offer_id: int, new_status: Union[str, OfferStatus]) -> OfferStatus:
        status = parse_status(OfferStatus, new_status)
        self.db.update_offer_status(offer_id, status)
        return status

    def set_invoice_status(self, invoice_id: int, new_status: Union[str, InvoiceStatus],
                           today: datetime.date = None) -> InvoiceStatusChange:
        with self.db.transaction() as conn:
            invoice = self.db.get_invoice(invoice_id, conn)
            previous = invoice.status
            target = validate_transition(InvoiceStatus, previous, new_status)
            self.db.update_invoice_status(invoice_id, target, conn)
            invoice.status = target
            change = InvoiceStatusChange(invoice=invoice, previous_status=previous)

            if target == InvoiceStatus.PAID:
                if self.db.find_income_for_invoice(invoice_id, conn):
                    logger.info(f"Income for invoice {invoice.number} already recorded")
                else:
                    income = Transaction.income_for_invoice(invoice, on=today)
                    try:
                        self.db.insert_transaction(income, conn)
                    except sqlite3.Error as e:
                        logger.error(f"Income for invoice {invoice.number} could not be recorded, "
                                     f"status change rolled back: {e}")
                        raise PartialFailureError(
                            f"Invoice {invoice.number} not marked paid: income transaction failed") from e
                    change.income = income
            elif previous == InvoiceStatus.PAID:
                change.removed_income_count = self.db.delete_income_for_invoice(invoice_id, conn)

        logger.info(f"Invoice {invoice.number}: {previous.value} -> {target.value}")
        return change
