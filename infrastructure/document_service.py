# infrastructure/document_service.py
"""
Creation and editing of offers and invoices.

The breakdown is computed once when a document is created or edited and
stored with it; later status changes never touch it. Numbers come from
DocumentNumberingService; a UNIQUE violation on insert is retried with a
freshly computed number, never with the same one.
"""

import datetime
from typing import Callable, Optional

from domain.calculator import QuotationModifiers
from domain.document import (Invoice, Offer, invoice_lines_from_offer, reminder_for,
                             validate_invoice, validate_line_items, validate_modifiers)
from domain.errors import NumberConflictError, ValidationError
from domain.line_item import BillingType
from domain.presets import items_from_preset
from domain.status import InvoiceStatus, OfferStatus
from infrastructure.configuration import ConfigurationService
from infrastructure.database import Database
from infrastructure.document_numbering_service import DocumentNumberingService
from infrastructure.logging_service import get_module_logger

logger = get_module_logger("DocumentService", "documents.log")


class DocumentService:

    def __init__(self, db: Database, config: ConfigurationService = None,
                 numbering: DocumentNumberingService = None):
        self.db = db
        self.config = config or ConfigurationService.get_instance()
        self.numbering = numbering or DocumentNumberingService.from_config(db, self.config)

    # =========================
    # OFFERS
    # =========================
    def create_offer(self, offer: Offer, prefix: str = None) -> Offer:
        """Validate, snapshot the breakdown and insert as draft with a fresh number."""
        validate_line_items(offer.items)
        validate_modifiers(offer.modifiers)
        offer.status = OfferStatus.DRAFT
        offer.recalculate()

        prefix = prefix or self.config.get_offer_prefix()
        self._insert_numbered(offer, lambda: self.numbering.next_offer_number(prefix), self.db.insert_offer)
        logger.info(f"Offer {offer.number} created (total {offer.total})")
        return offer

    def offer_from_preset(self, client_id: int, preset_key: str, hourly_rate=None) -> Offer:
        """Unsaved IT offer seeded from a package preset, at the configured rate and VAT."""
        rate = hourly_rate if hourly_rate is not None else self.config.get_default_hourly_rate()
        offer = Offer(
            client_id=client_id,
            items=items_from_preset(preset_key, hourly_rate=rate),
            modifiers=QuotationModifiers(vat_percent=self.config.get_default_vat_percent()),
            offer_type=BillingType.IT,
            currency=self.config.get("currency"),
        )
        offer.recalculate()
        return offer

    def update_offer(self, offer: Offer) -> Offer:
        """Explicit edit: the only path that replaces a stored offer breakdown."""
        if offer.id is None:
            raise ValidationError("Offer has not been saved yet")
        validate_line_items(offer.items)
        validate_modifiers(offer.modifiers)
        offer.recalculate()
        self.db.update_offer(offer)
        logger.info(f"Offer {offer.number} recalculated (total {offer.total})")
        return offer

    # =========================
    # INVOICES
    # =========================
    def create_invoice(self, invoice: Invoice, prefix: str = None) -> Invoice:
        validate_invoice(invoice)
        invoice.status = InvoiceStatus.DRAFT
        invoice.recalculate()

        prefix = prefix or self.config.get_invoice_prefix()
        self._insert_numbered(invoice, lambda: self.numbering.next_invoice_number(prefix), self.db.insert_invoice)
        logger.info(f"Invoice {invoice.number} created (total {invoice.total_amount})")
        return invoice

    def create_invoice_from_offer(self, offer_id: int, invoice_date: datetime.date = None,
                                  prefix: str = None) -> Invoice:
        """Draft invoice carrying over the positions and VAT rate of an offer."""
        offer = self.db.get_offer(offer_id)
        invoice = Invoice(
            client_id=offer.client_id,
            project_id=offer.project_id,
            offer_id=offer.id,
            lines=invoice_lines_from_offer(offer),
            vat_percent=offer.modifiers.vat_percent,
            invoice_type=offer.offer_type,
            invoice_date=invoice_date or datetime.date.today(),
            payment_term_days=self.config.get_payment_term_days(),
            currency=offer.currency,
        )
        return self.create_invoice(invoice, prefix=prefix)

    def update_invoice(self, invoice: Invoice) -> Invoice:
        if invoice.id is None:
            raise ValidationError("Invoice has not been saved yet")
        validate_invoice(invoice)
        invoice.recalculate()
        self.db.update_invoice(invoice)
        logger.info(f"Invoice {invoice.number} recalculated (total {invoice.total_amount})")
        return invoice

    def create_reminder(self, invoice_id: int, today: datetime.date = None) -> Invoice:
        """Payment reminder (Mahnung) for a sent or overdue invoice, saved as draft."""
        invoice = self.db.get_invoice(invoice_id)
        reminder = reminder_for(invoice, today=today,
                                payment_term_days=self.config.get_reminder_payment_term_days())
        self.db.insert_invoice(reminder)
        logger.info(f"Reminder {reminder.number} created for invoice {invoice.number}")
        return reminder

    # =========================
    # PRIVATE
    # =========================
    def _insert_numbered(self, document, compute_number: Callable[[], str], insert: Callable):
        # A number chosen by the user is tried once; a computed one is recomputed on conflict
        if document.number:
            insert(document)
            return

        attempts = max(1, self.config.get_number_retry_attempts())
        last_conflict: Optional[NumberConflictError] = None
        for attempt in range(1, attempts + 1):
            document.number = compute_number()
            try:
                insert(document)
                return
            except NumberConflictError as e:
                last_conflict = e
                logger.warning(f"Number {document.number} taken (attempt {attempt}/{attempts}), recomputing")
        document.number = None
        raise last_conflict
