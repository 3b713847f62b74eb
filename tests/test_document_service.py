"""
Tests du DocumentService: création numérotée, instantané du calcul, relances.
"""

import datetime
from decimal import Decimal
from unittest.mock import patch

import pytest

from domain.calculator import QuotationModifiers
from domain.document import Invoice, Offer
from domain.errors import NumberConflictError, RecordNotFoundError, ValidationError
from domain.line_item import InvoiceLine, LineItem
from domain.project import Client
from domain.status import InvoiceStatus, OfferStatus
from infrastructure.document_service import DocumentService
from infrastructure.status_service import StatusService


class TestDocumentService:

    @pytest.fixture
    def client_id(self, temp_db):
        return temp_db.insert_client(Client(name="Muster GmbH"))

    @pytest.fixture
    def service(self, temp_db, temp_config):
        return DocumentService(temp_db, temp_config)

    def _invoice(self, client_id, amount="1000", **kwargs):
        return Invoice(client_id=client_id, lines=[InvoiceLine(1, "Website", unit_price=amount)], **kwargs)

    # --- Offers -----------------------------------------------------------

    def test_create_offer(self, service, temp_db, client_id):
        offer = Offer(client_id=client_id, items=[LineItem.hourly(1, "Design", 10, 55)],
                      modifiers=QuotationModifiers(vat_percent=19), status=OfferStatus.SENT)
        service.create_offer(offer)

        assert offer.number == "ANG-2248-02"
        assert offer.status == OfferStatus.DRAFT
        stored = temp_db.get_offer(offer.id)
        assert stored.breakdown.total == Decimal("654.5")
        assert stored.total == Decimal("654.5")
        assert stored.modifiers.vat_percent == Decimal("19")

    def test_offers_numbered_in_sequence(self, service, client_id):
        first = service.create_offer(Offer(client_id=client_id, items=[LineItem.fixed(1, "A", 100)]))
        second = service.create_offer(Offer(client_id=client_id, items=[LineItem.fixed(1, "B", 200)]))
        assert (first.number, second.number) == ("ANG-2248-02", "ANG-2248-03")

    def test_stored_breakdown_survives_status_change(self, service, temp_db, client_id):
        offer = service.create_offer(Offer(client_id=client_id, items=[LineItem.fixed(1, "Paket", 1500)]))
        before = temp_db.get_offer(offer.id).breakdown

        StatusService(temp_db).set_offer_status(offer.id, "accepted")

        after = temp_db.get_offer(offer.id)
        assert after.status == OfferStatus.ACCEPTED
        assert after.breakdown == before

    def test_update_offer_recalculates(self, service, temp_db, client_id):
        offer = service.create_offer(Offer(client_id=client_id, items=[LineItem.hourly(1, "Design", 10, 55)]))
        offer.items.append(LineItem.fixed(2, "Hosting Setup", 150))
        offer.modifiers = QuotationModifiers(global_discount_percent=10)
        service.update_offer(offer)

        stored = temp_db.get_offer(offer.id)
        assert stored.total == Decimal("630")
        assert len(stored.items) == 2
        assert stored.number == "ANG-2248-02"

    def test_offer_from_preset_uses_configured_defaults(self, temp_db, temp_config, client_id):
        temp_config.set("default_hourly_rate", 60)
        temp_config.set("default_vat_percent", 19)
        service = DocumentService(temp_db, temp_config)

        offer = service.offer_from_preset(client_id, "onepage_no_db")

        assert offer.id is None
        assert len(offer.items) == 6
        assert offer.breakdown.total_hours == Decimal("26")
        assert offer.breakdown.sum_positions == Decimal("1560")
        assert offer.modifiers.vat_percent == Decimal("19")

        service.create_offer(offer)
        assert offer.number == "ANG-2248-02"

    def test_offer_from_preset_explicit_rate(self, service, client_id):
        offer = service.offer_from_preset(client_id, "onepage_no_db", hourly_rate=Decimal("50"))
        assert offer.total == Decimal("1300")

    def test_update_unsaved_offer(self, service, client_id):
        with pytest.raises(ValidationError):
            service.update_offer(Offer(client_id=client_id))

    @pytest.mark.parametrize("item, modifiers", [
        (LineItem.hourly(1, "Design", -1, 55), QuotationModifiers()),
        (LineItem.hourly(1, "Design", 1, -55), QuotationModifiers()),
        (LineItem.hourly(1, "Design", 1, 55, 120), QuotationModifiers()),
        (LineItem.fixed(1, "Paket", -10), QuotationModifiers()),
        (LineItem.fixed(1, "Paket", 10), QuotationModifiers(global_discount_percent=101)),
        (LineItem.fixed(1, "Paket", 10), QuotationModifiers(vat_percent=-1)),
        (LineItem.fixed(1, "Paket", 10), QuotationModifiers(hosting_enabled=True, hosting_fee=-5)),
    ])
    def test_invalid_offer_rejected(self, service, temp_db, client_id, item, modifiers):
        with pytest.raises(ValidationError):
            service.create_offer(Offer(client_id=client_id, items=[item], modifiers=modifiers))
        assert temp_db.list_offers() == []

    # --- Invoices ---------------------------------------------------------

    def test_create_invoice(self, service, temp_db, client_id):
        invoice = self._invoice(client_id, vat_percent="19", invoice_date=datetime.date(2024, 1, 10))
        service.create_invoice(invoice)

        assert invoice.number == "BP-2248-02"
        stored = temp_db.get_invoice(invoice.id)
        assert stored.status == InvoiceStatus.DRAFT
        assert stored.net_amount == Decimal("1000")
        assert stored.vat_amount == Decimal("190")
        assert stored.total_amount == Decimal("1190")
        assert stored.due_date == datetime.date(2024, 1, 24)

    def test_custom_prefix(self, service, client_id):
        invoice = service.create_invoice(self._invoice(client_id), prefix="RE-2025")
        assert invoice.number == "RE-2025-02"

    def test_partial_payment_requires_amount(self, service, client_id):
        with pytest.raises(ValidationError):
            service.create_invoice(self._invoice(client_id, is_partial_payment=True))

    def test_negative_line_rejected(self, service, client_id):
        with pytest.raises(ValidationError):
            service.create_invoice(self._invoice(client_id, amount="-1"))

    def test_update_invoice(self, service, temp_db, client_id):
        invoice = service.create_invoice(self._invoice(client_id))
        invoice.lines.append(InvoiceLine(2, "Wartung", quantity=3, unit="Monat", unit_price="25"))
        service.update_invoice(invoice)
        assert temp_db.get_invoice(invoice.id).total_amount == Decimal("1075")

    def test_update_invoice_checks_partial_payment(self, service, temp_db, client_id):
        invoice = service.create_invoice(self._invoice(client_id))
        invoice.is_partial_payment = True
        invoice.partial_payment_of_total = None

        with pytest.raises(ValidationError):
            service.update_invoice(invoice)
        assert temp_db.get_invoice(invoice.id).is_partial_payment is False

        invoice.partial_payment_of_total = Decimal("400")
        service.update_invoice(invoice)
        assert temp_db.get_invoice(invoice.id).payment_amount() == Decimal("400")

    def test_retry_with_fresh_number_on_conflict(self, service, temp_db, client_id):
        temp_db.insert_invoice(self._invoice(client_id, number="BP-2248-02"))

        with patch.object(service.numbering, "next_invoice_number",
                          side_effect=["BP-2248-02", "BP-2248-03"]) as next_number:
            invoice = service.create_invoice(self._invoice(client_id))

        assert invoice.number == "BP-2248-03"
        assert next_number.call_count == 2
        assert sorted(temp_db.list_invoice_numbers("BP-2248")) == ["BP-2248-02", "BP-2248-03"]

    def test_retries_exhausted(self, service, temp_db, client_id):
        temp_db.insert_invoice(self._invoice(client_id, number="BP-2248-02"))
        invoice = self._invoice(client_id)

        with patch.object(service.numbering, "next_invoice_number", return_value="BP-2248-02") as next_number:
            with pytest.raises(NumberConflictError) as excinfo:
                service.create_invoice(invoice)

        assert excinfo.value.number == "BP-2248-02"
        assert next_number.call_count == 3
        assert invoice.number is None
        assert len(temp_db.list_invoices()) == 1

    def test_retry_attempts_from_config(self, temp_db, temp_config, client_id):
        temp_config.set("number_retry_attempts", 1)
        service = DocumentService(temp_db, temp_config)
        temp_db.insert_invoice(self._invoice(client_id, number="BP-2248-02"))

        with patch.object(service.numbering, "next_invoice_number", return_value="BP-2248-02") as next_number:
            with pytest.raises(NumberConflictError):
                service.create_invoice(self._invoice(client_id))
        assert next_number.call_count == 1

    def test_chosen_number_is_not_replaced(self, service, temp_db, client_id):
        temp_db.insert_invoice(self._invoice(client_id, number="BP-2248-07"))

        with patch.object(service.numbering, "next_invoice_number") as next_number:
            with pytest.raises(NumberConflictError):
                service.create_invoice(self._invoice(client_id, number="BP-2248-07"))
        next_number.assert_not_called()

    def test_invoice_from_offer(self, service, temp_db, client_id):
        offer = service.create_offer(Offer(
            client_id=client_id,
            items=[LineItem.hourly(1, "Design", 10, 55, 10), LineItem.fixed(2, "Lizenz", 100)],
            modifiers=QuotationModifiers(vat_percent=19),
        ))
        invoice = service.create_invoice_from_offer(offer.id, invoice_date=datetime.date(2024, 5, 2))

        stored = temp_db.get_invoice(invoice.id)
        assert stored.offer_id == offer.id
        assert stored.number == "BP-2248-02"
        assert [line.unit_price for line in stored.lines] == [Decimal("495"), Decimal("100")]
        assert stored.vat_percent == Decimal("19")
        assert stored.total_amount == Decimal("708.05")
        assert stored.due_date == datetime.date(2024, 5, 16)

    def test_invoice_from_missing_offer(self, service):
        with pytest.raises(RecordNotFoundError):
            service.create_invoice_from_offer(404)

    # --- Reminders --------------------------------------------------------

    def test_reminder_needs_sent_invoice(self, service, client_id):
        invoice = service.create_invoice(self._invoice(client_id))
        with pytest.raises(ValidationError):
            service.create_reminder(invoice.id)

    def test_reminder(self, service, temp_db, client_id):
        invoice = service.create_invoice(self._invoice(client_id, vat_percent="19"))
        temp_db.update_invoice_status(invoice.id, InvoiceStatus.OVERDUE)

        reminder = service.create_reminder(invoice.id, today=datetime.date(2024, 2, 1))

        assert reminder.number == "BP-2248-02-Mahnung"
        assert reminder.status == InvoiceStatus.DRAFT
        assert reminder.due_date == datetime.date(2024, 2, 8)
        assert reminder.notes == "Mahnung für Rechnung BP-2248-02"
        assert temp_db.get_invoice(reminder.id).total_amount == Decimal("1190")
        # Reminder numbers stay out of the sequence
        assert service.numbering.next_invoice_number("BP-2248") == "BP-2248-03"

    def test_second_reminder_conflicts(self, service, temp_db, client_id):
        invoice = service.create_invoice(self._invoice(client_id))
        temp_db.update_invoice_status(invoice.id, InvoiceStatus.SENT)
        service.create_reminder(invoice.id)
        with pytest.raises(NumberConflictError):
            service.create_reminder(invoice.id)
