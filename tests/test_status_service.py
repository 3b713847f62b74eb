"""
Tests des changements de statut, dont le couplage facture payée -> recette.
"""

import datetime
import os
import shutil
import sqlite3
import tempfile
import unittest
from decimal import Decimal
from unittest.mock import patch

from domain.document import Invoice, Offer
from domain.errors import PartialFailureError, RecordNotFoundError, ValidationError
from domain.line_item import InvoiceLine, LineItem
from domain.project import Client, Project
from domain.status import ClientStatus, InvoiceStatus, OfferStatus, ProjectStatus, TransactionType
from infrastructure.database import Database
from infrastructure.status_service import StatusService

PAY_DAY = datetime.date(2024, 3, 15)


class TestInvoiceStatus(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.db = Database(os.path.join(self.temp_dir, "test.db"))
        self.client_id = self.db.insert_client(Client(name="Bäckerei Schmidt"))
        self.service = StatusService(self.db)

    def tearDown(self):
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def _invoice(self, number="BP-2248-02", amount="1200", **kwargs) -> Invoice:
        invoice = Invoice(client_id=self.client_id, number=number,
                          lines=[InvoiceLine(1, "Website", unit_price=amount)], **kwargs)
        invoice.recalculate()
        self.db.insert_invoice(invoice)
        return invoice

    def test_paid_creates_one_income(self):
        invoice = self._invoice()
        change = self.service.set_invoice_status(invoice.id, "paid", today=PAY_DAY)

        self.assertEqual(change.previous_status, InvoiceStatus.DRAFT)
        self.assertEqual(change.invoice.status, InvoiceStatus.PAID)
        self.assertEqual(self.db.get_invoice(invoice.id).status, InvoiceStatus.PAID)

        transactions = self.db.list_transactions()
        self.assertEqual(len(transactions), 1)
        income = transactions[0]
        self.assertEqual(income.type, TransactionType.INCOME)
        self.assertEqual(income.amount, Decimal("1200"))
        self.assertEqual(income.category, "Rechnung")
        self.assertEqual(income.description, "Rechnung BP-2248-02")
        self.assertEqual(income.date, PAY_DAY)
        self.assertEqual(income.related_invoice_id, invoice.id)

    def test_paid_with_vat_books_gross(self):
        invoice = self._invoice(amount="1000", vat_percent="19")
        change = self.service.set_invoice_status(invoice.id, InvoiceStatus.PAID, today=PAY_DAY)
        self.assertEqual(change.income.amount, Decimal("1190"))

    def test_partial_payment_books_partial_amount(self):
        invoice = self._invoice(is_partial_payment=True, partial_payment_of_total="500")
        change = self.service.set_invoice_status(invoice.id, "paid", today=PAY_DAY)
        self.assertEqual(change.income.amount, Decimal("500"))
        self.assertEqual(self.db.list_transactions()[0].amount, Decimal("500"))

    def test_paid_twice_is_idempotent(self):
        invoice = self._invoice()
        self.service.set_invoice_status(invoice.id, "paid", today=PAY_DAY)
        second = self.service.set_invoice_status(invoice.id, "paid", today=PAY_DAY)

        self.assertIsNone(second.income)
        self.assertEqual(len(self.db.list_transactions()), 1)

    def test_leaving_paid_removes_income(self):
        invoice = self._invoice()
        self.service.set_invoice_status(invoice.id, "paid", today=PAY_DAY)
        change = self.service.set_invoice_status(invoice.id, "sent")

        self.assertEqual(change.removed_income_count, 1)
        self.assertEqual(self.db.list_transactions(), [])

    def test_other_transitions_do_not_book(self):
        invoice = self._invoice()
        for status in ("sent", "overdue", "cancelled", "draft"):
            self.service.set_invoice_status(invoice.id, status)
        self.assertEqual(self.db.list_transactions(), [])

    def test_income_failure_rolls_back_status(self):
        invoice = self._invoice()
        with patch.object(self.db, "insert_transaction", side_effect=sqlite3.OperationalError("disk I/O error")):
            with self.assertRaises(PartialFailureError):
                self.service.set_invoice_status(invoice.id, "paid", today=PAY_DAY)

        self.assertEqual(self.db.get_invoice(invoice.id).status, InvoiceStatus.DRAFT)
        self.assertEqual(self.db.list_transactions(), [])

    def test_unknown_status_rejected(self):
        invoice = self._invoice()
        with self.assertRaises(ValidationError):
            self.service.set_invoice_status(invoice.id, "bezahlt")
        self.assertEqual(self.db.get_invoice(invoice.id).status, InvoiceStatus.DRAFT)

    def test_missing_invoice(self):
        with self.assertRaises(RecordNotFoundError):
            self.service.set_invoice_status(999, "paid")

    def test_breakdown_untouched_by_status_change(self):
        invoice = self._invoice(amount="800", vat_percent="19")
        before = self.db.get_invoice(invoice.id).breakdown
        self.service.set_invoice_status(invoice.id, "sent")
        self.assertEqual(self.db.get_invoice(invoice.id).breakdown, before)


class TestOtherStatuses(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.db = Database(os.path.join(self.temp_dir, "test.db"))
        self.service = StatusService(self.db)
        self.client_id = self.db.insert_client(Client(name="Muster GmbH"))

    def tearDown(self):
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def test_client_status(self):
        self.assertEqual(self.db.get_client(self.client_id).status, ClientStatus.LEAD)
        self.service.set_client_status(self.client_id, "customer")
        self.assertEqual(self.db.get_client(self.client_id).status, ClientStatus.CUSTOMER)

    def test_project_status(self):
        project_id = self.db.insert_project(Project(client_id=self.client_id, title="Relaunch"))
        self.service.set_project_status(project_id, ProjectStatus.DONE)
        self.assertEqual(self.db.get_project(project_id).status, ProjectStatus.DONE)

    def test_offer_status_any_to_any(self):
        offer = Offer(client_id=self.client_id, number="ANG-2248-02", items=[LineItem.fixed(1, "Paket", 900)])
        offer.recalculate()
        self.db.insert_offer(offer)

        for status in ("sent", "rejected", "draft", "accepted"):
            self.service.set_offer_status(offer.id, status)
        stored = self.db.get_offer(offer.id)
        self.assertEqual(stored.status, OfferStatus.ACCEPTED)
        self.assertEqual(stored.total, Decimal("900"))

    def test_unknown_values(self):
        with self.assertRaises(ValidationError):
            self.service.set_client_status(self.client_id, "vip")
        with self.assertRaises(RecordNotFoundError):
            self.service.set_project_status(42, "active")


if __name__ == '__main__':
    unittest.main()
