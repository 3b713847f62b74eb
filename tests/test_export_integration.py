"""
Tests d'intégration de l'ExportService (fichiers Excel relus avec openpyxl).
"""

import datetime
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from domain.bookkeeping import Transaction
from domain.calculator import QuotationModifiers
from domain.document import Invoice, Offer
from domain.line_item import InvoiceLine, LineItem
from domain.status import TransactionType
from infrastructure.export_service import ExportService


def _labels(ws):
    return [c.value for row in ws.iter_rows() for c in row if isinstance(c.value, str)]


def _value_after(ws, label):
    """Valeur à droite du libellé, en partant du bas (les totaux sont sous le tableau)."""
    for row in reversed(list(ws.iter_rows())):
        for cell in row:
            if cell.value == label:
                return ws.cell(row=cell.row, column=cell.column + 1).value
    raise AssertionError(f"Label {label!r} not found")


class TestExportService:

    @pytest.fixture
    def export(self):
        return ExportService()

    def test_offer_without_vat_has_no_vat_row(self, export, tmp_path):
        offer = Offer(client_id=1, number="ANG-2248-02",
                      items=[LineItem.hourly(1, "Design", 8, 55), LineItem.fixed(2, "Lizenz", "89.99")],
                      modifiers=QuotationModifiers(global_discount_percent=10))
        offer.recalculate()

        path = export.export_offer(offer, str(tmp_path / "angebot.xlsx"))
        ws = load_workbook(path).active

        assert ws.title == "Angebot"
        assert not any(label.startswith("MwSt") for label in _labels(ws))
        assert _value_after(ws, "Angebot") == "ANG-2248-02"
        assert _value_after(ws, "Summe Positionen") == pytest.approx(529.99)
        assert _value_after(ws, "Rabatt") == pytest.approx(-53.0)
        assert _value_after(ws, "Gesamt") == pytest.approx(476.99)

    def test_offer_with_vat_and_extras(self, export, tmp_path):
        offer = Offer(client_id=1, number="ANG-2248-03", items=[LineItem.fixed(1, "Website", 1000)],
                      modifiers=QuotationModifiers(express_enabled=True, express_surcharge_percent=20,
                                                   hosting_enabled=True, hosting_fee=150, vat_percent=19))
        offer.recalculate()

        ws = load_workbook(export.export_offer(offer, str(tmp_path / "a.xlsx"))).active

        assert _value_after(ws, "Express-Zuschlag") == pytest.approx(200)
        assert _value_after(ws, "Hosting & Setup") == pytest.approx(150)
        assert _value_after(ws, "MwSt. (19%)") == pytest.approx(256.5)
        assert _value_after(ws, "Gesamt") == pytest.approx(1606.5)
        assert "Wartung" not in _labels(ws)

    def test_vat_row_kept_on_zero_subtotal(self, export, tmp_path):
        offer = Offer(client_id=1, number="ANG-2248-05", items=[LineItem.fixed(1, "Gutschein", 0)],
                      modifiers=QuotationModifiers(vat_percent=19))
        offer.recalculate()

        ws = load_workbook(export.export_offer(offer, str(tmp_path / "z.xlsx"))).active
        assert _value_after(ws, "MwSt. (19%)") == 0
        assert _value_after(ws, "Gesamt") == 0

    def test_invoice_export(self, export, tmp_path):
        invoice = Invoice(client_id=1, number="BP-2248-02", vat_percent=Decimal("19"),
                          invoice_date=datetime.date(2024, 1, 10), customer_number="K-1001",
                          lines=[InvoiceLine(1, "Website", unit_price="1000")])
        invoice.recalculate()

        ws = load_workbook(export.export_invoice(invoice, str(tmp_path / "sub" / "rechnung.xlsx"))).active

        assert ws.title == "Rechnung"
        assert _value_after(ws, "Fällig am") == "24.01.2024"
        assert _value_after(ws, "Kundennummer") == "K-1001"
        assert _value_after(ws, "Netto") == pytest.approx(1000)
        assert _value_after(ws, "MwSt. (19%)") == pytest.approx(190)
        assert _value_after(ws, "Gesamt") == pytest.approx(1190)

    def test_transactions_export(self, export, tmp_path):
        transactions = [
            Transaction(TransactionType.INCOME, "1200", "Rechnung BP-2248-02", "Rechnung",
                        date=datetime.date(2024, 3, 1)),
            Transaction(TransactionType.EXPENSE, "200.5", "Domain", "Büro", date=datetime.date(2024, 3, 2)),
        ]

        ws = load_workbook(export.export_transactions(transactions, str(tmp_path / "tx.xlsx"))).active

        assert ws.title == "Transaktionen"
        assert ws.cell(row=3, column=2).value == "Ausgabe"
        assert ws.cell(row=3, column=5).value == pytest.approx(-200.5)
        assert _value_after(ws, "Einnahmen") == pytest.approx(1200)
        assert _value_after(ws, "Ausgaben") == pytest.approx(200.5)
        assert _value_after(ws, "Saldo") == pytest.approx(999.5)

    def test_amounts_rounded_to_cents(self, export, tmp_path):
        offer = Offer(client_id=1, number="ANG-2248-04", items=[LineItem.hourly(1, "Beratung", 1, "33.333")],
                      modifiers=QuotationModifiers(vat_percent=19))
        offer.recalculate()

        ws = load_workbook(export.export_offer(offer, str(tmp_path / "r.xlsx"))).active
        assert _value_after(ws, "MwSt. (19%)") == 6.33
        assert _value_after(ws, "Gesamt") == 39.67
