import os
from typing import Iterable, List, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from domain.bookkeeping import Transaction, summarize
from domain.calculator import QuotationBreakdown, has_vat_line
from domain.document import Invoice, Offer
from domain.money import round_money
from domain.status import STATUS_LABELS, TransactionType
from infrastructure.logging_service import get_module_logger

logger = get_module_logger("ExportService", "export.log")

EURO_FORMAT = '#,##0.00 "€"'
BOLD = Font(bold=True)


class ExportService:
    """
    Export Excel des offres, factures et du journal des transactions.
    - Offer/invoice: header, one row per position, then the stored breakdown
    - Ledger: one row per transaction, followed by income/expense/net totals
    Amounts are rounded to cents here, never before.
    """

    # =========================
    # PUBLIC
    # =========================
    def export_offer(self, offer: Offer, output_path: str) -> str:
        wb = Workbook()
        ws = wb.active
        ws.title = "Angebot"

        self._write_header(ws, [
            ("Angebot", offer.number),
            ("Datum", offer.date.strftime("%d.%m.%Y") if offer.date else ""),
            ("Gültig bis", offer.valid_until.strftime("%d.%m.%Y") if offer.valid_until else ""),
            ("Status", STATUS_LABELS[offer.status]),
        ])

        row = 6
        headers = ["Pos.", "Leistung", "Stunden", "Stundensatz", "Rabatt %", "Netto"]
        self._write_row(ws, row, headers, bold=True)
        for item in sorted(offer.items, key=lambda i: i.position):
            row += 1
            self._write_row(ws, row, [
                item.position,
                item.description,
                None if item.is_fixed_price else float(item.hours or 0),
                None if item.is_fixed_price else self._money(item.hourly_rate or 0),
                None if item.is_fixed_price else float(item.discount_percent),
                self._money(item.computed_net_total()),
            ])
            ws.cell(row=row, column=4).number_format = EURO_FORMAT
            ws.cell(row=row, column=6).number_format = EURO_FORMAT

        breakdown = offer.breakdown or offer.recalculate()
        self._write_breakdown(ws, row + 2, self._offer_lines(breakdown, offer.modifiers.vat_percent))

        self._autosize(ws, len(headers))
        return self._save(wb, output_path)

    def export_invoice(self, invoice: Invoice, output_path: str) -> str:
        wb = Workbook()
        ws = wb.active
        ws.title = "Rechnung"

        header = [
            ("Rechnung", invoice.number),
            ("Rechnungsdatum", invoice.invoice_date.strftime("%d.%m.%Y")),
            ("Fällig am", invoice.due_date.strftime("%d.%m.%Y")),
            ("Status", STATUS_LABELS[invoice.status]),
        ]
        if invoice.customer_number:
            header.append(("Kundennummer", invoice.customer_number))
        self._write_header(ws, header)

        row = len(header) + 2
        headers = ["Pos.", "Beschreibung", "Menge", "Einheit", "Einzelpreis", "Rabatt %", "Gesamt"]
        self._write_row(ws, row, headers, bold=True)
        for line in sorted(invoice.lines, key=lambda l: l.position):
            row += 1
            self._write_row(ws, row, [
                line.position, line.description, float(line.quantity), line.unit,
                self._money(line.unit_price), float(line.discount_percent), self._money(line.total),
            ])
            ws.cell(row=row, column=5).number_format = EURO_FORMAT
            ws.cell(row=row, column=7).number_format = EURO_FORMAT

        breakdown = invoice.breakdown or invoice.recalculate()
        lines = [("Netto", breakdown.subtotal_before_vat)]
        if has_vat_line(invoice.vat_percent):
            lines.append((f"MwSt. ({self._percent(invoice.vat_percent)}%)", breakdown.vat_amount))
        lines.append(("Gesamt", breakdown.total))
        if invoice.is_partial_payment and invoice.partial_payment_of_total is not None:
            lines.append(("Teilanzahlung", invoice.partial_payment_of_total))
        self._write_breakdown(ws, row + 2, lines)

        self._autosize(ws, len(headers))
        return self._save(wb, output_path)

    def export_transactions(self, transactions: Iterable[Transaction], output_path: str) -> str:
        transactions = list(transactions)
        wb = Workbook()
        ws = wb.active
        ws.title = "Transaktionen"

        headers = ["Datum", "Typ", "Beschreibung", "Kategorie", "Betrag"]
        self._write_row(ws, 1, headers, bold=True)
        row = 1
        for t in sorted(transactions, key=lambda t: (t.date, t.id or 0)):
            row += 1
            signed = t.amount if t.type == TransactionType.INCOME else -t.amount
            self._write_row(ws, row, [
                t.date.strftime("%d.%m.%Y"),
                "Einnahme" if t.type == TransactionType.INCOME else "Ausgabe",
                t.description, t.category or "", self._money(signed),
            ])
            ws.cell(row=row, column=5).number_format = EURO_FORMAT

        summary = summarize(transactions)
        self._write_breakdown(ws, row + 2, [
            ("Einnahmen", summary.income),
            ("Ausgaben", summary.expenses),
            ("Saldo", summary.net),
        ], label_column=4)

        self._autosize(ws, len(headers))
        return self._save(wb, output_path)

    # =========================
    # PRIVATE
    # =========================
    def _offer_lines(self, b: QuotationBreakdown, vat_percent) -> List[Tuple[str, object]]:
        lines = [("Summe Positionen", b.sum_positions)]
        if b.global_discount_amount:
            lines.append(("Rabatt", -b.global_discount_amount))
        if b.express_surcharge_amount:
            lines.append(("Express-Zuschlag", b.express_surcharge_amount))
        if b.hosting_total:
            lines.append(("Hosting & Setup", b.hosting_total))
        if b.maintenance_total:
            lines.append(("Wartung", b.maintenance_total))
        lines.append(("Zwischensumme", b.subtotal_before_vat))
        # Kleinunternehmer: pas de ligne TVA à 0 %
        if has_vat_line(vat_percent):
            lines.append((f"MwSt. ({self._percent(vat_percent)}%)", b.vat_amount))
        lines.append(("Gesamt", b.total))
        return lines

    def _write_header(self, ws, pairs):
        for row_idx, (label, value) in enumerate(pairs, start=1):
            ws.cell(row=row_idx, column=1, value=label).font = BOLD
            ws.cell(row=row_idx, column=2, value=value)

    def _write_row(self, ws, row_idx, values, bold=False):
        for col_idx, value in enumerate(values, start=1):
            cell = ws.cell(row=row_idx, column=col_idx, value=value)
            if bold:
                cell.font = BOLD

    def _write_breakdown(self, ws, start_row, lines, label_column=None):
        label_col = label_column or ws.max_column - 1
        for offset, (label, amount) in enumerate(lines):
            ws.cell(row=start_row + offset, column=label_col, value=label).font = BOLD
            cell = ws.cell(row=start_row + offset, column=label_col + 1, value=self._money(amount))
            cell.number_format = EURO_FORMAT

    def _autosize(self, ws, columns):
        for col_idx in range(1, columns + 1):
            letter = get_column_letter(col_idx)
            width = max((len(str(c.value)) for c in ws[letter] if c.value is not None), default=8)
            ws.column_dimensions[letter].width = min(max(width + 2, 10), 60)

    def _save(self, wb, output_path: str) -> str:
        directory = os.path.dirname(output_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        try:
            wb.save(output_path)
        except PermissionError:
            msg = f"Impossible d'enregistrer '{os.path.basename(output_path)}'. Le fichier est-il ouvert dans Excel ?"
            logger.error(msg)
            raise
        logger.info(f"Export Excel réussi → {output_path}")
        return output_path

    @staticmethod
    def _money(value) -> float:
        # openpyxl writes numbers; cents are fixed before the float conversion
        return float(round_money(value))

    @staticmethod
    def _percent(value) -> str:
        return format(value.normalize(), "f") if hasattr(value, "normalize") else str(value)
