#!/usr/bin/env python3
# main.py
"""
BPOffice - ligne de commande.

    python main.py quote --preset onepage_with_db --discount 10 --express 20 --hosting 150
    python main.py invoice-status 3 paid
    python main.py dashboard
"""

import argparse
import sys
from decimal import Decimal

from domain.calculator import Calculator, QuotationModifiers, has_vat_line
from domain.document import Offer, validate_line_items, validate_modifiers
from domain.errors import CRMError
from domain.line_item import LineItem
from domain.money import format_currency, format_number, to_decimal
from domain.presets import PACKAGE_PRESETS, items_from_preset
from infrastructure.logging_service import close_all_module_loggers


def create_sample_offer() -> Offer:
    """Offre d'exemple: site OnePage avec base, remise et hébergement."""
    items = items_from_preset("onepage_with_db", hourly_rate=Decimal("55"))
    items.append(LineItem.fixed(len(items) + 1, "Lizenz Theme", Decimal("89")))
    modifiers = QuotationModifiers(
        global_discount_percent=Decimal("10"),
        hosting_enabled=True,
        hosting_fee=Decimal("150"),
    )
    offer = Offer(client_id=0, items=items, modifiers=modifiers)
    offer.recalculate()
    return offer


def print_breakdown(offer: Offer, vat_percent: Decimal):
    b = offer.breakdown
    for item in offer.items:
        print(f"{item.position:>3}  {item.description:<28} {format_currency(item.computed_net_total()):>14}")
    print("-" * 48)
    rows = [("Summe Positionen", b.sum_positions)]
    if b.global_discount_amount:
        rows.append(("Rabatt", -b.global_discount_amount))
    if b.express_surcharge_amount:
        rows.append(("Express-Zuschlag", b.express_surcharge_amount))
    if b.hosting_total:
        rows.append(("Hosting & Setup", b.hosting_total))
    if b.maintenance_total:
        rows.append(("Wartung", b.maintenance_total))
    rows.append(("Zwischensumme", b.subtotal_before_vat))
    if has_vat_line(vat_percent):
        rows.append((f"MwSt. ({vat_percent}%)", b.vat_amount))
    rows.append(("Gesamt", b.total))
    for label, value in rows:
        print(f"{label:<33}{format_currency(value):>15}")
    if b.total_hours:
        print(f"{format_number(b.total_hours, 1)} h, effektiv {format_currency(b.effective_hourly_rate)}/h")


def cmd_quote(args) -> int:
    if args.preset:
        items = items_from_preset(args.preset, hourly_rate=to_decimal(args.rate))
        offer = Offer(client_id=0, items=items)
    else:
        offer = create_sample_offer()
    # Saisie comme dans l'interface: "10,5" ou "10.5"
    offer.modifiers = QuotationModifiers(
        global_discount_percent=to_decimal(args.discount),
        express_enabled=args.express is not None,
        express_surcharge_percent=to_decimal(args.express),
        hosting_enabled=args.hosting is not None,
        hosting_fee=to_decimal(args.hosting),
        maintenance_enabled=args.maintenance_months is not None,
        maintenance_months=to_decimal(args.maintenance_months),
        maintenance_monthly_fee=to_decimal(args.maintenance_fee),
        vat_percent=to_decimal(args.vat),
    )
    validate_line_items(offer.items)
    validate_modifiers(offer.modifiers)
    offer.breakdown = Calculator.calculate(offer.items, offer.modifiers)
    print_breakdown(offer, offer.modifiers.vat_percent)

    if args.export:
        from infrastructure.export_service import ExportService
        offer.number = offer.number or "ENTWURF"
        ExportService().export_offer(offer, args.export)
        print(f"Exported to {args.export}")
    return 0


def cmd_invoice_status(args) -> int:
    from core.app_initializer import initialize_app
    ctx = initialize_app(db_path=args.db)
    change = ctx.statuses.set_invoice_status(args.invoice_id, args.status)
    print(f"{change.invoice.number}: {change.previous_status.value} -> {change.invoice.status.value}")
    if change.income:
        print(f"Einnahme gebucht: {format_currency(change.income.amount)}")
    if change.removed_income_count:
        print(f"Einnahme entfernt ({change.removed_income_count})")
    return 0


def cmd_dashboard(args) -> int:
    from core.app_initializer import initialize_app
    ctx = initialize_app(db_path=args.db)
    data = ctx.dashboard.load()
    print(f"Offene Leads:      {data.open_leads}")
    print(f"Aktive Projekte:   {data.active_projects}")
    print(f"Gesendete Angebote:{data.offers_sent:>3}")
    print(f"Umsatz (Monat):    {format_currency(data.revenue_month)}")
    print(f"Stunden (Monat):   {format_number(data.hours_month, 1)}")
    for point in data.revenue_series:
        print(f"  {point['month']}  {format_currency(point['revenue']):>14}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bpoffice", description="BPOffice CRM tools")
    parser.add_argument("--db", default=None, help="SQLite file (default: per-user data folder)")
    sub = parser.add_subparsers(dest="command", required=True)

    quote = sub.add_parser("quote", help="Compute an offer breakdown")
    quote.add_argument("--preset", choices=sorted(PACKAGE_PRESETS), default=None)
    quote.add_argument("--rate", default="55")
    quote.add_argument("--discount", default="0")
    quote.add_argument("--express", default=None, help="Express surcharge in percent")
    quote.add_argument("--hosting", default=None, help="Flat hosting & setup fee")
    quote.add_argument("--maintenance-months", default=None)
    quote.add_argument("--maintenance-fee", default="0")
    quote.add_argument("--vat", default="0")
    quote.add_argument("--export", default=None, help="Write the offer to this .xlsx file")
    quote.set_defaults(func=cmd_quote)

    status = sub.add_parser("invoice-status", help="Change an invoice status")
    status.add_argument("invoice_id", type=int)
    status.add_argument("status")
    status.set_defaults(func=cmd_invoice_status)

    dashboard = sub.add_parser("dashboard", help="Show key figures")
    dashboard.set_defaults(func=cmd_dashboard)
    return parser


def main(argv=None) -> int:
    """Point d'entrée de l'application"""
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except CRMError as e:
        print(f"Fehler: {e}", file=sys.stderr)
        return 1
    finally:
        close_all_module_loggers()


if __name__ == "__main__":
    sys.exit(main())
