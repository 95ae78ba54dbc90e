"""Invoice, schedule and currency commands."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from zenbill.domain.currency import convert_currency, format_currency, format_exchange_rate, get_exchange_rate
from zenbill.domain.document_tax import calculate_invoice_total
from zenbill.domain.invoice import Invoice, invoice_from_mapping
from zenbill.domain.numeric import parse_numeric_or_zero
from zenbill.domain.recurrence import UNLIMITED, RecurrenceRule
from zenbill.runtime import BillingSettings, get_logger, load_billing_settings

logger = get_logger(__name__)


def load_settings(args: argparse.Namespace) -> BillingSettings:
    config = getattr(args, "config", None)
    return load_billing_settings(str(config) if config else None)


def read_invoice(path: str | Path) -> Invoice:
    """Read an invoice JSON document.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the file is not valid JSON or not an invoice object.
    """
    invoice_path = Path(path)
    if not invoice_path.exists():
        raise FileNotFoundError(f"Invoice file not found: {invoice_path}")

    try:
        document = json.loads(invoice_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {invoice_path}: {exc}") from exc

    invoice = invoice_from_mapping(document)
    logger.debug("Read invoice %s with %d line items", invoice.number or invoice_path.name, len(invoice.line_items))
    return invoice


def cmd_totals(args: argparse.Namespace) -> int:
    invoice = read_invoice(args.invoice)
    totals = calculate_invoice_total(
        invoice.line_items,
        invoice.taxes,
        invoice.discount_type,
        invoice.discount_value,
    )

    if args.json:
        print(json.dumps(totals.to_dict(), indent=2))
        return 0

    settings = load_settings(args)
    currency = invoice.currency or settings.default_currency

    def money(value: object) -> str:
        return format_currency(value, currency, settings.number_format)

    print(f"Subtotal:        {money(totals.subtotal)}")
    if totals.discount:
        print(f"Discount:       -{money(totals.discount)}")
    for entry in totals.tax_breakdown:
        print(f"  {entry.tax_name} ({entry.tax_rate}%): {money(entry.tax_amount)}")
    for entry in totals.document_tax_breakdown:
        print(f"  {entry.tax_name} ({entry.tax_rate}%): {money(entry.tax_amount)}")
    print(f"Tax:             {money(totals.tax)}")
    print(f"Total:           {money(totals.total)}")
    return 0


def cmd_schedule(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    rule = RecurrenceRule(type=args.type, custom_every=args.every, custom_period=args.period)
    occurrences = UNLIMITED if args.occurrences is None else args.occurrences
    max_dates = args.max_dates or settings.max_schedule_dates

    print(rule.describe(args.start, occurrences))
    for billing_date in rule.future_dates(args.start, occurrences, max_dates):
        print(billing_date.isoformat())
    return 0


def cmd_ledger(args: argparse.Namespace) -> int:
    from zenbill.ledger.export import LedgerAccounts, format_invoice_entry, invoice_to_transaction

    settings = load_settings(args)
    invoice = read_invoice(args.invoice)
    txn = invoice_to_transaction(
        invoice,
        accounts=LedgerAccounts.from_mapping(settings.ledger_accounts),
        currency=invoice.currency or settings.default_currency,
    )
    print(format_invoice_entry(txn), end="")
    return 0


def cmd_convert(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    source = args.from_currency.upper()
    target = args.to_currency.upper()

    for code in (source, target):
        if code != "USD" and code not in settings.exchange_rates:
            logger.warning("No exchange rate configured for %s, assuming 1", code)

    amount = parse_numeric_or_zero(args.amount)
    converted = convert_currency(amount, source, target, settings.exchange_rates)
    rate = get_exchange_rate(source, target, settings.exchange_rates)

    print(
        f"{format_currency(amount, source, settings.number_format)} = "
        f"{format_currency(converted, target, settings.number_format)}"
    )
    print(format_exchange_rate(source, target, rate))
    return 0
