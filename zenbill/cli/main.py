#!/usr/bin/env python3

import argparse
from collections.abc import Sequence

from zenbill.runtime import get_logger

logger = get_logger(__name__)


def _print_error(error: str) -> None:
    for line in error.splitlines():
        print(line)


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zenbill",
        description="Invoice and recurring billing utilities",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  totals <invoice.json>        Compute subtotal, discount, taxes and total
  schedule <start>             List upcoming billing dates for a recurrence
  ledger <invoice.json>        Print the invoice as a Beancount transaction
  convert <amount> <from> <to> Convert an amount with configured exchange rates
  expenses template            Print an expense CSV template
  expenses check <file.csv>    Validate an expense CSV before import

Settings are read from config/zenbill.toml (or ZENBILL_CONFIG / --config).
""",
    )
    parser.add_argument("--config", default=None, help="Path to settings TOML (default: config/zenbill.toml)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    totals_parser = subparsers.add_parser("totals", help="Compute invoice totals")
    totals_parser.add_argument("invoice", help="Invoice JSON file")
    totals_parser.add_argument("--json", action="store_true", help="Print totals as JSON")

    schedule_parser = subparsers.add_parser("schedule", help="List upcoming billing dates")
    schedule_parser.add_argument("start", help="First billing date (YYYY-MM-DD)")
    schedule_parser.add_argument(
        "--type",
        default="monthly",
        help="weekly, monthly, quarterly, yearly or custom (default: monthly)",
    )
    schedule_parser.add_argument("--every", type=int, default=1, help="Custom: every N periods (default: 1)")
    schedule_parser.add_argument(
        "--period", default="months", help="Custom: days, weeks, months or years (default: months)"
    )
    schedule_parser.add_argument(
        "--occurrences", type=_positive_int, default=None, help="Total occurrences (default: unlimited)"
    )
    schedule_parser.add_argument(
        "--max-dates", type=_positive_int, default=None, help="Maximum dates to list (default: from settings)"
    )

    ledger_parser = subparsers.add_parser("ledger", help="Print invoice as a Beancount transaction")
    ledger_parser.add_argument("invoice", help="Invoice JSON file")

    convert_parser = subparsers.add_parser("convert", help="Convert between currencies")
    convert_parser.add_argument("amount", help="Amount to convert")
    convert_parser.add_argument("from_currency", help="Source currency code")
    convert_parser.add_argument("to_currency", help="Target currency code")

    expenses_parser = subparsers.add_parser("expenses", help="Expense CSV helpers")
    expenses_subparsers = expenses_parser.add_subparsers(dest="expenses_command", help="Expense command")
    expenses_subparsers.add_parser("template", help="Print a CSV template")
    check_parser = expenses_subparsers.add_parser("check", help="Validate an expense CSV")
    check_parser.add_argument("csv_file", help="CSV file to validate")
    check_parser.add_argument("--errors-out", default=None, help="Write rejected rows to this CSV file")
    check_parser.add_argument("--encoding", default="utf-8", help="File encoding (default: utf-8)")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    from zenbill.cli import billing, expenses

    handlers = {
        "totals": billing.cmd_totals,
        "schedule": billing.cmd_schedule,
        "ledger": billing.cmd_ledger,
        "convert": billing.cmd_convert,
    }

    if args.command == "expenses":
        if args.expenses_command == "template":
            handler = expenses.cmd_template
        elif args.expenses_command == "check":
            handler = expenses.cmd_check
        else:
            print("Usage: zenbill expenses {template,check} ...")
            return 1
    else:
        handler = handlers[args.command]

    try:
        return handler(args)
    except (FileNotFoundError, ValueError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        _print_error(str(exc))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
