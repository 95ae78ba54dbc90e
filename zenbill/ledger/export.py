"""Export computed invoices as Beancount transactions."""

from __future__ import annotations

import datetime as dt
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from beancount.core import amount, data, flags
from beancount.parser import printer

from zenbill.domain.document_tax import calculate_invoice_total
from zenbill.domain.invoice import Invoice, InvoiceTotals, TaxBreakdownEntry
from zenbill.domain.numeric import ZERO
from zenbill.runtime.logging import get_logger

logger = get_logger(__name__)

_COMPONENT_SPLIT_RE = re.compile(r"[^A-Za-z0-9]+")


@dataclass(frozen=True)
class LedgerAccounts:
    """Accounts an invoice is booked against."""

    receivable: str = "Assets:AccountsReceivable"
    income: str = "Income:Sales"
    tax_liability: str = "Liabilities:Tax"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> LedgerAccounts:
        data = data or {}
        defaults = cls()
        return cls(
            receivable=str(data.get("receivable") or defaults.receivable),
            income=str(data.get("income") or defaults.income),
            tax_liability=str(data.get("tax_liability") or defaults.tax_liability),
        )


def tax_account_name(base_account: str, tax_name: str) -> str:
    """Sub-account for one named tax: ("Liabilities:Tax", "sales tax") -> "Liabilities:Tax:SalesTax"."""
    parts = [part for part in _COMPONENT_SPLIT_RE.split(tax_name) if part]
    component = "".join(part[0].upper() + part[1:] for part in parts)
    if not component:
        component = "Tax"
    return f"{base_account}:{component}"


def _posting(account: str, number: Decimal, currency: str) -> data.Posting:
    return data.Posting(account, amount.Amount(number, currency), None, None, None, None)


def _tax_credits(
    entries: Iterable[TaxBreakdownEntry],
    base_account: str,
) -> dict[str, Decimal]:
    credits: dict[str, Decimal] = {}
    for entry in entries:
        if entry.tax_amount == 0:
            continue
        account = tax_account_name(base_account, entry.tax_name)
        credits[account] = credits.get(account, ZERO) + entry.tax_amount
    return credits


def invoice_to_transaction(
    invoice: Invoice,
    totals: InvoiceTotals | None = None,
    accounts: LedgerAccounts | None = None,
    currency: str | None = None,
) -> data.Transaction:
    """Book an invoice: receivable debit against income and tax liability credits.

    Item-level and document taxes with the same name share one liability
    account. The receivable is the negated sum of the credits, so the entry
    always balances.
    """
    if totals is None:
        totals = calculate_invoice_total(
            invoice.line_items,
            invoice.taxes,
            invoice.discount_type,
            invoice.discount_value,
        )
    accounts = accounts or LedgerAccounts()
    currency = (currency or invoice.currency or "USD").upper()

    credits = _tax_credits(
        [*totals.tax_breakdown, *totals.document_tax_breakdown],
        accounts.tax_liability,
    )
    credit_total = totals.subtotal_after_discount + sum(credits.values(), ZERO)
    if credit_total != totals.total:
        logger.debug(
            "Invoice %s: receivable %s differs from rounded total %s",
            invoice.number or "<unnumbered>",
            credit_total,
            totals.total,
        )

    meta = data.new_metadata("zenbill", 0)
    if invoice.number:
        meta["invoice"] = invoice.number

    narration = f"Invoice {invoice.number}" if invoice.number else "Invoice"
    txn = data.Transaction(
        meta=meta,
        date=invoice.issue_date or dt.date.today(),
        flag=flags.FLAG_OKAY,
        payee=invoice.client or None,
        narration=narration,
        tags=frozenset(),
        links=frozenset(),
        postings=[],
    )

    txn.postings.append(_posting(accounts.receivable, credit_total, currency))
    txn.postings.append(_posting(accounts.income, -totals.subtotal_after_discount, currency))
    for account, credit in credits.items():
        txn.postings.append(_posting(account, -credit, currency))
    return txn


def format_invoice_entry(txn: data.Transaction) -> str:
    """Render a transaction as Beancount text."""
    return printer.format_entry(txn)
