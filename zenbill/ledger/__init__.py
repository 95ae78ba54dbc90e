"""Beancount export for computed invoices."""

from zenbill.ledger.export import LedgerAccounts, format_invoice_entry, invoice_to_transaction, tax_account_name

__all__ = [
    "LedgerAccounts",
    "format_invoice_entry",
    "invoice_to_transaction",
    "tax_account_name",
]
