from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest

from zenbill.domain.invoice import DocumentTax, Invoice, LineItem, LineItemTax
from zenbill.ledger.export import LedgerAccounts, format_invoice_entry, invoice_to_transaction, tax_account_name


def _invoice(**overrides) -> Invoice:
    fields = {
        "line_items": (LineItem(quantity=1, price=100, taxes=(LineItemTax("VAT", 20, 20),)),),
        "taxes": (DocumentTax("GST", 5),),
        "currency": "CAD",
        "number": "INV-7",
        "client": "Acme Corp",
        "issue_date": dt.date(2024, 3, 1),
    }
    fields.update(overrides)
    return Invoice(**fields)


@pytest.mark.parametrize(
    ("tax_name", "expected"),
    [
        ("VAT", "Liabilities:Tax:VAT"),
        ("sales tax", "Liabilities:Tax:SalesTax"),
        ("GST/HST", "Liabilities:Tax:GSTHST"),
        ("", "Liabilities:Tax:Tax"),
        ("  ", "Liabilities:Tax:Tax"),
    ],
)
def test_tax_account_name(tax_name, expected) -> None:
    assert tax_account_name("Liabilities:Tax", tax_name) == expected


def test_invoice_to_transaction_balances() -> None:
    txn = invoice_to_transaction(_invoice())

    postings = [(posting.account, posting.units.number, posting.units.currency) for posting in txn.postings]
    assert postings == [
        ("Assets:AccountsReceivable", Decimal("125.00"), "CAD"),
        ("Income:Sales", Decimal("-100.00"), "CAD"),
        ("Liabilities:Tax:VAT", Decimal("-20.00"), "CAD"),
        ("Liabilities:Tax:GST", Decimal("-5.00"), "CAD"),
    ]
    assert sum(posting.units.number for posting in txn.postings) == 0
    assert txn.date == dt.date(2024, 3, 1)
    assert txn.payee == "Acme Corp"
    assert txn.narration == "Invoice INV-7"
    assert txn.meta["invoice"] == "INV-7"


def test_invoice_to_transaction_custom_accounts_and_currency() -> None:
    accounts = LedgerAccounts.from_mapping({"income": "Income:Consulting"})
    txn = invoice_to_transaction(_invoice(taxes=None, currency=""), accounts=accounts, currency="usd")

    assert accounts.receivable == "Assets:AccountsReceivable"
    assert [posting.account for posting in txn.postings] == [
        "Assets:AccountsReceivable",
        "Income:Consulting",
        "Liabilities:Tax:VAT",
    ]
    assert {posting.units.currency for posting in txn.postings} == {"USD"}


def test_zero_taxes_get_no_posting() -> None:
    invoice = _invoice(line_items=(LineItem(quantity=2, price=25),), taxes=(DocumentTax("GST", 0),))
    txn = invoice_to_transaction(invoice)
    assert [posting.account for posting in txn.postings] == ["Assets:AccountsReceivable", "Income:Sales"]


def test_format_invoice_entry() -> None:
    text = format_invoice_entry(invoice_to_transaction(_invoice()))

    assert text.startswith('2024-03-01 * "Acme Corp" "Invoice INV-7"')
    assert "Assets:AccountsReceivable" in text
    assert "125.00 CAD" in text
    assert "Liabilities:Tax:GST" in text
