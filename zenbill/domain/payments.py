"""Payment progress and invoice status helpers."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from zenbill.domain.invoice import NumericInput
from zenbill.domain.numeric import HUNDRED, ZERO, parse_numeric_or_zero
from zenbill.domain.recurrence import parse_optional_date

STATUS_DRAFT = "draft"
STATUS_SENT = "sent"
STATUS_VIEWED = "viewed"
STATUS_PAID = "paid"
STATUS_PARTIALLY_PAID = "partially_paid"
STATUS_OVERDUE = "overdue"


def calculate_balance_due(total: NumericInput, paid_amount: NumericInput = 0) -> Decimal:
    return max(ZERO, parse_numeric_or_zero(total) - parse_numeric_or_zero(paid_amount))


def calculate_payment_percentage(paid_amount: NumericInput, total: NumericInput) -> Decimal:
    """Share of the total already paid, capped at 100."""
    paid = parse_numeric_or_zero(paid_amount)
    tot = parse_numeric_or_zero(total)
    if tot == 0:
        return ZERO
    return min(HUNDRED, paid / tot * HUNDRED)


def _to_day(value: dt.date) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    return value


def determine_invoice_status(
    total: NumericInput,
    paid_amount: NumericInput = 0,
    due_date: dt.date | dt.datetime | str | None = None,
    current_status: str = STATUS_DRAFT,
    today: dt.date | None = None,
) -> str:
    """Derive the status an invoice should show from its payments and due date.

    Only invoices that were sent or viewed can become overdue; drafts keep
    their status whatever the due date.
    A due date that cannot be parsed never makes an invoice overdue.
    """
    tot = parse_numeric_or_zero(total)
    paid = parse_numeric_or_zero(paid_amount)

    if paid >= tot and tot > 0:
        return STATUS_PAID

    if 0 < paid < tot:
        return STATUS_PARTIALLY_PAID

    due = parse_optional_date(due_date)
    if current_status in (STATUS_SENT, STATUS_VIEWED) and due is not None:
        if _to_day(today or dt.date.today()) > _to_day(due):
            return STATUS_OVERDUE

    return current_status
