from __future__ import annotations

import datetime as dt
from decimal import Decimal

from zenbill.domain.payments import (
    calculate_balance_due,
    calculate_payment_percentage,
    determine_invoice_status,
)


def test_balance_due_never_negative() -> None:
    assert calculate_balance_due(100, 40) == Decimal("60")
    assert calculate_balance_due("100.50", "150") == 0
    assert calculate_balance_due(None) == 0


def test_payment_percentage() -> None:
    assert calculate_payment_percentage(50, 200) == Decimal("25")
    assert calculate_payment_percentage(300, 200) == Decimal("100")
    assert calculate_payment_percentage(10, 0) == 0


def test_invoice_status_from_payments() -> None:
    assert determine_invoice_status(100, 100, current_status="sent") == "paid"
    assert determine_invoice_status(100, 120) == "paid"
    assert determine_invoice_status(100, 30, current_status="sent") == "partially_paid"
    assert determine_invoice_status(0, 0, current_status="sent") == "sent"


def test_invoice_status_overdue_only_once_sent() -> None:
    today = dt.date(2024, 1, 11)

    assert determine_invoice_status(100, 0, "2024-01-10", "sent", today=today) == "overdue"
    assert determine_invoice_status(100, 0, dt.date(2024, 1, 10), "viewed", today=today) == "overdue"
    assert determine_invoice_status(100, 0, "2024-01-10", "draft", today=today) == "draft"
    assert determine_invoice_status(100, 0, "2024-01-11", "sent", today=today) == "sent"
    assert determine_invoice_status(100, 0, None, "sent", today=today) == "sent"


def test_unparseable_due_date_keeps_current_status() -> None:
    today = dt.date(2024, 1, 11)

    assert determine_invoice_status(100, 0, "garbage", "sent", today=today) == "sent"
    assert determine_invoice_status(100, 0, "", "viewed", today=today) == "viewed"
    assert determine_invoice_status(100, 0, "2024-01-10T09:00:00", "sent", today=today) == "overdue"
