"""Pure billing calculations.

Nothing in this package performs I/O or keeps state between calls:
- invoice totals, discounts and taxes (line_items, document_tax)
- payment progress and invoice status (payments)
- recurring billing schedules (recurrence)
- currency formatting and conversion (currency)
- expense CSV import/export (expense_csv)
- expense totals, groupings and trends (expense_analytics)

Usage:
    from zenbill.domain import LineItem, DocumentTax, calculate_invoice_total
"""

from zenbill.domain.document_tax import calculate_invoice_total, normalize_document_taxes
from zenbill.domain.expense_analytics import (
    calculate_category_breakdown,
    calculate_expense_summary,
    calculate_monthly_trends,
    compare_periods,
)
from zenbill.domain.invoice import (
    DocumentTax,
    Invoice,
    InvoiceTotals,
    LegacyTaxRate,
    LineItem,
    LineItemTax,
    TaxBreakdownEntry,
    invoice_from_mapping,
)
from zenbill.domain.line_items import (
    calculate_deposit_amount,
    calculate_discount_amount,
    calculate_item_level_taxes,
    calculate_subtotal,
    get_tax_breakdown,
)
from zenbill.domain.numeric import parse_numeric_or_zero, round_money
from zenbill.domain.recurrence import (
    RecurrenceRule,
    calculate_future_billing_dates,
    calculate_next_billing_date,
    format_recurring_schedule,
    get_recurring_frequency_label,
    get_recurring_interval_days,
    is_recurring_active,
)

__all__ = [
    # Models
    "DocumentTax",
    "Invoice",
    "InvoiceTotals",
    "LegacyTaxRate",
    "LineItem",
    "LineItemTax",
    "RecurrenceRule",
    "TaxBreakdownEntry",
    "invoice_from_mapping",
    # Totals
    "calculate_deposit_amount",
    "calculate_discount_amount",
    "calculate_invoice_total",
    "calculate_item_level_taxes",
    "calculate_subtotal",
    "get_tax_breakdown",
    "normalize_document_taxes",
    # Numbers
    "parse_numeric_or_zero",
    "round_money",
    # Schedules
    "calculate_future_billing_dates",
    "calculate_next_billing_date",
    "format_recurring_schedule",
    "get_recurring_frequency_label",
    "get_recurring_interval_days",
    "is_recurring_active",
    # Expense analytics
    "calculate_category_breakdown",
    "calculate_expense_summary",
    "calculate_monthly_trends",
    "compare_periods",
]
