# invoicer/core/calculations.py

"""
Invoice arithmetic.

Every function is pure and returns full precision floats. Rounding belongs to
presentation (format_money) and is never fed back into a calculation, so
recomputing from the same items always gives the same result.
"""

from typing import Iterable, NamedTuple


class InvoiceTotals(NamedTuple):
    subtotal: float
    total_discount: float
    tax_base: float
    tax_amount: float
    total: float


def line_extended_price(item) -> float:
    """Quantity times unit price, before any discount."""
    return item.quantity * item.unit_price


def line_discount_amount(item) -> float:
    return item.quantity * item.unit_price * (item.discount_percent / 100)


def line_amount(item) -> float:
    """Extended price after the item's own discount."""
    return item.quantity * item.unit_price * (1 - item.discount_percent / 100)


def invoice_subtotal(items: Iterable) -> float:
    return sum((line_extended_price(item) for item in items), 0.0)


def total_discount(items: Iterable) -> float:
    return sum((line_discount_amount(item) for item in items), 0.0)


def tax_base(items: Iterable) -> float:
    # Materialize once so generators can be passed in.
    items = list(items)
    return invoice_subtotal(items) - total_discount(items)


def tax_amount(items: Iterable, tax_percent: float) -> float:
    """Tax on the post-discount base. Item taxable flags are not consulted."""
    return tax_base(items) * tax_percent / 100


def summarize(items: Iterable, tax_percent: float) -> InvoiceTotals:
    items = list(items)
    subtotal = invoice_subtotal(items)
    discount = total_discount(items)
    base = subtotal - discount
    tax = base * tax_percent / 100
    return InvoiceTotals(
        subtotal=subtotal,
        total_discount=discount,
        tax_base=base,
        tax_amount=tax,
        total=subtotal - discount + tax,
    )


def invoice_total(invoice) -> float:
    return summarize(invoice.items, invoice.tax_percent).total


def format_money(amount: float, currency: str) -> str:
    """Presentation rounding: currency code, a space, exactly two decimals."""
    return f"{currency} {amount:.2f}"


def format_percent(value: float) -> str:
    """Renders 20.0 as '20' and 5.5 as '5.5'."""
    return f"{value:g}"
