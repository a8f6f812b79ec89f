import pytest

from invoicer.core import calculations
from invoicer.core.calculations import (
    format_money,
    format_percent,
    invoice_subtotal,
    invoice_total,
    line_amount,
    summarize,
    tax_amount,
    total_discount,
)


def test_single_discounted_item_with_tax(make_item, make_invoice):
    items = [make_item(quantity=2, unit_price=100, discount_percent=10)]
    totals = summarize(items, 20)

    assert totals.subtotal == pytest.approx(200)
    assert totals.total_discount == pytest.approx(20)
    assert totals.tax_base == pytest.approx(180)
    assert totals.tax_amount == pytest.approx(36)
    assert totals.total == pytest.approx(216)
    assert invoice_total(make_invoice(items=items, tax_percent=20)) == pytest.approx(216)


def test_mixed_discounts_without_tax(make_item):
    items = [
        make_item(quantity=1, unit_price=50, discount_percent=0),
        make_item(quantity=3, unit_price=10, discount_percent=50),
    ]
    totals = summarize(items, 0)

    assert totals.subtotal == pytest.approx(80)
    assert totals.total_discount == pytest.approx(15)
    assert totals.tax_amount == 0
    assert totals.total == pytest.approx(65)


def test_empty_items_are_all_zero(make_invoice):
    totals = summarize([], 19)
    assert totals == (0, 0, 0, 0, 0)
    assert invoice_total(make_invoice(items=[], tax_percent=19)) == 0


@pytest.mark.parametrize("tax_percent", [0, 7, 19, 20.5, 100])
@pytest.mark.parametrize("rows", [
    [(1, 9.99, 0)],
    [(3, 12.5, 15), (2, 0.1, 33.3)],
    [(10, 1234.56, 100), (1, 0.01, 0), (7, 3.3, 12.5)],
])
def test_total_equals_subtotal_minus_discount_plus_tax(make_item, make_invoice, rows, tax_percent):
    items = [make_item(quantity=q, unit_price=p, discount_percent=d) for q, p, d in rows]
    invoice = make_invoice(items=items, tax_percent=tax_percent)

    expected = invoice_subtotal(items) - total_discount(items) + tax_amount(items, tax_percent)
    assert invoice_total(invoice) == pytest.approx(expected)
    assert invoice_total(invoice) == pytest.approx(sum(line_amount(i) for i in items) * (1 + tax_percent / 100))


def test_no_discount_means_zero_total_discount(make_item):
    items = [make_item(quantity=4, unit_price=25), make_item(quantity=1, unit_price=3.75)]
    assert total_discount(items) == 0


def test_zero_tax_rate_means_zero_tax(make_item):
    items = [make_item(quantity=5, unit_price=99.9, discount_percent=5)]
    assert tax_amount(items, 0) == 0


def test_recomputing_is_bit_identical(make_item, make_invoice):
    invoice = make_invoice(
        items=[make_item(quantity=3, unit_price=0.1, discount_percent=33.3), make_item(quantity=7, unit_price=1.15)],
        tax_percent=13.7,
    )
    first = summarize(invoice.items, invoice.tax_percent)
    second = summarize(invoice.items, invoice.tax_percent)
    assert first == second
    assert invoice.total == invoice.total


def test_results_are_not_rounded(make_item):
    items = [make_item(quantity=1, unit_price=10, discount_percent=33.333)]
    assert line_amount(items[0]) != round(line_amount(items[0]), 2)


def test_out_of_range_input_does_not_raise(make_item):
    items = [
        make_item(quantity=-2, unit_price=-5, discount_percent=150),
        make_item(quantity=0, unit_price=1e12, discount_percent=-20),
    ]
    totals = summarize(items, -10)
    assert totals.total == pytest.approx(totals.subtotal - totals.total_discount + totals.tax_amount)


def test_accepts_generators(make_item):
    items = [make_item(quantity=2, unit_price=10, discount_percent=50)]
    assert calculations.tax_base(item for item in items) == pytest.approx(10)


def test_presentation_formatting():
    assert format_money(1234.5, "EUR") == "EUR 1234.50"
    assert format_money(0, "TND") == "TND 0.00"
    assert format_percent(20.0) == "20"
    assert format_percent(5.5) == "5.5"
