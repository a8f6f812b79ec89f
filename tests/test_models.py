import pytest
from pydantic import ValidationError

from invoicer.models import CompanyInfo, Invoice


def test_derived_totals_are_read_only_and_not_serialized(make_item, make_invoice):
    invoice = make_invoice(items=[make_item(quantity=2, unit_price=100, discount_percent=10)], tax_percent=20)

    assert invoice.subtotal == pytest.approx(200)
    assert invoice.total_discount == pytest.approx(20)
    assert invoice.tax_base == pytest.approx(180)
    assert invoice.tax_amount == pytest.approx(36)
    assert invoice.total == pytest.approx(216)

    dumped = invoice.model_dump()
    for derived in ("subtotal", "total_discount", "tax_base", "tax_amount", "total"):
        assert derived not in dumped
    with pytest.raises((AttributeError, ValueError)):
        invoice.total = 1


def test_totals_follow_item_changes(make_item, make_invoice):
    invoice = make_invoice(items=[make_item(quantity=1, unit_price=10)])
    assert invoice.total == pytest.approx(10)
    invoice.items.append(make_item(quantity=2, unit_price=5))
    assert invoice.total == pytest.approx(20)


def test_line_item_amounts(make_item):
    item = make_item(quantity=3, unit_price=10, discount_percent=50)
    assert item.extended_price == pytest.approx(30)
    assert item.amount == pytest.approx(15)


def test_currency_is_normalized_and_checked(make_invoice):
    assert make_invoice(currency="eur").currency == "EUR"
    with pytest.raises(ValidationError):
        make_invoice(currency="XYZ")


def test_unknown_stored_keys_are_ignored():
    invoice = Invoice.model_validate({
        "id": "a",
        "invoice_number": "INV-0001",
        "items": [],
        "created_at": "2025-01-01T00:00:00Z",
        "updated_at": "2025-01-01T00:00:00Z",
        "total": 999,
    })
    assert invoice.total == 0


def test_company_info_defaults_to_blank_profile():
    assert CompanyInfo().name == ""
