import pytest

from invoicer.models import Client, CompanyInfo, Invoice, LineItem
from invoicer.services.storage_service import LocalStorageService


@pytest.fixture
def storage(tmp_path_factory):
    return LocalStorageService(tmp_path_factory.mktemp("data") / "store.json")


@pytest.fixture
def make_item():
    counter = iter(range(1, 10_000))

    def _make(quantity=1, unit_price=0.0, discount_percent=0.0, name="Item"):
        return LineItem(
            id=f"item-{next(counter)}",
            name=name,
            quantity=quantity,
            unit_price=unit_price,
            discount_percent=discount_percent,
        )

    return _make


@pytest.fixture
def make_invoice():
    def _make(items=(), tax_percent=0.0, client_id="client-1", is_paid=False, note="", currency="TND",
              invoice_number="INV-0001"):
        return Invoice(
            id="invoice-1",
            invoice_number=invoice_number,
            client_id=client_id,
            currency=currency,
            items=list(items),
            tax_percent=tax_percent,
            is_paid=is_paid,
            note=note,
            created_at="2025-01-15T10:30:00+00:00",
            updated_at="2025-02-03T08:00:00+00:00",
        )

    return _make


@pytest.fixture
def client():
    return Client(
        id="client-1",
        name="Acme Corporation",
        email="billing@acme.test",
        phone="+216 71 000 000",
        address="12 Rue de Marseille, Tunis",
        created_at="2025-01-01T00:00:00+00:00",
    )


@pytest.fixture
def company():
    return CompanyInfo(name="Studio Nord", email="hello@studionord.test", phone="+216 98 111 222")
