import json

import pytest

from invoicer.core.errors import StorageError
from invoicer.models import CompanyInfo, Invoice, SavedItem
from invoicer.services.storage_service import LocalStorageService


def test_creates_an_empty_store(tmp_path):
    path = tmp_path / "nested" / "store.json"
    storage = LocalStorageService(path)

    assert path.exists()
    assert storage.get_invoices() == []
    assert storage.get_clients() == []
    assert storage.get_saved_items() == []
    assert storage.get_company_info() == CompanyInfo()


def test_invoice_round_trip_keeps_derived_totals_out_of_the_file(storage, make_item, make_invoice):
    invoice = make_invoice(items=[make_item(quantity=2, unit_price=100, discount_percent=10)], tax_percent=20)
    storage.save_invoice(invoice)

    raw = json.loads(storage.path.read_text(encoding="utf-8"))
    assert "total" not in raw["invoices"][0]
    assert "subtotal" not in raw["invoices"][0]

    loaded = storage.get_invoice_by_id(invoice.id)
    assert loaded == invoice
    assert loaded.total == pytest.approx(216)


def test_save_invoice_replaces_by_id(storage, make_invoice):
    storage.save_invoice(make_invoice(note="first"))
    storage.save_invoice(make_invoice(note="second"))

    invoices = storage.get_invoices()
    assert len(invoices) == 1
    assert invoices[0].note == "second"


def test_delete_invoice(storage, make_invoice):
    storage.save_invoice(make_invoice())
    assert storage.delete_invoice("invoice-1") is True
    assert storage.delete_invoice("invoice-1") is False
    assert storage.get_invoice_by_id("invoice-1") is None


def test_toggle_invoice_status_flips_and_stamps(storage, make_invoice):
    storage.save_invoice(make_invoice())

    paid = storage.toggle_invoice_status("invoice-1")
    assert paid.is_paid is True
    assert paid.updated_at != "2025-02-03T08:00:00+00:00"
    assert storage.get_invoice_by_id("invoice-1") == paid

    unpaid = storage.toggle_invoice_status("invoice-1")
    assert unpaid.is_paid is False
    assert storage.toggle_invoice_status("missing") is None


def test_invoice_numbers_never_repeat(storage, make_invoice):
    first = storage.generate_invoice_number()
    second = storage.generate_invoice_number()
    assert (first, second) == ("INV-0001", "INV-0002")

    storage.save_invoice(make_invoice(invoice_number=second))
    storage.delete_invoice("invoice-1")
    assert storage.generate_invoice_number() == "INV-0003"


def test_invoice_numbers_continue_after_imported_invoices(tmp_path):
    path = tmp_path / "store.json"
    path.write_text(json.dumps({
        "invoices": [{
            "id": "x",
            "invoice_number": "INV-0041",
            "created_at": "2025-01-01T00:00:00Z",
            "updated_at": "2025-01-01T00:00:00Z",
        }],
    }), encoding="utf-8")
    assert LocalStorageService(path).generate_invoice_number() == "INV-0042"


def test_generate_id_is_unique(storage):
    ids = {storage.generate_id() for _ in range(200)}
    assert len(ids) == 200


def test_clients_are_weak_references(storage, client, make_invoice):
    storage.save_client(client)
    storage.save_invoice(make_invoice(client_id=client.id))
    assert storage.get_client_by_id(client.id) == client

    assert storage.delete_client(client.id) is True
    assert storage.get_client_by_id(client.id) is None
    assert storage.get_client_by_id(None) is None
    assert storage.get_invoice_by_id("invoice-1").client_id == client.id


def test_company_info_last_save_wins(storage):
    storage.save_company_info(CompanyInfo(name="First"))
    storage.save_company_info(CompanyInfo(name="Second", email="a@b.test"))
    assert storage.get_company_info() == CompanyInfo(name="Second", email="a@b.test")


def test_saved_items(storage):
    item = SavedItem(id="s1", name="Hourly support", default_price=60, created_at="2025-01-01T00:00:00Z")
    storage.save_saved_item(item)
    assert storage.get_saved_items() == [item]
    assert storage.delete_saved_item("s1") is True
    assert storage.get_saved_items() == []


def test_corrupt_store_raises_instead_of_dropping_data(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    storage = LocalStorageService(path)
    with pytest.raises(StorageError):
        storage.get_invoices()
    assert path.read_text(encoding="utf-8") == "{not json"


def test_invalid_records_raise_storage_error(tmp_path):
    path = tmp_path / "store.json"
    path.write_text(json.dumps({"clients": [{"id": "c1"}]}), encoding="utf-8")
    with pytest.raises(StorageError):
        LocalStorageService(path).get_clients()


def test_invalid_company_profile_raises_storage_error(tmp_path):
    path = tmp_path / "store.json"
    path.write_text(json.dumps({"company_info": {"name": ["not", "a", "string"]}}), encoding="utf-8")
    with pytest.raises(StorageError):
        LocalStorageService(path).get_company_info()


def test_toggling_an_invalid_invoice_raises_storage_error(tmp_path):
    path = tmp_path / "store.json"
    path.write_text(json.dumps({"invoices": [{"id": "x", "items": "nope"}]}), encoding="utf-8")
    with pytest.raises(StorageError):
        LocalStorageService(path).toggle_invoice_status("x")
    assert json.loads(path.read_text(encoding="utf-8"))["invoices"] == [{"id": "x", "items": "nope"}]


def test_no_temp_files_are_left_behind(storage, make_invoice):
    storage.save_invoice(make_invoice())
    storage.toggle_invoice_status("invoice-1")
    assert [p.name for p in storage.path.parent.iterdir()] == ["store.json"]


def test_models_reload_from_disk_in_a_new_instance(storage, client):
    storage.save_client(client)
    assert LocalStorageService(storage.path).get_clients() == [client]


def test_invoice_model_matches_stored_json(storage, make_invoice):
    invoice = make_invoice()
    storage.save_invoice(invoice)
    raw = json.loads(storage.path.read_text(encoding="utf-8"))["invoices"][0]
    assert Invoice.model_validate(raw) == invoice
