# invoicer/services/invoice_service.py

import logging
import math
from typing import Optional

from invoicer.config import DEFAULT_CURRENCY
from invoicer.core.errors import InvoiceValidationError
from invoicer.core.time import utc_now_iso
from invoicer.models import Client, CompanyInfo, Invoice, LineItem, SavedItem
from invoicer.services.storage_service import LocalStorageService

logger = logging.getLogger(__name__)


def clamp_percent(value: float) -> float:
    """Clamps a percentage into [0, 100]; non-finite input becomes 0."""
    if not math.isfinite(value):
        return 0.0
    return min(max(float(value), 0.0), 100.0)


def normalize_line_item(item: LineItem) -> LineItem:
    """
    Applies the entry-point ranges to a line item.

    Quantity is an integer of at least 1, the unit price is non-negative and
    the discount lies in [0, 100]. Returns a new item; the input is not modified.
    """
    price = float(item.unit_price) if math.isfinite(item.unit_price) else 0.0
    return item.model_copy(update={
        "name": item.name.strip(),
        "quantity": max(int(item.quantity), 1),
        "unit_price": max(price, 0.0),
        "discount_percent": clamp_percent(item.discount_percent),
    })


def new_line_item(storage: LocalStorageService, name: str = "", unit_price: float = 0.0) -> LineItem:
    return LineItem(id=storage.generate_id(), name=name, quantity=1, unit_price=unit_price)


def line_item_from_saved(storage: LocalStorageService, saved_item: SavedItem) -> LineItem:
    """Pre-fills a fresh line item from a saved template."""
    return new_line_item(storage, name=saved_item.name, unit_price=saved_item.default_price)


def new_invoice(storage: LocalStorageService, client_id: Optional[str] = None, currency: str = DEFAULT_CURRENCY) -> Invoice:
    """
    Creates an unsaved draft with a fresh id and the next invoice number.

    The draft is only persisted by save_invoice, once it passes validation.
    """
    now = utc_now_iso()
    return Invoice(
        id=storage.generate_id(),
        invoice_number=storage.generate_invoice_number(),
        client_id=client_id,
        currency=currency,
        created_at=now,
        updated_at=now,
    )


def validate_invoice_for_save(invoice: Invoice) -> None:
    """
    Raises:
        InvoiceValidationError: when no client is selected or there are no items.
    """
    if not invoice.client_id:
        raise InvoiceValidationError("Please select a client")
    if not invoice.items:
        raise InvoiceValidationError("Please add at least one item")


def save_invoice(storage: LocalStorageService, invoice: Invoice) -> Invoice:
    """
    Validates, normalizes and persists an invoice.

    On a validation error nothing is written, so the stored copy stays as it was.

    Returns:
        Invoice: The normalized invoice as stored.
    """
    validate_invoice_for_save(invoice)
    stored = invoice.model_copy(update={
        "items": [normalize_line_item(item) for item in invoice.items],
        "tax_percent": clamp_percent(invoice.tax_percent),
        "note": invoice.note.strip(),
        "updated_at": utc_now_iso(),
    })
    return storage.save_invoice(stored)


def remember_line_item(storage: LocalStorageService, item: LineItem) -> Optional[SavedItem]:
    """
    Caches a newly added item as a SavedItem for reuse.

    Nothing is saved for a blank name or for a name already cached
    (compared case-insensitively).

    Returns:
        Optional[SavedItem]: The new template, or None when nothing was saved.
    """
    name = item.name.strip()
    if not name:
        return None
    if any(saved.name.lower() == name.lower() for saved in storage.get_saved_items()):
        return None
    saved = SavedItem(
        id=storage.generate_id(),
        name=name,
        default_price=max(item.unit_price, 0.0),
        created_at=utc_now_iso(),
    )
    storage.save_saved_item(saved)
    logger.debug("Cached saved item %r", name)
    return saved


def create_client(
    storage: LocalStorageService,
    name: str,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    address: Optional[str] = None,
) -> Client:
    if not name or not name.strip():
        raise InvoiceValidationError("Client name is required")
    client = Client(
        id=storage.generate_id(),
        name=name.strip(),
        email=email or None,
        phone=phone or None,
        address=address or None,
        created_at=utc_now_iso(),
    )
    return storage.save_client(client)


def save_company_info(storage: LocalStorageService, company_info: CompanyInfo) -> CompanyInfo:
    if not company_info.name.strip():
        raise InvoiceValidationError("Business name is required")
    return storage.save_company_info(company_info.model_copy(update={"name": company_info.name.strip()}))
