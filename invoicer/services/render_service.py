# invoicer/services/render_service.py

"""
Projects an invoice into a printable page layout.

The layout is plain data: the raster service draws it, tests inspect it.
Rendering is a pure function of its inputs, so the same invoice, client,
profile and language always produce an equal layout.
"""

import logging
from enum import Enum
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from invoicer.config import (
    DEFAULT_COMPANY_NAME,
    INVOICE_NUMBER_PREFIX,
    RECEIPT_NUMBER_PREFIX,
    RENDER_MIN_HEIGHT_PX,
    RENDER_WIDTH_PX,
)
from invoicer.core.calculations import (
    format_money,
    format_percent,
    line_amount,
    line_extended_price,
    summarize,
)
from invoicer.core.time import parse_iso
from invoicer.core.translations import InvoiceTranslations, get_translations
from invoicer.models import Client, CompanyInfo, Invoice, LineItem

logger = logging.getLogger(__name__)


class DocumentKind(str, Enum):
    INVOICE = "invoice"
    RECEIPT = "receipt"


class PartyBlock(BaseModel):
    """One side of the FROM / BILL TO section. `placeholder` replaces the name when the party is missing."""
    model_config = ConfigDict(frozen=True)

    label: str
    name: Optional[str] = None
    details: Tuple[str, ...] = ()
    placeholder: Optional[str] = None


class ItemRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str
    quantity: str
    unit_price: str
    amount: str
    # Set only for discounted rows: the struck-through pre-discount amount and the "-10%" chip.
    original_amount: Optional[str] = None
    discount_chip: Optional[str] = None

    @property
    def has_discount(self) -> bool:
        return self.discount_chip is not None


class TotalsLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["subtotal", "discount", "tax", "total"]
    label: str
    value: str


class DocumentLayout(BaseModel):
    """A single printable page, sized in CSS pixels at 72 dpi (A4 is 595 x 841)."""
    model_config = ConfigDict(frozen=True)

    kind: DocumentKind
    language: str
    width_px: int = RENDER_WIDTH_PX
    min_height_px: int = RENDER_MIN_HEIGHT_PX
    sender_name: str
    title: str
    document_number: str
    date_line: str
    badge: Optional[str] = None
    sender: PartyBlock
    recipient: PartyBlock
    column_headers: Tuple[str, str, str, str]
    rows: Tuple[ItemRow, ...]
    empty_message: Optional[str] = None
    totals: Tuple[TotalsLine, ...]
    signature_label: str
    note_label: str
    note: Optional[str] = None
    closing_line: str
    footer: str

    @property
    def total_line(self) -> TotalsLine:
        return self.totals[-1]


def document_kind_for(invoice: Invoice) -> DocumentKind:
    """Paid invoices print as receipts, everything else as invoices."""
    return DocumentKind.RECEIPT if invoice.is_paid else DocumentKind.INVOICE


def receipt_number_for(invoice_number: str) -> str:
    if invoice_number.startswith(INVOICE_NUMBER_PREFIX):
        return RECEIPT_NUMBER_PREFIX + invoice_number[len(INVOICE_NUMBER_PREFIX):]
    return invoice_number


def format_date(value: str, t: InvoiceTranslations) -> str:
    try:
        return parse_iso(value).strftime(t.date_format)
    except ValueError:
        logger.warning("Unparseable timestamp %r printed as-is", value)
        return value


def _details(*values: Optional[str]) -> Tuple[str, ...]:
    return tuple(v.strip() for v in values if v and v.strip())


def _sender_block(company_info: Optional[CompanyInfo], t: InvoiceTranslations) -> PartyBlock:
    if company_info is None:
        return PartyBlock(label=t.from_, name=DEFAULT_COMPANY_NAME)
    return PartyBlock(
        label=t.from_,
        name=company_info.name.strip() or DEFAULT_COMPANY_NAME,
        details=_details(company_info.phone, company_info.email, company_info.address),
    )


def _recipient_block(client: Optional[Client], label: str, t: InvoiceTranslations) -> PartyBlock:
    if client is None:
        return PartyBlock(label=label, placeholder=t.no_client_selected)
    return PartyBlock(
        label=label,
        name=client.name,
        details=_details(client.phone, client.email, client.address),
    )


def _item_row(item: LineItem, currency: str, t: InvoiceTranslations) -> ItemRow:
    original = line_extended_price(item)
    row = {
        "description": item.name.strip() or t.untitled,
        "quantity": str(item.quantity),
        "unit_price": format_money(item.unit_price, currency),
    }
    if item.discount_percent > 0:
        return ItemRow(
            **row,
            amount=format_money(line_amount(item), currency),
            original_amount=format_money(original, currency),
            discount_chip=f"-{format_percent(item.discount_percent)}%",
        )
    return ItemRow(**row, amount=format_money(original, currency))


def _totals(invoice: Invoice, total_label: str, t: InvoiceTranslations) -> Tuple[TotalsLine, ...]:
    totals = summarize(invoice.items, invoice.tax_percent)
    currency = invoice.currency
    lines = []
    if totals.subtotal != 0:
        lines.append(TotalsLine(kind="subtotal", label=t.subtotal, value=format_money(totals.subtotal, currency)))
    if totals.total_discount != 0:
        lines.append(TotalsLine(kind="discount", label=t.discount, value="-" + format_money(totals.total_discount, currency)))
    if invoice.tax_percent > 0:
        lines.append(TotalsLine(
            kind="tax",
            label=f"{t.tax} ({format_percent(invoice.tax_percent)}%)",
            value=format_money(totals.tax_amount, currency),
        ))
    lines.append(TotalsLine(kind="total", label=total_label, value=format_money(totals.total, currency)))
    return tuple(lines)


def render_document(
    invoice: Invoice,
    client: Optional[Client],
    company_info: Optional[CompanyInfo],
    language: str,
    kind: Optional[DocumentKind] = None,
) -> DocumentLayout:
    """
    Builds the page layout for an invoice or a payment receipt.

    Args:
        invoice (Invoice): The invoice to print.
        client (Optional[Client]): The resolved client, or None when the
            reference no longer resolves; a placeholder is printed instead.
        company_info (Optional[CompanyInfo]): Sender profile passed in by the session.
        language (str): "en" or "fr".
        kind (Optional[DocumentKind]): Forces invoice or receipt; defaults to document_kind_for(invoice).

    Returns:
        DocumentLayout: The page description.

    Raises:
        UnsupportedLanguageError: for an unknown language code.
    """
    t = get_translations(language)
    kind = DocumentKind(kind) if kind is not None else document_kind_for(invoice)
    sender = _sender_block(company_info, t)

    if kind is DocumentKind.RECEIPT:
        title = t.receipt
        number = receipt_number_for(invoice.invoice_number)
        date_line = f"{t.paid_date} {format_date(invoice.updated_at, t)}"
        badge = t.paid_in_full
        recipient = _recipient_block(client, t.received_from, t)
        total_label = t.amount_paid
        closing = t.thank_you
    else:
        title = t.invoice
        number = invoice.invoice_number
        date_line = f"{t.issued} {format_date(invoice.created_at, t)}"
        badge = None
        recipient = _recipient_block(client, t.bill_to, t)
        total_label = t.total
        closing = t.thank_you_business

    rows = tuple(_item_row(item, invoice.currency, t) for item in invoice.items)
    note = invoice.note.strip() or None

    return DocumentLayout(
        kind=kind,
        language=t.code,
        sender_name=sender.name,
        title=title,
        document_number=number,
        date_line=date_line,
        badge=badge,
        sender=sender,
        recipient=recipient,
        column_headers=(t.description, t.qty, t.unit_price, t.amount),
        rows=rows,
        empty_message=None if rows else t.no_items,
        totals=_totals(invoice, total_label, t),
        signature_label=t.authorized_signature,
        note_label=t.notes,
        note=note,
        closing_line=closing,
        footer=f"{number}  {t.page_of(1, 1)}",
    )
