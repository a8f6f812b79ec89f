# invoicer/models.py

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional

from invoicer.config import DEFAULT_CURRENCY
from invoicer.core import calculations

# Currencies offered by the invoice form. Amounts are never converted between them.
CURRENCIES = ("TND", "USD", "EUR", "GBP", "CAD", "CHF", "MAD", "DZD", "AED", "SAR", "JPY", "CNY", "INR")


class LineItem(BaseModel):
    """
    A single billable row on an invoice.

    Ranges are not enforced here: quantities, prices and percentages are clamped
    where they are entered (see invoice_service.normalize_line_item), and the
    calculation engine accepts any finite number.
    """
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Opaque unique token.")
    name: str = Field("", description="Free text description; rendered as 'Untitled' when blank.")
    quantity: int = Field(1, description="Number of units, expected to be at least 1.")
    unit_price: float = Field(0.0, description="Price of one unit before discount.")
    discount_percent: float = Field(0.0, description="Per-item discount between 0 and 100.")
    taxable: bool = Field(False, description="Stored for completeness; tax is applied to the whole invoice.")

    @property
    def extended_price(self) -> float:
        return calculations.line_extended_price(self)

    @property
    def amount(self) -> float:
        return calculations.line_amount(self)


class Invoice(BaseModel):
    """
    Represents a stored invoice.

    Derived amounts are exposed as read-only properties recomputed from the
    items on every access, so they never appear in serialized data and cannot
    drift from the line items.
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    invoice_number: str = Field(..., description="Human readable sequential number, e.g. INV-0001.")
    client_id: Optional[str] = Field(None, description="Weak reference to a Client; may no longer resolve.")
    currency: str = Field(DEFAULT_CURRENCY, description="Three letter code from CURRENCIES.")
    items: List[LineItem] = Field(default_factory=list, description="Ordered line items, display order only.")
    tax_percent: float = Field(0.0, description="Invoice level tax rate between 0 and 100.")
    is_paid: bool = False
    note: str = ""
    created_at: str = Field(..., description="ISO-8601 creation (issue) timestamp.")
    updated_at: str = Field(..., description="ISO-8601 last modification timestamp.")

    @field_validator("currency")
    @classmethod
    def _known_currency(cls, value: str) -> str:
        code = value.strip().upper()
        if code not in CURRENCIES:
            raise ValueError(f"Unsupported currency code: {value!r}")
        return code

    @property
    def subtotal(self) -> float:
        return calculations.invoice_subtotal(self.items)

    @property
    def total_discount(self) -> float:
        return calculations.total_discount(self.items)

    @property
    def tax_base(self) -> float:
        return calculations.tax_base(self.items)

    @property
    def tax_amount(self) -> float:
        return calculations.tax_amount(self.items, self.tax_percent)

    @property
    def total(self) -> float:
        return calculations.invoice_total(self)


class Client(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: str


class CompanyInfo(BaseModel):
    """Sender profile printed in the FROM block. One per store; the last save wins."""
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class SavedItem(BaseModel):
    """Template used to pre-fill new line items. Never referenced by an invoice."""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    default_price: float = 0.0
    created_at: str
