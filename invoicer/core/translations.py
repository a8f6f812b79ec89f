# invoicer/core/translations.py

"""Label tables for the printable invoice and receipt."""

from typing import Dict

from pydantic import BaseModel, ConfigDict

from invoicer.core.errors import UnsupportedLanguageError

SUPPORTED_LANGUAGES = ("en", "fr")


class InvoiceTranslations(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    invoice: str
    issued: str
    from_: str
    bill_to: str
    description: str
    qty: str
    unit_price: str
    amount: str
    no_items: str
    untitled: str
    subtotal: str
    discount: str
    tax: str
    total: str
    notes: str
    authorized_signature: str
    no_client_selected: str
    thank_you_business: str
    # Receipt labels
    receipt: str
    received_from: str
    paid_date: str
    amount_paid: str
    thank_you: str
    paid_in_full: str
    # strftime pattern for issue/paid dates
    date_format: str
    page_of_template: str

    def page_of(self, current: int, total: int) -> str:
        """The only parametrized label: '1 of 1' / '1 sur 1'."""
        return self.page_of_template.format(current=current, total=total)


_TRANSLATIONS: Dict[str, InvoiceTranslations] = {
    "en": InvoiceTranslations(
        code="en",
        invoice="INVOICE",
        issued="Issued",
        from_="FROM",
        bill_to="BILL TO",
        description="Description",
        qty="Qty",
        unit_price="Unit Price",
        amount="Amount",
        no_items="No items added",
        untitled="Untitled",
        subtotal="Subtotal",
        discount="Discount",
        tax="Tax",
        total="Total",
        notes="Notes",
        authorized_signature="Authorized Signature",
        no_client_selected="No client selected",
        thank_you_business="Thank you for your business!",
        receipt="RECEIPT",
        received_from="RECEIVED FROM",
        paid_date="Paid",
        amount_paid="Amount Paid",
        thank_you="Thank you for your payment!",
        paid_in_full="PAID IN FULL",
        date_format="%m/%d/%Y",
        page_of_template="{current} of {total}",
    ),
    "fr": InvoiceTranslations(
        code="fr",
        invoice="FACTURE",
        issued="Émise le",
        from_="DE",
        bill_to="FACTURER À",
        description="Description",
        qty="Qté",
        unit_price="Prix Unitaire",
        amount="Montant",
        no_items="Aucun article ajouté",
        untitled="Sans titre",
        subtotal="Sous-total",
        discount="Remise",
        tax="Taxe",
        total="Total",
        notes="Notes",
        authorized_signature="Signature Autorisée",
        no_client_selected="Aucun client sélectionné",
        thank_you_business="Merci pour votre confiance !",
        receipt="REÇU",
        received_from="REÇU DE",
        paid_date="Payé le",
        amount_paid="Montant Payé",
        thank_you="Merci pour votre paiement !",
        paid_in_full="PAYÉ EN TOTALITÉ",
        date_format="%d/%m/%Y",
        page_of_template="{current} sur {total}",
    ),
}

LANGUAGE_OPTIONS = (
    {"code": "en", "label": "English"},
    {"code": "fr", "label": "Français"},
)


def get_translations(language: str) -> InvoiceTranslations:
    """
    Returns the label table for a language code.

    Raises:
        UnsupportedLanguageError: for anything other than the supported codes,
            so a bad setting never renders blank labels.
    """
    code = language.strip().lower() if isinstance(language, str) else language
    try:
        return _TRANSLATIONS[code]
    except (KeyError, TypeError):
        raise UnsupportedLanguageError(language) from None
