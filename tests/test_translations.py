import pytest

from invoicer import config
from invoicer.core.errors import UnsupportedLanguageError
from invoicer.core.translations import LANGUAGE_OPTIONS, SUPPORTED_LANGUAGES, get_translations


def test_english_and_french_labels():
    en = get_translations("en")
    fr = get_translations("fr")

    assert (en.invoice, fr.invoice) == ("INVOICE", "FACTURE")
    assert (en.subtotal, fr.subtotal) == ("Subtotal", "Sous-total")
    assert (en.no_client_selected, fr.no_client_selected) == ("No client selected", "Aucun client sélectionné")
    assert (en.receipt, fr.receipt) == ("RECEIPT", "REÇU")


def test_page_label_is_parametrized():
    assert get_translations("en").page_of(1, 1) == "1 of 1"
    assert get_translations("fr").page_of(2, 3) == "2 sur 3"


@pytest.mark.parametrize("code", SUPPORTED_LANGUAGES)
def test_no_label_is_blank(code):
    t = get_translations(code)
    for name, value in t.model_dump().items():
        assert isinstance(value, str) and value.strip(), name


def test_lookup_tolerates_case_and_whitespace():
    assert get_translations(" FR ").code == "fr"


@pytest.mark.parametrize("code", ["de", "", "english", None, 42])
def test_unsupported_language_fails_predictably(code):
    with pytest.raises(UnsupportedLanguageError):
        get_translations(code)


def test_language_options_cover_supported_codes():
    assert tuple(option["code"] for option in LANGUAGE_OPTIONS) == SUPPORTED_LANGUAGES


def test_tables_are_immutable():
    with pytest.raises(Exception):
        get_translations("en").invoice = "BILL"


def test_configured_default_language_is_supported():
    assert get_translations(config.DEFAULT_LANGUAGE).code == config.DEFAULT_LANGUAGE.strip().lower()
