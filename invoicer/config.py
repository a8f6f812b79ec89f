# invoicer/config.py

import logging
import math
import os
from pathlib import Path

from reportlab.lib.pagesizes import A4

# --- General Application Configuration ---
ENVIRONMENT = os.getenv("INVOICER_ENVIRONMENT", "development")

# --- Local Storage ---
# Everything lives in one JSON document, the desktop equivalent of a browser's local store.
DATA_DIR = Path(os.getenv("INVOICER_DATA_DIR", str(Path.home() / ".invoicer")))
STORE_FILE_NAME = "store.json"
EXPORT_DIR = Path(os.getenv("INVOICER_EXPORT_DIR", str(Path.home() / "Documents" / "Invoices")))

# --- Invoice Defaults ---
DEFAULT_LANGUAGE = os.getenv("INVOICER_DEFAULT_LANGUAGE", "en")
DEFAULT_CURRENCY = os.getenv("INVOICER_DEFAULT_CURRENCY", "TND")
DEFAULT_COMPANY_NAME = "Your Company"
INVOICE_NUMBER_PREFIX = "INV-"
RECEIPT_NUMBER_PREFIX = "REC-"
INVOICE_NUMBER_DIGITS = 4

# --- Document Geometry ---
# Off-screen layout is A4 proportioned at 72 dpi; rasterized at RENDER_SCALE for print sharpness.
# Height is rounded down so a minimum-height page never exceeds A4 once scaled to the page width.
RENDER_WIDTH_PX = 595
RENDER_MIN_HEIGHT_PX = math.floor(RENDER_WIDTH_PX * A4[1] / A4[0])
RENDER_SCALE = int(os.getenv("INVOICER_RENDER_SCALE", "2"))
PAGE_PADDING_PX = 48


logging.getLogger(__name__).debug(
    "Configuration loaded: environment=%s data_dir=%s language=%s currency=%s scale=%s",
    ENVIRONMENT, DATA_DIR, DEFAULT_LANGUAGE, DEFAULT_CURRENCY, RENDER_SCALE,
)
