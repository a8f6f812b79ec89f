# invoicer/services/pdf_service.py

import asyncio
import logging
import os
import re
import tempfile
from io import BytesIO
from pathlib import Path
from typing import NamedTuple, Optional

from PIL import Image
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from invoicer.config import EXPORT_DIR, RENDER_SCALE
from invoicer.core.errors import DocumentGenerationError, RenderTargetUnavailableError
from invoicer.services.raster_service import RenderTarget
from invoicer.services.render_service import DocumentLayout

logger = logging.getLogger(__name__)


class PagePlacement(NamedTuple):
    """Where the captured bitmap lands on the page, in PDF points from the top-left corner."""
    width: float
    height: float
    shrunk: bool


def fit_image_to_page(image_width: int, image_height: int, page_width: float, page_height: float) -> PagePlacement:
    """
    Scales a bitmap to the page width, keeping its aspect ratio.

    A bitmap taller than one page is shrunk uniformly until its height equals
    the page height, so the document always fits on a single page.
    """
    width = page_width
    height = image_height * page_width / image_width
    if height > page_height:
        ratio = page_height / height
        return PagePlacement(width=width * ratio, height=page_height, shrunk=True)
    return PagePlacement(width=width, height=height, shrunk=False)


def compose_pdf(image: Image.Image, title: Optional[str] = None) -> bytes:
    """
    Embeds a captured page image into a single A4 portrait PDF page.

    Args:
        image (Image.Image): The rasterized document.
        title (Optional[str]): Stored in the PDF metadata.

    Returns:
        bytes: The PDF document.
    """
    page_width, page_height = A4
    placement = fit_image_to_page(image.width, image.height, page_width, page_height)
    if placement.shrunk:
        logger.warning("Document is taller than one page; shrinking it to fit a single page.")

    buffer = BytesIO()
    # invariant=True drops timestamps and random ids so equal inputs give equal bytes.
    pdf = canvas.Canvas(buffer, pagesize=A4, invariant=True)
    if title:
        pdf.setTitle(title)
    # PDF origin is bottom-left; anchor the image to the top-left corner of the page.
    pdf.drawImage(ImageReader(image), 0, page_height - placement.height,
                  width=placement.width, height=placement.height)
    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def render_pdf(layout: Optional[DocumentLayout], scale: int = RENDER_SCALE) -> bytes:
    """
    Synchronous render -> capture -> compose.

    Raises:
        RenderTargetUnavailableError: when there is no layout to capture.
        DocumentGenerationError: when rasterization or composition fails.
    """
    try:
        with RenderTarget(layout, scale) as target:
            image = target.capture()
        try:
            return compose_pdf(image, title=layout.document_number)
        finally:
            image.close()
    except RenderTargetUnavailableError:
        raise
    except Exception as e:
        logger.exception("Error generating PDF for %s", getattr(layout, "document_number", "?"))
        raise DocumentGenerationError(f"Failed to generate PDF: {e}") from e


async def generate_pdf_bytes(layout: Optional[DocumentLayout], scale: int = RENDER_SCALE) -> bytes:
    """Runs the pipeline in a worker thread; the layout is an immutable snapshot so nothing is shared."""
    return await asyncio.to_thread(render_pdf, layout, scale)


def pdf_filename(invoice_number: str) -> str:
    """`<invoiceNumber>.pdf`, with path separators and other unsafe characters replaced."""
    safe = re.sub(r"[^\w.\-]+", "_", invoice_number.strip()).strip("._") or "invoice"
    return f"{safe}.pdf"


def write_pdf(data: bytes, target: Path) -> Path:
    """Writes atomically: the target either appears complete or not at all."""
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".invoicer_", suffix=".pdf", dir=str(target.parent))
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, target)
    finally:
        if os.path.exists(tmp):
            os.remove(tmp)
    return target


async def export_pdf(
    layout: Optional[DocumentLayout],
    invoice_number: str,
    directory: Optional[Path] = None,
    scale: int = RENDER_SCALE,
) -> Path:
    """
    Generates the PDF for a layout and saves it as `<invoiceNumber>.pdf`.

    Args:
        layout (Optional[DocumentLayout]): The rendered document.
        invoice_number (str): Used for the file name.
        directory (Optional[Path]): Destination folder, EXPORT_DIR by default.

    Returns:
        Path: The written file.
    """
    data = await generate_pdf_bytes(layout, scale)
    target = Path(directory or EXPORT_DIR) / pdf_filename(invoice_number)
    try:
        await asyncio.to_thread(write_pdf, data, target)
    except OSError as e:
        logger.error("Error writing PDF to %s: %s", target, e)
        raise DocumentGenerationError(f"Failed to write PDF: {e}") from e
    logger.info("Invoice PDF exported to %s", target)
    return target
