# invoicer/services/raster_service.py

"""
Draws a DocumentLayout onto an off-screen bitmap.

Coordinates are CSS pixels of the 595px wide page; everything is multiplied
by the supersampling scale only when it reaches the image, so the geometry
is identical at every scale.
"""

import logging
import math
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

import reportlab
from PIL import Image, ImageDraw, ImageFont
from reportlab.pdfbase.ttfonts import TTFontFile

from invoicer.config import PAGE_PADDING_PX, RENDER_SCALE
from invoicer.core.errors import RenderTargetUnavailableError
from invoicer.services.render_service import DocumentLayout, ItemRow, PartyBlock

logger = logging.getLogger(__name__)

# Bitstream Vera ships inside reportlab and covers the Latin-1 accents French labels need.
FONT_DIR = Path(reportlab.__file__).resolve().parent / "fonts"
FONT_FILES = {
    "regular": "Vera.ttf",
    "bold": "VeraBd.ttf",
    "italic": "VeraIt.ttf",
}
LINE_HEIGHT = 1.2

INK = "#1a1a1a"
MUTED = "#666666"
FAINT = "#888888"
PLACEHOLDER = "#999999"
RULE = "#e5e5e5"
DISCOUNT_RED = "#dc2626"
CHIP_BG = "#dcfce7"
CHIP_FG = "#166534"

COLUMN_FRACTIONS = (0.45, 0.10, 0.20, 0.25)
TOTALS_WIDTH = 280
SIGNATURE_WIDTH = 180
SIGNATURE_SPACE = 40
SIGNATURE_MARGIN = 32


@lru_cache(maxsize=64)
def load_font(style: str, size: int) -> ImageFont.FreeTypeFont:
    return ImageFont.truetype(str(FONT_DIR / FONT_FILES[style]), size)


@lru_cache(maxsize=None)
def covered_codepoints(style: str = "regular") -> frozenset:
    """Codepoints the bundled font has glyphs for."""
    return frozenset(TTFontFile(str(FONT_DIR / FONT_FILES[style])).charToGlyph)


def missing_glyphs(layout: DocumentLayout) -> List[str]:
    """Characters in the layout that would print as empty boxes, in order of appearance."""
    covered = covered_codepoints()
    missing: List[str] = []
    for value in _layout_strings(layout.model_dump()):
        for ch in value:
            if not ch.isspace() and ord(ch) not in covered and ch not in missing:
                missing.append(ch)
    return missing


def _layout_strings(value):
    if isinstance(value, str):
        yield value
    elif isinstance(value, dict):
        for item in value.values():
            yield from _layout_strings(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _layout_strings(item)


class Painter:
    """
    Measures and, when bound to an ImageDraw, draws text and rules.

    With draw=None every call only measures, which is how the page height is
    computed before the bitmap is allocated.
    """
    def __init__(self, draw: Optional[ImageDraw.ImageDraw], scale: int):
        self.draw = draw
        self.scale = scale

    def font(self, size: float, style: str = "regular") -> ImageFont.FreeTypeFont:
        return load_font(style, round(size * self.scale))

    def width(self, text: str, size: float, style: str = "regular") -> float:
        return self.font(size, style).getlength(text) / self.scale

    @staticmethod
    def line_height(size: float) -> float:
        return size * LINE_HEIGHT

    def text(self, x: float, y: float, text: str, size: float, style: str = "regular",
             color: str = INK, align: str = "left", strike: bool = False) -> float:
        """Draws one line with its left, right or center edge at x. Returns the line height."""
        w = self.width(text, size, style)
        if align == "right":
            x -= w
        elif align == "center":
            x -= w / 2
        if self.draw is not None:
            s = self.scale
            self.draw.text((x * s, y * s), text, font=self.font(size, style), fill=color)
            if strike:
                mid = (y + size * 0.6) * s
                self.draw.line([(x * s, mid), ((x + w) * s, mid)], fill=color, width=max(1, s))
        return self.line_height(size)

    def rule(self, x0: float, x1: float, y: float, color: str = RULE) -> None:
        if self.draw is not None:
            s = self.scale
            self.draw.line([(x0 * s, y * s), (x1 * s, y * s)], fill=color, width=max(1, s))

    def chip(self, x: float, y: float, text: str, size: float, fill: str, color: str, align: str = "left",
             pad_x: float = 6, pad_y: float = 2) -> float:
        """Draws a rounded badge. Returns its width."""
        w = self.width(text, size, "bold") + 2 * pad_x
        if align == "right":
            x -= w
        if self.draw is not None:
            s = self.scale
            h = self.line_height(size) + 2 * pad_y
            self.draw.rounded_rectangle([x * s, y * s, (x + w) * s, (y + h) * s], radius=4 * s, fill=fill)
        self.text(x + pad_x, y + pad_y, text, size, "bold", color)
        return w

    def wrap(self, text: str, size: float, max_width: float, style: str = "regular") -> List[str]:
        """Greedy word wrap; explicit newlines are kept and over-long words are split by character."""
        lines: List[str] = []
        for paragraph in text.split("\n"):
            current = ""
            for word in paragraph.split(" "):
                candidate = f"{current} {word}" if current else word
                if self.width(candidate, size, style) <= max_width:
                    current = candidate
                    continue
                if current:
                    lines.append(current)
                current = ""
                for char in word:
                    if current and self.width(current + char, size, style) > max_width:
                        lines.append(current)
                        current = ""
                    current += char
            lines.append(current)
        return lines

    def paragraph(self, x: float, y: float, text: str, size: float, max_width: float,
                  style: str = "regular", color: str = INK) -> float:
        height = 0.0
        for line in self.wrap(text, size, max_width, style):
            height += self.text(x, y + height, line, size, style, color)
        return height


def _paint_header(p: Painter, layout: DocumentLayout, y: float) -> float:
    pad = PAGE_PADDING_PX
    right = layout.width_px - pad
    half = (layout.width_px - 2 * pad) / 2

    left_h = p.paragraph(pad, y, layout.sender_name, 24, half - 12, "bold")

    right_h = p.text(right, y, layout.title, 28, "bold", align="right")
    right_h += 4 + p.text(right, y + right_h + 4, layout.document_number, 14, color=MUTED, align="right")
    right_h += 2 + p.text(right, y + right_h + 2, layout.date_line, 14, color=MUTED, align="right")
    if layout.badge:
        right_h += 8
        p.chip(right, y + right_h, layout.badge, 12, CHIP_BG, CHIP_FG, align="right", pad_x=12, pad_y=4)
        right_h += p.line_height(12) + 8
    return max(left_h, right_h) + 48


def _paint_party(p: Painter, block: PartyBlock, x: float, y: float, width: float) -> float:
    h = p.text(x, y, block.label.upper(), 11, color=FAINT) + 8
    if block.name is None:
        return h + p.paragraph(x, y + h, block.placeholder or "", 14, width, "italic", PLACEHOLDER)
    h += p.paragraph(x, y + h, block.name, 16, width, "bold") + 4
    for detail in block.details:
        h += p.paragraph(x, y + h, detail, 14, width, color=MUTED)
    return h


def _columns(layout: DocumentLayout):
    x = PAGE_PADDING_PX
    edges = []
    for fraction in COLUMN_FRACTIONS:
        w = (layout.width_px - 2 * PAGE_PADDING_PX) * fraction
        edges.append((x, x + w))
        x += w
    return edges


def _paint_row(p: Painter, layout: DocumentLayout, row: ItemRow, y: float) -> float:
    cols = _columns(layout)
    cell = 8
    top = y + 16

    desc_h = p.paragraph(cols[0][0] + cell, top, row.description, 14, cols[0][1] - cols[0][0] - 2 * cell, "bold")
    qty_center = (cols[1][0] + cols[1][1]) / 2
    p.text(qty_center, top, row.quantity, 14, align="center")
    p.text(cols[2][1] - cell, top, row.unit_price, 14, align="right")

    amount_right = cols[3][1] - cell
    if row.has_discount:
        amount_h = p.text(amount_right, top, row.original_amount, 12, color=PLACEHOLDER, align="right", strike=True)
        p.text(amount_right, top + amount_h, row.amount, 14, "bold", align="right")
        chip_right = amount_right - p.width(row.amount, 14, "bold") - 6
        p.chip(chip_right, top + amount_h + 1, row.discount_chip, 10, CHIP_BG, CHIP_FG, align="right")
        amount_h += p.line_height(14)
    else:
        amount_h = p.text(amount_right, top, row.amount, 14, align="right")

    height = max(desc_h, amount_h) + 32
    p.rule(cols[0][0], cols[3][1], y + height)
    return height


def _paint_table(p: Painter, layout: DocumentLayout, y: float) -> float:
    cols = _columns(layout)
    cell = 8
    start = y
    p.rule(cols[0][0], cols[3][1], y)
    header_h = p.line_height(12) + 24
    description, qty, unit_price, amount = layout.column_headers
    p.text(cols[0][0] + cell, y + 12, description, 12, color=MUTED)
    p.text((cols[1][0] + cols[1][1]) / 2, y + 12, qty, 12, color=MUTED, align="center")
    p.text(cols[2][1] - cell, y + 12, unit_price, 12, color=MUTED, align="right")
    p.text(cols[3][1] - cell, y + 12, amount, 12, color=MUTED, align="right")
    y += header_h
    p.rule(cols[0][0], cols[3][1], y)

    if layout.empty_message:
        p.text((cols[0][0] + cols[3][1]) / 2, y + 24, layout.empty_message, 14, color=PLACEHOLDER, align="center")
        y += p.line_height(14) + 48
    for row in layout.rows:
        y += _paint_row(p, layout, row, y)
    return y - start + 24


def _paint_totals(p: Painter, layout: DocumentLayout, y: float) -> float:
    right = layout.width_px - PAGE_PADDING_PX
    left = right - TOTALS_WIDTH
    start = y + 16
    y = start
    for line in layout.totals[:-1]:
        p.text(left, y + 8, line.label, 14, color=MUTED)
        p.text(right, y + 8, line.value, 14, color=DISCOUNT_RED if line.kind == "discount" else INK, align="right")
        y += p.line_height(14) + 16
    if len(layout.totals) > 1:
        y += 8
        p.rule(left, right, y)
    total = layout.total_line
    p.text(left, y + 12, total.label, 14, "bold")
    p.text(right, y + 12, total.value, 16, "bold", align="right")
    y += p.line_height(16) + 24
    return y - start + 16


def _paint_signature(p: Painter, layout: DocumentLayout, y: float) -> float:
    x = PAGE_PADDING_PX
    line_y = y + SIGNATURE_MARGIN + SIGNATURE_SPACE
    p.rule(x, x + SIGNATURE_WIDTH, line_y, color=INK)
    label_h = p.text(x + SIGNATURE_WIDTH / 2, line_y + 8, layout.signature_label, 12, color=MUTED, align="center")
    return SIGNATURE_MARGIN + SIGNATURE_SPACE + 8 + label_h


def paint(p: Painter, layout: DocumentLayout) -> float:
    """
    Paints (or measures) the whole page.

    Returns:
        float: The page height in CSS pixels, never less than layout.min_height_px.
    """
    pad = PAGE_PADDING_PX
    content_w = layout.width_px - 2 * pad
    y = float(pad)

    y += _paint_header(p, layout, y)

    column_w = content_w / 2 - 20
    party_h = max(
        _paint_party(p, layout.sender, pad, y, column_w),
        _paint_party(p, layout.recipient, pad + content_w / 2, y, column_w),
    )
    y += party_h + 48

    y += _paint_table(p, layout, y)
    y += _paint_totals(p, layout, y)

    y += _paint_signature(p, layout, y)

    if layout.note:
        y += 32
        p.rule(pad, pad + content_w, y)
        y += 24
        y += p.text(pad, y, layout.note_label.upper(), 11, color=FAINT) + 8
        y += p.paragraph(pad, y, layout.note, 14, content_w, color=MUTED)

    y += 24
    y += p.text(layout.width_px / 2, y, layout.closing_line, 14, color=MUTED, align="center")

    footer_h = p.line_height(12)
    height = max(float(layout.min_height_px), y + 24 + footer_h + 24)
    p.text(layout.width_px - pad, height - 24 - footer_h, layout.footer, 12, color=PLACEHOLDER, align="right")
    return height


def measure_height(layout: DocumentLayout, scale: int = RENDER_SCALE) -> int:
    """Page height in CSS pixels, rounded up."""
    return math.ceil(paint(Painter(None, scale), layout))


class RenderTarget:
    """
    Scoped off-screen surface for one layout.

    Use as a context manager: the bitmap is allocated on entry and closed on
    exit, exceptions included.

    Raises:
        RenderTargetUnavailableError: when there is no layout to mount, or when
            capture() is called outside the with-block.
    """
    def __init__(self, layout: Optional[DocumentLayout], scale: int = RENDER_SCALE):
        if layout is None:
            raise RenderTargetUnavailableError("Render target unavailable: the document has not been rendered yet.")
        if scale < 1:
            raise ValueError(f"Render scale must be at least 1, got {scale}")
        self.layout = layout
        self.scale = scale
        self.image: Optional[Image.Image] = None

    def __enter__(self) -> "RenderTarget":
        height = measure_height(self.layout, self.scale)
        self.image = Image.new("RGB", (self.layout.width_px * self.scale, height * self.scale), "white")
        logger.debug("Mounted %sx%s render target (scale %s)", self.layout.width_px, height, self.scale)
        return self

    def capture(self) -> Image.Image:
        """Draws the layout and returns a copy of the bitmap that outlives the target."""
        if self.image is None:
            raise RenderTargetUnavailableError("Render target unavailable: it is not mounted.")
        missing = missing_glyphs(self.layout)
        if missing:
            # Vera only covers Latin scripts; other scripts print as missing-glyph boxes.
            logger.warning("%s has %d characters the document font cannot draw: %s",
                           self.layout.document_number, len(missing), "".join(missing[:20]))
        paint(Painter(ImageDraw.Draw(self.image), self.scale), self.layout)
        return self.image.copy()

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.image is not None:
            self.image.close()
            self.image = None


def rasterize(layout: Optional[DocumentLayout], scale: int = RENDER_SCALE) -> Image.Image:
    """Mounts a render target, captures it and tears it down."""
    with RenderTarget(layout, scale) as target:
        return target.capture()
