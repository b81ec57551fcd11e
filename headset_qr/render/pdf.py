from __future__ import annotations

import io
import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from reportlab.lib.pagesizes import A4, letter
from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from ..errors import EmptyInputError, ExportFailure
from ..models.identity import ExportItem
from .qr import DEFAULT_BORDER, DEFAULT_ERROR_CORRECTION, DEFAULT_SIZE_PX, render_qr_png

"""QR sheet document builder (reportlab).

Lays items out row-major in a cols x rows grid per page. Each cell has a
solid border, a dashed inset border and crop marks, a header block
(organization, username, group code, teacher/period) and the QR image
centered below it. All geometry is in inches measured from the top-left
corner of the page.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_ORGANIZATION",
    "PAGE_SIZES",
    "LayoutConfig",
    "QrOptions",
    "QrPdfDocument",
    "DirectoryPresenter",
    "build_qr_pdf",
    "slugify",
]

DEFAULT_ORGANIZATION = "Starborn Academy"
PAGE_SIZES = {"letter": letter, "a4": A4}
YIELD_EVERY_ITEMS = 3

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"


@dataclass(frozen=True)
class LayoutConfig:
    """Page/grid geometry in inches."""
    cols: int = 3
    rows: int = 4
    page: str = "letter"
    margin: float = 0.2
    gap: float = 0.1
    pad: float = 0.08  # cell inner padding
    dash_inset: float = 0.07
    crop_len: float = 0.10
    header_top_pad: float = 0.12
    header_block_h: float = 0.98
    line_width: float = 0.01

    @property
    def per_page(self) -> int:
        return self.cols * self.rows

    @property
    def page_size_inches(self) -> tuple[float, float]:
        width, height = PAGE_SIZES[self.page.lower()]
        return width / inch, height / inch


@dataclass(frozen=True)
class QrOptions:
    error_correction: str = DEFAULT_ERROR_CORRECTION
    size_px: int = DEFAULT_SIZE_PX
    border: int = DEFAULT_BORDER


class QrPdfDocument:
    """Built PDF handle."""

    def __init__(self, data: bytes, title: str, page_count: int) -> None:
        self._data = data
        self.title = title
        self.page_count = page_count

    def output(self) -> bytes:
        return self._data

    def save(self, path: Path | str) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self._data)
        return target


@dataclass
class DirectoryPresenter:
    """Presents built parts by writing them into ``directory``.

    Single part: ``{base_name}.pdf``; multiple parts: ``{base_name}-part-01.pdf`` ...
    """
    directory: Path
    base_name: str
    written: list[Path] = field(default_factory=list)

    def path_for(self, part: int, total_parts: int) -> Path:
        if total_parts > 1:
            return self.directory / f"{self.base_name}-part-{part:02d}.pdf"
        return self.directory / f"{self.base_name}.pdf"

    def __call__(self, document: QrPdfDocument, part: int, total_parts: int) -> Path:
        target = self.path_for(part, total_parts)
        try:
            path = document.save(target)
        except OSError as e:
            raise ExportFailure(f"cannot write {target}: {e}") from e
        self.written.append(path)
        logger.info(f"wrote {path} ({document.page_count} page(s))")
        return path


def slugify(text: str) -> str:
    """File-name friendly form of a title."""
    slug = re.sub(r"[^A-Za-z0-9]+", "_", text).strip("_").lower()
    return slug or "qr_codes"


class _Sheet:
    """Thin top-left/inch coordinate wrapper around a reportlab canvas."""

    def __init__(self, c: canvas.Canvas, page_h: float) -> None:
        self.c = c
        self.page_h = page_h

    def _y(self, y: float) -> float:
        return (self.page_h - y) * inch

    def line(self, x1: float, y1: float, x2: float, y2: float) -> None:
        self.c.line(x1 * inch, self._y(y1), x2 * inch, self._y(y2))

    def rect(self, x: float, y: float, w: float, h: float) -> None:
        self.c.rect(x * inch, self._y(y + h), w * inch, h * inch, stroke=1, fill=0)

    def text(self, text: str, x: float, y: float, font: str, size: float, center: bool = False) -> None:
        self.c.setFont(font, size)
        if center:
            self.c.drawCentredString(x * inch, self._y(y), text)
        else:
            self.c.drawString(x * inch, self._y(y), text)

    def image(self, png: bytes, x: float, y: float, size: float) -> None:
        self.c.drawImage(ImageReader(io.BytesIO(png)), x * inch, self._y(y + size), size * inch, size * inch)

    @staticmethod
    def width(text: str, font: str, size: float) -> float:
        return stringWidth(text, font, size) / inch


def _draw_crop_marks(sheet: _Sheet, x: float, y: float, w: float, h: float, length: float) -> None:
    # top-left
    sheet.line(x, y, x + length, y)
    sheet.line(x, y, x, y + length)
    # top-right
    sheet.line(x + w - length, y, x + w, y)
    sheet.line(x + w, y, x + w, y + length)
    # bottom-left
    sheet.line(x, y + h, x + length, y + h)
    sheet.line(x, y + h - length, x, y + h)
    # bottom-right
    sheet.line(x + w - length, y + h, x + w, y + h)
    sheet.line(x + w, y + h - length, x + w, y + h)


def _draw_cell(sheet: _Sheet, x: float, y: float, w: float, h: float, layout: LayoutConfig) -> None:
    c = sheet.c
    c.setDash()
    sheet.rect(x, y, w, h)

    inset = layout.dash_inset
    c.setDash(0.06 * inch, 0.06 * inch)
    sheet.rect(x + inset, y + inset, w - 2 * inset, h - 2 * inset)

    c.setDash()
    _draw_crop_marks(sheet, x, y, w, h, layout.crop_len)


def _draw_label_value(sheet: _Sheet, center_x: float, y: float, label: str, value: str, size: float) -> None:
    """Draw "Label: value" centered, with the value underlined."""
    w_label = sheet.width(label, FONT_BOLD, size)
    w_value = sheet.width(value, FONT, size)
    start_x = center_x - (w_label + w_value) / 2

    sheet.text(label, start_x, y, FONT_BOLD, size)
    value_x = start_x + w_label
    sheet.text(value, value_x, y, FONT, size)
    if value:
        sheet.c.setLineWidth(0.01 * inch)
        sheet.line(value_x, y + 0.03, value_x + w_value, y + 0.03)


def _draw_header(sheet: _Sheet, x: float, y: float, w: float, item: ExportItem, organization: str) -> None:
    center_x = x + w / 2
    y0 = y + 0.06

    sheet.text(organization, center_x, y0, FONT, 9, center=True)
    _draw_label_value(sheet, center_x, y0 + 0.28, "Username: ", item.username, 16)
    _draw_label_value(sheet, center_x, y0 + 0.56, "Group Code: ", item.group_code, 16)

    parts = []
    if item.teacher:
        parts.append(f"Teacher: {item.teacher}")
    if item.period:
        parts.append(f"Period: {item.period}")
    if parts:
        sheet.text("   •   ".join(parts), center_x, y0 + 0.74, FONT, 10, center=True)


def build_qr_pdf(
    items: Sequence[ExportItem],
    title: str,
    layout: LayoutConfig | None = None,
    qr_options: QrOptions | None = None,
    organization: str = DEFAULT_ORGANIZATION,
    yield_control: Callable[[], None] | None = None,
) -> QrPdfDocument:
    """Render ``items`` into a grid-laid-out PDF.

    Raises:
        EmptyInputError: no items
        ExportFailure: QR rendering or PDF drawing failed
    """
    if not items:
        raise EmptyInputError("No items to export.")
    layout = layout or LayoutConfig()
    qr_options = qr_options or QrOptions()

    page_w, page_h = layout.page_size_inches
    cell_w = (page_w - 2 * layout.margin - layout.gap * (layout.cols - 1)) / layout.cols
    cell_h = (page_h - 2 * layout.margin - layout.gap * (layout.rows - 1)) / layout.rows

    per_page = layout.per_page
    pages = [items[i:i + per_page] for i in range(0, len(items), per_page)]

    buffer = io.BytesIO()
    try:
        c = canvas.Canvas(buffer, pagesize=(page_w * inch, page_h * inch), pageCompression=1)
        c.setTitle(title)
        sheet = _Sheet(c, page_h)

        for p, page_items in enumerate(pages):
            if p > 0:
                c.showPage()
            sheet.text(f"{title} (Page {p + 1} of {len(pages)})", layout.margin, layout.margin - 0.15, FONT, 11)

            for i, item in enumerate(page_items):
                r, col = divmod(i, layout.cols)
                x = layout.margin + col * (cell_w + layout.gap)
                y = layout.margin + r * (cell_h + layout.gap)

                c.setStrokeColorRGB(0, 0, 0)
                c.setLineWidth(layout.line_width * inch)
                _draw_cell(sheet, x, y, cell_w, cell_h, layout)

                inner_x = x + layout.pad
                inner_y = y + layout.pad
                inner_w = cell_w - 2 * layout.pad
                inner_h = cell_h - 2 * layout.pad

                _draw_header(sheet, inner_x, inner_y + layout.header_top_pad, inner_w, item, organization)

                qr_top = inner_y + layout.header_block_h
                qr_size = min(inner_w, inner_y + inner_h - qr_top)
                png = render_qr_png(item.payload, qr_options.error_correction, qr_options.size_px, qr_options.border)
                sheet.image(png, inner_x + (inner_w - qr_size) / 2, qr_top, qr_size)

                if yield_control is not None and i % YIELD_EVERY_ITEMS == 0:
                    yield_control()

        c.save()
    except Exception as e:
        raise ExportFailure(f"failed to build '{title}': {e}") from e

    return QrPdfDocument(buffer.getvalue(), title=title, page_count=len(pages))
