"""
Debug overlays that show where each page will be cut.

Each source sheet is rendered unrotated with its full media box visible, and
the planned views are outlined on top. The images are diagnostics only; they
never influence the split.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import fitz  # PyMuPDF
from PIL import Image, ImageDraw

from .geometry import PageGeometry, Rect
from .planner import PASS_THROUGH, SplitPlan


SPLIT_COLOR = (0, 200, 0)
PASS_COLOR = (128, 128, 128)
TRIM_COLOR = (255, 0, 0)


def _render_sheet(work_doc: fitz.Document, page: PageGeometry, zoom: float) -> Image.Image:
    """Render the whole media box of a page with rotation removed."""

    with fitz.open() as scratch:
        scratch.insert_pdf(work_doc, from_page=page.index, to_page=page.index)
        xref = scratch[0].xref
        scratch.xref_set_key(xref, "Rotate", "0")
        scratch.xref_set_key(xref, "CropBox", page.media_box.to_pdf_array())
        pixmap = scratch[0].get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
        return Image.frombytes("RGB", (pixmap.width, pixmap.height), pixmap.samples)


def _to_pixels(page: PageGeometry, rect: Rect, zoom: float) -> tuple:
    """PDF user space (bottom-left origin) to image pixels (top-left origin)."""

    top = page.media_box.y + page.media_box.height
    x0 = (rect.x - page.media_box.x) * zoom
    x1 = x0 + rect.width * zoom
    y0 = (top - (rect.y + rect.height)) * zoom
    y1 = y0 + rect.height * zoom
    return (x0, y0, max(x0, x1 - 1), max(y0, y1 - 1))


def draw_plan_overlay(
    sheet: Image.Image,
    page: PageGeometry,
    plan: SplitPlan,
    zoom: float,
) -> Image.Image:
    """Outline the planned views (and the trim box, if any) on a rendered sheet."""

    debug_image = sheet.convert("RGB")
    draw = ImageDraw.Draw(debug_image)

    if page.trim_box is not None and page.trim_box != page.media_box:
        draw.rectangle(_to_pixels(page, page.trim_box, zoom), outline=TRIM_COLOR, width=1)

    color = PASS_COLOR if plan.kind == PASS_THROUGH else SPLIT_COLOR
    for position, view in enumerate(plan.views, start=1):
        absolute = view.offset(page.media_box.x, page.media_box.y)
        box = _to_pixels(page, absolute, zoom)
        draw.rectangle(box, outline=color, width=3)
        draw.text((box[0] + 6, box[1] + 6), str(position), fill=color)

    return debug_image


def debug_image_name(page: PageGeometry, digits: int = 4) -> str:
    return f"p{page.index + 1:0{digits}d}.png"


def write_debug_overlays(
    work_doc: fitz.Document,
    pages: Sequence[PageGeometry],
    plans: Sequence[SplitPlan],
    debug_dir: Path,
    dpi: int,
) -> list:
    """Write one overlay PNG per source page and return their paths."""

    # DPI -> PDF "zoom" factor. PDFs are 72 DPI by default.
    zoom = dpi / 72.0
    digits = max(4, len(str(len(pages))))
    written = []
    for page, plan in zip(pages, plans):
        sheet = _render_sheet(work_doc, page, zoom)
        overlay = draw_plan_overlay(sheet, page, plan, zoom)
        path = debug_dir / debug_image_name(page, digits)
        overlay.save(path)
        written.append(path)
    return written

