"""
Load PDFs, copy pages and rewrite their boxes with PyMuPDF.

Why this module exists:
- Keeps every fitz call in one place; the planner never touches a document.
- Boxes are read and written as raw PDF arrays through the xref API, so the
  numbers match PDF user space exactly (no MuPDF top-left conversion).

View extraction uses clone-and-reframe: each output page is a fresh copy of
the source page dictionary whose /MediaBox is moved onto the planned view.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import fitz  # PyMuPDF

from .geometry import BOX_NAMES, PageGeometry, Rect
from .planner import PASS_THROUGH, DocumentPlan, SplitConfig, SplitPlan, plan_document
from .utils import GeometryError, ParseError, UserError


PlanCallback = Callable[[PageGeometry, SplitPlan], None]
WorkCallback = Callable[[fitz.Document, List[PageGeometry], DocumentPlan], None]


@dataclass
class UnspreadResult:
    """What happened during one in-memory run."""

    document_plan: DocumentPlan
    pages: List[PageGeometry]
    output_page_count: int = 0
    warnings: List[str] = field(default_factory=list)


def load_document(data: bytes) -> fitz.Document:
    """
    Parse PDF bytes into a normalized working document.

    Pages are copied with insert_pdf so inherited attributes (MediaBox,
    CropBox, Rotate, ...) land on each page dictionary.
    """

    if not data:
        raise ParseError("Input is empty.")
    try:
        source = fitz.open(stream=data, filetype="pdf")
    except RuntimeError as exc:  # fitz.FileDataError subclasses RuntimeError
        raise ParseError(f"Input is not a valid PDF: {exc}") from exc

    with source:
        if not source.is_pdf:
            raise ParseError("Input is not a PDF document.")
        if source.needs_pass:
            raise ParseError("Input PDF is encrypted; decrypt it first.")
        if source.page_count <= 0:
            raise ParseError("Input PDF has no pages.")
        work = fitz.open()
        try:
            work.insert_pdf(source)
        except RuntimeError as exc:
            work.close()
            raise ParseError(f"Failed to read pages: {exc}") from exc
    return work


def _resolve_value(doc: fitz.Document, kind: str, value: str) -> Tuple[str, str]:
    """Follow an indirect reference like "12 0 R" one level."""

    if kind != "xref":
        return kind, value
    target = int(value.split()[0])
    return "array", doc.xref_object(target, compressed=True)


def read_box(doc: fitz.Document, xref: int, name: str) -> Optional[Rect]:
    """Read a box straight from the page dictionary; None when absent."""

    kind, value = _resolve_value(doc, *doc.xref_get_key(xref, name))
    if kind == "null":
        return None
    if kind != "array":
        raise GeometryError(f"/{name} on object {xref} is not an array: {value}")
    return Rect.from_pdf_array(value)


def read_page_geometry(doc: fitz.Document) -> List[PageGeometry]:
    """Collect geometry for every page of a working document."""

    pages: List[PageGeometry] = []
    for page in doc:
        media = read_box(doc, page.xref, "MediaBox")
        if media is None:
            mb = page.mediabox
            media = Rect(mb.x0, mb.y0, mb.width, mb.height)
        boxes = {name: read_box(doc, page.xref, name) for name in BOX_NAMES}
        pages.append(
            PageGeometry(
                index=page.number,
                media_box=media,
                rotation=page.rotation,
                crop_box=boxes["CropBox"],
                bleed_box=boxes["BleedBox"],
                trim_box=boxes["TrimBox"],
                art_box=boxes["ArtBox"],
            )
        )
    return pages


def set_view_rect(doc: fitz.Document, xref: int, page: PageGeometry, view: Rect) -> Rect:
    """
    Point a copied page at one view of the source sheet.

    The view is relative to the source media box origin. Boxes that matched
    the old media box follow it; boxes that differed (a deliberate crop, say)
    keep their values.
    """

    target = view.offset(page.media_box.x, page.media_box.y)
    doc.xref_set_key(xref, "MediaBox", target.to_pdf_array())
    for name in BOX_NAMES:
        current = page.box(name)
        if current is not None and current == page.media_box:
            doc.xref_set_key(xref, name, target.to_pdf_array())
    return target


def extract_view(
    out_doc: fitz.Document,
    work_doc: fitz.Document,
    page: PageGeometry,
    view: Optional[Rect],
) -> int:
    """
    Append one output page showing `view` of a source page.

    With view=None the page is copied as-is. Returns the new page number.
    """

    # final=True drops the graft map, so every copy gets its own objects.
    out_doc.insert_pdf(work_doc, from_page=page.index, to_page=page.index, final=True)
    number = out_doc.page_count - 1
    if view is not None:
        set_view_rect(out_doc, out_doc[number].xref, page, view)
    return number


def assemble(
    work_doc: fitz.Document,
    pages: Sequence[PageGeometry],
    document_plan: DocumentPlan,
    on_plan: Optional[PlanCallback] = None,
) -> fitz.Document:
    """Build the output document in source order, halves kept together."""

    out_doc = fitz.open()
    try:
        for page, plan in zip(pages, document_plan.plans):
            if on_plan is not None:
                on_plan(page, plan)
            if plan.kind == PASS_THROUGH:
                extract_view(out_doc, work_doc, page, None)
                continue
            for view in plan.views:
                extract_view(out_doc, work_doc, page, view)
    except Exception:
        out_doc.close()
        raise
    return out_doc


def plan_bytes(data: bytes, config: SplitConfig) -> Tuple[List[PageGeometry], DocumentPlan]:
    """Load and plan without building an output document (used by dry-runs)."""

    with load_document(data) as work:
        pages = read_page_geometry(work)
    return pages, plan_document(pages, config)


def unspread_bytes(
    data: bytes,
    config: SplitConfig,
    on_plan: Optional[PlanCallback] = None,
    before_assemble: Optional[WorkCallback] = None,
) -> Tuple[bytes, UnspreadResult]:
    """
    Full in-memory transform: PDF bytes in, PDF bytes out.

    Nothing is serialized until every page has been planned and extracted.
    """

    work = load_document(data)
    try:
        pages = read_page_geometry(work)
        document_plan = plan_document(pages, config)
        result = UnspreadResult(document_plan=document_plan, pages=pages)
        if document_plan.rotation_flipped and len({page.rotation for page in pages}) > 1:
            result.warnings.append(
                "Pages have mixed rotations; the split axis was flipped for the whole document."
            )

        if before_assemble is not None:
            before_assemble(work, pages, document_plan)
        out_doc = assemble(work, pages, document_plan, on_plan)
        with out_doc:
            result.output_page_count = out_doc.page_count
            try:
                output = out_doc.tobytes(garbage=3, deflate=True)
            except RuntimeError as exc:
                raise UserError(f"Failed to serialize output PDF: {exc}") from exc
    finally:
        work.close()
    return output, result


def page_summaries(pages: Sequence[PageGeometry], document_plan: DocumentPlan) -> List[Dict[str, object]]:
    """JSON-friendly per-page plan records for manifests and dry-runs."""

    records: List[Dict[str, object]] = []
    for page, plan in zip(pages, document_plan.plans):
        records.append(
            {
                "page": page.index + 1,
                "width": page.width,
                "height": page.height,
                "rotation": page.rotation,
                "plan": plan.kind,
                "reason": plan.reason,
                "views": [view.as_dict() for view in plan.views],
            }
        )
    return records
