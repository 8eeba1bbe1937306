"""
Page geometry for spread splitting.

Why this module exists:
- The split decisions only need numbers (box sizes and rotation), so we keep
  them in small immutable values that tests can build without a PDF.
- Orientation and size analysis run once per document and feed the planner.

All rectangles are in PDF user space: origin at the bottom-left of the
unrotated page, y growing upwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .utils import GeometryError, normalize_rotation


BOX_NAMES = ("CropBox", "BleedBox", "TrimBox", "ArtBox")


def _format_number(value: float) -> str:
    """Write numbers the way PDF arrays usually carry them (no trailing .0)."""

    if float(value).is_integer():
        return str(int(value))
    return f"{value:.4f}".rstrip("0").rstrip(".")


@dataclass(frozen=True)
class Rect:
    """An (x, y, width, height) rectangle. Equality is exact."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_pdf_array(cls, text: str) -> "Rect":
        """
        Parse a PDF rectangle array like "[0 0 612 792]".

        PDF allows the corners in any order, so we normalize to
        lower-left + size.
        """

        cleaned = text.strip()
        if cleaned.startswith("[") and cleaned.endswith("]"):
            cleaned = cleaned[1:-1]
        parts = cleaned.split()
        if len(parts) != 4:
            raise GeometryError(f"Expected a 4-number rectangle, got: {text!r}")
        try:
            x0, y0, x1, y1 = (float(part) for part in parts)
        except ValueError as exc:
            raise GeometryError(f"Rectangle has non-numeric values: {text!r}") from exc
        return cls(min(x0, x1), min(y0, y1), abs(x1 - x0), abs(y1 - y0))

    def to_pdf_array(self) -> str:
        values = (self.x, self.y, self.x + self.width, self.y + self.height)
        return "[" + " ".join(_format_number(value) for value in values) + "]"

    def offset(self, dx: float, dy: float) -> "Rect":
        return Rect(self.x + dx, self.y + dy, self.width, self.height)

    def as_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class PageGeometry:
    """
    Read-only geometry of one source page.

    width/height are the intrinsic media box size, before /Rotate is applied.
    Optional boxes are None when the page does not carry them.
    """

    index: int
    media_box: Rect
    rotation: int = 0
    crop_box: Optional[Rect] = None
    bleed_box: Optional[Rect] = None
    trim_box: Optional[Rect] = None
    art_box: Optional[Rect] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "rotation", normalize_rotation(self.rotation))

    @classmethod
    def of_size(cls, index: int, width: float, height: float, rotation: int = 0) -> "PageGeometry":
        """Shortcut for pages that only have a media box at the origin."""

        return cls(index=index, media_box=Rect(0, 0, width, height), rotation=rotation)

    @property
    def width(self) -> float:
        return self.media_box.width

    @property
    def height(self) -> float:
        return self.media_box.height

    def extent(self, vertical: bool) -> float:
        """Size along the split axis: height for vertical, width otherwise."""

        return self.height if vertical else self.width

    def other_extent(self, vertical: bool) -> float:
        return self.width if vertical else self.height

    def box(self, name: str) -> Optional[Rect]:
        """Look up an optional box by its PDF key name (CropBox, TrimBox, ...)."""

        return {
            "CropBox": self.crop_box,
            "BleedBox": self.bleed_box,
            "TrimBox": self.trim_box,
            "ArtBox": self.art_box,
        }[name]

    def validate(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise GeometryError(
                f"Page {self.index + 1} has a degenerate media box "
                f"({self.width} x {self.height})."
            )


def is_axis_flipping(rotation: int) -> bool:
    """Quarter turns swap what "vertical" means on screen; 180 does not."""

    return normalize_rotation(rotation) in {90, 270}


def effective_vertical(pages: Iterable[PageGeometry], vertical: bool) -> Tuple[bool, bool]:
    """
    Resolve the split axis for the whole document.

    Returns (effective_vertical, flipped). One quarter-turned page anywhere
    flips the axis for every page; mixed-rotation documents are not resolved
    per page.
    """

    flipped = any(is_axis_flipping(page.rotation) for page in pages)
    if flipped:
        return (not vertical), True
    return vertical, False


@dataclass(frozen=True)
class SizeVariation:
    """Distinct split-axis extents observed across a document."""

    sizes: Tuple[float, ...]
    min: float
    max: float

    @classmethod
    def analyze(cls, pages: Sequence[PageGeometry], vertical: bool) -> "SizeVariation":
        sizes: List[float] = []
        for page in pages:
            value = page.extent(vertical)
            if value not in sizes:
                sizes.append(value)
        if not sizes:
            raise GeometryError("Cannot analyze page sizes of an empty document.")
        return cls(sizes=tuple(sizes), min=min(sizes), max=max(sizes))

    @property
    def count(self) -> int:
        return len(self.sizes)

    def is_minimal(self, page: PageGeometry, vertical: bool) -> bool:
        """
        True for the smallest pages of a mixed-size document.

        Those are treated as already single (a cover amid spreads). When every
        page has the same size the document is assumed to be all spreads.
        """

        return self.count > 1 and page.extent(vertical) == self.min


def is_singleton(page: PageGeometry, vertical: bool) -> bool:
    """
    Decide from the trim box whether a spread-sized sheet holds one page.

    Singleton iff the trim extent is strictly less than half the media extent
    on the split axis. Pages without a trim box never qualify.
    """

    if page.trim_box is None:
        return False
    trim_extent = page.trim_box.height if vertical else page.trim_box.width
    return trim_extent < page.extent(vertical) / 2
