"""
Decide how each source page becomes output pages.

Why this module exists:
- Keeps the split rules (centered covers, mixed-size skips, trim-box
  singletons, two-way splits) in one pure function that is easy to test.
- The PDF side (extract.py) only ever sees finished rectangles.

Rules are checked in order and the first match wins:
1. centered first/last page
2. smallest page of a mixed-size document -> passed through
3. trim box already covers less than half the sheet (opt-in)
4. two-way split at the midpoint
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import List, Sequence, Tuple

from .geometry import (
    PageGeometry,
    Rect,
    SizeVariation,
    effective_vertical,
    is_singleton,
)
from .utils import GeometryError


PASS_THROUGH = "pass_through"
CENTERED_SINGLE = "centered_single"
TWO_WAY = "two_way"


@dataclass(frozen=True)
class SplitConfig:
    """Per-run options, passed explicitly to every planning call."""

    vertical: bool = False
    centered_top: bool = False
    centered_last: bool = False
    opposite: bool = False
    trim_box: bool = False


@dataclass(frozen=True)
class SplitPlan:
    """What to emit for one source page; views are in emission order."""

    kind: str
    views: Tuple[Rect, ...]
    reason: str = ""

    @property
    def output_count(self) -> int:
        return len(self.views)


@dataclass(frozen=True)
class DocumentPlan:
    """Plans for a whole document plus the document-wide decisions behind them."""

    vertical: bool
    rotation_flipped: bool
    variation: SizeVariation
    plans: Tuple[SplitPlan, ...]

    @property
    def output_count(self) -> int:
        return sum(plan.output_count for plan in self.plans)


def _axis_rect(vertical: bool, offset: int, size: int, other: float) -> Rect:
    """Build a view rect from split-axis offset/size and the full other extent."""

    if size <= 0 or other <= 0:
        raise GeometryError("Planned view would have zero size.")
    if vertical:
        return Rect(0, offset, other, size)
    return Rect(offset, 0, size, other)


def centered_single_view(page: PageGeometry, vertical: bool) -> Rect:
    """Middle half of the split axis: offset floor(E/4), size floor(E/2)."""

    extent = page.extent(vertical)
    quadrant = math.floor(extent / 4)
    half = math.floor(extent / 2)
    return _axis_rect(vertical, quadrant, half, page.other_extent(vertical))


def two_way_offsets(extent: float, vertical: bool, opposite: bool) -> List[int]:
    """
    Emission order of the two half offsets.

    Offsets count from the bottom in PDF space, so a vertical split starts
    at the upper half. Rotation only matters through the effective axis.
    """

    half = math.floor(extent / 2)
    offsets = [0, half]
    if vertical:
        offsets.reverse()
    if opposite:
        offsets.reverse()
    return offsets


def plan_page(
    page: PageGeometry,
    index: int,
    last_index: int,
    variation: SizeVariation,
    config: SplitConfig,
    vertical: bool,
) -> SplitPlan:
    """
    Plan a single page.

    `vertical` is the effective axis after orientation normalization, which
    may differ from config.vertical.
    """

    page.validate()
    extent = page.extent(vertical)
    other = page.other_extent(vertical)

    if (index == 0 and config.centered_top) or (index == last_index and config.centered_last):
        reason = "first page centered" if index == 0 and config.centered_top else "last page centered"
        return SplitPlan(CENTERED_SINGLE, (centered_single_view(page, vertical),), reason)

    if variation.is_minimal(page, vertical):
        return SplitPlan(
            PASS_THROUGH,
            (Rect(0, 0, page.width, page.height),),
            "page is minimal size",
        )

    if config.trim_box and is_singleton(page, vertical):
        return SplitPlan(
            CENTERED_SINGLE,
            (centered_single_view(page, vertical),),
            "trim box covers less than half the sheet",
        )

    half = math.floor(extent / 2)
    views = tuple(
        _axis_rect(vertical, offset, half, other)
        for offset in two_way_offsets(extent, vertical, config.opposite)
    )
    return SplitPlan(TWO_WAY, views, "split at midpoint")


def plan_document(pages: Sequence[PageGeometry], config: SplitConfig) -> DocumentPlan:
    """Run orientation, size analysis and per-page planning for a page list."""

    if not pages:
        raise GeometryError("Document has no pages to plan.")
    for page in pages:
        page.validate()

    vertical, flipped = effective_vertical(pages, config.vertical)
    variation = SizeVariation.analyze(pages, vertical)
    last_index = len(pages) - 1
    plans = tuple(
        plan_page(page, index, last_index, variation, config, vertical)
        for index, page in enumerate(pages)
    )
    return DocumentPlan(
        vertical=vertical,
        rotation_flipped=flipped,
        variation=variation,
        plans=plans,
    )
