"""
Visible-range math for virtualized lists and grids.

Everything here is pure: same inputs, same window. Bad inputs are clamped
rather than rejected because this runs on every scroll frame.
"""
import math
from dataclasses import dataclass
from typing import Tuple

from datacore.errors import WindowParameterError

DEFAULT_OVERSCAN = 3
DEFAULT_ITEM_SIZE = 1.0
DEFAULT_GRID_GAP = 16.0


@dataclass(frozen=True)
class WindowParams:
    """Scroll geometry for a single-axis list."""
    scroll_offset: float = 0.0
    viewport_size: float = 0.0
    item_size: float = DEFAULT_ITEM_SIZE
    total_items: int = 0
    overscan: int = DEFAULT_OVERSCAN


@dataclass(frozen=True)
class WindowRange:
    """
    Inclusive index range to render.

    ``render_offset`` is where the first rendered item starts;
    ``total_content_size`` sizes the scroll spacer so the native scrollbar
    keeps its proportions.
    """
    start_index: int
    end_index: int
    render_offset: float
    total_content_size: float

    @property
    def count(self) -> int:
        return max(0, self.end_index - self.start_index + 1)

    @property
    def is_empty(self) -> bool:
        return self.end_index < self.start_index

    def indices(self) -> range:
        return range(self.start_index, self.end_index + 1)

    def to_dict(self) -> dict:
        return {
            "startIndex": self.start_index,
            "endIndex": self.end_index,
            "renderOffset": self.render_offset,
            "totalContentSize": self.total_content_size,
        }


def _finite(value: float) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value)


def _sanitize(
    scroll_offset: float,
    viewport_size: float,
    item_size: float,
    total_items: int,
    overscan: int,
) -> Tuple[float, float, float, int, int]:
    if not _finite(scroll_offset) or scroll_offset < 0:
        scroll_offset = 0.0
    if not _finite(viewport_size) or viewport_size < 0:
        viewport_size = 0.0
    if not _finite(item_size) or item_size <= 0:
        item_size = DEFAULT_ITEM_SIZE
    total_items = int(total_items) if _finite(total_items) and total_items > 0 else 0
    overscan = int(overscan) if _finite(overscan) and overscan > 0 else 0
    return scroll_offset, viewport_size, item_size, total_items, overscan


def normalize_params(params: WindowParams, strict: bool = False) -> WindowParams:
    """
    Clamp invalid window inputs to safe values.

    Args:
        params: Raw inputs
        strict: Raise instead of clamping

    Raises:
        WindowParameterError: Only when ``strict`` is set and an input is invalid
    """
    if strict:
        problems = []
        if not _finite(params.scroll_offset) or params.scroll_offset < 0:
            problems.append(f"scroll_offset={params.scroll_offset}")
        if not _finite(params.viewport_size) or params.viewport_size <= 0:
            problems.append(f"viewport_size={params.viewport_size}")
        if not _finite(params.item_size) or params.item_size <= 0:
            problems.append(f"item_size={params.item_size}")
        if not _finite(params.total_items) or params.total_items < 0:
            problems.append(f"total_items={params.total_items}")
        if not _finite(params.overscan) or params.overscan < 0:
            problems.append(f"overscan={params.overscan}")
        if problems:
            raise WindowParameterError(f"Invalid window parameters: {', '.join(problems)}")

    return WindowParams(*_sanitize(
        params.scroll_offset,
        params.viewport_size,
        params.item_size,
        params.total_items,
        params.overscan,
    ))


def compute_window(
    scroll_offset: float,
    viewport_size: float,
    item_size: float,
    total_items: int,
    overscan: int = DEFAULT_OVERSCAN,
) -> WindowRange:
    """
    Visible index range for the given scroll geometry.

        start = max(0, floor(scroll / item) - overscan)
        end   = min(total - 1, ceil((scroll + viewport) / item) + overscan)
    """
    scroll_offset, viewport_size, item_size, total_items, overscan = _sanitize(
        scroll_offset, viewport_size, item_size, total_items, overscan
    )
    total_content_size = total_items * item_size

    if total_items == 0:
        return WindowRange(0, -1, 0.0, 0.0)

    start_index, end_index = _range(scroll_offset, viewport_size, item_size, total_items, overscan)

    if start_index > end_index:
        # Scrolled past the content (e.g. the list shrank): pin to the bottom
        max_offset = max(0.0, total_content_size - viewport_size)
        start_index, end_index = _range(max_offset, viewport_size, item_size, total_items, overscan)
        start_index = min(start_index, end_index)

    return WindowRange(
        start_index=start_index,
        end_index=end_index,
        render_offset=start_index * item_size,
        total_content_size=total_content_size,
    )


def _range(
    scroll_offset: float,
    viewport_size: float,
    item_size: float,
    total_items: int,
    overscan: int,
) -> Tuple[int, int]:
    start_index = max(0, math.floor(scroll_offset / item_size) - overscan)
    end_index = min(
        total_items - 1,
        math.ceil((scroll_offset + viewport_size) / item_size) + overscan,
    )
    return start_index, end_index


def calculate_window(params: WindowParams) -> WindowRange:
    """Visible index range for ``params``; never raises."""
    return compute_window(
        params.scroll_offset,
        params.viewport_size,
        params.item_size,
        params.total_items,
        params.overscan,
    )


# ===== GRID =====

@dataclass(frozen=True)
class GridParams:
    """Scroll geometry for a grid laid out as rows of ``columns`` cells."""
    scroll_offset: float = 0.0
    viewport_size: float = 0.0
    item_height: float = DEFAULT_ITEM_SIZE
    item_count: int = 0
    columns: int = 1
    gap: float = DEFAULT_GRID_GAP
    overscan: int = DEFAULT_OVERSCAN


def grid_geometry(item_height: float, gap: float, item_count: int, columns: int) -> Tuple[float, int]:
    """
    Returns:
        (row_height, total_rows) where row_height = item_height + gap
    """
    if not _finite(item_height) or item_height <= 0:
        item_height = DEFAULT_ITEM_SIZE
    if not _finite(gap) or gap < 0:
        gap = 0.0
    columns = int(columns) if _finite(columns) and columns >= 1 else 1
    item_count = int(item_count) if _finite(item_count) and item_count > 0 else 0
    return item_height + gap, math.ceil(item_count / columns)


def calculate_grid_window(params: GridParams) -> WindowRange:
    """Visible row range for a grid; indices are row indices, not item indices."""
    row_height, total_rows = grid_geometry(
        params.item_height, params.gap, params.item_count, params.columns
    )
    return compute_window(
        params.scroll_offset,
        params.viewport_size,
        row_height,
        total_rows,
        params.overscan,
    )
