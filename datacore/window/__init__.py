"""
Virtual windowing for large lists and grids.
"""
from .calculator import (
    DEFAULT_GRID_GAP,
    DEFAULT_OVERSCAN,
    GridParams,
    WindowParams,
    WindowRange,
    calculate_grid_window,
    calculate_window,
    compute_window,
    grid_geometry,
    normalize_params,
)
from .controller import (
    ManualScrollContainer,
    ScrollContainer,
    VirtualGridController,
    VirtualWindowController,
    WindowAttachment,
    WindowStream,
)

__all__ = [
    # Calculator
    "DEFAULT_GRID_GAP",
    "DEFAULT_OVERSCAN",
    "GridParams",
    "WindowParams",
    "WindowRange",
    "calculate_grid_window",
    "calculate_window",
    "compute_window",
    "grid_geometry",
    "normalize_params",
    # Controllers
    "ManualScrollContainer",
    "ScrollContainer",
    "VirtualGridController",
    "VirtualWindowController",
    "WindowAttachment",
    "WindowStream",
]
