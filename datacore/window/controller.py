"""
Stateful virtual-window controllers.

A controller keeps the latest scroll offset and viewport size, recomputes the
visible range on every scroll or resize notification (constant work per
event) and republishes it only when it actually changed.
"""
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from .calculator import DEFAULT_GRID_GAP, DEFAULT_OVERSCAN, WindowRange, compute_window, grid_geometry

logger = logging.getLogger("window.controller")

Listener = Callable[[WindowRange], None]
Unsubscribe = Callable[[], None]


class ScrollContainer(ABC):
    """
    Handle on a scrollable container.

    Implementations adapt whatever the host UI provides (scroll events and a
    box-size observer) to these four members.
    """

    @property
    @abstractmethod
    def scroll_offset(self) -> float:
        pass

    @property
    @abstractmethod
    def viewport_size(self) -> float:
        pass

    @abstractmethod
    def on_scroll(self, callback: Callable[[float], None]) -> Unsubscribe:
        """Call ``callback(offset)`` on every scroll; returns an unsubscribe function."""
        pass

    @abstractmethod
    def on_resize(self, callback: Callable[[float], None]) -> Unsubscribe:
        """Call ``callback(viewport_size)`` on every resize; returns an unsubscribe function."""
        pass


class ManualScrollContainer(ScrollContainer):
    """In-memory container driven by explicit calls, for tests and headless use."""

    def __init__(self, scroll_offset: float = 0.0, viewport_size: float = 0.0):
        self._scroll_offset = scroll_offset
        self._viewport_size = viewport_size
        self._scroll_listeners: List[Callable[[float], None]] = []
        self._resize_listeners: List[Callable[[float], None]] = []

    @property
    def scroll_offset(self) -> float:
        return self._scroll_offset

    @property
    def viewport_size(self) -> float:
        return self._viewport_size

    @property
    def listener_count(self) -> int:
        return len(self._scroll_listeners) + len(self._resize_listeners)

    def on_scroll(self, callback: Callable[[float], None]) -> Unsubscribe:
        return _subscribe(self._scroll_listeners, callback)

    def on_resize(self, callback: Callable[[float], None]) -> Unsubscribe:
        return _subscribe(self._resize_listeners, callback)

    def scroll_to(self, offset: float) -> None:
        self._scroll_offset = offset
        for callback in list(self._scroll_listeners):
            callback(offset)

    def resize(self, viewport_size: float) -> None:
        self._viewport_size = viewport_size
        for callback in list(self._resize_listeners):
            callback(viewport_size)


def _subscribe(listeners: list, callback) -> Unsubscribe:
    listeners.append(callback)

    def unsubscribe() -> None:
        if callback in listeners:
            listeners.remove(callback)

    return unsubscribe


class WindowStream:
    """Latest window plus change notifications."""

    def __init__(self, initial: WindowRange):
        self._current = initial
        self._listeners: List[Listener] = []

    @property
    def current(self) -> WindowRange:
        return self._current

    def subscribe(self, listener: Listener, emit_current: bool = True) -> Unsubscribe:
        """
        Register ``listener`` for window changes.

        Args:
            listener: Called with each new WindowRange
            emit_current: Also call it immediately with the current window
        """
        unsubscribe = _subscribe(self._listeners, listener)
        if emit_current:
            listener(self._current)
        return unsubscribe

    def publish(self, window: WindowRange) -> bool:
        """Store and broadcast ``window``; returns False if nothing changed."""
        if window == self._current:
            return False
        self._current = window
        for listener in list(self._listeners):
            listener(window)
        return True


class WindowAttachment:
    """Result of ``attach``: the window stream and a way to stop listening."""

    def __init__(self, window: WindowStream, unsubscribers: List[Unsubscribe]):
        self.window = window
        self._unsubscribers = unsubscribers

    @property
    def attached(self) -> bool:
        return bool(self._unsubscribers)

    def detach(self) -> None:
        """Unsubscribe from the container; safe to call more than once."""
        unsubscribers, self._unsubscribers = self._unsubscribers, []
        for unsubscribe in unsubscribers:
            unsubscribe()


class VirtualWindowController:
    """
    Tracks scroll/viewport state for one virtualized list.

    Usage:
        controller = VirtualWindowController(item_size=50, total_items=1000)
        attachment = controller.attach(container)
        attachment.window.subscribe(render)
        ...
        attachment.detach()
    """

    def __init__(
        self,
        item_size: float,
        total_items: int = 0,
        overscan: int = DEFAULT_OVERSCAN,
        scroll_offset: float = 0.0,
        viewport_size: float = 0.0,
    ):
        self._item_size = item_size
        self._total_items = total_items
        self._overscan = overscan
        self._scroll_offset = scroll_offset
        self._viewport_size = viewport_size
        self._stream = WindowStream(self._compute())
        self._attachment: Optional[WindowAttachment] = None

    @property
    def scroll_offset(self) -> float:
        return self._scroll_offset

    @property
    def viewport_size(self) -> float:
        return self._viewport_size

    @property
    def item_size(self) -> float:
        return self._item_size

    @property
    def total_items(self) -> int:
        return self._total_items

    @property
    def overscan(self) -> int:
        return self._overscan

    @property
    def window(self) -> WindowRange:
        return self._stream.current

    @property
    def stream(self) -> WindowStream:
        return self._stream

    def on_scroll(self, scroll_offset: float) -> WindowRange:
        self._scroll_offset = scroll_offset
        return self._refresh()

    def on_resize(self, viewport_size: float) -> WindowRange:
        self._viewport_size = viewport_size
        return self._refresh()

    def set_total_items(self, total_items: int) -> WindowRange:
        self._total_items = total_items
        return self._refresh()

    def attach(self, container: ScrollContainer) -> WindowAttachment:
        """
        Follow ``container``'s scroll and resize events.

        A controller follows one container at a time; attaching again detaches
        the previous container first.
        """
        if self._attachment is not None:
            self._attachment.detach()

        self._scroll_offset = container.scroll_offset
        self._viewport_size = container.viewport_size
        self._refresh()

        self._attachment = WindowAttachment(
            self._stream,
            [
                container.on_scroll(self.on_scroll),
                container.on_resize(self.on_resize),
            ],
        )
        logger.debug(f"Attached to container (viewport={self._viewport_size})")
        return self._attachment

    def detach(self) -> None:
        if self._attachment is not None:
            self._attachment.detach()
            self._attachment = None

    def _compute(self) -> WindowRange:
        return compute_window(
            self._scroll_offset,
            self._viewport_size,
            self._item_size,
            self._total_items,
            self._overscan,
        )

    def _refresh(self) -> WindowRange:
        self._stream.publish(self._compute())
        return self._stream.current


class VirtualGridController(VirtualWindowController):
    """
    Window controller for a grid, working in synthetic rows.

    Each row is ``item_height + gap`` tall and holds ``columns`` items; the
    published window indexes rows. Turning a row into its cells is left to
    the renderer.
    """

    def __init__(
        self,
        item_height: float,
        columns: int,
        item_count: int = 0,
        gap: float = DEFAULT_GRID_GAP,
        overscan: int = DEFAULT_OVERSCAN,
        scroll_offset: float = 0.0,
        viewport_size: float = 0.0,
    ):
        self._item_height = item_height
        self._gap = gap
        self._columns = max(1, int(columns))
        self._item_count = item_count
        row_height, total_rows = grid_geometry(item_height, gap, item_count, self._columns)
        super().__init__(
            item_size=row_height,
            total_items=total_rows,
            overscan=overscan,
            scroll_offset=scroll_offset,
            viewport_size=viewport_size,
        )

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def item_count(self) -> int:
        return self._item_count

    @property
    def row_height(self) -> float:
        return self._item_size

    @property
    def total_rows(self) -> int:
        return self._total_items

    def set_item_count(self, item_count: int) -> WindowRange:
        self._item_count = item_count
        _, total_rows = grid_geometry(self._item_height, self._gap, item_count, self._columns)
        return self.set_total_items(total_rows)
