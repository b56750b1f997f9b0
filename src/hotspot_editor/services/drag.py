"""Pointer-driven hotspot repositioning."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from hotspot_editor.domain.errors import HotspotBusyError, StateInvariantError
from hotspot_editor.domain.geometry import Bounds, Point, round_position
from hotspot_editor.services.hotspots import HotspotStore

CLICK_GRACE_SECONDS = 0.1

BoundsProvider = Callable[[], Bounds]


@dataclass
class _DragState:
    hotspot_id: int
    pointer_start: Point
    origin: Point
    measure_bounds: BoundsProvider
    preview: Point


@dataclass
class DragController:
    """Turns begin/move/end pointer calls into hotspot moves.

    Moves only produce a preview position; the store is written once, on drop.
    The click that the browser emits after a drop is suppressed for a short
    grace period so it never places a new hotspot.
    """

    store: HotspotStore
    grace_seconds: float = CLICK_GRACE_SECONDS
    clock: Callable[[], float] = time.monotonic
    _drag: _DragState | None = None
    _suppress_until: float = field(default=0.0)

    @property
    def is_dragging(self) -> bool:
        return self._drag is not None

    @property
    def dragged_hotspot_id(self) -> int | None:
        return self._drag.hotspot_id if self._drag else None

    @property
    def preview_position(self) -> Point | None:
        return self._drag.preview if self._drag else None

    def suppresses_click(self) -> bool:
        """Return whether a click should be ignored as the tail of a drag."""
        return self.is_dragging or self.clock() < self._suppress_until

    def begin_drag(
        self, hotspot_id: int, pointer_start: Point, measure_bounds: BoundsProvider
    ) -> None:
        hotspot = self.store.get(hotspot_id)
        if hotspot is None:
            raise StateInvariantError(f"Cannot drag unknown hotspot {hotspot_id}")
        if self.store.is_busy(hotspot_id):
            raise HotspotBusyError(hotspot_id)
        origin = Point(hotspot.x, hotspot.y)
        self._drag = _DragState(
            hotspot_id=hotspot_id,
            pointer_start=pointer_start,
            origin=origin,
            measure_bounds=measure_bounds,
            preview=origin,
        )

    def on_move(self, pointer: Point) -> Point:
        """Return the preview position for the current pointer."""
        drag = self._require_drag()
        drag.preview = self._position_for(drag, pointer)
        return drag.preview

    def end_drag(self, pointer: Point) -> Point:
        """Commit the final position and start the click grace period."""
        drag = self._require_drag()
        final = self._position_for(drag, pointer)
        self._drag = None
        self._suppress_until = self.clock() + self.grace_seconds
        # The hotspot may have been removed mid-drag; nothing to commit then.
        if self.store.get(drag.hotspot_id) is not None:
            self.store.move(drag.hotspot_id, final.x, final.y)
        return final

    def cancel(self) -> None:
        """Abort the drag without moving the hotspot."""
        if self._drag is not None:
            self._drag = None
            self._suppress_until = self.clock() + self.grace_seconds

    def _require_drag(self) -> _DragState:
        if self._drag is None:
            raise StateInvariantError("No drag in progress")
        return self._drag

    @staticmethod
    def _position_for(drag: _DragState, pointer: Point) -> Point:
        # The container can resize mid-drag, so measure on every event.
        bounds = drag.measure_bounds()
        if bounds.width <= 0 or bounds.height <= 0:
            return drag.preview
        delta_x = (pointer.x - drag.pointer_start.x) / bounds.width * 100
        delta_y = (pointer.y - drag.pointer_start.y) / bounds.height * 100
        return Point(
            x=round_position(drag.origin.x + delta_x),
            y=round_position(drag.origin.y + delta_y),
        )
