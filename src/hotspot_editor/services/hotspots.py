"""Hotspot storage with placement validation."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from hotspot_editor.domain.errors import HotspotBusyError, HotspotNotFoundError
from hotspot_editor.domain.geometry import (
    Bounds,
    Point,
    distance,
    pointer_to_percent,
    round_position,
)
from hotspot_editor.domain.hotspots import (
    Hotspot,
    PlacementRejection,
    ReferenceImage,
    RejectionKind,
)
from hotspot_editor.services.limits import LimitDecision

logger = logging.getLogger(__name__)

EDGE_MARGIN = 2.0
MIN_HOTSPOT_SPACING = 8.0

Admission = Callable[[], LimitDecision]


@dataclass
class HotspotStore:
    """Owns the hotspots of the current edit phase."""

    edge_margin: float = EDGE_MARGIN
    min_spacing: float = MIN_HOTSPOT_SPACING
    next_id: int = 1
    last_error: str | None = None
    _hotspots: dict[int, Hotspot] = field(default_factory=dict)
    _busy: set[int] = field(default_factory=set)

    def list_hotspots(self) -> list[Hotspot]:
        """Return hotspots in placement order."""
        return list(self._hotspots.values())

    def get(self, hotspot_id: int) -> Hotspot | None:
        return self._hotspots.get(hotspot_id)

    def __len__(self) -> int:
        return len(self._hotspots)

    def valid_hotspots(self) -> list[Hotspot]:
        """Return hotspots whose prompt is ready for processing."""
        return [hotspot for hotspot in self._hotspots.values() if hotspot.has_prompt]

    def check_placement(self, x: float, y: float) -> PlacementRejection | None:
        """Return a rejection if a hotspot may not be placed at (x, y)."""
        high = 100.0 - self.edge_margin
        if x < self.edge_margin or x > high or y < self.edge_margin or y > high:
            return PlacementRejection(
                kind=RejectionKind.EDGE,
                reason="Hotspot too close to image edge. Please place it more centrally.",
            )
        candidate = Point(x, y)
        for existing in self._hotspots.values():
            if distance(candidate, Point(existing.x, existing.y)) < self.min_spacing:
                return PlacementRejection(
                    kind=RejectionKind.PROXIMITY,
                    reason=(
                        "Hotspot too close to existing hotspot. "
                        "Please place it further away."
                    ),
                )
        return None

    def add(
        self, position: Point, bounds: Bounds, admit: Admission | None = None
    ) -> Hotspot | PlacementRejection:
        """Place a hotspot from a viewport pointer position."""
        percent = pointer_to_percent(position, bounds)
        return self.add_at(percent.x, percent.y, admit)

    def add_at(
        self, x: float, y: float, admit: Admission | None = None
    ) -> Hotspot | PlacementRejection:
        """Place a hotspot at percent coordinates."""
        x, y = round_position(x), round_position(y)
        rejection = self.check_placement(x, y)
        if rejection is None and admit is not None:
            decision = admit()
            if not decision.can_add:
                rejection = PlacementRejection(
                    kind=RejectionKind.LIMIT,
                    reason=decision.reason or "Edit point limit reached.",
                    code=decision.code,
                )
        if rejection is not None:
            self.last_error = rejection.reason
            logger.info("Rejected hotspot at (%s, %s): %s", x, y, rejection.kind)
            return rejection

        hotspot = Hotspot(id=self.next_id, x=x, y=y)
        self._hotspots[hotspot.id] = hotspot
        self.next_id = hotspot.id + 1
        self.last_error = None
        return hotspot

    def remove(self, hotspot_id: int) -> bool:
        """Delete a hotspot; removing an unknown id is a no-op."""
        if hotspot_id in self._busy:
            raise HotspotBusyError(hotspot_id)
        if self._hotspots.pop(hotspot_id, None) is None:
            return False
        # Remaining ids keep their values; session bookkeeping refers to them.
        self.next_id = max(self._hotspots, default=0) + 1
        self.last_error = None
        return True

    def update_prompt(self, hotspot_id: int, text: str) -> Hotspot:
        hotspot = self._editable(hotspot_id)
        hotspot.prompt = text
        return hotspot

    def attach_reference(self, hotspot_id: int, reference: ReferenceImage) -> Hotspot:
        """Attach a reference image, replacing any previous one."""
        hotspot = self._require(hotspot_id)
        hotspot.reference_images = [reference]
        return hotspot

    def detach_reference(self, hotspot_id: int) -> Hotspot:
        hotspot = self._editable(hotspot_id)
        hotspot.reference_images = []
        return hotspot

    def move(self, hotspot_id: int, x: float, y: float) -> Hotspot:
        """Write a new position, clamped to the image and rounded."""
        hotspot = self._editable(hotspot_id)
        hotspot.x = round_position(x)
        hotspot.y = round_position(y)
        return hotspot

    def clear(self) -> None:
        """Drop every hotspot and restart numbering."""
        self._hotspots.clear()
        self._busy.clear()
        self.next_id = 1
        self.last_error = None

    def load(self, hotspots: list[Hotspot]) -> None:
        """Replace the store contents, e.g. when resuming saved state."""
        self.clear()
        for hotspot in hotspots:
            self._hotspots[hotspot.id] = hotspot
        self.next_id = max(self._hotspots, default=0) + 1

    def mark_busy(self, hotspot_ids: list[int]) -> None:
        self._busy.update(i for i in hotspot_ids if i in self._hotspots)

    def clear_busy(self, hotspot_ids: list[int]) -> None:
        self._busy.difference_update(hotspot_ids)

    def is_busy(self, hotspot_id: int) -> bool:
        return hotspot_id in self._busy

    def _require(self, hotspot_id: int) -> Hotspot:
        hotspot = self._hotspots.get(hotspot_id)
        if hotspot is None:
            raise HotspotNotFoundError(hotspot_id)
        return hotspot

    def _editable(self, hotspot_id: int) -> Hotspot:
        hotspot = self._require(hotspot_id)
        if hotspot_id in self._busy:
            raise HotspotBusyError(hotspot_id)
        return hotspot
