"""Editor facade that the UI layer drives.

The editor wires pointer input, the session state machine, color sampling and
the external upload/retouch services together. All state changes happen
synchronously inside a call; only uploads, processing and image loading are
awaited. Results of awaited calls are dropped when the editor was reset while
they were in flight.
"""

import logging
from dataclasses import dataclass, field

from hotspot_editor.domain.colors import FALLBACK_COLOR_PROFILE, ColorProfile
from hotspot_editor.domain.errors import (
    HotspotBusyError,
    HotspotNotFoundError,
    ProcessFailedError,
    StateInvariantError,
    UploadFailedError,
)
from hotspot_editor.domain.geometry import Bounds, Point, pointer_to_percent
from hotspot_editor.domain.hotspots import (
    Hotspot,
    PlacementRejection,
    ReferenceImage,
    RejectionKind,
)
from hotspot_editor.domain.images import ImageSource
from hotspot_editor.domain.sessions import HistoryEntry, PersistedEditState
from hotspot_editor.services.colors import ColorRefreshScheduler, ColorSampler
from hotspot_editor.services.drag import BoundsProvider, DragController
from hotspot_editor.services.hotspots import HotspotStore
from hotspot_editor.services.images import ImageLoader
from hotspot_editor.services.limits import remaining_edits, remaining_hotspots
from hotspot_editor.services.retouch import RetouchService
from hotspot_editor.services.sessions import SessionManager
from hotspot_editor.services.uploads import ReferenceUploadService

logger = logging.getLogger(__name__)

ALREADY_PROCESSING = "Edits are already being processed."
PROCESSING = "processing"


@dataclass(frozen=True)
class ServiceFailure:
    """A refused or failed request, with a message for the user."""

    kind: str
    message: str


@dataclass(frozen=True)
class HotspotView:
    """Hotspot plus the styling the UI needs to draw it."""

    hotspot: Hotspot
    colors: ColorProfile
    busy: bool


@dataclass(frozen=True)
class EditorView:
    """Everything the UI renders, derived from editor state."""

    image_url: str | None
    original_image_url: str | None
    hotspots: list[HotspotView]
    can_add: bool
    add_reason: str | None
    can_process: bool
    process_reason: str | None
    edit_count: int
    max_edits: int
    remaining_edits: int
    hotspot_count: int
    max_hotspots: int
    remaining_hotspots: int
    total_hotspots: int
    max_total_hotspots: int
    sessions_used: int
    max_sessions: int
    session_id: str | None
    session_status: str | None
    history: list[HistoryEntry]
    history_index: int
    is_processing: bool
    last_error: str | None


@dataclass
class EditorService:
    """Interactive hotspot editor for a single image."""

    sessions: SessionManager
    sampler: ColorSampler
    scheduler: ColorRefreshScheduler
    drag: DragController
    retouch: RetouchService
    uploads: ReferenceUploadService
    images: ImageLoader
    image: ImageSource | None = None
    is_processing: bool = False
    last_error: str | None = None
    _colors: dict[int, ColorProfile] = field(default_factory=dict)
    _color_versions: dict[int, int] = field(default_factory=dict)

    @property
    def store(self) -> HotspotStore:
        return self.sessions.store

    async def load_image(self, image_url: str) -> None:
        """Start editing a new image."""
        self._drop_pending_work()
        self.sessions.load_image(image_url)
        self.last_error = None
        await self._use_image(image_url)

    def click(self, pointer: Point, bounds: Bounds) -> Hotspot | PlacementRejection | None:
        """Handle a click on the image; returns None when the click is ignored."""
        if self.drag.suppresses_click() or self.is_processing:
            return None
        percent = pointer_to_percent(pointer, bounds)
        return self.add_hotspot(percent.x, percent.y)

    def add_hotspot(self, x: float, y: float) -> Hotspot | PlacementRejection:
        # The running batch clears the store when it lands.
        if self.is_processing:
            return PlacementRejection(
                kind=RejectionKind.LIMIT, reason=ALREADY_PROCESSING, code=PROCESSING
            )
        result = self.sessions.place_hotspot(x, y)
        if isinstance(result, PlacementRejection):
            self.last_error = result.reason
            return result
        self.last_error = None
        self._refresh_colors(result.id)
        return result

    def remove_hotspot(self, hotspot_id: int) -> bool:
        removed = self.sessions.remove_hotspot(hotspot_id)
        if removed:
            self.scheduler.cancel(hotspot_id)
            self._colors.pop(hotspot_id, None)
            self._color_versions[hotspot_id] = self._color_versions.get(hotspot_id, 0) + 1
            self.last_error = None
        return removed

    def update_prompt(self, hotspot_id: int, text: str) -> Hotspot:
        return self.store.update_prompt(hotspot_id, text)

    def detach_reference(self, hotspot_id: int) -> Hotspot:
        return self.store.detach_reference(hotspot_id)

    def move_hotspot(self, hotspot_id: int, x: float, y: float) -> Hotspot:
        hotspot = self.store.move(hotspot_id, x, y)
        self._refresh_colors(hotspot_id)
        return hotspot

    def begin_drag(
        self, hotspot_id: int, pointer: Point, measure_bounds: BoundsProvider
    ) -> None:
        self.drag.begin_drag(hotspot_id, pointer, measure_bounds)

    def drag_to(self, pointer: Point) -> Point:
        return self.drag.on_move(pointer)

    def end_drag(self, pointer: Point) -> Point:
        hotspot_id = self.drag.dragged_hotspot_id
        final = self.drag.end_drag(pointer)
        if hotspot_id is not None and self.store.get(hotspot_id) is not None:
            self._refresh_colors(hotspot_id)
        return final

    async def attach_reference(
        self, hotspot_id: int, filename: str, content: bytes, content_type: str
    ) -> ReferenceImage | ServiceFailure | None:
        """Upload a reference image and attach it to a hotspot.

        Returns None if the editor was reset while the upload was in flight.
        """
        if self.store.get(hotspot_id) is None:
            raise HotspotNotFoundError(hotspot_id)
        if self.store.is_busy(hotspot_id):
            raise HotspotBusyError(hotspot_id)
        generation = self.sessions.generation
        self.store.mark_busy([hotspot_id])
        try:
            reference = await self.uploads.upload(filename, content, content_type)
        except UploadFailedError as exc:
            if self._is_stale(generation):
                return None
            logger.warning("Reference upload failed for hotspot %s: %s", hotspot_id, exc)
            self.last_error = str(exc)
            return ServiceFailure(kind="upload", message=str(exc))
        finally:
            if not self._is_stale(generation):
                self.store.clear_busy([hotspot_id])
        if self._is_stale(generation) or self.store.get(hotspot_id) is None:
            logger.info("Discarding stale upload for hotspot %s", hotspot_id)
            return None
        self.store.attach_reference(hotspot_id, reference)
        self.last_error = None
        return reference

    async def process(self) -> HistoryEntry | ServiceFailure | None:
        """Submit the described hotspots to the retouch service.

        Returns None if the editor was reset while the request was in flight.
        """
        if self.is_processing:
            return ServiceFailure(kind="busy", message=ALREADY_PROCESSING)
        decision = self.sessions.can_process()
        if not decision.can_process:
            self.last_error = decision.reason
            return ServiceFailure(kind="rejected", message=decision.reason or "")
        image_url = self.sessions.current_image_url
        if image_url is None:
            raise StateInvariantError("No image loaded")

        hotspot_ids = [hotspot.id for hotspot in decision.valid_hotspots]
        generation = self.sessions.generation
        self.is_processing = True
        self.store.mark_busy(hotspot_ids)
        try:
            result = await self.retouch.process(image_url, decision.valid_hotspots)
        except ProcessFailedError as exc:
            if self._is_stale(generation):
                return None
            logger.warning("Retouch failed: %s", exc)
            self.last_error = str(exc)
            return ServiceFailure(kind="process", message=str(exc))
        finally:
            if not self._is_stale(generation):
                self.is_processing = False
                self.store.clear_busy(hotspot_ids)
        if self._is_stale(generation):
            logger.info("Discarding stale retouch result")
            return None

        entry = self.sessions.complete(result.image_url)
        self._drop_pending_work()
        self.last_error = None
        await self._use_image(result.image_url)
        return entry

    async def revert_to_history(self, index: int) -> bool:
        """Go back to an earlier processed image, or -1 for the original."""
        if self.is_processing:
            self.last_error = ALREADY_PROCESSING
            return False
        if not self.sessions.revert_to_history(index):
            return False
        self._drop_pending_work()
        self.last_error = None
        if self.sessions.current_image_url is not None:
            await self._use_image(self.sessions.current_image_url)
        return True

    def reset(self) -> None:
        """Start over: clears hotspots, history and edit count."""
        self._drop_pending_work()
        self.drag.cancel()
        self.sampler.forget_image()
        self.sessions.reset()
        self.is_processing = False
        self.last_error = None

    def snapshot(self) -> PersistedEditState:
        return self.sessions.snapshot()

    async def restore(self, state: PersistedEditState) -> None:
        """Resume from saved state."""
        self._drop_pending_work()
        self.sessions.restore(state)
        self.is_processing = False
        if self.sessions.current_image_url is not None:
            await self._use_image(self.sessions.current_image_url)

    def colors_for(self, hotspot_id: int) -> ColorProfile:
        return self._colors.get(hotspot_id, FALLBACK_COLOR_PROFILE)

    def view(self) -> EditorView:
        """Build the render model for the UI."""
        sessions = self.sessions
        limits = sessions.limits
        add_decision = sessions.can_add()
        process_decision = sessions.can_process()
        hotspot_count = len(self.store)
        return EditorView(
            image_url=sessions.current_image_url,
            original_image_url=sessions.original_image_url,
            hotspots=[
                HotspotView(
                    hotspot=hotspot,
                    colors=self.colors_for(hotspot.id),
                    busy=self.store.is_busy(hotspot.id),
                )
                for hotspot in self.store.list_hotspots()
            ],
            can_add=add_decision.can_add and not self.is_processing,
            add_reason=add_decision.reason,
            can_process=process_decision.can_process and not self.is_processing,
            process_reason=(
                ALREADY_PROCESSING if self.is_processing else process_decision.reason
            ),
            edit_count=sessions.edit_count,
            max_edits=limits.max_edits_per_image,
            remaining_edits=remaining_edits(sessions.edit_count, limits),
            hotspot_count=hotspot_count,
            max_hotspots=limits.max_hotspots_per_session,
            remaining_hotspots=remaining_hotspots(hotspot_count, limits),
            total_hotspots=sessions.total_hotspot_count,
            max_total_hotspots=limits.max_total_hotspots_per_session,
            sessions_used=sessions.sessions_used,
            max_sessions=limits.max_sessions,
            session_id=sessions.session.id if sessions.session else None,
            session_status=str(sessions.session.status) if sessions.session else None,
            history=list(sessions.history),
            history_index=sessions.history_index,
            is_processing=self.is_processing,
            last_error=self.last_error or self.store.last_error,
        )

    async def _use_image(self, image_url: str) -> None:
        generation = self.sessions.generation
        image = await self.images.load(image_url)
        if self._is_stale(generation) or self.sessions.current_image_url != image_url:
            return
        self.image = image
        for hotspot in self.store.list_hotspots():
            self._refresh_colors(hotspot.id)

    def _refresh_colors(self, hotspot_id: int) -> None:
        version = self._color_versions.get(hotspot_id, 0) + 1
        self._color_versions[hotspot_id] = version
        generation = self.sessions.generation

        def refresh() -> None:
            if self._is_stale(generation) or self._color_versions.get(hotspot_id) != version:
                logger.debug("Dropping stale color refresh for hotspot %s", hotspot_id)
                return
            hotspot = self.store.get(hotspot_id)
            if hotspot is None:
                return
            if self.image is None:
                self._colors[hotspot_id] = FALLBACK_COLOR_PROFILE
                return
            self._colors[hotspot_id] = self.sampler.sample(hotspot, self.image)

        self.scheduler.schedule(hotspot_id, refresh)

    def _drop_pending_work(self) -> None:
        self.scheduler.cancel_all()
        self._colors.clear()
        for hotspot_id in self._color_versions:
            self._color_versions[hotspot_id] += 1

    def _is_stale(self, generation: int) -> bool:
        return generation != self.sessions.generation
