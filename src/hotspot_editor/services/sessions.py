"""Session state machine for multi-phase hotspot editing."""

import copy
import logging
from dataclasses import dataclass, field
from uuid import uuid4

from hotspot_editor.domain.errors import StateInvariantError
from hotspot_editor.domain.hotspots import Hotspot, PlacementRejection
from hotspot_editor.domain.sessions import (
    EditSession,
    HistoryEntry,
    PersistedEditState,
    SessionStatus,
)
from hotspot_editor.services.hotspots import HotspotStore
from hotspot_editor.services.limits import (
    DEFAULT_LIMITS,
    EditLimits,
    LimitDecision,
    ProcessDecision,
    can_add_hotspot,
    can_process_edits,
    can_start_session,
)

logger = logging.getLogger(__name__)

PRISTINE_INDEX = -1


@dataclass
class SessionManager:
    """Groups hotspots into bounded sessions and tracks processed history.

    States are ``NoSession`` (``session is None``), ``Active`` and
    ``Completed``. A completed session is reopened for another phase when a
    hotspot is added and its total budget allows it; otherwise a new session
    is started, subject to the per-visit session quota.

    Removing the last hotspot of a phase leaves the session ``Active`` with
    no hotspots.
    """

    store: HotspotStore
    limits: EditLimits = DEFAULT_LIMITS
    session: EditSession | None = None
    edit_count: int = 0
    history: list[HistoryEntry] = field(default_factory=list)
    history_index: int = PRISTINE_INDEX
    sessions_used: int = 0
    generation: int = 0
    original_image_url: str | None = None
    current_image_url: str | None = None

    @property
    def has_active_session(self) -> bool:
        return self.session is not None and self.session.status == SessionStatus.ACTIVE

    @property
    def phase_hotspot_count(self) -> int:
        if self.session is None:
            return 0
        return len(self.session.current_phase_hotspots)

    @property
    def total_hotspot_count(self) -> int:
        if self.session is None:
            return 0
        return len(self.session.total_hotspots)

    def can_add(self) -> LimitDecision:
        """Return whether the next click may place a hotspot."""
        if self._needs_new_session():
            return self._admit_new_session()
        if self.has_active_session:
            return self._admit_to_active()
        return self._admit_reopen()

    def can_process(self) -> ProcessDecision:
        return can_process_edits(
            edit_count=self.edit_count,
            hotspots=self.store.list_hotspots(),
            limits=self.limits,
        )

    def load_image(self, image_url: str) -> None:
        """Start editing a new image from a clean slate."""
        self.reset()
        self.original_image_url = image_url
        self.current_image_url = image_url

    def place_hotspot(self, x: float, y: float) -> Hotspot | PlacementRejection:
        """Add a hotspot, opening or reopening a session as needed."""
        if self._needs_new_session():
            return self.create_and_add_hotspot(x, y)
        return self.add_hotspot(x, y)

    def create_and_add_hotspot(
        self, x: float, y: float
    ) -> Hotspot | PlacementRejection:
        """Create a session and insert its first hotspot in one step."""
        if self.has_active_session:
            raise StateInvariantError("Only one session may be active at a time")
        result = self.store.add_at(x, y, admit=self._admit_new_session)
        if isinstance(result, PlacementRejection):
            return result
        self.session = EditSession(
            id=f"session_{uuid4().hex[:12]}",
            current_phase_hotspots=[result.id],
            total_hotspots=[result.id],
        )
        self.sessions_used += 1
        logger.info(
            "Created session %s (%s/%s used)",
            self.session.id,
            self.sessions_used,
            self.limits.max_sessions,
        )
        return result

    def add_hotspot(self, x: float, y: float) -> Hotspot | PlacementRejection:
        """Add a hotspot to the current session."""
        session = self._require_session()
        reopening = session.status == SessionStatus.COMPLETED
        admit = self._admit_reopen if reopening else self._admit_to_active
        result = self.store.add_at(x, y, admit=admit)
        if isinstance(result, PlacementRejection):
            return result
        if reopening:
            session.status = SessionStatus.ACTIVE
            logger.info("Reopened session %s for a new phase", session.id)
        session.current_phase_hotspots.append(result.id)
        session.total_hotspots.append(result.id)
        self._check_invariants()
        return result

    def remove_hotspot(self, hotspot_id: int) -> bool:
        """Remove a hotspot; unprocessed hotspots release their session slot."""
        if not self.store.remove(hotspot_id):
            return False
        if self.session is not None:
            self._release(self.session, [hotspot_id])
        return True

    def complete(self, processed_image_url: str) -> HistoryEntry:
        """Record a processed batch and close the current phase."""
        session = self._require_session()
        if self.edit_count >= self.limits.max_edits_per_image:
            raise StateInvariantError("Edit count already at its limit")
        entry = HistoryEntry(
            id=f"edit_{uuid4().hex[:12]}",
            image_url=processed_image_url,
            original_image_url=self.original_image_url,
            session_id=session.id,
        )
        self.history.append(entry)
        self.history_index = len(self.history) - 1
        self.edit_count += 1
        self.current_image_url = processed_image_url
        session.result = processed_image_url
        session.current_phase_hotspots = []
        session.status = SessionStatus.COMPLETED
        self.store.clear()
        logger.info(
            "Completed phase for session %s (edit %s/%s)",
            session.id,
            self.edit_count,
            self.limits.max_edits_per_image,
        )
        return entry

    def revert_to_history(self, index: int) -> bool:
        """Use a prior processed image, or the pristine one, as the new base."""
        if index == PRISTINE_INDEX:
            image_url = self.original_image_url
        elif 0 <= index < len(self.history):
            image_url = self.history[index].image_url
        else:
            return False
        if self.session is not None:
            self._release(self.session, list(self.session.current_phase_hotspots))
            self.session.status = SessionStatus.ACTIVE
        self.store.clear()
        self.history_index = index
        self.current_image_url = image_url
        logger.info("Reverted to history entry %s", index)
        return True

    def reset(self) -> None:
        """Start over on the current image.

        The per-visit session quota is not restored.
        """
        self.store.clear()
        self.session = None
        self.history = []
        self.history_index = PRISTINE_INDEX
        self.edit_count = 0
        self.generation += 1
        self.current_image_url = self.original_image_url

    def snapshot(self) -> PersistedEditState:
        """Return a detached copy of the resumable state."""
        return PersistedEditState(
            hotspots=copy.deepcopy(self.store.list_hotspots()),
            session=copy.deepcopy(self.session),
            edit_count=self.edit_count,
            history=list(self.history),
            history_index=self.history_index,
            sessions_used=self.sessions_used,
            original_image_url=self.original_image_url,
            current_image_url=self.current_image_url,
        )

    def restore(self, state: PersistedEditState) -> None:
        """Resume from persisted state, validating its invariants."""
        self.store.load(copy.deepcopy(state.hotspots))
        self.session = copy.deepcopy(state.session)
        self.edit_count = state.edit_count
        self.history = list(state.history)
        self.history_index = state.history_index
        self.sessions_used = state.sessions_used
        self.original_image_url = state.original_image_url
        self.current_image_url = state.current_image_url
        self.generation += 1
        self._check_invariants()

    def _needs_new_session(self) -> bool:
        if self.session is None:
            return True
        return (
            self.session.status == SessionStatus.COMPLETED
            and self.total_hotspot_count >= self.limits.max_total_hotspots_per_session
        )

    def _admit_new_session(self) -> LimitDecision:
        decision = can_add_hotspot(
            edit_count=self.edit_count,
            has_active_session=False,
            limits=self.limits,
        )
        if not decision.can_add:
            return decision
        return can_start_session(self.sessions_used, self.limits)

    def _admit_to_active(self) -> LimitDecision:
        return can_add_hotspot(
            edit_count=self.edit_count,
            hotspot_count=self.phase_hotspot_count,
            total_hotspots_in_session=self.total_hotspot_count,
            has_active_session=True,
            limits=self.limits,
        )

    def _admit_reopen(self) -> LimitDecision:
        # A reopened session starts an empty phase but keeps its total budget.
        return can_add_hotspot(
            edit_count=self.edit_count,
            hotspot_count=0,
            total_hotspots_in_session=self.total_hotspot_count,
            has_active_session=True,
            limits=self.limits,
        )

    def _require_session(self) -> EditSession:
        if self.session is None:
            raise StateInvariantError("No edit session is open")
        return self.session

    @staticmethod
    def _release(session: EditSession, hotspot_ids: list[int]) -> None:
        for hotspot_id in hotspot_ids:
            if hotspot_id not in session.current_phase_hotspots:
                continue
            session.current_phase_hotspots.remove(hotspot_id)
            # Ids restart after each phase, so drop the most recent entry.
            last = len(session.total_hotspots) - 1 - session.total_hotspots[::-1].index(
                hotspot_id
            )
            del session.total_hotspots[last]

    def _check_invariants(self) -> None:
        if self.edit_count > self.limits.max_edits_per_image:
            raise StateInvariantError("Edit count exceeds the per-image limit")
        if self.history_index != PRISTINE_INDEX and not (
            0 <= self.history_index < len(self.history)
        ):
            raise StateInvariantError("History index out of range")
        if self.session is None:
            if len(self.store):
                raise StateInvariantError("Hotspots exist without a session")
            return
        phase = self.session.current_phase_hotspots
        if len(phase) > self.limits.max_hotspots_per_session:
            raise StateInvariantError("Phase holds too many hotspots")
        if len(self.session.total_hotspots) > self.limits.max_total_hotspots_per_session:
            raise StateInvariantError("Session holds too many hotspots")
        known = {hotspot.id for hotspot in self.store.list_hotspots()}
        if set(phase) != known:
            raise StateInvariantError("Session phase and hotspot store disagree")
