"""Domain models for edit sessions and processed-image history."""

from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel

from hotspot_editor.domain.hotspots import Hotspot


class SessionStatus(StrEnum):
    """Lifecycle status of an edit session."""

    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass
class EditSession:
    """A bounded grouping of hotspots between retouch calls.

    Hotspots are referenced by id; the hotspot store owns the objects.
    """

    id: str
    status: SessionStatus = SessionStatus.ACTIVE
    current_phase_hotspots: list[int] = field(default_factory=list)
    total_hotspots: list[int] = field(default_factory=list)
    result: str | None = None


@dataclass(frozen=True)
class HistoryEntry:
    """A processed image that the user can return to."""

    id: str
    image_url: str
    original_image_url: str | None
    session_id: str | None


class PersistedEditState(BaseModel):
    """Minimal state needed to resume an editor."""

    hotspots: list[Hotspot] = []
    session: EditSession | None = None
    edit_count: int = 0
    history: list[HistoryEntry] = []
    history_index: int = -1
    sessions_used: int = 0
    original_image_url: str | None = None
    current_image_url: str | None = None
