"""Pydantic request and response models for the editor API."""

from pydantic import BaseModel, Field

from hotspot_editor.domain.colors import ColorProfile
from hotspot_editor.domain.hotspots import ReferenceImage
from hotspot_editor.domain.sessions import HistoryEntry
from hotspot_editor.services.editor import EditorView, HotspotView


class CreateEditorRequest(BaseModel):
    """Open an editor on an image."""

    image_url: str = Field(min_length=1)


class PlaceHotspotRequest(BaseModel):
    """Hotspot position in percent of the image size."""

    x: float
    y: float


class UpdateHotspotRequest(BaseModel):
    """New instruction text for a hotspot."""

    prompt: str


class HotspotResponse(BaseModel):
    """Hotspot as rendered on the image."""

    id: int
    x: float
    y: float
    prompt: str
    reference_images: list[ReferenceImage]
    colors: ColorProfile
    busy: bool

    @classmethod
    def from_view(cls, view: HotspotView) -> "HotspotResponse":
        hotspot = view.hotspot
        return cls(
            id=hotspot.id,
            x=hotspot.x,
            y=hotspot.y,
            prompt=hotspot.prompt,
            reference_images=list(hotspot.reference_images),
            colors=view.colors,
            busy=view.busy,
        )


class EditorResponse(BaseModel):
    """Full editor state for the client to render."""

    editor_id: str
    image_url: str | None
    original_image_url: str | None
    hotspots: list[HotspotResponse]
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

    @classmethod
    def from_view(cls, editor_id: str, view: EditorView) -> "EditorResponse":
        return cls(
            editor_id=editor_id,
            image_url=view.image_url,
            original_image_url=view.original_image_url,
            hotspots=[HotspotResponse.from_view(item) for item in view.hotspots],
            can_add=view.can_add,
            add_reason=view.add_reason,
            can_process=view.can_process,
            process_reason=view.process_reason,
            edit_count=view.edit_count,
            max_edits=view.max_edits,
            remaining_edits=view.remaining_edits,
            hotspot_count=view.hotspot_count,
            max_hotspots=view.max_hotspots,
            remaining_hotspots=view.remaining_hotspots,
            total_hotspots=view.total_hotspots,
            max_total_hotspots=view.max_total_hotspots,
            sessions_used=view.sessions_used,
            max_sessions=view.max_sessions,
            session_id=view.session_id,
            session_status=view.session_status,
            history=view.history,
            history_index=view.history_index,
            is_processing=view.is_processing,
            last_error=view.last_error,
        )
