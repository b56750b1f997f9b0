"""Process-local editor state storage."""

from dataclasses import dataclass, field

from hotspot_editor.domain.sessions import PersistedEditState
from hotspot_editor.services.registry import EditStateRepository


@dataclass
class InMemoryEditStateRepository(EditStateRepository):
    """Keeps serialized editor state in a dict; used when Supabase is not set up."""

    _rows: dict[str, dict[str, object]] = field(default_factory=dict)

    def get_state(self, editor_id: str) -> PersistedEditState | None:
        row = self._rows.get(editor_id)
        if row is None:
            return None
        return PersistedEditState.model_validate(row)

    def save_state(self, editor_id: str, state: PersistedEditState) -> None:
        self._rows[editor_id] = state.model_dump(mode="json")

    def delete_state(self, editor_id: str) -> None:
        self._rows.pop(editor_id, None)
