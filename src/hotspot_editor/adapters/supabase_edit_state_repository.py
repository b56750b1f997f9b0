"""Supabase repository for resumable editor state."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from hotspot_editor.domain.sessions import PersistedEditState
from hotspot_editor.services.registry import EditStateRepository


@dataclass
class SupabaseEditStateRepository(EditStateRepository):
    """Supabase implementation for editor state storage."""

    client: Client

    def get_state(self, editor_id: str) -> PersistedEditState | None:
        """Return the saved state for an editor, if present."""
        response = (
            self.client.table("edit_states")
            .select("editor_id, state_json")
            .eq("editor_id", editor_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return PersistedEditState.model_validate(response.data[0]["state_json"])

    def save_state(self, editor_id: str, state: PersistedEditState) -> None:
        """Create or replace the saved state for an editor."""
        self.client.table("edit_states").upsert(
            {
                "editor_id": editor_id,
                "state_json": state.model_dump(mode="json"),
                "updated_at": datetime.now(UTC).isoformat(),
            }
        ).execute()

    def delete_state(self, editor_id: str) -> None:
        """Delete the saved state for an editor."""
        self.client.table("edit_states").delete().eq("editor_id", editor_id).execute()
