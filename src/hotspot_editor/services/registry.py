"""Tracks live editors and persists their resumable state."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol
from uuid import uuid4

from hotspot_editor.domain.errors import EditorNotFoundError
from hotspot_editor.domain.sessions import PersistedEditState
from hotspot_editor.services.editor import EditorService

logger = logging.getLogger(__name__)


class EditStateRepository(Protocol):
    """Persistence interface for editor state."""

    def get_state(self, editor_id: str) -> PersistedEditState | None:
        """Return the saved state for an editor, if present."""

    def save_state(self, editor_id: str, state: PersistedEditState) -> None:
        """Create or replace the saved state for an editor."""

    def delete_state(self, editor_id: str) -> None:
        """Delete the saved state for an editor."""


@dataclass
class EditorRegistry:
    """Creates editors, keeps them in memory and resumes them from storage."""

    editor_factory: Callable[[], EditorService]
    repository: EditStateRepository
    _editors: dict[str, EditorService] = field(default_factory=dict)

    async def create(self, image_url: str) -> tuple[str, EditorService]:
        """Open a new editor on an image."""
        editor_id = uuid4().hex
        editor = self.editor_factory()
        await editor.load_image(image_url)
        self._editors[editor_id] = editor
        self.save(editor_id)
        logger.info("Opened editor %s", editor_id)
        return editor_id, editor

    async def get(self, editor_id: str) -> EditorService:
        """Return a live editor, resuming it from storage if needed."""
        editor = self._editors.get(editor_id)
        if editor is not None:
            return editor
        state = self.repository.get_state(editor_id)
        if state is None:
            raise EditorNotFoundError(editor_id)
        editor = self.editor_factory()
        await editor.restore(state)
        self._editors[editor_id] = editor
        logger.info("Resumed editor %s from storage", editor_id)
        return editor

    def save(self, editor_id: str) -> None:
        editor = self._editors.get(editor_id)
        if editor is None:
            raise EditorNotFoundError(editor_id)
        self.repository.save_state(editor_id, editor.snapshot())

    def discard(self, editor_id: str) -> None:
        """Forget an editor and its saved state."""
        editor = self._editors.pop(editor_id, None)
        if editor is not None:
            editor.reset()
        self.repository.delete_state(editor_id)
