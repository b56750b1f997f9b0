"""Error types raised by the editing core."""


class EditorError(Exception):
    """Base class for editor errors."""


class HotspotNotFoundError(EditorError):
    """Raised when an operation targets a hotspot that does not exist."""

    def __init__(self, hotspot_id: int) -> None:
        super().__init__(f"Hotspot {hotspot_id} does not exist")
        self.hotspot_id = hotspot_id


class HotspotBusyError(EditorError):
    """Raised when a hotspot is locked by an in-flight upload or process call."""

    def __init__(self, hotspot_id: int) -> None:
        super().__init__(f"Hotspot {hotspot_id} is busy")
        self.hotspot_id = hotspot_id


class StateInvariantError(EditorError):
    """Raised when editor state no longer satisfies its invariants."""


class SamplingFailedError(EditorError):
    """Raised when image pixels cannot be read for color sampling."""


class UploadFailedError(EditorError):
    """Raised when the reference upload service rejects a file."""


class ProcessFailedError(EditorError):
    """Raised when the retouch service fails to produce an image."""


class EditorNotFoundError(EditorError):
    """Raised when an editor id is unknown."""
