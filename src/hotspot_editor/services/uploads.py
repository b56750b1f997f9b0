"""Reference image uploads."""

from dataclasses import dataclass
from typing import Protocol
from uuid import uuid4

from pydantic import ValidationError

from hotspot_editor.domain.errors import UploadFailedError
from hotspot_editor.domain.hotspots import ReferenceImage
from hotspot_editor.domain.retouch import UploadedReference

MAX_REFERENCE_BYTES = 10 * 1024 * 1024


class ReferenceUploadClient(Protocol):
    """Interface for the file storage service."""

    async def upload(
        self, *, filename: str, content: bytes, content_type: str
    ) -> dict[str, object]:
        """Store a file and return a payload with ``url`` and ``previewUrl``."""


@dataclass
class ReferenceUploadService:
    """Validates reference files and stores them through the upload client."""

    client: ReferenceUploadClient
    max_bytes: int = MAX_REFERENCE_BYTES

    async def upload(
        self, filename: str, content: bytes, content_type: str
    ) -> ReferenceImage:
        """Upload a reference file and return the attachable reference."""
        if not content:
            raise UploadFailedError("Reference image is empty")
        if len(content) > self.max_bytes:
            raise UploadFailedError("Reference image is too large")
        if not content_type.startswith("image/"):
            raise UploadFailedError("Reference file must be an image")
        raw = await self.client.upload(
            filename=filename, content=content, content_type=content_type
        )
        try:
            uploaded = UploadedReference.model_validate(raw)
        except ValidationError as exc:
            raise UploadFailedError("Upload service returned no file URL") from exc
        return ReferenceImage(
            id=f"ref_{uuid4().hex[:12]}",
            url=uploaded.url,
            preview_url=uploaded.preview_url or uploaded.url,
        )
