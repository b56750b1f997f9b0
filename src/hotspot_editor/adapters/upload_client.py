"""HTTP client for the reference file upload endpoint."""

from dataclasses import dataclass

import httpx

from hotspot_editor.adapters.http_responses import error_message, json_object
from hotspot_editor.domain.errors import UploadFailedError
from hotspot_editor.services.uploads import ReferenceUploadClient


@dataclass
class HttpxReferenceUploadClient(ReferenceUploadClient):
    """Upload client using multipart POSTs via httpx."""

    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, base_url: str, api_key: str | None = None
    ) -> "HttpxReferenceUploadClient":
        """Create an upload client with a managed httpx session."""
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else None
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(headers=headers),
        )

    async def upload(
        self, *, filename: str, content: bytes, content_type: str
    ) -> dict[str, object]:
        """Upload a file and return the stored URLs."""
        try:
            response = await self.http_client.post(
                f"{self.base_url}/upload",
                files={"file": (filename, content, content_type)},
                timeout=30,
            )
        except httpx.HTTPError as exc:
            raise UploadFailedError(f"Upload service unavailable: {exc}") from exc
        if response.is_error:
            raise UploadFailedError(
                error_message(response, "Failed to upload reference image")
            )
        payload = json_object(response)
        if payload is None:
            raise UploadFailedError("Upload service returned an invalid response")
        return payload

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
