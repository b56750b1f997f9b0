"""Image download client."""

import base64
import binascii
from dataclasses import dataclass

import httpx

from hotspot_editor.services.images import ImageFetcher, ImageFetchError


@dataclass
class HttpxImageFetcher(ImageFetcher):
    """Fetches image bytes over HTTP; data URLs are decoded locally."""

    http_client: httpx.AsyncClient

    @classmethod
    def create(cls) -> "HttpxImageFetcher":
        """Create an image fetcher with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient(follow_redirects=True))

    async def fetch(self, url: str) -> bytes:
        """Download image bytes."""
        if url.startswith("data:"):
            return _decode_data_url(url)
        try:
            response = await self.http_client.get(url, timeout=20)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ImageFetchError(str(exc)) from exc
        return response.content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _decode_data_url(url: str) -> bytes:
    header, _, encoded = url.partition(",")
    if not header.endswith(";base64"):
        raise ImageFetchError("Only base64 data URLs are supported")
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageFetchError("Malformed data URL") from exc
