"""Loading base images for sampling."""

import logging
from dataclasses import dataclass
from typing import Protocol

from hotspot_editor.domain.errors import EditorError
from hotspot_editor.domain.images import ImageSource

logger = logging.getLogger(__name__)


class ImageFetchError(EditorError):
    """Raised when image bytes cannot be retrieved."""


class ImageFetcher(Protocol):
    """Interface for retrieving image bytes by URL."""

    async def fetch(self, url: str) -> bytes:
        """Return the raw bytes behind an image URL."""


@dataclass
class ImageLoader:
    """Turns image URLs into decoded sources, failing soft."""

    fetcher: ImageFetcher

    async def load(self, url: str) -> ImageSource:
        """Fetch and decode an image; unreadable images yield an empty source."""
        try:
            data = await self.fetcher.fetch(url)
        except ImageFetchError as exc:
            logger.warning("Could not fetch image %s: %s", url, exc)
            return ImageSource(identity=url)
        return ImageSource.from_bytes(url, data)
