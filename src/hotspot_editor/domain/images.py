"""Decoded image handles used for color sampling."""

import io
import logging
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageSource:
    """An already-available bitmap and the identity it is cached under.

    ``image`` is ``None`` when the bytes could not be decoded; consumers fall
    back to neutral behaviour instead of failing.
    """

    identity: str
    image: Image.Image | None = None

    @classmethod
    def from_bytes(cls, identity: str, data: bytes) -> "ImageSource":
        """Decode image bytes, keeping an empty handle if decoding fails."""
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
            logger.warning("Could not decode image %s: %s", identity, exc)
            return cls(identity=identity)
        return cls(identity=identity, image=image)
