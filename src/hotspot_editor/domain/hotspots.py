"""Domain models for edit points."""

from dataclasses import dataclass, field
from enum import StrEnum


@dataclass(frozen=True)
class ReferenceImage:
    """Uploaded reference image attached to a hotspot."""

    id: str
    url: str
    preview_url: str


@dataclass
class Hotspot:
    """User-placed edit point, positioned in percent of the image size."""

    id: int
    x: float
    y: float
    prompt: str = ""
    reference_images: list[ReferenceImage] = field(default_factory=list)

    @property
    def has_prompt(self) -> bool:
        """Return whether the hotspot carries a usable instruction."""
        return bool(self.prompt.strip())


class RejectionKind(StrEnum):
    """Why a click did not produce a hotspot."""

    EDGE = "edge"
    PROXIMITY = "proximity"
    LIMIT = "limit"


@dataclass(frozen=True)
class PlacementRejection:
    """Typed result for a refused hotspot placement."""

    kind: RejectionKind
    reason: str
    code: str | None = None
