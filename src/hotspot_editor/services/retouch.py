"""Retouch submission: builds the instruction and validates the result."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from hotspot_editor.domain.errors import ProcessFailedError
from hotspot_editor.domain.hotspots import Hotspot
from hotspot_editor.domain.retouch import RetouchHotspot, RetouchResult

MAX_HOTSPOTS_PER_REQUEST = 5


class RetouchClient(Protocol):
    """Interface for the external AI retouch backend."""

    async def process(
        self,
        *,
        image_url: str,
        prompt: str,
        hotspots: list[dict[str, object]],
    ) -> dict[str, object]:
        """Apply the edits and return a payload containing ``imageUrl``."""


@dataclass
class RetouchService:
    """Service that prepares retouch requests and validates results."""

    client: RetouchClient

    async def process(
        self, image_url: str, hotspots: Sequence[Hotspot]
    ) -> RetouchResult:
        """Send validated hotspots to the retouch backend."""
        if not hotspots:
            raise ProcessFailedError("No edit points to process")
        limited = list(hotspots)[:MAX_HOTSPOTS_PER_REQUEST]
        payload = [
            RetouchHotspot(
                id=hotspot.id,
                x=hotspot.x,
                y=hotspot.y,
                prompt=hotspot.prompt.strip(),
                reference_image=(
                    hotspot.reference_images[0].url
                    if hotspot.reference_images
                    else None
                ),
            ).model_dump(by_alias=True, exclude_none=True)
            for hotspot in limited
        ]
        raw = await self.client.process(
            image_url=image_url,
            prompt=build_retouch_prompt(limited),
            hotspots=payload,
        )
        try:
            return RetouchResult.model_validate(raw)
        except ValidationError as exc:
            raise ProcessFailedError("Retouch service returned no image") from exc


def build_retouch_prompt(hotspots: Sequence[Hotspot]) -> str:
    """Combine per-hotspot instructions into one positional edit request."""
    lines = []
    for index, hotspot in enumerate(hotspots, start=1):
        line = (
            f"Edit {index}: At coordinates ({hotspot.x:g}%, {hotspot.y:g}%) - "
            f"{hotspot.prompt.strip()}"
        )
        if hotspot.reference_images:
            line += " (match the attached reference image)"
        lines.append(line)
    combined = "\n".join(lines)
    return (
        "Apply the following edits to the image. Address each item precisely at "
        "its coordinates and keep everything else unchanged:\n\n"
        f"{combined}\n\n"
        "Requirements:\n"
        "- Apply all listed edits, one pass, consistent quality\n"
        "- Do not change composition, camera, geometry, object placement, "
        "or dimensions\n"
        "- Maintain original resolution and overall realism; blend changes naturally"
    )
