"""Background-adaptive overlay colors for hotspot markers."""

import asyncio
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field

from PIL import Image

from hotspot_editor.domain.colors import FALLBACK_COLOR_PROFILE, ColorProfile
from hotspot_editor.domain.errors import SamplingFailedError
from hotspot_editor.domain.geometry import clamp
from hotspot_editor.domain.hotspots import Hotspot
from hotspot_editor.domain.images import ImageSource
from hotspot_editor.services.cache import Cache

logger = logging.getLogger(__name__)

MAX_SAMPLE_DIMENSION = 1024
SAMPLE_SIZE = 3
LIGHT_THRESHOLD = 140.0
HIGH_CONTRAST_SATURATION = 50
REFRESH_DELAY_SECONDS = 0.1


def luma(r: float, g: float, b: float) -> float:
    """Perceived brightness of an RGB color."""
    return r * 0.299 + g * 0.587 + b * 0.114


def build_profile(
    r: int,
    g: int,
    b: int,
    light_threshold: float = LIGHT_THRESHOLD,
    high_contrast_saturation: int = HIGH_CONTRAST_SATURATION,
) -> ColorProfile:
    """Pick overlay colors that stay legible over the sampled color."""
    brightness = luma(r, g, b)
    is_light = brightness > light_threshold
    is_high_contrast = max(r, g, b) - min(r, g, b) > high_contrast_saturation
    if is_light:
        background = f"rgba(0, 0, 0, {'0.8' if is_high_contrast else '0.7'})"
        border = f"rgba(0, 0, 0, {'0.9' if is_high_contrast else '0.8'})"
        shadow = "0 1px 3px rgba(0,0,0,0.8)"
    else:
        background = f"rgba(255, 255, 255, {'0.4' if is_high_contrast else '0.3'})"
        border = f"rgba(255, 255, 255, {'0.6' if is_high_contrast else '0.5'})"
        shadow = "0 1px 3px rgba(0,0,0,0.5)"
    return ColorProfile(
        background_color=background,
        border_color=border,
        text_color="rgba(255, 255, 255, 0.95)",
        text_shadow=shadow,
        r=r,
        g=g,
        b=b,
        brightness=brightness,
        is_light=is_light,
        is_high_contrast=is_high_contrast,
    )


def scaled_size(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """Fit an image inside max_dimension on its long edge, keeping aspect."""
    aspect = width / height
    if width > height:
        scaled_width = min(max_dimension, width)
        scaled_height = scaled_width / aspect
    else:
        scaled_height = min(max_dimension, height)
        scaled_width = scaled_height * aspect
    return max(1, round(scaled_width)), max(1, round(scaled_height))


@dataclass
class ColorSampler:
    """Samples the pixels under a hotspot and derives a ColorProfile."""

    cache: Cache
    max_dimension: int = MAX_SAMPLE_DIMENSION
    sample_size: int = SAMPLE_SIZE
    light_threshold: float = LIGHT_THRESHOLD
    _bitmap_identity: str | None = None
    _bitmap: Image.Image | None = None

    def sample(self, hotspot: Hotspot, source: ImageSource) -> ColorProfile:
        """Return overlay colors for a hotspot; never raises."""
        key = f"{hotspot.x}-{hotspot.y}-{source.identity}"
        cached = self.cache.get(key)
        if isinstance(cached, ColorProfile):
            return cached
        try:
            r, g, b = self._average_color(self._downscaled(source), hotspot)
        except SamplingFailedError as exc:
            logger.warning("Using fallback colors for %s: %s", source.identity, exc)
            return FALLBACK_COLOR_PROFILE
        profile = build_profile(r, g, b, light_threshold=self.light_threshold)
        self.cache.set(key, profile)
        return profile

    def forget_image(self) -> None:
        """Drop the downscaled bitmap and every cached profile."""
        self._bitmap_identity = None
        self._bitmap = None
        self.cache.clear()

    def _downscaled(self, source: ImageSource) -> Image.Image:
        if source.image is None:
            raise SamplingFailedError("image is not readable")
        if self._bitmap is not None and self._bitmap_identity == source.identity:
            return self._bitmap
        width, height = source.image.size
        if width <= 0 or height <= 0:
            raise SamplingFailedError("image has no pixels")
        try:
            bitmap = source.image.convert("RGB").resize(
                scaled_size(width, height, self.max_dimension),
                Image.Resampling.NEAREST,
            )
        except (OSError, ValueError) as exc:
            raise SamplingFailedError(str(exc)) from exc
        self._bitmap_identity = source.identity
        self._bitmap = bitmap
        return bitmap

    def _average_color(
        self, bitmap: Image.Image, hotspot: Hotspot
    ) -> tuple[int, int, int]:
        width, height = bitmap.size
        center_x = math.floor(hotspot.x / 100 * width)
        center_y = math.floor(hotspot.y / 100 * height)
        half = self.sample_size // 2
        totals = [0, 0, 0]
        count = 0
        for dy in range(-half, half + 1):
            for dx in range(-half, half + 1):
                x = int(clamp(center_x + dx, 0, width - 1))
                y = int(clamp(center_y + dy, 0, height - 1))
                pixel = bitmap.getpixel((x, y))
                for channel in range(3):
                    totals[channel] += pixel[channel]
                count += 1
        return totals[0] // count, totals[1] // count, totals[2] // count


@dataclass
class ColorRefreshScheduler:
    """Debounces color refreshes per hotspot on the running event loop."""

    delay_seconds: float = REFRESH_DELAY_SECONDS
    _timers: dict[int, asyncio.TimerHandle] = field(default_factory=dict)

    @property
    def pending(self) -> int:
        return len(self._timers)

    def schedule(self, hotspot_id: int, refresh: Callable[[], None]) -> None:
        """Run refresh after the delay, replacing any pending refresh."""
        self.cancel(hotspot_id)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Synchronous callers have no loop to debounce on.
            refresh()
            return
        self._timers[hotspot_id] = loop.call_later(
            self.delay_seconds, self._fire, hotspot_id, refresh
        )

    def cancel(self, hotspot_id: int) -> None:
        handle = self._timers.pop(hotspot_id, None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

    def _fire(self, hotspot_id: int, refresh: Callable[[], None]) -> None:
        self._timers.pop(hotspot_id, None)
        refresh()
