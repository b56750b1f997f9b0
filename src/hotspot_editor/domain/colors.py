"""Overlay styling derived from the pixels under a hotspot."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ColorProfile:
    """Contrast-safe overlay colors for a hotspot marker."""

    background_color: str
    border_color: str
    text_color: str
    text_shadow: str
    r: int = 128
    g: int = 128
    b: int = 128
    brightness: float = 128.0
    is_light: bool = True
    is_high_contrast: bool = False


FALLBACK_COLOR_PROFILE = ColorProfile(
    background_color="rgba(0, 0, 0, 0.7)",
    border_color="rgba(0, 0, 0, 0.8)",
    text_color="rgba(255, 255, 255, 0.95)",
    text_shadow="0 1px 3px rgba(0,0,0,0.8)",
)
