"""Coordinate helpers for percent and pixel space."""

import math
from dataclasses import dataclass

_PRECISION = 2


@dataclass(frozen=True)
class Point:
    """A position in either pixel or percent space."""

    x: float
    y: float


@dataclass(frozen=True)
class Bounds:
    """Rendered image rectangle in viewport pixels."""

    left: float
    top: float
    width: float
    height: float


def clamp(value: float, low: float, high: float) -> float:
    """Clamp a value to the inclusive range [low, high]."""
    return max(low, min(high, value))


def to_percent(pixel: float, container_size: float) -> float:
    """Convert a pixel offset to a percentage of the container size."""
    if container_size <= 0:
        raise ValueError("container_size must be positive")
    return round(clamp(pixel / container_size * 100, 0.0, 100.0), _PRECISION)


def to_pixel(percent: float, container_size: float) -> float:
    """Convert a percentage back to a pixel offset.

    Pixel values are left unrounded; only percent positions are quantized.
    """
    if container_size <= 0:
        raise ValueError("container_size must be positive")
    return percent / 100 * container_size


def distance(a: Point, b: Point) -> float:
    """Return the Euclidean distance between two points."""
    return math.hypot(a.x - b.x, a.y - b.y)


def pointer_to_percent(pointer: Point, bounds: Bounds) -> Point:
    """Map a viewport pointer position to percent coordinates on the image."""
    return Point(
        x=to_percent(pointer.x - bounds.left, bounds.width),
        y=to_percent(pointer.y - bounds.top, bounds.height),
    )


def round_position(value: float) -> float:
    """Clamp to [0, 100] and round to the stable precision."""
    return round(clamp(value, 0.0, 100.0), _PRECISION)
