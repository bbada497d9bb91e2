"""Pixel to complex-offset mapping.

The shorter canvas side spans ``2*radius``. Offsets are relative to the
reference centre, with screen y growing downward and the imaginary axis
growing upward.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

import numpy as np


@dataclass(frozen=True)
class Viewport:
    radius: float
    width: int
    height: int

    def __post_init__(self) -> None:
        if not self.radius > 0:
            raise ValueError(f"radius must be positive, got {self.radius!r}")
        if int(self.width) < 1 or int(self.height) < 1:
            raise ValueError(f"canvas must be at least 1x1, got {self.width}x{self.height}")
        object.__setattr__(self, "radius", float(self.radius))
        object.__setattr__(self, "width", int(self.width))
        object.__setattr__(self, "height", int(self.height))

    @property
    def short_side(self) -> int:
        return min(self.width, self.height)

    def resized(self, width: int, height: int) -> "Viewport":
        return replace(self, width=width, height=height)

    def with_radius(self, radius: float) -> "Viewport":
        return replace(self, radius=radius)


def pixel_offset(viewport: Viewport, x: int, y: int) -> complex:
    r = viewport.radius
    m = viewport.short_side
    return complex(r * (2 * x - viewport.width) / m, -r * (2 * y - viewport.height) / m)


def offset_grid(viewport: Viewport, y0: int, y1: int) -> np.ndarray:
    """Offsets for rows ``y0 .. y1-1`` as a ``(rows, width)`` complex array."""
    r = np.float64(viewport.radius)
    m = viewport.short_side
    xs = np.arange(viewport.width, dtype=np.float64)
    ys = np.arange(y0, y1, dtype=np.float64)
    re = r * (2.0 * xs - viewport.width) / m
    im = -r * (2.0 * ys - viewport.height) / m

    grid = np.empty((y1 - y0, viewport.width), dtype=np.complex128)
    grid.real = re[np.newaxis, :]
    grid.imag = im[:, np.newaxis]
    return grid
