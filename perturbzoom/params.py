"""Immutable render parameters.

Every user action produces a new ``RenderParameters``; nothing is mutated
in place, so a render in flight always sees a consistent snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Sequence, Tuple

from perturbzoom.errors import InvalidDepth
from perturbzoom.numeric import HighPrecisionComplex, precision_for_radius
from perturbzoom.palette import DEFAULT_CONTROL_COLORS, Color, as_color
from perturbzoom.viewport import Viewport, pixel_offset


@dataclass(frozen=True)
class RenderParameters:
    center: HighPrecisionComplex
    radius: float = 2.0
    depth: int = 1000
    width: int = 1280
    height: int = 720
    control_colors: Tuple[Color, ...] = field(default=DEFAULT_CONTROL_COLORS)

    def __post_init__(self) -> None:
        if isinstance(self.depth, bool) or not isinstance(self.depth, int) or self.depth <= 0:
            raise InvalidDepth(self.depth)
        if len(self.control_colors) < 2:
            raise ValueError("At least two control colors are required.")
        object.__setattr__(self, "control_colors", tuple(as_color(c) for c in self.control_colors))
        # Validates radius and canvas size.
        Viewport(self.radius, self.width, self.height)

    @property
    def viewport(self) -> Viewport:
        return Viewport(self.radius, self.width, self.height)

    @property
    def orbit_key(self) -> Tuple[HighPrecisionComplex, int]:
        return (self.center, self.depth)

    @property
    def precision(self) -> int:
        return precision_for_radius(self.radius, self.depth)

    def with_radius(self, radius: float) -> "RenderParameters":
        return replace(self, radius=radius)

    def with_depth(self, depth: int) -> "RenderParameters":
        return replace(self, depth=depth)

    def with_center(self, center: HighPrecisionComplex) -> "RenderParameters":
        return replace(self, center=center)

    def with_colors(self, colors: Sequence[Iterable[int]]) -> "RenderParameters":
        return replace(self, control_colors=tuple(tuple(c) for c in colors))

    def resized(self, width: int, height: int) -> "RenderParameters":
        return replace(self, width=width, height=height)

    def zoomed(self, factor: float = 0.5) -> "RenderParameters":
        if not factor > 0:
            raise ValueError("zoom factor must be positive.")
        return replace(self, radius=self.radius * factor)

    def recentered_on_pixel(self, x: int, y: int, zoom: float = 0.5) -> "RenderParameters":
        """Move the centre to pixel (x, y), then scale the radius by ``zoom``."""
        offset = pixel_offset(self.viewport, x, y)
        center = self.center.shifted(offset.real, offset.imag, dps=self.precision)
        return replace(self, center=center).zoomed(zoom)
