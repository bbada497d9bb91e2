"""Cyclic gradients and smooth escape-time colouring."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

import numpy as np

from perturbzoom.iterate import PixelResult

Color = Tuple[int, int, int]

STEPS_PER_SEGMENT = 100
BAND_DENSITY = 10
IN_SET_COLOR: Color = (0, 0, 0)

DEFAULT_CONTROL_COLORS: Tuple[Color, ...] = (
    (0, 0, 0),
    (0, 0, 255),
    (128, 0, 255),
    (255, 255, 255),
    (255, 255, 0),
    (255, 0, 0),
)


def as_color(value: Iterable[int]) -> Color:
    channels = tuple(int(c) for c in value)
    if len(channels) != 3 or any(c < 0 or c > 255 for c in channels):
        raise ValueError(f"Colors must be three channels in 0..255, got {value!r}")
    return channels  # type: ignore[return-value]


def interpolate(c1: Color, c2: Color, t: float) -> Color:
    return tuple(int(a + (b - a) * t) for a, b in zip(c1, c2))  # type: ignore[return-value]


@dataclass(frozen=True, eq=False)
class Gradient:
    controls: Tuple[Color, ...]
    colors: np.ndarray

    def __len__(self) -> int:
        return self.colors.shape[0]

    def __getitem__(self, index: int) -> Color:
        r, g, b = self.colors[index]
        return (int(r), int(g), int(b))


def build_gradient(control_colors: Sequence[Iterable[int]], steps: int = STEPS_PER_SEGMENT) -> Gradient:
    """Expand control colours into a cyclic table of ``len(controls) * steps``.

    Each segment blends a control colour towards the next one (the last
    wraps to the first) with factors ``0, 1/steps, ..., (steps-1)/steps``,
    so every control colour appears unchanged at the start of its segment.
    """
    controls = tuple(as_color(c) for c in control_colors)
    if len(controls) < 2:
        raise ValueError("A gradient needs at least two control colors.")
    if steps < 1:
        raise ValueError("steps must be >= 1")

    table = []
    for i, color in enumerate(controls):
        nxt = controls[(i + 1) % len(controls)]
        for s in range(steps):
            table.append(interpolate(color, nxt, s / steps))

    colors = np.array(table, dtype=np.uint8)
    colors.setflags(write=False)
    return Gradient(controls=controls, colors=colors)


def smooth_index(iteration: int, magnitude: float, size: int) -> int:
    if math.isnan(magnitude):
        return 0
    if magnitude <= 1.0:
        raise ValueError(f"magnitude {magnitude!r} is not an escaped value")
    nu = (iteration - math.log2(math.log2(magnitude))) * BAND_DENSITY
    if not math.isfinite(nu):
        return 0
    return int(nu) % size


def colorize(gradient: Gradient, result: PixelResult, max_iteration: int) -> Color:
    if result.iteration == max_iteration:
        return IN_SET_COLOR
    return gradient[smooth_index(result.iteration, result.magnitude, len(gradient))]


def colorize_block(gradient: Gradient, iterations: np.ndarray, magnitudes: np.ndarray, max_iteration: int) -> np.ndarray:
    iterations = np.asarray(iterations)
    magnitudes = np.asarray(magnitudes, dtype=np.float64)
    out = np.zeros(iterations.shape + (3,), dtype=np.uint8)
    out[...] = IN_SET_COLOR

    escaped = iterations != max_iteration
    if not escaped.any():
        return out

    mag = magnitudes[escaped]
    if np.any(mag <= 1.0):
        raise ValueError("escaped pixels must have magnitude above 1")
    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        nu = (iterations[escaped] - np.log2(np.log2(mag))) * BAND_DENSITY
    finite = np.isfinite(nu)
    idx = np.zeros(nu.shape, dtype=np.int64)
    idx[finite] = np.mod(np.trunc(nu[finite]).astype(np.int64), len(gradient))
    out[escaped] = gradient.colors[idx]
    return out
