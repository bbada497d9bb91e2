"""Reference orbit generation for perturbation rendering.

A single point, the zoom centre c, is iterated at high precision. Every
pixel is later iterated as a small double-precision delta against this
orbit, so the orbit is stored downcast to ``complex128``.

Each stored value is the *doubled* iterate ``2*z_n``. The per-pixel update
``dn*(2*z_n + dn) + dc`` then needs one complex add and one multiply.

The generator keeps ``depth + 1`` values, ``2*z_0 .. 2*z_depth``: step k of
a pixel reads element k and checks escape against element k + 1, so an
orbit of ``depth`` usable steps needs one extra trailing element.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import List, Optional, Tuple

import numpy as np
from mpmath import mp

from perturbzoom.errors import InvalidDepth
from perturbzoom.numeric import HighPrecisionComplex
from perturbzoom.util.logging_setup import get_logger

# Doubled iterates beyond this on either axis end the orbit.
ORBIT_BOUND = 1024


@dataclass(frozen=True, eq=False)
class Orbit:
    points: np.ndarray
    depth: int
    truncated: bool = False

    def __post_init__(self) -> None:
        pts = np.array(self.points, dtype=np.complex128).reshape(-1)
        pts.setflags(write=False)
        object.__setattr__(self, "points", pts)

    def __len__(self) -> int:
        """Number of usable iteration steps."""
        return max(0, self.points.shape[0] - 1)

    @property
    def escape_step(self) -> Optional[int]:
        return len(self) if self.truncated else None

    @cached_property
    def components(self) -> Tuple[List[float], List[float]]:
        """Real and imaginary parts as plain float lists for scalar loops."""
        return self.points.real.tolist(), self.points.imag.tolist()


def _exceeds_bound(re2, im2) -> bool:
    return re2 > ORBIT_BOUND or im2 > ORBIT_BOUND or re2 < -ORBIT_BOUND or im2 < -ORBIT_BOUND


def compute_reference_orbit(center: HighPrecisionComplex, depth: int, *, dps: Optional[int] = None) -> Orbit:
    if isinstance(depth, bool) or not isinstance(depth, (int, np.integer)) or depth <= 0:
        raise InvalidDepth(depth)
    depth = int(depth)

    logger = get_logger()
    cr, ci = center.real, center.imag
    zr = cr - cr
    zi = ci - ci

    points = []
    truncated = False
    with mp.workdps(dps or mp.dps):
        for n in range(depth + 1):
            re2 = zr + zr
            im2 = zi + zi
            points.append(complex(float(re2), float(im2)))

            if _exceeds_bound(re2, im2):
                truncated = True
                break
            if n == depth:
                break

            zr, zi = zr * zr - zi * zi + cr, re2 * zi + ci

    orbit = Orbit(points=np.array(points, dtype=np.complex128), depth=depth, truncated=truncated)
    if truncated:
        logger.warning(
            "Reference %s escapes after %s of %s iterations; pixels reaching it are approximated as in-set",
            center, len(orbit), depth,
        )
    else:
        logger.debug("Reference orbit complete depth=%s dps=%s", depth, dps)
    return orbit
