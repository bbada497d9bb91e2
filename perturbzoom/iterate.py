"""Per-pixel perturbation iteration.

For a pixel at offset ``dc`` from the reference, the delta ``dn`` evolves as

    dn <- dn * (2*z_k + dn) + dc

which is ``2*z_k*dn + dn**2 + dc`` with the doubling already folded into the
stored orbit. Both the reference and the pixel start from ``z_0 = 0``, so
``dn`` starts at 0 and the first update gives ``dc``. The pixel's own iterate
is ``z_{k+1} + dn``, recovered as ``points[k+1]/2 + dn``.

Both engines spell the complex product out over real and imaginary parts in
the same order, so a pixel gets bit-identical results from either one.
"""

from __future__ import annotations

from typing import NamedTuple, Tuple

import numpy as np

from perturbzoom.errors import InsufficientOrbitData
from perturbzoom.orbit import Orbit

ESCAPE_RADIUS_SQUARED = 256.0


class PixelResult(NamedTuple):
    iteration: int
    magnitude: float


def iterate_pixel(orbit: Orbit, delta: complex) -> PixelResult:
    max_iter = len(orbit)
    if max_iter == 0:
        raise InsufficientOrbitData()

    re, im = orbit.components
    d0 = complex(delta)
    d0r, d0i = d0.real, d0.imag
    dr = di = 0.0
    iteration = 0
    while True:
        sr = re[iteration] + dr
        si = im[iteration] + di
        dr, di = dr * sr - di * si + d0r, dr * si + di * sr + d0i
        iteration += 1
        zr = re[iteration] * 0.5 + dr
        zi = im[iteration] * 0.5 + di
        magnitude = zr * zr + zi * zi
        # NaN compares false and escapes
        if not magnitude < ESCAPE_RADIUS_SQUARED or iteration >= max_iter:
            return PixelResult(iteration, magnitude)


def iterate_block(orbit: Orbit, deltas: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Vectorised ``iterate_pixel`` over an array of offsets.

    Returns ``(iterations, magnitudes)`` with the shape of ``deltas``.
    """
    max_iter = len(orbit)
    if max_iter == 0:
        raise InsufficientOrbitData()

    re = orbit.points.real
    im = orbit.points.imag
    d0 = np.asarray(deltas, dtype=np.complex128)
    shape = d0.shape
    d0 = d0.reshape(-1)
    d0r = d0.real.copy()
    d0i = d0.imag.copy()

    dr = np.zeros(d0.shape, dtype=np.float64)
    di = np.zeros(d0.shape, dtype=np.float64)
    iters = np.zeros(d0.shape, dtype=np.int64)
    mags = np.zeros(d0.shape, dtype=np.float64)
    active = np.arange(d0.shape[0])

    with np.errstate(over="ignore", invalid="ignore", under="ignore"):
        for k in range(max_iter):
            if active.size == 0:
                break
            ar = dr[active]
            ai = di[active]
            sr = re[k] + ar
            si = im[k] + ai
            ar, ai = ar * sr - ai * si + d0r[active], ar * si + ai * sr + d0i[active]
            dr[active] = ar
            di[active] = ai
            iters[active] = k + 1

            zr = re[k + 1] * 0.5 + ar
            zi = im[k + 1] * 0.5 + ai
            m = zr * zr + zi * zi
            mags[active] = m
            active = active[m < ESCAPE_RADIUS_SQUARED]

    return iters.reshape(shape), mags.reshape(shape)
