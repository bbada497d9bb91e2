from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, ProcessPoolExecutor, wait
from typing import Iterator, List, Optional, Tuple

import numpy as np
from PIL import Image

from perturbzoom.errors import InsufficientOrbitData, RenderCancelled
from perturbzoom.iterate import iterate_block, iterate_pixel
from perturbzoom.orbit import Orbit, compute_reference_orbit
from perturbzoom.palette import Color, Gradient, build_gradient, colorize, colorize_block
from perturbzoom.params import RenderParameters
from perturbzoom.util.logging_setup import get_logger, logging_initialiser
from perturbzoom.viewport import Viewport, offset_grid, pixel_offset

ENGINES = ("numpy", "scalar")

_G = {}


class PixelBuffer:
    """RGB output addressed by ``(x, y)`` pixel coordinates."""

    def __init__(self, width: int, height: int) -> None:
        self.width = int(width)
        self.height = int(height)
        self._data = np.zeros((self.height, self.width, 3), dtype=np.uint8)

    def __getitem__(self, xy: Tuple[int, int]) -> Color:
        x, y = xy
        r, g, b = self._data[y, x]
        return (int(r), int(g), int(b))

    def __setitem__(self, xy: Tuple[int, int], color: Color) -> None:
        x, y = xy
        self._data[y, x] = color

    def coordinates(self) -> Iterator[Tuple[int, int]]:
        for y in range(self.height):
            for x in range(self.width):
                yield x, y

    def write_band(self, y0: int, rows: np.ndarray) -> None:
        self._data[y0:y0 + rows.shape[0]] = rows

    def as_array(self) -> np.ndarray:
        return self._data

    def to_image(self) -> Image.Image:
        return Image.fromarray(self._data)


class CancelToken:
    def __init__(self, counter: "GenerationCounter", generation: int) -> None:
        self._counter = counter
        self.generation = generation

    @property
    def cancelled(self) -> bool:
        return self._counter.current != self.generation

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise RenderCancelled(self.generation)


class GenerationCounter:
    """Each ``advance()`` supersedes every token handed out before it."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._generation = 0

    @property
    def current(self) -> int:
        with self._lock:
            return self._generation

    def advance(self) -> CancelToken:
        with self._lock:
            self._generation += 1
            return CancelToken(self, self._generation)


def _init_worker(orbit, viewport, gradient, engine, log_queue, log_level):
    _G["orbit"] = orbit
    _G["viewport"] = viewport
    _G["gradient"] = gradient
    _G["engine"] = engine
    logging_initialiser(log_queue, log_level)


def _evaluate_band(orbit: Orbit, viewport: Viewport, gradient: Gradient, engine: str,
                   y0: int, y1: int) -> np.ndarray:
    max_iter = len(orbit)

    if engine == "numpy":
        deltas = offset_grid(viewport, y0, y1)
        iters, mags = iterate_block(orbit, deltas)
        return colorize_block(gradient, iters, mags, max_iter)

    band = np.zeros((y1 - y0, viewport.width, 3), dtype=np.uint8)
    for yi, y in enumerate(range(y0, y1)):
        for x in range(viewport.width):
            result = iterate_pixel(orbit, pixel_offset(viewport, x, y))
            band[yi, x] = colorize(gradient, result, max_iter)
    return band


def _render_band(y0_y1: Tuple[int, int]) -> Tuple[int, np.ndarray]:
    # Pool entry point; _G is filled once per worker process by _init_worker.
    y0, y1 = y0_y1
    return y0, _evaluate_band(_G["orbit"], _G["viewport"], _G["gradient"], _G["engine"], y0, y1)


def _bands(height: int, band_height: int) -> List[Tuple[int, int]]:
    step = max(1, int(band_height))
    return [(y, min(height, y + step)) for y in range(0, height, step)]


def render_frame(
    orbit: Orbit,
    viewport: Viewport,
    gradient: Gradient,
    *,
    engine: str = "numpy",
    workers: int = 0,
    band_height: int = 32,
    token: Optional[CancelToken] = None,
    log_queue=None,
    log_level: int = logging.INFO,
) -> PixelBuffer:
    """Evaluate every pixel of ``viewport`` against ``orbit``.

    Rows are split into bands of ``band_height``. With ``workers == 0`` the
    bands run in this process; otherwise a process pool evaluates them. The
    token is checked between bands and a superseded render raises
    ``RenderCancelled`` without touching the caller's state.
    In-process bands take their orbit, viewport and gradient as arguments,
    so renders running in separate threads do not interfere.
    """
    if engine not in ENGINES:
        raise ValueError(f"engine must be one of: {', '.join(ENGINES)}")
    if len(orbit) == 0:
        raise InsufficientOrbitData()
    logger = get_logger()
    buf = PixelBuffer(viewport.width, viewport.height)
    bands = _bands(viewport.height, band_height)
    initargs = (orbit, viewport, gradient, engine, log_queue, log_level)

    logger.info("Frame render start %sx%s radius=%s iterations=%s engine=%s workers=%s",
                viewport.width, viewport.height, viewport.radius, len(orbit), engine, workers)
    start = time.time()

    if workers <= 0:
        for y0, y1 in bands:
            if token is not None:
                token.raise_if_cancelled()
            buf.write_band(y0, _evaluate_band(orbit, viewport, gradient, engine, y0, y1))
    else:
        with ProcessPoolExecutor(max_workers=workers, initializer=_init_worker, initargs=initargs) as pool:
            pending = {pool.submit(_render_band, band) for band in bands}
            try:
                while pending:
                    done, pending = wait(pending, timeout=0.25, return_when=FIRST_COMPLETED)
                    for fut in done:
                        y0, rows = fut.result()
                        buf.write_band(y0, rows)
                    if token is not None:
                        token.raise_if_cancelled()
            except RenderCancelled:
                pool.shutdown(wait=False, cancel_futures=True)
                logger.info("Frame render generation %s cancelled", token.generation)
                raise

    logger.info("Frame render done in %.2fs", time.time() - start)
    return buf


class FrameRenderer:
    """Holds the current parameters with their orbit and gradient.

    ``update`` swaps in a new parameter value. The orbit is recomputed only
    when the centre or depth changed, and the gradient only when the colours
    changed; both are replaced whole.
    """

    def __init__(self, *, engine: str = "numpy", workers: int = 0, band_height: int = 32,
                 log_queue=None, log_level: int = logging.INFO) -> None:
        self.engine = engine
        self.workers = workers
        self.band_height = band_height
        self.log_queue = log_queue
        self.log_level = log_level
        self.params: Optional[RenderParameters] = None
        self.orbit: Optional[Orbit] = None
        self.gradient: Optional[Gradient] = None
        self._generations = GenerationCounter()
        self._lock = threading.Lock()

    def update(self, params: RenderParameters) -> CancelToken:
        orbit = self.orbit
        gradient = self.gradient
        previous = self.params
        if previous is None or previous.orbit_key != params.orbit_key:
            orbit = compute_reference_orbit(params.center, params.depth, dps=params.precision)
        if previous is None or previous.control_colors != params.control_colors:
            gradient = build_gradient(params.control_colors)
        with self._lock:
            self.params, self.orbit, self.gradient = params, orbit, gradient
            return self._generations.advance()

    def render(self, token: Optional[CancelToken] = None) -> PixelBuffer:
        with self._lock:
            params, orbit, gradient = self.params, self.orbit, self.gradient
        if params is None:
            raise RuntimeError("update() must be called before render().")
        return render_frame(
            orbit, params.viewport, gradient,
            engine=self.engine, workers=self.workers, band_height=self.band_height,
            token=token, log_queue=self.log_queue, log_level=self.log_level,
        )
