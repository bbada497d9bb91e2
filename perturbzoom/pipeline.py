from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Iterable, Optional, Tuple

from PIL import Image
from tqdm import tqdm

from perturbzoom.config import params_from_config
from perturbzoom.numeric import backend_name
from perturbzoom.orbit import Orbit, compute_reference_orbit
from perturbzoom.palette import build_gradient
from perturbzoom.params import RenderParameters
from perturbzoom.renderers.frame import render_frame
from perturbzoom.util.logging_setup import get_logger

def _ensure_dir(path: str) -> None:
    if path:
        os.makedirs(path, exist_ok=True)

def _save_image(img: Image.Image, path: str) -> str:
    _ensure_dir(os.path.dirname(path))
    img.save(path, format="PNG", optimize=True)
    return path

def apply_clicks(params: RenderParameters, clicks: Iterable[Tuple[int, int]]) -> RenderParameters:
    for x, y in clicks:
        params = params.recentered_on_pixel(x, y)
    return params

def orbit_summary(params: RenderParameters, orbit: Orbit) -> Dict[str, Any]:
    return {
        "center": [str(params.center.real), str(params.center.imag)],
        "radius": params.radius,
        "depth": params.depth,
        "orbit_length": len(orbit),
        "truncated": orbit.truncated,
        "precision_dps": params.precision,
        "mp_backend": backend_name(),
    }

def render_still(
    *,
    cfg: Dict[str, Any],
    clicks: Iterable[Tuple[int, int]] = (),
    log_queue=None,
    log_level: int = logging.INFO,
) -> Dict[str, Any]:
    logger = get_logger()
    params = apply_clicks(params_from_config(cfg), clicks)
    logger.info("Render start center=%s radius=%s depth=%s size=%sx%s",
                params.center, params.radius, params.depth, params.width, params.height)

    start = time.time()
    orbit = compute_reference_orbit(params.center, params.depth, dps=params.precision)
    logger.info("Reference orbit ready length=%s in %.2fs (mp backend=%s)",
                len(orbit), time.time() - start, backend_name())

    buf = render_frame(
        orbit, params.viewport, build_gradient(params.control_colors),
        engine=cfg["engine"], workers=cfg["workers"], band_height=cfg["band_height"],
        log_queue=log_queue, log_level=log_level,
    )
    path = _save_image(buf.to_image(), cfg["output"])
    logger.info("Saved %s", path)

    summary = orbit_summary(params, orbit)
    summary["output"] = path
    return summary

def render_zoom_sequence(
    *,
    cfg: Dict[str, Any],
    clicks: Iterable[Tuple[int, int]] = (),
    log_queue=None,
    log_level: int = logging.INFO,
    progress: Optional[bool] = None,
) -> Dict[str, Any]:
    """Render ``frames`` images, scaling the radius by ``zoom_factor`` each time.

    Centre and depth stay fixed, so one reference orbit serves every frame.
    """
    logger = get_logger()
    params = apply_clicks(params_from_config(cfg), clicks)
    frames_dir = cfg["frames_dir"]
    total = cfg["frames"]
    _ensure_dir(frames_dir)

    orbit = compute_reference_orbit(params.center, params.depth, dps=params.precision)
    gradient = build_gradient(params.control_colors)
    logger.info("Zoom sequence start frames=%s factor=%s orbit_length=%s",
                total, cfg["zoom_factor"], len(orbit))

    disable = None if progress is None else not progress
    for i in tqdm(range(total), desc="frames", disable=disable):
        buf = render_frame(
            orbit, params.viewport, gradient,
            engine=cfg["engine"], workers=cfg["workers"], band_height=cfg["band_height"],
            log_queue=log_queue, log_level=log_level,
        )
        path = _save_image(buf.to_image(), os.path.join(frames_dir, f"frame_{i:06d}.png"))
        logger.info("Saved frame %s -> %s (radius=%s)", i, path, params.radius)
        if i + 1 < total:
            params = params.zoomed(cfg["zoom_factor"])

    summary = orbit_summary(params, orbit)
    summary.update({"frames_dir": frames_dir, "frames": total, "final_radius": params.radius})
    return summary
