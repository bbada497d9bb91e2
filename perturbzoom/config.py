import json
from typing import Any, Dict, Optional

from perturbzoom.numeric import HighPrecisionComplex
from perturbzoom.palette import DEFAULT_CONTROL_COLORS
from perturbzoom.params import RenderParameters

DEFAULTS: Dict[str, Any] = {
    "width": 1280,
    "height": 720,
    "center": ["0", "0"],
    "radius": 2.0,
    "depth": 1000,
    "colors": [list(c) for c in DEFAULT_CONTROL_COLORS],
    "engine": "numpy",
    "workers": 0,
    "band_height": 32,
    "output": "mandelbrot.png",
    "frames_dir": "frames",
    "frames": 10,
    "zoom_factor": 0.5,
}

def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    if not config_path:
        return dict(DEFAULTS)
    with open(config_path, "r", encoding="utf-8") as f:
        cfg = json.load(f)
    if not isinstance(cfg, dict):
        raise ValueError("Config JSON must be an object.")
    return cfg

def normalise_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(DEFAULTS)
    out.update(cfg)

    try:
        for key in ("width", "height", "depth", "workers", "band_height", "frames"):
            out[key] = int(out[key])
        out["radius"] = float(out["radius"])
        out["zoom_factor"] = float(out["zoom_factor"])
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid numeric config value: {e}") from e

    if out["width"] <= 0 or out["height"] <= 0:
        raise ValueError("width/height must be positive.")
    if out["depth"] <= 0:
        raise ValueError("depth must be positive.")
    if not out["radius"] > 0:
        raise ValueError("radius must be positive.")
    if out["frames"] <= 0:
        raise ValueError("frames must be positive.")
    if not 0 < out["zoom_factor"]:
        raise ValueError("zoom_factor must be positive.")
    if out["workers"] < 0:
        raise ValueError("workers must be >= 0.")

    center = out["center"]
    if not (isinstance(center, (list, tuple)) and len(center) == 2):
        raise ValueError("center must be [re, im].")
    # Keep the centre as text; floats would drop digits.
    out["center"] = [str(center[0]), str(center[1])]

    colors = out["colors"]
    if not (isinstance(colors, (list, tuple)) and len(colors) >= 2):
        raise ValueError("colors must list at least two [r, g, b] entries.")
    out["colors"] = [[int(c) for c in color] for color in colors]

    if out["engine"] not in ("numpy", "scalar"):
        raise ValueError("engine must be one of: numpy, scalar")
    out["output"] = str(out["output"])
    out["frames_dir"] = str(out["frames_dir"])
    return out

def params_from_config(cfg: Dict[str, Any]) -> RenderParameters:
    return RenderParameters(
        center=HighPrecisionComplex.from_strings(*cfg["center"]),
        radius=cfg["radius"],
        depth=cfg["depth"],
        width=cfg["width"],
        height=cfg["height"],
        control_colors=tuple(tuple(c) for c in cfg["colors"]),
    )
