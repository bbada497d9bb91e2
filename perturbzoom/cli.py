from __future__ import annotations

import argparse
import os
import subprocess
from typing import Optional

from perturbzoom.config import load_config, normalise_config
from perturbzoom.errors import PerturbZoomError
from perturbzoom.pipeline import render_still, render_zoom_sequence
from perturbzoom.util.logging_setup import LEVELS, get_logger, level_from_name, logging_session
from perturbzoom.util.manifest import build_manifest, write_manifest

def _git_commit() -> Optional[str]:
    try:
        r = subprocess.run(["git", "rev-parse", "HEAD"], capture_output=True, text=True, check=True)
        return r.stdout.strip()
    except (OSError, subprocess.CalledProcessError):
        return None

def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="perturbzoom", description="Deep-zoom Mandelbrot renderer using perturbation theory.")
    p.add_argument("--config", type=str, default=None, help="Path to config JSON. If omitted, built-in defaults are used.")
    p.add_argument("--log-level", type=str, default="INFO", choices=LEVELS, help="Log level.")
    p.add_argument("--log-file", type=str, default="perturbzoom.log", help="Log file path (rotating). Set empty to disable file logging.")
    p.add_argument("--manifest", type=str, default=os.path.join("artifacts", "run.json"), help="Run manifest path. Set empty to skip.")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--center", nargs=2, metavar=("RE", "IM"), default=None, help="Reference centre as decimal strings.")
    common.add_argument("--radius", type=float, default=None, help="Visible half-width of the shorter canvas side.")
    common.add_argument("--depth", type=int, default=None, help="Reference orbit iteration depth.")
    common.add_argument("--size", nargs=2, type=int, metavar=("W", "H"), default=None, help="Canvas size in pixels.")
    common.add_argument("--engine", choices=["numpy", "scalar"], default=None, help="Pixel evaluation engine.")
    common.add_argument("--workers", type=int, default=None, help="Worker processes (0 renders in-process).")
    common.add_argument("--click", nargs=2, type=int, action="append", metavar=("X", "Y"), default=[],
                        help="Recentre on pixel X Y and halve the radius. Repeatable, applied in order.")

    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("render", parents=[common], help="Render a single PNG.")
    r.add_argument("--output", type=str, default=None, help="Output PNG path.")

    z = sub.add_parser("zoom", parents=[common], help="Render a sequence of frames zooming into the centre.")
    z.add_argument("--frames-dir", type=str, default=None, help="Override frames_dir from config.")
    z.add_argument("--frames", type=int, default=None, help="Number of frames.")
    z.add_argument("--zoom-factor", type=float, default=None, help="Radius multiplier between frames.")

    return p

def _apply_overrides(cfg: dict, args: argparse.Namespace) -> dict:
    overrides = {
        "center": args.center,
        "radius": args.radius,
        "depth": args.depth,
        "engine": args.engine,
        "workers": args.workers,
        "output": getattr(args, "output", None),
        "frames_dir": getattr(args, "frames_dir", None),
        "frames": getattr(args, "frames", None),
        "zoom_factor": getattr(args, "zoom_factor", None),
    }
    if args.size:
        overrides["width"], overrides["height"] = args.size
    out = dict(cfg)
    out.update({k: v for k, v in overrides.items() if v is not None})
    return out

def main(argv: Optional[list] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    log_level = level_from_name(args.log_level)
    log_file = args.log_file if args.log_file and args.log_file.strip() else None

    with logging_session(level=log_level, log_file=log_file) as queue:
        logger = get_logger()
        try:
            cfg = normalise_config(_apply_overrides(load_config(args.config), args))
            clicks = [tuple(c) for c in args.click]

            if args.cmd == "render":
                result = render_still(cfg=cfg, clicks=clicks, log_queue=queue, log_level=log_level)
            elif args.cmd == "zoom":
                result = render_zoom_sequence(cfg=cfg, clicks=clicks, log_queue=queue, log_level=log_level)
            else:
                raise RuntimeError("Unknown command.")
        except (ValueError, PerturbZoomError) as e:
            logger.error("Invalid input: %s", e)
            return 2

        if args.manifest:
            manifest = build_manifest(command=args.cmd, config=cfg, result=result, git_commit=_git_commit())
            write_manifest(args.manifest, manifest)
            logger.info("Run manifest written: %s", args.manifest)
        return 0

if __name__ == "__main__":
    raise SystemExit(main())
