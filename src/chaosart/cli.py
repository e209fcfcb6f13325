"""
CLI entry point for the chaos equation visualizer.

Usage:
    chaosart render -o out.mp4 [options]
    chaosart render --png-dir frames/ [options]
    chaosart preview [options]
"""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Optional

from chaosart.core.engine import ChaosEngine, EngineAlreadyCreatedError, EngineConfig
from chaosart.render.encoder import encode_video, write_png_frames
from chaosart.render.rasterizer import PointRasterizer, RenderConfig

PROFILES = {
    "low": {"width": 854, "height": 480, "fps": 30, "quality": "fast"},
    "medium": {"width": 1280, "height": 720, "fps": 60, "quality": "medium"},
    "high": {"width": 1920, "height": 1080, "fps": 60, "quality": "high"},
}


def _progress_bar(current: int, total: int, width: int = 35):
    """Print a progress bar to stdout."""
    pct = current / max(total, 1) * 100
    filled = int(width * current / max(total, 1))
    bar = "#" * filled + "-" * (width - filled)
    if sys.stdout.isatty():
        sys.stdout.write(f"\r[{bar}] {pct:5.1f}%  frame {current}/{total}")
        sys.stdout.flush()
        if current >= total:
            sys.stdout.write("\n")
    else:
        if current % max(1, total // 20) == 0 or current >= total:
            print(f"{pct:5.1f}%  frame {current}/{total}", flush=True)


def _print_equation(equation: str):
    print("\nEquation:")
    for line in equation.split("\n"):
        print(f"  {line}")


def load_engine_config(path: Optional[Path]) -> EngineConfig:
    """Read an EngineConfig from a JSON object file, or return the defaults."""
    if path is None:
        return EngineConfig()
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a JSON object: {path}")
    return EngineConfig.from_dict(data)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chaosart",
        description="Animated visualizer for randomized quadratic chaos equations",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser):
        p.add_argument("--width", type=int, default=None, help="Frame width (overrides profile)")
        p.add_argument("--height", type=int, default=None, help="Frame height (overrides profile)")
        p.add_argument("-f", "--fps", type=int, default=None, help="Frames per second (overrides profile)")
        p.add_argument("--seed", type=int, default=None, help="Random seed for coefficients and colors")
        p.add_argument(
            "--config", type=Path, default=None,
            help="JSON file with engine settings (num_points, max_age, t_increment_base, ...)",
        )
        p.add_argument("--no-glow", action="store_true", help="Disable bloom")
        p.add_argument("--no-vignette", action="store_true", help="Disable vignette")

    render = sub.add_parser("render", help="Render frames to an MP4 or PNG sequence")
    add_common(render)
    output = render.add_mutually_exclusive_group()
    output.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Output MP4 path (default: chaosart.mp4)",
    )
    output.add_argument("--png-dir", type=Path, default=None, help="Write PNG frames to this directory")
    render.add_argument(
        "-p", "--profile", type=str, default="medium",
        choices=sorted(PROFILES),
        help="Target profile (low: 480p 30fps, medium: 720p 60fps, high: 1080p 60fps)",
    )
    length = render.add_mutually_exclusive_group()
    length.add_argument("-n", "--frames", type=int, default=None, help="Number of frames to render")
    length.add_argument("-d", "--duration", type=float, default=None, help="Seconds of video to render (default: 10)")
    render.add_argument(
        "-q", "--quality", type=str, default=None,
        choices=["high", "medium", "fast"],
        help="Encoding quality (defaults to profile quality)",
    )

    preview = sub.add_parser("preview", help="Open an interactive preview window")
    add_common(preview)

    return parser


def _render_config(args, width: int, height: int, fps: int) -> RenderConfig:
    return RenderConfig(
        width=width,
        height=height,
        fps=fps,
        glow_enabled=not args.no_glow,
        vignette_strength=0.0 if args.no_vignette else 0.25,
    )


def run_render(args, engine: ChaosEngine) -> int:
    p_cfg = PROFILES[args.profile]
    width = args.width or p_cfg["width"]
    height = args.height or p_cfg["height"]
    fps = args.fps or p_cfg["fps"]
    quality = args.quality or p_cfg["quality"]

    if args.frames is not None:
        total_frames = args.frames
    else:
        total_frames = int((args.duration or 10.0) * fps)
    if total_frames <= 0:
        print("Error: nothing to render (frame count must be positive)", file=sys.stderr)
        return 1

    rasterizer = PointRasterizer(_render_config(args, width, height, fps))

    print(f"Rendering {total_frames} frames at {width}x{height} @ {fps}fps")
    print(f"  Profile: {args.profile}, Quality: {quality}")
    _print_equation(engine.equation)
    engine.register_listener(_print_equation)

    t0 = time.time()
    frame_gen = rasterizer.render_frames(engine, total_frames)
    try:
        if args.png_dir is not None:
            paths = write_png_frames(
                frame_gen,
                args.png_dir,
                total_frames=total_frames,
                progress_callback=_progress_bar,
            )
            output_desc = f"{len(paths)} PNG frames in {args.png_dir}"
        else:
            output = args.output or Path("chaosart.mp4")
            encode_video(
                frame_iterator=frame_gen,
                output_path=output,
                width=width,
                height=height,
                fps=fps,
                quality=quality,
                total_frames=total_frames,
                progress_callback=_progress_bar,
            )
            file_size_mb = output.stat().st_size / 1024 / 1024
            output_desc = f"{output} ({file_size_mb:.1f} MB)"
    finally:
        engine.remove_listener(_print_equation)

    elapsed = time.time() - t0
    print(f"\nDone! Render took {elapsed:.1f}s ({total_frames / max(elapsed, 0.01):.1f} fps)")
    print(f"  Output: {output_desc}")
    return 0


def run_preview(args, engine: ChaosEngine) -> int:
    from chaosart.preview import PreviewWindow

    config = _render_config(
        args,
        args.width or 960,
        args.height or 540,
        args.fps or 60,
    )
    PreviewWindow(engine, config).run()
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        engine_cfg = load_engine_config(args.config)
        engine = ChaosEngine.get_instance(engine_cfg, seed=args.seed)
    except (FileNotFoundError, ValueError, TypeError, EngineAlreadyCreatedError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        if args.command == "render":
            return run_render(args, engine)
        return run_preview(args, engine)
    except (ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
