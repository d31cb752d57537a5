"""
Command-line interface for exporting landmark captures.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console

from mocap_export import __version__
from mocap_export.config.settings import Settings, read_yaml
from mocap_export.core.exceptions import ExportError
from mocap_export.core.pipeline import MotionExporter
from mocap_export.data.landmark_io import load_fps, load_frames

console = Console()


def setup_logging(verbose: bool = False):
    """Configure logging for the command line tool."""
    formatter = logging.Formatter(
        fmt='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)
    root_logger.addHandler(console_handler)

    logging.getLogger('mocap_export').setLevel(logging.DEBUG if verbose else logging.INFO)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mocap-export",
        description="Export pose landmark captures to BVH and rotation animation files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Positional BVH for Blender
  mocap-export capture.json --bvh take.bvh

  # Mixamo-named rotation animation
  mocap-export capture.json --glb take.glb

  # Both, with heavier smoothing
  mocap-export capture.json --bvh take.bvh --glb take.glb --alpha 0.3
        """,
    )

    parser.add_argument("input", type=Path, help="Landmark capture (JSON)")
    parser.add_argument("--bvh", type=Path, help="Positional BVH output path")
    parser.add_argument("--glb", type=Path, help="Rotation animation output path (binary glTF)")
    parser.add_argument("--config", type=Path, help="Configuration file (YAML)")
    parser.add_argument("--alpha", type=float, help="Smoothing factor in (0, 1]")
    parser.add_argument("--fps", type=float, help="Frame rate written to the BVH file")
    parser.add_argument("--no-smoothing", action="store_true", help="Export raw landmarks")
    parser.add_argument(
        "--all-bone-tracks",
        action="store_true",
        help="Write rotation tracks for head, hands and feet as well",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def load_settings(args: argparse.Namespace, recorded_fps: Optional[float] = None) -> Settings:
    """
    Settings from the config file with command line overrides applied.

    The frame rate comes from --fps, else the config file, else the rate
    recorded in the capture, else the default.
    """
    data = read_yaml(args.config) if args.config else {}
    settings = Settings.from_dict(data)

    if recorded_fps is not None and "fps" not in (data.get("export") or {}):
        settings.export.fps = recorded_fps

    if args.alpha is not None:
        settings.smoothing.alpha = args.alpha
    if args.fps is not None:
        settings.export.fps = args.fps
    if args.no_smoothing:
        settings.smoothing.enabled = False
    if args.all_bone_tracks:
        settings.export.leaf_rotation_tracks = True

    return settings


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.bvh and not args.glb:
        parser.error("at least one of --bvh or --glb is required")

    setup_logging(args.verbose)

    try:
        frames = load_frames(args.input)
        settings = load_settings(args, recorded_fps=load_fps(args.input))
    except (ExportError, OSError) as e:
        console.print(f"[red]Could not read input:[/red] {e}")
        return 1

    issues = settings.validate()
    if issues:
        console.print("[red]Invalid configuration:[/red]")
        for issue in issues:
            console.print(f"  - {issue}")
        return 2

    try:
        console.print(f"[bold green]Exporting:[/bold green] {args.input} ({len(frames)} frames)")

        result = MotionExporter(settings).export(
            frames,
            bvh_path=args.bvh,
            rotation_path=args.glb,
        )
    except (ExportError, OSError) as e:
        console.print(f"[red]Export failed:[/red] {e}")
        return 1

    if result.bvh_path:
        console.print(f"[green]✓[/green] Exported BVH: {result.bvh_path}")
    if result.rotation_path:
        console.print(f"[green]✓[/green] Exported animation: {result.rotation_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
