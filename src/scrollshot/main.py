"""
Scrollshot Command Line
=======================

Capture a scrolling window (or screen region) into one tall image.

Usage:
    scrollshot --window "Untitled - Notepad"
    scrollshot --region 100 120 800 600 --window "My App" --max-steps 50
    python -m scrollshot --window "Docs" --method enhanced --debug-seams

Ctrl+C stops the capture after the current step; the composite gathered
so far is still saved.

Exit Codes:
    0 - Composite saved (including partial composites)
    1 - Capture could not start (invalid target, viewport, no frame)
    2 - Desktop backends unavailable
"""

import argparse
import logging
import signal
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import cv2

from scrollshot.agent import CancellationToken, ScrollCapture
from scrollshot.capture import Frame, MssFrameSource
from scrollshot.config import Settings, load_config, setup_logging
from scrollshot.errors import ScrollCaptureError
from scrollshot.models import CaptureMode, CaptureResult, Viewport
from scrollshot.observability import render_seam_overlay
from scrollshot.scrolling import KeyboardInputSimulator, WindowActivator


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scrollshot",
        description="Scrolling screenshot capture and stitching",
    )
    parser.add_argument(
        "--window",
        type=str,
        required=True,
        help="Title of the window to scroll and capture",
    )
    parser.add_argument(
        "--region",
        type=int,
        nargs=4,
        metavar=("LEFT", "TOP", "WIDTH", "HEIGHT"),
        default=None,
        help="Screen region to capture (default: the whole window)",
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Maximum scroll steps (default: from config, 200)",
    )
    parser.add_argument(
        "--mode",
        choices=[m.value for m in CaptureMode],
        default=None,
        help="Scroll strategy preference",
    )
    parser.add_argument(
        "--method",
        choices=["exhaustive", "enhanced"],
        default=None,
        help="Overlap estimation method",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output PNG path (default: timestamped file in the output directory)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML config file",
    )
    parser.add_argument(
        "--debug-seams",
        action="store_true",
        help="Also save a copy with tile seams drawn",
    )
    return parser


def _output_path(settings: Settings, explicit: Optional[str]) -> Path:
    if explicit:
        return Path(explicit)
    name = datetime.now().strftime(settings.output.filename_pattern)
    return Path(settings.output.directory) / name


def _save(image: Frame, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(path), image.to_bgr()):
        raise OSError(f"Could not write {path}")
    logger.info(f"Saved {image.width}x{image.height} composite to {path}")


def save_result(result: CaptureResult, path: Path, debug_seams: bool = False) -> List[Path]:
    """
    Write the composite (and optionally its seam overlay) as PNG.

    Returns:
        Paths written
    """
    _save(result.image, path)
    written = [path]

    if debug_seams:
        seams_path = path.with_name(f"{path.stem}_seams{path.suffix}")
        _save(render_seam_overlay(result.image, result.tile_offsets), seams_path)
        written.append(seams_path)

    return written


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = load_config(args.config)
    if args.method:
        settings.stitching.method = args.method
    setup_logging(settings)

    try:
        source = MssFrameSource()
        activator = WindowActivator()
        keyboard = KeyboardInputSimulator()
    except (ImportError, NotImplementedError) as e:
        logger.error(f"Desktop backends unavailable ({e}); install scrollshot[desktop]")
        return 2

    if args.region:
        viewport = Viewport(
            left=args.region[0],
            top=args.region[1],
            width=args.region[2],
            height=args.region[3],
        )
    else:
        viewport = activator.viewport(args.window) or Viewport(left=0, top=0, width=0, height=0)

    token = CancellationToken()
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: token.cancel())

    capture = ScrollCapture(
        frame_source=source,
        activator=activator,
        input_simulator=keyboard,
        settings=settings,
    )

    try:
        result = capture.capture(
            args.window,
            viewport,
            max_steps=args.max_steps,
            mode=CaptureMode(args.mode) if args.mode else None,
            cancel_token=token,
        )
    except ScrollCaptureError as e:
        logger.error(f"Capture failed: {e}")
        return 1
    finally:
        signal.signal(signal.SIGINT, previous_handler)
        source.close()

    path = _output_path(settings, args.output)
    save_result(result, path, debug_seams=args.debug_seams or settings.output.debug_seams)

    print(f"{path} ({result!r})")
    for warning in result.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
