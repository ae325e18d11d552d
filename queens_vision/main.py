"""
Queens Puzzle Vision – Main Entry Point
=======================================

Commands:

  1. **Detect** – Recover the board (grid + colour regions) from an image
                  and optionally save it as JSON.
  2. **Solve**  – Solve a board previously saved by ``detect``.
  3. **Run**    – Detect and solve in one go.

Usage examples
--------------

**Detection**::

    python queens_vision.py detect \\
        --image puzzle.png \\
        --output board.json

**Solving a saved board**::

    python queens_vision.py solve --board board.json

**Both**::

    python queens_vision.py run --image puzzle.png --json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from typing import List, Optional, Sequence

import cv2

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger("queens_vision")


# ═══════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════

def build_config(args: argparse.Namespace):
    """Build a ``DetectionConfig`` from the common CLI flags."""
    from queens_vision.config import DetectionConfig

    return replace(
        DetectionConfig(),
        merge_threshold=args.merge_threshold,
        bounds_padding=args.padding,
        sample_inset=args.sample_inset,
        require_connected_regions=args.require_connected,
        detect_markers=not args.no_markers,
    )


def format_regions(regions: Sequence[Sequence[int]]) -> str:
    width = max(len(str(label)) for row in regions for label in row)
    return "\n".join(
        "  " + " ".join(str(label).rjust(width) for label in row)
        for row in regions
    )


def format_solution(
    solution: Sequence[Sequence[bool]],
    regions: Optional[Sequence[Sequence[int]]] = None,
) -> str:
    lines: List[str] = []
    for i, row in enumerate(solution):
        cells = []
        for j, queen in enumerate(row):
            if queen:
                cells.append("Q")
            elif regions is not None:
                cells.append(chr(ord("a") + regions[i][j] % 26))
            else:
                cells.append(".")
        lines.append("  " + " ".join(cells))
    return "\n".join(lines)


def _read_image(path: str):
    image = cv2.imread(path)
    if image is None:
        log.error("Could not read image: %s", path)
        sys.exit(1)
    return image


def _detect(args: argparse.Namespace):
    from queens_vision.errors import PuzzleError
    from queens_vision.inference.pipeline import BoardDetectionPipeline

    image = _read_image(args.image)
    pipeline = BoardDetectionPipeline(config=build_config(args))
    try:
        result = pipeline.detect(image, progress=lambda text: log.info(text))
    except PuzzleError as exc:
        log.error("Detection failed [%s]: %s", exc.kind, exc)
        sys.exit(1)
    return pipeline, result.board


def _print_board(board) -> None:
    print("\n" + "=" * 60)
    print("  QUEENS BOARD")
    print("=" * 60)
    print(f"  Size           : {board.size}x{board.size}")
    print(f"  Bounds         : x={board.bounds.x} y={board.bounds.y} "
          f"w={board.bounds.width} h={board.bounds.height}")
    print("  Regions        :")
    print(format_regions(board.regions))
    print("=" * 60 + "\n")


# ═══════════════════════════════════════════════════════════════════════
# Commands
# ═══════════════════════════════════════════════════════════════════════

def cmd_detect(args: argparse.Namespace) -> None:
    """Detect the board and optionally save it."""
    _, board = _detect(args)

    if args.json:
        print(json.dumps(board.to_dict(), indent=2))
    else:
        _print_board(board)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump(board.to_dict(), f, indent=2)
        log.info("Board saved to %s", args.output)


def cmd_solve(args: argparse.Namespace) -> None:
    """Solve a board saved by ``detect``."""
    from queens_vision.errors import PuzzleError
    from queens_vision.inference.pipeline import BoardDetectionPipeline, BoardModel

    with open(args.board, encoding="utf-8") as f:
        board = BoardModel.from_dict(json.load(f))

    try:
        solution = BoardDetectionPipeline().solve(board)
    except PuzzleError as exc:
        log.error("Solve failed [%s]: %s", exc.kind, exc)
        sys.exit(1)
    _print_solution(board, solution, as_json=args.json)


def cmd_run(args: argparse.Namespace) -> None:
    """Detect, then solve."""
    from queens_vision.errors import PuzzleError

    pipeline, board = _detect(args)
    try:
        solution = pipeline.solve(board)
    except PuzzleError as exc:
        log.error("Solve failed [%s]: %s", exc.kind, exc)
        sys.exit(1)
    _print_solution(board, solution, as_json=args.json)


def _print_solution(board, solution, as_json: bool) -> None:
    if as_json:
        print(json.dumps({"board": board.to_dict(), "solution": solution}, indent=2))
        return

    print("\n" + "=" * 60)
    print("  QUEENS SOLUTION")
    print("=" * 60)
    print(format_solution(solution, board.regions))
    print("=" * 60 + "\n")


# ═══════════════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════════════

def _add_detection_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument("--image", required=True, help="Path to puzzle image")
    p.add_argument("--merge-threshold", type=float, default=20.0,
                   help="Max distance between grid lines merged together")
    p.add_argument("--padding", type=int, default=20,
                   help="Padding around the detected board when cropping")
    p.add_argument("--sample-inset", type=int, default=20,
                   help="Distance of colour samples from cell corners")
    p.add_argument("--require-connected", action="store_true",
                   help="Reject boards whose colour regions are not connected")
    p.add_argument("--no-markers", action="store_true",
                   help="Skip pre-filled marker detection")
    p.add_argument("--json", action="store_true", help="Print JSON output")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="queens_vision",
        description="Queens puzzle board detection and solving.",
    )
    sub = parser.add_subparsers(dest="command", help="Available commands")

    # ── detect ──
    p_det = sub.add_parser("detect", help="Detect the board in an image")
    _add_detection_flags(p_det)
    p_det.add_argument("--output", default=None,
                       help="Write the board model to this JSON file")

    # ── solve ──
    p_sol = sub.add_parser("solve", help="Solve a saved board")
    p_sol.add_argument("--board", required=True,
                       help="Board JSON written by 'detect --output'")
    p_sol.add_argument("--json", action="store_true", help="Print JSON output")

    # ── run ──
    p_run = sub.add_parser("run", help="Detect and solve an image")
    _add_detection_flags(p_run)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    dispatch = {
        "detect": cmd_detect,
        "solve": cmd_solve,
        "run": cmd_run,
    }

    dispatch[args.command](args)


if __name__ == "__main__":
    main()
