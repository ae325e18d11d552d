"""
Grid Validation & Bounds Projection
===================================

Stage 3 – **GridValidator**
    A clustered line survives only if it crosses at least one line of the
    other orientation (both coordinates inside the other line's span ±
    ``tolerance``).  The check is deliberately *directional*:

      1. horizontal lines are checked against **all** vertical candidates;
      2. vertical lines are checked against the **already validated**
         horizontal lines only.

    The vertical pass consumes the horizontal pass's output, so the two
    passes always run in this order.  Survivors are sorted, the board size is
    ``min(len(h), len(v)) - 1`` and an N×N cell grid is built from the
    first ``N + 1`` lines of each orientation.

Stage 4 – **BoundsProjector**
    ``compute_bounds`` takes the grid-line extrema, pads them and clamps
    the origin at zero.  ``project_to_bounds`` re-expresses every line and
    cell relative to that box.  Projection returns new objects, so a
    ``GridDetection`` can only ever be shifted by producing a new one.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import List, Sequence, Tuple

from queens_vision.detection.lines import HorizontalLine, VerticalLine
from queens_vision.errors import InsufficientGridLines

log = logging.getLogger(__name__)


# ── Data classes ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class CellCoordinate:
    """Axis-aligned cell box between two consecutive lines per axis."""
    x1: float
    y1: float
    x2: float
    y2: float
    center: Point

    def shifted(self, dx: float, dy: float) -> "CellCoordinate":
        return replace(
            self,
            x1=self.x1 + dx, y1=self.y1 + dy,
            x2=self.x2 + dx, y2=self.y2 + dy,
            center=Point(self.center.x + dx, self.center.y + dy),
        )


@dataclass(frozen=True)
class GridLines:
    horizontal: Tuple[HorizontalLine, ...]   # sorted by y
    vertical: Tuple[VerticalLine, ...]       # sorted by x


@dataclass(frozen=True)
class BoardBounds:
    """Padded board box in source-image pixels."""
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class GridDetection:
    """Output of the grid validator."""
    lines: GridLines
    size: int
    cells: Tuple[Tuple[CellCoordinate, ...], ...]   # size × size, row-major


# ── Stage 3: validation ───────────────────────────────────────────────

def lines_intersect(
    h_line: HorizontalLine,
    v_line: VerticalLine,
    tolerance: float = 10.0,
) -> bool:
    """Return True if the two lines cross within *tolerance* on both axes."""
    x_ok = (
        min(h_line.x1, h_line.x2) - tolerance
        <= v_line.x
        <= max(h_line.x1, h_line.x2) + tolerance
    )
    if not x_ok:
        return False
    return (
        min(v_line.y1, v_line.y2) - tolerance
        <= h_line.y
        <= max(v_line.y1, v_line.y2) + tolerance
    )


def validate_grid(
    horizontal: Sequence[HorizontalLine],
    vertical: Sequence[VerticalLine],
    tolerance: float = 10.0,
    min_size: int = 4,
) -> GridDetection:
    """Drop lines without a perpendicular partner and build the cell grid.

    Raises
    ------
    InsufficientGridLines
        If the derived board size is below *min_size*.
    """
    valid_h = [
        h for h in horizontal
        if any(lines_intersect(h, v, tolerance) for v in vertical)
    ]
    valid_v = [
        v for v in vertical
        if any(lines_intersect(h, v, tolerance) for h in valid_h)
    ]

    valid_h.sort(key=lambda l: l.y)
    valid_v.sort(key=lambda l: l.x)

    size = min(len(valid_h), len(valid_v)) - 1
    log.debug(
        "Grid validation kept %d/%d horizontal, %d/%d vertical lines",
        len(valid_h), len(horizontal), len(valid_v), len(vertical),
    )
    if size < min_size:
        raise InsufficientGridLines(len(valid_h), len(valid_v))

    lines = GridLines(horizontal=tuple(valid_h), vertical=tuple(valid_v))
    return GridDetection(lines=lines, size=size, cells=build_cells(lines, size))


def build_cells(
    lines: GridLines, size: int,
) -> Tuple[Tuple[CellCoordinate, ...], ...]:
    """Pair consecutive lines into a ``size × size`` row-major cell grid."""
    h, v = lines.horizontal, lines.vertical
    rows: List[Tuple[CellCoordinate, ...]] = []
    for i in range(size):
        row: List[CellCoordinate] = []
        for j in range(size):
            x1, x2 = v[j].x, v[j + 1].x
            y1, y2 = h[i].y, h[i + 1].y
            row.append(CellCoordinate(
                x1=x1, y1=y1, x2=x2, y2=y2,
                center=Point((x1 + x2) / 2, (y1 + y2) / 2),
            ))
        rows.append(tuple(row))
    return tuple(rows)


# ── Stage 4: bounds ───────────────────────────────────────────────────

def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up.

    >>> round_half_up(2.5), round_half_up(3.5), round_half_up(-0.5)
    (3, 4, 0)
    """
    return int(math.floor(value + 0.5))


def compute_bounds(lines: GridLines, padding: int = 20) -> BoardBounds:
    """Smallest box covering every grid line, padded and clamped at 0."""
    xs = [l.x for l in lines.vertical]
    ys = [l.y for l in lines.horizontal]
    x1, x2 = min(xs), max(xs)
    y1, y2 = min(ys), max(ys)

    return BoardBounds(
        x=max(0, round_half_up(x1 - padding)),
        y=max(0, round_half_up(y1 - padding)),
        width=round_half_up(x2 - x1 + padding * 2),
        height=round_half_up(y2 - y1 + padding * 2),
    )


def project_to_bounds(grid: GridDetection, bounds: BoardBounds) -> GridDetection:
    """Return *grid* with every coordinate relative to *bounds*."""
    dx, dy = -bounds.x, -bounds.y
    lines = GridLines(
        horizontal=tuple(l.shifted(dx, dy) for l in grid.lines.horizontal),
        vertical=tuple(l.shifted(dx, dy) for l in grid.lines.vertical),
    )
    cells = tuple(
        tuple(cell.shifted(dx, dy) for cell in row) for row in grid.cells
    )
    return GridDetection(lines=lines, size=grid.size, cells=cells)
