"""
Colour Regions – Segmentation & Validation
==========================================

Stage 5 – **RegionSegmenter**
    Each cell is sampled at four points ``inset`` pixels in from its
    corners; the four HSV readings are averaged into one colour per cell.
    Labels are then assigned by *first-match greedy* clustering: cells are
    visited row-major, and each colour takes the label of the first
    previously registered colour (in registration order) within the HSV
    thresholds, otherwise it registers a new label.

    This is colour clustering, not flood fill.  Two far-apart cells of the
    same colour share a label, and nothing guarantees that a label's cells
    are connected.

Stage 6 – **RegionValidator**
    Accepts the matrix iff it holds exactly ``size`` distinct labels.
    Connectivity is reported by ``find_disconnected_regions`` and only
    enforced when explicitly requested.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import List, Sequence, Set

import numpy as np

from queens_vision.detection.grid import CellCoordinate, round_half_up
from queens_vision.errors import RegionCountMismatch
from queens_vision.vision.analysis import HSVColor, ImageAnalysis

log = logging.getLogger(__name__)

RegionMatrix = List[List[int]]


# ── Colour similarity ─────────────────────────────────────────────────

def is_color_similar(
    color1: HSVColor,
    color2: HSVColor,
    hue_threshold: int = 10,
    saturation_threshold: int = 30,
    value_threshold: int = 30,
) -> bool:
    """Channel-wise comparison with inclusive thresholds.

    >>> is_color_similar(HSVColor(10, 50, 50), HSVColor(15, 55, 60))
    True
    >>> is_color_similar(HSVColor(10, 50, 50), HSVColor(25, 50, 50))
    False
    """
    return (
        abs(color1.h - color2.h) <= hue_threshold
        and abs(color1.s - color2.s) <= saturation_threshold
        and abs(color1.v - color2.v) <= value_threshold
    )


# ── Stage 5: segmentation ─────────────────────────────────────────────

def sample_cell_color(
    image: np.ndarray,
    cell: CellCoordinate,
    analysis: ImageAnalysis,
    inset: int = 20,
) -> HSVColor:
    """Average HSV colour of four points inset from the cell corners."""
    x1, y1 = int(cell.x1), int(cell.y1)
    x2, y2 = int(cell.x2), int(cell.y2)
    points = [
        (x1 + inset, y1 + inset),
        (x2 - inset, y1 + inset),
        (x1 + inset, y2 - inset),
        (x2 - inset, y2 - inset),
    ]

    samples = [analysis.sample_color(image, x, y) for x, y in points]
    n = len(samples)
    return HSVColor(
        h=round_half_up(sum(c.h for c in samples) / n),
        s=round_half_up(sum(c.s for c in samples) / n),
        v=round_half_up(sum(c.v for c in samples) / n),
    )


def label_colors(
    colors: Sequence[Sequence[HSVColor]],
    hue_threshold: int = 10,
    saturation_threshold: int = 30,
    value_threshold: int = 30,
) -> RegionMatrix:
    """Greedy first-match labelling of a matrix of cell colours."""
    palette: List[HSVColor] = []     # index == label, in registration order
    regions: RegionMatrix = []

    for row in colors:
        labels: List[int] = []
        for color in row:
            for label, known in enumerate(palette):
                if is_color_similar(
                    color, known,
                    hue_threshold, saturation_threshold, value_threshold,
                ):
                    labels.append(label)
                    break
            else:
                palette.append(color)
                labels.append(len(palette) - 1)
        regions.append(labels)

    log.debug("Colour palette: %s", palette)
    return regions


def segment_regions(
    image: np.ndarray,
    cells: Sequence[Sequence[CellCoordinate]],
    analysis: ImageAnalysis,
    inset: int = 20,
    hue_threshold: int = 10,
    saturation_threshold: int = 30,
    value_threshold: int = 30,
) -> RegionMatrix:
    """Sample every cell of the cropped board and label it by colour."""
    colors = [
        [sample_cell_color(image, cell, analysis, inset) for cell in row]
        for row in cells
    ]
    return label_colors(
        colors, hue_threshold, saturation_threshold, value_threshold,
    )


# ── Stage 6: validation ───────────────────────────────────────────────

def count_regions(regions: Sequence[Sequence[int]]) -> int:
    return len({label for row in regions for label in row})


def find_disconnected_regions(regions: Sequence[Sequence[int]]) -> List[int]:
    """Labels whose cells do not form a single 4-connected component."""
    rows = len(regions)
    seen: Set[int] = set()
    disconnected: List[int] = []

    for r0 in range(rows):
        for c0 in range(len(regions[r0])):
            label = regions[r0][c0]
            if label in seen:
                continue
            seen.add(label)

            total = sum(row.count(label) for row in regions)
            reached = {(r0, c0)}
            queue = deque([(r0, c0)])
            while queue:
                r, c = queue.popleft()
                for nr, nc in ((r - 1, c), (r + 1, c), (r, c - 1), (r, c + 1)):
                    if (
                        0 <= nr < rows
                        and 0 <= nc < len(regions[nr])
                        and (nr, nc) not in reached
                        and regions[nr][nc] == label
                    ):
                        reached.add((nr, nc))
                        queue.append((nr, nc))

            if len(reached) != total:
                disconnected.append(label)

    return disconnected


def validate_regions(
    regions: Sequence[Sequence[int]],
    size: int,
    require_connected: bool = False,
) -> None:
    """Raise ``RegionCountMismatch`` unless there are exactly *size* labels."""
    found = count_regions(regions)
    if found != size:
        raise RegionCountMismatch(found, size)

    disconnected = find_disconnected_regions(regions)
    if disconnected:
        log.warning("Regions %s are not connected", disconnected)
        if require_connected:
            raise RegionCountMismatch(
                found, size,
                message=f"Regions {disconnected} are not connected",
            )
