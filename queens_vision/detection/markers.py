"""
Pre-filled Marker Classification (best effort)
==============================================

Screenshots often contain queens or ✕ marks the player already placed.
Each cell's interior (grid lines trimmed away) is binarised so that dark
strokes become foreground; the largest stroke contour is approximated by
a polygon and classified by vertex count:

  • ≥ 8 vertices → ``"queen"``  (crown outline)
  • ≥ 4 vertices → ``"x"``
  • otherwise    → ``"empty"``

Contours covering nearly the whole cell (dark cell colours) and specks
are ignored.  The result is informational only and never fed to the
solver.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from queens_vision.detection.grid import BoardBounds, CellCoordinate
from queens_vision.vision.analysis import ImageAnalysis

log = logging.getLogger(__name__)

MARKER_EMPTY = "empty"
MARKER_QUEEN = "queen"
MARKER_X = "x"


def classify_marker(
    roi: np.ndarray,
    analysis: ImageAnalysis,
    min_area_ratio: float = 0.02,
    max_area_ratio: float = 0.9,
) -> str:
    """Classify the mark inside a single cell image."""
    gray = analysis.to_grayscale(roi)
    binary = analysis.binarize(gray, 127, inverse=True)
    roi_area = float(roi.shape[0] * roi.shape[1])

    best = None
    best_area = 0.0
    for contour in analysis.find_contours(binary):
        area = analysis.contour_area(contour)
        if area < min_area_ratio * roi_area or area > max_area_ratio * roi_area:
            continue
        if area > best_area:
            best_area = area
            best = contour

    if best is None:
        return MARKER_EMPTY

    vertices = len(analysis.approx_polygon(best, 0.04))
    if vertices >= 8:
        return MARKER_QUEEN
    if vertices >= 4:
        return MARKER_X
    return MARKER_EMPTY


def detect_markers(
    image: np.ndarray,
    cells: Sequence[Sequence[CellCoordinate]],
    analysis: ImageAnalysis,
    inset_ratio: float = 0.15,
) -> List[List[str]]:
    """Classify every cell of the cropped board image."""
    markers: List[List[str]] = []
    for row in cells:
        labels: List[str] = []
        for cell in row:
            dx = int((cell.x2 - cell.x1) * inset_ratio)
            dy = int((cell.y2 - cell.y1) * inset_ratio)
            roi_bounds = BoardBounds(
                x=int(cell.x1) + dx,
                y=int(cell.y1) + dy,
                width=int(cell.x2 - cell.x1) - 2 * dx,
                height=int(cell.y2 - cell.y1) - 2 * dy,
            )
            if roi_bounds.width <= 0 or roi_bounds.height <= 0:
                labels.append(MARKER_EMPTY)
                continue
            roi = analysis.crop(image, roi_bounds)
            labels.append(classify_marker(roi, analysis))
        markers.append(labels)

    found = sum(1 for row in markers for m in row if m != MARKER_EMPTY)
    log.debug("Marker scan found %d marked cells", found)
    return markers
