"""Shared fixtures: region layouts, synthetic puzzle images, scripted analysis."""

from typing import List, Sequence

import cv2
import numpy as np
import pytest

from queens_vision.detection.lines import LineSegment
from queens_vision.vision.analysis import OpenCVImageAnalysis

# Five well separated hues (BGR): red, yellow, green, cyan, blue.
REGION_COLORS_BGR = [
    (0, 0, 255),
    (0, 255, 255),
    (0, 255, 0),
    (255, 255, 0),
    (255, 0, 0),
]

CELL = 80
MARGIN = 40
LINE_THICKNESS = 3

SOLVABLE_5 = [
    [0, 0, 1, 1, 1],
    [0, 1, 1, 2, 2],
    [3, 3, 2, 2, 2],
    [3, 3, 4, 4, 2],
    [3, 4, 4, 4, 4],
]

def frozen(matrix):
    """Tuple-of-tuples form a finished BoardModel stores its matrices in."""
    return tuple(tuple(row) for row in matrix)


# Region 0 is only (0, 0) and region 1 only (1, 1): their queens would touch.
UNSOLVABLE_4 = [
    [0, 2, 2, 2],
    [2, 1, 2, 2],
    [3, 3, 3, 3],
    [3, 3, 3, 3],
]


def draw_board(
    regions: Sequence[Sequence[int]],
    cell: int = CELL,
    margin: int = MARGIN,
    thickness: int = LINE_THICKNESS,
) -> np.ndarray:
    """Render a region matrix as a flat-coloured puzzle screenshot."""
    n = len(regions)
    side = margin * 2 + cell * n
    image = np.full((side, side, 3), 255, dtype=np.uint8)

    for i, row in enumerate(regions):
        for j, label in enumerate(row):
            x1, y1 = margin + j * cell, margin + i * cell
            cv2.rectangle(
                image, (x1, y1), (x1 + cell, y1 + cell),
                REGION_COLORS_BGR[label], -1,
            )

    for k in range(n + 1):
        pos = margin + k * cell
        cv2.line(image, (margin, pos), (margin + n * cell, pos), (0, 0, 0), thickness)
        cv2.line(image, (pos, margin), (pos, margin + n * cell), (0, 0, 0), thickness)
    return image


def grid_segments(n: int, cell: int = CELL, margin: int = MARGIN) -> List[LineSegment]:
    """Clean, full-length segments for an n×n grid."""
    end = margin + n * cell
    segments = []
    for k in range(n + 1):
        pos = margin + k * cell
        segments.append(LineSegment(margin, pos, end, pos))
        segments.append(LineSegment(pos, margin, pos, end))
    return segments


class ScriptedAnalysis(OpenCVImageAnalysis):
    """OpenCV backend whose line detector returns a fixed segment list."""

    def __init__(self, segments: Sequence[LineSegment]) -> None:
        self.segments = list(segments)

    def detect_line_segments(self, binary, **kwargs):
        return list(self.segments)


@pytest.fixture
def solvable_regions():
    return [list(row) for row in SOLVABLE_5]


@pytest.fixture
def unsolvable_regions():
    return [list(row) for row in UNSOLVABLE_4]


@pytest.fixture
def board_image(solvable_regions):
    return draw_board(solvable_regions)


@pytest.fixture
def blank_image():
    return np.full((300, 300, 3), 255, dtype=np.uint8)
