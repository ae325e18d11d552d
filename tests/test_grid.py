"""
Unit tests for grid validation and bounds projection.
"""

import pytest

from queens_vision.detection.grid import (
    BoardBounds,
    compute_bounds,
    lines_intersect,
    project_to_bounds,
    round_half_up,
    validate_grid,
)
from queens_vision.detection.lines import HorizontalLine, VerticalLine
from queens_vision.errors import InsufficientGridLines


def h(y, x1=40.0, x2=440.0):
    return HorizontalLine(y=y, x1=x1, x2=x2, y1=y, y2=y)


def v(x, y1=40.0, y2=440.0):
    return VerticalLine(x=x, y1=y1, y2=y2, x1=x, x2=x)


def grid(n, start=40.0, step=80.0):
    end = start + n * step
    hs = [h(start + k * step, start, end) for k in range(n + 1)]
    vs = [v(start + k * step, start, end) for k in range(n + 1)]
    return hs, vs


# ============================================================================
# lines_intersect
# ============================================================================

class TestLinesIntersect:
    def test_crossing_lines(self):
        assert lines_intersect(h(100, 0, 200), v(50, 0, 200))

    def test_tolerance_on_both_axes(self):
        assert lines_intersect(h(100, 0, 200), v(210, 0, 200), tolerance=10)
        assert not lines_intersect(h(100, 0, 200), v(211, 0, 200), tolerance=10)
        assert lines_intersect(h(210, 0, 200), v(50, 0, 200), tolerance=10)
        assert not lines_intersect(h(211, 0, 200), v(50, 0, 200), tolerance=10)

    def test_both_conditions_required(self):
        # x is inside the horizontal span but the vertical line stops early.
        assert not lines_intersect(h(300, 0, 400), v(200, 0, 100))


# ============================================================================
# validate_grid
# ============================================================================

class TestValidateGrid:
    def test_clean_grid(self):
        hs, vs = grid(5)
        detection = validate_grid(hs, vs)

        assert detection.size == 5
        assert len(detection.cells) == 5
        assert all(len(row) == 5 for row in detection.cells)

    def test_cells_lie_between_their_lines(self):
        hs, vs = grid(6)
        detection = validate_grid(hs, vs)
        H, V = detection.lines.horizontal, detection.lines.vertical

        for i, row in enumerate(detection.cells):
            for j, cell in enumerate(row):
                assert (cell.x1, cell.x2) == (V[j].x, V[j + 1].x)
                assert (cell.y1, cell.y2) == (H[i].y, H[i + 1].y)
                assert V[j].x < cell.center.x < V[j + 1].x
                assert H[i].y < cell.center.y < H[i + 1].y

    def test_cell_center_is_corner_midpoint(self):
        hs, vs = grid(4)
        cell = validate_grid(hs, vs).cells[1][2]
        assert cell.center.x == (cell.x1 + cell.x2) / 2
        assert cell.center.y == (cell.y1 + cell.y2) / 2

    def test_output_is_sorted(self):
        hs, vs = grid(4)
        detection = validate_grid(list(reversed(hs)), list(reversed(vs)))
        ys = [l.y for l in detection.lines.horizontal]
        xs = [l.x for l in detection.lines.vertical]
        assert ys == sorted(ys)
        assert xs == sorted(xs)

    def test_isolated_lines_are_dropped(self):
        hs, vs = grid(4)
        hs.append(h(900, 900, 1000))         # far away, crosses nothing
        vs.append(v(1500, 1500, 1600))
        detection = validate_grid(hs, vs)
        assert len(detection.lines.horizontal) == 5
        assert len(detection.lines.vertical) == 5

    def test_crossing_pair_outside_the_board_survives(self):
        hs, vs = grid(4)
        # The horizontal stub meets a vertical candidate, so it is kept and
        # the vertical stub then finds it among the validated lines.
        hs.append(h(1000, 950, 1050))
        vs.append(v(1000, 950, 1050))
        detection = validate_grid(hs, vs)
        assert len(detection.lines.horizontal) == 6
        assert len(detection.lines.vertical) == 6

    def test_size_uses_smaller_orientation(self):
        hs, vs = grid(6)
        detection = validate_grid(hs, vs[:6])          # 7 horizontal, 6 vertical
        assert detection.size == 5
        assert len(detection.cells) == 5
        assert all(len(row) == 5 for row in detection.cells)

    def test_too_few_lines(self):
        hs, vs = grid(3)
        with pytest.raises(InsufficientGridLines) as excinfo:
            validate_grid(hs, vs)
        assert excinfo.value.kind == "insufficient_grid_lines"
        assert excinfo.value.horizontal == 4

    def test_no_lines(self):
        with pytest.raises(InsufficientGridLines):
            validate_grid([], [])


# ============================================================================
# Bounds
# ============================================================================

class TestBounds:
    def test_compute_bounds(self):
        hs, vs = grid(5, start=100, step=50)
        bounds = compute_bounds(validate_grid(hs, vs).lines, padding=20)
        assert bounds == BoardBounds(x=80, y=80, width=290, height=290)

    def test_bounds_clamped_at_zero(self):
        hs, vs = grid(4, start=5, step=50)
        bounds = compute_bounds(validate_grid(hs, vs).lines, padding=20)
        assert bounds.x == 0
        assert bounds.y == 0
        assert bounds.width == 240

    def test_half_pixel_bounds_round_up(self):
        hs, vs = grid(4, start=40.5, step=50)
        bounds = compute_bounds(validate_grid(hs, vs).lines, padding=20)
        assert bounds == BoardBounds(x=21, y=21, width=240, height=240)

    @pytest.mark.parametrize("value, expected", [
        (0.5, 1), (1.5, 2), (2.5, 3), (2.4999, 2), (-0.5, 0),
    ])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_projection_shifts_everything_once(self):
        hs, vs = grid(4, start=100, step=50)
        detection = validate_grid(hs, vs)
        bounds = compute_bounds(detection.lines, padding=20)
        projected = project_to_bounds(detection, bounds)

        assert projected.lines.horizontal[0].y == 20
        assert projected.lines.horizontal[0].x1 == 20
        assert projected.lines.vertical[0].x == 20
        assert projected.lines.vertical[0].y2 == 220
        cell = projected.cells[0][0]
        assert (cell.x1, cell.y1, cell.x2, cell.y2) == (20, 20, 70, 70)
        assert (cell.center.x, cell.center.y) == (45, 45)

        # The source detection is untouched.
        assert detection.lines.horizontal[0].y == 100
        assert detection.cells[0][0].x1 == 100
