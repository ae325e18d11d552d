"""
Queens Solver – Rows, Columns, Regions, No Touching
===================================================

Backtracking search that places one queen per row, top to bottom.  At row
``r`` columns are tried left to right; column ``c`` is a candidate iff

  • no earlier queen uses column ``c``,
  • none of the 8 neighbouring cells holds a queen (king-adjacency),
  • the colour region of ``(r, c)`` has no queen yet.

After the last row the search accepts only if **every** region label in
the matrix holds exactly one queen.  The first complete placement wins.

All mutable search state lives in ``QueensState``; ``place`` and
``remove`` are exact inverses so backtracking restores the prior state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

log = logging.getLogger(__name__)

SolutionBoard = List[List[bool]]

_NEIGHBOURS: Tuple[Tuple[int, int], ...] = tuple(
    (dr, dc)
    for dr in (-1, 0, 1)
    for dc in (-1, 0, 1)
    if (dr, dc) != (0, 0)
)


# ── Search state ──────────────────────────────────────────────────────

@dataclass
class QueensState:
    """Board, used columns and per-region queen counts for one search."""
    size: int
    regions: Sequence[Sequence[int]]
    board: SolutionBoard = field(init=False)
    columns: Set[int] = field(init=False, default_factory=set)
    region_counts: Dict[int, int] = field(init=False)

    def __post_init__(self) -> None:
        self.board = [[False] * self.size for _ in range(self.size)]
        self.region_counts = {
            label: 0 for row in self.regions for label in row
        }

    def can_place(self, row: int, col: int) -> bool:
        if col in self.columns:
            return False
        for dr, dc in _NEIGHBOURS:
            r, c = row + dr, col + dc
            if 0 <= r < self.size and 0 <= c < self.size and self.board[r][c]:
                return False
        return self.region_counts[self.regions[row][col]] == 0

    def place(self, row: int, col: int) -> None:
        self.board[row][col] = True
        self.columns.add(col)
        self.region_counts[self.regions[row][col]] += 1

    def remove(self, row: int, col: int) -> None:
        self.board[row][col] = False
        self.columns.discard(col)
        self.region_counts[self.regions[row][col]] -= 1

    def is_complete(self) -> bool:
        return all(count == 1 for count in self.region_counts.values())


# ── Public API ─────────────────────────────────────────────────────────

def solve_queens(
    size: int,
    regions: Sequence[Sequence[int]],
) -> Optional[SolutionBoard]:
    """Return the first valid queen placement, or ``None``.

    Parameters
    ----------
    size : int
        Board side length N.
    regions : N×N sequence of int
        Region label per cell.  Any integer labels are accepted.

    Raises
    ------
    ValueError
        If *regions* is not an N×N matrix.
    """
    _check_shape(size, regions)

    state = QueensState(size, regions)
    if _search(state, 0):
        log.info("Solved %dx%d board", size, size)
        return [list(row) for row in state.board]

    log.info("No solution for %dx%d board", size, size)
    return None


def _search(state: QueensState, row: int) -> bool:
    if row == state.size:
        return state.is_complete()

    for col in range(state.size):
        if not state.can_place(row, col):
            continue
        state.place(row, col)
        if _search(state, row + 1):
            return True
        state.remove(row, col)
    return False


def _check_shape(size: int, regions: Sequence[Sequence[int]]) -> None:
    if size <= 0:
        raise ValueError(f"Board size must be positive, got {size}")
    if len(regions) != size:
        raise ValueError(f"Expected {size} region rows, got {len(regions)}")
    for i, row in enumerate(regions):
        if len(row) != size:
            raise ValueError(
                f"Region row {i} has {len(row)} cells (expected {size})"
            )


# ── Solution checking ─────────────────────────────────────────────────

def validate_solution(
    solution: Sequence[Sequence[bool]],
    regions: Sequence[Sequence[int]],
) -> Tuple[bool, List[str]]:
    """Check a placement against every puzzle rule.

    Returns ``(is_valid, list_of_violation_strings)``.
    """
    violations: List[str] = []
    size = len(regions)
    if len(solution) != size or any(
        len(row) != len(regions[r]) for r, row in enumerate(solution)
    ):
        shape = [len(row) for row in solution]
        violations.append(
            f"Solution shape {shape} does not match the {size}-row region matrix"
        )
        return False, violations

    queens = [
        (r, c)
        for r, row in enumerate(solution)
        for c, cell in enumerate(row)
        if cell
    ]

    for r in range(size):
        count = sum(1 for qr, _ in queens if qr == r)
        if count != 1:
            violations.append(f"Row {r} has {count} queens (expected 1)")

    for c in range(size):
        count = sum(1 for _, qc in queens if qc == c)
        if count != 1:
            violations.append(f"Column {c} has {count} queens (expected 1)")

    per_region: Dict[int, int] = {label: 0 for row in regions for label in row}
    for r, c in queens:
        per_region[regions[r][c]] += 1
    for label, count in sorted(per_region.items()):
        if count != 1:
            violations.append(f"Region {label} has {count} queens (expected 1)")

    for i, (r1, c1) in enumerate(queens):
        for r2, c2 in queens[i + 1:]:
            if abs(r1 - r2) <= 1 and abs(c1 - c2) <= 1:
                violations.append(f"Queens at ({r1}, {c1}) and ({r2}, {c2}) touch")

    return len(violations) == 0, violations
