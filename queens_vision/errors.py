"""
Error Taxonomy
==============

Every failure that aborts a detection or solve request derives from
``PuzzleError``.  Each class carries a machine-readable ``kind`` next to
the human-readable message so a message-passing boundary can forward both.

  • ``InsufficientGridLines`` – fewer than ``min_size + 1`` validated lines
    in either orientation.
  • ``RegionCountMismatch``   – colour segmentation produced a number of
    labels different from the board size.
  • ``NoSolutionFound``       – the solver exhausted the search space.
  • ``CapabilityFailure``     – the image analysis backend rejected an
    operation (bad dimensions, pixel format, out-of-image access).
"""

from __future__ import annotations

from typing import Optional


class PuzzleError(Exception):
    """Base class for all terminal pipeline errors."""

    kind: str = "puzzle_error"
    default_message: str = "Puzzle processing failed"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class InsufficientGridLines(PuzzleError):
    kind = "insufficient_grid_lines"
    default_message = "No valid game board detected"

    def __init__(
        self,
        horizontal: int = 0,
        vertical: int = 0,
        message: Optional[str] = None,
    ) -> None:
        self.horizontal = horizontal
        self.vertical = vertical
        super().__init__(
            message
            or f"{self.default_message} "
               f"({horizontal} horizontal / {vertical} vertical grid lines)"
        )


class RegionCountMismatch(PuzzleError):
    kind = "region_count_mismatch"
    default_message = "Detected region count is wrong or regions are not connected"

    def __init__(
        self,
        found: int = 0,
        expected: int = 0,
        message: Optional[str] = None,
    ) -> None:
        self.found = found
        self.expected = expected
        super().__init__(
            message
            or f"{self.default_message} (found {found}, expected {expected})"
        )


class NoSolutionFound(PuzzleError):
    kind = "no_solution"
    default_message = "Could not find a solution"


class CapabilityFailure(PuzzleError):
    kind = "capability_failure"
    default_message = "Image analysis failed"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(
            f"{self.default_message}: {message}" if message else None
        )
