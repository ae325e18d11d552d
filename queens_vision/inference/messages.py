"""
Request / Response Contract
===========================

Shapes exchanged with whatever transport hosts the pipeline (worker
thread, subprocess, web socket…).  Transport itself is out of scope.

  ProcessImage(image) → Progress(text)* then BoardDetected(board) | Error
  Solve(board)        → Solved(solution) | Error

``handle_request`` processes one request to completion and delivers the
responses through ``emit``.  Every failure becomes exactly one ``Error``
carrying the message and a machine-readable ``kind``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

import numpy as np

from queens_vision.errors import PuzzleError
from queens_vision.inference.pipeline import BoardDetectionPipeline, BoardModel
from queens_vision.solver.queens import SolutionBoard

log = logging.getLogger(__name__)


# ── Requests ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ProcessImage:
    image: np.ndarray


@dataclass(frozen=True)
class Solve:
    board: BoardModel


Request = Union[ProcessImage, Solve]


# ── Responses ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Progress:
    text: str


@dataclass(frozen=True)
class BoardDetected:
    board: BoardModel


@dataclass(frozen=True)
class Solved:
    solution: SolutionBoard


@dataclass(frozen=True)
class Error:
    reason: str
    kind: str


Response = Union[Progress, BoardDetected, Solved, Error]


# ── Handler ────────────────────────────────────────────────────────────

def handle_request(
    request: Request,
    emit: Callable[[Response], None],
    pipeline: Optional[BoardDetectionPipeline] = None,
) -> None:
    """Run *request* and emit its responses in order."""
    pipeline = pipeline or BoardDetectionPipeline()

    try:
        if isinstance(request, ProcessImage):
            result = pipeline.detect(
                request.image, progress=lambda text: emit(Progress(text)),
            )
            emit(BoardDetected(result.board))
        elif isinstance(request, Solve):
            emit(Solved(pipeline.solve(request.board)))
        else:
            raise TypeError(f"Unknown request type: {type(request).__name__}")
    except PuzzleError as exc:
        log.error("%s failed: %s", type(request).__name__, exc)
        emit(Error(reason=exc.message, kind=exc.kind))
    except (ValueError, TypeError) as exc:
        log.error("Invalid %s: %s", type(request).__name__, exc)
        emit(Error(reason=str(exc), kind="invalid_request"))
    except Exception as exc:
        log.exception("Unexpected failure handling %s", type(request).__name__)
        emit(Error(reason=str(exc), kind="internal_error"))
