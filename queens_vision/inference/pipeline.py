"""
Detection Pipeline – Image → Board → Solution
=============================================

Single-call entry point for detecting and solving a queens puzzle.

Pipeline stages (strictly sequential, each one fails fast):
  1. Preprocess          – grayscale, 5×5 blur, inverse adaptive threshold
  2. Line extraction     – Hough segments → horizontal / vertical candidates
  3. Line clustering     – merge near-duplicate lines
  4. Grid validation     – intersecting lines only, size N, N×N cells
  5. Bounds projection   – padded crop + bounds-relative coordinates
  6. Region segmentation – colour sampling + greedy labelling
  7. Region validation   – exactly N labels
  8. Marker scan         – optional, best effort

``solve`` runs the backtracking solver on a finished ``BoardModel``.

The pipeline object records the stage it last reached in ``stage``; any
failure sets it to ``PipelineStage.ERROR`` and re-raises.  A new call to
``detect`` always starts again from ``IDLE``.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from queens_vision.config import DetectionConfig
from queens_vision.detection.grid import (
    BoardBounds,
    CellCoordinate,
    GridLines,
    Point,
    compute_bounds,
    project_to_bounds,
    validate_grid,
)
from queens_vision.detection.lines import (
    HorizontalLine,
    VerticalLine,
    cluster_lines,
    extract_lines,
)
from queens_vision.detection.markers import detect_markers
from queens_vision.detection.regions import segment_regions, validate_regions
from queens_vision.errors import NoSolutionFound, PuzzleError
from queens_vision.solver.queens import SolutionBoard, solve_queens
from queens_vision.vision.analysis import ImageAnalysis, OpenCVImageAnalysis

log = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


# ── State machine ─────────────────────────────────────────────────────

class PipelineStage(str, Enum):
    IDLE = "idle"
    LINES_EXTRACTED = "lines_extracted"
    LINES_CLUSTERED = "lines_clustered"
    GRID_VALIDATED = "grid_validated"
    BOUNDS_COMPUTED = "bounds_computed"
    REGIONS_SEGMENTED = "regions_segmented"
    REGIONS_VALIDATED = "regions_validated"
    BOARD_READY = "board_ready"
    SOLVING = "solving"
    SOLVED = "solved"
    SOLVE_FAILED = "solve_failed"
    ERROR = "error"


# ── Result dataclasses ────────────────────────────────────────────────

@dataclass(frozen=True)
class BoardModel:
    """Fully reconstructed puzzle, coordinates relative to ``bounds``.

    Matrices are stored as tuples of tuples so a finished board cannot be
    edited in place; any row sequences passed in are converted.
    """
    size: int
    regions: Tuple[Tuple[int, ...], ...]
    grid_lines: GridLines
    cells: Tuple[Tuple[CellCoordinate, ...], ...]
    bounds: BoardBounds
    markers: Optional[Tuple[Tuple[str, ...], ...]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "regions", _freeze(self.regions))
        object.__setattr__(self, "cells", _freeze(self.cells))
        if self.markers is not None:
            object.__setattr__(self, "markers", _freeze(self.markers))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["regions"] = [list(row) for row in self.regions]
        data["cells"] = [list(row) for row in data["cells"]]
        if self.markers is not None:
            data["markers"] = [list(row) for row in self.markers]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BoardModel":
        lines = data["grid_lines"]
        return cls(
            size=int(data["size"]),
            regions=data["regions"],
            grid_lines=GridLines(
                horizontal=tuple(HorizontalLine(**l) for l in lines["horizontal"]),
                vertical=tuple(VerticalLine(**l) for l in lines["vertical"]),
            ),
            cells=[
                [
                    CellCoordinate(
                        x1=c["x1"], y1=c["y1"], x2=c["x2"], y2=c["y2"],
                        center=Point(**c["center"]),
                    )
                    for c in row
                ]
                for row in data["cells"]
            ],
            bounds=BoardBounds(**data["bounds"]),
            markers=data.get("markers"),
        )


def _freeze(rows):
    return tuple(tuple(row) for row in rows)


@dataclass
class DetectionResult:
    """Board model plus the cropped images it was measured on."""
    board: BoardModel
    board_image: np.ndarray                 # cropped source image
    binary_image: np.ndarray                # cropped binarised image
    stages: List[str] = field(default_factory=list)


# ── Pipeline class ─────────────────────────────────────────────────────

class BoardDetectionPipeline:
    """End-to-end puzzle image → ``BoardModel`` pipeline.

    Parameters
    ----------
    analysis : ImageAnalysis, optional
        Pixel-level backend.  Defaults to ``OpenCVImageAnalysis``.
    config : DetectionConfig, optional
        Tunable constants.  Validated on construction.
    """

    def __init__(
        self,
        analysis: Optional[ImageAnalysis] = None,
        config: Optional[DetectionConfig] = None,
    ) -> None:
        self.analysis = analysis or OpenCVImageAnalysis()
        self.config = config or DetectionConfig()
        self.config.validate()
        self.stage = PipelineStage.IDLE

    # ── Public API ─────────────────────────────────────────────────────

    def detect(
        self,
        image: np.ndarray,
        progress: Optional[ProgressCallback] = None,
    ) -> DetectionResult:
        """Run detection on a BGR image.

        Raises
        ------
        PuzzleError
            ``InsufficientGridLines``, ``RegionCountMismatch`` or
            ``CapabilityFailure``; ``stage`` is left at ``ERROR``.
        """
        self.stage = PipelineStage.IDLE
        stages: List[str] = []
        try:
            board, board_image, binary_image = self._detect(
                image, progress, stages,
            )
        except Exception:
            self.stage = PipelineStage.ERROR
            raise
        return DetectionResult(
            board=board,
            board_image=board_image,
            binary_image=binary_image,
            stages=stages,
        )

    def solve(self, board: BoardModel) -> SolutionBoard:
        """Solve a detected board.

        Raises
        ------
        NoSolutionFound
            If no placement satisfies every constraint.
        """
        self.stage = PipelineStage.SOLVING
        try:
            solution = solve_queens(board.size, board.regions)
        except Exception:
            self.stage = PipelineStage.ERROR
            raise
        if solution is None:
            self.stage = PipelineStage.SOLVE_FAILED
            raise NoSolutionFound()
        self.stage = PipelineStage.SOLVED
        return solution

    # ── Internals ──────────────────────────────────────────────────────

    def _advance(self, stage: PipelineStage, stages: List[str]) -> None:
        self.stage = stage
        stages.append(stage.value)
        log.debug("Pipeline stage: %s", stage.value)

    def _notify(self, progress: Optional[ProgressCallback], text: str) -> None:
        if progress is None:
            return
        try:
            progress(text)
        except Exception:
            log.exception("Progress observer failed on %r", text)

    def _detect(
        self,
        image: np.ndarray,
        progress: Optional[ProgressCallback],
        stages: List[str],
    ):
        cfg = self.config
        analysis = self.analysis

        # 1. Preprocess
        self._notify(progress, "Preprocessing image...")
        gray = analysis.to_grayscale(image)
        blurred = analysis.blur(gray, cfg.blur_kernel)
        binary = analysis.adaptive_threshold(
            blurred, cfg.threshold_block_size, cfg.threshold_c,
        )

        # 2. Line extraction
        self._notify(progress, "Detecting grid...")
        segments = analysis.detect_line_segments(
            binary,
            rho=cfg.hough_rho,
            theta_deg=cfg.hough_theta_deg,
            threshold=cfg.hough_threshold,
            min_line_length=cfg.hough_min_line_length,
            max_line_gap=cfg.hough_max_line_gap,
        )
        horizontal, vertical = extract_lines(
            segments, analysis.image_width(binary), cfg.min_length_ratio,
        )
        self._advance(PipelineStage.LINES_EXTRACTED, stages)

        # 3. Clustering
        horizontal = cluster_lines(horizontal, cfg.merge_threshold)
        vertical = cluster_lines(vertical, cfg.merge_threshold)
        self._advance(PipelineStage.LINES_CLUSTERED, stages)

        # 4. Grid validation
        grid = validate_grid(
            horizontal, vertical,
            tolerance=cfg.intersection_tolerance,
            min_size=cfg.min_board_size,
        )
        self._advance(PipelineStage.GRID_VALIDATED, stages)
        log.info("Detected %dx%d grid", grid.size, grid.size)

        # 5. Bounds + crop + coordinate shift
        self._notify(progress, "Cropping image...")
        bounds = compute_bounds(grid.lines, cfg.bounds_padding)
        board_image = analysis.crop(image, bounds)
        binary_image = analysis.crop(binary, bounds)
        grid = project_to_bounds(grid, bounds)
        self._advance(PipelineStage.BOUNDS_COMPUTED, stages)

        # 6. Regions
        self._notify(progress, "Identifying colour regions...")
        regions = segment_regions(
            board_image, grid.cells, analysis,
            inset=cfg.sample_inset,
            hue_threshold=cfg.hue_threshold,
            saturation_threshold=cfg.saturation_threshold,
            value_threshold=cfg.value_threshold,
        )
        self._advance(PipelineStage.REGIONS_SEGMENTED, stages)

        # 7. Region validation
        validate_regions(regions, grid.size, cfg.require_connected_regions)
        self._advance(PipelineStage.REGIONS_VALIDATED, stages)

        # 8. Markers
        markers = None
        if cfg.detect_markers:
            self._notify(progress, "Detecting pre-filled markers...")
            try:
                markers = detect_markers(board_image, grid.cells, analysis)
            except PuzzleError as exc:
                log.warning("Marker scan skipped: %s", exc)

        board = BoardModel(
            size=grid.size,
            regions=regions,
            grid_lines=grid.lines,
            cells=grid.cells,
            bounds=bounds,
            markers=markers,
        )
        self._advance(PipelineStage.BOARD_READY, stages)
        log.info(
            "Board ready  size=%d  bounds=%s  regions=%d",
            board.size, bounds, len({l for row in regions for l in row}),
        )
        return board, board_image, binary_image
