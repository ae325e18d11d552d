"""
Detection Configuration
=======================

All tunable constants of the detection pipeline live in one frozen
dataclass.  The defaults reproduce the reference behaviour; the CLI
overrides a handful of them from flags.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DetectionConfig:
    """Parameters for preprocessing, grid recovery and region labelling."""

    # ── Preprocessing (binarised image fed to the line detector) ──
    blur_kernel: int = 5
    threshold_block_size: int = 11
    threshold_c: float = 2.0

    # ── Probabilistic Hough transform ──
    hough_rho: float = 1.0
    hough_theta_deg: float = 1.0
    hough_threshold: int = 50
    hough_min_line_length: int = 50
    hough_max_line_gap: int = 10

    # ── Grid geometry ──
    min_length_ratio: float = 0.5    # segment length / processed image width
    merge_threshold: float = 20.0    # LineClusterer chaining distance
    intersection_tolerance: float = 10.0
    min_board_size: int = 4
    bounds_padding: int = 20

    # ── Regions ──
    sample_inset: int = 20           # distance of colour samples from cell corners
    hue_threshold: int = 10
    saturation_threshold: int = 30
    value_threshold: int = 30
    require_connected_regions: bool = False

    # ── Pre-filled markers (best effort) ──
    detect_markers: bool = True

    def validate(self) -> None:
        if self.blur_kernel <= 0 or self.blur_kernel % 2 == 0:
            raise ValueError("blur_kernel must be a positive odd integer")
        if self.threshold_block_size < 3 or self.threshold_block_size % 2 == 0:
            raise ValueError("threshold_block_size must be an odd integer >= 3")
        if not (0.0 < self.min_length_ratio <= 1.0):
            raise ValueError("min_length_ratio must be within (0, 1]")
        if self.merge_threshold <= 0:
            raise ValueError("merge_threshold must be > 0")
        if self.intersection_tolerance < 0:
            raise ValueError("intersection_tolerance must be >= 0")
        if self.min_board_size < 1:
            raise ValueError("min_board_size must be >= 1")
        if self.bounds_padding < 0:
            raise ValueError("bounds_padding must be >= 0")
        if self.sample_inset < 0:
            raise ValueError("sample_inset must be >= 0")
        if min(self.hue_threshold, self.saturation_threshold, self.value_threshold) < 0:
            raise ValueError("colour thresholds must be >= 0")
