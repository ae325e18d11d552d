"""
Image Analysis Capability
=========================

The detection stages never touch pixels directly.  Everything that reads
or transforms an image goes through ``ImageAnalysis``:

  • Preprocessing   – grayscale → Gaussian blur → inverse adaptive threshold
  • Line detection  – probabilistic Hough transform → ``LineSegment`` list
  • Colour sampling – single-pixel read in HSV space
  • Cropping        – axis-aligned ROI by ``BoardBounds``
  • Contours        – only for the best-effort marker classifier

``OpenCVImageAnalysis`` is the production implementation.  It expects BGR
(or BGRA / grayscale where noted) ``uint8`` images with the origin at the
top-left, x to the right and y down.  Any ``cv2.error`` or out-of-image
access is re-raised as ``CapabilityFailure`` so callers never see the
backend's native error type.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, List

import cv2
import numpy as np

from queens_vision.detection.lines import LineSegment
from queens_vision.errors import CapabilityFailure

if TYPE_CHECKING:
    from queens_vision.detection.grid import BoardBounds

log = logging.getLogger(__name__)


# ── Data classes ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class HSVColor:
    """Colour in OpenCV's 8-bit HSV convention."""
    h: int                       # 0–179
    s: int                       # 0–255
    v: int                       # 0–255


# ── Capability interface ──────────────────────────────────────────────

class ImageAnalysis(ABC):
    """Narrow pixel-level interface consumed by the detection pipeline."""

    @abstractmethod
    def to_grayscale(self, image: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    @abstractmethod
    def blur(self, image: np.ndarray, kernel: int = 5) -> np.ndarray:
        raise NotImplementedError

    @abstractmethod
    def adaptive_threshold(
        self, gray: np.ndarray, block_size: int = 11, c: float = 2.0,
    ) -> np.ndarray:
        """Inverse binary Gaussian adaptive threshold (lines become 255)."""
        raise NotImplementedError

    @abstractmethod
    def detect_line_segments(
        self,
        binary: np.ndarray,
        rho: float = 1.0,
        theta_deg: float = 1.0,
        threshold: int = 50,
        min_line_length: int = 50,
        max_line_gap: int = 10,
    ) -> List[LineSegment]:
        raise NotImplementedError

    @abstractmethod
    def sample_color(self, image: np.ndarray, x: int, y: int) -> HSVColor:
        raise NotImplementedError

    @abstractmethod
    def crop(self, image: np.ndarray, bounds: "BoardBounds") -> np.ndarray:
        raise NotImplementedError

    # Contour helpers – only used by the marker classifier.

    @abstractmethod
    def binarize(
        self, gray: np.ndarray, thresh: int = 127, inverse: bool = True,
    ) -> np.ndarray:
        raise NotImplementedError

    @abstractmethod
    def find_contours(self, binary: np.ndarray) -> List[np.ndarray]:
        raise NotImplementedError

    @abstractmethod
    def contour_area(self, contour: np.ndarray) -> float:
        raise NotImplementedError

    @abstractmethod
    def arc_length(self, contour: np.ndarray) -> float:
        raise NotImplementedError

    @abstractmethod
    def approx_polygon(
        self, contour: np.ndarray, epsilon_ratio: float = 0.04,
    ) -> np.ndarray:
        raise NotImplementedError

    def image_width(self, image: np.ndarray) -> int:
        return int(image.shape[1])


# ── OpenCV implementation ─────────────────────────────────────────────

@contextmanager
def _opencv_call(operation: str) -> Iterator[None]:
    """Translate OpenCV failures into ``CapabilityFailure``."""
    try:
        yield
    except cv2.error as exc:
        log.debug("OpenCV failure in %s: %s", operation, exc)
        raise CapabilityFailure(f"{operation}: {exc}") from exc


def _require_image(image: np.ndarray, operation: str) -> None:
    if not isinstance(image, np.ndarray):
        raise CapabilityFailure(
            f"{operation}: expected numpy array, got {type(image).__name__}"
        )
    if image.ndim not in (2, 3) or image.shape[0] == 0 or image.shape[1] == 0:
        raise CapabilityFailure(
            f"{operation}: invalid image dimensions {image.shape}"
        )
    if image.dtype != np.uint8:
        raise CapabilityFailure(
            f"{operation}: unsupported pixel format {image.dtype}"
        )


class OpenCVImageAnalysis(ImageAnalysis):
    """``ImageAnalysis`` backed by ``opencv-python``."""

    def to_grayscale(self, image: np.ndarray) -> np.ndarray:
        _require_image(image, "to_grayscale")
        if image.ndim == 2:
            return image.copy()
        channels = image.shape[2]
        with _opencv_call("to_grayscale"):
            if channels == 3:
                return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
            if channels == 4:
                return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        raise CapabilityFailure(f"to_grayscale: unsupported channel count {channels}")

    def blur(self, image: np.ndarray, kernel: int = 5) -> np.ndarray:
        _require_image(image, "blur")
        with _opencv_call("blur"):
            return cv2.GaussianBlur(image, (kernel, kernel), 0)

    def adaptive_threshold(
        self, gray: np.ndarray, block_size: int = 11, c: float = 2.0,
    ) -> np.ndarray:
        _require_image(gray, "adaptive_threshold")
        with _opencv_call("adaptive_threshold"):
            return cv2.adaptiveThreshold(
                gray, 255,
                cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
                cv2.THRESH_BINARY_INV,
                block_size, c,
            )

    def detect_line_segments(
        self,
        binary: np.ndarray,
        rho: float = 1.0,
        theta_deg: float = 1.0,
        threshold: int = 50,
        min_line_length: int = 50,
        max_line_gap: int = 10,
    ) -> List[LineSegment]:
        _require_image(binary, "detect_line_segments")
        with _opencv_call("detect_line_segments"):
            lines = cv2.HoughLinesP(
                binary, rho, np.deg2rad(theta_deg),
                threshold=threshold,
                minLineLength=min_line_length,
                maxLineGap=max_line_gap,
            )
        if lines is None:
            return []

        segments = [
            LineSegment(float(x1), float(y1), float(x2), float(y2))
            for x1, y1, x2, y2 in lines.reshape(-1, 4).tolist()
        ]
        log.debug("Hough transform returned %d segments", len(segments))
        return segments

    def sample_color(self, image: np.ndarray, x: int, y: int) -> HSVColor:
        _require_image(image, "sample_color")
        if image.ndim != 3 or image.shape[2] not in (3, 4):
            raise CapabilityFailure(
                f"sample_color: unsupported pixel format {image.shape}"
            )
        h, w = image.shape[:2]
        if not (0 <= x < w and 0 <= y < h):
            raise CapabilityFailure(
                f"sample_color: pixel ({x}, {y}) outside {w}x{h} image"
            )

        pixel = image[y:y + 1, x:x + 1]
        with _opencv_call("sample_color"):
            if pixel.shape[2] == 4:
                pixel = cv2.cvtColor(pixel, cv2.COLOR_BGRA2BGR)
            hsv = cv2.cvtColor(pixel, cv2.COLOR_BGR2HSV)[0, 0]
        return HSVColor(int(hsv[0]), int(hsv[1]), int(hsv[2]))

    def crop(self, image: np.ndarray, bounds: "BoardBounds") -> np.ndarray:
        _require_image(image, "crop")
        x, y = int(bounds.x), int(bounds.y)
        w, h = int(bounds.width), int(bounds.height)
        if x < 0 or y < 0 or w <= 0 or h <= 0:
            raise CapabilityFailure(f"crop: invalid bounds {bounds}")

        cropped = image[y:y + h, x:x + w]
        if cropped.size == 0:
            raise CapabilityFailure(
                f"crop: bounds {bounds} outside image {image.shape[:2]}"
            )
        return cropped.copy()

    def binarize(
        self, gray: np.ndarray, thresh: int = 127, inverse: bool = True,
    ) -> np.ndarray:
        _require_image(gray, "binarize")
        mode = cv2.THRESH_BINARY_INV if inverse else cv2.THRESH_BINARY
        with _opencv_call("binarize"):
            _, binary = cv2.threshold(gray, thresh, 255, mode)
        return binary

    def find_contours(self, binary: np.ndarray) -> List[np.ndarray]:
        _require_image(binary, "find_contours")
        with _opencv_call("find_contours"):
            contours, _ = cv2.findContours(
                binary, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE,
            )
        return list(contours)

    def contour_area(self, contour: np.ndarray) -> float:
        with _opencv_call("contour_area"):
            return float(cv2.contourArea(contour))

    def arc_length(self, contour: np.ndarray) -> float:
        with _opencv_call("arc_length"):
            return float(cv2.arcLength(contour, True))

    def approx_polygon(
        self, contour: np.ndarray, epsilon_ratio: float = 0.04,
    ) -> np.ndarray:
        with _opencv_call("approx_polygon"):
            peri = cv2.arcLength(contour, True)
            return cv2.approxPolyDP(contour, epsilon_ratio * peri, True)
