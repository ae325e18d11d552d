"""
Grid Lines – Extraction & Clustering
====================================

Stage 1 – **LineExtractor**
    Keeps raw Hough segments at least ``min_length_ratio`` × image width
    long and splits them by angle-from-horizontal: ``< 45°`` horizontal
    (anchored at the midpoint y), ``> 45°`` vertical (anchored at the
    midpoint x).  Segments at exactly 45° belong to neither and are
    dropped.

Stage 2 – **LineClusterer**
    Greedy chained clustering along the anchor axis.  Lines are sorted by
    anchor, and each line joins the running group when it lies closer than
    ``threshold`` to the group's *last* member (not its first).  A group
    therefore may span more than ``threshold`` in total; puzzle screenshots
    tolerate that approximation.  Each group collapses into one line:

      • anchor             – mean of the group's anchors
      • extent along line  – min / max over the group (full span kept)
      • far endpoints      – mean of the group's endpoint coordinates
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import List, Sequence, Tuple, TypeVar, Union

log = logging.getLogger(__name__)


# ── Data classes ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class LineSegment:
    """Raw segment from the line detector."""
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def length(self) -> float:
        return math.hypot(self.x2 - self.x1, self.y2 - self.y1)

    @property
    def angle(self) -> float:
        """Absolute angle from horizontal in degrees, folded into [0, 90]."""
        angle = abs(math.degrees(math.atan2(self.y2 - self.y1, self.x2 - self.x1)))
        return min(angle, 180.0 - angle)


@dataclass(frozen=True)
class HorizontalLine:
    """Horizontal grid line at ``y`` spanning ``x1 → x2`` (``x1 <= x2``).

    ``y1`` / ``y2`` keep the endpoint heights of the underlying segment(s).
    """
    y: float
    x1: float
    x2: float
    y1: float
    y2: float

    @property
    def anchor(self) -> float:
        return self.y

    @classmethod
    def from_segment(cls, seg: LineSegment) -> "HorizontalLine":
        if seg.x1 <= seg.x2:
            x1, y1, x2, y2 = seg.x1, seg.y1, seg.x2, seg.y2
        else:
            x1, y1, x2, y2 = seg.x2, seg.y2, seg.x1, seg.y1
        return cls(y=(y1 + y2) / 2, x1=x1, x2=x2, y1=y1, y2=y2)

    @classmethod
    def merge(cls, group: Sequence["HorizontalLine"]) -> "HorizontalLine":
        n = len(group)
        return cls(
            y=sum(l.y for l in group) / n,
            x1=min(l.x1 for l in group),
            x2=max(l.x2 for l in group),
            y1=sum(l.y1 for l in group) / n,
            y2=sum(l.y2 for l in group) / n,
        )

    def shifted(self, dx: float, dy: float) -> "HorizontalLine":
        return replace(
            self, y=self.y + dy, x1=self.x1 + dx, x2=self.x2 + dx,
            y1=self.y1 + dy, y2=self.y2 + dy,
        )


@dataclass(frozen=True)
class VerticalLine:
    """Vertical grid line at ``x`` spanning ``y1 → y2`` (``y1 <= y2``).

    ``x1`` / ``x2`` keep the endpoint positions of the underlying segment(s).
    """
    x: float
    y1: float
    y2: float
    x1: float
    x2: float

    @property
    def anchor(self) -> float:
        return self.x

    @classmethod
    def from_segment(cls, seg: LineSegment) -> "VerticalLine":
        if seg.y1 <= seg.y2:
            x1, y1, x2, y2 = seg.x1, seg.y1, seg.x2, seg.y2
        else:
            x1, y1, x2, y2 = seg.x2, seg.y2, seg.x1, seg.y1
        return cls(x=(x1 + x2) / 2, y1=y1, y2=y2, x1=x1, x2=x2)

    @classmethod
    def merge(cls, group: Sequence["VerticalLine"]) -> "VerticalLine":
        n = len(group)
        return cls(
            x=sum(l.x for l in group) / n,
            y1=min(l.y1 for l in group),
            y2=max(l.y2 for l in group),
            x1=sum(l.x1 for l in group) / n,
            x2=sum(l.x2 for l in group) / n,
        )

    def shifted(self, dx: float, dy: float) -> "VerticalLine":
        return replace(
            self, x=self.x + dx, y1=self.y1 + dy, y2=self.y2 + dy,
            x1=self.x1 + dx, x2=self.x2 + dx,
        )


GridLine = Union[HorizontalLine, VerticalLine]
L = TypeVar("L", HorizontalLine, VerticalLine)


# ── Stage 1: extraction ───────────────────────────────────────────────

def extract_lines(
    segments: Sequence[LineSegment],
    image_width: int,
    min_length_ratio: float = 0.5,
) -> Tuple[List[HorizontalLine], List[VerticalLine]]:
    """Filter raw segments into horizontal and vertical candidates.

    Parameters
    ----------
    segments : sequence of LineSegment
        Output of the line detector, in detector order.
    image_width : int
        Width of the processed image; the length cut-off is
        ``min_length_ratio * image_width``.
    min_length_ratio : float
        Fraction of the image width a segment must reach (inclusive).

    Returns
    -------
    (horizontal, vertical)
        Unordered candidate lists.  Either may be empty.
    """
    min_length = min_length_ratio * image_width
    horizontal: List[HorizontalLine] = []
    vertical: List[VerticalLine] = []

    for seg in segments:
        if seg.length < min_length:
            continue
        # |dy| vs |dx| is the 45° test without trigonometric round-off.
        dx = abs(seg.x2 - seg.x1)
        dy = abs(seg.y2 - seg.y1)
        if dy < dx:
            horizontal.append(HorizontalLine.from_segment(seg))
        elif dy > dx:
            vertical.append(VerticalLine.from_segment(seg))

    log.debug(
        "Extracted %d horizontal / %d vertical candidates from %d segments",
        len(horizontal), len(vertical), len(segments),
    )
    return horizontal, vertical


# ── Stage 2: clustering ───────────────────────────────────────────────

def cluster_lines(lines: Sequence[L], threshold: float = 20.0) -> List[L]:
    """Merge near-duplicate parallel lines (greedy, chained).

    All lines must share one orientation.  Single-member groups are
    returned untouched, so an already-clustered set is a fixed point.
    """
    if not lines:
        return []

    ordered = sorted(lines, key=lambda l: l.anchor)
    merged: List[L] = []
    group: List[L] = [ordered[0]]

    for line in ordered[1:]:
        if abs(line.anchor - group[-1].anchor) < threshold:
            group.append(line)
        else:
            merged.append(_merge_group(group))
            group = [line]
    merged.append(_merge_group(group))

    log.debug("Clustered %d lines into %d", len(lines), len(merged))
    return merged


def _merge_group(group: List[L]) -> L:
    if len(group) == 1:
        return group[0]
    return type(group[0]).merge(group)
