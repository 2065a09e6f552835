from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

import numpy as np


# Core geometry types used by every entity and query
@dataclass(frozen=True)
class Point2D:
    x: float  # local projected frame, not lon/lat
    y: float

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __add__(self, other: Point2D) -> Point2D:
        return Point2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point2D) -> Point2D:
        return Point2D(self.x - other.x, self.y - other.y)

    def __mul__(self, k: float) -> Point2D:
        return Point2D(self.x * k, self.y * k)

    __rmul__ = __mul__

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def distance_to(self, other: Point2D) -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def lerp(self, other: Point2D, alpha: float) -> Point2D:
        return Point2D(
            self.x + alpha * (other.x - self.x),
            self.y + alpha * (other.y - self.y),
        )


Pt = Point2D | tuple[float, float]


def to_point(p: Pt) -> Point2D:
    return p if isinstance(p, Point2D) else Point2D(float(p[0]), float(p[1]))


@dataclass(frozen=True)
class BoundingBox:
    min: Point2D
    max: Point2D

    @classmethod
    def empty(cls) -> BoundingBox:
        return cls(Point2D(math.inf, math.inf), Point2D(-math.inf, -math.inf))

    @classmethod
    def from_points(cls, points: Iterable[Pt]) -> BoundingBox:
        arr = as_array(points)
        if arr.shape[0] == 0:
            return cls.empty()
        lo, hi = arr.min(axis=0), arr.max(axis=0)
        return cls(Point2D(float(lo[0]), float(lo[1])), Point2D(float(hi[0]), float(hi[1])))

    @property
    def is_empty(self) -> bool:
        return self.min.x > self.max.x or self.min.y > self.max.y

    @property
    def size(self) -> Point2D:
        if self.is_empty:
            return Point2D(0.0, 0.0)
        return self.max - self.min

    @property
    def center(self) -> Point2D:
        return self.min.lerp(self.max, 0.5)

    def union(self, other: BoundingBox) -> BoundingBox:
        if self.is_empty:
            return other
        if other.is_empty:
            return self
        return BoundingBox(
            Point2D(min(self.min.x, other.min.x), min(self.min.y, other.min.y)),
            Point2D(max(self.max.x, other.max.x), max(self.max.y, other.max.y)),
        )

    def contains(self, p: Pt) -> bool:
        q = to_point(p)
        return self.min.x <= q.x <= self.max.x and self.min.y <= q.y <= self.max.y


# -------- polyline helpers


def as_array(points: Iterable[Pt]) -> np.ndarray:
    """(N, 2) float array of the given points; empty input gives shape (0, 2)."""
    rows = [(p.x, p.y) if isinstance(p, Point2D) else (p[0], p[1]) for p in points]
    if not rows:
        return np.empty((0, 2), dtype=float)
    return np.asarray(rows, dtype=float)


def polyline_segment_lengths(points: Sequence[Pt]) -> np.ndarray:
    """Euclidean length of each segment; N points give N-1 lengths."""
    arr = as_array(points)
    if arr.shape[0] < 2:
        return np.zeros(0, dtype=float)
    d = np.diff(arr, axis=0)
    return np.hypot(d[:, 0], d[:, 1])


def polyline_cumulative_lengths(points: Sequence[Pt]) -> np.ndarray:
    """Running distance from the first point; entry i is the position of point i."""
    seg = polyline_segment_lengths(points)
    out = np.zeros(len(points), dtype=float)
    if seg.size:
        # cumsum is sequential, so entry i equals the left-to-right sum of seg[:i]
        np.cumsum(seg, out=out[1:])
    return out
