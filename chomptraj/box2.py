"""Axis-aligned 2D boxes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from chomptraj.bits import bin2gray

Vec2 = tuple[float, float]


def _vec(p: Sequence[float]) -> Vec2:
    return (float(p[0]), float(p[1]))


def _clip_test(p: float, q: float, u0: float, u1: float) -> Optional[tuple[float, float]]:
    if p == 0 and q < 0:
        return None
    if p < 0:
        u = q / p
        if u > u1:
            return None
        if u > u0:
            u0 = u
    elif p > 0:
        u = q / p
        if u < u0:
            return None
        if u < u1:
            u1 = u
    return u0, u1


@dataclass
class Box2:
    """A box spanning ``p0`` to ``p1``; empty when ``p0`` exceeds ``p1`` on an axis."""

    p0: Vec2 = (1.0, 1.0)
    p1: Vec2 = (-1.0, -1.0)

    def __post_init__(self) -> None:
        self.p0 = _vec(self.p0)
        self.p1 = _vec(self.p1)

    def lerp(self, x: float, y: float) -> Vec2:
        """Point at fractional coordinates (x, y) within the box."""
        return (
            self.p0[0] + x * (self.p1[0] - self.p0[0]),
            self.p0[1] + y * (self.p1[1] - self.p0[1]),
        )

    def corner(self, i: int) -> Vec2:
        """Corner ``i`` (0-3), ordered counter-clockwise from ``p0``."""
        gray = bin2gray(i)
        return self.lerp(gray & 0x01, (gray & 0x02) >> 1)

    def is_empty(self) -> bool:
        return self.p0[0] > self.p1[0] or self.p0[1] > self.p1[1]

    def center(self) -> Vec2:
        return (0.5 * (self.p0[0] + self.p1[0]), 0.5 * (self.p0[1] + self.p1[1]))

    def contains(self, point: Sequence[float]) -> bool:
        return all(self.p0[i] <= point[i] <= self.p1[i] for i in range(2))

    def add_point(self, point: Sequence[float]) -> None:
        """Grow the box to include ``point``."""
        v = _vec(point)
        if self.is_empty():
            self.p0 = self.p1 = v
        else:
            self.p0 = (min(self.p0[0], v[0]), min(self.p0[1], v[1]))
            self.p1 = (max(self.p1[0], v[0]), max(self.p1[1], v[1]))

    def dilate(self, d: float) -> None:
        """Grow the box by ``d`` on every side."""
        self.p0 = (self.p0[0] - d, self.p0[1] - d)
        self.p1 = (self.p1[0] + d, self.p1[1] + d)

    def clear(self) -> None:
        """Make the box empty."""
        self.p0 = (1.0, 1.0)
        self.p1 = (-1.0, -1.0)

    def intersects(self, other: "Box2") -> bool:
        if self.is_empty() or other.is_empty():
            return False
        return not any(
            self.p0[i] > other.p1[i] or self.p1[i] < other.p0[i] for i in range(2)
        )

    def unite(self, other: "Box2") -> "Box2":
        """Smallest box containing both boxes."""
        if self.is_empty():
            return Box2(other.p0, other.p1)
        if other.is_empty():
            return Box2(self.p0, self.p1)
        return Box2(
            (min(self.p0[0], other.p0[0]), min(self.p0[1], other.p0[1])),
            (max(self.p1[0], other.p1[0]), max(self.p1[1], other.p1[1])),
        )

    def intersect(self, other: "Box2") -> "Box2":
        """Overlap of the two boxes (empty if they do not overlap)."""
        if self.is_empty():
            return Box2(self.p0, self.p1)
        if other.is_empty():
            return Box2(other.p0, other.p1)
        return Box2(
            (max(self.p0[0], other.p0[0]), max(self.p0[1], other.p0[1])),
            (min(self.p1[0], other.p1[0]), min(self.p1[1], other.p1[1])),
        )

    def closest(self, point: Sequence[float]) -> Vec2:
        """Point of the box nearest to ``point``."""
        return tuple(  # type: ignore[return-value]
            min(max(float(point[i]), self.p0[i]), self.p1[i]) for i in range(2)
        )

    def clip_line(
        self, v0: Sequence[float], v1: Sequence[float]
    ) -> Optional[tuple[float, float]]:
        """Parameters (u0, u1) of the part of segment v0-v1 inside the box, or None."""
        a, b = _vec(v0), _vec(v1)
        delta = (b[0] - a[0], b[1] - a[1])
        u0, u1 = 0.0, 1.0
        for i in range(2):
            for p, q in ((-delta[i], a[i] - self.p0[i]), (delta[i], self.p1[i] - a[i])):
                result = _clip_test(p, q, u0, u1)
                if result is None:
                    return None
                u0, u1 = result
        return u0, u1

    def clip_segment(
        self, v0: Sequence[float], v1: Sequence[float]
    ) -> Optional[tuple[Vec2, Vec2]]:
        """Endpoints of the part of segment v0-v1 inside the box, or None."""
        params = self.clip_line(v0, v1)
        if params is None:
            return None
        u0, u1 = params
        a, b = _vec(v0), _vec(v1)
        delta = (b[0] - a[0], b[1] - a[1])
        return (
            (a[0] + delta[0] * u0, a[1] + delta[1] * u0),
            (a[0] + delta[0] * u1, a[1] + delta[1] * u1),
        )