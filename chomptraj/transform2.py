"""Rigid and affine transformations of the plane."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from chomptraj.angles import clamp_angle, interp_angle

Vec2 = tuple[float, float]


def _vec(p: Sequence[float]) -> Vec2:
    return (float(p[0]), float(p[1]))


def _rot_mat(theta: float) -> np.ndarray:
    c, s = math.cos(theta), math.sin(theta)
    return np.array([[c, -s], [s, c]])


def _apply(m: np.ndarray, p: Sequence[float]) -> Vec2:
    x, y = float(p[0]), float(p[1])
    return (
        float(m[0, 0] * x + m[0, 1] * y),
        float(m[1, 0] * x + m[1, 1] * y),
    )


@dataclass
class Transform2:
    """A rotation by ``rotation`` radians followed by a translation."""

    translation: Vec2 = (0.0, 0.0)
    rotation: float = 0.0

    def __post_init__(self) -> None:
        self.translation = _vec(self.translation)
        self.rotation = float(self.rotation)

    def interpolate(self, other: "Transform2", u: float) -> "Transform2":
        """Blend towards ``other``; the rotation follows the shorter arc."""
        a, b = self.translation, other.translation
        return Transform2(
            (a[0] + u * (b[0] - a[0]), a[1] + u * (b[1] - a[1])),
            interp_angle(self.rotation, other.rotation, u),
        )

    def rot_fwd(self) -> np.ndarray:
        """Rotation matrix of this transform."""
        return _rot_mat(self.rotation)

    def rot_inv(self) -> np.ndarray:
        """Inverse (transposed) rotation matrix."""
        return _rot_mat(self.rotation).T

    def transform_fwd(self, p: Sequence[float]) -> Vec2:
        """Map a point through this transform."""
        x, y = _apply(self.rot_fwd(), p)
        return (x + self.translation[0], y + self.translation[1])

    def transform_inv(self, p: Sequence[float]) -> Vec2:
        """Map a point through the inverse of this transform."""
        return _apply(
            self.rot_inv(),
            (float(p[0]) - self.translation[0], float(p[1]) - self.translation[1]),
        )

    def inverse(self) -> "Transform2":
        return Transform2(self.transform_inv((0.0, 0.0)), -self.rotation)

    def compose(self, other: "Transform2") -> "Transform2":
        """Transform that applies ``other`` first, then this one."""
        return Transform2(
            self.transform_fwd(other.translation),
            clamp_angle(self.rotation + other.rotation),
        )

    def __mul__(self, other):
        if isinstance(other, Transform2):
            return self.compose(other)
        return self.transform_fwd(other)

    def __str__(self) -> str:
        return (
            f"< {self.translation[0]}, {self.translation[1]}, "
            f"{self.rotation * 180 / math.pi}>"
        )


@dataclass
class Affine2:
    """A general affine map ``p -> m @ p + v``."""

    m: np.ndarray = field(default_factory=lambda: np.eye(2))
    v: Vec2 = (0.0, 0.0)

    def __post_init__(self) -> None:
        self.m = np.array(self.m, dtype=float).reshape(2, 2)
        self.v = _vec(self.v)

    @classmethod
    def identity(cls) -> "Affine2":
        return cls()

    @classmethod
    def translation(cls, tx: float, ty: float) -> "Affine2":
        return cls(np.eye(2), (tx, ty))

    @classmethod
    def rotation(cls, theta: float) -> "Affine2":
        """Rotation about the origin by ``theta`` radians."""
        return cls(_rot_mat(theta))

    @classmethod
    def scale(cls, sx: float, sy: float) -> "Affine2":
        return cls(np.array([[sx, 0.0], [0.0, sy]]))

    @classmethod
    def from_transform(cls, transform: Transform2) -> "Affine2":
        return cls(transform.rot_fwd(), transform.translation)

    def inverse(self) -> "Affine2":
        """Inverse map; a singular matrix yields non-finite entries."""
        a, b = self.m[0]
        c, d = self.m[1]
        det = a * d - b * c
        adj = np.array([[d, -b], [-c, a]], dtype=float)
        with np.errstate(divide="ignore", invalid="ignore"):
            minv = adj / np.float64(det)
        x, y = _apply(minv, self.v)
        return Affine2(minv, (-x, -y))

    def transform(self, p: Sequence[float]) -> Vec2:
        x, y = _apply(self.m, p)
        return (x + self.v[0], y + self.v[1])

    def compose(self, other: "Affine2") -> "Affine2":
        """Map that applies ``other`` first, then this one."""
        return Affine2(self.m @ other.m, self.transform(other.v))

    def __mul__(self, other):
        if isinstance(other, Affine2):
            return self.compose(other)
        return self.transform(other)