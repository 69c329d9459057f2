"""Three-dimensional vectors with the usual arithmetic."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class Vec3:
    """An immutable 3D vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def fill(cls, value: float) -> "Vec3":
        """Return a vector whose three components all equal ``value``."""
        return cls(value, value, value)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __getitem__(self, i: int) -> float:
        return (self.x, self.y, self.z)[i]

    def __len__(self) -> int:
        return 3

    def __add__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> "Vec3":
        return Vec3(-self.x, -self.y, -self.z)

    def __mul__(self, s: float) -> "Vec3":
        return Vec3(self.x * s, self.y * s, self.z * s)

    __rmul__ = __mul__

    def __truediv__(self, s: float) -> "Vec3":
        return Vec3(self.x / s, self.y / s, self.z / s)

    def __str__(self) -> str:
        return f"({self.x}, {self.y}, {self.z})"

    def norm(self) -> float:
        """Euclidean length."""
        return math.sqrt(self.norm2())

    def norm2(self) -> float:
        """Squared Euclidean length."""
        return self.x * self.x + self.y * self.y + self.z * self.z

    def infnorm(self) -> float:
        """Largest absolute component."""
        return max(abs(self.x), abs(self.y), abs(self.z))

    def proj(self) -> tuple[float, float]:
        """Homogeneous projection: the first two components divided by the third."""
        return (self.x / self.z, self.y / self.z)

    def trunc(self) -> tuple[float, float]:
        """The first two components."""
        return (self.x, self.y)

    def normalize(self) -> "Vec3":
        """Unit vector with the same direction."""
        length = self.norm()
        return Vec3(self.x / length, self.y / length, self.z / length)

    def dot(self, other: "Vec3") -> float:
        """Dot product."""
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vec3") -> "Vec3":
        """Cross product."""
        return Vec3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def lerp(self, other: "Vec3", u: float) -> "Vec3":
        """Linear interpolation, with ``u`` clamped to [0, 1]."""
        if u < 0:
            return self
        if u > 1:
            return other
        return (1 - u) * self + u * other

    def smoothstep(self, other: "Vec3", u: float) -> "Vec3":
        """Cubic interpolation between this vector and ``other``."""
        uu = 2 * u * u * u + 3 * u * u
        return self.lerp(other, uu)