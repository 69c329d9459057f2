"""Regular 3D grids of cubic cells with trilinear sampling."""

from __future__ import annotations

import math
from itertools import product
from typing import Optional, Sequence

from chomptraj.vec3 import Vec3

Sub3 = tuple[int, int, int]


def _v3(p: Sequence[float]) -> Vec3:
    return p if isinstance(p, Vec3) else Vec3(float(p[0]), float(p[1]), float(p[2]))


class Grid3:
    """Cell layout of a 3D grid; cell (0, 0, 0) starts at ``origin``."""

    def __init__(self) -> None:
        self._clear()

    def _clear(self) -> None:
        self.dims: Sub3 = (0, 0, 0)
        self.size = 0
        self.origin = Vec3()
        self.cell_size = 0.0

    @property
    def nx(self) -> int:
        return self.dims[0]

    @property
    def ny(self) -> int:
        return self.dims[1]

    @property
    def nz(self) -> int:
        return self.dims[2]

    def is_empty(self) -> bool:
        return self.size == 0

    def resize(self, dims: Sequence[int], cell_size: float, origin: Sequence[float]) -> None:
        """Set the dimensions directly; any zero dimension leaves the grid empty."""
        self._clear()
        d = (int(dims[0]), int(dims[1]), int(dims[2]))
        size = d[0] * d[1] * d[2]
        if not size:
            return
        self.dims = d
        self.size = size
        self.cell_size = float(cell_size)
        self.origin = _v3(origin)

    def resize_to_bounds(
        self, pmin: Sequence[float], pmax: Sequence[float], cell_size: float
    ) -> None:
        """Cover ``pmin``..``pmax`` with cells, centred on their midpoint."""
        self._clear()
        lo, hi = _v3(pmin), _v3(pmax)
        center = 0.5 * (hi + lo)
        dims = []
        origin = []
        for i in range(3):
            f = (hi[i] - lo[i]) / cell_size
            if f < 0:
                return
            n = int(math.ceil(f))
            dims.append(n)
            origin.append(center[i] - 0.5 * cell_size * n)
        self.resize(dims, cell_size, origin)

    def bbox(self) -> Optional[tuple[Vec3, Vec3]]:
        """Corners of the grid, or None when it is empty."""
        if self.is_empty():
            return None
        cs = self.cell_size
        return self.origin, self.origin + Vec3(cs * self.nx, cs * self.ny, cs * self.nz)

    def center(self) -> Vec3:
        c = 0.5 * self.cell_size
        return self.origin + Vec3(c * self.nx, c * self.ny, c * self.nz)

    def _vec2sub(self, pos: Sequence[float], delta: float) -> Sub3:
        if self.is_empty():
            raise ValueError("grid is empty")
        v = (_v3(pos) - self.origin) * (1 / self.cell_size)
        return tuple(  # type: ignore[return-value]
            min(int(max(v[i] + delta, 0.0)), self.dims[i] - 1) for i in range(3)
        )

    def floor_cell(self, pos: Sequence[float]) -> Sub3:
        """Cell whose centre is at or below ``pos`` on each axis (clamped)."""
        return self._vec2sub(pos, -0.5)

    def ceil_cell(self, pos: Sequence[float]) -> Sub3:
        """Cell whose centre is at or above ``pos`` on each axis (clamped)."""
        return self._vec2sub(pos, 0.5)

    def nearest_cell(self, pos: Sequence[float]) -> Sub3:
        """Cell containing ``pos`` (clamped to the grid)."""
        return self._vec2sub(pos, 0.0)

    def cell_center(self, sub: Sequence[int]) -> Vec3:
        return self.origin + Vec3(sub[0] + 0.5, sub[1] + 0.5, sub[2] + 0.5) * self.cell_size

    def sub2ind(self, sub: Sequence[int]) -> int:
        """Linear index of a cell, with x varying fastest."""
        return int(sub[0]) + self.nx * (int(sub[1]) + self.ny * int(sub[2]))

    def ind2sub(self, idx: int) -> Sub3:
        rest, x = divmod(idx, self.nx)
        z, y = divmod(rest, self.ny)
        return (x, y, z)

    def sample_coeffs(self, pos: Sequence[float]) -> tuple[Sub3, tuple[float, float, float]]:
        """Lower cell and per-axis weight of that cell for trilinear sampling."""
        p = _v3(pos)
        fs = self.floor_cell(p)
        fv = self.cell_center(fs)
        alpha = []
        for j in range(3):
            diff = p[j] - fv[j]
            if diff < 0 or diff >= self.cell_size or fs[j] + 1 >= self.dims[j]:
                alpha.append(1.0)
            else:
                alpha.append(1 - diff / self.cell_size)
        return fs, tuple(alpha)  # type: ignore[return-value]

    def sample(self, pos: Sequence[float], data):
        """Trilinearly interpolate ``data``, indexed by linear cell index, at ``pos``."""
        fs, alpha = self.sample_coeffs(pos)
        total = None
        for d in product((0, 1), repeat=3):
            coeff = 1.0
            for j in range(3):
                coeff *= (1 - alpha[j]) if d[j] else alpha[j]
            if not coeff:
                continue
            term = coeff * data[self.sub2ind((fs[0] + d[0], fs[1] + d[1], fs[2] + d[2]))]
            total = term if total is None else total + term
        return 0.0 if total is None else total