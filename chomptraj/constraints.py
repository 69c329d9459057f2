"""Per-timestep equality constraints on a trajectory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

import numpy as np


class Constraint(ABC):
    """An equality constraint ``h(q) = 0`` on a single configuration."""

    @abstractmethod
    def num_outputs(self) -> int:
        """Maximum number of rows ``evaluate`` returns."""

    @abstractmethod
    def evaluate(self, qt) -> tuple[np.ndarray, np.ndarray]:
        """Return ``(h, H)``: residual column and its Jacobian with respect to ``qt``."""


class NullConstraint(Constraint):
    """A constraint that imposes nothing."""

    def num_outputs(self) -> int:
        return 0

    def evaluate(self, qt) -> tuple[np.ndarray, np.ndarray]:
        dof = np.asarray(qt).size
        return np.zeros((0, 1)), np.zeros((0, dof))


class ConstantConstraint(Constraint):
    """Fixes selected degrees of freedom to constant values."""

    def __init__(self, index: Sequence[int], value: Sequence[float]) -> None:
        if len(index) != len(value):
            raise ValueError("index and value must have the same length")
        if len(set(index)) != len(index):
            raise ValueError("at most one constraint per degree of freedom")
        self.index = [int(i) for i in index]
        self.value = [float(v) for v in value]

    def num_outputs(self) -> int:
        return len(self.index)

    def evaluate(self, qt) -> tuple[np.ndarray, np.ndarray]:
        q = np.asarray(qt, dtype=float)
        if q.ndim > 1 and min(q.shape) != 1:
            raise ValueError("qt must be a single row or column")
        q = q.ravel()
        dof = q.size
        count = len(self.index)
        h = np.zeros((count, 1))
        jac = np.zeros((count, dof))
        for row, (idx, val) in enumerate(zip(self.index, self.value)):
            if idx >= dof:
                raise ValueError(f"index {idx} out of range for {dof} degrees of freedom")
            h[row, 0] = q[idx] - val
            jac[row, idx] = 1.0
        return h, jac


class ConstraintFactory(ABC):
    """Builds the constraint for every timestep and stacks their values."""

    @abstractmethod
    def get_constraint(self, t: int, total: int) -> Optional[Constraint]:
        """Constraint for timestep ``t`` of ``total``; None means unconstrained."""

    def get_all(self, total: int) -> list[Optional[Constraint]]:
        """Constraints for all ``total`` timesteps."""
        return [self.get_constraint(t, total) for t in range(total)]

    def evaluate(self, constraints, xi, step: int = 1) -> tuple[np.ndarray, np.ndarray]:
        """Stack constraints of every ``step``-th timestep of ``xi``.

        Returns ``(h, H)``.  The columns of ``H`` follow the column-major
        flattening of the sampled ``timesteps``-by-``M`` trajectory, so column
        ``j * timesteps + i`` belongs to coordinate ``j`` of sample ``i``.
        """
        x = np.asarray(xi, dtype=float)
        if x.ndim != 2 or x.shape[0] != len(constraints):
            raise ValueError("xi must have one row per constraint")
        dof = x.shape[1]
        sampled = list(constraints)[::step]
        timesteps = len(sampled)

        h_rows: list[float] = []
        jac_rows: list[np.ndarray] = []
        for i, (c, qt) in enumerate(zip(sampled, x[::step])):
            if c is None or c.num_outputs() == 0:
                continue
            h, jac = c.evaluate(qt)
            if h.shape[0] == 0:
                continue
            if jac.shape != (h.shape[0], dof) or h.shape[0] > c.num_outputs():
                raise ValueError("constraint returned values of the wrong shape")
            for r in range(h.shape[0]):
                full = np.zeros(dof * timesteps)
                full[np.arange(dof) * timesteps + i] = jac[r]
                h_rows.append(float(h[r, 0]))
                jac_rows.append(full)

        h_tot = np.array(h_rows, dtype=float).reshape(len(h_rows), 1)
        if jac_rows:
            jac_tot = np.vstack(jac_rows)
        else:
            jac_tot = np.zeros((0, dof * timesteps))
        return h_tot, jac_tot