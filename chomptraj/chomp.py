"""Covariant trajectory optimisation with multigrid upsampling.

A trajectory is an ``n``-by-``m`` array of configurations between two fixed
endpoints ``q0`` and ``q1``.  The optimiser minimises a smoothness objective
(velocity or acceleration), plus an optional extra cost supplied by a gradient
helper.  Equality constraints are produced per timestep by a
:class:`~chomptraj.constraints.ConstraintFactory`.
"""

from __future__ import annotations

import math
import sys
from abc import ABC, abstractmethod
from enum import Enum, IntEnum
from typing import Optional, TextIO

import numpy as np

from chomptraj.constraints import ConstraintFactory
from chomptraj.matops import (
    create_b_matrix,
    diag_mul,
    get_pos,
    skyline_chol,
    skyline_chol_solve,
)


class ChompEventType(IntEnum):
    """Events reported to an observer while optimising."""

    INIT = 0
    GLOBAL_ITER = 1
    LOCAL_ITER = 2
    FINISH = 3


class ObjectiveType(Enum):
    """Smoothness quantity that the optimiser minimises."""

    MINIMIZE_VELOCITY = "velocity"
    MINIMIZE_ACCELERATION = "acceleration"


_EVENT_NAMES = {
    ChompEventType.INIT: "CHOMP_INIT",
    ChompEventType.GLOBAL_ITER: "CHOMP_GLOBAL_ITER",
    ChompEventType.LOCAL_ITER: "CHOMP_LOCAL_ITER",
    ChompEventType.FINISH: "CHOMP_FINISH",
}


def event_type_string(event) -> str:
    """Name of an event type, or ``"[INVALID]"`` for an unknown value."""
    try:
        return _EVENT_NAMES[ChompEventType(event)]
    except (ValueError, KeyError):
        return "[INVALID]"


class ChompObserver:
    """Receives progress events; a truthy return value stops the current loop."""

    def notify(self, chomp, event, iteration, cur_objective, last_objective,
               constraint_violation) -> int:
        return 0


def _relative_change(cur: float, last: float) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(last - cur) / np.float64(cur))


class DebugChompObserver(ChompObserver):
    """Prints every event; stops when an objective becomes non-finite."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream

    def notify(self, chomp, event, iteration, cur_objective, last_objective,
               constraint_violation) -> int:
        out = self.stream if self.stream is not None else sys.stdout
        rel = _relative_change(cur_objective, last_objective)
        print(
            "chomp debug: "
            f"event={event_type_string(event)}, "
            f"iter={int(iteration)}, "
            f"cur={cur_objective:.10g}, "
            f"last={last_objective:.10g}, "
            f"rel={rel:.10g}, "
            f"constraint={constraint_violation:.10g}",
            file=out,
        )
        if not (math.isfinite(cur_objective) and math.isfinite(last_objective)):
            return 1
        return 0


class ChompGradientHelper(ABC):
    """Adds an extra cost term and its gradient to the objective."""

    @abstractmethod
    def add_to_gradient(self, chomp: "Chomp", g: np.ndarray) -> float:
        """Accumulate the extra gradient into ``g`` in place; return the extra cost."""


class ChompCollisionHelper(ABC):
    """Workspace cost of bodies attached to a configuration."""

    def __init__(self, ncspace: int, nwkspace: int, nbodies: int) -> None:
        self.ncspace = ncspace
        self.nwkspace = nwkspace
        self.nbodies = nbodies

    @abstractmethod
    def get_cost(self, q, body_index):
        """Return ``(cost, dx_dq, cgrad)`` for body ``body_index`` at ``q``.

        ``dx_dq`` is the ``nwkspace``-by-``ncspace`` Jacobian of the body's
        workspace position and ``cgrad`` the workspace cost gradient.
        """


class ChompCollGradHelper(ChompGradientHelper):
    """Obstacle cost integrated along the workspace path of each body."""

    def __init__(self, chelper: ChompCollisionHelper, gamma: float) -> None:
        self.chelper = chelper
        self.gamma = gamma

    def add_to_gradient(self, chomp: "Chomp", g: np.ndarray) -> float:
        nw = self.chelper.nwkspace
        nc = self.chelper.ncspace
        inv_dt = chomp.inv_dt
        identity = np.eye(nw)
        prev = chomp.tick_border_repeat(-1)
        cur = chomp.tick_border_repeat(0)
        total = 0.0

        for t in range(chomp.n):
            nxt = chomp.tick_border_repeat(t + 1)
            cspace_vel = 0.5 * (nxt - prev) * inv_dt
            cspace_accel = (prev - 2.0 * cur + nxt) * (inv_dt * inv_dt)

            for body in range(self.chelper.nbodies):
                cost, dx_dq, cgrad = self.chelper.get_cost(cur, body)
                cost = float(cost)
                if cost <= 0.0:
                    continue
                jac = np.asarray(dx_dq, dtype=float).reshape(nw, nc)
                grad = np.asarray(cgrad, dtype=float).reshape(nw)

                wk_vel = jac @ cspace_vel
                wk_accel = jac @ cspace_accel
                wv_norm = float(np.linalg.norm(wk_vel))
                wk_vel = wk_vel / wv_norm

                scl = wv_norm * self.gamma / inv_dt
                total += cost * scl

                proj = identity - np.outer(wk_vel, wk_vel)
                curvature = (proj @ wk_accel) / (wv_norm * wv_norm)
                g[t] += scl * (jac.T @ (proj @ grad - cost * curvature))

            prev, cur = cur, nxt

        return total


class Chomp:
    """Trajectory optimiser over an ``n``-by-``m`` trajectory ``xi``."""

    def __init__(
        self,
        factory: Optional[ConstraintFactory],
        xi_init,
        q0,
        q1,
        max_n: int,
        alpha: float,
        obj_rel_err_tol: float,
        max_global_iter: int = 100,
        max_local_iter: int = 100,
        t_total: float = 1.0,
    ) -> None:
        self.factory = factory
        self.observer: Optional[ChompObserver] = None
        self.ghelper: Optional[ChompGradientHelper] = None
        self.objective_type = ObjectiveType.MINIMIZE_ACCELERATION

        self.xi = np.array(xi_init, dtype=float, ndmin=2)
        if self.xi.ndim != 2:
            raise ValueError("xi_init must be a 2D array")
        self.q0 = np.array(q0, dtype=float, ndmin=2)
        self.q1 = np.array(q1, dtype=float, ndmin=2)
        self.n, self.m = self.xi.shape
        for name, q in (("q0", self.q0), ("q1", self.q1)):
            if q.ndim != 2 or q.shape[0] < 1 or q.shape[1] != self.m:
                raise ValueError(f"{name} must have at least one row of width {self.m}")

        self.min_n = self.n
        self.max_n = int(max_n)
        if self.max_n < self.min_n:
            raise ValueError("max_n must not be smaller than the initial size")

        self.alpha = float(alpha)
        self.obj_rel_err_tol = float(obj_rel_err_tol)
        self.max_global_iter = int(max_global_iter)
        self.max_local_iter = int(max_local_iter)
        self.full_global_at_final = False
        self.t_total = float(t_total)

        self.n_sub = 0
        self.dt = self.t_total / (self.n + 1)
        self.inv_dt = (self.n + 1) / self.t_total
        self.fscl = 1.0
        self.fextra = 0.0
        self.hmag = 0.0
        self.cur_global_iter = 0
        self.cur_local_iter = 0
        self.total_global_iter = 0
        self.total_local_iter = 0
        self.constraints: list = []
        self.coeffs = np.array([1.0, -4.0, 6.0])
        self.coeffs_sub = np.array([1.0, 6.0])
        self.b = np.zeros_like(self.xi)
        self.c = 0.0
        self._reset_work()

    def _reset_work(self) -> None:
        self.L: Optional[np.ndarray] = None
        self.L_sub: Optional[np.ndarray] = None
        self.g = np.zeros((0, self.m))
        self.g_sub = np.zeros((0, self.m))
        self.xi_sub = np.zeros((0, self.m))
        self.Ax = np.zeros((0, self.m))
        self.h = np.zeros((0, 1))
        self.h_sub = np.zeros((0, 1))
        self.H = np.zeros((0, 0))
        self.H_sub = np.zeros((0, 0))

    def prepare_chomp(self) -> None:
        """Set up the matrices for the current resolution."""
        if self.objective_type is ObjectiveType.MINIMIZE_VELOCITY:
            self.coeffs = np.array([-1.0, 2.0])
            self.coeffs_sub = np.array([2.0])
        else:
            self.coeffs = np.array([1.0, -4.0, 6.0])
            self.coeffs_sub = np.array([1.0, 6.0])

        self.constraints = self.factory.get_all(self.n) if self.factory else []
        self.L = skyline_chol(self.n, self.coeffs)

        self.dt = self.t_total / (self.n + 1)
        self.inv_dt = (self.n + 1) / self.t_total
        self.b, self.c = create_b_matrix(self.n, self.coeffs, self.q0, self.q1, self.dt)
        self.g = np.zeros((self.n, self.m))

        subsample = self.n > self.min_n
        if self.full_global_at_final and self.n >= self.max_n:
            subsample = False

        if subsample:
            self.n_sub = (self.n + 1) // 2
            self.g_sub = np.zeros((self.n_sub, self.m))
            self.xi_sub = np.zeros((self.n_sub, self.m))
            self.L_sub = skyline_chol(self.n_sub, self.coeffs_sub)
        else:
            self.n_sub = 0

        if self.objective_type is ObjectiveType.MINIMIZE_VELOCITY:
            self.fscl = self.inv_dt ** 2
        else:
            self.fscl = self.inv_dt ** 3

        self.cur_global_iter = 0
        self.cur_local_iter = 0

    def prepare_chomp_iter(self) -> None:
        """Compute the gradient and constraints for the current trajectory."""
        self.Ax = diag_mul(self.coeffs, self.xi)
        self.g = self.Ax + self.b

        self.fextra = self.ghelper.add_to_gradient(self, self.g) if self.ghelper else 0.0

        if self.n_sub:
            self.g_sub = self.g[::2].copy()
            self.xi_sub = self.xi[::2].copy()
            if self.factory:
                self.h_sub, self.H_sub = self.factory.evaluate(self.constraints, self.xi, 2)
        elif self.factory:
            self.h, self.H = self.factory.evaluate(self.constraints, self.xi, 1)

        if self.h.shape[0]:
            self.hmag = float(np.abs(self.h).max())
        elif self.h_sub.shape[0]:
            self.hmag = float(np.abs(self.h_sub).max())
        else:
            self.hmag = 0.0

    def run_chomp(self, global_smoothing: bool, local_smoothing: bool) -> None:
        """Iterate at the current resolution until convergence."""
        self.prepare_chomp_iter()
        last = self.evaluate_objective()

        if self.notify(ChompEventType.INIT, 0, last, -1, self.hmag):
            global_smoothing = local_smoothing = False

        self.cur_global_iter = 0
        while global_smoothing:
            self.chomp_global()
            self.cur_global_iter += 1
            self.total_global_iter += 1
            self.prepare_chomp_iter()
            cur = self.evaluate_objective()
            if self.good_enough(last, cur) or self.cur_global_iter >= self.max_global_iter:
                global_smoothing = False
            if self.notify(ChompEventType.GLOBAL_ITER, self.cur_global_iter,
                           cur, last, self.hmag):
                global_smoothing = False
            last = cur

        if self.full_global_at_final and self.n >= self.max_n:
            local_smoothing = False

        self.cur_local_iter = 0
        while local_smoothing:
            self.local_smooth()
            self.cur_local_iter += 1
            self.total_local_iter += 1
            self.prepare_chomp_iter()
            cur = self.evaluate_objective()
            if self.good_enough(last, cur) or self.cur_local_iter >= self.max_local_iter:
                local_smoothing = False
            if self.notify(ChompEventType.LOCAL_ITER, self.cur_local_iter,
                           cur, last, self.hmag):
                local_smoothing = False
            last = cur

        if self.factory and self.n_sub:
            self.h, self.H = self.factory.evaluate(self.constraints, self.xi, 1)
            if self.h.shape[0]:
                self.hmag = float(np.abs(self.h).max())

        self.notify(ChompEventType.FINISH, 0, last, -1, self.hmag)

    def solve(self, global_smoothing: bool, local_smoothing: bool) -> None:
        """Optimise, upsampling until the trajectory has at least ``max_n`` steps."""
        self.total_global_iter = 0
        self.total_local_iter = 0
        self.cur_global_iter = 0
        self.cur_local_iter = 0

        while True:
            self.prepare_chomp()
            self.run_chomp(global_smoothing, local_smoothing)
            if self.n >= self.max_n:
                break
            self.upsample()

        if self.factory and self.n_sub:
            self.h, self.H = self.factory.evaluate(self.constraints, self.xi, 1)

    def tick_border_repeat(self, tick: int) -> np.ndarray:
        """Configuration at ``tick``, extending past the ends with the endpoints."""
        if tick < 0:
            return get_pos(self.q0, (tick + 1) * self.dt)
        if tick >= self.xi.shape[0]:
            return get_pos(self.q1, (tick - self.xi.shape[0]) * self.dt)
        return self.xi[tick].copy()

    def upsample(self) -> None:
        """Double the resolution: ``n`` becomes ``2n + 1``."""
        n_up = 2 * self.n + 1
        xi_up = np.zeros((n_up, self.m))
        c3 = -1.0 / 160
        c1 = 81.0 / 160
        for t in range(n_up):
            half = t // 2
            if t % 2:
                xi_up[t] = self.xi[half]
            elif self.objective_type is ObjectiveType.MINIMIZE_VELOCITY:
                xi_up[t] = 0.5 * (self.tick_border_repeat(half - 1)
                                  + self.tick_border_repeat(half))
            else:
                xi_up[t] = (c3 * self.tick_border_repeat(half - 2)
                            + c1 * self.tick_border_repeat(half - 1)
                            + c1 * self.tick_border_repeat(half)
                            + c3 * self.tick_border_repeat(half + 1))
        self.n = n_up
        self.xi = xi_up
        self._reset_work()
        self.n_sub = 0

    def _solve_flat(self, lower: np.ndarray, flat: np.ndarray) -> np.ndarray:
        rows = lower.shape[0]
        shape = (rows, self.m) + flat.shape[1:]
        rect = flat.reshape(shape, order="F")
        return skyline_chol_solve(lower, rect).reshape(flat.shape, order="F")

    def chomp_global(self) -> None:
        """One covariant gradient step, projected onto the constraints."""
        subsample = self.n_sub != 0
        if subsample:
            H, g, L, h, n_which = self.H_sub, self.g_sub, self.L_sub, self.h_sub, self.n_sub
        else:
            H, g, L, h, n_which = self.H, self.g, self.L, self.h, self.n

        if H.shape[0] == 0:
            delta = skyline_chol_solve(L, self.alpha * g)
        else:
            if H.shape[1] != n_which * self.m:
                raise ValueError("constraint Jacobian has the wrong number of columns")
            P = self._solve_flat(L, H.T.copy())
            HP = H @ P
            Y = np.linalg.solve(HP, P.T)
            g_flat = g.reshape(-1, order="F")
            W = g_flat - H.T @ (Y @ g_flat)
            W = self._solve_flat(L, W)
            Y = np.linalg.solve(HP, h)
            delta_flat = self.alpha * W + (P @ Y).ravel()
            delta = delta_flat.reshape(n_which, self.m, order="F")

        if subsample:
            self.xi[0:2 * n_which:2] -= delta
        else:
            self.xi -= delta

    def local_smooth(self) -> None:
        """One pointwise gradient step, projected onto each timestep's constraint."""
        self.hmag = 0.0
        identity = np.eye(self.m)
        for t in range(self.n):
            c = self.constraints[t] if self.constraints else None
            grad = self.g[t]
            h_t = jac = None
            if c is not None and c.num_outputs() > 0:
                h_t, jac = c.evaluate(self.xi[t])
                if h_t.shape[0] > 0:
                    self.hmag = max(self.hmag, float(np.abs(h_t).max()))
                else:
                    h_t = None
            if h_t is not None:
                p_inv = np.linalg.inv(jac @ jac.T)
                delta = (-self.alpha * (identity - jac.T @ p_inv @ jac) @ grad
                         - (jac.T @ p_inv @ h_t).ravel())
            else:
                delta = -self.alpha * grad
            self.xi[t] += delta

    def evaluate_objective(self) -> float:
        """Objective value; valid after ``prepare_chomp_iter``."""
        smooth = 0.5 * float(np.sum(self.xi * self.Ax)) + float(np.sum(self.xi * self.b)) + self.c
        return smooth * self.fscl + self.fextra

    def good_enough(self, old_objective: float, new_objective: float) -> bool:
        """True when the relative change of the objective is below tolerance."""
        if new_objective == 0:
            return False
        return abs((old_objective - new_objective) / new_objective) < self.obj_rel_err_tol

    def constrained_upsample_to(self, n_max: int, htol: float, hstep: float) -> None:
        """Upsample until ``n >= n_max``, projecting new points onto their constraints."""
        while self.n < n_max:
            self.upsample()
            self.prepare_chomp()
            for i in range(0, self.n, 2):
                c = self.constraints[i] if self.constraints else None
                if c is None or not c.num_outputs():
                    continue
                while True:
                    h, jac = c.evaluate(self.xi[i])
                    if not h.shape[0]:
                        break
                    if float(np.abs(h).max()) < htol:
                        break
                    delta, *_ = np.linalg.lstsq(jac, h, rcond=None)
                    self.xi[i] -= hstep * delta.ravel()
            self.prepare_chomp_iter()
            self.evaluate_objective()

    def notify(self, event, iteration, cur_objective, last_objective,
               constraint_violation) -> int:
        """Forward an event to the observer, if any; returns its verdict."""
        if self.observer is None:
            return 0
        return self.observer.notify(self, event, iteration, cur_objective,
                                    last_objective, constraint_violation)