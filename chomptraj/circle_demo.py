"""Demo: a smooth path between two points forced through a circle.

The middle half of the trajectory is constrained to lie on the circle of
radius 2 about the origin, while the rest is free.
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

import numpy as np

from chomptraj.chomp import Chomp, DebugChompObserver
from chomptraj.constraints import Constraint, ConstraintFactory, NullConstraint

_RADIUS_SQUARED = 4.0

USAGE = (
    "usage: circle_demo OPTIONS\n"
    "\n"
    "OPTIONS:\n"
    "\n"
    "  -n, --num-initial        Number of steps for initial trajectory\n"
    "  -t, --num-final          Minimum number of steps for final trajectory\n"
    "  -l, --no-local           Disable local smoothing\n"
    "  -g, --no-global          Disable global smoothing\n"
    "  -m, --no-multigrid       Disable multigrid computation\n"
    "  -e, --error-tol          Relative error tolerance\n"
    "  -a, --alpha              Step size for CHOMP\n"
    "  -p, --pdf                Output PDF's\n"
    "      --help               See this message.\n"
)


class CircleConstraint(Constraint):
    """Keeps a 2D configuration on the circle of radius 2 about the origin."""

    def num_outputs(self) -> int:
        return 1

    def evaluate(self, qt) -> tuple[np.ndarray, np.ndarray]:
        q = np.asarray(qt, dtype=float)
        if q.size != 2 or (q.ndim > 1 and min(q.shape) != 1):
            raise ValueError("circle constraint needs a single 2D configuration")
        q = q.ravel()
        h = np.array([[float(np.dot(q, q)) - _RADIUS_SQUARED]])
        jac = (2.0 * q).reshape(1, 2)
        return h, jac


class CircleFactory(ConstraintFactory):
    """Constrains the middle half of the trajectory to the circle."""

    def get_constraint(self, t: int, total: int) -> Constraint:
        if 4 * (t + 1) < total + 1 or 4 * (t + 1) > 3 * (total + 1):
            return NullConstraint()
        return CircleConstraint()


def generate_initial_traj(n: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Straight-line trajectory of ``n`` points; returns ``(xi, q0, q1)``."""
    q0 = np.array([[-3.0, 5.0]])
    q1 = np.array([[5.0, -3.0]])
    steps = np.arange(1, n + 1, dtype=float).reshape(n, 1)
    xi = steps * (q1 - q0) / (n + 1) + q0
    return xi, q0, q1


class _UsageError(Exception):
    pass


class _Parser(argparse.ArgumentParser):
    def error(self, message):  # type: ignore[override]
        raise _UsageError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = _Parser(prog="circle_demo", add_help=False)
    parser.add_argument("-n", "--num-initial", type=int, default=15, dest="n")
    parser.add_argument("-t", "--num-final", type=int, default=127, dest="n_max")
    parser.add_argument("-e", "--error-tol", type=float, default=1e-7, dest="error_tol")
    parser.add_argument("-a", "--alpha", type=float, default=0.05, dest="alpha")
    parser.add_argument("-m", "--no-multigrid", action="store_false", dest="multigrid")
    parser.add_argument("-g", "--no-global", action="store_false", dest="global_smooth")
    parser.add_argument("-l", "--no-local", action="store_false", dest="local_smooth")
    parser.add_argument("-p", "--pdf", action="store_true", dest="pdf")
    parser.add_argument("-h", "--help", action="store_true", dest="help")
    return parser


def _on_off(flag: bool) -> str:
    return "ON" if flag else "OFF"


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the circle demo; returns the process exit status."""
    args_list = list(sys.argv[1:] if argv is None else argv)
    try:
        args = _build_parser().parse_args(args_list)
    except _UsageError:
        sys.stderr.write(USAGE)
        return 1

    if args.help:
        sys.stdout.write(USAGE)
        return 0

    n = args.n
    local_smooth = args.local_smooth
    if not args.multigrid:
        n = args.n_max
        local_smooth = False

    print("about to optimize with settings:")
    print(f"  init n:           {n}")
    print(f"  final n:          {args.n_max}")
    print(f"  step size:        {args.alpha:g}")
    print(f"  error tol:        {args.error_tol:g}")
    print(f"  multigrid:        {_on_off(args.multigrid)}")
    print(f"  local smoothing:  {_on_off(local_smooth)}")
    print(f"  global smoothing: {_on_off(args.global_smooth)}\n")

    if n < 1:
        print("error: the initial trajectory needs at least one step", file=sys.stderr)
        return 1

    xi, q0, q1 = generate_initial_traj(n)
    try:
        chomper = Chomp(CircleFactory(), xi, q0, q1, args.n_max, args.alpha, args.error_tol)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    # PDF output is not supported; the flag is accepted and ignored.
    chomper.observer = DebugChompObserver()
    chomper.solve(args.global_smooth, local_smooth)
    return 0


if __name__ == "__main__":
    sys.exit(main())