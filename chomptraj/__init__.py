"""Trajectory optimization with banded solvers, equality constraints, multigrid upsampling and small geometry helpers."""

__version__ = "0.1.0"