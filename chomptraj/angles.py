"""Helpers for wrapping and interpolating angles in radians."""

from __future__ import annotations

import math

_TWO_PI = 2 * math.pi


def clamp_angle(angle: float, twopi: bool = False) -> float:
    """Wrap ``angle`` into [-pi, pi), or into [0, 2*pi) if ``twopi`` is set."""
    lower = 0.0 if twopi else -math.pi
    upper = _TWO_PI if twopi else math.pi
    while angle < lower:
        angle += _TWO_PI
    while angle >= upper:
        angle -= _TWO_PI
    return angle


def delta_angle(angle2: float, angle1: float) -> float:
    """Signed shortest difference ``angle2 - angle1``, within [-pi, pi]."""
    diff = angle2 - angle1
    while diff > math.pi:
        diff -= _TWO_PI
    while diff < -math.pi:
        diff += _TWO_PI
    return diff


def interp_angle(angle1: float, angle2: float, u: float, twopi: bool = False) -> float:
    """Interpolate from ``angle1`` towards ``angle2`` along the shorter arc."""
    diff = delta_angle(angle2, angle1)
    return clamp_angle(angle1 + u * diff, twopi)