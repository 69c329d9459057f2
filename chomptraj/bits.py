"""Bit tricks on 32-bit unsigned integers."""

from __future__ import annotations

_UINT32_MAX = 0xFFFFFFFF


def _check_uint32(value: int) -> int:
    if not 0 <= value <= _UINT32_MAX:
        raise ValueError(f"{value} is not a 32-bit unsigned integer")
    return value


def nlz(x: int) -> int:
    """Number of leading zero bits in the 32-bit representation of ``x``."""
    return 32 - _check_uint32(x).bit_length()


def bin2gray(k: int) -> int:
    """Convert a binary number to its reflected Gray code."""
    _check_uint32(k)
    return k ^ (k >> 1)


def gray2bin(gray: int) -> int:
    """Convert a reflected Gray code back to binary."""
    _check_uint32(gray)
    for shift in (16, 8, 4, 2, 1):
        gray ^= gray >> shift
    return gray