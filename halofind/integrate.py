"""Adaptive Simpson quadrature."""

from __future__ import annotations

from typing import Callable


def _simpson_step(
    f: Callable[[float], float],
    a: float,
    b: float,
    epsilon: float,
    whole: float,
    fa: float,
    fb: float,
    fc: float,
    depth: int,
) -> float:
    c = (a + b) / 2
    h = b - a
    d = (a + c) / 2
    e = (c + b) / 2
    fd = f(d)
    fe = f(e)
    left = (h / 12) * (fa + 4 * fd + fc)
    right = (h / 12) * (fc + 4 * fe + fb)
    both = left + right
    if depth <= 0 or abs(both - whole) <= 15 * epsilon:
        return both + (both - whole) / 15
    return _simpson_step(f, a, c, epsilon / 2, left, fa, fc, fd, depth - 1) + _simpson_step(
        f, c, b, epsilon / 2, right, fc, fb, fe, depth - 1
    )


def adaptive_simpsons(
    f: Callable[[float], float], a: float, b: float, epsilon: float, max_depth: int
) -> float:
    """Integrate f over [a, b] to tolerance epsilon, recursing at most max_depth levels."""
    c = (a + b) / 2
    h = b - a
    fa, fb, fc = f(a), f(b), f(c)
    whole = (h / 6) * (fa + 4 * fc + fb)
    return _simpson_step(f, a, b, epsilon, whole, fa, fb, fc, max_depth)