"""Axis-aligned boxes (x0, y0, z0, x1, y1, z1) in a possibly periodic volume."""

from __future__ import annotations

from collections.abc import Sequence


def check_bounds(
    pos: Sequence[float],
    bounds: Sequence[float],
    periodic: bool = True,
    box_size: float = 250.0,
) -> tuple[float, float, float] | None:
    """Return pos, wrapped by one box length if needed, when it lies in bounds; else None."""
    result = []
    for x, lo, hi in zip(pos[:3], bounds[:3], bounds[3:6]):
        if x > hi:
            if not (lo < 0 and periodic):
                return None
            wrapped = x - box_size
            if wrapped > hi or wrapped < lo:
                return None
        elif x < lo:
            if not (hi > box_size and periodic):
                return None
            wrapped = x + box_size
            if wrapped > hi or wrapped < lo:
                return None
        else:
            wrapped = x
        result.append(wrapped)
    return tuple(result)


def check_bounds_raw(pos: Sequence[float], bounds: Sequence[float]) -> bool:
    """True when pos lies in [lower, upper) along all three axes."""
    return all(lo <= x < hi for x, lo, hi in zip(pos[:3], bounds[:3], bounds[3:6]))


def wrap_into_box(
    pos: Sequence[float], periodic: bool = True, box_size: float = 250.0
) -> list[float]:
    """Shift the first three coordinates back into [0, box_size] by one box length."""
    wrapped = list(pos)
    if not periodic or not box_size:
        return wrapped
    for i, x in enumerate(wrapped[:3]):
        if x > box_size:
            wrapped[i] = x - box_size
        elif x < 0:
            wrapped[i] = x + box_size
    return wrapped


def bounds_overlap(
    b1: Sequence[float],
    b2: Sequence[float],
    overlap: float,
    periodic: bool = True,
    box_size: float = 250.0,
) -> tuple[float, ...] | None:
    """Return b2 grown by overlap when b1 meets it (allowing periodic images); else None."""
    lows = []
    highs = []
    for lo1, hi1, lo2, hi2 in zip(b1[:3], b1[3:6], b2[:3], b2[3:6]):
        lo = lo2 - overlap
        hi = hi2 + overlap
        first = -1 if (lo < 0 and periodic) else 0
        last = 2 if (hi > box_size and periodic) else 1
        if not any(
            lo1 + w * box_size < hi and hi1 + w * box_size > lo for w in range(first, last)
        ):
            return None
        lows.append(lo)
        highs.append(hi)
    return tuple(lows + highs)


def bounds_union(b1: Sequence[float], b2: Sequence[float]) -> tuple[float, ...]:
    """Smallest box holding both boxes."""
    lows = [min(a, b) for a, b in zip(b1[:3], b2[:3])]
    highs = [max(a, b) for a, b in zip(b1[3:6], b2[3:6])]
    return tuple(lows + highs)