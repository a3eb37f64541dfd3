"""Quickselect on lists of radii, used to pick linking lengths."""

from __future__ import annotations

import random
from collections.abc import MutableSequence


def rad_partition(
    rad: MutableSequence[float], left: int, right: int, pivot_ind: int
) -> int:
    """Partition rad[left:right] around rad[pivot_ind] and return the pivot's new index.

    Afterwards every value before the returned index is <= the pivot and every
    value after it is greater.
    """
    if not left <= pivot_ind < right:
        raise IndexError(f"pivot index {pivot_ind} outside [{left}, {right})")
    if right - left == 1:
        return left
    pivot = rad[pivot_ind]
    rad[pivot_ind], rad[right - 1] = rad[right - 1], rad[pivot_ind]
    si = right - 2
    i = left
    while i < si:
        if rad[i] > pivot:
            rad[i], rad[si] = rad[si], rad[i]
            si -= 1
        else:
            i += 1
    if rad[si] <= pivot:
        si += 1
    rad[right - 1], rad[si] = rad[si], rad[right - 1]
    return si


def random_unit(rng: random.Random | None = None) -> float:
    """A uniform random number in [0, 1)."""
    return (rng or random).random()


def find_median_r(
    rad: MutableSequence[float], frac: float, rng: random.Random | None = None
) -> float:
    """Return the value at rank int(len(rad) * frac), reordering rad in place."""
    num_p = len(rad)
    if num_p == 0:
        raise ValueError("cannot select from an empty list")
    k = int(num_p * frac)
    if not 0 <= k < num_p:
        raise ValueError(f"fraction {frac} selects rank {k} outside the list")
    if num_p < 2:
        return rad[0]
    left, right = 0, num_p
    while True:
        pivot_index = rad_partition(
            rad, left, right, left + int(random_unit(rng) * (right - left))
        )
        if k == pivot_index or rad[left] == rad[right - 1]:
            return rad[k]
        if k < pivot_index:
            right = pivot_index
        else:
            left = pivot_index + 1