"""Binary space-partitioning tree over point positions for fast range searches."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

DEFAULT_DIM = 3
DEFAULT_POINTS_PER_LEAF = 40
MARKED = 1


@dataclass(eq=False)
class Node:
    """A tree node covering points[start:start + num_points] of its tree."""

    start: int = 0
    num_points: int = 0
    min: list[float] = field(default_factory=list)
    max: list[float] = field(default_factory=list)
    div_dim: int = -1
    flags: int = 0
    left: Node | None = field(default=None, repr=False)
    right: Node | None = field(default=None, repr=False)
    parent: Node | None = field(default=None, repr=False)


def _position(point: Any, dim: int) -> tuple[float, ...]:
    pos = getattr(point, "pos", point)
    if len(pos) < dim:
        raise ValueError(f"point {point!r} has fewer than {dim} coordinates")
    return tuple(float(pos[k]) for k in range(dim))


def _dist2(a: Sequence[float], b: Sequence[float]) -> float:
    return sum((x - y) * (x - y) for x, y in zip(a, b))


def _misses_sphere(node: Node, c: Sequence[float], r: float) -> bool:
    d = 0.0
    r2 = r * r
    for ci, lo, hi in zip(c, node.min, node.max):
        e = ci - lo
        if e < 0:
            d += e * e
            if d >= r2:
                return True
        else:
            e = ci - hi
            if e > 0:
                d += e * e
                if d >= r2:
                    return True
    return False


def _inside_sphere(node: Node, c: Sequence[float], r: float) -> bool:
    if abs(c[0] - node.min[0]) > r:
        return False
    dist = 0.0
    r2 = r * r
    for ci, lo, hi in zip(c, node.min, node.max):
        dist += max((lo - ci) ** 2, (ci - hi) ** 2)
        if dist > r2:
            return False
    return True


def _sphere_inside_box(node: Node, c: Sequence[float], r: float) -> bool:
    return all(ci - r >= lo and ci + r <= hi for ci, lo, hi in zip(c, node.min, node.max))


def _box_inside_box(node: Node, b: Sequence[float], dim: int) -> bool:
    return all(
        node.max[i] <= b[i + dim] and node.min[i] >= b[i] for i in range(dim)
    )


def _box_intersects_box(node: Node, b: Sequence[float], dim: int) -> bool:
    return all(
        node.max[i] >= b[i] and node.min[i] <= b[i + dim] for i in range(dim)
    )


def _point_in_box(pos: Sequence[float], b: Sequence[float], dim: int) -> bool:
    return all(b[i] <= pos[i] <= b[i + dim] for i in range(dim))


class Fast3Tree:
    """Tree over points given as coordinate sequences or objects with a ``pos``.

    Points with non-finite coordinates are moved to the end of ``points`` and
    left out of the tree. Searches return indices into ``points``, whose order
    is rearranged by building.
    """

    def __init__(
        self,
        points: Iterable[Any] = (),
        dim: int = DEFAULT_DIM,
        points_per_leaf: int = DEFAULT_POINTS_PER_LEAF,
    ) -> None:
        if dim < 1:
            raise ValueError("dim must be at least 1")
        if points_per_leaf < 1:
            raise ValueError("points_per_leaf must be at least 1")
        self.dim = dim
        self.points_per_leaf = points_per_leaf
        self.rebuild(points)

    def rebuild(self, points: Iterable[Any]) -> None:
        """Build the tree anew from points."""
        pts = list(points)
        pos = [_position(p, self.dim) for p in pts]
        n = len(pts)
        i = 0
        while i < n:
            if all(math.isfinite(x) for x in pos[i]):
                i += 1
                continue
            n -= 1
            pts[i], pts[n] = pts[n], pts[i]
            pos[i], pos[n] = pos[n], pos[i]
        self.points = pts
        self.positions = pos
        self.num_points = n

        root = Node(start=0, num_points=n, min=[0.0] * self.dim, max=[0.0] * self.dim)
        self.root = root
        self.nodes = [root]
        if n:
            self._find_minmax(root)
        stack = [root] if n > self.points_per_leaf else []
        while stack:
            stack.extend(reversed(self._split(stack.pop())))

    def maxmin_rebuild(self) -> None:
        """Re-read point positions and refresh node bounds, keeping the structure."""
        self.positions[: len(self.points)] = [_position(p, self.dim) for p in self.points]
        if not self.num_points:
            return
        for node in reversed(self.nodes):
            if node.div_dim < 0:
                if node.num_points:
                    self._find_minmax(node)
                continue
            left, right = node.left, node.right
            node.min = [min(a, b) for a, b in zip(left.min, right.min)]
            node.max = [max(a, b) for a, b in zip(left.max, right.max)]

    def find_sphere(self, c: Sequence[float], r: float) -> list[int]:
        """Indices of points within distance r of c."""
        return self._sphere_search(self._center(c), r, None)

    def find_sphere_skip(self, index: int, r: float) -> list[int]:
        """Neighbours of points[index] within r, skipping nodes entirely before it."""
        if not 0 <= index < self.num_points:
            raise IndexError(f"point index {index} out of range")
        return self._sphere_search(self.positions[index], r, index)

    def find_inside_of_box(self, b: Sequence[float]) -> list[int]:
        """Indices of points inside the box (lows..., highs...), edges included."""
        b = self._box(b)
        out: list[int] = []
        if not self.num_points:
            return out
        stack = [self.root]
        while stack:
            n = stack.pop()
            if not _box_intersects_box(n, b, self.dim):
                continue
            if _box_inside_box(n, b, self.dim):
                out.extend(range(n.start, n.start + n.num_points))
            elif n.div_dim < 0:
                out.extend(
                    i
                    for i in range(n.start, n.start + n.num_points)
                    if _point_in_box(self.positions[i], b, self.dim)
                )
            else:
                stack.append(n.right)
                stack.append(n.left)
        return out

    def find_outside_of_box(self, b: Sequence[float]) -> list[int]:
        """Indices of points outside the box (lows..., highs...)."""
        b = self._box(b)
        out: list[int] = []
        if not self.num_points:
            return out
        stack = [self.root]
        while stack:
            n = stack.pop()
            if _box_inside_box(n, b, self.dim):
                continue
            if not _box_intersects_box(n, b, self.dim):
                out.extend(range(n.start, n.start + n.num_points))
            elif n.div_dim < 0:
                out.extend(
                    i
                    for i in range(n.start, n.start + n.num_points)
                    if not _point_in_box(self.positions[i], b, self.dim)
                )
            else:
                stack.append(n.right)
                stack.append(n.left)
        return out

    def _sphere_search(
        self, c: Sequence[float], r: float, skip: int | None
    ) -> list[int]:
        out: list[int] = []
        if not self.num_points:
            return out
        r2 = r * r
        pos = self.positions
        stack = [self.root]
        while stack:
            n = stack.pop()
            end = n.start + n.num_points
            if skip is not None and end <= skip:
                continue
            if _misses_sphere(n, c, r):
                continue
            if self.dim < 6 and _inside_sphere(n, c, r):
                out.extend(range(n.start, end))
                continue
            if n.div_dim < 0:
                first = n.start
                if skip is not None and n.start < skip:
                    out.append(skip)
                    first = skip + 1
                out.extend(i for i in range(first, end) if _dist2(c, pos[i]) < r2)
                continue
            stack.append(n.right)
            stack.append(n.left)
        return out

    def _center(self, c: Sequence[float]) -> tuple[float, ...]:
        if len(c) < self.dim:
            raise ValueError(f"center needs {self.dim} coordinates")
        return tuple(float(c[k]) for k in range(self.dim))

    def _box(self, b: Sequence[float]) -> tuple[float, ...]:
        if len(b) < 2 * self.dim:
            raise ValueError(f"box needs {2 * self.dim} coordinates")
        return tuple(float(b[k]) for k in range(2 * self.dim))

    def _find_minmax(self, node: Node) -> None:
        pos = self.positions
        first = pos[node.start]
        lo = list(first)
        hi = list(first)
        for i in range(node.start + 1, node.start + node.num_points):
            for k, x in enumerate(pos[i]):
                if x < lo[k]:
                    lo[k] = x
                elif x > hi[k]:
                    hi[k] = x
        node.min = lo
        node.max = hi

    def _largest_dim(self, node: Node) -> int:
        best = self.dim - 1
        extent = node.max[best] - node.min[best]
        for k in range(self.dim - 1):
            d = node.max[k] - node.min[k]
            if d > extent:
                extent = d
                best = k
        return best

    def _partition(self, node: Node) -> int:
        dim = node.div_dim = self._largest_dim(node)
        if node.max[dim] == node.min[dim]:
            return node.num_points
        lim = 0.5 * (node.max[dim] + node.min[dim])
        pos = self.positions
        pts = self.points
        i = node.start
        j = node.start + node.num_points - 1
        while i < j:
            if pos[i][dim] > lim:
                pos[i], pos[j] = pos[j], pos[i]
                pts[i], pts[j] = pts[j], pts[i]
                j -= 1
            else:
                i += 1
        if i == j and pos[i][dim] <= lim:
            i += 1
        return i - node.start

    def _split(self, node: Node) -> list[Node]:
        num_left = self._partition(node)
        if num_left in (0, node.num_points):
            node.div_dim = -1
            return []
        left = Node(start=node.start, num_points=num_left, parent=node)
        right = Node(
            start=node.start + num_left,
            num_points=node.num_points - num_left,
            parent=node,
        )
        self._find_minmax(left)
        self._find_minmax(right)
        node.left = left
        node.right = right
        self.nodes.extend((left, right))
        return [c for c in (left, right) if c.num_points > self.points_per_leaf]