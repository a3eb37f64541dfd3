"""Sphere searches with periodic wrapping and nearest-neighbour distances on a tree."""

from __future__ import annotations

import math
from collections.abc import Sequence
from enum import IntEnum

from .tree import MARKED, Fast3Tree, Node, _inside_sphere, _misses_sphere, _sphere_inside_box


class SphereSearch(IntEnum):
    """How a periodic or marked sphere search was carried out."""

    TOO_LARGE = 0
    """The sphere is wider than half the tree's extent; nothing was searched."""
    WRAPPED = 1
    """The sphere crossed the tree's edge and periodic images were searched."""
    INSIDE = 2
    """The sphere lies within the tree's bounds (or wrapping was not asked for)."""


def _center(tree: Fast3Tree, c: Sequence[float]) -> list[float]:
    if len(c) < tree.dim:
        raise ValueError(f"center needs {tree.dim} coordinates")
    return [float(c[k]) for k in range(tree.dim)]


def _find_sphere_offset(
    tree: Fast3Tree,
    n: Node,
    c: Sequence[float],
    c2: Sequence[float],
    o: Sequence[float],
    r: float,
    marked: bool,
    do_marking: bool,
    out: list[int],
) -> None:
    if not n.num_points:
        return
    only_one = marked and bool(n.flags & MARKED)
    if _misses_sphere(n, c2, r * 1.01):
        return
    end = n.start + n.num_points
    if _inside_sphere(n, c2, r * 0.99):
        if do_marking:
            n.flags |= MARKED
        if only_one:
            out.append(n.start)
        else:
            out.extend(range(n.start, end))
        return

    if n.div_dim < 0:
        r2 = r * r
        for i in range(n.start, end):
            pos = tree.positions[i]
            dist = sum((oj - abs(cj - pj)) ** 2 for oj, cj, pj in zip(o, c, pos))
            if dist < r2:
                out.append(i)
                if only_one:
                    return
        return

    before = len(out)
    _find_sphere_offset(tree, n.left, c, c2, o, r, marked, do_marking, out)
    if only_one and before < len(out):
        return
    _find_sphere_offset(tree, n.right, c, c2, o, r, marked, do_marking, out)


def _find_sphere_periodic_dim(
    tree: Fast3Tree,
    c: Sequence[float],
    c2: Sequence[float],
    o: list[float],
    r: float,
    dims: Sequence[float],
    dim: int,
    marked: bool,
    do_marking: bool,
    out: list[int],
) -> None:
    if dim < 0:
        _find_sphere_offset(tree, tree.root, c, c2, o, r, marked, do_marking, out)
        return
    c3 = list(c2)
    o[dim] = 0.0
    _find_sphere_periodic_dim(tree, c, c3, o, r, dims, dim - 1, marked, do_marking, out)
    if c[dim] + r > tree.root.max[dim]:
        c3[dim] = c[dim] - dims[dim]
        o[dim] = dims[dim]
        _find_sphere_periodic_dim(tree, c, c3, o, r, dims, dim - 1, marked, do_marking, out)
    if c[dim] - r < tree.root.min[dim]:
        c3[dim] = c[dim] + dims[dim]
        o[dim] = dims[dim]
        _find_sphere_periodic_dim(tree, c, c3, o, r, dims, dim - 1, marked, do_marking, out)


def _periodic_dims(tree: Fast3Tree, r: float) -> list[float] | None:
    dims = [hi - lo for lo, hi in zip(tree.root.min, tree.root.max)]
    if any(r * 2.0 > d for d in dims):
        return None
    return dims


def find_sphere_periodic(
    tree: Fast3Tree, c: Sequence[float], r: float
) -> tuple[SphereSearch, list[int]]:
    """Points within r of c, treating the tree's bounding box as periodic.

    Returns the kind of search made and the indices found; a sphere wider than
    half the box along any axis is refused with ``SphereSearch.TOO_LARGE``.
    """
    c = _center(tree, c)
    if _sphere_inside_box(tree.root, c, r):
        return SphereSearch.INSIDE, tree.find_sphere(c, r)
    dims = _periodic_dims(tree, r)
    if dims is None:
        return SphereSearch.TOO_LARGE, []
    out: list[int] = []
    _find_sphere_periodic_dim(
        tree, c, c, [0.0] * tree.dim, r, dims, tree.dim - 1, False, False, out
    )
    return SphereSearch.WRAPPED, out


def find_sphere_marked(
    tree: Fast3Tree,
    c: Sequence[float],
    r: float,
    periodic: bool = True,
    do_marking: bool = False,
) -> tuple[SphereSearch, list[int]]:
    """Sphere search that reports one point per node already marked.

    Nodes lying wholly inside the sphere are marked when do_marking is true;
    later searches return only a single representative point from them.
    """
    c = _center(tree, c)
    out: list[int] = []
    if not periodic or _sphere_inside_box(tree.root, c, r):
        _find_sphere_offset(
            tree, tree.root, c, c, [0.0] * tree.dim, r, True, do_marking, out
        )
        return SphereSearch.INSIDE, out
    dims = _periodic_dims(tree, r)
    if dims is None:
        return SphereSearch.TOO_LARGE, out
    _find_sphere_periodic_dim(
        tree, c, c, [0.0] * tree.dim, r, dims, tree.dim - 1, True, do_marking, out
    )
    return SphereSearch.WRAPPED, out


def _next_closest(
    tree: Fast3Tree, n: Node, c: Sequence[float], r: float, skip: Node
) -> float:
    if n is skip or _misses_sphere(n, c, r):
        return r
    if n.div_dim < 0:
        r2 = r * r
        for i in range(n.start, n.start + n.num_points):
            dist = sum((cj - pj) ** 2 for cj, pj in zip(c, tree.positions[i]))
            if dist < r2:
                r2 = dist
        return math.sqrt(r2)
    d = n.div_dim
    first, second = n.left, n.right
    if c[d] > 0.5 * (n.min[d] + n.max[d]):
        first, second = n.right, n.left
    r = _next_closest(tree, first, c, r, skip)
    return _next_closest(tree, second, c, r, skip)


def find_next_closest_distance(tree: Fast3Tree, c: Sequence[float]) -> float:
    """Distance from c to the nearest point not lying exactly at c."""
    c = _center(tree, c)
    nd = tree.root
    while nd.div_dim >= 0:
        d = nd.div_dim
        nd = nd.left if c[d] <= nd.left.max[d] else nd.right

    while nd is not tree.root:
        d = nd.parent.div_dim
        if nd.min[d] != nd.max[d]:
            break
        nd = nd.parent

    min_dist = sum((hi - lo) ** 2 for lo, hi in zip(nd.min, nd.max))
    for i in range(nd.start, nd.start + nd.num_points):
        dist = sum((cj - pj) ** 2 for cj, pj in zip(c, tree.positions[i]))
        if dist and dist < min_dist:
            min_dist = dist
    return _next_closest(tree, tree.root, c, math.sqrt(min_dist), nd)