import itertools

import pytest

from halofind.tree import MARKED, Fast3Tree
from halofind.tree_periodic import (
    SphereSearch,
    find_next_closest_distance,
    find_sphere_marked,
    find_sphere_periodic,
)


def _lattice(n=10, spacing=1.0):
    return [
        (x * spacing, y * spacing, z * spacing)
        for x, y, z in itertools.product(range(n), repeat=3)
    ]


@pytest.fixture
def tree():
    return Fast3Tree(_lattice(), dim=3, points_per_leaf=8)


def _positions(tree, indices):
    return {tree.positions[i] for i in indices}


def test_periodic_inside_box_uses_plain_search(tree):
    mode, found = find_sphere_periodic(tree, (5.0, 5.0, 5.0), 0.5)
    assert mode is SphereSearch.INSIDE
    assert _positions(tree, found) == {(5.0, 5.0, 5.0)}


def test_periodic_corner_wraps_to_opposite_faces(tree):
    mode, found = find_sphere_periodic(tree, (0.0, 0.0, 0.0), 0.5)
    assert mode is SphereSearch.WRAPPED
    expected = set(itertools.product((0.0, 9.0), repeat=3))
    assert _positions(tree, found) == expected
    assert len(found) == len(expected)


def test_periodic_too_large_radius_is_refused(tree):
    mode, found = find_sphere_periodic(tree, (0.5, 5.0, 5.0), 5.0)
    assert mode is SphereSearch.TOO_LARGE
    assert found == []


def test_periodic_result_contains_plain_result(tree):
    c = (0.3, 4.2, 8.8)
    mode, found = find_sphere_periodic(tree, c, 1.5)
    assert mode is SphereSearch.WRAPPED
    assert set(tree.find_sphere(c, 1.5)) <= set(found)
    assert len(found) > len(tree.find_sphere(c, 1.5))


def test_marked_without_periodic_matches_find_sphere(tree):
    c = (2.3, 6.1, 4.7)
    mode, found = find_sphere_marked(tree, c, 2.2, periodic=False, do_marking=False)
    assert mode is SphereSearch.INSIDE
    assert sorted(found) == sorted(tree.find_sphere(c, 2.2))


def test_marking_reduces_later_results(tree):
    c = (4.5, 4.5, 4.5)
    mode, first = find_sphere_marked(tree, c, 3.0, periodic=True, do_marking=True)
    assert mode is SphereSearch.INSIDE
    assert any(node.flags & MARKED for node in tree.nodes)
    _, second = find_sphere_marked(tree, c, 3.0, periodic=True, do_marking=False)
    assert len(second) < len(first)
    assert set(second) <= set(first)


def test_marked_periodic_corner_matches_periodic_search(tree):
    mode, found = find_sphere_marked(tree, (0.0, 0.0, 0.0), 0.5, periodic=True)
    assert mode is SphereSearch.WRAPPED
    assert _positions(tree, found) == set(itertools.product((0.0, 9.0), repeat=3))


def test_marked_periodic_too_large(tree):
    mode, found = find_sphere_marked(tree, (0.5, 0.5, 0.5), 6.0, periodic=True)
    assert mode is SphereSearch.TOO_LARGE
    assert found == []


@pytest.mark.parametrize(
    "c", [(0.0, 0.0, 0.0), (3.0, 3.0, 3.0), (9.0, 5.0, 2.0), (4.0, 9.0, 9.0)]
)
def test_next_closest_on_unit_lattice(tree, c):
    assert find_next_closest_distance(tree, c) == pytest.approx(1.0)


def test_next_closest_scales_with_spacing():
    t = Fast3Tree(_lattice(6, 0.5), dim=3, points_per_leaf=4)
    assert find_next_closest_distance(t, (1.0, 1.5, 0.5)) == pytest.approx(0.5)


def test_empty_tree():
    t = Fast3Tree([], dim=3)
    assert find_sphere_periodic(t, (1.0, 1.0, 1.0), 1.0) == (SphereSearch.TOO_LARGE, [])
    assert find_next_closest_distance(t, (1.0, 1.0, 1.0)) == 0.0


def test_short_center_is_rejected(tree):
    with pytest.raises(ValueError):
        find_sphere_periodic(tree, (1.0, 2.0), 1.0)
    with pytest.raises(ValueError):
        find_next_closest_distance(tree, (1.0,))