"""Phase-space sub-group finding: linking-length estimation and linking at a radius."""

from __future__ import annotations

import random
from collections.abc import Sequence
from typing import Any

from .fof import Fof, FOFInfo
from .median import find_median_r
from .tree import Fast3Tree
from .tree_periodic import find_next_closest_distance

PHASE_SPACE_DIM = 6
POINTS_PER_LEAF = 40
MAX_PARTICLES_TO_SAMPLE = 10000


def _phase_tree(particles: Sequence[Any]) -> Fast3Tree:
    return Fast3Tree(particles, dim=PHASE_SPACE_DIM, points_per_leaf=POINTS_PER_LEAF)


def find_subfofs_at_r(
    particles: Sequence[Any], target_r: float, min_halo_particles: int
) -> tuple[list[Any], list[Fof]]:
    """Link particles closer than target_r in six-dimensional phase space.

    Particles are six-coordinate sequences or objects with a ``pos`` holding
    six coordinates. Returns the particles reordered so that each group's
    members are contiguous, and the groups kept (those with at least
    min_halo_particles members), indexing into that list. Particles with
    non-finite coordinates take part in no group.
    """
    tree = _phase_tree(particles)
    info = FOFInfo()
    info.init_particles(len(tree.points))
    for i in range(tree.num_points):
        info.link_particle_to_fof(i, tree.find_sphere_skip(i, target_r))
    ordered = list(tree.points)
    info.build_fullfofs(ordered, min_halo_particles)
    fofs, _ = info.return_fullfofs()
    return ordered, fofs


def sample_linking_length(
    particles: Sequence[Any],
    frac: float,
    exact: bool = False,
    rng: random.Random | None = None,
) -> float:
    """Linking length below which a fraction frac of particles have a neighbour.

    Nearest-neighbour distances are measured for every particle when exact is
    true or there are at most MAX_PARTICLES_TO_SAMPLE of them, and for a
    random sample of that many otherwise; the value at rank frac is returned.
    Without an rng the sampling is seeded by the particle count.
    """
    tree = _phase_tree(particles)
    n = tree.num_points
    if n == 0:
        raise ValueError("no particles with finite positions")
    if rng is None:
        rng = random.Random(n)
    num_test = n if exact else min(MAX_PARTICLES_TO_SAMPLE, n)
    if num_test == n:
        chosen = range(n)
    else:
        chosen = (rng.randrange(n) for _ in range(num_test))
    radii = [find_next_closest_distance(tree, tree.positions[j]) for j in chosen]
    return find_median_r(radii, frac, rng)