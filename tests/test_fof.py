import random

import pytest

from halofind.fof import FOFInfo, Fof, partition_sort_particles


def _groups(info, particles):
    return {frozenset(particles[f.start:f.start + f.num_p]) for f in info.fofs}


def test_partition_sort_orders_and_keeps_pairs():
    rng = random.Random(7)
    assignments = [rng.randrange(-1, 20) for _ in range(200)]
    particles = [f"p{i}" for i in range(200)]
    pairs = sorted(zip(particles, assignments))
    partition_sort_particles(0, 200, particles, assignments)
    assert assignments == sorted(assignments)
    assert sorted(zip(particles, assignments)) == pairs


def test_partition_sort_short_range_untouched():
    particles = ["a", "b"]
    assignments = [5, 1]
    partition_sort_particles(0, 1, particles, assignments)
    assert particles == ["a", "b"]
    assert assignments == [5, 1]


def test_partition_sort_subrange_only():
    particles = list("abcde")
    assignments = [9, 3, 2, 1, 0]
    partition_sort_particles(1, 4, particles, assignments)
    assert assignments[0] == 9 and assignments[4] == 0
    assert assignments[1:4] == sorted([3, 2, 1])


def test_link_and_build_two_groups():
    particles = list("abcdef")
    info = FOFInfo()
    info.init_particles(6)
    info.link_particle_to_fof(0, [0, 1, 2])
    info.link_particle_to_fof(3, [3, 4])
    info.link_particle_to_fof(4, [4, 5])
    info.build_fullfofs(particles, 2)
    assert _groups(info, particles) == {frozenset("abc"), frozenset("def")}


def test_link_merges_chains():
    particles = list("abcde")
    info = FOFInfo()
    info.init_particles(5)
    info.link_particle_to_fof(0, [0, 1])
    info.link_particle_to_fof(2, [2, 3])
    info.link_particle_to_fof(1, [1, 2])
    info.collapse_smallfofs()
    psf = info.particle_smallfofs
    assert psf[0] == psf[1] == psf[2] == psf[3]
    assert psf[4] == -1
    info.build_fullfofs(particles, 2)
    assert _groups(info, particles) == {frozenset("abcd")}


def test_single_link_does_nothing():
    particles = list("abc")
    info = FOFInfo()
    info.init_particles(3)
    info.link_particle_to_fof(0, [0])
    assert info.particle_smallfofs == [-1, -1, -1]
    info.build_fullfofs(particles, 1)
    assert info.fofs == []


def test_small_groups_dropped():
    particles = list("abcde")
    info = FOFInfo()
    info.init_particles(5)
    info.link_particle_to_fof(0, [0, 1])
    info.link_particle_to_fof(2, [2, 3, 4])
    info.build_fullfofs(particles, 3)
    assert _groups(info, particles) == {frozenset("cde")}


def test_link_fof_to_fof_merges_existing_groups():
    particles = list("abcd")
    info = FOFInfo()
    info.init_particles(4)
    info.link_particle_to_fof(0, [0, 1])
    info.link_particle_to_fof(2, [2, 3])
    info.link_fof_to_fof(0, [0, 2])
    info.build_fullfofs(particles, 2)
    assert _groups(info, particles) == {frozenset("abcd")}


def test_link_fof_to_fof_ignores_ungrouped_particle():
    particles = list("abcdef")
    info = FOFInfo()
    info.init_particles(6)
    info.link_particle_to_fof(0, [0, 1])
    info.link_particle_to_fof(2, [2, 3])
    info.link_fof_to_fof(5, [5, 0, 2])
    info.build_fullfofs(particles, 2)
    assert _groups(info, particles) == {frozenset("ab"), frozenset("cd")}


def test_tag_boundary_fresh_particles_get_new_numbers():
    info = FOFInfo()
    info.init_particles(3)
    first = info.tag_boundary_particle(0)
    again = info.tag_boundary_particle(0)
    second = info.tag_boundary_particle(1)
    assert first == again
    assert second == first + 1
    assert info.num_boundary_fofs == 2


def test_tag_boundary_group_members_share_number():
    info = FOFInfo()
    info.init_particles(3)
    info.link_particle_to_fof(0, [0, 1])
    assert info.tag_boundary_particle(0) == info.tag_boundary_particle(1)
    assert info.num_boundary_fofs == 1


def test_boundary_group_kept_even_when_small():
    particles = list("abc")
    info = FOFInfo()
    info.init_particles(3)
    info.link_particle_to_fof(0, [0, 1])
    info.tag_boundary_particle(0)
    info.build_fullfofs(particles, 10)
    assert _groups(info, particles) == {frozenset("ab")}


def test_return_fullfofs_hands_over_and_resets():
    particles = list("abc")
    info = FOFInfo()
    info.init_particles(3)
    info.link_particle_to_fof(0, [0, 1, 2])
    info.tag_boundary_particle(0)
    info.build_fullfofs(particles, 2)
    fofs, num_boundary = info.return_fullfofs()
    assert fofs == [Fof(start=0, num_p=3)]
    assert num_boundary == info.num_boundary_fofs + 1
    assert info.fofs == [] and info.particle_smallfofs == []


def test_copy_fullfofs_appends():
    particles = list("abcd")
    info = FOFInfo()
    info.init_particles(4)
    info.link_particle_to_fof(0, [0, 1, 2, 3])
    info.build_fullfofs(particles, 2)
    existing = Fof(start=9, num_p=9)
    base = [existing]
    found = list(info.fofs)
    info.copy_fullfofs(base)
    assert base == [existing] + found
    assert info.fofs == []


def test_init_particles_resets_links():
    info = FOFInfo()
    info.init_particles(3)
    info.link_particle_to_fof(0, [0, 1])
    info.init_particles(4)
    assert info.particle_smallfofs == [-1] * 4
    assert info.smallfofs == []


def test_out_of_range_particle_raises():
    info = FOFInfo()
    info.init_particles(2)
    with pytest.raises(IndexError):
        info.tag_boundary_particle(2)
    with pytest.raises(ValueError):
        info.build_fullfofs(["a"], 1)