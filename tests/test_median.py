import random

import pytest

from halofind.median import find_median_r, rad_partition, random_unit


@pytest.mark.parametrize("seed", range(6))
def test_partition_splits_around_pivot(seed):
    rng = random.Random(seed)
    rad = [float(rng.randint(0, 9)) for _ in range(30)]
    original = sorted(rad)
    pivot_ind = rng.randrange(len(rad))
    pivot = rad[pivot_ind]
    idx = rad_partition(rad, 0, len(rad), pivot_ind)
    assert rad[idx] == pivot
    assert all(x <= pivot for x in rad[:idx])
    assert all(x > pivot for x in rad[idx + 1:])
    assert sorted(rad) == original


def test_partition_subrange_leaves_rest_untouched():
    rad = [9.0, 5.0, 1.0, 4.0, 2.0, -3.0]
    idx = rad_partition(rad, 1, 5, 3)
    assert rad[0] == 9.0 and rad[5] == -3.0
    assert rad[idx] == 4.0
    assert sorted(rad[1:5]) == [1.0, 2.0, 4.0, 5.0]


def test_partition_rejects_bad_pivot():
    with pytest.raises(IndexError):
        rad_partition([1.0, 2.0], 0, 2, 2)


def test_random_unit_range():
    rng = random.Random(3)
    values = [random_unit(rng) for _ in range(200)]
    assert all(0.0 <= v < 1.0 for v in values)


@pytest.mark.parametrize("frac", [0.0, 0.25, 0.5, 0.7, 0.99])
def test_median_matches_sorted_rank(frac):
    rng = random.Random(11)
    rad = [rng.uniform(0, 100) for _ in range(101)]
    expected = sorted(rad)[int(len(rad) * frac)]
    assert find_median_r(list(rad), frac, random.Random(5)) == expected


def test_median_reorders_in_place_only():
    rng = random.Random(2)
    rad = [rng.uniform(0, 1) for _ in range(50)]
    original = sorted(rad)
    find_median_r(rad, 0.5, rng)
    assert sorted(rad) == original


def test_median_single_value():
    assert find_median_r([4.5], 0.7, random.Random(0)) == 4.5


def test_median_all_equal():
    assert find_median_r([2.0] * 10, 0.5, random.Random(0)) == 2.0


def test_median_errors():
    with pytest.raises(ValueError):
        find_median_r([], 0.5, random.Random(0))
    with pytest.raises(ValueError):
        find_median_r([1.0, 2.0], 1.0, random.Random(0))