import pytest

from halofind.distance import DistanceCalculator, redshift, scale_factor


@pytest.fixture(scope="module")
def calc():
    return DistanceCalculator(0.7, 0.27, 0.73, -1.0, 0.0)


def test_redshift_scale_factor_round_trip():
    for z in (0.0, 0.5, 3.0):
        assert redshift(scale_factor(z)) == pytest.approx(z)


def test_present_day_scale_factor():
    assert scale_factor(0.0) == 1.0
    assert redshift(1.0) == 0.0


def test_hubble_distance(calc):
    assert calc.dh == pytest.approx(2997.92458 / 0.7)


def test_zero_and_negative_redshift(calc):
    assert calc.comoving_distance(0.0) == 0.0
    assert calc.comoving_distance(-1.0) == 0.0


def test_low_redshift_limit(calc):
    z = 1e-3
    assert calc.comoving_distance(z) == pytest.approx(calc.dh * z, rel=1e-3)


def test_distance_is_monotonic(calc):
    values = [calc.comoving_distance(z) for z in (0.1, 0.5, 1.0, 5.0, 50.0)]
    assert values == sorted(values)


def test_beyond_table_is_clamped(calc):
    assert calc.comoving_distance(400.0) == calc.comoving_distance(1000.0)


def test_distance_relations(calc):
    z = 1.5
    assert calc.luminosity_distance(z) == pytest.approx(
        (1 + z) ** 2 * calc.angular_diameter_distance(z)
    )
    assert calc.comoving_distance_h(z) == pytest.approx(calc.comoving_distance(z) * 0.7)


@pytest.mark.parametrize("z", [0.1, 0.5, 2.0])
def test_distance_inversion(calc, z):
    assert calc.comoving_distance_to_redshift(calc.comoving_distance(z)) == pytest.approx(
        z, rel=1e-4
    )


@pytest.mark.parametrize("z", [0.3, 1.2])
def test_h_distance_inversion(calc, z):
    r = calc.comoving_distance_h(z)
    assert calc.comoving_distance_h_to_redshift(r) == pytest.approx(z, rel=1e-4)


def test_volume_inversion(calc):
    z = 0.8
    assert calc.comoving_volume_to_redshift(calc.comoving_volume(z)) == pytest.approx(
        z, rel=1e-4
    )


def test_nonpositive_distance_gives_zero(calc):
    assert calc.comoving_distance_to_redshift(0.0) == 0.0
    assert calc.comoving_distance_to_redshift(-5.0) == 0.0


def test_volume_element_positive_and_growing_at_low_z(calc):
    assert 0 < calc.comoving_volume_element(0.1) < calc.comoving_volume_element(0.5)