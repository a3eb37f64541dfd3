import math

import pytest

from halofind.config import Config
from halofind.halo_density import calc_mass_definitions, mass_threshold, vir_density

COSMO = (0.27, 0.73, -1.0, 0.0)
PM = 1e10


def test_vir_density_einstein_de_sitter():
    assert vir_density(1.0, 1.0, 0.0, -1.0, 0.0) == pytest.approx(18 * math.pi ** 2)


def test_background_thresholds_scale_with_number():
    _, t200 = mass_threshold("200b", 1.0, *COSMO, PM)
    _, t100 = mass_threshold("100b", 1.0, *COSMO, PM)
    assert t200 == pytest.approx(2 * t100)


def test_leading_m_is_ignored():
    assert mass_threshold("m200b", 1.0, *COSMO, PM)[1] == mass_threshold(
        "200b", 1.0, *COSMO, PM
    )[1]


def test_critical_over_background_is_inverse_matter_fraction():
    _, crit = mass_threshold("200c", 1.0, *COSMO, PM)
    _, back = mass_threshold("200b", 1.0, *COSMO, PM)
    om, ol = COSMO[0], COSMO[1]
    assert crit / back == pytest.approx((om + ol) / om)


def test_unknown_definition_becomes_vir():
    name, value = mass_threshold("nonsense", 1.0, *COSMO, PM)
    assert name == "vir"
    assert value == mass_threshold("vir", 1.0, *COSMO, PM)[1]


def test_vir_spelling_kept():
    assert mass_threshold("Vir", 1.0, *COSMO, PM)[0] == "Vir"


def test_bad_particle_mass():
    with pytest.raises(ValueError):
        mass_threshold("200b", 1.0, *COSMO, 0.0)


def test_calc_mass_definitions_defaults():
    config = Config(particle_mass=PM)
    md = calc_mass_definitions(config)
    assert md.definitions == ("vir", "200b", "200c", "500c", "2500c")
    assert md.rvir_dens == md.thresh_dens[0]
    assert md.rvir_dens_z0 == pytest.approx(md.rvir_dens)
    assert md.thresh_dens[md.min_dens_index] == min(md.thresh_dens)


def test_scale_override():
    config = Config(particle_mass=PM)
    md = calc_mass_definitions(config, 0.5)
    assert md.rvir_dens == pytest.approx(mass_threshold("vir", 0.5, *COSMO, PM)[1])
    assert md.rvir_dens_z0 == pytest.approx(calc_mass_definitions(config).rvir_dens)


def test_dynamical_time_independent_of_particle_mass():
    a = calc_mass_definitions(Config(particle_mass=PM))
    b = calc_mass_definitions(Config(particle_mass=2 * PM))
    assert a.dynamical_time > 0
    assert a.dynamical_time == pytest.approx(b.dynamical_time)