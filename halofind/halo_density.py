"""Spherical-overdensity thresholds for the configured mass definitions."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from .config import CRITICAL_DENSITY, Config
from .hubble import hubble_scaling

# Gravitational constant in Mpc (km/s)^2 / Msun
GRAVITATIONAL_CONSTANT = 4.30117902e-9

_LEADING_FLOAT = re.compile(r"\s*[+-]?(\d+\.?\d*([eE][+-]?\d+)?|\.\d+([eE][+-]?\d+)?)")


def _atof(text: str) -> float:
    match = _LEADING_FLOAT.match(text)
    return float(match.group(0)) if match else 0.0


def vir_density(
    a: float, om: float = 0.27, ol: float = 0.73, w0: float = -1.0, wa: float = 0.0
) -> float:
    """Virial overdensity relative to the background matter density at scale a."""
    x = (om / a ** 3) / hubble_scaling(1.0 / a - 1.0, om, ol, w0, wa) ** 2 - 1.0
    return (18 * math.pi * math.pi + 82.0 * x - 39 * x * x) / (1.0 + x)


def mass_threshold(
    definition: str,
    scale_now: float,
    om: float,
    ol: float,
    w0: float,
    wa: float,
    particle_mass: float,
) -> tuple[str, float]:
    """Threshold density in particles per (Mpc/h)^3 for a mass definition.

    Definitions ending in b are relative to the background density, those
    ending in c to the critical density; anything else means the virial
    definition and is renamed "vir" unless already spelled so.
    """
    if particle_mass <= 0:
        raise ValueError("particle_mass must be positive")
    last = definition[-1:] if definition else ""
    matter_fraction = (om / scale_now ** 3) / hubble_scaling(
        1.0 / scale_now - 1.0, om, ol, w0, wa
    ) ** 2
    cons = om * CRITICAL_DENSITY / particle_mass
    number = definition[1:] if definition[:1] in ("m", "M") else definition
    if last in ("b", "B"):
        return definition, _atof(number) * cons
    if last in ("c", "C"):
        return definition, _atof(number) * cons / matter_fraction
    if definition.lower() != "vir":
        definition = "vir"
    return definition, vir_density(scale_now, om, ol, w0, wa) * cons


@dataclass(frozen=True)
class MassDefinitions:
    """Thresholds for the five configured mass definitions."""

    definitions: tuple[str, ...]
    thresh_dens: tuple[float, ...]
    rvir_dens: float
    rvir_dens_z0: float
    min_dens_index: int
    dynamical_time: float


def calc_mass_definitions(
    config: Config, scale_now: float | None = None
) -> MassDefinitions:
    """Evaluate all mass definitions of config at scale_now (default SCALE_NOW)."""
    if scale_now is None:
        scale_now = config.scale_now
    cosmo = (config.om, config.ol, config.w0, config.wa)
    pm = config.particle_mass
    results = [
        mass_threshold(d, scale_now, *cosmo, pm)
        for d in (
            config.mass_definition,
            config.mass_definition2,
            config.mass_definition3,
            config.mass_definition4,
            config.mass_definition5,
        )
    ]
    names = tuple(name for name, _ in results)
    thresh = tuple(value for _, value in results)
    _, rvir_dens = mass_threshold("vir", scale_now, *cosmo, pm)
    rvir_dens_z0 = vir_density(1.0, *cosmo) * config.om * CRITICAL_DENSITY / pm
    dynamical_time = 1.0 / math.sqrt(
        (4.0 * math.pi * GRAVITATIONAL_CONSTANT / 3.0) * rvir_dens * pm
    )
    min_index = min(range(len(thresh)), key=lambda i: (thresh[i], i))
    return MassDefinitions(
        definitions=names,
        thresh_dens=thresh,
        rvir_dens=rvir_dens,
        rvir_dens_z0=rvir_dens_z0,
        min_dens_index=min_index,
        dynamical_time=dynamical_time,
    )