"""Dimensionless Hubble parameter E(z) for a w0-wa dark energy model."""

from __future__ import annotations

import math


def weff(a: float, w0: float = -1.0, wa: float = 0.0) -> float:
    """Effective equation-of-state parameter averaged out to scale factor a."""
    if a != 1.0:
        return w0 + wa - wa * (a - 1.0) / math.log(a)
    return w0


def hubble_scaling(
    z: float, om: float = 0.27, ol: float = 0.73, w0: float = -1.0, wa: float = 0.0
) -> float:
    """H(z)/H0 for matter density om and dark energy density ol."""
    z1 = 1.0 + z
    a = 1.0 / z1
    return math.sqrt(om * z1 ** 3 + ol * a ** (-3.0 * (1.0 + weff(a, w0, wa))))