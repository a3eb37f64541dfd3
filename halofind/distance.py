"""Cosmological distances from a tabulated comoving-distance integral."""

from __future__ import annotations

import math

from .hubble import hubble_scaling

MAX_Z = 300.0
Z_BINS = 1000.0
TOTAL_BINS = int(MAX_Z) * int(Z_BINS)
SPEED_OF_LIGHT_KMS_PER_100 = 2997.92458


def redshift(a: float) -> float:
    """Redshift for scale factor a."""
    return 1.0 / a - 1.0


def scale_factor(z: float) -> float:
    """Scale factor for redshift z."""
    return 1.0 / (1.0 + z)


class DistanceCalculator:
    """Distances in Mpc for a flat-or-not w0-wa cosmology, up to z = 300."""

    def __init__(
        self,
        h0: float = 0.7,
        om: float = 0.27,
        ol: float = 0.73,
        w0: float = -1.0,
        wa: float = 0.0,
    ) -> None:
        self.h0 = h0
        self.om = om
        self.ol = ol
        self.w0 = w0
        self.wa = wa
        self.dh = SPEED_OF_LIGHT_KMS_PER_100 / h0
        table = []
        integral = 0.0
        for i in range(TOTAL_BINS):
            z = (i + 0.5) / Z_BINS
            table.append(integral * self.dh)
            integral += 1.0 / (self._e(z) * Z_BINS)
        self._dc = table

    def _e(self, z: float) -> float:
        return hubble_scaling(z, self.om, self.ol, self.w0, self.wa)

    def comoving_distance(self, z: float) -> float:
        """Line-of-sight comoving distance in Mpc."""
        if z < 0:
            return 0.0
        f = z * Z_BINS
        bin_ = int(f)
        if bin_ > TOTAL_BINS - 2:
            return self._dc[TOTAL_BINS - 1]
        f -= bin_
        return self._dc[bin_] * (1.0 - f) + self._dc[bin_ + 1] * f

    def comoving_distance_h(self, z: float) -> float:
        """Comoving distance in Mpc/h."""
        return self.comoving_distance(z) * self.h0

    def transverse_distance(self, z: float) -> float:
        """Transverse comoving distance in Mpc."""
        return self.comoving_distance(z)

    def angular_diameter_distance(self, z: float) -> float:
        return self.transverse_distance(z) / (1.0 + z)

    def luminosity_distance(self, z: float) -> float:
        return (1.0 + z) * self.transverse_distance(z)

    def comoving_volume_element(self, z: float) -> float:
        """dV/dz per unit solid angle."""
        z1da = (1.0 + z) * self.angular_diameter_distance(z)
        return self.dh * z1da * z1da / self._e(z)

    def comoving_volume(self, z: float) -> float:
        r = self.transverse_distance(z)
        return 4.0 * math.pi * r ** 3 / 3.0

    def comoving_distance_to_redshift(self, r: float) -> float:
        """Invert the comoving distance (Mpc) by secant iteration."""
        if r <= 0:
            return 0.0
        z = 1.0
        dz = 0.1
        while dz > 1e-7:
            rt = self.transverse_distance(z)
            step = self.transverse_distance(z + dz) - rt
            if step == 0:
                return z
            dz = (r - rt) * dz / step
            if not math.isfinite(dz):
                return z
            if z + dz < 0:
                z /= 3.0
            else:
                z += dz
            dz = min(abs(dz), 0.1)
        return z

    def comoving_volume_to_redshift(self, vc: float) -> float:
        r = math.copysign(abs(vc * (3.0 / (4.0 * math.pi))) ** (1.0 / 3.0), vc)
        return self.comoving_distance_to_redshift(r)

    def comoving_distance_h_to_redshift(self, r: float) -> float:
        return self.comoving_distance_to_redshift(r / self.h0)