"""Friends-of-friends group bookkeeping with a union-find over small groups."""

from __future__ import annotations

from collections.abc import MutableSequence, Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Fof:
    """A group of num_p consecutive particles starting at index start."""

    start: int = 0
    num_p: int = 0


def partition_sort_particles(
    lo: int,
    hi: int,
    particles: MutableSequence[Any],
    assignments: MutableSequence[int],
) -> None:
    """Sort particles[lo:hi] in place by assignment, moving both lists together."""
    if hi - lo < 2:
        return
    window = assignments[lo:hi]
    min_pivot = min(window)
    max_pivot = max(window)
    if min_pivot == max_pivot:
        return
    pivot = min_pivot + (max_pivot - min_pivot) // 2
    si = hi - 1
    i = lo
    while i < si:
        if assignments[i] > pivot:
            particles[i], particles[si] = particles[si], particles[i]
            assignments[i], assignments[si] = assignments[si], assignments[i]
            si -= 1
        else:
            i += 1
    if i == si and assignments[si] <= pivot:
        si += 1
    partition_sort_particles(lo, si, particles, assignments)
    partition_sort_particles(si, hi, particles, assignments)


@dataclass
class FOFInfo:
    """Links particles into small groups, then gathers them into full groups.

    Particles are referred to by their index. Small groups created by
    tag_boundary_particle are boundary groups and always come last.
    """

    fofs: list[Fof] = field(default_factory=list)
    num_boundary_fofs: int = 0
    smallfofs: list[int] = field(default_factory=list)
    particle_smallfofs: list[int] = field(default_factory=list)

    @property
    def num_particles(self) -> int:
        return len(self.particle_smallfofs)

    def init_particles(self, num_p: int) -> None:
        """Forget all links and prepare for num_p unlinked particles."""
        if num_p < 0:
            raise ValueError("num_p must not be negative")
        self.particle_smallfofs = [-1] * num_p
        self.smallfofs = []
        self.fofs = []
        self.num_boundary_fofs = 0

    def tag_boundary_particle(self, p: int) -> int:
        """Mark p's group as touching a boundary; return its boundary group number."""
        self._check(p)
        psf = self.particle_smallfofs
        f = psf[p]
        if f < 0:
            psf[p] = self._add_smallfof()
            self.num_boundary_fofs += 1
            return self.num_boundary_fofs - 1
        self._collapse(f)
        base = len(self.smallfofs) - self.num_boundary_fofs
        root = self.smallfofs[f]
        if root >= base:
            return root - base
        new_fof = self._add_smallfof()
        self.smallfofs[root] = new_fof
        self.num_boundary_fofs += 1
        return self.num_boundary_fofs - 1

    def link_particle_to_fof(self, p: int, links: Sequence[int]) -> None:
        """Put p and its neighbours links into one small group."""
        self._check(p)
        if len(links) < 2:
            return
        psf = self.particle_smallfofs
        f = psf[p]
        if f < 0:
            f = next((psf[link] for link in links if psf[link] != -1), -1)
            if f < 0:
                f = self._add_smallfof()
        for link in links:
            if psf[link] == -1:
                psf[link] = f
            else:
                self._merge(psf[link], f)

    def link_fof_to_fof(self, p: int, links: Sequence[int]) -> None:
        """Merge the groups of already grouped neighbours into p's group."""
        self._check(p)
        psf = self.particle_smallfofs
        f = psf[p]
        if len(links) < 2 or f < 0:
            return
        for link in links:
            g = psf[link]
            if g == -1 or g == f:
                continue
            self._merge(g, f)

    def collapse_smallfofs(self) -> None:
        """Point every small group and particle straight at its root group."""
        for i in range(len(self.smallfofs)):
            self._collapse(i)
        self.particle_smallfofs = [
            self.smallfofs[f] if f >= 0 else f for f in self.particle_smallfofs
        ]

    def build_fullfofs(
        self, particles: MutableSequence[Any], min_halo_particles: int
    ) -> None:
        """Sort particles by group and record the groups large enough to keep.

        Groups with fewer than min_halo_particles members are dropped unless
        they touch a boundary.
        """
        n = self.num_particles
        if len(particles) < n:
            raise ValueError("fewer particles given than were initialised")
        self.collapse_smallfofs()
        psf = self.particle_smallfofs
        partition_sort_particles(0, n, particles, psf)
        base = len(self.smallfofs) - self.num_boundary_fofs
        sf = last_sf = -1
        current: Fof | None = None
        for i, sf_i in enumerate(psf):
            if sf_i < 0:
                continue
            sf = sf_i
            if sf == last_sf:
                continue
            if current is not None:
                current.num_p = i - current.start
            if (
                current is None
                or current.num_p >= min_halo_particles
                or last_sf >= base
            ):
                current = Fof()
                self.fofs.append(current)
            current.start = i
            last_sf = sf
        if current is not None:
            current.num_p = n - current.start
            if current.num_p < min_halo_particles and sf < base:
                self.fofs.pop()
        self.smallfofs = []

    def return_fullfofs(self) -> tuple[list[Fof], int]:
        """Hand over the groups and boundary count, clearing all state."""
        fofs, num_boundary = self.fofs, self.num_boundary_fofs
        self.fofs = []
        self.smallfofs = []
        self.particle_smallfofs = []
        self.num_boundary_fofs = 0
        return fofs, num_boundary

    def copy_fullfofs(self, base: list[Fof]) -> None:
        """Append the groups found to base and clear them here."""
        base.extend(self.fofs)
        self.fofs = []
        self.num_boundary_fofs = 0

    def _check(self, p: int) -> None:
        if not 0 <= p < self.num_particles:
            raise IndexError(f"particle index {p} out of range")

    def _add_smallfof(self) -> int:
        self.smallfofs.append(len(self.smallfofs))
        return len(self.smallfofs) - 1

    def _collapse(self, f: int) -> None:
        sf = self.smallfofs
        r = sf[f]
        if sf[r] == r:
            return
        while r != sf[r]:
            r = sf[r]
        while f != r:
            nxt = sf[f]
            sf[f] = r
            f = nxt

    def _merge(self, f1: int, f2: int) -> None:
        sf = self.smallfofs
        if sf[f2] == sf[f1]:
            return
        self._collapse(f1)
        if f2 == sf[f2]:
            sf[f2] = sf[f1]
            return
        f1root = sf[f1]
        r = -1
        while r != f1root:
            r = sf[f2]
            sf[f2] = f1root
            f2 = r