# halofind

Building blocks for finding dark-matter halos in cosmological N-body
simulations. The package has no dependencies outside the standard library.

## Modules

- `halofind.config`: the run configuration. `Config` is a dataclass holding
  every option with its default; `Config.from_mapping` builds one from option
  names as written in configuration files (for example `"BOX_SIZE"`, `"h0"`,
  `"Om"`), converting values to strings, floats, integers or triples of
  floats and warning about unknown names. `Config.setup` fills in derived
  values (particle mass, mean particle spacing, number of readers, the
  physical force-resolution limit), switches off periodicity and temporal
  halo finding where the options require it, and raises `ConfigError` when
  `NUM_READERS` exceeds `NUM_BLOCKS`. `Config.output` writes every option to
  a file under `OUTBASE`. `do_config` does `from_mapping` and `setup` in one
  step.
- `halofind.hubble`: `weff` and `hubble_scaling`, the expansion rate H(z)/H0
  for a w0/wa dark-energy model.
- `halofind.distance`: `redshift`, `scale_factor`, and `DistanceCalculator`,
  which tabulates the comoving distance up to z = 300 and gives comoving,
  transverse, angular-diameter and luminosity distances, comoving volumes
  and volume elements, and the inverse mappings from distance or volume back
  to redshift.
- `halofind.integrate`: `adaptive_simpsons`, adaptive Simpson quadrature
  with a tolerance and a recursion limit.
- `halofind.bounds`: boxes given as `(x0, y0, z0, x1, y1, z1)` in a volume
  that may be periodic: `check_bounds`, `check_bounds_raw`, `wrap_into_box`,
  `bounds_overlap` and `bounds_union`.
- `halofind.tree`: `Fast3Tree`, a binary space-partitioning tree over points
  given as coordinate sequences or objects with a `pos`, of any dimension.
  It supports `find_sphere`, `find_sphere_skip`, `find_inside_of_box`,
  `find_outside_of_box`, `rebuild` and `maxmin_rebuild`. Searches return
  indices into `tree.points`; points with non-finite coordinates are left out.
- `halofind.tree_periodic`: `find_sphere_periodic` and `find_sphere_marked`
  (sphere searches that wrap around the tree's bounding box, reporting a
  `SphereSearch` value with the indices found) and
  `find_next_closest_distance`.
- `halofind.fof`: friends-of-friends bookkeeping. `FOFInfo` links particle
  indices into small groups with a union-find, tags boundary groups, and
  gathers particles into full groups (`Fof`) of a minimum size;
  `partition_sort_particles` sorts particles by group assignment.
- `halofind.halo_density`: `vir_density`, `mass_threshold` for mass
  definitions such as `"vir"`, `"200b"` or `"500c"`, and
  `calc_mass_definitions`, which evaluates the five configured definitions
  into a `MassDefinitions` record with the dynamical time.
- `halofind.median`: quickselect helpers `rad_partition`, `random_unit` and
  `find_median_r`.
- `halofind.subfof`: phase-space sub-group finding. `sample_linking_length`
  estimates a linking length from nearest-neighbour distances;
  `find_subfofs_at_r` links six-dimensional points closer than a radius and
  returns the reordered particles with the groups kept.
- `halofind.checked_io`: I/O helpers that raise `CheckedIOError` with a clear
  message: `CheckedReader` (exact-length reads, one push-back, skipping,
  line reads), `check_open`, `check_write`, `check_seek`, `mmap_file`, and
  `RWSocket`, which runs a shell command with its standard input and output
  joined to one socket stream.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Example

```python
from halofind.config import do_config
from halofind.distance import DistanceCalculator, scale_factor
from halofind.tree import Fast3Tree

config = do_config({"BOX_SIZE": 100, "h0": 0.7})

calc = DistanceCalculator(config.h0, config.om, config.ol, config.w0, config.wa)
print(calc.comoving_distance(1.0))             # Mpc
print(calc.comoving_distance_to_redshift(3300.0))
print(scale_factor(1.0))                       # 0.5

points = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (5.0, 5.0, 5.0)]
tree = Fast3Tree(points, 3, 40)
print(tree.find_sphere((0.0, 0.0, 0.0), 2.0))  # indices into tree.points
```

## What the package does not do

It is a library of parts, not a complete halo finder. There is no command to
run, no reader for simulation snapshot files, no halo record type or
calculation of halo properties, and no writing of halo catalogues. Options
are taken from a mapping; there is no parser for configuration files.