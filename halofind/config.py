"""Run-time configuration: option table, parsing, derived settings and dumping."""

from __future__ import annotations

import math
import warnings
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any

# 3H^2 / (8 pi G) in (Msun/h) / (Mpc/h)^3
CRITICAL_DENSITY = 2.77519737e11

DEFAULT_OUTPUT_NAME = "rockstar.cfg"


class ConfigError(ValueError):
    """Raised for an invalid configuration."""


class ConfigWarning(UserWarning):
    """Issued for suspicious but usable configuration values."""


class Kind(Enum):
    STRING = "string"
    REAL = "real"
    REAL3 = "real3"
    INTEGER = "integer"


def _opt(key: str, kind: Kind, default: Any) -> Any:
    return field(default=default, metadata={"key": key, "kind": kind})


_ZERO3 = (0.0, 0.0, 0.0)


@dataclass
class Config:
    """All options known to the halo finder, with their defaults."""

    file_format: str = _opt("FILE_FORMAT", Kind.STRING, "GADGET2")
    particle_mass: float = _opt("PARTICLE_MASS", Kind.REAL, 0.0)

    mass_definition: str = _opt("MASS_DEFINITION", Kind.STRING, "vir")
    mass_definition2: str = _opt("MASS_DEFINITION2", Kind.STRING, "200b")
    mass_definition3: str = _opt("MASS_DEFINITION3", Kind.STRING, "200c")
    mass_definition4: str = _opt("MASS_DEFINITION4", Kind.STRING, "500c")
    mass_definition5: str = _opt("MASS_DEFINITION5", Kind.STRING, "2500c")
    strict_so_masses: int = _opt("STRICT_SO_MASSES", Kind.INTEGER, 0)
    min_halo_output_size: int = _opt("MIN_HALO_OUTPUT_SIZE", Kind.INTEGER, 20)
    force_res: float = _opt("FORCE_RES", Kind.REAL, 0.003)
    force_res_phys_max: float = _opt("FORCE_RES_PHYS_MAX", Kind.REAL, 0.0)

    non_cosmological: float = _opt("NON_COSMOLOGICAL", Kind.REAL, 0.0)
    scale_now: float = _opt("SCALE_NOW", Kind.REAL, 1.0)
    h0: float = _opt("h0", Kind.REAL, 0.7)
    ol: float = _opt("Ol", Kind.REAL, 0.73)
    om: float = _opt("Om", Kind.REAL, 0.27)
    w0: float = _opt("W0", Kind.REAL, -1.0)
    wa: float = _opt("WA", Kind.REAL, 0.0)

    gadget_id_bytes: int = _opt("GADGET_ID_BYTES", Kind.INTEGER, 4)
    gadget_mass_conversion: float = _opt("GADGET_MASS_CONVERSION", Kind.REAL, 1e10)
    gadget_length_conversion: float = _opt("GADGET_LENGTH_CONVERSION", Kind.REAL, 1.0)
    gadget_skip_non_halo_particles: int = _opt(
        "GADGET_SKIP_NON_HALO_PARTICLES", Kind.INTEGER, 1
    )
    gadget_halo_particle_type: int = _opt("GADGET_HALO_PARTICLE_TYPE", Kind.INTEGER, 1)
    rescale_particle_mass: int = _opt("RESCALE_PARTICLE_MASS", Kind.INTEGER, 0)

    arepo_ntypes: int = _opt("AREPO_NTYPES", Kind.INTEGER, 6)
    arepo_mass_conversion: float = _opt("AREPO_MASS_CONVERSION", Kind.REAL, 1e10)
    arepo_length_conversion: float = _opt("AREPO_LENGTH_CONVERSION", Kind.REAL, 1e-3)
    arepo_dm_parttype: int = _opt("AREPO_DM_PARTTYPE", Kind.INTEGER, 1)

    gadget4_ntypes: int = _opt("GADGET4_NTYPES", Kind.INTEGER, 6)
    gadget4_mass_conversion: float = _opt("GADGET4_MASS_CONVERSION", Kind.REAL, 1e10)
    gadget4_length_conversion: float = _opt("GADGET4_LENGTH_CONVERSION", Kind.REAL, 1.0)
    gadget4_dm_parttype: int = _opt("GADGET4_DM_PARTTYPE", Kind.INTEGER, 1)

    tipsy_length_conversion: float = _opt("TIPSY_LENGTH_CONVERSION", Kind.REAL, 1.0)
    tipsy_velocity_conversion: float = _opt("TIPSY_VELOCITY_CONVERSION", Kind.REAL, 1.0)

    parallel_io: int = _opt("PARALLEL_IO", Kind.INTEGER, 1)
    parallel_io_server_address: str = _opt("PARALLEL_IO_SERVER_ADDRESS", Kind.STRING, "auto")
    parallel_io_server_port: str = _opt("PARALLEL_IO_SERVER_PORT", Kind.STRING, "auto")
    parallel_io_writer_port: int = _opt("PARALLEL_IO_WRITER_PORT", Kind.INTEGER, 32001)
    parallel_io_server_interface: str = _opt("PARALLEL_IO_SERVER_INTERFACE", Kind.STRING, "")
    parallel_io_catalogs: int = _opt("PARALLEL_IO_CATALOGS", Kind.INTEGER, 0)
    run_on_success: str = _opt("RUN_ON_SUCCESS", Kind.STRING, "")
    run_parallel_on_success: str = _opt("RUN_PARALLEL_ON_SUCCESS", Kind.STRING, "")
    load_balance_script: str = _opt("LOAD_BALANCE_SCRIPT", Kind.STRING, "")

    inbase: str = _opt("INBASE", Kind.STRING, ".")
    filename: str = _opt("FILENAME", Kind.STRING, "tests/halo_nfw")
    starting_snap: int = _opt("STARTING_SNAP", Kind.INTEGER, 0)
    restart_snap: int = _opt("RESTART_SNAP", Kind.INTEGER, 0)
    num_snaps: int = _opt("NUM_SNAPS", Kind.INTEGER, 1)
    num_blocks: int = _opt("NUM_BLOCKS", Kind.INTEGER, 1)
    num_readers: int = _opt("NUM_READERS", Kind.INTEGER, 0)
    preload_particles: int = _opt("PRELOAD_PARTICLES", Kind.INTEGER, 0)
    snapshot_names: str = _opt("SNAPSHOT_NAMES", Kind.STRING, "")
    lightcone_alt_snaps: str = _opt("LIGHTCONE_ALT_SNAPS", Kind.STRING, "")
    block_names: str = _opt("BLOCK_NAMES", Kind.STRING, "")

    outbase: str = _opt("OUTBASE", Kind.STRING, ".")
    overlap_length: float = _opt("OVERLAP_LENGTH", Kind.REAL, 3.0)
    num_writers: int = _opt("NUM_WRITERS", Kind.INTEGER, 1)
    fork_readers_from_writers: int = _opt("FORK_READERS_FROM_WRITERS", Kind.INTEGER, 0)
    fork_processors_per_machine: int = _opt("FORK_PROCESSORS_PER_MACHINE", Kind.INTEGER, 1)

    output_format: str = _opt("OUTPUT_FORMAT", Kind.STRING, "BOTH")
    delete_binary_output_after_finished: int = _opt(
        "DELETE_BINARY_OUTPUT_AFTER_FINISHED", Kind.INTEGER, 0
    )
    full_particle_chunks: int = _opt("FULL_PARTICLE_CHUNKS", Kind.INTEGER, 0)
    output_every_n_particles: int = _opt("OUTPUT_EVERY_N_PARTICLES", Kind.INTEGER, 1)
    unfiltered_halo_output: int = _opt("UNFILTERED_HALO_OUTPUT", Kind.INTEGER, 0)
    bgc2_snapnames: str = _opt("BGC2_SNAPNAMES", Kind.STRING, "")
    weak_lensing_fraction: float = _opt("WEAK_LENSING_FRACTION", Kind.REAL, 0.0)

    shape_iterations: int = _opt("SHAPE_ITERATIONS", Kind.INTEGER, 10)
    weighted_shapes: int = _opt("WEIGHTED_SHAPES", Kind.INTEGER, 1)
    bound_props: int = _opt("BOUND_PROPS", Kind.INTEGER, 1)
    bound_out_to_halo_edge: int = _opt("BOUND_OUT_TO_HALO_EDGE", Kind.INTEGER, 0)
    do_merger_tree_only: int = _opt("DO_MERGER_TREE_ONLY", Kind.INTEGER, 0)
    ignore_particle_ids: int = _opt("IGNORE_PARTICLE_IDS", Kind.INTEGER, 0)
    exact_ll_calc: int = _opt("EXACT_LL_CALC", Kind.INTEGER, 0)
    trim_overlap: float = _opt("TRIM_OVERLAP", Kind.REAL, 0.0)
    round_after_trim: float = _opt("ROUND_AFTER_TRIM", Kind.REAL, 1.0)
    lightcone: int = _opt("LIGHTCONE", Kind.INTEGER, 0)
    periodic: int = _opt("PERIODIC", Kind.INTEGER, 1)

    lightcone_origin: tuple = _opt("LIGHTCONE_ORIGIN", Kind.REAL3, _ZERO3)
    lightcone_alt_origin: tuple = _opt("LIGHTCONE_ALT_ORIGIN", Kind.REAL3, _ZERO3)

    limit_center: tuple = _opt("LIMIT_CENTER", Kind.REAL3, _ZERO3)
    limit_radius: float = _opt("LIMIT_RADIUS", Kind.REAL, 0.0)

    swap_endianness: int = _opt("SWAP_ENDIANNESS", Kind.INTEGER, 0)
    gadget_variant: int = _opt("GADGET_VARIANT", Kind.INTEGER, 0)
    art_variant: int = _opt("ART_VARIANT", Kind.INTEGER, 0)

    fof_fraction: float = _opt("FOF_FRACTION", Kind.REAL, 0.7)
    fof_linking_length: float = _opt("FOF_LINKING_LENGTH", Kind.REAL, 0.28)
    initial_metric_scaling: float = _opt("INITIAL_METRIC_SCALING", Kind.REAL, 1.0)
    include_host_potential_ratio: float = _opt(
        "INCLUDE_HOST_POTENTIAL_RATIO", Kind.REAL, 0.3
    )
    temporal_halo_finding: int = _opt("TEMPORAL_HALO_FINDING", Kind.INTEGER, 1)
    min_halo_particles: int = _opt("MIN_HALO_PARTICLES", Kind.INTEGER, 10)
    unbound_threshold: float = _opt("UNBOUND_THRESHOLD", Kind.REAL, 0.5)
    alt_nfw_metric: int = _opt("ALT_NFW_METRIC", Kind.INTEGER, 0)
    extra_profiling: int = _opt("EXTRA_PROFILING", Kind.INTEGER, 1)

    total_particles: int = _opt("TOTAL_PARTICLES", Kind.INTEGER, 8589934592)
    box_size: float = _opt("BOX_SIZE", Kind.REAL, 250.0)
    output_levels: int = _opt("OUTPUT_LEVELS", Kind.INTEGER, 0)
    dump_particles: tuple = _opt("DUMP_PARTICLES", Kind.REAL3, _ZERO3)

    rockstar_config_filename: str = _opt("ROCKSTAR_CONFIG_FILENAME", Kind.STRING, "")
    avg_particle_spacing: float = _opt("AVG_PARTICLE_SPACING", Kind.REAL, 0.0)
    single_snap: int = _opt("SINGLE_SNAP", Kind.INTEGER, 0)

    files_per_subdir_input: int = _opt("FILES_PER_SUBDIR_INPUT", Kind.INTEGER, 0)
    subdir_digits_input: int = _opt("SUBDIR_DIGITS_INPUT", Kind.INTEGER, 4)
    inbase2: str = _opt("INBASE2", Kind.STRING, "snapdir_")

    outlist_parallel: int = _opt("OUTLIST_PARALLEL", Kind.INTEGER, 0)
    output_subdir: int = _opt("OUTPUT_SUBDIR", Kind.INTEGER, 0)
    snapshot_subdir_digits: int = _opt("SNAPSHOT_SUBDIR_DIGITS", Kind.INTEGER, 3)
    files_per_subdir_output: int = _opt("FILES_PER_SUBDIR_OUTPUT", Kind.INTEGER, 0)
    subdir_digits_output: int = _opt("SUBDIR_DIGITS_OUTPUT", Kind.INTEGER, 4)

    memory_saving_transfer: int = _opt("MEMORY_SAVING_TRANSFER", Kind.INTEGER, 0)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> "Config":
        """Build a configuration from option names (as written in config files)."""
        kwargs = {}
        for key, value in (values or {}).items():
            spec = _FIELDS_BY_KEY.get(key)
            if spec is None:
                warnings.warn(
                    f"[Warning] Unknown config option {key}!", ConfigWarning, stacklevel=2
                )
                continue
            attr, kind = spec
            kwargs[attr] = _convert(key, kind, value)
        return cls(**kwargs)

    def setup(self) -> "Config":
        """Fill in derived values and check the option combination."""
        if not self.num_readers:
            self.num_readers = self.num_blocks
        if not self.particle_mass:
            self.particle_mass = (
                CRITICAL_DENSITY * self.box_size ** 3 * self.om / self.total_particles
            )
        if not self.avg_particle_spacing:
            self.avg_particle_spacing = _cbrt(
                self.particle_mass / (self.om * CRITICAL_DENSITY)
            )
        if self.lightcone or not self.parallel_io:
            self.periodic = 0
            self.temporal_halo_finding = 0
        if self.ignore_particle_ids:
            self.temporal_halo_finding = 0
        if not self.force_res_phys_max:
            self.force_res_phys_max = self.force_res

        _raise_resource_limits()

        if self.num_writers < self.fork_processors_per_machine:
            self.num_writers = self.fork_processors_per_machine

        if self.starting_snap >= self.num_snaps:
            warnings.warn(
                "[Warning] No work will be done unless NUM_SNAPS > STARTING_SNAP "
                "in config file!",
                ConfigWarning,
                stacklevel=2,
            )
        if self.num_readers > self.num_blocks:
            raise ConfigError("NUM_READERS must be <= NUM_BLOCKS in config file.")
        if self.output_format.startswith("ASCII") and self.strict_so_masses:
            warnings.warn(
                "[Warning] STRICT_SO_MASSES requires binary outputs; "
                "setting OUTPUT_FORMAT=BOTH.",
                ConfigWarning,
                stacklevel=2,
            )
            self.output_format = "BOTH"
        return self

    def output(self, filename: str | None = None) -> Path:
        """Write every option to OUTBASE/filename and return the path written."""
        path = Path(self.outbase) / (filename or DEFAULT_OUTPUT_NAME)
        with path.open("w") as out:
            for f in fields(self):
                out.write(_format_line(f.metadata["key"], f.metadata["kind"], getattr(self, f.name)))
        return path


_FIELDS_BY_KEY: dict[str, tuple[str, Kind]] = {
    f.metadata["key"]: (f.name, f.metadata["kind"]) for f in fields(Config)
}


def _cbrt(x: float) -> float:
    return math.copysign(abs(x) ** (1.0 / 3.0), x)


def _convert(key: str, kind: Kind, value: Any) -> Any:
    try:
        if kind is Kind.STRING:
            return str(value)
        if kind is Kind.REAL:
            return float(value)
        if kind is Kind.INTEGER:
            if isinstance(value, str):
                try:
                    return int(value.strip())
                except ValueError:
                    return int(float(value))
            return int(value)
        if isinstance(value, str):
            parts = value.replace("(", " ").replace(")", " ").replace(",", " ").split()
        else:
            parts = list(value)
        if len(parts) != 3:
            raise ConfigError(f"Option {key} needs exactly three values, got {value!r}.")
        return tuple(float(p) for p in parts)
    except (TypeError, ValueError, OverflowError) as exc:
        if isinstance(exc, ConfigError):
            raise
        raise ConfigError(f"Invalid value {value!r} for option {key}.") from exc


def _format_line(key: str, kind: Kind, value: Any) -> str:
    if kind is Kind.STRING:
        return f'{key} = "{value}"\n'
    if kind is Kind.REAL:
        return f"{key} = {value:g}\n"
    if kind is Kind.REAL3:
        a, b, c = value
        return f"{key} = ({a:g}, {b:g}, {c:g})\n"
    return f"{key} = {int(value):d}\n"


def _raise_resource_limits() -> None:
    try:
        import resource
    except ImportError:
        return
    for limit in (resource.RLIMIT_NOFILE, resource.RLIMIT_CORE):
        try:
            _soft, hard = resource.getrlimit(limit)
            resource.setrlimit(limit, (hard, hard))
        except (ValueError, OSError):
            pass


def do_config(values: Mapping[str, Any] | None = None) -> Config:
    """Build a configuration from option values and apply the derived settings."""
    return Config.from_mapping(values).setup()