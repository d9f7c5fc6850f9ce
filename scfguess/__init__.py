"""
Initial guesses for self-consistent electronic-structure calculations.

Electron density and Kohn-Sham orbital initialization for a distributed
real-space DFT solver, with charge extrapolation between structural
(relaxation / molecular dynamics) steps.

Modules:
    constants: Numerical constants
    parallel: Process groups and scalar reductions
    grid: Global grid and domain blocks
    seeded: Reproducible random fields
    lsq: Least-squares solver for the extrapolation fit
    history: Age-indexed rolling history
    spin: Spin types and spin-channel densities
    density: Density initialization and normalization
    ionic: Structural modes and ionic position history
    extrapolation: Charge extrapolation
    kpoints: K-point sampling
    orbitals: Random initial orbitals
    config: GuessConfig
    context: SolverContext and step counters
    driver: Per-step orchestration
"""

from .constants import XC_RHOTOL, RAND_MIN, RAND_MAX, HISTORY_DEPTH

# Parallel layout
from .parallel import (
    SerialCommunicator,
    MPICommunicator,
    ProcessGroups,
    serial_comm,
    reduce_sum,
    block_partition,
)
from .grid import GridShape, DomainBlock, split_domain

# Building blocks
from .seeded import (
    seeded_rand_vec,
    seeded_rand_vec_complex,
    set_rand_mat,
    set_rand_mat_complex,
)
from .lsq import solve_lsq
from .history import History
from .spin import SpinType, diagonal_density, magnetization_norm

# Density
from .density import (
    DensityField,
    integrate_density,
    initialize_density,
    apply_extrapolation,
    normalize_density,
    check_charge_neutrality,
    init_electron_density,
)

# Extrapolation
from .ionic import (
    SinglePoint,
    MolecularDynamics,
    Relaxation,
    IonicState,
    PositionHistory,
    is_structural,
)
from .extrapolation import DensityExtrapolator, elec_dens_extrapolation

# Orbitals
from .kpoints import KPoints, gamma_only, monkhorst_pack
from .orbitals import OrbitalLayout, OrbitalSet, allocate_orbitals, init_orbitals

# Driver
from .config import GuessConfig
from .context import StepCounters, SolverContext
from .driver import InitialGuess

__version__ = "0.1.0"

__all__ = [
    # Constants
    "XC_RHOTOL", "RAND_MIN", "RAND_MAX", "HISTORY_DEPTH",

    # Parallel
    "SerialCommunicator", "MPICommunicator", "ProcessGroups", "serial_comm",
    "reduce_sum", "block_partition",
    "GridShape", "DomainBlock", "split_domain",

    # Building blocks
    "seeded_rand_vec", "seeded_rand_vec_complex",
    "set_rand_mat", "set_rand_mat_complex",
    "solve_lsq", "History",
    "SpinType", "diagonal_density", "magnetization_norm",

    # Density
    "DensityField", "integrate_density", "initialize_density",
    "apply_extrapolation", "normalize_density", "check_charge_neutrality",
    "init_electron_density",

    # Extrapolation
    "SinglePoint", "MolecularDynamics", "Relaxation", "IonicState",
    "PositionHistory", "is_structural",
    "DensityExtrapolator", "elec_dens_extrapolation",

    # Orbitals
    "KPoints", "gamma_only", "monkhorst_pack",
    "OrbitalLayout", "OrbitalSet", "allocate_orbitals", "init_orbitals",

    # Driver
    "GuessConfig", "StepCounters", "SolverContext", "InitialGuess",
]
