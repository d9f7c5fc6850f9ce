"""
Solver context shared by the initialization routines.

The context is created once per run and mutated in place by every
routine. It bundles configuration, process groups, step counters and the
density / orbital / history buffers of this process.
"""

from dataclasses import dataclass

import numpy as np

from .density import DensityField
from .extrapolation import DensityExtrapolator
from .ionic import IonicState
from .kpoints import gamma_only
from .parallel import ProcessGroups


@dataclass
class StepCounters:
    """
    Counters maintained by the outer loop.

    Attributes:
        elecgs_count: Electronic ground-state solves completed
        stress_count: Solves consumed by stress evaluation
        md_count: MD steps taken (1-based once MD has started)
    """

    elecgs_count: int = 0
    stress_count: int = 0
    md_count: int = 0

    @property
    def net_solves(self):
        """Solves that count towards the extrapolation history."""
        return self.elecgs_count - self.stress_count

    def record_solve(self, stress=False):
        self.elecgs_count += 1
        if stress:
            self.stress_count += 1


class SolverContext:
    """
    State of one process for the initial-guess routines.

    Attributes:
        config: GuessConfig
        groups: ProcessGroups
        counters: StepCounters
        density: DensityField
        ionic: IonicState
        extrapolator: DensityExtrapolator
        kpoints: KPoints
        orbital_layout: OrbitalLayout (None if orbitals are not handled)
        orbitals: OrbitalSet, allocated on the first step
        dV: Uniform volume element
        intg_weights: Per-node integration weights (cyclix grids)
    """

    def __init__(self, config, density, ionic, groups=None, kpoints=None,
                 orbital_layout=None, dV=1.0, intg_weights=None,
                 counters=None):
        self.config = config
        self.groups = groups if groups is not None else ProcessGroups.serial()
        self.counters = counters if counters is not None else StepCounters()

        if density.spin is not config.spin:
            raise ValueError(
                f"Density spin {density.spin.name} does not match "
                f"configuration {config.spin.name}")
        self.density = density

        if not isinstance(ionic, IonicState):
            ionic = IonicState(ionic)
        self.ionic = ionic

        self.extrapolator = DensityExtrapolator(density.nd, ionic.n_atom, config.rcond)
        self.kpoints = kpoints if kpoints is not None else gamma_only()
        if orbital_layout is not None and orbital_layout.nkpt != self.kpoints.nk:
            raise ValueError(
                f"Orbital layout has {orbital_layout.nkpt} k-points, "
                f"sampling has {self.kpoints.nk}")
        self.orbital_layout = orbital_layout
        self.orbitals = None

        self.dV = dV
        if config.cyclix:
            if intg_weights is None:
                raise ValueError("cyclix integration requires intg_weights")
            intg_weights = np.asarray(intg_weights, dtype=float)
            if intg_weights.shape != (density.nd,):
                raise ValueError(
                    f"intg_weights shape {intg_weights.shape} does not match ({density.nd},)")
        self.intg_weights = intg_weights

    def integration_measure(self):
        """
        Returns:
            (dV, weights) to pass to the density integration
        """
        if self.config.cyclix:
            return None, self.intg_weights
        return self.dV, None
