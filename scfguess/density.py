"""
Electron density initialization and normalization.

On the first structural step the density guess is the superposition of
atomic densities rho_at. On later steps the staged density (carried over
from the previous step, or rho_at plus an extrapolated deviation) is
rescaled so that

    integral rho(r) dr = N_electrons

and the spin channels are rebuilt from the total density and the current
magnetization.
"""

import logging

import numpy as np

from .constants import EPS20, MIN_EXTRAPOLATION_SOLVES, XC_RHOTOL
from .parallel import reduce_sum
from .spin import SpinType, diagonal_density, magnetization_norm

logger = logging.getLogger(__name__)


class DensityField:
    """
    Local part of the electron density on one domain process.

    Attributes:
        nd: Number of local grid nodes (DMnd)
        spin: SpinType
        rho: Density channels, shape (nspden, nd): total[, up, down]
        mag: Magnetization, shape (nmag, nd)
        rho_at: Atomic superposition density, shape (nd,)
        mag_at: Atomic magnetization guess, shape (nmag_at, nd)
    """

    def __init__(self, nd, spin=SpinType.NONE, rho_at=None, mag_at=None):
        """
        Initialize density storage.

        Args:
            nd: Number of local grid nodes
            spin: SpinType
            rho_at: Atomic reference density (zeros if None)
            mag_at: Atomic magnetization (zeros if None)
        """
        self.nd = nd
        self.spin = spin

        self.rho = np.zeros((spin.nspden, nd))
        self.mag = np.zeros((spin.nmag, nd))
        self.rho_at = np.zeros(nd)
        self.mag_at = np.zeros((spin.nmag_at, nd))

        if rho_at is not None:
            self.set_atomic_density(rho_at)
        if mag_at is not None:
            self.set_atomic_magnetization(mag_at)

    @property
    def total(self):
        """Total density channel (view)."""
        return self.rho[0]

    def set_atomic_density(self, rho_at):
        rho_at = np.asarray(rho_at, dtype=float)
        if rho_at.shape != (self.nd,):
            raise ValueError(
                f"Atomic density shape {rho_at.shape} does not match ({self.nd},)")
        self.rho_at[:] = rho_at

    def set_atomic_magnetization(self, mag_at):
        mag_at = np.asarray(mag_at, dtype=float).reshape(-1, self.nd)
        if mag_at.shape != self.mag_at.shape:
            raise ValueError(
                f"Atomic magnetization shape {mag_at.shape} does not match "
                f"{self.mag_at.shape} for {self.spin.name}")
        self.mag_at[:] = mag_at

    def resolve_spin(self):
        """Rebuild up/down channels from total density and magnetization."""
        if self.spin.polarized:
            diagonal_density(self.rho[0], self.mag[0], self.rho[1], self.rho[2])


def integrate_density(rho, dV=None, weights=None):
    """
    Local volume integral of a density.

    Args:
        rho: Density on local nodes
        dV: Uniform volume element
        weights: Per-node integration weights (curvilinear grids);
            takes precedence over dV

    Returns:
        Local integral (not reduced over processes)
    """
    if weights is not None:
        weights = np.asarray(weights)
        if weights.shape != rho.shape:
            raise ValueError("weights and rho must have the same shape")
        return float(np.dot(rho, weights))
    if dV is None:
        raise ValueError("Either dV or weights must be given")
    return float(np.sum(rho)) * dV


def initialize_density(field):
    """
    First-step density guess from atomic densities.

    Copies rho_at into the total channel and, for spin-polarized runs,
    the atomic magnetization into mag before building up/down channels.
    """
    field.rho[0] = field.rho_at

    if field.spin is SpinType.COLLINEAR:
        field.mag[0] = field.mag_at[0]
    elif field.spin is SpinType.NONCOLLINEAR:
        field.mag[1:4] = field.mag_at
        magnetization_norm(field.mag[1], field.mag[2], field.mag[3], out=field.mag[0])

    field.resolve_spin()


def apply_extrapolation(field, drho, floor=XC_RHOTOL):
    """
    Stage rho_at + drho as the total density, clamping negative values.

    Args:
        field: DensityField
        drho: Extrapolated density deviation
        floor: Value substituted for negative densities
    """
    total = field.rho[0]
    np.add(field.rho_at, drho, out=total)
    total[total < 0.0] = floor


def normalize_density(field, target_charge, comm, dV=None, weights=None):
    """
    Rescale the total density to the target charge and rebuild spin channels.

    Args:
        field: DensityField
        target_charge: Total positive charge (number of electrons)
        comm: Domain group communicator used for the reduction
        dV: Uniform volume element
        weights: Per-node integration weights

    Returns:
        Scale factor applied
    """
    int_rho = reduce_sum(integrate_density(field.rho[0], dV, weights), comm)
    if abs(int_rho) < EPS20:
        raise ValueError("Cannot normalize a density with zero integral")

    vscal = target_charge / int_rho
    field.rho[0] *= vscal
    field.resolve_spin()

    return vscal


def check_charge_neutrality(field, n_electrons, comm, dV=None, weights=None,
                            tol=0.01):
    """
    Check if integrated density matches expected electron count.

    Returns:
        is_neutral: True if charge matches
        n_computed: Computed number of electrons
    """
    n_computed = reduce_sum(integrate_density(field.rho[0], dV, weights), comm)
    return abs(n_computed - n_electrons) < tol, n_computed


def init_electron_density(ctx):
    """
    Density guess for the current structural step.

    First step (no net electronic solve yet): atomic superposition, and
    the current positions are recorded for later extrapolation. Later
    steps: optional extrapolated staging, then normalization.

    Processes outside the density domain group return immediately.

    Args:
        ctx: SolverContext

    Returns:
        Normalization scale factor, or None on the first step
    """
    comm = ctx.groups.phi
    if comm is None:
        return None

    logger.debug("Initializing electron density ...")

    field = ctx.density
    config = ctx.config
    net = ctx.counters.net_solves

    if net == 0:
        initialize_density(field)
        if config.structural:
            ctx.extrapolator.snapshot_positions(ctx.ionic.positions)
        return None

    if net >= MIN_EXTRAPOLATION_SOLVES and config.structural:
        logger.debug("Using charge extrapolation for density guess")
        apply_extrapolation(field, ctx.extrapolator.drho, config.density_floor)

    dV, weights = ctx.integration_measure()
    return normalize_density(field, config.target_charge, comm, dV=dV, weights=weights)
