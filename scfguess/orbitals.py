"""
Kohn-Sham orbital storage and random initial orbitals.

Local orbitals are stored as an array of shape

    (nkpt_local, nband_local, nspinor_local * DMnd)

so that one (k-point, band) column holds the spinor components one after
the other. Orbitals are real when only the Gamma point is sampled and
complex otherwise.

Notes:
    1. Processes outside the orbital domain group hold no orbitals.
    2. Orbitals in different k-point groups get the same random matrix
       when the group sizes are identical.
    3. By default all k-points start from the same orbitals.
"""

import logging
import time
from dataclasses import dataclass

import numpy as np

from .grid import DomainBlock
from .seeded import (
    seeded_rand_vec,
    seeded_rand_vec_complex,
    set_rand_mat,
    set_rand_mat_complex,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrbitalLayout:
    """
    Global sizes and local partition of the orbitals.

    Attributes:
        grid: GridShape of the global grid
        block: DomainBlock owned by this process
        nspinor: Spinor components per orbital (1, or 2 for non-collinear)
        nstates: Total number of bands
        nkpt: Total number of k-points
        nspinor_local, spinor_start: Spinor components held locally
        nband_local, band_start: Bands held locally
        nkpt_local, kpt_start: K-points held locally
    """

    grid: object
    block: object
    nspinor: int
    nstates: int
    nkpt: int
    nspinor_local: int
    spinor_start: int
    nband_local: int
    band_start: int
    nkpt_local: int
    kpt_start: int

    @classmethod
    def serial(cls, grid, nstates, nkpt=1, nspinor=1):
        """Layout of a single process holding everything."""
        return cls(grid=grid, block=DomainBlock.whole(grid), nspinor=nspinor,
                   nstates=nstates, nkpt=nkpt,
                   nspinor_local=nspinor, spinor_start=0,
                   nband_local=nstates, band_start=0,
                   nkpt_local=nkpt, kpt_start=0)

    @property
    def dmnd(self):
        return self.block.size

    @property
    def dmndsp(self):
        """Local length of one orbital including spinor components."""
        return self.dmnd * self.nspinor_local

    @property
    def size_k(self):
        """Local size of the orbitals of one k-point."""
        return self.dmndsp * self.nband_local

    @property
    def len_tot(self):
        return self.size_k * self.nkpt_local

    def global_shift(self, kg, ng, spinorg, per_kpoint=True):
        """
        Global offset of one orbital component.

        Args:
            kg, ng, spinorg: Global k-point, band and spinor indices
            per_kpoint: Include the k-point offset

        Returns:
            Offset into the global orbital index space
        """
        ndsp = self.grid.nd * self.nspinor
        shift = ng * ndsp + spinorg * self.grid.nd
        if per_kpoint:
            shift += kg * ndsp * self.nstates
        return shift


class OrbitalSet:
    """
    Local orbital coefficients.

    Attributes:
        layout: OrbitalLayout
        X: Orbitals, shape (nkpt_local, nband_local, dmndsp)
        Y: Workspace for one k-point, shape (nband_local, dmndsp)
    """

    def __init__(self, layout, is_gamma):
        self.layout = layout
        self.is_gamma = is_gamma
        dtype = float if is_gamma else complex

        shape = (layout.nkpt_local, layout.nband_local, layout.dmndsp)
        self.X = np.empty(shape, dtype=dtype)
        self.Y = np.empty(shape[1:], dtype=dtype)

    @property
    def dtype(self):
        return self.X.dtype

    def component(self, k, n, spinor):
        """View of one spinor component of a local (k-point, band) orbital."""
        dmnd = self.layout.dmnd
        return self.X[k, n, spinor * dmnd:(spinor + 1) * dmnd]


def allocate_orbitals(layout, is_gamma):
    """
    Allocate the local orbital set.

    Raises:
        MemoryError: if the arrays cannot be allocated
    """
    return OrbitalSet(layout, is_gamma)


def fill_seeded(orbitals, low, high, seed, same_kpoint=True):
    """
    Fill orbitals so that every coefficient depends only on its global
    (grid node, band, spinor[, k-point]) index.
    """
    layout = orbitals.layout
    fill = seeded_rand_vec if orbitals.is_gamma else seeded_rand_vec_complex

    for k in range(layout.nkpt_local):
        kg = layout.kpt_start + k
        for n in range(layout.nband_local):
            ng = layout.band_start + n
            for spinor in range(layout.nspinor_local):
                spinorg = layout.spinor_start + spinor
                shift = layout.global_shift(kg, ng, spinorg,
                                            per_kpoint=not same_kpoint)
                fill(orbitals.component(k, n, spinor), layout.block,
                     layout.grid, low, high, shift, seed)


def fill_process_local(orbitals, low, high, comm, seed, same_kpoint=True):
    """Fill orbitals from one generator per process (partition dependent)."""
    fill = set_rand_mat if orbitals.is_gamma else set_rand_mat_complex
    X = orbitals.X

    if same_kpoint and len(X) > 1:
        fill(X[0], low, high, comm, seed)
        X[1:] = X[0]
    else:
        fill(X, low, high, comm, seed)


def init_orbitals(ctx):
    """
    Random initial orbitals on the first structural step.

    The orbital set is allocated once; on later steps it is left
    untouched. Processes outside the orbital domain group return
    immediately.

    Args:
        ctx: SolverContext

    Returns:
        The context's OrbitalSet, or None on non-member processes
    """
    if ctx.groups.psi is None:
        return None

    if ctx.counters.elecgs_count != 0:
        return ctx.orbitals

    logger.debug("Initializing Kohn-Sham orbitals ...")

    config = ctx.config
    if ctx.orbitals is None:
        ctx.orbitals = allocate_orbitals(ctx.orbital_layout, ctx.kpoints.is_gamma_point)

    t1 = time.perf_counter()
    if config.fix_rand_seed:
        fill_seeded(ctx.orbitals, config.rand_min, config.rand_max, config.seed,
                    same_kpoint=config.same_kpoint_orbitals)
    else:
        fill_process_local(ctx.orbitals, config.rand_min, config.rand_max,
                           ctx.groups.spin, config.seed,
                           same_kpoint=config.same_kpoint_orbitals)
    t2 = time.perf_counter()
    logger.debug("Finished setting random orbitals. Time taken: %.3f ms", (t2 - t1) * 1e3)

    return ctx.orbitals
