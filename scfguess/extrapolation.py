"""
Charge extrapolation between structural steps.

The density deviation from the atomic superposition,

    drho = rho - rho_at,

is predicted for the next ionic configuration from the last three
deviations. The coefficients alpha, beta are fitted so that the same
linear combination best reproduces the predicted ionic displacement:

    R_next - R_0 ~ alpha (R_0 - R_1) + beta (R_1 - R_2)

    drho_next = (1 + alpha) drho_0 + (beta - alpha) drho_1 - beta drho_2

Reference:
    Alfe, D. "Ab initio molecular dynamics, a simple algorithm for charge
    extrapolation" Comput. Phys. Commun. 118, 31 (1999)
"""

import logging

import numpy as np

from .constants import DEFAULT_RCOND, HISTORY_DEPTH, MIN_EXTRAPOLATION_SOLVES
from .history import History
from .ionic import MolecularDynamics, PositionHistory, is_structural
from .lsq import solve_lsq

logger = logging.getLogger(__name__)


class DensityExtrapolator:
    """
    Density deviation history and extrapolated deviation.

    Attributes:
        deviations: History of drho, age 0 most recent
        positions: PositionHistory of the ions
        drho: Extrapolated deviation for the next step; zero until the
            first fit
        rcond: Singular value cutoff of the least-squares fit
    """

    def __init__(self, nd, n_atom, rcond=DEFAULT_RCOND):
        """
        Initialize extrapolation storage.

        Args:
            nd: Number of local grid nodes
            n_atom: Number of atoms
            rcond: Singular value cutoff for the fit
        """
        self.nd = nd
        self.rcond = rcond
        self.deviations = History(HISTORY_DEPTH, lambda: np.zeros(nd))
        self.positions = PositionHistory(n_atom)
        self.drho = np.zeros(nd)

    def snapshot_positions(self, positions):
        """Store the positions of the first step in the age-0 slot."""
        self.positions.snapshot(positions)

    def build_system(self):
        """
        Normal equations of the displacement fit.

        Returns:
            FtF: (2, 2) symmetric matrix
            Ftf: (2,) right-hand side
        """
        r0, r1, r2 = (self.positions[age].ravel() for age in range(3))
        d01 = r0 - r1
        d12 = r1 - r2
        target = self.positions.predicted.ravel() - r0

        FtF = np.array([[d01 @ d01, d01 @ d12],
                        [d01 @ d12, d12 @ d12]])
        Ftf = np.array([d01 @ target, d12 @ target])
        return FtF, Ftf

    def predict_deviation(self, alpha, beta, out=None):
        """(1 + alpha) drho_0 + (beta - alpha) drho_1 - beta drho_2"""
        d0, d1, d2 = self.deviations
        if out is None:
            out = np.empty(self.nd)
        np.multiply(1.0 + alpha, d0, out=out)
        out += (beta - alpha) * d1
        out -= beta * d2
        return out

    def extrapolate(self, ctx):
        """
        Update histories after an electronic solve and refit drho.

        The fit is performed only once MIN_EXTRAPOLATION_SOLVES net solves
        (excluding stress-only solves) have accumulated; before that only
        the histories advance.

        Processes outside the density domain group return immediately.

        Args:
            ctx: SolverContext

        Returns:
            (alpha, beta, rank) of the fit, or None if no fit was made
        """
        if ctx.groups.phi is None:
            return None

        mode = ctx.config.mode
        if not is_structural(mode):
            logger.debug("Charge extrapolation skipped for %r", mode)
            return None

        field = ctx.density
        net = ctx.counters.net_solves

        self.deviations.push(field.rho[0] - field.rho_at)

        if isinstance(mode, MolecularDynamics):
            first_step = ctx.counters.md_count == 1
        else:
            first_step = net == 1
        self.positions.predict(mode, ctx.ionic, first_step)

        result = None
        if net >= MIN_EXTRAPOLATION_SOLVES:
            FtF, Ftf = self.build_system()
            (alpha, beta), rank = solve_lsq(FtF, Ftf, self.rcond)
            if rank < 2:
                logger.debug(
                    "Rank-deficient extrapolation fit (rank %d): alpha=%.6e beta=%.6e",
                    rank, alpha, beta)
            self.predict_deviation(alpha, beta, out=self.drho)
            result = (float(alpha), float(beta), rank)

        self.positions.shift()
        return result

    def reset(self):
        """Forget all history."""
        self.deviations.reset()
        self.positions.reset()
        self.drho[:] = 0.0


def elec_dens_extrapolation(ctx):
    """Run the context's extrapolator after an electronic solve."""
    return ctx.extrapolator.extrapolate(ctx)
