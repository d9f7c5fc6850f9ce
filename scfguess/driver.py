"""
Per-structural-step orchestration of the initial guesses.

Each structural step of a relaxation or MD run proceeds as:

1. prepare_step: density guess (atomic superposition on the first step,
   extrapolated and/or normalized density afterwards), then random
   orbitals on the very first step
2. the SCF solve (external)
3. finish_step: count the solve and update the extrapolation history
4. the ionic move (external)
"""

import logging

from .density import init_electron_density
from .extrapolation import elec_dens_extrapolation
from .ionic import MolecularDynamics
from .orbitals import init_orbitals

logger = logging.getLogger(__name__)


class InitialGuess:
    """
    Initial-guess driver for one process.

    Attributes:
        ctx: SolverContext
        last_scale: Density scale factor of the last prepare_step
        last_fit: (alpha, beta, rank) of the last extrapolation fit
    """

    def __init__(self, ctx):
        self.ctx = ctx
        self.last_scale = None
        self.last_fit = None

    def prepare_step(self):
        """
        Stage the density and (first step only) the orbitals.

        Returns:
            Density scale factor, or None on the first step
        """
        ctx = self.ctx
        self.last_scale = init_electron_density(ctx)

        if ctx.orbital_layout is not None:
            try:
                init_orbitals(ctx)
            except MemoryError:
                logger.error("Memory allocation failed for Kohn-Sham orbitals")
                ctx.groups.psi.abort(1)
                raise

        return self.last_scale

    def finish_step(self, stress=False):
        """
        Record a completed electronic solve and update the history.

        In MD mode the step counter md_count is advanced here, before the
        position prediction, so callers driving the loop themselves must
        not advance it as well. Stress-only solves do not start a new MD
        step.

        Args:
            stress: The solve only served a stress evaluation

        Returns:
            (alpha, beta, rank) of the fit, or None
        """
        ctx = self.ctx
        ctx.counters.record_solve(stress=stress)
        if not ctx.config.structural:
            return None
        if isinstance(ctx.config.mode, MolecularDynamics) and not stress:
            ctx.counters.md_count += 1

        fit = elec_dens_extrapolation(ctx)
        if fit is not None:
            self.last_fit = fit
        return fit

    def run(self, n_steps, scf_callback, move_callback=None, verbose=None):
        """
        Reference outer loop.

        Args:
            n_steps: Number of structural steps
            scf_callback: Called as scf_callback(ctx) after the guess is
                staged; updates ctx.density in place
            move_callback: Called as move_callback(ctx) after the
                extrapolation update; moves the ions for the next step
            verbose: Print progress (defaults to config.verbose)

        Returns:
            List of (scale, fit) per step
        """
        ctx = self.ctx
        if verbose is None:
            verbose = ctx.config.verbose

        if verbose:
            print("=" * 60)
            print("Initial Guess")
            print("=" * 60)
            print(f"  Mode: {type(ctx.config.mode).__name__}")
            print(f"  Spin: {ctx.config.spin.name}")
            print(f"  Local grid nodes: {ctx.density.nd}")
            print(f"  Atoms: {ctx.ionic.n_atom}")
            print(f"  Target charge: {ctx.config.target_charge:.6f}")
            print(f"  Seeded orbitals: {ctx.config.fix_rand_seed}")
            print("-" * 60)
            print(f"{'Step':>4} {'Scale':>14} {'alpha':>14} {'beta':>14} {'rank':>5}")
            print("-" * 60)

        results = []
        for step in range(1, n_steps + 1):
            scale = self.prepare_step()
            scf_callback(ctx)
            fit = self.finish_step()

            if move_callback is not None:
                move_callback(ctx)

            results.append((scale, fit))
            if verbose:
                scale_str = f"{scale:14.8f}" if scale is not None else f"{'-':>14}"
                if fit is not None:
                    alpha, beta, rank = fit
                    fit_str = f"{alpha:14.6e} {beta:14.6e} {rank:5d}"
                else:
                    fit_str = f"{'-':>14} {'-':>14} {'-':>5}"
                print(f"{step:4d} {scale_str} {fit_str}")

        if verbose:
            print("=" * 60)

        return results
