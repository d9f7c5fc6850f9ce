"""
Small dense least-squares solver for the extrapolation fit.

Uses the LAPACK divide-and-conquer SVD driver (gelsd), which truncates
singular values below ``rcond * s_max`` and therefore tolerates singular
or ill-conditioned systems.
"""

import numpy as np
from scipy.linalg import lstsq

from .constants import DEFAULT_RCOND


def solve_lsq(A, b, rcond=DEFAULT_RCOND):
    """
    Minimum-norm least-squares solution of A x = b.

    Args:
        A: (m, n) matrix
        b: (m,) right-hand side
        rcond: Relative singular value cutoff; negative means machine
            precision

    Returns:
        x: (n,) solution
        rank: Effective rank of A
    """
    A = np.asarray(A, dtype=float)
    b = np.asarray(b, dtype=float)

    cond = None if rcond is None or rcond < 0 else rcond
    x, _, rank, _ = lstsq(A, b, cond=cond, lapack_driver='gelsd')

    return x, int(rank)
