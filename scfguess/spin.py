"""
Spin treatment and spin-channel densities.

Spin-polarized densities are stored as three channels (total, up, down).
The magnetization is stored as one row (collinear) or four rows
(non-collinear: |m|, mx, my, mz).
"""

from enum import Enum

import numpy as np


class SpinType(Enum):
    """Spin treatment of the calculation."""

    NONE = 0
    COLLINEAR = 1
    NONCOLLINEAR = 2

    @classmethod
    def from_code(cls, code):
        try:
            return cls(int(code))
        except ValueError:
            raise ValueError(f"Unknown spin type code: {code}") from None

    @property
    def polarized(self):
        return self is not SpinType.NONE

    @property
    def nspden(self):
        """Number of density channels."""
        return 1 if self is SpinType.NONE else 3

    @property
    def nmag(self):
        """Number of magnetization rows."""
        return {SpinType.NONE: 0, SpinType.COLLINEAR: 1, SpinType.NONCOLLINEAR: 4}[self]

    @property
    def nmag_at(self):
        """Number of components of the atomic magnetization guess."""
        return {SpinType.NONE: 0, SpinType.COLLINEAR: 1, SpinType.NONCOLLINEAR: 3}[self]


def magnetization_norm(mx, my, mz, out=None):
    """
    Pointwise norm of a non-collinear magnetization.

    Args:
        mx, my, mz: Magnetization components
        out: Optional output array

    Returns:
        |m| = sqrt(mx^2 + my^2 + mz^2)
    """
    return np.sqrt(mx * mx + my * my + mz * mz, out=out)


def diagonal_density(rho, mag, up, down):
    """
    Spin-up and spin-down densities from total density and magnetization.

        up   = (rho + m) / 2
        down = (rho - m) / 2

    Args:
        rho: Total density
        mag: Magnetization (collinear m or |m|)
        up, down: Output arrays, written in place
    """
    np.add(rho, mag, out=up)
    up *= 0.5
    np.subtract(rho, mag, out=down)
    down *= 0.5
