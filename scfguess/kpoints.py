"""
K-Point Sampling for Brillouin Zone Integration.

Only what the orbital initialization needs: the number of k-points and
whether the calculation samples the Gamma point alone (real orbitals).

Reference:
    Monkhorst, H. J. & Pack, J. D. "Special points for Brillouin-zone
    integrations" Phys. Rev. B 13, 5188 (1976)
"""

import numpy as np

from .constants import EPS10


class KPoints:
    """
    Monkhorst-Pack k-point mesh in fractional coordinates.

    Attributes:
        k_frac: K-points in fractional (crystal) coordinates
        weights: Integration weights (sum to 1)
        nk: Number of k-points
    """

    def __init__(self, mesh, shift=None):
        """
        Generate Monkhorst-Pack k-point mesh.

        Args:
            mesh: Tuple (n1, n2, n3) specifying mesh density
            shift: Optional tuple (s1, s2, s3) for mesh shift (0 or 0.5)
        """
        self.mesh = tuple(mesh)
        self.shift = tuple(shift) if shift is not None else (0, 0, 0)

        self.k_frac, self.weights = self._generate_mp_mesh()
        self.nk = len(self.k_frac)

    def _generate_mp_mesh(self):
        """
        k_i = (2*n - N - 1) / (2*N) + s_i / N
        """
        axes = [
            (2 * np.arange(n) - n + 1) / (2 * n) + s / n
            for n, s in zip(self.mesh, self.shift)
        ]
        k1, k2, k3 = np.meshgrid(*axes, indexing='ij')
        k_points = np.stack([k1.ravel(), k2.ravel(), k3.ravel()], axis=1)

        nk = len(k_points)
        return k_points, np.ones(nk) / nk

    @property
    def is_gamma_point(self):
        """True if the only k-point is Gamma."""
        return self.nk == 1 and bool(np.all(np.abs(self.k_frac[0]) < EPS10))


def gamma_only():
    """Create Gamma-point-only k-point sampling."""
    return KPoints((1, 1, 1))


def monkhorst_pack(n1, n2, n3, shift=False):
    """
    Create Monkhorst-Pack k-point mesh.

    Args:
        n1, n2, n3: Mesh density in each direction
        shift: If True, use (0.5, 0.5, 0.5) shift

    Returns:
        KPoints object
    """
    s = (0.5, 0.5, 0.5) if shift else (0, 0, 0)
    return KPoints((n1, n2, n3), s)
