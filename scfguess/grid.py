"""
Real-space grid and domain decomposition descriptors.

The global finite-difference grid has Nx x Ny x Nz nodes. Each process of
a domain group owns a rectangular block of it. Nodes are ordered with x
running fastest, both globally and inside a local block:

    global index = k*Nx*Ny + j*Nx + i
    local index  = (k-zs)*nxl*nyl + (j-ys)*nxl + (i-xs)
"""

from dataclasses import dataclass

import numpy as np

from .parallel import block_partition


@dataclass(frozen=True)
class GridShape:
    """Global grid dimensions."""

    nx: int
    ny: int
    nz: int

    @property
    def nd(self):
        """Total number of grid nodes."""
        return self.nx * self.ny * self.nz

    def as_tuple(self):
        return (self.nx, self.ny, self.nz)


@dataclass(frozen=True)
class DomainBlock:
    """
    Block of the global grid owned by one process.

    Ranges are half-open: the block covers xs <= i < xe, ys <= j < ye,
    zs <= k < ze.
    """

    xs: int
    xe: int
    ys: int
    ye: int
    zs: int
    ze: int

    def __post_init__(self):
        if self.xe < self.xs or self.ye < self.ys or self.ze < self.zs:
            raise ValueError(f"Empty or inverted domain block: {self}")

    @classmethod
    def from_vertices(cls, vertices):
        """
        Build a block from inclusive vertices [xs, xe, ys, ye, zs, ze].
        """
        xs, xe, ys, ye, zs, ze = vertices
        return cls(xs, xe + 1, ys, ye + 1, zs, ze + 1)

    @classmethod
    def whole(cls, grid):
        """Block covering the entire grid."""
        return cls(0, grid.nx, 0, grid.ny, 0, grid.nz)

    @classmethod
    def split(cls, grid, dims, coords):
        """
        Block of a Cartesian process grid.

        Args:
            grid: GridShape
            dims: Number of processes along (x, y, z)
            coords: Process coordinates in the process grid

        Returns:
            DomainBlock owned by the process at ``coords``
        """
        bounds = []
        for n, p, c in zip(grid.as_tuple(), dims, coords):
            count, start = block_partition(n, p, c)
            bounds.extend((start, start + count))
        return cls(*bounds)

    @property
    def shape(self):
        return (self.xe - self.xs, self.ye - self.ys, self.ze - self.zs)

    @property
    def size(self):
        """Number of local nodes (DMnd)."""
        nx, ny, nz = self.shape
        return nx * ny * nz

    def global_indices(self, grid):
        """
        Global linear indices of the local nodes in local order.
        """
        i = np.arange(self.xs, self.xe)
        j = np.arange(self.ys, self.ye)
        k = np.arange(self.zs, self.ze)
        K, J, I = np.meshgrid(k, j, i, indexing='ij')
        return (K * grid.ny * grid.nx + J * grid.nx + I).ravel()


def split_domain(grid, dims):
    """
    All blocks of a Cartesian process grid, in rank order (x fastest).

    Args:
        grid: GridShape
        dims: Number of processes along (x, y, z)

    Returns:
        List of DomainBlock
    """
    px, py, pz = dims
    blocks = []
    for cz in range(pz):
        for cy in range(py):
            for cx in range(px):
                blocks.append(DomainBlock.split(grid, dims, (cx, cy, cz)))
    return blocks
