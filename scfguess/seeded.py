"""
Reproducible pseudo-random fields on a distributed grid.

Two fills are provided:

- Seeded fill: the value at a grid node depends only on the seed, the
  global offset of the vector and the global coordinates of the node.
  Every global x-row of the grid is drawn from its own generator, seeded
  by the row's global linear start, so any decomposition of the domain
  reproduces the same field bit for bit.

- Process-local fill: one generator per process, seeded by the process
  rank in its group. Faster, but the result depends on the partition.
"""

import numpy as np

from .constants import DEFAULT_SEED, RAND_MAX, RAND_MIN


def _row_streams(block, grid, shift, seed):
    """Yield (local row slice, generator) for each x-row of the block."""
    nxl, nyl, _ = block.shape
    row = 0
    for k in range(block.zs, block.ze):
        for j in range(block.ys, block.ye):
            start = shift + k * grid.nx * grid.ny + j * grid.nx
            rng = np.random.default_rng([seed, start])
            yield slice(row * nxl, (row + 1) * nxl), rng
            row += 1


def seeded_rand_vec(buf, block, grid, low=RAND_MIN, high=RAND_MAX, shift=0,
                    seed=DEFAULT_SEED):
    """
    Fill a local real vector with partition-independent random values.

    Args:
        buf: Local 1D float array of length block.size, filled in place
        block: DomainBlock owned by this process
        grid: GridShape of the global grid
        low, high: Range of the values, [low, high)
        shift: Global offset of this vector (band/spinor/k-point)
        seed: Base seed

    Returns:
        buf
    """
    if buf.shape != (block.size,):
        raise ValueError(
            f"Buffer shape {buf.shape} does not match block size {block.size}")

    for rows, rng in _row_streams(block, grid, shift, seed):
        buf[rows] = rng.uniform(low, high, size=block.xe)[block.xs:]
    return buf


def seeded_rand_vec_complex(buf, block, grid, low=RAND_MIN, high=RAND_MAX,
                            shift=0, seed=DEFAULT_SEED):
    """
    Complex version of :func:`seeded_rand_vec`.

    Real and imaginary parts are drawn in pairs from the same row stream.
    """
    if buf.shape != (block.size,):
        raise ValueError(
            f"Buffer shape {buf.shape} does not match block size {block.size}")

    for rows, rng in _row_streams(block, grid, shift, seed):
        pairs = rng.uniform(low, high, size=(block.xe, 2))[block.xs:]
        buf[rows] = pairs[:, 0] + 1j * pairs[:, 1]
    return buf


def set_rand_mat(mat, low=RAND_MIN, high=RAND_MAX, comm=None, seed=DEFAULT_SEED):
    """
    Fill a local matrix with process-local random values.

    Processes with the same rank in their group get the same values.

    Args:
        mat: Float array, filled in place
        low, high: Range of the values, [low, high)
        comm: Group communicator providing the rank (None: rank 0)
        seed: Base seed

    Returns:
        mat
    """
    rank = 0 if comm is None else comm.rank
    rng = np.random.default_rng([seed, rank])
    mat[...] = rng.uniform(low, high, size=mat.shape)
    return mat


def set_rand_mat_complex(mat, low=RAND_MIN, high=RAND_MAX, comm=None,
                         seed=DEFAULT_SEED):
    """Complex version of :func:`set_rand_mat`."""
    rank = 0 if comm is None else comm.rank
    rng = np.random.default_rng([seed, rank])
    pairs = rng.uniform(low, high, size=mat.shape + (2,))
    mat[...] = pairs[..., 0] + 1j * pairs[..., 1]
    return mat
