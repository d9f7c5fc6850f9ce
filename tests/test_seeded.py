import numpy as np
import pytest

from scfguess.grid import DomainBlock, GridShape, split_domain
from scfguess.parallel import SerialCommunicator
from scfguess.seeded import (
    seeded_rand_vec,
    seeded_rand_vec_complex,
    set_rand_mat,
    set_rand_mat_complex,
)


def _assemble(grid, blocks, fill, dtype, shift=0):
    out = np.zeros(grid.nd, dtype=dtype)
    for block in blocks:
        buf = np.zeros(block.size, dtype=dtype)
        fill(buf, block, grid, -0.5, 0.5, shift, 7)
        out[block.global_indices(grid)] = buf
    return out


@pytest.mark.quick
@pytest.mark.parametrize("dims", [(2, 1, 1), (1, 3, 2), (3, 2, 2)])
def test_seeded_field_is_partition_invariant(dims):
    grid = GridShape(6, 5, 4)
    reference = _assemble(grid, [DomainBlock.whole(grid)], seeded_rand_vec, float)
    split = _assemble(grid, split_domain(grid, dims), seeded_rand_vec, float)
    assert np.array_equal(reference, split)


@pytest.mark.quick
def test_seeded_complex_field_is_partition_invariant():
    grid = GridShape(5, 3, 3)
    reference = _assemble(grid, [DomainBlock.whole(grid)], seeded_rand_vec_complex, complex)
    split = _assemble(grid, split_domain(grid, (2, 2, 1)), seeded_rand_vec_complex, complex)
    assert np.array_equal(reference, split)
    assert np.any(reference.imag != 0.0)


@pytest.mark.quick
def test_seeded_values_in_range_and_reproducible():
    grid = GridShape(8, 4, 2)
    block = DomainBlock.whole(grid)
    a = seeded_rand_vec(np.empty(block.size), block, grid, -0.5, 0.5, 0, 3)
    b = seeded_rand_vec(np.empty(block.size), block, grid, -0.5, 0.5, 0, 3)
    assert np.array_equal(a, b)
    assert np.all(a >= -0.5) and np.all(a < 0.5)


@pytest.mark.quick
def test_seeded_shift_and_seed_change_values():
    grid = GridShape(4, 4, 1)
    block = DomainBlock.whole(grid)
    base = seeded_rand_vec(np.empty(block.size), block, grid, shift=0, seed=1)
    shifted = seeded_rand_vec(np.empty(block.size), block, grid, shift=grid.nd, seed=1)
    reseeded = seeded_rand_vec(np.empty(block.size), block, grid, shift=0, seed=2)
    assert not np.array_equal(base, shifted)
    assert not np.array_equal(base, reseeded)


@pytest.mark.quick
def test_seeded_rejects_wrong_buffer_size():
    grid = GridShape(2, 2, 2)
    with pytest.raises(ValueError):
        seeded_rand_vec(np.empty(3), DomainBlock.whole(grid), grid)


class _RankComm(SerialCommunicator):
    def __init__(self, rank):
        self.rank = rank


@pytest.mark.quick
def test_process_local_fill_depends_on_rank_only():
    a = set_rand_mat(np.empty((6, 2)), comm=_RankComm(0), seed=5)
    b = set_rand_mat(np.empty((6, 2)), comm=_RankComm(0), seed=5)
    c = set_rand_mat(np.empty((6, 2)), comm=_RankComm(1), seed=5)
    assert np.array_equal(a, b)
    assert not np.array_equal(a, c)
    assert np.all(a >= -0.5) and np.all(a < 0.5)


@pytest.mark.quick
def test_process_local_complex_fill():
    m = set_rand_mat_complex(np.empty((4, 3), dtype=complex))
    assert np.all(np.abs(m.real) <= 0.5) and np.all(np.abs(m.imag) <= 0.5)
    assert np.any(m.imag != 0.0)
