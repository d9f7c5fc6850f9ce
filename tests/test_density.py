import numpy as np
import pytest

from scfguess.config import GuessConfig
from scfguess.constants import XC_RHOTOL
from scfguess.context import SolverContext
from scfguess.density import (
    DensityField,
    apply_extrapolation,
    check_charge_neutrality,
    init_electron_density,
    initialize_density,
    integrate_density,
    normalize_density,
)
from scfguess.ionic import Relaxation
from scfguess.parallel import ProcessGroups, serial_comm
from scfguess.spin import SpinType


def _context(rho_at, spin=SpinType.NONE, mag_at=None, target=2.0, **kwargs):
    config = GuessConfig(spin=spin, target_charge=target, **kwargs.pop("config", {}))
    field = DensityField(len(rho_at), spin, rho_at=rho_at, mag_at=mag_at)
    return SolverContext(config, field, np.zeros((1, 3)), **kwargs)


@pytest.mark.density
def test_first_step_copies_then_normalizes():
    ctx = _context([0.1, 0.2, 0.3, 0.4], target=2.0, dV=1.0)
    assert init_electron_density(ctx) is None
    assert np.array_equal(ctx.density.total, [0.1, 0.2, 0.3, 0.4])

    ctx.counters.record_solve()
    scale = init_electron_density(ctx)
    assert np.isclose(scale, 2.0, rtol=1e-12)
    assert np.allclose(ctx.density.total, [0.2, 0.4, 0.6, 0.8], rtol=1e-12)


@pytest.mark.density
def test_normalized_integral_matches_target():
    rng = np.random.default_rng(0)
    field = DensityField(50, rho_at=rng.random(50))
    initialize_density(field)
    normalize_density(field, 8.0, serial_comm, dV=0.37)
    assert np.isclose(integrate_density(field.total, dV=0.37), 8.0, rtol=1e-10)
    is_neutral, n = check_charge_neutrality(field, 8.0, serial_comm, dV=0.37)
    assert is_neutral and np.isclose(n, 8.0)


@pytest.mark.density
def test_normalization_with_integration_weights():
    weights = np.array([0.5, 1.0, 2.0])
    ctx = _context([1.0, 1.0, 1.0], target=7.0, config={"cyclix": True},
                   intg_weights=weights)
    init_electron_density(ctx)
    ctx.counters.record_solve()
    scale = init_electron_density(ctx)
    assert np.isclose(scale, 2.0)
    assert np.isclose(np.dot(ctx.density.total, weights), 7.0, rtol=1e-12)


@pytest.mark.density
def test_cyclix_requires_weights():
    with pytest.raises(ValueError):
        _context([1.0], config={"cyclix": True})


@pytest.mark.density
def test_normalization_reduces_over_group(preset_sum_comm):
    # Two domain processes own [1, 1] and [2, 4]; total integral is 8
    local = [np.array([1.0, 1.0]), np.array([2.0, 4.0])]
    total = sum(integrate_density(x, dV=1.0) for x in local)
    results = []
    for rank, rho in enumerate(local):
        field = DensityField(2, rho_at=rho)
        initialize_density(field)
        comm = preset_sum_comm(total, rank=rank)
        normalize_density(field, 4.0, comm, dV=1.0)
        assert comm.calls == 1
        results.append(field.total.copy())
    assert np.allclose(np.concatenate(results), [0.5, 0.5, 1.0, 2.0])


@pytest.mark.density
def test_zero_density_cannot_be_normalized():
    field = DensityField(2)
    with pytest.raises(ValueError):
        normalize_density(field, 1.0, serial_comm, dV=1.0)


@pytest.mark.density
def test_collinear_channels():
    ctx = _context([1.0, 2.0], spin=SpinType.COLLINEAR, mag_at=[0.5, -1.0], target=6.0)
    init_electron_density(ctx)
    rho = ctx.density.rho
    assert np.array_equal(ctx.density.mag[0], [0.5, -1.0])
    assert np.array_equal(rho[1], [0.75, 0.5])
    assert np.array_equal(rho[2], [0.25, 1.5])

    ctx.counters.record_solve()
    init_electron_density(ctx)
    assert np.allclose(rho[0], [2.0, 4.0])
    assert np.allclose(rho[1] + rho[2], rho[0], rtol=0, atol=1e-15)
    assert np.allclose(rho[1] - rho[2], ctx.density.mag[0], rtol=0, atol=1e-15)


@pytest.mark.density
def test_noncollinear_uses_magnetization_norm():
    mag_at = np.array([[0.3, 0.0], [0.0, 0.0], [0.4, -0.2]])
    ctx = _context([1.0, 1.0], spin=SpinType.NONCOLLINEAR, mag_at=mag_at)
    init_electron_density(ctx)
    mag = ctx.density.mag
    assert np.allclose(mag[0], [0.5, 0.2])
    assert np.array_equal(mag[1:], mag_at)
    assert np.allclose(ctx.density.rho[1], [0.75, 0.6])
    assert np.allclose(ctx.density.rho[2], [0.25, 0.4])


@pytest.mark.density
def test_mismatched_atomic_density_rejected():
    with pytest.raises(ValueError):
        DensityField(3, rho_at=[1.0, 2.0])
    with pytest.raises(ValueError):
        DensityField(2, SpinType.COLLINEAR, mag_at=np.zeros((3, 2)))


@pytest.mark.density
def test_negative_extrapolated_density_is_clamped():
    field = DensityField(3, rho_at=[0.1, 0.1, 0.1])
    apply_extrapolation(field, np.array([-0.5, 0.2, -0.1]))
    assert np.allclose(field.total, [XC_RHOTOL, 0.3, 0.0], rtol=0, atol=1e-16)
    assert np.all(field.total >= 0.0)
    assert field.total[0] == XC_RHOTOL


@pytest.mark.density
def test_extrapolated_density_staged_after_three_solves():
    ctx = _context([0.1, 0.1], target=0.2, config={"mode": Relaxation()})
    init_electron_density(ctx)
    ctx.extrapolator.drho[:] = [-0.5, 0.1]

    ctx.counters.elecgs_count = 2
    init_electron_density(ctx)
    # Not staged yet: rho is the previous density rescaled
    assert np.allclose(ctx.density.total, [0.1, 0.1])

    ctx.counters.elecgs_count = 3
    init_electron_density(ctx)
    total = ctx.density.total
    assert total[0] > 0.0
    assert np.isclose(total[0], XC_RHOTOL, rtol=1e-6)
    assert np.isclose(total.sum(), 0.2)


@pytest.mark.density
def test_stress_solves_do_not_count():
    ctx = _context([0.1, 0.1], target=0.2, config={"mode": Relaxation()})
    init_electron_density(ctx)
    ctx.extrapolator.drho[:] = [0.1, 0.1]
    ctx.counters.elecgs_count = 3
    ctx.counters.stress_count = 1
    init_electron_density(ctx)
    assert np.allclose(ctx.density.total, [0.1, 0.1])


@pytest.mark.density
def test_idle_outside_density_group():
    ctx = _context([0.1, 0.2], groups=ProcessGroups(phi=None))
    assert init_electron_density(ctx) is None
    assert np.array_equal(ctx.density.total, [0.0, 0.0])
