import numpy as np
import pytest

from scfguess.spin import SpinType, diagonal_density, magnetization_norm


@pytest.mark.quick
def test_spin_type_codes():
    assert SpinType.from_code(0) is SpinType.NONE
    assert SpinType.from_code(2) is SpinType.NONCOLLINEAR
    with pytest.raises(ValueError):
        SpinType.from_code(5)
    assert SpinType.NONE.nspden == 1
    assert SpinType.COLLINEAR.nspden == 3
    assert SpinType.NONCOLLINEAR.nmag == 4
    assert SpinType.NONCOLLINEAR.nmag_at == 3


@pytest.mark.quick
def test_diagonal_density_identities():
    rho = np.array([1.0, 0.75, 0.5, 2.0])
    mag = np.array([0.25, -0.5, 0.0, 1.5])
    up = np.empty(4)
    down = np.empty(4)
    diagonal_density(rho, mag, up, down)
    assert np.array_equal(up + down, rho)
    assert np.array_equal(up - down, mag)


@pytest.mark.quick
def test_magnetization_norm():
    n = magnetization_norm(np.array([3.0]), np.array([0.0]), np.array([4.0]))
    assert np.allclose(n, [5.0])
