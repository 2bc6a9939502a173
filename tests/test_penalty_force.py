import numpy as np
import pytest

from solidsph.containers.solid_container import SolidParticleContainer
from solidsph.core.semidiscretization import Semidiscretization
from solidsph.sph.kernels import SchoenbergCubicSplineKernel
from solidsph.sph.penalty_force import PenaltyForceGanzenmueller, calc_penalty_force


def _block(penalty_force=None):
    xs, ys = np.meshgrid(np.arange(5) * 0.1, np.arange(5) * 0.1, indexing="ij")
    coordinates = np.stack([xs.ravel(), ys.ravel()], axis=0)
    n = coordinates.shape[1]

    return SolidParticleContainer(
        initial_coordinates=coordinates,
        initial_velocity=np.zeros((2, n)),
        mass=10.0 * np.ones(n),
        material_density=1000.0 * np.ones(n),
        smoothing_kernel=SchoenbergCubicSplineKernel(ndims=2),
        smoothing_length=0.07,
        young_modulus=2.5,
        poisson_ratio=0.25,
        penalty_force=penalty_force,
    )


def _rhs(penalty_force, deform):
    container = _block(penalty_force)
    semi = Semidiscretization(container)
    u_ode = semi.semidiscretize((0.0, 1.0))

    u = semi.wrap_array(u_ode, 0)
    u[:2, :] = deform(u[:2, :].copy())

    return semi.wrap_array(semi.ode_function(0.0, u_ode), 0)


def _perturb_center(x):
    x[:, 12] += np.array([0.02, -0.01])
    return x


def test_penalty_force_vanishes_for_affine_motion():
    A = np.array([[1.3, 0.2], [0.0, 0.8]])

    def affine(x):
        return A @ x

    without = _rhs(None, affine)
    with_penalty = _rhs(PenaltyForceGanzenmueller(alpha=0.1), affine)

    np.testing.assert_allclose(with_penalty, without, rtol=1e-8, atol=1e-12)


def test_penalty_force_acts_on_non_affine_motion():
    without = _rhs(None, _perturb_center)
    with_penalty = _rhs(PenaltyForceGanzenmueller(alpha=0.1), _perturb_center)

    difference = with_penalty - without
    assert np.max(np.abs(difference[2:, 12])) > 1e-9
    # positions rows only carry velocities
    assert np.array_equal(with_penalty[:2], without[:2])


def test_penalty_force_scales_with_alpha():
    without = _rhs(None, _perturb_center)
    small = _rhs(PenaltyForceGanzenmueller(alpha=0.1), _perturb_center) - without
    large = _rhs(PenaltyForceGanzenmueller(alpha=0.3), _perturb_center) - without

    np.testing.assert_allclose(large, 3.0 * small, rtol=1e-6, atol=1e-14)


def test_none_penalty_force_is_a_no_op():
    container = _block()
    du = np.ones((4, container.n_particles))

    calc_penalty_force(du, 0, 1, np.array([-0.1, 0.0]), 0.1, container, container, None)

    assert np.all(du == 1.0)


def test_negative_alpha_raises():
    with pytest.raises(ValueError):
        PenaltyForceGanzenmueller(alpha=-1.0)
