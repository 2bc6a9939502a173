import numpy as np
import pytest

from solidsph.containers.boundary_container import BoundaryParticleContainer
from solidsph.containers.solid_container import SolidParticleContainer
from solidsph.core.semidiscretization import Semidiscretization
from solidsph.sph.boundary_models import BoundaryModelFrozen, BoundaryModelMonaghanKajtar
from solidsph.sph.kernels import SchoenbergCubicSplineKernel


def _solid_block(n_per_dim=3, spacing=0.1, ndims=2, n_fixed_particles=0, acceleration=None):
    axes = [np.arange(n_per_dim) * spacing] * ndims
    mesh = np.meshgrid(*axes, indexing="ij")
    coordinates = np.stack([m.ravel() for m in mesh], axis=0)
    n = coordinates.shape[1]

    return SolidParticleContainer(
        initial_coordinates=coordinates,
        initial_velocity=np.zeros((ndims, n)),
        mass=10.0 * np.ones(n),
        material_density=1000.0 * np.ones(n),
        smoothing_kernel=SchoenbergCubicSplineKernel(ndims=ndims),
        smoothing_length=0.07,
        young_modulus=2.5,
        poisson_ratio=0.25,
        n_fixed_particles=n_fixed_particles,
        acceleration=acceleration,
    )


def _floor(y=-0.05, movement_function=None, boundary_model=None):
    xs = np.arange(-0.1, 0.3 + 1e-12, 0.05)
    coordinates = np.stack([xs, np.full_like(xs, y)], axis=0)

    return BoundaryParticleContainer(
        initial_coordinates=coordinates,
        mass=np.ones(xs.size),
        boundary_model=boundary_model or BoundaryModelMonaghanKajtar(K=1.0, beta=1.0, boundary_particle_spacing=0.01),
        movement_function=movement_function,
    )


def test_mismatched_dimensions_raise():
    with pytest.raises(ValueError):
        Semidiscretization(_solid_block(ndims=2), _solid_block(ndims=3))


def test_unknown_search_type_raises():
    with pytest.raises(ValueError):
        Semidiscretization(_solid_block(), neighborhood_search="octree")


def test_state_layout_excludes_fixed_particles_and_boundaries():
    solid = _solid_block(n_fixed_particles=3)
    semi = Semidiscretization(solid, _floor())

    # 6 moving particles with 2 positions + 2 velocities each, nothing for the boundary
    assert semi.n_variables == 24
    assert semi.ranges_u == ((0, 24), (24, 24))

    u0 = semi.semidiscretize((0.0, 1.0))
    u = semi.wrap_array(u0, 0)

    assert u.shape == (4, 6)
    assert np.allclose(u[:2], solid.initial_coordinates[:, :6])
    assert np.allclose(u[2:], 0.0)
    assert semi.wrap_array(u0, 1).shape == (4, 0)


def test_rhs_copies_velocities_and_adds_body_acceleration():
    solid = _solid_block(acceleration=np.array([0.0, -9.81]))
    semi = Semidiscretization(solid)
    u_ode = semi.semidiscretize((0.0, 1.0))

    u = semi.wrap_array(u_ode, 0)
    u[2, :] = 0.5
    u[3, :] = np.arange(u.shape[1], dtype=np.float64)

    du = semi.wrap_array(semi.ode_function(0.0, u_ode), 0)

    assert np.allclose(du[:2], u[2:])
    # undeformed block: stresses vanish and only gravity remains
    assert np.allclose(du[2], 0.0, atol=1e-12)
    assert np.allclose(du[3], -9.81, atol=1e-12)


def test_rhs_overwrites_previous_contents():
    semi = Semidiscretization(_solid_block())
    u_ode = semi.semidiscretize((0.0, 1.0))

    du_ode = np.full_like(u_ode, 123.0)
    semi.rhs(du_ode, u_ode, 0.0)

    assert np.allclose(du_ode, 0.0, atol=1e-12)


def test_ode_function_matches_rhs():
    semi = Semidiscretization(_solid_block(), _floor())
    u_ode = semi.semidiscretize((0.0, 1.0))
    u_ode[0] += 0.01

    du_ode = np.zeros_like(u_ode)
    semi.rhs(du_ode, u_ode, 0.0)

    assert np.array_equal(semi.ode_function(0.0, u_ode), du_ode)


def test_floor_pushes_bottom_row_up():
    solid = _solid_block()
    semi = Semidiscretization(solid, _floor())
    u_ode = semi.semidiscretize((0.0, 1.0))

    du = semi.wrap_array(semi.ode_function(0.0, u_ode), 0)

    bottom = [0, 3, 6]
    top = [2, 5, 8]

    assert np.all(du[3, bottom] > 0.0)
    # symmetric floor below the middle column
    assert du[2, 3] == pytest.approx(0.0, abs=1e-12)
    # top row is out of reach of the floor
    assert np.allclose(du[2:, top], 0.0, atol=1e-12)


def _compressed_rhs(*boundary):
    solid = _solid_block()
    semi = Semidiscretization(solid, *boundary)
    u_ode = semi.semidiscretize((0.0, 1.0))

    # squeeze the block vertically
    semi.wrap_array(u_ode, 0)[1, :] *= 0.7

    return solid, semi.wrap_array(semi.ode_function(0.0, u_ode), 0)


def test_frozen_floor_pushes_compressed_bottom_row_up():
    solid, du_floor = _compressed_rhs(_floor(boundary_model=BoundaryModelFrozen(rest_density=1000.0)))
    _, du_free = _compressed_rhs()

    assert np.all(solid.pressure > 0.0)

    bottom = [0, 3, 6]
    top = [2, 5, 8]
    boundary_contribution = du_floor - du_free

    assert np.all(boundary_contribution[3, bottom] > 1e-6)
    assert boundary_contribution[2, 3] == pytest.approx(0.0, abs=1e-12)
    assert np.allclose(boundary_contribution[:, top], 0.0, atol=1e-14)


def test_boundary_receives_nothing_back():
    floor = _floor()
    coordinates_before = floor.initial_coordinates.copy()

    semi = Semidiscretization(_solid_block(), floor)
    u_ode = semi.semidiscretize((0.0, 1.0))
    semi.ode_function(0.0, u_ode)

    assert np.array_equal(floor.initial_coordinates, coordinates_before)
    assert floor.ismoving is False


def test_moving_boundary_rebuilds_neighborhood_search():
    def movement_function(coordinates, t):
        # starts far below the block and jumps up to touch it at t = 1
        if t >= 1.0 and coordinates[1, 0] < -1.0:
            coordinates[1, :] = -0.05
            return True
        return False

    floor = _floor(y=-5.0, movement_function=movement_function)
    semi = Semidiscretization(_solid_block(), floor)
    u_ode = semi.semidiscretize((0.0, 2.0))

    du = semi.wrap_array(semi.ode_function(0.0, u_ode), 0)
    assert np.allclose(du, 0.0, atol=1e-12)
    assert floor.ismoving is False

    du = semi.wrap_array(semi.ode_function(1.0, u_ode), 0)
    assert floor.ismoving is True
    assert np.all(du[3, [0, 3, 6]] > 0.0)

    # no further motion, the rebuilt search stays valid
    du_again = semi.wrap_array(semi.ode_function(1.5, u_ode), 0)
    assert floor.ismoving is False
    assert np.allclose(du_again, du)


def test_debug_logging(capsys):
    semi = Semidiscretization(_solid_block(), _floor(), debug=True)
    u_ode = semi.semidiscretize((0.0, 1.0))
    semi.ode_function(0.25, u_ode)

    out = capsys.readouterr().out
    assert "[RHS] t=2.500000e-01 moved=0/2" in out
