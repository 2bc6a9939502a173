from __future__ import annotations

"""
Pairwise interactions of SPH solids: stress divergence between solid particles and
boundary impact forces from boundary particles.

Buffer convention (per container):
- du has shape (2*ndims, n_moving_particles)
- rows [0, ndims) hold velocities (written by the RHS assembler)
- rows [ndims, 2*ndims) hold accelerations, accumulated here

A driver call only ever writes the acceleration rows of the particle-side container's
moving particles. The reciprocal contribution of a pair comes from a second call with
swapped roles, which also keeps every column owned by exactly one loop iteration.

References:
- Georg C. Ganzenmüller. "An hourglass control algorithm for Lagrangian Smooth Particle Hydrodynamics".
  Computer Methods in Applied Mechanics and Engineering 286 (2015), pages 87-106, Eq. (12)
  (momentum equation with corrected first Piola-Kirchhoff stress).
"""

import numpy as np

from solidsph.containers.boundary_container import BoundaryParticleContainer
from solidsph.containers.solid_container import SolidParticleContainer
from solidsph.sph.boundary_models import boundary_particle_impact
from solidsph.sph.penalty_force import calc_penalty_force
from solidsph.sph.stress import MIN_DISTANCE, get_pk1_corrected


def calc_dv(
    du: np.ndarray,
    particle: int,
    neighbor: int,
    initial_pos_diff: np.ndarray,
    initial_distance: float,
    particle_container,
    neighbor_container,
    stress_provider=get_pk1_corrected,
) -> np.ndarray:
    """
    Stress divergence contribution of `neighbor` to the acceleration of `particle`:

        dv_a = m_b * ( P~_a / rho_a^2 + P~_b / rho_b^2 ) ∇W_ab

    with the corrected stress P~ from `stress_provider(particle, container)` and
    ∇W_ab = W'(||X_ab||) X_ab / ||X_ab||, X_ab = `initial_pos_diff`.

    `initial_distance` must be > 0. Only du[ndims:2*ndims, particle] is written.
    """
    ndims = particle_container.ndims
    kernel = neighbor_container.smoothing_kernel
    h = neighbor_container.smoothing_length

    density_particle = particle_container.material_density[particle]
    density_neighbor = neighbor_container.material_density[neighbor]

    grad_kernel = kernel.kernel_deriv(initial_distance, h) * initial_pos_diff / initial_distance

    m_b = neighbor_container.mass[neighbor]

    dv = m_b * (
        stress_provider(particle, particle_container) / density_particle ** 2
        + stress_provider(neighbor, neighbor_container) / density_neighbor ** 2
    ) @ grad_kernel

    du[ndims:2 * ndims, particle] += dv
    return du


def interact_solid_solid(
    du: np.ndarray,
    neighborhood_search,
    particle_container,
    neighbor_container,
    stress_provider=get_pk1_corrected,
) -> np.ndarray:
    """
    Accumulate the stress divergence of all solid neighbors into the moving particles of
    `particle_container`.

    Pair geometry is taken in the reference configuration (total Lagrangian formulation);
    `neighborhood_search` is queried with reference positions. Self pairs and coincident
    particles (distance <= sqrt(eps)) contribute nothing.
    """
    kernel = neighbor_container.smoothing_kernel
    support = kernel.compact_support(neighbor_container.smoothing_length)
    penalty_force = particle_container.penalty_force

    for particle in particle_container.each_moving_particle():
        particle_coords = particle_container.initial_coordinates[:, particle]

        for neighbor in neighborhood_search.eachneighbor(particle_coords):
            if neighbor_container is particle_container and neighbor == particle:
                continue

            initial_pos_diff = particle_coords - neighbor_container.initial_coordinates[:, neighbor]
            initial_distance = float(np.linalg.norm(initial_pos_diff))

            if MIN_DISTANCE < initial_distance <= support:
                calc_dv(du, particle, neighbor, initial_pos_diff, initial_distance,
                        particle_container, neighbor_container, stress_provider=stress_provider)

                calc_penalty_force(du, particle, neighbor, initial_pos_diff, initial_distance,
                                   particle_container, neighbor_container, penalty_force)

    return du


def interact_solid_boundary(
    du: np.ndarray,
    neighborhood_search,
    particle_container,
    boundary_container,
) -> np.ndarray:
    """
    Accumulate boundary impact forces of boundary particles on the moving solid particles.

    Pair geometry is taken in the current configuration. The boundary container's buffer
    is never touched (boundary particles are not integrated).
    """
    ndims = particle_container.ndims
    support = particle_container.smoothing_kernel.compact_support(particle_container.smoothing_length)
    boundary_model = boundary_container.boundary_model

    for particle in particle_container.each_moving_particle():
        particle_coords = particle_container.current_coords(particle)
        density_a = particle_container.material_density[particle]

        for neighbor in neighborhood_search.eachneighbor(particle_coords):
            pos_diff = particle_coords - boundary_container.current_coords(neighbor)
            distance = float(np.linalg.norm(pos_diff))

            if MIN_DISTANCE < distance <= support:
                m_b = boundary_container.mass[neighbor]
                dv = boundary_particle_impact(particle, particle_container, pos_diff, distance,
                                              density_a, m_b, boundary_model)

                du[ndims:2 * ndims, particle] += dv

    return du


def interact(du: np.ndarray, neighborhood_search, particle_container, neighbor_container) -> np.ndarray:
    """
    Dispatch the interaction of one ordered container pair.

    Boundary containers on the particle side are a no-op: no interaction towards the
    boundary particles.
    """
    if isinstance(particle_container, BoundaryParticleContainer):
        return du

    if isinstance(particle_container, SolidParticleContainer):
        if isinstance(neighbor_container, SolidParticleContainer):
            return interact_solid_solid(du, neighborhood_search, particle_container, neighbor_container)
        if isinstance(neighbor_container, BoundaryParticleContainer):
            return interact_solid_boundary(du, neighborhood_search, particle_container, neighbor_container)

    raise TypeError(
        f"No interaction defined for {type(particle_container).__name__} "
        f"with {type(neighbor_container).__name__}"
    )
