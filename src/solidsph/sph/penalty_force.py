from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class PenaltyForceGanzenmueller:
    """
    Hourglass control penalty force (Ganzenmüller, 2015).

    The error vector between the position predicted by the particle deformation gradients
    and the actual current position of a pair is penalized along the pair direction:

        eps_ab   = (F_a + F_b) X_ab - 2 x_ab
        delta_ab = eps_ab . x_ab / ||x_ab||
        f_ab     = alpha/2 * V_a V_b W(||X_ab||) / ||X_ab||^2 * E * delta_ab * x_ab / ||x_ab||

    X_ab is the reference and x_ab the current pair difference. f_ab vanishes for affine motions.

    Reference:
    - Georg C. Ganzenmüller. "An hourglass control algorithm for Lagrangian Smooth Particle Hydrodynamics".
      Computer Methods in Applied Mechanics and Engineering 286 (2015), pages 87-106.
    """

    alpha: float = 0.1

    def __post_init__(self) -> None:
        if self.alpha < 0.0:
            raise ValueError("alpha must be >= 0")


def calc_penalty_force(
    du: np.ndarray,
    particle: int,
    neighbor: int,
    initial_pos_diff: np.ndarray,
    initial_distance: float,
    particle_container,
    neighbor_container,
    penalty_force,
) -> np.ndarray:
    """Accumulate the penalty acceleration f_ab / m_a into the acceleration rows of `particle`."""
    if penalty_force is None:
        return du

    ndims = particle_container.ndims
    kernel = particle_container.smoothing_kernel
    h = particle_container.smoothing_length

    current_pos_diff = particle_container.current_coords(particle) - neighbor_container.current_coords(neighbor)
    current_distance = float(np.linalg.norm(current_pos_diff))

    volume_particle = particle_container.mass[particle] / particle_container.material_density[particle]
    volume_neighbor = neighbor_container.mass[neighbor] / neighbor_container.material_density[neighbor]

    kernel_weight = kernel.kernel(initial_distance, h)

    J_a = particle_container.deformation_grad[:, :, particle]
    J_b = neighbor_container.deformation_grad[:, :, neighbor]

    # W is radially symmetric, so W_ab == W_ba and one weight serves both halves of the sum
    eps_sum = (J_a + J_b) @ initial_pos_diff - 2.0 * current_pos_diff
    delta_sum = float(np.dot(eps_sum, current_pos_diff)) / current_distance

    f = (
        0.5 * penalty_force.alpha * volume_particle * volume_neighbor
        * kernel_weight / initial_distance ** 2
        * particle_container.young_modulus * delta_sum
        * current_pos_diff / current_distance
    )

    du[ndims:2 * ndims, particle] += f / particle_container.mass[particle]
    return du
