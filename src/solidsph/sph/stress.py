from __future__ import annotations

"""
Corrected first Piola-Kirchhoff stress of total Lagrangian SPH solids.

What this module does:
- Kernel gradient correction matrix L_a^{-1} (computed once, reference configuration).
- Deformation gradient F_a from current and reference positions.
- St. Venant-Kirchhoff second Piola-Kirchhoff stress S(F).
- Corrected stress P_a L_a^{-1} with P_a = F_a S_a, looked up per particle by the interaction kernel.
- Pressure as the hydrostatic part of the Cauchy stress, used by the frozen boundary model.

References:
- Georg C. Ganzenmüller. "An hourglass control algorithm for Lagrangian Smooth Particle Hydrodynamics".
  Computer Methods in Applied Mechanics and Engineering 286 (2015), pages 87-106.
- J. O'Connor, B. D. Rogers. "A fluid-structure interaction model for free-surface flows and flexible
  structures using smoothed particle hydrodynamics on a GPU".
  Journal of Fluids and Structures 104 (2021).
"""

import numpy as np

# pairs closer than this in the reference configuration are treated as coincident
MIN_DISTANCE = float(np.sqrt(np.finfo(np.float64).eps))


def lame_constants(young_modulus: float, poisson_ratio: float) -> tuple[float, float]:
    """
    Lamé parameters from Young's modulus E and Poisson's ratio nu:
        lambda = E nu / ((1 + nu)(1 - 2 nu)),  mu = E / (2 (1 + nu))
    """
    E = float(young_modulus)
    nu = float(poisson_ratio)
    if not -1.0 < nu < 0.5:
        raise ValueError("poisson_ratio must be in (-1, 0.5)")

    lame_lambda = E * nu / ((1.0 + nu) * (1.0 - 2.0 * nu))
    lame_mu = E / (2.0 * (1.0 + nu))
    return lame_lambda, lame_mu


def compute_correction_matrix(container, neighborhood_search) -> None:
    """
    Kernel gradient correction in the reference configuration:

        L_a = - sum_b V_b ∇W_ab (X_a - X_b)^T,    V_b = m_b / rho_b

    Stores inv(L_a) in container.correction_matrix[:, :, a] for every particle.
    With this correction the deformation gradient below is exact for affine motions.
    """
    kernel = container.smoothing_kernel
    h = container.smoothing_length
    support = kernel.compact_support(h)
    ndims = container.ndims

    for particle in container.eachparticle():
        particle_coords = container.initial_coords(particle)
        L = np.zeros((ndims, ndims), dtype=np.float64)

        for neighbor in neighborhood_search.eachneighbor(particle_coords):
            pos_diff = particle_coords - container.initial_coords(neighbor)
            distance = float(np.linalg.norm(pos_diff))

            if MIN_DISTANCE < distance <= support:
                grad_kernel = kernel.kernel_deriv(distance, h) * pos_diff / distance
                volume = container.mass[neighbor] / container.material_density[neighbor]
                L -= volume * np.outer(grad_kernel, pos_diff)

        container.correction_matrix[:, :, particle] = np.linalg.inv(L)


def deformation_gradient(particle: int, neighborhood_search, container) -> np.ndarray:
    """
    F_a = ( - sum_b V_b (x_a - x_b) ∇W_ab^T ) L_a^{-1}

    x are current positions, ∇W_ab is evaluated in the reference configuration.
    """
    kernel = container.smoothing_kernel
    h = container.smoothing_length
    support = kernel.compact_support(h)
    ndims = container.ndims

    particle_coords = container.initial_coords(particle)
    current_particle_coords = container.current_coords(particle)

    result = np.zeros((ndims, ndims), dtype=np.float64)

    for neighbor in neighborhood_search.eachneighbor(particle_coords):
        initial_pos_diff = particle_coords - container.initial_coords(neighbor)
        initial_distance = float(np.linalg.norm(initial_pos_diff))

        if MIN_DISTANCE < initial_distance <= support:
            grad_kernel = kernel.kernel_deriv(initial_distance, h) * initial_pos_diff / initial_distance
            pos_diff = current_particle_coords - container.current_coords(neighbor)
            volume = container.mass[neighbor] / container.material_density[neighbor]
            result -= volume * np.outer(pos_diff, grad_kernel)

    return result @ container.correction_matrix[:, :, particle]


def pk2_stress(deformation_grad: np.ndarray, lame_lambda: float, lame_mu: float) -> np.ndarray:
    """
    St. Venant-Kirchhoff second Piola-Kirchhoff stress:
        E = 1/2 (F^T F - I)
        S = lambda tr(E) I + 2 mu E
    """
    F = np.asarray(deformation_grad, dtype=np.float64)
    identity = np.eye(F.shape[0])

    green_strain = 0.5 * (F.T @ F - identity)
    return lame_lambda * np.trace(green_strain) * identity + 2.0 * lame_mu * green_strain


def compute_pk1_corrected(container, neighborhood_search) -> None:
    """Store F_a and the corrected first Piola-Kirchhoff stress P_a L_a^{-1}, P_a = F_a S_a, for every particle."""
    for particle in container.eachparticle():
        F = deformation_gradient(particle, neighborhood_search, container)
        pk1 = F @ pk2_stress(F, container.lame_lambda, container.lame_mu)

        container.deformation_grad[:, :, particle] = F
        container.pk1_corrected[:, :, particle] = pk1 @ container.correction_matrix[:, :, particle]


def get_pk1_corrected(particle: int, container) -> np.ndarray:
    return container.pk1_corrected[:, :, particle]


def compute_pressure(container) -> None:
    """
    Store the pressure p_a = -tr(sigma_a) / ndims for every particle, with the Cauchy stress
    sigma_a = P_a F_a^T / det(F_a). Positive under compression. Needs `deformation_grad`
    from compute_pk1_corrected.
    """
    ndims = container.ndims

    for particle in container.eachparticle():
        F = container.deformation_grad[:, :, particle]
        pk1 = F @ pk2_stress(F, container.lame_lambda, container.lame_mu)
        cauchy_stress = pk1 @ F.T / np.linalg.det(F)

        container.pressure[particle] = -np.trace(cauchy_stress) / ndims
