from __future__ import annotations

"""
Boundary impact models: force laws of boundary particles acting on solid particles.

Every model is an immutable configuration record attached to a boundary container.
`boundary_particle_impact` is the single dispatch point over the models; a new model
needs its record plus one branch there.

References:
- Joseph J. Monaghan, Jules B. Kajtar. "SPH particle boundary forces for arbitrary boundaries".
  Computer Physics Communications 180.10 (2009), pages 1811-1820.
- Alireza Valizadeh, Joseph J. Monaghan. "A study of solid wall models for weakly compressible SPH".
  Journal of Computational Physics 300 (2015), pages 5-19.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class BoundaryModelMonaghanKajtar:
    """
    Repulsive boundary force (Monaghan, Kajtar, 2009, Eq. (3.1)):

        f_ab = K / beta^(ndims-1) * r_ab / (||r_ab|| (||r_ab|| - d)) * Phi(||r_ab||, h)

    - K scales the force; for static tanks g*D (gravity times fluid depth) is used in the paper.
    - beta is the ratio of solid/fluid particle spacing to boundary particle spacing
      (boundary spacing 0.1 next to particle spacing 0.3 means beta = 3).
    - d is the boundary particle spacing. The force is singular at ||r_ab|| == d;
      configurations must keep particles farther away than that.
    """

    K: float
    beta: float
    boundary_particle_spacing: float

    def __post_init__(self) -> None:
        if self.beta < 1.0:
            raise ValueError("beta must be >= 1")
        if self.boundary_particle_spacing <= 0.0:
            raise ValueError("boundary_particle_spacing must be > 0")


@dataclass(frozen=True)
class BoundaryModelFrozen:
    """Pressure-based boundary force with the boundary particle pressure frozen at zero."""

    rest_density: float

    def __post_init__(self) -> None:
        if self.rest_density <= 0.0:
            raise ValueError("rest_density must be > 0")


def boundary_kernel(r: float, h: float) -> float:
    """
    1D Wendland C4 kernel normalized to 1.77 for q = 0 (Monaghan, Kajtar, 2009, Section 4):

        Phi(r,h) = 1.77/32 * (1 + 5/2 q + 2 q^2) * (2 - q)^5    for q = r/h < 2
        Phi(r,h) = 0                                            otherwise
    """
    q = float(r) / float(h)

    # TODO: size the solid->boundary neighborhood search from this 2h cutoff instead of the solid kernel support
    if q >= 2.0:
        return 0.0

    return 1.77 / 32.0 * (1.0 + 2.5 * q + 2.0 * q * q) * (2.0 - q) ** 5


def boundary_particle_impact(
    particle: int,
    particle_container,
    pos_diff: np.ndarray,
    distance: float,
    density_a: float,
    m_b: float,
    boundary_model,
) -> np.ndarray:
    """
    Force contribution of one boundary particle b on particle a = `particle`.

    Args:
        particle: index of the particle receiving the force.
        particle_container: container of `particle` (provides smoothing length, kernel, pressure).
        pos_diff: r_a - r_b in the current configuration.
        distance: ||pos_diff||, strictly positive.
        density_a: density of particle a.
        m_b: mass of boundary particle b.
        boundary_model: model record of the boundary container.

    Returns:
        Vector of length ndims added to the acceleration of `particle`.
    """
    if isinstance(boundary_model, BoundaryModelMonaghanKajtar):
        ndims = particle_container.ndims
        h = particle_container.smoothing_length

        return (
            boundary_model.K / boundary_model.beta ** (ndims - 1)
            * pos_diff / (distance * (distance - boundary_model.boundary_particle_spacing))
            * boundary_kernel(distance, h)
        )

    if isinstance(boundary_model, BoundaryModelFrozen):
        h = particle_container.smoothing_length
        grad_kernel = particle_container.smoothing_kernel.kernel_deriv(distance, h) * pos_diff / distance

        # boundary particles carry no pressure field of their own
        pressure_b = 0.0
        return -m_b * (
            particle_container.pressure[particle] / density_a ** 2
            + pressure_b / boundary_model.rest_density ** 2
        ) * grad_kernel

    raise TypeError(f"Unknown boundary model: {type(boundary_model).__name__}")
