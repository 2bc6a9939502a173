from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from solidsph.core.semidiscretization import Semidiscretization


@dataclass(frozen=True)
class SimConfig:
    """
    Minimal time stepping configuration for driving a semidiscretization.

    The engine itself only provides du/dt; this driver exists so that scenes can be
    run from the command line without an external integrator.
    """

    dt_fixed: float
    steps: int
    log_every: int = 10
    t_start: float = 0.0

    def __post_init__(self) -> None:
        if self.dt_fixed <= 0.0:
            raise ValueError("dt_fixed must be > 0")
        if self.steps < 0:
            raise ValueError("steps must be >= 0")


def step_symplectic_euler(
    semi: Semidiscretization,
    u_ode: np.ndarray,
    du_ode: np.ndarray,
    t: float,
    dt: float,
) -> float:
    """
    One symplectic Euler step on the moving particles of all containers:

        v(t+dt) = v(t) + dt * a(t)
        x(t+dt) = x(t) + dt * v(t+dt)

    du_ode receives the right-hand side evaluated at t. Returns t + dt.
    """
    ndims = semi.ndims
    semi.rhs(du_ode, u_ode, t)

    for i in range(len(semi.particle_containers)):
        u = semi.wrap_array(u_ode, i)
        du = semi.wrap_array(du_ode, i)

        u[ndims:2 * ndims, :] += dt * du[ndims:2 * ndims, :]
        u[:ndims, :] += dt * u[ndims:2 * ndims, :]

    return float(t) + float(dt)
