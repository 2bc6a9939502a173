from __future__ import annotations

"""
Observability: per-evaluation diagnostics ("vital signs") of the right-hand side.

What this module does:
- Defines a structured `RhsDiagnostics` snapshot for one evaluation.
- Computes statistics for accelerations and velocities of moving particles, and
  counts non-finite derivative entries.

How it works:
- Statistics cover moving particles of all containers; boundary particles are only counted.
- Non-finite entries are the only failure signal of the engine: division by zero or a
  particle sitting on the Monaghan-Kajtar singularity shows up here, not as an exception.

Constraints:
- This module is strictly read-only: it must not modify the state or the containers.
"""

from dataclasses import dataclass

import numpy as np

from solidsph.containers.boundary_container import BoundaryParticleContainer
from solidsph.core.semidiscretization import Semidiscretization


@dataclass(frozen=True)
class RhsDiagnostics:
    """
    Structured diagnostics for one right-hand side evaluation.

    Min/mean/max values are computed on moving particles only.
    """

    step: int
    t: float
    n_moving: int
    n_boundary: int

    v_max: float

    a_min: float
    a_mean: float
    a_max: float

    n_nonfinite: int

    @property
    def finite(self) -> bool:
        return self.n_nonfinite == 0


def compute_rhs_diagnostics(
    step: int,
    t: float,
    semi: Semidiscretization,
    du_ode: np.ndarray,
) -> RhsDiagnostics:
    """
    Compute diagnostics from a derivative vector without mutating anything.

    Args:
        step: 1-based step index for logging.
        t: time at which du_ode was evaluated.
        semi: semidiscretization that produced du_ode.
        du_ode: flat derivative vector (velocities and accelerations).

    Returns:
        RhsDiagnostics with speed and acceleration-magnitude statistics.
    """
    ndims = semi.ndims

    n_boundary = sum(
        c.n_particles for c in semi.particle_containers if isinstance(c, BoundaryParticleContainer)
    )
    n_nonfinite = int(np.count_nonzero(~np.isfinite(du_ode)))

    speeds = []
    accelerations = []
    for i in range(len(semi.particle_containers)):
        du = semi.wrap_array(du_ode, i)
        if du.shape[1] == 0:
            continue
        speeds.append(np.linalg.norm(du[:ndims, :], axis=0))
        accelerations.append(np.linalg.norm(du[ndims:2 * ndims, :], axis=0))

    if not speeds:
        # Degenerate scene: avoid reductions on empty arrays.
        return RhsDiagnostics(
            step=int(step),
            t=float(t),
            n_moving=0,
            n_boundary=n_boundary,
            v_max=0.0,
            a_min=0.0,
            a_mean=0.0,
            a_max=0.0,
            n_nonfinite=n_nonfinite,
        )

    speed = np.concatenate(speeds)
    acc = np.concatenate(accelerations)

    return RhsDiagnostics(
        step=int(step),
        t=float(t),
        n_moving=int(acc.size),
        n_boundary=n_boundary,
        v_max=float(np.max(speed)),
        a_min=float(np.min(acc)),
        a_mean=float(np.mean(acc)),
        a_max=float(np.max(acc)),
        n_nonfinite=n_nonfinite,
    )
