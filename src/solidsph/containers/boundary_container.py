from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

import numpy as np


@dataclass(slots=True, eq=False)
class BoundaryParticleContainer:
    """
    Boundary particles with a boundary impact model.

    Boundary particles are never integrated (n_moving_particles == 0). They exert the
    force law of `boundary_model` on solid particles but receive nothing back.

    `movement_function(coordinates, t) -> bool` prescribes motion: it updates the
    (ndims, N) coordinates in place and returns whether the particles moved in this
    step, which decides whether neighborhood searches on these particles are rebuilt.

    Example, moving up along y until t = 0.1:

        def movement_function(coordinates, t):
            if t < 0.1:
                coordinates[1, :] += (0.5 * t ** 2 + t) - coordinates[1, 0]
                return True
            return False
    """

    initial_coordinates: np.ndarray     # (ndims, N)
    mass: np.ndarray                    # (N,)
    boundary_model: object
    movement_function: Callable[[np.ndarray, float], bool] | None = None

    ismoving: bool = field(init=False, default=False)

    def __post_init__(self) -> None:
        self.initial_coordinates = np.asarray(self.initial_coordinates, dtype=np.float64)
        self.mass = np.asarray(self.mass, dtype=np.float64)
        self.validate()

    @property
    def ndims(self) -> int:
        return int(self.initial_coordinates.shape[0])

    @property
    def n_particles(self) -> int:
        return int(self.initial_coordinates.shape[1])

    @property
    def n_moving_particles(self) -> int:
        # No particle positions are advanced for boundary containers
        return 0

    def each_moving_particle(self) -> range:
        return range(0)

    def current_coords(self, particle: int) -> np.ndarray:
        return self.initial_coordinates[:, particle]

    def validate(self) -> None:
        if self.initial_coordinates.ndim != 2:
            raise ValueError("initial_coordinates must be (ndims, N)")
        if self.mass.shape != (self.n_particles,):
            raise ValueError(f"mass shape {self.mass.shape} != ({self.n_particles},)")

    def initialize(self, neighborhood_search) -> None:
        # Nothing to initialize for this container
        return None

    def update(self, u: np.ndarray, neighborhood_search, t: float) -> bool:
        self.ismoving = move_boundary_particles(self.movement_function, self.initial_coordinates, t)
        return self.ismoving

    def write_variables(self, u0: np.ndarray) -> np.ndarray:
        return u0


def move_boundary_particles(movement_function, coordinates: np.ndarray, t: float) -> bool:
    if movement_function is None:
        return False
    return bool(movement_function(coordinates, t))
