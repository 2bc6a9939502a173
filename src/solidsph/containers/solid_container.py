from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from solidsph.sph.stress import compute_correction_matrix, compute_pk1_corrected, compute_pressure, lame_constants


@dataclass(slots=True, eq=False)
class SolidParticleContainer:
    """
    Particles of one elastic solid in a total Lagrangian SPH discretization.

    Layout:
    - coordinates and velocities are (ndims, N), tensors are (ndims, ndims, N)
    - the last n_fixed_particles particles are clamped: they take part in every
      neighbor sum but are never integrated, so only the first N - n_fixed_particles
      columns appear in the state vector u and the derivative du

    Stress is derived from the deformation gradient with a St. Venant-Kirchhoff law,
    see solidsph.sph.stress.
    """

    initial_coordinates: np.ndarray     # (ndims, N)
    initial_velocity: np.ndarray        # (ndims, N)
    mass: np.ndarray                    # (N,)
    material_density: np.ndarray        # (N,)

    smoothing_kernel: object
    smoothing_length: float

    young_modulus: float
    poisson_ratio: float

    n_fixed_particles: int = 0

    # constant body acceleration (e.g., gravity), shape (ndims,)
    acceleration: np.ndarray | None = None

    # optional stabilization hook, None disables it
    penalty_force: object | None = None

    current_coordinates: np.ndarray = field(init=False)
    correction_matrix: np.ndarray = field(init=False)
    deformation_grad: np.ndarray = field(init=False)
    pk1_corrected: np.ndarray = field(init=False)
    pressure: np.ndarray = field(init=False)  # hydrostatic part of the Cauchy stress
    lame_lambda: float = field(init=False)
    lame_mu: float = field(init=False)

    def __post_init__(self) -> None:
        self.initial_coordinates = np.asarray(self.initial_coordinates, dtype=np.float64)
        self.initial_velocity = np.asarray(self.initial_velocity, dtype=np.float64)
        self.mass = np.asarray(self.mass, dtype=np.float64)
        self.material_density = np.asarray(self.material_density, dtype=np.float64)
        self.smoothing_length = float(self.smoothing_length)
        self.n_fixed_particles = int(self.n_fixed_particles)

        ndims, n = self.initial_coordinates.shape

        if self.acceleration is None:
            self.acceleration = np.zeros((ndims,), dtype=np.float64)
        else:
            self.acceleration = np.asarray(self.acceleration, dtype=np.float64)

        self.current_coordinates = self.initial_coordinates.copy()
        self.correction_matrix = np.zeros((ndims, ndims, n), dtype=np.float64)
        self.deformation_grad = np.zeros((ndims, ndims, n), dtype=np.float64)
        self.pk1_corrected = np.zeros((ndims, ndims, n), dtype=np.float64)
        self.pressure = np.zeros((n,), dtype=np.float64)

        self.lame_lambda, self.lame_mu = lame_constants(self.young_modulus, self.poisson_ratio)

        self.validate()

    @property
    def ndims(self) -> int:
        return int(self.initial_coordinates.shape[0])

    @property
    def n_particles(self) -> int:
        return int(self.initial_coordinates.shape[1])

    @property
    def n_moving_particles(self) -> int:
        return self.n_particles - self.n_fixed_particles

    def eachparticle(self) -> range:
        return range(self.n_particles)

    def each_moving_particle(self) -> range:
        return range(self.n_moving_particles)

    def initial_coords(self, particle: int) -> np.ndarray:
        return self.initial_coordinates[:, particle]

    def current_coords(self, particle: int) -> np.ndarray:
        return self.current_coordinates[:, particle]

    def validate(self) -> None:
        if self.initial_coordinates.ndim != 2:
            raise ValueError("initial_coordinates must be (ndims, N)")

        ndims, n = self.ndims, self.n_particles
        if ndims not in (1, 2, 3):
            raise ValueError("ndims must be 1, 2 or 3")

        for name, arr, shape in [
            ("initial_velocity", self.initial_velocity, (ndims, n)),
            ("mass", self.mass, (n,)),
            ("material_density", self.material_density, (n,)),
            ("acceleration", self.acceleration, (ndims,)),
        ]:
            if arr.shape != shape:
                raise ValueError(f"{name} shape {arr.shape} != {shape}")

        if not 0 <= self.n_fixed_particles <= n:
            raise ValueError(f"n_fixed_particles must be in [0, {n}]")

        if self.smoothing_length <= 0.0:
            raise ValueError("smoothing_length must be > 0")

        if np.any(self.material_density <= 0.0):
            raise ValueError("material_density must be > 0")

        if not np.isfinite(self.initial_coordinates).all():
            raise ValueError("initial_coordinates contains NaN/Inf")

    def initialize(self, neighborhood_search) -> None:
        """Compute the correction matrices. `neighborhood_search` is the self search on initial coordinates."""
        compute_correction_matrix(self, neighborhood_search)

    def update(self, u: np.ndarray, neighborhood_search, t: float) -> bool:
        """
        Copy the current positions of moving particles from u and recompute the
        deformation gradients, corrected stresses and pressures of all particles.

        Returns False: the self search works on initial coordinates and never needs a refresh.
        """
        ndims = self.ndims
        self.current_coordinates[:, :self.n_moving_particles] = u[:ndims, :]

        compute_pk1_corrected(self, neighborhood_search)
        compute_pressure(self)
        return False

    def write_variables(self, u0: np.ndarray) -> np.ndarray:
        ndims = self.ndims
        n_moving = self.n_moving_particles

        u0[:ndims, :] = self.initial_coordinates[:, :n_moving]
        u0[ndims:2 * ndims, :] = self.initial_velocity[:, :n_moving]
        return u0

    def add_acceleration(self, du: np.ndarray, particle: int) -> np.ndarray:
        ndims = self.ndims
        du[ndims:2 * ndims, particle] += self.acceleration
        return du
