from __future__ import annotations

from typing import Tuple

import numpy as np

from solidsph.containers.boundary_container import BoundaryParticleContainer
from solidsph.neighbors.spatial_hash import SpatialHashingSearch, TrivialNeighborhoodSearch
from solidsph.sph.interactions import interact


def _create_neighborhood_search(particle_container, neighbor_container, search_type: str):
    """
    One search per ordered container pair: sized by the particle-side kernel and built
    on the neighbor-side coordinates. Boundary containers on the particle side never
    query a search.
    """
    if isinstance(particle_container, BoundaryParticleContainer):
        return None

    if search_type == "spatial_hash":
        radius = particle_container.smoothing_kernel.compact_support(particle_container.smoothing_length)
        return SpatialHashingSearch(search_radius=radius, ndims=particle_container.ndims)

    if search_type == "trivial":
        return TrivialNeighborhoodSearch(n_particles=neighbor_container.n_particles)

    raise ValueError(f"Unknown neighborhood search type: {search_type!r}")


class Semidiscretization:
    """
    Spatial semidiscretization of a set of particle containers: assembles the
    right-hand side du/dt = f(u, t) consumed by an external time integrator.

    State layout:
    - u_ode is flat; container i owns a contiguous range reshaped to (2*ndims, n_moving_i)
    - rows [0, ndims) are positions, rows [ndims, 2*ndims) velocities
    - du_ode has the same layout with velocities and accelerations
    """

    def __init__(self, *particle_containers, neighborhood_search: str = "spatial_hash", debug: bool = False):
        if not particle_containers:
            raise ValueError("at least one particle container is required")

        ndims = particle_containers[0].ndims
        for container in particle_containers[1:]:
            if container.ndims != ndims:
                raise ValueError(
                    f"all containers must have the same ndims, got {container.ndims} and {ndims}"
                )

        self.particle_containers = tuple(particle_containers)
        self.ndims = int(ndims)
        self.debug = bool(debug)

        ranges = []
        offset = 0
        for container in self.particle_containers:
            size = 2 * self.ndims * container.n_moving_particles
            ranges.append((offset, offset + size))
            offset += size
        self.ranges_u: Tuple[Tuple[int, int], ...] = tuple(ranges)
        self.n_variables = offset

        self.neighborhood_searches = [
            [
                _create_neighborhood_search(particle_container, neighbor_container, neighborhood_search)
                for neighbor_container in self.particle_containers
            ]
            for particle_container in self.particle_containers
        ]

    def wrap_array(self, u_ode: np.ndarray, container_index: int) -> np.ndarray:
        """(2*ndims, n_moving) view of the block of container `container_index` in a flat vector."""
        start, stop = self.ranges_u[container_index]
        n_moving = self.particle_containers[container_index].n_moving_particles
        return u_ode[start:stop].reshape((2 * self.ndims, n_moving))

    def semidiscretize(self, tspan: Tuple[float, float]) -> np.ndarray:
        """Initialize searches and containers and return the initial state vector u0."""
        t0, t1 = float(tspan[0]), float(tspan[1])
        if t1 < t0:
            raise ValueError("tspan must be increasing")

        for i, searches in enumerate(self.neighborhood_searches):
            for j, search in enumerate(searches):
                if search is not None:
                    # solids are searched in the reference configuration; boundaries keep their
                    # current positions in initial_coordinates (moved in place)
                    search.initialize(self.particle_containers[j].initial_coordinates)

        for i, container in enumerate(self.particle_containers):
            container.initialize(self.neighborhood_searches[i][i])

        u0_ode = np.zeros((self.n_variables,), dtype=np.float64)
        for i, container in enumerate(self.particle_containers):
            container.write_variables(self.wrap_array(u0_ode, i))

        return u0_ode

    def rhs(self, du_ode: np.ndarray, u_ode: np.ndarray, t: float) -> np.ndarray:
        """
        Evaluate the right-hand side into du_ode (overwritten):

        1. update containers (positions, stresses, prescribed boundary motion)
        2. rebuild the searches on boundaries that moved
        3. copy velocities and add body accelerations of moving particles
        4. interact every ordered container pair
        """
        ndims = self.ndims
        containers = self.particle_containers

        moved = []
        for i, container in enumerate(containers):
            moved.append(container.update(self.wrap_array(u_ode, i), self.neighborhood_searches[i][i], t))

        for j, container in enumerate(containers):
            if not moved[j]:
                continue
            for i in range(len(containers)):
                search = self.neighborhood_searches[i][j]
                if search is not None:
                    search.update(container.initial_coordinates)

        du_ode[:] = 0.0

        for i, container in enumerate(containers):
            u = self.wrap_array(u_ode, i)
            du = self.wrap_array(du_ode, i)

            for particle in container.each_moving_particle():
                du[:ndims, particle] = u[ndims:2 * ndims, particle]
                container.add_acceleration(du, particle)

        for i, particle_container in enumerate(containers):
            du = self.wrap_array(du_ode, i)
            for j, neighbor_container in enumerate(containers):
                interact(du, self.neighborhood_searches[i][j], particle_container, neighbor_container)

        if self.debug:
            print(f"[RHS] t={float(t):.6e} moved={sum(bool(m) for m in moved)}/{len(containers)}")

        return du_ode

    def ode_function(self, t: float, u_ode: np.ndarray) -> np.ndarray:
        """Allocating variant with (t, y) argument order, as expected by common ODE integrators."""
        du_ode = np.zeros_like(u_ode)
        return self.rhs(du_ode, u_ode, t)
