from __future__ import annotations

import itertools
from collections import defaultdict
from typing import Dict, List, Tuple

import numpy as np


class SpatialHashingSearch:
    """
    Uniform grid spatial hash for neighbor search.
    Deterministic cell iteration.

    The hash is built on the coordinates of the neighbor container, shape (ndims, N),
    and queried with the position of a particle of the (possibly other) particle container.
    """

    def __init__(self, search_radius: float, ndims: int):
        self.search_radius = float(search_radius)
        if self.search_radius <= 0.0:
            raise ValueError("search_radius must be > 0")

        self.ndims = int(ndims)
        self.cell_size = self.search_radius
        self.grid: Dict[Tuple[int, ...], List[int]] = defaultdict(list)
        self._coordinates = np.zeros((self.ndims, 0), dtype=np.float64)

        # 3^ndims block of cells around the query cell
        self._offsets = list(itertools.product((-1, 0, 1), repeat=self.ndims))

    def _cell_index(self, position: np.ndarray) -> Tuple[int, ...]:
        return tuple(int(c) for c in np.floor(position / self.cell_size))

    def initialize(self, coordinates: np.ndarray) -> None:
        coordinates = np.asarray(coordinates, dtype=np.float64)
        if coordinates.ndim != 2 or coordinates.shape[0] != self.ndims:
            raise ValueError(f"coordinates shape {coordinates.shape} != (ndims, N) with ndims={self.ndims}")

        # keep a reference, not a copy: moving boundaries update their coordinates in place
        self._coordinates = coordinates
        self.grid.clear()

        for i in range(coordinates.shape[1]):
            self.grid[self._cell_index(coordinates[:, i])].append(i)

    def update(self, coordinates: np.ndarray) -> None:
        self.initialize(coordinates)

    def eachneighbor(self, coords: np.ndarray) -> List[int]:
        coords = np.asarray(coords, dtype=np.float64)
        base_cell = self._cell_index(coords)

        neighbors: List[int] = []

        for offset in self._offsets:
            cell = tuple(b + o for b, o in zip(base_cell, offset))
            for j in self.grid.get(cell, []):
                if np.linalg.norm(self._coordinates[:, j] - coords) <= self.search_radius:
                    neighbors.append(j)

        return neighbors


class TrivialNeighborhoodSearch:
    """Every particle of the neighbor container is a candidate neighbor."""

    def __init__(self, n_particles: int):
        self.n_particles = int(n_particles)

    def initialize(self, coordinates: np.ndarray) -> None:
        self.n_particles = int(np.asarray(coordinates).shape[1])

    def update(self, coordinates: np.ndarray) -> None:
        self.initialize(coordinates)

    def eachneighbor(self, coords: np.ndarray) -> range:
        return range(self.n_particles)
