from __future__ import annotations

import numpy as np

from solidsph.containers.boundary_container import BoundaryParticleContainer
from solidsph.containers.solid_container import SolidParticleContainer
from solidsph.core.semidiscretization import Semidiscretization
from solidsph.sph.boundary_models import BoundaryModelFrozen, BoundaryModelMonaghanKajtar
from solidsph.sph.kernels import SchoenbergCubicSplineKernel
from solidsph.sph.penalty_force import PenaltyForceGanzenmueller


def grid_points(pmin: np.ndarray, pmax: np.ndarray, spacing: float) -> np.ndarray:
    """Regular grid in [pmin, pmax] (inclusive-ish), returned as (ndims, N)."""
    if spacing <= 0:
        raise ValueError("spacing must be > 0")

    # +1e-12 to avoid floating issues at the boundary
    axes = [np.arange(lo, hi + 1e-12, spacing, dtype=np.float64) for lo, hi in zip(pmin, pmax)]
    mesh = np.meshgrid(*axes, indexing="ij")
    return np.stack([m.ravel() for m in mesh], axis=0)


def build_boundary_model(model_cfg: dict):
    model_type = str(model_cfg["type"]).lower()

    if model_type == "monaghan_kajtar":
        return BoundaryModelMonaghanKajtar(
            K=float(model_cfg["K"]),
            beta=float(model_cfg.get("beta", 1.0)),
            boundary_particle_spacing=float(model_cfg["boundary_particle_spacing"]),
        )

    if model_type == "frozen":
        return BoundaryModelFrozen(rest_density=float(model_cfg["rest_density"]))

    raise ValueError(f"unsupported boundary model type: {model_type!r}")


def build_solid_block(scene: dict) -> SolidParticleContainer:
    """
    Solid block on a regular grid. The first `fixed_layers` particle layers at the lower
    end of the first axis are clamped (stored last, see SolidParticleContainer).
    """
    dim = int(scene["meta"]["dimensions"])
    if dim not in (2, 3):
        raise ValueError("dimensions must be 2 or 3")

    solid = scene["solid"]
    if solid.get("type", "block") != "block":
        raise ValueError(f"unsupported solid type: {solid['type']}")

    pmin = np.array(solid["min"], dtype=np.float64)
    pmax = np.array(solid["max"], dtype=np.float64)
    if pmin.shape != (dim,) or pmax.shape != (dim,):
        raise ValueError("solid.min/max must match dimensions")

    spacing = float(solid["spacing"])
    coordinates = grid_points(pmin, pmax, spacing)

    fixed_layers = int(solid.get("fixed_layers", 0))
    is_fixed = coordinates[0] < pmin[0] + (fixed_layers - 0.5) * spacing
    order = np.concatenate([np.where(~is_fixed)[0], np.where(is_fixed)[0]])
    coordinates = coordinates[:, order]

    n = coordinates.shape[1]

    v0 = np.array(solid.get("initial_velocity", [0.0] * dim), dtype=np.float64)
    velocity = np.repeat(v0[:, None], n, axis=1)

    density = float(solid["density"])
    mass = np.full((n,), density * spacing ** dim, dtype=np.float64)
    material_density = np.full((n,), density, dtype=np.float64)

    gravity = scene.get("forces", {}).get("gravity", [0.0] * dim)
    acceleration = np.array(gravity[:dim], dtype=np.float64)

    penalty_cfg = solid.get("penalty_force")
    penalty_force = PenaltyForceGanzenmueller(alpha=float(penalty_cfg["alpha"])) if penalty_cfg else None

    return SolidParticleContainer(
        initial_coordinates=coordinates,
        initial_velocity=velocity,
        mass=mass,
        material_density=material_density,
        smoothing_kernel=SchoenbergCubicSplineKernel(ndims=dim),
        smoothing_length=float(solid.get("smoothing_length", 1.2 * spacing)),
        young_modulus=float(solid["young_modulus"]),
        poisson_ratio=float(solid["poisson_ratio"]),
        n_fixed_particles=int(np.count_nonzero(is_fixed)),
        acceleration=acceleration,
        penalty_force=penalty_force,
    )


def build_boundary_block(scene: dict) -> BoundaryParticleContainer:
    dim = int(scene["meta"]["dimensions"])
    boundary = scene["boundary"]

    bmin = np.array(boundary["min"], dtype=np.float64)
    bmax = np.array(boundary["max"], dtype=np.float64)
    if bmin.shape != (dim,) or bmax.shape != (dim,):
        raise ValueError("boundary.min/max must match dimensions")

    coordinates = grid_points(bmin, bmax, float(boundary["spacing"]))
    mass = np.full((coordinates.shape[1],), float(boundary["mass"]), dtype=np.float64)

    return BoundaryParticleContainer(
        initial_coordinates=coordinates,
        mass=mass,
        boundary_model=build_boundary_model(boundary["model"]),
    )


def build_scene(scene: dict) -> Semidiscretization:
    """
    Build a semidiscretization from a scene dictionary (typically loaded from JSON):

        {
          "meta": {"name": "beam", "dimensions": 2},
          "solid": {"min": [...], "max": [...], "spacing": 0.1, "density": 1000.0,
                    "young_modulus": 1e6, "poisson_ratio": 0.3, "fixed_layers": 2},
          "boundary": {"min": [...], "max": [...], "spacing": 0.05, "mass": 1.0,
                       "model": {"type": "monaghan_kajtar", "K": 10.0, "beta": 2.0,
                                 "boundary_particle_spacing": 0.05}},
          "forces": {"gravity": [0.0, -9.81]},
          "neighbors": {"type": "spatial_hash"},
          "solver": {"debug": false}
        }
    """
    containers = [build_solid_block(scene)]
    if "boundary" in scene:
        containers.append(build_boundary_block(scene))

    search_type = str(scene.get("neighbors", {}).get("type", "spatial_hash")).lower()
    debug = bool(scene.get("solver", {}).get("debug", False))

    return Semidiscretization(*containers, neighborhood_search=search_type, debug=debug)
