"""
Bootstrap / CLI entry point for solidsph.

What this file does:
- Loads a JSON scene configuration.
- Builds the semidiscretization (elastic solid + optional boundary particles).
- Runs a fixed-step symplectic Euler loop on top of the right-hand side.
- Logs per-step diagnostics (speed/acceleration/non-finite entries).
- Stops as soon as the right-hand side produces NaN/Inf.

Important constraint:
- This file must not change any interaction math. It only wires together
  existing components and adds observability around them.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import numpy as np

from solidsph.core.diagnostics import compute_rhs_diagnostics
from solidsph.core.scene_builder import build_scene
from solidsph.core.simulator import SimConfig, step_symplectic_euler


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv

    if len(argv) < 1:
        print("Usage: python -m solidsph.core.bootstrap <scene.json>")
        return 2

    scene_path = Path(argv[0]).resolve()
    if not scene_path.exists():
        print(f"[ERROR] scene file not found: {scene_path}")
        return 1

    with scene_path.open("r", encoding="utf-8") as f:
        scene = json.load(f)

    time_cfg = scene.get("time", {})
    cfg = SimConfig(
        dt_fixed=float(time_cfg.get("dt_fixed", 1e-4)),
        steps=int(time_cfg.get("steps", 50)),
        log_every=int(time_cfg.get("log_every", 10)),
        t_start=float(time_cfg.get("t_start", 0.0)),
    )

    semi = build_scene(scene)
    name = scene.get("meta", {}).get("name", scene_path.stem)
    print(
        f"[BOOT] scene={name} ndims={semi.ndims} "
        f"containers={[type(c).__name__ for c in semi.particle_containers]} "
        f"n_variables={semi.n_variables} dt={cfg.dt_fixed:.3e} steps={cfg.steps}"
    )

    t = cfg.t_start
    u_ode = semi.semidiscretize((cfg.t_start, cfg.t_start + cfg.steps * cfg.dt_fixed))
    du_ode = np.zeros_like(u_ode)

    for s in range(cfg.steps):
        t_eval = t
        t = step_symplectic_euler(semi, u_ode, du_ode, t, cfg.dt_fixed)

        diag = compute_rhs_diagnostics(step=s + 1, t=t_eval, semi=semi, du_ode=du_ode)

        if not diag.finite:
            print(f"[ERROR] step {diag.step}: {diag.n_nonfinite} non-finite derivative entries at t={diag.t:.6e}")
            return 1

        if (s == 0) or ((s + 1) % max(1, cfg.log_every) == 0):
            print(
                f"[STEP {diag.step:04d}] t={diag.t:.6e} "
                f"|v|max={diag.v_max:.3e} "
                f"|a|(min/avg/max)={diag.a_min:.3e}/{diag.a_mean:.3e}/{diag.a_max:.3e} "
                f"moving={diag.n_moving} boundary={diag.n_boundary}"
            )

    print("[BOOT] done")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
