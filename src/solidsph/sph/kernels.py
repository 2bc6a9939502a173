from __future__ import annotations

from dataclasses import dataclass

import numpy as np


def _normalization_factor(ndims: int, h: float) -> float:
    if ndims == 1:
        return 2.0 / (3.0 * h)
    if ndims == 2:
        return 10.0 / (7.0 * np.pi * h * h)
    if ndims == 3:
        return 1.0 / (np.pi * h ** 3)
    raise ValueError("ndims must be 1, 2 or 3")


@dataclass(frozen=True)
class SchoenbergCubicSplineKernel:
    """
    Schoenberg cubic spline (M4 B-spline) smoothing kernel with compact support q in [0, 2).

    Reference:
    - J. J. Monaghan, "Smoothed Particle Hydrodynamics", Reports on Progress in Physics 68 (2005),
      Eq. (2.6) (cubic spline definition).

    Parameterization used here:
        q = r / h
        W(r,h) = sigma_d * w(q)
        w(q) = 1/4 (2 - q)^3 - (1 - q)^3    for 0 <= q < 1
        w(q) = 1/4 (2 - q)^3                for 1 <= q < 2
        w(q) = 0                            for q >= 2
    with normalization constants:
        sigma1 = 2/(3h), sigma2 = 10/(7*pi*h^2), sigma3 = 1/(pi*h^3)
    """

    ndims: int

    def __post_init__(self) -> None:
        if self.ndims not in (1, 2, 3):
            raise ValueError("ndims must be 1, 2 or 3")

    def kernel(self, distance: float, h: float) -> float:
        h = float(h)
        if h <= 0.0:
            raise ValueError("h must be > 0")

        q = float(distance) / h

        if q >= 2.0:
            return 0.0
        if q >= 1.0:
            return _normalization_factor(self.ndims, h) * (0.25 * (2.0 - q) ** 3)
        return _normalization_factor(self.ndims, h) * (0.25 * (2.0 - q) ** 3 - (1.0 - q) ** 3)

    def kernel_deriv(self, distance: float, h: float) -> float:
        """
        Radial derivative dW/dr.

        Chain rule on the piecewise polynomial:
            dW/dr = sigma_d * (dw/dq) / h
            dw/dq = -3/4 (2 - q)^2 + 3 (1 - q)^2   for q < 1
            dw/dq = -3/4 (2 - q)^2                 for 1 <= q < 2
        """
        h = float(h)
        if h <= 0.0:
            raise ValueError("h must be > 0")

        q = float(distance) / h

        if q >= 2.0:
            return 0.0
        if q >= 1.0:
            dw_dq = -0.75 * (2.0 - q) ** 2
        else:
            dw_dq = -0.75 * (2.0 - q) ** 2 + 3.0 * (1.0 - q) ** 2

        return _normalization_factor(self.ndims, h) * dw_dq / h

    def kernel_grad(self, pos_diff: np.ndarray, distance: float, h: float) -> np.ndarray:
        """
        Gradient ∇_a W(||r_a - r_b||, h) for pos_diff = r_a - r_b.

        The caller guarantees distance > 0; the direction is undefined otherwise.
        """
        return self.kernel_deriv(distance, h) * np.asarray(pos_diff, dtype=np.float64) / distance

    def compact_support(self, h: float) -> float:
        return 2.0 * float(h)
