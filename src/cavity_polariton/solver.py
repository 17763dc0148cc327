"""
Nonlinear least-squares boundary.

Both fitters call the solver through :func:`solve_curve_fit`, which wraps
``scipy.optimize.curve_fit`` (Levenberg-Marquardt for unbounded problems)
and keeps its output as an opaque :class:`FitSolution`.  Solver errors
(``RuntimeError`` when the optimum is not found, ``ValueError`` for
improper input) and ``OptimizeWarning`` pass through unchanged.
"""

from __future__ import annotations

from typing import Callable, NamedTuple

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.optimize import curve_fit


class FitSolution(NamedTuple):
    """Solver output kept on fit results."""
    coef: NDArray
    covariance: NDArray
    stderr: NDArray
    nfev: int
    message: str


def solve_curve_fit(model: Callable[..., NDArray],
                    x: ArrayLike,
                    y: ArrayLike,
                    p0: ArrayLike) -> FitSolution:
    """Fit ``model(x, *p)`` to ``y`` starting from ``p0``.

    Standard errors are sqrt(diag(pcov)) with pcov scaled by the
    residual variance (``absolute_sigma=False``).
    """
    popt, pcov, infodict, mesg, _ = curve_fit(
        model, x, y, p0=np.asarray(p0, dtype=float), full_output=True)
    stderr = np.sqrt(np.diag(pcov))
    return FitSolution(coef=popt, covariance=pcov, stderr=stderr,
                       nfev=int(infodict['nfev']), message=mesg)


def r_squared(y: ArrayLike, y_fit: ArrayLike) -> float:
    """Coefficient of determination 1 - SS_res / SS_tot.

    Constant ``y`` has SS_tot = 0: the result is -inf (NaN for a perfect
    fit) and numpy emits a ``RuntimeWarning``.
    """
    y = np.asarray(y, dtype=float)
    ss_res = np.sum((y - np.asarray(y_fit, dtype=float))**2)
    ss_tot = np.sum((y - np.mean(y))**2)
    return float(1.0 - ss_res / ss_tot)
