"""
Cavity Polariton Analysis — Dispersion Fitter
===============================================

Fits the coupled oscillator model to angle-resolved lower (LP) and upper
(UP) polariton positions, giving the Rabi splitting Omega, the effective
index n_eff and the normal-incidence cavity energy E0.

The LP and UP observations are stacked into one residual vector and fit
jointly with the shared parameters [E0, n_eff, Omega].  One molecular mode
uses the closed-form two-level branches; several modes diagonalise the
star Hamiltonian at each angle (lowest eigenvalue = LP, highest = UP),
with the same Omega for every mode.

Entry points of :func:`fit_dispersion`
--------------------------------------
=========================================================  ==============
Call                                                       Use
=========================================================  ==============
``fit_dispersion(lp_angles, lp, up_angles, up, ...)``      separate grids
``fit_dispersion(angles, lp, up, ...)``                    shared grid
``fit_dispersion(results, angles=..., ...)``               CavityFitResults
=========================================================  ==============
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, replace
from typing import Optional, Sequence, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .errors import PreconditionError
from .polariton_modes import (HopfieldCoefficients, cavity_mode_energy,
                              coupling_hamiltonian, hopfield_coefficients,
                              polariton_branches)
from .solver import FitSolution, r_squared, solve_curve_fit
from .spectrum_fit import CavityFitResult, _readonly


@dataclass(frozen=True)
class DispersionFitConfig:
    """Starting values for :func:`fit_dispersion`.

    Attributes
    ----------
    E0_init : normal-incidence cavity energy [cm^-1]; ``None`` means
        10 cm^-1 below the lowest LP position
    n_eff_init : effective refractive index
    Omega_init : Rabi splitting [cm^-1]
    min_pairs : fewest LP/UP pairs accepted from a batch of spectrum fits
    """
    E0_init: Optional[float] = None
    n_eff_init: float = 1.5
    Omega_init: float = 20.0
    min_pairs: int = 3


DEFAULT_DISPERSION_FIT = DispersionFitConfig()


def dispersion_branches(lp_angles: ArrayLike,
                        up_angles: ArrayLike,
                        E0: float,
                        n_eff: float,
                        Omega: float,
                        molecular_modes: ArrayLike) -> Tuple[NDArray, NDArray]:
    """Model LP energies at ``lp_angles`` and UP energies at ``up_angles``."""
    modes = np.atleast_1d(np.asarray(molecular_modes, dtype=float))
    E_lp = np.atleast_1d(cavity_mode_energy(np.asarray(lp_angles, dtype=float), E0, n_eff))
    E_up = np.atleast_1d(cavity_mode_energy(np.asarray(up_angles, dtype=float), E0, n_eff))

    if len(modes) == 1:
        lp, _ = polariton_branches(E_lp, modes[0], Omega)
        _, up = polariton_branches(E_up, modes[0], Omega)
        return lp, up

    Omegas = np.full(len(modes), Omega)
    lp = np.array([_extreme_eigenvalues(E, modes, Omegas)[0] for E in E_lp])
    up = np.array([_extreme_eigenvalues(E, modes, Omegas)[1] for E in E_up])
    return lp, up


def _extreme_eigenvalues(E_cav: float, modes: NDArray, Omegas: NDArray) -> Tuple[float, float]:
    if not np.isfinite(E_cav):
        return np.nan, np.nan
    eigs = np.linalg.eigvalsh(coupling_hamiltonian(E_cav, modes, Omegas))
    return eigs[0], eigs[-1]


@dataclass(frozen=True, eq=False)
class DispersionFitResult:
    """Result of a coupled oscillator fit to polariton dispersion.

    Attributes
    ----------
    rabi_splitting, rabi_err : Omega and its standard error [cm^-1]
    molecular_modes : fixed molecular mode energies [cm^-1]
    n_eff, n_eff_err : effective index and its standard error
    E0, E0_err : normal-incidence cavity energy and error [cm^-1]
    lp_angles, lp_positions : LP data used [rad, cm^-1]
    up_angles, up_positions : UP data used [rad, cm^-1]
    hopfield_zero : mixing fractions at zero detuning
    rsquared : R^2 over the stacked LP + UP data
    solution : solver output
    """
    rabi_splitting: float
    rabi_err: float
    molecular_modes: NDArray
    n_eff: float
    n_eff_err: float
    E0: float
    E0_err: float
    lp_angles: NDArray
    lp_positions: NDArray
    up_angles: NDArray
    up_positions: NDArray
    hopfield_zero: HopfieldCoefficients
    rsquared: float
    solution: FitSolution

    def predict(self,
                lp_angles: Optional[ArrayLike] = None,
                up_angles: Optional[ArrayLike] = None) -> Tuple[NDArray, NDArray]:
        """Fitted (LP, UP) branches, by default at the measured angles."""
        lp_angles = self.lp_angles if lp_angles is None else lp_angles
        up_angles = self.up_angles if up_angles is None else up_angles
        return dispersion_branches(lp_angles, up_angles, self.E0, self.n_eff,
                                   self.rabi_splitting, self.molecular_modes)

    def residuals(self) -> Tuple[NDArray, NDArray]:
        """Data minus fit for the LP and UP branches."""
        lp, up = self.predict()
        return self.lp_positions - lp, self.up_positions - up

    def __repr__(self) -> str:
        return (f"DispersionFitResult(Omega={self.rabi_splitting:.1f} cm^-1, "
                f"R^2={self.rsquared:.4f})")


def polariton_pairs(results: Sequence[CavityFitResult],
                    angles: ArrayLike,
                    molecular_modes: ArrayLike,
                    min_pairs: int = 3) -> Tuple[NDArray, NDArray, NDArray]:
    """LP/UP positions from a batch of spectrum fits, one fit per angle.

    For every result with at least two polariton peaks, the highest peak
    below the molecular centre (mean of the modes) is the LP and the
    lowest peak at or above it is the UP.  Angles lacking either are
    skipped.

    Returns
    -------
    angles, lp_positions, up_positions : ndarray

    Raises
    ------
    PreconditionError
        If angles and results differ in length, or fewer than
        ``min_pairs`` pairs remain.
    """
    angles = np.asarray(angles, dtype=float)
    if len(angles) != len(results):
        raise PreconditionError(
            f"Need one angle per CavityFitResult: got {len(angles)} angles "
            f"for {len(results)} results")

    centre = float(np.mean(np.atleast_1d(np.asarray(molecular_modes, dtype=float))))

    valid_angles, lp, up = [], [], []
    for theta, result in zip(angles, results):
        if len(result.polariton_peaks) < 2:
            continue
        peaks = np.sort(result.polariton_peaks)
        below = peaks[peaks < centre]
        above = peaks[peaks >= centre]
        if len(below) and len(above):
            valid_angles.append(theta)
            lp.append(below[-1])
            up.append(above[0])

    if len(lp) < min_pairs:
        raise PreconditionError(
            f"Need at least {min_pairs} valid LP/UP pairs for dispersion "
            f"fitting, got {len(lp)}")

    return np.array(valid_angles), np.array(lp), np.array(up)


def fit_dispersion(*data,
                   molecular_modes: ArrayLike,
                   angles: Optional[ArrayLike] = None,
                   config: Optional[DispersionFitConfig] = None,
                   verbose: bool = False,
                   **overrides) -> DispersionFitResult:
    """Fit the coupled oscillator model to polariton dispersion data.

    E_cav(theta) = E0 / sqrt(1 - (sin(theta)/n_eff)^2)
    E_LP, E_UP   = (E_cav + E_vib)/2 -/+ sqrt(Omega^2 + (E_cav - E_vib)^2)/2

    Parameters
    ----------
    *data
        ``(lp_angles, lp_positions, up_angles, up_positions)``,
        ``(angles, lp_positions, up_positions)`` or ``(results,)`` with
        a sequence of :class:`CavityFitResult`.  Angles in radians,
        positions in cm^-1.
    molecular_modes : float or array
        Fixed molecular mode energies [cm^-1].
    angles : array, optional
        Incidence angles of ``results`` (batch form only).
    config : DispersionFitConfig, optional
        Starting values; ``**overrides`` replace its fields.
    verbose : bool
        Print the fit report.

    Returns
    -------
    DispersionFitResult

    Raises
    ------
    PreconditionError
        Non-parallel arrays, too few points or LP/UP pairs, or angles at
        or beyond the critical angle of ``n_eff_init``.
    RuntimeError
        From ``scipy.optimize.curve_fit`` when no optimum is found.
    """
    config = replace(config or DEFAULT_DISPERSION_FIT, **overrides)

    if len(data) == 1:
        if angles is None:
            raise TypeError("angles is required when fitting CavityFitResults")
        lp_angles, lp_positions, up_positions = polariton_pairs(
            data[0], angles, molecular_modes, config.min_pairs)
        up_angles = lp_angles
    elif angles is not None:
        raise TypeError("angles is only accepted with a sequence of CavityFitResults")
    elif len(data) == 3:
        lp_angles, lp_positions, up_positions = data
        up_angles = lp_angles
    elif len(data) == 4:
        lp_angles, lp_positions, up_angles, up_positions = data
    else:
        raise TypeError(
            f"fit_dispersion takes 1, 3 or 4 positional arguments ({len(data)} given)")

    return _fit_branches(lp_angles, lp_positions, up_angles, up_positions,
                         molecular_modes, config, verbose)


def _fit_branches(lp_angles, lp_positions, up_angles, up_positions,
                  molecular_modes, config, verbose):
    modes = np.atleast_1d(np.asarray(molecular_modes, dtype=float))
    lp_angles = np.atleast_1d(np.asarray(lp_angles, dtype=float))
    lp_positions = np.atleast_1d(np.asarray(lp_positions, dtype=float))
    up_angles = np.atleast_1d(np.asarray(up_angles, dtype=float))
    up_positions = np.atleast_1d(np.asarray(up_positions, dtype=float))

    if len(lp_angles) != len(lp_positions) or len(up_angles) != len(up_positions):
        raise PreconditionError(
            f"Angle and position arrays must be parallel: LP {len(lp_angles)}/"
            f"{len(lp_positions)}, UP {len(up_angles)}/{len(up_positions)}")

    n_lp = len(lp_angles)
    x = np.concatenate([lp_angles, up_angles])
    y = np.concatenate([lp_positions, up_positions])
    if len(y) < 3:
        raise PreconditionError(
            f"Need at least 3 LP/UP positions to fit E0, n_eff and Omega, got {len(y)}")

    if np.any(np.abs(np.sin(x)) >= config.n_eff_init):
        raise PreconditionError(
            f"Angles reach the critical angle for n_eff_init = {config.n_eff_init}; "
            f"max |sin(theta)| = {np.max(np.abs(np.sin(x))):.4f}")

    E0_init = config.E0_init
    if E0_init is None:
        E0_init = (np.min(lp_positions) if n_lp else np.min(up_positions)) - 10.0

    def model(x, E0, n_eff, Omega):
        # Trial n_eff may pass the critical angle; the solver sees NaN, not a warning
        with warnings.catch_warnings():
            warnings.simplefilter('ignore', RuntimeWarning)
            lp, up = dispersion_branches(x[:n_lp], x[n_lp:], E0, n_eff, Omega, modes)
        return np.concatenate([lp, up])

    solution = solve_curve_fit(model, x, y, [E0_init, config.n_eff_init, config.Omega_init])
    E0, n_eff, Omega = (float(c) for c in solution.coef)
    E0_err, n_eff_err, Omega_err = (float(e) for e in solution.stderr)
    # Model depends on n_eff^2 only
    n_eff = abs(n_eff)

    # Zero detuning: E_cav at the molecular centre
    centre = float(np.mean(modes))

    result = DispersionFitResult(
        rabi_splitting=Omega, rabi_err=Omega_err,
        molecular_modes=_readonly(modes),
        n_eff=n_eff, n_eff_err=n_eff_err,
        E0=E0, E0_err=E0_err,
        lp_angles=_readonly(lp_angles), lp_positions=_readonly(lp_positions),
        up_angles=_readonly(up_angles), up_positions=_readonly(up_positions),
        hopfield_zero=hopfield_coefficients(centre, centre, Omega),
        rsquared=r_squared(y, model(x, E0, n_eff, Omega)),
        solution=solution,
    )

    if verbose:
        from .reporting import report
        print(report(result))

    return result
