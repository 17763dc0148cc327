"""
Cavity Polariton Analysis — Coupled Oscillator Library
========================================================

Canonical source of the light-matter coupling model used by the
dispersion fitter: angle-dependent cavity photon energy, analytic
two-level polariton branches, the N-mode star Hamiltonian and the
Hopfield mixing fractions.

Energy convention
-----------------
**All energies are in cm^-1 and angles in radians.**

Sections
--------
=====  ============================================================
S      Contents
=====  ============================================================
1      Cavity mode dispersion E_cav(theta)
2      Two-level branches (closed form)
3      N-mode eigenvalues (dense symmetric Hamiltonian)
4      Hopfield coefficients
=====  ============================================================

Key references
--------------
- Hopfield (1958) Phys. Rev. 112, 1555 -- mixing coefficients
- Skolnick, Fisher & Whittaker (1998) -- coupled oscillator model
- Simpkins et al. (2015) ACS Photonics 2, 1460 -- vibrational strong
  coupling in Fabry-Perot cavities
"""

from __future__ import annotations

import warnings
from typing import NamedTuple, Sequence, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .errors import PreconditionError

FloatOrArray = Union[float, NDArray]


class HopfieldCoefficients(NamedTuple):
    """Photon / matter fractions of the lower and upper polariton."""
    photon_LP: FloatOrArray
    matter_LP: FloatOrArray
    photon_UP: FloatOrArray
    matter_UP: FloatOrArray


def _as_output(x: NDArray, scalar: bool) -> FloatOrArray:
    return float(x) if scalar else x


# ======================================================================
# S1  CAVITY MODE DISPERSION
# ======================================================================

def cavity_mode_energy(thetas: ArrayLike, E0: float, n_eff: float) -> FloatOrArray:
    """Cavity photon energy versus incidence angle.

    E_cav(theta) = E0 / sqrt(1 - (sin(theta) / n_eff)^2)

    Monotonically increasing in |theta| and singular at the critical
    angle sin(theta) = n_eff.  At or beyond it the result is NaN and a
    ``RuntimeWarning`` is issued.

    Parameters
    ----------
    thetas : float or array
        Incidence angle(s) [rad].
    E0 : float
        Normal-incidence cavity energy [cm^-1].
    n_eff : float
        Effective refractive index of the cavity mode.

    Returns
    -------
    E_cav : float or ndarray
    """
    scalar = np.ndim(thetas) == 0
    thetas = np.asarray(thetas, dtype=float)
    arg = 1.0 - (np.sin(thetas) / n_eff)**2
    outside = arg <= 0.0
    if np.any(outside):
        warnings.warn(
            f"Cavity mode energy evaluated at or beyond the critical angle "
            f"(n_eff = {n_eff:.4g}); returning NaN for "
            f"{int(np.count_nonzero(outside))} angle(s).",
            RuntimeWarning,
            stacklevel=2,
        )
    with np.errstate(invalid='ignore', divide='ignore'):
        E = np.where(outside, np.nan, E0 / np.sqrt(np.where(outside, 1.0, arg)))
    return _as_output(E, scalar)


# ======================================================================
# S2  TWO-LEVEL BRANCHES
# ======================================================================

def polariton_branches(E_cav: ArrayLike,
                       E_vib: float,
                       Omega: float) -> Tuple[FloatOrArray, FloatOrArray]:
    """Lower and upper polariton energies of the 2-level coupled oscillator.

    E_LP,UP = (E_cav + E_vib)/2 -/+ sqrt(Omega^2 + (E_cav - E_vib)^2)/2

    At zero detuning UP - LP = Omega; far from resonance the branches
    approach the two bare energies.

    Parameters
    ----------
    E_cav : float or array
        Cavity photon energy [cm^-1].
    E_vib : float
        Vibrational mode energy [cm^-1].
    Omega : float
        Rabi splitting [cm^-1].

    Returns
    -------
    E_LP, E_UP : float or ndarray, same shape as ``E_cav``
    """
    scalar = np.ndim(E_cav) == 0
    E_cav = np.asarray(E_cav, dtype=float)
    half_split = 0.5 * np.sqrt(Omega**2 + (E_cav - E_vib)**2)
    mean = 0.5 * (E_cav + E_vib)
    return _as_output(mean - half_split, scalar), _as_output(mean + half_split, scalar)


# ======================================================================
# S3  N-MODE EIGENVALUES
# ======================================================================

def coupling_hamiltonian(E_cav: float,
                         E_vibs: Sequence[float],
                         Omegas: Sequence[float]) -> NDArray:
    """Star-coupled (N+1) x (N+1) Hamiltonian.

    Diagonal [E_cav, E_vib_1, ..., E_vib_N]; the cavity row/column holds
    Omega_j / 2; no direct mode-mode coupling.
    """
    E_vibs = np.atleast_1d(np.asarray(E_vibs, dtype=float))
    Omegas = np.atleast_1d(np.asarray(Omegas, dtype=float))
    if len(Omegas) != len(E_vibs):
        raise PreconditionError(
            f"Need one Rabi splitting per vibrational mode: got "
            f"{len(E_vibs)} modes and {len(Omegas)} splittings")

    N = len(E_vibs)
    H = np.zeros((N + 1, N + 1))
    H[0, 0] = E_cav
    H[np.arange(1, N + 1), np.arange(1, N + 1)] = E_vibs
    H[0, 1:] = 0.5 * Omegas
    H[1:, 0] = 0.5 * Omegas
    return H


def polariton_eigenvalues(E_cav: float,
                          E_vibs: Sequence[float],
                          Omegas: Sequence[float]) -> NDArray:
    """Polariton energies for N vibrational modes coupled to one cavity mode.

    Diagonalises :func:`coupling_hamiltonian`.  For N = 1 this reproduces
    :func:`polariton_branches`; for N identical modes the outer branches
    split by sqrt(N) Omega and N - 1 dark states stay at E_vib.

    Returns
    -------
    eigenvalues : ndarray, shape (N + 1,)
        Sorted ascending; the first is the LP, the last the UP.
    """
    return np.linalg.eigvalsh(coupling_hamiltonian(E_cav, E_vibs, Omegas))


# ======================================================================
# S4  HOPFIELD COEFFICIENTS
# ======================================================================

def hopfield_coefficients(E_cav: ArrayLike,
                          E_vib: float,
                          Omega: float) -> HopfieldCoefficients:
    """Light-matter mixing fractions of the 2-level model.

    theta = atan2(Omega, E_cav - E_vib) / 2
    |C_LP|^2 = cos^2(theta) is the photon fraction of the LP;
    sin^2(theta) is its matter fraction.  The UP is complementary:
    photon_UP = matter_LP and matter_UP = photon_LP.

    The two-argument arctangent keeps theta in [0, pi/2] over the full
    detuning range, so every fraction lies in [0, 1].

    Returns
    -------
    HopfieldCoefficients
        Same shape as ``E_cav``.
    """
    scalar = np.ndim(E_cav) == 0
    delta = np.asarray(E_cav, dtype=float) - E_vib
    theta = 0.5 * np.arctan2(Omega, delta)

    photon_LP = _as_output(np.cos(theta)**2, scalar)
    matter_LP = _as_output(np.sin(theta)**2, scalar)
    return HopfieldCoefficients(photon_LP=photon_LP, matter_LP=matter_LP,
                                photon_UP=matter_LP, matter_UP=photon_LP)
