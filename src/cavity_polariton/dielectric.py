"""
Cavity Polariton Analysis — Dielectric & Transmittance Library
================================================================

Canonical source of the optical physics chain used by the spectrum fitter:
Lorentz oscillators -> dielectric function -> complex refractive index ->
absorption coefficient -> Fabry-Perot (Airy) transmittance.

Unit convention
---------------
**Frequencies are wavenumbers in cm^-1, lengths in cm.**  Oscillator
amplitudes are in cm^-2 so that the dielectric contribution is
dimensionless.  The absorption coefficient alpha is then in cm^-1 and
alpha * L is dimensionless.

Sections
--------
=====  ============================================================
S      Contents
=====  ============================================================
1      Lorentz oscillator dielectric contribution
2      Dielectric function -> (n, k)
3      Bare Fabry-Perot Airy transmittance
4      Composed cavity transmittance (oscillators + background)
=====  ============================================================

Key references
--------------
- Born & Wolf, Principles of Optics, Sec. 7.6 -- Fabry-Perot interferometer
- Skolnick, Fisher & Whittaker (1998) Semicond. Sci. Technol. 13, 645
  -- transfer-matrix / Lorentz-oscillator model of microcavity polaritons
"""

from __future__ import annotations

from typing import Sequence, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .errors import PreconditionError

FloatOrArray = Union[float, NDArray]


# ======================================================================
# S1  LORENTZ OSCILLATOR
# ======================================================================

def lorentz_dielectric(A: float,
                       nu0: float,
                       Gamma: float,
                       nu: ArrayLike) -> Tuple[NDArray, NDArray]:
    """Dielectric contribution of a single Lorentz oscillator.

    eps1 = A (nu0^2 - nu^2) / D,   eps2 = A Gamma nu / D

    with D = (nu0^2 - nu^2)^2 + (Gamma nu)^2.

    Parameters
    ----------
    A : float
        Oscillator strength [cm^-2].
    nu0 : float
        Centre frequency [cm^-1].
    Gamma : float
        Linewidth (FWHM) [cm^-1].
    nu : float or array
        Frequency [cm^-1].

    Returns
    -------
    eps1, eps2 : ndarray
        Real and imaginary contributions, same shape as ``nu``.
    """
    nu = np.asarray(nu, dtype=float)
    detuning = nu0**2 - nu**2
    denom = detuning**2 + (Gamma * nu)**2
    return A * detuning / denom, A * Gamma * nu / denom


# ======================================================================
# S2  REFRACTIVE INDEX
# ======================================================================

def refractive_index(eps1: ArrayLike, eps2: ArrayLike) -> FloatOrArray:
    """Refractive index n from the dielectric function.

    n = sqrt((sqrt(eps1^2 + eps2^2) + eps1) / 2)
    """
    eps1 = np.asarray(eps1, dtype=float)
    eps2 = np.asarray(eps2, dtype=float)
    return np.sqrt(0.5 * (np.hypot(eps1, eps2) + eps1))


def extinction_coeff(eps1: ArrayLike, eps2: ArrayLike) -> FloatOrArray:
    """Extinction coefficient k from the dielectric function.

    k = sqrt((sqrt(eps1^2 + eps2^2) - eps1) / 2)
    """
    eps1 = np.asarray(eps1, dtype=float)
    eps2 = np.asarray(eps2, dtype=float)
    return np.sqrt(0.5 * (np.hypot(eps1, eps2) - eps1))


def epsilon_to_nk(eps1: ArrayLike, eps2: ArrayLike) -> Tuple[FloatOrArray, FloatOrArray]:
    """Convenience wrapper returning ``(n, k)``.

    Satisfies n^2 - k^2 = eps1 and 2 n k = eps2 for every real input
    (k >= 0 requires eps2 >= 0, i.e. a passive medium).
    """
    return refractive_index(eps1, eps2), extinction_coeff(eps1, eps2)


# ======================================================================
# S3  FABRY-PEROT AIRY TRANSMITTANCE
# ======================================================================

def cavity_transmittance(nu: ArrayLike,
                         n: ArrayLike,
                         alpha: ArrayLike,
                         L: float,
                         R: float,
                         phi: float) -> FloatOrArray:
    """Fabry-Perot transmittance of a cavity filled with an absorbing medium.

                    (1 - R)^2 e^{-alpha L}
    T = ---------------------------------------------------------
        1 + R^2 e^{-2 alpha L} - 2 R e^{-alpha L} cos(4 pi n L nu + 2 phi)

    Mirror transmission is taken as 1 - R (lossless mirrors).  Resonances
    sit at 4 pi n L nu + 2 phi = 2 pi m, i.e. the free spectral range is
    1 / (2 n L).

    Parameters
    ----------
    nu : float or array
        Frequency [cm^-1].
    n : float or array
        Refractive index of the cavity medium (may depend on nu).
    alpha : float or array
        Absorption coefficient [cm^-1].
    L : float
        Cavity length [cm].
    R : float
        Mirror power reflectivity.
    phi : float
        Phase shift on reflection [rad].

    Returns
    -------
    T : float or ndarray
        Transmittance, same shape as ``nu``.
    """
    nu = np.asarray(nu, dtype=float)
    e = np.exp(-np.asarray(alpha, dtype=float) * L)
    phase = 4.0 * np.pi * np.asarray(n, dtype=float) * L * nu + 2.0 * phi
    return (1.0 - R)**2 * e / (1.0 + R**2 * e**2 - 2.0 * R * e * np.cos(phase))


# ======================================================================
# S4  COMPOSED CAVITY TRANSMITTANCE
# ======================================================================

def compute_cavity_transmittance(nu: ArrayLike,
                                 nu0s: Sequence[float],
                                 Gammas: Sequence[float],
                                 As: Sequence[float],
                                 R: float,
                                 L: float,
                                 n_bg: float,
                                 phi: float) -> FloatOrArray:
    """Cavity transmittance with a multi-oscillator Lorentz medium inside.

    Builds the full physics chain:

    1. eps = n_bg^2 + sum of Lorentz oscillator contributions
    2. (n, k) from eps
    3. alpha = 4 pi k nu
    4. Fabry-Perot Airy function

    With no oscillators this is exactly the bare cavity (alpha = 0,
    n = n_bg).

    Parameters
    ----------
    nu : float or array
        Frequency [cm^-1].  A scalar returns a float.
    nu0s, Gammas, As : sequences of equal length
        Oscillator centres [cm^-1], linewidths [cm^-1], strengths [cm^-2].
    R : float
        Mirror reflectivity.
    L : float
        Cavity length [cm].
    n_bg : float
        Background refractive index.
    phi : float
        Phase shift on reflection [rad].

    Returns
    -------
    T : float or ndarray
    """
    nu0s = np.atleast_1d(np.asarray(nu0s, dtype=float))
    Gammas = np.atleast_1d(np.asarray(Gammas, dtype=float))
    As = np.atleast_1d(np.asarray(As, dtype=float))
    if not (len(nu0s) == len(Gammas) == len(As)):
        raise PreconditionError(
            f"Oscillator arrays must have equal length, got "
            f"{len(nu0s)} centres, {len(Gammas)} widths, {len(As)} amplitudes")

    scalar = np.ndim(nu) == 0
    nu = np.atleast_1d(np.asarray(nu, dtype=float))

    eps1 = np.full(nu.shape, float(n_bg)**2)
    eps2 = np.zeros(nu.shape)
    for A, nu0, Gamma in zip(As, nu0s, Gammas):
        d1, d2 = lorentz_dielectric(A, nu0, Gamma, nu)
        eps1 += d1
        eps2 += d2

    n, k = epsilon_to_nk(eps1, eps2)
    alpha = 4.0 * np.pi * k * nu
    T = cavity_transmittance(nu, n, alpha, L, R, phi)

    if scalar:
        return float(T[0])
    return T
