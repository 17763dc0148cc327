"""
Cavity Polariton Analysis — Single-Spectrum Fitter
====================================================

Fits a Fabry-Perot transmission spectrum with Lorentz oscillators inside
the cavity (``dielectric.compute_cavity_transmittance``) and extracts the
polariton peak positions from the fitted curve.

Parameter vector
----------------
The packed vector seen by the solver is::

    [R, phi, scale, offset, A_1..A_N, (nu0_1..nu0_N), (Gamma_1..Gamma_N)]

where the centre block is present only with ``fit_nu0`` and the width
block only with ``fit_Gamma``.  Offsets are derived once by
:class:`ParameterSchema` and used by both ``pack`` and ``unpack``.

Sections
--------
=====  ============================================================
S      Contents
=====  ============================================================
1      Inputs: Oscillator, CavitySpectrum, CavityFitConfig
2      ParameterSchema (pack / unpack)
3      CavityFitResult
4      fit_cavity_spectrum
=====  ============================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import (Any, ClassVar, Iterable, Mapping, NamedTuple, Optional,
                    Sequence, Tuple, Union)

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .dielectric import compute_cavity_transmittance
from .errors import PreconditionError
from .peaks import find_local_maxima
from .solver import FitSolution, r_squared, solve_curve_fit

# Peaks smaller than this fraction of the fitted maximum are ignored.
PEAK_PROMINENCE_FRACTION: float = 0.005

# Transmittance above this maximum is taken to be in percent.
PERCENT_THRESHOLD: float = 1.5


def _readonly(values: ArrayLike) -> NDArray:
    arr = np.array(values, dtype=float)
    arr.setflags(write=False)
    return arr


# ======================================================================
# S1  INPUTS
# ======================================================================

class Oscillator(NamedTuple):
    """Lorentz oscillator: centre [cm^-1], linewidth [cm^-1], strength [cm^-2].

    ``A`` is optional on input, where it serves as the initial amplitude
    guess; fitted oscillators always carry it.
    """
    nu0: float
    Gamma: float
    A: Optional[float] = None


OscillatorLike = Union[Oscillator, Mapping[str, float], Sequence[float]]


def as_oscillator(item: OscillatorLike) -> Oscillator:
    """Normalise ``(nu0, Gamma[, A])`` tuples or mappings to :class:`Oscillator`."""
    if isinstance(item, Oscillator):
        return item
    if isinstance(item, Mapping):
        A = item.get('A')
        return Oscillator(float(item['nu0']), float(item['Gamma']),
                          None if A is None else float(A))
    values = tuple(item)
    if len(values) not in (2, 3):
        raise PreconditionError(
            f"Oscillator needs (nu0, Gamma) or (nu0, Gamma, A), got {values!r}")
    A = values[2] if len(values) == 3 else None
    return Oscillator(float(values[0]), float(values[1]),
                      None if A is None else float(A))


@dataclass(frozen=True, eq=False)
class CavitySpectrum:
    """Cavity FTIR transmission spectrum with sample metadata.

    Attributes
    ----------
    wavenumber : frequency axis [cm^-1]
    transmittance : signal, percent or fractional
    sample : metadata mapping (``cavity_length`` [cm], ``mirror``,
        ``angle``, ``solute``, ...)
    path : source file, informational only
    """
    wavenumber: NDArray
    transmittance: NDArray
    sample: Mapping[str, Any] = field(default_factory=dict)
    path: str = ''

    def __post_init__(self):
        object.__setattr__(self, 'wavenumber', _readonly(self.wavenumber))
        object.__setattr__(self, 'transmittance', _readonly(self.transmittance))
        object.__setattr__(self, 'sample', dict(self.sample))

    @property
    def sample_id(self) -> str:
        return str(self.sample.get('_id', 'unknown'))

    def __repr__(self) -> str:
        return f"CavitySpectrum({self.sample_id!r}, {len(self.wavenumber)} points)"


@dataclass(frozen=True)
class CavityFitConfig:
    """Initial guesses and switches for :func:`fit_cavity_spectrum`.

    Attributes
    ----------
    R_init, phi_init, scale_init, offset_init : cavity starting values
    A_init : starting amplitude for oscillators that do not carry one
    region : optional inclusive (lo, hi) wavenumber window
    fit_nu0 : float the oscillator centres
    fit_Gamma : float the oscillator linewidths
    min_points : smallest accepted fit domain after masking
    """
    R_init: float = 0.92
    phi_init: float = 0.3
    A_init: float = 3000.0
    scale_init: float = 1.0
    offset_init: float = 0.0
    region: Optional[Tuple[float, float]] = None
    fit_nu0: bool = False
    fit_Gamma: bool = False
    min_points: int = 10


DEFAULT_CAVITY_FIT = CavityFitConfig()


# ======================================================================
# S2  PARAMETER SCHEMA
# ======================================================================

class CavityParameters(NamedTuple):
    """Unpacked model parameters."""
    R: float
    phi: float
    scale: float
    offset: float
    As: NDArray
    nu0s: NDArray
    Gammas: NDArray


@dataclass(frozen=True)
class ParameterSchema:
    """Layout of the packed parameter vector.

    Examples
    --------
    >>> schema = ParameterSchema(2, fit_nu0=False, fit_Gamma=True)
    >>> schema.size
    8
    >>> schema.widths
    slice(6, 8, None)
    """
    n_oscillators: int
    fit_nu0: bool = False
    fit_Gamma: bool = False

    N_CAVITY: ClassVar[int] = 4  # R, phi, scale, offset

    @property
    def amplitudes(self) -> slice:
        return slice(self.N_CAVITY, self.N_CAVITY + self.n_oscillators)

    @property
    def centres(self) -> Optional[slice]:
        if not self.fit_nu0:
            return None
        start = self.amplitudes.stop
        return slice(start, start + self.n_oscillators)

    @property
    def widths(self) -> Optional[slice]:
        if not self.fit_Gamma:
            return None
        start = self.centres.stop if self.fit_nu0 else self.amplitudes.stop
        return slice(start, start + self.n_oscillators)

    @property
    def size(self) -> int:
        blocks = 1 + int(self.fit_nu0) + int(self.fit_Gamma)
        return self.N_CAVITY + blocks * self.n_oscillators

    def pack(self, R: float, phi: float, scale: float, offset: float,
             As: ArrayLike, nu0s: ArrayLike, Gammas: ArrayLike) -> NDArray:
        """Packed vector; centres/widths are dropped unless they float."""
        p = np.empty(self.size)
        p[:self.N_CAVITY] = (R, phi, scale, offset)
        p[self.amplitudes] = As
        if self.fit_nu0:
            p[self.centres] = nu0s
        if self.fit_Gamma:
            p[self.widths] = Gammas
        return p

    def unpack(self, p: ArrayLike,
               fixed_nu0s: ArrayLike,
               fixed_Gammas: ArrayLike) -> CavityParameters:
        """Inverse of :meth:`pack`; fixed centres/widths fill the gaps."""
        p = np.asarray(p, dtype=float)
        if len(p) != self.size:
            raise PreconditionError(
                f"Parameter vector has {len(p)} entries, schema expects {self.size}")
        nu0s = p[self.centres] if self.fit_nu0 else np.asarray(fixed_nu0s, dtype=float)
        Gammas = p[self.widths] if self.fit_Gamma else np.asarray(fixed_Gammas, dtype=float)
        R, phi, scale, offset = p[:self.N_CAVITY]
        return CavityParameters(R, phi, scale, offset,
                                p[self.amplitudes], nu0s, Gammas)


def _model_curve(params: CavityParameters, nu: ArrayLike,
                 L: float, n_bg: float) -> NDArray:
    T = compute_cavity_transmittance(nu, params.nu0s, params.Gammas, params.As,
                                     params.R, L, n_bg, params.phi)
    return T * params.scale + params.offset


# ======================================================================
# S3  RESULT
# ======================================================================

@dataclass(frozen=True, eq=False)
class CavityFitResult:
    """Result of fitting one cavity transmission spectrum.

    Attributes
    ----------
    R : mirror reflectivity
    L : cavity length [cm]
    n_bg : background refractive index
    phi : phase shift on reflection [rad]
    scale, offset : affine map applied to the model transmittance
    oscillators : fitted oscillators, in input order
    polariton_peaks : peak positions of the fitted curve [cm^-1],
        ordered by descending prominence
    rsquared : R^2 over the fit domain
    nu, T_data : (masked) data the fit was run on
    solution : solver output
    """
    R: float
    L: float
    n_bg: float
    phi: float
    scale: float
    offset: float
    oscillators: Tuple[Oscillator, ...]
    polariton_peaks: NDArray
    rsquared: float
    nu: NDArray
    T_data: NDArray
    solution: FitSolution

    @property
    def wavenumber(self) -> NDArray:
        return self.nu

    @property
    def transmittance(self) -> NDArray:
        return self.T_data

    @property
    def parameters(self) -> CavityParameters:
        return CavityParameters(
            self.R, self.phi, self.scale, self.offset,
            np.array([o.A for o in self.oscillators], dtype=float),
            np.array([o.nu0 for o in self.oscillators], dtype=float),
            np.array([o.Gamma for o in self.oscillators], dtype=float))

    def predict(self, nu: Optional[ArrayLike] = None) -> NDArray:
        """Fitted transmittance on the fit grid or on ``nu``."""
        grid = self.nu if nu is None else np.asarray(nu, dtype=float)
        return _model_curve(self.parameters, grid, self.L, self.n_bg)

    def residuals(self) -> NDArray:
        """Data minus fit on the fit grid."""
        return self.T_data - self.predict()

    def __repr__(self) -> str:
        n_osc = len(self.oscillators)
        n_pk = len(self.polariton_peaks)
        return (f"CavityFitResult({n_osc} oscillator{'' if n_osc == 1 else 's'}, "
                f"{n_pk} polariton peak{'' if n_pk == 1 else 's'}, "
                f"R^2={self.rsquared:.4f})")


# ======================================================================
# S4  FIT
# ======================================================================

def fit_cavity_spectrum(data: Union[ArrayLike, CavitySpectrum],
                        T_data: Optional[ArrayLike] = None,
                        *,
                        oscillators: Iterable[OscillatorLike],
                        n_bg: float,
                        L: Optional[float] = None,
                        config: Optional[CavityFitConfig] = None,
                        verbose: bool = False,
                        **overrides) -> CavityFitResult:
    """Fit a cavity transmission spectrum with a multi-oscillator Fabry-Perot model.

    Parameters
    ----------
    data : array or CavitySpectrum
        Wavenumber array [cm^-1], with ``T_data`` given separately, or a
        :class:`CavitySpectrum`.  For a spectrum, transmittance in percent
        (maximum > 1.5) is rescaled to fractional and ``L`` defaults to
        ``sample['cavity_length']``.
    T_data : array, optional
        Fractional transmittance, parallel to ``data``.
    oscillators : iterable
        ``(nu0, Gamma)`` pairs, ``(nu0, Gamma, A)`` triples, mappings or
        :class:`Oscillator`.  Centres and widths stay fixed unless
        ``fit_nu0`` / ``fit_Gamma`` are set.
    n_bg : float
        Background refractive index (fixed).
    L : float, optional
        Cavity length [cm] (fixed).
    config : CavityFitConfig, optional
        Starting values and switches; ``**overrides`` replace its fields.
    verbose : bool
        Print the fit report.

    Returns
    -------
    CavityFitResult

    Raises
    ------
    PreconditionError
        Missing cavity length, non-parallel arrays, or fewer points than
        ``config.min_points`` (or than free parameters) in the fit domain.
    RuntimeError
        From ``scipy.optimize.curve_fit`` when no optimum is found.
    """
    config = replace(config or DEFAULT_CAVITY_FIT, **overrides)

    if isinstance(data, CavitySpectrum):
        if T_data is not None:
            raise TypeError("T_data must not be given together with a CavitySpectrum")
        nu = np.array(data.wavenumber, dtype=float)
        T = np.array(data.transmittance, dtype=float)
        if np.max(T) > PERCENT_THRESHOLD:
            T = T / 100.0
        if L is None:
            L = data.sample.get('cavity_length')
    else:
        if T_data is None:
            raise TypeError("T_data is required when fitting raw arrays")
        nu = np.asarray(data, dtype=float)
        T = np.asarray(T_data, dtype=float)

    if L is None:
        raise PreconditionError(
            "Cavity length L not given and not found in sample metadata")
    L = float(L)
    if nu.shape != T.shape or nu.ndim != 1:
        raise PreconditionError(
            f"Wavenumber and transmittance must be parallel 1-D arrays, "
            f"got shapes {nu.shape} and {T.shape}")

    if config.region is not None:
        lo, hi = config.region
        mask = (nu >= lo) & (nu <= hi)
        nu, T = nu[mask], T[mask]

    oscs = [as_oscillator(o) for o in oscillators]
    schema = ParameterSchema(len(oscs), config.fit_nu0, config.fit_Gamma)
    required = max(config.min_points, schema.size)
    if len(nu) < required:
        raise PreconditionError(
            f"Fit domain {config.region} contains only {len(nu)} points; "
            f"need at least {required}")

    fixed_nu0s = np.array([o.nu0 for o in oscs], dtype=float)
    fixed_Gammas = np.array([o.Gamma for o in oscs], dtype=float)
    A0 = [config.A_init if o.A is None else o.A for o in oscs]
    p0 = schema.pack(config.R_init, config.phi_init, config.scale_init,
                     config.offset_init, A0, fixed_nu0s, fixed_Gammas)

    def model(x, *p):
        return _model_curve(schema.unpack(p, fixed_nu0s, fixed_Gammas), x, L, n_bg)

    solution = solve_curve_fit(model, nu, T, p0)
    params = schema.unpack(solution.coef, fixed_nu0s, fixed_Gammas)

    y_fit = _model_curve(params, nu, L, n_bg)
    peaks = find_local_maxima(nu, y_fit,
                              min_prominence=PEAK_PROMINENCE_FRACTION * np.max(y_fit))

    result = CavityFitResult(
        R=float(params.R), L=L, n_bg=float(n_bg), phi=float(params.phi),
        scale=float(params.scale), offset=float(params.offset),
        oscillators=tuple(Oscillator(float(c), float(g), float(a))
                          for c, g, a in zip(params.nu0s, params.Gammas, params.As)),
        polariton_peaks=_readonly(peaks),
        rsquared=r_squared(T, y_fit),
        nu=_readonly(nu), T_data=_readonly(T),
        solution=solution,
    )

    if verbose:
        from .reporting import report
        print(report(result))

    return result
