"""
Cavity Polariton Analysis — Fabry-Perot Vibrational Strong Coupling
=====================================================================

Fits cavity FTIR transmission spectra with a Lorentz-oscillator
Fabry-Perot model and fits angle-resolved polariton dispersion with the
coupled oscillator model (Rabi splitting, effective index, Hopfield
coefficients).

Modules
-------
dielectric      : Lorentz dielectric function, (n, k), Airy transmittance
polariton_modes : Cavity dispersion, polariton branches, N-mode eigenvalues,
                  Hopfield coefficients
peaks           : Local-maximum extraction ranked by prominence
spectrum_fit    : Single-spectrum fit (``fit_cavity_spectrum``)
dispersion_fit  : Dispersion fit (``fit_dispersion``)
reporting       : Text / markdown reports
"""

from .dielectric import (cavity_transmittance, compute_cavity_transmittance,
                         epsilon_to_nk, extinction_coeff, lorentz_dielectric,
                         refractive_index)
from .dispersion_fit import (DispersionFitConfig, DispersionFitResult,
                             dispersion_branches, fit_dispersion,
                             polariton_pairs)
from .errors import PreconditionError
from .peaks import find_local_maxima
from .polariton_modes import (HopfieldCoefficients, cavity_mode_energy,
                              coupling_hamiltonian, hopfield_coefficients,
                              polariton_branches, polariton_eigenvalues)
from .reporting import (describe_spectrum, format_results, predict, report,
                        residuals)
from .solver import FitSolution
from .spectrum_fit import (CavityFitConfig, CavityFitResult, CavitySpectrum,
                           Oscillator, ParameterSchema, fit_cavity_spectrum)

__version__ = "1.0.0"
