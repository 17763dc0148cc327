"""
Text and markdown reports for fit results.

``report`` gives the long console form (what ``verbose=True`` prints),
``format_results`` a markdown table for notebooks and lab records.
``predict`` and ``residuals`` forward to the result's own methods so
downstream plotting can treat both result types alike.
"""

from __future__ import annotations

from typing import List, Union

from .dispersion_fit import DispersionFitResult
from .spectrum_fit import CavityFitResult, CavitySpectrum

FitResult = Union[CavityFitResult, DispersionFitResult]

_SPECTRUM_KEYS = ('sample', 'mirror', 'cavity_length', 'angle',
                  'solute', 'concentration', 'solvent')


def predict(result: FitResult, *args):
    """Model evaluated on the data grid (or on the grid(s) in ``args``)."""
    return result.predict(*args)


def residuals(result: FitResult):
    """Data minus model on the data grid."""
    return result.residuals()


def describe_spectrum(spec: CavitySpectrum) -> str:
    """Multi-line summary of a spectrum and its sample metadata."""
    lines = ["CavitySpectrum:"]
    if '_id' in spec.sample:
        lines.append(f"  id: {spec.sample['_id']}")
    for key in _SPECTRUM_KEYS:
        if spec.sample.get(key) is not None:
            lines.append(f"  {key}: {spec.sample[key]}")
    if len(spec.wavenumber):
        lines.append(f"  range: {spec.wavenumber.min():.1f} - "
                     f"{spec.wavenumber.max():.1f} cm^-1")
    lines.append(f"  points: {len(spec.wavenumber)}")
    if spec.path:
        lines.append(f"  path: {spec.path}")
    return "\n".join(lines)


def report(result: FitResult) -> str:
    """Human-readable multi-line report."""
    if isinstance(result, CavityFitResult):
        return _report_cavity(result)
    if isinstance(result, DispersionFitResult):
        return _report_dispersion(result)
    raise TypeError(f"No report for {type(result).__name__}")


def format_results(result: FitResult) -> str:
    """Markdown tables of the fitted parameters."""
    if isinstance(result, CavityFitResult):
        return _markdown_cavity(result)
    if isinstance(result, DispersionFitResult):
        return _markdown_dispersion(result)
    raise TypeError(f"No markdown format for {type(result).__name__}")


# -- Cavity spectrum ---------------------------------------------------

def _report_cavity(r: CavityFitResult) -> str:
    lines = ["Cavity Spectrum Fit", "=" * 50, "", "Cavity parameters:",
             f"  R       = {r.R:.4f}",
             f"  L       = {r.L:g} cm",
             f"  n_bg    = {r.n_bg:.3f}",
             f"  phi     = {r.phi:.4f}",
             f"  scale   = {r.scale:.4f}",
             f"  offset  = {r.offset:.4f}"]

    if r.oscillators:
        lines += ["", "Oscillators:"]
        for i, osc in enumerate(r.oscillators, start=1):
            lines.append(f"  [{i}] nu0 = {osc.nu0:.1f} cm^-1, "
                         f"Gamma = {osc.Gamma:.1f} cm^-1, A = {osc.A:.1f}")

    if len(r.polariton_peaks):
        lines += ["", "Polariton peaks:"]
        for i, pk in enumerate(r.polariton_peaks, start=1):
            lines.append(f"  [{i}] {pk:.1f} cm^-1")

    lines += ["", f"R^2 = {r.rsquared:.6f}"]
    return "\n".join(lines)


def _markdown_cavity(r: CavityFitResult) -> str:
    lines: List[str] = ["## Cavity Spectrum Fit", "",
                        "| Parameter | Value |",
                        "|-----------|-------|",
                        f"| R | {r.R:.4f} |",
                        f"| L | {r.L:g} cm |",
                        f"| n_bg | {r.n_bg:.3f} |",
                        f"| phi | {r.phi:.4f} |",
                        f"| scale | {r.scale:.4f} |",
                        f"| offset | {r.offset:.4f} |",
                        f"| R^2 | {r.rsquared:.6f} |"]

    if r.oscillators:
        lines += ["", "### Oscillators", "",
                  "| # | nu0 (cm^-1) | Gamma (cm^-1) | A |",
                  "|---|-------------|---------------|---|"]
        for i, osc in enumerate(r.oscillators, start=1):
            lines.append(f"| {i} | {osc.nu0:.1f} | {osc.Gamma:.1f} | {osc.A:.1f} |")

    if len(r.polariton_peaks):
        lines += ["", "### Polariton Peaks", "",
                  "| # | Position (cm^-1) |",
                  "|---|-----------------|"]
        for i, pk in enumerate(r.polariton_peaks, start=1):
            lines.append(f"| {i} | {pk:.1f} |")

    return "\n".join(lines)


# -- Dispersion --------------------------------------------------------

def _report_dispersion(r: DispersionFitResult) -> str:
    h = r.hopfield_zero
    lines = ["Dispersion Fit (Coupled Oscillator Model)", "=" * 50, "",
             "Fitted parameters:",
             f"  Rabi splitting = {r.rabi_splitting:.1f} +/- {r.rabi_err:.1f} cm^-1",
             f"  E0 (normal)    = {r.E0:.1f} +/- {r.E0_err:.1f} cm^-1",
             f"  n_eff          = {r.n_eff:.3f} +/- {r.n_eff_err:.3f}",
             "", "Molecular modes:"]
    lines += [f"  [{i}] {m:.1f} cm^-1" for i, m in enumerate(r.molecular_modes, start=1)]
    lines += ["", "Hopfield coefficients (zero detuning):",
              f"  LP: photon = {h.photon_LP:.3f}, matter = {h.matter_LP:.3f}",
              f"  UP: photon = {h.photon_UP:.3f}, matter = {h.matter_UP:.3f}",
              "", f"R^2 = {r.rsquared:.6f}",
              f"Data points: {len(r.lp_angles)} LP, {len(r.up_angles)} UP"]
    return "\n".join(lines)


def _markdown_dispersion(r: DispersionFitResult) -> str:
    h = r.hopfield_zero
    lines = ["## Dispersion Fit (Coupled Oscillator)", "",
             "| Parameter | Value | Uncertainty |",
             "|-----------|-------|-------------|",
             f"| Rabi splitting | {r.rabi_splitting:.1f} cm^-1 | {r.rabi_err:.1f} |",
             f"| E0 | {r.E0:.1f} cm^-1 | {r.E0_err:.1f} |",
             f"| n_eff | {r.n_eff:.3f} | {r.n_eff_err:.3f} |",
             f"| R^2 | {r.rsquared:.6f} | |",
             "", "### Molecular Modes", ""]
    lines += [f"- Mode {i}: {m:.1f} cm^-1" for i, m in enumerate(r.molecular_modes, start=1)]
    lines += ["", "### Hopfield Coefficients (zero detuning)", "",
              "| Branch | Photon | Matter |",
              "|--------|--------|--------|",
              f"| LP | {h.photon_LP:.3f} | {h.matter_LP:.3f} |",
              f"| UP | {h.photon_UP:.3f} | {h.matter_UP:.3f} |"]
    return "\n".join(lines)
