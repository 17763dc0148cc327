"""
Cavity Polariton — Physics Library Tests
==========================================

Closed-form checks of the dielectric chain, Airy transmittance,
coupled oscillator model, Hopfield coefficients and peak extraction.

Run with:
    pytest tests/test_physics.py -v
"""

import numpy as np
import pytest

from cavity_polariton import (PreconditionError, cavity_mode_energy,
                              cavity_transmittance, compute_cavity_transmittance,
                              coupling_hamiltonian, epsilon_to_nk,
                              extinction_coeff, find_local_maxima,
                              hopfield_coefficients, lorentz_dielectric,
                              polariton_branches, polariton_eigenvalues,
                              refractive_index)
from cavity_polariton.solver import r_squared

# Reference cavity (12 um, n_bg = 1.4): 7th order resonance near 2055 cm^-1
R_REF, L_REF, N_BG_REF, PHI_REF = 0.92, 12.0e-4, 1.4, 0.3
NU_REF = np.arange(1900.0, 2201.0, 1.0)


# ============================================================
# 1. Refractive index (4 checks)
# ============================================================

class TestRefractiveIndex:
    """(eps1, eps2) -> (n, k) conversion."""

    def test_non_absorbing(self):
        """eps2 = 0, eps1 > 0 gives n = sqrt(eps1), k = 0."""
        assert refractive_index(2.0, 0.0) == pytest.approx(np.sqrt(2.0))
        assert extinction_coeff(2.0, 0.0) == pytest.approx(0.0, abs=1e-14)

    def test_identities_scalar(self):
        """n^2 - k^2 = eps1 and 2nk = eps2."""
        n, k = epsilon_to_nk(1.5, 0.3)
        assert n**2 - k**2 == pytest.approx(1.5, abs=1e-10)
        assert 2 * n * k == pytest.approx(0.3, abs=1e-10)

    def test_identities_grid(self):
        """Identities hold elementwise, including metallic eps1 < 0."""
        e1, e2 = np.meshgrid(np.linspace(-3.0, 3.0, 25), np.linspace(0.0, 3.0, 31))
        n, k = epsilon_to_nk(e1, e2)
        np.testing.assert_allclose(n**2 - k**2, e1, atol=1e-10)
        np.testing.assert_allclose(2 * n * k, e2, atol=1e-10)

    def test_lorentz_peak_absorption(self):
        """Lorentz eps2 peaks at nu0 with height A / (Gamma nu0); eps1 = 0 there."""
        eps1, eps2 = lorentz_dielectric(3000.0, 2055.0, 23.0, np.array([2055.0]))
        assert eps1[0] == pytest.approx(0.0, abs=1e-15)
        assert eps2[0] == pytest.approx(3000.0 / (23.0 * 2055.0), rel=1e-12)


# ============================================================
# 2. Fabry-Perot transmittance (8 checks)
# ============================================================

class TestTransmittance:
    """Airy function and the composed oscillator-filled cavity."""

    def test_resonance_lossless(self):
        """R=0.9, alpha=0, L=1, n=1, phi=0: T(0.5) = 1."""
        assert cavity_transmittance(0.5, 1.0, 0.0, 1.0, 0.9, 0.0) == pytest.approx(1.0, rel=0.01)

    def test_off_resonance_lower(self):
        T_res = cavity_transmittance(0.5, 1.0, 0.0, 1.0, 0.9, 0.0)
        T_off = cavity_transmittance(0.25, 1.0, 0.0, 1.0, 0.9, 0.0)
        assert T_off < T_res

    def test_free_spectral_range(self):
        """Peaks repeat every FSR = 1 / (2 n L)."""
        fsr = 1.0 / (2 * 1.0 * 1.0)
        T1 = cavity_transmittance(0.5, 1.0, 0.0, 1.0, 0.9, 0.0)
        T2 = cavity_transmittance(0.5 + fsr, 1.0, 0.0, 1.0, 0.9, 0.0)
        assert T2 == pytest.approx(T1, rel=0.01)

    def test_absorption_lowers_peak(self):
        T_clear = cavity_transmittance(0.5, 1.0, 0.0, 1.0, 0.9, 0.0)
        T_abs = cavity_transmittance(0.5, 1.0, 0.5, 1.0, 0.9, 0.0)
        assert T_abs < T_clear

    def test_no_oscillators_is_bare_cavity(self):
        """Zero oscillators reduces to the bare Airy function at every frequency."""
        for R, L, n_bg, phi in [(0.9, 12e-4, 1.4, 0.3), (0.5, 5e-4, 1.0, 0.0),
                                (0.98, 25e-4, 2.2, -1.1)]:
            T_full = compute_cavity_transmittance(NU_REF, [], [], [], R, L, n_bg, phi)
            T_bare = cavity_transmittance(NU_REF, n_bg, 0.0, L, R, phi)
            np.testing.assert_allclose(T_full, T_bare, atol=1e-10)

    def test_oscillator_bounded_and_distinct(self):
        T_osc = compute_cavity_transmittance(NU_REF, [2055.0], [23.0], [3000.0],
                                             R_REF, L_REF, N_BG_REF, PHI_REF)
        T_bare = compute_cavity_transmittance(NU_REF, [], [], [],
                                              R_REF, L_REF, N_BG_REF, PHI_REF)
        assert np.all(T_osc >= 0) and np.all(T_osc <= 1)
        assert np.max(np.abs(T_osc - T_bare)) > 0.01

    def test_scalar_matches_array(self):
        """Scalar dispatch returns a float equal to the array element."""
        T_arr = compute_cavity_transmittance(NU_REF, [2055.0], [23.0], [3000.0],
                                             R_REF, L_REF, N_BG_REF, PHI_REF)
        T_one = compute_cavity_transmittance(np.array([2000.0]), [2055.0], [23.0], [3000.0],
                                             R_REF, L_REF, N_BG_REF, PHI_REF)
        T_scalar = compute_cavity_transmittance(2000.0, [2055.0], [23.0], [3000.0],
                                                R_REF, L_REF, N_BG_REF, PHI_REF)
        assert isinstance(T_scalar, float)
        assert T_scalar == pytest.approx(T_arr[NU_REF == 2000.0][0], rel=1e-12)
        assert T_scalar == pytest.approx(T_one[0], rel=1e-12)

    def test_mismatched_oscillator_arrays(self):
        with pytest.raises(PreconditionError):
            compute_cavity_transmittance(NU_REF, [2055.0, 2100.0], [23.0], [3000.0],
                                         R_REF, L_REF, N_BG_REF, PHI_REF)


# ============================================================
# 3. Coupled oscillator model (9 checks)
# ============================================================

class TestCoupledOscillator:
    """Cavity dispersion, 2-level branches and N-mode eigenvalues."""

    def test_cavity_mode_normal_incidence(self):
        assert cavity_mode_energy(0.0, 2000.0, 1.5) == pytest.approx(2000.0)

    def test_cavity_mode_monotonic(self):
        E = cavity_mode_energy(np.radians(np.arange(0.0, 41.0, 5.0)), 2000.0, 1.5)
        assert np.all(np.diff(E) > 0)
        theta = np.radians(20.0)
        assert E[4] == pytest.approx(2000.0 / np.sqrt(1 - (np.sin(theta) / 1.5)**2), abs=1e-10)

    def test_cavity_mode_beyond_critical_angle(self):
        """sin(theta) >= n_eff propagates as NaN with a RuntimeWarning."""
        with pytest.warns(RuntimeWarning):
            E = cavity_mode_energy(np.radians([0.0, 80.0]), 2000.0, 0.9)
        assert E[0] == pytest.approx(2000.0)
        assert np.isnan(E[1])

    def test_textbook_branches(self):
        """polariton_branches(2000, 2000, 100) = (1950, 2050)."""
        LP, UP = polariton_branches(2000.0, 2000.0, 100.0)
        assert LP == pytest.approx(1950.0, abs=1e-10)
        assert UP == pytest.approx(2050.0, abs=1e-10)
        assert UP - LP == pytest.approx(100.0, abs=1e-10)

    def test_branches_anticrossing(self):
        """LP below and UP above both bare energies; minimum gap at resonance."""
        E_cav = np.arange(1800.0, 2201.0, 5.0)
        LP, UP = polariton_branches(E_cav, 2000.0, 100.0)
        assert np.all(LP < np.minimum(E_cav, 2000.0))
        assert np.all(UP > np.maximum(E_cav, 2000.0))
        assert E_cav[np.argmin(UP - LP)] == pytest.approx(2000.0)

    def test_branches_far_detuned(self):
        LP, UP = polariton_branches(3000.0, 2000.0, 100.0)
        assert LP == pytest.approx(2000.0, abs=5.0)
        assert UP == pytest.approx(3000.0, abs=5.0)

    @pytest.mark.parametrize("E_cav, E_vib, Omega", [
        (2000.0, 2000.0, 100.0),
        (1950.0, 2000.0, 100.0),
        (2210.0, 2055.0, 25.0),
        (1700.0, 1720.0, 3.0),
    ])
    def test_single_mode_eigenvalues_match_branches(self, E_cav, E_vib, Omega):
        eigs = polariton_eigenvalues(E_cav, [E_vib], [Omega])
        LP, UP = polariton_branches(E_cav, E_vib, Omega)
        assert len(eigs) == 2
        assert eigs[0] == pytest.approx(LP, abs=1e-9)
        assert eigs[1] == pytest.approx(UP, abs=1e-9)

    def test_collective_enhancement(self):
        """Two identical modes: sqrt(2) Omega splitting and a dark state at E_vib."""
        eigs = polariton_eigenvalues(2000.0, [2000.0, 2000.0], [100.0, 100.0])
        assert len(eigs) == 3
        assert eigs[-1] - eigs[0] == pytest.approx(np.sqrt(2) * 100.0, abs=1e-9)
        assert eigs[1] == pytest.approx(2000.0, abs=1e-9)

    def test_multimode_sorted_and_star_topology(self):
        eigs = polariton_eigenvalues(2000.0, [2030.0, 2060.0, 2090.0], [15.0, 20.0, 10.0])
        assert len(eigs) == 4
        assert np.all(np.diff(eigs) >= 0)
        H = coupling_hamiltonian(2000.0, [2030.0, 2060.0, 2090.0], [15.0, 20.0, 10.0])
        np.testing.assert_array_equal(H, H.T)
        assert H[1, 2] == 0.0 and H[0, 2] == 10.0

    def test_mismatched_modes_raise(self):
        with pytest.raises(PreconditionError):
            polariton_eigenvalues(2000.0, [2000.0], [50.0, 60.0])


# ============================================================
# 4. Hopfield coefficients (5 checks)
# ============================================================

class TestHopfield:
    """Photon / matter mixing fractions."""

    def test_zero_detuning_half(self):
        h = hopfield_coefficients(2050.0, 2050.0, 20.0)
        for value in h:
            assert value == pytest.approx(0.5, abs=1e-12)
        assert isinstance(h.photon_LP, float)

    def test_far_detuning_limits(self):
        h_pos = hopfield_coefficients(2150.0, 2050.0, 20.0)
        assert h_pos.photon_LP > 0.9 and h_pos.matter_UP > 0.9
        h_neg = hopfield_coefficients(1950.0, 2050.0, 20.0)
        assert h_neg.matter_LP > 0.9 and h_neg.photon_UP > 0.9

    def test_sums_and_complementarity(self):
        E_cav = np.arange(1800.0, 2301.0, 10.0)
        h = hopfield_coefficients(E_cav, 2050.0, 20.0)
        np.testing.assert_allclose(h.photon_LP + h.matter_LP, 1.0, atol=1e-12)
        np.testing.assert_allclose(h.photon_UP + h.matter_UP, 1.0, atol=1e-12)
        np.testing.assert_array_equal(h.photon_LP, h.matter_UP)
        np.testing.assert_array_equal(h.matter_LP, h.photon_UP)

    def test_fractions_bounded(self):
        E_cav = np.linspace(-1e4, 1e4, 201)
        for frac in hopfield_coefficients(E_cav, 2050.0, 20.0):
            assert np.all((frac >= 0.0) & (frac <= 1.0))

    def test_lp_photon_fraction_monotonic(self):
        E_cav = np.arange(1800.0, 2301.0, 10.0)
        h = hopfield_coefficients(E_cav, 2050.0, 20.0)
        assert np.all(np.diff(h.photon_LP) >= -1e-12)


# ============================================================
# 5. Peak extraction (4 checks)
# ============================================================

class TestPeaks:
    """Neighbour-prominence local maxima."""

    def test_ranked_by_prominence(self):
        x = np.arange(8.0)
        y = np.array([0.0, 1.0, 0.0, 3.0, 1.0, 1.5, 0.0, 0.0])
        np.testing.assert_array_equal(find_local_maxima(x, y), [3.0, 5.0, 1.0])

    def test_boundaries_and_plateaus_ignored(self):
        x = np.arange(6.0)
        y = np.array([5.0, 1.0, 2.0, 2.0, 0.0, 4.0])
        assert len(find_local_maxima(x, y)) == 0

    def test_min_prominence(self):
        x = np.arange(8.0)
        y = np.array([0.0, 1.0, 0.0, 3.0, 1.0, 1.5, 0.0, 0.0])
        np.testing.assert_array_equal(find_local_maxima(x, y, min_prominence=1.2), [3.0, 5.0])

    def test_short_input(self):
        assert len(find_local_maxima([0.0, 1.0], [1.0, 2.0])) == 0


# ============================================================
# 6. Goodness of fit (2 checks)
# ============================================================

class TestRSquared:
    """Coefficient of determination, including flat data."""

    def test_perfect_and_mean_models(self):
        y = np.array([1.0, 2.0, 4.0, 3.0])
        assert r_squared(y, y) == 1.0
        assert r_squared(y, np.full(4, y.mean())) == pytest.approx(0.0, abs=1e-12)

    def test_flat_data_is_minus_inf(self):
        """SS_tot = 0: -inf with numpy's divide warning."""
        y = np.full(5, 0.5)
        with pytest.warns(RuntimeWarning):
            value = r_squared(y, y + 0.01)
        assert value == -np.inf
