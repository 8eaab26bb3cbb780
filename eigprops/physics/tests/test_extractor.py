from unittest import mock

import pytest
import numpy as np

from eigprops.algebra.devices import DevicePool
from eigprops.algebra.eigen import ExactDiagonalizer, HoppingAmplitude
from eigprops.indexing import Index, ALL, SUM_ALL, SPIN, ALL_STATES
from eigprops.physics import PropertyExtractor, GreensFunctionType, SpectralFunction, IndexLayout, Statistics
from eigprops.physics.accumulators import GreensFunctionAccumulator
from eigprops.physics.thermal import fermi_dirac
from eigprops.common.errors import PropertyError, PropertyErrorMsg, IndexRankError

# -----------------------------------------------------------------------------

def toy_model():
    """2 sites, 1 spin, eigenvalues {-1, 1}."""
    return ExactDiagonalizer().solve_hoppings([HoppingAmplitude(1.0, (0,), (1,))], add_hc=True)

def spin_chain(n_sites=4, t=1.0, hz=0.3, hx=0.0):
    """Open chain with indices {x, s}, Zeeman field hz along z and hx along x."""
    hoppings = []
    for x in range(n_sites):
        for s in range(2):
            hoppings.append(HoppingAmplitude(hz * (1 - 2 * s), (x, s), (x, s)))
            if x + 1 < n_sites:
                hoppings.append(HoppingAmplitude(-t, (x + 1, s), (x, s)))
                hoppings.append(HoppingAmplitude(-t, (x, s), (x + 1, s)))
        if hx:
            hoppings.append(HoppingAmplitude(hx, (x, 0), (x, 1)))
            hoppings.append(HoppingAmplitude(hx, (x, 1), (x, 0)))
    return ExactDiagonalizer().solve_hoppings(hoppings)

# -----------------------------------------------------------------------------

class TestToyModel:

    def setup_method(self):
        self.store  = toy_model()
        self.pe     = PropertyExtractor(self.store)

    def test_eigenvalues_ascending(self):
        eigenvalues = self.pe.get_eigenvalues()
        assert list(eigenvalues) == pytest.approx([-1.0, 1.0])
        assert len(eigenvalues) == 2
        assert np.all(np.diff(eigenvalues.get_values()) >= 0)
        assert self.pe.get_eigenvalue(1) == pytest.approx(1.0)

    def test_eigenvalue_out_of_range(self):
        for state in (-1, 2):
            with pytest.raises(PropertyError) as err:
                self.pe.get_eigenvalue(state)
            assert err.value.code is PropertyErrorMsg.STATE_OUT_OF_RANGE

    def test_non_integer_state_rejected(self):
        for state in (1.5, True, "0"):
            with pytest.raises(PropertyError) as err:
                self.pe.get_eigenvalue(state)
            assert err.value.code is PropertyErrorMsg.STATE_OUT_OF_RANGE
        with pytest.raises(PropertyError) as err:
            self.pe.get_amplitude(0.5, (1,))
        assert err.value.code is PropertyErrorMsg.STATE_OUT_OF_RANGE
        with pytest.raises(PropertyError):
            self.store.eigenvalue(1.0)

    def test_amplitude_passthrough(self):
        assert self.pe.get_amplitude(0, (1,)) == self.store.amplitude(0, (1,))

    def test_dos_resolution_two(self):
        """Bounds [-2, 2], resolution 2: -1 and 1 land in different bins."""
        self.pe.set_energy_window(-2.0, 2.0, 2)
        dos = self.pe.calculate_dos()
        assert dos.layout is IndexLayout.NONE
        assert np.allclose(dos.get_values(), [0.25, 0.25])
        assert dos.get_resolution() == 2
        assert dos.get_lower_bound() == -2.0 and dos.get_upper_bound() == 2.0

    def test_dos_weight_only_at_eigenvalues(self):
        self.pe.set_energy_window(-2.0, 2.0, 5)
        dos = self.pe.calculate_dos()
        assert np.nonzero(dos.get_values())[0].tolist() == [1, 3]
        assert np.isclose(np.sum(dos.get_values()) * dos.get_delta_energy(), 2.0)
        assert dos(1) == pytest.approx(1.0)

    def test_dos_normalized(self):
        self.pe.set_energy_window(-2.0, 2.0, 5)
        dos = self.pe.calculate_dos(normalize=True)
        assert np.isclose(np.sum(dos.get_values()) * dos.get_delta_energy(), 1.0)

    def test_ldos_summed_equals_dos(self):
        self.pe.set_energy_window(-2.0, 2.0, 41, smoothing=0.1)
        dos     = self.pe.calculate_dos()
        ldos    = self.pe.calculate_ldos([(SUM_ALL,)])
        assert np.allclose(ldos.get_block((SUM_ALL,)), dos.get_values())

    def test_greens_function_formula(self):
        self.pe.set_energy_window(-2.0, 2.0, 9)
        self.pe.set_energy_infinitesimal(0.05)
        gf = self.pe.calculate_greens_function([Index.compound((0,), (1,))], GreensFunctionType.RETARDED)
        E       = np.linspace(-2.0, 2.0, 9)
        En      = self.store.eigenvalues
        num     = np.array([self.store.amplitude(n, (0,)) * np.conj(self.store.amplitude(n, (1,))) for n in range(2)])
        manual  = (1.0 / (E[:, None] - En[None, :] + 0.05j)) @ num
        assert np.allclose(gf.get_block(Index.compound(0, 1)), manual)
        assert gf.type is GreensFunctionType.RETARDED

    def test_entropy_zero_temperature(self):
        assert self.pe.calculate_entropy() == pytest.approx(0.0)

# -----------------------------------------------------------------------------

class TestPatternEquivalence:

    def setup_method(self):
        self.store  = spin_chain()
        self.pe     = PropertyExtractor(self.store)
        self.pe.set_energy_window(-3.0, 3.0, 61, smoothing=0.05)

    def test_ldos_call_shapes_agree(self):
        ranged  = self.pe.calculate_ldos((ALL, SUM_ALL), ranges=(4, 2))
        custom  = self.pe.calculate_ldos([(ALL, SUM_ALL)])
        assert ranged.layout is IndexLayout.RANGES
        assert custom.layout is IndexLayout.CUSTOM
        assert ranged.get_ranges_data().shape == (4, 61)
        for key in custom.indices:
            assert np.allclose(ranged.get_block(key), custom.get_block(key))

    def test_ldos_sum_equals_manual_enumeration(self):
        summed  = self.pe.calculate_ldos([(ALL, SUM_ALL)])
        single  = self.pe.calculate_ldos([(ALL, ALL)])
        for x in range(4):
            manual = single.get_block((x, 0)) + single.get_block((x, 1))
            assert np.allclose(summed.get_block((x, SUM_ALL)), manual)

    def test_single_pattern_without_list(self):
        a = self.pe.calculate_ldos((1, ALL))
        b = self.pe.calculate_ldos([(1, ALL)])
        assert a.indices == b.indices
        assert np.allclose(a.get_data(), b.get_data())

    def test_density_call_shapes_agree(self):
        ranged  = self.pe.calculate_density((ALL, SUM_ALL), ranges=(4, 2))
        custom  = self.pe.calculate_density([(ALL, SUM_ALL)])
        for x in range(4):
            assert ranged((x, SUM_ALL)) == pytest.approx(custom((x, SUM_ALL)))

    def test_density_total_is_particle_number(self):
        total   = self.pe.calculate_density([(SUM_ALL, SUM_ALL)])
        n_occ   = np.sum(fermi_dirac(self.store.eigenvalues))
        assert total((SUM_ALL, SUM_ALL)) == pytest.approx(n_occ)

    def test_overlapping_patterns_single_block(self):
        density = self.pe.calculate_density([(0, ALL), (ALL, 0)])
        keys    = list(density.indices)
        assert len(keys) == len(set(keys))
        assert Index((0, 0)) in density

    def test_ranges_absent_index_is_zero(self):
        ldos = self.pe.calculate_ldos((ALL, SUM_ALL), ranges=(6, 2))
        assert np.allclose(ldos.get_block((5, SUM_ALL)), 0.0)

    def test_threaded_traversal_matches_serial(self):
        threaded = PropertyExtractor(self.store, n_workers=4)
        threaded.set_energy_window(-3.0, 3.0, 61, smoothing=0.05)
        a = self.pe.calculate_ldos([(ALL, ALL)])
        b = threaded.calculate_ldos([(ALL, ALL)])
        assert a.indices == b.indices
        assert np.allclose(a.get_data(), b.get_data())

    def test_rank_error(self):
        with pytest.raises(IndexRankError):
            self.pe.calculate_ldos([(ALL, ALL, ALL)])

    def test_container_is_read_only(self):
        ldos = self.pe.calculate_ldos([(ALL, SUM_ALL)])
        with pytest.raises(ValueError):
            ldos.get_data()[0, 0] = 1.0

    def test_unknown_index_lookup(self):
        ldos = self.pe.calculate_ldos([(0, SUM_ALL)])
        with pytest.raises(PropertyError) as err:
            ldos.get_block((1, SUM_ALL))
        assert err.value.code is PropertyErrorMsg.INDEX_NOT_FOUND

# -----------------------------------------------------------------------------

class TestSpinResolved:

    def setup_method(self):
        self.store  = spin_chain(hz=0.3, hx=0.2)
        self.pe     = PropertyExtractor(self.store)

    def manual_magnetization(self, x):
        f = fermi_dirac(self.store.eigenvalues)
        m = np.zeros((2, 2), dtype=complex)
        for n, fn in enumerate(f):
            u = np.array([self.store.amplitude(n, (x, 0)), self.store.amplitude(n, (x, 1))])
            m += fn * np.outer(np.conj(u), u)
        return m

    def test_magnetization_matches_manual(self):
        mag = self.pe.calculate_magnetization([(ALL, SPIN)])
        for x in range(4):
            assert np.allclose(mag.get_spin_matrix((x, SPIN)), self.manual_magnetization(x))

    def test_magnetization_call_shapes_agree(self):
        ranged  = self.pe.calculate_magnetization((ALL, SPIN), ranges=(4, 2))
        custom  = self.pe.calculate_magnetization([(ALL, SPIN)])
        assert np.allclose(ranged.get_data(), custom.get_data())

    def test_ranges_spin_extent_not_two_rejected(self):
        with pytest.raises(PropertyError) as err:
            self.pe.calculate_magnetization((ALL, SPIN), ranges=(4, 1))
        assert err.value.code is PropertyErrorMsg.INVALID_INPUT
        with pytest.raises(PropertyError):
            self.pe.calculate_spin_polarized_ldos((ALL, SPIN), ranges=(4, 1))

    def test_magnetization_trace_is_density(self):
        mag     = self.pe.calculate_magnetization([(ALL, SPIN)])
        density = self.pe.calculate_density([(ALL, SUM_ALL)])
        for x in range(4):
            assert np.trace(mag((x, SPIN))).real == pytest.approx(density((x, SUM_ALL)))

    def test_magnetization_requires_spin_subindex(self):
        with pytest.raises(PropertyError) as err:
            self.pe.calculate_magnetization([(ALL, SUM_ALL)])
        assert err.value.code is PropertyErrorMsg.INVALID_INPUT

    def test_spin_polarized_ldos_completeness(self):
        """Window covering the spectrum: the energy integral is the identity."""
        self.pe.set_energy_window(-3.0, 3.0, 121)
        sp      = self.pe.calculate_spin_polarized_ldos([(ALL, SPIN)])
        dE      = sp.get_delta_energy()
        assert sp.get_num_energies() == 121
        for x in range(4):
            integral = sp.get_block((x, SPIN)).reshape(-1, 2, 2).sum(axis=0) * dE
            assert np.allclose(integral, np.eye(2))

    def test_spin_polarized_ldos_trace_is_ldos(self):
        self.pe.set_energy_window(-3.0, 3.0, 61, smoothing=0.1)
        sp      = self.pe.calculate_spin_polarized_ldos((ALL, SPIN), ranges=(4, 2))
        ldos    = self.pe.calculate_ldos([(ALL, SUM_ALL)])
        for x in range(4):
            trace = np.array([np.trace(sp((x, SPIN), n)) for n in range(61)])
            assert np.allclose(trace.real, ldos.get_block((x, SUM_ALL)))

    def test_expectation_value_diagonal_is_density(self):
        density = self.pe.calculate_density([(ALL, ALL)])
        assert self.pe.calculate_expectation_value((1, 0), (1, 0)) == pytest.approx(density((1, 0)))

    def test_expectation_value_off_diagonal(self):
        mag = self.pe.calculate_magnetization([(2, SPIN)])
        # m[0, 1] = sum_n f conj(psi(2, 0)) psi(2, 1) = <c^dagger_{2,0} c_{2,1}>
        assert self.pe.calculate_expectation_value((2, 1), (2, 0)) == pytest.approx(mag((2, SPIN))[0, 1])

    def test_expectation_value_unknown_index(self):
        with pytest.raises(PropertyError) as err:
            self.pe.calculate_expectation_value((9, 0), (0, 0))
        assert err.value.code is PropertyErrorMsg.INDEX_NOT_FOUND

    def test_entropy_finite_temperature(self):
        self.pe.set_occupation(temperature=0.2)
        f       = fermi_dirac(self.store.eigenvalues, 0.0, 0.2)
        manual  = -np.sum(f * np.log(f) + (1 - f) * np.log(1 - f))
        assert self.pe.calculate_entropy() == pytest.approx(manual)

    def test_set_occupation_keeps_unset_fields(self):
        self.pe.set_occupation(chemical_potential=0.4, temperature=0.1)
        self.pe.set_occupation(temperature=0.3)
        assert self.pe.occupation.chemical_potential == 0.4
        assert self.pe.occupation.temperature == 0.3
        assert self.pe.occupation.statistics is Statistics.FERMI_DIRAC

# -----------------------------------------------------------------------------

class TestWaveFunctions:

    def setup_method(self):
        self.store  = spin_chain()
        self.pe     = PropertyExtractor(self.store)

    def test_selected_states(self):
        wf = self.pe.calculate_wave_functions([(ALL, 0)], [0, 3])
        assert wf.states == (0, 3)
        assert len(wf) == 4
        assert wf((2, 0), 3) == self.store.amplitude(3, (2, 0))

    def test_all_states(self):
        wf = self.pe.calculate_wave_functions([(1, 1)], [ALL_STATES])
        assert wf.block_size == self.store.eigenvalue_count
        assert np.allclose(wf.get_block((1, 1)), [self.store.amplitude(n, (1, 1)) for n in range(8)])

    def test_state_out_of_range(self):
        with pytest.raises(PropertyError) as err:
            self.pe.calculate_wave_functions([(ALL, 0)], [8])
        assert err.value.code is PropertyErrorMsg.STATE_OUT_OF_RANGE

    def test_state_not_extracted(self):
        wf = self.pe.calculate_wave_functions([(0, 0)], [1])
        with pytest.raises(PropertyError):
            wf((0, 0), 2)

    def test_sum_pattern_rejected(self):
        with pytest.raises(PropertyError):
            self.pe.calculate_wave_functions([(ALL, SUM_ALL)], [0])

# -----------------------------------------------------------------------------

class TestGreensFunction:

    def setup_method(self):
        self.store  = spin_chain(hx=0.2)
        self.pe     = PropertyExtractor(self.store)
        self.pe.set_energy_window(-3.0, 3.0, 31)
        self.pe.set_energy_infinitesimal(0.1)

    def test_retarded_advanced_conjugate(self):
        pattern = [Index.compound((ALL, ALL), (ALL, ALL))]
        gr      = self.pe.calculate_greens_function(pattern, GreensFunctionType.RETARDED)
        ga      = self.pe.calculate_greens_function(pattern, GreensFunctionType.ADVANCED)
        for key in gr.indices:
            to, frm = key.split()
            assert np.allclose(ga.get_block(key), np.conj(gr.get_block(Index.compound(frm, to))))

    def test_spectral_weight_sign(self):
        gr = self.pe.calculate_greens_function([Index.compound((ALL, 0), (ALL, 0))])
        for x in range(4):
            assert np.all(gr.get_block(Index.compound((x, 0), (x, 0))).imag <= 0)

    def test_spectral_function_from_retarded(self):
        pattern = [Index.compound((ALL, 0), (ALL, 0))]
        gr      = self.pe.calculate_greens_function(pattern)
        a       = self.pe.calculate_spectral_function(pattern)
        assert a.indices == gr.indices
        assert np.allclose(a.get_data(), -gr.get_data().imag / np.pi)
        assert np.all(a.get_data() >= 0)
        key = Index.compound((1, 0), (1, 0))
        assert a(key, 3) == pytest.approx(-gr(key, 3).imag / np.pi)

    def test_spectral_function_needs_retarded(self):
        ga = self.pe.calculate_greens_function([Index.compound((0, 0), (0, 0))], GreensFunctionType.ADVANCED)
        with pytest.raises(PropertyError) as err:
            SpectralFunction.from_greens_function(ga)
        assert err.value.code is PropertyErrorMsg.INVALID_INPUT

    def test_matsubara(self):
        self.pe.set_occupation(chemical_potential=0.1, temperature=0.05)
        self.pe.set_num_matsubara_energies(4)
        gm = self.pe.calculate_greens_function([Index.compound((0, 0), (1, 0))], GreensFunctionType.MATSUBARA)
        w       = 1j * np.pi * 0.05 * np.array([1, 3, 5, 7])
        En      = self.store.eigenvalues
        num     = np.array([self.store.amplitude(n, (0, 0)) * np.conj(self.store.amplitude(n, (1, 0)))
                            for n in range(self.store.eigenvalue_count)])
        manual  = (1.0 / (w[:, None] + 0.1 - En[None, :])) @ num
        assert np.allclose(gm.get_block(Index.compound((0, 0), (1, 0))), manual)
        assert gm.get_num_matsubara_energies() == 4
        assert gm.get_temperature() == 0.05

    def test_matsubara_needs_temperature(self):
        with pytest.raises(PropertyError):
            self.pe.calculate_greens_function([Index.compound((0, 0), (1, 0))], GreensFunctionType.MATSUBARA)

    def test_compound_arity(self):
        with pytest.raises(PropertyError) as err:
            self.pe.calculate_greens_function([Index.compound((0, 0), (1, 0), (2, 0))])
        assert err.value.code is PropertyErrorMsg.COMPOUND_ARITY

    def test_lease_released_on_success_and_failure(self):
        pool    = DevicePool(num_devices=1)
        pe      = PropertyExtractor(self.store, device_pool=pool)
        pe.calculate_greens_function([Index.compound((0, 0), (0, 0))])
        assert pool.num_free == 1

        with mock.patch.object(GreensFunctionAccumulator, "accumulate", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                pe.calculate_greens_function([Index.compound((0, 0), (0, 0))])
        assert pool.num_free == 1

# -----------------------------------------------------------------------------

class TestErrorLogging:

    def test_errors_logged_before_raising(self):
        logger  = mock.MagicMock()
        pe      = PropertyExtractor(toy_model(), logger=logger)
        with pytest.raises(PropertyError):
            pe.get_eigenvalue(5)
        logger.error.assert_called_once()
        assert "get_eigenvalue" in logger.error.call_args[0][0]

    def test_invalid_configuration(self):
        pe = PropertyExtractor(toy_model())
        with pytest.raises(PropertyError):
            pe.set_energy_window(1.0, -1.0, 10)
        with pytest.raises(PropertyError):
            pe.set_energy_infinitesimal(-1.0)
        with pytest.raises(PropertyError):
            pe.set_occupation(temperature=-0.1)
        with pytest.raises(PropertyError):
            PropertyExtractor(toy_model(), n_workers=0)
        with pytest.raises(PropertyError):
            PropertyExtractor(object())
