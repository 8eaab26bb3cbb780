import pytest
import numpy as np

from eigprops.algebra.eigen import (
    DenseEigenstateStore, EigenstateStore, ExactDiagonalizer, HoppingAmplitude, hamiltonian_from_hoppings,
)
from eigprops.indexing import IndexSpace
from eigprops.common.errors import PropertyError, PropertyErrorMsg

def chain_hoppings(n_sites, t=-1.0):
    return [HoppingAmplitude(t, (x + 1,), (x,)) for x in range(n_sites - 1)]

class TestExactDiagonalizer:

    def setup_method(self):
        self.solver = ExactDiagonalizer()

    @pytest.mark.parametrize("backend", ["scipy", "numpy"])
    def test_eigenvalues_ascending(self, backend):
        rng     = np.random.default_rng(7)
        A       = rng.normal(size=(6, 6)) + 1j * rng.normal(size=(6, 6))
        H       = A + A.conj().T
        space   = IndexSpace([(x,) for x in range(6)])
        store   = ExactDiagonalizer(backend=backend).solve(H, space)
        assert np.all(np.diff(store.eigenvalues) >= 0)
        assert isinstance(store, EigenstateStore)

    def test_two_site_toy_model(self):
        store = self.solver.solve_hoppings([HoppingAmplitude(1.0, (0,), (1,))], add_hc=True)
        assert np.allclose(store.eigenvalues, [-1.0, 1.0])
        # normalized eigenvectors
        assert np.isclose(abs(store.amplitude(0, (0,))) ** 2 + abs(store.amplitude(0, (1,))) ** 2, 1.0)

    def test_chain_spectrum(self):
        n       = 5
        store   = self.solver.solve_hoppings(chain_hoppings(n), add_hc=True)
        exact   = np.sort(-2.0 * np.cos(np.pi * np.arange(1, n + 1) / (n + 1)))
        assert np.allclose(store.eigenvalues, exact)

    def test_hamiltonian_from_hoppings_hermitian(self):
        H, space = hamiltonian_from_hoppings([(1j, (0,), (1,))], add_hc=True)
        assert space.basis_size == 2
        assert np.allclose(H, H.conj().T)
        assert H[0, 1] == 1j

    def test_rejects_non_hermitian(self):
        space = IndexSpace([(0,), (1,)])
        with pytest.raises(PropertyError):
            self.solver.solve(np.array([[0.0, 1.0], [0.0, 0.0]]), space)

    def test_rejects_wrong_shape(self):
        space = IndexSpace([(0,), (1,)])
        with pytest.raises(PropertyError):
            self.solver.solve(np.eye(3), space)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            ExactDiagonalizer(backend="lapack")

class TestDenseEigenstateStore:

    def setup_method(self):
        self.space = IndexSpace([(0,), (1,)])
        self.store = DenseEigenstateStore([-1.0, 1.0], np.eye(2), self.space)

    def test_state_out_of_range(self):
        with pytest.raises(PropertyError) as err:
            self.store.eigenvalue(2)
        assert err.value.code is PropertyErrorMsg.STATE_OUT_OF_RANGE
        with pytest.raises(PropertyError):
            self.store.amplitude(-1, (0,))

    def test_unsorted_rejected(self):
        with pytest.raises(PropertyError):
            DenseEigenstateStore([1.0, -1.0], np.eye(2), self.space)

    def test_read_only(self):
        with pytest.raises(ValueError):
            self.store.eigenvalues[0] = 5.0

    def test_amplitudes_row(self):
        assert np.allclose(self.store.amplitudes(1), [0.0, 1.0])
