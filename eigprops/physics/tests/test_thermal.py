import pytest
import numpy as np

from eigprops.physics.thermal import (
    Occupation, Statistics, bose_einstein, entropy_occupation, fermi_dirac,
)
from eigprops.common.errors import PropertyError

class TestOccupation:

    def test_fermi_dirac_zero_temperature(self):
        f = fermi_dirac(np.array([-1.0, 0.0, 1.0]), chemical_potential=0.0, temperature=0.0)
        assert np.allclose(f, [1.0, 0.5, 0.0])

    def test_fermi_dirac_finite_temperature(self):
        E = np.array([-0.3, 0.1, 2.0])
        f = fermi_dirac(E, chemical_potential=0.1, temperature=0.2)
        assert np.allclose(f, 1.0 / (np.exp((E - 0.1) / 0.2) + 1.0))
        assert np.isclose(f[1], 0.5)

    def test_fermi_dirac_large_argument_stable(self):
        f = fermi_dirac(np.array([-1e3, 1e3]), temperature=1e-3)
        assert np.all(np.isfinite(f))
        assert np.allclose(f, [1.0, 0.0])

    def test_bose_einstein(self):
        E = np.array([0.5, 1.0])
        n = bose_einstein(E, chemical_potential=0.0, temperature=0.5)
        assert np.allclose(n, 1.0 / (np.exp(E / 0.5) - 1.0))
        with pytest.raises(PropertyError):
            bose_einstein(E, chemical_potential=0.7, temperature=0.5)
        with pytest.raises(PropertyError):
            bose_einstein(E, temperature=0.0)

    def test_negative_temperature(self):
        with pytest.raises(PropertyError):
            fermi_dirac(np.zeros(2), temperature=-1.0)

    def test_policy(self):
        occ = Occupation(chemical_potential=0.5)
        assert np.allclose(occ(np.array([0.0, 1.0])), [1.0, 0.0])
        occ = Occupation(temperature=1.0, statistics=Statistics.BOSE_EINSTEIN)
        assert occ(np.array([1.0]))[0] > 0

class TestEntropy:

    def test_pure_occupations_have_zero_entropy(self):
        assert entropy_occupation(np.array([0.0, 1.0, 1.0])) == 0.0

    def test_half_filling(self):
        assert np.isclose(entropy_occupation(np.array([0.5, 0.5])), 2.0 * np.log(2.0))

    def test_bosons(self):
        n = np.array([1.0])
        assert np.isclose(entropy_occupation(n, Statistics.BOSE_EINSTEIN), 2.0 * np.log(2.0))
