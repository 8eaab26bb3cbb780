import pytest
import numpy as np

from eigprops.physics.spectral import (
    EnergyType, EnergyWindow, MatsubaraGrid, Kernel, DepositPolicy, TieBreak, matsubara_energies,
)
from eigprops.common.errors import PropertyError, PropertyErrorMsg

class TestEnergyWindow:

    def setup_method(self):
        self.window = EnergyWindow(-2.0, 2.0, 5)

    def test_grid(self):
        assert self.window.dE == 1.0
        assert np.allclose(self.window.energies(), [-2.0, -1.0, 0.0, 1.0, 2.0])

    def test_nearest_deposit(self):
        hist = self.window.histogram(np.array([-1.1, 0.9, 0.95]))
        assert np.allclose(hist, [0.0, 1.0, 0.0, 2.0, 0.0])

    def test_weight_is_divided_by_dE(self):
        window  = EnergyWindow(-1.0, 1.0, 5)
        hist    = window.histogram(np.array([0.0]), np.array([3.0]))
        assert np.isclose(hist[2], 3.0 / 0.5)
        # integral of the deposited density equals the total weight
        assert np.isclose(np.sum(hist) * window.dE, 3.0)

    def test_tie_break(self):
        value = np.array([-0.5])
        lower = EnergyWindow(-2.0, 2.0, 5, tie_break=TieBreak.LOWER).histogram(value)
        upper = EnergyWindow(-2.0, 2.0, 5, tie_break=TieBreak.UPPER).histogram(value)
        assert np.argmax(lower) == 1
        assert np.argmax(upper) == 2

    def test_out_of_window_dropped(self):
        hist = self.window.histogram(np.array([-3.0, 2.4, 2.6, 10.0]))
        assert np.allclose(hist, [0.0, 0.0, 0.0, 0.0, 1.0])

    def test_linear_deposit(self):
        window  = EnergyWindow(-2.0, 2.0, 5, deposit=DepositPolicy.LINEAR)
        hist    = window.histogram(np.array([0.25]))
        assert np.allclose(hist, [0.0, 0.0, 0.75, 0.25, 0.0])

    def test_multichannel_weights(self):
        weights = np.array([[1.0, 2.0], [3.0, 4.0]])
        hist    = self.window.histogram(np.array([-1.0, 1.0]), weights)
        assert hist.shape == (5, 2)
        assert np.allclose(hist[1], [1.0, 2.0])
        assert np.allclose(hist[3], [3.0, 4.0])

    def test_zero_smoothing_equals_histogram(self):
        values = np.array([-1.3, 0.2, 0.7, 1.9])
        assert np.array_equal(self.window.broaden(values), self.window.histogram(values))

    @pytest.mark.parametrize("kernel", [Kernel.GAUSSIAN, Kernel.LORENTZIAN])
    def test_smoothing_kernels(self, kernel):
        window  = EnergyWindow(-5.0, 5.0, 101, smoothing=0.3, kernel=kernel)
        raw     = window.histogram(np.array([0.0]))
        smooth  = window.broaden(np.array([0.0]))
        # normalized kernel, peak well inside the window: weight conserved
        assert np.isclose(np.sum(smooth), np.sum(raw), rtol=5e-2)
        assert np.argmax(smooth) == 50
        assert smooth[50] < raw[50]
        assert np.allclose(smooth, smooth[::-1])

    def test_kernel_weights_normalized(self):
        window = EnergyWindow(-1.0, 1.0, 21, smoothing=0.1)
        assert np.isclose(np.sum(window.kernel_weights()), 1.0)

    def test_invalid(self):
        with pytest.raises(PropertyError):
            EnergyWindow(-1.0, 1.0, 1)
        with pytest.raises(PropertyError):
            EnergyWindow(1.0, -1.0, 10)
        with pytest.raises(PropertyError):
            EnergyWindow(-1.0, 1.0, 10, smoothing=-0.1)
        with pytest.raises(PropertyError):
            EnergyWindow(-1.0, 1.0, 10, kernel="gaussian")

class TestMatsubara:

    def test_fermionic(self):
        T = 0.1
        w = matsubara_energies(T, 3, EnergyType.FERMIONIC_MATSUBARA)
        assert np.allclose(w, 1j * np.pi * T * np.array([1, 3, 5]))

    def test_bosonic(self):
        grid = MatsubaraGrid(0.5, 3, EnergyType.BOSONIC_MATSUBARA)
        assert np.allclose(grid.energies(), 1j * np.pi * np.array([0, 1, 2]))

    def test_invalid(self):
        with pytest.raises(PropertyError):
            MatsubaraGrid(0.0, 3)
        with pytest.raises(PropertyError) as err:
            MatsubaraGrid(0.1, 3, EnergyType.REAL)
        assert err.value.code is PropertyErrorMsg.UNKNOWN_ENERGY_TYPE
