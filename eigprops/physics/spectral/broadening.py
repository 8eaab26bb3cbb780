"""
eigprops/physics/spectral/broadening.py

Energy discretization and broadening for energy-resolved properties.

An EnergyWindow turns a continuous request (lower bound, upper bound,
resolution, smoothing width) into `resolution` evenly spaced energies

    E_n = lower + n * dE,   dE = (upper - lower) / (resolution - 1),

deposits Dirac-like eigenvalue contributions of weight w/dE on that grid and,
for a positive smoothing width, convolves the result with a normalized
Gaussian or Lorentzian kernel. Matsubara grids replace the real axis with
discrete imaginary frequencies and are never smoothed.
"""

import math
from dataclasses import dataclass
from enum import Enum, unique
from typing import Optional, Tuple

import numba
import numpy as np
from scipy import signal
from scipy.stats import cauchy, norm

from ...algebra.utils import Array
from ...common.errors import PropertyError, PropertyErrorMsg

# =============================================================================
# Options
# =============================================================================

@unique
class EnergyType(Enum):
    REAL                = "real"
    FERMIONIC_MATSUBARA = "fermionic-matsubara"
    BOSONIC_MATSUBARA   = "bosonic-matsubara"

@unique
class Kernel(Enum):
    GAUSSIAN    = "gaussian"        # smoothing = standard deviation
    LORENTZIAN  = "lorentzian"      # smoothing = half width at half maximum

@unique
class DepositPolicy(Enum):
    NEAREST     = "nearest"         # whole weight on the nearest energy point
    LINEAR      = "linear"          # weight split linearly between the two neighbours

@unique
class TieBreak(Enum):
    LOWER       = "lower"           # value halfway between two points goes to the lower one
    UPPER       = "upper"

# =============================================================================
# Binning kernels
# =============================================================================

@numba.njit(cache=True)
def _nearest_bins(values: np.ndarray, lower: float, inv_dE: float, resolution: int, upper_tie: bool) -> np.ndarray:
    """
    Nearest grid point for each value, -1 when it falls outside the window.
    """
    out = np.empty(values.shape[0], dtype=np.int64)
    for i in range(values.shape[0]):
        x = (values[i] - lower) * inv_dE
        if upper_tie:
            n = int(math.floor(x + 0.5))
        else:
            n = int(math.ceil(x - 0.5))
        out[i] = n if 0 <= n < resolution else -1
    return out

@numba.njit(cache=True)
def _linear_bins(values: np.ndarray, lower: float, inv_dE: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Left grid point and fractional distance to it for each value.
    """
    left    = np.empty(values.shape[0], dtype=np.int64)
    frac    = np.empty(values.shape[0], dtype=np.float64)
    for i in range(values.shape[0]):
        x       = (values[i] - lower) * inv_dE
        n       = int(math.floor(x))
        left[i] = n
        frac[i] = x - n
    return left, frac

# =============================================================================
# Energy window
# =============================================================================

@dataclass(frozen=True)
class EnergyWindow:
    """
    Real-axis energy grid with deposit and smoothing configuration.

    Attributes
    ----------
    lower, upper : float
        Energy bounds, both included in the grid.
    resolution : int
        Number of energy points (>= 2).
    smoothing : float
        Kernel width; 0 disables smoothing.
    kernel : Kernel
        GAUSSIAN (default) or LORENTZIAN.
    deposit : DepositPolicy
        NEAREST (default) or LINEAR.
    tie_break : TieBreak
        Where a value exactly halfway between two points goes (NEAREST only).

    Examples
    --------
    >>> window = EnergyWindow(-2.0, 2.0, 5)
    >>> window.energies()
    array([-2., -1.,  0.,  1.,  2.])
    >>> window.broaden(np.array([-1.0, 1.0]))
    array([0.,  1.,  0.,  1.,  0.])
    """
    lower       : float
    upper       : float
    resolution  : int
    smoothing   : float         = 0.0
    kernel      : Kernel        = Kernel.GAUSSIAN
    deposit     : DepositPolicy = DepositPolicy.NEAREST
    tie_break   : TieBreak      = TieBreak.LOWER

    def __post_init__(self):
        if int(self.resolution) != self.resolution or self.resolution < 2:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"EnergyWindow(): resolution must be an integer >= 2, got {self.resolution}.")
        object.__setattr__(self, "resolution", int(self.resolution))
        if not self.upper > self.lower:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"EnergyWindow(): upper bound {self.upper} must exceed lower bound {self.lower}.")
        if self.smoothing < 0:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"EnergyWindow(): smoothing width must be non-negative, got {self.smoothing}.")
        for name, enum in (("kernel", Kernel), ("deposit", DepositPolicy), ("tie_break", TieBreak)):
            if not isinstance(getattr(self, name), enum):
                raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                        f"EnergyWindow(): {name} must be a {enum.__name__}, got {getattr(self, name)!r}.")

    # -------------------------------------------------------------------------

    @property
    def dE(self) -> float:
        return (self.upper - self.lower) / (self.resolution - 1)

    def energies(self) -> np.ndarray:
        return np.linspace(self.lower, self.upper, self.resolution)

    # -------------------------------------------------------------------------

    def histogram(self, values: Array, weights: Optional[Array] = None) -> np.ndarray:
        """
        Deposit weighted Dirac contributions on the grid.

        Parameters
        ----------
        values : array-like, shape (N,)
            Eigenvalues.
        weights : array-like, shape (N,) or (N, k), optional
            Weight per eigenvalue (per channel). Defaults to ones.

        Returns
        -------
        ndarray, shape (resolution,) or (resolution, k)
            Deposited weights divided by dE.
        """
        values  = np.ascontiguousarray(values, dtype=np.float64)
        weights = np.ones(values.shape[0]) if weights is None else np.asarray(weights)
        if weights.shape[0] != values.shape[0]:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"EnergyWindow.histogram(): {values.shape[0]} values but {weights.shape[0]} weights.")

        out     = np.zeros((self.resolution,) + weights.shape[1:], dtype=np.result_type(weights.dtype, np.float64))
        inv_dE  = 1.0 / self.dE

        if self.deposit is DepositPolicy.NEAREST:
            bins    = _nearest_bins(values, self.lower, inv_dE, self.resolution, self.tie_break is TieBreak.UPPER)
            keep    = bins >= 0
            np.add.at(out, bins[keep], weights[keep] * inv_dE)
        else:
            left, frac  = _linear_bins(values, self.lower, inv_dE)
            frac        = frac.reshape((-1,) + (1,) * (weights.ndim - 1))
            for bins, part in ((left, 1.0 - frac), (left + 1, frac)):
                keep = (bins >= 0) & (bins < self.resolution)
                np.add.at(out, bins[keep], (weights * part)[keep] * inv_dE)
        return out

    def kernel_weights(self) -> np.ndarray:
        """
        Discrete smoothing kernel on offsets -(resolution-1)..(resolution-1) times dE,
        normalized to unit sum.
        """
        offsets = np.arange(-(self.resolution - 1), self.resolution) * self.dE
        if self.kernel is Kernel.GAUSSIAN:
            k = norm.pdf(offsets, loc=0.0, scale=self.smoothing)
        else:
            k = cauchy.pdf(offsets, loc=0.0, scale=self.smoothing)
        return k / np.sum(k)

    def smooth(self, data: Array) -> np.ndarray:
        """
        Convolve grid data (axis 0) with the smoothing kernel. No-op for zero smoothing.
        """
        data = np.asarray(data)
        if self.smoothing == 0:
            return data
        if data.shape[0] != self.resolution:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"EnergyWindow.smooth(): data has {data.shape[0]} energy points, expected {self.resolution}.")
        kernel = self.kernel_weights().reshape((-1,) + (1,) * (data.ndim - 1))
        return signal.convolve(data, kernel, mode='same', method='direct')

    def broaden(self, values: Array, weights: Optional[Array] = None) -> np.ndarray:
        """
        `histogram` followed by `smooth`.
        """
        return self.smooth(self.histogram(values, weights))

# =============================================================================
# Matsubara grid
# =============================================================================

@dataclass(frozen=True)
class MatsubaraGrid:
    """
    Discrete imaginary-axis frequencies.

    fermionic : i (2n + 1) pi T
    bosonic   : i 2n pi T
    for n in [0, num_energies).
    """
    temperature     : float
    num_energies    : int
    energy_type     : EnergyType = EnergyType.FERMIONIC_MATSUBARA

    def __post_init__(self):
        if self.temperature <= 0:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"MatsubaraGrid(): temperature must be positive, got {self.temperature}.")
        if int(self.num_energies) != self.num_energies or self.num_energies < 1:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"MatsubaraGrid(): num_energies must be a positive integer, got {self.num_energies}.")
        object.__setattr__(self, "num_energies", int(self.num_energies))
        if self.energy_type not in (EnergyType.FERMIONIC_MATSUBARA, EnergyType.BOSONIC_MATSUBARA):
            raise PropertyError(PropertyErrorMsg.UNKNOWN_ENERGY_TYPE,
                    f"MatsubaraGrid(): unknown Matsubara energy type {self.energy_type!r}.")

    def energies(self) -> np.ndarray:
        return matsubara_energies(self.temperature, self.num_energies, self.energy_type)

def matsubara_energies(temperature: float, num_energies: int,
                    energy_type: EnergyType = EnergyType.FERMIONIC_MATSUBARA) -> np.ndarray:
    """
    Matsubara frequencies for n in [0, num_energies).

    Parameters
    ----------
    temperature : float
        T > 0.
    num_energies : int
        Number of frequencies.
    energy_type : EnergyType
        FERMIONIC_MATSUBARA or BOSONIC_MATSUBARA.

    Returns
    -------
    ndarray, complex
        Purely imaginary frequencies.
    """
    n = np.arange(num_energies)
    if energy_type is EnergyType.FERMIONIC_MATSUBARA:
        return 1j * (2 * n + 1) * np.pi * temperature
    if energy_type is EnergyType.BOSONIC_MATSUBARA:
        return 1j * 2 * n * np.pi * temperature
    raise PropertyError(PropertyErrorMsg.UNKNOWN_ENERGY_TYPE,
            f"matsubara_energies(): unknown energy type {energy_type!r}.")

# =============================================================================
# Exports
# =============================================================================

__all__ = [
    'EnergyType',
    'Kernel',
    'DepositPolicy',
    'TieBreak',
    'EnergyWindow',
    'MatsubaraGrid',
    'matsubara_energies',
]
