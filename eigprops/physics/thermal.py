"""
eigprops/physics/thermal.py

Occupation statistics for single-particle eigenstates.

Provides:
- Fermi-Dirac and Bose-Einstein occupation numbers
- The Occupation policy (chemical potential, temperature, statistics) used by
  Density, Magnetization, ExpectationValue and Entropy
- Single-particle entropy of a set of occupation numbers

We set k_B = 1 (natural units), so `temperature` is an energy.
"""

from dataclasses import dataclass
from enum import Enum, unique

import numpy as np
from scipy.special import expit, xlogy

from ..algebra.utils import Array
from ..common.errors import PropertyError, PropertyErrorMsg

# =============================================================================
# Occupation numbers
# =============================================================================

@unique
class Statistics(Enum):
    FERMI_DIRAC     = "fermi-dirac"
    BOSE_EINSTEIN   = "bose-einstein"

def fermi_dirac(energies: Array, chemical_potential: float = 0.0, temperature: float = 0.0) -> Array:
    r"""
    Fermi-Dirac occupation f(E) = 1 / (exp((E - \mu)/T) + 1).

    Parameters
    ----------
    energies : array-like
        Eigenenergies E_n.
    chemical_potential : float
        \mu.
    temperature : float
        T >= 0. At T = 0 the step function is returned, with f = 1/2 at E = \mu.

    Returns
    -------
    Array
        Occupation numbers in [0, 1].
    """
    energies = np.asarray(energies, dtype=float)
    if temperature < 0:
        raise PropertyError(PropertyErrorMsg.INVALID_INPUT, f"fermi_dirac(): negative temperature {temperature}.")
    if temperature == 0:
        return np.where(energies < chemical_potential, 1.0, np.where(energies == chemical_potential, 0.5, 0.0))
    # expit is the logistic function, stable for large |x|
    return expit(-(energies - chemical_potential) / temperature)

def bose_einstein(energies: Array, chemical_potential: float = 0.0, temperature: float = 0.0) -> Array:
    r"""
    Bose-Einstein occupation n(E) = 1 / (exp((E - \mu)/T) - 1).

    Requires T > 0 and E > \mu for every level.
    """
    energies = np.asarray(energies, dtype=float)
    if temperature <= 0:
        raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                f"bose_einstein(): temperature must be positive, got {temperature}.")
    if np.any(energies <= chemical_potential):
        raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                f"bose_einstein(): every energy must lie above the chemical potential {chemical_potential}.")
    return 1.0 / np.expm1((energies - chemical_potential) / temperature)

# =============================================================================
# Occupation policy
# =============================================================================

@dataclass(frozen=True)
class Occupation:
    r"""
    Occupation policy applied to eigenvalues.

    Attributes
    ----------
    chemical_potential : float
        \mu (default 0).
    temperature : float
        T (default 0).
    statistics : Statistics
        Fermi-Dirac (default) or Bose-Einstein.

    Examples
    --------
    >>> occ = Occupation(chemical_potential=0.0, temperature=0.1)
    >>> occ(np.array([-1.0, 1.0]))
    """
    chemical_potential  : float         = 0.0
    temperature         : float         = 0.0
    statistics          : Statistics    = Statistics.FERMI_DIRAC

    def __call__(self, energies: Array) -> Array:
        if self.statistics is Statistics.FERMI_DIRAC:
            return fermi_dirac(energies, self.chemical_potential, self.temperature)
        if self.statistics is Statistics.BOSE_EINSTEIN:
            return bose_einstein(energies, self.chemical_potential, self.temperature)
        raise PropertyError(PropertyErrorMsg.INVALID_INPUT, f"Occupation(): unknown statistics {self.statistics!r}.")

# =============================================================================
# Entropy
# =============================================================================

def entropy_occupation(occupations: Array, statistics: Statistics = Statistics.FERMI_DIRAC) -> float:
    r"""
    Single-particle entropy from occupation numbers.

    Fermions : S = -\sum_n [f ln f + (1-f) ln(1-f)]
    Bosons   : S =  \sum_n [(1+n) ln(1+n) - n ln n]

    Terms with f = 0 or f = 1 contribute zero.
    """
    f = np.asarray(occupations, dtype=float)
    if statistics is Statistics.FERMI_DIRAC:
        return float(-np.sum(xlogy(f, f) + xlogy(1.0 - f, 1.0 - f)))
    if statistics is Statistics.BOSE_EINSTEIN:
        return float(np.sum(xlogy(1.0 + f, 1.0 + f) - xlogy(f, f)))
    raise PropertyError(PropertyErrorMsg.INVALID_INPUT, f"entropy_occupation(): unknown statistics {statistics!r}.")

# =============================================================================
# Exports
# =============================================================================

__all__ = [
    'Statistics',
    'fermi_dirac',
    'bose_einstein',
    'Occupation',
    'entropy_occupation',
]
