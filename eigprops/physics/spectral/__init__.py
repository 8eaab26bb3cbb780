"""
eigprops/physics/spectral

Energy grids for energy-resolved properties.

Modules:
--------
- broadening            : EnergyWindow (real axis, deposit + Gaussian/Lorentzian smoothing)
                          and MatsubaraGrid (imaginary axis)
"""

from . import broadening
from .broadening import (
    EnergyType, Kernel, DepositPolicy, TieBreak,
    EnergyWindow, MatsubaraGrid, matsubara_energies,
)

__all__ = [
    'broadening',
    'EnergyType',
    'Kernel',
    'DepositPolicy',
    'TieBreak',
    'EnergyWindow',
    'MatsubaraGrid',
    'matsubara_energies',
]

# ============================================================================
#! End of file
# ============================================================================
