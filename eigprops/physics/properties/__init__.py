"""
eigprops/physics/properties

Read-only property containers returned by the PropertyExtractor.

Modules:
--------
- base          : IndexLayout, AbstractProperty and EnergyResolvedProperty
- containers    : EigenValues, DOS, Density, Magnetization, LDOS,
                  SpinPolarizedLDOS, WaveFunctions, GreensFunction, SpectralFunction,
                  Susceptibility
"""

from .base import IndexLayout, AbstractProperty, EnergyResolvedProperty
from .containers import (
    EigenValues, DOS, Density, Magnetization, LDOS, SpinPolarizedLDOS,
    WaveFunctions, GreensFunctionType, GreensFunction, SpectralFunction, Susceptibility,
)

__all__ = [
    'IndexLayout',
    'AbstractProperty',
    'EnergyResolvedProperty',
    'EigenValues',
    'DOS',
    'Density',
    'Magnetization',
    'LDOS',
    'SpinPolarizedLDOS',
    'WaveFunctions',
    'GreensFunctionType',
    'GreensFunction',
    'SpectralFunction',
    'Susceptibility',
]
