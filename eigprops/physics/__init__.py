r"""
Physics module: properties extracted from an eigen-decomposition.

Organization:
-------------

**Extraction:**
- extractor                     : PropertyExtractor (pattern traversal over an EigenstateStore)
- accumulators                  : One accumulator per property (DOS, Density, Magnetization,
                                  LDOS, SpinPolarizedLDOS, WaveFunctions, GreensFunction, Vertex)
- vertex                        : ElectronFluctuationVertex and InteractionAmplitude

**Containers:**
- properties                    : Read-only containers (EigenValues, DOS, Density, Magnetization,
                                  LDOS, SpinPolarizedLDOS, WaveFunctions, GreensFunction, SpectralFunction,
                                  Susceptibility)

**Energies and occupations:**
- spectral.broadening           : EnergyWindow (deposit + Gaussian/Lorentzian smoothing), MatsubaraGrid
- thermal                       : Fermi-Dirac / Bose-Einstein occupations and entropy

Examples:
---------
>>> from eigprops.physics import PropertyExtractor, GreensFunctionType
>>> from eigprops.indexing import Index, ALL, SUM_ALL
>>> pe  = PropertyExtractor(store)
>>> pe.set_energy_window(-3.0, 3.0, 301, smoothing=0.05)
>>> ldos = pe.calculate_ldos((ALL, SUM_ALL), ranges=(10, 2))
>>> G    = pe.calculate_greens_function([Index.compound((0, ALL), (0, 0))], GreensFunctionType.RETARDED)

File    : eigprops/physics/__init__.py
Version : 0.1.0
License : MIT
"""

from . import thermal
from . import spectral
from . import properties

from .thermal import Occupation, Statistics
from .spectral import EnergyType, EnergyWindow, MatsubaraGrid, Kernel, DepositPolicy, TieBreak
from .properties import (
    IndexLayout, EigenValues, DOS, Density, Magnetization, LDOS, SpinPolarizedLDOS,
    WaveFunctions, GreensFunctionType, GreensFunction, SpectralFunction, Susceptibility,
)
from .extractor import PropertyExtractor
from .vertex import ElectronFluctuationVertex, InteractionAmplitude

__all__ = [
    # Submodules
    'thermal',
    'spectral',
    'properties',

    # Energies and occupations
    'Occupation',
    'Statistics',
    'EnergyType',
    'EnergyWindow',
    'MatsubaraGrid',
    'Kernel',
    'DepositPolicy',
    'TieBreak',

    # Containers
    'IndexLayout',
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

    # Extraction
    'PropertyExtractor',
    'ElectronFluctuationVertex',
    'InteractionAmplitude',
]

def list_capabilities():
    """
    List the available properties and energy representations.
    """
    return {
        'properties'    : ['EigenValues', 'DOS', 'Density', 'Magnetization', 'LDOS', 'SpinPolarizedLDOS',
                           'WaveFunctions', 'GreensFunction', 'SpectralFunction', 'ExpectationValue', 'Entropy', 'SelfEnergyVertex'],
        'energies'      : [e.value for e in EnergyType],
        'layouts'       : [l.value for l in IndexLayout],
    }

# ------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------
