"""
Concrete property containers.

- EigenValues        : ascending eigenvalues (single block)
- DOS                : density of states on an EnergyWindow (single block)
- Density            : occupied weight per index
- Magnetization      : occupied 2x2 spin matrix per site
- LDOS               : local density of states per index
- SpinPolarizedLDOS  : 2x2 spin matrix per site and energy
- WaveFunctions      : amplitudes per index and requested state
- GreensFunction     : G(to, from; E) per compound index
- SpectralFunction   : -Im G^R(E) / pi per compound index
- Susceptibility     : energy-resolved two-particle data per compound index

Spin matrices are flattened row-major as (up-up, up-down, down-up, down-down).
"""

from enum import Enum, unique
from typing import Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from .base import AbstractProperty, EnergyResolvedProperty, IndexLayout
from ..spectral.broadening import EnergyWindow, MatsubaraGrid
from ...indexing import Index
from ...common.errors import PropertyError, PropertyErrorMsg

# =============================================================================
# Scalar-per-index properties
# =============================================================================

class EigenValues(AbstractProperty):
    '''
    Eigenvalues in ascending order.
    '''

    def __init__(self, eigenvalues: NDArray):
        eigenvalues = np.array(eigenvalues, dtype=np.float64).reshape(1, -1)
        super().__init__([Index()], eigenvalues, IndexLayout.NONE)

    def __call__(self, state: int) -> float:
        if not 0 <= state < self.block_size:
            raise PropertyError(PropertyErrorMsg.STATE_OUT_OF_RANGE,
                    f"EigenValues: state {state} outside [0, {self.block_size}).")
        return float(self._data[0, state])

    def __getitem__(self, state: int) -> float:
        return self(state)

    def __len__(self) -> int:
        return self.block_size

    def __iter__(self):
        return iter(self._data[0].tolist())

    def get_values(self) -> NDArray:
        return self._data[0]

class Density(AbstractProperty):
    '''
    Occupied weight sum_n f(E_n) |psi_n(x)|^2 per output index.
    '''

    def __call__(self, index) -> float:
        return float(self._data[self._block_number(index), 0])

class Magnetization(AbstractProperty):
    '''
    Occupied spin matrix m[s, s'] = sum_n f(E_n) psi_n(x, s)^* psi_n(x, s') per site.
    '''

    def get_spin_matrix(self, index) -> NDArray:
        return self.get_block(index).reshape(2, 2)

    def __call__(self, index) -> NDArray:
        return self.get_spin_matrix(index)

# =============================================================================
# Energy-resolved properties
# =============================================================================

class DOS(EnergyResolvedProperty):
    '''
    Density of states on a real-axis EnergyWindow.
    '''

    def __init__(self, data: NDArray, window: EnergyWindow):
        data = np.asarray(data, dtype=np.float64).reshape(1, -1)
        super().__init__([Index()], data, window, IndexLayout.NONE)

    def __call__(self, n: int) -> float:
        return float(self._data[0, n])

    def get_values(self) -> NDArray:
        return self._data[0]

class LDOS(EnergyResolvedProperty):
    '''
    Local density of states sum_n |psi_n(x)|^2 delta(E - E_n) per output index.
    '''
    pass

class SpinPolarizedLDOS(EnergyResolvedProperty):
    '''
    Spin-resolved LDOS; block = resolution x (2x2 spin matrix), energy major.
    '''

    def get_spin_matrix(self, index, n: int) -> NDArray:
        return self.get_block(index).reshape(-1, 2, 2)[n]

    def __call__(self, index, n: int = 0) -> NDArray:
        return self.get_spin_matrix(index, n)

# =============================================================================
# Wave functions
# =============================================================================

class WaveFunctions(AbstractProperty):
    '''
    Amplitudes psi_n(x) for every matched index x and requested state n.
    '''

    def __init__(self, keys: Sequence[Index], data: NDArray, states: Sequence[int]):
        super().__init__(keys, data, IndexLayout.CUSTOM)
        self._states        = tuple(int(s) for s in states)
        self._state_pos     = {s: n for n, s in enumerate(self._states)}

    @property
    def states(self) -> Tuple[int, ...]:
        return self._states

    def __call__(self, index, state: int) -> complex:
        try:
            n = self._state_pos[state]
        except KeyError:
            raise PropertyError(PropertyErrorMsg.STATE_OUT_OF_RANGE,
                    f"WaveFunctions: state {state} was not extracted; available states {self._states}.") from None
        return complex(self._data[self._block_number(index), n])

    def get_min_abs(self) -> float:
        return float(np.min(np.abs(self._data)))

    def get_max_abs(self) -> float:
        return float(np.max(np.abs(self._data)))

# =============================================================================
# Green's function
# =============================================================================

@unique
class GreensFunctionType(Enum):
    RETARDED    = "retarded"        # 1/(E - E_n + i eta)
    ADVANCED    = "advanced"        # 1/(E - E_n - i eta)
    MATSUBARA   = "matsubara"       # 1/(i w_n + mu - E_n)

class GreensFunction(EnergyResolvedProperty):
    '''
    Single-particle Green's function keyed by compound index {to | from}.
    '''

    def __init__(self, keys: Sequence[Index], data: NDArray,
                energies: Union[EnergyWindow, MatsubaraGrid], gf_type: GreensFunctionType):
        super().__init__(keys, data, energies, IndexLayout.CUSTOM)
        self._type = gf_type

    @property
    def type(self) -> GreensFunctionType:
        return self._type

    def __call__(self, index, n: int = 0) -> complex:
        return complex(self._data[self._block_number(index), n])

class SpectralFunction(EnergyResolvedProperty):
    r'''
    Spectral function A(E) = -Im G^R(E) / \pi keyed like the retarded Green's
    function it is built from.
    '''

    @classmethod
    def from_greens_function(cls, gf: GreensFunction) -> 'SpectralFunction':
        if gf.type is not GreensFunctionType.RETARDED:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"SpectralFunction.from_greens_function(): needs a RETARDED Green's function, got {gf.type.name}.")
        return cls(gf.indices, -gf.get_data().imag / np.pi, gf.grid)

    def __call__(self, index, n: int = 0) -> float:
        return float(self._data[self._block_number(index), n])

# =============================================================================
# Susceptibility
# =============================================================================

class Susceptibility(EnergyResolvedProperty):
    '''
    Energy-resolved two-particle quantity keyed by 5-component compound
    indices {k | c0 | a1 | c1 | a0}, consumed by the self-energy vertex.

    Example:
        >>> chi = Susceptibility.from_blocks({Index.compound(0, 0, 0, 0, 0): np.ones(4)},
        ...         EnergyWindow(-1.0, 1.0, 4))
    '''

    @classmethod
    def from_blocks(cls, blocks: dict, energies: Union[EnergyWindow, MatsubaraGrid]) -> 'Susceptibility':
        keys = [Index(k) for k in blocks]
        data = np.array([np.asarray(v, dtype=np.complex128) for v in blocks.values()]).reshape(len(keys), -1)
        return cls(keys, data, energies, IndexLayout.CUSTOM)

    def get_offset(self, index) -> int:
        '''
        Offset of the first element of the block of `index` in the flattened data.
        '''
        return self._block_number(index) * self.block_size

# =============================================================================
# Exports
# =============================================================================

__all__ = [
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
