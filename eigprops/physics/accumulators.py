"""
Property accumulators.

An accumulator turns one resolved output entry into one data block by summing
over the whole eigenstate spectrum. The shared traversal in the
PropertyExtractor resolves patterns, preallocates the output and calls
`accumulate(entry, store)` for each entry; the accumulator never sees the
other entries and never writes outside its own block.

Entries are the records produced by the IndexSpace:
- Group / RangeGroup    : a key plus the concrete matches collapsed into it
- CompoundMatch         : a concrete compound index with one offset per component
- Index                 : a 5-component compound index (vertex)

Variants
--------
DOSAccumulator, DensityAccumulator, MagnetizationAccumulator, LDOSAccumulator,
SpinPolarizedLDOSAccumulator, WaveFunctionsAccumulator,
GreensFunctionAccumulator, VertexAccumulator.

file        : eigprops/physics/accumulators.py
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from .thermal import Occupation
from .spectral.broadening import EnergyType, EnergyWindow, MatsubaraGrid
from .properties.containers import GreensFunctionType, Susceptibility
from ..algebra.eigen.result import EigenstateStore
from ..algebra.utils import get_backend
from ..indexing import Index, Wildcard, Match
from ..common.errors import PropertyError, PropertyErrorMsg

# amplitudes below this are skipped by the vertex
AMPLITUDE_TOLERANCE = 1e-10

# -----------------------------------------------------------------------------
#! Base
# -----------------------------------------------------------------------------

class PropertyAccumulator(ABC):
    """
    One block per entry, accumulated over all eigenstates.

    Attributes:
        block_size (int):
            Number of values in a block.
        dtype:
            Data type of the block.
    """

    _name   : str   = "Property"
    dtype           = np.float64

    @property
    def name(self) -> str:
        return self._name

    @abstractmethod
    def block_size(self, store: Optional[EigenstateStore]) -> int:
        raise NotImplementedError

    @abstractmethod
    def accumulate(self, entry: Any, store: Optional[EigenstateStore]) -> NDArray:
        """Block for `entry`, shape (block_size,)."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

def _weights(matches: Sequence[Match], store: EigenstateStore) -> NDArray:
    '''
    sum over matches of |psi_n(x)|^2, shape (N,).
    '''
    w = np.zeros(store.eigenvalue_count)
    for m in matches:
        w += np.abs(store.amplitudes(m.offset)) ** 2
    return w

# -----------------------------------------------------------------------------
#! Spin helpers
# -----------------------------------------------------------------------------

def _spin_position(key: Index) -> int:
    positions = key.positions(Wildcard.SPIN)
    if len(positions) != 1:
        raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                f"spin-resolved property: the pattern must carry exactly one SPIN subindex, got {key!r}.")
    return positions[0]

def _spin_amplitudes(key: Index, matches: Sequence[Match], store: EigenstateStore) -> List[NDArray]:
    '''
    Pair the matches of one entry into spinors. Returns one (2, N) array per
    residual index (the index with the spin subindex removed); a missing spin
    component has zero amplitude.
    '''
    pos         = _spin_position(key)
    spinors     : Dict[Index, NDArray] = {}
    for m in matches:
        spin = m.index[pos]
        if spin not in (0, 1):
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"spin-resolved property: spin subindex of {m.index!r} must be 0 or 1.")
        residual = Index(m.index[:pos] + m.index[pos + 1:])
        if residual not in spinors:
            spinors[residual] = np.zeros((2, store.eigenvalue_count), dtype=np.complex128)
        spinors[residual][spin] = store.amplitudes(m.offset)
    return list(spinors.values())

def _spin_weights(key: Index, matches: Sequence[Match], store: EigenstateStore) -> NDArray:
    '''
    w[n, (s, s')] = sum_r psi_n(r, s)^* psi_n(r, s'), shape (N, 4).
    '''
    w = np.zeros((store.eigenvalue_count, 4), dtype=np.complex128)
    for u in _spin_amplitudes(key, matches, store):
        w += np.einsum('sn,tn->nst', np.conj(u), u).reshape(-1, 4)
    return w

# -----------------------------------------------------------------------------
#! Energy resolved accumulators
# -----------------------------------------------------------------------------

class DOSAccumulator(PropertyAccumulator):
    '''
    Total density of states; the single entry is ignored.
    '''
    _name = "DOS"

    def __init__(self, window: EnergyWindow, normalize: bool = False):
        self.window     = window
        self.normalize  = normalize

    def block_size(self, store) -> int:
        return self.window.resolution

    def accumulate(self, entry, store) -> NDArray:
        dos = self.window.broaden(store.eigenvalues)
        if self.normalize and store.eigenvalue_count > 0:
            dos = dos / store.eigenvalue_count
        return dos

class LDOSAccumulator(PropertyAccumulator):
    _name = "LDOS"

    def __init__(self, window: EnergyWindow):
        self.window = window

    def block_size(self, store) -> int:
        return self.window.resolution

    def accumulate(self, entry, store) -> NDArray:
        return self.window.broaden(store.eigenvalues, _weights(entry.matches, store))

class SpinPolarizedLDOSAccumulator(PropertyAccumulator):
    '''
    Block layout: energy major, then (up-up, up-down, down-up, down-down).
    '''
    _name   = "SpinPolarizedLDOS"
    dtype   = np.complex128

    def __init__(self, window: EnergyWindow):
        self.window = window

    def block_size(self, store) -> int:
        return 4 * self.window.resolution

    def accumulate(self, entry, store) -> NDArray:
        w = _spin_weights(entry.key, entry.matches, store)
        return self.window.broaden(store.eigenvalues, w).reshape(-1)

# -----------------------------------------------------------------------------
#! Occupied accumulators
# -----------------------------------------------------------------------------

class DensityAccumulator(PropertyAccumulator):
    _name = "Density"

    def __init__(self, occupation: Occupation):
        self.occupation = occupation

    def block_size(self, store) -> int:
        return 1

    def accumulate(self, entry, store) -> NDArray:
        f = self.occupation(store.eigenvalues)
        return np.array([np.dot(f, _weights(entry.matches, store))])

class MagnetizationAccumulator(PropertyAccumulator):
    _name   = "Magnetization"
    dtype   = np.complex128

    def __init__(self, occupation: Occupation):
        self.occupation = occupation

    def block_size(self, store) -> int:
        return 4

    def accumulate(self, entry, store) -> NDArray:
        f = self.occupation(store.eigenvalues)
        return f @ _spin_weights(entry.key, entry.matches, store)

# -----------------------------------------------------------------------------
#! Wave functions
# -----------------------------------------------------------------------------

class WaveFunctionsAccumulator(PropertyAccumulator):
    _name   = "WaveFunctions"
    dtype   = np.complex128

    def __init__(self, states: Sequence[int]):
        self.states = np.asarray(states, dtype=np.int64)

    def block_size(self, store) -> int:
        return self.states.size

    def accumulate(self, entry, store) -> NDArray:
        (m,) = entry.matches
        return store.amplitudes(m.offset)[self.states]

# -----------------------------------------------------------------------------
#! Green's function
# -----------------------------------------------------------------------------

class GreensFunctionAccumulator(PropertyAccumulator):
    r"""
    G(to, from; z) = \sum_n \psi_n(to) \psi_n(from)^* / (z - E_n)

    with z = E + i eta (retarded), E - i eta (advanced) or i w_n + mu
    (Matsubara). The sum runs on `backend` (numpy or jax.numpy); with JAX a
    device leased from the DevicePool can be given per call.
    """
    _name   = "GreensFunction"
    dtype   = np.complex128

    def __init__(self,
                gf_type             : GreensFunctionType,
                energies            : Union[EnergyWindow, MatsubaraGrid],
                eta                 : float = 0.0,
                chemical_potential  : float = 0.0,
                backend             : Any   = 'numpy'):
        if gf_type is GreensFunctionType.MATSUBARA:
            if not isinstance(energies, MatsubaraGrid):
                raise PropertyError(PropertyErrorMsg.UNKNOWN_ENERGY_TYPE,
                        f"GreensFunctionAccumulator(): Matsubara Green's function needs a MatsubaraGrid, got {energies!r}.")
            z = energies.energies() + chemical_potential
        elif gf_type in (GreensFunctionType.RETARDED, GreensFunctionType.ADVANCED):
            if not isinstance(energies, EnergyWindow):
                raise PropertyError(PropertyErrorMsg.UNKNOWN_ENERGY_TYPE,
                        f"GreensFunctionAccumulator(): {gf_type.name} Green's function needs an EnergyWindow, got {energies!r}.")
            sign    = 1.0 if gf_type is GreensFunctionType.RETARDED else -1.0
            z       = energies.energies() + sign * 1j * eta
        else:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"GreensFunctionAccumulator(): unknown Green's function type {gf_type!r}.")
        self.gf_type    = gf_type
        self.energies   = energies
        self._z         = np.asarray(z, dtype=np.complex128)
        self._backend   = get_backend(backend)
        self.device     = None

    def block_size(self, store) -> int:
        return self._z.size

    @staticmethod
    def _kernel(z, eigenvalues, numerator):
        return (1.0 / (z[:, None] - eigenvalues[None, :])) @ numerator

    def accumulate(self, entry, store) -> NDArray:
        to_offset, from_offset  = entry.offsets
        numerator               = store.amplitudes(to_offset) * np.conj(store.amplitudes(from_offset))
        if self._backend is np:
            return self._kernel(self._z, store.eigenvalues.astype(np.complex128), numerator)

        import jax
        args = (self._z, store.eigenvalues.astype(np.complex128), numerator)
        if self.device is not None:
            args = jax.device_put(args, self.device)
        return np.asarray(self._kernel(*(self._backend.asarray(a) for a in args)))

# -----------------------------------------------------------------------------
#! Self-energy vertex
# -----------------------------------------------------------------------------

class InteractionAmplitude(NamedTuple):
    '''
    amplitude * c^dagger_{c0} c^dagger_{c1} c_{a0} c_{a1}; every operator
    index is a single-subindex Index.
    '''
    amplitude       : complex
    creation        : Tuple[Index, Index]
    annihilation    : Tuple[Index, Index]

    @classmethod
    def from_indices(cls, amplitude: complex, c0, c1, a0, a1) -> 'InteractionAmplitude':
        return cls(complex(amplitude), (Index(c0), Index(c1)), (Index(a0), Index(a1)))

class VertexAccumulator(PropertyAccumulator):
    """
    Self-energy vertex for one 5-component index {k | b0 | b1 | b2 | b3}.

    For every incoming u_i (left) with a1_i == b3 and c0_i == b2, and every
    outgoing u_o (right) with a0_o == b0 and c1_o == b1,

        V[n] += u_i * u_o * chi_{k, c0_o, a1_o, c1_i, a0_i}[n] * multiplier.

    Amplitudes with |u| < 1e-10 are skipped. The store is not used.
    """
    _name   = "Vertex"
    dtype   = np.complex128

    def __init__(self,
                susceptibility  : Susceptibility,
                left            : Sequence[InteractionAmplitude],
                right           : Sequence[InteractionAmplitude],
                multiplier      : float = 1.0):
        energy_type = susceptibility.energy_type
        if energy_type is EnergyType.REAL:
            self._num_energies = susceptibility.get_resolution()
        elif energy_type is EnergyType.BOSONIC_MATSUBARA:
            self._num_energies = susceptibility.get_num_matsubara_energies()
        else:
            raise PropertyError(PropertyErrorMsg.UNKNOWN_ENERGY_TYPE,
                    f"VertexAccumulator(): unknown energy type {energy_type.name} of the susceptibility.")
        self.susceptibility = susceptibility
        self.left           = [self._check_amplitude(u) for u in left]
        self.right          = [self._check_amplitude(u) for u in right]
        self.multiplier     = multiplier

    @staticmethod
    def _check_amplitude(u: InteractionAmplitude) -> InteractionAmplitude:
        u = InteractionAmplitude(complex(u[0]), tuple(Index(c) for c in u[1]), tuple(Index(a) for a in u[2]))
        for op in u.creation + u.annihilation:
            if len(op) != 1:
                raise PropertyError(PropertyErrorMsg.SUBINDEX_ARITY,
                        f"InteractionAmplitude: operator indices must have a single subindex, got {op!r}.")
        return u

    def block_size(self, store=None) -> int:
        return self._num_energies

    def accumulate(self, entry, store=None) -> NDArray:
        components = Index(entry).split()
        if len(components) != 5:
            raise PropertyError(PropertyErrorMsg.COMPOUND_ARITY,
                    f"calculate_self_energy_vertex(): the Index must be a compound Index with 5 component Indices, "
                    f"but '{len(components)}' components supplied.")
        k, blocks = components[0], components[1:]
        for n, block in enumerate(blocks):
            if len(block) != 1:
                raise PropertyError(PropertyErrorMsg.SUBINDEX_ARITY,
                        f"calculate_self_energy_vertex(): the four last components of the compound Index must have a "
                        f"single subindex, but component '{n + 1}' has '{len(block)}' subindices.")
        b0, b1, b2, b3 = (block[0] for block in blocks)

        vertex = np.zeros(self._num_energies, dtype=np.complex128)
        for u_in in self.left:
            c0_i, c1_i = u_in.creation
            a0_i, a1_i = u_in.annihilation
            if a1_i[0] != b3 or c0_i[0] != b2 or abs(u_in.amplitude) < AMPLITUDE_TOLERANCE:
                continue
            for u_out in self.right:
                c0_o, c1_o = u_out.creation
                a0_o, a1_o = u_out.annihilation
                if a0_o[0] != b0 or c1_o[0] != b1 or abs(u_out.amplitude) < AMPLITUDE_TOLERANCE:
                    continue
                chi     = self.susceptibility.get_block(Index.compound(k, c0_o, a1_o, c1_i, a0_i))
                vertex  += u_in.amplitude * u_out.amplitude * chi[:self._num_energies] * self.multiplier
        return vertex

# -----------------------------------------------------------------------------
#! Exports
# -----------------------------------------------------------------------------

__all__ = [
    'AMPLITUDE_TOLERANCE',
    'PropertyAccumulator',
    'DOSAccumulator',
    'DensityAccumulator',
    'MagnetizationAccumulator',
    'LDOSAccumulator',
    'SpinPolarizedLDOSAccumulator',
    'WaveFunctionsAccumulator',
    'GreensFunctionAccumulator',
    'InteractionAmplitude',
    'VertexAccumulator',
]
