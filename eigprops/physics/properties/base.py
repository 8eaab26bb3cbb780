"""
Property containers: common storage.

Every property stores one data block per output index. The block holds a
single value (Density), one value per energy point (LDOS, DOS,
GreensFunction), one per requested state (WaveFunctions) or a flattened 2x2
spin matrix (Magnetization, SpinPolarizedLDOS).

Blocks are laid out in one of three ways:

- NONE   : a single block with key Index({}) (DOS, EigenValues)
- RANGES : a dense grid produced by a (pattern, ranges) request; every grid
           position has a block, positions not present in the basis stay zero
- CUSTOM : one block per output index of a list of patterns, in match order

In all layouts a block is found by its key index, so results of the two
request shapes can be compared entry by entry. Containers are read-only.

file        : eigprops/physics/properties/base.py
"""

from enum import Enum, unique
from typing import Dict, Iterable, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from ..spectral.broadening import EnergyType, EnergyWindow, MatsubaraGrid
from ...indexing import Index
from ...common.errors import PropertyError, PropertyErrorMsg

# =============================================================================
# Layout
# =============================================================================

@unique
class IndexLayout(Enum):
    NONE    = "none"
    RANGES  = "ranges"
    CUSTOM  = "custom"

# =============================================================================
# Abstract property
# =============================================================================

class AbstractProperty:
    """
    Blocks of values keyed by Index.

    Parameters
    ----------
    keys : sequence of Index
        Output index of each block, in storage order. Must be unique.
    data : ndarray, shape (len(keys), block_size)
        Block data. Taken over and made read-only.
    layout : IndexLayout
        How the keys were produced.
    ranges_shape : tuple of int, optional
        Grid shape for the RANGES layout.
    """

    def __init__(self,
                keys            : Sequence[Index],
                data            : NDArray,
                layout          : IndexLayout               = IndexLayout.CUSTOM,
                ranges_shape    : Optional[Tuple[int, ...]] = None):
        keys = [Index(k) for k in keys]
        data = np.asarray(data)
        if data.ndim != 2 or data.shape[0] != len(keys):
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"{type(self).__name__}(): data must have shape ({len(keys)}, block_size), got {data.shape}.")

        lookup: Dict[Index, int] = {}
        for n, key in enumerate(keys):
            if key in lookup:
                raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                        f"{type(self).__name__}(): duplicate output index {key!r}.")
            lookup[key] = n

        if layout is IndexLayout.RANGES:
            if ranges_shape is None or int(np.prod(ranges_shape)) != len(keys):
                raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                        f"{type(self).__name__}(): ranges shape {ranges_shape} does not match {len(keys)} blocks.")
        elif layout is IndexLayout.NONE and len(keys) != 1:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"{type(self).__name__}(): the NONE layout holds exactly one block, got {len(keys)}.")

        data.setflags(write=False)
        self._keys          = tuple(keys)
        self._lookup        = lookup
        self._data          = data
        self._layout        = layout
        self._ranges_shape  = tuple(ranges_shape) if ranges_shape is not None else None

    # -------------------------------------------------------------------------

    @property
    def layout(self) -> IndexLayout:
        return self._layout

    @property
    def block_size(self) -> int:
        return self._data.shape[1]

    @property
    def indices(self) -> Tuple[Index, ...]:
        return self._keys

    def get_size(self) -> int:
        return self._data.size

    def get_data(self) -> NDArray:
        return self._data

    def get_ranges_data(self) -> NDArray:
        """
        Data reshaped to (*ranges_shape, block_size). RANGES layout only.
        """
        if self._layout is not IndexLayout.RANGES:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"{type(self).__name__}.get_ranges_data(): property has layout {self._layout.name}.")
        return self._data.reshape(self._ranges_shape + (self.block_size,))

    def contains(self, index) -> bool:
        return Index(index) in self._lookup

    def __contains__(self, index) -> bool:
        return self.contains(index)

    def __len__(self) -> int:
        return len(self._keys)

    def _block_number(self, index) -> int:
        index = Index(index)
        try:
            return self._lookup[index]
        except KeyError:
            raise PropertyError(PropertyErrorMsg.INDEX_NOT_FOUND,
                    f"{type(self).__name__}: no data for index {index!r}.") from None

    def get_block(self, index=()) -> NDArray:
        return self._data[self._block_number(index)]

    def __call__(self, index=(), n: int = 0):
        return self._data[self._block_number(index), n]

    def items(self) -> Iterable[Tuple[Index, NDArray]]:
        return zip(self._keys, self._data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(layout={self._layout.name}, blocks={len(self)}, block_size={self.block_size})"

# =============================================================================
# Energy resolved property
# =============================================================================

class EnergyResolvedProperty(AbstractProperty):
    """
    Property whose blocks run over an energy grid, either a real-axis
    EnergyWindow or a MatsubaraGrid. `block_size` is a multiple of the number
    of energies.
    """

    def __init__(self,
                keys            : Sequence[Index],
                data            : NDArray,
                energies        : Union[EnergyWindow, MatsubaraGrid],
                layout          : IndexLayout               = IndexLayout.CUSTOM,
                ranges_shape    : Optional[Tuple[int, ...]] = None):
        if isinstance(energies, EnergyWindow):
            self._energy_type   = EnergyType.REAL
            self._num_energies  = energies.resolution
        elif isinstance(energies, MatsubaraGrid):
            self._energy_type   = energies.energy_type
            self._num_energies  = energies.num_energies
        else:
            raise PropertyError(PropertyErrorMsg.UNKNOWN_ENERGY_TYPE,
                    f"{type(self).__name__}(): unknown energy description {energies!r}.")
        self._grid = energies
        super().__init__(keys, data, layout, ranges_shape)
        if self.block_size % self._num_energies != 0:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"{type(self).__name__}(): block size {self.block_size} is not a multiple of {self._num_energies} energies.")

    # -------------------------------------------------------------------------

    @property
    def energy_type(self) -> EnergyType:
        return self._energy_type

    @property
    def grid(self) -> Union[EnergyWindow, MatsubaraGrid]:
        return self._grid

    def _real_window(self, caller: str) -> EnergyWindow:
        if self._energy_type is not EnergyType.REAL:
            raise PropertyError(PropertyErrorMsg.UNKNOWN_ENERGY_TYPE,
                    f"{type(self).__name__}.{caller}(): only defined for real energies, property is {self._energy_type.name}.")
        return self._grid

    def get_lower_bound(self) -> float:
        return self._real_window("get_lower_bound").lower

    def get_upper_bound(self) -> float:
        return self._real_window("get_upper_bound").upper

    def get_resolution(self) -> int:
        return self._real_window("get_resolution").resolution

    def get_smoothing(self) -> float:
        return self._real_window("get_smoothing").smoothing

    def get_delta_energy(self) -> float:
        return self._real_window("get_delta_energy").dE

    def _matsubara(self, caller: str) -> MatsubaraGrid:
        if self._energy_type is EnergyType.REAL:
            raise PropertyError(PropertyErrorMsg.UNKNOWN_ENERGY_TYPE,
                    f"{type(self).__name__}.{caller}(): only defined for Matsubara energies.")
        return self._grid

    def get_num_matsubara_energies(self) -> int:
        return self._matsubara("get_num_matsubara_energies").num_energies

    def get_temperature(self) -> float:
        return self._matsubara("get_temperature").temperature

    def get_num_energies(self) -> int:
        return self._num_energies

    def get_energies(self) -> NDArray:
        return self._grid.energies()

# =============================================================================
