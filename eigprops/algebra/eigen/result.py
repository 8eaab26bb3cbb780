"""
Eigenstate stores.

An EigenstateStore is the read-only view of a completed diagonalization that
the property extractor consumes: ascending eigenvalues and the amplitude of
every eigenvector at every basis index. Stores are immutable once built, so
they can be shared between worker threads without locking.
"""

from typing import Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from ...indexing import Index, IndexSpace
from ...common.errors import PropertyError, PropertyErrorMsg

# ---------------------------------------------------------------------------------

@runtime_checkable
class EigenstateStore(Protocol):
    '''
    Interface consumed by the PropertyExtractor.
    '''
    space: IndexSpace

    @property
    def eigenvalue_count(self) -> int: ...

    @property
    def eigenvalues(self) -> NDArray: ...

    def eigenvalue(self, state: int) -> float: ...

    def amplitude(self, state: int, index) -> complex: ...

    def amplitudes(self, offset: int) -> NDArray: ...

# ---------------------------------------------------------------------------------

class DenseEigenstateStore:
    r"""
    Eigen-decomposition held as dense arrays.

    Attributes:
        eigenvalues:
            Eigenvalues E_n, non-decreasing, shape (N,).
        eigenvectors:
            Amplitudes \psi_n(x) as columns, shape (basis_size, N); row x is
            the offset of the basis index in `space`.
        space:
            IndexSpace the rows refer to.
    """

    def __init__(self, eigenvalues: NDArray, eigenvectors: NDArray, space: IndexSpace):
        eigenvalues     = np.asarray(eigenvalues, dtype=np.float64)
        eigenvectors    = np.asarray(eigenvectors, dtype=np.complex128)

        if eigenvalues.ndim != 1:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"DenseEigenstateStore(): eigenvalues must be 1D, got shape {eigenvalues.shape}.")
        if eigenvectors.ndim != 2 or eigenvectors.shape != (space.basis_size, eigenvalues.size):
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"DenseEigenstateStore(): eigenvectors must have shape ({space.basis_size}, {eigenvalues.size}), "
                    f"got {eigenvectors.shape}.")
        if eigenvalues.size > 1 and np.any(np.diff(eigenvalues) < 0):
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    "DenseEigenstateStore(): eigenvalues must be sorted in non-decreasing order.")

        eigenvalues.setflags(write=False)
        eigenvectors.setflags(write=False)
        self._eigenvalues   = eigenvalues
        self._eigenvectors  = eigenvectors
        self.space          = space

    # -----------------------------------------------------------------------------

    @property
    def eigenvalue_count(self) -> int:
        return self._eigenvalues.size

    @property
    def eigenvalues(self) -> NDArray:
        return self._eigenvalues

    @property
    def eigenvectors(self) -> NDArray:
        return self._eigenvectors

    def _check_state(self, state: int, caller: str):
        if isinstance(state, (bool, np.bool_)) or not isinstance(state, (int, np.integer)) or not 0 <= state < self._eigenvalues.size:
            raise PropertyError(PropertyErrorMsg.STATE_OUT_OF_RANGE,
                    f"DenseEigenstateStore.{caller}(): state {state} outside [0, {self._eigenvalues.size}).")

    def eigenvalue(self, state: int) -> float:
        self._check_state(state, "eigenvalue")
        return float(self._eigenvalues[state])

    def amplitude(self, state: int, index) -> complex:
        self._check_state(state, "amplitude")
        return complex(self._eigenvectors[self.space.offset(Index(index)), state])

    def amplitudes(self, offset: int) -> NDArray:
        '''
        Amplitudes of every eigenstate at one basis offset, shape (N,).
        '''
        return self._eigenvectors[offset]

    def __repr__(self):
        return f"DenseEigenstateStore(n_states={self.eigenvalue_count}, basis_size={self.space.basis_size})"

# ---------------------------------------------------------------------------------
