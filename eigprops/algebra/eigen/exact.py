"""
Exact Diagonalization (Full Eigenvalue Decomposition)

Reference diagonalizer producing an EigenstateStore from a dense Hermitian
matrix defined on an IndexSpace. The property extractor treats
diagonalization as a black box; this wrapper exists so that tight-binding
models can be taken end to end in examples and tests.

Key Features:
    - Hermitian full decomposition via SciPy (default) or NumPy
    - Tight-binding Hamiltonians assembled from hopping amplitudes
    - Returns a DenseEigenstateStore with eigenvalues in ascending order

Mathematical Background:
    For Hermitian H: H = U diag(E) U^H with orthonormal columns of U.
"""

from typing import Iterable, List, Literal, NamedTuple, Optional, Tuple

import numpy as np
from numpy.typing import NDArray
from scipy import linalg as scipy_linalg

from .result import DenseEigenstateStore
from ...indexing import Index, IndexSpace
from ...common.flog import get_global_logger
from ...common.errors import PropertyError, PropertyErrorMsg

log = get_global_logger()

# ----------------------------------------------------------------------------------------
#! Hopping amplitudes
# ----------------------------------------------------------------------------------------

class HoppingAmplitude(NamedTuple):
    '''
    Matrix element H[to, from] += amplitude.
    '''
    amplitude   : complex
    to          : Index
    frm         : Index

    def hermitian_conjugate(self) -> 'HoppingAmplitude':
        return HoppingAmplitude(np.conj(self.amplitude), self.frm, self.to)

def hamiltonian_from_hoppings(
        hoppings    : Iterable[HoppingAmplitude],
        space       : Optional[IndexSpace] = None,
        add_hc      : bool = False) -> Tuple[NDArray, IndexSpace]:
    """
    Assemble a dense Hamiltonian from hopping amplitudes.

    Args:
        hoppings:
            Iterable of HoppingAmplitude (or (amplitude, to, from) tuples).
        space:
            Basis to use. If None, it is built from every index appearing in `hoppings`.
        add_hc:
            Also add the Hermitian conjugate of every hopping.

    Returns:
        (H, space)
    """
    hoppings = [HoppingAmplitude(complex(a), Index(t), Index(f)) for a, t, f in hoppings]
    if add_hc:
        hoppings = hoppings + [h.hermitian_conjugate() for h in hoppings]
    if space is None:
        space = IndexSpace([h.to for h in hoppings] + [h.frm for h in hoppings])

    H = np.zeros((space.basis_size, space.basis_size), dtype=np.complex128)
    for h in hoppings:
        H[space.offset(h.to), space.offset(h.frm)] += h.amplitude
    return H, space

# ----------------------------------------------------------------------------------------
#! Exact Eigensolver
# ----------------------------------------------------------------------------------------

class ExactDiagonalizer:
    """
    Full Hermitian eigenvalue decomposition.

    Args:
        backend: 'scipy' (default) or 'numpy'
        check_hermitian: reject matrices that are not Hermitian (default: True)

    Example:
        >>> space   = IndexSpace([(0,), (1,)])
        >>> store   = ExactDiagonalizer().solve(np.array([[0., 1.], [1., 0.]]), space)
        >>> store.eigenvalues
        array([-1.,  1.])
    """

    def __init__(self, backend: Literal['scipy', 'numpy'] = 'scipy', check_hermitian: bool = True):
        if backend not in ('scipy', 'numpy'):
            raise ValueError(f"Unknown backend: {backend}")
        self.backend            = backend
        self.check_hermitian    = check_hermitian

    def solve(self, H: NDArray, space: IndexSpace) -> DenseEigenstateStore:
        """
        Diagonalize `H`, whose rows/columns follow the canonical order of `space`.
        """
        H = np.asarray(H)
        if H.ndim != 2 or H.shape != (space.basis_size, space.basis_size):
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"ExactDiagonalizer.solve(): H must have shape ({space.basis_size}, {space.basis_size}), got {H.shape}.")
        if self.check_hermitian and not np.allclose(H, H.conj().T, atol=1e-12):
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT, "ExactDiagonalizer.solve(): H is not Hermitian.")

        if self.backend == 'scipy':
            eigenvalues, eigenvectors = scipy_linalg.eigh(H)
        else:
            eigenvalues, eigenvectors = np.linalg.eigh(H)

        # eigh returns ascending eigenvalues; keep them real
        eigenvalues = np.real(eigenvalues)
        log.debug(f"Diagonalized H of size {H.shape[0]}: E in [{eigenvalues[0]:.4f}, {eigenvalues[-1]:.4f}]", lvl=1)
        return DenseEigenstateStore(eigenvalues, eigenvectors, space)

    def solve_hoppings(self, hoppings: Iterable[HoppingAmplitude], add_hc: bool = False,
                    space: Optional[IndexSpace] = None) -> DenseEigenstateStore:
        H, space = hamiltonian_from_hoppings(hoppings, space=space, add_hc=add_hc)
        return self.solve(H, space)

# ----------------------------------------------------------------------------------------
