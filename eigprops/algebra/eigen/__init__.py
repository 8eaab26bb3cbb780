"""
Eigen-decomposition inputs for property extraction.

- result : EigenstateStore protocol and the DenseEigenstateStore implementation
- exact  : ExactDiagonalizer and tight-binding HoppingAmplitude helpers
"""

from .result import EigenstateStore, DenseEigenstateStore
from .exact import ExactDiagonalizer, HoppingAmplitude, hamiltonian_from_hoppings

__all__ = [
    'EigenstateStore',
    'DenseEigenstateStore',
    'ExactDiagonalizer',
    'HoppingAmplitude',
    'hamiltonian_from_hoppings',
]
