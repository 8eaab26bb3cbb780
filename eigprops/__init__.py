# eigprops/__init__.py

"""
eigprops - physical properties from a completed eigen-decomposition.

This package turns the eigenvalues and eigenvectors of a (tight-binding like)
Hamiltonian defined on a sparse, arbitrarily indexed basis into physical
observables. Indices to evaluate are selected with wildcard patterns which are
resolved against the actual index space of the model.

Modules:
--------
- algebra   : Backend configuration, the dense reference diagonalizer and the accelerator device pool
- common    : Logging and error types
- indexing  : Index / pattern types and the IndexSpace pattern matcher
- physics   : Property containers, the property extractor, broadening and thermal occupations

Examples:
---------
>>> import numpy as np
>>> from eigprops.indexing import IndexSpace, ALL, SUM_ALL
>>> from eigprops.algebra.eigen import ExactDiagonalizer
>>> from eigprops.physics import PropertyExtractor
>>> space   = IndexSpace([(0,), (1,)])
>>> store   = ExactDiagonalizer().solve(np.array([[0., 1.], [1., 0.]]), space)
>>> pe      = PropertyExtractor(store)
>>> pe.set_energy_window(-2.0, 2.0, 2)
>>> dos     = pe.calculate_dos()

File    : eigprops/__init__.py
Version : 0.1.0
License : MIT
"""

import importlib

# Package metadata
__version__         = "0.1.0"
__license__         = "MIT"

MODULE_DESCRIPTION  = "Property extraction from eigen-decompositions: patterns, containers, broadening, device leases."

# List of available modules (not imported by default)
__all__             = ["algebra", "common", "indexing", "physics"]

def get_module_description(module_name):
    """
    Get the description of a specific module in the eigprops package.

    Parameters
    ----------
    module_name : str
        The name of the module.

    Returns
    -------
    str
        The description of the module.
    """
    descriptions = {
        "algebra"   : "Backend configuration, dense reference diagonalizer and accelerator device pool.",
        "common"    : "Logging (flog) and the PropertyError taxonomy.",
        "indexing"  : "Index, wildcard and compound-index types with the IndexSpace pattern matcher.",
        "physics"   : "Property containers, PropertyExtractor, broadening, thermal occupations and vertices."
    }
    return descriptions.get(module_name, "Module not found.")

def list_available_modules():
    """
    List all available modules in the eigprops package.
    """
    return __all__

# Lazy import subpackages on attribute access (PEP 562)
def __getattr__(name):  # pragma: no cover - simple indirection
    if name in __all__:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

def __dir__():  # pragma: no cover
    return sorted(list(globals().keys()) + __all__)

# ---------------------------------------------------------------------
#! EOF
# ---------------------------------------------------------------------
