"""
Algebra module: backend configuration, the reference diagonalizer and the
accelerator device pool.

This module uses lazy imports to keep startup cheap; JAX is only touched when
the backend or the device pool asks for it.

# -----------------------------------------------------------------------------------------------
Description     : Backend, eigen-decomposition and device pool
# -----------------------------------------------------------------------------------------------
"""

from typing import TYPE_CHECKING
import importlib

_LAZY_IMPORTS = {
    # Backend
    'get_backend'           : ('.utils', 'get_backend'),
    'get_hardware_info'     : ('.utils', 'get_hardware_info'),
    'JAX_AVAILABLE'         : ('.utils', 'JAX_AVAILABLE'),
    # Devices
    'DevicePool'            : ('.devices', 'DevicePool'),
    'get_device_pool'       : ('.devices', 'get_device_pool'),
    # Eigen-decomposition
    'ExactDiagonalizer'     : ('.eigen', 'ExactDiagonalizer'),
    'DenseEigenstateStore'  : ('.eigen', 'DenseEigenstateStore'),
    'EigenstateStore'       : ('.eigen', 'EigenstateStore'),
    'HoppingAmplitude'      : ('.eigen', 'HoppingAmplitude'),
    # Submodules
    'eigen'                 : ('.eigen', None),
    'utils'                 : ('.utils', None),
    'devices'               : ('.devices', None),
}

_LAZY_CACHE = {}

if TYPE_CHECKING:
    from .utils import get_backend, get_hardware_info, JAX_AVAILABLE
    from .devices import DevicePool, get_device_pool
    from .eigen import ExactDiagonalizer, DenseEigenstateStore, EigenstateStore, HoppingAmplitude

def __getattr__(name: str):
    if name in _LAZY_CACHE:
        return _LAZY_CACHE[name]
    if name in _LAZY_IMPORTS:
        module_path, attr_name  = _LAZY_IMPORTS[name]
        module                  = importlib.import_module(module_path, package=__name__)
        result                  = module if attr_name is None else getattr(module, attr_name)
        _LAZY_CACHE[name]       = result
        return result
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

def __dir__():
    return list(_LAZY_IMPORTS.keys())
