# file        :   eigprops/algebra/utils.py

'''
Backend and environment configuration for the property extraction pipeline.

- Reads the process configuration from environment variables once, at import.
- Detects JAX (optional) when it is the preferred backend.
- Provides `get_backend` for choosing between NumPy and JAX array modules.
- Provides `probe_device_count` / `get_hardware_info` used to size the
accelerator device pool.

Environment variables:
- PY_BACKEND        : 'numpy' (default) or 'jax'
- PY_NUM_CORES      : default number of worker threads for index traversal
- PY_FLOATING_POINT : '64bit' (default) or '32bit'
- PY_BACKEND_INFO   : print backend information at import when non-zero
'''

import os
import logging
import multiprocessing
from typing import Union, Optional, TypeAlias, Tuple, Any

import numpy as np

# ---------------------------------------------------------------------
#! Enviroment variable names
# ---------------------------------------------------------------------

PY_NUM_CORES_STR        : str               = "PY_NUM_CORES"
PY_FLOATING_POINT_STR   : str               = "PY_FLOATING_POINT"
PY_BACKEND_STR          : str               = "PY_BACKEND"
PY_INFO_VERBOSE_STR     : str               = "PY_BACKEND_INFO"

DEFAULT_BACKEND         : str               = "numpy"

# ---------------------------------------------------------------------
#! SET VARIABLES
# ---------------------------------------------------------------------

PY_NUM_CORES            : int               = int(os.environ.get(PY_NUM_CORES_STR, str(os.cpu_count() or 1)))
os.environ[PY_NUM_CORES_STR]                = str(PY_NUM_CORES)

PREFER_32BIT            : bool              = os.environ.get(PY_FLOATING_POINT_STR, "64bit").lower() in ["32bit", "32", "float32", "float"]

PY_BACKEND              : str               = os.environ.get(PY_BACKEND_STR, DEFAULT_BACKEND).lower()
PREFER_JAX              : bool              = PY_BACKEND not in ("numpy", "np")
PY_INFO_VERBOSE         : bool              = os.environ.get(PY_INFO_VERBOSE_STR, "0").lower() in ("1", "true", "yes", "on")

# ---------------------------------------------------------------------
#! Backend Detection
# ---------------------------------------------------------------------

JAX_AVAILABLE           : bool              = False
jax                     : Optional[Any]     = None
jnp                     : Optional[Any]     = None
Array                   : TypeAlias         = np.ndarray

if PREFER_JAX:
    try:
        import jax
        import jax.numpy as jnp
        if not PREFER_32BIT:
            jax.config.update("jax_enable_x64", True)
        logging.getLogger('jax._src.xla_bridge').setLevel(logging.WARNING)
        JAX_AVAILABLE   = True
        Array           = Union[np.ndarray, jnp.ndarray]
    except ImportError:
        JAX_AVAILABLE   = False

# ---------------------------------------------------------------------

def _log_message(msg, lvl = 0):
    if not PY_INFO_VERBOSE:
        return
    from ..common.flog import get_global_logger
    get_global_logger().info(msg, lvl)

# ---------------------------------------------------------------------
#! Global methods
# ---------------------------------------------------------------------

def get_backend(backend_spec: Union[str, Any, None] = None) -> Any:
    """
    Return the array module for the provided specifier.

    Parameters
    ----------
    backend_spec : str or module or None, optional
        'numpy', 'np', 'jax', 'jnp', 'default', a module, or None
        (the environment default).

    Returns
    -------
    module
        `numpy` or `jax.numpy`.

    Raises
    ------
    ValueError
        If JAX is requested but not available, or the specifier is unknown.
    """
    if backend_spec is None or (isinstance(backend_spec, str) and backend_spec.lower() == "default"):
        return jnp if JAX_AVAILABLE else np
    if backend_spec is np or (jnp is not None and backend_spec is jnp):
        return backend_spec
    if isinstance(backend_spec, str):
        name = backend_spec.lower()
        if name in ("numpy", "np"):
            return np
        if name in ("jax", "jnp"):
            if not JAX_AVAILABLE:
                raise ValueError("JAX backend requested but JAX is not available (set PY_BACKEND=jax and install jax).")
            return jnp
    raise ValueError(f"Unknown backend specifier: {backend_spec!r}")

# ---------------------------------------------------------------------

def probe_device_count() -> int:
    """
    Number of accelerator devices visible to JAX.

    Any failure (JAX missing, no accelerator platform, runtime error while
    probing) yields 0.
    """
    try:
        import jax as _jax
    except ImportError:
        return 0
    try:
        devices = [d for d in _jax.devices() if d.platform != "cpu"]
    except Exception as e:  # noqa: BLE001 - probing must never raise
        _log_message(f"Could not probe accelerator devices: {e}", 1)
        return 0
    return len(devices)

def get_device(device_id: int) -> Any:
    """
    JAX device object for an id handed out by the DevicePool.

    Ids enumerate the non-CPU devices in the order `jax.devices()` lists them.
    """
    if not JAX_AVAILABLE:
        raise ValueError("get_device(): JAX is not available (set PY_BACKEND=jax and install jax).")
    devices = [d for d in jax.devices() if d.platform != "cpu"]
    if not 0 <= device_id < len(devices):
        raise ValueError(f"get_device(): device id {device_id} outside [0, {len(devices)}).")
    return devices[device_id]

def get_hardware_info() -> Tuple[int, int]:
    """
    Get the number of available accelerator devices and CPU cores.

    Returns:
        n_devices :
            Number of accelerator devices (GPUs/TPUs) if JAX is available, else 0.
        n_threads :
            Number of CPU cores available to the system.
    """
    n_devices   = probe_device_count()
    n_threads   = multiprocessing.cpu_count()
    _log_message(f"Detected CPU cores: {n_threads}", 1)
    _log_message(f"Detected devices: {n_devices}" if n_devices > 0 else "No device detected.", 1)
    return n_devices, n_threads

# ---------------------------------------------------------------------

_log_message(f"eigprops.algebra.utils: backend={'jax' if JAX_AVAILABLE else 'numpy'}, cores={PY_NUM_CORES}")

# ---------------------------------------------------------------------
#! EOF
# ---------------------------------------------------------------------
