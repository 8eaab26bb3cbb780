"""
Common utilities: logging and the error taxonomy.

**Logging and Monitoring:**
- Logger with indentation levels, colours and optional file output
- Process-wide `get_global_logger`

**Errors:**
- PropertyErrorMsg codes and the PropertyError exception

Example:
    >>> from eigprops.common import get_global_logger, PropertyError
    >>> log = get_global_logger()
"""

import  importlib
from    typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .flog          import Logger, get_global_logger
    from .errors        import PropertyError, PropertyErrorMsg, IndexRankError

# Lazy loading registry
_LAZY_IMPORTS = {
    # logging
    'Logger'                    : ('.flog', 'Logger'),
    'get_global_logger'         : ('.flog', 'get_global_logger'),
    # errors
    'PropertyError'             : ('.errors', 'PropertyError'),
    'PropertyErrorMsg'          : ('.errors', 'PropertyErrorMsg'),
    'IndexRankError'            : ('.errors', 'IndexRankError'),
}

_LOADED = {}

def __getattr__(name: str):
    """Lazy import handler - loads modules only when accessed."""
    if name in _LAZY_IMPORTS:
        if name not in _LOADED:
            module_path, attr_name  = _LAZY_IMPORTS[name]
            module                  = importlib.import_module(module_path, package=__name__)
            _LOADED[name]           = getattr(module, attr_name)
        return _LOADED[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

def __dir__():
    """List available attributes for autocompletion."""
    return list(_LAZY_IMPORTS.keys())
