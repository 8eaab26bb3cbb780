"""
Error taxonomy for property extraction.

Every contract violation (out-of-range state, bad pattern arity, wrongly
shaped compound index, unknown energy type, empty device pool) is raised as a
PropertyError carrying a PropertyErrorMsg code. Nothing is clamped or
silently recovered.

file        : eigprops/common/errors.py
"""

from enum import Enum
from typing import Optional

# -----------------------------------------------------------------------------
#! Errors
# -----------------------------------------------------------------------------

class PropertyErrorMsg(Enum):
    '''
    Enumeration class for property extraction error codes.
    '''
    STATE_OUT_OF_RANGE  = 201
    INDEX_RANK          = 202
    COMPOUND_ARITY      = 203
    SUBINDEX_ARITY      = 204
    UNKNOWN_ENERGY_TYPE = 205
    NO_DEVICES          = 206
    INVALID_INPUT       = 207
    INDEX_NOT_FOUND     = 208

    def __str__(self):
        return self.name.replace('_', ' ').title()

    def __repr__(self):
        return f"<{self.__class__.__name__}.{self.name}: '{str(self)}'>"

class PropertyError(ValueError):
    '''
    Base class for exceptions raised while extracting properties.

    Args:
        code (PropertyErrorMsg):
            Machine readable error code.
        message (str):
            Diagnostic naming the offending call and value.
    '''
    def __init__(self, code: PropertyErrorMsg, message: Optional[str] = None):
        self.code       = code
        self.message    = message if message else str(code)
        super().__init__(self.message)

    def __str__(self):
        return f"[PropertyError {self.code.name} ({self.code.value})]: {self.message}"

    def __repr__(self):
        return self.__str__()

class IndexRankError(PropertyError):
    '''
    Raised when a pattern's arity matches no index in the IndexSpace.
    '''
    def __init__(self, message: Optional[str] = None):
        super().__init__(PropertyErrorMsg.INDEX_RANK, message)

# -----------------------------------------------------------------------------
