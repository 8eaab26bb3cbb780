"""
Index and pattern types.

An Index is an ordered, immutable sequence of subindices of any length. A
subindex is either a concrete non-negative integer or an explicit Wildcard
tag:

- Wildcard.ALL       : range over every concrete value, one output entry each
- Wildcard.SUM_ALL   : collapse every concrete value into one output entry
- Wildcard.SPIN      : spin subindex, resolved into a 2x2 block by spin-resolved properties
- Wildcard.SEPARATOR : separates the components of a compound index

A compound index concatenates component indices, e.g. the {to, from} pair of
a Green's function or the 5-component index of a self-energy vertex:

    >>> Index.compound([0, 1], [0, 0])
    Index({0, 1 | 0, 0})
    >>> Index.compound([0, 1], [0, 0]).split()
    [Index({0, 1}), Index({0, 0})]

file        : eigprops/indexing/index.py
"""

from enum import Enum
from typing import Iterable, List, Union

import numpy as np

from ..common.errors import PropertyError, PropertyErrorMsg

# -----------------------------------------------------------------------------
#! Tags
# -----------------------------------------------------------------------------

class Wildcard(Enum):
    '''
    Tagged subindex markers used in patterns.
    '''
    ALL         = "*"
    SUM_ALL     = "+"
    SPIN        = "s"
    SEPARATOR   = "|"

    def __repr__(self):
        return self.value

class StateSelection(Enum):
    '''
    Marker for "every eigenstate" in state lists.
    '''
    ALL_STATES  = "all states"

ALL         = Wildcard.ALL
SUM_ALL     = Wildcard.SUM_ALL
SPIN        = Wildcard.SPIN
SEPARATOR   = Wildcard.SEPARATOR
ALL_STATES  = StateSelection.ALL_STATES

# tags that make an Index a pattern
PATTERN_TAGS = frozenset((Wildcard.ALL, Wildcard.SUM_ALL, Wildcard.SPIN))

Subindex = Union[int, Wildcard]

# -----------------------------------------------------------------------------
#! Index
# -----------------------------------------------------------------------------

def _check_subindex(s) -> Subindex:
    if isinstance(s, Wildcard):
        return s
    if isinstance(s, (bool, np.bool_)) or not isinstance(s, (int, np.integer)):
        raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                f"Index(): subindices must be non-negative integers or Wildcard tags, got {s!r}.")
    if s < 0:
        raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                f"Index(): negative subindex {int(s)}; use a Wildcard tag for patterns.")
    return int(s)

class Index(tuple):
    '''
    Immutable sequence of subindices. Behaves as a tuple (hashing, equality,
    lexicographic ordering of concrete indices) with a few index helpers.
    '''

    def __new__(cls, subindices: Union[int, Iterable[Subindex]] = ()):
        if isinstance(subindices, Index):
            return subindices
        if isinstance(subindices, (int, np.integer, Wildcard)):
            subindices = (subindices,)
        return super().__new__(cls, tuple(_check_subindex(s) for s in subindices))

    # -------------------------------------------------------------------------

    @property
    def size(self) -> int:
        return len(self)

    @property
    def is_pattern(self) -> bool:
        return any(s in PATTERN_TAGS for s in self)

    @property
    def is_compound(self) -> bool:
        return Wildcard.SEPARATOR in self

    def positions(self, tag: Wildcard) -> List[int]:
        '''
        Positions of the subindices carrying `tag`.
        '''
        return [n for n, s in enumerate(self) if s is tag]

    # -------------------------------------------------------------------------

    def split(self) -> List['Index']:
        '''
        Components of a compound index. A plain index is its own single component.
        '''
        components  = []
        current     = []
        for s in self:
            if s is Wildcard.SEPARATOR:
                components.append(Index(current))
                current = []
            else:
                current.append(s)
        components.append(Index(current))
        return components

    @classmethod
    def compound(cls, *components: Union[int, Iterable[Subindex]]) -> 'Index':
        '''
        Concatenate component indices with separators.
        '''
        flat = []
        for n, component in enumerate(components):
            component = Index(component)
            if component.is_compound:
                raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                        f"Index.compound(): component {n} is itself compound: {component!r}.")
            if n > 0:
                flat.append(Wildcard.SEPARATOR)
            flat.extend(component)
        return cls(flat)

    # -------------------------------------------------------------------------

    def __repr__(self):
        parts   = (repr(s) if isinstance(s, Wildcard) else str(s) for s in self)
        text    = ", ".join(parts).replace(", |, ", " | ")
        return f"Index({{{text}}})"

    def __str__(self):
        return self.__repr__()

# -----------------------------------------------------------------------------
#! EOF
# -----------------------------------------------------------------------------
