"""
Index, pattern and compound-index types together with the IndexSpace that
resolves patterns against the concrete basis of a model.

Modules:
--------
- index : Index, Wildcard tags (ALL, SUM_ALL, SPIN, SEPARATOR) and ALL_STATES
- space : IndexSpace with match / group / match_compound / match_ranges
"""

from .index import (
    Index, Wildcard, StateSelection,
    ALL, SUM_ALL, SPIN, SEPARATOR, ALL_STATES, PATTERN_TAGS,
)
from .space import IndexSpace, Match, Group, CompoundMatch, RangeGroup

__all__ = [
    'Index', 'Wildcard', 'StateSelection',
    'ALL', 'SUM_ALL', 'SPIN', 'SEPARATOR', 'ALL_STATES', 'PATTERN_TAGS',
    'IndexSpace', 'Match', 'Group', 'CompoundMatch', 'RangeGroup',
]
