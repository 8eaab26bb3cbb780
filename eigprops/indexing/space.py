"""
IndexSpace and pattern matching.

The IndexSpace is the finite set of concrete basis indices a model defines.
Its canonical enumeration is the lexicographic order of the subindex tuples,
which coincides with a depth-first walk of an index tree:

    {0, 0} < {0, 1} < {1} < {1, 0, 2} < {2}

The position of an index in this enumeration is its *offset*, the row into
which eigenvector amplitudes are stored.

Patterns are resolved with
- `match(pattern)`               -> every concrete index matching the pattern,
- `group(pattern)`               -> matches collapsed over SUM_ALL / SPIN subindices,
- `match_compound(pattern)`      -> cartesian product of per-component matches,
- `match_ranges(pattern, ranges)`-> dense grid positions for the Ranges layout.

file        : eigprops/indexing/space.py
"""

import itertools
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple

from .index import Index, Wildcard, PATTERN_TAGS
from ..common.errors import PropertyError, PropertyErrorMsg, IndexRankError

# -----------------------------------------------------------------------------
#! Match records
# -----------------------------------------------------------------------------

class Match(NamedTuple):
    '''
    A concrete index together with its offset in the canonical enumeration.
    '''
    index   : Index
    offset  : int

class Group(NamedTuple):
    '''
    Output entry of a pattern: `key` is the pattern with every non-collapsed
    wildcard replaced by its concrete value; collapsed positions (SUM_ALL,
    SPIN) keep their tag. `matches` are the contributing concrete indices.
    '''
    key     : Index
    matches : Tuple[Match, ...]

class CompoundMatch(NamedTuple):
    '''
    A concrete compound index with one offset per component.
    '''
    index   : Index
    offsets : Tuple[int, ...]

class RangeGroup(NamedTuple):
    '''
    Output entry of the Ranges layout: `position` in the dense grid spanned by
    the ALL subindices and the concrete matches collapsed into it.
    '''
    position: Tuple[int, ...]
    key     : Index
    matches : Tuple[Match, ...]

# -----------------------------------------------------------------------------
#! IndexSpace
# -----------------------------------------------------------------------------

COLLAPSED_TAGS = frozenset((Wildcard.SUM_ALL, Wildcard.SPIN))

class IndexSpace:
    """
    Finite, immutable set of concrete basis indices in canonical order.

    Args:
        indices (Iterable):
            Concrete indices (tuples, ints or Index). Duplicates are merged.

    Example:
        >>> space = IndexSpace([(x, s) for x in range(2) for s in range(2)])
        >>> space.offset((1, 0))
        2
        >>> [m.index for m in space.match((Wildcard.ALL, 0))]
        [Index({0, 0}), Index({1, 0})]
    """

    def __init__(self, indices: Iterable):
        concrete = set()
        for index in indices:
            index = Index(index)
            if index.is_pattern or index.is_compound:
                raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                        f"IndexSpace(): basis indices must be concrete, got {index!r}.")
            concrete.add(index)
        self._indices   : Tuple[Index, ...]     = tuple(sorted(concrete))
        self._offsets   : Dict[Index, int]      = {index: n for n, index in enumerate(self._indices)}
        self._ranks     : frozenset             = frozenset(len(index) for index in self._indices)

    # -------------------------------------------------------------------------

    @property
    def basis_size(self) -> int:
        return len(self._indices)

    @property
    def ranks(self) -> frozenset:
        return self._ranks

    def __len__(self) -> int:
        return len(self._indices)

    def __iter__(self) -> Iterator[Index]:
        return iter(self._indices)

    def __contains__(self, index) -> bool:
        return Index(index) in self._offsets

    def __repr__(self) -> str:
        return f"IndexSpace(basis_size={self.basis_size}, ranks={sorted(self._ranks)})"

    def index(self, offset: int) -> Index:
        return self._indices[offset]

    def offset(self, index) -> int:
        '''
        Offset of a concrete index. Raises INDEX_NOT_FOUND if absent.
        '''
        index = Index(index)
        try:
            return self._offsets[index]
        except KeyError:
            raise PropertyError(PropertyErrorMsg.INDEX_NOT_FOUND,
                    f"IndexSpace.offset(): {index!r} is not part of the basis.") from None

    # -------------------------------------------------------------------------
    #! Matching
    # -------------------------------------------------------------------------

    def _check_rank(self, pattern: Index, caller: str):
        if pattern.is_compound:
            raise PropertyError(PropertyErrorMsg.COMPOUND_ARITY,
                    f"IndexSpace.{caller}(): compound index {pattern!r} where a single index was expected.")
        if len(pattern) not in self._ranks:
            raise IndexRankError(
                    f"IndexSpace.{caller}(): pattern {pattern!r} has {len(pattern)} subindices, "
                    f"but the basis only contains indices with {sorted(self._ranks)} subindices.")

    @staticmethod
    def _fits(pattern: Index, index: Index) -> bool:
        return all(p in PATTERN_TAGS or p == s for p, s in zip(pattern, index))

    def match(self, pattern) -> List[Match]:
        '''
        Every concrete index matching `pattern`, in canonical order.

        Raises
        ------
        IndexRankError
            If no index of the pattern's rank exists.
        '''
        pattern = Index(pattern)
        self._check_rank(pattern, "match")
        rank    = len(pattern)
        return [Match(index, offset) for offset, index in enumerate(self._indices)
                if len(index) == rank and self._fits(pattern, index)]

    def group(self, pattern) -> List[Group]:
        '''
        Matches of `pattern` grouped by output key; SUM_ALL and SPIN positions
        are collapsed. Groups are ordered by their first match.
        '''
        pattern     = Index(pattern)
        groups      : Dict[Index, List[Match]] = {}
        for m in self.match(pattern):
            key = Index(p if p in COLLAPSED_TAGS else s for p, s in zip(pattern, m.index))
            groups.setdefault(key, []).append(m)
        return [Group(key, tuple(matches)) for key, matches in groups.items()]

    def match_compound(self, pattern, arity: Optional[int] = None) -> List[CompoundMatch]:
        '''
        Cartesian product of the matches of each component of a compound pattern.

        Args:
            pattern:
                Compound pattern, e.g. Index.compound((ALL,), (0,)).
            arity (int, optional):
                Required number of components.
        '''
        pattern     = Index(pattern)
        components  = pattern.split()
        if arity is not None and len(components) != arity:
            raise PropertyError(PropertyErrorMsg.COMPOUND_ARITY,
                    f"IndexSpace.match_compound(): the Index must be a compound Index with {arity} component Indices, "
                    f"but '{len(components)}' components supplied in {pattern!r}.")
        for component in components:
            if Wildcard.SUM_ALL in component or Wildcard.SPIN in component:
                raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                        f"IndexSpace.match_compound(): only ALL wildcards are supported in compound patterns, got {pattern!r}.")
        per_component = [self.match(component) for component in components]
        return [CompoundMatch(Index.compound(*(m.index for m in combo)), tuple(m.offset for m in combo))
                for combo in itertools.product(*per_component)]

    def match_ranges(self, pattern, ranges: Sequence[int]) -> List[RangeGroup]:
        '''
        Ranges layout: ALL subindices span a dense grid with extents taken
        from `ranges`; SUM_ALL and SPIN subindices are collapsed over
        `0..ranges[i]-1` (a SPIN range must be 2);
        concrete subindices are fixed (their range entry is ignored). Grid
        positions are produced in row-major order; only indices present in
        the basis contribute.
        '''
        pattern = Index(pattern)
        ranges  = tuple(ranges)
        self._check_rank(pattern, "match_ranges")
        if len(ranges) != len(pattern):
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"IndexSpace.match_ranges(): pattern {pattern!r} and ranges {ranges} differ in length.")

        grid_pos    = pattern.positions(Wildcard.ALL)
        sum_pos     = [n for n, p in enumerate(pattern) if p in COLLAPSED_TAGS]
        for n in grid_pos + sum_pos:
            if ranges[n] <= 0:
                raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                        f"IndexSpace.match_ranges(): range {ranges[n]} for wildcard subindex {n} must be positive.")
        for n in pattern.positions(Wildcard.SPIN):
            if ranges[n] != 2:
                raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                        f"IndexSpace.match_ranges(): range {ranges[n]} for SPIN subindex {n} must be 2.")

        result = []
        for position in itertools.product(*(range(ranges[n]) for n in grid_pos)):
            base = list(pattern)
            for n, value in zip(grid_pos, position):
                base[n] = value
            key     = Index(base)
            matches = []
            for summed in itertools.product(*(range(ranges[n]) for n in sum_pos)):
                for n, value in zip(sum_pos, summed):
                    base[n] = value
                concrete = Index(base)
                offset   = self._offsets.get(concrete)
                if offset is not None:
                    matches.append(Match(concrete, offset))
            result.append(RangeGroup(tuple(position), key, tuple(matches)))
        return result

# -----------------------------------------------------------------------------
#! EOF
# -----------------------------------------------------------------------------
