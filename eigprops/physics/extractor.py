"""
eigprops/physics/extractor.py

PropertyExtractor: physical properties from a completed eigen-decomposition.

Every calculate_* method follows the same traversal:

1. resolve the requested pattern(s) against the IndexSpace of the store,
2. preallocate one block per output entry,
3. call the property's accumulator once per entry (optionally split over a
   thread pool, each worker writing only its own blocks),
4. wrap the data in a read-only container.

Two request shapes are accepted by the index-resolved properties:

    >>> pe.calculate_ldos((ALL, SUM_ALL), ranges=(4, 2))     # Ranges layout
    >>> pe.calculate_ldos([(ALL, SUM_ALL)])                  # Custom layout

and both give the same values for the same output index.

Energy-resolved properties use the EnergyWindow set by `set_energy_window`;
occupation-weighted ones (Density, Magnetization, ExpectationValue, Entropy)
use the Occupation set by `set_occupation`.
"""

import functools
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .thermal import Occupation, Statistics, entropy_occupation
from .spectral.broadening import (
    DepositPolicy, EnergyType, EnergyWindow, Kernel, MatsubaraGrid, TieBreak,
)
from .properties import (
    IndexLayout, EigenValues, DOS, Density, Magnetization, LDOS, SpinPolarizedLDOS,
    WaveFunctions, GreensFunctionType, GreensFunction, SpectralFunction,
)
from .accumulators import (
    PropertyAccumulator, DOSAccumulator, DensityAccumulator, MagnetizationAccumulator,
    LDOSAccumulator, SpinPolarizedLDOSAccumulator, WaveFunctionsAccumulator,
    GreensFunctionAccumulator,
)
from ..algebra.eigen.result import EigenstateStore
from ..algebra.devices import DevicePool, get_device_pool
from ..algebra.utils import PY_NUM_CORES, get_backend, get_device
from ..indexing import Index, Wildcard, Group, ALL_STATES
from ..common.flog import Logger, get_global_logger
from ..common.errors import PropertyError, PropertyErrorMsg

# -----------------------------------------------------------------------------
#! Defaults
# -----------------------------------------------------------------------------

DEFAULT_LOWER_BOUND         = -1.0
DEFAULT_UPPER_BOUND         = 1.0
DEFAULT_RESOLUTION          = 1000
DEFAULT_ENERGY_INFINITESIMAL= 1e-3
DEFAULT_NUM_MATSUBARA       = 1

Pattern     = Union[Index, Sequence[Any]]
Patterns    = Union[Pattern, Sequence[Pattern]]

def _entry_point(func):
    '''
    Log PropertyErrors at error level before they leave an entry point.
    '''
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except PropertyError as e:
            self._log.error(f"PropertyExtractor.{func.__name__}(): {e}")
            raise
    return wrapper

# -----------------------------------------------------------------------------
#! Extractor
# -----------------------------------------------------------------------------

class PropertyExtractor:
    """
    Extract properties from an EigenstateStore.

    Parameters
    ----------
    store : EigenstateStore
        Completed eigen-decomposition (ascending eigenvalues).
    n_workers : int, optional
        Threads used to traverse matched indices. None uses PY_NUM_CORES.
        Default 1 (serial).
    device_pool : DevicePool, optional
        Pool leased by the JAX Green's function path. Defaults to the
        process-wide pool, only touched when the JAX backend is active.
    backend : str or module, optional
        'numpy' (default) or 'jax' for the Green's function summation.
    logger : Logger, optional
        Defaults to the global logger.

    Examples
    --------
    >>> pe = PropertyExtractor(store)
    >>> pe.set_energy_window(-2.0, 2.0, 201, smoothing=0.05)
    >>> dos = pe.calculate_dos()
    >>> rho = pe.calculate_density([(ALL, SUM_ALL)])
    """

    def __init__(self,
                store       : EigenstateStore,
                n_workers   : Optional[int]         = 1,
                device_pool : Optional[DevicePool]  = None,
                backend     : Any                   = 'numpy',
                logger      : Optional[Logger]      = None):
        if not isinstance(store, EigenstateStore):
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"PropertyExtractor(): expected an EigenstateStore, got {type(store).__name__}.")
        n_workers = PY_NUM_CORES if n_workers is None else int(n_workers)
        if n_workers < 1:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"PropertyExtractor(): n_workers must be positive, got {n_workers}.")

        self._store         = store
        self._space         = store.space
        self._n_workers     = n_workers
        self._device_pool   = device_pool
        self._backend       = get_backend(backend)
        self._log           = logger if logger is not None else get_global_logger()

        self._window        = EnergyWindow(DEFAULT_LOWER_BOUND, DEFAULT_UPPER_BOUND, DEFAULT_RESOLUTION)
        self._eta           = DEFAULT_ENERGY_INFINITESIMAL
        self._occupation    = Occupation()
        self._num_matsubara = DEFAULT_NUM_MATSUBARA

    def __repr__(self) -> str:
        return (f"PropertyExtractor(n_states={self._store.eigenvalue_count}, basis_size={self._space.basis_size}, "
                f"n_workers={self._n_workers})")

    # -------------------------------------------------------------------------
    #! Configuration
    # -------------------------------------------------------------------------

    @property
    def store(self) -> EigenstateStore:
        return self._store

    @property
    def energy_window(self) -> EnergyWindow:
        return self._window

    @property
    def energy_infinitesimal(self) -> float:
        return self._eta

    @property
    def occupation(self) -> Occupation:
        return self._occupation

    @_entry_point
    def set_energy_window(self,
                        lower       : float,
                        upper       : float,
                        resolution  : int,
                        smoothing   : float         = 0.0,
                        kernel      : Kernel        = Kernel.GAUSSIAN,
                        deposit     : DepositPolicy = DepositPolicy.NEAREST,
                        tie_break   : TieBreak      = TieBreak.LOWER) -> None:
        '''
        Energy grid and broadening used by DOS, LDOS, SpinPolarizedLDOS and
        the real-axis Green's functions.
        '''
        self._window = EnergyWindow(lower, upper, resolution, smoothing, kernel, deposit, tie_break)

    @_entry_point
    def set_energy_infinitesimal(self, eta: float) -> None:
        '''
        Imaginary shift of the retarded/advanced Green's function.
        '''
        if eta < 0:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"set_energy_infinitesimal(): eta must be non-negative, got {eta}.")
        self._eta = float(eta)

    @_entry_point
    def set_occupation(self,
                    chemical_potential  : Optional[float]       = None,
                    temperature         : Optional[float]       = None,
                    statistics          : Optional[Statistics]  = None) -> None:
        '''
        Update the occupation policy. Arguments left as None keep their value.
        '''
        current = self._occupation
        if temperature is not None and temperature < 0:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"set_occupation(): temperature must be non-negative, got {temperature}.")
        self._occupation = Occupation(
            chemical_potential  = current.chemical_potential if chemical_potential is None else float(chemical_potential),
            temperature         = current.temperature if temperature is None else float(temperature),
            statistics          = current.statistics if statistics is None else statistics,
        )

    @_entry_point
    def set_num_matsubara_energies(self, num_energies: int) -> None:
        '''
        Number of fermionic Matsubara frequencies of the Matsubara Green's function.
        '''
        if int(num_energies) != num_energies or num_energies < 1:
            raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                    f"set_num_matsubara_energies(): expected a positive integer, got {num_energies}.")
        self._num_matsubara = int(num_energies)

    # -------------------------------------------------------------------------
    #! Traversal
    # -------------------------------------------------------------------------

    @staticmethod
    def _as_patterns(patterns: Patterns) -> List[Index]:
        '''
        A single pattern or a list of patterns, as a list of Index.
        '''
        if isinstance(patterns, Index):
            return [patterns]
        patterns = list(patterns)
        if patterns and all(isinstance(p, (int, np.integer, Wildcard)) for p in patterns):
            return [Index(patterns)]
        return [Index(p) for p in patterns]

    def _resolve(self, patterns: Patterns, ranges: Optional[Sequence[int]]
                ) -> Tuple[list, IndexLayout, Optional[Tuple[int, ...]]]:
        '''
        Output entries, layout and ranges shape for either request shape.
        '''
        if ranges is not None:
            pattern = Index(patterns)
            entries = self._space.match_ranges(pattern, ranges)
            shape   = tuple(int(ranges[n]) for n in pattern.positions(Wildcard.ALL))
            return entries, IndexLayout.RANGES, shape

        entries = []
        seen    = set()
        for pattern in self._as_patterns(patterns):
            for group in self._space.group(pattern):
                if group.key not in seen:
                    seen.add(group.key)
                    entries.append(group)
        return entries, IndexLayout.CUSTOM, None

    def _traverse(self, accumulator: PropertyAccumulator, entries: Sequence[Any]) -> np.ndarray:
        '''
        Preallocate and fill one block per entry.
        '''
        t0      = time.perf_counter()
        data    = np.zeros((len(entries), accumulator.block_size(self._store)), dtype=accumulator.dtype)

        def work(n: int):
            data[n] = accumulator.accumulate(entries[n], self._store)

        if self._n_workers > 1 and len(entries) > 1:
            with ThreadPoolExecutor(max_workers=min(self._n_workers, len(entries))) as executor:
                # consuming the iterator re-raises worker exceptions
                for _ in executor.map(work, range(len(entries))):
                    pass
        else:
            for n in range(len(entries)):
                work(n)

        self._log.debug(f"{accumulator.name}: {len(entries)} block(s) in {time.perf_counter() - t0:.4f} s", lvl=1)
        return data

    # -------------------------------------------------------------------------
    #! Eigenvalues and amplitudes
    # -------------------------------------------------------------------------

    def get_eigenvalues(self) -> EigenValues:
        return EigenValues(self._store.eigenvalues)

    def _check_state(self, state, caller: str) -> int:
        n_states = self._store.eigenvalue_count
        if isinstance(state, (bool, np.bool_)) or not isinstance(state, (int, np.integer)) or not 0 <= state < n_states:
            raise PropertyError(PropertyErrorMsg.STATE_OUT_OF_RANGE,
                    f"{caller}(): state {state!r} outside [0, {n_states}).")
        return int(state)

    @_entry_point
    def get_eigenvalue(self, state: int) -> float:
        return self._store.eigenvalue(self._check_state(state, "get_eigenvalue"))

    @_entry_point
    def get_amplitude(self, state: int, index) -> complex:
        return self._store.amplitude(self._check_state(state, "get_amplitude"), index)

    # -------------------------------------------------------------------------
    #! Energy resolved properties
    # -------------------------------------------------------------------------

    @_entry_point
    def calculate_dos(self, normalize: bool = False) -> DOS:
        '''
        Total density of states on the current energy window. With `normalize`
        the result is divided by the number of eigenstates.
        '''
        data = self._traverse(DOSAccumulator(self._window, normalize), [None])
        return DOS(data, self._window)

    @_entry_point
    def calculate_ldos(self, patterns: Patterns, ranges: Optional[Sequence[int]] = None) -> LDOS:
        entries, layout, shape = self._resolve(patterns, ranges)
        self._log.debug(f"LDOS for {patterns}: {len(entries)} output indices", lvl=1)
        data = self._traverse(LDOSAccumulator(self._window), entries)
        return LDOS([e.key for e in entries], data, self._window, layout, shape)

    @_entry_point
    def calculate_spin_polarized_ldos(self, patterns: Patterns, ranges: Optional[Sequence[int]] = None) -> SpinPolarizedLDOS:
        '''
        Spin-resolved LDOS. Every pattern carries exactly one SPIN subindex;
        in the Ranges form its range must be 2.
        '''
        entries, layout, shape = self._resolve(patterns, ranges)
        self._log.debug(f"SpinPolarizedLDOS for {patterns}: {len(entries)} output indices", lvl=1)
        data = self._traverse(SpinPolarizedLDOSAccumulator(self._window), entries)
        return SpinPolarizedLDOS([e.key for e in entries], data, self._window, layout, shape)

    # -------------------------------------------------------------------------
    #! Occupied properties
    # -------------------------------------------------------------------------

    @_entry_point
    def calculate_density(self, patterns: Patterns, ranges: Optional[Sequence[int]] = None) -> Density:
        entries, layout, shape = self._resolve(patterns, ranges)
        self._log.debug(f"Density for {patterns}: {len(entries)} output indices", lvl=1)
        data = self._traverse(DensityAccumulator(self._occupation), entries)
        return Density([e.key for e in entries], data, layout, shape)

    @_entry_point
    def calculate_magnetization(self, patterns: Patterns, ranges: Optional[Sequence[int]] = None) -> Magnetization:
        entries, layout, shape = self._resolve(patterns, ranges)
        self._log.debug(f"Magnetization for {patterns}: {len(entries)} output indices", lvl=1)
        data = self._traverse(MagnetizationAccumulator(self._occupation), entries)
        return Magnetization([e.key for e in entries], data, layout, shape)

    @_entry_point
    def calculate_expectation_value(self, to, frm) -> complex:
        r'''
        <c^\dagger_{from} c_{to}> = \sum_n f(E_n) \psi_n(to) \psi_n(from)^*.
        '''
        f   = self._occupation(self._store.eigenvalues)
        u   = self._store.amplitudes(self._space.offset(to))
        v   = self._store.amplitudes(self._space.offset(frm))
        return complex(np.sum(f * u * np.conj(v)))

    @_entry_point
    def calculate_entropy(self) -> float:
        f = self._occupation(self._store.eigenvalues)
        return entropy_occupation(f, self._occupation.statistics)

    # -------------------------------------------------------------------------
    #! Wave functions
    # -------------------------------------------------------------------------

    def _states(self, states: Iterable) -> List[int]:
        states      = list(states)
        n_states    = self._store.eigenvalue_count
        if any(s is ALL_STATES for s in states):
            return list(range(n_states))
        return [self._check_state(s, "calculate_wave_functions") for s in states]

    @_entry_point
    def calculate_wave_functions(self, patterns: Patterns, states: Iterable) -> WaveFunctions:
        '''
        Amplitudes of the requested states at every index matching `patterns`.
        `states` may be [ALL_STATES]. Only ALL wildcards are allowed.
        '''
        states  = self._states(states)
        entries = []
        seen    = set()
        for pattern in self._as_patterns(patterns):
            if Wildcard.SUM_ALL in pattern or Wildcard.SPIN in pattern:
                raise PropertyError(PropertyErrorMsg.INVALID_INPUT,
                        f"calculate_wave_functions(): only ALL wildcards are supported, got {pattern!r}.")
            for m in self._space.match(pattern):
                if m.index not in seen:
                    seen.add(m.index)
                    entries.append(Group(m.index, (m,)))
        data = self._traverse(WaveFunctionsAccumulator(states), entries)
        return WaveFunctions([e.key for e in entries], data, states)

    # -------------------------------------------------------------------------
    #! Green's function
    # -------------------------------------------------------------------------

    def _uses_devices(self) -> bool:
        return self._backend is not np

    @_entry_point
    def calculate_greens_function(self, patterns: Patterns,
                                gf_type: GreensFunctionType = GreensFunctionType.RETARDED) -> GreensFunction:
        '''
        Green's function for compound {to | from} patterns.

        RETARDED / ADVANCED use the energy window and the energy
        infinitesimal; MATSUBARA uses fermionic frequencies at the occupation
        temperature and 1/(i w_n + mu - E_n).
        '''
        patterns = self._as_patterns(patterns)
        if gf_type is GreensFunctionType.MATSUBARA:
            energies = MatsubaraGrid(self._occupation.temperature, self._num_matsubara, EnergyType.FERMIONIC_MATSUBARA)
        else:
            energies = self._window

        accumulator = GreensFunctionAccumulator(gf_type, energies, self._eta,
                            self._occupation.chemical_potential, self._backend)
        entries     = []
        seen        = set()
        for pattern in patterns:
            for cm in self._space.match_compound(pattern, arity=2):
                if cm.index not in seen:
                    seen.add(cm.index)
                    entries.append(cm)
        self._log.debug(f"GreensFunction ({gf_type.name}): {len(entries)} output indices", lvl=1)

        # an explicit pool is always leased; the process-wide one only on the JAX path
        pool = self._device_pool
        if pool is None and self._uses_devices():
            pool = get_device_pool()
        if pool is not None and pool.size > 0:
            with pool.lease() as device:
                if self._uses_devices():
                    accumulator.device = get_device(device)
                data = self._traverse(accumulator, entries)
        else:
            data = self._traverse(accumulator, entries)
        return GreensFunction([e.index for e in entries], data, energies, gf_type)

    def calculate_spectral_function(self, patterns: Patterns) -> SpectralFunction:
        r'''
        A(E) = -Im G^R(E) / \pi for compound {to | from} patterns on the energy window.
        '''
        return SpectralFunction.from_greens_function(
                    self.calculate_greens_function(patterns, GreensFunctionType.RETARDED))

# -----------------------------------------------------------------------------
#! Exports
# -----------------------------------------------------------------------------

__all__ = [
    'PropertyExtractor',
]
