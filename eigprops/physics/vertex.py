"""
eigprops/physics/vertex.py

Electron fluctuation vertex for self-energy calculations.

The vertex couples a left and a right list of two-body interaction
amplitudes through an energy-resolved susceptibility:

    V_{k, b0, b1, b2, b3}(E_n) = multiplier * sum_{u_i, u_o} u_i u_o
                                 chi_{k, c0_o, a1_o, c1_i, a0_i}(E_n)

with u_i restricted to a1_i = b3, c0_i = b2 and u_o restricted to
a0_o = b0, c1_o = b1. The result does not depend on the order of the
amplitude lists.

Example
-------
>>> chi     = Susceptibility.from_blocks(blocks, EnergyWindow(-1.0, 1.0, 11))
>>> vertex  = ElectronFluctuationVertex(chi, left, right, multiplier=0.5)
>>> vertex.calculate_self_energy_vertex(Index.compound((0,), 0, 1, 1, 0))
"""

from typing import Sequence

from numpy.typing import NDArray

from .accumulators import InteractionAmplitude, VertexAccumulator
from .properties import Susceptibility
from ..common.flog import get_global_logger
from ..common.errors import PropertyError

log = get_global_logger()

# -----------------------------------------------------------------------------

class ElectronFluctuationVertex:
    """
    Self-energy vertex from a susceptibility and two interaction lists.

    Parameters
    ----------
    susceptibility : Susceptibility
        Real-axis or bosonic Matsubara susceptibility keyed by
        {k | c0 | a1 | c1 | a0}.
    left, right : sequence of InteractionAmplitude
        Incoming and outgoing interaction amplitudes.
    multiplier : float
        Overall prefactor.
    """

    def __init__(self,
                susceptibility  : Susceptibility,
                left            : Sequence[InteractionAmplitude],
                right           : Sequence[InteractionAmplitude],
                multiplier      : float = 1.0):
        try:
            self._accumulator = VertexAccumulator(susceptibility, left, right, multiplier)
        except PropertyError as e:
            log.error(f"ElectronFluctuationVertex(): {e}")
            raise

    @property
    def susceptibility(self) -> Susceptibility:
        return self._accumulator.susceptibility

    @property
    def multiplier(self) -> float:
        return self._accumulator.multiplier

    def calculate_self_energy_vertex(self, index) -> NDArray:
        """
        Vertex for a 5-component compound index {k | b0 | b1 | b2 | b3}.

        Returns
        -------
        ndarray, complex, shape (num_energies,)
        """
        try:
            return self._accumulator.accumulate(index)
        except PropertyError as e:
            log.error(f"ElectronFluctuationVertex.calculate_self_energy_vertex(): {e}")
            raise

# -----------------------------------------------------------------------------

__all__ = [
    'InteractionAmplitude',
    'ElectronFluctuationVertex',
]
