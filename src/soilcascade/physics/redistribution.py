"""
Mass-conserving redistribution of a per-layer quantity.

Both primitives take an array indexed by the layer above each boundary:
``flux[i]`` moves between layer i and layer i+1. The last entry crosses the
bottom of the profile, so it is the only term that is not conserved inside
the profile (drainage going down, deep inflow coming up).

The same primitives move water (mm) and solute mass (kg/ha).
"""
import numpy as np

from soilcascade.core.types import FluxArray, LayerArray


def shift_down(state: LayerArray, flux: FluxArray) -> LayerArray:
    """
    Move a quantity down the profile in place.

    Layer 0 loses ``flux[0]``; layer i gains ``flux[i-1]`` from above and
    loses ``flux[i]`` to the layer below.

    Returns:
        The same (mutated) array, for chaining
    """
    flux = np.asarray(flux, dtype=float)
    state[0] -= flux[0]
    state[1:] += flux[:-1] - flux[1:]
    return state


def shift_up(state: LayerArray, flow: FluxArray) -> LayerArray:
    """
    Move a quantity up the profile in place.

    ``flow[i]`` is what enters layer i from the layer below. Layer 0 gains
    ``flow[0]``; layer i gains ``flow[i]`` and loses ``flow[i-1]`` to the
    layer above.

    Returns:
        The same (mutated) array, for chaining
    """
    flow = np.asarray(flow, dtype=float)
    state[0] += flow[0]
    state[1:] += flow[1:] - flow[:-1]
    return state
