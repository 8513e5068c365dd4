"""
Solute co-transport with water.

Solute moving between layers is approximated from the concentration of the
layer the water leaves, using first-order mixing rather than exact
advection. Both functions are sequential in depth: each layer's result
depends on the one computed before it, so the loop direction matters.

Units: solute in kg/ha, water and fluxes in mm. The efficiency coefficient
(0-1) is the fraction of the dissolved solute that actually moves with the
water; 1.0 means full entrainment.
"""
import numpy as np

from soilcascade.core.exceptions import ErrorContext, ParameterError
from soilcascade.core.types import FluxArray, LayerArray


def _check_efficiency(efficiency: float, operation: str):
    if not 0.0 <= efficiency <= 1.0:
        raise ParameterError(
            f"Solute efficiency must be within [0, 1] (got {efficiency})",
            context=ErrorContext(operation=operation, details={"value": efficiency})
        )


def _moving_fraction(amount: float, water: float) -> float:
    # No water left in the layer means nothing to carry the solute
    if water <= 0.0:
        return 0.0
    return amount / water


def solute_flux_down(
    solute: LayerArray,
    water: LayerArray,
    flux: FluxArray,
    efficiency: float = 1.0
) -> np.ndarray:
    """
    Solute carried down by saturated flux, evaluated top to bottom.

    Layer 0 sends ``flux[0] * solute[0] / (water[0] + flux[0])``. Deeper
    layers pool what arrived from above with their own solute before
    computing the outgoing amount:
    ``flux[i] * (solute[i] + out[i-1]) / (water[i] + flux[i])``.

    Args:
        solute: Solute mass per layer (kg/ha)
        water: Water per layer (mm)
        flux: Downward water flux per boundary (mm)
        efficiency: Fraction of solute moving with the water

    Returns:
        Solute leaving each layer downward (kg/ha); the last entry is what
        leaches out of the profile
    """
    _check_efficiency(efficiency, "solute_flux_down")
    solute = np.asarray(solute, dtype=float)
    water = np.asarray(water, dtype=float)
    flux = np.asarray(flux, dtype=float)

    solute_flux = np.zeros_like(solute)
    for i in range(len(solute)):
        arriving = solute_flux[i - 1] if i > 0 else 0.0
        solute_flux[i] = efficiency * flux[i] * _moving_fraction(solute[i] + arriving, water[i] + flux[i])

    return solute_flux


def solute_flow_up(
    solute: LayerArray,
    water: LayerArray,
    flow: FluxArray,
    efficiency: float = 1.0
) -> np.ndarray:
    """
    Solute carried up by unsaturated flow, evaluated bottom to top.

    ``flow[i]`` is the water coming into layer i from the layer below. The
    bottom layer uses ``flow[n-1] * solute[n-1] / (water[n-1] - flow[n-1])``;
    interior layers use the layer's total water after exchange,
    ``water[i] + flow[i] - flow[i-1]``. The top layer gets no computed term:
    its entry is always zero.

    Args:
        solute: Solute mass per layer (kg/ha)
        water: Water per layer (mm)
        flow: Upward water flow per boundary (mm)
        efficiency: Fraction of solute moving with the water

    Returns:
        Solute entering each layer from below (kg/ha)
    """
    _check_efficiency(efficiency, "solute_flow_up")
    solute = np.asarray(solute, dtype=float)
    water = np.asarray(water, dtype=float)
    flow = np.asarray(flow, dtype=float)

    n = len(solute)
    solute_flow = np.zeros_like(solute)
    for i in range(n - 1, 0, -1):
        if i == n - 1:
            total_water = water[i] - flow[i]
        else:
            total_water = water[i] + flow[i] - flow[i - 1]
        solute_flow[i] = flow[i] * _moving_fraction(solute[i], total_water)

    return solute_flow * efficiency
