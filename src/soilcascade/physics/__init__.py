"""Physics modules for the cascading soil water balance."""
from soilcascade.physics.soil_profile import SoilLayer, SoilProfile
from soilcascade.physics.water_state import WaterState
from soilcascade.physics.redistribution import shift_down, shift_up
from soilcascade.physics.solute_transport import solute_flow_up, solute_flux_down
from soilcascade.physics.validation import ProfileValidator
from soilcascade.physics.water_balance import (
    CascadingWaterBalance,
    DailyInputs,
    DayResult,
    ProcessSettings,
    SubModels,
)

__all__ = [
    "SoilLayer",
    "SoilProfile",
    "WaterState",
    "shift_down",
    "shift_up",
    "solute_flow_up",
    "solute_flux_down",
    "ProfileValidator",
    # Daily step
    "CascadingWaterBalance",
    "DailyInputs",
    "DayResult",
    "ProcessSettings",
    "SubModels",
]
