"""
Physical constants, default values, and system-wide constants.
"""
from typing import Final, Tuple

# Physical constants
SPECIFIC_BULK_DENSITY: Final[float] = 2.65  # g/cm³, mineral particle density
MIN_AIR_DRY: Final[float] = 0.0  # m³/m³

# Numerical tolerance
COMPARISON_TOLERANCE: Final[float] = 1e-5  # bound checks on volumetric values

# Solute transport defaults (fraction of solute moving with the water)
DEFAULT_SOLUTE_FLUX_EFFICIENCY: Final[float] = 1.0
DEFAULT_SOLUTE_FLOW_EFFICIENCY: Final[float] = 1.0

# Solute pool names
NITRATE: Final[str] = "NO3"
AMMONIUM: Final[str] = "NH4"

# Forcing table columns consumed by the multi-day driver
REQUIRED_FORCING_COLUMNS: Final[Tuple[str, ...]] = (
    "potential_infiltration_mm",
    "eo_mm",
)
OPTIONAL_FORCING_COLUMNS: Final[Tuple[str, ...]] = (
    "runon_mm",
    "runoff_mm",
    "evaporation_mm",
    "backed_up_mm",
    "water_table_depth_mm",
    "irrigation_mm",
    "irrigation_depth_mm",
    "irrigation_will_runoff",
)
