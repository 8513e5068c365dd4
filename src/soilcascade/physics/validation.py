"""
Fail-fast validation of soil limits and soil water content.

Checks run layer by layer from the top, and within a layer in a fixed order:

1. air-dry >= 0
2. LL15 >= air-dry
3. DUL > LL15
4. SAT > DUL
5. SAT <= total porosity (1 - BD/2.65)
6. soil water <= SAT
7. soil water >= air-dry

The first failing check raises; there is no aggregation of errors and no
correction of values. Checks 1-5 are configuration errors, 6-7 are water
balance errors.
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Type

import numpy as np

from soilcascade.core.constants import COMPARISON_TOLERANCE, MIN_AIR_DRY, SPECIFIC_BULK_DENSITY
from soilcascade.core.exceptions import (
    AirDryBelowMinimumError,
    DrainedUpperLimitError,
    ErrorContext,
    LowerLimitBelowAirDryError,
    SaturationAbovePorosityError,
    SaturationBelowDrainedUpperLimitError,
    SoilCascadeError,
    WaterAboveSaturationError,
    WaterBelowAirDryError,
)
from soilcascade.core.types import LayerArray
from soilcascade.physics.soil_profile import SoilLayer, SoilProfile

logger = logging.getLogger(__name__)


@dataclass
class LayerCheck:
    """Definition of one per-layer bound"""
    name: str
    value: Callable[[SoilLayer, Optional[float]], float]
    violated: Callable[[SoilLayer, Optional[float]], bool]
    message: Callable[[SoilLayer, Optional[float]], str]
    error: Type[SoilCascadeError]
    needs_water: bool = False


class ProfileValidator:
    """
    Rejects physically impossible soils and water contents.

    Comparisons allow a small tolerance so that a value sitting on a bound
    (e.g. water exactly at saturation after rounding) passes.
    """

    def __init__(self, tolerance: float = COMPARISON_TOLERANCE):
        self.tolerance = tolerance
        self.checks = self._initialize_checks()

    # Tolerant comparisons
    def _less_than(self, a: float, b: float) -> bool:
        return a < b - self.tolerance

    def _less_or_equal(self, a: float, b: float) -> bool:
        return a <= b + self.tolerance

    def _greater_than(self, a: float, b: float) -> bool:
        return a > b + self.tolerance

    def _initialize_checks(self) -> List[LayerCheck]:
        """Initialize the ordered per-layer checks"""
        return [
            LayerCheck(
                name="air_dry_minimum",
                value=lambda layer, sw: layer.air_dry,
                violated=lambda layer, sw: self._less_than(layer.air_dry, MIN_AIR_DRY),
                message=lambda layer, sw: (
                    f"Air dry lower limit of {layer.air_dry:.4g} "
                    f"is below acceptable value of {MIN_AIR_DRY:.4g}"
                ),
                error=AirDryBelowMinimumError,
            ),
            LayerCheck(
                name="ll15_above_air_dry",
                value=lambda layer, sw: layer.ll15,
                violated=lambda layer, sw: self._less_than(layer.ll15, layer.air_dry),
                message=lambda layer, sw: (
                    f"15 bar lower limit of {layer.ll15:.4g} "
                    f"is below air dry value of {layer.air_dry:.4g}"
                ),
                error=LowerLimitBelowAirDryError,
            ),
            LayerCheck(
                name="dul_above_ll15",
                value=lambda layer, sw: layer.dul,
                violated=lambda layer, sw: self._less_or_equal(layer.dul, layer.ll15),
                message=lambda layer, sw: (
                    f"Drained upper limit of {layer.dul:.4g} "
                    f"is at or below lower limit of {layer.ll15:.4g}"
                ),
                error=DrainedUpperLimitError,
            ),
            LayerCheck(
                name="sat_above_dul",
                value=lambda layer, sw: layer.sat,
                violated=lambda layer, sw: self._less_or_equal(layer.sat, layer.dul),
                message=lambda layer, sw: (
                    f"Saturation of {layer.sat:.4g} "
                    f"is at or below drained upper limit of {layer.dul:.4g}"
                ),
                error=SaturationBelowDrainedUpperLimitError,
            ),
            LayerCheck(
                name="sat_within_porosity",
                value=lambda layer, sw: layer.sat,
                violated=lambda layer, sw: self._greater_than(layer.sat, layer.max_porosity),
                message=lambda layer, sw: (
                    f"Saturation of {layer.sat:.4g} "
                    f"is above acceptable value of {layer.max_porosity:.4g}. "
                    f"You must adjust bulk density (bd) to below "
                    f"{(1.0 - layer.sat) * SPECIFIC_BULK_DENSITY:.4g} "
                    f"OR saturation (sat) to below {layer.max_porosity:.4g}"
                ),
                error=SaturationAbovePorosityError,
            ),
            LayerCheck(
                name="water_below_sat",
                value=lambda layer, sw: sw,
                violated=lambda layer, sw: self._greater_than(sw, layer.sat),
                message=lambda layer, sw: (
                    f"Soil water of {sw:.4g} is above saturation of {layer.sat:.4g}"
                ),
                error=WaterAboveSaturationError,
                needs_water=True,
            ),
            LayerCheck(
                name="water_above_air_dry",
                value=lambda layer, sw: sw,
                violated=lambda layer, sw: self._less_than(sw, layer.air_dry),
                message=lambda layer, sw: (
                    f"Soil water of {sw:.4g} is below air-dry value of {layer.air_dry:.4g}"
                ),
                error=WaterBelowAirDryError,
                needs_water=True,
            ),
        ]

    def _run(self, profile: SoilProfile, sw: Optional[LayerArray], day: Optional[str]):
        for i, layer in enumerate(profile.layers):
            layer_sw = None if sw is None else float(sw[i])
            for check in self.checks:
                if check.needs_water and layer_sw is None:
                    continue
                if check.violated(layer, layer_sw):
                    message = check.message(layer, layer_sw)
                    logger.error(f"Layer {i}: {message}")
                    raise check.error(
                        message,
                        context=ErrorContext(
                            layer=i,
                            day=day,
                            component="ProfileValidator",
                            operation=check.name,
                            details={"value": check.value(layer, layer_sw)},
                        )
                    )

    def validate_soil(self, profile: SoilProfile):
        """
        Check the static soil limits only.

        Raises:
            SoilParameterError: subclass naming the first violated limit
        """
        self._run(profile, None, None)

    def validate(self, profile: SoilProfile, water: LayerArray, day: Optional[str] = None):
        """
        Check soil limits and the current water content, layer by layer.

        Args:
            profile: Soil profile
            water: Water per layer (mm)
            day: Optional label of the simulated day, for error context

        Raises:
            SoilParameterError: a soil limit is impossible
            WaterContentBoundsError: water is outside [air-dry, SAT]
        """
        sw = np.asarray(water, dtype=float) / profile.thickness
        self._run(profile, sw, day)
