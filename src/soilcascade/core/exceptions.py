"""
Custom exception hierarchy for the soilcascade system.
Provides clear error categories and rich error information.

Two families matter at run time:

* ``ConfigurationError``: the static soil definition is physically
  impossible (e.g. saturation at or below the drained upper limit).
* ``WaterBalanceError``: the water content produced by a daily step left
  the [air-dry, saturation] band.

Both are fatal for a simulation run. Nothing in the package retries, clamps
or silently corrects after raising one of them.
"""
from typing import Optional, Any, Dict
from dataclasses import dataclass


@dataclass
class ErrorContext:
    """Context information for errors"""
    layer: Optional[int] = None
    day: Optional[str] = None
    component: Optional[str] = None
    operation: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class SoilCascadeError(Exception):
    """Base exception for all soilcascade errors"""

    def __init__(self, message: str, context: Optional[ErrorContext] = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    @property
    def layer(self) -> Optional[int]:
        """Index of the offending layer, if the error concerns one"""
        return self.context.layer

    @property
    def value(self) -> Optional[float]:
        """Offending value, if one was recorded"""
        if self.context.details:
            return self.context.details.get("value")
        return None

    def __str__(self) -> str:
        context_str = ""
        if self.context.layer is not None:
            context_str += f" [Layer: {self.context.layer}]"
        if self.context.day:
            context_str += f" [Day: {self.context.day}]"
        if self.context.component:
            context_str += f" [Component: {self.context.component}]"

        return f"{self.__class__.__name__}: {self.message}{context_str}"


# Configuration errors
class ConfigurationError(SoilCascadeError):
    """Configuration error"""
    pass


class SoilParameterError(ConfigurationError):
    """Soil layer limits are physically impossible"""
    pass


class AirDryBelowMinimumError(SoilParameterError):
    """Air-dry water content below zero"""
    pass


class LowerLimitBelowAirDryError(SoilParameterError):
    """LL15 below air-dry"""
    pass


class DrainedUpperLimitError(SoilParameterError):
    """DUL at or below LL15"""
    pass


class SaturationBelowDrainedUpperLimitError(SoilParameterError):
    """SAT at or below DUL"""
    pass


class SaturationAbovePorosityError(SoilParameterError):
    """SAT above the total porosity implied by bulk density"""
    pass


# Physics model errors
class PhysicsModelError(SoilCascadeError):
    """Base class for physics model errors"""
    pass


class ParameterError(PhysicsModelError):
    """Invalid model parameters"""
    pass


class WaterBalanceError(PhysicsModelError):
    """Water balance violation"""
    pass


class WaterContentBoundsError(WaterBalanceError):
    """Soil water outside the [air-dry, saturation] band after a step"""
    pass


class WaterAboveSaturationError(WaterContentBoundsError):
    """Soil water above saturation"""
    pass


class WaterBelowAirDryError(WaterContentBoundsError):
    """Soil water below air-dry"""
    pass
