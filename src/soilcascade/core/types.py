"""
Type definitions and type aliases for the soilcascade system.
Provides strong typing throughout the codebase.
"""
from dataclasses import dataclass
from typing import TYPE_CHECKING, NamedTuple, Optional, Protocol, runtime_checkable

import numpy as np
from typing_extensions import TypeAlias

if TYPE_CHECKING:
    from soilcascade.physics.soil_profile import SoilProfile


# Type aliases for clarity
LayerIndex: TypeAlias = int
WaterMm: TypeAlias = float
DepthMm: TypeAlias = float

# Array types for static typing with numpy
LayerArray: TypeAlias = np.ndarray  # Shape: (n_layers,)
FluxArray: TypeAlias = np.ndarray  # Shape: (n_layers,), indexed by layer above boundary


@dataclass(frozen=True)
class IrrigationEvent:
    """Today's irrigation snapshot"""
    applied: WaterMm = 0.0
    depth: DepthMm = 0.0
    will_runoff: bool = False

    @property
    def infiltrates(self) -> bool:
        """True when the irrigation enters the profile at depth"""
        return not self.will_runoff and self.applied > 0


NO_IRRIGATION = IrrigationEvent()


class SaturatedFlowResult(NamedTuple):
    """Output of a saturated flow sub-model"""
    flux: FluxArray
    backed_up_surface: WaterMm = 0.0


@dataclass(frozen=True)
class ProfileView:
    """Read-only snapshot of the profile handed to sub-models"""
    profile: "SoilProfile"
    water: LayerArray

    @property
    def sw(self) -> LayerArray:
        """Volumetric water content (mm/mm)"""
        return self.water / self.profile.thickness


# Protocol definitions for dependency injection
@runtime_checkable
class LateralFlowModel(Protocol):
    """Water leaving each layer sideways"""

    def values(self, view: ProfileView) -> Optional[LayerArray]:
        """Per-layer outflow (mm), or None when there is none"""
        ...


@runtime_checkable
class RunoffModel(Protocol):
    """Surface runoff"""

    def value(self, potential_runoff: WaterMm, view: ProfileView) -> WaterMm:
        """Runoff (mm) given the water available for runoff today"""
        ...


@runtime_checkable
class SaturatedFlowModel(Protocol):
    """Gravity-driven drainage"""

    def values(self, view: ProfileView) -> SaturatedFlowResult:
        """Downward flux per boundary plus surface water that backed up"""
        ...


@runtime_checkable
class UnsaturatedFlowModel(Protocol):
    """Diffusive upward flow"""

    def values(self, view: ProfileView) -> FluxArray:
        """Upward flow per boundary (mm)"""
        ...


@runtime_checkable
class EvaporationModel(Protocol):
    """Soil evaporation from the top layer"""

    def calculate(self, eo: WaterMm, view: ProfileView) -> WaterMm:
        """Actual soil evaporation (mm)"""
        ...


@runtime_checkable
class WaterTableModel(Protocol):
    """Water table depth"""

    def value(self, view: ProfileView) -> DepthMm:
        """Depth of the water table (mm)"""
        ...


@runtime_checkable
class SolutePool(Protocol):
    """Per-layer solute mass store (kg/ha)"""

    def read(self) -> LayerArray:
        """Snapshot of the per-layer masses"""
        ...

    def write(self, values: LayerArray) -> None:
        """Replace the per-layer masses"""
        ...
