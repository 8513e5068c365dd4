"""
Per-layer soil water state.

Water is stored as an absolute amount (mm) per layer. The volumetric view
(mm/mm) is derived by dividing by layer thickness, and setting it re-derives
the absolute amount.
"""
from typing import Sequence

import numpy as np

from soilcascade.core.exceptions import ErrorContext, ParameterError
from soilcascade.core.types import ProfileView
from soilcascade.physics.soil_profile import SoilProfile


class WaterState:
    """Mutable per-layer water content aligned with a SoilProfile"""

    def __init__(self, profile: SoilProfile, water: Sequence[float]):
        self.profile = profile
        self._thickness = profile.thickness
        self._water = self._as_layer_array(water, "water")

    @classmethod
    def from_volumetric(cls, profile: SoilProfile, sw: Sequence[float]) -> "WaterState":
        """Create state from volumetric water content"""
        state = cls(profile, np.zeros(profile.n_layers))
        state.sw = sw
        return state

    @classmethod
    def at_drained_upper_limit(cls, profile: SoilProfile) -> "WaterState":
        """Initialize layers at the drained upper limit (common assumption)"""
        return cls(profile, profile.dul_mm)

    def _as_layer_array(self, values: Sequence[float], name: str) -> np.ndarray:
        array = np.array(values, dtype=float)
        if array.shape != (self.profile.n_layers,):
            raise ParameterError(
                f"{name} must have one value per layer "
                f"(expected {self.profile.n_layers}, got shape {array.shape})",
                context=ErrorContext(component="WaterState", details={"value": array.shape})
            )
        return array

    @property
    def water(self) -> np.ndarray:
        """Water per layer (mm). The array is live: in-place edits update the state."""
        return self._water

    @water.setter
    def water(self, values: Sequence[float]):
        self._water = self._as_layer_array(values, "water")

    @property
    def swmm(self) -> np.ndarray:
        """Copy of the water per layer (mm)"""
        return self._water.copy()

    @property
    def sw(self) -> np.ndarray:
        """Volumetric water content (mm/mm)"""
        return self._water / self._thickness

    @sw.setter
    def sw(self, values: Sequence[float]):
        self._water = self._as_layer_array(values, "sw") * self._thickness

    @property
    def esw(self) -> np.ndarray:
        """Extractable soil water above LL15 (mm)"""
        return self._water - self.profile.ll15_mm

    def total(self) -> float:
        """Total water in the profile (mm)"""
        return float(self._water.sum())

    def remove_water(self, amounts: Sequence[float]):
        """Take a per-layer amount (mm) out of the profile, e.g. crop uptake"""
        self._water -= self._as_layer_array(amounts, "amounts")

    def view(self) -> ProfileView:
        """Read-only snapshot for sub-models"""
        snapshot = self._water.copy()
        snapshot.setflags(write=False)
        return ProfileView(profile=self.profile, water=snapshot)

    def copy(self) -> "WaterState":
        return WaterState(self.profile, self._water.copy())
