"""
Prescribed sub-models.

Each class satisfies one collaborator protocol from
``soilcascade.core.types`` by returning whatever value it currently holds.
A driver sets today's values (from observations or from another model run)
before calling ``CascadingWaterBalance.advance_one_day``. They are also the
natural fixtures for testing the daily step in isolation.
"""
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from soilcascade.core.exceptions import ErrorContext, ParameterError
from soilcascade.core.types import (
    FluxArray,
    LayerArray,
    ProfileView,
    SaturatedFlowResult,
)


def _zeros_like_profile(view: ProfileView) -> np.ndarray:
    return np.zeros(view.profile.n_layers)


def _as_array(values: Optional[Sequence[float]]) -> Optional[np.ndarray]:
    if values is None:
        return None
    return np.array(values, dtype=float)


@dataclass
class PrescribedLateralFlow:
    """Lateral outflow per layer; None means no lateral flow"""
    outflow: Optional[Sequence[float]] = None

    def values(self, view: ProfileView) -> Optional[LayerArray]:
        return _as_array(self.outflow)


@dataclass
class PrescribedRunoff:
    """Runoff as a fixed amount (mm), capped by the water available for runoff"""
    runoff: float = 0.0

    def value(self, potential_runoff: float, view: ProfileView) -> float:
        return min(self.runoff, max(potential_runoff, 0.0))


@dataclass
class PrescribedSaturatedFlow:
    """Downward flux per boundary plus backed-up surface water"""
    flux: Optional[Sequence[float]] = None
    backed_up_surface: float = 0.0

    def values(self, view: ProfileView) -> SaturatedFlowResult:
        flux = _as_array(self.flux)
        if flux is None:
            flux = _zeros_like_profile(view)
        return SaturatedFlowResult(flux=flux, backed_up_surface=self.backed_up_surface)


@dataclass
class PrescribedUnsaturatedFlow:
    """Upward flow per boundary"""
    flow: Optional[Sequence[float]] = None

    def values(self, view: ProfileView) -> FluxArray:
        flow = _as_array(self.flow)
        return _zeros_like_profile(view) if flow is None else flow


@dataclass
class PrescribedEvaporation:
    """Soil evaporation (mm); ``eo`` is ignored"""
    es: float = 0.0

    def calculate(self, eo: float, view: ProfileView) -> float:
        return self.es


@dataclass
class PrescribedWaterTable:
    """Water table depth (mm)"""
    depth: float = 0.0

    def value(self, view: ProfileView) -> float:
        return self.depth


@dataclass
class InMemorySolutePool:
    """Per-layer solute mass (kg/ha) held in memory"""
    name: str
    kgha: np.ndarray = field(default_factory=lambda: np.zeros(0))

    def __post_init__(self):
        self.kgha = np.array(self.kgha, dtype=float)

    def read(self) -> LayerArray:
        return self.kgha.copy()

    def write(self, values: LayerArray) -> None:
        values = np.array(values, dtype=float)
        if values.shape != self.kgha.shape:
            raise ParameterError(
                f"{self.name}: expected {self.kgha.shape[0]} layers, got shape {values.shape}",
                context=ErrorContext(component="InMemorySolutePool", details={"value": values.shape})
            )
        self.kgha = values

    def total(self) -> float:
        return float(self.kgha.sum())
