"""
Cascading daily water and solute balance for one layered soil profile.

The processes are calculated consecutively, CERES style, rather than solved
simultaneously:

    lateral flow -> runoff/infiltration -> irrigation -> saturated flow
    (backed-up water becomes runoff) -> solutes down -> evaporation
    -> unsaturated flow -> validation -> water table -> solutes up

How each flux is computed belongs to the injected sub-models. This module
only combines their daily outputs, in this order, and applies them to the
profile's water and solute state.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from soilcascade.core.config import WaterBalanceConfig, get_config
from soilcascade.core.constants import NITRATE
from soilcascade.core.exceptions import ErrorContext, ParameterError
from soilcascade.core.types import (
    NO_IRRIGATION,
    EvaporationModel,
    IrrigationEvent,
    LateralFlowModel,
    RunoffModel,
    SaturatedFlowModel,
    SolutePool,
    UnsaturatedFlowModel,
    WaterTableModel,
)
from soilcascade.physics.prescribed import (
    PrescribedEvaporation,
    PrescribedLateralFlow,
    PrescribedRunoff,
    PrescribedSaturatedFlow,
    PrescribedUnsaturatedFlow,
    PrescribedWaterTable,
)
from soilcascade.physics.redistribution import shift_down, shift_up
from soilcascade.physics.soil_profile import SoilProfile
from soilcascade.physics.solute_transport import solute_flow_up, solute_flux_down
from soilcascade.physics.validation import ProfileValidator
from soilcascade.physics.water_state import WaterState


@dataclass
class SubModels:
    """The water sub-models one profile is wired to"""
    lateral_flow: LateralFlowModel
    runoff: RunoffModel
    saturated_flow: SaturatedFlowModel
    unsaturated_flow: UnsaturatedFlowModel
    evaporation: EvaporationModel
    water_table: WaterTableModel

    @classmethod
    def prescribed(cls) -> "SubModels":
        """Sub-models that return whatever value they are set to (all zero)"""
        return cls(
            lateral_flow=PrescribedLateralFlow(),
            runoff=PrescribedRunoff(),
            saturated_flow=PrescribedSaturatedFlow(),
            unsaturated_flow=PrescribedUnsaturatedFlow(),
            evaporation=PrescribedEvaporation(),
            water_table=PrescribedWaterTable(),
        )


@dataclass
class DailyInputs:
    """Today's boundary inputs"""
    potential_infiltration: float = 0.0  # mm, rainfall less interception
    eo: float = 0.0  # mm, potential evapotranspiration
    irrigation: IrrigationEvent = NO_IRRIGATION
    day: Optional[str] = None  # label used in logs and errors


@dataclass
class ProcessSettings:
    """Externally settable per-profile state"""
    runon: float = 0.0  # mm
    solute_flux_efficiency: float = 1.0
    solute_flow_efficiency: float = 1.0


@dataclass
class DayResult:
    """Outputs of one daily step (water in mm, solutes in kg/ha)"""
    runoff: float
    infiltration: float
    drainage: float
    evaporation: float
    lateral_flow: Optional[np.ndarray]
    flux: np.ndarray
    flow: np.ndarray
    water_table_depth: float
    water: np.ndarray
    sw: np.ndarray
    solute_flux_down: Dict[str, np.ndarray] = field(default_factory=dict)
    solute_flow_up: Dict[str, np.ndarray] = field(default_factory=dict)
    water_balance_error: float = 0.0
    day: Optional[str] = None

    @property
    def solute_leached(self) -> Dict[str, float]:
        """Solute leaving the bottom of the profile, per solute"""
        return {name: float(values[-1]) for name, values in self.solute_flux_down.items()}

    @property
    def nitrate_leached_at_bottom(self) -> float:
        return self.solute_leached.get(NITRATE, 0.0)

    def to_record(self) -> Dict[str, Any]:
        """Flatten to a single row for tabular output"""
        record = {
            "runoff_mm": self.runoff,
            "infiltration_mm": self.infiltration,
            "drainage_mm": self.drainage,
            "evaporation_mm": self.evaporation,
            "lateral_flow_mm": 0.0 if self.lateral_flow is None else float(np.sum(self.lateral_flow)),
            "water_table_depth_mm": self.water_table_depth,
            "water_balance_error_mm": self.water_balance_error,
        }
        for i in range(len(self.water)):
            record[f"sw_{i}"] = float(self.sw[i])
            record[f"water_{i}_mm"] = float(self.water[i])
            record[f"flux_{i}_mm"] = float(self.flux[i])
            record[f"flow_{i}_mm"] = float(self.flow[i])
        for name, leached in self.solute_leached.items():
            record[f"leached_{name}_kgha"] = leached
        return record


class CascadingWaterBalance:
    """
    Daily cascading water balance with solute co-transport.

    The instance owns the profile's water state and is its only writer.
    Sub-models receive read-only views and return fluxes; the orchestrator
    applies them. One call to ``advance_one_day`` runs to completion before
    the next may start.

    Attributes such as ``runoff``, ``infiltration``, ``flux`` and ``flow``
    hold the values of the day in progress (or the last day), so they are
    still inspectable after a validation error aborts a step.
    """

    def __init__(
        self,
        profile: SoilProfile,
        sub_models: SubModels,
        initial_water: Optional[Sequence[float]] = None,
        solutes: Optional[Mapping[str, SolutePool]] = None,
        config: Optional[WaterBalanceConfig] = None
    ):
        """
        Initialize the water balance.

        Args:
            profile: Soil layers, top to bottom
            sub_models: Water sub-models for this profile
            initial_water: Initial water per layer (mm), defaults to DUL
            solutes: Solute pools by name (e.g. "NO3", "NH4")
            config: Step configuration, defaults to the global config

        Raises:
            SoilParameterError: if the soil limits are physically impossible
        """
        self.profile = profile
        self.sub_models = sub_models
        self.config = config or get_config().water
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self.validator = ProfileValidator(tolerance=self.config.comparison_tolerance)
        self.validator.validate_soil(profile)

        if initial_water is None:
            self.state = WaterState.at_drained_upper_limit(profile)
        else:
            self.state = WaterState(profile, initial_water)

        self.solutes: Dict[str, SolutePool] = dict(solutes or {})
        self.mobile_solutes: List[str] = self._resolve_mobile_solutes()

        self.settings = ProcessSettings(
            solute_flux_efficiency=self.config.solute_flux_efficiency,
            solute_flow_efficiency=self.config.solute_flow_efficiency,
        )

        # Values of the day in progress
        self.runoff = 0.0
        self.infiltration = 0.0
        self.es = 0.0
        self.water_table_depth = 0.0
        self.lateral_flow: Optional[np.ndarray] = None
        self.flux = np.zeros(profile.n_layers)
        self.flow = np.zeros(profile.n_layers)
        self.solute_flux: Dict[str, np.ndarray] = {}
        self.solute_flow: Dict[str, np.ndarray] = {}
        self.last_result: Optional[DayResult] = None

    def _resolve_mobile_solutes(self) -> List[str]:
        mobile = [name for name in self.config.mobile_solutes if name in self.solutes]
        missing = [name for name in self.config.mobile_solutes if name not in self.solutes]
        if missing and self.solutes:
            self.logger.warning(
                f"No pool supplied for mobile solutes {missing}; they will not be transported"
            )
        return mobile

    # ------------------------------------------------------------------
    # Settable state
    # ------------------------------------------------------------------

    @property
    def water(self) -> np.ndarray:
        """Water per layer (mm)"""
        return self.state.water

    @water.setter
    def water(self, values: Sequence[float]):
        self.state.water = values

    @property
    def sw(self) -> np.ndarray:
        """Volumetric water content (mm/mm)"""
        return self.state.sw

    @sw.setter
    def sw(self, values: Sequence[float]):
        self.state.sw = values

    @property
    def swmm(self) -> np.ndarray:
        return self.state.swmm

    @property
    def esw(self) -> np.ndarray:
        """Extractable soil water relative to LL15 (mm)"""
        return self.state.esw

    @property
    def runon(self) -> float:
        """Runon from upslope (mm); held for other models, not added to the water here"""
        return self.settings.runon

    @runon.setter
    def runon(self, value: float):
        self.settings.runon = value

    @property
    def solute_flux_efficiency(self) -> float:
        return self.settings.solute_flux_efficiency

    @solute_flux_efficiency.setter
    def solute_flux_efficiency(self, value: float):
        self.settings.solute_flux_efficiency = self._check_efficiency(value)

    @property
    def solute_flow_efficiency(self) -> float:
        return self.settings.solute_flow_efficiency

    @solute_flow_efficiency.setter
    def solute_flow_efficiency(self, value: float):
        self.settings.solute_flow_efficiency = self._check_efficiency(value)

    @staticmethod
    def _check_efficiency(value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ParameterError(
                f"Solute efficiency must be within [0, 1] (got {value})",
                context=ErrorContext(component="CascadingWaterBalance", details={"value": value})
            )
        return value

    @property
    def drainage(self) -> float:
        """Water draining out of the bottom of the profile (mm)"""
        return float(self.flux[-1])

    def potential_runoff(self, inputs: DailyInputs) -> float:
        """
        Water at the surface that is exposed to runoff today (mm).

        Runoff-prone irrigation is exposed to runoff but never infiltrates.
        """
        water_for_runoff = inputs.potential_infiltration
        if inputs.irrigation.will_runoff:
            water_for_runoff += inputs.irrigation.applied
        return water_for_runoff

    def remove_water(self, amounts: Sequence[float]):
        """Remove a per-layer amount (mm), e.g. crop water uptake"""
        self.state.remove_water(amounts)

    # ------------------------------------------------------------------
    # Daily step
    # ------------------------------------------------------------------

    def advance_one_day(self, inputs: DailyInputs) -> DayResult:
        """
        Run the cascade for one day.

        Args:
            inputs: Today's potential infiltration, potential ET and irrigation

        Returns:
            DayResult with the day's partition, fluxes and solute movement

        Raises:
            WaterContentBoundsError: water left the [air-dry, SAT] band.
                The day is aborted: water keeps the values computed up to
                the failure and solute pools are not written.
        """
        water = self.state.water
        initial_storage = self.state.total()

        self.logger.debug(
            f"Day {inputs.day}: potential infiltration={inputs.potential_infiltration:.2f}mm, "
            f"Eo={inputs.eo:.2f}mm, irrigation={inputs.irrigation.applied:.2f}mm"
        )

        # Lateral flow leaves the system
        self.lateral_flow = self.sub_models.lateral_flow.values(self.state.view())
        if self.lateral_flow is not None:
            water -= self.lateral_flow

        # Runoff and infiltration into the top layer
        potential_runoff = self.potential_runoff(inputs)
        self.runoff = float(self.sub_models.runoff.value(potential_runoff, self.state.view()))
        self.infiltration = inputs.potential_infiltration - self.runoff
        water[0] += self.infiltration

        self._apply_irrigation(inputs.irrigation)

        # Saturated flow; water that backed up at the surface becomes runoff
        saturated = self.sub_models.saturated_flow.values(self.state.view())
        self.flux = np.array(saturated.flux, dtype=float)
        backed_up = float(saturated.backed_up_surface)
        water[0] -= backed_up
        self.infiltration -= backed_up
        self.runoff += backed_up

        shift_down(water, self.flux)

        # Work on copies so an aborted day leaves the pools untouched
        solute_values = {
            name: np.array(self.solutes[name].read(), dtype=float) for name in self.mobile_solutes
        }
        self.solute_flux = {}
        for name, values in solute_values.items():
            down = solute_flux_down(values, water, self.flux, self.solute_flux_efficiency)
            shift_down(values, down)
            self.solute_flux[name] = down

        self.es = float(self.sub_models.evaporation.calculate(inputs.eo, self.state.view()))
        water[0] -= self.es

        self.flow = np.array(self.sub_models.unsaturated_flow.values(self.state.view()), dtype=float)
        shift_up(water, self.flow)

        self.validator.validate(self.profile, water, day=inputs.day)

        self.water_table_depth = float(self.sub_models.water_table.value(self.state.view()))

        self.solute_flow = {}
        for name, values in solute_values.items():
            up = solute_flow_up(values, water, self.flow, self.solute_flow_efficiency)
            shift_up(values, up)
            self.solute_flow[name] = up
            self.solutes[name].write(values)

        water_balance_error = 0.0
        if self.config.check_mass_balance:
            water_balance_error = self._check_water_balance(initial_storage, inputs)

        self.logger.debug(
            f"Day {inputs.day} complete: runoff={self.runoff:.2f}mm, "
            f"infiltration={self.infiltration:.2f}mm, drainage={self.drainage:.2f}mm, "
            f"Es={self.es:.2f}mm"
        )

        self.last_result = DayResult(
            runoff=self.runoff,
            infiltration=self.infiltration,
            drainage=self.drainage,
            evaporation=self.es,
            lateral_flow=None if self.lateral_flow is None else np.array(self.lateral_flow, dtype=float),
            flux=self.flux.copy(),
            flow=self.flow.copy(),
            water_table_depth=self.water_table_depth,
            water=self.state.swmm,
            sw=self.state.sw,
            solute_flux_down=dict(self.solute_flux),
            solute_flow_up=dict(self.solute_flow),
            water_balance_error=water_balance_error,
            day=inputs.day,
        )
        return self.last_result

    def _apply_irrigation(self, irrigation: IrrigationEvent):
        """
        Put irrigation water into the layer at the irrigation depth.

        The target layer's water is set to the applied amount, not
        incremented by it. Solutes in irrigation water are not handled.
        """
        if not irrigation.infiltrates:
            return

        # Depth is rounded to whole millimetres before the layer lookup
        layer = self.profile.layer_index_of_depth(round(irrigation.depth))
        self.state.water[layer] = irrigation.applied
        self.infiltration += irrigation.applied

        self.logger.debug(
            f"Irrigation of {irrigation.applied:.2f}mm at {irrigation.depth:.0f}mm "
            f"set layer {layer} water"
        )

    def _check_water_balance(self, initial_storage: float, inputs: DailyInputs) -> float:
        """
        Compare the change in storage with the day's boundary terms.

        Bookkeeping only: drift is logged, never corrected. Irrigation at
        depth overwrites a layer, so irrigated days are expected to drift.

        Returns:
            Water balance error in mm
        """
        final_storage = self.state.total()
        lateral = 0.0 if self.lateral_flow is None else float(np.sum(self.lateral_flow))

        # Inputs: infiltration, deep upward inflow; outputs: drainage, Es, lateral
        expected_change = self.infiltration + self.flow[-1] - self.drainage - self.es - lateral
        delta_storage = final_storage - initial_storage
        water_balance_error = delta_storage - expected_change

        if abs(water_balance_error) > self.config.mass_balance_tolerance_mm:
            self.logger.warning(
                f"Water balance error on day {inputs.day}: {water_balance_error:.4f}mm\n"
                f"  Initial S: {initial_storage:.2f}mm\n"
                f"  Final S: {final_storage:.2f}mm\n"
                f"  ΔS (calc): {delta_storage:.2f}mm\n"
                f"  ΔS (expected): {expected_change:.2f}mm"
            )

        return water_balance_error
