"""
Multi-day driver over a table of daily forcings.

Each row of the forcing table carries one day's boundary inputs and the
values the prescribed sub-models should report for that day:

    potential_infiltration_mm, eo_mm            (required)
    runon_mm, runoff_mm, evaporation_mm, backed_up_mm,
    water_table_depth_mm, irrigation_mm, irrigation_depth_mm,
    irrigation_will_runoff                      (optional, default 0/False)
    flux_<i>, flow_<i>, lateral_<i>             (optional per-layer, mm)

A validation error halts the run: the error propagates to the caller and
no further days are simulated.
"""
import logging
from typing import Mapping, Optional

import numpy as np
import pandas as pd

from soilcascade.core.config import SoilProfileSettings, WaterBalanceConfig
from soilcascade.core.constants import OPTIONAL_FORCING_COLUMNS, REQUIRED_FORCING_COLUMNS
from soilcascade.core.exceptions import ParameterError, SoilCascadeError
from soilcascade.core.types import IrrigationEvent, SolutePool
from soilcascade.physics.prescribed import (
    PrescribedEvaporation,
    PrescribedLateralFlow,
    PrescribedRunoff,
    PrescribedSaturatedFlow,
    PrescribedUnsaturatedFlow,
    PrescribedWaterTable,
)
from soilcascade.physics.water_balance import CascadingWaterBalance, DailyInputs, SubModels

logger = logging.getLogger(__name__)


def create_water_balance(
    settings: SoilProfileSettings,
    sub_models: Optional[SubModels] = None,
    solutes: Optional[Mapping[str, SolutePool]] = None,
    config: Optional[WaterBalanceConfig] = None
) -> CascadingWaterBalance:
    """
    Build a water balance from profile settings.

    Args:
        settings: Layered soil definition (and optional initial sw)
        sub_models: Water sub-models, prescribed ones by default
        solutes: Solute pools by name
        config: Step configuration

    Returns:
        Configured CascadingWaterBalance
    """
    profile = settings.to_profile()
    initial_water = None
    if settings.initial_sw is not None:
        initial_water = np.array(settings.initial_sw, dtype=float) * profile.thickness

    return CascadingWaterBalance(
        profile,
        sub_models or SubModels.prescribed(),
        initial_water=initial_water,
        solutes=solutes,
        config=config,
    )


def validate_forcings(forcings: pd.DataFrame):
    """Validate input forcings DataFrame"""
    for col in REQUIRED_FORCING_COLUMNS:
        if col not in forcings.columns:
            raise ParameterError(f"Missing required column: {col}")

    # Check for negative values
    for col in REQUIRED_FORCING_COLUMNS + OPTIONAL_FORCING_COLUMNS:
        if col in forcings.columns and pd.api.types.is_numeric_dtype(forcings[col]):
            if (forcings[col] < 0).any():
                logger.warning(f"Negative values found in {col}")


def _value(row: pd.Series, column: str, default: float = 0.0) -> float:
    value = row.get(column, default)
    if pd.isna(value):
        return default
    return float(value)


def _layer_values(row: pd.Series, prefix: str, n_layers: int) -> Optional[np.ndarray]:
    """Per-layer values from ``<prefix>_<i>`` columns, None if there are none"""
    columns = [f"{prefix}_{i}" for i in range(n_layers)]
    if not any(c in row.index for c in columns):
        return None
    return np.array([_value(row, c) for c in columns])


def _load_prescribed(sub_models: SubModels, row: pd.Series, n_layers: int):
    """Set today's values on whichever sub-models are prescribed"""
    if isinstance(sub_models.lateral_flow, PrescribedLateralFlow):
        sub_models.lateral_flow.outflow = _layer_values(row, "lateral", n_layers)
    if isinstance(sub_models.runoff, PrescribedRunoff):
        sub_models.runoff.runoff = _value(row, "runoff_mm")
    if isinstance(sub_models.saturated_flow, PrescribedSaturatedFlow):
        sub_models.saturated_flow.flux = _layer_values(row, "flux", n_layers)
        sub_models.saturated_flow.backed_up_surface = _value(row, "backed_up_mm")
    if isinstance(sub_models.unsaturated_flow, PrescribedUnsaturatedFlow):
        sub_models.unsaturated_flow.flow = _layer_values(row, "flow", n_layers)
    if isinstance(sub_models.evaporation, PrescribedEvaporation):
        sub_models.evaporation.es = _value(row, "evaporation_mm")
    if isinstance(sub_models.water_table, PrescribedWaterTable):
        sub_models.water_table.depth = _value(row, "water_table_depth_mm")


def _daily_inputs(row: pd.Series, day: str) -> DailyInputs:
    irrigation = IrrigationEvent(
        applied=_value(row, "irrigation_mm"),
        depth=_value(row, "irrigation_depth_mm"),
        will_runoff=bool(_value(row, "irrigation_will_runoff")),
    )
    return DailyInputs(
        potential_infiltration=_value(row, "potential_infiltration_mm"),
        eo=_value(row, "eo_mm"),
        irrigation=irrigation,
        day=day,
    )


def run_period(model: CascadingWaterBalance, forcings: pd.DataFrame) -> pd.DataFrame:
    """
    Run the model for every row of a forcing table.

    Args:
        model: Water balance to advance (mutated in place)
        forcings: One row per day, indexed by date or day number

    Returns:
        DataFrame of daily results with the same index as ``forcings``
    """
    validate_forcings(forcings)
    logger.info(f"Running water balance for {len(forcings)} days")

    n_layers = model.profile.n_layers
    records = []
    for idx, row in forcings.iterrows():
        day = str(idx)
        _load_prescribed(model.sub_models, row, n_layers)
        model.runon = _value(row, "runon_mm")
        try:
            result = model.advance_one_day(_daily_inputs(row, day))
        except SoilCascadeError as e:
            logger.error(f"Run halted at day {day}: {e}")
            raise
        records.append(result.to_record())

    if not records:
        return pd.DataFrame(index=forcings.index)

    results = pd.DataFrame(records, index=forcings.index)
    logger.info(
        f"Run complete. Total drainage: {results['drainage_mm'].sum():.2f}mm, "
        f"total runoff: {results['runoff_mm'].sum():.2f}mm"
    )
    return results
