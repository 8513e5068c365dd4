"""
Tests for the multi-day driver over a forcing table
"""
import numpy as np
import pandas as pd
import pytest

from soilcascade.core.config import SoilProfileSettings, WaterBalanceConfig
from soilcascade.core.exceptions import ParameterError, WaterAboveSaturationError
from soilcascade.physics.prescribed import InMemorySolutePool
from soilcascade.pipeline import create_water_balance, run_period


@pytest.fixture
def settings():
    """Three 150 mm layers; DUL storage is [45, 42, 37.5] mm"""
    return SoilProfileSettings(
        thickness=[150.0, 150.0, 150.0],
        air_dry=[0.05, 0.06, 0.08],
        ll15=[0.10, 0.12, 0.15],
        dul=[0.30, 0.28, 0.25],
        sat=[0.45, 0.40, 0.35],
        bulk_density=[0.9, 1.0, 1.1],
    )


@pytest.fixture
def forcings():
    """Three days exercising flux, flow, runoff and lateral flow"""
    return pd.DataFrame(
        {
            "potential_infiltration_mm": [10.0, 0.0, 5.0],
            "eo_mm": [3.0, 4.0, 1.0],
            "evaporation_mm": [1.0, 2.0, 0.0],
            "runoff_mm": [0.0, 0.0, 2.0],
            "flux_0": [5.0, 0.0, 0.0],
            "flux_1": [2.0, 0.0, 0.0],
            "flux_2": [1.0, 0.0, 0.0],
            "flow_0": [0.0, 1.0, 0.0],
            "flow_1": [0.0, 0.5, 0.0],
            "flow_2": [0.0, 0.0, 0.0],
            "lateral_0": [0.0, 0.0, 0.5],
            "lateral_1": [0.0, 0.0, 0.5],
            "lateral_2": [0.0, 0.0, 0.5],
        },
        index=pd.date_range("2020-01-01", periods=3, freq="D", name="date"),
    )


class TestRunPeriod:

    @pytest.fixture
    def model(self, settings):
        return create_water_balance(settings, config=WaterBalanceConfig())

    def test_daily_results(self, model, forcings):
        results = run_period(model, forcings)

        assert len(results) == 3
        assert results.index.equals(forcings.index)
        np.testing.assert_allclose(results["drainage_mm"], [1.0, 0.0, 0.0])
        np.testing.assert_allclose(results["runoff_mm"], [0.0, 0.0, 2.0])
        np.testing.assert_allclose(results["infiltration_mm"], [10.0, 0.0, 3.0])
        np.testing.assert_allclose(results["lateral_flow_mm"], [0.0, 0.0, 1.5])
        np.testing.assert_allclose(results["water_balance_error_mm"], 0.0, atol=1e-9)

    def test_final_state(self, model, forcings):
        results = run_period(model, forcings)

        # day 1: [49, 45, 38.5]; day 2: [48, 44.5, 38]; day 3: lateral then infiltration
        np.testing.assert_allclose(model.water, [50.5, 44.0, 37.5])
        assert results["sw_0"].iloc[-1] == pytest.approx(50.5 / 150.0)
        assert results["water_2_mm"].iloc[-1] == pytest.approx(37.5)

    def test_run_halts_on_violation(self, model, forcings):
        forcings.loc[forcings.index[1], "potential_infiltration_mm"] = 50.0

        with pytest.raises(WaterAboveSaturationError) as excinfo:
            run_period(model, forcings)

        assert excinfo.value.context.day == str(forcings.index[1])
        assert model.last_result.day == str(forcings.index[0])

    def test_missing_required_column(self, model, forcings):
        with pytest.raises(ParameterError):
            run_period(model, forcings.drop(columns=["eo_mm"]))

    def test_empty_forcings(self, model, forcings):
        results = run_period(model, forcings.iloc[:0])

        assert results.empty

    def test_runon_and_irrigation_columns(self, model):
        forcings = pd.DataFrame({
            "potential_infiltration_mm": [0.0],
            "eo_mm": [0.0],
            "runon_mm": [4.0],
            "irrigation_mm": [30.0],
            "irrigation_depth_mm": [200.0],
            "irrigation_will_runoff": [False],
        })

        results = run_period(model, forcings)

        # Runon is stored on the model but does not enter the profile
        assert model.runon == pytest.approx(4.0)
        assert results["infiltration_mm"].iloc[0] == pytest.approx(30.0)
        assert results["water_0_mm"].iloc[0] == pytest.approx(45.0)
        assert results["water_1_mm"].iloc[0] == pytest.approx(30.0)

    def test_nitrate_leaching_column(self, settings, forcings):
        pools = {"NO3": InMemorySolutePool("NO3", [10.0, 5.0, 2.0])}
        model = create_water_balance(settings, solutes=pools, config=WaterBalanceConfig())

        results = run_period(model, forcings)

        assert "leached_NO3_kgha" in results.columns
        assert results["leached_NO3_kgha"].iloc[0] > 0
        assert results["leached_NO3_kgha"].iloc[1] == 0.0


class TestCreateWaterBalance:

    def test_initial_water_from_volumetric(self, settings):
        settings.initial_sw = [0.2, 0.2, 0.2]

        model = create_water_balance(settings, config=WaterBalanceConfig())

        np.testing.assert_allclose(model.water, [30.0, 30.0, 30.0])

    def test_defaults_to_drained_upper_limit(self, settings):
        model = create_water_balance(settings, config=WaterBalanceConfig())

        np.testing.assert_allclose(model.water, [45.0, 42.0, 37.5])
