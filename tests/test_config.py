"""
Tests for the pydantic-settings configuration layer
"""
import pytest
from pydantic import ValidationError

from soilcascade.core.config import (
    SoilCascadeConfig,
    SoilProfileSettings,
    WaterBalanceConfig,
    get_config,
    set_config,
)
from soilcascade.physics.soil_profile import SoilProfile

PROFILE = dict(
    thickness=[150.0, 150.0],
    air_dry=[0.05, 0.06],
    ll15=[0.10, 0.12],
    dul=[0.30, 0.28],
    sat=[0.45, 0.40],
    bulk_density=[0.9, 1.0],
)


@pytest.fixture(autouse=True)
def reset_global_config():
    set_config(None)
    yield
    set_config(None)


class TestWaterBalanceConfig:

    def test_defaults(self):
        config = WaterBalanceConfig()

        assert config.solute_flux_efficiency == 1.0
        assert config.solute_flow_efficiency == 1.0
        assert config.mobile_solutes == ["NO3"]
        assert config.check_mass_balance is True

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("SOILCASCADE_WATER_SOLUTE_FLUX_EFFICIENCY", "0.5")

        assert WaterBalanceConfig().solute_flux_efficiency == 0.5

    def test_efficiency_bounds(self):
        with pytest.raises(ValidationError):
            WaterBalanceConfig(solute_flow_efficiency=1.2)

    def test_duplicate_solutes_rejected(self):
        with pytest.raises(ValidationError):
            WaterBalanceConfig(mobile_solutes=["NO3", "NO3"])


class TestSoilProfileSettings:

    def test_to_profile(self):
        profile = SoilProfileSettings(**PROFILE).to_profile()

        assert isinstance(profile, SoilProfile)
        assert profile.n_layers == 2
        assert profile.layers[1].dul == pytest.approx(0.28)

    def test_layer_count_mismatch(self):
        with pytest.raises(ValidationError):
            SoilProfileSettings(**{**PROFILE, "sat": [0.45]})

    def test_initial_sw_layer_count(self):
        with pytest.raises(ValidationError):
            SoilProfileSettings(**PROFILE, initial_sw=[0.2, 0.2, 0.2])

    def test_non_positive_thickness(self):
        with pytest.raises(ValidationError):
            SoilProfileSettings(**{**PROFILE, "thickness": [150.0, -1.0]})


class TestSoilCascadeConfig:

    def test_yaml_round_trip(self, tmp_path):
        config = SoilCascadeConfig(
            water=WaterBalanceConfig(solute_flux_efficiency=0.8, mobile_solutes=["NO3", "NH4"]),
            profile=SoilProfileSettings(**PROFILE),
        )
        path = tmp_path / "config" / "soil.yaml"

        config.to_yaml(path)
        loaded = SoilCascadeConfig.from_yaml(path)

        assert loaded.water.solute_flux_efficiency == 0.8
        assert loaded.water.mobile_solutes == ["NO3", "NH4"]
        assert loaded.profile.thickness == PROFILE["thickness"]
        assert loaded.logging.log_level == "INFO"

    def test_missing_yaml(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SoilCascadeConfig.from_yaml(tmp_path / "missing.yaml")

    def test_global_config(self):
        config = SoilCascadeConfig(water=WaterBalanceConfig(solute_flow_efficiency=0.3))
        set_config(config)

        assert get_config() is config
        assert get_config().water.solute_flow_efficiency == 0.3
