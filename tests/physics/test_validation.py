"""
Tests for fail-fast soil and water content validation
"""
import numpy as np
import pytest

from soilcascade.core.exceptions import (
    AirDryBelowMinimumError,
    DrainedUpperLimitError,
    LowerLimitBelowAirDryError,
    SaturationAbovePorosityError,
    SaturationBelowDrainedUpperLimitError,
    SoilParameterError,
    WaterAboveSaturationError,
    WaterBalanceError,
    WaterBelowAirDryError,
)
from soilcascade.physics.soil_profile import SoilProfile
from soilcascade.physics.validation import ProfileValidator

BASE = dict(
    thickness=[100.0, 100.0, 100.0],
    air_dry=[0.05, 0.06, 0.08],
    ll15=[0.10, 0.12, 0.15],
    dul=[0.30, 0.28, 0.25],
    sat=[0.45, 0.40, 0.35],
    bulk_density=[0.9, 1.0, 1.1],
)


def profile_with(layer=None, **changes):
    """Base profile with single-layer overrides, e.g. profile_with(1, sat=0.2)"""
    columns = {key: list(values) for key, values in BASE.items()}
    for key, value in changes.items():
        columns[key][layer] = value
    return SoilProfile.from_arrays(**columns)


class TestProfileValidator:

    @pytest.fixture
    def validator(self):
        return ProfileValidator(tolerance=1e-5)

    def test_valid_soil_passes(self, validator):
        validator.validate_soil(profile_with())

    @pytest.mark.parametrize("changes,error", [
        (dict(air_dry=-0.01), AirDryBelowMinimumError),
        (dict(ll15=0.04), LowerLimitBelowAirDryError),
        (dict(dul=0.10), DrainedUpperLimitError),
        (dict(sat=0.30), SaturationBelowDrainedUpperLimitError),
        (dict(bulk_density=1.5), SaturationAbovePorosityError),
    ])
    def test_each_soil_check(self, validator, changes, error):
        profile = profile_with(0, **changes)

        with pytest.raises(error) as excinfo:
            validator.validate_soil(profile)

        assert isinstance(excinfo.value, SoilParameterError)
        assert excinfo.value.layer == 0

    def test_layers_checked_top_down(self, validator):
        # Layer 2 has sat <= dul, but layer 0's negative air-dry comes first
        columns = {key: list(values) for key, values in BASE.items()}
        columns["sat"][2] = 0.20
        columns["air_dry"][0] = -0.01
        profile = SoilProfile.from_arrays(**columns)

        with pytest.raises(AirDryBelowMinimumError) as excinfo:
            validator.validate_soil(profile)

        assert excinfo.value.layer == 0

    def test_checks_ordered_within_layer(self, validator):
        # Both ll15 < air_dry and dul <= ll15 hold; the ll15 check runs first
        profile = profile_with(1, ll15=0.01, dul=0.005)

        with pytest.raises(LowerLimitBelowAirDryError):
            validator.validate_soil(profile)

    def test_porosity_message_suggests_fix(self, validator):
        profile = profile_with(0, bulk_density=1.5)

        with pytest.raises(SaturationAbovePorosityError) as excinfo:
            validator.validate_soil(profile)

        message = str(excinfo.value)
        assert "bulk density" in message
        assert "saturation" in message
        # 1 - 1.5/2.65
        assert f"{1.0 - 1.5 / 2.65:.4g}" in message

    def test_water_at_saturation_passes(self, validator):
        profile = profile_with()

        validator.validate(profile, profile.sat_mm)
        validator.validate(profile, profile.air_dry_mm)

    def test_water_just_inside_tolerance_passes(self, validator):
        profile = profile_with()
        water = profile.sat_mm + 0.5e-5 * profile.thickness

        validator.validate(profile, water)

    def test_water_above_saturation(self, validator):
        profile = profile_with()
        water = profile.dul_mm
        water[1] = 41.0

        with pytest.raises(WaterAboveSaturationError) as excinfo:
            validator.validate(profile, water, day="2020-01-01")

        error = excinfo.value
        assert isinstance(error, WaterBalanceError)
        assert error.layer == 1
        assert error.value == pytest.approx(0.41)
        assert error.context.day == "2020-01-01"
        assert error.context.operation == "water_below_sat"
        assert "[Layer: 1]" in str(error)

    def test_water_below_air_dry(self, validator):
        profile = profile_with()
        water = profile.dul_mm
        water[2] = 7.0

        with pytest.raises(WaterBelowAirDryError) as excinfo:
            validator.validate(profile, water)

        assert excinfo.value.layer == 2

    def test_soil_checks_precede_water_checks(self, validator):
        profile = profile_with(0, sat=0.30)
        water = np.full(3, 1000.0)

        with pytest.raises(SaturationBelowDrainedUpperLimitError):
            validator.validate(profile, water)
