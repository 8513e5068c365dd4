"""
Configuration system with validation and environment awareness.
Based on Pydantic Settings for robust configuration management.
"""
import logging
from pathlib import Path
from typing import List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from soilcascade.core.constants import (
    COMPARISON_TOLERANCE,
    DEFAULT_SOLUTE_FLOW_EFFICIENCY,
    DEFAULT_SOLUTE_FLUX_EFFICIENCY,
    NITRATE,
)


class WaterBalanceConfig(BaseSettings):
    """Configuration for the daily water and solute step"""

    # Solute transport
    solute_flux_efficiency: float = Field(
        DEFAULT_SOLUTE_FLUX_EFFICIENCY, ge=0, le=1,
        description="Fraction of solute moving down with saturated flux"
    )
    solute_flow_efficiency: float = Field(
        DEFAULT_SOLUTE_FLOW_EFFICIENCY, ge=0, le=1,
        description="Fraction of solute moving up with unsaturated flow"
    )
    mobile_solutes: List[str] = Field(
        default=[NITRATE],
        description="Solute pools transported with the water"
    )

    # Validation
    comparison_tolerance: float = Field(
        COMPARISON_TOLERANCE, ge=0,
        description="Tolerance for bound checks on volumetric values"
    )

    # Bookkeeping
    check_mass_balance: bool = Field(True, description="Log water balance drift each day")
    mass_balance_tolerance_mm: float = Field(1e-6, gt=0, description="Drift reported above this (mm)")

    model_config = SettingsConfigDict(env_prefix="SOILCASCADE_WATER_", case_sensitive=False)

    @field_validator("mobile_solutes")
    @classmethod
    def no_duplicate_solutes(cls, v: List[str]) -> List[str]:
        if len(set(v)) != len(v):
            raise ValueError(f"Duplicate entries in mobile_solutes: {v}")
        return v


class LoggingConfig(BaseSettings):
    """Configuration for logging"""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    model_config = SettingsConfigDict(env_prefix="SOILCASCADE_LOG_", case_sensitive=False)


class SoilProfileSettings(BaseModel):
    """Layered soil definition as it appears in a config file.

    All lists are ordered top to bottom and must have one entry per layer.
    Thickness is in mm; the water limits are volumetric (mm/mm); bulk
    density is in g/cm³. ``initial_sw`` defaults to the drained upper limit.
    """
    thickness: List[float]
    air_dry: List[float]
    ll15: List[float]
    dul: List[float]
    sat: List[float]
    bulk_density: List[float]
    initial_sw: Optional[List[float]] = None

    @field_validator("thickness")
    @classmethod
    def positive_thickness(cls, v: List[float]) -> List[float]:
        if not v:
            raise ValueError("A soil profile needs at least one layer")
        if any(t <= 0 for t in v):
            raise ValueError(f"Layer thickness must be > 0 (got {v})")
        return v

    @model_validator(mode="after")
    def validate_layer_counts(self):
        """Ensure every per-layer list has one value per layer"""
        n = len(self.thickness)
        for name in ("air_dry", "ll15", "dul", "sat", "bulk_density", "initial_sw"):
            values = getattr(self, name)
            if values is not None and len(values) != n:
                raise ValueError(f"{name} has {len(values)} values, expected {n}")
        return self

    def to_profile(self):
        """Build the immutable SoilProfile"""
        from soilcascade.physics.soil_profile import SoilProfile

        return SoilProfile.from_arrays(
            thickness=self.thickness,
            air_dry=self.air_dry,
            ll15=self.ll15,
            dul=self.dul,
            sat=self.sat,
            bulk_density=self.bulk_density,
        )


class SoilCascadeConfig(BaseSettings):
    """Main configuration for the soilcascade system"""

    project_name: str = "soilcascade"

    # Component configurations
    water: WaterBalanceConfig = Field(default_factory=WaterBalanceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    profile: Optional[SoilProfileSettings] = None

    model_config = SettingsConfigDict(
        env_prefix="SOILCASCADE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "SoilCascadeConfig":
        """Load configuration from YAML file"""
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}

        return cls(**yaml_config)

    def to_yaml(self, yaml_path: Union[str, Path]):
        """Save configuration to YAML file"""
        yaml_path = Path(yaml_path)
        yaml_path.parent.mkdir(parents=True, exist_ok=True)

        with open(yaml_path, "w", encoding="utf-8") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False)


# Global configuration instance
_config: Optional[SoilCascadeConfig] = None


def get_config(config_path: Optional[Path] = None) -> SoilCascadeConfig:
    """Get or create configuration instance (singleton pattern)"""
    global _config

    if _config is None:
        if config_path and config_path.exists():
            _config = SoilCascadeConfig.from_yaml(config_path)
        else:
            # Try to load from environment
            _config = SoilCascadeConfig()

    return _config


def set_config(config: Optional[SoilCascadeConfig]):
    """Set configuration (useful for testing)"""
    global _config
    _config = config


def configure_logging(config: Optional[SoilCascadeConfig] = None):
    """Apply the configured log level and format to the root logger"""
    config = config or get_config()
    logging.basicConfig(
        level=getattr(logging, config.logging.log_level),
        format=config.logging.log_format,
    )
