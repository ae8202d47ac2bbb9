"""Configuration loading.

A configuration file is YAML:

    log_level: INFO
    carbon_intensity:
      default_zone: CAISO
      max_zero_generation_fraction: 0.5
      emissions_factors: {natural_gas: 0.40, coal: 1.00, ...}
      sources:
        CAISO: {path: data/caiso_fuel_mix.csv, format: csv}
    planner:
      tie_tolerance_kg: 1.0e-9

Relative source paths resolve against the directory holding the file.
"""

from pathlib import Path
from typing import Optional

import yaml

from evcharge_engine.core.schemas import AppConfig
from evcharge_engine.intensity.builder import IntensitySeriesBuilder
from evcharge_engine.planner.optimizer import ChargingWindowOptimizer
from evcharge_engine.providers.fuel_mix import FlatFileFuelMixProvider
from evcharge_engine.providers.intensity import FuelMixIntensityProvider


def load_config(config_path: Optional[str | Path] = None) -> AppConfig:
    """Load application configuration.

    Args:
        config_path: Path to YAML file; None gives the defaults

    Returns:
        AppConfig instance
    """
    if config_path is None:
        return AppConfig()

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return AppConfig(**data)


def dump_config(config: AppConfig, config_path: str | Path) -> None:
    """Write configuration to a YAML file."""
    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)


def build_intensity_provider(config: AppConfig, base_dir: Optional[str | Path] = None) -> FuelMixIntensityProvider:
    """Wire the flat-file fuel-mix source and intensity builder from config."""
    ci = config.carbon_intensity
    builder = IntensitySeriesBuilder(
        emissions_factors=ci.emissions_factor_table(),
        max_zero_generation_fraction=ci.max_zero_generation_fraction,
    )
    fuel_mix = FlatFileFuelMixProvider(ci.sources, base_dir=base_dir)
    return FuelMixIntensityProvider(fuel_mix, builder)


def build_optimizer(config: AppConfig) -> ChargingWindowOptimizer:
    """Create the planner from config."""
    return ChargingWindowOptimizer(tie_tolerance_kg=config.planner.tie_tolerance_kg)
