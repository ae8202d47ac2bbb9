"""Pydantic schemas for domain values, wire contract and configuration."""

from datetime import datetime
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from evcharge_engine.core.constants import (
    DEFAULT_EMISSIONS_FACTORS,
    DEFAULT_ZONE,
    EMISSIONS_FACTORS_NOTE,
    MAX_ZERO_GENERATION_FRACTION,
    PLANNER_EXPLANATION,
    TIE_BREAK_POLICY,
    TIE_TOLERANCE_KG,
)
from evcharge_engine.core.timeutils import ensure_utc

RawValue = Union[float, int, str, None]


# ---------------------------------------------------------------------------
# Domain values
# ---------------------------------------------------------------------------


class FuelReading(BaseModel):
    """One raw fuel-mix row: interval start plus average MW per fuel.

    Values are kept as supplied by the ingestion adapter. Parsing and
    data-quality decisions belong to the intensity builder.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: Union[datetime, str, None]
    power_mw: dict[str, RawValue] = Field(default_factory=dict)
    row_number: Optional[int] = Field(default=None, description="Source row, for diagnostics")


class EmissionsFactorTable(BaseModel):
    """Emissions factor per fuel type (kg CO2 / kWh)."""

    model_config = ConfigDict(frozen=True)

    factors: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_EMISSIONS_FACTORS))

    @field_validator("factors")
    @classmethod
    def validate_factors(cls, v: dict[str, float]) -> dict[str, float]:
        """Normalize fuel names and reject negative factors."""
        normalized = {}
        for fuel, factor in v.items():
            if factor < 0:
                raise ValueError(f"Emissions factor for {fuel} must be >= 0, got {factor}")
            normalized[fuel.strip().lower()] = float(factor)
        return normalized

    def factor_for(self, fuel: str) -> float:
        """Factor for ``fuel``; fuels without an entry are zero-emission."""
        return self.factors.get(fuel.strip().lower(), 0.0)


class IntensityPoint(BaseModel):
    """Average carbon intensity for the hour starting at ``timestamp_utc``."""

    model_config = ConfigDict(frozen=True)

    timestamp_utc: datetime
    kg_co2_per_kwh: float = Field(..., ge=0)

    @field_validator("timestamp_utc")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class IntensitySeries(BaseModel):
    """Builder output: sorted points plus the row tallies behind them."""

    model_config = ConfigDict(frozen=True)

    start_utc: datetime
    end_utc: datetime
    points: tuple[IntensityPoint, ...] = ()
    total_rows: int = Field(default=0, ge=0)
    rows_in_range: int = Field(default=0, ge=0)
    skipped_rows: int = Field(default=0, ge=0)
    zero_generation_rows: int = Field(default=0, ge=0)

    @property
    def is_empty(self) -> bool:
        return len(self.points) == 0


class ChargingRequest(BaseModel):
    """Charging session to plan."""

    model_config = ConfigDict(frozen=True)

    zone: str
    window_start_utc: datetime
    window_end_utc: datetime
    kwh_needed: float
    max_charging_kw: float

    @field_validator("window_start_utc", "window_end_utc")
    @classmethod
    def normalize_window(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @property
    def duration_hours(self) -> float:
        """Required charging time in hours (may be fractional)."""
        return self.kwh_needed / self.max_charging_kw


class ChargingRecommendation(BaseModel):
    """Lowest-emissions feasible charging slot."""

    model_config = ConfigDict(frozen=True)

    zone: str
    recommended_start_utc: datetime
    recommended_end_utc: datetime
    estimated_emissions_kg: float = Field(..., ge=0)
    explanation: str


# ---------------------------------------------------------------------------
# Wire contract
# ---------------------------------------------------------------------------


class RecommendationRequest(BaseModel):
    """Inbound recommendation request (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    zone: str = Field(default=DEFAULT_ZONE, min_length=1)
    window_start_utc: datetime = Field(..., alias="windowStartUtc")
    window_end_utc: datetime = Field(..., alias="windowEndUtc")
    kwh_needed: float = Field(..., gt=0, alias="kWhNeeded")
    max_charging_kw: float = Field(..., gt=0, alias="maxChargingKw")

    @field_validator("window_start_utc", "window_end_utc")
    @classmethod
    def normalize_window(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_window(self) -> "RecommendationRequest":
        """Ensure the window end is after its start."""
        if self.window_end_utc <= self.window_start_utc:
            raise ValueError("windowEndUtc must be after windowStartUtc")
        return self

    def to_charging_request(self) -> ChargingRequest:
        return ChargingRequest(
            zone=self.zone,
            window_start_utc=self.window_start_utc,
            window_end_utc=self.window_end_utc,
            kwh_needed=self.kwh_needed,
            max_charging_kw=self.max_charging_kw,
        )


class Assumptions(BaseModel):
    """Modelling assumptions reported alongside a recommendation."""

    model_config = ConfigDict(populate_by_name=True)

    hourly_resolution: bool = Field(default=True, alias="hourlyResolution")
    tie_break: str = Field(default=TIE_BREAK_POLICY, alias="tieBreak")
    emissions_factors: str = Field(default=EMISSIONS_FACTORS_NOTE, alias="emissionsFactors")
    explanation: str = PLANNER_EXPLANATION


class RecommendationResponse(BaseModel):
    """Outbound recommendation (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    zone: str
    recommended_start_utc: datetime = Field(..., alias="recommendedStartUtc")
    recommended_end_utc: datetime = Field(..., alias="recommendedEndUtc")
    estimated_emissions_kg: float = Field(..., ge=0, alias="estimatedEmissionsKg")
    assumptions: Assumptions = Field(default_factory=Assumptions)

    @classmethod
    def from_recommendation(cls, recommendation: ChargingRecommendation) -> "RecommendationResponse":
        return cls(
            zone=recommendation.zone,
            recommended_start_utc=recommendation.recommended_start_utc,
            recommended_end_utc=recommendation.recommended_end_utc,
            estimated_emissions_kg=recommendation.estimated_emissions_kg,
            assumptions=Assumptions(explanation=recommendation.explanation),
        )

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict using the camelCase field names."""
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class FlatFileSourceConfig(BaseModel):
    """Fuel-mix file backing one zone."""

    path: str = Field(default="", description="CSV or Parquet file path")
    format: Literal["csv", "parquet"] = "csv"


class CarbonIntensityConfig(BaseModel):
    """Ingestion and intensity-series configuration."""

    default_zone: str = DEFAULT_ZONE
    sources: dict[str, FlatFileSourceConfig] = Field(default_factory=dict)
    emissions_factors: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_EMISSIONS_FACTORS)
    )
    max_zero_generation_fraction: float = Field(default=MAX_ZERO_GENERATION_FRACTION, ge=0, le=1)

    @field_validator("sources")
    @classmethod
    def normalize_zones(cls, v: dict[str, FlatFileSourceConfig]) -> dict[str, FlatFileSourceConfig]:
        """Zone identifiers are case-insensitive; store them upper-case."""
        return {zone.upper(): source for zone, source in v.items()}

    def emissions_factor_table(self) -> EmissionsFactorTable:
        return EmissionsFactorTable(factors=self.emissions_factors)


class PlannerConfig(BaseModel):
    """Charging window search configuration."""

    tie_tolerance_kg: float = Field(default=TIE_TOLERANCE_KG, ge=0)


class AppConfig(BaseModel):
    """Top-level application configuration."""

    log_level: str = Field(default="INFO")
    carbon_intensity: CarbonIntensityConfig = Field(default_factory=CarbonIntensityConfig)
    planner: PlannerConfig = Field(default_factory=PlannerConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is a standard logging level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level
