"""Failure taxonomy and input validation beyond Pydantic schemas."""

from datetime import datetime
from typing import Iterable, Optional, Sequence

from evcharge_engine.core.schemas import ChargingRequest, IntensityPoint
from evcharge_engine.core.timeutils import ensure_utc


class ChargingPlannerError(Exception):
    """Base class for all planner failures."""

    pass


class ValidationError(ChargingPlannerError):
    """Raised when a request or its inputs are malformed."""

    pass


class UnsupportedZoneError(ValidationError):
    """Raised when no data source is configured for a zone."""

    def __init__(self, zone: str, supported_zones: Iterable[str]):
        self.zone = zone
        self.supported_zones = sorted(supported_zones)
        supported = ", ".join(self.supported_zones) or "none"
        super().__init__(f"Zone '{zone}' is not supported. Supported zones: {supported}")


class EmptySeriesError(ValidationError):
    """Raised when the planner is handed an empty intensity series."""

    pass


class InvalidSeriesError(ValidationError):
    """Raised when an intensity series cannot be keyed by hour."""

    pass


class DataQualityError(ChargingPlannerError):
    """Raised when a fuel-mix dataset is unusable for the requested range."""

    def __init__(
        self,
        message: str,
        total_rows: int = 0,
        rows_in_range: int = 0,
        skipped_rows: int = 0,
        zero_generation_rows: int = 0,
    ):
        self.total_rows = total_rows
        self.rows_in_range = rows_in_range
        self.skipped_rows = skipped_rows
        self.zero_generation_rows = zero_generation_rows
        super().__init__(message)


class NoDataAvailableError(ChargingPlannerError):
    """Raised when no intensity data exists for the requested window."""

    def __init__(self, zone: str, start_utc: datetime, end_utc: datetime):
        self.zone = zone
        self.start_utc = start_utc
        self.end_utc = end_utc
        super().__init__(
            f"No carbon intensity data available for zone {zone} "
            f"between {start_utc.isoformat()} and {end_utc.isoformat()}"
        )


class InfeasibleWindowError(ChargingPlannerError):
    """Raised when no start time fits the window and the data coverage."""

    pass


class IngestionError(ChargingPlannerError):
    """Raised when a fuel-mix source cannot be read."""

    pass


def validate_charging_request(request: ChargingRequest) -> None:
    """Validate a charging request before planning.

    Args:
        request: Charging request

    Raises:
        ValidationError: If the request is malformed
    """
    if not request.zone or not request.zone.strip():
        raise ValidationError("Zone is required.")

    start = ensure_utc(request.window_start_utc)
    end = ensure_utc(request.window_end_utc)

    if end <= start:
        raise ValidationError("window_end_utc must be after window_start_utc.")

    if not request.kwh_needed > 0:
        raise ValidationError(f"kwh_needed must be > 0, got {request.kwh_needed}")

    if not request.max_charging_kw > 0:
        raise ValidationError(f"max_charging_kw must be > 0, got {request.max_charging_kw}")


def validate_intensity_series(series: Optional[Sequence[IntensityPoint]]) -> None:
    """Validate an intensity series can be keyed by hour.

    Raises:
        EmptySeriesError: If the series is missing or empty
        InvalidSeriesError: If two points share a timestamp
    """
    if not series:
        raise EmptySeriesError("Carbon intensity series is empty.")

    seen = set()
    for point in series:
        ts = ensure_utc(point.timestamp_utc)
        if ts in seen:
            raise InvalidSeriesError(f"Duplicate carbon intensity timestamp: {ts.isoformat()}")
        seen.add(ts)
