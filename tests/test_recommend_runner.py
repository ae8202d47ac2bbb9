"""Test the recommendation runner and its wire contract."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as SchemaError

from evcharge_engine.core.schemas import IntensityPoint, RecommendationRequest
from evcharge_engine.core.validate import (
    DataQualityError,
    InfeasibleWindowError,
    IngestionError,
    NoDataAvailableError,
    UnsupportedZoneError,
)
from evcharge_engine.runners.recommend import run_recommendation

UTC = timezone.utc
WINDOW_START = datetime(2025, 12, 15, 8, tzinfo=UTC)


class StubIntensityProvider:
    """Returns canned points (or raises) and records calls."""

    def __init__(self, points=None, error=None):
        self.points = points or []
        self.error = error
        self.calls = []

    def get_hourly(self, zone, start_utc, end_utc):
        self.calls.append((zone, start_utc, end_utc))
        if self.error is not None:
            raise self.error
        return list(self.points)


def carbon_series(start, *intensities):
    return [
        IntensityPoint(timestamp_utc=start + timedelta(hours=h), kg_co2_per_kwh=v)
        for h, v in enumerate(intensities)
    ]


def one_hour_request(hours=3, **overrides):
    """10 kWh at 10 kW in a window of ``hours``."""
    payload = {
        "zone": "CAISO",
        "windowStartUtc": WINDOW_START.isoformat(),
        "windowEndUtc": (WINDOW_START + timedelta(hours=hours)).isoformat(),
        "kWhNeeded": 10,
        "maxChargingKw": 10,
    }
    payload.update(overrides)
    return RecommendationRequest.model_validate(payload)


def test_valid_request_returns_recommendation():
    provider = StubIntensityProvider(carbon_series(WINDOW_START, 0.9, 0.1, 0.8))

    response = run_recommendation(one_hour_request(), provider, supported_zones=["CAISO"])

    assert response.zone == "CAISO"
    assert response.recommended_start_utc == WINDOW_START + timedelta(hours=1)
    assert response.recommended_end_utc == WINDOW_START + timedelta(hours=2)
    assert response.estimated_emissions_kg == pytest.approx(1.0)


def test_response_wire_format():
    provider = StubIntensityProvider(carbon_series(WINDOW_START, 0.9, 0.1, 0.8))

    wire = run_recommendation(one_hour_request(), provider).to_wire()

    assert set(wire) == {"zone", "recommendedStartUtc", "recommendedEndUtc", "estimatedEmissionsKg", "assumptions"}
    assert wire["recommendedStartUtc"].startswith("2025-12-15T09:00:00")
    assert wire["assumptions"]["hourlyResolution"] is True
    assert "DATA_NOTES.md" in wire["assumptions"]["emissionsFactors"]


def test_provider_called_with_request_window():
    provider = StubIntensityProvider(carbon_series(WINDOW_START, 0.5, 0.4, 0.3))

    run_recommendation(one_hour_request(), provider)

    assert provider.calls == [("CAISO", WINDOW_START, WINDOW_START + timedelta(hours=3))]


def test_picks_minimum_over_long_window():
    intensities = [0.9, 0.8, 0.1, 0.7, 0.5, 0.6, 0.4, 0.3, 0.2, 0.15]
    provider = StubIntensityProvider(carbon_series(WINDOW_START, *intensities))

    response = run_recommendation(one_hour_request(hours=10), provider)

    assert response.recommended_start_utc == WINDOW_START + timedelta(hours=2)


def test_unsupported_zone_does_not_call_provider():
    provider = StubIntensityProvider(carbon_series(WINDOW_START, 0.5))

    with pytest.raises(UnsupportedZoneError, match="CAISO"):
        run_recommendation(one_hour_request(zone="ERCOT"), provider, supported_zones=["CAISO"])

    assert provider.calls == []


def test_empty_series_is_no_data():
    provider = StubIntensityProvider([])

    with pytest.raises(NoDataAvailableError, match="CAISO") as exc_info:
        run_recommendation(one_hour_request(), provider)

    assert WINDOW_START.isoformat() in str(exc_info.value)


def test_infeasible_request():
    provider = StubIntensityProvider(carbon_series(WINDOW_START, 0.5))
    request = one_hour_request(hours=1, kWhNeeded=50)

    with pytest.raises(InfeasibleWindowError, match="No feasible charging start time"):
        run_recommendation(request, provider)


@pytest.mark.parametrize(
    "error",
    [IngestionError("CSV file not found"), DataQualityError("All 3 rows in requested range had invalid data.")],
)
def test_provider_errors_propagate_unchanged(error):
    provider = StubIntensityProvider(error=error)

    with pytest.raises(type(error)) as exc_info:
        run_recommendation(one_hour_request(), provider)

    assert exc_info.value is error


@pytest.mark.parametrize(
    "overrides",
    [
        {"kWhNeeded": 0},
        {"maxChargingKw": -1},
        {"windowEndUtc": WINDOW_START.isoformat()},
        {"zone": ""},
    ],
)
def test_wire_request_validation(overrides):
    with pytest.raises(SchemaError):
        one_hour_request(**overrides)


def test_wire_request_defaults_zone_and_normalizes_utc():
    request = RecommendationRequest.model_validate(
        {
            "windowStartUtc": "2025-12-15T00:00:00-08:00",
            "windowEndUtc": "2025-12-15T12:00:00",
            "kWhNeeded": 5,
            "maxChargingKw": 5,
        }
    )

    assert request.zone == "CAISO"
    assert request.window_start_utc == WINDOW_START
    assert request.window_end_utc == datetime(2025, 12, 15, 12, tzinfo=UTC)
