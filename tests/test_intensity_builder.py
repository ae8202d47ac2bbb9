"""Test fuel-mix to carbon-intensity conversion and data-quality policy."""

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from evcharge_engine.core.schemas import EmissionsFactorTable, FuelReading
from evcharge_engine.core.validate import DataQualityError
from evcharge_engine.intensity.builder import (
    IntensitySeriesBuilder,
    build_intensity_series,
    parse_power_mw,
    series_to_frame,
)

UTC = timezone.utc
START = datetime(2025, 12, 15, 10, tzinfo=UTC)


def reading(hour, **power_mw):
    """Reading at ``START + hour`` with the given MW per fuel."""
    return FuelReading(timestamp=START + timedelta(hours=hour), power_mw=power_mw)


@pytest.fixture
def builder():
    """Create builder with the default CAISO factors."""
    return IntensitySeriesBuilder()


def test_intensity_is_emissions_over_generation(builder):
    """Gas at 0.40 kg/kWh diluted by an equal share of wind."""
    assert builder.compute_intensity({"natural_gas": 1000, "wind": 1000}) == pytest.approx(0.2)


def test_mixed_fossil_intensity(builder):
    """Coal and gas weighted by energy share."""
    intensity = builder.compute_intensity({"natural_gas": 1000, "coal": 1000})

    assert intensity == pytest.approx((0.4 + 1.0) / 2)


def test_unknown_fuel_counts_as_zero_emission_generation(builder):
    """Fuels without a factor add to generation but not emissions."""
    intensity = builder.compute_intensity({"natural_gas": 1000, "imports": 1000})

    assert intensity == pytest.approx(0.2)


def test_fuel_names_match_case_insensitively(builder):
    assert builder.compute_intensity({"Natural_Gas": 500}) == pytest.approx(0.4)


def test_negative_power_clamped(builder):
    """Negative readings (storage charging, curtailment) contribute nothing."""
    intensity = builder.compute_intensity({"natural_gas": 1000, "solar": -200, "batteries": -500})

    assert intensity == pytest.approx(0.4)


def test_missing_values_read_as_zero(builder):
    intensity = builder.compute_intensity({"natural_gas": 1000, "solar": None, "wind": "", "coal": np.nan})

    assert intensity == pytest.approx(0.4)


def test_zero_generation_returns_none(builder):
    assert builder.compute_intensity({"natural_gas": 0, "solar": -5}) is None
    assert builder.compute_intensity({}) is None


def test_unparseable_value_raises(builder):
    with pytest.raises(ValueError):
        builder.compute_intensity({"natural_gas": "abc"})


@pytest.mark.parametrize("value,expected", [("12.5", 12.5), (" 3 ", 3.0), (7, 7.0), ("-4", 0.0), ("", 0.0)])
def test_parse_power_mw(value, expected):
    assert parse_power_mw(value) == expected


def test_parse_power_mw_rejects_infinite():
    with pytest.raises(ValueError):
        parse_power_mw("inf")


def test_intensity_monotonic_in_emissions_factor():
    """Raising a fuel's factor never lowers the intensity."""
    power = {"natural_gas": 800, "wind": 1200, "oil": 100}
    intensities = [
        IntensitySeriesBuilder(EmissionsFactorTable(factors={"natural_gas": f, "oil": 0.8})).compute_intensity(power)
        for f in [0.0, 0.2, 0.4, 0.6, 1.0]
    ]

    assert intensities == sorted(intensities)


def test_negative_factor_rejected():
    with pytest.raises(ValueError):
        EmissionsFactorTable(factors={"natural_gas": -0.1})


def test_build_sorts_and_filters_range(builder):
    """End of range is exclusive; output sorted ascending."""
    readings = [
        reading(3, natural_gas=1000),
        reading(1, natural_gas=1000, wind=1000),
        reading(-1, natural_gas=1000),
        reading(0, coal=1000),
        reading(2, wind=1000),
    ]

    series = builder.build(readings, START, START + timedelta(hours=3))

    assert [p.timestamp_utc for p in series.points] == [START + timedelta(hours=h) for h in range(3)]
    assert [p.kg_co2_per_kwh for p in series.points] == pytest.approx([1.0, 0.2, 0.0])
    assert series.total_rows == 5
    assert series.rows_in_range == 3


def test_unparseable_timestamp_skipped(builder):
    readings = [
        reading(0, natural_gas=1000),
        FuelReading(timestamp="not-a-date", power_mw={"natural_gas": 1000}),
        FuelReading(timestamp=None, power_mw={"natural_gas": 1000}),
    ]

    series = builder.build(readings, START, START + timedelta(hours=1))

    assert len(series.points) == 1
    assert series.skipped_rows == 2


def test_string_timestamps_with_offsets(builder):
    """Offset strings convert to UTC; naive strings are read as UTC."""
    readings = [
        FuelReading(timestamp="2025-12-15T02:00:00-08:00", power_mw={"natural_gas": "1000"}),
        FuelReading(timestamp="2025-12-15 11:00:00", power_mw={"wind": "1000"}),
    ]

    points = build_intensity_series(readings, START, START + timedelta(hours=2))

    assert [p.timestamp_utc for p in points] == [START, START + timedelta(hours=1)]


def test_unparseable_fuel_value_skips_whole_row(builder):
    readings = [
        reading(0, natural_gas=1000),
        FuelReading(timestamp=START + timedelta(hours=1), power_mw={"natural_gas": "abc", "wind": "500"}),
        reading(2, wind=1000),
    ]

    series = builder.build(readings, START, START + timedelta(hours=3))

    assert [p.timestamp_utc for p in series.points] == [START, START + timedelta(hours=2)]
    assert series.skipped_rows == 1


def test_zero_generation_rows_excluded(builder):
    """Zero-generation rows never appear in the output series."""
    readings = [reading(0, natural_gas=1000), reading(1, natural_gas=0, solar=-10), reading(2, wind=500)]

    series = builder.build(readings, START, START + timedelta(hours=3))

    assert START + timedelta(hours=1) not in {p.timestamp_utc for p in series.points}
    assert series.zero_generation_rows == 1
    assert all(p.kg_co2_per_kwh >= 0 for p in series.points)


def test_empty_dataset_is_fatal(builder):
    with pytest.raises(DataQualityError, match="no data rows"):
        builder.build([], START, START + timedelta(hours=1))


def test_no_rows_in_range_returns_empty_series(builder):
    """Data outside the requested range is not an error."""
    series = builder.build([reading(5, natural_gas=1000)], START, START + timedelta(hours=2))

    assert series.is_empty
    assert series.total_rows == 1
    assert series.rows_in_range == 0


def test_all_rows_in_range_invalid_is_fatal(builder):
    readings = [
        FuelReading(timestamp=START, power_mw={"natural_gas": "n/a"}),
        reading(1, natural_gas=0),
        reading(9, natural_gas=1000),
    ]

    with pytest.raises(DataQualityError, match="All 2 rows") as exc_info:
        builder.build(readings, START, START + timedelta(hours=2))

    assert exc_info.value.rows_in_range == 2
    assert exc_info.value.skipped_rows == 1
    assert exc_info.value.zero_generation_rows == 1


def test_majority_zero_generation_is_fatal(builder):
    """Two of three in-range rows with zero generation exceeds 50%."""
    readings = [reading(0, natural_gas=0), reading(1, solar=-5), reading(2, natural_gas=1000)]

    with pytest.raises(DataQualityError, match="zero total generation"):
        builder.build(readings, START, START + timedelta(hours=3))


def test_exactly_half_zero_generation_is_tolerated(builder):
    readings = [reading(0, natural_gas=0), reading(1, natural_gas=1000)]

    series = builder.build(readings, START, START + timedelta(hours=2))

    assert len(series.points) == 1


def test_custom_zero_generation_threshold():
    builder = IntensitySeriesBuilder(max_zero_generation_fraction=0.2)
    readings = [reading(0, natural_gas=0)] + [reading(h, natural_gas=1000) for h in range(1, 4)]

    with pytest.raises(DataQualityError):
        builder.build(readings, START, START + timedelta(hours=4))


def test_series_to_frame(builder):
    series = builder.build([reading(0, natural_gas=1000), reading(1, wind=1000)], START, START + timedelta(hours=2))

    df = series_to_frame(series.points)

    assert list(df["kg_co2_per_kwh"]) == pytest.approx([0.4, 0.0])
    assert str(df.index.tz) == "UTC"
