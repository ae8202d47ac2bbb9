"""Hourly carbon-intensity series from raw fuel-mix readings.

Each in-range row becomes one IntensityPoint:

    intensity = sum(energy_kwh * factor) / sum(energy_kwh)

Bad rows are skipped and tallied. The tallies decide whether the dataset as a
whole is usable:

- no rows at all: DataQualityError
- no rows in range: empty series (caller reports "no data")
- rows in range but none usable: DataQualityError
- more than half the in-range rows with zero generation: DataQualityError
"""

import logging
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

import numpy as np
import pandas as pd

from evcharge_engine.core.constants import (
    KW_PER_MW,
    MAX_ZERO_GENERATION_FRACTION,
    READING_INTERVAL_HOURS,
)
from evcharge_engine.core.schemas import (
    EmissionsFactorTable,
    FuelReading,
    IntensityPoint,
    IntensitySeries,
)
from evcharge_engine.core.timeutils import ensure_utc, parse_timestamp
from evcharge_engine.core.validate import DataQualityError

logger = logging.getLogger(__name__)


def parse_power_mw(value: Any) -> float:
    """Parse one fuel's power reading.

    Missing values (None, NaN, empty string) read as 0 MW. Negative readings
    are clamped to 0.

    Raises:
        ValueError: If the value is present but not a finite number
    """
    if value is None:
        return 0.0
    if isinstance(value, str):
        if not value.strip():
            return 0.0
        mw = float(value)
    elif isinstance(value, (int, float, np.number)) and not isinstance(value, bool):
        mw = float(value)
    else:
        raise ValueError(f"Unsupported power value: {value!r}")

    if np.isnan(mw):
        return 0.0
    if not np.isfinite(mw):
        raise ValueError(f"Power value is not finite: {value!r}")

    return max(0.0, mw)


class IntensitySeriesBuilder:
    """Converts fuel-mix readings into a sorted hourly intensity series."""

    def __init__(
        self,
        emissions_factors: Optional[EmissionsFactorTable] = None,
        max_zero_generation_fraction: float = MAX_ZERO_GENERATION_FRACTION,
    ):
        """Initialize with an emissions factor table.

        Args:
            emissions_factors: Factor table (defaults to the CAISO table)
            max_zero_generation_fraction: Largest tolerated share of in-range
                rows with zero total generation
        """
        self.emissions_factors = emissions_factors if emissions_factors is not None else EmissionsFactorTable()
        self.max_zero_generation_fraction = max_zero_generation_fraction

    def compute_intensity(self, power_mw: Mapping[str, Any]) -> Optional[float]:
        """Carbon intensity for one row of fuel readings.

        Args:
            power_mw: Average MW per fuel over the hour

        Returns:
            kg CO2 per kWh, or None if total generation is zero

        Raises:
            ValueError: If any fuel value is unparseable
        """
        total_generation_kwh = 0.0
        total_emissions_kg = 0.0

        for fuel, raw in power_mw.items():
            energy_kwh = parse_power_mw(raw) * READING_INTERVAL_HOURS * KW_PER_MW
            total_generation_kwh += energy_kwh
            total_emissions_kg += energy_kwh * self.emissions_factors.factor_for(fuel)

        if total_generation_kwh <= 0:
            return None

        return total_emissions_kg / total_generation_kwh

    def build(
        self,
        readings: Iterable[FuelReading],
        start_utc: datetime,
        end_utc: datetime,
    ) -> IntensitySeries:
        """Build the intensity series for ``[start_utc, end_utc)``.

        Args:
            readings: Raw fuel-mix rows
            start_utc: Range start (inclusive)
            end_utc: Range end (exclusive)

        Returns:
            IntensitySeries sorted by timestamp, possibly empty

        Raises:
            DataQualityError: If the dataset is empty or the in-range rows
                are unusable
        """
        start_utc = ensure_utc(start_utc)
        end_utc = ensure_utc(end_utc)

        points = []
        total_rows = 0
        rows_in_range = 0
        skipped_rows = 0
        zero_generation_rows = 0

        for index, reading in enumerate(readings):
            total_rows += 1
            row = reading.row_number if reading.row_number is not None else index + 1

            timestamp = parse_timestamp(reading.timestamp)
            if timestamp is None:
                logger.warning("Skipping row %s: invalid timestamp %r", row, reading.timestamp)
                skipped_rows += 1
                continue

            if timestamp < start_utc or timestamp >= end_utc:
                continue

            rows_in_range += 1

            try:
                intensity = self.compute_intensity(reading.power_mw)
            except ValueError as e:
                logger.warning("Skipping row %s: error parsing fuel mix at %s: %s", row, timestamp, e)
                skipped_rows += 1
                continue

            if intensity is None:
                logger.warning("Skipping row %s: total generation is zero at %s", row, timestamp)
                zero_generation_rows += 1
                continue

            points.append(IntensityPoint(timestamp_utc=timestamp, kg_co2_per_kwh=intensity))

        counts = dict(
            total_rows=total_rows,
            rows_in_range=rows_in_range,
            skipped_rows=skipped_rows,
            zero_generation_rows=zero_generation_rows,
        )

        if total_rows == 0:
            raise DataQualityError("Fuel-mix dataset contains no data rows.", **counts)

        if rows_in_range == 0:
            logger.warning("No data points found in requested range %s to %s", start_utc, end_utc)
            return IntensitySeries(start_utc=start_utc, end_utc=end_utc, **counts)

        if not points:
            raise DataQualityError(
                f"All {rows_in_range} rows in requested range had invalid timestamps or data.",
                **counts,
            )

        if zero_generation_rows > rows_in_range * self.max_zero_generation_fraction:
            raise DataQualityError(
                f"More than {self.max_zero_generation_fraction:.0%} of rows in range "
                f"({zero_generation_rows}/{rows_in_range}) had zero total generation.",
                **counts,
            )

        logger.info(
            "Loaded %d carbon intensity points from %s to %s (%d skipped, %d zero-generation)",
            len(points),
            start_utc,
            end_utc,
            skipped_rows,
            zero_generation_rows,
        )

        points.sort(key=lambda p: p.timestamp_utc)
        return IntensitySeries(start_utc=start_utc, end_utc=end_utc, points=tuple(points), **counts)


def build_intensity_series(
    readings: Iterable[FuelReading],
    start_utc: datetime,
    end_utc: datetime,
    emissions_factors: Optional[EmissionsFactorTable] = None,
) -> list[IntensityPoint]:
    """Convenience wrapper returning only the points."""
    series = IntensitySeriesBuilder(emissions_factors).build(readings, start_utc, end_utc)
    return list(series.points)


def series_to_frame(points: Iterable[IntensityPoint]) -> pd.DataFrame:
    """Tabulate points as a DataFrame indexed by UTC timestamp."""
    df = pd.DataFrame(
        [(p.timestamp_utc, p.kg_co2_per_kwh) for p in points],
        columns=["timestamp", "kg_co2_per_kwh"],
    )
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    return df.set_index("timestamp")
