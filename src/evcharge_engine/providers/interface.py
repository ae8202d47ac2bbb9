"""Provider interfaces.

Ingestion is split in two capabilities so that the intensity builder and
the planner never depend on a concrete data source:

- FuelMixProvider: raw fuel-mix rows for a zone and UTC range
- CarbonIntensityProvider: hourly intensity points for a zone and UTC range
"""

from datetime import datetime
from typing import Protocol

from evcharge_engine.core.schemas import FuelReading, IntensityPoint


class FuelMixProvider(Protocol):
    """Protocol for fuel-mix sources (flat file, HTTP, database, ...)."""

    def get_readings(self, zone: str, start_utc: datetime, end_utc: datetime) -> list[FuelReading]:
        """Return raw fuel-mix rows for a zone.

        Sources may return rows outside the requested range; the intensity
        builder applies the range filter and data-quality policy.

        Args:
            zone: Grid zone identifier
            start_utc: Range start (inclusive)
            end_utc: Range end (exclusive)

        Returns:
            Raw fuel-mix readings

        Raises:
            UnsupportedZoneError: If the zone has no source
            IngestionError: If the source cannot be read
        """
        ...


class CarbonIntensityProvider(Protocol):
    """Protocol for hourly carbon-intensity providers."""

    def get_hourly(self, zone: str, start_utc: datetime, end_utc: datetime) -> list[IntensityPoint]:
        """Return hourly intensity points in ``[start_utc, end_utc)``, sorted.

        An empty list means no data exists for the range.
        """
        ...
