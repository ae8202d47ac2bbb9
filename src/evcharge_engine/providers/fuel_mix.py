"""Fuel-mix provider implementations."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Mapping, Optional

import pandas as pd

from evcharge_engine.core.schemas import FlatFileSourceConfig, FuelReading
from evcharge_engine.core.validate import IngestionError, UnsupportedZoneError
from evcharge_engine.io.formats import frame_to_readings, read_fuel_mix_csv, read_fuel_mix_parquet

logger = logging.getLogger(__name__)


class FlatFileFuelMixProvider:
    """Reads historical fuel mix from a CSV or Parquet file per zone.

    Files use one row per hourly interval: an ``interval_start_utc`` column
    plus ``fuel_mix.<fuel>`` columns holding average MW. The whole file is
    returned; range filtering happens in the intensity builder.
    """

    def __init__(self, sources: Mapping[str, FlatFileSourceConfig], base_dir: Optional[str | Path] = None):
        """Initialize with zone sources.

        Args:
            sources: Zone identifier -> file configuration
            base_dir: Directory that relative source paths resolve against
        """
        self.sources = {zone.upper(): source for zone, source in sources.items()}
        self.base_dir = Path(base_dir) if base_dir is not None else None

    @property
    def supported_zones(self) -> list[str]:
        return sorted(self.sources)

    def resolve_path(self, zone: str) -> Path:
        """Resolve the configured file for a zone.

        Raises:
            UnsupportedZoneError: If the zone has no configured source
            IngestionError: If the path is blank or the file does not exist
        """
        source = self.sources.get(zone.upper())
        if source is None:
            raise UnsupportedZoneError(zone, self.supported_zones)

        if not source.path.strip():
            raise IngestionError(f"{zone.upper()} fuel-mix file path is not configured.")

        path = Path(source.path)
        if not path.is_absolute() and self.base_dir is not None:
            path = self.base_dir / path

        if not path.exists():
            raise IngestionError(f"{zone.upper()} fuel-mix file not found at: {path}")

        return path

    def read_frame(self, zone: str) -> pd.DataFrame:
        """Load the zone's fuel-mix file as a raw table.

        Raises:
            UnsupportedZoneError: If the zone has no configured source
            IngestionError: If the file is missing or unreadable
        """
        path = self.resolve_path(zone)
        source = self.sources[zone.upper()]

        try:
            if source.format == "parquet":
                df = read_fuel_mix_parquet(path)
            else:
                df = read_fuel_mix_csv(path)
        except pd.errors.EmptyDataError as e:
            raise IngestionError(f"Fuel-mix file has no header row: {path}") from e
        except (ValueError, OSError) as e:
            # ParserError and ArrowInvalid subclass ValueError
            raise IngestionError(f"Could not read fuel-mix file {path}: {e}") from e

        logger.debug("Read %d fuel-mix rows for %s from %s", len(df), zone, path)
        return df

    def get_readings(self, zone: str, start_utc: datetime, end_utc: datetime) -> list[FuelReading]:
        """Return every row of the zone's file as raw readings."""
        return frame_to_readings(self.read_frame(zone))


class InMemoryFuelMixProvider:
    """Serves fuel-mix readings held in memory, keyed by zone."""

    def __init__(self, readings_by_zone: Mapping[str, list[FuelReading]]):
        """Initialize with readings.

        Args:
            readings_by_zone: Zone identifier -> readings
        """
        self.readings_by_zone = {zone.upper(): list(r) for zone, r in readings_by_zone.items()}

    @property
    def supported_zones(self) -> list[str]:
        return sorted(self.readings_by_zone)

    def get_readings(self, zone: str, start_utc: datetime, end_utc: datetime) -> list[FuelReading]:
        """Return all readings for the zone."""
        readings = self.readings_by_zone.get(zone.upper())
        if readings is None:
            raise UnsupportedZoneError(zone, self.supported_zones)
        return list(readings)
