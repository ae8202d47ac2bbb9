"""Carbon-intensity provider built on a fuel-mix source."""

from datetime import datetime
from typing import Optional

from evcharge_engine.core.schemas import IntensityPoint, IntensitySeries
from evcharge_engine.core.timeutils import ensure_utc
from evcharge_engine.intensity.builder import IntensitySeriesBuilder
from evcharge_engine.providers.interface import FuelMixProvider


class FuelMixIntensityProvider:
    """Derives hourly carbon intensity from a fuel-mix provider.

    Ingestion errors from the fuel-mix provider propagate unchanged;
    data-quality errors come from the builder.
    """

    def __init__(self, fuel_mix_provider: FuelMixProvider, builder: Optional[IntensitySeriesBuilder] = None):
        self.fuel_mix_provider = fuel_mix_provider
        self.builder = builder or IntensitySeriesBuilder()

    @property
    def supported_zones(self) -> Optional[list[str]]:
        return getattr(self.fuel_mix_provider, "supported_zones", None)

    def get_series(self, zone: str, start_utc: datetime, end_utc: datetime) -> IntensitySeries:
        """Build the full series (points plus row tallies) for a range."""
        start_utc = ensure_utc(start_utc)
        end_utc = ensure_utc(end_utc)
        readings = self.fuel_mix_provider.get_readings(zone, start_utc, end_utc)
        return self.builder.build(readings, start_utc, end_utc)

    def get_hourly(self, zone: str, start_utc: datetime, end_utc: datetime) -> list[IntensityPoint]:
        """Return hourly intensity points for the range, sorted."""
        return list(self.get_series(zone, start_utc, end_utc).points)
