"""Lowest-emissions charging window search.

Candidate starts are hour boundaries inside the request window. Each
candidate charges at full power for ``kwh_needed / max_charging_kw`` hours;
its emissions are the sum over the hour buckets it touches of

    max_charging_kw * hours_in_bucket * intensity[bucket]

where only the final bucket may be partial. Candidates that overrun the
window or touch an hour without data are dropped. Ties (within an absolute
tolerance) go to the earliest start.
"""

from datetime import datetime, timedelta
from typing import Iterator, Mapping, Optional, Sequence

from evcharge_engine.core.constants import (
    DURATION_RESIDUE_HOURS,
    PLANNER_EXPLANATION,
    TIE_TOLERANCE_KG,
)
from evcharge_engine.core.schemas import (
    ChargingRecommendation,
    ChargingRequest,
    IntensityPoint,
)
from evcharge_engine.core.timeutils import ensure_utc, floor_to_hour
from evcharge_engine.core.validate import (
    InfeasibleWindowError,
    validate_charging_request,
    validate_intensity_series,
)

ONE_HOUR = timedelta(hours=1)


def build_hourly_lookup(series: Sequence[IntensityPoint]) -> dict[datetime, float]:
    """Map each point's UTC bucket start to its intensity."""
    return {ensure_utc(p.timestamp_utc): p.kg_co2_per_kwh for p in series}


def candidate_starts(window_start_utc: datetime, window_end_utc: datetime) -> Iterator[datetime]:
    """Yield hour-aligned start times within ``[window_start, window_end)``.

    Enumeration begins at the hour containing the window start; a rounded-down
    hour earlier than the window start itself is not offered.
    """
    window_start_utc = ensure_utc(window_start_utc)
    window_end_utc = ensure_utc(window_end_utc)

    candidate = floor_to_hour(window_start_utc)
    while candidate < window_end_utc:
        if candidate >= window_start_utc:
            yield candidate
        candidate += ONE_HOUR


def estimate_emissions(
    start_utc: datetime,
    duration_hours: float,
    max_charging_kw: float,
    intensity_by_hour: Mapping[datetime, float],
) -> Optional[float]:
    """Emissions (kg CO2) of charging at full power from ``start_utc``.

    Args:
        start_utc: Charging start (hour-aligned)
        duration_hours: Charging time, may be fractional
        max_charging_kw: Charging power
        intensity_by_hour: Hour bucket start -> kg CO2 per kWh

    Returns:
        Total emissions, or None if any required hour has no data
    """
    emissions_kg = 0.0
    remaining_hours = duration_hours
    current_hour = floor_to_hour(start_utc)

    # The start bucket is always required, however short the session
    while True:
        kg_per_kwh = intensity_by_hour.get(current_hour)
        if kg_per_kwh is None:
            return None

        hours_this_bucket = min(1.0, remaining_hours)
        emissions_kg += max_charging_kw * hours_this_bucket * kg_per_kwh

        remaining_hours -= hours_this_bucket
        if remaining_hours <= DURATION_RESIDUE_HOURS:
            return emissions_kg
        current_hour += ONE_HOUR


def hours_until(start_utc: datetime, end_utc: datetime) -> float:
    """Length of ``[start_utc, end_utc)`` in hours."""
    return (end_utc - start_utc).total_seconds() / 3600


class ChargingWindowOptimizer:
    """Chooses the feasible hourly start minimizing total emissions."""

    def __init__(self, tie_tolerance_kg: float = TIE_TOLERANCE_KG):
        """Initialize the optimizer.

        Args:
            tie_tolerance_kg: Absolute difference in kg CO2 under which two
                candidates count as tied
        """
        self.tie_tolerance_kg = tie_tolerance_kg

    def recommend(
        self,
        request: ChargingRequest,
        hourly_intensity: Sequence[IntensityPoint],
    ) -> ChargingRecommendation:
        """Recommend the lowest-emissions charging window.

        Args:
            request: Charging request
            hourly_intensity: Hourly intensity points (UTC bucket starts)

        Returns:
            ChargingRecommendation for the best start time

        Raises:
            ValidationError: If the request or series is invalid
            InfeasibleWindowError: If no start time fits the window with full
                data coverage
        """
        validate_charging_request(request)
        validate_intensity_series(hourly_intensity)

        intensity_by_hour = build_hourly_lookup(hourly_intensity)

        window_start = ensure_utc(request.window_start_utc)
        window_end = ensure_utc(request.window_end_utc)
        duration_hours = request.duration_hours

        best_start = None
        best_end = None
        best_emissions = float("inf")

        for candidate_start in candidate_starts(window_start, window_end):
            # Must finish by window end. Compared in hours: an oversized duration
            # has no representable end datetime.
            if duration_hours - hours_until(candidate_start, window_end) > DURATION_RESIDUE_HOURS:
                continue

            emissions_kg = estimate_emissions(
                candidate_start, duration_hours, request.max_charging_kw, intensity_by_hour
            )
            if emissions_kg is None:
                continue

            candidate_end = min(candidate_start + timedelta(hours=duration_hours), window_end)

            is_better = emissions_kg < best_emissions - self.tie_tolerance_kg
            is_tie_and_earlier = abs(emissions_kg - best_emissions) <= self.tie_tolerance_kg and (
                best_start is None or candidate_start < best_start
            )

            if is_better or is_tie_and_earlier:
                best_start = candidate_start
                best_end = candidate_end
                best_emissions = emissions_kg

        if best_start is None:
            raise InfeasibleWindowError(
                f"No feasible charging start time found between {window_start.isoformat()} "
                f"and {window_end.isoformat()} for {duration_hours:g} h of charging "
                f"given available carbon intensity data."
            )

        return ChargingRecommendation(
            zone=request.zone,
            recommended_start_utc=best_start,
            recommended_end_utc=best_end,
            estimated_emissions_kg=best_emissions,
            explanation=PLANNER_EXPLANATION,
        )
