"""Recommendation runner.

Takes a wire-level request, fetches the intensity series through a provider
and runs the planner. Failures surface as distinct exception classes so the
caller can map them to its own response semantics:

- UnsupportedZoneError / ValidationError: bad request
- NoDataAvailableError: nothing in the requested window
- DataQualityError: the backing dataset is unusable
- IngestionError: the backing dataset could not be read
- InfeasibleWindowError: the charge does not fit the window and data
"""

import logging
from typing import Iterable, Optional

from evcharge_engine.core.schemas import RecommendationRequest, RecommendationResponse
from evcharge_engine.core.validate import NoDataAvailableError, UnsupportedZoneError
from evcharge_engine.planner.optimizer import ChargingWindowOptimizer
from evcharge_engine.providers.interface import CarbonIntensityProvider

logger = logging.getLogger(__name__)


def run_recommendation(
    request: RecommendationRequest,
    provider: CarbonIntensityProvider,
    supported_zones: Optional[Iterable[str]] = None,
    optimizer: Optional[ChargingWindowOptimizer] = None,
) -> RecommendationResponse:
    """Recommend a charging window for a request.

    Args:
        request: Validated wire request
        provider: Carbon-intensity provider
        supported_zones: Zones accepted before touching the provider;
            None defers the check to the provider
        optimizer: Planner instance (default tolerance if omitted)

    Returns:
        RecommendationResponse
    """
    zone = request.zone.upper()

    if supported_zones is not None:
        zones = {z.upper() for z in supported_zones}
        if zone not in zones:
            raise UnsupportedZoneError(request.zone, zones)

    logger.info(
        "Planning %.2f kWh at %.2f kW in %s between %s and %s",
        request.kwh_needed,
        request.max_charging_kw,
        zone,
        request.window_start_utc,
        request.window_end_utc,
    )

    points = provider.get_hourly(zone, request.window_start_utc, request.window_end_utc)
    if not points:
        raise NoDataAvailableError(zone, request.window_start_utc, request.window_end_utc)

    optimizer = optimizer or ChargingWindowOptimizer()
    charging_request = request.to_charging_request().model_copy(update={"zone": zone})
    recommendation = optimizer.recommend(charging_request, points)

    logger.info(
        "Recommended %s to %s (%.3f kg CO2)",
        recommendation.recommended_start_utc,
        recommendation.recommended_end_utc,
        recommendation.estimated_emissions_kg,
    )

    return RecommendationResponse.from_recommendation(recommendation)
