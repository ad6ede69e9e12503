"""Awards router: valuation of award and mileage alternatives against cash fares."""

import logging

from fastapi import APIRouter

from milevalue.config import settings
from milevalue.data.currency import format_price
from milevalue.schemas.awards import EnrichRequest, EvaluateRequest, ProgramsRequest, ValueRequest
from milevalue.services.award_valuation_service import award_valuation_service
from milevalue.services.awards.mileage_programs import find_best_mileage_for_slice, group_mileage_by_program
from milevalue.services.awards.valuation import value
from milevalue.services.enrichment_service import enrichment_coordinator

logger = logging.getLogger(__name__)

router = APIRouter()


def _per_mile_value(requested: float | None) -> float:
    return requested if requested is not None else settings.per_mile_value


@router.post("/value")
async def value_award(req: ValueRequest):
    """Cash-equivalent value of a (miles, tax) pair."""
    p = _per_mile_value(req.per_mile_value)
    v = value(req.miles, req.tax, p)
    return {
        "miles": req.miles,
        "tax": req.tax,
        "per_mile_value": p,
        "value": round(v, 2),
        "formatted": format_price(v),
    }


@router.post("/programs")
async def mileage_programs(req: ProgramsRequest):
    """Legacy mileage breakdown of one slice grouped per program, best first."""
    p = _per_mile_value(req.per_mile_value)
    programs = group_mileage_by_program(req.slice.mileage_breakdown)
    route = find_best_mileage_for_slice(req.slice, p)
    return {
        "per_mile_value": p,
        "programs": [program.to_dict(p) for program in programs],
        "best_route": route.to_dict() if route else None,
    }


@router.post("/evaluate")
async def evaluate_itinerary(req: EvaluateRequest):
    """Value an itinerary against caller-supplied enrichment batches."""
    p = _per_mile_value(req.per_mile_value)
    result = award_valuation_service.evaluate(req.itinerary, req.carrier_batches, p)
    return result.to_dict()


@router.post("/enrich")
async def enrich_and_evaluate(req: EnrichRequest):
    """Fetch award batches for the itinerary's carriers, then value it."""
    p = _per_mile_value(req.per_mile_value)
    if req.reset:
        enrichment_coordinator.reset()
    batches = await enrichment_coordinator.fetch_for_itinerary(req.itinerary)
    result = award_valuation_service.evaluate(req.itinerary, batches, p)
    return {
        **result.to_dict(),
        "carriers": sorted(batches),
        "enrichment": enrichment_coordinator.status(),
    }
