from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from core.config_loader import settings
from core.errors import AvailabilityError, UnknownTimezoneError
from core.logging_config import get_logger

from .schema import (
    DisplayRule,
    DisplayRulePayload,
    EffectiveRangesPayload,
    EffectiveRangesResponse,
    PreparedRule,
    PrepareRulePayload,
)
from . import compute, service
from .timezone import validate_zone

logger = get_logger(__name__)

availability_router = APIRouter(prefix="/availability", tags=["Availability"])


def _resolve_zone(zone: str) -> str:
    """
    Unknown zones are rejected unless a fallback is configured. The
    substitution is made here, at the boundary, and always logged.
    """
    try:
        return validate_zone(zone)
    except UnknownTimezoneError:
        fallback = settings.FALLBACK_TIMEZONE
        if not fallback:
            raise HTTPException(status_code=422, detail=f"unknown timezone: {zone}")
        logger.warning("timezone_fallback", requested=zone, substituted=fallback)
        return validate_zone(fallback)


# Effective availability for a rule snapshot over a UTC date window
@availability_router.post("/effective", response_model=EffectiveRangesResponse)
def effective_ranges(payload: EffectiveRangesPayload):
    window = payload.date_range
    if window.num_days > settings.MAX_DATE_RANGE_DAYS:
        raise HTTPException(
            status_code=422,
            detail=f"date range too long: {window.num_days} days (max {settings.MAX_DATE_RANGE_DAYS})",
        )

    days = compute.compute_effective_ranges(payload.rules, window)
    if payload.split_overnight:
        days = compute.split_overnight(days)

    logger.debug(
        "effective_ranges_computed",
        rules=len(payload.rules),
        start_date=window.start_date.isoformat(),
        end_date=window.end_date.isoformat(),
        split_overnight=payload.split_overnight,
    )
    return EffectiveRangesResponse(days=list(days.values()))


# Normalize a rule entered in the user's zone into its UTC storage form
@availability_router.post("/rules/prepare", response_model=PreparedRule, status_code=status.HTTP_200_OK)
def prepare_rule(payload: PrepareRulePayload):
    zone = _resolve_zone(payload.timezone)
    try:
        return service.prepare_rule_for_storage(payload.rule, zone)
    except AvailabilityError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


# Re-express a stored rule in the viewer's current zone for editing
@availability_router.post("/rules/display", response_model=DisplayRule)
def display_rule(payload: DisplayRulePayload):
    zone = _resolve_zone(payload.timezone)
    try:
        return service.convert_rule_for_display(payload.rule, zone)
    except AvailabilityError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
