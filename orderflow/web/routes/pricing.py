"""Pricing routes: staff pricing review on orders, service request quotes and pricing tier admin."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.db.connection import get_db
from orderflow.models import Actor, Entity
from orderflow.pricing.tiers import create_pricing_tier, list_tiers, set_tier_active
from orderflow.quotes.pricing_review import (
    adjust_pricing,
    approve_adjusted_pricing,
    approve_standard_pricing,
    quote_service_request,
)
from orderflow.web.dependencies import get_actor
from orderflow.web.models import (
    AdjustPricingRequest,
    ApproveAdjustedRequest,
    ApproveStandardRequest,
    PricingTierCreate,
    PricingTierResponse,
    PricingTierUpdate,
    ServiceQuoteRequest,
)

router = APIRouter(tags=["Pricing"])


# ============================================================================
# Pricing review
# ============================================================================


@router.post("/orders/{entity_id}/pricing/approve-standard", response_model=Entity)
async def approve_standard(
    entity_id: UUID,
    body: ApproveStandardRequest,
    session: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Quote the order at its tier price and send the quote to the client."""
    return await approve_standard_pricing(session, entity_id, actor, note=body.note)


@router.post("/orders/{entity_id}/pricing/adjust", response_model=Entity)
async def adjust(
    entity_id: UUID,
    body: AdjustPricingRequest,
    session: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Propose a non-standard price; the order waits for admin approval."""
    return await adjust_pricing(session, entity_id, body.adjusted_price, body.reason, actor)


@router.post("/orders/{entity_id}/pricing/approve-adjusted", response_model=Entity)
async def approve_adjusted(
    entity_id: UUID,
    body: ApproveAdjustedRequest,
    session: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return await approve_adjusted_pricing(
        session, entity_id, body.base_price, body.margin_percent, actor, note=body.note
    )


@router.post("/service-requests/{entity_id}/quote", response_model=Entity)
async def quote_service(
    entity_id: UUID,
    body: ServiceQuoteRequest,
    session: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Quote a service request under review (also re-quotes after a revision request)."""
    return await quote_service_request(session, entity_id, body.lines, actor, note=body.note)


# ============================================================================
# Pricing tiers
# ============================================================================


@router.get("/pricing-tiers", response_model=list[PricingTierResponse])
async def get_pricing_tiers(
    country: str | None = Query(None),
    active_only: bool = Query(False),
    session: AsyncSession = Depends(get_db),
):
    return await list_tiers(session, country=country, active_only=active_only)


@router.post("/pricing-tiers", response_model=PricingTierResponse, status_code=201)
async def add_pricing_tier(body: PricingTierCreate, session: AsyncSession = Depends(get_db)):
    """Create a tier; overlapping volume bands for the same destination are rejected (422)."""
    return await create_pricing_tier(
        session,
        body.country,
        body.city,
        body.volume_min,
        body.volume_max,
        body.base_price,
        one_way_adjustment=body.one_way_adjustment,
        currency=body.currency,
    )


@router.patch("/pricing-tiers/{tier_id}", response_model=PricingTierResponse)
async def update_pricing_tier(
    tier_id: UUID, body: PricingTierUpdate, session: AsyncSession = Depends(get_db)
):
    """Activate or deactivate a tier."""
    return await set_tier_active(session, tier_id, body.is_active)
