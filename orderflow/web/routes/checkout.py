"""Checkout routes: availability, feasibility, price estimate and submission."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.checkout.submission import OrderSubmission, check_red_items, estimate_cart, submit_order
from orderflow.db.connection import get_db
from orderflow.inventory.availability import validate_availability
from orderflow.inventory.lookup import InventoryLookup
from orderflow.maintenance.feasibility import check_maintenance_feasibility
from orderflow.models import Actor, FeasibilityResult, PricingEstimate
from orderflow.web.dependencies import get_actor, get_inventory
from orderflow.web.models import (
    AvailabilityRequest,
    AvailabilityResponse,
    EstimateRequest,
    FeasibilityRequest,
    SubmissionResponse,
)

router = APIRouter(prefix="/checkout", tags=["Checkout"])


@router.post("/availability", response_model=AvailabilityResponse)
async def check_availability(
    body: AvailabilityRequest,
    inventory: InventoryLookup = Depends(get_inventory),
):
    """Check requested quantities against current stock."""
    issues = await validate_availability(inventory, body.items)
    return AvailabilityResponse(available=not issues, issues=issues)


@router.post("/feasibility", response_model=FeasibilityResult)
async def check_feasibility_route(
    body: FeasibilityRequest,
    inventory: InventoryLookup = Depends(get_inventory),
):
    """Check that refurbishment can finish before the event starts.

    An infeasible schedule is a normal 200 response with ``feasible=false``.
    """
    if body.red_only:
        return await check_red_items(inventory, body.items, body.event_start_date)
    return await check_maintenance_feasibility(inventory, body.items, body.event_start_date)


@router.post("/estimate", response_model=PricingEstimate)
async def estimate(
    body: EstimateRequest,
    session: AsyncSession = Depends(get_db),
    inventory: InventoryLookup = Depends(get_inventory),
):
    """Preview the transport price for the cart and destination.

    A destination without a pricing tier is a normal 200 response with
    ``has_tier=false``.
    """
    return await estimate_cart(
        session, body.items, body.destination, body.trip_type, body.company_id, inventory=inventory
    )


@router.post("/submit", response_model=SubmissionResponse, status_code=201)
async def submit(
    body: OrderSubmission,
    session: AsyncSession = Depends(get_db),
    inventory: InventoryLookup = Depends(get_inventory),
    actor: Actor = Depends(get_actor),
):
    """Validate the cart and create the order."""
    outcome = await submit_order(session, body, actor, inventory=inventory)
    return SubmissionResponse(
        entity=outcome.entity, feasibility=outcome.feasibility, estimate=outcome.estimate
    )
