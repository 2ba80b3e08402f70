"""Checkout: pre-submission checks and final order submission.

Final submission re-runs availability and the feasibility check over every
item (never a cached or RED-only result) before the order is created.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.checkout.cache import FeasibilityCache
from orderflow.config import get_config
from orderflow.errors import ValidationError
from orderflow.inventory.availability import find_availability_issues
from orderflow.inventory.lookup import InventoryLookup, SqlInventory
from orderflow.inventory.models import AssetSnapshot
from orderflow.lifecycle.catalog import OrderStatus
from orderflow.lifecycle.machine import new_entity
from orderflow.lifecycle.service import TransitionHook, create_with_code
from orderflow.maintenance.feasibility import (
    check_feasibility,
    effective_decision,
    local_today,
    red_items_only,
)
from orderflow.models import (
    Actor,
    AvailabilityItem,
    Condition,
    Destination,
    Entity,
    EntityKind,
    FeasibilityItem,
    FeasibilityResult,
    LineItem,
    MaintenanceDecision,
    PricingEstimate,
    TripType,
)
from orderflow.pricing.estimator import company_margin, estimate_order_price, estimate_price
from orderflow.pricing.tiers import list_tiers

logger = logging.getLogger(__name__)

ORDER_CODE_PREFIX = "ORD"


class CheckoutItem(BaseModel):
    asset_id: UUID
    quantity: int = Field(gt=0)
    maintenance_decision: MaintenanceDecision | None = None
    rebrand_target_brand_id: str | None = None
    rebrand_target_brand_custom: str | None = None
    rebrand_instructions: str | None = None


class OrderSubmission(BaseModel):
    """Cart contents plus event and venue details entered at checkout."""

    company_id: str
    items: list[CheckoutItem] = Field(min_length=1)
    event_start_date: date
    event_end_date: date
    venue_name: str
    venue_country: str
    venue_city: str
    trip_type: TripType = TripType.ROUND_TRIP
    contact_email: str | None = None
    special_instructions: str | None = None

    @field_validator("venue_name", "venue_country", "venue_city")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @model_validator(mode="after")
    def check_event_window(self) -> OrderSubmission:
        if self.event_end_date < self.event_start_date:
            raise ValueError("event_end_date must not be before event_start_date")
        return self

    @property
    def destination(self) -> Destination:
        return Destination(country=self.venue_country, city=self.venue_city)


@dataclass(slots=True)
class SubmissionOutcome:
    entity: Entity
    feasibility: FeasibilityResult
    estimate: PricingEstimate


def validate_line_items(items: Sequence[CheckoutItem], assets: Mapping[UUID, AssetSnapshot]) -> None:
    """Check maintenance decisions and rebrand fields on every cart line.

    Raises:
        ValidationError: First broken rule; ``issues`` lists all of them
    """
    issues: list[str] = []
    for item in items:
        asset = assets.get(item.asset_id)
        name = asset.name if asset is not None else str(item.asset_id)
        condition = asset.condition if asset is not None else None

        if condition == Condition.ORANGE and item.maintenance_decision is None:
            issues.append(f"{name}: missing maintenance decision")
        if condition == Condition.RED and item.maintenance_decision == MaintenanceDecision.USE_AS_IS:
            issues.append(f"{name}: RED items must be fixed before use")

        has_target = bool(item.rebrand_target_brand_id or item.rebrand_target_brand_custom)
        has_instructions = bool(item.rebrand_instructions and item.rebrand_instructions.strip())
        if has_target != has_instructions:
            issues.append(f"{name}: rebrand target and instructions are required together")

    if issues:
        message = issues[0].split(": ", 1)[1] if len(issues) == 1 else "Invalid cart items"
        raise ValidationError(message, issues)


def build_line_items(
    items: Sequence[CheckoutItem], assets: Mapping[UUID, AssetSnapshot]
) -> list[LineItem]:
    line_items = []
    for item in items:
        asset = assets[item.asset_id]
        line_items.append(
            LineItem(
                asset_id=item.asset_id,
                asset_name=asset.name,
                quantity=item.quantity,
                volume_per_unit=asset.volume_per_unit,
                weight_per_unit=asset.weight_per_unit,
                condition=asset.condition,
                maintenance_decision=effective_decision(
                    FeasibilityItem(asset_id=item.asset_id, maintenance_decision=item.maintenance_decision),
                    asset,
                ),
                rebrand_target_brand_id=item.rebrand_target_brand_id,
                rebrand_target_brand_custom=item.rebrand_target_brand_custom,
                rebrand_instructions=item.rebrand_instructions,
            )
        )
    return line_items


def feasibility_items(items: Sequence[CheckoutItem]) -> list[FeasibilityItem]:
    return [
        FeasibilityItem(asset_id=item.asset_id, maintenance_decision=item.maintenance_decision)
        for item in items
    ]


async def check_red_items(
    inventory: InventoryLookup,
    items: Sequence[FeasibilityItem],
    event_start_date: date,
    today: date | None = None,
    cache: FeasibilityCache | None = None,
) -> FeasibilityResult:
    """Speculative early check over RED items only, as soon as the event date is known."""
    config = get_config().feasibility
    today = today or local_today(config.timezone)
    assets = await inventory.get_assets([item.asset_id for item in items]) if items else {}
    red = red_items_only(items, assets)

    if cache is not None:
        cached = cache.get(event_start_date, red, today)
        if cached is not None:
            return cached

    result = check_feasibility(red, event_start_date, assets, today, config)
    if cache is not None:
        cache.put(event_start_date, red, today, result)
    return result


async def estimate_cart(
    session: AsyncSession,
    items: Sequence[CheckoutItem],
    destination: Destination,
    trip_type: TripType,
    company_id: str,
    inventory: InventoryLookup | None = None,
) -> PricingEstimate:
    """Price preview for cart lines (volumes come from inventory).

    Raises:
        ValidationError: A line refers to an asset that does not exist
    """
    inventory = inventory or SqlInventory(session)
    assets = await inventory.get_assets([item.asset_id for item in items])
    missing = [f"{item.asset_id} is no longer available" for item in items if item.asset_id not in assets]
    if missing:
        raise ValidationError("Some items are no longer available", missing)

    return await estimate_order_price(
        session, build_line_items(items, assets), destination, trip_type, company_id
    )


async def submit_order(
    session: AsyncSession,
    submission: OrderSubmission,
    actor: Actor,
    inventory: InventoryLookup | None = None,
    today: date | None = None,
    hooks: Sequence[TransitionHook] | None = None,
) -> SubmissionOutcome:
    """Validate the cart and create the order in SUBMITTED status.

    Raises:
        ValidationError: Unavailable stock, invalid line items, or
            refurbishment that cannot finish before the event
    """
    config = get_config()
    inventory = inventory or SqlInventory(session)
    today = today or local_today(config.feasibility.timezone)

    assets = await inventory.get_assets([item.asset_id for item in submission.items])

    availability_issues = find_availability_issues(
        [AvailabilityItem(asset_id=i.asset_id, quantity=i.quantity) for i in submission.items],
        assets,
    )
    if availability_issues:
        raise ValidationError("Some items are no longer available", availability_issues)

    validate_line_items(submission.items, assets)

    # Authoritative check over all items with their final decisions
    feasibility = check_feasibility(
        feasibility_items(submission.items),
        submission.event_start_date,
        assets,
        today,
        config.feasibility,
    )
    if not feasibility.feasible:
        raise ValidationError(
            "Maintenance cannot be completed before the event starts",
            [issue.message for issue in feasibility.issues],
        )

    line_items = build_line_items(submission.items, assets)
    margin_percent = await company_margin(session, submission.company_id, config.pricing)
    tiers = await list_tiers(session, country=submission.venue_country, active_only=True)
    estimate = estimate_price(
        line_items, submission.destination, submission.trip_type, tiers, margin_percent, config.pricing
    )

    def build(code: str) -> Entity:
        return new_entity(
            EntityKind.ORDER,
            code,
            submission.company_id,
            actor,
            status=OrderStatus.SUBMITTED.value,
            event_start_date=submission.event_start_date,
            event_end_date=submission.event_end_date,
            venue_name=submission.venue_name,
            venue_country=submission.venue_country,
            venue_city=submission.venue_city,
            trip_type=submission.trip_type,
            contact_email=submission.contact_email,
            special_instructions=submission.special_instructions,
            line_items=line_items,
        )

    entity = await create_with_code(session, ORDER_CODE_PREFIX, today, build, actor, hooks=hooks)
    logger.info(f"Order {entity.code} submitted with {len(line_items)} items")
    return SubmissionOutcome(entity=entity, feasibility=feasibility, estimate=estimate)
