"""Staff pricing actions that produce a quote.

Logistics staff either accept the standard tier price (quote goes straight
to the client) or propose an adjusted price, which an admin then finalizes
with an explicit base price and margin. Service requests have no tiers and
are quoted line by line while IN_REVIEW.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.config import get_config
from orderflow.db.repository import EntityRepository
from orderflow.errors import InvalidAction, InvalidTransition, ValidationError
from orderflow.lifecycle.service import TransitionHook, transition
from orderflow.models import (
    Action,
    Actor,
    Destination,
    Entity,
    EntityKind,
    QuoteLine,
    QuoteState,
    TripType,
    utcnow,
)
from orderflow.pricing.estimator import calculate_margin, estimate_order_price, money

PRICING_REVIEW = "PRICING_REVIEW"
PENDING_APPROVAL = "PENDING_APPROVAL"
IN_REVIEW = "IN_REVIEW"


def _require_status(entity: Entity, status: str, action: str) -> None:
    if entity.status != status:
        raise InvalidTransition(
            f"Cannot {action} {entity.code}: status is {entity.status}, expected {status}",
            current=entity.status,
            target=status,
        )


async def approve_standard_pricing(
    session: AsyncSession,
    entity_id: UUID,
    actor: Actor,
    note: str | None = None,
    hooks: Sequence[TransitionHook] | None = None,
) -> Entity:
    """Quote the entity at its tier price plus company margin.

    Raises:
        ValidationError: Destination incomplete or no tier covers it
    """
    entity = await EntityRepository(session).get(entity_id)
    _require_status(entity, PRICING_REVIEW, "approve standard pricing for")

    if not entity.venue_country or not entity.venue_city:
        raise ValidationError(f"{entity.code} has no venue destination to price")

    trip_type = entity.trip_type or TripType.ROUND_TRIP
    estimate = await estimate_order_price(
        session,
        entity.line_items,
        Destination(country=entity.venue_country, city=entity.venue_city),
        trip_type,
        entity.company_id,
    )
    if not estimate.has_tier:
        raise ValidationError(
            f"No active pricing tier for {entity.venue_city}, {entity.venue_country} "
            f"at {estimate.volume} m3; adjust the price instead"
        )

    breakdown = [
        QuoteLine(label="Transport (flat rate)", amount=estimate.base_price),
        QuoteLine(label="Service margin", amount=estimate.margin_amount),
    ]
    if estimate.one_way_adjustment is not None:
        breakdown.append(QuoteLine(label="One-way adjustment", amount=estimate.one_way_adjustment))

    quote = QuoteState(
        total=estimate.total,
        currency=estimate.currency,
        base_price=estimate.base_price,
        margin_percent=estimate.margin_percent,
        margin_amount=estimate.margin_amount,
        breakdown=breakdown,
        pricing_tier_id=estimate.pricing_tier_id,
        quoted_at=utcnow(),
    )
    return await transition(
        session,
        entity_id,
        Action.SUBMIT_QUOTE,
        actor,
        note=note or "Standard pricing approved",
        quote=quote,
        hooks=hooks,
    )


async def adjust_pricing(
    session: AsyncSession,
    entity_id: UUID,
    adjusted_price: Decimal,
    reason: str,
    actor: Actor,
    hooks: Sequence[TransitionHook] | None = None,
) -> Entity:
    """Propose an adjusted price and send it for admin approval."""
    min_length = get_config().quotes.adjustment_reason_min_length
    reason = (reason or "").strip()
    if adjusted_price <= 0:
        raise ValidationError("Adjusted price must be greater than 0")
    if len(reason) < min_length:
        raise ValidationError(f"Adjustment reason must be at least {min_length} characters")

    entity = await EntityRepository(session).get(entity_id)
    _require_status(entity, PRICING_REVIEW, "adjust pricing for")

    currency = entity.quote.currency if entity.quote else get_config().pricing.currency
    quote = QuoteState(
        total=money(adjusted_price),
        currency=currency,
        adjusted_price=money(adjusted_price),
        adjustment_reason=reason,
    )
    return await transition(
        session,
        entity_id,
        Action.REQUEST_APPROVAL,
        actor,
        note=reason,
        quote=quote,
        hooks=hooks,
    )


async def approve_adjusted_pricing(
    session: AsyncSession,
    entity_id: UUID,
    base_price: Decimal,
    margin_percent: Decimal,
    actor: Actor,
    note: str | None = None,
    hooks: Sequence[TransitionHook] | None = None,
) -> Entity:
    """Finalize an adjusted price with an explicit base price and margin."""
    if base_price <= 0:
        raise ValidationError("Base price must be greater than 0")
    if not Decimal("0") <= margin_percent <= Decimal("100"):
        raise ValidationError("Margin percent must be between 0 and 100")

    entity = await EntityRepository(session).get(entity_id)
    _require_status(entity, PENDING_APPROVAL, "approve adjusted pricing for")

    base_price = money(base_price)
    margin_amount = calculate_margin(base_price, margin_percent)
    previous = entity.quote
    quote = QuoteState(
        total=money(base_price + margin_amount),
        currency=previous.currency if previous else get_config().pricing.currency,
        base_price=base_price,
        margin_percent=margin_percent,
        margin_amount=margin_amount,
        breakdown=[
            QuoteLine(label="Transport (adjusted)", amount=base_price),
            QuoteLine(label="Service margin", amount=margin_amount),
        ],
        adjusted_price=previous.adjusted_price if previous else None,
        adjustment_reason=previous.adjustment_reason if previous else None,
        quoted_at=utcnow(),
    )
    return await transition(
        session,
        entity_id,
        Action.SUBMIT_QUOTE,
        actor,
        note=note or "Adjusted pricing approved",
        quote=quote,
        hooks=hooks,
    )


async def quote_service_request(
    session: AsyncSession,
    entity_id: UUID,
    lines: Sequence[QuoteLine],
    actor: Actor,
    note: str | None = None,
    hooks: Sequence[TransitionHook] | None = None,
) -> Entity:
    """Send a service request quote built from explicit line amounts.

    Also used to re-quote after the client asked for a revision.

    Raises:
        InvalidAction: Entity is not a service request
        InvalidTransition: Request is not IN_REVIEW, or already quoted
        ValidationError: No lines, or the total is not greater than 0
    """
    entity = await EntityRepository(session).get(entity_id)
    if entity.kind != EntityKind.SERVICE_REQUEST:
        raise InvalidAction(Action.SUBMIT_QUOTE.value, entity.kind.value, "use the order pricing review")
    _require_status(entity, IN_REVIEW, "quote")

    if not lines:
        raise ValidationError("A quote needs at least one line")
    breakdown = [QuoteLine(label=line.label, amount=money(line.amount)) for line in lines]
    total = money(sum((line.amount for line in breakdown), Decimal("0")))
    if total <= 0:
        raise ValidationError("Quote total must be greater than 0")

    quote = QuoteState(
        total=total,
        currency=get_config().pricing.currency,
        breakdown=breakdown,
        quoted_at=utcnow(),
    )
    return await transition(
        session,
        entity_id,
        Action.SUBMIT_QUOTE,
        actor,
        note=note or "Service quote sent",
        quote=quote,
        hooks=hooks,
    )
