"""Checkout price estimation.

Estimate = tier flat rate + company margin (+ signed one-way adjustment for
one-way trips). Rebrand work is never priced here.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.config import PricingConfig, get_config
from orderflow.db.models import CompanyModel
from orderflow.models import Destination, LineItem, PricingEstimate, TripType
from orderflow.pricing.tiers import PricingTier, list_tiers, match_tier

CENT = Decimal("0.01")


def money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_margin(base_price: Decimal, margin_percent: Decimal) -> Decimal:
    return money(base_price * margin_percent / Decimal("100"))


def estimate_price(
    items: Sequence[LineItem],
    destination: Destination,
    trip_type: TripType,
    tiers: Iterable[PricingTier],
    margin_percent: Decimal,
    config: PricingConfig | None = None,
) -> PricingEstimate:
    """Estimate the transport price for the items and destination.

    Returns:
        PricingEstimate with ``has_tier=False`` and the custom-quote
        disclaimer when no tier covers the destination and volume
    """
    config = config or PricingConfig()
    volume = sum((item.total_volume for item in items), Decimal("0"))
    weight = sum((item.total_weight for item in items), Decimal("0"))
    has_rebrand = any(item.is_rebrand_request for item in items)

    tier = match_tier(tiers, destination.country, destination.city, volume)
    if tier is None:
        return PricingEstimate(
            has_tier=False,
            has_rebrand_items=has_rebrand,
            trip_type=trip_type,
            volume=volume,
            weight=weight,
            disclaimer=config.custom_quote_disclaimer,
        )

    base_price = money(tier.base_price)
    margin_amount = calculate_margin(base_price, margin_percent)
    total = base_price + margin_amount

    one_way_adjustment = None
    if trip_type == TripType.ONE_WAY:
        one_way_adjustment = money(tier.one_way_adjustment)
        total += one_way_adjustment

    return PricingEstimate(
        has_tier=True,
        has_rebrand_items=has_rebrand,
        total=money(total),
        currency=tier.currency or config.currency,
        trip_type=trip_type,
        volume=volume,
        weight=weight,
        pricing_tier_id=tier.id,
        base_price=base_price,
        margin_percent=margin_percent,
        margin_amount=margin_amount,
        one_way_adjustment=one_way_adjustment,
        disclaimer=config.rebrand_disclaimer if has_rebrand else None,
    )


async def company_margin(
    session: AsyncSession, company_id: str, config: PricingConfig | None = None
) -> Decimal:
    """Margin percent for a company, falling back to the configured default."""
    config = config or get_config().pricing
    company = await session.get(CompanyModel, company_id)
    if company is None or company.margin_percent is None:
        return config.default_margin_percent
    return Decimal(company.margin_percent)


async def estimate_order_price(
    session: AsyncSession,
    items: Sequence[LineItem],
    destination: Destination,
    trip_type: TripType,
    company_id: str,
    config: PricingConfig | None = None,
) -> PricingEstimate:
    """Resolve the company margin and destination tiers, then estimate."""
    config = config or get_config().pricing
    margin_percent = await company_margin(session, company_id, config)
    tiers = await list_tiers(session, country=destination.country, active_only=True)
    return estimate_price(items, destination, trip_type, tiers, margin_percent, config)
