"""Pricing tier resolution and administration.

A tier is a flat transport rate for one destination and volume band
(``volume_min <= volume < volume_max``); it is not a per-m3 rate.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.db.models import PricingTierModel
from orderflow.errors import EntityNotFound, ValidationError

logger = logging.getLogger(__name__)

WILDCARD_CITY = "*"


@dataclass(slots=True)
class PricingTier:
    id: UUID
    country: str
    city: str
    volume_min: Decimal
    volume_max: Decimal
    base_price: Decimal
    one_way_adjustment: Decimal = Decimal("0")  # signed; added to ONE_WAY totals
    currency: str = "AED"
    is_active: bool = True

    def covers(self, volume: Decimal) -> bool:
        return self.volume_min <= volume < self.volume_max

    @property
    def band_width(self) -> Decimal:
        return self.volume_max - self.volume_min


def _norm(value: str) -> str:
    return value.strip().casefold()


def match_tier(
    tiers: Iterable[PricingTier], country: str, city: str, volume: Decimal
) -> PricingTier | None:
    """Pick the tier for a destination and volume.

    A city-specific tier beats a ``*`` tier for the same country; among
    several matches the narrowest band wins.
    """
    country_key, city_key = _norm(country), _norm(city)
    candidates = [
        tier
        for tier in tiers
        if tier.is_active and _norm(tier.country) == country_key and tier.covers(volume)
    ]
    exact = [tier for tier in candidates if _norm(tier.city) == city_key]
    pool = exact or [tier for tier in candidates if tier.city.strip() == WILDCARD_CITY]
    if not pool:
        return None
    return min(pool, key=lambda tier: (tier.band_width, tier.volume_min))


def validate_tier(
    country: str,
    city: str,
    volume_min: Decimal,
    volume_max: Decimal,
    base_price: Decimal,
) -> None:
    """Raise ValidationError listing every broken tier rule."""
    issues = []
    if volume_min < 0:
        issues.append("volume_min must be greater than or equal to 0")
    if volume_max <= volume_min:
        issues.append("volume_max must be greater than volume_min")
    if base_price <= 0:
        issues.append("base_price must be greater than 0")
    if not country or not country.strip():
        issues.append("country is required")
    if not city or not city.strip():
        issues.append("city is required")
    if issues:
        raise ValidationError("; ".join(issues), issues)


def find_overlap(
    tiers: Iterable[PricingTier],
    country: str,
    city: str,
    volume_min: Decimal,
    volume_max: Decimal,
    exclude_id: UUID | None = None,
) -> PricingTier | None:
    """Return an existing tier for the same destination whose band overlaps."""
    for tier in tiers:
        if tier.id == exclude_id:
            continue
        if _norm(tier.country) != _norm(country) or _norm(tier.city) != _norm(city):
            continue
        if volume_min < tier.volume_max and tier.volume_min < volume_max:
            return tier
    return None


def _to_tier(row: PricingTierModel) -> PricingTier:
    return PricingTier(
        id=row.id,
        country=row.country,
        city=row.city,
        volume_min=Decimal(row.volume_min),
        volume_max=Decimal(row.volume_max),
        base_price=Decimal(row.base_price),
        one_way_adjustment=Decimal(row.one_way_adjustment or 0),
        currency=row.currency,
        is_active=row.is_active,
    )


async def list_tiers(
    session: AsyncSession,
    country: str | None = None,
    active_only: bool = False,
) -> list[PricingTier]:
    stmt = select(PricingTierModel).order_by(
        PricingTierModel.country, PricingTierModel.city, PricingTierModel.volume_min
    )
    if active_only:
        stmt = stmt.where(PricingTierModel.is_active.is_(True))
    result = await session.execute(stmt)
    tiers = [_to_tier(row) for row in result.scalars()]
    if country is not None:
        tiers = [tier for tier in tiers if _norm(tier.country) == _norm(country)]
    return tiers


async def create_pricing_tier(
    session: AsyncSession,
    country: str,
    city: str,
    volume_min: Decimal,
    volume_max: Decimal,
    base_price: Decimal,
    one_way_adjustment: Decimal = Decimal("0"),
    currency: str = "AED",
) -> PricingTier:
    """Validate and insert a tier (flushed, not committed).

    Raises:
        ValidationError: Broken rule or overlapping band for the destination
    """
    validate_tier(country, city, volume_min, volume_max, base_price)

    existing = await list_tiers(session, country=country)
    overlap = find_overlap(existing, country, city, volume_min, volume_max)
    if overlap is not None:
        raise ValidationError(
            f"Volume range {volume_min}-{volume_max} m3 overlaps with existing tier "
            f"({overlap.volume_min}-{overlap.volume_max} m3) for {city.strip()}"
        )

    row = PricingTierModel(
        country=country.strip(),
        city=city.strip(),
        volume_min=volume_min,
        volume_max=volume_max,
        base_price=base_price,
        one_way_adjustment=one_way_adjustment,
        currency=currency,
        is_active=True,
    )
    session.add(row)
    await session.flush()
    logger.info(f"Created pricing tier {row.id} for {row.city}, {row.country} ({volume_min}-{volume_max} m3)")
    return _to_tier(row)


async def set_tier_active(session: AsyncSession, tier_id: UUID, is_active: bool) -> PricingTier:
    row = await session.get(PricingTierModel, tier_id)
    if row is None:
        raise EntityNotFound(tier_id)
    row.is_active = is_active
    await session.flush()
    return _to_tier(row)
