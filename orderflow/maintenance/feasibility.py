"""Maintenance feasibility for damaged items.

An item that will be refurbished before the event (RED items always, ORANGE
items when the client chose to fix them) needs ``refurb_days_estimate`` days
of lead time. The order is infeasible when any such item cannot be ready by
the event start date.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime, timedelta
from uuid import UUID
from zoneinfo import ZoneInfo

from orderflow.config import FeasibilityConfig, get_config
from orderflow.inventory.lookup import InventoryLookup
from orderflow.inventory.models import AssetSnapshot
from orderflow.models import (
    Condition,
    FeasibilityIssue,
    FeasibilityItem,
    FeasibilityResult,
    MaintenanceDecision,
)

MANDATORY_RED = "MANDATORY_RED"
OPTIONAL_ORANGE_FIX = "OPTIONAL_ORANGE_FIX"


def local_today(timezone_name: str = "UTC") -> date:
    """Current calendar date in ``timezone_name``."""
    return datetime.now(ZoneInfo(timezone_name)).date()


def add_lead_days(
    start: date,
    days: int,
    exclude_weekends: bool = False,
    weekend_days: Iterable[int] = (5, 6),
) -> date:
    """Return ``start`` plus ``days`` lead days.

    With ``exclude_weekends`` only working days count, so the result never
    lands on a weekend day (``date.weekday()`` numbering).
    """
    if not exclude_weekends or days <= 0:
        return start + timedelta(days=days)

    weekend = set(weekend_days)
    if len(weekend) >= 7:
        raise ValueError("At least one working day is required")

    current = start
    remaining = days
    while remaining > 0:
        current += timedelta(days=1)
        if current.weekday() not in weekend:
            remaining -= 1
    return current


def effective_decision(
    item: FeasibilityItem, asset: AssetSnapshot | None
) -> MaintenanceDecision | None:
    """RED items are fix-only, so a missing decision means FIX_IN_ORDER."""
    if item.maintenance_decision is not None:
        return item.maintenance_decision
    if asset is not None and asset.condition == Condition.RED:
        return MaintenanceDecision.FIX_IN_ORDER
    return None


def check_feasibility(
    items: Sequence[FeasibilityItem],
    event_start_date: date,
    assets: Mapping[UUID, AssetSnapshot],
    today: date,
    config: FeasibilityConfig | None = None,
) -> FeasibilityResult:
    """Check whether every item being refurbished can be ready in time.

    Args:
        items: Lines with the client's maintenance decisions
        event_start_date: First day of the event
        assets: Snapshots keyed by asset id
        today: Date the refurbishment would start
        config: Lead-time rules (default: ``FeasibilityConfig()``)

    Returns:
        FeasibilityResult; issues keep the input order and never include
        items the client uses as-is
    """
    config = config or FeasibilityConfig()
    issues: list[FeasibilityIssue] = []

    for item in items:
        asset = assets.get(item.asset_id)
        if effective_decision(item, asset) != MaintenanceDecision.FIX_IN_ORDER:
            continue
        if asset is not None and asset.condition == Condition.GREEN:
            continue  # nothing to refurbish

        lead_days = config.default_refurb_days
        if asset is not None and asset.refurb_days_estimate is not None:
            lead_days = asset.refurb_days_estimate

        earliest = add_lead_days(today, lead_days, config.exclude_weekends, config.weekend_days)
        if earliest <= event_start_date:
            continue

        name = asset.name if asset is not None else str(item.asset_id)
        condition = asset.condition if asset is not None else None
        issues.append(
            FeasibilityIssue(
                asset_id=item.asset_id,
                asset_name=name,
                refurb_days_estimate=lead_days,
                earliest_feasible_date=earliest,
                condition=condition,
                maintenance_mode=(
                    MANDATORY_RED if condition in (Condition.RED, None) else OPTIONAL_ORANGE_FIX
                ),
                message=(
                    f"{name} needs {lead_days} days of refurbishment; "
                    f"earliest feasible date is {earliest.isoformat()}"
                ),
            )
        )

    return FeasibilityResult(
        feasible=not issues,
        issues=issues,
        checked_on=today,
        exclude_weekends=config.exclude_weekends,
        weekend_days=list(config.weekend_days),
        timezone=config.timezone,
    )


def red_items_only(
    items: Sequence[FeasibilityItem], assets: Mapping[UUID, AssetSnapshot]
) -> list[FeasibilityItem]:
    """Subset of items on RED assets (the speculative check shown while browsing)."""
    return [
        item
        for item in items
        if (asset := assets.get(item.asset_id)) is not None and asset.condition == Condition.RED
    ]


async def check_maintenance_feasibility(
    inventory: InventoryLookup,
    items: Sequence[FeasibilityItem],
    event_start_date: date,
    today: date | None = None,
    config: FeasibilityConfig | None = None,
) -> FeasibilityResult:
    """Load the assets in one lookup and run ``check_feasibility``."""
    config = config or get_config().feasibility
    today = today or local_today(config.timezone)
    assets = await inventory.get_assets([item.asset_id for item in items]) if items else {}
    return check_feasibility(items, event_start_date, assets, today, config)
