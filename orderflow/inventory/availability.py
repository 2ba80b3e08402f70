"""Availability validation for checkout.

Purely advisory: nothing is reserved, so a pass here can still race with
another order.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from uuid import UUID

from orderflow.inventory.lookup import InventoryLookup
from orderflow.inventory.models import AssetSnapshot
from orderflow.models import AvailabilityItem


def find_availability_issues(
    items: Sequence[AvailabilityItem], assets: Mapping[UUID, AssetSnapshot]
) -> list[str]:
    """Return one human-readable message per unavailable asset, in input order.

    Lines for the same asset are summed before comparing with stock.
    """
    requested: dict[UUID, int] = {}
    for item in items:
        requested[item.asset_id] = requested.get(item.asset_id, 0) + item.quantity

    issues: list[str] = []
    for asset_id, quantity in requested.items():
        asset = assets.get(asset_id)
        if asset is None or not asset.is_available:
            name = asset.name if asset is not None else str(asset_id)
            issues.append(f"{name} is no longer available")
        elif quantity > asset.available_quantity:
            issues.append(
                f"{asset.name}: only {asset.available_quantity} available (you have {quantity})"
            )
    return issues


async def validate_availability(
    inventory: InventoryLookup, items: Sequence[AvailabilityItem]
) -> list[str]:
    """Check requested quantities against current stock.

    Returns:
        Issue messages; an empty list means every line is available
    """
    if not items:
        return []
    assets = await inventory.get_assets([item.asset_id for item in items])
    return find_availability_issues(items, assets)
