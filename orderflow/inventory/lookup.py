"""Inventory lookups.

Checkout checks depend on the ``InventoryLookup`` protocol so they can run
against the database or an in-memory fixture.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.db.models import AssetModel
from orderflow.inventory.models import AssetSnapshot
from orderflow.models import AssetStatus, Condition


class InventoryLookup(Protocol):
    async def get_assets(self, asset_ids: Sequence[UUID]) -> dict[UUID, AssetSnapshot]:
        """Return snapshots for the known ids; unknown ids are simply absent."""
        ...


class SqlInventory:
    """InventoryLookup backed by the ``assets`` table (one query per call)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_assets(self, asset_ids: Sequence[UUID]) -> dict[UUID, AssetSnapshot]:
        ids = list(dict.fromkeys(asset_ids))
        if not ids:
            return {}

        result = await self.session.execute(select(AssetModel).where(AssetModel.id.in_(ids)))
        return {row.id: _to_snapshot(row) for row in result.scalars()}


def _to_snapshot(row: AssetModel) -> AssetSnapshot:
    return AssetSnapshot(
        id=row.id,
        name=row.name,
        status=AssetStatus(row.status),
        available_quantity=row.available_quantity,
        condition=Condition(row.condition) if row.condition else None,
        refurb_days_estimate=row.refurb_days_estimate,
        volume_per_unit=Decimal(row.volume_per_unit or 0),
        weight_per_unit=Decimal(row.weight_per_unit or 0),
    )
