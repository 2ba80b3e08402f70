"""Read-only views of inventory used by checkout checks."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from orderflow.models import AssetStatus, Condition


@dataclass(slots=True)
class AssetSnapshot:
    id: UUID
    name: str
    status: AssetStatus
    available_quantity: int
    condition: Condition | None = None
    refurb_days_estimate: int | None = None  # None when no estimate is recorded
    volume_per_unit: Decimal = Decimal("0")
    weight_per_unit: Decimal = Decimal("0")

    @property
    def is_available(self) -> bool:
        return self.status == AssetStatus.AVAILABLE
