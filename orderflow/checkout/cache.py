"""Caller-owned memo for speculative feasibility checks.

The checker itself is stateless. A checkout session may keep one of these to
avoid re-checking on every step; changing the event date drops everything.
Final submission never reads from it.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from orderflow.models import FeasibilityItem, FeasibilityResult

CacheKey = tuple[date, tuple[tuple[str, str], ...]]


class FeasibilityCache:
    def __init__(self) -> None:
        self._event_start_date: date | None = None
        self._results: dict[CacheKey, FeasibilityResult] = {}

    def __len__(self) -> int:
        return len(self._results)

    @staticmethod
    def _key(items: Sequence[FeasibilityItem], today: date) -> CacheKey:
        return (
            today,
            tuple(
                sorted(
                    (
                        str(item.asset_id),
                        item.maintenance_decision.value if item.maintenance_decision else "",
                    )
                    for item in items
                )
            ),
        )

    def get(
        self, event_start_date: date, items: Sequence[FeasibilityItem], today: date
    ) -> FeasibilityResult | None:
        if event_start_date != self._event_start_date:
            self.invalidate()
            self._event_start_date = event_start_date
            return None
        return self._results.get(self._key(items, today))

    def put(
        self,
        event_start_date: date,
        items: Sequence[FeasibilityItem],
        today: date,
        result: FeasibilityResult,
    ) -> None:
        if event_start_date != self._event_start_date:
            self.invalidate()
            self._event_start_date = event_start_date
        self._results[self._key(items, today)] = result

    def invalidate(self) -> None:
        self._results.clear()
        self._event_start_date = None
