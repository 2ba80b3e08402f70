"""Unit tests for orderflow.maintenance.feasibility."""

from __future__ import annotations

from datetime import date, timedelta
from uuid import uuid4

import pytest

from orderflow.config import FeasibilityConfig, reset_config
from orderflow.maintenance.feasibility import (
    MANDATORY_RED,
    OPTIONAL_ORANGE_FIX,
    add_lead_days,
    check_feasibility,
    check_maintenance_feasibility,
    red_items_only,
)
from orderflow.models import Condition, FeasibilityItem, MaintenanceDecision


class TestAddLeadDays:
    def test_calendar_days(self):
        assert add_lead_days(date(2026, 10, 14), 5) == date(2026, 10, 19)

    def test_zero_days(self):
        assert add_lead_days(date(2026, 10, 14), 0, exclude_weekends=True) == date(2026, 10, 14)

    def test_skips_weekend(self):
        # Wednesday + 3 working days (Sat/Sun off) -> Monday
        assert add_lead_days(date(2026, 10, 14), 3, exclude_weekends=True) == date(2026, 10, 19)

    def test_custom_weekend(self):
        # Friday/Saturday weekend: Wednesday + 2 working days -> Sunday
        result = add_lead_days(date(2026, 10, 14), 2, exclude_weekends=True, weekend_days=(4, 5))
        assert result == date(2026, 10, 18)

    def test_result_never_on_weekend(self):
        start = date(2026, 10, 12)
        for days in range(1, 15):
            assert add_lead_days(start, days, exclude_weekends=True).weekday() < 5

    def test_all_days_weekend_rejected(self):
        with pytest.raises(ValueError):
            add_lead_days(date(2026, 10, 14), 1, exclude_weekends=True, weekend_days=range(7))


class TestCheckFeasibility:
    def test_mixed_lead_times(self, make_asset, today):
        """Event in 6 days: a 5-day RED item fits, an 8-day ORANGE fix does not."""
        red = make_asset(name="LED Backdrop Panel", condition=Condition.RED, refurb_days_estimate=5)
        orange = make_asset(name="Velvet Lounge Sofa", condition=Condition.ORANGE, refurb_days_estimate=8)
        items = [
            FeasibilityItem(asset_id=red.id),
            FeasibilityItem(asset_id=orange.id, maintenance_decision=MaintenanceDecision.FIX_IN_ORDER),
        ]

        result = check_feasibility(
            items, today + timedelta(days=6), {red.id: red, orange.id: orange}, today
        )

        assert result.feasible is False
        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.asset_id == orange.id
        assert issue.refurb_days_estimate == 8
        assert issue.earliest_feasible_date == today + timedelta(days=8)
        assert issue.maintenance_mode == OPTIONAL_ORANGE_FIX
        assert issue.message == (
            "Velvet Lounge Sofa needs 8 days of refurbishment; "
            f"earliest feasible date is {(today + timedelta(days=8)).isoformat()}"
        )
        assert result.checked_on == today

    def test_ready_exactly_on_event_day(self, make_asset, today):
        red = make_asset(condition=Condition.RED, refurb_days_estimate=6)
        result = check_feasibility(
            [FeasibilityItem(asset_id=red.id)], today + timedelta(days=6), {red.id: red}, today
        )
        assert result.feasible is True

    def test_use_as_is_never_blocks(self, make_asset, today):
        orange = make_asset(condition=Condition.ORANGE, refurb_days_estimate=30)
        items = [FeasibilityItem(asset_id=orange.id, maintenance_decision=MaintenanceDecision.USE_AS_IS)]

        result = check_feasibility(items, today + timedelta(days=1), {orange.id: orange}, today)

        assert result.feasible is True
        assert result.issues == []

    def test_red_defaults_to_fix(self, make_asset, today):
        red = make_asset(condition=Condition.RED, refurb_days_estimate=10)
        result = check_feasibility(
            [FeasibilityItem(asset_id=red.id)], today + timedelta(days=3), {red.id: red}, today
        )

        assert result.feasible is False
        assert result.issues[0].maintenance_mode == MANDATORY_RED

    def test_green_items_skipped(self, make_asset, today):
        green = make_asset(condition=Condition.GREEN, refurb_days_estimate=10)
        items = [FeasibilityItem(asset_id=green.id, maintenance_decision=MaintenanceDecision.FIX_IN_ORDER)]

        assert check_feasibility(items, today, {green.id: green}, today).feasible is True

    def test_missing_estimate_uses_default(self, make_asset, today):
        red = make_asset(condition=Condition.RED, refurb_days_estimate=None)
        config = FeasibilityConfig(default_refurb_days=4)

        result = check_feasibility(
            [FeasibilityItem(asset_id=red.id)], today + timedelta(days=3), {red.id: red}, today, config
        )

        assert result.issues[0].refurb_days_estimate == 4

    def test_unknown_asset_with_fix_is_mandatory(self, today):
        missing = uuid4()
        items = [FeasibilityItem(asset_id=missing, maintenance_decision=MaintenanceDecision.FIX_IN_ORDER)]

        result = check_feasibility(items, today, {}, today)

        assert result.issues[0].asset_name == str(missing)
        assert result.issues[0].maintenance_mode == MANDATORY_RED

    def test_weekends_push_earliest_date(self, make_asset, today):
        """Wednesday + 3 working days lands on Monday, after a Saturday event."""
        red = make_asset(condition=Condition.RED, refurb_days_estimate=3)
        config = FeasibilityConfig(exclude_weekends=True)
        items = [FeasibilityItem(asset_id=red.id)]

        plain = check_feasibility(items, date(2026, 10, 17), {red.id: red}, today)
        with_weekends = check_feasibility(items, date(2026, 10, 17), {red.id: red}, today, config)

        assert plain.feasible is True
        assert with_weekends.feasible is False
        assert with_weekends.issues[0].earliest_feasible_date == date(2026, 10, 19)
        assert with_weekends.exclude_weekends is True
        assert with_weekends.weekend_days == [5, 6]

    def test_idempotent(self, make_asset, today):
        red = make_asset(condition=Condition.RED, refurb_days_estimate=9)
        items = [FeasibilityItem(asset_id=red.id)]
        assets = {red.id: red}

        first = check_feasibility(items, today + timedelta(days=2), assets, today)
        second = check_feasibility(items, today + timedelta(days=2), assets, today)

        assert first == second


class TestRedItemsOnly:
    def test_filters_red(self, make_asset):
        red = make_asset(condition=Condition.RED)
        orange = make_asset(condition=Condition.ORANGE)
        items = [FeasibilityItem(asset_id=red.id), FeasibilityItem(asset_id=orange.id)]

        assert red_items_only(items, {red.id: red, orange.id: orange}) == [items[0]]


class TestCheckMaintenanceFeasibility:
    @pytest.mark.asyncio
    async def test_uses_configured_rules(self, monkeypatch, make_asset, fake_inventory, today):
        monkeypatch.setenv("DEFAULT_REFURB_DAYS", "12")
        reset_config()
        red = make_asset(condition=Condition.RED, refurb_days_estimate=None)
        inventory = fake_inventory(red)

        result = await check_maintenance_feasibility(
            inventory, [FeasibilityItem(asset_id=red.id)], today + timedelta(days=10), today=today
        )

        assert result.feasible is False
        assert result.issues[0].refurb_days_estimate == 12
        assert inventory.calls == [[red.id]]
