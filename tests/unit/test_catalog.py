"""Unit tests for orderflow.lifecycle.catalog - status tables and compatibility."""

from __future__ import annotations

import pytest

from orderflow.errors import UnknownStatus
from orderflow.lifecycle.actions import ACTION_TABLES, available_actions, effects_for
from orderflow.lifecycle.catalog import (
    CommercialStatus,
    InboundRequestStatus,
    OrderStatus,
    ServiceRequestStatus,
    get_catalog,
    is_compatible,
)
from orderflow.models import Action, Dimension, EntityKind


class TestStatusCatalog:
    """Catalog lookups for every kind and dimension."""

    @pytest.mark.parametrize(
        "kind,enum",
        [
            (EntityKind.ORDER, OrderStatus),
            (EntityKind.INBOUND_REQUEST, InboundRequestStatus),
            (EntityKind.SERVICE_REQUEST, ServiceRequestStatus),
        ],
    )
    def test_every_status_has_metadata(self, kind, enum):
        catalog = get_catalog(kind)
        assert set(catalog) == {status.value for status in enum}
        for status in enum:
            info = catalog.get(status.value)
            assert info.label
            assert info.color
            assert info.icon

    @pytest.mark.parametrize("kind", list(EntityKind))
    def test_successors_are_known_statuses(self, kind):
        for dimension in Dimension:
            catalog = get_catalog(kind, dimension)
            for status, info in catalog.items():
                assert info.allowed_next <= set(catalog), f"{kind}/{status} points outside the catalog"

    @pytest.mark.parametrize("kind", list(EntityKind))
    def test_terminal_means_no_successors(self, kind):
        for dimension in Dimension:
            for status, info in get_catalog(kind, dimension).items():
                assert info.is_terminal == (not info.allowed_next), status

    def test_initial_statuses(self):
        assert get_catalog(EntityKind.ORDER).initial == "SUBMITTED"
        assert get_catalog(EntityKind.INBOUND_REQUEST).initial == "SUBMITTED"
        assert get_catalog(EntityKind.SERVICE_REQUEST).initial == "DRAFT"
        assert get_catalog(EntityKind.ORDER, Dimension.COMMERCIAL).initial == "PENDING_QUOTE"

    def test_order_terminal_statuses(self):
        catalog = get_catalog(EntityKind.ORDER)
        terminal = {status for status, info in catalog.items() if info.is_terminal}
        assert terminal == {"DECLINED", "CLOSED", "CANCELLED"}

    def test_labels_match_portal_copy(self):
        catalog = get_catalog(EntityKind.ORDER)
        assert catalog.label("PRICING_REVIEW") == "Under Review"
        assert catalog.label("QUOTED") == "Quote Ready"
        assert catalog.label("CLOSED") == "Completed"

    def test_lookup_accepts_enum_members(self):
        catalog = get_catalog(EntityKind.ORDER)
        assert OrderStatus.QUOTED in catalog
        assert catalog.can_transition(OrderStatus.QUOTED, OrderStatus.APPROVED)

    def test_unknown_status_raises(self):
        catalog = get_catalog(EntityKind.ORDER)

        with pytest.raises(UnknownStatus) as exc_info:
            catalog.get("TELEPORTED")

        assert exc_info.value.status == "TELEPORTED"
        assert exc_info.value.kind == "ORDER"

    def test_order_cannot_skip_pricing_review(self):
        catalog = get_catalog(EntityKind.ORDER)
        assert not catalog.can_transition("SUBMITTED", "QUOTED")
        assert catalog.can_transition("SUBMITTED", "PRICING_REVIEW")

    def test_in_flight_orders_cannot_be_cancelled(self):
        catalog = get_catalog(EntityKind.ORDER)
        for status in ("IN_PREPARATION", "IN_TRANSIT", "DELIVERED", "IN_USE"):
            assert "CANCELLED" not in catalog.allowed_next(status)


class TestCompatibility:
    """Operational/commercial pairing rules."""

    def test_quoted_pairs_with_quoted_only(self):
        assert is_compatible(EntityKind.ORDER, "QUOTED", "QUOTED")
        assert not is_compatible(EntityKind.ORDER, "QUOTED", "PENDING_QUOTE")

    def test_confirmed_requires_accepted_quote(self):
        for commercial in ("QUOTE_APPROVED", "INVOICED", "PAID"):
            assert is_compatible(EntityKind.ORDER, "CONFIRMED", commercial)
        assert not is_compatible(EntityKind.ORDER, "CONFIRMED", "QUOTED")

    def test_non_billable_is_always_compatible(self):
        assert is_compatible(EntityKind.SERVICE_REQUEST, "IN_PROGRESS", None)

    def test_service_request_quoted_under_review(self):
        assert is_compatible(EntityKind.SERVICE_REQUEST, "IN_REVIEW", CommercialStatus.QUOTED.value)

    @pytest.mark.parametrize("kind", list(EntityKind))
    def test_every_operational_status_has_a_rule(self, kind):
        for status in get_catalog(kind):
            compatible = [c for c in CommercialStatus if is_compatible(kind, status, c.value)]
            assert compatible, f"{kind}/{status} accepts no commercial status"


class TestActionTables:
    """Named actions map onto catalog targets."""

    @pytest.mark.parametrize("kind", list(EntityKind))
    def test_action_targets_exist_in_catalog(self, kind):
        for action, effects in ACTION_TABLES[kind].items():
            for effect in effects:
                assert effect.target in get_catalog(kind, effect.dimension), (kind, action)

    def test_unknown_action_resolves_to_none(self):
        assert effects_for(EntityKind.ORDER, "TELEPORT") is None
        assert effects_for(EntityKind.INBOUND_REQUEST, Action.START_WORK) is None

    def test_available_actions(self):
        assert Action.REQUEST_REVISION in available_actions(EntityKind.SERVICE_REQUEST)
        assert Action.REQUEST_REVISION not in available_actions(EntityKind.ORDER)
