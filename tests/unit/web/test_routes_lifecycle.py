"""Tests for orderflow.web.routes.lifecycle - entity lookup, transitions and requests."""

from decimal import Decimal
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from orderflow.db.connection import get_db
from orderflow.errors import ConcurrentModification, EntityNotFound, InvalidTransition, ValidationError
from orderflow.lifecycle.machine import apply_transition, new_entity
from orderflow.models import Action, Actor, ActorRole, EntityKind, QuoteDecision, QuoteState
from orderflow.web.app import register_exception_handlers
from orderflow.web.routes import lifecycle

ACTOR_HEADERS = {"X-Actor-Id": "logistics-1", "X-Actor-Role": "LOGISTICS"}
CLIENT_HEADERS = {"X-Actor-Id": "client-1", "X-Actor-Role": "CLIENT"}


@pytest.fixture
def mock_session():
    return AsyncMock()


@pytest.fixture
def app(mock_session):
    """Create test FastAPI app with lifecycle router."""
    test_app = FastAPI()
    test_app.include_router(lifecycle.router)
    register_exception_handlers(test_app)

    async def override_get_db():
        yield mock_session

    test_app.dependency_overrides[get_db] = override_get_db
    return test_app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def order():
    return new_entity(
        EntityKind.ORDER, "ORD-20261014-001", "acme-events", Actor(id="client-1", role=ActorRole.CLIENT)
    )


@pytest.fixture
def quoted_order(order):
    staff = Actor(id="logistics-1", role=ActorRole.LOGISTICS)
    reviewed = apply_transition(order, Action.START_REVIEW, staff)
    return apply_transition(
        reviewed, Action.SUBMIT_QUOTE, staff, quote=QuoteState(total=Decimal("1250.00"), currency="AED")
    )


class TestGetEntity:
    @patch("orderflow.web.routes.lifecycle.EntityRepository")
    def test_found(self, mock_repo_cls, client, order):
        mock_repo_cls.return_value.get = AsyncMock(return_value=order)

        response = client.get(f"/entities/{order.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["code"] == "ORD-20261014-001"
        assert data["status"] == "SUBMITTED"
        assert data["commercial_status"] == "PENDING_QUOTE"

    @patch("orderflow.web.routes.lifecycle.EntityRepository")
    def test_not_found(self, mock_repo_cls, client):
        entity_id = uuid4()
        mock_repo_cls.return_value.get = AsyncMock(side_effect=EntityNotFound(entity_id))

        response = client.get(f"/entities/{entity_id}")

        assert response.status_code == 404
        assert response.json()["error"] == "EntityNotFound"

    def test_invalid_uuid(self, client):
        assert client.get("/entities/not-a-uuid").status_code == 422

    @patch("orderflow.web.routes.lifecycle.EntityRepository")
    def test_history_in_write_order(self, mock_repo_cls, client, order):
        order = apply_transition(order, Action.START_REVIEW, Actor(id="logistics-1", role=ActorRole.LOGISTICS))
        mock_repo_cls.return_value.get = AsyncMock(return_value=order)

        response = client.get(f"/entities/{order.id}/history")

        assert response.status_code == 200
        assert [entry["sequence"] for entry in response.json()] == [1, 2, 3]
        assert response.json()[-1]["to_status"] == "PRICING_REVIEW"

    @patch("orderflow.web.routes.lifecycle.EntityRepository")
    def test_list_by_status(self, mock_repo_cls, client, order):
        mock_repo_cls.return_value.list_by_status = AsyncMock(return_value=[order])

        response = client.get("/entities", params={"kind": "ORDER", "status": "SUBMITTED"})

        assert response.status_code == 200
        assert len(response.json()) == 1
        mock_repo_cls.return_value.list_by_status.assert_awaited_once_with(EntityKind.ORDER, "SUBMITTED")


class TestTransition:
    @patch("orderflow.web.routes.lifecycle.transition", new_callable=AsyncMock)
    def test_applies_action(self, mock_transition, client, mock_session, order):
        reviewed = apply_transition(order, Action.START_REVIEW, Actor(id="logistics-1", role=ActorRole.LOGISTICS))
        mock_transition.return_value = reviewed

        response = client.post(
            f"/entities/{order.id}/transition",
            json={"action": "START_REVIEW", "note": "Picking this up"},
            headers=ACTOR_HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "PRICING_REVIEW"
        args = mock_transition.await_args
        assert args.args[0] is mock_session
        assert args.args[2] == Action.START_REVIEW
        assert args.args[3] == Actor(id="logistics-1", role=ActorRole.LOGISTICS)
        assert args.kwargs["note"] == "Picking this up"

    @patch("orderflow.web.routes.lifecycle.transition", new_callable=AsyncMock)
    def test_disallowed_change_is_conflict(self, mock_transition, client):
        mock_transition.side_effect = InvalidTransition(
            "Cannot move ORDER from CLOSED to CANCELLED", current="CLOSED", target="CANCELLED"
        )

        response = client.post(
            f"/entities/{uuid4()}/transition", json={"action": "CANCEL"}, headers=ACTOR_HEADERS
        )

        assert response.status_code == 409
        data = response.json()
        assert data["error"] == "InvalidTransition"
        assert data["current"] == "CLOSED"
        assert data["target"] == "CANCELLED"

    @patch("orderflow.web.routes.lifecycle.transition", new_callable=AsyncMock)
    def test_stale_write_is_conflict(self, mock_transition, client):
        entity_id = uuid4()
        mock_transition.side_effect = ConcurrentModification(entity_id, 3)

        response = client.post(
            f"/entities/{entity_id}/transition", json={"action": "CONFIRM"}, headers=ACTOR_HEADERS
        )

        assert response.status_code == 409
        assert response.json()["error"] == "ConcurrentModification"

    @patch("orderflow.lifecycle.service.EntityRepository")
    def test_decline_without_reason_rejected(self, mock_repo_cls, client, mock_session, quoted_order):
        repo = mock_repo_cls.return_value
        repo.get = AsyncMock(return_value=quoted_order)
        repo.save_transition = AsyncMock()

        response = client.post(
            f"/entities/{quoted_order.id}/transition", json={"action": "DECLINE"}, headers=CLIENT_HEADERS
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "Decline reason must be at least 10 characters"
        repo.save_transition.assert_not_awaited()
        mock_session.commit.assert_not_awaited()

    @patch("orderflow.lifecycle.service.EntityRepository")
    def test_submit_quote_without_quote_rejected(self, mock_repo_cls, client, order):
        reviewed = apply_transition(order, Action.START_REVIEW, Actor(id="logistics-1", role=ActorRole.LOGISTICS))
        repo = mock_repo_cls.return_value
        repo.get = AsyncMock(return_value=reviewed)
        repo.save_transition = AsyncMock()

        response = client.post(
            f"/entities/{order.id}/transition", json={"action": "SUBMIT_QUOTE"}, headers=ACTOR_HEADERS
        )

        assert response.status_code == 422
        repo.save_transition.assert_not_awaited()

    def test_unknown_action_rejected(self, client):
        response = client.post(
            f"/entities/{uuid4()}/transition", json={"action": "TELEPORT"}, headers=ACTOR_HEADERS
        )
        assert response.status_code == 422

    def test_actor_header_required(self, client):
        response = client.post(f"/entities/{uuid4()}/transition", json={"action": "CANCEL"})
        assert response.status_code == 422


class TestQuoteDecision:
    @patch("orderflow.web.routes.lifecycle.submit_quote_decision", new_callable=AsyncMock)
    def test_short_decline_reason(self, mock_decision, client):
        mock_decision.side_effect = ValidationError("Decline reason must be at least 10 characters")

        response = client.post(
            f"/entities/{uuid4()}/quote/decision",
            json={"decision": "DECLINE", "note": "Too high."},
            headers={"X-Actor-Id": "client-1"},
        )

        assert response.status_code == 422
        assert "at least 10 characters" in response.json()["detail"]
        assert mock_decision.await_args.args[2] == QuoteDecision.DECLINE
        assert mock_decision.await_args.args[3].role == ActorRole.CLIENT


class TestCreateRequests:
    @patch("orderflow.web.routes.lifecycle.create_inbound_request", new_callable=AsyncMock)
    def test_inbound_request(self, mock_create, client):
        created = new_entity(
            EntityKind.INBOUND_REQUEST, "IR-20261014-001", "acme-events", Actor(id="client-1")
        )
        mock_create.return_value = created

        response = client.post(
            "/inbound-requests",
            json={
                "company_id": "acme-events",
                "items": [{"asset_name": "Rattan Armchair", "quantity": 6, "volume_per_unit": "0.8"}],
            },
            headers={"X-Actor-Id": "client-1"},
        )

        assert response.status_code == 201
        assert response.json()["code"] == "IR-20261014-001"
        payload = mock_create.await_args.args[1]
        assert payload.items[0].asset_name == "Rattan Armchair"

    def test_inbound_request_needs_items(self, client):
        response = client.post(
            "/inbound-requests",
            json={"company_id": "acme-events", "items": []},
            headers={"X-Actor-Id": "client-1"},
        )
        assert response.status_code == 422

    @patch("orderflow.web.routes.lifecycle.create_service_request", new_callable=AsyncMock)
    def test_service_request(self, mock_create, client):
        mock_create.return_value = new_entity(
            EntityKind.SERVICE_REQUEST, "SR-20261014-001", "acme-events", Actor(id="client-1")
        )

        response = client.post(
            "/service-requests",
            json={"company_id": "acme-events", "description": "Reupholster the lounge sofas"},
            headers={"X-Actor-Id": "client-1"},
        )

        assert response.status_code == 201
        assert response.json()["status"] == "DRAFT"
