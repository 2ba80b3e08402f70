"""Entity lifecycle routes: lookup, history, transitions and request creation."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.db.connection import get_db
from orderflow.db.repository import EntityRepository
from orderflow.lifecycle.requests import (
    InboundRequestCreate,
    ServiceRequestCreate,
    create_inbound_request,
    create_service_request,
)
from orderflow.lifecycle.service import transition
from orderflow.models import Actor, Entity, EntityKind, StatusHistoryEntry
from orderflow.quotes.workflow import submit_quote_decision
from orderflow.web.dependencies import get_actor
from orderflow.web.models import QuoteDecisionRequest, TransitionRequest

router = APIRouter(tags=["Lifecycle"])


@router.get("/entities", response_model=list[Entity])
async def list_entities(
    kind: EntityKind = Query(...),
    status: str = Query(...),
    session: AsyncSession = Depends(get_db),
):
    """List entities of a kind currently in an operational status."""
    return await EntityRepository(session).list_by_status(kind, status)


@router.get("/entities/{entity_id}", response_model=Entity)
async def get_entity(entity_id: UUID, session: AsyncSession = Depends(get_db)):
    return await EntityRepository(session).get(entity_id)


@router.get("/entities/{entity_id}/history", response_model=list[StatusHistoryEntry])
async def get_history(entity_id: UUID, session: AsyncSession = Depends(get_db)):
    """Status history in write order, both dimensions interleaved."""
    entity = await EntityRepository(session).get(entity_id)
    return entity.status_history


@router.post("/entities/{entity_id}/transition", response_model=Entity)
async def transition_entity(
    entity_id: UUID,
    body: TransitionRequest,
    session: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Apply a named action.

    409 when the status change is not allowed or another writer got there
    first; the caller re-fetches and decides again.
    """
    return await transition(session, entity_id, body.action, actor, note=body.note)


@router.post("/entities/{entity_id}/quote/decision", response_model=Entity)
async def quote_decision(
    entity_id: UUID,
    body: QuoteDecisionRequest,
    session: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Approve, decline or (service requests) ask for a revised quote."""
    return await submit_quote_decision(session, entity_id, body.decision, actor, note=body.note)


@router.post("/inbound-requests", response_model=Entity, status_code=201)
async def create_inbound(
    body: InboundRequestCreate,
    session: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return await create_inbound_request(session, body, actor)


@router.post("/service-requests", response_model=Entity, status_code=201)
async def create_service(
    body: ServiceRequestCreate,
    session: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return await create_service_request(session, body, actor)
