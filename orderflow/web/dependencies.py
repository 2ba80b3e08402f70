"""Shared dependencies for OrderFlow web routes.

Identity is established upstream; the gateway forwards the caller as
``X-Actor-Id`` / ``X-Actor-Role`` headers.

Usage:
    from fastapi import Depends
    from orderflow.web.dependencies import get_actor

    @router.post("/entities/{entity_id}/transition")
    async def transition_entity(entity_id: UUID, actor: Actor = Depends(get_actor)):
        ...
"""

from __future__ import annotations

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.db.connection import get_db
from orderflow.inventory.lookup import InventoryLookup, SqlInventory
from orderflow.models import Actor, ActorRole


def get_actor(
    x_actor_id: str = Header(..., min_length=1),
    x_actor_role: ActorRole = Header(ActorRole.CLIENT),
) -> Actor:
    """Build the acting user from gateway headers (422 when the id is missing)."""
    return Actor(id=x_actor_id, role=x_actor_role)


def get_inventory(session: AsyncSession = Depends(get_db)) -> InventoryLookup:
    return SqlInventory(session)
