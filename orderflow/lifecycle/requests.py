"""Creation of inbound stock requests and service requests."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.config import get_config
from orderflow.lifecycle.machine import new_entity
from orderflow.lifecycle.service import TransitionHook, create_with_code
from orderflow.maintenance.feasibility import local_today
from orderflow.models import Actor, BillingMode, Entity, EntityKind, LineItem

INBOUND_CODE_PREFIX = "IR"
SERVICE_CODE_PREFIX = "SR"


class InboundItem(BaseModel):
    """New stock the client is sending into the warehouse."""

    asset_id: UUID = Field(default_factory=uuid4)
    asset_name: str = Field(min_length=1)
    quantity: int = Field(gt=0)
    volume_per_unit: Decimal = Decimal("0")
    weight_per_unit: Decimal = Decimal("0")


class InboundRequestCreate(BaseModel):
    company_id: str
    items: list[InboundItem] = Field(min_length=1)
    contact_email: str | None = None
    special_instructions: str | None = None


class ServiceRequestCreate(BaseModel):
    company_id: str
    description: str = Field(min_length=1)
    billing_mode: BillingMode = BillingMode.CLIENT_BILLABLE
    contact_email: str | None = None


def _today(today: date | None) -> date:
    return today or local_today(get_config().feasibility.timezone)


async def create_inbound_request(
    session: AsyncSession,
    payload: InboundRequestCreate,
    actor: Actor,
    today: date | None = None,
    hooks: Sequence[TransitionHook] | None = None,
) -> Entity:
    """Create an inbound stock request in SUBMITTED status."""

    def build(code: str) -> Entity:
        return new_entity(
            EntityKind.INBOUND_REQUEST,
            code,
            payload.company_id,
            actor,
            contact_email=payload.contact_email,
            special_instructions=payload.special_instructions,
            line_items=[
                LineItem(
                    asset_id=item.asset_id,
                    asset_name=item.asset_name,
                    quantity=item.quantity,
                    volume_per_unit=item.volume_per_unit,
                    weight_per_unit=item.weight_per_unit,
                )
                for item in payload.items
            ],
        )

    return await create_with_code(session, INBOUND_CODE_PREFIX, _today(today), build, actor, hooks=hooks)


async def create_service_request(
    session: AsyncSession,
    payload: ServiceRequestCreate,
    actor: Actor,
    today: date | None = None,
    hooks: Sequence[TransitionHook] | None = None,
) -> Entity:
    """Create a service request in DRAFT status (INTERNAL ones have no commercial status)."""

    def build(code: str) -> Entity:
        return new_entity(
            EntityKind.SERVICE_REQUEST,
            code,
            payload.company_id,
            actor,
            billing_mode=payload.billing_mode,
            contact_email=payload.contact_email,
            special_instructions=payload.description,
        )

    return await create_with_code(session, SERVICE_CODE_PREFIX, _today(today), build, actor, hooks=hooks)
