"""Entity persistence with optimistic concurrency."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.db.models import EntityModel, LineItemModel, StatusHistoryModel
from orderflow.errors import ConcurrentModification, EntityNotFound
from orderflow.models import (
    ActorRole,
    BillingMode,
    Dimension,
    Entity,
    EntityKind,
    LineItem,
    QuoteState,
    StatusHistoryEntry,
    TripType,
    utcnow,
)


class EntityRepository:
    """Loads and stores entities with their line items and history.

    Writes never commit; the caller owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, entity_id: UUID) -> Entity:
        model = await self.session.get(EntityModel, entity_id, populate_existing=True)
        if model is None:
            raise EntityNotFound(entity_id)
        entities = await self._hydrate([model])
        return entities[0]

    async def add(self, entity: Entity) -> Entity:
        """Insert a new entity with its line items and creation history."""
        self.session.add(
            EntityModel(
                id=entity.id,
                kind=entity.kind.value,
                code=entity.code,
                company_id=entity.company_id,
                billing_mode=entity.billing_mode.value,
                status=entity.status,
                commercial_status=entity.commercial_status,
                version=entity.version,
                event_start_date=entity.event_start_date,
                event_end_date=entity.event_end_date,
                venue_name=entity.venue_name,
                venue_country=entity.venue_country,
                venue_city=entity.venue_city,
                trip_type=entity.trip_type.value if entity.trip_type else None,
                contact_email=entity.contact_email,
                special_instructions=entity.special_instructions,
                quote=_dump_quote(entity.quote),
                created_at=entity.created_at,
            )
        )
        # Parent row first so line items and history satisfy their foreign keys
        await self.session.flush()
        for position, item in enumerate(entity.line_items):
            self.session.add(
                LineItemModel(
                    id=item.id,
                    entity_id=entity.id,
                    position=position,
                    asset_id=item.asset_id,
                    asset_name=item.asset_name,
                    quantity=item.quantity,
                    volume_per_unit=item.volume_per_unit,
                    weight_per_unit=item.weight_per_unit,
                    condition=item.condition.value if item.condition else None,
                    maintenance_decision=(
                        item.maintenance_decision.value if item.maintenance_decision else None
                    ),
                    rebrand_target_brand_id=item.rebrand_target_brand_id,
                    rebrand_target_brand_custom=item.rebrand_target_brand_custom,
                    rebrand_instructions=item.rebrand_instructions,
                )
            )
        self._add_history(entity.id, entity.status_history)
        await self.session.flush()
        return entity

    async def save_transition(self, before: Entity, after: Entity) -> Entity:
        """Write the status change from ``before`` to ``after``.

        Compare-and-swap on ``version``: if another writer committed since
        ``before`` was read, nothing is written.

        Raises:
            ConcurrentModification: The stored version no longer matches
        """
        expected = before.version
        stmt = (
            update(EntityModel)
            .where(EntityModel.id == before.id, EntityModel.version == expected)
            .values(
                status=after.status,
                commercial_status=after.commercial_status,
                quote=_dump_quote(after.quote),
                version=expected + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            raise ConcurrentModification(before.id, expected)

        self._add_history(before.id, after.status_history[len(before.status_history):])
        await self.session.flush()
        return after.model_copy(update={"version": expected + 1})

    async def next_code(self, prefix: str, day: date) -> str:
        """Next human-readable code for the day, e.g. ``ORD-20261017-003``."""
        stem = f"{prefix}-{day.strftime('%Y%m%d')}-"
        result = await self.session.execute(
            select(EntityModel.code).where(EntityModel.code.like(f"{stem}%"))
        )
        sequences = [
            int(code.rsplit("-", 1)[1]) for code in result.scalars() if code.rsplit("-", 1)[1].isdigit()
        ]
        return f"{stem}{max(sequences, default=0) + 1:03d}"

    async def code_taken(self, code: str) -> bool:
        result = await self.session.execute(select(EntityModel.id).where(EntityModel.code == code))
        return result.first() is not None

    async def list_by_status(
        self,
        kind: EntityKind,
        status: str,
        event_start_date: date | None = None,
        event_end_date: date | None = None,
    ) -> list[Entity]:
        """Entities of ``kind`` in ``status``, optionally matching event dates."""
        stmt = select(EntityModel).where(EntityModel.kind == kind.value, EntityModel.status == status)
        if event_start_date is not None:
            stmt = stmt.where(EntityModel.event_start_date == event_start_date)
        if event_end_date is not None:
            stmt = stmt.where(EntityModel.event_end_date == event_end_date)
        result = await self.session.execute(
            stmt.order_by(EntityModel.created_at).execution_options(populate_existing=True)
        )
        return await self._hydrate(result.scalars().all())

    def _add_history(self, entity_id: UUID, entries: Sequence[StatusHistoryEntry]) -> None:
        for entry in entries:
            self.session.add(
                StatusHistoryModel(
                    entity_id=entity_id,
                    sequence=entry.sequence,
                    dimension=entry.dimension.value,
                    from_status=entry.from_status,
                    to_status=entry.to_status,
                    actor_id=entry.actor_id,
                    actor_role=entry.actor_role.value,
                    note=entry.note,
                    timestamp=entry.timestamp,
                )
            )

    async def _hydrate(self, models: Sequence[EntityModel]) -> list[Entity]:
        if not models:
            return []
        ids = [model.id for model in models]

        items_result = await self.session.execute(
            select(LineItemModel)
            .where(LineItemModel.entity_id.in_(ids))
            .order_by(LineItemModel.position)
        )
        items_by_entity: dict[UUID, list[LineItem]] = defaultdict(list)
        for row in items_result.scalars():
            items_by_entity[row.entity_id].append(_to_line_item(row))

        history_result = await self.session.execute(
            select(StatusHistoryModel)
            .where(StatusHistoryModel.entity_id.in_(ids))
            .order_by(StatusHistoryModel.sequence)
        )
        history_by_entity: dict[UUID, list[StatusHistoryEntry]] = defaultdict(list)
        for row in history_result.scalars():
            history_by_entity[row.entity_id].append(
                StatusHistoryEntry(
                    sequence=row.sequence,
                    dimension=Dimension(row.dimension),
                    from_status=row.from_status,
                    to_status=row.to_status,
                    actor_id=row.actor_id,
                    actor_role=ActorRole(row.actor_role),
                    timestamp=row.timestamp,
                    note=row.note,
                )
            )

        return [
            Entity(
                id=model.id,
                kind=EntityKind(model.kind),
                code=model.code,
                company_id=model.company_id,
                billing_mode=BillingMode(model.billing_mode),
                status=model.status,
                commercial_status=model.commercial_status,
                version=model.version,
                created_at=model.created_at,
                event_start_date=model.event_start_date,
                event_end_date=model.event_end_date,
                venue_name=model.venue_name,
                venue_country=model.venue_country,
                venue_city=model.venue_city,
                trip_type=TripType(model.trip_type) if model.trip_type else None,
                contact_email=model.contact_email,
                special_instructions=model.special_instructions,
                quote=QuoteState.model_validate(model.quote) if model.quote else None,
                line_items=items_by_entity[model.id],
                status_history=history_by_entity[model.id],
            )
            for model in models
        ]


def _to_line_item(row: LineItemModel) -> LineItem:
    return LineItem(
        id=row.id,
        asset_id=row.asset_id,
        asset_name=row.asset_name,
        quantity=row.quantity,
        volume_per_unit=row.volume_per_unit,
        weight_per_unit=row.weight_per_unit,
        condition=row.condition,
        maintenance_decision=row.maintenance_decision,
        rebrand_target_brand_id=row.rebrand_target_brand_id,
        rebrand_target_brand_custom=row.rebrand_target_brand_custom,
        rebrand_instructions=row.rebrand_instructions,
    )


def _dump_quote(quote: QuoteState | None) -> dict | None:
    if quote is None:
        return None
    return quote.model_dump(mode="json")
