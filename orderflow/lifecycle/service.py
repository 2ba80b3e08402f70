"""Persisting lifecycle transitions.

Load, apply the pure state machine, write status and history in one
transaction (compare-and-swap on ``version``), then run post-transition hooks.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from datetime import date, datetime
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.config import get_config
from orderflow.db.repository import EntityRepository
from orderflow.errors import CodeConflict
from orderflow.lifecycle.machine import apply_transition
from orderflow.models import Action, Actor, Entity, QuoteState

logger = structlog.get_logger(__name__)

CODE_ATTEMPTS = 3

# hook(session, before, after, action, actor); runs after commit, before is None on creation
TransitionHook = Callable[[AsyncSession, Entity | None, Entity, Action, Actor], Awaitable[None]]


def default_hooks() -> list[TransitionHook]:
    from orderflow.notifications.hooks import notify_transition

    return [notify_transition]


async def transition(
    session: AsyncSession,
    entity_id: UUID,
    action: Action | str,
    actor: Actor,
    note: str | None = None,
    quote: QuoteState | None = None,
    hooks: Sequence[TransitionHook] | None = None,
    now: datetime | None = None,
) -> Entity:
    """Apply ``action`` to a stored entity and persist the result.

    Args:
        session: Database session; this function commits it
        entity_id: Entity to transition
        action: Action name
        actor: Who performs the action
        note: Optional note for the history entries
        quote: Price to attach with the status change
        hooks: Post-commit hooks (default: notification dispatch)
        now: Timestamp for history entries

    Returns:
        The updated entity (version bumped)

    Raises:
        EntityNotFound, UnknownStatus, InvalidAction, InvalidTransition,
        ValidationError: Nothing is written
        ConcurrentModification: Another writer won; re-read and retry
    """
    repo = EntityRepository(session)
    before = await repo.get(entity_id)
    after = apply_transition(
        before,
        action,
        actor,
        note=note,
        now=now,
        quote=quote,
        min_reason_length=get_config().quotes.decline_reason_min_length,
    )
    action = Action(action)

    try:
        after = await repo.save_transition(before, after)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        "entity_transitioned",
        entity_id=str(after.id),
        code=after.code,
        kind=after.kind.value,
        action=action.value,
        from_status=before.status,
        to_status=after.status,
        from_commercial=before.commercial_status,
        to_commercial=after.commercial_status,
        actor_id=actor.id,
        actor_role=actor.role.value,
        version=after.version,
    )

    await run_hooks(session, default_hooks() if hooks is None else hooks, before, after, action, actor)
    return after


async def run_hooks(
    session: AsyncSession,
    hooks: Sequence[TransitionHook],
    before: Entity | None,
    after: Entity,
    action: Action,
    actor: Actor,
) -> None:
    """Run post-transition hooks; failures are logged and never undo the transition."""
    for hook in hooks:
        try:
            await hook(session, before, after, action, actor)
            await session.commit()
        except Exception:
            await session.rollback()
            logger.exception(
                "post_transition_hook_failed",
                hook=getattr(hook, "__name__", repr(hook)),
                entity_id=str(after.id),
                code=after.code,
                to_status=after.status,
            )


async def create_entity(
    session: AsyncSession,
    entity: Entity,
    actor: Actor,
    hooks: Sequence[TransitionHook] | None = None,
) -> Entity:
    """Insert a freshly built entity (see ``new_entity``) and run creation hooks."""
    repo = EntityRepository(session)
    try:
        await repo.add(entity)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        "entity_created",
        entity_id=str(entity.id),
        code=entity.code,
        kind=entity.kind.value,
        status=entity.status,
        commercial_status=entity.commercial_status,
        actor_id=actor.id,
    )

    await run_hooks(session, default_hooks() if hooks is None else hooks, None, entity, Action.SUBMIT, actor)
    return entity


async def create_with_code(
    session: AsyncSession,
    prefix: str,
    day: date,
    build: Callable[[str], Entity],
    actor: Actor,
    hooks: Sequence[TransitionHook] | None = None,
    attempts: int = CODE_ATTEMPTS,
) -> Entity:
    """Insert the entity built by ``build(code)`` under the day's next free code.

    Two writers can read the same next code; the loser's insert hits the
    unique constraint on ``entities.code`` and is retried with a fresh code.

    Raises:
        CodeConflict: Every attempt lost the race
        IntegrityError: The insert failed for another reason
    """
    repo = EntityRepository(session)
    for attempt in range(1, attempts + 1):
        code = await repo.next_code(prefix, day)
        try:
            return await create_entity(session, build(code), actor, hooks=hooks)
        except IntegrityError:
            if not await repo.code_taken(code):
                raise
            logger.warning("entity_code_taken", code=code, attempt=attempt)

    raise CodeConflict(prefix, attempts)
