"""Client decisions on a quote (approve, decline, request revision).

The same workflow serves orders, inbound requests and service requests; only
the action tables behind the state machine differ.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.config import get_config
from orderflow.db.repository import EntityRepository
from orderflow.errors import InvalidAction
from orderflow.lifecycle.machine import DECLINE_REASON_MIN_LENGTH, check_quote_action
from orderflow.lifecycle.service import TransitionHook, transition
from orderflow.models import Action, Actor, Entity, EntityKind, QuoteDecision

_DECISION_ACTIONS = {
    QuoteDecision.APPROVE: Action.APPROVE,
    QuoteDecision.DECLINE: Action.DECLINE,
    QuoteDecision.REQUEST_REVISION: Action.REQUEST_REVISION,
}


def check_quote_decision(
    entity: Entity,
    decision: QuoteDecision,
    note: str | None = None,
    min_reason_length: int = DECLINE_REASON_MIN_LENGTH,
) -> None:
    """Validate a decision against the entity before any state change.

    ``apply_transition`` runs the same rules for the three decision actions;
    this adds the errors that are specific to asking for a decision.

    Raises:
        InvalidAction: Entity is not client-billable, or revision asked on
            something other than a service request
        InvalidTransition: No quote is awaiting a decision
        ValidationError: Decline reason too short
    """
    if not entity.is_billable:
        raise InvalidAction(decision.value, entity.kind.value, "entity is not client-billable")

    if decision == QuoteDecision.REQUEST_REVISION and entity.kind != EntityKind.SERVICE_REQUEST:
        raise InvalidAction(decision.value, entity.kind.value, "revisions are only offered on service requests")

    check_quote_action(entity, _DECISION_ACTIONS[decision], note, min_reason_length)


async def submit_quote_decision(
    session: AsyncSession,
    entity_id: UUID,
    decision: QuoteDecision | str,
    actor: Actor,
    note: str | None = None,
    hooks: Sequence[TransitionHook] | None = None,
) -> Entity:
    """Apply the client's decision on the current quote.

    A repeated APPROVE after success fails with InvalidTransition because
    the quote is no longer QUOTED, so retried requests never re-trigger
    invoicing.
    """
    decision = QuoteDecision(decision)
    entity = await EntityRepository(session).get(entity_id)
    check_quote_decision(
        entity, decision, note, get_config().quotes.decline_reason_min_length
    )

    return await transition(
        session,
        entity_id,
        _DECISION_ACTIONS[decision],
        actor,
        note=note,
        hooks=hooks,
    )
