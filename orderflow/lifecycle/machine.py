"""Pure lifecycle state machine.

``apply_transition`` never touches storage: it validates an action against the
catalog and returns a new ``Entity`` with updated statuses and history. The
persisting wrapper lives in ``orderflow.lifecycle.service``.

Client decisions on a quote (APPROVE, DECLINE, REQUEST_REVISION on a billable
entity) are checked here too, so every path that changes status enforces them.
"""

from __future__ import annotations

from datetime import datetime

from orderflow.errors import InvalidAction, InvalidTransition, ValidationError
from orderflow.lifecycle.actions import effects_for
from orderflow.lifecycle.catalog import CommercialStatus, get_catalog, is_compatible
from orderflow.models import (
    Action,
    Actor,
    BillingMode,
    Dimension,
    Entity,
    EntityKind,
    QuoteState,
    StatusHistoryEntry,
    utcnow,
)

QUOTE_DECISION_ACTIONS = frozenset({Action.APPROVE, Action.DECLINE, Action.REQUEST_REVISION})
DECLINE_REASON_MIN_LENGTH = 10


def check_quote_action(
    entity: Entity,
    action: Action,
    note: str | None = None,
    min_reason_length: int = DECLINE_REASON_MIN_LENGTH,
) -> None:
    """Validate a client decision on the entity's current quote.

    Raises:
        InvalidTransition: No quote is awaiting a decision
        ValidationError: Quote missing, or decline reason too short
    """
    if entity.commercial_status != CommercialStatus.QUOTED.value:
        raise InvalidTransition(
            f"{entity.code} has no quote awaiting a decision "
            f"(commercial status {entity.commercial_status})",
            current=entity.commercial_status,
            target=action.value,
        )

    if entity.quote is None:
        raise ValidationError(f"{entity.code} is marked QUOTED but has no quote attached")

    if action == Action.DECLINE:
        reason = (note or "").strip()
        if len(reason) < min_reason_length:
            raise ValidationError(
                f"Decline reason must be at least {min_reason_length} characters"
            )


def apply_transition(
    entity: Entity,
    action: Action | str,
    actor: Actor,
    note: str | None = None,
    now: datetime | None = None,
    quote: QuoteState | None = None,
    min_reason_length: int = DECLINE_REASON_MIN_LENGTH,
) -> Entity:
    """Apply ``action`` to ``entity`` and return the updated copy.

    Args:
        entity: Current entity state (left unchanged)
        action: Action name from the kind's action table
        actor: Who performs the action
        note: Optional note stored on each new history entry; the decline
            reason for DECLINE
        now: Timestamp for history entries (defaults to current UTC time)
        quote: Price to attach to the entity along with the status change;
            required for SUBMIT_QUOTE
        min_reason_length: Shortest accepted decline reason

    Returns:
        New entity with status, commercial status and history updated

    Raises:
        UnknownStatus: Current status is not in the catalog
        InvalidAction: Action not offered for this kind or billing mode
        InvalidTransition: Target status not reachable from current status
        ValidationError: SUBMIT_QUOTE without a quote, or a quote decision
            that breaks the decision rules
    """
    operational = get_catalog(entity.kind, Dimension.OPERATIONAL)
    commercial = get_catalog(entity.kind, Dimension.COMMERCIAL)
    operational.get(entity.status)
    if entity.commercial_status is not None:
        commercial.get(entity.commercial_status)

    action_name = action.value if isinstance(action, Action) else str(action)
    effects = effects_for(entity.kind, action_name)
    if effects is None:
        raise InvalidAction(action_name, entity.kind.value)
    action = Action(action_name)

    if not entity.is_billable:
        effects = tuple(e for e in effects if e.dimension != Dimension.COMMERCIAL)
        if not any(e.required for e in effects):
            raise InvalidAction(
                action_name, entity.kind.value, "entity is not client-billable"
            )
    elif action in QUOTE_DECISION_ACTIONS:
        check_quote_action(entity, action, note, min_reason_length)
        if action == Action.DECLINE:
            note = (note or "").strip() or None

    catalogs = {Dimension.OPERATIONAL: operational, Dimension.COMMERCIAL: commercial}
    resulting = {
        Dimension.OPERATIONAL: entity.status,
        Dimension.COMMERCIAL: entity.commercial_status,
    }

    for effect in effects:
        current = resulting[effect.dimension]
        catalog = catalogs[effect.dimension]
        if current is not None and catalog.can_transition(current, effect.target):
            resulting[effect.dimension] = effect.target
        elif effect.required:
            raise InvalidTransition(
                f"Cannot {action_name} {entity.kind.value} {entity.code}: "
                f"{effect.dimension.value} status {current} -> {effect.target} is not allowed",
                current=current,
                target=effect.target,
            )

    new_status = resulting[Dimension.OPERATIONAL]
    new_commercial = resulting[Dimension.COMMERCIAL]
    if entity.is_billable and not is_compatible(entity.kind, new_status, new_commercial):
        raise InvalidTransition(
            f"Cannot {action_name} {entity.kind.value} {entity.code}: "
            f"status {new_status} cannot coexist with commercial status {new_commercial}",
            current=entity.status,
            target=new_status,
        )

    if action == Action.SUBMIT_QUOTE and quote is None:
        raise ValidationError(f"Cannot {action_name} {entity.code}: a quote with a total is required")

    timestamp = now or utcnow()
    sequence = entity.next_sequence
    entries = []
    for dimension, before in (
        (Dimension.OPERATIONAL, entity.status),
        (Dimension.COMMERCIAL, entity.commercial_status),
    ):
        after = resulting[dimension]
        if after == before:
            continue
        entries.append(
            StatusHistoryEntry(
                sequence=sequence,
                dimension=dimension,
                from_status=before,
                to_status=after,
                actor_id=actor.id,
                actor_role=actor.role,
                timestamp=timestamp,
                note=note,
            )
        )
        sequence += 1

    update = {
        "status": new_status,
        "commercial_status": new_commercial,
        "status_history": [*entity.status_history, *entries],
    }
    if quote is not None:
        update["quote"] = quote
    elif action == Action.REQUEST_REVISION:
        # the revised quote replaces this one
        update["quote"] = None
    return entity.model_copy(deep=True, update=update)


def new_entity(
    kind: EntityKind,
    code: str,
    company_id: str,
    actor: Actor,
    billing_mode: BillingMode = BillingMode.CLIENT_BILLABLE,
    status: str | None = None,
    note: str | None = None,
    now: datetime | None = None,
    **fields,
) -> Entity:
    """Build a new entity in its initial status with creation history entries.

    Creation entries have ``from_status=None``; billable entities get one for
    each dimension.
    """
    operational = get_catalog(kind, Dimension.OPERATIONAL)
    commercial = get_catalog(kind, Dimension.COMMERCIAL)
    initial = status or operational.initial
    operational.get(initial)

    commercial_status = None
    if billing_mode == BillingMode.CLIENT_BILLABLE:
        commercial_status = commercial.initial

    timestamp = now or utcnow()
    history = [
        StatusHistoryEntry(
            sequence=1,
            dimension=Dimension.OPERATIONAL,
            from_status=None,
            to_status=initial,
            actor_id=actor.id,
            actor_role=actor.role,
            timestamp=timestamp,
            note=note,
        )
    ]
    if commercial_status is not None:
        history.append(
            StatusHistoryEntry(
                sequence=2,
                dimension=Dimension.COMMERCIAL,
                from_status=None,
                to_status=commercial_status,
                actor_id=actor.id,
                actor_role=actor.role,
                timestamp=timestamp,
                note=note,
            )
        )

    return Entity(
        kind=kind,
        code=code,
        company_id=company_id,
        billing_mode=billing_mode,
        status=initial,
        commercial_status=commercial_status,
        created_at=timestamp,
        status_history=history,
        **fields,
    )
