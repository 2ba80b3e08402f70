"""Per-kind action tables.

An action resolves to one or more effects, each naming a status dimension and
the status it moves to. Required effects must be legal from the current
status; optional effects mirror the change onto the other dimension and are
skipped when the mirror is not a legal move.
"""

from __future__ import annotations

from typing import NamedTuple

from orderflow.lifecycle.catalog import (
    CommercialStatus,
    InboundRequestStatus,
    OrderStatus,
    ServiceRequestStatus,
)
from orderflow.models import Action, Dimension, EntityKind


class Effect(NamedTuple):
    dimension: Dimension
    target: str
    required: bool = True


def op(target, required: bool = True) -> Effect:
    return Effect(Dimension.OPERATIONAL, target.value, required)


def com(target, required: bool = True) -> Effect:
    return Effect(Dimension.COMMERCIAL, target.value, required)


_O = OrderStatus
_I = InboundRequestStatus
_S = ServiceRequestStatus
_C = CommercialStatus

ORDER_ACTIONS: dict[Action, tuple[Effect, ...]] = {
    Action.SUBMIT: (op(_O.SUBMITTED),),
    Action.START_REVIEW: (op(_O.PRICING_REVIEW),),
    Action.REQUEST_APPROVAL: (op(_O.PENDING_APPROVAL),),
    Action.SUBMIT_QUOTE: (op(_O.QUOTED), com(_C.QUOTED)),
    Action.APPROVE: (op(_O.APPROVED), com(_C.QUOTE_APPROVED)),
    Action.DECLINE: (op(_O.DECLINED), com(_C.CANCELLED)),
    Action.INVOICE: (com(_C.INVOICED), op(_O.INVOICED, required=False)),
    Action.MARK_PAID: (com(_C.PAID), op(_O.PAID, required=False)),
    Action.CONFIRM: (op(_O.CONFIRMED),),
    Action.START_FABRICATION: (op(_O.AWAITING_FABRICATION),),
    Action.START_PREPARATION: (op(_O.IN_PREPARATION),),
    Action.MARK_READY: (op(_O.READY_FOR_DELIVERY),),
    Action.DISPATCH: (op(_O.IN_TRANSIT),),
    Action.MARK_DELIVERED: (op(_O.DELIVERED),),
    Action.START_EVENT: (op(_O.IN_USE),),
    Action.END_EVENT: (op(_O.AWAITING_RETURN),),
    Action.CLOSE: (op(_O.CLOSED),),
    Action.CANCEL: (op(_O.CANCELLED), com(_C.CANCELLED, required=False)),
}

INBOUND_REQUEST_ACTIONS: dict[Action, tuple[Effect, ...]] = {
    Action.START_REVIEW: (op(_I.PRICING_REVIEW),),
    Action.REQUEST_APPROVAL: (op(_I.PENDING_APPROVAL),),
    Action.SUBMIT_QUOTE: (op(_I.QUOTED), com(_C.QUOTED)),
    Action.APPROVE: (op(_I.CONFIRMED), com(_C.QUOTE_APPROVED)),
    Action.DECLINE: (op(_I.DECLINED), com(_C.CANCELLED)),
    Action.INVOICE: (com(_C.INVOICED),),
    Action.MARK_PAID: (com(_C.PAID),),
    Action.COMPLETE: (op(_I.COMPLETED),),
    Action.CANCEL: (op(_I.CANCELLED), com(_C.CANCELLED, required=False)),
}

SERVICE_REQUEST_ACTIONS: dict[Action, tuple[Effect, ...]] = {
    Action.SUBMIT: (op(_S.SUBMITTED),),
    Action.START_REVIEW: (op(_S.IN_REVIEW),),
    # Service requests are quoted while under review
    Action.SUBMIT_QUOTE: (com(_C.QUOTED),),
    Action.APPROVE: (op(_S.APPROVED), com(_C.QUOTE_APPROVED)),
    Action.DECLINE: (op(_S.DECLINED), com(_C.CANCELLED)),
    Action.REQUEST_REVISION: (com(_C.PENDING_QUOTE),),
    Action.INVOICE: (com(_C.INVOICED),),
    Action.MARK_PAID: (com(_C.PAID),),
    Action.START_WORK: (op(_S.IN_PROGRESS),),
    Action.COMPLETE: (op(_S.COMPLETED),),
    Action.CANCEL: (op(_S.CANCELLED), com(_C.CANCELLED, required=False)),
}

ACTION_TABLES: dict[EntityKind, dict[Action, tuple[Effect, ...]]] = {
    EntityKind.ORDER: ORDER_ACTIONS,
    EntityKind.INBOUND_REQUEST: INBOUND_REQUEST_ACTIONS,
    EntityKind.SERVICE_REQUEST: SERVICE_REQUEST_ACTIONS,
}


def effects_for(kind: EntityKind, action: Action | str) -> tuple[Effect, ...] | None:
    """Effects of ``action`` for ``kind``, or None when the kind does not offer it."""
    try:
        action = Action(action)
    except ValueError:
        return None
    return ACTION_TABLES[kind].get(action)


def available_actions(kind: EntityKind) -> list[Action]:
    return list(ACTION_TABLES[kind])
