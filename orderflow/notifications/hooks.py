"""Post-transition hook that turns status changes into notifications."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.config import get_config
from orderflow.models import Action, Actor, Entity
from orderflow.notifications.dispatch import deliver, queue_notification

logger = logging.getLogger(__name__)

# (from, to) operational status -> notification types
OPERATIONAL_NOTIFICATIONS: dict[tuple[str, str], tuple[str, ...]] = {
    ("DRAFT", "SUBMITTED"): ("ORDER_SUBMITTED",),
    ("PRICING_REVIEW", "QUOTED"): ("QUOTE_SENT",),
    ("PRICING_REVIEW", "PENDING_APPROVAL"): ("A2_ADJUSTED_PRICING",),
    ("PENDING_APPROVAL", "QUOTED"): ("QUOTE_SENT",),
    ("QUOTED", "APPROVED"): ("QUOTE_APPROVED", "INVOICE_READY"),
    ("QUOTED", "CONFIRMED"): ("QUOTE_APPROVED", "INVOICE_READY"),
    ("IN_REVIEW", "APPROVED"): ("QUOTE_APPROVED", "INVOICE_READY"),
    ("QUOTED", "DECLINED"): ("QUOTE_DECLINED",),
    ("IN_REVIEW", "DECLINED"): ("QUOTE_DECLINED",),
    ("CONFIRMED", "IN_PREPARATION"): ("ORDER_CONFIRMED",),
    ("IN_PREPARATION", "READY_FOR_DELIVERY"): ("READY_FOR_DELIVERY",),
    ("READY_FOR_DELIVERY", "IN_TRANSIT"): ("IN_TRANSIT",),
    ("IN_TRANSIT", "DELIVERED"): ("DELIVERED",),
    ("AWAITING_RETURN", "CLOSED"): ("ORDER_CLOSED",),
}

# (from, to) commercial status -> notification types
COMMERCIAL_NOTIFICATIONS: dict[tuple[str, str], tuple[str, ...]] = {
    ("PENDING_QUOTE", "QUOTED"): ("QUOTE_SENT",),
    ("INVOICED", "PAID"): ("PAYMENT_CONFIRMED",),
}


def notification_types_for(before: Entity | None, after: Entity) -> list[str]:
    """Notification types triggered by the change from ``before`` to ``after``."""
    if before is None:
        return ["ORDER_SUBMITTED"] if after.status == "SUBMITTED" else []

    types: list[str] = []
    if before.status != after.status:
        types.extend(OPERATIONAL_NOTIFICATIONS.get((before.status, after.status), ()))
    if before.commercial_status != after.commercial_status and after.commercial_status is not None:
        types.extend(
            COMMERCIAL_NOTIFICATIONS.get((before.commercial_status, after.commercial_status), ())
        )
    return list(dict.fromkeys(types))


async def notify_transition(
    session: AsyncSession,
    before: Entity | None,
    after: Entity,
    action: Action,
    actor: Actor,
) -> None:
    """Log and deliver the notifications for a committed transition."""
    if not get_config().notifications.enabled:
        return

    note = after.status_history[-1].note if after.status_history else None
    for notification_type in notification_types_for(before, after):
        log = await queue_notification(session, notification_type, after, note)
        await deliver(log)
        logger.debug(f"{action.value} by {actor.id}: {notification_type} {log.status}")
