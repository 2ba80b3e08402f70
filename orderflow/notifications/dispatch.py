"""Notification types, recipients and delivery.

Every notification is recorded in ``notification_logs`` before delivery is
attempted; delivery failures mark the row FAILED so it can be retried.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.config import NotificationsConfig, get_config
from orderflow.db.models import NotificationLogModel
from orderflow.errors import NotificationError
from orderflow.lifecycle.catalog import get_catalog
from orderflow.models import Dimension, Entity, NotificationStatus, utcnow
from orderflow.notifications.email import EmailService
from orderflow.notifications.slack import send_slack_notification

logger = logging.getLogger(__name__)

CLIENT = "client"
OPS = "ops"


@dataclass(frozen=True, slots=True)
class NotificationSpec:
    subject: str
    headline: str
    message: str
    audience: tuple[str, ...]
    action_required: str | None = None
    slack: bool = False


NOTIFICATIONS: dict[str, NotificationSpec] = {
    "ORDER_SUBMITTED": NotificationSpec(
        "Order Submitted: {code}",
        "Order Submitted Successfully",
        "Your order has been received and is now being reviewed.",
        (CLIENT, OPS),
        slack=True,
    ),
    "A2_ADJUSTED_PRICING": NotificationSpec(
        "Pricing Adjustment Needs Approval: {code}",
        "Adjusted Pricing Awaiting Approval",
        "Logistics adjusted the price for this order.",
        (OPS,),
        action_required="review and approve the adjusted pricing.",
        slack=True,
    ),
    "QUOTE_SENT": NotificationSpec(
        "Quote Ready: {code}",
        "Your Quote is Ready",
        "Your quote has been prepared.",
        (CLIENT, OPS),
        action_required="please review and approve or decline the quote.",
    ),
    "QUOTE_APPROVED": NotificationSpec(
        "Quote Approved: {code}",
        "Quote Approved",
        "The client approved the quote.",
        (OPS,),
        slack=True,
    ),
    "QUOTE_DECLINED": NotificationSpec(
        "Quote Declined: {code}",
        "Quote Declined",
        "The client declined the quote.",
        (OPS,),
        slack=True,
    ),
    "INVOICE_READY": NotificationSpec(
        "Invoice Ready: {code}",
        "Invoice Ready for Payment",
        "Your invoice is ready for payment.",
        (CLIENT, OPS),
        action_required="please process payment to proceed with fulfillment.",
    ),
    "PAYMENT_CONFIRMED": NotificationSpec(
        "Payment Confirmed: {code}",
        "Payment Confirmed",
        "Payment has been recorded for this order.",
        (OPS,),
    ),
    "ORDER_CONFIRMED": NotificationSpec(
        "Order Confirmed: {code}",
        "Order Confirmed",
        "The order is confirmed and preparation has started.",
        (CLIENT, OPS),
    ),
    "READY_FOR_DELIVERY": NotificationSpec(
        "Ready for Delivery: {code}",
        "Ready for Delivery",
        "All items are packed and ready for delivery.",
        (OPS,),
    ),
    "IN_TRANSIT": NotificationSpec(
        "Order In Transit: {code}",
        "Your Order is On the Way",
        "Your order has left the warehouse.",
        (CLIENT, OPS),
    ),
    "DELIVERED": NotificationSpec(
        "Order Delivered: {code}",
        "Order Delivered Successfully",
        "Your order has been delivered to the venue.",
        (CLIENT, OPS),
    ),
    "ORDER_CLOSED": NotificationSpec(
        "Order Closed: {code}",
        "Order Closed",
        "All items have been returned and the order is closed.",
        (OPS,),
    ),
}


def recipients_for(notification_type: str, entity: Entity, config: NotificationsConfig) -> list[str]:
    spec = NOTIFICATIONS[notification_type]
    recipients: list[str] = []
    if CLIENT in spec.audience and entity.contact_email:
        recipients.append(entity.contact_email)
    if OPS in spec.audience:
        recipients.extend(config.ops_emails)
    return list(dict.fromkeys(recipients))


def build_payload(entity: Entity, note: str | None = None) -> dict:
    """JSON-safe snapshot of the entity used to render (and re-render) the message."""
    catalog = get_catalog(entity.kind, Dimension.OPERATIONAL)
    return {
        "code": entity.code,
        "kind": entity.kind.value,
        "status": entity.status,
        "status_label": catalog.label(entity.status),
        "commercial_status": entity.commercial_status,
        "company_id": entity.company_id,
        "event_start_date": entity.event_start_date.isoformat() if entity.event_start_date else None,
        "event_end_date": entity.event_end_date.isoformat() if entity.event_end_date else None,
        "venue_name": entity.venue_name,
        "venue_city": entity.venue_city,
        "total": str(entity.quote.total) if entity.quote else None,
        "currency": entity.quote.currency if entity.quote else None,
        "note": note,
    }


def render_notification(
    notification_type: str, payload: dict, email_service: EmailService
) -> tuple[str, str]:
    spec = NOTIFICATIONS[notification_type]
    subject = spec.subject.format(code=payload.get("code", ""))
    html = email_service.render_template(
        "notification.html",
        {
            **payload,
            "headline": spec.headline,
            "message": spec.message,
            "action_required": spec.action_required,
        },
    )
    return subject, html


async def queue_notification(
    session: AsyncSession, notification_type: str, entity: Entity, note: str | None = None
) -> NotificationLogModel:
    config = get_config().notifications
    log = NotificationLogModel(
        entity_id=entity.id,
        entity_code=entity.code,
        notification_type=notification_type,
        recipients=recipients_for(notification_type, entity, config),
        payload=build_payload(entity, note),
        status=NotificationStatus.QUEUED.value,
        attempts=0,
    )
    session.add(log)
    await session.flush()
    return log


async def deliver(log: NotificationLogModel, email_service: EmailService | None = None) -> bool:
    """Attempt delivery of a logged notification and record the outcome on the row."""
    email_service = email_service or EmailService()
    log.attempts = (log.attempts or 0) + 1
    log.last_attempt_at = utcnow()

    try:
        if not log.recipients:
            raise NotificationError("No recipients configured")
        subject, html = render_notification(log.notification_type, log.payload, email_service)
        sent = await asyncio.to_thread(email_service.send_email, list(log.recipients), subject, html)
        if not sent:
            raise NotificationError("SMTP credentials not configured")
    except NotificationError as e:
        log.status = NotificationStatus.FAILED.value
        log.error_message = str(e)
        logger.warning(f"Notification {log.notification_type} for {log.entity_code} failed: {e}")
        return False

    log.status = NotificationStatus.SENT.value
    log.sent_at = utcnow()
    log.error_message = None
    logger.info(f"Notification {log.notification_type} sent for {log.entity_code}")

    if NOTIFICATIONS[log.notification_type].slack:
        await send_slack_notification(f"{subject} ({log.payload.get('status_label')})")
    return True
