"""Listing and retrying failed notifications."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.db.models import NotificationLogModel
from orderflow.errors import EntityNotFound, InvalidTransition
from orderflow.models import NotificationStatus
from orderflow.notifications.dispatch import deliver
from orderflow.notifications.email import EmailService


async def list_failed_notifications(
    session: AsyncSession,
    notification_type: str | None = None,
    entity_id: UUID | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[NotificationLogModel]:
    stmt = (
        select(NotificationLogModel)
        .where(NotificationLogModel.status == NotificationStatus.FAILED.value)
        .order_by(NotificationLogModel.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    if notification_type:
        stmt = stmt.where(NotificationLogModel.notification_type == notification_type)
    if entity_id:
        stmt = stmt.where(NotificationLogModel.entity_id == entity_id)
    result = await session.execute(stmt)
    return list(result.scalars())


async def retry_notification(
    session: AsyncSession, log_id: UUID, email_service: EmailService | None = None
) -> NotificationLogModel:
    """Retry one FAILED notification (FAILED -> RETRYING -> SENT | FAILED).

    Raises:
        EntityNotFound: No such log row
        InvalidTransition: Row is not FAILED
    """
    log = await session.get(NotificationLogModel, log_id)
    if log is None:
        raise EntityNotFound(log_id)
    if log.status != NotificationStatus.FAILED.value:
        raise InvalidTransition(
            f"Can only retry FAILED notifications (status is {log.status})",
            current=log.status,
            target=NotificationStatus.RETRYING.value,
        )

    log.status = NotificationStatus.RETRYING.value
    await session.flush()
    await deliver(log, email_service)
    await session.flush()
    return log


async def retry_failed_notifications(
    session: AsyncSession, limit: int = 50, email_service: EmailService | None = None
) -> tuple[int, int]:
    """Retry up to ``limit`` failed notifications; returns (sent, still_failed)."""
    sent = failed = 0
    for log in await list_failed_notifications(session, limit=limit):
        await retry_notification(session, log.id, email_service)
        if log.status == NotificationStatus.SENT.value:
            sent += 1
        else:
            failed += 1
    return sent, failed
