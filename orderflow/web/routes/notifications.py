"""Notification log routes: failed deliveries and manual retry."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.db.connection import get_db
from orderflow.notifications.retry import list_failed_notifications, retry_notification
from orderflow.web.models import NotificationLogResponse

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/failed", response_model=list[NotificationLogResponse])
async def failed_notifications(
    notification_type: str | None = Query(None),
    entity_id: UUID | None = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_db),
):
    return await list_failed_notifications(
        session,
        notification_type=notification_type,
        entity_id=entity_id,
        limit=limit,
        offset=offset,
    )


@router.post("/{log_id}/retry", response_model=NotificationLogResponse)
async def retry(log_id: UUID, session: AsyncSession = Depends(get_db)):
    """Retry one FAILED notification; 409 if the row is not FAILED."""
    return await retry_notification(session, log_id)
