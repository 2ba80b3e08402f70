"""Date-driven order transitions run by the scheduler.

Orders move ``DELIVERED -> IN_USE`` on their event start date and
``IN_USE -> AWAITING_RETURN`` on their event end date, performed by the
system actor through the normal state machine.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.config import get_config
from orderflow.db.repository import EntityRepository
from orderflow.errors import ConcurrentModification, InvalidTransition
from orderflow.lifecycle.catalog import OrderStatus
from orderflow.lifecycle.service import TransitionHook, transition
from orderflow.maintenance.feasibility import local_today
from orderflow.models import SYSTEM_ACTOR, Action, EntityKind

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EventTransitionReport:
    run_date: date
    started: list[str] = field(default_factory=list)
    ended: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


async def run_event_transitions(
    session: AsyncSession,
    today: date | None = None,
    hooks: Sequence[TransitionHook] | None = None,
) -> EventTransitionReport:
    """Start and end events scheduled for ``today``.

    Orders that another writer moved in the meantime are skipped and reported.
    """
    today = today or local_today(get_config().feasibility.timezone)
    report = EventTransitionReport(run_date=today)
    repo = EntityRepository(session)

    # Starts run first so a one-day event also ends on the same run
    for status, date_filter, action, note, bucket in (
        (OrderStatus.DELIVERED, "event_start_date", Action.START_EVENT,
         "Automatic transition on event start date", report.started),
        (OrderStatus.IN_USE, "event_end_date", Action.END_EVENT,
         "Automatic transition on event end date", report.ended),
    ):
        entities = await repo.list_by_status(EntityKind.ORDER, status.value, **{date_filter: today})
        for entity in entities:
            try:
                await transition(session, entity.id, action, SYSTEM_ACTOR, note=note, hooks=hooks)
            except (InvalidTransition, ConcurrentModification) as exc:
                logger.warning(f"Skipped {action.value} for {entity.code}: {exc}")
                report.skipped.append(entity.code)
                continue
            bucket.append(entity.code)

    logger.info(
        f"Event transitions for {today.isoformat()}: "
        f"{len(report.started)} started, {len(report.ended)} ended, {len(report.skipped)} skipped"
    )
    return report
