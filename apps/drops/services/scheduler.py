"""
Scheduler service - closes drops whose end_time has passed.

Run periodically through ``manage.py close_due_drops``. A due drop that
reached its supplier list's minimum reservation value is completed (and
settled); one that did not is expired and its holds released. Drops left
frozen by an interrupted settlement are completed again, which resumes it.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from django.db.models import QuerySet
from django.utils import timezone

from apps.drops.models import Drop, DropStatus
from apps.drops.exceptions import DropsServiceError
from .state_machine import DropAction, SCHEDULER, transition

logger = logging.getLogger(__name__)


@dataclass
class ScheduledClose:
    drop_id: str
    drop_name: str
    action: str
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


def get_due_drops(now=None) -> QuerySet:
    """Active drops whose end_time is at or before ``now``; paused drops wait."""
    now = now or timezone.now()
    return (
        Drop.objects
        .filter(status=DropStatus.ACTIVE, end_time__lte=now)
        .select_related('supplier_list')
        .order_by('end_time')
    )


def action_for(drop: Drop) -> str:
    """Complete funded or already-frozen drops, expire the rest."""
    if drop.is_closing:
        return DropAction.COMPLETE
    if drop.current_value >= drop.supplier_list.min_reservation_value:
        return DropAction.COMPLETE
    return DropAction.EXPIRE


def process_due_drops(now=None, gateway=None, dry_run: bool = False) -> List[ScheduledClose]:
    """
    Complete or expire every due drop.

    One drop failing never stops the others; its error is reported in the
    result list and logged.
    """
    now = now or timezone.now()
    results = []

    for drop in get_due_drops(now):
        action = action_for(drop)
        result = ScheduledClose(drop_id=str(drop.id), drop_name=drop.name, action=action)
        if not dry_run:
            try:
                transition(drop, action, SCHEDULER, now=now, gateway=gateway)
            except DropsServiceError as e:
                logger.error("Scheduler could not %s drop %s: %s", action, drop.id, e)
                result.error = str(e)
        results.append(result)

    if results:
        logger.info("Scheduler processed %s due drops", len(results))
    return results
