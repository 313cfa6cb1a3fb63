"""
Drop state machine.

Every lifecycle change of a drop goes through ``transition``. The legal
moves and the actors allowed to make them live in ``TRANSITIONS``; an
actor is either a user (capability derived from its role) or the
``SCHEDULER`` sentinel used by the periodic close job.

    pending_approval -> approved -> active <-> inactive
    active -> completed | expired
    any non-terminal -> cancelled
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import models, transaction
from django.utils import timezone

from apps.catalog.models import PickupPoint, SupplierList
from apps.drops.models import Drop, DropStatus
from apps.drops.exceptions import (
    InvalidInputError,
    InvalidTransitionError,
    ActorNotAllowedError,
)
from apps.notifications.dispatcher import notify_many
from apps.notifications.models import NotificationKind
from apps.reservations.services.holds import release_drop_holds
from .ledger import open_ledger
from .settlement import settle

logger = logging.getLogger(__name__)


class DropAction(models.TextChoices):
    APPROVE = 'approve', 'Approve'
    ACTIVATE = 'activate', 'Activate'
    DEACTIVATE = 'deactivate', 'Deactivate'
    REACTIVATE = 'reactivate', 'Reactivate'
    COMPLETE = 'complete', 'Complete'
    EXPIRE = 'expire', 'Expire'
    CANCEL = 'cancel', 'Cancel'


class _SchedulerActor:
    """The periodic job acting on drops, as opposed to a user."""

    def __repr__(self):
        return 'SCHEDULER'

    def __str__(self):
        return 'scheduler'


SCHEDULER = _SchedulerActor()

# Capabilities
CAN_ADMINISTER = 'admin'
CAN_SCHEDULE = 'scheduler'


@dataclass(frozen=True)
class TransitionRule:
    sources: frozenset
    target: str
    capabilities: frozenset
    # Scheduler may only fire the rule once the drop's end_time has passed
    scheduler_needs_due: bool = False


NON_TERMINAL = frozenset({
    DropStatus.PENDING_APPROVAL,
    DropStatus.APPROVED,
    DropStatus.ACTIVE,
    DropStatus.INACTIVE,
})

TRANSITIONS = {
    DropAction.APPROVE: TransitionRule(
        sources=frozenset({DropStatus.PENDING_APPROVAL}),
        target=DropStatus.APPROVED,
        capabilities=frozenset({CAN_ADMINISTER}),
    ),
    DropAction.ACTIVATE: TransitionRule(
        sources=frozenset({DropStatus.APPROVED}),
        target=DropStatus.ACTIVE,
        capabilities=frozenset({CAN_ADMINISTER, CAN_SCHEDULE}),
    ),
    DropAction.DEACTIVATE: TransitionRule(
        sources=frozenset({DropStatus.ACTIVE}),
        target=DropStatus.INACTIVE,
        capabilities=frozenset({CAN_ADMINISTER}),
    ),
    DropAction.REACTIVATE: TransitionRule(
        sources=frozenset({DropStatus.INACTIVE}),
        target=DropStatus.ACTIVE,
        capabilities=frozenset({CAN_ADMINISTER}),
    ),
    DropAction.COMPLETE: TransitionRule(
        sources=frozenset({DropStatus.ACTIVE}),
        target=DropStatus.COMPLETED,
        capabilities=frozenset({CAN_ADMINISTER, CAN_SCHEDULE}),
        scheduler_needs_due=True,
    ),
    DropAction.EXPIRE: TransitionRule(
        sources=frozenset({DropStatus.ACTIVE}),
        target=DropStatus.EXPIRED,
        capabilities=frozenset({CAN_SCHEDULE}),
        scheduler_needs_due=True,
    ),
    DropAction.CANCEL: TransitionRule(
        sources=NON_TERMINAL,
        target=DropStatus.CANCELLED,
        capabilities=frozenset({CAN_ADMINISTER}),
    ),
}


def capabilities_of(actor) -> frozenset:
    if actor is SCHEDULER:
        return frozenset({CAN_SCHEDULE})
    if actor is not None and getattr(actor, 'is_marketplace_admin', False):
        return frozenset({CAN_ADMINISTER})
    return frozenset()


def allowed_actions(drop: Drop, actor) -> list:
    """Actions ``actor`` could legally take on ``drop`` right now."""
    capabilities = capabilities_of(actor)
    if drop.is_closing:
        return [DropAction.COMPLETE] if capabilities & TRANSITIONS[DropAction.COMPLETE].capabilities else []
    return [
        action for action, rule in TRANSITIONS.items()
        if drop.status in rule.sources and capabilities & rule.capabilities
    ]


def create_drop(
    *,
    name: str,
    pickup_point: PickupPoint,
    supplier_list: SupplierList,
    target_value: Decimal = None,
    created_by=None
) -> Drop:
    """
    Create a drop awaiting admin approval.

    ``target_value`` defaults to the supplier list's maximum reservation
    value, the amount at which the top discount is reached.

    Raises:
        InvalidInputError: If the target is not positive, the discount range
            is not within 0-100 with min <= max, or the pickup point is closed
    """
    if target_value is None:
        target_value = supplier_list.max_reservation_value
    target_value = Decimal(target_value)
    if target_value <= 0:
        raise InvalidInputError("target_value must be positive")

    if not (0 <= supplier_list.min_discount <= supplier_list.max_discount <= 100):
        raise InvalidInputError(
            f"Supplier list '{supplier_list.name}' has an invalid discount range "
            f"{supplier_list.min_discount}-{supplier_list.max_discount}"
        )
    if not pickup_point.is_active:
        raise InvalidInputError(f"Pickup point '{pickup_point.name}' is not active")

    drop = Drop.objects.create(
        name=name.strip(),
        pickup_point=pickup_point,
        supplier_list=supplier_list,
        target_value=target_value,
        current_discount=supplier_list.min_discount,
        created_by=created_by,
    )
    logger.info("Drop %s created by %s", drop.id, created_by)
    return drop


def transition(drop: Drop, action: str, actor, *, now=None, gateway=None) -> Drop:
    """
    Apply ``action`` to ``drop`` on behalf of ``actor``.

    Entering ``completed`` is two-phased: the drop is frozen
    (``closing_started_at``) and stays ``active`` while settlement captures
    the holds, then settlement marks it ``completed``. Calling ``complete``
    again on a frozen drop resumes an interrupted settlement.

    Args:
        drop: Drop to move (re-read under a row lock)
        action: One of DropAction
        actor: User or SCHEDULER
        now: Clock override
        gateway: Payment gateway override for hold capture/release

    Returns:
        The updated Drop

    Raises:
        InvalidTransitionError: If the move is not legal from the current status
        ActorNotAllowedError: If the actor lacks the capability for it
    """
    now = now or timezone.now()
    try:
        rule = TRANSITIONS[action]
    except KeyError:
        raise InvalidTransitionError(f"Unknown drop action '{action}'")

    refunded = []
    with transaction.atomic():
        drop = (
            Drop.objects
            .select_for_update()
            .select_related('supplier_list')
            .get(id=drop.id)
        )
        _check_allowed(drop, action, rule, actor, now)
        source = drop.status

        update_fields = ['status', 'updated_at']
        if action == DropAction.APPROVE:
            drop.status = rule.target
            drop.approved_at = now
            update_fields.append('approved_at')

        elif action == DropAction.ACTIVATE:
            drop.status = rule.target
            drop.start_time = now
            drop.end_time = now + timedelta(days=settings.DROPS['DURATION_DAYS'])
            drop.activated_at = now
            open_ledger(drop)
            update_fields += ['start_time', 'end_time', 'activated_at', 'current_discount', 'version']

        elif action == DropAction.DEACTIVATE:
            drop.status = rule.target
            drop.deactivated_at = now
            update_fields.append('deactivated_at')

        elif action == DropAction.REACTIVATE:
            drop.status = rule.target

        elif action == DropAction.COMPLETE:
            # Freeze the ledger; settlement sets the terminal status
            if drop.closing_started_at is None:
                drop.closing_started_at = now
            update_fields.append('closing_started_at')

        else:
            # expire / cancel
            drop.status = rule.target
            drop.closed_at = now
            update_fields.append('closed_at')
            refunded = release_drop_holds(drop, gateway=gateway, now=now)

        drop.save(update_fields=update_fields)

    logger.info("Drop %s: %s -> %s by %r (%s)", drop.id, source, drop.status, actor, action)

    if action == DropAction.COMPLETE:
        settle(drop, gateway=gateway, now=now)
        drop.refresh_from_db()
    elif refunded:
        kind = (
            NotificationKind.DROP_CANCELLED if action == DropAction.CANCEL
            else NotificationKind.DROP_EXPIRED
        )
        notify_many(
            [r.user_id for r in refunded],
            kind,
            {'drop_id': drop.id, 'drop_name': drop.name},
        )

    return drop


def _check_allowed(drop, action, rule, actor, now):
    if drop.is_closing and action != DropAction.COMPLETE:
        raise InvalidTransitionError(
            f"Drop '{drop.name}' is being settled; '{action}' is not allowed"
        )
    if drop.status not in rule.sources:
        raise InvalidTransitionError(
            f"Cannot {action} a drop in status '{drop.status}'"
        )
    if not capabilities_of(actor) & rule.capabilities:
        raise ActorNotAllowedError(f"{actor} may not {action} drops")
    if actor is SCHEDULER and rule.scheduler_needs_due:
        if drop.end_time is None or now < drop.end_time:
            raise InvalidTransitionError(
                f"Drop '{drop.name}' is not due until {drop.end_time}"
            )
