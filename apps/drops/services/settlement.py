"""
Settlement service.

Captures every authorized hold of a frozen drop at the drop's final
discount and records what happened to each reservation in the drop's
SettlementReport.

Settlement runs at most once per drop:
- the drop row is locked while the report is created, and the report is
  one-to-one with the drop
- a finished report is returned as-is, without touching the processor
- an interrupted run resumes with the reservations that are still
  authorized, and every capture carries a per-reservation idempotency key
"""

import logging
from collections import defaultdict
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from apps.drops.models import Drop, DropStatus, SettlementReport, SettlementStatus
from apps.drops.exceptions import InvalidTransitionError, CaptureFailedError
from apps.notifications.dispatcher import notify
from apps.notifications.models import NotificationKind
from apps.orders.services import create_orders_for_drop
from apps.payments.gateway import get_gateway
from apps.reservations.models import (
    Reservation,
    PaymentStatus,
    ReconciliationRecord,
    ReconciliationKind,
)
from .pricing import final_price_for

logger = logging.getLogger(__name__)


def capture_key(reservation) -> str:
    return f'capture-{reservation.id}'


def settle(drop: Drop, *, gateway=None, now=None) -> SettlementReport:
    """
    Capture all authorized reservations of a closing drop.

    Args:
        drop: Drop frozen by the ``complete`` transition
        gateway: Payment gateway override
        now: Clock override

    Returns:
        The drop's SettlementReport

    Raises:
        InvalidTransitionError: If the drop is neither closing nor settled
    """
    gateway = gateway or get_gateway()
    now = now or timezone.now()

    report = _start_or_resume(drop, now)
    if report.is_finished:
        logger.info("Drop %s already settled, returning report %s", drop.id, report.id)
        return report

    pending_ids = list(
        Reservation.objects
        .filter(drop_id=drop.id, payment_status=PaymentStatus.AUTHORIZED)
        .order_by('created_at')
        .values_list('id', flat=True)
    )
    logger.info(
        "Settling drop %s at %s%%: %s reservations to capture",
        drop.id, report.discount_percentage, len(pending_ids),
    )

    for reservation_id in pending_ids:
        with transaction.atomic():
            reservation = (
                Reservation.objects
                .select_for_update()
                .select_related('product')
                .get(id=reservation_id)
            )
            # Handled by a concurrent run or cancelled meanwhile
            if reservation.payment_status != PaymentStatus.AUTHORIZED:
                continue
            outcome = _capture_one(reservation, report, gateway, now)
            report.record_outcome(outcome)

    report, finished_here = _finish(drop, report, now)
    if finished_here:
        _notify_reservers(report)
    return report


def _start_or_resume(drop, now) -> SettlementReport:
    with transaction.atomic():
        drop = Drop.objects.select_for_update().get(id=drop.id)
        report = SettlementReport.objects.filter(drop=drop).first()

        if report is not None and report.is_finished:
            return report
        if not drop.is_closing:
            raise InvalidTransitionError(
                f"Drop '{drop.name}' must be closed before settlement (status: {drop.status})"
            )

        if report is None:
            report = SettlementReport.objects.create(
                drop=drop,
                discount_percentage=drop.current_discount,
                started_at=now,
            )
        else:
            logger.warning("Resuming interrupted settlement of drop %s", drop.id)
        return report


def _capture_one(reservation, report, gateway, now) -> dict:
    discount = report.discount_percentage
    final_price = final_price_for(reservation.original_price, discount)
    outcome = {
        'reservation_id': str(reservation.id),
        'user_id': str(reservation.user_id),
        'product_name': reservation.product.name,
        'original_price': str(reservation.original_price),
        'final_price': str(final_price),
        'status': PaymentStatus.CAPTURED.value,
        'reason': '',
    }

    try:
        gateway.capture(reservation.hold_id, final_price, idempotency_key=capture_key(reservation))
    except CaptureFailedError as e:
        failure = e
    except Exception as e:
        # Anything else the processor raises counts as a processing error
        logger.exception("Unexpected processor error capturing reservation %s", reservation.id)
        failure = CaptureFailedError(f"Unexpected processor error: {e}")
    else:
        reservation.mark_captured(discount, final_price, now=now)
        reservation.save(update_fields=[
            'payment_status', 'status', 'discount_percentage', 'final_price', 'captured_at', 'updated_at',
        ])
        return outcome

    logger.error("Capture failed for reservation %s: %s (%s)", reservation.id, failure, failure.reason)
    reservation.mark_failed(now=now)
    reservation.save(update_fields=['payment_status', 'status', 'cancelled_at', 'updated_at'])
    ReconciliationRecord.objects.create(
        reservation=reservation,
        drop_id=reservation.drop_id,
        kind=ReconciliationKind.CAPTURE_FAILED,
        amount=final_price,
        reason=failure.reason,
        message=str(failure),
    )
    outcome.update(status=PaymentStatus.FAILED.value, reason=failure.reason)
    return outcome


def _finish(drop, report, now):
    with transaction.atomic():
        drop = Drop.objects.select_for_update().get(id=drop.id)
        report = SettlementReport.objects.select_for_update().get(id=report.id)
        if report.is_finished:
            return report, False

        report.recalculate_totals()
        report.status = SettlementStatus.FINISHED
        report.finished_at = timezone.now()
        report.save()

        drop.status = DropStatus.COMPLETED
        drop.closed_at = now
        drop.save(update_fields=['status', 'closed_at', 'updated_at'])

        orders = create_orders_for_drop(drop, report, now=now)

    logger.info(
        "Drop %s settled: %s captured, %s failed, %s collected, %s orders",
        drop.id, report.captured_count, report.failed_count, report.total_captured, len(orders),
    )
    return report, True


def _notify_reservers(report):
    """One aggregated notification per reserver, plus one per failed capture."""
    per_user = defaultdict(lambda: {'captured': 0, 'failed': 0, 'total': Decimal('0.00'), 'savings': Decimal('0.00')})

    for outcome in report.outcomes:
        summary = per_user[outcome['user_id']]
        if outcome['status'] == PaymentStatus.CAPTURED:
            summary['captured'] += 1
            summary['total'] += Decimal(outcome['final_price'])
            summary['savings'] += Decimal(outcome['original_price']) - Decimal(outcome['final_price'])
        else:
            summary['failed'] += 1
            notify(outcome['user_id'], NotificationKind.CAPTURE_FAILED, {
                'reservation_id': outcome['reservation_id'],
                'product_name': outcome['product_name'],
                'reason': outcome['reason'],
            })

    for user_id, summary in per_user.items():
        notify(user_id, NotificationKind.DROP_COMPLETED, {
            'drop_id': report.drop_id,
            'discount_percentage': report.discount_percentage,
            'items_captured': summary['captured'],
            'items_failed': summary['failed'],
            'total_charged': summary['total'],
            'total_savings': summary['savings'],
        })
