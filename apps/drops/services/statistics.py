"""Statistics service - drop progress and reservation aggregates."""

from decimal import Decimal

from django.db.models import Count, Sum, Q

from apps.drops.models import Drop
from apps.reservations.models import Reservation, PaymentStatus
from .pricing import discount_for_drop


def get_drop_summary(drop: Drop) -> dict:
    """
    Progress of a drop towards its target.

    Returns:
        Dictionary with:
        - current_value / target_value / progress_percent
        - current_discount and the min/max discount range
        - max_discount_at_target: discount reached if the target were met now
        - reservations: counts per payment status
        - reservers: number of distinct users with a live or captured hold

    Example:
        >>> get_drop_summary(drop)['progress_percent']
        Decimal('40.00')
    """
    supplier_list = drop.supplier_list
    reservations = Reservation.objects.filter(drop=drop)

    counts = reservations.aggregate(
        authorized=Count('id', filter=Q(payment_status=PaymentStatus.AUTHORIZED)),
        captured=Count('id', filter=Q(payment_status=PaymentStatus.CAPTURED)),
        failed=Count('id', filter=Q(payment_status=PaymentStatus.FAILED)),
        refunded=Count('id', filter=Q(payment_status=PaymentStatus.REFUNDED)),
        captured_total=Sum('final_price', filter=Q(payment_status=PaymentStatus.CAPTURED)),
    )
    reservers = (
        reservations
        .filter(payment_status__in=[PaymentStatus.AUTHORIZED, PaymentStatus.CAPTURED])
        .order_by()
        .values('user')
        .distinct()
        .count()
    )

    progress = min(Decimal('100'), drop.current_value / drop.target_value * 100)

    return {
        'drop_id': drop.id,
        'status': drop.status,
        'is_closing': drop.is_closing,
        'current_value': drop.current_value,
        'target_value': drop.target_value,
        'progress_percent': progress.quantize(Decimal('0.01')),
        'current_discount': drop.current_discount,
        'min_discount': supplier_list.min_discount,
        'max_discount': supplier_list.max_discount,
        'max_discount_at_target': discount_for_drop(drop, drop.target_value),
        'min_reservation_value': supplier_list.min_reservation_value,
        'is_funded': drop.current_value >= supplier_list.min_reservation_value,
        'end_time': drop.end_time,
        'reservations': {
            'authorized': counts['authorized'],
            'captured': counts['captured'],
            'failed': counts['failed'],
            'refunded': counts['refunded'],
        },
        'captured_total': counts['captured_total'] or Decimal('0.00'),
        'reservers': reservers,
    }
