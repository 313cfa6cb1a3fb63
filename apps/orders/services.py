"""
Order service - turns a settled drop into supplier orders.

When settlement finishes, the captured reservations are grouped by
supplier and pickup point. Each group becomes one Order, with an
OrderItem per reservation that pickup points track until the item is
collected or returned.
"""

import logging
import uuid
from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db.models import QuerySet
from django.utils import timezone

from apps.orders.models import Order, OrderItem, OrderStatus, PickupStatus
from apps.reservations.models import Reservation, PaymentStatus

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')


def generate_order_number(now=None) -> str:
    now = now or timezone.now()
    return f"ORD-{now:%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


def commission_for(total_value) -> Decimal:
    """Marketplace commission on an order total, rounded to cents."""
    rate = Decimal(str(settings.ORDERS['COMMISSION_RATE']))
    return (Decimal(total_value) * rate).quantize(CENTS, rounding=ROUND_HALF_UP)


def create_orders_for_drop(drop, report, *, now=None) -> list:
    """
    Write one Order per supplier and pickup point from a drop's captures.

    Must run inside the transaction that finishes the settlement report,
    so orders exist exactly when the report is finished. Calling it again
    for the same drop returns the existing orders.

    Args:
        drop: Drop whose settlement is finishing
        report: The drop's SettlementReport (supplies the frozen discount)
        now: Clock override

    Returns:
        List of the drop's orders; empty when nothing was captured
    """
    existing = list(Order.objects.filter(drop_id=drop.id))
    if existing:
        return existing

    captured = (
        Reservation.objects
        .filter(drop_id=drop.id, payment_status=PaymentStatus.CAPTURED)
        .select_related('product__supplier_list')
        .order_by('created_at')
    )

    groups = defaultdict(list)
    for reservation in captured:
        supplier_id = reservation.product.supplier_list.supplier_id
        groups[(supplier_id, reservation.pickup_point_id)].append(reservation)

    orders = []
    for (supplier_id, pickup_point_id), reservations in groups.items():
        total_value = sum((r.final_price for r in reservations), Decimal('0.00'))
        order = Order.objects.create(
            order_number=generate_order_number(now),
            drop_id=drop.id,
            supplier_id=supplier_id,
            pickup_point_id=pickup_point_id,
            discount_percentage=report.discount_percentage,
            total_value=total_value,
            commission_amount=commission_for(total_value),
        )
        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                reservation=reservation,
                product=reservation.product,
                user_id=reservation.user_id,
                product_name=reservation.product.name,
                original_price=reservation.original_price,
                final_price=reservation.final_price,
                discount_percentage=reservation.discount_percentage,
            )
            for reservation in reservations
        ])
        logger.info(
            "Order %s created for drop %s: %s items, total %s, commission %s",
            order.order_number, drop.id, len(reservations), total_value, order.commission_amount,
        )
        orders.append(order)

    return orders


def update_pickup_status(reservation, pickup_status, *, now=None):
    """
    Mirror a pickup or return onto the reservation's order item.

    The order is completed once none of its items is still pending.
    Returns the item, or None for reservations without one.
    """
    item = (
        OrderItem.objects
        .select_related('order')
        .filter(reservation_id=reservation.id)
        .first()
    )
    if item is None:
        return None

    item.pickup_status = pickup_status
    item.save(update_fields=['pickup_status', 'updated_at'])

    order = item.order
    if (
        order.status != OrderStatus.COMPLETED
        and not order.items.filter(pickup_status=PickupStatus.PENDING).exists()
    ):
        order.status = OrderStatus.COMPLETED
        order.completed_at = now or timezone.now()
        order.save(update_fields=['status', 'completed_at', 'updated_at'])
        logger.info("Order %s completed", order.order_number)

    return item


def get_visible_orders(user) -> QuerySet:
    """Orders a user may see: all for admins, their point's or their own supplies otherwise."""
    queryset = Order.objects.select_related('drop', 'pickup_point', 'supplier').prefetch_related('items')
    if user.is_marketplace_admin:
        return queryset
    if user.is_pickup_operator:
        if user.pickup_point_id is None:
            return queryset.none()
        return queryset.filter(pickup_point_id=user.pickup_point_id)
    return queryset.filter(supplier=user)
