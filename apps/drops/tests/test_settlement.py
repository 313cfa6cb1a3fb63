import pytest
from decimal import Decimal
from unittest.mock import patch
from django.utils import timezone
from apps.drops.exceptions import InvalidTransitionError
from apps.drops.models import Drop, DropStatus, SettlementReport, SettlementStatus
from apps.drops.services import DropAction, settle, transition
from apps.notifications.models import Notification, NotificationKind
from apps.orders.models import Order
from apps.reservations.models import (
    PaymentStatus,
    ReservationStatus,
    ReconciliationRecord,
    ReconciliationKind,
)
from apps.reservations.services import reserve, cancel_reservation


@pytest.fixture
def funded_drop(active_drop, consumer, consumer_card, other_consumer, other_card,
                headphones, speaker, gateway):
    """Drop at its target: 400 reserved at 18%, then 600 pushing it to 30%."""
    early = reserve(user=consumer, product=headphones, drop=active_drop)
    late = reserve(user=other_consumer, product=speaker, drop=active_drop)
    active_drop.refresh_from_db()
    return active_drop, early, late


@pytest.mark.django_db
class TestSettlement:
    """Tests for settle() through the complete transition."""

    def test_everyone_pays_the_final_discount(self, funded_drop, marketplace_admin, gateway):
        """The early reserver gets the 30% reached after they joined."""
        drop, early, late = funded_drop
        assert drop.current_discount == Decimal('30.00')

        drop = transition(drop, DropAction.COMPLETE, marketplace_admin)

        early.refresh_from_db()
        late.refresh_from_db()
        assert early.final_price == Decimal('280.00')
        assert late.final_price == Decimal('420.00')
        for reservation in (early, late):
            assert reservation.payment_status == PaymentStatus.CAPTURED
            assert reservation.status == ReservationStatus.COMPLETED
            assert reservation.discount_percentage == Decimal('30.00')
            assert reservation.final_price <= reservation.authorized_amount
            assert reservation.captured_at is not None

        assert drop.status == DropStatus.COMPLETED
        assert gateway.count('capture') == 2

    def test_report_totals(self, funded_drop, marketplace_admin):
        drop, early, late = funded_drop

        transition(drop, DropAction.COMPLETE, marketplace_admin)

        report = SettlementReport.objects.get(drop=drop)
        assert report.status == SettlementStatus.FINISHED
        assert report.discount_percentage == Decimal('30.00')
        assert report.captured_count == 2
        assert report.failed_count == 0
        assert report.total_original == Decimal('1000.00')
        assert report.total_captured == Decimal('700.00')
        assert report.total_savings == Decimal('300.00')
        assert {o['reservation_id'] for o in report.outcomes} == {str(early.id), str(late.id)}

    def test_reservers_are_notified(self, funded_drop, marketplace_admin, consumer):
        drop, early, late = funded_drop

        transition(drop, DropAction.COMPLETE, marketplace_admin)

        notification = Notification.objects.get(user=consumer, kind=NotificationKind.DROP_COMPLETED)
        assert notification.payload['total_charged'] == '280.00'
        assert notification.payload['total_savings'] == '120.00'
        assert Notification.objects.filter(kind=NotificationKind.DROP_COMPLETED).count() == 2

    def test_settling_twice_captures_once(self, funded_drop, marketplace_admin, gateway):
        drop, early, late = funded_drop
        transition(drop, DropAction.COMPLETE, marketplace_admin)

        report = settle(drop, gateway=gateway)

        assert report.is_finished
        assert gateway.count('capture') == 2
        assert SettlementReport.objects.filter(drop=drop).count() == 1
        assert Notification.objects.filter(kind=NotificationKind.DROP_COMPLETED).count() == 2

    def test_cancelled_reservation_is_not_captured(
        self, active_drop, consumer, consumer_card, headphones, speaker, marketplace_admin, gateway
    ):
        kept = reserve(user=consumer, product=speaker, drop=active_drop)
        dropped = reserve(user=consumer, product=headphones, drop=active_drop)
        cancel_reservation(reservation=dropped, user=consumer)

        transition(active_drop, DropAction.COMPLETE, marketplace_admin)

        kept.refresh_from_db()
        dropped.refresh_from_db()
        assert kept.payment_status == PaymentStatus.CAPTURED
        assert dropped.payment_status == PaymentStatus.REFUNDED
        assert dropped.final_price is None
        assert gateway.count('capture') == 1

    def test_capture_failure_is_recorded(
        self, active_drop, consumer, consumer_card, other_consumer, make_payment_method,
        headphones, speaker, marketplace_admin, gateway
    ):
        make_payment_method(other_consumer, ref='pm_sim_captureFails')
        ok = reserve(user=consumer, product=headphones, drop=active_drop)
        bad = reserve(user=other_consumer, product=speaker, drop=active_drop)

        drop = transition(active_drop, DropAction.COMPLETE, marketplace_admin)

        ok.refresh_from_db()
        bad.refresh_from_db()
        assert ok.payment_status == PaymentStatus.CAPTURED
        assert bad.payment_status == PaymentStatus.FAILED
        assert bad.status == ReservationStatus.CANCELLED
        assert drop.status == DropStatus.COMPLETED

        record = ReconciliationRecord.objects.get(reservation=bad)
        assert record.kind == ReconciliationKind.CAPTURE_FAILED
        assert record.amount == Decimal('420.00')
        assert record.reason == 'insufficient_funds'
        assert not record.is_resolved

        report = drop.settlement_report
        assert report.captured_count == 1
        assert report.failed_count == 1
        assert report.total_captured == Decimal('280.00')
        assert Notification.objects.filter(
            user=other_consumer, kind=NotificationKind.CAPTURE_FAILED
        ).exists()

    def test_unexpected_processor_error_fails_one_capture_only(
        self, funded_drop, marketplace_admin, gateway
    ):
        drop, early, late = funded_drop
        real_capture = gateway.capture

        def flaky_capture(hold_id, amount, *, idempotency_key):
            if hold_id == early.hold_id:
                raise TimeoutError('processor timed out')
            return real_capture(hold_id, amount, idempotency_key=idempotency_key)

        with patch.object(gateway, 'capture', side_effect=flaky_capture):
            drop = transition(drop, DropAction.COMPLETE, marketplace_admin)

        early.refresh_from_db()
        late.refresh_from_db()
        assert early.payment_status == PaymentStatus.FAILED
        assert late.payment_status == PaymentStatus.CAPTURED
        assert drop.status == DropStatus.COMPLETED

        record = ReconciliationRecord.objects.get(reservation=early)
        assert record.kind == ReconciliationKind.CAPTURE_FAILED
        assert record.reason == 'processing_error'
        assert 'processor timed out' in record.message

        report = drop.settlement_report
        assert report.is_finished
        assert report.captured_count == 1
        assert report.failed_count == 1

    def test_settlement_writes_orders(self, funded_drop, marketplace_admin, supplier, pickup_point):
        drop, early, late = funded_drop

        transition(drop, DropAction.COMPLETE, marketplace_admin)

        order = Order.objects.get(drop=drop)
        assert order.supplier == supplier
        assert order.pickup_point == pickup_point
        assert order.total_value == Decimal('700.00')
        assert order.commission_amount == Decimal('35.00')
        assert order.items.count() == 2

    def test_open_drop_cannot_settle(self, active_drop, gateway):
        with pytest.raises(InvalidTransitionError):
            settle(active_drop, gateway=gateway)

        assert not SettlementReport.objects.filter(drop=active_drop).exists()

    def test_interrupted_settlement_resumes_at_frozen_discount(
        self, active_drop, consumer, consumer_card, headphones, speaker, gateway
    ):
        first = reserve(user=consumer, product=headphones, drop=active_drop)
        second = reserve(user=consumer, product=speaker, drop=active_drop)
        now = timezone.now()
        Drop.objects.filter(id=active_drop.id).update(closing_started_at=now)
        # A run that froze 18% and died before capturing anything
        SettlementReport.objects.create(
            drop=active_drop,
            discount_percentage=Decimal('18.00'),
            started_at=now,
        )

        report = settle(active_drop, gateway=gateway)

        first.refresh_from_db()
        second.refresh_from_db()
        assert report.is_finished
        assert report.discount_percentage == Decimal('18.00')
        assert first.final_price == Decimal('328.00')
        assert second.final_price == Decimal('492.00')

        active_drop.refresh_from_db()
        assert active_drop.status == DropStatus.COMPLETED
