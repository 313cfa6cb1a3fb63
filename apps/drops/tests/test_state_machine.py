import pytest
from datetime import timedelta
from decimal import Decimal
from django.utils import timezone
from apps.catalog.models import PickupPoint, SupplierList
from apps.drops.exceptions import InvalidInputError, InvalidTransitionError, ActorNotAllowedError
from apps.drops.models import Drop, DropStatus
from apps.drops.services import (
    DropAction,
    SCHEDULER,
    allowed_actions,
    create_drop,
    transition,
)
from apps.notifications.models import Notification, NotificationKind
from apps.reservations.models import PaymentStatus
from apps.reservations.services import reserve


# =============================================================================
# Drop Creation Tests
# =============================================================================

@pytest.mark.django_db
class TestCreateDrop:
    """Tests for create_drop()"""

    def test_create_defaults(self, pickup_point, supplier_list, marketplace_admin):
        drop = create_drop(
            name='  Spring Drop ',
            pickup_point=pickup_point,
            supplier_list=supplier_list,
            created_by=marketplace_admin,
        )

        assert drop.name == 'Spring Drop'
        assert drop.status == DropStatus.PENDING_APPROVAL
        assert drop.target_value == Decimal('1000.00')
        assert drop.current_value == Decimal('0.00')
        assert drop.current_discount == Decimal('10.00')
        assert drop.start_time is None

    def test_non_positive_target_rejected(self, pickup_point, supplier_list):
        with pytest.raises(InvalidInputError):
            create_drop(
                name='Broken',
                pickup_point=pickup_point,
                supplier_list=supplier_list,
                target_value=Decimal('0'),
            )

    def test_discount_above_hundred_rejected(self, pickup_point):
        supplier_list = SupplierList.objects.create(
            name='Impossible',
            min_discount=Decimal('10'),
            max_discount=Decimal('120'),
            max_reservation_value=Decimal('500'),
        )

        with pytest.raises(InvalidInputError):
            create_drop(name='Broken', pickup_point=pickup_point, supplier_list=supplier_list)

        assert not Drop.objects.exists()

    def test_inactive_pickup_point_rejected(self, supplier_list):
        closed = PickupPoint.objects.create(name='Closed', city='Ostrava', is_active=False)

        with pytest.raises(InvalidInputError):
            create_drop(name='Nowhere', pickup_point=closed, supplier_list=supplier_list)


# =============================================================================
# Transition Tests
# =============================================================================

@pytest.mark.django_db
class TestTransitions:
    """Tests for transition()"""

    def test_approve(self, pending_drop, marketplace_admin):
        drop = transition(pending_drop, DropAction.APPROVE, marketplace_admin)

        assert drop.status == DropStatus.APPROVED
        assert drop.approved_at is not None

    def test_consumer_cannot_approve(self, pending_drop, consumer):
        with pytest.raises(ActorNotAllowedError):
            transition(pending_drop, DropAction.APPROVE, consumer)

        pending_drop.refresh_from_db()
        assert pending_drop.status == DropStatus.PENDING_APPROVAL

    def test_activate_opens_window_and_ledger(self, pending_drop, marketplace_admin, settings):
        now = timezone.now()
        drop = transition(pending_drop, DropAction.APPROVE, marketplace_admin)
        drop = transition(drop, DropAction.ACTIVATE, marketplace_admin, now=now)

        assert drop.status == DropStatus.ACTIVE
        assert drop.start_time == now
        assert drop.end_time == now + timedelta(days=settings.DROPS['DURATION_DAYS'])
        assert drop.current_discount == Decimal('10.00')
        assert drop.accepts_reservations

    def test_scheduler_may_activate(self, pending_drop, marketplace_admin):
        drop = transition(pending_drop, DropAction.APPROVE, marketplace_admin)
        drop = transition(drop, DropAction.ACTIVATE, SCHEDULER)

        assert drop.status == DropStatus.ACTIVE

    def test_cannot_skip_approval(self, pending_drop, marketplace_admin):
        with pytest.raises(InvalidTransitionError):
            transition(pending_drop, DropAction.ACTIVATE, marketplace_admin)

    def test_pause_and_resume(self, active_drop, marketplace_admin):
        drop = transition(active_drop, DropAction.DEACTIVATE, marketplace_admin)
        assert drop.status == DropStatus.INACTIVE
        assert drop.deactivated_at is not None
        assert not drop.accepts_reservations

        drop = transition(drop, DropAction.REACTIVATE, marketplace_admin)
        assert drop.status == DropStatus.ACTIVE

    def test_only_scheduler_expires(self, active_drop, marketplace_admin):
        with pytest.raises(ActorNotAllowedError):
            transition(active_drop, DropAction.EXPIRE, marketplace_admin)

    def test_scheduler_cannot_complete_before_end_time(self, active_drop):
        with pytest.raises(InvalidTransitionError):
            transition(active_drop, DropAction.COMPLETE, SCHEDULER)

        active_drop.refresh_from_db()
        assert active_drop.closing_started_at is None

    def test_scheduler_expires_after_end_time(self, active_drop):
        drop = transition(
            active_drop, DropAction.EXPIRE, SCHEDULER,
            now=active_drop.end_time + timedelta(minutes=1),
        )

        assert drop.status == DropStatus.EXPIRED
        assert drop.closed_at is not None

    def test_admin_completes_early(self, active_drop, marketplace_admin):
        drop = transition(active_drop, DropAction.COMPLETE, marketplace_admin)

        assert drop.status == DropStatus.COMPLETED
        assert drop.closed_at is not None
        assert drop.settlement_report.is_finished

    def test_terminal_states_are_final(self, active_drop, marketplace_admin):
        drop = transition(active_drop, DropAction.CANCEL, marketplace_admin)

        for action in [DropAction.CANCEL, DropAction.REACTIVATE, DropAction.COMPLETE]:
            with pytest.raises(InvalidTransitionError):
                transition(drop, action, marketplace_admin)

    def test_closing_drop_only_completes(self, active_drop, marketplace_admin):
        Drop.objects.filter(id=active_drop.id).update(closing_started_at=timezone.now())

        for action in [DropAction.DEACTIVATE, DropAction.CANCEL]:
            with pytest.raises(InvalidTransitionError):
                transition(active_drop, action, marketplace_admin)

        drop = transition(active_drop, DropAction.COMPLETE, marketplace_admin)
        assert drop.status == DropStatus.COMPLETED

    def test_unknown_action(self, active_drop, marketplace_admin):
        with pytest.raises(InvalidTransitionError):
            transition(active_drop, 'explode', marketplace_admin)


@pytest.mark.django_db
class TestCancelAndExpireReleaseHolds:
    """Drops ending without settlement give every hold back."""

    def test_cancel_releases_all_holds(
        self, active_drop, marketplace_admin, consumer, consumer_card,
        other_consumer, other_card, headphones, speaker, gateway
    ):
        first = reserve(user=consumer, product=headphones, drop=active_drop)
        second = reserve(user=other_consumer, product=speaker, drop=active_drop)

        drop = transition(active_drop, DropAction.CANCEL, marketplace_admin)

        assert drop.status == DropStatus.CANCELLED
        for reservation in (first, second):
            reservation.refresh_from_db()
            assert reservation.payment_status == PaymentStatus.REFUNDED
            assert reservation.cancelled_at is not None
        assert gateway.count('release') == 2
        assert gateway.count('capture') == 0

        headphones.refresh_from_db()
        assert headphones.stock == 10
        assert Notification.objects.filter(kind=NotificationKind.DROP_CANCELLED).count() == 2

    def test_expire_notifies_reservers_once(
        self, active_drop, consumer, consumer_card, headphones, gateway
    ):
        reserve(user=consumer, product=headphones, drop=active_drop)
        reserve(user=consumer, product=headphones, drop=active_drop)

        transition(
            active_drop, DropAction.EXPIRE, SCHEDULER,
            now=active_drop.end_time + timedelta(minutes=1),
        )

        assert gateway.count('release') == 2
        assert Notification.objects.filter(
            user=consumer, kind=NotificationKind.DROP_EXPIRED
        ).count() == 1


@pytest.mark.django_db
class TestAllowedActions:
    """Tests for allowed_actions()"""

    def test_admin_on_pending(self, pending_drop, marketplace_admin):
        actions = allowed_actions(pending_drop, marketplace_admin)
        assert set(actions) == {DropAction.APPROVE, DropAction.CANCEL}

    def test_scheduler_on_active(self, active_drop):
        actions = allowed_actions(active_drop, SCHEDULER)
        assert set(actions) == {DropAction.COMPLETE, DropAction.EXPIRE}

    def test_consumer_has_none(self, active_drop, consumer):
        assert allowed_actions(active_drop, consumer) == []

    def test_closing_drop(self, active_drop, marketplace_admin):
        Drop.objects.filter(id=active_drop.id).update(closing_started_at=timezone.now())
        active_drop.refresh_from_db()

        assert allowed_actions(active_drop, marketplace_admin) == [DropAction.COMPLETE]
