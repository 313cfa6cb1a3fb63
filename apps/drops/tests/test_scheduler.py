import pytest
from datetime import timedelta
from io import StringIO
from django.core.management import call_command
from django.utils import timezone
from apps.drops.models import Drop, DropStatus
from apps.drops.services import DropAction, get_due_drops, process_due_drops, transition
from apps.drops.services.scheduler import action_for
from apps.reservations.models import PaymentStatus
from apps.reservations.services import reserve


def _make_due(drop):
    Drop.objects.filter(id=drop.id).update(end_time=timezone.now() - timedelta(minutes=5))
    drop.refresh_from_db()
    return drop


@pytest.mark.django_db
class TestDueDrops:
    """Tests for get_due_drops() and action_for()"""

    def test_not_due_before_end_time(self, active_drop):
        assert list(get_due_drops()) == []

    def test_due_after_end_time(self, active_drop):
        due = get_due_drops(now=active_drop.end_time + timedelta(seconds=1))
        assert list(due) == [active_drop]

    def test_paused_drop_is_not_due(self, active_drop, marketplace_admin):
        transition(active_drop, DropAction.DEACTIVATE, marketplace_admin)

        assert list(get_due_drops(now=active_drop.end_time + timedelta(days=1))) == []

    def test_unfunded_drop_expires(self, active_drop):
        assert action_for(active_drop) == DropAction.EXPIRE

    def test_funded_drop_completes(self, active_drop):
        Drop.objects.filter(id=active_drop.id).update(current_value=500)
        active_drop.refresh_from_db()

        assert action_for(active_drop) == DropAction.COMPLETE

    def test_frozen_drop_completes(self, active_drop):
        Drop.objects.filter(id=active_drop.id).update(closing_started_at=timezone.now())
        active_drop.refresh_from_db()

        assert action_for(active_drop) == DropAction.COMPLETE


@pytest.mark.django_db
class TestProcessDueDrops:
    """Tests for process_due_drops()"""

    def test_funded_drop_is_settled(
        self, active_drop, consumer, consumer_card, speaker, gateway
    ):
        reservation = reserve(user=consumer, product=speaker, drop=active_drop)

        results = process_due_drops(now=active_drop.end_time + timedelta(minutes=1), gateway=gateway)

        assert len(results) == 1
        assert results[0].succeeded
        assert results[0].action == DropAction.COMPLETE

        active_drop.refresh_from_db()
        reservation.refresh_from_db()
        assert active_drop.status == DropStatus.COMPLETED
        assert reservation.payment_status == PaymentStatus.CAPTURED

    def test_unfunded_drop_expires_and_releases(
        self, active_drop, consumer, consumer_card, headphones, gateway
    ):
        reservation = reserve(user=consumer, product=headphones, drop=active_drop)

        results = process_due_drops(now=active_drop.end_time + timedelta(minutes=1), gateway=gateway)

        assert results[0].action == DropAction.EXPIRE
        active_drop.refresh_from_db()
        reservation.refresh_from_db()
        headphones.refresh_from_db()
        assert active_drop.status == DropStatus.EXPIRED
        assert reservation.payment_status == PaymentStatus.REFUNDED
        assert headphones.stock == 10
        assert gateway.count('capture') == 0

    def test_dry_run_changes_nothing(self, active_drop, gateway):
        results = process_due_drops(
            now=active_drop.end_time + timedelta(minutes=1), gateway=gateway, dry_run=True
        )

        assert [r.action for r in results] == [DropAction.EXPIRE]
        active_drop.refresh_from_db()
        assert active_drop.status == DropStatus.ACTIVE

    def test_nothing_due(self, active_drop, gateway):
        assert process_due_drops(gateway=gateway) == []


@pytest.mark.django_db
class TestCloseDueDropsCommand:
    """Tests for manage.py close_due_drops"""

    def test_no_due_drops(self, active_drop, gateway):
        out = StringIO()
        call_command('close_due_drops', stdout=out)

        assert 'No drops are due' in out.getvalue()

    def test_dry_run(self, active_drop, gateway):
        _make_due(active_drop)
        out = StringIO()

        call_command('close_due_drops', '--dry-run', stdout=out)

        output = out.getvalue()
        assert 'Winter Drop' in output
        assert 'expire' in output
        assert '--dry-run' in output
        active_drop.refresh_from_db()
        assert active_drop.status == DropStatus.ACTIVE

    def test_closes_due_drop(self, active_drop, gateway):
        _make_due(active_drop)
        out = StringIO()

        call_command('close_due_drops', stdout=out)

        assert 'Closed 1 drop(s), 0 failed' in out.getvalue()
        active_drop.refresh_from_db()
        assert active_drop.status == DropStatus.EXPIRED
