"""
Notification dispatcher.

``notify`` is fire-and-forget: it records a Notification for the user and
returns. Delivery (push, email) reads those rows elsewhere. A failure to
record is logged and swallowed so it can never undo a reservation or a
settlement that already happened.
"""

import json
import logging

from django.core.serializers.json import DjangoJSONEncoder
from django.db import DatabaseError, transaction

from apps.notifications.models import Notification, NotificationKind

logger = logging.getLogger(__name__)


TITLES = {
    NotificationKind.RESERVATION_CONFIRMED: 'Reservation confirmed',
    NotificationKind.DISCOUNT_INCREASED: 'The discount just went up',
    NotificationKind.DROP_COMPLETED: 'Your drop has closed',
    NotificationKind.CAPTURE_FAILED: 'We could not charge your card',
    NotificationKind.RESERVATION_REFUNDED: 'Reservation cancelled',
    NotificationKind.DROP_CANCELLED: 'Drop cancelled',
    NotificationKind.DROP_EXPIRED: 'Drop expired',
    NotificationKind.ACCOUNT_SUSPENDED: 'Account suspended',
}


def _json_safe(payload):
    # Decimal and UUID values go through Django's encoder as strings
    return json.loads(json.dumps(payload, cls=DjangoJSONEncoder))


def notify(user_id, kind, payload=None):
    """
    Record a notification for ``user_id``.

    Returns the Notification, or None if it could not be recorded.
    """
    if kind not in NotificationKind.values:
        logger.error("Unknown notification kind %r for user %s", kind, user_id)
        return None

    try:
        with transaction.atomic():
            notification = Notification.objects.create(
                user_id=user_id,
                kind=kind,
                title=TITLES[kind],
                payload=_json_safe(payload or {}),
            )
    except (DatabaseError, TypeError, ValueError) as e:
        logger.error("Could not record %s notification for user %s: %s", kind, user_id, e)
        return None

    logger.debug("Notified user %s: %s", user_id, kind)
    return notification


def notify_many(user_ids, kind, payload=None):
    """Send the same notification once to each distinct user."""
    sent = 0
    for user_id in dict.fromkeys(user_ids):
        if notify(user_id, kind, payload) is not None:
            sent += 1
    return sent
