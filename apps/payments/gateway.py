"""
Payment Gateway Module
======================

Two-phase card payments for drop reservations: a hold for the full
original price when the user reserves, a capture for the discounted price
when the drop settles, and a release when the reservation is cancelled.

Classes:
    PaymentGateway: Interface every processor adapter implements.
    StripeGateway: Manual-capture PaymentIntents through the Stripe SDK.
    SimulatedGateway: In-process processor keyed on Stripe test tokens,
        used when no Stripe key is configured and in tests.

All three operations take an idempotency key, so a retried request never
produces a second hold, capture or release at the processor.

Example:
    Holding and capturing a reservation::

        from apps.payments.gateway import get_gateway

        gateway = get_gateway()
        hold_id = gateway.authorize(
            Decimal('400.00'), 'pm_card_visa',
            idempotency_key=f'reserve-{reservation_id}',
        )
        gateway.capture(hold_id, Decimal('280.00'), idempotency_key=f'capture-{reservation_id}')
"""

import logging
import threading
import uuid
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from functools import lru_cache

import stripe
from django.conf import settings
from django.utils.module_loading import import_string

from apps.drops.exceptions import (
    DeclineReason,
    PaymentDeclinedError,
    CaptureFailedError,
    ReleaseFailedError,
)

logger = logging.getLogger(__name__)


def to_minor_units(amount):
    """Convert a Decimal amount to integer cents."""
    return int((Decimal(amount) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


class PaymentGateway:
    """Interface of the external payment processor."""

    def authorize(self, amount, payment_method_ref, *, idempotency_key, customer_ref=None):
        """
        Place a hold for ``amount`` and return the processor hold id.

        ``customer_ref`` is the processor customer a saved card is attached
        to; off-session holds on such cards must name it.
        """
        raise NotImplementedError

    def capture(self, hold_id, amount, *, idempotency_key):
        """Capture ``amount`` (at most the held amount) against a hold."""
        raise NotImplementedError

    def release(self, hold_id, *, idempotency_key):
        """Release a hold without charging it."""
        raise NotImplementedError


class StripeGateway(PaymentGateway):
    """
    Stripe adapter using PaymentIntents with ``capture_method='manual'``.

    Network timeouts are bounded by ``PAYMENTS['TIMEOUT_SECONDS']``; a
    timeout or connection error is reported as ``processing_error`` and is
    never treated as a successful hold or capture.
    """

    ERROR_CODES = {
        'insufficient_funds': DeclineReason.INSUFFICIENT_FUNDS,
        'generic_decline': DeclineReason.GENERIC_DECLINE,
        'card_declined': DeclineReason.GENERIC_DECLINE,
        'stolen_card': DeclineReason.STOLEN_CARD,
        'lost_card': DeclineReason.LOST_CARD,
        'expired_card': DeclineReason.EXPIRED_CARD,
        'incorrect_cvc': DeclineReason.INCORRECT_CVC,
        'processing_error': DeclineReason.PROCESSING_ERROR,
        'authentication_required': DeclineReason.REQUIRES_3DS,
    }

    def __init__(self, api_key=None, currency=None, timeout=None):
        config = settings.PAYMENTS
        self.currency = currency or config['CURRENCY']

        stripe.api_key = api_key or config['STRIPE_SECRET_KEY']
        stripe.max_network_retries = config['MAX_NETWORK_RETRIES']
        stripe.default_http_client = stripe.new_default_http_client(
            timeout=timeout or config['TIMEOUT_SECONDS']
        )

    def authorize(self, amount, payment_method_ref, *, idempotency_key, customer_ref=None):
        params = {
            'amount': to_minor_units(amount),
            'currency': self.currency,
            'payment_method': payment_method_ref,
            'capture_method': 'manual',
            'confirm': True,
            'off_session': True,
        }
        if customer_ref:
            params['customer'] = customer_ref

        try:
            intent = stripe.PaymentIntent.create(**params, idempotency_key=idempotency_key)
        except stripe.CardError as e:
            reason = self._reason_for(e)
            logger.info("Authorization declined (%s) for key %s", reason, idempotency_key)
            raise PaymentDeclinedError(e.user_message or str(e), reason=reason)
        except stripe.APIConnectionError as e:
            logger.warning("Authorization timed out for key %s: %s", idempotency_key, e)
            raise PaymentDeclinedError('Payment processor unreachable')
        except stripe.StripeError as e:
            logger.error("Authorization failed for key %s: %s", idempotency_key, e)
            raise PaymentDeclinedError(str(e))

        if intent.status == 'requires_action':
            # Drops cannot wait for an interactive 3DS challenge
            self._cancel_quietly(intent.id, idempotency_key)
            raise PaymentDeclinedError('Card requires authentication', reason=DeclineReason.REQUIRES_3DS)
        if intent.status != 'requires_capture':
            self._cancel_quietly(intent.id, idempotency_key)
            raise PaymentDeclinedError(
                f'Unexpected PaymentIntent status {intent.status}',
                reason=DeclineReason.GENERIC_DECLINE,
            )
        return intent.id

    def capture(self, hold_id, amount, *, idempotency_key):
        try:
            stripe.PaymentIntent.capture(
                hold_id,
                amount_to_capture=to_minor_units(amount),
                idempotency_key=idempotency_key,
            )
        except stripe.CardError as e:
            raise CaptureFailedError(e.user_message or str(e), reason=self._reason_for(e))
        except stripe.APIConnectionError as e:
            logger.warning("Capture timed out for hold %s: %s", hold_id, e)
            raise CaptureFailedError('Payment processor unreachable')
        except stripe.StripeError as e:
            raise CaptureFailedError(str(e))

    def release(self, hold_id, *, idempotency_key):
        try:
            stripe.PaymentIntent.cancel(hold_id, idempotency_key=idempotency_key)
        except stripe.StripeError as e:
            raise ReleaseFailedError(str(e))

    def _reason_for(self, error):
        decline_code = getattr(getattr(error, 'error', None), 'decline_code', None)
        for candidate in (decline_code, error.code):
            if candidate in self.ERROR_CODES:
                return self.ERROR_CODES[candidate]
        return DeclineReason.GENERIC_DECLINE

    def _cancel_quietly(self, intent_id, idempotency_key):
        try:
            stripe.PaymentIntent.cancel(intent_id, idempotency_key=f'{idempotency_key}-cancel')
        except stripe.StripeError as e:
            logger.error("Could not cancel PaymentIntent %s: %s", intent_id, e)


# =============================================================================
# Simulation
# =============================================================================

# Stripe test payment methods and the outcome they simulate
TEST_PAYMENT_METHODS = {
    'pm_card_chargeDeclined': DeclineReason.GENERIC_DECLINE,
    'pm_card_chargeDeclinedInsufficientFunds': DeclineReason.INSUFFICIENT_FUNDS,
    'pm_card_chargeDeclinedStolenCard': DeclineReason.STOLEN_CARD,
    'pm_card_chargeDeclinedLostCard': DeclineReason.LOST_CARD,
    'pm_card_chargeDeclinedExpiredCard': DeclineReason.EXPIRED_CARD,
    'pm_card_chargeDeclinedIncorrectCvc': DeclineReason.INCORRECT_CVC,
    'pm_card_chargeDeclinedProcessingError': DeclineReason.PROCESSING_ERROR,
    'pm_card_authenticationRequired': DeclineReason.REQUIRES_3DS,
}

# Authorizes fine but the later capture is refused
CAPTURE_FAILURE_METHODS = {
    'pm_sim_captureFails': DeclineReason.INSUFFICIENT_FUNDS,
}


@dataclass
class SimulatedHold:
    amount: Decimal
    payment_method_ref: str
    customer_ref: str = None
    captured_amount: Decimal = None
    released: bool = False


class SimulatedGateway(PaymentGateway):
    """
    Processor double that behaves like Stripe test mode.

    Payment method refs listed in ``TEST_PAYMENT_METHODS`` decline with the
    matching reason; any other ref authorizes. Replayed idempotency keys
    return the first result without executing again (a replayed declined
    authorization raises the same decline), and ``operations`` records only
    the calls that really executed.
    """

    def __init__(self):
        self.holds = {}
        self.operations = []
        self._results = {}
        self._lock = threading.Lock()

    def authorize(self, amount, payment_method_ref, *, idempotency_key, customer_ref=None):
        with self._lock:
            if idempotency_key in self._results:
                result = self._results[idempotency_key]
                if isinstance(result, PaymentDeclinedError):
                    raise result
                return result

            reason = TEST_PAYMENT_METHODS.get(payment_method_ref)
            if reason:
                self.operations.append(('authorize_declined', payment_method_ref, amount))
                error = PaymentDeclinedError(f'Simulated decline: {reason}', reason=reason)
                self._results[idempotency_key] = error
                raise error

            hold_id = f'sim_hold_{uuid.uuid4().hex[:16]}'
            self.holds[hold_id] = SimulatedHold(
                amount=Decimal(amount),
                payment_method_ref=payment_method_ref,
                customer_ref=customer_ref,
            )
            self.operations.append(('authorize', hold_id, amount))
            self._results[idempotency_key] = hold_id
            return hold_id

    def capture(self, hold_id, amount, *, idempotency_key):
        with self._lock:
            if idempotency_key in self._results:
                return self._results[idempotency_key]

            hold = self.holds.get(hold_id)
            if hold is None or hold.released:
                raise CaptureFailedError(f'No open hold {hold_id}')
            if Decimal(amount) > hold.amount:
                raise CaptureFailedError(
                    f'Capture {amount} exceeds held {hold.amount}',
                    reason=DeclineReason.PROCESSING_ERROR,
                )
            failure = CAPTURE_FAILURE_METHODS.get(hold.payment_method_ref)
            if failure:
                self.operations.append(('capture_failed', hold_id, amount))
                raise CaptureFailedError(f'Simulated capture failure: {failure}', reason=failure)

            hold.captured_amount = Decimal(amount)
            self.operations.append(('capture', hold_id, amount))
            self._results[idempotency_key] = hold_id
            return hold_id

    def release(self, hold_id, *, idempotency_key):
        with self._lock:
            if idempotency_key in self._results:
                return self._results[idempotency_key]

            hold = self.holds.get(hold_id)
            if hold is None or hold.captured_amount is not None:
                raise ReleaseFailedError(f'No releasable hold {hold_id}')

            hold.released = True
            self.operations.append(('release', hold_id, hold.amount))
            self._results[idempotency_key] = hold_id
            return hold_id

    def count(self, operation):
        return sum(1 for op in self.operations if op[0] == operation)


@lru_cache(maxsize=None)
def get_gateway():
    """Return the process-wide gateway configured by ``PAYMENTS['GATEWAY']``."""
    gateway_class = import_string(settings.PAYMENTS['GATEWAY'])
    logger.info("Using payment gateway %s", gateway_class.__name__)
    return gateway_class()
