"""
Domain exceptions for the drop lifecycle.

This module defines the exception hierarchy shared by the drops,
reservations, payments and reputation services. Views catch these and
convert them to HTTP responses; services never return error codes.

Categories:
    InvalidInputError: bad input (negative amount, foreign product...)
    StateError: operation illegal in the current status
    ActorNotAllowedError: actor lacks the capability for a transition
    PaymentError: processor declined or failed
    ConcurrencyError: ledger compare-and-set lost the race
    SuspensionError: user blocked by the returns ceiling
"""


class DropsServiceError(Exception):
    """Base exception for all drop lifecycle errors."""
    code = 'drops_error'


class InvalidInputError(DropsServiceError):
    """Raised when service input fails validation."""
    code = 'invalid_input'


# =============================================================================
# State errors (never retried)
# =============================================================================

class StateError(DropsServiceError):
    """Raised when an operation is illegal given the current status."""
    code = 'invalid_state'


class InvalidTransitionError(StateError):
    """Raised when a drop transition is not in the transition table."""
    code = 'invalid_transition'


class DropNotActiveError(StateError):
    """Raised when reserving into a drop that is not accepting reservations."""
    code = 'drop_not_active'


class OutOfStockError(StateError):
    """Raised when the product has no stock left."""
    code = 'out_of_stock'


class ReservationStateError(StateError):
    """Raised when a reservation's payment state forbids the operation."""
    code = 'invalid_reservation_state'


class AlreadyProcessedError(StateError):
    """Raised when an item was already picked up or returned."""
    code = 'already_processed'


class ActorNotAllowedError(DropsServiceError):
    """Raised when the acting user or system lacks the needed capability."""
    code = 'actor_not_allowed'


# =============================================================================
# Payment errors
# =============================================================================

class DeclineReason:
    INSUFFICIENT_FUNDS = 'insufficient_funds'
    GENERIC_DECLINE = 'generic_decline'
    STOLEN_CARD = 'stolen_card'
    LOST_CARD = 'lost_card'
    EXPIRED_CARD = 'expired_card'
    INCORRECT_CVC = 'incorrect_cvc'
    PROCESSING_ERROR = 'processing_error'
    REQUIRES_3DS = 'requires_3ds'
    # Not a processor answer: the user has no card we can hold against
    NO_PAYMENT_METHOD = 'no_payment_method'

    # The card itself was refused: asking for another card makes sense
    CARD_DECLINES = frozenset({
        INSUFFICIENT_FUNDS,
        GENERIC_DECLINE,
        STOLEN_CARD,
        LOST_CARD,
        EXPIRED_CARD,
        INCORRECT_CVC,
        REQUIRES_3DS,
    })


class PaymentError(DropsServiceError):
    """Base exception for payment processor failures."""
    code = 'payment_error'

    def __init__(self, message='', reason=DeclineReason.PROCESSING_ERROR):
        super().__init__(message or reason)
        self.reason = reason

    @property
    def is_retryable_with_other_method(self):
        """True when the user should be prompted for a different card."""
        return self.reason in DeclineReason.CARD_DECLINES


class PaymentDeclinedError(PaymentError):
    """Raised when the processor rejects an authorization hold."""
    code = 'payment_declined'


class PaymentMethodUnavailableError(PaymentError):
    """Raised when the user has no usable, non-expired payment method."""
    code = 'payment_method_unavailable'

    def __init__(self, message='', reason=DeclineReason.NO_PAYMENT_METHOD):
        super().__init__(message, reason=reason)

    @property
    def is_retryable_with_other_method(self):
        return True


class CaptureFailedError(PaymentError):
    """Raised when capturing an existing hold fails."""
    code = 'capture_failed'


class ReleaseFailedError(PaymentError):
    """Raised when releasing a hold fails."""
    code = 'release_failed'


# =============================================================================
# Concurrency and suspension
# =============================================================================

class ConcurrencyError(DropsServiceError):
    """Raised when a ledger conditional update lost the race."""
    code = 'concurrent_update'


class SuspensionError(DropsServiceError):
    """Base exception for reputation-based blocks."""
    code = 'suspended'


class UserSuspendedError(SuspensionError):
    """Raised when a suspended user tries to reserve."""
    code = 'user_suspended'
