"""
Drops app services layer.

Services contain the drop lifecycle business logic: pricing, the ledger,
the state machine, settlement and the scheduler. All state-changing
operations use transactions and row locks or compare-and-set updates.
"""

from apps.drops.exceptions import (
    DropsServiceError,
    InvalidInputError,
    StateError,
    InvalidTransitionError,
    DropNotActiveError,
    ActorNotAllowedError,
    ConcurrencyError,
)

from .pricing import (
    discount_for_value,
    discount_for_drop,
    final_price_for,
)

from .ledger import (
    LedgerUpdate,
    apply_reservation,
    apply_reservation_with_retry,
)

from .settlement import (
    settle,
)

from .state_machine import (
    DropAction,
    SCHEDULER,
    allowed_actions,
    create_drop,
    transition,
)

from .scheduler import (
    ScheduledClose,
    get_due_drops,
    process_due_drops,
)

from .statistics import (
    get_drop_summary,
)


__all__ = [
    # Exceptions
    'DropsServiceError',
    'InvalidInputError',
    'StateError',
    'InvalidTransitionError',
    'DropNotActiveError',
    'ActorNotAllowedError',
    'ConcurrencyError',

    # Pricing
    'discount_for_value',
    'discount_for_drop',
    'final_price_for',

    # Ledger
    'LedgerUpdate',
    'apply_reservation',
    'apply_reservation_with_retry',

    # Settlement
    'settle',

    # State machine
    'DropAction',
    'SCHEDULER',
    'allowed_actions',
    'create_drop',
    'transition',

    # Scheduler
    'ScheduledClose',
    'get_due_drops',
    'process_due_drops',

    # Statistics
    'get_drop_summary',
]
