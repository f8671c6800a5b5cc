"""
Booking Domain Entities

Reservation lifecycle rules, kept free of the ORM so they can be checked
with plain values:
- BookingStatus: FSM states for the booking lifecycle
- CancellationSource: who cancelled
- CancellationPolicy: refund tiers a listing applies to guest cancellations
- effective_status: the stored status as seen at a given instant
- check_transition: guard for every state change
"""

import math
from datetime import date, datetime, time, tzinfo
from enum import Enum

from django.utils import timezone

from apps.bookings.domain.exceptions import InvalidTransition


class BookingStatus(Enum):
    """
    Booking Status Finite State Machine

    State transitions:
    - PENDING -> CONFIRMED (host accepted, or instant-book listing)
    - PENDING -> CANCELLED (guest or host cancelled)
    - CONFIRMED -> ACTIVE (check-in instant reached)
    - CONFIRMED -> CANCELLED (guest or host cancelled before check-in)
    - ACTIVE -> COMPLETED (guest submitted the check-out report)
    """
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    ACTIVE = 'active'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def holds_dates(self) -> bool:
        """Whether a reservation in this state occupies the listing calendar"""
        return self in LIVE_STATUSES


class CancellationSource(Enum):
    GUEST = 'guest'
    HOST = 'host'


class CancellationPolicy(Enum):
    """
    Refund tiers applied when the guest cancels

    Each tier is (minimum whole days before check-in, refund percentage),
    most generous first. Below the last tier nothing is refunded.
    """
    FLEXIBLE = 'flexible'
    MODERATE = 'moderate'
    STRICT = 'strict'

    @property
    def tiers(self) -> tuple:
        return REFUND_TIERS[self]


REFUND_TIERS = {
    CancellationPolicy.FLEXIBLE: ((1, 100),),
    CancellationPolicy.MODERATE: ((5, 100), (1, 50)),
    CancellationPolicy.STRICT: ((14, 100), (7, 50)),
}


TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})

LIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.ACTIVE})

TRANSITIONS = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.ACTIVE, BookingStatus.CANCELLED}),
    BookingStatus.ACTIVE: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


def check_in_instant(check_in: date, tz: tzinfo | None = None) -> datetime:
    """Midnight at the start of the check-in date in the project time zone"""
    tz = tz or timezone.get_default_timezone()
    return datetime.combine(check_in, time.min).replace(tzinfo=tz)


def effective_status(status, check_in: date, now: datetime) -> BookingStatus:
    """
    Status of a reservation as observed at ``now``

    A confirmed reservation becomes active at its check-in instant even if
    the periodic activation task has not materialised it yet. Every reader
    of the lifecycle goes through this function.
    """
    status = BookingStatus(status)
    if status is BookingStatus.CONFIRMED and now >= check_in_instant(check_in):
        return BookingStatus.ACTIVE
    return status


def can_transition(current, target) -> bool:
    return BookingStatus(target) in TRANSITIONS[BookingStatus(current)]


def check_transition(current, target) -> None:
    """Raise InvalidTransition unless ``current -> target`` is allowed"""
    current = BookingStatus(current)
    target = BookingStatus(target)
    if target not in TRANSITIONS[current]:
        raise InvalidTransition(
            f"Cannot move a reservation from {current.value} to {target.value}.",
            current_status=current.value,
        )


def days_until_check_in(check_in: date, now: datetime) -> int:
    """Whole days left before the check-in instant, any part of a day counting as one"""
    seconds = (check_in_instant(check_in) - now).total_seconds()
    return math.ceil(seconds / 86400)


def refund_percentage(policy, check_in: date, now: datetime) -> int:
    days = days_until_check_in(check_in, now)
    for min_days, percentage in CancellationPolicy(policy).tiers:
        if days >= min_days:
            return percentage
    return 0


def check_out_instant(check_out: date, tz: tzinfo | None = None) -> datetime:
    """Midnight at the start of the check-out date, the same convention as check-in"""
    return check_in_instant(check_out, tz)
