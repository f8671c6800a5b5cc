"""
Temporal Access Gate

Decides what a guest may see or do on a reservation at a given instant.
All functions are pure over the reservation's status, check-in date and
guest id (plus the check-out date for late check-out requests), and are
evaluated on every request; nothing is cached.
"""

from datetime import datetime, timedelta

from django.conf import settings
from django.utils import timezone

from apps.bookings.domain.entities import BookingStatus, check_in_instant, check_out_instant, effective_status

DEFAULT_UNLOCK_HOURS = 48

# Late check-out requests are taken between these many hours before the
# check-out instant, both bounds exclusive.
LATE_CHECKOUT_MIN_HOURS = 12
LATE_CHECKOUT_MAX_HOURS = 48


def unlock_hours() -> int:
    return settings.BOOKING.get('INSTRUCTIONS_UNLOCK_HOURS', DEFAULT_UNLOCK_HOURS)


def hours_until_check_in(booking, now: datetime | None = None) -> float:
    """Hours from ``now`` to the check-in instant; negative once it has passed"""
    now = now or timezone.now()
    return (check_in_instant(booking.check_in) - now).total_seconds() / 3600


def instructions_unlock_at(booking) -> datetime:
    return check_in_instant(booking.check_in) - timedelta(hours=unlock_hours())


def can_view_instructions(booking, now: datetime | None = None) -> bool:
    """
    Check-in instructions are released inside the unlock window before
    check-in, or whenever the stay is under way. Finished and cancelled
    reservations never see them.
    """
    now = now or timezone.now()
    status = effective_status(booking.status, booking.check_in, now)
    if status.is_terminal:
        return False
    if status is BookingStatus.ACTIVE:
        return True
    return hours_until_check_in(booking, now) <= unlock_hours()


def can_submit_checkout(booking, actor_id, now: datetime | None = None) -> bool:
    now = now or timezone.now()
    if booking.guest_id != actor_id:
        return False
    return effective_status(booking.status, booking.check_in, now) is BookingStatus.ACTIVE


def hours_until_check_out(booking, now: datetime | None = None) -> float:
    now = now or timezone.now()
    return (check_out_instant(booking.check_out) - now).total_seconds() / 3600


def can_request_late_checkout(booking, actor_id, now: datetime | None = None) -> bool:
    """
    The guest of a confirmed or running stay may ask to leave late, but not
    too early in the trip and not at the last minute.
    """
    now = now or timezone.now()
    if booking.guest_id != actor_id:
        return False
    status = effective_status(booking.status, booking.check_in, now)
    if status not in (BookingStatus.CONFIRMED, BookingStatus.ACTIVE):
        return False
    return LATE_CHECKOUT_MIN_HOURS < hours_until_check_out(booking, now) < LATE_CHECKOUT_MAX_HOURS
