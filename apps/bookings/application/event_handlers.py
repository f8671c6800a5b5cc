"""
Booking Event Handlers

Subscribers run after the producing transaction has committed. Failures
are logged by the message bus and never undo the state change.
"""

import structlog

from apps.bookings.domain.events import BookingEvent

logger = structlog.get_logger(__name__)


def audit_booking_event(event: BookingEvent) -> None:
    """One structured log line per lifecycle event"""
    logger.info(
        "booking." + event.event_type.removeprefix("Booking").lower(),
        **{key: value for key, value in event.to_dict().items() if key != "event_type"},
    )


def register_handlers(bus) -> None:
    bus.register_event_handler(BookingEvent, audit_booking_event)
