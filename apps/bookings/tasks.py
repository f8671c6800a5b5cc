"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from shared.application.message_bus import message_bus

from .application.command_handlers import ActivateBookingCommand
from .domain.entities import check_in_instant
from .models import Booking

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="bookings.activate_due_bookings")
def activate_due_bookings() -> dict[str, int]:
    """
    Persist the ``active`` status of confirmed stays whose check-in has passed.

    Reads never depend on this task: the effective status is derived on
    every request. The task only brings the stored column in line so that
    filters and reports see the same value.

    Runs hourly.

    Returns:
        dict: {"activated": number of bookings switched to active}
    """
    now = timezone.now()
    activated_count = 0

    due = Booking.objects.filter(
        status=Booking.Status.CONFIRMED,
        check_in__lte=timezone.localdate(now),
    ).values_list("pk", "check_in")

    for booking_id, check_in in due:
        if check_in_instant(check_in) > now:
            continue
        try:
            if message_bus.handle_command(ActivateBookingCommand(booking_id=booking_id, now=now)):
                activated_count += 1
        except Exception as e:
            logger.error(f"Error activating booking {booking_id}: {e}", exc_info=True)

    if activated_count > 0:
        logger.info(f"Activated {activated_count} bookings")

    return {"activated": activated_count}
