"""Review submission and editing rules."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from django.conf import settings  # type: ignore
from django.db import IntegrityError, transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.domain.entities import BookingStatus
from apps.bookings.domain.exceptions import AlreadyReviewed, EditWindowClosed, InvalidTransition, NotYetEligible

from .models import Review

logger = logging.getLogger(__name__)

DEFAULT_EDIT_HOURS = 48


def submit_review(booking, author, now: datetime | None = None, **fields) -> Review:
    """
    Attach the guest's review to a completed reservation.

    Reservations still in progress are not yet eligible; cancelled ones never
    will be. A second review for the same reservation is rejected.
    """
    now = now or timezone.now()
    status = booking.effective_status(now)
    if status is BookingStatus.CANCELLED:
        raise InvalidTransition("Cancelled reservations cannot be reviewed.", current_status=status.value)
    if status is not BookingStatus.COMPLETED:
        raise NotYetEligible("Reviews open once the stay is completed.")

    if Review.objects.filter(booking=booking).exists():
        raise AlreadyReviewed()

    try:
        with transaction.atomic():
            review = Review.objects.create(
                booking=booking,
                author=author,
                listing_id=booking.listing_id,
                **fields,
            )
    except IntegrityError:
        raise AlreadyReviewed()

    logger.info("Review %s submitted for booking %s", review.pk, booking.pk)
    return review


def edit_window_hours() -> int:
    return settings.BOOKING.get('REVIEW_EDIT_HOURS', DEFAULT_EDIT_HOURS)


def update_review(review: Review, now: datetime | None = None, **fields) -> Review:
    """Amend a review while its edit window is open. Only the given fields change."""
    now = now or timezone.now()
    hours = edit_window_hours()
    if now > review.created_at + timedelta(hours=hours):
        raise EditWindowClosed(f'Reviews can only be edited within {hours} hours.')

    for name, value in fields.items():
        setattr(review, name, value)
    review.save(update_fields=[*fields, 'updated_at'])

    logger.info("Review %s edited", review.pk)
    return review
