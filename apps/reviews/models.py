"""Models for the review domain.

Defines the ``Review`` entity: feedback and ratings a guest leaves for a
listing once the stay is completed. A reservation carries at most one
review; reviews are appended after the reservation became terminal and
never modify it.
"""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

RATING_VALIDATORS = [MinValueValidator(1), MaxValueValidator(5)]

CATEGORY_FIELDS = (
    'cleanliness_rating',
    'accuracy_rating',
    'communication_rating',
    'location_rating',
    'check_in_rating',
    'value_rating',
)


def _category_rating(label: str) -> models.PositiveSmallIntegerField:
    return models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=RATING_VALIDATORS,
        help_text=label,
    )


class Review(models.Model):
    """Represents a review left by a guest for a completed stay."""

    author = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='reviews'
    )
    listing = models.ForeignKey(
        'listings.Listing', on_delete=models.CASCADE, related_name='reviews'
    )
    booking = models.OneToOneField(
        'bookings.Booking',
        on_delete=models.CASCADE,
        related_name='review',
    )
    rating = models.PositiveSmallIntegerField(
        validators=RATING_VALIDATORS,
        help_text=_('Overall rating from 1 to 5'),
    )
    cleanliness_rating = _category_rating(_('Cleanliness'))
    accuracy_rating = _category_rating(_('Accuracy of the description'))
    communication_rating = _category_rating(_('Communication with the host'))
    location_rating = _category_rating(_('Location'))
    check_in_rating = _category_rating(_('Check-in process'))
    value_rating = _category_rating(_('Value for money'))
    comment = models.TextField(blank=True, max_length=5000)
    private_feedback = models.TextField(
        blank=True,
        max_length=2000,
        help_text=_('Visible to the host only'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['listing', '-created_at']),
            models.Index(fields=['author']),
        ]

    def __str__(self) -> str:
        return f"Review by {self.author_id} for listing {self.listing_id} (Rating: {self.rating})"

    @property
    def average_rating(self) -> float:
        """Mean of the overall rating and every category rating given."""
        ratings = [self.rating] + [getattr(self, name) for name in CATEGORY_FIELDS]
        valid_ratings = [r for r in ratings if r is not None]
        return sum(valid_ratings) / len(valid_ratings)
