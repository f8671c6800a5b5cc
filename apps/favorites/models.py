"""Model definition for favorites.

The ``Favorite`` model is a bookmark a guest keeps on a listing, optionally
grouped into named collections. Setting and unsetting are idempotent;
duplicates are prevented via a unique constraint.
"""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore

DEFAULT_COLLECTION = 'Favorites'


class Favorite(models.Model):
    """A guest's saved listing."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='favorites'
    )
    listing = models.ForeignKey(
        'listings.Listing', on_delete=models.CASCADE, related_name='favorited_by'
    )
    collection_name = models.CharField(max_length=100, default=DEFAULT_COLLECTION)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['user', 'listing'], name='unique_favorite_per_user'),
        ]

    def __str__(self) -> str:
        return f"Favorite listing {self.listing_id} by user {self.user_id}"
