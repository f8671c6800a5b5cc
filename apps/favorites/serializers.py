"""Serializers for the favorites domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import DEFAULT_COLLECTION, Favorite


class FavoriteSetSerializer(serializers.Serializer):
    """Optional body of ``PUT /guest/favorites/{listing_id}/``."""

    collection_name = serializers.CharField(max_length=100, required=False, default=DEFAULT_COLLECTION)


class ListingShortSerializer(serializers.Serializer):
    """Short listing card for the favorites list."""

    id = serializers.UUIDField()
    title = serializers.CharField()
    city = serializers.CharField()
    country = serializers.CharField()
    nightly_price = serializers.DecimalField(max_digits=10, decimal_places=2)
    currency = serializers.CharField()
    instant_book = serializers.BooleanField()
    status = serializers.CharField()


class FavoriteSerializer(serializers.ModelSerializer):
    """Serializer for listing favorites."""

    listing_id = serializers.ReadOnlyField(source='listing.id')
    listing = ListingShortSerializer(read_only=True)

    class Meta:
        model = Favorite
        fields = ['id', 'listing_id', 'listing', 'collection_name', 'created_at']
