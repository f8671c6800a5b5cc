"""Serializers for reviews.

Provide both read and write serializers for the ``Review`` model. The
author and the booking come from the request in the view.
"""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Review


class ReviewCreateSerializer(serializers.ModelSerializer):
    """Serializer for creating a new review."""

    class Meta:
        model = Review
        fields = [
            'rating',
            'cleanliness_rating',
            'accuracy_rating',
            'communication_rating',
            'location_rating',
            'check_in_rating',
            'value_rating',
            'comment',
            'private_feedback',
        ]


class ReviewSerializer(serializers.ModelSerializer):
    """Public read serializer; private feedback stays out."""

    author_name = serializers.ReadOnlyField(source='author.display_name')
    booking_id = serializers.ReadOnlyField(source='booking.id')
    average_rating = serializers.ReadOnlyField()

    class Meta:
        model = Review
        fields = [
            'id',
            'author_name',
            'booking_id',
            'rating',
            'cleanliness_rating',
            'accuracy_rating',
            'communication_rating',
            'location_rating',
            'check_in_rating',
            'value_rating',
            'average_rating',
            'comment',
            'created_at',
            'updated_at',
        ]
