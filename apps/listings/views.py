"""Listing API views."""

from __future__ import annotations

from django.db.models import Avg, Count  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import permissions, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.domain.exceptions import BookingError
from apps.bookings.services import check_availability, quote_price, stay_range, unavailable_dates
from apps.bookings.views import booking_error_response
from apps.reviews.serializers import ReviewSerializer
from apps.users.permissions import IsHost

from .filters import ListingFilterSet
from .models import Listing
from .serializers import (
    CalendarQuerySerializer,
    DateRangeQuerySerializer,
    BlockedDateSerializer,
    HostListingSerializer,
    ListingSerializer,
)


def with_ratings(queryset):  # type: ignore
    return queryset.select_related("host").annotate(
        rating_avg=Avg("reviews__rating"),
        rating_count=Count("reviews", distinct=True),
    )


class ListingViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Public catalogue of published listings.

    Endpoints:
    - GET /api/v1/listings/
    - GET /api/v1/listings/{id}/
    - GET /api/v1/listings/{id}/availability/?check_in=&check_out=
    - GET /api/v1/listings/{id}/calendar/?start=&end=
    - GET /api/v1/listings/{id}/reviews/
    """

    serializer_class = ListingSerializer
    permission_classes = [permissions.AllowAny]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = ListingFilterSet
    ordering_fields = ["nightly_price", "published_at", "created_at"]

    def get_queryset(self):  # type: ignore
        return with_ratings(Listing.objects.published())

    def handle_exception(self, exc):  # type: ignore
        if isinstance(exc, BookingError):
            return booking_error_response(exc)
        return super().handle_exception(exc)

    @action(detail=True, methods=["get"])
    def availability(self, request, pk=None):  # type: ignore
        listing = self.get_object()
        query = DateRangeQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        check_in = query.validated_data["check_in"]
        check_out = query.validated_data["check_out"]

        result = check_availability(listing, check_in, check_out)
        payload = result.to_dict()
        payload["check_in"] = check_in.isoformat()
        payload["check_out"] = check_out.isoformat()
        payload["price"] = quote_price(listing, stay_range(check_in, check_out)).to_dict() if result.available else None
        return Response(payload)

    @action(detail=True, methods=["get"])
    def calendar(self, request, pk=None):  # type: ignore
        listing = self.get_object()
        query = CalendarQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        start = query.validated_data["start"]
        end = query.validated_data["end"]

        days = unavailable_dates(listing, start, end)
        return Response(
            {
                "listing_id": str(listing.pk),
                "start": start.isoformat(),
                "end": end.isoformat(),
                "unavailable_dates": [day.isoformat() for day in days],
            }
        )

    @action(detail=True, methods=["get"])
    def reviews(self, request, pk=None):  # type: ignore
        listing = self.get_object()
        reviews = listing.reviews.select_related("author", "booking").order_by("-created_at")
        page = self.paginate_queryset(reviews)
        if page is not None:
            return self.get_paginated_response(ReviewSerializer(page, many=True).data)
        return Response(ReviewSerializer(reviews, many=True).data)


class HostListingViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Listings owned by the current host, whatever their status.

    Endpoints:
    - GET /api/v1/host/listings/
    - GET /api/v1/host/listings/{id}/
    - GET /api/v1/host/listings/{id}/blocked-dates/
    """

    serializer_class = HostListingSerializer
    permission_classes = [permissions.IsAuthenticated, IsHost]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ["status"]

    def get_queryset(self):  # type: ignore
        return with_ratings(Listing.objects.owned_by(self.request.user))

    @action(detail=True, methods=["get"], url_path="blocked-dates")
    def blocked_dates(self, request, pk=None):  # type: ignore
        listing = self.get_object()
        blocked = listing.blocked_dates.order_by("date")
        return Response(BlockedDateSerializer(blocked, many=True).data)
