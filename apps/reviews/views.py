"""API views for the guest's reviews."""

from __future__ import annotations

from rest_framework import mixins, permissions, viewsets  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.domain.exceptions import BookingError
from apps.bookings.models import Booking
from apps.bookings.views import booking_error_response
from apps.users.permissions import IsGuest

from .models import Review
from .serializers import ReviewCreateSerializer, ReviewSerializer
from .services import update_review


class GuestReviewViewSet(mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Reviews written by the current guest.

    Endpoints:
    - GET /api/v1/guest/reviews/ - written reviews plus completed stays still awaiting one
    - GET /api/v1/guest/reviews/{id}/
    - PATCH /api/v1/guest/reviews/{id}/ - while the edit window is open
    """

    serializer_class = ReviewSerializer
    permission_classes = [permissions.IsAuthenticated, IsGuest]

    def get_queryset(self):  # type: ignore
        return Review.objects.select_related('author', 'booking', 'listing').filter(author=self.request.user)

    def handle_exception(self, exc):  # type: ignore
        if isinstance(exc, BookingError):
            return booking_error_response(exc)
        return super().handle_exception(exc)

    def list(self, request):  # type: ignore
        reviews = self.get_queryset()
        pending = (
            Booking.objects.for_guest(request.user)
            .filter(status=Booking.Status.COMPLETED, review__isnull=True)
            .select_related('listing')
            .order_by('-check_out')
        )
        return Response(
            {
                'reviews': ReviewSerializer(reviews, many=True).data,
                'pending_reviews': [
                    {
                        'booking_id': str(booking.pk),
                        'listing_id': str(booking.listing_id),
                        'listing_title': booking.listing.title,
                        'check_in': booking.check_in.isoformat(),
                        'check_out': booking.check_out.isoformat(),
                    }
                    for booking in pending
                ],
            }
        )

    def partial_update(self, request, pk=None):  # type: ignore
        review = self.get_object()
        serializer = ReviewCreateSerializer(review, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        review = update_review(review, **serializer.validated_data)
        return Response(ReviewSerializer(review).data)
