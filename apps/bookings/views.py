"""API views for the booking domain.

Guest and host each get their own viewset, mounted under their own URL
space. State changes are dispatched as commands through the message bus;
domain errors are turned into ``{"code", "detail", ...}`` responses here.
"""

from __future__ import annotations

import logging

from django.utils import timezone  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.listings.models import CheckInInstructions
from apps.reviews.serializers import ReviewCreateSerializer, ReviewSerializer
from apps.reviews.services import submit_review
from apps.users.permissions import IsGuest, IsHost
from shared.application.message_bus import message_bus

from .application.command_handlers import (
    CancelBookingCommand,
    CompleteBookingCommand,
    ConfirmBookingCommand,
    CreateBookingCommand,
    DecideLateCheckoutCommand,
    RequestLateCheckoutCommand,
)
from .domain.access import can_view_instructions
from .domain.entities import CancellationSource
from .domain.exceptions import (
    AlreadyReviewed,
    BookingError,
    BookingNotFound,
    BookingValidationError,
    Conflict,
    EditWindowClosed,
    InvalidRange,
    InvalidTransition,
    NotYetEligible,
)
from .models import Booking
from .serializers import (
    BookingCancelSerializer,
    BookingCreateSerializer,
    BookingSerializer,
    CheckInInstructionsSerializer,
    CheckOutReportSerializer,
    LateCheckoutCreateSerializer,
    LateCheckoutDecisionSerializer,
    locked_instructions_payload,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InvalidRange: status.HTTP_400_BAD_REQUEST,
    BookingValidationError: status.HTTP_400_BAD_REQUEST,
    NotYetEligible: status.HTTP_403_FORBIDDEN,
    BookingNotFound: status.HTTP_404_NOT_FOUND,
    Conflict: status.HTTP_409_CONFLICT,
    InvalidTransition: status.HTTP_409_CONFLICT,
    AlreadyReviewed: status.HTTP_409_CONFLICT,
    EditWindowClosed: status.HTTP_403_FORBIDDEN,
}


def booking_error_response(exc: BookingError) -> Response:
    http_status = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, InvalidTransition):
        logger.warning("Rejected transition: %s", exc.detail)
    return Response(exc.to_dict(), status=http_status)


class BookingViewSetMixin:
    """Shared read side and error handling for both spaces."""

    serializer_class = BookingSerializer
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_fields = ["status"]
    ordering_fields = ["check_in", "created_at"]

    def base_queryset(self):  # type: ignore
        return Booking.objects.select_related("listing", "guest", "checkout_report", "review", "late_checkout")

    def handle_exception(self, exc):  # type: ignore
        if isinstance(exc, BookingError):
            return booking_error_response(exc)
        return super().handle_exception(exc)

    def booking_response(self, booking: Booking, http_status: int = status.HTTP_200_OK) -> Response:
        booking = self.base_queryset().get(pk=booking.pk)
        return Response(BookingSerializer(booking, context=self.get_serializer_context()).data, status=http_status)


class GuestBookingViewSet(
    BookingViewSetMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Trips of the current guest.

    Endpoints:
    - GET/POST /api/v1/guest/bookings/
    - GET /api/v1/guest/bookings/{id}/
    - POST /api/v1/guest/bookings/{id}/cancel/
    - POST /api/v1/guest/bookings/{id}/checkout/
    - GET /api/v1/guest/bookings/{id}/instructions/
    - POST /api/v1/guest/bookings/{id}/review/
    - POST /api/v1/guest/bookings/{id}/late-checkout/
    """

    permission_classes = [permissions.IsAuthenticated, IsGuest]

    def get_queryset(self):  # type: ignore
        return self.base_queryset().for_guest(self.request.user)

    def create(self, request):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        booking = message_bus.handle_command(
            CreateBookingCommand(
                listing_id=data["listing"],
                guest_id=request.user.pk,
                check_in=data["check_in"],
                check_out=data["check_out"],
                guests_count=data["guests_count"],
                special_requests=data["special_requests"],
            )
        )
        return self.booking_response(booking, status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = BookingCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = message_bus.handle_command(
            CancelBookingCommand(
                booking_id=booking.pk,
                actor_id=request.user.pk,
                cancelled_by=CancellationSource.GUEST,
                reason=serializer.validated_data["reason"],
            )
        )
        return self.booking_response(booking)

    @action(detail=True, methods=["post"])
    def checkout(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = CheckOutReportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = message_bus.handle_command(
            CompleteBookingCommand(
                booking_id=booking.pk,
                guest_id=request.user.pk,
                **serializer.validated_data,
            )
        )
        return self.booking_response(booking)

    @action(detail=True, methods=["get"])
    def instructions(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        now = timezone.now()
        if not can_view_instructions(booking, now):
            return Response(locked_instructions_payload(booking, now))

        instructions = (
            CheckInInstructions.objects.select_related("listing").filter(listing_id=booking.listing_id).first()
        )
        logger.info("Check-in instructions released for booking %s to guest %s", booking.pk, request.user.pk)
        return Response(
            {
                "unlocked": True,
                "instructions": CheckInInstructionsSerializer(instructions).data if instructions else None,
            }
        )

    @action(detail=True, methods=["post"])
    def review(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        review = submit_review(booking, request.user, **serializer.validated_data)
        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], url_path="late-checkout")
    def late_checkout(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = LateCheckoutCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = message_bus.handle_command(
            RequestLateCheckoutCommand(
                booking_id=booking.pk,
                guest_id=request.user.pk,
                **serializer.validated_data,
            )
        )
        return self.booking_response(booking)


class HostBookingViewSet(
    BookingViewSetMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Reservations on the current host's listings.

    Endpoints:
    - GET /api/v1/host/bookings/
    - GET /api/v1/host/bookings/{id}/
    - POST /api/v1/host/bookings/{id}/confirm/
    - POST /api/v1/host/bookings/{id}/cancel/
    - POST /api/v1/host/bookings/{id}/late-checkout/
    """

    permission_classes = [permissions.IsAuthenticated, IsHost]
    filterset_fields = ["status", "listing"]

    def get_queryset(self):  # type: ignore
        return self.base_queryset().for_host(self.request.user)

    @action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        booking = message_bus.handle_command(
            ConfirmBookingCommand(booking_id=booking.pk, host_id=request.user.pk)
        )
        return self.booking_response(booking)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = BookingCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = message_bus.handle_command(
            CancelBookingCommand(
                booking_id=booking.pk,
                actor_id=request.user.pk,
                cancelled_by=CancellationSource.HOST,
                reason=serializer.validated_data["reason"],
            )
        )
        return self.booking_response(booking)

    @action(detail=True, methods=["post"], url_path="late-checkout")
    def late_checkout(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = LateCheckoutDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = message_bus.handle_command(
            DecideLateCheckoutCommand(
                booking_id=booking.pk,
                host_id=request.user.pk,
                approved=serializer.validated_data["approved"],
            )
        )
        return self.booking_response(booking)
