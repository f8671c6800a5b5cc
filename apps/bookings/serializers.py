"""Serializers for the booking domain."""

from __future__ import annotations

from django.utils import timezone  # type: ignore
from rest_framework import serializers  # type: ignore

from apps.listings.models import CheckInInstructions
from apps.users.serializers import UserShortSerializer

from .domain.access import (
    can_request_late_checkout,
    can_submit_checkout,
    can_view_instructions,
    instructions_unlock_at,
)
from .domain.entities import BookingStatus, CancellationSource, days_until_check_in
from .models import Booking, CheckOutReport, LateCheckoutRequest


class BookingCreateSerializer(serializers.Serializer):
    """Reservation request from a guest. Availability is judged by the command handler."""

    listing = serializers.UUIDField()
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    guests_count = serializers.IntegerField(min_value=1, default=1)
    special_requests = serializers.CharField(required=False, allow_blank=True, default="")


class BookingCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=500)


class CheckOutReportSerializer(serializers.ModelSerializer):
    class Meta:
        model = CheckOutReport
        fields = [
            "keys_returned",
            "trash_disposed",
            "windows_closed",
            "lights_off",
            "property_condition",
            "issues_reported",
            "submitted_at",
        ]
        read_only_fields = ["submitted_at"]


class LateCheckoutCreateSerializer(serializers.Serializer):
    requested_time = serializers.TimeField()
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=500)


class LateCheckoutDecisionSerializer(serializers.Serializer):
    approved = serializers.BooleanField()


class LateCheckoutSerializer(serializers.ModelSerializer):
    class Meta:
        model = LateCheckoutRequest
        fields = ["requested_time", "reason", "status", "created_at", "decided_at"]
        read_only_fields = fields


class ListingSummarySerializer(serializers.Serializer):
    id = serializers.UUIDField()
    title = serializers.CharField()
    city = serializers.CharField()
    country = serializers.CharField()


class BookingSerializer(serializers.ModelSerializer):
    """Reservation as seen by its guest or its host."""

    listing = ListingSummarySerializer(read_only=True)
    guest = UserShortSerializer(read_only=True)
    effective_status = serializers.SerializerMethodField()
    price = serializers.SerializerMethodField()
    actions = serializers.SerializerMethodField()
    checkout_report = serializers.SerializerMethodField()
    cancellation = serializers.SerializerMethodField()
    late_checkout = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "listing",
            "guest",
            "check_in",
            "check_out",
            "guests_count",
            "status",
            "effective_status",
            "price",
            "special_requests",
            "cancelled_by",
            "cancellation_reason",
            "refund_percentage",
            "refund_amount",
            "cancellation",
            "created_at",
            "confirmed_at",
            "completed_at",
            "cancelled_at",
            "actions",
            "checkout_report",
            "late_checkout",
        ]
        read_only_fields = fields

    def _now(self):  # type: ignore
        return self.context.get("now") or timezone.now()

    def get_effective_status(self, obj: Booking) -> str:
        return obj.effective_status(self._now()).value

    def get_price(self, obj: Booking) -> dict:
        return {
            "nightly_rate": str(obj.nightly_rate),
            "nights": obj.nights,
            "subtotal": str(obj.subtotal),
            "cleaning_fee": str(obj.cleaning_fee),
            "service_fee": str(obj.service_fee),
            "taxes": str(obj.taxes),
            "total": str(obj.total_amount),
            "currency": obj.currency,
        }

    def get_actions(self, obj: Booking) -> dict:
        now = self._now()
        request = self.context.get("request")
        user_id = getattr(getattr(request, "user", None), "pk", None)
        status = obj.effective_status(now)
        is_guest = obj.guest_id == user_id
        is_host = obj.listing.host_id == user_id
        late_checkout = getattr(obj, "late_checkout", None)
        late_checkout_open = late_checkout is None or late_checkout.status == LateCheckoutRequest.Status.PENDING
        return {
            "can_cancel": status in (BookingStatus.PENDING, BookingStatus.CONFIRMED),
            "can_confirm": is_host and status is BookingStatus.PENDING,
            "can_view_instructions": is_guest and can_view_instructions(obj, now),
            "can_check_out": can_submit_checkout(obj, user_id, now),
            "can_review": is_guest and status is BookingStatus.COMPLETED and not hasattr(obj, "review"),
            "can_request_late_checkout": late_checkout_open and can_request_late_checkout(obj, user_id, now),
        }

    def get_cancellation(self, obj: Booking) -> dict | None:
        """What a guest cancellation would refund right now, while one is still possible."""
        now = self._now()
        if obj.effective_status(now) not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
            return None
        percentage, refund = obj.refund_quote(CancellationSource.GUEST, now)
        return {
            "policy": obj.listing.cancellation_policy,
            "days_until_check_in": days_until_check_in(obj.check_in, now),
            "refund_percentage": percentage,
            "potential_refund": str(refund.amount),
        }

    def get_checkout_report(self, obj: Booking) -> dict | None:
        report = getattr(obj, "checkout_report", None)
        if report is None:
            return None
        return CheckOutReportSerializer(report).data

    def get_late_checkout(self, obj: Booking) -> dict | None:
        request = getattr(obj, "late_checkout", None)
        if request is None:
            return None
        return LateCheckoutSerializer(request).data


class CheckInInstructionsSerializer(serializers.ModelSerializer):
    address = serializers.SerializerMethodField()

    class Meta:
        model = CheckInInstructions
        fields = [
            "address",
            "check_in_time",
            "check_out_time",
            "door_code",
            "wifi_name",
            "wifi_password",
            "house_rules",
            "special_instructions",
            "emergency_contact",
        ]

    def get_address(self, obj: CheckInInstructions) -> str:
        listing = obj.listing
        return ", ".join(part for part in (listing.address_line, listing.city, listing.country) if part)


def locked_instructions_payload(booking: Booking, now=None) -> dict:
    """Body returned while the gate is closed. Finished stays never unlock."""
    now = now or timezone.now()
    unlocks_at = None
    if not booking.effective_status(now).is_terminal:
        unlocks_at = instructions_unlock_at(booking).isoformat()
    return {"unlocked": False, "unlocks_at": unlocks_at}
