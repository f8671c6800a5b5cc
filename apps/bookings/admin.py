"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking, CheckOutReport, LateCheckoutRequest


class CheckOutReportInline(admin.StackedInline):
    model = CheckOutReport
    extra = 0
    can_delete = False
    readonly_fields = ("submitted_at",)


class LateCheckoutRequestInline(admin.StackedInline):
    model = LateCheckoutRequest
    extra = 0
    readonly_fields = ("created_at", "updated_at", "decided_at")


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "listing",
        "guest",
        "status",
        "check_in",
        "check_out",
        "total_amount",
        "currency",
        "created_at",
    )
    list_filter = ("status", "cancelled_by", "check_in", "check_out")
    search_fields = ("id", "listing__title", "guest__email")
    readonly_fields = (
        "created_at",
        "updated_at",
        "confirmed_at",
        "activated_at",
        "completed_at",
        "cancelled_at",
        "nightly_rate",
        "nights",
        "subtotal",
        "cleaning_fee",
        "service_fee",
        "taxes",
        "total_amount",
        "refund_percentage",
        "refund_amount",
    )
    inlines = [CheckOutReportInline, LateCheckoutRequestInline]


@admin.register(CheckOutReport)
class CheckOutReportAdmin(admin.ModelAdmin):
    list_display = ("booking", "property_condition", "keys_returned", "submitted_at")
    list_filter = ("property_condition",)
    search_fields = ("booking__id", "booking__guest__email")
