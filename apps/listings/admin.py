"""Admin registrations for listings."""

from __future__ import annotations

from django.contrib import admin

from .models import BlockedDate, CheckInInstructions, Listing


class BlockedDateInline(admin.TabularInline):
    model = BlockedDate
    extra = 0
    fields = ("date", "reason")


class CheckInInstructionsInline(admin.StackedInline):
    model = CheckInInstructions
    extra = 0
    can_delete = False


@admin.register(Listing)
class ListingAdmin(admin.ModelAdmin):
    list_display = (
        "title",
        "city",
        "country",
        "status",
        "nightly_price",
        "currency",
        "instant_book",
        "host",
    )
    list_filter = ("status", "instant_book", "cancellation_policy", "currency", "country")
    search_fields = ("title", "city", "host__email")
    inlines = (BlockedDateInline, CheckInInstructionsInline)
    readonly_fields = ("created_at", "updated_at", "published_at")


@admin.register(BlockedDate)
class BlockedDateAdmin(admin.ModelAdmin):
    list_display = ("listing", "date", "reason")
    list_filter = ("date",)
    search_fields = ("listing__title",)
