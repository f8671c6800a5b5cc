"""Admin registrations for reviews."""

from __future__ import annotations

from django.contrib import admin

from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("listing", "author", "rating", "created_at")
    list_filter = ("rating",)
    search_fields = ("listing__title", "author__email", "comment")
    readonly_fields = ("booking", "author", "listing", "created_at", "updated_at")
