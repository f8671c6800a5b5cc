"""Admin registrations for favorites."""

from __future__ import annotations

from django.contrib import admin

from .models import Favorite


@admin.register(Favorite)
class FavoriteAdmin(admin.ModelAdmin):
    list_display = ("user", "listing", "collection_name", "created_at")
    search_fields = ("user__email", "listing__title", "collection_name")
