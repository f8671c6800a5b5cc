"""FilterSet definitions for listing search."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Listing


class ListingFilterSet(django_filters.FilterSet):
    """FilterSet for the public listing list."""

    city = django_filters.CharFilter(field_name="city", lookup_expr="icontains")
    country = django_filters.CharFilter(field_name="country", lookup_expr="icontains")
    price_min = django_filters.NumberFilter(field_name="nightly_price", lookup_expr="gte")
    price_max = django_filters.NumberFilter(field_name="nightly_price", lookup_expr="lte")
    guests = django_filters.NumberFilter(field_name="max_guests", lookup_expr="gte")
    instant_book = django_filters.BooleanFilter(field_name="instant_book")

    class Meta:
        model = Listing
        fields = [
            "city",
            "country",
            "instant_book",
        ]
