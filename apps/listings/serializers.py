"""Serializers for the listings domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import BlockedDate, Listing


class ListingSerializer(serializers.ModelSerializer):
    host_name = serializers.ReadOnlyField(source="host.display_name")
    rating = serializers.SerializerMethodField()

    class Meta:
        model = Listing
        fields = [
            "id",
            "title",
            "description",
            "city",
            "country",
            "host_name",
            "nightly_price",
            "cleaning_fee",
            "currency",
            "min_stay",
            "max_stay",
            "max_guests",
            "instant_book",
            "cancellation_policy",
            "rating",
            "published_at",
        ]
        read_only_fields = fields

    def get_rating(self, obj: Listing) -> dict:
        # Annotated by the viewset queryset; plain instances fall back to empty.
        average = getattr(obj, "rating_avg", None)
        return {
            "average": round(float(average), 2) if average is not None else None,
            "count": getattr(obj, "rating_count", 0),
        }


class HostListingSerializer(ListingSerializer):
    class Meta(ListingSerializer.Meta):
        fields = ListingSerializer.Meta.fields + [
            "status",
            "address_line",
            "service_fee_rate",
            "tax_rate",
            "created_at",
        ]
        read_only_fields = fields


class BlockedDateSerializer(serializers.ModelSerializer):
    class Meta:
        model = BlockedDate
        fields = ["date", "reason"]


class DateRangeQuerySerializer(serializers.Serializer):
    """Validates ``?check_in=&check_out=`` on the availability endpoint."""

    check_in = serializers.DateField()
    check_out = serializers.DateField()


class CalendarQuerySerializer(serializers.Serializer):
    start = serializers.DateField()
    end = serializers.DateField()

    def validate(self, attrs):  # type: ignore
        if (attrs["end"] - attrs["start"]).days > 366:
            raise serializers.ValidationError("Calendar window is limited to one year.")
        return attrs
