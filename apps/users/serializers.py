"""Serializers for user-related API endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    roles = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "username",
            "first_name",
            "last_name",
            "phone",
            "roles",
            "is_email_verified",
            "created_at",
        ]
        read_only_fields = fields

    def get_roles(self, obj) -> list[str]:  # type: ignore
        return sorted(role.value for role in obj.role_set)


class UserShortSerializer(serializers.ModelSerializer):
    """Counterparty summary shown on reservations."""

    name = serializers.CharField(source="display_name", read_only=True)

    class Meta:
        model = User
        fields = ["id", "name"]
