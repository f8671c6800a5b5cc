"""User domain models for GetIn.

A user can be a guest, a host, or both. Roles are stored as a JSON list on
the user and validated into a closed ``Role`` set at the identity boundary
(see ``apps.users.identity``). Role changes are rare administrative edits.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Iterable

from django.contrib.auth.models import AbstractUser, BaseUserManager  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

logger = logging.getLogger(__name__)


class Role(models.TextChoices):
    GUEST = "guest", _("Guest")
    HOST = "host", _("Host")


def default_roles() -> list[str]:
    return [Role.GUEST.value]


def parse_roles(raw: Iterable[Any] | None) -> frozenset[Role]:
    """Validate stored role values into the closed ``Role`` set.

    Unknown values are dropped so downstream checks never see stray strings.
    """
    roles: set[Role] = set()
    for value in raw or ():
        try:
            roles.add(Role(value))
        except ValueError:
            logger.warning("Ignoring unknown role value %r", value)
    return frozenset(roles)


class CustomUserManager(BaseUserManager):
    """Email is the login; every new user starts with the guest role."""

    use_in_migrations = True

    def _create_user(self, email: str, password: str | None, **extra_fields: Any):
        if not email:
            raise ValueError("An email address is required.")
        email = self.normalize_email(email)
        roles = extra_fields.pop("roles", None)
        user = self.model(email=email, **extra_fields)
        user.roles = sorted(role.value for role in parse_roles(roles if roles is not None else default_roles()))
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("roles", [Role.GUEST, Role.HOST])

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self._create_user(email, password, **extra_fields)


class CustomUser(AbstractUser):
    """Platform account holding a guest and/or host role."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    username = models.CharField(
        _("Display name"),
        max_length=150,
        blank=True,
    )
    email = models.EmailField(_("Email"), unique=True)
    phone = models.CharField(_("Phone"), max_length=20, blank=True)
    roles = models.JSONField(
        _("Roles"),
        default=default_roles,
        help_text=_("Subset of ['guest', 'host']."),
    )
    is_email_verified = models.BooleanField(_("Email verified"), default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomUserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS: list[str] = []

    class Meta:
        verbose_name = _("User")
        verbose_name_plural = _("Users")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.email

    @property
    def role_set(self) -> frozenset[Role]:
        return parse_roles(self.roles)

    def has_role(self, role: Role) -> bool:
        return role in self.role_set

    @property
    def display_name(self) -> str:
        full_name = self.get_full_name()
        return full_name or self.username or self.email.split("@")[0]


User = CustomUser
