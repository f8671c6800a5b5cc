"""Identity & role resolution.

``IdentityProvider`` is the boundary to credential issuance: it turns a
request's bearer token (or Django session) into the current user and reads
that user's roles. ``IdentityResolver`` combines both lookups and memoises
the outcome for one request. Absence of identity is a normal outcome and is
returned as ``UNAUTHENTICATED``, never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Union
from uuid import UUID

from django.conf import settings  # type: ignore
from django.contrib.auth import get_user_model  # type: ignore
from rest_framework_simplejwt.exceptions import TokenError  # type: ignore
from rest_framework_simplejwt.tokens import AccessToken  # type: ignore

from .models import Role, parse_roles

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
ACCESS_TOKEN_COOKIE = "access_token"


@dataclass(frozen=True)
class CurrentUser:
    id: UUID
    email: str
    email_verified: bool


@dataclass(frozen=True)
class Identity:
    user_id: UUID
    email: str
    email_verified: bool
    roles: frozenset[Role]

    def has_role(self, role: Role) -> bool:
        return role in self.roles

    @property
    def is_guest(self) -> bool:
        return Role.GUEST in self.roles

    @property
    def is_host(self) -> bool:
        return Role.HOST in self.roles


class _Unauthenticated:
    """Singleton marker for a request without a valid identity."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNAUTHENTICATED"


UNAUTHENTICATED = _Unauthenticated()

Resolution = Union[Identity, _Unauthenticated]


def bearer_token(request) -> str | None:
    """Token sent explicitly in the ``Authorization`` header, if any."""
    header = request.META.get("HTTP_AUTHORIZATION", "")
    if header.startswith(BEARER_PREFIX):
        return header[len(BEARER_PREFIX):].strip() or None
    return None


def extract_token(request) -> str | None:
    """Header token first, then the ``access_token`` cookie set by the web client."""
    return bearer_token(request) or request.COOKIES.get(ACCESS_TOKEN_COOKIE) or None


class IdentityProvider:
    """Adapter over simplejwt access tokens, Django sessions and the user table."""

    def __init__(self) -> None:
        self.user_model = get_user_model()

    def _load_user(self, user_id: Any):
        try:
            return self.user_model.objects.get(pk=user_id, is_active=True)
        except (self.user_model.DoesNotExist, ValueError, TypeError):
            return None

    def get_user_object(self, request):
        token = extract_token(request)
        if token:
            try:
                access = AccessToken(token)
            except TokenError as exc:
                logger.info("Rejected access token: %s", exc)
                return None
            claim = settings.SIMPLE_JWT.get("USER_ID_CLAIM", "user_id")
            return self._load_user(access.get(claim))

        session_user = getattr(request, "user", None)
        if session_user is not None and session_user.is_authenticated and session_user.is_active:
            return session_user
        return None

    def get_current_user(self, request) -> CurrentUser | None:
        user = self.get_user_object(request)
        if user is None:
            return None
        return CurrentUser(id=user.pk, email=user.email, email_verified=user.is_email_verified)

    def get_roles(self, user_id: UUID) -> frozenset[Role]:
        roles = (
            self.user_model.objects.filter(pk=user_id)
            .values_list("roles", flat=True)
            .first()
        )
        return parse_roles(roles)


class IdentityResolver:
    """Resolves a request's identity once and keeps it for that request only."""

    def __init__(self, request, provider: IdentityProvider | None = None) -> None:
        self.request = request
        self.provider = provider or IdentityProvider()
        self._resolved: Resolution | None = None
        self._user = None

    def resolve(self) -> Resolution:
        if self._resolved is not None:
            return self._resolved

        user = self.provider.get_user_object(self.request)
        if user is None:
            self._resolved = UNAUTHENTICATED
            return self._resolved

        self._user = user
        self._resolved = Identity(
            user_id=user.pk,
            email=user.email,
            email_verified=user.is_email_verified,
            roles=self.provider.get_roles(user.pk),
        )
        return self._resolved

    @property
    def user(self):
        """The user row behind a successful resolution, or None."""
        self.resolve()
        return self._user


def resolver_for(request) -> IdentityResolver:
    """Return the request's resolver, creating it on first use."""
    resolver = getattr(request, "identity_resolver", None)
    if resolver is None:
        resolver = IdentityResolver(request)
        request.identity_resolver = resolver
    return resolver


def resolve(request) -> Resolution:
    return resolver_for(request).resolve()
