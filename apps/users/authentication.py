"""DRF authentication backed by the request's identity resolver."""

from __future__ import annotations

from rest_framework.authentication import BaseAuthentication, SessionAuthentication  # type: ignore

from .identity import BEARER_PREFIX, bearer_token, extract_token, resolver_for


class ResolverAuthentication(BaseAuthentication):
    """Authenticates with the resolver the routing middleware already used.

    Only a token in the ``Authorization`` header skips CSRF. Credentials the
    browser attaches on its own (the ``access_token`` cookie or the session)
    are checked exactly like ``SessionAuthentication`` does.
    """

    def authenticate(self, request):  # type: ignore
        django_request = request._request
        resolver = resolver_for(django_request)
        if not resolver.resolve():
            return None

        if bearer_token(django_request) is None:
            SessionAuthentication().enforce_csrf(request)
        return (resolver.user, extract_token(django_request))

    def authenticate_header(self, request) -> str:  # type: ignore
        return BEARER_PREFIX.strip()
