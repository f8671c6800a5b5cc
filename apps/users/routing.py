"""Route partitioning between public, guest and host space.

``decide`` is a pure function of the path, the resolved identity and the
route table; the middleware only binds it to Django requests and responses.
Authorization failures are navigation outcomes (redirects), never errors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union
from urllib.parse import urlencode

from django.conf import settings  # type: ignore

from .identity import Identity, Resolution
from .models import Role


class Space(Enum):
    PUBLIC = "public"
    GUEST = "guest"
    HOST = "host"
    AUTHENTICATED = "authenticated"


SPACE_ROLES = {
    Space.GUEST: Role.GUEST,
    Space.HOST: Role.HOST,
}


@dataclass(frozen=True)
class RouteTable:
    public_paths: frozenset[str] = frozenset()
    public_prefixes: tuple[str, ...] = ()
    guest_prefixes: tuple[str, ...] = ()
    host_prefixes: tuple[str, ...] = ()
    login_url: str = "/login"
    landing_url: str = "/"

    @classmethod
    def from_settings(cls) -> "RouteTable":
        config = getattr(settings, "ROUTE_ACCESS", {})
        return cls(
            public_paths=frozenset(config.get("PUBLIC_PATHS", ())),
            public_prefixes=tuple(config.get("PUBLIC_PREFIXES", ())),
            guest_prefixes=tuple(config.get("GUEST_PREFIXES", ())),
            host_prefixes=tuple(config.get("HOST_PREFIXES", ())),
            login_url=config.get("LOGIN_URL", "/login"),
            landing_url=config.get("LANDING_URL", "/"),
        )

    def classify(self, path: str) -> Space:
        # Host and guest prefixes win over a broader public prefix.
        if path.startswith(self.host_prefixes):
            return Space.HOST
        if path.startswith(self.guest_prefixes):
            return Space.GUEST
        normalized = path.rstrip("/") or "/"
        if normalized in self.public_paths or path.startswith(self.public_prefixes):
            return Space.PUBLIC
        return Space.AUTHENTICATED


@dataclass(frozen=True)
class Allow:
    space: Space


@dataclass(frozen=True)
class RedirectTo:
    url: str
    reason: str = field(default="", compare=False)


Decision = Union[Allow, RedirectTo]


def login_redirect(table: RouteTable, full_path: str, space: Space) -> RedirectTo:
    params = {"next": full_path}
    if space in SPACE_ROLES:
        params["mode"] = space.value
    return RedirectTo(f"{table.login_url}?{urlencode(params)}", reason="unauthenticated")


def decide(path: str, identity: Resolution, table: RouteTable, full_path: str | None = None) -> Decision:
    """Return whether ``identity`` may reach ``path``.

    ``full_path`` (path plus query string) is preserved as the login return
    target; it defaults to ``path``.
    """
    space = table.classify(path)
    if space is Space.PUBLIC:
        return Allow(space)

    if not isinstance(identity, Identity):
        return login_redirect(table, full_path or path, space)

    required = SPACE_ROLES.get(space)
    if required is not None and not identity.has_role(required):
        return RedirectTo(table.landing_url, reason=f"missing_{required.value}_role")

    return Allow(space)
