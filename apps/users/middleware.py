import logging

from django.http import HttpResponseRedirect

from .identity import resolver_for
from .routing import RedirectTo, RouteTable, decide

logger = logging.getLogger(__name__)


class RouteAuthorizationMiddleware:
    """First contact for every routed request.

    Resolves the caller once, attaches the resolver to the request for the
    views, and redirects when the route partition forbids access. Must run
    after ``AuthenticationMiddleware`` so session users are visible.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.route_table = RouteTable.from_settings()

    def __call__(self, request):
        resolver = resolver_for(request)
        decision = decide(
            request.path_info,
            resolver.resolve(),
            self.route_table,
            full_path=request.get_full_path(),
        )

        if isinstance(decision, RedirectTo):
            logger.info(
                "Redirecting %s %s to %s (%s)",
                request.method, request.path_info, decision.url, decision.reason,
            )
            return HttpResponseRedirect(decision.url)

        return self.get_response(request)
