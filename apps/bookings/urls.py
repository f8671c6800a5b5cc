"""URL routing for the booking domain.

``guest_urlpatterns`` is mounted under ``/api/v1/guest/`` and
``host_urlpatterns`` under ``/api/v1/host/``; the route authorization
middleware keys off those prefixes.
"""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import GuestBookingViewSet, HostBookingViewSet

guest_router = SimpleRouter()
guest_router.register(r"bookings", GuestBookingViewSet, basename="guest-booking")

host_router = SimpleRouter()
host_router.register(r"bookings", HostBookingViewSet, basename="host-booking")

guest_urlpatterns = [
    path("", include(guest_router.urls)),
    path("favorites/", include("apps.favorites.urls")),
    path("reviews/", include("apps.reviews.urls")),
]

host_urlpatterns = [
    path("", include(host_router.urls)),
]
