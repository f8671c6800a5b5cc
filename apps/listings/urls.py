"""URL routing for the listings domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import HostListingViewSet, ListingViewSet

router = SimpleRouter()
router.register(r"", ListingViewSet, basename="listing")

host_router = SimpleRouter()
host_router.register(r"listings", HostListingViewSet, basename="host-listing")

urlpatterns = [
    path("", include(router.urls)),
]

host_urlpatterns = [
    path("", include(host_router.urls)),
]
