"""URL configuration for GetIn project.

The `urlpatterns` list routes URLs to views. Public listing endpoints, the
guest space and the host space are mounted under separate prefixes so the
route authorization middleware can partition them by path.
"""
from django.contrib import admin  # type: ignore
from django.urls import include, path  # type: ignore
from drf_spectacular.views import SpectacularAPIView  # type: ignore
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView  # type: ignore

from apps.bookings.urls import guest_urlpatterns, host_urlpatterns
from apps.listings.urls import host_urlpatterns as host_listing_urlpatterns

from .views import healthz

# API versioning. v1 is our initial version; future versions can be added here.

urlpatterns = [
    path('admin/', admin.site.urls),
    path('healthz', healthz, name='healthz'),
    # Authentication
    path('api/v1/auth/token/', TokenObtainPairView.as_view(), name='token-obtain'),
    path('api/v1/auth/token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),
    # Application URLs
    path('api/v1/users/', include('apps.users.urls')),
    path('api/v1/listings/', include('apps.listings.urls')),
    path('api/v1/guest/', include(guest_urlpatterns)),
    path('api/v1/host/', include(host_urlpatterns + host_listing_urlpatterns)),
    # OpenAPI schema
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
]
