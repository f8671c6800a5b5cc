"""URL routing for reviews, mounted under the guest space."""

from django.urls import include, path  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import GuestReviewViewSet

router = SimpleRouter()
router.register(r'', GuestReviewViewSet, basename='guest-review')

urlpatterns = [path('', include(router.urls))]
