"""URL routing for favorites, mounted under the guest space."""

from django.urls import path  # type: ignore

from .views import FavoriteViewSet

favorite_list = FavoriteViewSet.as_view({'get': 'list'})
favorite_detail = FavoriteViewSet.as_view({'put': 'update', 'delete': 'destroy'})

urlpatterns = [
    path('', favorite_list, name='favorite-list'),
    path('<uuid:listing_id>/', favorite_detail, name='favorite-detail'),
]
