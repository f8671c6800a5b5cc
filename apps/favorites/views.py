"""API views for favorites management."""

from __future__ import annotations

import logging

from django.db.models import Count  # type: ignore
from rest_framework.generics import get_object_or_404  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.listings.models import Listing
from apps.users.permissions import IsGuest

from .models import Favorite
from .serializers import FavoriteSerializer, FavoriteSetSerializer

logger = logging.getLogger(__name__)


class FavoriteViewSet(viewsets.GenericViewSet):
    """
    Saved listings of the current guest.

    Endpoints:
    - GET /api/v1/guest/favorites/ - list, optionally ``?collection=``
    - PUT /api/v1/guest/favorites/{listing_id}/ - save (idempotent)
    - DELETE /api/v1/guest/favorites/{listing_id}/ - remove (idempotent)
    """

    serializer_class = FavoriteSerializer
    permission_classes = [permissions.IsAuthenticated, IsGuest]
    lookup_field = 'listing_id'

    def get_queryset(self):  # type: ignore
        return Favorite.objects.select_related('listing').filter(user=self.request.user)

    def list(self, request):  # type: ignore
        qs = self.get_queryset()
        collection = request.query_params.get('collection')
        if collection:
            qs = qs.filter(collection_name=collection)

        collections = (
            Favorite.objects.filter(user=request.user)
            .values('collection_name')
            .annotate(count=Count('id'))
            .order_by('collection_name')
        )
        return Response(
            {
                'results': FavoriteSerializer(qs, many=True).data,
                'collections': [
                    {'name': row['collection_name'], 'count': row['count']} for row in collections
                ],
            }
        )

    def update(self, request, listing_id=None):  # type: ignore
        listing = get_object_or_404(Listing.objects.published(), pk=listing_id)
        serializer = FavoriteSetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        favorite, created = Favorite.objects.get_or_create(
            user=request.user,
            listing=listing,
            defaults={'collection_name': serializer.validated_data['collection_name']},
        )
        if not created and 'collection_name' in request.data:
            favorite.collection_name = serializer.validated_data['collection_name']
            favorite.save(update_fields=['collection_name'])

        if created:
            logger.info("User %s saved listing %s", request.user.pk, listing.pk)
        return Response(
            FavoriteSerializer(favorite).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    def destroy(self, request, listing_id=None):  # type: ignore
        deleted, _ = Favorite.objects.filter(user=request.user, listing_id=listing_id).delete()
        if deleted:
            logger.info("User %s removed listing %s from favorites", request.user.pk, listing_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
