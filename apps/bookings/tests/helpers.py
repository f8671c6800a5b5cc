"""Builders shared by the API tests of every app."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from django.utils import timezone
from rest_framework_simplejwt.tokens import RefreshToken

from apps.bookings.models import Booking
from apps.bookings.services import quote_price, stay_range
from apps.listings.models import Listing
from apps.users.models import Role, User


def make_user(email: str, roles=(Role.GUEST,), **extra) -> User:
    return User.objects.create_user(email=email, password="StrongPass123", roles=list(roles), **extra)


def make_listing(host: User, **overrides) -> Listing:
    fields = {
        "title": "Ocean view apartment",
        "city": "Jacmel",
        "country": "Haiti",
        "address_line": "12 Rue du Commerce",
        "nightly_price": Decimal("100.00"),
        "cleaning_fee": Decimal("20.00"),
        "service_fee_rate": Decimal("0.10"),
        "tax_rate": Decimal("0.05"),
        "min_stay": 1,
        "max_guests": 4,
        "status": Listing.Status.PUBLISHED,
        "published_at": timezone.now(),
    }
    fields.update(overrides)
    return Listing.objects.create(host=host, **fields)


def make_booking(listing: Listing, guest: User, check_in: date, nights: int = 2, **overrides) -> Booking:
    """Insert a priced reservation directly, bypassing the create command."""
    check_out = check_in + timedelta(days=nights)
    quote = quote_price(listing, stay_range(check_in, check_out))
    fields = {
        "status": Booking.Status.PENDING,
        "nightly_rate": quote.nightly_rate.amount,
        "nights": quote.nights,
        "subtotal": quote.subtotal.amount,
        "cleaning_fee": quote.cleaning_fee.amount,
        "service_fee": quote.service_fee.amount,
        "taxes": quote.taxes.amount,
        "total_amount": quote.total.amount,
        "currency": quote.currency,
    }
    fields.update(overrides)
    return Booking.objects.create(listing=listing, guest=guest, check_in=check_in, check_out=check_out, **fields)


def authenticate(client, user: User) -> None:
    """Send a real bearer token; the routing middleware runs before DRF."""
    token = RefreshToken.for_user(user).access_token
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")


def today() -> date:
    return timezone.localdate()
