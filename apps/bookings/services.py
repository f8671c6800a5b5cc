"""Domain services for booking workflows.

``check_availability`` is the single answer to "can these nights be
reserved"; the availability endpoint and the create handler both call it.
``quote_price`` is the single pricing function: whatever it returns is what
a reservation stores.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from django.conf import settings  # type: ignore

from shared.domain.value_objects import DateRange, Money

from .domain.exceptions import InvalidRange

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from apps.listings.models import Listing

logger = logging.getLogger(__name__)


class UnavailableReason:
    BOOKED = "booked"
    BLOCKED = "blocked"
    MIN_STAY = "min_stay"
    MAX_STAY = "max_stay"
    LISTING_UNAVAILABLE = "listing_unavailable"


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    nights: int
    reason: str | None = None
    conflicting_ranges: tuple[DateRange, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "available": self.available,
            "nights": self.nights,
            "reason": self.reason,
            "conflicting_ranges": [item.to_dict() for item in self.conflicting_ranges],
        }


@dataclass(frozen=True)
class PriceQuote:
    nightly_rate: Money
    nights: int
    subtotal: Money
    cleaning_fee: Money
    service_fee: Money
    taxes: Money
    total: Money

    @property
    def currency(self) -> str:
        return self.total.currency

    def to_dict(self) -> dict:
        return {
            "nightly_rate": str(self.nightly_rate.amount),
            "nights": self.nights,
            "subtotal": str(self.subtotal.amount),
            "cleaning_fee": str(self.cleaning_fee.amount),
            "service_fee": str(self.service_fee.amount),
            "taxes": str(self.taxes.amount),
            "total": str(self.total.amount),
            "currency": self.currency,
        }


def stay_range(check_in: date, check_out: date) -> DateRange:
    """Build the stay, turning an empty or inverted range into InvalidRange."""
    if check_out <= check_in:
        raise InvalidRange()
    return DateRange(check_in, check_out)


def _blocked_ranges(listing: "Listing", stay: DateRange) -> tuple[DateRange, ...]:
    blocked = listing.blocked_dates.filter(
        date__gte=stay.start_date,
        date__lt=stay.end_date,
    ).values_list("date", flat=True)
    return tuple(DateRange(day, day + timedelta(days=1)) for day in blocked)


def check_availability(
    listing: "Listing",
    check_in: date,
    check_out: date,
    *,
    exclude_booking_id=None,
    lock: bool = False,
) -> AvailabilityResult:
    """
    Decide whether ``[check_in, check_out)`` can be reserved on ``listing``.

    With ``lock=True`` the listing row is locked first (``select_for_update``)
    so that the answer stays true until the surrounding transaction ends.
    Callers must then be inside ``transaction.atomic``.
    """
    from apps.listings.models import Listing
    from .models import Booking

    stay = stay_range(check_in, check_out)
    nights = len(stay)

    if lock:
        listing = Listing.objects.select_for_update().get(pk=listing.pk)

    if not listing.is_bookable:
        return AvailabilityResult(False, nights, UnavailableReason.LISTING_UNAVAILABLE)

    if nights < listing.min_stay:
        return AvailabilityResult(False, nights, UnavailableReason.MIN_STAY)
    if listing.max_stay and nights > listing.max_stay:
        return AvailabilityResult(False, nights, UnavailableReason.MAX_STAY)

    blocked = _blocked_ranges(listing, stay)
    if blocked:
        return AvailabilityResult(False, nights, UnavailableReason.BLOCKED, blocked)

    bookings_qs = Booking.objects.filter(listing=listing).live().overlapping(check_in, check_out)
    if exclude_booking_id is not None:
        bookings_qs = bookings_qs.exclude(pk=exclude_booking_id)
    conflicts = tuple(
        DateRange(start, end)
        for start, end in bookings_qs.order_by("check_in").values_list("check_in", "check_out")
    )
    if conflicts:
        logger.info("Listing %s busy for %s: %d conflicting reservation(s)", listing.pk, stay, len(conflicts))
        return AvailabilityResult(False, nights, UnavailableReason.BOOKED, conflicts)

    return AvailabilityResult(True, nights)


def unavailable_dates(listing: "Listing", start: date, end: date) -> list[date]:
    """Sorted nights in ``[start, end)`` that are blocked or held by a live reservation."""
    from .models import Booking

    window = stay_range(start, end)
    days: set[date] = set(
        listing.blocked_dates.filter(date__gte=start, date__lt=end).values_list("date", flat=True)
    )

    reservations = (
        Booking.objects.filter(listing=listing).live().overlapping(start, end).values_list("check_in", "check_out")
    )
    for check_in, check_out in reservations:
        for day in DateRange(check_in, check_out).days():
            if window.contains(day):
                days.add(day)

    return sorted(days)


def _service_fee_rate(listing: "Listing") -> Decimal:
    if listing.service_fee_rate is not None:
        return Decimal(listing.service_fee_rate)
    return Decimal(str(settings.BOOKING.get("SERVICE_FEE_RATE", "0.10")))


def quote_price(listing: "Listing", stay: DateRange) -> PriceQuote:
    """
    Price a stay on ``listing``.

    Service fee and taxes are both charged on nights plus cleaning fee.
    Every component is rounded half-up to cents before summing.
    """
    nightly_rate = listing.nightly_rate
    currency = nightly_rate.currency
    nights = len(stay)

    subtotal = (nightly_rate * nights).rounded()
    cleaning_fee = Money(listing.cleaning_fee, currency).rounded()
    base = subtotal + cleaning_fee
    service_fee = (base * _service_fee_rate(listing)).rounded()
    taxes = (base * Decimal(listing.tax_rate)).rounded()
    total = base + service_fee + taxes

    return PriceQuote(
        nightly_rate=nightly_rate,
        nights=nights,
        subtotal=subtotal,
        cleaning_fee=cleaning_fee,
        service_fee=service_fee,
        taxes=taxes,
        total=total,
    )
