"""Tests for availability checks, the calendar and pricing."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase

from apps.bookings.domain.exceptions import InvalidRange
from apps.bookings.models import Booking
from apps.bookings.services import (
    UnavailableReason,
    check_availability,
    quote_price,
    stay_range,
    unavailable_dates,
)
from apps.bookings.tests.helpers import make_booking, make_listing, make_user, today
from apps.listings.models import BlockedDate, Listing
from apps.users.models import Role
from shared.domain.value_objects import DateRange


class AvailabilityTests(TestCase):
    def setUp(self) -> None:
        self.host = make_user("host@example.com", roles=[Role.HOST])
        self.guest = make_user("guest@example.com")
        self.listing = make_listing(self.host, min_stay=2, max_stay=7)
        self.start = today() + timedelta(days=10)

    def test_empty_calendar_is_available(self) -> None:
        result = check_availability(self.listing, self.start, self.start + timedelta(days=3))
        self.assertTrue(result.available)
        self.assertEqual(result.nights, 3)
        self.assertIsNone(result.reason)

    def test_inverted_or_empty_range_is_invalid(self) -> None:
        with self.assertRaises(InvalidRange):
            check_availability(self.listing, self.start, self.start)
        with self.assertRaises(InvalidRange):
            check_availability(self.listing, self.start, self.start - timedelta(days=1))

    def test_back_to_back_stays_do_not_conflict(self) -> None:
        make_booking(self.listing, self.guest, self.start, nights=3, status=Booking.Status.CONFIRMED)
        result = check_availability(self.listing, self.start + timedelta(days=3), self.start + timedelta(days=5))
        self.assertTrue(result.available)

        before = check_availability(self.listing, self.start - timedelta(days=2), self.start)
        self.assertTrue(before.available)

    def test_overlap_reports_conflicting_range(self) -> None:
        make_booking(self.listing, self.guest, self.start, nights=3)
        result = check_availability(self.listing, self.start + timedelta(days=2), self.start + timedelta(days=5))

        self.assertFalse(result.available)
        self.assertEqual(result.reason, UnavailableReason.BOOKED)
        self.assertEqual(result.conflicting_ranges, (DateRange(self.start, self.start + timedelta(days=3)),))

    def test_cancelled_and_completed_do_not_hold_dates(self) -> None:
        make_booking(self.listing, self.guest, self.start, nights=3, status=Booking.Status.CANCELLED)
        make_booking(self.listing, self.guest, self.start, nights=3, status=Booking.Status.COMPLETED)
        result = check_availability(self.listing, self.start, self.start + timedelta(days=3))
        self.assertTrue(result.available)

    def test_excluded_reservation_is_ignored(self) -> None:
        booking = make_booking(self.listing, self.guest, self.start, nights=3)
        result = check_availability(
            self.listing, self.start, self.start + timedelta(days=3), exclude_booking_id=booking.pk
        )
        self.assertTrue(result.available)

    def test_blocked_night_is_unavailable(self) -> None:
        BlockedDate.objects.create(listing=self.listing, date=self.start + timedelta(days=1), reason="Repairs")
        result = check_availability(self.listing, self.start, self.start + timedelta(days=3))

        self.assertFalse(result.available)
        self.assertEqual(result.reason, UnavailableReason.BLOCKED)
        first_range = result.to_dict()["conflicting_ranges"][0]
        self.assertEqual(first_range["check_in"], (self.start + timedelta(days=1)).isoformat())

    def test_blocked_checkout_day_does_not_count(self) -> None:
        BlockedDate.objects.create(listing=self.listing, date=self.start + timedelta(days=3))
        result = check_availability(self.listing, self.start, self.start + timedelta(days=3))
        self.assertTrue(result.available)

    def test_min_and_max_stay(self) -> None:
        too_short = check_availability(self.listing, self.start, self.start + timedelta(days=1))
        self.assertEqual(too_short.reason, UnavailableReason.MIN_STAY)

        too_long = check_availability(self.listing, self.start, self.start + timedelta(days=8))
        self.assertEqual(too_long.reason, UnavailableReason.MAX_STAY)

    def test_unpublished_listing_is_unavailable(self) -> None:
        self.listing.archive()
        result = check_availability(self.listing, self.start, self.start + timedelta(days=3))
        self.assertEqual(result.reason, UnavailableReason.LISTING_UNAVAILABLE)

    def test_listing_state_checked_before_stay_length(self) -> None:
        self.listing.status = Listing.Status.DRAFT
        self.listing.save()
        result = check_availability(self.listing, self.start, self.start + timedelta(days=1))
        self.assertEqual(result.reason, UnavailableReason.LISTING_UNAVAILABLE)


class CalendarTests(TestCase):
    def setUp(self) -> None:
        self.host = make_user("host@example.com", roles=[Role.HOST])
        self.guest = make_user("guest@example.com")
        self.listing = make_listing(self.host)
        self.start = today() + timedelta(days=5)

    def test_unavailable_dates_merge_blocks_and_reservations(self) -> None:
        make_booking(self.listing, self.guest, self.start + timedelta(days=1), nights=2)
        make_booking(
            self.listing, self.guest, self.start + timedelta(days=6), nights=2, status=Booking.Status.CANCELLED
        )
        BlockedDate.objects.create(listing=self.listing, date=self.start + timedelta(days=4))

        days = unavailable_dates(self.listing, self.start, self.start + timedelta(days=10))

        self.assertEqual(
            days,
            [
                self.start + timedelta(days=1),
                self.start + timedelta(days=2),
                self.start + timedelta(days=4),
            ],
        )

    def test_window_clips_reservations(self) -> None:
        make_booking(self.listing, self.guest, self.start - timedelta(days=1), nights=3)
        days = unavailable_dates(self.listing, self.start, self.start + timedelta(days=1))
        self.assertEqual(days, [self.start])


class PricingTests(TestCase):
    def setUp(self) -> None:
        self.host = make_user("host@example.com", roles=[Role.HOST])

    def test_breakdown(self) -> None:
        listing = make_listing(
            self.host,
            nightly_price=Decimal("100.00"),
            cleaning_fee=Decimal("20.00"),
            service_fee_rate=Decimal("0.10"),
            tax_rate=Decimal("0.05"),
        )
        start = today() + timedelta(days=3)
        quote = quote_price(listing, stay_range(start, start + timedelta(days=3)))

        self.assertEqual(quote.nights, 3)
        self.assertEqual(quote.subtotal.amount, Decimal("300.00"))
        self.assertEqual(quote.service_fee.amount, Decimal("32.00"))
        self.assertEqual(quote.taxes.amount, Decimal("16.00"))
        self.assertEqual(quote.total.amount, Decimal("368.00"))
        self.assertEqual(quote.currency, "USD")

    def test_default_service_fee_rate_and_rounding(self) -> None:
        listing = make_listing(
            self.host,
            nightly_price=Decimal("33.33"),
            cleaning_fee=Decimal("0.00"),
            service_fee_rate=None,
            tax_rate=Decimal("0"),
        )
        start = today() + timedelta(days=3)
        with self.settings(BOOKING={"SERVICE_FEE_RATE": "0.125"}):
            quote = quote_price(listing, stay_range(start, start + timedelta(days=1)))

        # 33.33 * 0.125 = 4.16625 -> 4.17 (half-up)
        self.assertEqual(quote.service_fee.amount, Decimal("4.17"))
        self.assertEqual(quote.total.amount, Decimal("37.50"))
