"""Integration tests for booking API endpoints."""

from __future__ import annotations

from datetime import time, timedelta
from decimal import Decimal
from uuid import uuid4

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking, CheckOutReport, LateCheckoutRequest
from apps.bookings.tests.helpers import authenticate, make_booking, make_listing, make_user, today
from apps.listings.models import CheckInInstructions
from apps.users.models import Role


class BookingAPITestCase(APITestCase):
    def setUp(self) -> None:
        self.host = make_user("host@example.com", roles=[Role.HOST])
        self.guest = make_user("guest@example.com", first_name="Marie", last_name="Joseph")
        self.other_guest = make_user("other@example.com")
        self.listing = make_listing(self.host)
        self.list_url = reverse("guest-booking-list")

    def _payload(self, check_in, check_out, **extra) -> dict:
        payload = {
            "listing": str(self.listing.id),
            "check_in": str(check_in),
            "check_out": str(check_out),
            "guests_count": 2,
        }
        payload.update(extra)
        return payload

    def _guest_action(self, booking: Booking, name: str) -> str:
        return reverse(f"guest-booking-{name}", args=[booking.pk])

    def _host_action(self, booking: Booking, name: str) -> str:
        return reverse(f"host-booking-{name}", args=[booking.pk])


class CreateBookingAPITests(BookingAPITestCase):
    def setUp(self) -> None:
        super().setUp()
        authenticate(self.client, self.guest)

    def test_guest_can_create_booking(self) -> None:
        check_in = today() + timedelta(days=10)

        response = self.client.post(
            self.list_url, self._payload(check_in, check_in + timedelta(days=3)), format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], "pending")
        self.assertEqual(response.data["effective_status"], "pending")
        self.assertEqual(response.data["price"]["nights"], 3)
        self.assertEqual(response.data["price"]["total"], "368.00")
        self.assertEqual(response.data["guest"]["name"], "Marie Joseph")
        self.assertTrue(response.data["actions"]["can_cancel"])
        self.assertFalse(response.data["actions"]["can_confirm"])

        booking = Booking.objects.get()
        self.assertEqual(booking.guest, self.guest)
        self.assertEqual(booking.total_amount, Decimal("368.00"))

    def test_prevent_double_booking_on_overlap(self) -> None:
        check_in = today() + timedelta(days=10)
        first = self.client.post(self.list_url, self._payload(check_in, check_in + timedelta(days=2)), format="json")
        self.assertEqual(first.status_code, status.HTTP_201_CREATED, first.data)

        authenticate(self.client, self.other_guest)
        conflict = self.client.post(
            self.list_url,
            self._payload(check_in + timedelta(days=1), check_in + timedelta(days=3)),
            format="json",
        )

        self.assertEqual(conflict.status_code, status.HTTP_409_CONFLICT, conflict.data)
        self.assertEqual(conflict.data["code"], "conflict")
        self.assertEqual(conflict.data["reason"], "booked")
        self.assertEqual(
            conflict.data["conflicting_ranges"],
            [{"check_in": str(check_in), "check_out": str(check_in + timedelta(days=2))}],
        )
        self.assertEqual(Booking.objects.count(), 1)

    def test_back_to_back_booking_is_accepted(self) -> None:
        check_in = today() + timedelta(days=10)
        make_booking(self.listing, self.other_guest, check_in, nights=2, status=Booking.Status.CONFIRMED)

        response = self.client.post(
            self.list_url,
            self._payload(check_in + timedelta(days=2), check_in + timedelta(days=4)),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

    def test_instant_book_listing_confirms_immediately(self) -> None:
        self.listing.instant_book = True
        self.listing.save()
        check_in = today() + timedelta(days=10)

        response = self.client.post(
            self.list_url, self._payload(check_in, check_in + timedelta(days=2)), format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], "confirmed")
        self.assertIsNotNone(response.data["confirmed_at"])

    def test_inverted_range_is_rejected(self) -> None:
        check_in = today() + timedelta(days=10)
        response = self.client.post(self.list_url, self._payload(check_in, check_in), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["code"], "invalid_range")

    def test_stay_shorter_than_minimum_is_rejected(self) -> None:
        self.listing.min_stay = 3
        self.listing.save()
        check_in = today() + timedelta(days=10)

        response = self.client.post(
            self.list_url, self._payload(check_in, check_in + timedelta(days=2)), format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["code"], "invalid_range")

    def test_too_many_guests_is_rejected(self) -> None:
        check_in = today() + timedelta(days=10)
        response = self.client.post(
            self.list_url,
            self._payload(check_in, check_in + timedelta(days=2), guests_count=9),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["code"], "invalid_booking")

    def test_host_cannot_book_own_listing(self) -> None:
        both = make_user("both@example.com", roles=[Role.GUEST, Role.HOST])
        own = make_listing(both, title="My own place")
        authenticate(self.client, both)
        check_in = today() + timedelta(days=10)

        response = self.client.post(
            self.list_url,
            {"listing": str(own.id), "check_in": str(check_in), "check_out": str(check_in + timedelta(days=2))},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["code"], "invalid_booking")

    def test_unknown_listing_is_not_found(self) -> None:
        check_in = today() + timedelta(days=10)
        response = self.client.post(
            self.list_url,
            {"listing": str(uuid4()), "check_in": str(check_in), "check_out": str(check_in + timedelta(days=2))},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, response.data)
        self.assertEqual(response.data["code"], "not_found")

    def test_guest_sees_only_own_bookings(self) -> None:
        mine = make_booking(self.listing, self.guest, today() + timedelta(days=10))
        theirs = make_booking(self.listing, self.other_guest, today() + timedelta(days=20))

        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["id"], str(mine.pk))

        detail = self.client.get(reverse("guest-booking-detail", args=[theirs.pk]))
        self.assertEqual(detail.status_code, status.HTTP_404_NOT_FOUND)


class TransitionAPITests(BookingAPITestCase):
    def test_host_confirms_and_reconfirm_is_noop(self) -> None:
        booking = make_booking(self.listing, self.guest, today() + timedelta(days=10))
        authenticate(self.client, self.host)

        first = self.client.post(self._host_action(booking, "confirm"))
        self.assertEqual(first.status_code, status.HTTP_200_OK, first.data)
        self.assertEqual(first.data["status"], "confirmed")
        confirmed_at = first.data["confirmed_at"]

        second = self.client.post(self._host_action(booking, "confirm"))
        self.assertEqual(second.status_code, status.HTTP_200_OK, second.data)
        self.assertEqual(second.data["confirmed_at"], confirmed_at)

    def test_host_cannot_confirm_cancelled_booking(self) -> None:
        booking = make_booking(
            self.listing, self.guest, today() + timedelta(days=10), status=Booking.Status.CANCELLED
        )
        authenticate(self.client, self.host)

        response = self.client.post(self._host_action(booking, "confirm"))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)
        self.assertEqual(response.data["code"], "invalid_transition")
        self.assertEqual(response.data["status"], "cancelled")

    def test_other_host_cannot_see_booking(self) -> None:
        booking = make_booking(self.listing, self.guest, today() + timedelta(days=10))
        stranger = make_user("stranger@example.com", roles=[Role.HOST])
        authenticate(self.client, stranger)

        response = self.client.post(self._host_action(booking, "confirm"))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_guest_cancel_frees_dates(self) -> None:
        check_in = today() + timedelta(days=10)
        booking = make_booking(self.listing, self.guest, check_in, status=Booking.Status.CONFIRMED)
        authenticate(self.client, self.guest)

        response = self.client.post(self._guest_action(booking, "cancel"), {"reason": "Plans changed"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "cancelled")
        self.assertEqual(response.data["cancelled_by"], "guest")
        self.assertEqual(response.data["cancellation_reason"], "Plans changed")

        authenticate(self.client, self.other_guest)
        rebook = self.client.post(
            self.list_url, self._payload(check_in, check_in + timedelta(days=2)), format="json"
        )
        self.assertEqual(rebook.status_code, status.HTTP_201_CREATED, rebook.data)

    def test_host_cancel_records_source(self) -> None:
        booking = make_booking(self.listing, self.guest, today() + timedelta(days=10))
        authenticate(self.client, self.host)

        response = self.client.post(self._host_action(booking, "cancel"), {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["cancelled_by"], "host")

    def test_started_stay_cannot_be_cancelled(self) -> None:
        booking = make_booking(
            self.listing, self.guest, today() - timedelta(days=1), nights=3, status=Booking.Status.CONFIRMED
        )
        authenticate(self.client, self.guest)

        response = self.client.post(self._guest_action(booking, "cancel"), {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)
        self.assertEqual(response.data["status"], "active")
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.CONFIRMED)

    def test_cancelled_booking_cannot_be_cancelled_again(self) -> None:
        booking = make_booking(
            self.listing, self.guest, today() + timedelta(days=10), status=Booking.Status.CANCELLED
        )
        authenticate(self.client, self.guest)

        response = self.client.post(self._guest_action(booking, "cancel"), {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)


class CheckoutAPITests(BookingAPITestCase):
    def setUp(self) -> None:
        super().setUp()
        authenticate(self.client, self.guest)
        self.checklist = {
            "keys_returned": True,
            "trash_disposed": True,
            "windows_closed": True,
            "lights_off": False,
            "property_condition": "good",
            "issues_reported": "Kitchen tap drips",
        }

    def test_checkout_completes_active_stay(self) -> None:
        booking = make_booking(
            self.listing, self.guest, today() - timedelta(days=2), nights=3, status=Booking.Status.CONFIRMED
        )

        response = self.client.post(self._guest_action(booking, "checkout"), self.checklist, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "completed")
        self.assertEqual(response.data["checkout_report"]["issues_reported"], "Kitchen tap drips")
        self.assertTrue(response.data["actions"]["can_review"])
        report = CheckOutReport.objects.get(booking=booking)
        self.assertTrue(report.keys_returned)
        self.assertFalse(report.lights_off)

    def test_second_report_is_rejected(self) -> None:
        booking = make_booking(
            self.listing, self.guest, today() - timedelta(days=2), nights=3, status=Booking.Status.ACTIVE
        )
        first = self.client.post(self._guest_action(booking, "checkout"), self.checklist, format="json")
        self.assertEqual(first.status_code, status.HTTP_200_OK, first.data)

        second = self.client.post(self._guest_action(booking, "checkout"), self.checklist, format="json")
        self.assertEqual(second.status_code, status.HTTP_409_CONFLICT, second.data)
        self.assertEqual(second.data["code"], "invalid_transition")
        self.assertEqual(CheckOutReport.objects.filter(booking=booking).count(), 1)

    def test_unknown_property_condition_is_rejected(self) -> None:
        booking = make_booking(
            self.listing, self.guest, today() - timedelta(days=2), nights=3, status=Booking.Status.ACTIVE
        )
        checklist = dict(self.checklist, property_condition="damaged")

        response = self.client.post(self._guest_action(booking, "checkout"), checklist, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertIn("property_condition", response.data)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.ACTIVE)

    def test_checkout_before_check_in_is_not_eligible(self) -> None:
        booking = make_booking(
            self.listing, self.guest, today() + timedelta(days=3), status=Booking.Status.CONFIRMED
        )
        response = self.client.post(self._guest_action(booking, "checkout"), self.checklist, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN, response.data)
        self.assertEqual(response.data["code"], "not_yet_eligible")
        self.assertFalse(CheckOutReport.objects.exists())


class InstructionsAPITests(BookingAPITestCase):
    def setUp(self) -> None:
        super().setUp()
        CheckInInstructions.objects.create(
            listing=self.listing,
            door_code="4821",
            wifi_name="Jacmel-Guest",
            wifi_password="sea-breeze",
            house_rules=["No smoking", "Quiet after 22:00"],
        )
        authenticate(self.client, self.guest)

    def test_locked_far_from_check_in(self) -> None:
        booking = make_booking(
            self.listing, self.guest, today() + timedelta(days=7), status=Booking.Status.CONFIRMED
        )
        response = self.client.get(self._guest_action(booking, "instructions"))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertFalse(response.data["unlocked"])
        self.assertIsNotNone(response.data["unlocks_at"])
        self.assertNotIn("instructions", response.data)

    def test_unlocked_inside_window(self) -> None:
        booking = make_booking(
            self.listing, self.guest, today() + timedelta(days=1), status=Booking.Status.CONFIRMED
        )
        response = self.client.get(self._guest_action(booking, "instructions"))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["unlocked"])
        instructions = response.data["instructions"]
        self.assertEqual(instructions["door_code"], "4821")
        self.assertEqual(instructions["wifi_password"], "sea-breeze")
        self.assertEqual(instructions["house_rules"], ["No smoking", "Quiet after 22:00"])
        self.assertIn("Jacmel", instructions["address"])

    def test_cancelled_booking_never_unlocks(self) -> None:
        booking = make_booking(
            self.listing, self.guest, today() + timedelta(days=1), status=Booking.Status.CANCELLED
        )
        response = self.client.get(self._guest_action(booking, "instructions"))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertFalse(response.data["unlocked"])
        self.assertIsNone(response.data["unlocks_at"])

    def test_door_code_is_encrypted_at_rest(self) -> None:
        from django.db import connection

        with connection.cursor() as cursor:
            cursor.execute(
                "SELECT door_code FROM listings_checkininstructions WHERE listing_id = %s",
                [self.listing.pk.hex],
            )
            row = cursor.fetchone()
        self.assertIsNotNone(row)
        self.assertNotEqual(row[0], "4821")


class ReviewAPITests(BookingAPITestCase):
    def setUp(self) -> None:
        super().setUp()
        authenticate(self.client, self.guest)
        self.payload = {"rating": 5, "cleanliness_rating": 4, "comment": "Lovely stay"}

    def test_review_after_completion(self) -> None:
        booking = make_booking(
            self.listing, self.guest, today() - timedelta(days=5), status=Booking.Status.COMPLETED
        )
        response = self.client.post(self._guest_action(booking, "review"), self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["rating"], 5)
        self.assertEqual(response.data["booking_id"], booking.pk)

        again = self.client.post(self._guest_action(booking, "review"), self.payload, format="json")
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT, again.data)
        self.assertEqual(again.data["code"], "already_reviewed")

    def test_review_before_completion_is_not_eligible(self) -> None:
        booking = make_booking(
            self.listing, self.guest, today() + timedelta(days=5), status=Booking.Status.CONFIRMED
        )
        response = self.client.post(self._guest_action(booking, "review"), self.payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN, response.data)


class RouteAccessAPITests(BookingAPITestCase):
    def test_anonymous_guest_space_redirects_to_login(self) -> None:
        response = self.client.get(self.list_url + "?status=pending")

        self.assertEqual(response.status_code, status.HTTP_302_FOUND)
        self.assertEqual(
            response["Location"],
            "/login?next=%2Fapi%2Fv1%2Fguest%2Fbookings%2F%3Fstatus%3Dpending&mode=guest",
        )

    def test_host_without_guest_role_goes_to_landing(self) -> None:
        authenticate(self.client, self.host)
        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_302_FOUND)
        self.assertEqual(response["Location"], "/")

    def test_guest_without_host_role_goes_to_landing(self) -> None:
        authenticate(self.client, self.guest)
        response = self.client.get(reverse("host-booking-list"))

        self.assertEqual(response.status_code, status.HTTP_302_FOUND)
        self.assertEqual(response["Location"], "/")

    def test_invalid_token_counts_as_anonymous(self) -> None:
        self.client.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")
        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_302_FOUND)
        self.assertTrue(response["Location"].startswith("/login?"))


class CancellationRefundAPITests(BookingAPITestCase):
    def test_moderate_policy_refunds_half_inside_five_days(self) -> None:
        self.listing.cancellation_policy = "moderate"
        self.listing.save(update_fields=["cancellation_policy"])
        booking = make_booking(self.listing, self.guest, today() + timedelta(days=3), status=Booking.Status.CONFIRMED)
        authenticate(self.client, self.guest)

        detail = self.client.get(reverse("guest-booking-detail", args=[booking.pk]))
        self.assertEqual(detail.data["cancellation"]["policy"], "moderate")
        self.assertEqual(detail.data["cancellation"]["refund_percentage"], 50)
        self.assertEqual(detail.data["cancellation"]["potential_refund"], "115.50")

        response = self.client.post(self._guest_action(booking, "cancel"), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["refund_percentage"], 50)
        self.assertEqual(response.data["refund_amount"], "115.50")
        self.assertIsNone(response.data["cancellation"])

    def test_flexible_policy_refunds_all_but_service_fee(self) -> None:
        booking = make_booking(self.listing, self.guest, today() + timedelta(days=2))
        authenticate(self.client, self.guest)

        response = self.client.post(self._guest_action(booking, "cancel"), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["refund_percentage"], 100)
        booking.refresh_from_db()
        self.assertEqual(booking.refund_amount, booking.total_amount - booking.service_fee)

    def test_host_cancellation_refunds_everything(self) -> None:
        self.listing.cancellation_policy = "strict"
        self.listing.save(update_fields=["cancellation_policy"])
        booking = make_booking(self.listing, self.guest, today() + timedelta(days=2), status=Booking.Status.CONFIRMED)
        authenticate(self.client, self.host)

        response = self.client.post(self._host_action(booking, "cancel"), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["refund_percentage"], 100)
        self.assertEqual(response.data["refund_amount"], response.data["price"]["total"])


class LateCheckoutAPITests(BookingAPITestCase):
    def setUp(self) -> None:
        super().setUp()
        # Checked in yesterday, leaving in two days: inside the request window.
        self.booking = make_booking(
            self.listing, self.guest, today() - timedelta(days=1), nights=3, status=Booking.Status.CONFIRMED
        )

    def _request(self, booking: Booking, **payload):  # type: ignore
        authenticate(self.client, self.guest)
        body = {"requested_time": "14:00", **payload}
        return self.client.post(self._guest_action(booking, "late-checkout"), body, format="json")

    def test_guest_requests_and_host_approves(self) -> None:
        response = self._request(self.booking, reason="Late flight")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["late_checkout"]["status"], "pending")
        self.assertEqual(response.data["late_checkout"]["requested_time"], "14:00:00")
        self.assertTrue(response.data["actions"]["can_request_late_checkout"])

        authenticate(self.client, self.host)
        decided = self.client.post(self._host_action(self.booking, "late-checkout"), {"approved": True}, format="json")

        self.assertEqual(decided.status_code, status.HTTP_200_OK, decided.data)
        self.assertEqual(decided.data["late_checkout"]["status"], "approved")
        self.assertIsNotNone(decided.data["late_checkout"]["decided_at"])

        again = self.client.post(self._host_action(self.booking, "late-checkout"), {"approved": False}, format="json")
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT, again.data)

    def test_pending_request_can_be_amended(self) -> None:
        self._request(self.booking)
        response = self._request(self.booking, requested_time="15:30")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["late_checkout"]["requested_time"], "15:30:00")
        self.assertEqual(LateCheckoutRequest.objects.filter(booking=self.booking).count(), 1)

    def test_answered_request_cannot_be_reopened(self) -> None:
        LateCheckoutRequest.objects.create(
            booking=self.booking, requested_time=time(13, 0), status=LateCheckoutRequest.Status.DECLINED
        )
        response = self._request(self.booking)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)

    def test_too_early_in_the_trip_is_not_eligible(self) -> None:
        booking = make_booking(
            self.listing, self.guest, today() + timedelta(days=10), nights=4, status=Booking.Status.CONFIRMED
        )
        response = self._request(booking)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN, response.data)
        self.assertEqual(response.data["code"], "not_yet_eligible")
        self.assertFalse(LateCheckoutRequest.objects.exists())

    def test_completed_stay_cannot_request(self) -> None:
        self.booking.status = Booking.Status.COMPLETED
        self.booking.save(update_fields=["status"])

        response = self._request(self.booking)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)

    def test_host_answer_without_request_is_not_found(self) -> None:
        authenticate(self.client, self.host)
        response = self.client.post(self._host_action(self.booking, "late-checkout"), {"approved": True}, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, response.data)
        self.assertEqual(response.data["code"], "not_found")

    def test_decision_requires_approved_flag(self) -> None:
        self._request(self.booking)
        authenticate(self.client, self.host)

        response = self.client.post(self._host_action(self.booking, "late-checkout"), {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("approved", response.data)
