"""Tests for review submission and editing rules and the guest's review API."""

from __future__ import annotations

from datetime import timedelta

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.domain.exceptions import AlreadyReviewed, EditWindowClosed, InvalidTransition, NotYetEligible
from apps.bookings.models import Booking
from apps.bookings.tests.helpers import authenticate, make_booking, make_listing, make_user, today
from apps.reviews.models import Review
from apps.reviews.services import submit_review, update_review
from apps.users.models import Role


class SubmitReviewTests(TestCase):
    def setUp(self) -> None:
        self.host = make_user("host@example.com", roles=[Role.HOST])
        self.guest = make_user("guest@example.com")
        self.listing = make_listing(self.host)

    def test_completed_stay_can_be_reviewed_once(self) -> None:
        booking = make_booking(
            self.listing, self.guest, today() - timedelta(days=6), status=Booking.Status.COMPLETED
        )
        review = submit_review(booking, self.guest, rating=5, cleanliness_rating=5, value_rating=2)

        self.assertEqual(review.listing_id, self.listing.id)
        self.assertEqual(review.average_rating, 4.0)
        with self.assertRaises(AlreadyReviewed):
            submit_review(booking, self.guest, rating=1)

    def test_cancelled_stay_is_never_reviewable(self) -> None:
        booking = make_booking(
            self.listing, self.guest, today() - timedelta(days=6), status=Booking.Status.CANCELLED
        )
        with self.assertRaises(InvalidTransition):
            submit_review(booking, self.guest, rating=4)

    def test_active_stay_is_not_yet_reviewable(self) -> None:
        booking = make_booking(
            self.listing, self.guest, today() - timedelta(days=1), nights=3, status=Booking.Status.CONFIRMED
        )
        with self.assertRaises(NotYetEligible):
            submit_review(booking, self.guest, rating=4)
        self.assertFalse(Review.objects.exists())


class GuestReviewListAPITests(APITestCase):
    def setUp(self) -> None:
        self.host = make_user("host@example.com", roles=[Role.HOST])
        self.guest = make_user("guest@example.com")
        self.listing = make_listing(self.host)
        authenticate(self.client, self.guest)

    def test_lists_written_and_pending_reviews(self) -> None:
        reviewed = make_booking(
            self.listing, self.guest, today() - timedelta(days=20), status=Booking.Status.COMPLETED
        )
        awaiting = make_booking(
            self.listing, self.guest, today() - timedelta(days=6), status=Booking.Status.COMPLETED
        )
        make_booking(self.listing, self.guest, today() + timedelta(days=6), status=Booking.Status.CONFIRMED)
        Review.objects.create(author=self.guest, listing=self.listing, booking=reviewed, rating=4)

        response = self.client.get(reverse("guest-review-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(len(response.data["reviews"]), 1)
        self.assertEqual(
            [item["booking_id"] for item in response.data["pending_reviews"]],
            [str(awaiting.pk)],
        )


class UpdateReviewTests(TestCase):
    def setUp(self) -> None:
        host = make_user("host@example.com", roles=[Role.HOST])
        self.guest = make_user("guest@example.com")
        listing = make_listing(host)
        booking = make_booking(listing, self.guest, today() - timedelta(days=6), status=Booking.Status.COMPLETED)
        self.review = submit_review(booking, self.guest, rating=3, comment="Fine")

    def test_edit_inside_window_changes_only_given_fields(self) -> None:
        now = self.review.created_at + timedelta(hours=47)
        update_review(self.review, now=now, rating=5)

        self.review.refresh_from_db()
        self.assertEqual(self.review.rating, 5)
        self.assertEqual(self.review.comment, "Fine")

    def test_edit_at_window_edge_is_allowed(self) -> None:
        update_review(self.review, now=self.review.created_at + timedelta(hours=48), comment="Lovely")
        self.review.refresh_from_db()
        self.assertEqual(self.review.comment, "Lovely")

    def test_edit_after_window_is_rejected(self) -> None:
        with self.assertRaises(EditWindowClosed):
            update_review(self.review, now=self.review.created_at + timedelta(hours=49), rating=1)
        self.review.refresh_from_db()
        self.assertEqual(self.review.rating, 3)


class GuestReviewEditAPITests(APITestCase):
    def setUp(self) -> None:
        self.host = make_user("host@example.com", roles=[Role.HOST])
        self.guest = make_user("guest@example.com")
        self.listing = make_listing(self.host)
        booking = make_booking(
            self.listing, self.guest, today() - timedelta(days=6), status=Booking.Status.COMPLETED
        )
        self.review = Review.objects.create(author=self.guest, listing=self.listing, booking=booking, rating=3)

    def test_author_edits_recent_review(self) -> None:
        authenticate(self.client, self.guest)
        response = self.client.patch(
            reverse("guest-review-detail", args=[self.review.pk]),
            {"rating": 4, "comment": "Better than expected"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["rating"], 4)
        self.assertEqual(response.data["comment"], "Better than expected")

    def test_old_review_is_locked(self) -> None:
        Review.objects.filter(pk=self.review.pk).update(created_at=timezone.now() - timedelta(hours=49))
        authenticate(self.client, self.guest)

        response = self.client.patch(
            reverse("guest-review-detail", args=[self.review.pk]), {"rating": 1}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["code"], "edit_window_closed")
        self.review.refresh_from_db()
        self.assertEqual(self.review.rating, 3)

    def test_other_guest_cannot_edit(self) -> None:
        authenticate(self.client, make_user("other@example.com"))
        response = self.client.patch(
            reverse("guest-review-detail", args=[self.review.pk]), {"rating": 1}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_out_of_range_rating_is_rejected(self) -> None:
        authenticate(self.client, self.guest)
        response = self.client.patch(
            reverse("guest-review-detail", args=[self.review.pk]), {"rating": 6}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("rating", response.data)
