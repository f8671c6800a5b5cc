"""Booking domain models for GetIn.

``Booking`` is the aggregate root of the reservation lifecycle. Transition
methods enforce the state machine from ``domain.entities`` and record domain
events; persistence and event publishing belong to the command handlers,
which run them inside a unit of work.
"""

from __future__ import annotations

import uuid
from datetime import datetime, time
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.base import EventRecorder
from shared.domain.value_objects import DateRange, Money

from .domain.access import can_request_late_checkout
from .domain.entities import (
    BookingStatus,
    CancellationSource,
    check_transition,
    effective_status,
    refund_percentage as policy_refund_percentage,
)
from .domain.events import (
    BookingActivated,
    BookingCancelled,
    BookingCompleted,
    BookingConfirmed,
    LateCheckoutDecided,
    LateCheckoutRequested,
)
from .domain.exceptions import BookingNotFound, InvalidTransition, NotYetEligible


class BookingQuerySet(models.QuerySet):
    def live(self):  # type: ignore
        """Reservations that occupy the calendar."""
        return self.filter(status__in=[status.value for status in BookingStatus if status.holds_dates])

    def overlapping(self, check_in, check_out):  # type: ignore
        """Half-open overlap: back-to-back stays do not collide."""
        return self.filter(check_in__lt=check_out, check_out__gt=check_in)

    def for_guest(self, user):  # type: ignore
        return self.filter(guest=user)

    def for_host(self, user):  # type: ignore
        return self.filter(listing__host=user)


class Booking(EventRecorder, models.Model):
    """Reservation of a listing by a guest for a range of nights."""

    class Status(models.TextChoices):
        PENDING = BookingStatus.PENDING.value, _("Pending")
        CONFIRMED = BookingStatus.CONFIRMED.value, _("Confirmed")
        ACTIVE = BookingStatus.ACTIVE.value, _("Active")
        COMPLETED = BookingStatus.COMPLETED.value, _("Completed")
        CANCELLED = BookingStatus.CANCELLED.value, _("Cancelled")

    class CancelledBy(models.TextChoices):
        GUEST = CancellationSource.GUEST.value, _("Guest")
        HOST = CancellationSource.HOST.value, _("Host")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    listing = models.ForeignKey(
        "listings.Listing",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    guest = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    check_in = models.DateField()
    check_out = models.DateField()
    guests_count = models.PositiveSmallIntegerField(default=1)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)

    nightly_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text=_("Nightly price fixed at reservation time."),
    )
    nights = models.PositiveSmallIntegerField()
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    cleaning_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    service_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    taxes = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="USD")

    special_requests = models.TextField(blank=True)
    cancelled_by = models.CharField(max_length=10, choices=CancelledBy.choices, blank=True)
    cancellation_reason = models.CharField(max_length=500, blank=True)
    refund_percentage = models.PositiveSmallIntegerField(null=True, blank=True)
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    activated_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gt=models.F("check_in")),
                name="booking_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["listing", "check_in", "check_out"]),
            models.Index(fields=["status"]),
            models.Index(fields=["guest", "status"]),
        ]

    def __str__(self) -> str:
        return f"Booking {self.pk} for {self.listing_id} ({self.check_in} - {self.check_out})"

    # ----- read model -------------------------------------------------

    @property
    def stay(self) -> DateRange:
        return DateRange(self.check_in, self.check_out)

    @property
    def total(self) -> Money:
        return Money(self.total_amount, self.currency)

    def effective_status(self, now: datetime | None = None) -> BookingStatus:
        return effective_status(self.status, self.check_in, now or timezone.now())

    def is_host(self, user) -> bool:
        return self.listing.host_id == getattr(user, "pk", user)

    def refund_quote(self, source: CancellationSource, now: datetime | None = None) -> tuple[int, Money]:
        """
        Refund owed if the reservation were cancelled by ``source`` at ``now``.

        A host cancellation refunds the whole total. A guest cancellation
        refunds the listing policy's share of the total less the service fee.
        """
        now = now or timezone.now()
        if CancellationSource(source) is CancellationSource.HOST:
            return 100, self.total
        percentage = policy_refund_percentage(self.listing.cancellation_policy, self.check_in, now)
        refundable = self.total - Money(self.service_fee, self.currency)
        return percentage, (refundable * (Decimal(percentage) / 100)).rounded()

    # ----- transitions ------------------------------------------------

    def _event_kwargs(self) -> dict:
        return {
            "aggregate_id": self.pk,
            "booking_id": self.pk,
            "listing_id": self.listing_id,
            "guest_id": self.guest_id,
        }

    def confirm(self, now: datetime | None = None, automatic: bool = False) -> bool:
        """
        PENDING -> CONFIRMED

        Returns False without touching anything when the reservation is
        already confirmed.
        """
        now = now or timezone.now()
        if self.status == self.Status.CONFIRMED:
            return False
        check_transition(self.status, BookingStatus.CONFIRMED)

        self.status = self.Status.CONFIRMED
        self.confirmed_at = now
        self.record_event(BookingConfirmed(check_in=self.check_in, automatic=automatic, **self._event_kwargs()))
        return True

    def activate(self, now: datetime | None = None) -> bool:
        """Materialise CONFIRMED -> ACTIVE once the check-in instant has passed."""
        now = now or timezone.now()
        if self.status != self.Status.CONFIRMED or self.effective_status(now) is not BookingStatus.ACTIVE:
            return False

        self.status = self.Status.ACTIVE
        self.activated_at = now
        self.record_event(BookingActivated(**self._event_kwargs()))
        return True

    def cancel(self, source: CancellationSource, reason: str = "", now: datetime | None = None) -> None:
        """
        PENDING|CONFIRMED -> CANCELLED

        Judged on the effective status: a confirmed reservation whose
        check-in instant has passed is active and cannot be cancelled.
        """
        now = now or timezone.now()
        current = self.effective_status(now)
        check_transition(current, BookingStatus.CANCELLED)

        percentage, refund = self.refund_quote(source, now)

        previous = self.status
        self.status = self.Status.CANCELLED
        self.cancelled_by = CancellationSource(source).value
        self.cancellation_reason = reason
        self.cancelled_at = now
        self.refund_percentage = percentage
        self.refund_amount = refund.amount
        self.record_event(
            BookingCancelled(
                cancelled_by=self.cancelled_by,
                reason=reason,
                previous_status=previous,
                refund_percentage=percentage,
                refund_amount=str(refund.amount),
                **self._event_kwargs(),
            )
        )

    def complete(self, now: datetime | None = None, issues_reported: bool = False) -> None:
        """ACTIVE -> COMPLETED"""
        now = now or timezone.now()
        current = self.effective_status(now)
        if current in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
            raise NotYetEligible("Check-out opens once the stay has started.")
        if current is not BookingStatus.ACTIVE:
            raise InvalidTransition(
                f"Cannot complete a {current.value} reservation.",
                current_status=current.value,
            )

        if self.activated_at is None:
            self.activated_at = now
        self.status = self.Status.COMPLETED
        self.completed_at = now
        self.record_event(BookingCompleted(issues_reported=issues_reported, **self._event_kwargs()))

    # ----- late check-out ---------------------------------------------

    def request_late_checkout(self, requested_time: time, reason: str = "", now: datetime | None = None):
        """
        Open a late check-out request, or amend it while the host has not
        answered. The returned request is not saved.
        """
        now = now or timezone.now()
        if not can_request_late_checkout(self, self.guest_id, now):
            current = self.effective_status(now)
            if current.is_terminal:
                raise InvalidTransition(
                    f"Cannot request a late check-out on a {current.value} reservation.",
                    current_status=current.value,
                )
            raise NotYetEligible("Late check-out can be requested between 48 and 12 hours before check-out.")

        request = getattr(self, "late_checkout", None)
        if request is None:
            request = LateCheckoutRequest(booking=self)
        elif request.status != LateCheckoutRequest.Status.PENDING:
            raise InvalidTransition("The host has already answered this late check-out request.")

        request.requested_time = requested_time
        request.reason = reason
        self.record_event(
            LateCheckoutRequested(requested_time=requested_time.isoformat(), **self._event_kwargs())
        )
        return request

    def decide_late_checkout(self, approved: bool, now: datetime | None = None):
        """Host's answer to a pending late check-out request. The returned request is not saved."""
        now = now or timezone.now()
        request = getattr(self, "late_checkout", None)
        if request is None:
            raise BookingNotFound("There is no late check-out request on this reservation.")

        current = self.effective_status(now)
        if current.is_terminal:
            raise InvalidTransition(
                f"Cannot answer a late check-out request on a {current.value} reservation.",
                current_status=current.value,
            )
        if request.status != LateCheckoutRequest.Status.PENDING:
            raise InvalidTransition("This late check-out request has already been answered.")

        request.status = LateCheckoutRequest.Status.APPROVED if approved else LateCheckoutRequest.Status.DECLINED
        request.decided_at = now
        self.record_event(
            LateCheckoutDecided(
                approved=approved,
                requested_time=request.requested_time.isoformat(),
                **self._event_kwargs(),
            )
        )
        return request


class CheckOutReport(models.Model):
    """Guest's departure checklist. Submitting it completes the stay."""

    class PropertyCondition(models.TextChoices):
        EXCELLENT = "excellent", _("Excellent")
        GOOD = "good", _("Good")
        FAIR = "fair", _("Fair")
        POOR = "poor", _("Poor")

    booking = models.OneToOneField(
        Booking,
        on_delete=models.PROTECT,
        related_name="checkout_report",
    )
    keys_returned = models.BooleanField(default=False)
    trash_disposed = models.BooleanField(default=False)
    windows_closed = models.BooleanField(default=False)
    lights_off = models.BooleanField(default=False)
    property_condition = models.CharField(
        max_length=20,
        choices=PropertyCondition.choices,
        default=PropertyCondition.GOOD,
    )
    issues_reported = models.TextField(blank=True)
    submitted_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _("Check-out report")
        verbose_name_plural = _("Check-out reports")
        ordering = ["-submitted_at"]

    def __str__(self) -> str:
        return f"Check-out for {self.booking_id}"


class LateCheckoutRequest(models.Model):
    """Guest's request to leave after the listing's check-out time. The host decides."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        APPROVED = "approved", _("Approved")
        DECLINED = "declined", _("Declined")

    booking = models.OneToOneField(
        Booking,
        on_delete=models.CASCADE,
        related_name="late_checkout",
    )
    requested_time = models.TimeField(help_text=_("Local time the guest wants to leave on the check-out date."))
    reason = models.CharField(max_length=500, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    decided_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = _("Late check-out request")
        verbose_name_plural = _("Late check-out requests")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Late check-out for {self.booking_id} at {self.requested_time}"
