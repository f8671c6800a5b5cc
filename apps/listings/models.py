"""Listing domain models for GetIn.

A listing is what a host publishes and a guest reserves. Only published
listings accept reservations; the calendar is made of reservations plus the
host's blocked dates. Check-in instructions hold the door code and wifi
password encrypted at rest and are released to guests by the temporal gate
in ``apps.bookings.domain.access``.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.bookings.domain.entities import CancellationPolicy as Policy
from shared.domain.value_objects import SUPPORTED_CURRENCIES, Money
from shared.infrastructure.fields import EncryptedCharField

CURRENCY_CHOICES = [(code, code) for code in SUPPORTED_CURRENCIES]


class ListingQuerySet(models.QuerySet):
    def published(self):  # type: ignore
        return self.filter(status=Listing.Status.PUBLISHED)

    def owned_by(self, user):  # type: ignore
        return self.filter(host=user)


class Listing(models.Model):
    """A rentable place published by a host."""

    class Status(models.TextChoices):
        DRAFT = "draft", _("Draft")
        PUBLISHED = "published", _("Published")
        ARCHIVED = "archived", _("Archived")

    class CancellationPolicy(models.TextChoices):
        FLEXIBLE = Policy.FLEXIBLE.value, _("Flexible")
        MODERATE = Policy.MODERATE.value, _("Moderate")
        STRICT = Policy.STRICT.value, _("Strict")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    host = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="listings",
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    city = models.CharField(max_length=100)
    country = models.CharField(max_length=100, blank=True)
    address_line = models.CharField(max_length=255, blank=True)

    nightly_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    cleaning_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    service_fee_rate = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("1"))],
        help_text=_("Fraction of the subtotal; empty means the platform default."),
    )
    tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("1"))],
    )
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default="USD")

    min_stay = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1)])
    max_stay = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1)],
        help_text=_("Empty means no upper limit."),
    )
    max_guests = models.PositiveSmallIntegerField(default=2, validators=[MinValueValidator(1)])
    instant_book = models.BooleanField(
        default=False,
        help_text=_("Reservations are confirmed without host approval."),
    )
    cancellation_policy = models.CharField(
        max_length=20,
        choices=CancellationPolicy.choices,
        default=CancellationPolicy.FLEXIBLE,
        help_text=_("Refund tiers applied when a guest cancels."),
    )

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    published_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ListingQuerySet.as_manager()

    class Meta:
        verbose_name = _("Listing")
        verbose_name_plural = _("Listings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(max_stay__isnull=True) | models.Q(max_stay__gte=models.F("min_stay")),
                name="listing_min_max_stay_valid",
            ),
        ]
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["host", "status"]),
        ]

    def __str__(self) -> str:
        return self.title

    @property
    def is_bookable(self) -> bool:
        return self.status == self.Status.PUBLISHED

    @property
    def nightly_rate(self) -> Money:
        return Money(self.nightly_price, self.currency)

    def publish(self) -> None:
        if self.status != self.Status.PUBLISHED:
            self.status = self.Status.PUBLISHED
            self.published_at = timezone.now()
            self.save(update_fields=["status", "published_at", "updated_at"])

    def archive(self) -> None:
        if self.status != self.Status.ARCHIVED:
            self.status = self.Status.ARCHIVED
            self.save(update_fields=["status", "updated_at"])


class BlockedDate(models.Model):
    """A single night the host has closed on the calendar."""

    listing = models.ForeignKey(Listing, on_delete=models.CASCADE, related_name="blocked_dates")
    date = models.DateField()
    reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Blocked date")
        verbose_name_plural = _("Blocked dates")
        ordering = ["date"]
        constraints = [
            models.UniqueConstraint(fields=["listing", "date"], name="unique_blocked_date_per_listing"),
        ]

    def __str__(self) -> str:
        return f"{self.listing.title}: {self.date}"


class CheckInInstructions(models.Model):
    """
    Arrival information for a listing.

    Door code and wifi password are encrypted with Fernet. Guests only see
    them once the reservation is inside the unlock window.
    """

    listing = models.OneToOneField(
        Listing,
        on_delete=models.CASCADE,
        related_name="instructions",
    )
    door_code = EncryptedCharField(max_length=50, blank=True)
    wifi_name = models.CharField(max_length=100, blank=True)
    wifi_password = EncryptedCharField(max_length=100, blank=True)
    check_in_time = models.TimeField(null=True, blank=True)
    check_out_time = models.TimeField(null=True, blank=True)
    house_rules = models.JSONField(default=list, blank=True)
    special_instructions = models.TextField(blank=True)
    emergency_contact = models.CharField(max_length=100, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Check-in instructions")
        verbose_name_plural = _("Check-in instructions")

    def __str__(self) -> str:
        return f"Instructions for {self.listing.title}"
