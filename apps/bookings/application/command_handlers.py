"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within transactions.

Commands:
- CreateBookingCommand: Guest requests a reservation
- ConfirmBookingCommand: Host accepts a pending reservation
- CancelBookingCommand: Guest or host cancels
- CompleteBookingCommand: Guest submits the check-out report
- ActivateBookingCommand: Materialise a confirmed stay whose check-in has passed
- RequestLateCheckoutCommand: Guest asks to leave after the check-out time
- DecideLateCheckoutCommand: Host approves or declines that request
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from uuid import UUID
import logging

from django.utils import timezone

from shared.application.uow import DjangoUnitOfWork
from apps.bookings.domain.entities import CancellationSource
from apps.bookings.domain.events import BookingCreated
from apps.bookings.domain.exceptions import (
    BookingNotFound,
    BookingValidationError,
    Conflict,
    InvalidRange,
)
from apps.bookings.models import Booking, CheckOutReport
from apps.bookings.services import UnavailableReason, check_availability, quote_price, stay_range

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    This is the primary entry point for creating bookings.
    """
    listing_id: UUID
    guest_id: UUID
    check_in: date
    check_out: date
    guests_count: int = 1
    special_requests: str = ''
    now: datetime | None = None


@dataclass
class ConfirmBookingCommand:
    """Command for the listing's host to accept a reservation"""
    booking_id: UUID
    host_id: UUID
    now: datetime | None = None


@dataclass
class CancelBookingCommand:
    """Command to cancel a booking"""
    booking_id: UUID
    actor_id: UUID
    cancelled_by: CancellationSource
    reason: str = ''
    now: datetime | None = None


@dataclass
class CompleteBookingCommand:
    """Command to complete a booking with the guest's check-out report"""
    booking_id: UUID
    guest_id: UUID
    keys_returned: bool = False
    trash_disposed: bool = False
    windows_closed: bool = False
    lights_off: bool = False
    property_condition: str = CheckOutReport.PropertyCondition.GOOD
    issues_reported: str = ''
    now: datetime | None = None


@dataclass
class ActivateBookingCommand:
    """Command to mark a confirmed booking active once its check-in has passed"""
    booking_id: UUID
    now: datetime | None = None


@dataclass
class RequestLateCheckoutCommand:
    """Command for the guest to ask for a later check-out time"""
    booking_id: UUID
    guest_id: UUID
    requested_time: time
    reason: str = ''
    now: datetime | None = None


@dataclass
class DecideLateCheckoutCommand:
    """Command for the listing's host to answer a late check-out request"""
    booking_id: UUID
    host_id: UUID
    approved: bool
    now: datetime | None = None


# ===== Command Handlers =====

class CreateBookingHandler:
    """
    Handler for CreateBooking command

    Double booking prevention:
    1. Start database transaction (atomic)
    2. Lock the listing row with SELECT FOR UPDATE, which serialises every
       create on that listing, including creates into empty ranges
    3. Re-run the availability check inside the lock
    4. Price the stay and insert the reservation
    5. Commit, then publish events
    """

    def handle(self, command: CreateBookingCommand) -> Booking:
        from apps.listings.models import Listing

        now = command.now or timezone.now()
        stay = stay_range(command.check_in, command.check_out)

        logger.info(
            "Creating booking for listing %s, guest %s, dates %s",
            command.listing_id, command.guest_id, stay,
        )

        with DjangoUnitOfWork() as uow:
            try:
                listing = Listing.objects.select_for_update().get(pk=command.listing_id)
            except Listing.DoesNotExist:
                raise BookingNotFound(f"Listing {command.listing_id} not found")

            self._validate(listing, command)

            availability = check_availability(listing, stay.start_date, stay.end_date)
            if not availability.available:
                self._raise_unavailable(listing, availability)

            quote = quote_price(listing, stay)
            booking = Booking(
                listing=listing,
                guest_id=command.guest_id,
                check_in=stay.start_date,
                check_out=stay.end_date,
                guests_count=command.guests_count,
                special_requests=command.special_requests,
                status=Booking.Status.PENDING,
                nightly_rate=quote.nightly_rate.amount,
                nights=quote.nights,
                subtotal=quote.subtotal.amount,
                cleaning_fee=quote.cleaning_fee.amount,
                service_fee=quote.service_fee.amount,
                taxes=quote.taxes.amount,
                total_amount=quote.total.amount,
                currency=quote.currency,
            )
            booking.record_event(BookingCreated(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                listing_id=listing.pk,
                guest_id=command.guest_id,
                check_in=booking.check_in,
                check_out=booking.check_out,
                status=booking.status,
                total_amount=str(booking.total_amount),
                currency=booking.currency,
            ))

            if listing.instant_book:
                booking.confirm(now, automatic=True)

            booking.save()
            uow.collect_events(booking)

        logger.info("Booking %s created with status %s", booking.pk, booking.status)
        return booking

    def _validate(self, listing, command: CreateBookingCommand) -> None:
        if not listing.is_bookable:
            raise BookingValidationError("This listing is not accepting reservations.")
        if listing.host_id == command.guest_id:
            raise BookingValidationError("Hosts cannot reserve their own listing.")
        if command.guests_count < 1:
            raise BookingValidationError("At least one guest is required.")
        if command.guests_count > listing.max_guests:
            raise BookingValidationError(
                f"This listing accommodates at most {listing.max_guests} guests."
            )

    def _raise_unavailable(self, listing, availability) -> None:
        if availability.reason == UnavailableReason.MIN_STAY:
            raise InvalidRange(f"Minimum stay is {listing.min_stay} nights.")
        if availability.reason == UnavailableReason.MAX_STAY:
            raise InvalidRange(f"Maximum stay is {listing.max_stay} nights.")
        if availability.reason == UnavailableReason.LISTING_UNAVAILABLE:
            raise BookingValidationError("This listing is not accepting reservations.")

        detail = (
            "Some dates are blocked by the host."
            if availability.reason == UnavailableReason.BLOCKED
            else "These dates are already booked."
        )
        logger.info("Rejected booking on listing %s: %s", listing.pk, availability.reason)
        raise Conflict(detail, conflicting_ranges=availability.conflicting_ranges, reason=availability.reason)


def _locked_booking(**lookup) -> Booking:
    try:
        return Booking.objects.select_for_update().get(**lookup)
    except Booking.DoesNotExist:
        raise BookingNotFound()


class ConfirmBookingHandler:
    """Handler for host confirmation"""

    def handle(self, command: ConfirmBookingCommand) -> Booking:
        now = command.now or timezone.now()

        with DjangoUnitOfWork() as uow:
            booking = _locked_booking(pk=command.booking_id, listing__host_id=command.host_id)
            if booking.confirm(now):
                booking.save(update_fields=["status", "confirmed_at", "updated_at"])
                uow.collect_events(booking)
                logger.info("Booking %s confirmed by host %s", booking.pk, command.host_id)
            else:
                logger.info("Booking %s already confirmed", booking.pk)

        return booking


class CancelBookingHandler:
    """Handler for cancelling booking"""

    def handle(self, command: CancelBookingCommand) -> Booking:
        now = command.now or timezone.now()
        source = CancellationSource(command.cancelled_by)
        if source is CancellationSource.GUEST:
            lookup = {"pk": command.booking_id, "guest_id": command.actor_id}
        else:
            lookup = {"pk": command.booking_id, "listing__host_id": command.actor_id}

        with DjangoUnitOfWork() as uow:
            booking = _locked_booking(**lookup)
            booking.cancel(source, command.reason, now)
            booking.save(
                update_fields=[
                    "status",
                    "cancelled_by",
                    "cancellation_reason",
                    "cancelled_at",
                    "refund_percentage",
                    "refund_amount",
                    "updated_at",
                ]
            )
            uow.collect_events(booking)

        logger.info(
            "Booking %s cancelled by %s, refund %s%%", booking.pk, source.value, booking.refund_percentage
        )
        return booking


class CompleteBookingHandler:
    """
    Handler for completing booking (check out)

    The report and the status change are written in one transaction; a
    completed reservation rejects any further report.
    """

    def handle(self, command: CompleteBookingCommand) -> Booking:
        now = command.now or timezone.now()

        with DjangoUnitOfWork() as uow:
            booking = _locked_booking(pk=command.booking_id, guest_id=command.guest_id)
            booking.complete(now, issues_reported=bool(command.issues_reported.strip()))
            booking.save(update_fields=["status", "activated_at", "completed_at", "updated_at"])
            CheckOutReport.objects.create(
                booking=booking,
                keys_returned=command.keys_returned,
                trash_disposed=command.trash_disposed,
                windows_closed=command.windows_closed,
                lights_off=command.lights_off,
                property_condition=command.property_condition,
                issues_reported=command.issues_reported,
                submitted_at=now,
            )
            uow.collect_events(booking)

        logger.info("Booking %s completed", booking.pk)
        return booking


class ActivateBookingHandler:
    """Idempotent: a booking that is not due, or already active, is left alone"""

    def handle(self, command: ActivateBookingCommand) -> bool:
        now = command.now or timezone.now()

        with DjangoUnitOfWork() as uow:
            booking = _locked_booking(pk=command.booking_id)
            activated = booking.activate(now)
            if activated:
                booking.save(update_fields=["status", "activated_at", "updated_at"])
                uow.collect_events(booking)

        if activated:
            logger.info("Booking %s is now active", booking.pk)
        return activated


class RequestLateCheckoutHandler:
    """Opens or amends the booking's late check-out request while the host has not answered"""

    def handle(self, command: RequestLateCheckoutCommand) -> Booking:
        now = command.now or timezone.now()

        with DjangoUnitOfWork() as uow:
            booking = _locked_booking(pk=command.booking_id, guest_id=command.guest_id)
            request = booking.request_late_checkout(command.requested_time, command.reason, now)
            request.save()
            uow.collect_events(booking)

        logger.info("Late check-out at %s requested on booking %s", command.requested_time, booking.pk)
        return booking


class DecideLateCheckoutHandler:
    """Records the host's answer; a request is answered once"""

    def handle(self, command: DecideLateCheckoutCommand) -> Booking:
        now = command.now or timezone.now()

        with DjangoUnitOfWork() as uow:
            booking = _locked_booking(pk=command.booking_id, listing__host_id=command.host_id)
            request = booking.decide_late_checkout(command.approved, now)
            request.save(update_fields=["status", "decided_at", "updated_at"])
            uow.collect_events(booking)

        logger.info("Late check-out on booking %s %s", booking.pk, request.status)
        return booking


HANDLERS = {
    CreateBookingCommand: CreateBookingHandler(),
    ConfirmBookingCommand: ConfirmBookingHandler(),
    CancelBookingCommand: CancelBookingHandler(),
    CompleteBookingCommand: CompleteBookingHandler(),
    ActivateBookingCommand: ActivateBookingHandler(),
    RequestLateCheckoutCommand: RequestLateCheckoutHandler(),
    DecideLateCheckoutCommand: DecideLateCheckoutHandler(),
}


def register_handlers(bus) -> None:
    for command_type, handler in HANDLERS.items():
        bus.register_command_handler(command_type, handler.handle)
