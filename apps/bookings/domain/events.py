"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits.

Fields carry defaults because ``DomainEvent`` already defines defaulted
fields ahead of them.
"""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from shared.domain.base import DomainEvent


@dataclass
class BookingEvent(DomainEvent):
    """Common payload of every reservation event"""
    booking_id: UUID | None = None
    listing_id: UUID | None = None
    guest_id: UUID | None = None


@dataclass
class BookingCreated(BookingEvent):
    """
    Event: A guest requested a reservation

    Triggers:
    - Notify the host (pending) or the guest (instant-book confirmation)
    """
    check_in: date | None = None
    check_out: date | None = None
    status: str = ''
    total_amount: str = ''
    currency: str = ''


@dataclass
class BookingConfirmed(BookingEvent):
    """
    Event: Reservation accepted (PENDING -> CONFIRMED)

    ``automatic`` is set for instant-book listings.
    """
    check_in: date | None = None
    automatic: bool = False


@dataclass
class BookingActivated(BookingEvent):
    """Event: Check-in instant passed (CONFIRMED -> ACTIVE)"""
    pass


@dataclass
class BookingCompleted(BookingEvent):
    """
    Event: Guest checked out (ACTIVE -> COMPLETED)

    Triggers:
    - Request a review from the guest
    - Release the escrowed payment to the host
    """
    issues_reported: bool = False


@dataclass
class BookingCancelled(BookingEvent):
    """Event: Reservation cancelled by the guest or the host"""
    cancelled_by: str = ''
    reason: str = ''
    previous_status: str = ''
    refund_percentage: int = 0
    refund_amount: str = ''


@dataclass
class LateCheckoutRequested(BookingEvent):
    """
    Event: Guest asked to leave after the listing's check-out time

    Triggers:
    - Notify the host
    """
    requested_time: str = ''


@dataclass
class LateCheckoutDecided(BookingEvent):
    """Event: Host approved or declined a late check-out request"""
    approved: bool = False
    requested_time: str = ''
