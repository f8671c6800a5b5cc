"""
Booking Domain Exceptions

Every error raised by the reservation engine carries a stable ``code`` that
the API returns verbatim. HTTP status mapping happens in the views.
"""

from typing import Iterable, List

from shared.domain.value_objects import DateRange


class BookingError(Exception):
    """Base class for reservation engine errors"""

    code = 'booking_error'
    default_detail = 'Reservation request failed.'

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def extra(self) -> dict:
        """Additional fields for the error payload"""
        return {}

    def to_dict(self) -> dict:
        payload = {'code': self.code, 'detail': self.detail}
        payload.update(self.extra())
        return payload


class InvalidRange(BookingError):
    """Check-out not after check-in, or a stay length outside the listing's limits"""

    code = 'invalid_range'
    default_detail = 'Check-out date must be after check-in date.'


class BookingValidationError(BookingError):
    """Request is well formed but the listing cannot take it"""

    code = 'invalid_booking'
    default_detail = 'This listing cannot be reserved with these parameters.'


class BookingNotFound(BookingError):
    """No reservation (or listing) visible to the acting user"""

    code = 'not_found'
    default_detail = 'Not found.'


class Conflict(BookingError):
    """Requested nights collide with a live reservation or a blocked date"""

    code = 'conflict'
    default_detail = 'The listing is not available for the selected dates.'

    def __init__(
        self,
        detail: str | None = None,
        conflicting_ranges: Iterable[DateRange] = (),
        reason: str | None = None,
    ):
        super().__init__(detail)
        self.conflicting_ranges: List[DateRange] = list(conflicting_ranges)
        self.reason = reason

    def extra(self) -> dict:
        return {
            'reason': self.reason,
            'conflicting_ranges': [item.to_dict() for item in self.conflicting_ranges],
        }


class InvalidTransition(BookingError):
    """Lifecycle transition not allowed from the current status"""

    code = 'invalid_transition'
    default_detail = 'This action is not allowed for the reservation in its current state.'

    def __init__(self, detail: str | None = None, current_status: str | None = None):
        super().__init__(detail)
        self.current_status = current_status

    def extra(self) -> dict:
        return {'status': self.current_status} if self.current_status else {}


class NotYetEligible(BookingError):
    """The action exists for this reservation but its time has not come"""

    code = 'not_yet_eligible'
    default_detail = 'This action is not available yet.'


class AlreadyReviewed(BookingError):
    """A reservation takes one review only"""

    code = 'already_reviewed'
    default_detail = 'This stay has already been reviewed.'


class EditWindowClosed(BookingError):
    """Reviews can be edited for a limited time after they are written"""

    code = 'edit_window_closed'
    default_detail = 'This can no longer be edited.'
