# bookings/status.py
from core.status import StatusTransitionValidator
from .models import BookingStatus


BOOKING_TERMINAL_STATES = (
    BookingStatus.COMPLETED,
    BookingStatus.CANCELED,
    BookingStatus.NO_SHOW,
    BookingStatus.REFUNDED,
)

BOOKING_TRANSITIONS = StatusTransitionValidator(
    terminal_states=BOOKING_TERMINAL_STATES,
    allowed_terminal_entries=[
        (BookingStatus.PAID, BookingStatus.REFUNDED),
        (BookingStatus.CONFIRMED, BookingStatus.COMPLETED),
    ],
    completed_state=BookingStatus.COMPLETED,
)


def is_valid_booking_status_transition(current_status, new_status):
    return BOOKING_TRANSITIONS.is_valid_transition(current_status, new_status)
