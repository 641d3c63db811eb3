# orders/status.py
from core.status import StatusTransitionValidator
from .models import OrderStatus


ORDER_TERMINAL_STATES = (
    OrderStatus.COMPLETED,
    OrderStatus.CANCELED,
    OrderStatus.REFUNDED,
)

ORDER_TRANSITIONS = StatusTransitionValidator(
    terminal_states=ORDER_TERMINAL_STATES,
    allowed_terminal_entries=[
        (OrderStatus.PAID, OrderStatus.REFUNDED),
        (OrderStatus.SHIPPED, OrderStatus.COMPLETED),
    ],
    completed_state=OrderStatus.COMPLETED,
)


def is_valid_order_status_transition(current_status, new_status):
    return ORDER_TRANSITIONS.is_valid_transition(current_status, new_status)
