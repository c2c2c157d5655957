"""Order status transitions.

pending -> shipped -> delivered is the only forward path a seller or admin may
drive. pending -> cancelled belongs to the customer cancel path, and the refund
states are set through the admin refund endpoint once an order is cancelled.
"""

from order_ledger.domain.errors import InvalidStateError
from order_ledger.domain.models import OrderStatus

STATUS_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.SHIPPED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
}

# Stock was already restored on cancel, so the refund path never leaves these states
REFUND_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.CANCELLED: frozenset({OrderStatus.REFUND, OrderStatus.REFUNDED}),
    OrderStatus.REFUND: frozenset({OrderStatus.REFUNDED}),
}


def can_transition(current: str, target: str) -> bool:
    return OrderStatus(target) in STATUS_TRANSITIONS.get(OrderStatus(current), frozenset())


def can_refund_transition(current: str, target: str) -> bool:
    return OrderStatus(target) in REFUND_TRANSITIONS.get(OrderStatus(current), frozenset())


def ensure_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise InvalidStateError(
            f"Cannot change order status from {OrderStatus(current).value} to {OrderStatus(target).value}"
        )


def ensure_refund_transition(current: str, target: str) -> None:
    if not can_refund_transition(current, target):
        raise InvalidStateError(
            f"Cannot move order from {OrderStatus(current).value} to {OrderStatus(target).value} via refund"
        )


def ensure_cancellable(current: str) -> None:
    if current != OrderStatus.PENDING.value:
        raise InvalidStateError(f"Cannot cancel order with status: {current}")
