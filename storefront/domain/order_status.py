# storefront/domain/order_status.py
"""
Order lifecycle states and the legal transition graph.

CREATED -> CONFIRMED -> PACKED -> SHIPPED -> OUT_FOR_DELIVERY -> DELIVERED
CREATED / CONFIRMED / PACKED -> CANCELLED
SHIPPED / OUT_FOR_DELIVERY / DELIVERED -> RETURN_REQUESTED -> REFUNDED

Pure logic, no I/O.
"""
from enum import Enum
from typing import FrozenSet

from storefront.domain.errors import IllegalTransition, InvalidState


class OrderStatus(str, Enum):
    CREATED = "CREATED"
    CONFIRMED = "CONFIRMED"
    PACKED = "PACKED"
    SHIPPED = "SHIPPED"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    RETURN_REQUESTED = "RETURN_REQUESTED"
    REFUNDED = "REFUNDED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


INITIAL_STATUS = OrderStatus.CREATED

_TRANSITIONS = {
    OrderStatus.CREATED: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PACKED, OrderStatus.CANCELLED}),
    OrderStatus.PACKED: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.OUT_FOR_DELIVERY, OrderStatus.RETURN_REQUESTED}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED, OrderStatus.RETURN_REQUESTED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.RETURN_REQUESTED}),
    OrderStatus.RETURN_REQUESTED: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.CANCELLED: frozenset(),  # terminal
    OrderStatus.REFUNDED: frozenset(),  # terminal
}

_CANCELLABLE = frozenset({OrderStatus.CREATED, OrderStatus.CONFIRMED, OrderStatus.PACKED})


def allowed_transitions(status: OrderStatus) -> FrozenSet[OrderStatus]:
    return _TRANSITIONS[OrderStatus(status)]


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return OrderStatus(target) in allowed_transitions(current)


def is_terminal(status: OrderStatus) -> bool:
    return not allowed_transitions(status)


def is_cancellable(status: OrderStatus) -> bool:
    return OrderStatus(status) in _CANCELLABLE


def assert_transition(current: OrderStatus, target: OrderStatus) -> None:
    """Raise unless ``current -> target`` is a legal, non-trivial move."""
    current, target = OrderStatus(current), OrderStatus(target)
    if current == target:
        raise InvalidState(f"Order is already in {target.value} status")
    if not can_transition(current, target):
        raise IllegalTransition(current.value, target.value)
