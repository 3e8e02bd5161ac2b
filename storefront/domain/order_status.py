# storefront/domain/order_status.py
"""
Dozwolone przejscia statusu zamowienia.

Bez zapisu do bazy i bez efektow ubocznych, jedno zrodlo prawdy
dla OrderService (zmiana statusu przez admina i anulowanie).
"""

from storefront.domain.enums import DeliveryType, OrderStatus
from storefront.domain.errors import InvalidStateTransition

TERMINAL_STATES = {
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
}

ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {
        OrderStatus.READY_FOR_PICKUP,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.CANCELLED,
    },
    OrderStatus.READY_FOR_PICKUP: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
}

# galaz realizacji zalezy od sposobu dostawy
FULFILMENT_ROUTE = {
    OrderStatus.READY_FOR_PICKUP: DeliveryType.STORE_PICKUP,
    OrderStatus.OUT_FOR_DELIVERY: DeliveryType.HOME_DELIVERY,
}


def can_transition(
    from_status: str,
    to_status: str,
    delivery_type: str | None = None,
) -> bool:
    current = OrderStatus(from_status)
    target = OrderStatus(to_status)

    if current in TERMINAL_STATES:
        return False

    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        return False

    route = FULFILMENT_ROUTE.get(target)
    if route is not None and delivery_type is not None:
        return DeliveryType(delivery_type) == route

    return True


def validate_transition(from_status: str, to_status: str, delivery_type: str | None = None):
    if not can_transition(from_status, to_status, delivery_type):
        raise InvalidStateTransition(OrderStatus(from_status).value, OrderStatus(to_status).value)
