# storefront/domain/enums.py
from enum import Enum


class DeliveryType(str, Enum):
    HOME_DELIVERY = "HOME_DELIVERY"
    STORE_PICKUP = "STORE_PICKUP"


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"
    STORE_PAYMENT = "STORE_PAYMENT"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    READY_FOR_PICKUP = "READY_FOR_PICKUP"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"


class PosPaymentType(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    CHECK = "CHECK"


class PosSaleStatus(str, Enum):
    COMPLETED = "COMPLETED"
    VOIDED = "VOIDED"
