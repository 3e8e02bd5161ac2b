# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime

from storefront.domain.enums import (
    DeliveryType,
    OrderStatus,
    PaymentMethod,
    PosPaymentType,
    PosSaleStatus,
)


# =====================================================
# KOSZYK
# =====================================================
class AddLineIn(BaseModel):
    """Schema dla dodawania wariantu do koszyka."""

    variant_id: str = Field(..., min_length=1, description="ID wariantu produktu")
    quantity: int = Field(..., gt=0, description="Ilosc (musi byc > 0)")


class UpdateLineIn(BaseModel):
    """Schema dla zmiany ilosci; 0 usuwa pozycje."""

    quantity: int = Field(..., ge=0, description="Nowa ilosc (0 usuwa pozycje)")


class CartLineOut(BaseModel):
    id: str
    variant_id: str
    display_name: str
    variant_label: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class CartOut(BaseModel):
    """Widok koszyka, zawsze liczony z bazy po zapisie."""

    id: str
    customer_id: str | None = None
    session_token: str | None = None
    expires_at: datetime | None = None
    lines: List[CartLineOut]
    subtotal: Decimal
    item_count: int


class MergeOut(BaseModel):
    # None tylko gdy po nieudanym scaleniu nie dalo sie nawet odczytac koszyka
    cart: CartOut | None = None
    merged_lines: int = 0
    adjusted_variants: List[str] = []
    error: str | None = None


# =====================================================
# WSPOLPRACOWNICY
# =====================================================
class CatalogVariant(BaseModel):
    """Odpowiedz katalogu dla jednego wariantu."""

    variant_id: str
    unit_price: Decimal
    available_stock: int
    display_name: str
    variant_label: str = ""


class StoreSettings(BaseModel):
    """
    Ustawienia sklepu dla checkoutu.

    free_delivery_threshold to swiadome rozszerzenie stalej oplaty za dostawe:
    gdy ustawiony i subtotal go osiaga, oplata wynosi 0. Domyslnie wylaczony.
    """

    home_delivery_fee: Decimal
    free_delivery_threshold: Decimal | None = None
    pickup_address: str
    store_country: str = ""


class StockChangeIn(BaseModel):
    quantity: int = Field(..., gt=0)


# =====================================================
# ZAMOWIENIA
# =====================================================
class CreateOrderIn(BaseModel):
    """Schema dla checkoutu."""

    delivery_type: DeliveryType
    payment_method: PaymentMethod
    address_id: str | None = Field(None, description="Wymagane dla HOME_DELIVERY")
    customer_notes: str | None = Field(None, max_length=500)


class UpdateOrderStatusIn(BaseModel):
    status: OrderStatus
    admin_notes: str | None = None


class ShippingAddress(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""
    phone: str = ""


class OrderItemOut(BaseModel):
    id: str
    variant_id: str
    product_name: str
    variant_label: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: str
    order_number: str
    customer_id: str
    status: OrderStatus
    delivery_type: DeliveryType
    payment_method: PaymentMethod
    payment_status: str
    subtotal: Decimal
    delivery_fee: Decimal
    discount: Decimal
    total: Decimal
    shipping_address: ShippingAddress
    customer_notes: str | None = None
    admin_notes: str | None = None
    items: List[OrderItemOut]
    created_at: datetime
    delivered_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class OrderPageOut(BaseModel):
    orders: List[OrderOut]
    pagination: Pagination


# =====================================================
# POS
# =====================================================
class PosSaleItemIn(BaseModel):
    """Pozycja wprowadzona przez sprzedawce."""

    variant_id: str | None = None
    product_name: str = Field(..., min_length=1)
    variant_label: str = ""
    product_sku: str = Field(..., min_length=1)
    image_url: str | None = None
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., gt=0)


class PosSaleIn(BaseModel):
    items: List[PosSaleItemIn] = Field(..., min_length=1)
    notes: str | None = Field(None, max_length=500)
    payment_type: PosPaymentType = PosPaymentType.CASH


class PosSaleItemOut(BaseModel):
    id: str
    variant_id: str | None = None
    product_name: str
    variant_label: str
    product_sku: str
    image_url: str | None = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class PosSaleOut(BaseModel):
    id: str
    sale_number: str
    staff_id: str
    subtotal: Decimal
    total: Decimal
    notes: str | None = None
    status: PosSaleStatus
    payment_type: PosPaymentType
    payment_status: str
    items: List[PosSaleItemOut]
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class PosSalePageOut(BaseModel):
    sales: List[PosSaleOut]
    pagination: Pagination
