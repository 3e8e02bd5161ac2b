# storefront/api/routers/orders.py
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import (
    get_notifier,
    get_store_settings,
    require_customer_id,
    require_staff_id,
)
from storefront.api.errors import HANDLED_ERRORS, to_http_exception
from storefront.data.database import get_db
from storefront.domain.enums import OrderStatus
from storefront.domain.schemas import (
    CreateOrderIn,
    OrderOut,
    OrderPageOut,
    StoreSettings,
    UpdateOrderStatusIn,
)
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])
admin_router = APIRouter(prefix="/admin/orders", tags=["admin-orders"])


def get_service(db: Session, notifier: NotificationService, store_settings: StoreSettings):
    return OrderService(db, notifier=notifier, store_settings=store_settings)


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    payload: CreateOrderIn,
    customer_id: str = Depends(require_customer_id),
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    store_settings: StoreSettings = Depends(get_store_settings),
):
    """
    Checkout: zamienia koszyk klienta na zamowienie i czysci koszyk.
    Potwierdzenie jest wysylane asynchronicznie.
    """
    svc = get_service(db, notifier, store_settings)
    try:
        return svc.create_order(
            customer_id=customer_id,
            delivery_type=payload.delivery_type,
            payment_method=payload.payment_method,
            address_id=payload.address_id,
            notes=payload.customer_notes,
        )
    except HANDLED_ERRORS as e:
        raise to_http_exception(e)


@router.get("", response_model=OrderPageOut)
def list_my_orders(
    status: OrderStatus | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    customer_id: str = Depends(require_customer_id),
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    store_settings: StoreSettings = Depends(get_store_settings),
):
    svc = get_service(db, notifier, store_settings)
    try:
        return svc.list_orders(customer_id=customer_id, status=status, page=page, limit=limit)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    customer_id: str = Depends(require_customer_id),
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    store_settings: StoreSettings = Depends(get_store_settings),
):
    svc = get_service(db, notifier, store_settings)
    try:
        return svc.get_order(order_id, customer_id=customer_id)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e)


@router.post("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: str,
    customer_id: str = Depends(require_customer_id),
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    store_settings: StoreSettings = Depends(get_store_settings),
):
    svc = get_service(db, notifier, store_settings)
    try:
        return svc.cancel_order(order_id, customer_id=customer_id)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e)


# =====================================================
# ADMIN
# =====================================================
@admin_router.get("", response_model=OrderPageOut)
def list_orders(
    status: OrderStatus | None = Query(None),
    customer_id: str | None = Query(None),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    staff_id: str = Depends(require_staff_id),
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    store_settings: StoreSettings = Depends(get_store_settings),
):
    svc = get_service(db, notifier, store_settings)
    try:
        return svc.list_orders(
            customer_id=customer_id,
            status=status,
            start_date=start_date,
            end_date=end_date,
            page=page,
            limit=limit,
        )
    except HANDLED_ERRORS as e:
        raise to_http_exception(e)


@admin_router.patch("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: str,
    payload: UpdateOrderStatusIn,
    staff_id: str = Depends(require_staff_id),
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    store_settings: StoreSettings = Depends(get_store_settings),
):
    svc = get_service(db, notifier, store_settings)
    try:
        return svc.update_status(order_id, payload.status, admin_notes=payload.admin_notes)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e)
