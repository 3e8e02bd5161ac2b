# storefront/api/deps.py
from fastapi import Depends, Header, HTTPException

from storefront.domain.schemas import StoreSettings
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.product_client import ProductClient
from storefront.services.store_settings import load_store_settings

SESSION_HEADER = "X-Session-Id"


# =====================================================
# WSPOLPRACOWNICY (nadpisywani w testach)
# =====================================================
def get_product_client() -> ProductClient:
    return ProductClient()


def get_lock_service() -> LockService:
    return LockService()


def get_notifier() -> NotificationService:
    return NotificationService()


def get_store_settings() -> StoreSettings:
    return load_store_settings()


# =====================================================
# TOZSAMOSC
# =====================================================
# X-Customer-Id / X-Staff-Id ustawia gateway po uwierzytelnieniu
def get_customer_id(x_customer_id: str | None = Header(None)) -> str | None:
    return x_customer_id or None


def get_session_token(x_session_id: str | None = Header(None)) -> str | None:
    return x_session_id or None


def require_customer_id(customer_id: str | None = Depends(get_customer_id)) -> str:
    if not customer_id:
        raise HTTPException(status_code=401, detail="Customer authentication required")
    return customer_id


def require_staff_id(x_staff_id: str | None = Header(None)) -> str:
    if not x_staff_id:
        raise HTTPException(status_code=401, detail="Staff authentication required")
    return x_staff_id
