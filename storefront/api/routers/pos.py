# storefront/api/routers/pos.py
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_lock_service, get_product_client, require_staff_id
from storefront.api.errors import HANDLED_ERRORS, to_http_exception
from storefront.data.database import get_db
from storefront.domain.enums import PosPaymentType, PosSaleStatus
from storefront.domain.schemas import PosSaleIn, PosSaleOut, PosSalePageOut
from storefront.services.lock_service import LockService
from storefront.services.pos_sale_service import PosSaleService
from storefront.services.product_client import ProductClient

router = APIRouter(prefix="/pos/sales", tags=["pos"])


def get_service(db: Session, product_client: ProductClient, lock_service: LockService):
    return PosSaleService(db=db, product_client=product_client, lock_service=lock_service)


@router.post("", response_model=PosSaleOut, status_code=201)
def create_sale(
    payload: PosSaleIn,
    staff_id: str = Depends(require_staff_id),
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
    lock_service: LockService = Depends(get_lock_service),
):
    """Sprzedaz w sklepie: zapis i zdjecie ze stanu w jednym kroku."""
    svc = get_service(db, product_client, lock_service)
    try:
        return svc.create_sale(
            staff_id=staff_id,
            items=payload.items,
            payment_type=payload.payment_type,
            notes=payload.notes,
        )
    except HANDLED_ERRORS as e:
        raise to_http_exception(e)


@router.get("", response_model=PosSalePageOut)
def list_sales(
    status: PosSaleStatus | None = Query(None),
    payment_type: PosPaymentType | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    staff_id: str = Depends(require_staff_id),
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
    lock_service: LockService = Depends(get_lock_service),
):
    svc = get_service(db, product_client, lock_service)
    try:
        return svc.list_sales(
            status=status,
            payment_type=payment_type,
            start_date=start_date,
            end_date=end_date,
            page=page,
            limit=limit,
        )
    except HANDLED_ERRORS as e:
        raise to_http_exception(e)


@router.get("/{sale_id}", response_model=PosSaleOut)
def get_sale(
    sale_id: str,
    staff_id: str = Depends(require_staff_id),
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
    lock_service: LockService = Depends(get_lock_service),
):
    svc = get_service(db, product_client, lock_service)
    try:
        return svc.get_sale(sale_id)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e)


@router.post("/{sale_id}/void", response_model=PosSaleOut)
def void_sale(
    sale_id: str,
    staff_id: str = Depends(require_staff_id),
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
    lock_service: LockService = Depends(get_lock_service),
):
    svc = get_service(db, product_client, lock_service)
    try:
        return svc.void_sale(sale_id)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e)
