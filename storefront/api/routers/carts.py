# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from storefront.api.deps import (
    SESSION_HEADER,
    get_customer_id,
    get_product_client,
    get_session_token,
    require_customer_id,
)
from storefront.api.errors import HANDLED_ERRORS, to_http_exception
from storefront.data.database import get_db
from storefront.domain.schemas import AddLineIn, CartOut, MergeOut, UpdateLineIn
from storefront.services.cart_merge import CartMergeService
from storefront.services.cart_resolver import CartResolution, CartResolver
from storefront.services.cart_service import CartService
from storefront.services.product_client import ProductClient

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session, product_client: ProductClient):
    return CartService(db=db, product_client=product_client)


def resolve_cart(
    response: Response,
    customer_id: str | None = Depends(get_customer_id),
    session_token: str | None = Depends(get_session_token),
    db: Session = Depends(get_db),
) -> CartResolution:
    """Koszyk dla naglowkow zadania; koszyk anonimowy zawsze odsyla swoj token."""
    try:
        resolution = CartResolver(db).resolve(customer_id=customer_id, session_token=session_token)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e)

    if resolution.cart.is_anonymous:
        response.headers[SESSION_HEADER] = resolution.cart.session_token
    return resolution


@router.get("", response_model=CartOut)
def get_cart(
    resolution: CartResolution = Depends(resolve_cart),
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
):
    svc = get_service(db, product_client)
    try:
        return svc.get_view(resolution.cart.id)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e)


@router.delete("", response_model=CartOut)
def clear_cart(
    resolution: CartResolution = Depends(resolve_cart),
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
):
    svc = get_service(db, product_client)
    try:
        return svc.clear_cart(resolution.cart.id)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e)


@router.post("/lines", response_model=CartOut)
def add_line(
    payload: AddLineIn,
    resolution: CartResolution = Depends(resolve_cart),
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
):
    """
    Dodaje wariant do koszyka.
    Ponowne dodanie tego samego wariantu zwieksza ilosc.
    """
    svc = get_service(db, product_client)
    try:
        return svc.add_line(
            cart_id=resolution.cart.id,
            variant_id=payload.variant_id,
            quantity=payload.quantity,
        )
    except HANDLED_ERRORS as e:
        raise to_http_exception(e)


@router.patch("/lines/{line_id}", response_model=CartOut)
def update_line(
    line_id: str,
    payload: UpdateLineIn,
    resolution: CartResolution = Depends(resolve_cart),
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
):
    svc = get_service(db, product_client)
    try:
        return svc.update_line(resolution.cart.id, line_id, payload.quantity)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e)


@router.delete("/lines/{line_id}", response_model=CartOut)
def remove_line(
    line_id: str,
    resolution: CartResolution = Depends(resolve_cart),
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
):
    svc = get_service(db, product_client)
    try:
        return svc.remove_line(resolution.cart.id, line_id)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e)


@router.post("/merge", response_model=MergeOut)
def merge_cart(
    customer_id: str = Depends(require_customer_id),
    session_token: str | None = Depends(get_session_token),
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
):
    """
    Wolane raz, zaraz po zalogowaniu, z tokenem sesji anonimowej.
    Zawsze 200: blad scalania jest tylko w polu `error`.
    """
    svc = CartMergeService(db=db, product_client=product_client)
    result = svc.merge_on_login(session_token, customer_id)
    if result.cart is None:
        raise HTTPException(status_code=503, detail="Cart temporarily unavailable")
    return result
