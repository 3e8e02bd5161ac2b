# storefront/api/errors.py
from fastapi import HTTPException
from redis import RedisError
from sqlalchemy.exc import SQLAlchemyError

from storefront.domain.errors import (
    AddressNotFound,
    CartLimitExceeded,
    CartNotFound,
    ConcurrencyConflict,
    EmptyCart,
    InfrastructureFailure,
    InsufficientStock,
    InvalidStateTransition,
    LineNotFound,
    OrderNotFound,
    SaleNotFound,
    StorefrontError,
    VariantNotFound,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# bledy lapane w routerach i tlumaczone na HTTP
HANDLED_ERRORS = (StorefrontError, ValueError, SQLAlchemyError, RedisError)

_STATUS_BY_ERROR = (
    ((VariantNotFound, LineNotFound, CartNotFound, AddressNotFound, OrderNotFound, SaleNotFound), 404),
    ((InsufficientStock, CartLimitExceeded, InvalidStateTransition, ConcurrencyConflict), 409),
    ((EmptyCart,), 400),
    ((InfrastructureFailure,), 503),
)

_UNAVAILABLE = {
    "code": InfrastructureFailure.code,
    "message": "Service temporarily unavailable",
}


def to_http_exception(exc: Exception) -> HTTPException:
    if isinstance(exc, StorefrontError):
        for error_types, status_code in _STATUS_BY_ERROR:
            if isinstance(exc, error_types):
                break
        else:
            status_code = 400

        if status_code == 503:
            logger.error(f"Infrastructure failure: {exc.message}", exc_info=exc)
            return HTTPException(status_code=503, detail=_UNAVAILABLE)
        return HTTPException(status_code=status_code, detail=exc.to_dict())

    if isinstance(exc, ValueError):
        return HTTPException(
            status_code=400,
            detail={"code": "invalid_argument", "message": str(exc)},
        )

    # baza albo redis niedostepne
    logger.error(f"Infrastructure failure: {exc}", exc_info=exc)
    return HTTPException(status_code=503, detail=_UNAVAILABLE)
