# storefront/domain/errors.py
"""
Typowane bledy domenowe.

Kazdy blad ma stabilny `code` i kontekst (`to_dict`), wiec warstwa HTTP
mapuje je po klasie, a klient moze rozroznic np. "zostaly 3 sztuki"
od "koszyk jest pelny".
"""


class StorefrontError(Exception):
    code = "storefront_error"

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, **self.context}


class VariantNotFound(StorefrontError):
    code = "variant_not_found"

    def __init__(self, variant_id: str):
        super().__init__(f"Variant {variant_id} not found", variant_id=variant_id)
        self.variant_id = variant_id


class InsufficientStock(StorefrontError):
    code = "insufficient_stock"

    def __init__(self, variant_id: str, requested: int, available: int):
        super().__init__(
            f"Only {available} unit(s) of variant {variant_id} available, {requested} requested",
            variant_id=variant_id,
            requested=requested,
            available=available,
        )
        self.variant_id = variant_id
        self.requested = requested
        self.available = available


class CartLimitExceeded(StorefrontError):
    code = "cart_limit_exceeded"

    def __init__(self, limit: int, requested_total: int):
        super().__init__(
            f"Maximum {limit} items per cart, this change would make {requested_total}",
            limit=limit,
            requested_total=requested_total,
        )
        self.limit = limit
        self.requested_total = requested_total


class CartNotFound(StorefrontError):
    code = "cart_not_found"

    def __init__(self, cart_id: str):
        super().__init__(f"Cart {cart_id} not found", cart_id=cart_id)


class LineNotFound(StorefrontError):
    code = "line_not_found"

    def __init__(self, line_id: str):
        super().__init__(f"Cart line {line_id} not found", line_id=line_id)
        self.line_id = line_id


class EmptyCart(StorefrontError):
    code = "empty_cart"

    def __init__(self):
        super().__init__("Cart is empty")


class AddressNotFound(StorefrontError):
    code = "address_not_found"

    def __init__(self, address_id: str | None):
        if address_id is None:
            message = "An address is required for home delivery"
        else:
            message = f"Address {address_id} not found"
        super().__init__(message, address_id=address_id)


class OrderNotFound(StorefrontError):
    code = "order_not_found"

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found", order_id=order_id)


class SaleNotFound(StorefrontError):
    code = "sale_not_found"

    def __init__(self, sale_id: str):
        super().__init__(f"POS sale {sale_id} not found", sale_id=sale_id)


class InvalidStateTransition(StorefrontError):
    code = "invalid_state_transition"

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot transition from '{current}' to '{target}'",
            current=current,
            target=target,
        )
        self.current = current
        self.target = target


class ConcurrencyConflict(StorefrontError):
    code = "concurrency_conflict"

    def __init__(self, message: str = "Resource was modified by another operation", **context):
        super().__init__(message, **context)


class InfrastructureFailure(StorefrontError):
    code = "infrastructure_failure"


class CatalogUnavailable(InfrastructureFailure):
    code = "catalog_unavailable"
