from contextlib import contextmanager
from decimal import Decimal
from typing import Iterable

from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_line import CartLineModel
from storefront.domain.errors import (
    CartLimitExceeded,
    CartNotFound,
    ConcurrencyConflict,
    InsufficientStock,
    LineNotFound,
    StorefrontError,
    VariantNotFound,
)
from storefront.domain.schemas import CartLineOut, CartOut
from storefront.repos.cart_repo import CartRepo
from storefront.services.cart_resolver import CartResolver
from storefront.services.product_client import ProductClient
from storefront.utils.retry import db_retry
from storefront.utils.settings import CART_MAX_ITEMS
from storefront.utils.timeutils import money
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def build_cart_view(cart: CartModel, lines: Iterable[CartLineModel]) -> CartOut:
    out_lines = [
        CartLineOut(
            id=line.id,
            variant_id=line.variant_id,
            display_name=line.display_name,
            variant_label=line.variant_label,
            quantity=line.quantity,
            unit_price=money(line.unit_price),
            line_total=money(money(line.unit_price) * line.quantity),
        )
        for line in lines
    ]

    return CartOut(
        id=cart.id,
        customer_id=cart.customer_id,
        session_token=cart.session_token,
        expires_at=cart.expires_at,
        lines=out_lines,
        subtotal=sum((line.line_total for line in out_lines), Decimal("0.00")),
        item_count=sum(line.quantity for line in out_lines),
    )


class CartService:
    """
    Komendy na pozycjach koszyka (add, update, remove, clear) i zapytanie (get_view).

    Kazda komenda to jedna transakcja chroniona wersja koszyka:
    konflikt wersji albo unikalnosci (cart_id, variant_id) wycofuje zmiany
    i cala operacja jest ponawiana od odczytu.
    """

    def __init__(
        self,
        db: Session,
        product_client: ProductClient,
        max_items: int = CART_MAX_ITEMS,
        resolver: CartResolver | None = None,
    ):
        self.repo = CartRepo(db)
        self.product_client = product_client
        self.max_items = max_items
        self.resolver = resolver or CartResolver(db)

    #query - odczyt
    def get_view(self, cart_id: str) -> CartOut:
        cart = self._require_cart(cart_id)
        return build_cart_view(cart, self.repo.get_lines(cart.id))

    #commands
    @db_retry()
    def add_line(self, cart_id: str, variant_id: str, quantity: int) -> CartOut:
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        with self._transaction("add_line", cart_id):
            cart = self._require_cart(cart_id)

            variant = self.product_client.get_variant(variant_id)
            if variant is None:
                raise VariantNotFound(variant_id)

            # powtorne dodanie sumuje ilosc, nie nadpisuje
            existing = self.repo.get_line_for_variant(cart.id, variant_id)
            new_quantity = (existing.quantity if existing else 0) + quantity

            if new_quantity > variant.available_stock:
                raise InsufficientStock(variant_id, new_quantity, variant.available_stock)

            cart_total = self.repo.total_quantity(cart.id) + quantity
            if cart_total > self.max_items:
                raise CartLimitExceeded(self.max_items, cart_total)

            price = money(variant.unit_price)
            now = self.resolver.clock()

            if existing:
                logger.info(
                    f"Variant {variant_id} already in cart {cart.id}, quantity "
                    f"{existing.quantity} -> {new_quantity}"
                )
                existing.quantity = new_quantity
                existing.unit_price = price  # cena zawsze z ostatniego dodania
                existing.display_name = variant.display_name
                existing.variant_label = variant.variant_label
                existing.updated_at = now
            else:
                logger.info(f"Adding variant {variant_id} x{quantity} to cart {cart.id}")
                self.repo.add_line(
                    CartLineModel(
                        cart_id=cart.id,
                        variant_id=variant_id,
                        quantity=quantity,
                        unit_price=price,
                        display_name=variant.display_name,
                        variant_label=variant.variant_label,
                        created_at=now,
                        updated_at=now,
                    )
                )

            self.repo.flush()
            self._bump_version(cart)

        return self.get_view(cart_id)

    @db_retry()
    def update_line(self, cart_id: str, line_id: str, quantity: int) -> CartOut:
        if quantity < 0:
            raise ValueError("Quantity cannot be negative")

        with self._transaction("update_line", cart_id):
            cart = self._require_cart(cart_id)
            line = self._require_line(cart, line_id)

            if quantity == 0:
                logger.info(f"Quantity 0 for line {line_id}, removing it from cart {cart.id}")
                self.repo.delete_line(line)
            else:
                variant = self.product_client.get_variant(line.variant_id)
                if variant is None:
                    raise VariantNotFound(line.variant_id)

                if quantity > variant.available_stock:
                    raise InsufficientStock(line.variant_id, quantity, variant.available_stock)

                # ustawienie wartosci bezwzglednej, pozostale pozycje bez zmian
                cart_total = self.repo.total_quantity(cart.id) - line.quantity + quantity
                if cart_total > self.max_items:
                    raise CartLimitExceeded(self.max_items, cart_total)

                line.quantity = quantity
                line.updated_at = self.resolver.clock()

            self.repo.flush()
            self._bump_version(cart)

        return self.get_view(cart_id)

    @db_retry()
    def remove_line(self, cart_id: str, line_id: str) -> CartOut:
        with self._transaction("remove_line", cart_id):
            cart = self._require_cart(cart_id)
            line = self._require_line(cart, line_id)

            logger.info(f"Removing line {line_id} from cart {cart.id}")
            self.repo.delete_line(line)
            self.repo.flush()
            self._bump_version(cart)

        return self.get_view(cart_id)

    @db_retry()
    def clear_cart(self, cart_id: str) -> CartOut:
        with self._transaction("clear_cart", cart_id):
            cart = self._require_cart(cart_id)
            removed = self.repo.delete_lines(cart.id)
            logger.info(f"Cleared {removed} line(s) from cart {cart.id}")
            self._bump_version(cart)

        return self.get_view(cart_id)

    # =====================================================
    # POMOCNICZE
    # =====================================================
    def _require_cart(self, cart_id: str) -> CartModel:
        cart = self.repo.get_cart(cart_id)
        if cart is None:
            raise CartNotFound(cart_id)
        return cart

    def _require_line(self, cart: CartModel, line_id: str) -> CartLineModel:
        line = self.repo.get_line(cart.id, line_id)
        if line is None:
            raise LineNotFound(line_id)
        return line

    def _bump_version(self, cart: CartModel) -> None:
        new_data = {
            "version": cart.version + 1,
            "updated_at": self.resolver.clock(),
        }
        # kazda zmiana przedluza zycie koszyka anonimowego
        if cart.is_anonymous:
            new_data["expires_at"] = self.resolver.next_expiry()

        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data=new_data,
        )

        if rowcount == 0:
            self.repo.rollback()
            raise ConcurrencyConflict(
                "Cart was modified by another operation", cart_id=cart.id
            )

    @contextmanager
    def _transaction(self, action: str, cart_id: str):
        try:
            yield
            self.repo.commit()
        except ConcurrencyConflict:
            self.repo.rollback()
            logger.warning(f"{action} on cart {cart_id} hit a concurrent write, retrying")
            raise
        except StorefrontError as e:
            # odrzucenie domenowe: nic nie zostaje zapisane
            self.repo.rollback()
            logger.info(f"{action} on cart {cart_id} rejected: {e.code}")
            raise
        except Exception:
            self.repo.rollback()
            raise
