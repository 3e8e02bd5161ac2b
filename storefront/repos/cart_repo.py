# storefront/repos/cart_repo.py
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_line import CartLineModel
from storefront.domain.errors import ConcurrencyConflict


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    # =====================================================
    # KOSZYKI
    # =====================================================
    def get_cart(self, cart_id: str) -> CartModel | None:
        return self.db.get(CartModel, cart_id)

    def get_cart_by_customer(self, customer_id: str) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.customer_id == customer_id)
        ).scalar_one_or_none()

    def get_cart_by_session(self, session_token: str) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.session_token == session_token)
        ).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def delete_cart(self, cart: CartModel) -> None:
        # pozycje usuwa kaskada ORM
        self.db.delete(cart)

    def update_cart_version(self, cart_id: str, old_version: int, new_data: dict) -> int:
        # optimistic locking: UPDATE ... WHERE id = :id AND version = :old
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete_expired_carts(self, now: datetime) -> int:
        expired_ids = select(CartModel.id).where(
            CartModel.session_token.is_not(None),
            CartModel.expires_at < now,
        )
        self.db.execute(
            delete(CartLineModel)
            .where(CartLineModel.cart_id.in_(expired_ids))
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(
            delete(CartModel)
            .where(CartModel.id.in_(expired_ids))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # =====================================================
    # POZYCJE
    # =====================================================
    def get_lines(self, cart_id: str) -> list[CartLineModel]:
        return list(
            self.db.execute(
                select(CartLineModel)
                .where(CartLineModel.cart_id == cart_id)
                .order_by(CartLineModel.created_at, CartLineModel.id)
            ).scalars()
        )

    def get_line(self, cart_id: str, line_id: str) -> CartLineModel | None:
        # zawsze w obrebie wlasnego koszyka, nigdy globalnie
        return self.db.execute(
            select(CartLineModel).where(
                CartLineModel.id == line_id,
                CartLineModel.cart_id == cart_id,
            )
        ).scalar_one_or_none()

    def get_line_for_variant(self, cart_id: str, variant_id: str) -> CartLineModel | None:
        return self.db.execute(
            select(CartLineModel).where(
                CartLineModel.cart_id == cart_id,
                CartLineModel.variant_id == variant_id,
            )
        ).scalar_one_or_none()

    def total_quantity(self, cart_id: str) -> int:
        total = self.db.execute(
            select(func.coalesce(func.sum(CartLineModel.quantity), 0)).where(
                CartLineModel.cart_id == cart_id
            )
        ).scalar_one()
        return int(total)

    def add_line(self, line: CartLineModel) -> None:
        self.db.add(line)

    def delete_line(self, line: CartLineModel) -> None:
        self.db.delete(line)

    def delete_lines(self, cart_id: str) -> int:
        result = self.db.execute(
            delete(CartLineModel).where(CartLineModel.cart_id == cart_id)
        )
        return result.rowcount

    # =====================================================
    # TRANSAKCJA
    # =====================================================
    def flush(self) -> None:
        # naruszenie unikalnosci (cart_id, variant_id) = rownolegly zapis
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConcurrencyConflict("Cart was modified by another operation") from exc

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
