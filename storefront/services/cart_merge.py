# storefront/services/cart_merge.py
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_line import CartLineModel
from storefront.domain.errors import ConcurrencyConflict
from storefront.domain.schemas import CartOut, MergeOut
from storefront.repos.cart_repo import CartRepo
from storefront.services.cart_resolver import CartResolver
from storefront.services.cart_service import build_cart_view
from storefront.services.product_client import ProductClient
from storefront.utils.retry import db_retry
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartMergeService:
    """
    Scalanie koszyka anonimowego z koszykiem klienta przy logowaniu.

    -przeniesienie pozycji i usuniecie koszyka anonimowego w jednej transakcji
    -ilosci sa przycinane do aktualnego stanu magazynu
    -blad scalania nigdy nie blokuje logowania, wynik ma wtedy `error`
    """

    def __init__(
        self,
        db: Session,
        product_client: ProductClient,
        resolver: CartResolver | None = None,
    ):
        self.repo = CartRepo(db)
        self.product_client = product_client
        self.resolver = resolver or CartResolver(db)

    def merge_on_login(self, session_token: str | None, customer_id: str) -> MergeOut:
        try:
            return self._merge(session_token, customer_id)
        except Exception as e:
            self.repo.rollback()
            logger.exception(
                f"Cart merge failed for customer {customer_id}, anonymous cart left intact"
            )
            return MergeOut(
                cart=self._current_view(customer_id),
                error=getattr(e, "code", type(e).__name__),
            )

    @db_retry()
    def _merge(self, session_token: str | None, customer_id: str) -> MergeOut:
        target = self.resolver.resolve(customer_id=customer_id).cart

        anonymous = self.resolver.find_anonymous(session_token) if session_token else None
        if anonymous is None:
            logger.info(f"No anonymous cart to merge for customer {customer_id}")
            return MergeOut(cart=self._view(target))

        anonymous_lines = self.repo.get_lines(anonymous.id)
        if not anonymous_lines:
            logger.info(f"Anonymous cart {anonymous.id} is empty, nothing to merge")
            return MergeOut(cart=self._view(target))

        merged = 0
        adjusted: list[str] = []
        now = self.resolver.clock()

        try:
            for line in anonymous_lines:
                variant = self.product_client.get_variant(line.variant_id)
                if variant is None:
                    logger.info(f"Variant {line.variant_id} no longer in catalog, dropped from merge")
                    adjusted.append(line.variant_id)
                    continue

                existing = self.repo.get_line_for_variant(target.id, line.variant_id)
                current = existing.quantity if existing else 0

                # laczna ilosc nie moze przekroczyc aktualnego stanu
                quantity = min(line.quantity, max(variant.available_stock - current, 0))
                if quantity < line.quantity:
                    logger.info(
                        f"Variant {line.variant_id} clamped during merge: "
                        f"{line.quantity} requested, {quantity} moved"
                    )
                    adjusted.append(line.variant_id)
                if quantity == 0:
                    continue

                if existing:
                    existing.quantity = current + quantity
                    existing.updated_at = now
                else:
                    # nowa pozycja zachowuje cene z koszyka anonimowego
                    self.repo.add_line(
                        CartLineModel(
                            cart_id=target.id,
                            variant_id=line.variant_id,
                            quantity=quantity,
                            unit_price=line.unit_price,
                            display_name=line.display_name,
                            variant_label=line.variant_label,
                            created_at=line.created_at,
                            updated_at=now,
                        )
                    )
                merged += 1

            # koszyk anonimowy zmieniony w miedzyczasie = konflikt
            self._claim_version(anonymous, {"version": anonymous.version + 1})
            self.repo.delete_cart(anonymous)
            self.repo.flush()
            self._claim_version(target, {"version": target.version + 1, "updated_at": now})
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(
            f"Merged {merged} line(s) from anonymous cart into cart {target.id} "
            f"for customer {customer_id}"
        )
        return MergeOut(cart=self._view(target), merged_lines=merged, adjusted_variants=adjusted)

    def _claim_version(self, cart: CartModel, new_data: dict) -> None:
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data=new_data,
        )
        if rowcount == 0:
            raise ConcurrencyConflict(
                "Cart was modified by another operation", cart_id=cart.id
            )

    def _view(self, cart: CartModel) -> CartOut:
        return build_cart_view(cart, self.repo.get_lines(cart.id))

    def _current_view(self, customer_id: str) -> CartOut | None:
        try:
            return self._view(self.resolver.resolve(customer_id=customer_id).cart)
        except Exception:
            self.repo.rollback()
            logger.exception(f"Could not load cart for customer {customer_id} after failed merge")
            return None
