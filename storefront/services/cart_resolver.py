# storefront/services/cart_resolver.py
import uuid
from datetime import datetime, timedelta
from typing import Callable, NamedTuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.repos.cart_repo import CartRepo
from storefront.utils.settings import ANON_CART_TTL_DAYS
from storefront.utils.timeutils import as_utc, utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartResolution(NamedTuple):
    cart: CartModel
    # nowy token do odeslania klientowi (naglowek X-Session-Id), inaczej None
    issued_token: str | None = None

    @property
    def token_issued(self) -> bool:
        return self.issued_token is not None


class CartResolver:
    """
    Znajduje albo tworzy dokladnie jeden koszyk dla tozsamosci:
    klient (bez wygasania) ma pierwszenstwo przed sesja anonimowa.
    """

    def __init__(
        self,
        db: Session,
        clock: Callable[[], datetime] = utcnow,
        ttl_days: int = ANON_CART_TTL_DAYS,
    ):
        self.repo = CartRepo(db)
        self.clock = clock
        self.ttl = timedelta(days=ttl_days)

    def resolve(self, customer_id: str | None = None, session_token: str | None = None) -> CartResolution:
        if customer_id:
            return CartResolution(self._customer_cart(customer_id))

        if session_token:
            cart = self.find_anonymous(session_token)
            if cart is not None:
                return CartResolution(cart)

        cart = self._new_anonymous_cart()
        return CartResolution(cart, cart.session_token)

    def find_anonymous(self, session_token: str) -> CartModel | None:
        """Zywy koszyk sesji albo None; przeterminowany jest usuwany."""
        cart = self.repo.get_cart_by_session(session_token)
        if cart is None:
            return None

        if self.is_expired(cart):
            logger.info(f"Anonymous cart {cart.id} expired, discarding it")
            self.repo.delete_cart(cart)
            self.repo.commit()
            return None

        return cart

    def is_expired(self, cart: CartModel) -> bool:
        expires_at = as_utc(cart.expires_at)
        return expires_at is not None and expires_at <= self.clock()

    def next_expiry(self) -> datetime:
        return self.clock() + self.ttl

    def _customer_cart(self, customer_id: str) -> CartModel:
        existing = self.repo.get_cart_by_customer(customer_id)
        if existing:
            return existing

        now = self.clock()
        try:
            created = self.repo.create_cart(
                CartModel(customer_id=customer_id, version=1, created_at=now, updated_at=now)
            )
        except IntegrityError:
            # rownolegle zapytanie zdazylo utworzyc koszyk
            self.repo.rollback()
            existing = self.repo.get_cart_by_customer(customer_id)
            if existing is None:
                raise
            return existing

        logger.info(f"Created cart {created.id} for customer {customer_id}")
        return created

    def _new_anonymous_cart(self) -> CartModel:
        now = self.clock()
        created = self.repo.create_cart(
            CartModel(
                session_token=str(uuid.uuid4()),
                version=1,
                expires_at=now + self.ttl,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(f"Created anonymous cart {created.id}")
        return created
