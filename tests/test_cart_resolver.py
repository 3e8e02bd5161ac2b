"""Tests for finding or creating the cart of a shopper."""

from datetime import timedelta

from sqlalchemy import func, select

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_line import CartLineModel
from storefront.services.cart_resolver import CartResolver
from storefront.services.cart_service import CartService
from storefront.utils.timeutils import as_utc


class TestCustomerCart:
    def test_creates_cart_for_new_customer(self, db, clock):
        resolution = CartResolver(db, clock=clock).resolve(customer_id="cust-001")

        assert resolution.cart.customer_id == "cust-001"
        assert resolution.cart.session_token is None
        assert resolution.cart.expires_at is None
        assert not resolution.token_issued

    def test_returns_same_cart_on_every_call(self, db, clock):
        resolver = CartResolver(db, clock=clock)
        first = resolver.resolve(customer_id="cust-001").cart
        second = resolver.resolve(customer_id="cust-001").cart

        assert first.id == second.id
        assert db.execute(select(func.count(CartModel.id))).scalar_one() == 1

    def test_customer_id_wins_over_session_token(self, db, clock):
        resolver = CartResolver(db, clock=clock)
        anonymous = resolver.resolve().cart

        resolution = resolver.resolve(customer_id="cust-001", session_token=anonymous.session_token)

        assert resolution.cart.id != anonymous.id
        assert resolution.cart.customer_id == "cust-001"
        assert not resolution.token_issued

    def test_customer_cart_never_expires(self, db, clock):
        resolver = CartResolver(db, clock=clock)
        cart = resolver.resolve(customer_id="cust-001").cart

        clock.advance(days=365)

        assert resolver.resolve(customer_id="cust-001").cart.id == cart.id


class TestAnonymousCart:
    def test_no_identity_creates_cart_and_issues_token(self, db, clock):
        resolution = CartResolver(db, clock=clock).resolve()

        assert resolution.token_issued
        assert resolution.cart.session_token == resolution.issued_token
        assert resolution.cart.customer_id is None
        assert as_utc(resolution.cart.expires_at) == clock.now + timedelta(days=7)

    def test_known_token_returns_same_cart_without_new_token(self, db, clock):
        resolver = CartResolver(db, clock=clock)
        created = resolver.resolve()

        again = resolver.resolve(session_token=created.issued_token)

        assert again.cart.id == created.cart.id
        assert not again.token_issued

    def test_unknown_token_creates_new_cart_with_fresh_token(self, db, clock):
        resolution = CartResolver(db, clock=clock).resolve(session_token="not-a-real-token")

        assert resolution.token_issued
        assert resolution.issued_token != "not-a-real-token"

    def test_expired_cart_is_replaced_and_its_lines_are_gone(self, db, catalog, clock):
        resolver = CartResolver(db, clock=clock)
        first = resolver.resolve()
        first_id = first.cart.id
        CartService(db, catalog, resolver=resolver).add_line(first_id, "v1", 2)

        clock.advance(days=7, seconds=1)
        resolution = resolver.resolve(session_token=first.issued_token)

        assert resolution.cart.id != first_id
        assert resolution.token_issued
        assert resolution.issued_token != first.issued_token
        assert db.get(CartModel, first_id) is None
        assert db.execute(select(func.count(CartLineModel.id))).scalar_one() == 0

    def test_cart_is_live_until_expiry(self, db, clock):
        resolver = CartResolver(db, clock=clock)
        first = resolver.resolve()

        clock.advance(days=6, hours=23)

        assert resolver.resolve(session_token=first.issued_token).cart.id == first.cart.id

    def test_find_anonymous_never_creates(self, db, clock):
        resolver = CartResolver(db, clock=clock)

        assert resolver.find_anonymous("missing") is None
        assert db.execute(select(func.count(CartModel.id))).scalar_one() == 0
