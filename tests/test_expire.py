"""Tests for purging expired anonymous carts."""

from sqlalchemy import func, select

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_line import CartLineModel
from storefront.services.cart_resolver import CartResolver
from storefront.services.cart_service import CartService
from storefront.tasks.expire import purge_expired_carts


class TestPurgeExpiredCarts:
    def test_removes_only_expired_anonymous_carts(self, db, catalog, clock):
        resolver = CartResolver(db, clock=clock)
        carts = CartService(db, catalog, resolver=resolver)

        stale = resolver.resolve().cart.id
        carts.add_line(stale, "v1", 2)
        customer = resolver.resolve(customer_id="cust-001").cart.id
        carts.add_line(customer, "v1", 1)

        clock.advance(days=5)
        live = resolver.resolve().cart.id

        clock.advance(days=3)
        removed = purge_expired_carts(db, now=clock())

        assert removed == 1
        db.expire_all()
        assert db.get(CartModel, stale) is None
        assert db.get(CartModel, live) is not None
        assert db.get(CartModel, customer) is not None
        assert db.execute(select(func.count(CartLineModel.id))).scalar_one() == 1

    def test_nothing_to_purge(self, db, clock):
        assert purge_expired_carts(db, now=clock()) == 0
