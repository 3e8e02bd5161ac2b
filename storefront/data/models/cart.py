#storefront/data/models/cart.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from storefront.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # dokladnie jedno z dwoch: klient albo sesja anonimowa
    customer_id = Column(String(64), nullable=True, unique=True)
    session_token = Column(String(64), nullable=True, unique=True)

    version = Column(Integer, nullable=False, default=1)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    lines = relationship(
        "CartLineModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartLineModel.created_at",
    )

    __table_args__ = (
        CheckConstraint(
            "(customer_id IS NULL) != (session_token IS NULL)",
            name="ck_cart_single_identity",
        ),
    )

    @property
    def is_anonymous(self) -> bool:
        return self.customer_id is None
