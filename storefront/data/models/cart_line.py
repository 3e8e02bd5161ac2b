import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, Integer, ForeignKey, Numeric, String, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class CartLineModel(Base):
    __tablename__ = "cart_lines"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    cart_id = Column(String(36), ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    variant_id = Column(String(64), nullable=False)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)

    # kopia z katalogu z chwili ostatniego dodania
    display_name = Column(String(255), nullable=False, default="")
    variant_label = Column(String(255), nullable=False, default="")

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    cart = relationship("CartModel", back_populates="lines")

    __table_args__ = (
        UniqueConstraint("cart_id", "variant_id", name="u_cart_variant"),
        CheckConstraint("quantity >= 1", name="ck_cart_line_quantity_positive"),
    )
