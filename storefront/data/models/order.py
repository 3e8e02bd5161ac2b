import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Numeric, JSON, Text
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.domain.enums import OrderStatus, PaymentStatus


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_number = Column(String(32), nullable=False, unique=True)
    customer_id = Column(String(64), nullable=False, index=True)

    delivery_type = Column(String(32), nullable=False)
    payment_method = Column(String(32), nullable=False)
    payment_status = Column(String(32), nullable=False, default=PaymentStatus.PENDING.value)
    status = Column(String(32), nullable=False, default=OrderStatus.PENDING.value)

    subtotal = Column(Numeric(12, 2), nullable=False)
    delivery_fee = Column(Numeric(12, 2), nullable=False)
    discount = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)

    # kopia adresu, przezywa usuniecie adresu klienta
    shipping_address = Column(JSON, nullable=False)
    customer_notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.position",
    )
