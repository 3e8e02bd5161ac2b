import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Text
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.domain.enums import PaymentStatus, PosSaleStatus


class PosSaleModel(Base):
    __tablename__ = "pos_sales"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    sale_number = Column(String(32), nullable=False, unique=True)
    staff_id = Column(String(64), nullable=False, index=True)

    subtotal = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    notes = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=PosSaleStatus.COMPLETED.value)
    payment_type = Column(String(20), nullable=False)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PAID.value)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship(
        "PosSaleItemModel",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="PosSaleItemModel.position",
    )


class PosSaleItemModel(Base):
    __tablename__ = "pos_sale_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    sale_id = Column(String(36), ForeignKey("pos_sales.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    # pozycje spoza katalogu nie maja wariantu i nie ruszaja stanow
    variant_id = Column(String(64), nullable=True)
    product_name = Column(String(255), nullable=False)
    variant_label = Column(String(255), nullable=False, default="")
    product_sku = Column(String(64), nullable=False)
    image_url = Column(String(500), nullable=True)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)

    sale = relationship("PosSaleModel", back_populates="items")
