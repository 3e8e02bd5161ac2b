import uuid

from sqlalchemy import Column, Integer, ForeignKey, Numeric, String, event
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    variant_id = Column(String(64), nullable=False)
    product_name = Column(String(255), nullable=False)
    variant_label = Column(String(255), nullable=False, default="")

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)

    order = relationship("OrderModel", back_populates="items")


@event.listens_for(OrderItemModel, "before_update")
def _reject_item_update(mapper, connection, target):
    # pozycje zamowienia sa niezmienne po utworzeniu
    raise ValueError(f"Order item {target.id} is immutable")
