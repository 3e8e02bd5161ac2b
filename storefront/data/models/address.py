import uuid

from sqlalchemy import Column, String

from storefront.data.database import Base


class AddressModel(Base):
    __tablename__ = "addresses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    customer_id = Column(String(64), nullable=False, index=True)

    street = Column(String(255), nullable=False)
    city = Column(String(120), nullable=False, default="")
    state = Column(String(120), nullable=False, default="")
    zip_code = Column(String(20), nullable=False, default="")
    country = Column(String(120), nullable=False, default="")
    phone = Column(String(40), nullable=False, default="")
