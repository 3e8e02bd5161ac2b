from sqlalchemy import Column, Integer, String

from storefront.data.database import Base


class SequenceModel(Base):
    """Licznik numerow, np. scope ORDER-2026 albo POS-20261019."""

    __tablename__ = "sequences"

    scope = Column(String(32), primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)
