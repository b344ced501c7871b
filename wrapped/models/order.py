"""
SQLAlchemy model for the flat order collection.
"""
from sqlalchemy import Column, String, JSON, Integer

from wrapped.database import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(String, primary_key=True)
    created_at = Column(String, nullable=True, index=True)
    restaurant_name = Column(String, nullable=True)
    source = Column(String, nullable=False, default="email")
    total_price = Column(Integer, nullable=False, default=0)
    order_json = Column(JSON, nullable=False)
