# printdesk/models/customer.py

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from sqlalchemy.sql import func
from printdesk.utils.database import Base

class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)     # ["VIP", "Wholesale", ...]
    created_at = Column(DateTime(timezone=True), server_default=func.now())
