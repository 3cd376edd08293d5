# printdesk/models/order.py

from sqlalchemy import Column, Integer, String, Text, Float, Date, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from printdesk.utils.database import Base

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)

    date            = Column(Date, nullable=False)                  # order date
    order_type      = Column(String, nullable=False)                # visiting cards, flex banner, ...
    quantity        = Column(Integer, nullable=False, default=1)
    rate            = Column(Float, nullable=True)
    total_amount    = Column(Float, nullable=False)
    amount_received = Column(Float, nullable=False, default=0)      # duplicate of sum(payments)
    balance_amount  = Column(Float, nullable=False, default=0)      # duplicate of total - received
    payment_method  = Column(String, nullable=True)
    design_needed   = Column(Boolean, default=False)
    delivery_date   = Column(Date, nullable=True)
    notes           = Column(Text, nullable=True)
    created_by      = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at      = Column(DateTime(timezone=True), server_default=func.now())


class OrderStatusLog(Base):
    """Append-only; the latest entry is the current order status."""
    __tablename__ = "order_status_log"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    status = Column(String, nullable=False)
    updated_by = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now())
