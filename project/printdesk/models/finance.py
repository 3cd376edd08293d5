# printdesk/models/finance.py

from sqlalchemy import Column, Integer, String, Text, Float, Date, DateTime
from sqlalchemy.sql import func
from printdesk.utils.database import Base

class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False)
    expense_type = Column(String, nullable=False)     # Rent, Salary, Paper, Ink, ...
    amount = Column(Float, nullable=False)
    paid_to = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Material(Base):
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    unit = Column(String, nullable=True)              # sheets, reams, litres
    current_quantity = Column(Float, nullable=False, default=0)
    minimum_stock_level = Column(Float, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
