# printdesk/schemas/finance.py

from pydantic import BaseModel, Field
from typing import Optional
from datetime import date as Date

class ExpenseCreate(BaseModel):
    date: Date
    expense_type: str
    amount: float = Field(..., gt=0)
    paid_to: Optional[str] = None
    notes: Optional[str] = None

class Expense(ExpenseCreate):
    id: int

    model_config = {
        "from_attributes": True
    }

class MaterialCreate(BaseModel):
    name: str = Field(..., min_length=1)
    unit: Optional[str] = None
    current_quantity: float = Field(0, ge=0)
    minimum_stock_level: float = Field(0, ge=0)

class MaterialAdjust(BaseModel):
    change: float                 # positive = stock in, negative = used
    notes: Optional[str] = None

class Material(MaterialCreate):
    id: int

    model_config = {
        "from_attributes": True
    }
