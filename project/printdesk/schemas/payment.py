# printdesk/schemas/payment.py

from pydantic import BaseModel, Field
from typing import Optional
from datetime import date as Date, datetime

class PaymentCreate(BaseModel):
    order_id: int
    amount_paid: float = Field(..., gt=0)
    payment_date: Date
    payment_method: Optional[str] = "Cash"
    notes: Optional[str] = None

class Payment(BaseModel):
    id: int
    order_id: int
    customer_id: int
    amount_paid: float
    payment_date: Date
    payment_method: Optional[str] = None
    status: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }
