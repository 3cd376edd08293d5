# printdesk/schemas/order.py

from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date as Date, datetime

class OrderStatus(str, Enum):
    PENDING = "Pending"
    DESIGN = "Design"
    PRINTING = "Printing"
    DELIVERED = "Delivered"

class OrderBase(BaseModel):
    order_type: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=1)
    rate: Optional[float] = Field(None, ge=0)
    total_amount: Optional[float] = Field(None, ge=0)
    design_needed: Optional[bool] = None
    delivery_date: Optional[Date] = None
    notes: Optional[str] = None

class OrderCreate(OrderBase):
    customer_id: int
    date: Date
    order_type: str
    quantity: int = Field(1, ge=1)
    total_amount: float = Field(..., ge=0)
    amount_received: float = Field(0, ge=0)     # initial payment taken with the order
    payment_method: Optional[str] = None

class OrderIdResponse(BaseModel):
    id: int

class Order(OrderBase):
    id: int
    customer_id: int
    date: Date
    amount_received: float
    balance_amount: float
    payment_method: Optional[str] = None
    status: OrderStatus = OrderStatus.PENDING

    model_config = {
        "from_attributes": True
    }

class StatusUpdate(BaseModel):
    status: OrderStatus
    notes: Optional[str] = None

class StatusLogEntry(BaseModel):
    id: int
    order_id: int
    status: OrderStatus
    updated_by: Optional[str] = None
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }

class OrderSummary(BaseModel):
    order_id: int
    customer_id: int
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    order_date: Optional[Date] = None
    order_type: Optional[str] = None
    total_amount: float
    amount_paid: float
    balance_due: float
    delivery_date: Optional[Date] = None
    status: OrderStatus = OrderStatus.PENDING

class OrderDetails(Order):
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    history: List[StatusLogEntry] = Field(default_factory=list)

class PaymentLine(BaseModel):
    payment_date: Date
    amount_paid: float
    payment_method: Optional[str] = None

class OrderContext(BaseModel):
    """Denormalized order view used to fill message templates."""
    order_id: int
    customer_id: int
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    order_date: Optional[Date] = None
    order_type: Optional[str] = None
    quantity: Optional[int] = None
    total_amount: float
    amount_paid: float
    balance_due: float
    delivery_date: Optional[Date] = None
    status: OrderStatus = OrderStatus.PENDING
    payments: List[PaymentLine] = Field(default_factory=list)
    payment_history: str
    invoice_url: str
