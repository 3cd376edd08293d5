# printdesk/routes/payment.py

from fastapi import APIRouter, Depends, Request, status
from typing import List, Optional
from printdesk.schemas.payment import Payment, PaymentCreate
from printdesk.services.payment import create_payment_service, read_payments_service
from printdesk.routes.auth import get_current_user

router = APIRouter()


@router.post(
    "/",
    response_model=Payment,
    status_code=status.HTTP_201_CREATED,
    summary="Record a payment",
    responses={
        201: {"description": "Payment recorded, order balance updated"},
        400: {"description": "Payment exceeds the balance due"},
        404: {"description": "Order not found"},
    },
)
async def create_payment(request: Request, payment: PaymentCreate, current_user=Depends(get_current_user)):
    return await create_payment_service(payment, request, current_user)


@router.get("/", response_model=List[Payment], summary="List payments, newest first")
async def read_payments(
    request: Request,
    order_id: Optional[int] = None,
    customer_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    _=Depends(get_current_user),
):
    return await read_payments_service(request, order_id, customer_id, skip, limit)
