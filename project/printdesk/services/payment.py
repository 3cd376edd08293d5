# printdesk/services/payment.py

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import update
from sqlalchemy.future import select
from fastapi import HTTPException, Request

from printdesk.models.order import Order as OrderModel
from printdesk.models.payment import Payment as PaymentModel
from printdesk.schemas.payment import PaymentCreate
from printdesk.services.order import get_order, money
from printdesk.services.procedures import DUE_THRESHOLD
from printdesk.utils.errors import ValidationError


def payment_status(total: float, paid: float) -> str:
    """'Paid' once the order is fully covered, otherwise 'Partial'."""
    return "Paid" if money(paid) >= money(total) else "Partial"


async def create_payment_service(payment: PaymentCreate, request: Request, user=None) -> PaymentModel:
    """
    Records a payment against an order and moves the order's received and
    balance amounts in the same commit.

    The balance check and the increment are a single guarded UPDATE on the
    order row, so two payments racing for the same balance cannot both pass.
    """
    db = request.state.db
    log = request.app.state.log

    db_order = await get_order(payment.order_id, request)
    amount = money(payment.amount_paid)

    guarded = (
        update(OrderModel)
        .where(OrderModel.id == db_order.id)
        .where(OrderModel.total_amount - OrderModel.amount_received - amount >= -DUE_THRESHOLD)
        .values(
            amount_received=OrderModel.amount_received + amount,
            balance_amount=OrderModel.total_amount - (OrderModel.amount_received + amount),
        )
        .execution_options(synchronize_session=False)
    )

    try:
        result = await db.execute(guarded)
        if result.rowcount == 0:
            await db.rollback()
            await db.refresh(db_order)
            balance = money(db_order.total_amount - (db_order.amount_received or 0))
            await log.log_warning("payment", "Payment exceeds balance", {
                "order_id": payment.order_id, "amount": amount, "balance": balance
            })
            raise ValidationError(f"Payment of {amount:g} exceeds the balance due of {balance:g}")

        # the order row is now locked by this transaction
        await db.refresh(db_order)
        db_payment = PaymentModel(
            **payment.model_dump(),
            customer_id=db_order.customer_id,
            status=payment_status(db_order.total_amount, db_order.amount_received),
            created_by=getattr(user, "id", None),
        )
        db.add(db_payment)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        await log.log_error("payment", "Payment not recorded, changes rolled back", {"error": str(e)})
        raise HTTPException(status_code=500, detail="Payment could not be saved")

    await db.refresh(db_payment)
    await log.log_info("payment", "Payment recorded", {
        "id": db_payment.id, "order_id": db_payment.order_id, "amount": db_payment.amount_paid
    })
    return db_payment


async def read_payments_service(
    request: Request,
    order_id: Optional[int] = None,
    customer_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
) -> list[PaymentModel]:
    db = request.state.db
    log = request.app.state.log

    query = select(PaymentModel).order_by(PaymentModel.payment_date.desc(), PaymentModel.id.desc())
    if order_id is not None:
        query = query.where(PaymentModel.order_id == order_id)
    if customer_id is not None:
        query = query.where(PaymentModel.customer_id == customer_id)

    result = await db.execute(query.offset(skip).limit(limit))
    payments = result.scalars().all()

    await log.log_info("payment", f"{len(payments)} payments loaded", {"order_id": order_id, "customer_id": customer_id})
    return payments
