# printdesk/services/order.py

from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.future import select
from fastapi import HTTPException, Request

from printdesk.models.customer import Customer as CustomerModel
from printdesk.models.order import Order as OrderModel, OrderStatusLog
from printdesk.models.payment import Payment as PaymentModel
from printdesk.schemas.order import OrderCreate, OrderBase, OrderStatus, StatusUpdate
from printdesk.services import procedures
from printdesk.utils.errors import ValidationError


def money(value) -> float:
    return round(float(value or 0), 2)


async def read_orders_service(
    request: Request,
    skip: int = 0,
    limit: int = 100,
    customer_id: Optional[int] = None,
    status: Optional[OrderStatus] = None,
    with_dues: bool = False,
) -> list[dict]:
    """
    Order summaries (customer, paid, balance, current status), newest first.
    """
    db = request.state.db
    log = request.app.state.log

    query = procedures.summary_query()
    columns = query.selected_columns
    if customer_id is not None:
        query = query.where(OrderModel.customer_id == customer_id)
    if status is not None:
        query = query.where(columns.status == status.value)
    if with_dues:
        query = procedures.only_dues(query)

    result = await db.execute(query.order_by(OrderModel.id.desc()).offset(skip).limit(limit))
    orders = [procedures.summary_row(r) for r in result.all()]

    await log.log_info("order", f"{len(orders)} orders loaded", {"customer_id": customer_id})
    return orders


async def get_order(id: int, request: Request) -> OrderModel:
    db = request.state.db
    log = request.app.state.log

    result = await db.execute(select(OrderModel).where(OrderModel.id == id))
    db_order = result.scalar_one_or_none()
    if db_order is None:
        await log.log_error("order", "Order not found", {"id": id})
        raise HTTPException(status_code=404, detail="Order not found")
    return db_order


async def create_order_service(order: OrderCreate, request: Request, user=None) -> OrderModel:
    """
    Creates the order, its first status-log entry and, when money was
    taken with the order, the initial payment. All three rows are
    committed together or not at all.
    """
    db = request.state.db
    log = request.app.state.log

    customer = await db.get(CustomerModel, order.customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    if order.amount_received > order.total_amount:
        raise ValidationError("Amount received cannot exceed the order total")
    if order.amount_received > 0 and not order.payment_method:
        raise ValidationError("Payment method is required when an amount is received")

    user_id = getattr(user, "id", None)
    data = order.model_dump()
    db_order = OrderModel(**data, balance_amount=money(order.total_amount - order.amount_received), created_by=user_id)

    try:
        db.add(db_order)
        await db.flush()

        db.add(OrderStatusLog(
            order_id=db_order.id,
            status=OrderStatus.PENDING.value,
            updated_by=getattr(user, "login", None),
            notes="Order created",
        ))
        if order.amount_received > 0:
            db.add(PaymentModel(
                order_id=db_order.id,
                customer_id=order.customer_id,
                amount_paid=money(order.amount_received),
                payment_date=order.date,
                payment_method=order.payment_method,
                status="Paid" if db_order.balance_amount <= 0 else "Partial",
                created_by=user_id,
            ))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        await log.log_error("order", "Order not created, changes rolled back", {"error": str(e)})
        raise HTTPException(status_code=500, detail="Order could not be saved")

    await db.refresh(db_order)
    await log.log_info("order", "Order created", {
        "id": db_order.id, "customer_id": db_order.customer_id, "amount_received": db_order.amount_received
    })
    return db_order


async def read_order_service(id: int, request: Request) -> dict:
    """
    Order with customer name/phone, current status and status history.
    """
    db = request.state.db
    log = request.app.state.log

    details = await procedures.get_order_details_with_status(db, id)
    if details is None:
        await log.log_error("order", "Order not found", {"id": id})
        raise HTTPException(status_code=404, detail="Order not found")

    await log.log_info("order", "Order loaded", {"id": id})
    return details


async def update_order_service(id: int, order_update: OrderBase, request: Request) -> dict:
    db = request.state.db
    log = request.app.state.log

    db_order = await get_order(id, request)
    changes = order_update.model_dump(exclude_unset=True)
    fields = list(changes)
    total = changes.pop("total_amount", None)

    try:
        if total is not None:
            # compared against amount_received as stored at UPDATE time, not as read above
            result = await db.execute(
                update(OrderModel)
                .where(OrderModel.id == id, OrderModel.amount_received <= total + procedures.DUE_THRESHOLD)
                .values(total_amount=total, balance_amount=total - OrderModel.amount_received)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await db.rollback()
                raise ValidationError("Order total cannot be less than the amount already paid")

        for key, value in changes.items():
            if value is None and key in ("order_type", "quantity"):
                continue
            setattr(db_order, key, value)

        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        await log.log_error("order", "Order not updated, changes rolled back", {"id": id, "error": str(e)})
        raise HTTPException(status_code=500, detail="Order could not be saved")

    await db.refresh(db_order)
    await log.log_info("order", "Order updated", {"id": id, "fields": fields})
    return await read_order_service(id, request)


async def delete_order_service(id: int, request: Request) -> None:
    """
    Payments are never deleted, so an order with payments stays.
    """
    db = request.state.db
    log = request.app.state.log

    db_order = await get_order(id, request)
    payments = await db.scalar(select(func.count(PaymentModel.id)).where(PaymentModel.order_id == id))
    if payments:
        await log.log_warning("order", "Order has payments, not deleted", {"id": id, "payments": payments})
        raise HTTPException(status_code=409, detail=f"Order has {payments} payment(s) and cannot be deleted")

    history = await db.execute(select(OrderStatusLog).where(OrderStatusLog.order_id == id))
    for entry in history.scalars().all():
        await db.delete(entry)
    await db.delete(db_order)
    await db.commit()
    await log.log_info("order", "Order deleted", {"id": id})


# ────────────── Status ──────────────

async def update_status_service(id: int, update: StatusUpdate, request: Request, user=None) -> OrderStatusLog:
    """
    Appends a status-log entry; earlier entries are kept as history.
    """
    db = request.state.db
    log = request.app.state.log

    await get_order(id, request)
    entry = OrderStatusLog(
        order_id=id,
        status=update.status.value,
        updated_by=getattr(user, "login", None),
        notes=update.notes,
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)

    await log.log_info("order", "Order status changed", {"id": id, "status": entry.status})
    return entry


async def read_status_history_service(id: int, request: Request) -> list[dict]:
    db = request.state.db
    await get_order(id, request)
    return await procedures.get_order_status_history(db, id)
