# printdesk/services/procedures.py

"""
Named remote procedures: computed and joined reads that callers invoke by
name through RemoteDataClient.rpc() instead of querying tables directly.

Each procedure is an async function taking an AsyncSession plus keyword
parameters and returning plain dicts / lists of dicts.
"""

from datetime import date, datetime
from typing import Awaitable, Callable, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from printdesk.models.customer import Customer
from printdesk.models.finance import Expense, Material
from printdesk.models.order import Order, OrderStatusLog
from printdesk.models.payment import Payment
from printdesk.utils.errors import ValidationError

Procedure = Callable[..., Awaitable]

PROCEDURES: dict[str, Procedure] = {}

DEFAULT_STATUS = "Pending"

# amounts are shown in whole cents; anything below half a cent is settled
DUE_THRESHOLD = 0.005


def procedure(name: str):
    """Registers the decorated coroutine under the given remote name."""
    def decorator(fn: Procedure) -> Procedure:
        PROCEDURES[name] = fn
        return fn
    return decorator


def row_to_dict(obj) -> dict:
    """ORM instance -> {column: value}."""
    return {c.key: getattr(obj, c.key) for c in obj.__mapper__.column_attrs}


# ────────────── Shared subqueries ──────────────

def paid_subquery():
    return (
        select(
            Payment.order_id.label("order_id"),
            func.coalesce(func.sum(Payment.amount_paid), 0).label("paid"),
        )
        .group_by(Payment.order_id)
        .subquery()
    )


def status_subquery():
    # current status = latest status-log entry of the order
    latest = (
        select(OrderStatusLog.order_id, func.max(OrderStatusLog.id).label("last_id"))
        .group_by(OrderStatusLog.order_id)
        .subquery()
    )
    return (
        select(OrderStatusLog.order_id.label("order_id"), OrderStatusLog.status.label("status"))
        .join(latest, OrderStatusLog.id == latest.c.last_id)
        .subquery()
    )


def summary_query():
    paid = paid_subquery()
    status = status_subquery()
    paid_amount = func.coalesce(paid.c.paid, 0)

    return (
        select(
            Order.id.label("order_id"),
            Order.customer_id.label("customer_id"),
            Customer.name.label("customer_name"),
            Customer.phone.label("customer_phone"),
            Order.date.label("order_date"),
            Order.order_type.label("order_type"),
            Order.total_amount.label("total_amount"),
            paid_amount.label("amount_paid"),
            (Order.total_amount - paid_amount).label("balance_due"),
            Order.delivery_date.label("delivery_date"),
            func.coalesce(status.c.status, DEFAULT_STATUS).label("status"),
        )
        .join(Customer, Customer.id == Order.customer_id)
        .outerjoin(paid, paid.c.order_id == Order.id)
        .outerjoin(status, status.c.order_id == Order.id)
    )


def only_dues(query):
    return query.where(query.selected_columns.balance_due >= DUE_THRESHOLD)


def summary_row(row) -> dict:
    data = dict(row._mapping)
    for key in ("total_amount", "amount_paid", "balance_due"):
        data[key] = round(float(data[key] or 0), 2)
    return data


# ────────────── Orders ──────────────

@procedure("get_order_summary")
async def get_order_summary(session: AsyncSession, order_id: int) -> Optional[dict]:
    result = await session.execute(summary_query().where(Order.id == order_id))
    row = result.first()
    return summary_row(row) if row else None


@procedure("get_order_summaries")
async def get_order_summaries(
    session: AsyncSession, customer_id: Optional[int] = None, skip: int = 0, limit: int = 100
) -> list[dict]:
    query = summary_query().order_by(Order.id.desc()).offset(skip).limit(limit)
    if customer_id is not None:
        query = query.where(Order.customer_id == customer_id)
    result = await session.execute(query)
    return [summary_row(r) for r in result.all()]


@procedure("get_order_summaries_with_dues")
async def get_order_summaries_with_dues(session: AsyncSession, customer_id: Optional[int] = None) -> list[dict]:
    query = only_dues(summary_query())
    if customer_id is not None:
        query = query.where(Order.customer_id == customer_id)
    result = await session.execute(query.order_by(Order.id))
    return [summary_row(r) for r in result.all()]


@procedure("get_recent_due_payments")
async def get_recent_due_payments(session: AsyncSession, limit: int = 50) -> list[dict]:
    dues = await get_order_summaries_with_dues(session)
    dues.sort(key=lambda s: (s["order_date"] or date.min, s["order_id"]), reverse=True)
    return dues[:limit]


@procedure("get_order_status_history")
async def get_order_status_history(session: AsyncSession, order_id: int) -> list[dict]:
    result = await session.execute(
        select(OrderStatusLog)
        .where(OrderStatusLog.order_id == order_id)
        .order_by(OrderStatusLog.id.desc())
    )
    return [row_to_dict(entry) for entry in result.scalars().all()]


@procedure("get_order_details_with_status")
async def get_order_details_with_status(session: AsyncSession, order_id: int) -> Optional[dict]:
    result = await session.execute(
        select(Order, Customer.name, Customer.phone)
        .join(Customer, Customer.id == Order.customer_id)
        .where(Order.id == order_id)
    )
    row = result.first()
    if row is None:
        return None

    order, customer_name, customer_phone = row
    history = await get_order_status_history(session, order_id)

    details = row_to_dict(order)
    details.update({
        "customer_name": customer_name,
        "customer_phone": customer_phone,
        "status": history[0]["status"] if history else DEFAULT_STATUS,
        "history": history,
    })
    return details


# ────────────── Finance and stock ──────────────

def month_bounds(month: str) -> tuple[date, date]:
    """'2025-06-01' or '2025-06' -> (2025-06-01, 2025-07-01)."""
    try:
        start = datetime.strptime(month[:7], "%Y-%m").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid month '{month}', expected YYYY-MM-DD")
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


@procedure("get_financial_summary")
async def get_financial_summary(session: AsyncSession, month: str) -> dict:
    start, end = month_bounds(month)

    revenue = await session.scalar(
        select(func.coalesce(func.sum(Payment.amount_paid), 0))
        .where(Payment.payment_date >= start, Payment.payment_date < end)
    )
    expenses = await session.scalar(
        select(func.coalesce(func.sum(Expense.amount), 0))
        .where(Expense.date >= start, Expense.date < end)
    )
    revenue = round(float(revenue or 0), 2)
    expenses = round(float(expenses or 0), 2)

    return {
        "month": f"{start:%Y-%m}",
        "total_revenue": revenue,
        "total_expenses": expenses,
        "net_profit": round(revenue - expenses, 2),
    }


@procedure("get_low_stock_materials")
async def get_low_stock_materials(session: AsyncSession) -> list[dict]:
    result = await session.execute(
        select(Material)
        .where(Material.current_quantity <= Material.minimum_stock_level)
        .order_by(Material.name)
    )
    return [row_to_dict(m) for m in result.scalars().all()]
