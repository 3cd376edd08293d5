# printdesk/services/customer.py

from typing import Optional

from sqlalchemy import func
from sqlalchemy.future import select
from fastapi import HTTPException, Request

from printdesk.models.customer import Customer as CustomerModel
from printdesk.models.order import Order as OrderModel
from printdesk.schemas.customer import CustomerCreate, CustomerBase
from printdesk.utils.errors import ValidationError

SORTABLE = {"id", "name", "created_at"}


async def read_customers_service(
    request: Request,
    skip: int = 0,
    limit: int = 100,
    search: Optional[str] = None,
    tag: Optional[str] = None,
    order_by: str = "name",
    descending: bool = False,
) -> list[CustomerModel]:
    """
    Customer list: name/phone search, tag filter, sorting and pagination.
    """
    db = request.state.db
    log = request.app.state.log

    if order_by not in SORTABLE:
        raise ValidationError(f"Cannot sort customers by '{order_by}'")

    column = getattr(CustomerModel, order_by)
    query = select(CustomerModel).order_by(column.desc() if descending else column.asc())
    if search:
        term = f"%{search.strip()}%"
        query = query.where(CustomerModel.name.ilike(term) | CustomerModel.phone.ilike(term))

    if tag:
        # JSON containment differs between backends; filter tags here, then page
        result = await db.execute(query)
        customers = [c for c in result.scalars().all() if tag in (c.tags or [])]
        customers = customers[skip:skip + limit]
    else:
        result = await db.execute(query.offset(skip).limit(limit))
        customers = result.scalars().all()

    await log.log_info("customer", f"{len(customers)} customers loaded", {"search": search, "tag": tag})
    return customers


async def read_customer_service(id: int, request: Request) -> CustomerModel:
    db = request.state.db
    log = request.app.state.log

    result = await db.execute(select(CustomerModel).where(CustomerModel.id == id))
    db_customer = result.scalar_one_or_none()
    if db_customer is None:
        await log.log_error("customer", "Customer not found", {"id": id})
        raise HTTPException(status_code=404, detail="Customer not found")
    return db_customer


async def create_customer_service(customer: CustomerCreate, request: Request) -> CustomerModel:
    db = request.state.db
    log = request.app.state.log

    db_customer = CustomerModel(**customer.model_dump())
    db.add(db_customer)
    await db.commit()
    await db.refresh(db_customer)

    await log.log_info("customer", "Customer created", {"id": db_customer.id, "name": db_customer.name})
    return db_customer


async def update_customer_service(id: int, customer_update: CustomerBase, request: Request) -> CustomerModel:
    db = request.state.db
    log = request.app.state.log

    db_customer = await read_customer_service(id, request)
    for key, value in customer_update.model_dump(exclude_unset=True).items():
        if key == "name" and not (value or "").strip():
            raise ValidationError("Customer name cannot be empty")
        if key == "tags" and value is None:
            value = []
        setattr(db_customer, key, value)

    await db.commit()
    await db.refresh(db_customer)
    await log.log_info("customer", "Customer updated", {"id": id})
    return db_customer


async def delete_customer_service(id: int, request: Request) -> None:
    """
    Customers are referenced by orders and payments; only a customer
    without orders can be removed.
    """
    db = request.state.db
    log = request.app.state.log

    db_customer = await read_customer_service(id, request)
    orders = await db.scalar(select(func.count(OrderModel.id)).where(OrderModel.customer_id == id))
    if orders:
        await log.log_warning("customer", "Customer has orders, not deleted", {"id": id, "orders": orders})
        raise HTTPException(status_code=409, detail=f"Customer has {orders} order(s) and cannot be deleted")

    await db.delete(db_customer)
    await db.commit()
    await log.log_info("customer", "Customer deleted", {"id": id})
