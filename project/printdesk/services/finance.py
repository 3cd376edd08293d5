# printdesk/services/finance.py

from typing import Optional
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select
from fastapi import HTTPException, Request

from printdesk.models.finance import Expense as ExpenseModel, Material as MaterialModel
from printdesk.schemas.finance import ExpenseCreate, MaterialCreate, MaterialAdjust
from printdesk.utils.errors import ValidationError


# ────────────── Expenses ──────────────

async def create_expense_service(expense: ExpenseCreate, request: Request) -> ExpenseModel:
    db = request.state.db
    log = request.app.state.log

    db_expense = ExpenseModel(**expense.model_dump())
    db.add(db_expense)
    await db.commit()
    await db.refresh(db_expense)

    await log.log_info("finance", "Expense recorded", {"id": db_expense.id, "amount": db_expense.amount})
    return db_expense


async def read_expenses_service(
    request: Request,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
) -> list[ExpenseModel]:
    db = request.state.db

    query = select(ExpenseModel).order_by(ExpenseModel.date.desc(), ExpenseModel.id.desc())
    if date_from is not None:
        query = query.where(ExpenseModel.date >= date_from)
    if date_to is not None:
        query = query.where(ExpenseModel.date <= date_to)

    result = await db.execute(query.offset(skip).limit(limit))
    return result.scalars().all()


# ────────────── Materials ──────────────

async def read_materials_service(request: Request, low_stock: bool = False) -> list[MaterialModel]:
    db = request.state.db

    query = select(MaterialModel).order_by(MaterialModel.name)
    if low_stock:
        query = query.where(MaterialModel.current_quantity <= MaterialModel.minimum_stock_level)
    result = await db.execute(query)
    return result.scalars().all()


async def create_material_service(material: MaterialCreate, request: Request) -> MaterialModel:
    db = request.state.db
    log = request.app.state.log

    db_material = MaterialModel(**material.model_dump())
    db.add(db_material)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail=f"Material '{material.name}' already exists")
    await db.refresh(db_material)

    await log.log_info("finance", "Material added", {"id": db_material.id, "name": db_material.name})
    return db_material


async def adjust_material_service(id: int, adjust: MaterialAdjust, request: Request) -> MaterialModel:
    """
    Stock in (positive change) or usage (negative change).
    """
    db = request.state.db
    log = request.app.state.log

    result = await db.execute(select(MaterialModel).where(MaterialModel.id == id))
    db_material = result.scalar_one_or_none()
    if db_material is None:
        raise HTTPException(status_code=404, detail="Material not found")

    quantity = round(db_material.current_quantity + adjust.change, 3)
    if quantity < 0:
        raise ValidationError(
            f"Only {db_material.current_quantity} {db_material.unit or 'units'} of {db_material.name} in stock"
        )

    db_material.current_quantity = quantity
    await db.commit()
    await db.refresh(db_material)

    if quantity <= db_material.minimum_stock_level:
        await log.log_warning("finance", "Material at or below minimum stock", {
            "id": id, "name": db_material.name, "quantity": quantity
        })
    else:
        await log.log_info("finance", "Material adjusted", {"id": id, "change": adjust.change, "notes": adjust.notes})
    return db_material
