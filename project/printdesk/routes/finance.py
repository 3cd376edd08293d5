# printdesk/routes/finance.py

from datetime import date
from fastapi import APIRouter, Depends, Request, status
from typing import List, Optional
from printdesk.schemas.finance import Expense, ExpenseCreate, Material, MaterialCreate, MaterialAdjust
from printdesk.services.finance import (
    create_expense_service,
    read_expenses_service,
    create_material_service,
    read_materials_service,
    adjust_material_service,
)
from printdesk.utils.db_service import RemoteDataClient, get_remote_client
from printdesk.routes.auth import get_current_user

router = APIRouter()

# ────────────── EXPENSES ──────────────
@router.post("/expenses", response_model=Expense, status_code=status.HTTP_201_CREATED, summary="Record an expense")
async def create_expense(request: Request, expense: ExpenseCreate, _=Depends(get_current_user)):
    return await create_expense_service(expense, request)


@router.get("/expenses", response_model=List[Expense], summary="List expenses, newest first")
async def read_expenses(
    request: Request,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
    _=Depends(get_current_user),
):
    return await read_expenses_service(request, date_from, date_to, skip, limit)


@router.get(
    "/summary",
    summary="Monthly revenue, expenses and net profit",
    responses={400: {"description": "Month is not YYYY-MM or YYYY-MM-DD"}},
)
async def read_summary(month: str, client: RemoteDataClient = Depends(get_remote_client), _=Depends(get_current_user)):
    return await client.rpc("get_financial_summary", month=month)


# ────────────── MATERIALS ──────────────
@router.post(
    "/materials",
    response_model=Material,
    status_code=status.HTTP_201_CREATED,
    summary="Add a material",
    responses={409: {"description": "Material already exists"}},
)
async def create_material(request: Request, material: MaterialCreate, _=Depends(get_current_user)):
    return await create_material_service(material, request)


@router.get("/materials", response_model=List[Material], summary="List materials")
async def read_materials(request: Request, low_stock: bool = False, _=Depends(get_current_user)):
    return await read_materials_service(request, low_stock)


@router.post(
    "/materials/{id}/adjust",
    response_model=Material,
    summary="Stock in or usage",
    responses={400: {"description": "Not enough stock"}, 404: {"description": "Material not found"}},
)
async def adjust_material(id: int, adjust: MaterialAdjust, request: Request, _=Depends(get_current_user)):
    return await adjust_material_service(id, adjust, request)
