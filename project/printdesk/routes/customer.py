# printdesk/routes/customer.py

from fastapi import APIRouter, Depends, Request, status
from typing import List, Optional
from printdesk.schemas.customer import Customer, CustomerCreate, CustomerBase, CustomerIdResponse
from printdesk.services.customer import (
    create_customer_service,
    read_customers_service,
    read_customer_service,
    update_customer_service,
    delete_customer_service,
)
from printdesk.routes.auth import get_current_user

router = APIRouter()

# ────────────── CREATE ──────────────
@router.post(
    "/",
    response_model=CustomerIdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a customer",
    responses={
        201: {"description": "Customer created"},
        401: {"description": "Missing or invalid token"},
        422: {"description": "Invalid request data"},
    },
)
async def create_customer(request: Request, customer: CustomerCreate, _=Depends(get_current_user)):
    db_customer = await create_customer_service(customer, request)
    return {"id": db_customer.id}


# ────────────── READ ALL ──────────────
@router.get(
    "/",
    response_model=List[Customer],
    summary="List customers",
    response_description="Customers matching the search and tag filter",
)
async def read_customers(
    request: Request,
    skip: int = 0,
    limit: int = 100,
    search: Optional[str] = None,
    tag: Optional[str] = None,
    order_by: str = "name",
    descending: bool = False,
    _=Depends(get_current_user),
):
    return await read_customers_service(request, skip, limit, search, tag, order_by, descending)


# ────────────── READ ONE ──────────────
@router.get(
    "/{id}",
    response_model=Customer,
    summary="Get a customer by ID",
    responses={404: {"description": "Customer not found"}},
)
async def read_customer(id: int, request: Request, _=Depends(get_current_user)):
    return await read_customer_service(id, request)


# ────────────── UPDATE ──────────────
@router.put(
    "/{id}",
    response_model=Customer,
    summary="Update a customer",
    responses={404: {"description": "Customer not found"}},
)
async def update_customer(id: int, customer_update: CustomerBase, request: Request, _=Depends(get_current_user)):
    return await update_customer_service(id, customer_update, request)


# ────────────── DELETE ──────────────
@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a customer",
    responses={
        204: {"description": "Customer deleted"},
        404: {"description": "Customer not found"},
        409: {"description": "Customer has orders"},
    },
)
async def delete_customer(id: int, request: Request, _=Depends(get_current_user)):
    await delete_customer_service(id, request)
