# printdesk/routes/order.py

from fastapi import APIRouter, Depends, Query, Request, status
from typing import List, Optional
from printdesk.schemas.order import (
    OrderCreate,
    OrderBase,
    OrderContext,
    OrderDetails,
    OrderIdResponse,
    OrderStatus,
    OrderSummary,
    StatusLogEntry,
    StatusUpdate,
)
from printdesk.services.aggregator import ContextLoader, OrderContextAggregator
from printdesk.services.order import (
    create_order_service,
    read_orders_service,
    read_order_service,
    update_order_service,
    delete_order_service,
    update_status_service,
    read_status_history_service,
)
from printdesk.utils.db_service import RemoteDataClient, get_remote_client
from printdesk.routes.auth import get_current_user

router = APIRouter()

# ────────────── CREATE ──────────────
@router.post(
    "/",
    response_model=OrderIdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an order",
    response_description="ID of the created order",
    responses={
        201: {"description": "Order created with its status entry and initial payment"},
        400: {"description": "Amount received exceeds the total, or no payment method"},
        401: {"description": "Missing or invalid token"},
        404: {"description": "Customer not found"},
        422: {"description": "Invalid request data"},
    },
)
async def create_order(request: Request, order: OrderCreate, current_user=Depends(get_current_user)):
    db_order = await create_order_service(order, request, current_user)
    return {"id": db_order.id}


# ────────────── READ ALL ──────────────
@router.get(
    "/",
    response_model=List[OrderSummary],
    summary="List orders",
    response_description="Order summaries, newest first",
)
async def read_orders(
    request: Request,
    skip: int = 0,
    limit: int = 100,
    customer_id: Optional[int] = None,
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    _=Depends(get_current_user),
):
    return await read_orders_service(request, skip, limit, customer_id, order_status)


@router.get(
    "/dues",
    response_model=List[OrderSummary],
    summary="Orders with a balance due",
)
async def read_dues(request: Request, customer_id: Optional[int] = None, _=Depends(get_current_user)):
    return await read_orders_service(request, 0, 1000, customer_id, with_dues=True)


# ────────────── READ ONE ──────────────
@router.get(
    "/{id}",
    response_model=OrderDetails,
    summary="Get an order by ID",
    responses={404: {"description": "Order not found"}},
)
async def read_order(id: int, request: Request, _=Depends(get_current_user)):
    return await read_order_service(id, request)


@router.get(
    "/{id}/context",
    response_model=OrderContext,
    summary="Order context for messages",
    response_description="Customer, amounts, status and payment history of one order",
    responses={
        400: {"description": "No customer selected, or the order belongs to another customer"},
        404: {"description": "Order not found"},
        409: {"description": "Replaced by a newer request for the same user and scope"},
        502: {"description": "One of the reads failed"},
    },
)
async def read_order_context(
    id: int,
    customer_id: int,
    request: Request,
    scope: Optional[str] = None,
    client: RemoteDataClient = Depends(get_remote_client),
    current_user=Depends(get_current_user),
):
    """
    A newer request from the same user and `scope` (a client screen id)
    cancels this one, which then answers 409. Without `scope` all of the
    user's requests share one slot.
    """
    aggregator = OrderContextAggregator(client, log=request.app.state.log)
    owner = ContextLoader.owner(current_user.id, scope)
    return await request.app.state.context_loader.load(owner, aggregator, customer_id, id)


# ────────────── UPDATE ──────────────
@router.put(
    "/{id}",
    response_model=OrderDetails,
    summary="Update an order",
    responses={
        400: {"description": "Total below the amount already paid"},
        404: {"description": "Order not found"},
    },
)
async def update_order(id: int, order_update: OrderBase, request: Request, _=Depends(get_current_user)):
    return await update_order_service(id, order_update, request)


# ────────────── DELETE ──────────────
@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an order",
    responses={
        204: {"description": "Order deleted"},
        404: {"description": "Order not found"},
        409: {"description": "Order has payments"},
    },
)
async def delete_order(id: int, request: Request, _=Depends(get_current_user)):
    await delete_order_service(id, request)


# ────────────── STATUS ──────────────
@router.post(
    "/{id}/status",
    response_model=StatusLogEntry,
    status_code=status.HTTP_201_CREATED,
    summary="Change order status",
)
async def update_status(id: int, update: StatusUpdate, request: Request, current_user=Depends(get_current_user)):
    return await update_status_service(id, update, request, current_user)


@router.get(
    "/{id}/status",
    response_model=List[StatusLogEntry],
    summary="Status history, newest first",
)
async def read_status_history(id: int, request: Request, _=Depends(get_current_user)):
    return await read_status_history_service(id, request)
