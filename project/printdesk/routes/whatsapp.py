# printdesk/routes/whatsapp.py

from fastapi import APIRouter, Depends, Request, status
from typing import List, Optional
from printdesk.schemas.whatsapp import ComposeRequest, ComposeResponse, SendRequest, SendResponse, WhatsAppLogEntry
from printdesk.services.aggregator import ContextLoader
from printdesk.services.messaging import MessageComposer
from printdesk.utils.db_service import RemoteDataClient, get_remote_client
from printdesk.routes.auth import get_current_user

router = APIRouter()


def get_composer(request: Request, client: RemoteDataClient = Depends(get_remote_client)) -> MessageComposer:
    return MessageComposer(client, request.app.state.context_loader, log=request.app.state.log)


@router.post(
    "/compose",
    response_model=ComposeResponse,
    summary="Render a template for one order",
    response_description="Message text, the variables used, unknown placeholders and the wa.me link",
    responses={
        400: {"description": "Customer, order or template not selected"},
        404: {"description": "Template or order not found"},
        409: {"description": "Replaced by a newer compose request"},
        502: {"description": "Order data could not be loaded"},
    },
)
async def compose(
    body: ComposeRequest,
    composer: MessageComposer = Depends(get_composer),
    current_user=Depends(get_current_user),
):
    owner = ContextLoader.owner(current_user.id, body.scope)
    return await composer.compose(owner, body.customer_id, body.order_id, body.template_id)


@router.post(
    "/send",
    response_model=SendResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log a message and return its wa.me link",
    responses={400: {"description": "No customer, empty message, or no phone number"}},
)
async def send(
    body: SendRequest,
    composer: MessageComposer = Depends(get_composer),
    current_user=Depends(get_current_user),
):
    return await composer.send(body.customer_id, body.message, body.template_name, current_user.id)


@router.get("/log", response_model=List[WhatsAppLogEntry], summary="Sent message log, newest first")
async def read_log(
    customer_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    composer: MessageComposer = Depends(get_composer),
    _=Depends(get_current_user),
):
    return await composer.history(customer_id, skip, limit)
