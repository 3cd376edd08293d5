# printdesk/routes/chat.py

import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError as BodyError

from printdesk.config import settings
from printdesk.schemas.chat import ChatRequest, ChatTurn, Part
from printdesk.services.agent import ToolCallDispatcher
from printdesk.services.gpt import ChatModel, get_chat_model
from printdesk.services.search import WebSearchClient
from printdesk.services.tools import ToolContext
from printdesk.utils.db_service import RemoteDataClient, get_remote_client
from printdesk.utils.errors import RequestError
from printdesk.utils.security import TokenError
from printdesk.routes.auth import authenticate, bearer_token

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def get_search_client() -> WebSearchClient:
    return WebSearchClient()


async def check_caller(request: Request):
    """Bearer token first, then the optional shared apikey."""
    try:
        user = await authenticate(bearer_token(request), request)
    except TokenError as e:
        raise RequestError(str(e), status_code=401)

    if settings.FUNCTIONS_API_KEY and request.headers.get("apikey") != settings.FUNCTIONS_API_KEY:
        raise RequestError("Invalid apikey", status_code=401)
    return user


async def read_chat_request(request: Request) -> list[ChatTurn]:
    try:
        payload = json.loads(await request.body() or b"null")
    except ValueError:
        raise RequestError("Request body must be JSON")
    if not isinstance(payload, dict):
        raise RequestError("Request body must be a JSON object")

    try:
        body = ChatRequest.model_validate(payload)
    except BodyError as e:
        raise RequestError(f"Invalid request body: {e.errors()[0]['msg']}")

    history = list(body.history)
    if body.prompt:
        history.append(ChatTurn(role="user", parts=[Part(text=body.prompt)]))
    if not history:
        raise RequestError("history is required")
    return history


@router.options("/custom-ai-agent", summary="CORS preflight")
async def preflight():
    return PlainTextResponse("ok", headers=CORS_HEADERS)


@router.post(
    "/custom-ai-agent",
    summary="Chat with the shop assistant",
    response_description='{"response": text}',
    responses={
        200: {
            "description": "Assistant answer",
            "content": {"application/json": {"example": {"response": "Order #12 has a balance of ₹300."}}},
        },
        400: {"description": '{"error": ...}: body is not JSON or has no history'},
        401: {"description": '{"error": ...}: missing or invalid bearer token / apikey'},
        500: {"description": '{"error": ...}: unexpected failure'},
    },
)
async def custom_ai_agent(
    request: Request,
    model: ChatModel = Depends(get_chat_model),
    client: RemoteDataClient = Depends(get_remote_client),
    search: WebSearchClient = Depends(get_search_client),
):
    """
    Runs the tool-calling agent over the conversation history.

    - **history**: `[{"role": "user"|"model", "parts": [{"text": ...}]}]`
    - **prompt**: optional new user message appended to the history

    The caller is authenticated before the body is read; no model or tool
    call happens for an unauthenticated request.
    """
    log = request.app.state.log
    try:
        user = await check_caller(request)
        history = await read_chat_request(request)

        dispatcher = ToolCallDispatcher(model, ToolContext(client=client, search=search, log=log))
        answer = await dispatcher.run(history)

        await log.log_info("agent", "Answer ready", {"user": user.login, "iterations": dispatcher.iterations})
        return JSONResponse({"response": answer}, headers=CORS_HEADERS)

    except RequestError as e:
        await log.log_warning("agent", f"Request rejected: {e.message}", {"status": e.status_code})
        return JSONResponse({"error": e.message}, status_code=e.status_code, headers=CORS_HEADERS)
    except Exception as e:
        await log.log_error("agent", f"Agent failed: {e}")
        return JSONResponse({"error": str(e)}, status_code=500, headers=CORS_HEADERS)
