# printdesk/routes/template.py

from fastapi import APIRouter, Depends, Request, status
from typing import List, Optional
from printdesk.schemas.template import Template, TemplateCreate, TemplateBase
from printdesk.services.template import (
    create_template_service,
    read_templates_service,
    get_template,
    to_response,
    update_template_service,
    delete_template_service,
)
from printdesk.routes.auth import get_current_user

router = APIRouter()


@router.post(
    "/",
    response_model=Template,
    status_code=status.HTTP_201_CREATED,
    summary="Create a message template",
    responses={409: {"description": "Template name already taken"}},
)
async def create_template(request: Request, template: TemplateCreate, _=Depends(get_current_user)):
    return await create_template_service(template, request)


@router.get("/", response_model=List[Template], summary="List message templates")
async def read_templates(request: Request, category: Optional[str] = None, _=Depends(get_current_user)):
    return await read_templates_service(request, category)


@router.get("/{id}", response_model=Template, summary="Get a message template")
async def read_template(id: int, request: Request, _=Depends(get_current_user)):
    return to_response(await get_template(id, request))


@router.put("/{id}", response_model=Template, summary="Update a message template")
async def update_template(id: int, template_update: TemplateBase, request: Request, _=Depends(get_current_user)):
    return await update_template_service(id, template_update, request)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a message template")
async def delete_template(id: int, request: Request, _=Depends(get_current_user)):
    await delete_template_service(id, request)
