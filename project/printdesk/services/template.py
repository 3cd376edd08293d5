# printdesk/services/template.py

"""
Message template rendering and template records.

Rendering is flat substitution of {{key}} tokens: no conditionals, no loops,
no escaping. Callers pre-format numbers and dates.
"""

import re
from typing import Mapping, Optional, Union

from fastapi import HTTPException, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select

from printdesk.models.template import MessageTemplate as TemplateModel
from printdesk.schemas.template import TemplateCreate, TemplateBase

PLACEHOLDER_RE = re.compile(r"\{\{([^{}]+)\}\}")

Value = Optional[Union[str, int, float]]


def extract_placeholders(body: str) -> list[str]:
    """Distinct placeholder names in first-seen order."""
    names = []
    for name in PLACEHOLDER_RE.findall(body or ""):
        if name not in names:
            names.append(name)
    return names


def unresolved_placeholders(body: str, variables: Mapping[str, Value]) -> list[str]:
    """Placeholders in the body that have no key in the map."""
    return [name for name in extract_placeholders(body) if name not in variables]


def stringify(value: Value) -> str:
    # None means "unset"; 0 and "" are real values and render as such
    if value is None:
        return ""
    return str(value)


def render_template(body: str, variables: Mapping[str, Value]) -> str:
    """
    Replaces every {{key}} in the body with the stringified value.

    Tokens whose key is missing from the map render as empty string, so the
    result never contains a placeholder.
    """
    def substitute(match: re.Match) -> str:
        return stringify(variables.get(match.group(1)))

    return PLACEHOLDER_RE.sub(substitute, body or "")


# ────────────── Template records ──────────────

def to_response(db_template: TemplateModel) -> dict:
    return {
        "id": db_template.id,
        "name": db_template.name,
        "category": db_template.category,
        "body": db_template.body,
        "placeholders": extract_placeholders(db_template.body),
    }


async def read_templates_service(request: Request, category: Optional[str] = None) -> list[dict]:
    db = request.state.db
    log = request.app.state.log

    query = select(TemplateModel).order_by(TemplateModel.name)
    if category:
        query = query.where(TemplateModel.category == category)
    result = await db.execute(query)
    templates = result.scalars().all()

    await log.log_info("template", f"{len(templates)} templates loaded")
    return [to_response(t) for t in templates]


async def get_template(id: int, request: Request) -> TemplateModel:
    db = request.state.db
    result = await db.execute(select(TemplateModel).where(TemplateModel.id == id))
    db_template = result.scalar_one_or_none()
    if db_template is None:
        await request.app.state.log.log_error("template", "Template not found", {"id": id})
        raise HTTPException(status_code=404, detail="Template not found")
    return db_template


async def create_template_service(template: TemplateCreate, request: Request) -> dict:
    db = request.state.db
    log = request.app.state.log

    db_template = TemplateModel(**template.model_dump())
    db.add(db_template)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail=f"Template '{template.name}' already exists")
    await db.refresh(db_template)

    await log.log_info("template", "Template created", {"id": db_template.id, "name": db_template.name})
    return to_response(db_template)


async def update_template_service(id: int, template_update: TemplateBase, request: Request) -> dict:
    db = request.state.db
    log = request.app.state.log

    db_template = await get_template(id, request)
    for key, value in template_update.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(db_template, key, value)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail=f"Template '{template_update.name}' already exists")
    await db.refresh(db_template)

    await log.log_info("template", "Template updated", {"id": id})
    return to_response(db_template)


async def delete_template_service(id: int, request: Request) -> None:
    db = request.state.db
    log = request.app.state.log

    db_template = await get_template(id, request)
    await db.delete(db_template)
    await db.commit()
    await log.log_info("template", "Template deleted", {"id": id})
