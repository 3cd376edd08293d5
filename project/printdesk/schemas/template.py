# printdesk/schemas/template.py

from pydantic import BaseModel, Field
from typing import Optional, List

class TemplateBase(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    body: Optional[str] = None

class TemplateCreate(TemplateBase):
    name: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)

class Template(TemplateBase):
    id: int
    placeholders: List[str] = Field(default_factory=list)

    model_config = {
        "from_attributes": True
    }
