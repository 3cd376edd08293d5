# printdesk/schemas/customer.py

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

class CustomerBase(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    tags: Optional[List[str]] = None

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, tags):
        # tags form a set: trimmed, no blanks, no duplicates, order kept
        if tags is None:
            return None
        seen = []
        for tag in tags:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen

class CustomerCreate(CustomerBase):
    name: str = Field(..., min_length=1)
    tags: List[str] = Field(default_factory=list)

class CustomerIdResponse(BaseModel):
    id: int

class Customer(CustomerBase):
    id: int
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }
