# printdesk/schemas/user.py

from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class UserBase(BaseModel):
    """
    Staff account fields shared by create and update.
    """
    name: Optional[str] = None
    login: Optional[str] = None
    is_admin: Optional[bool] = False

class UserCreate(UserBase):
    login: str
    password: str

class UserUpdate(UserBase):
    """
    Only the fields that are sent get changed.
    """
    password: Optional[str] = None

class UserResponse(UserBase):
    id: int
    timestamp: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }
