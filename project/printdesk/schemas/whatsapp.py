# printdesk/schemas/whatsapp.py

from pydantic import BaseModel
from typing import Optional, List, Dict, Union
from datetime import datetime

class ComposeRequest(BaseModel):
    customer_id: Optional[int] = None
    order_id: Optional[int] = None
    template_id: Optional[int] = None
    scope: Optional[str] = None     # client screen id; loads are superseded per scope

class ComposeResponse(BaseModel):
    message: str
    variables: Dict[str, Optional[Union[str, int, float]]]
    unresolved: List[str]
    link: Optional[str] = None

class SendRequest(BaseModel):
    customer_id: Optional[int] = None
    message: Optional[str] = None
    template_name: Optional[str] = None

class SendResponse(BaseModel):
    log_id: int
    link: str

class WhatsAppLogEntry(BaseModel):
    id: int
    customer_id: int
    customer_name: Optional[str] = None
    phone: str
    message: str
    template_name: Optional[str] = None
    sent_by: Optional[int] = None
    sent_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }
