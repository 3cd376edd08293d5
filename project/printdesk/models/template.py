# printdesk/models/template.py

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from printdesk.utils.database import Base

class MessageTemplate(Base):
    __tablename__ = "whatsapp_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    category = Column(String, nullable=True)
    body = Column(Text, nullable=False)         # text with {{placeholder}} tokens


class WhatsAppLog(Base):
    """Write-once record of a prepared message."""
    __tablename__ = "whatsapp_log"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    customer_name = Column(String, nullable=True)
    phone = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    template_name = Column(String, nullable=True)
    sent_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    sent_at = Column(DateTime(timezone=True), server_default=func.now())
