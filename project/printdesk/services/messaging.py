# printdesk/services/messaging.py

"""
WhatsApp message preparation.

The service never delivers messages: it renders the text, builds a wa.me
deep link for the staff member to open, and keeps a write-once log.
"""

import re
from typing import Hashable, Optional
from urllib.parse import quote

from printdesk.config import settings
from printdesk.models.customer import Customer
from printdesk.models.template import MessageTemplate, WhatsAppLog
from printdesk.schemas.order import OrderContext
from printdesk.services.aggregator import ContextLoader, OrderContextAggregator
from printdesk.services.template import render_template, unresolved_placeholders
from printdesk.utils.db_service import RemoteDataClient
from printdesk.utils.errors import PrintDeskError, ValidationError
from printdesk.utils.formatting import format_amount, format_date

WA_BASE_URL = "https://wa.me"

# characters encodeURIComponent leaves as they are
URI_COMPONENT_SAFE = "-_.!~*'()"


def build_wa_link(phone: str, message: str) -> str:
    digits = re.sub(r"\D", "", phone or "")
    if not digits:
        raise ValidationError("Customer has no phone number.")
    return f"{WA_BASE_URL}/{digits}?text={quote(message, safe=URI_COMPONENT_SAFE)}"


def build_variables(
    context: OrderContext, shop_name: str = settings.SHOP_NAME, locale: str = settings.DISPLAY_LOCALE
) -> dict:
    """Template variables for one order; amounts and dates pre-formatted."""
    return {
        "customer_name": context.customer_name,
        "order_id": str(context.order_id),
        "order_type": context.order_type,
        "quantity": context.quantity,
        "total_amount": format_amount(context.total_amount, locale),
        "amount_paid": format_amount(context.amount_paid, locale),
        "payment_amount": format_amount(context.amount_paid, locale),
        "balance_due": format_amount(context.balance_due, locale),
        "delivery_date": format_date(context.delivery_date),
        "pickup_date": format_date(context.delivery_date) or "N/A",
        "status": context.status.value,
        "shop_name": shop_name,
        "payment_history": context.payment_history,
        "invoice_link": context.invoice_url,
    }


class MessageComposer:
    def __init__(self, client: RemoteDataClient, loader: ContextLoader, log=None):
        self.client = client
        self.loader = loader
        self.log = log
        self.aggregator = OrderContextAggregator(client, log=log)

    async def compose(
        self,
        owner: Hashable,
        customer_id: Optional[int],
        order_id: Optional[int],
        template_id: Optional[int],
    ) -> dict:
        # selections are checked before anything is read
        if not customer_id:
            raise ValidationError("Please select a customer.")
        if not order_id:
            raise ValidationError("Please select an order.")
        if not template_id:
            raise ValidationError("Please select a message template.")

        template = await self.client.select_one(MessageTemplate, id=template_id)
        if template is None:
            raise PrintDeskError("Template not found", status_code=404)

        context = await self.loader.load(owner, self.aggregator, customer_id, order_id)
        variables = build_variables(context)
        message = render_template(template["body"], variables)

        unresolved = unresolved_placeholders(template["body"], variables)
        if unresolved and self.log:
            await self.log.log_warning("whatsapp", "Template has unknown placeholders", {
                "template": template["name"], "placeholders": unresolved
            })

        link = build_wa_link(context.customer_phone, message) if context.customer_phone else None
        return {"message": message, "variables": variables, "unresolved": unresolved, "link": link}

    async def send(
        self,
        customer_id: Optional[int],
        message: Optional[str],
        template_name: Optional[str],
        sent_by: Optional[int],
    ) -> dict:
        if not customer_id:
            raise ValidationError("Please select a customer.")
        if not message or not message.strip():
            raise ValidationError("Message is empty.")

        customer = await self.client.select_one(Customer, id=customer_id)
        if customer is None:
            raise PrintDeskError("Customer not found", status_code=404)

        link = build_wa_link(customer["phone"], message)
        entry = await self.client.insert(WhatsAppLog, {
            "customer_id": customer["id"],
            "customer_name": customer["name"],
            "phone": customer["phone"],
            "message": message,
            "template_name": template_name,
            "sent_by": sent_by,
        })

        if self.log:
            await self.log.log_info("whatsapp", "Message prepared and logged", {
                "log_id": entry["id"], "customer_id": customer_id, "template": template_name
            })
        return {"log_id": entry["id"], "link": link}

    async def history(self, customer_id: Optional[int] = None, skip: int = 0, limit: int = 100) -> list[dict]:
        filters = {"customer_id": customer_id} if customer_id else None
        return await self.client.select(
            WhatsAppLog, filters=filters, order_by="id", descending=True, skip=skip, limit=limit
        )
