# printdesk/services/aggregator.py

import asyncio
from typing import Hashable, Optional

from printdesk.config import settings
from printdesk.models.order import Order
from printdesk.models.payment import Payment
from printdesk.schemas.order import OrderContext, PaymentLine
from printdesk.utils.db_service import RemoteDataClient
from printdesk.utils.errors import AggregationError, AggregationSuperseded, ValidationError
from printdesk.utils.formatting import format_currency, format_date

NO_PAYMENTS = {
    "en": "No payments yet.",
    "ta": "இதுவரை பணம் எதுவும் செலுத்தப்படவில்லை.",
}


class OrderContextAggregator:
    """
    Builds one OrderContext from three independent reads:
      - the order summary (customer, totals, balance, status),
      - the order row (quantity, order type),
      - the order's payments, oldest first.

    The reads run concurrently; if any of them fails the others are
    cancelled and nothing is returned.
    """

    def __init__(
        self,
        client: RemoteDataClient,
        log=None,
        public_origin: str = settings.PUBLIC_ORIGIN,
        locale: str = settings.DISPLAY_LOCALE,
        currency: str = settings.CURRENCY_SYMBOL,
    ):
        self.client = client
        self.log = log
        self.public_origin = public_origin.rstrip("/")
        self.locale = locale
        self.currency = currency

    def invoice_url(self, order_id: int) -> str:
        return f"{self.public_origin}/invoices/{order_id}"

    def payment_history(self, payments: list[PaymentLine]) -> str:
        if not payments:
            return NO_PAYMENTS.get(self.locale, NO_PAYMENTS["en"])
        return "\n".join(
            f"• {format_currency(p.amount_paid, self.locale, self.currency)} via {p.payment_method or 'N/A'} "
            f"on {format_date(p.payment_date)}"
            for p in payments
        )

    async def fetch_all(self, order_id: int) -> tuple:
        reads = [
            asyncio.ensure_future(self.client.rpc("get_order_summary", order_id=order_id)),
            asyncio.ensure_future(self.client.select_one(Order, id=order_id)),
            asyncio.ensure_future(
                self.client.select(Payment, filters={"order_id": order_id}, order_by="payment_date", limit=None)
            ),
        ]
        try:
            return tuple(await asyncio.gather(*reads))
        except Exception:
            for read in reads:
                read.cancel()
            raise

    async def aggregate(self, customer_id: Optional[int], order_id: Optional[int]) -> OrderContext:
        if not customer_id:
            raise ValidationError("Please select a customer.")
        if not order_id:
            raise ValidationError("Please select an order.")

        try:
            summary, order, payments = await self.fetch_all(order_id)
        except Exception as e:
            if self.log:
                await self.log.log_error("aggregator", "Order context read failed", {
                    "order_id": order_id, "error": str(e)
                })
            raise AggregationError(f"Could not load order #{order_id}: {e}", cause=e) from e

        if summary is None or order is None:
            raise AggregationError(f"Order #{order_id} not found", status_code=404)
        if summary["customer_id"] != customer_id:
            raise ValidationError(f"Order #{order_id} does not belong to customer {customer_id}")

        merged = {**summary, "quantity": order["quantity"], "order_type": order["order_type"]}

        lines = sorted(payments, key=lambda p: (p["payment_date"], p["id"]))
        lines = [PaymentLine(**{k: p[k] for k in ("payment_date", "amount_paid", "payment_method")}) for p in lines]

        context = OrderContext(
            **merged,
            payments=lines,
            payment_history=self.payment_history(lines),
            invoice_url=self.invoice_url(order_id),
        )

        if self.log:
            await self.log.log_info("aggregator", "Order context built", {
                "order_id": order_id, "payments": len(lines), "balance_due": context.balance_due
            })
        return context


class ContextLoader:
    """
    Keeps at most one aggregation in flight per owner: a staff user, or one
    screen of that user when the client names it with a scope id.

    A new load for the same owner cancels the previous task, which aborts
    its pending reads; the replaced caller gets AggregationSuperseded.
    """

    def __init__(self):
        self.inflight: dict[Hashable, asyncio.Task] = {}

    @staticmethod
    def owner(user_id: int, scope: Optional[str] = None) -> Hashable:
        return (user_id, scope) if scope else user_id

    async def load(
        self, owner: Hashable, aggregator: OrderContextAggregator, customer_id: int, order_id: int
    ) -> OrderContext:
        previous = self.inflight.get(owner)
        if previous is not None and not previous.done():
            previous.cancel()

        task = asyncio.ensure_future(aggregator.aggregate(customer_id, order_id))
        self.inflight[owner] = task
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled() and self.inflight.get(owner) is not task:
                raise AggregationSuperseded(f"Order #{order_id} context replaced by a newer request")
            raise
        finally:
            if self.inflight.get(owner) is task:
                del self.inflight[owner]
