import asyncio
from datetime import date

import pytest

from printdesk.services.aggregator import NO_PAYMENTS, ContextLoader, OrderContextAggregator
from printdesk.utils.errors import (
    AggregationError,
    AggregationSuperseded,
    FetchError,
    ValidationError,
)


SUMMARY = {
    "order_id": 7,
    "customer_id": 3,
    "customer_name": "Meena Traders",
    "customer_phone": "+91 98400 12345",
    "order_date": date(2025, 5, 28),
    "order_type": "Visiting Cards",
    "total_amount": 1000.0,
    "amount_paid": 700.0,
    "balance_due": 300.0,
    "delivery_date": date(2025, 6, 5),
    "status": "Printing",
}

ORDER = {"id": 7, "customer_id": 3, "order_type": "Visiting Cards", "quantity": 500}

PAYMENTS = [
    # deliberately out of date order
    {"id": 12, "order_id": 7, "amount_paid": 300.0, "payment_date": date(2025, 6, 3), "payment_method": "UPI"},
    {"id": 11, "order_id": 7, "amount_paid": 400.0, "payment_date": date(2025, 6, 1), "payment_method": "Cash"},
]


class _FakeClient:
    """Stands in for RemoteDataClient; each read can be made to fail or hang."""

    def __init__(self, summary=SUMMARY, order=ORDER, payments=PAYMENTS, fail=None, hang=None):
        self.summary = summary
        self.order = order
        self.payments = payments
        self.fail = fail or set()
        self.hang = hang or set()
        self.calls = []
        self.cancelled = []
        self.release = asyncio.Event()

    async def _read(self, name, value):
        self.calls.append(name)
        if name in self.hang:
            try:
                await self.release.wait()
            except asyncio.CancelledError:
                self.cancelled.append(name)
                raise
        if name in self.fail:
            raise FetchError(f"DB Error ({name}): connection reset")
        return value

    async def rpc(self, name, **params):
        return await self._read("summary", self.summary)

    async def select_one(self, model, **filters):
        return await self._read("order", self.order)

    async def select(self, model, **kwargs):
        return await self._read("payments", list(self.payments))


async def test_aggregate_merges_reads_and_orders_history():
    aggregator = OrderContextAggregator(_FakeClient(), public_origin="https://console.test/")

    context = await aggregator.aggregate(3, 7)

    assert context.balance_due == 300.0
    assert context.amount_paid == 700.0
    assert context.quantity == 500
    assert context.status.value == "Printing"
    assert [p.amount_paid for p in context.payments] == [400.0, 300.0]
    assert context.payment_history == (
        "• ₹400 via Cash on 01/06/2025\n"
        "• ₹300 via UPI on 03/06/2025"
    )
    assert context.invoice_url == "https://console.test/invoices/7"


async def test_aggregate_without_payments_uses_sentinel():
    aggregator = OrderContextAggregator(_FakeClient(payments=[]), locale="en")
    context = await aggregator.aggregate(3, 7)
    assert context.payments == []
    assert context.payment_history == "No payments yet."


async def test_aggregate_requires_selection_before_reading():
    client = _FakeClient()
    aggregator = OrderContextAggregator(client)

    with pytest.raises(ValidationError):
        await aggregator.aggregate(None, 7)
    with pytest.raises(ValidationError):
        await aggregator.aggregate(3, None)
    assert client.calls == []


async def test_one_failed_read_fails_everything_and_cancels_the_rest(fake_log):
    client = _FakeClient(fail={"summary"}, hang={"payments"})
    aggregator = OrderContextAggregator(client, log=fake_log)

    with pytest.raises(AggregationError) as exc_info:
        await aggregator.aggregate(3, 7)

    assert exc_info.value.status_code == 502
    assert isinstance(exc_info.value.cause, FetchError)
    # give the cancelled read a turn to observe its cancellation
    await asyncio.sleep(0)
    assert client.cancelled == ["payments"]
    assert fake_log.messages("error") == ["Order context read failed"]


async def test_failed_payment_read_yields_no_context(fake_log):
    client = _FakeClient(fail={"payments"})
    aggregator = OrderContextAggregator(client, log=fake_log)

    with pytest.raises(AggregationError) as exc_info:
        await aggregator.aggregate(3, 7)

    assert "payments" in str(exc_info.value)
    assert fake_log.messages("info") == []


async def test_missing_order_is_not_found():
    aggregator = OrderContextAggregator(_FakeClient(summary=None, order=None))
    with pytest.raises(AggregationError) as exc_info:
        await aggregator.aggregate(3, 99)
    assert exc_info.value.status_code == 404


async def test_order_of_another_customer_is_rejected():
    aggregator = OrderContextAggregator(_FakeClient())
    with pytest.raises(ValidationError):
        await aggregator.aggregate(4, 7)


async def test_context_loader_newer_request_supersedes_older():
    slow_client = _FakeClient(hang={"payments"})
    loader = ContextLoader()

    first = asyncio.ensure_future(loader.load("staff-1", OrderContextAggregator(slow_client), 3, 7))
    while "payments" not in slow_client.calls:
        await asyncio.sleep(0)

    second = await loader.load("staff-1", OrderContextAggregator(_FakeClient()), 3, 7)

    with pytest.raises(AggregationSuperseded):
        await first
    assert "payments" in slow_client.cancelled
    assert second.balance_due == 300.0
    assert loader.inflight == {}


async def test_context_loader_keeps_owners_apart():
    loader = ContextLoader()
    a, b = await asyncio.gather(
        loader.load("staff-1", OrderContextAggregator(_FakeClient()), 3, 7),
        loader.load("staff-2", OrderContextAggregator(_FakeClient()), 3, 7),
    )
    assert a.order_id == b.order_id == 7


async def test_context_loader_scopes_of_one_user_run_side_by_side():
    slow_client = _FakeClient(hang={"payments"})
    loader = ContextLoader()

    first_tab = asyncio.ensure_future(
        loader.load(ContextLoader.owner(1, "tab-a"), OrderContextAggregator(slow_client), 3, 7)
    )
    while "payments" not in slow_client.calls:
        await asyncio.sleep(0)

    other_tab = await loader.load(ContextLoader.owner(1, "tab-b"), OrderContextAggregator(_FakeClient()), 3, 7)
    assert other_tab.order_id == 7
    assert not first_tab.done()

    slow_client.release.set()
    assert (await first_tab).balance_due == 300.0
    assert slow_client.cancelled == []


def test_context_loader_owner_falls_back_to_user():
    assert ContextLoader.owner(5) == 5
    assert ContextLoader.owner(5, "") == 5
    assert ContextLoader.owner(5, "tab-a") == (5, "tab-a")


async def test_no_payments_sentinel_follows_locale():
    tamil = OrderContextAggregator(_FakeClient(payments=[]), locale="ta")
    context = await tamil.aggregate(3, 7)
    assert context.payment_history == NO_PAYMENTS["ta"]
    assert context.payment_history != NO_PAYMENTS["en"]


async def test_unknown_locale_falls_back_to_english_sentinel():
    aggregator = OrderContextAggregator(_FakeClient(payments=[]), locale="de")
    context = await aggregator.aggregate(3, 7)
    assert context.payment_history == "No payments yet."


async def test_payment_history_amounts_group_in_lakhs():
    payments = [{"id": 1, "order_id": 7, "amount_paid": 150000.0,
                 "payment_date": date(2025, 6, 1), "payment_method": "NEFT"}]
    aggregator = OrderContextAggregator(_FakeClient(payments=payments), locale="en", currency="₹")
    context = await aggregator.aggregate(3, 7)
    assert context.payment_history == "• ₹1,50,000 via NEFT on 01/06/2025"
