import json

import pytest
from pydantic import BaseModel

from printdesk.schemas.chat import ChatTurn, Part
from printdesk.services.agent import ToolCallDispatcher, history_to_messages
from printdesk.services.gpt import ModelReply, ToolCall
from printdesk.services.tools import ToolContext, ToolRegistry, registry


class _ScriptedModel:
    """Replays canned replies and records every request it was sent."""

    def __init__(self, *replies, repeat_last=False):
        self.replies = list(replies)
        self.repeat_last = repeat_last
        self.requests = []

    async def complete(self, messages, tools):
        self.requests.append({"messages": [dict(m) for m in messages], "tools": tools})
        if len(self.replies) > 1 or not self.repeat_last:
            return self.replies.pop(0)
        return self.replies[0]


class _EchoArgs(BaseModel):
    value: int


def _registry():
    reg = ToolRegistry()

    @reg.register("echo", "Echo the value back", _EchoArgs)
    async def echo(ctx, args):
        return f"echo {args.value}"

    @reg.register("explode", "Always fails", _EchoArgs)
    async def explode(ctx, args):
        raise RuntimeError("backend unreachable")

    return reg


def _history(text="How much does order 7 owe?"):
    return [ChatTurn(role="user", parts=[Part(text=text)])]


def _call(name, arguments="{}", call_id="call-1"):
    return ToolCall(id=call_id, name=name, arguments=arguments)


def test_history_roles_are_mapped():
    history = [
        ChatTurn(role="user", parts=[Part(text="Hi"), Part(text=" there")]),
        ChatTurn(role="model", parts=[Part(text="Hello!")]),
    ]
    assert history_to_messages(history) == [
        {"role": "user", "content": "Hi there"},
        {"role": "assistant", "content": "Hello!"},
    ]


async def test_text_reply_ends_loop_without_tools(fake_log):
    model = _ScriptedModel(ModelReply(text="Order 7 owes ₹300."))
    dispatcher = ToolCallDispatcher(model, ToolContext(client=None, log=fake_log), registry=_registry())

    assert await dispatcher.run(_history()) == "Order 7 owes ₹300."
    assert dispatcher.iterations == 0
    first = model.requests[0]["messages"]
    assert first[0]["role"] == "system"
    assert first[1] == {"role": "user", "content": "How much does order 7 owe?"}


async def test_tool_result_is_fed_back_to_model(fake_log):
    model = _ScriptedModel(
        ModelReply(tool_calls=[_call("echo", '{"value": 5}', "c1"), _call("echo", '{"value": 6}', "c2")]),
        ModelReply(text="done"),
    )
    dispatcher = ToolCallDispatcher(model, ToolContext(client=None, log=fake_log), registry=_registry())

    assert await dispatcher.run(_history()) == "done"

    messages = model.requests[1]["messages"]
    assert messages[-3]["role"] == "assistant"
    assert [c["function"]["name"] for c in messages[-3]["tool_calls"]] == ["echo", "echo"]
    assert messages[-2] == {"role": "tool", "tool_call_id": "c1", "content": "echo 5"}
    assert messages[-1] == {"role": "tool", "tool_call_id": "c2", "content": "echo 6"}


async def test_loop_stops_after_max_iterations(fake_log):
    looping = ModelReply(text="still thinking", tool_calls=[_call("echo", '{"value": 1}')])
    model = _ScriptedModel(looping, repeat_last=True)
    dispatcher = ToolCallDispatcher(
        model, ToolContext(client=None, log=fake_log), registry=_registry(), max_iterations=5
    )

    answer = await dispatcher.run(_history())

    assert answer == "still thinking"
    assert dispatcher.iterations == 5
    # the initial request plus one per tool round
    assert len(model.requests) == 6
    assert "Iteration limit reached, pending tool calls dropped" in fake_log.messages("warning")


async def test_loop_limit_with_no_text_returns_empty_string():
    model = _ScriptedModel(ModelReply(tool_calls=[_call("echo", '{"value": 1}')]), repeat_last=True)
    dispatcher = ToolCallDispatcher(model, ToolContext(client=None), registry=_registry(), max_iterations=2)
    assert await dispatcher.run(_history()) == ""


async def test_unknown_tool_is_answered_and_loop_continues():
    model = _ScriptedModel(
        ModelReply(tool_calls=[_call("deleteEverything")]),
        ModelReply(text="I can't do that."),
    )
    dispatcher = ToolCallDispatcher(model, ToolContext(client=None), registry=_registry())

    assert await dispatcher.run(_history()) == "I can't do that."
    assert model.requests[1]["messages"][-1]["content"] == "Unknown function: deleteEverything"


async def test_tool_failure_becomes_result_text(fake_log):
    model = _ScriptedModel(
        ModelReply(tool_calls=[_call("explode", '{"value": 1}')]),
        ModelReply(text="The records are unavailable right now."),
    )
    dispatcher = ToolCallDispatcher(model, ToolContext(client=None, log=fake_log), registry=_registry())

    assert await dispatcher.run(_history()) == "The records are unavailable right now."
    assert model.requests[1]["messages"][-1]["content"] == "Error executing explode: backend unreachable"
    assert "Tool explode failed" in fake_log.messages("error")


@pytest.mark.parametrize("arguments", ['{"value": "many"}', "{not json", "{}"])
async def test_bad_arguments_become_result_text(arguments):
    result = await _registry().dispatch("echo", arguments, ToolContext(client=None))
    assert result.startswith("Invalid arguments for echo:")


def test_catalog_schemas():
    names = registry.names()
    assert names == [
        "getCustomerDetails",
        "getSingleOrderDetails",
        "getOrdersForCustomer",
        "getPaymentsForCustomer",
        "getFinancialSummary",
        "getRecentDuePayments",
        "getLowStockMaterials",
        "webSearch",
    ]
    schema = {s["function"]["name"]: s for s in registry.schemas()}["getSingleOrderDetails"]
    assert schema["type"] == "function"
    assert schema["function"]["parameters"]["required"] == ["order_id"]
    assert schema["function"]["parameters"]["properties"]["order_id"]["type"] == "integer"


class _FakeRemote:
    def __init__(self, rows=None, rpc_result=None):
        self.rows = rows or []
        self.rpc_result = rpc_result
        self.rpc_calls = []

    async def select(self, model, **kwargs):
        return self.rows

    async def rpc(self, name, **params):
        self.rpc_calls.append((name, params))
        return self.rpc_result


async def test_catalog_empty_results_are_sentences():
    ctx = ToolContext(client=_FakeRemote())
    assert await registry.dispatch("getCustomerDetails", '{"customer_name": "Zed"}', ctx) == \
        'No customer named "Zed" found.'
    assert await registry.dispatch("getSingleOrderDetails", '{"order_id": 404}', ctx) == \
        "No order found with ID 404."
    assert await registry.dispatch("getRecentDuePayments", "", ctx) == "No due payments found."
    assert await registry.dispatch("webSearch", '{"query": "paper prices"}', ctx) == \
        "Web search is not configured."


async def test_catalog_returns_json_rows():
    remote = _FakeRemote(rpc_result={"month": "2025-06", "total_revenue": 700.0, "total_expenses": 200.0, "net_profit": 500.0})
    result = await registry.dispatch("getFinancialSummary", {"month": "2025-06-01"}, ToolContext(client=remote))
    assert json.loads(result)["net_profit"] == 500.0
    assert remote.rpc_calls == [("get_financial_summary", {"month": "2025-06-01"})]


async def test_blank_customer_name_is_reported_not_raised():
    result = await registry.dispatch("getCustomerDetails", '{"customer_name": "  "}', ToolContext(client=_FakeRemote()))
    assert result == "Error executing getCustomerDetails: customer_name is empty"
