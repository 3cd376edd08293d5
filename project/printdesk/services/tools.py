# printdesk/services/tools.py

"""
Tool catalog of the chat agent.

Each tool is a name, a description, a pydantic model describing its
arguments, and an async handler returning text for the model. Handler
failures never escape dispatch(): they come back as text.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Type, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as ArgumentsError

from printdesk.models.customer import Customer
from printdesk.models.payment import Payment
from printdesk.services.search import WebSearchClient
from printdesk.utils.db_service import RemoteDataClient
from printdesk.utils.errors import ToolExecutionError


@dataclass
class ToolContext:
    client: RemoteDataClient
    search: Optional[WebSearchClient] = None
    log: Any = None


Handler = Callable[[ToolContext, BaseModel], Awaitable[str]]


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    params: Type[BaseModel]
    handler: Handler

    def schema(self) -> dict:
        parameters = self.params.model_json_schema()
        parameters.pop("title", None)
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": parameters,
            },
        }


@dataclass
class ToolRegistry:
    tools: dict[str, Tool] = field(default_factory=dict)

    def register(self, name: str, description: str, params: Type[BaseModel]):
        def decorator(handler: Handler) -> Handler:
            self.tools[name] = Tool(name, description, params, handler)
            return handler
        return decorator

    def names(self) -> list[str]:
        return list(self.tools)

    def schemas(self) -> list[dict]:
        return [tool.schema() for tool in self.tools.values()]

    async def dispatch(self, name: str, arguments: Union[str, dict, None], context: ToolContext) -> str:
        tool = self.tools.get(name)
        if tool is None:
            return f"Unknown function: {name}"

        try:
            if isinstance(arguments, str):
                arguments = json.loads(arguments) if arguments.strip() else {}
            params = tool.params.model_validate(arguments or {})
        except (ValueError, ArgumentsError) as e:
            return f"Invalid arguments for {name}: {e}"

        try:
            return await tool.handler(context, params)
        except Exception as e:
            # the model narrates the failure to the user
            if context.log:
                await context.log.log_error("agent", f"Tool {name} failed", {"error": str(e)})
            return f"Error executing {name}: {e}"


def to_json(data) -> str:
    return json.dumps(data, ensure_ascii=False, default=str)


# ────────────── Catalog ──────────────

registry = ToolRegistry()


class CustomerNameArgs(BaseModel):
    customer_name: str = Field(..., description="Full or partial customer name")


class OrderIdArgs(BaseModel):
    order_id: int = Field(..., description="Order number")


class CustomerIdArgs(BaseModel):
    customer_id: int = Field(..., description="Customer id, as returned by getCustomerDetails")


class MonthArgs(BaseModel):
    month: str = Field(..., description="The month in YYYY-MM-DD format (e.g. 2025-06-01)")


class NoArgs(BaseModel):
    pass


class QueryArgs(BaseModel):
    query: str = Field(..., description="What to search the web for")


@registry.register("getCustomerDetails", "Get details for a specific customer by their name.", CustomerNameArgs)
async def get_customer_details(ctx: ToolContext, args: CustomerNameArgs) -> str:
    if not args.customer_name.strip():
        raise ToolExecutionError("customer_name is empty")
    rows = await ctx.client.select(Customer, search={"name": args.customer_name}, order_by="name")
    if not rows:
        return f'No customer named "{args.customer_name}" found.'
    return to_json(rows)


@registry.register(
    "getSingleOrderDetails",
    "Get the full details for a single order by its order number (ID). "
    "The result includes the customer_id of the order.",
    OrderIdArgs,
)
async def get_single_order_details(ctx: ToolContext, args: OrderIdArgs) -> str:
    details = await ctx.client.rpc("get_order_details_with_status", order_id=args.order_id)
    if not details:
        return f"No order found with ID {args.order_id}."
    return to_json(details)


@registry.register("getOrdersForCustomer", "Get all orders for a specific customer by their customer ID.", CustomerIdArgs)
async def get_orders_for_customer(ctx: ToolContext, args: CustomerIdArgs) -> str:
    rows = await ctx.client.rpc("get_order_summaries", customer_id=args.customer_id, limit=None)
    if not rows:
        return f"No orders found for customer ID {args.customer_id}."
    return to_json(rows)


@registry.register("getPaymentsForCustomer", "Get all payment records for a specific customer by their customer ID.", CustomerIdArgs)
async def get_payments_for_customer(ctx: ToolContext, args: CustomerIdArgs) -> str:
    rows = await ctx.client.select(
        Payment, filters={"customer_id": args.customer_id}, order_by="payment_date", limit=None
    )
    if not rows:
        return f"No payments found for customer ID {args.customer_id}."
    return to_json(rows)


@registry.register("getFinancialSummary", "Get total revenue, expenses and net profit for a given month.", MonthArgs)
async def get_financial_summary(ctx: ToolContext, args: MonthArgs) -> str:
    return to_json(await ctx.client.rpc("get_financial_summary", month=args.month))


@registry.register("getRecentDuePayments", "Get a list of all orders whose payment is due or partially paid.", NoArgs)
async def get_recent_due_payments(ctx: ToolContext, args: NoArgs) -> str:
    rows = await ctx.client.rpc("get_recent_due_payments")
    if not rows:
        return "No due payments found."
    return to_json(rows)


@registry.register(
    "getLowStockMaterials",
    "Get all materials whose current quantity is at or below the minimum stock level.",
    NoArgs,
)
async def get_low_stock_materials(ctx: ToolContext, args: NoArgs) -> str:
    rows = await ctx.client.rpc("get_low_stock_materials")
    if not rows:
        return "All materials are above minimum stock levels."
    return to_json(rows)


@registry.register("webSearch", "Search the web for general information not stored in the shop's records.", QueryArgs)
async def web_search(ctx: ToolContext, args: QueryArgs) -> str:
    if ctx.search is None:
        return "Web search is not configured."
    return await ctx.search.search(args.query)
