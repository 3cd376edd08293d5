import json
import uuid

import pytest

from printdesk.services.gpt import ModelReply, ToolCall, get_chat_model


def _unique(prefix):
    return f"{prefix} {uuid.uuid4().hex[:8]}"


@pytest.fixture(scope="module")
def shop(client, auth_headers):
    """A customer with one order of 1000: 400 taken with the order, 300 paid later."""
    name = _unique("Meena Traders")
    resp = client.post("/customer/", json={"name": name, "phone": "+91 98400 12345", "tags": ["VIP"]},
                       headers=auth_headers)
    assert resp.status_code == 201, resp.text
    customer_id = resp.json()["id"]

    resp = client.post("/order/", json={
        "customer_id": customer_id,
        "date": "2025-06-01",
        "order_type": "Visiting Cards",
        "quantity": 500,
        "total_amount": 1000,
        "amount_received": 400,
        "payment_method": "Cash",
    }, headers=auth_headers)
    assert resp.status_code == 201, resp.text
    order_id = resp.json()["id"]

    resp = client.post("/payment/", json={
        "order_id": order_id, "amount_paid": 300, "payment_date": "2025-06-03", "payment_method": "UPI",
    }, headers=auth_headers)
    assert resp.status_code == 201, resp.text

    return {"customer_id": customer_id, "customer_name": name, "order_id": order_id}


# ────────────── auth ──────────────

def test_login_rejects_wrong_password(client):
    resp = client.post("/auth/token", data={"username": "admin", "password": "nope"})
    assert resp.status_code == 401


def test_records_require_token(client):
    assert client.get("/customer/").status_code == 401
    assert client.get("/order/", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_admin_creates_staff_account(client, auth_headers):
    login = _unique("staff").replace(" ", "-")
    resp = client.post("/auth/users", json={"login": login, "password": "pw", "name": "Counter"},
                       headers=auth_headers)
    assert resp.status_code == 201, resp.text
    assert "password" not in resp.json()

    dup = client.post("/auth/users", json={"login": login, "password": "pw"}, headers=auth_headers)
    assert dup.status_code == 409

    token = client.post("/auth/token", data={"username": login, "password": "pw"}).json()["access_token"]
    staff = {"Authorization": f"Bearer {token}"}
    assert client.get("/auth/me", headers=staff).json()["login"] == login
    assert client.get("/auth/users", headers=staff).status_code == 403


# ────────────── customers ──────────────

def test_customer_tags_search_and_delete(client, auth_headers):
    name = _unique("Lakshmi Prints")
    resp = client.post("/customer/", json={"name": name, "tags": ["Wholesale", " Wholesale ", ""]},
                       headers=auth_headers)
    customer_id = resp.json()["id"]

    found = client.get("/customer/", params={"search": name, "tag": "Wholesale"}, headers=auth_headers).json()
    assert [c["id"] for c in found] == [customer_id]
    assert found[0]["tags"] == ["Wholesale"]

    assert client.get("/customer/", params={"order_by": "password"}, headers=auth_headers).status_code == 400

    assert client.delete(f"/customer/{customer_id}", headers=auth_headers).status_code == 204
    assert client.get(f"/customer/{customer_id}", headers=auth_headers).status_code == 404


def test_customer_with_orders_cannot_be_deleted(client, auth_headers, shop):
    resp = client.delete(f"/customer/{shop['customer_id']}", headers=auth_headers)
    assert resp.status_code == 409


# ────────────── orders and payments ──────────────

def test_order_balances_follow_payments(client, auth_headers, shop):
    order = client.get(f"/order/{shop['order_id']}", headers=auth_headers).json()

    assert order["amount_received"] == 700
    assert order["balance_amount"] == 300
    assert order["status"] == "Pending"
    assert order["customer_name"] == shop["customer_name"]

    payments = client.get("/payment/", params={"order_id": shop["order_id"]}, headers=auth_headers).json()
    assert [p["amount_paid"] for p in payments] == [300, 400]
    assert {p["customer_id"] for p in payments} == {shop["customer_id"]}
    assert [p["status"] for p in payments] == ["Partial", "Partial"]


def test_overpayment_is_rejected(client, auth_headers, shop):
    resp = client.post("/payment/", json={
        "order_id": shop["order_id"], "amount_paid": 301, "payment_date": "2025-06-04",
    }, headers=auth_headers)
    assert resp.status_code == 400
    assert "exceeds the balance" in resp.json()["detail"]


def test_order_create_validation(client, auth_headers, shop):
    base = {"customer_id": shop["customer_id"], "date": "2025-06-10", "order_type": "Flex", "total_amount": 100}

    too_much = client.post("/order/", json={**base, "amount_received": 150, "payment_method": "Cash"},
                           headers=auth_headers)
    assert too_much.status_code == 400

    no_method = client.post("/order/", json={**base, "amount_received": 50}, headers=auth_headers)
    assert no_method.status_code == 400

    unknown_customer = client.post("/order/", json={**base, "customer_id": 999999}, headers=auth_headers)
    assert unknown_customer.status_code == 404


def test_full_payment_marks_paid_and_blocks_delete(client, auth_headers, shop):
    resp = client.post("/order/", json={
        "customer_id": shop["customer_id"], "date": "2025-06-11", "order_type": "Letterheads",
        "total_amount": 250, "amount_received": 250, "payment_method": "UPI",
    }, headers=auth_headers)
    order_id = resp.json()["id"]

    payments = client.get("/payment/", params={"order_id": order_id}, headers=auth_headers).json()
    assert [p["status"] for p in payments] == ["Paid"]

    dues = client.get("/order/dues", params={"customer_id": shop["customer_id"]}, headers=auth_headers).json()
    assert order_id not in [d["order_id"] for d in dues]
    assert shop["order_id"] in [d["order_id"] for d in dues]

    assert client.delete(f"/order/{order_id}", headers=auth_headers).status_code == 409


def test_order_without_payments_can_be_deleted(client, auth_headers, shop):
    resp = client.post("/order/", json={
        "customer_id": shop["customer_id"], "date": "2025-06-12", "order_type": "Stickers", "total_amount": 80,
    }, headers=auth_headers)
    order_id = resp.json()["id"]

    assert client.delete(f"/order/{order_id}", headers=auth_headers).status_code == 204
    assert client.get(f"/order/{order_id}", headers=auth_headers).status_code == 404


def test_total_cannot_drop_below_paid(client, auth_headers, shop):
    resp = client.put(f"/order/{shop['order_id']}", json={"total_amount": 500}, headers=auth_headers)
    assert resp.status_code == 400

    resp = client.put(f"/order/{shop['order_id']}", json={"notes": "Matte finish"}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["notes"] == "Matte finish"
    assert resp.json()["balance_amount"] == 300


def test_status_history_is_append_only(client, auth_headers, shop):
    resp = client.post(f"/order/{shop['order_id']}/status", json={"status": "Design", "notes": "Proof sent"},
                       headers=auth_headers)
    assert resp.status_code == 201
    assert resp.json()["updated_by"] == "admin"

    history = client.get(f"/order/{shop['order_id']}/status", headers=auth_headers).json()
    assert [h["status"] for h in history][:2] == ["Design", "Pending"]

    listed = client.get("/order/", params={"customer_id": shop["customer_id"], "status": "Design"},
                        headers=auth_headers).json()
    assert shop["order_id"] in [o["order_id"] for o in listed]


def test_order_list_pages_after_status_filter(client, auth_headers):
    resp = client.post("/customer/", json={"name": _unique("Paging Press"), "phone": "9840000000"},
                       headers=auth_headers)
    customer_id = resp.json()["id"]

    order_ids = []
    for day in (1, 2, 3, 4):
        resp = client.post("/order/", json={
            "customer_id": customer_id, "date": f"2025-07-0{day}", "order_type": "Flyers", "total_amount": 100,
        }, headers=auth_headers)
        order_ids.append(resp.json()["id"])
    printing = [order_ids[0], order_ids[2], order_ids[3]]
    for order_id in printing:
        client.post(f"/order/{order_id}/status", json={"status": "Printing"}, headers=auth_headers)

    def page(skip, limit):
        resp = client.get("/order/", params={
            "customer_id": customer_id, "status": "Printing", "skip": skip, "limit": limit,
        }, headers=auth_headers)
        assert resp.status_code == 200, resp.text
        return [o["order_id"] for o in resp.json()]

    # newest first, and a page is never thinned out by the filter
    assert page(0, 2) == [order_ids[3], order_ids[2]]
    assert page(2, 2) == [order_ids[0]]
    assert page(3, 2) == []


# ────────────── order context and messages ──────────────

def test_order_context(client, auth_headers, shop):
    resp = client.get(f"/order/{shop['order_id']}/context", params={"customer_id": shop["customer_id"]},
                      headers=auth_headers)
    assert resp.status_code == 200, resp.text
    context = resp.json()

    assert context["balance_due"] == 300
    assert context["amount_paid"] == 700
    assert context["quantity"] == 500
    assert context["payment_history"] == "• ₹400 via Cash on 01/06/2025\n• ₹300 via UPI on 03/06/2025"
    assert context["invoice_url"] == f"https://console.test/invoices/{shop['order_id']}"


def test_order_context_of_other_customer(client, auth_headers, shop):
    resp = client.get(f"/order/{shop['order_id']}/context", params={"customer_id": shop["customer_id"] + 1000},
                      headers=auth_headers)
    assert resp.status_code == 400
    assert "does not belong" in resp.json()["detail"]

    missing = client.get("/order/999999/context", params={"customer_id": shop["customer_id"]}, headers=auth_headers)
    assert missing.status_code == 404


def test_compose_and_send_whatsapp(client, auth_headers, shop):
    resp = client.post("/template/", json={
        "name": _unique("balance reminder"),
        "category": "Payment",
        "body": "Hi {{customer_name}}, order #{{order_id}} balance ₹{{balance_due}}.\n{{payment_history}}",
    }, headers=auth_headers)
    assert resp.status_code == 201, resp.text
    template = resp.json()
    assert template["placeholders"] == ["customer_name", "order_id", "balance_due", "payment_history"]

    resp = client.post("/whatsapp/compose", json={
        "customer_id": shop["customer_id"], "order_id": shop["order_id"], "template_id": template["id"],
    }, headers=auth_headers)
    assert resp.status_code == 200, resp.text
    composed = resp.json()
    assert composed["message"].startswith(f"Hi {shop['customer_name']}, order #{shop['order_id']} balance ₹300.")
    assert composed["link"].startswith("https://wa.me/919840012345?text=Hi%20")

    resp = client.post("/whatsapp/send", json={
        "customer_id": shop["customer_id"], "message": composed["message"], "template_name": template["name"],
    }, headers=auth_headers)
    assert resp.status_code == 201, resp.text
    log_id = resp.json()["log_id"]

    log = client.get("/whatsapp/log", params={"customer_id": shop["customer_id"]}, headers=auth_headers).json()
    assert log[0]["id"] == log_id
    assert log[0]["template_name"] == template["name"]


def test_compose_requires_selection(client, auth_headers, shop):
    resp = client.post("/whatsapp/compose", json={"customer_id": shop["customer_id"]}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Please select an order."


# ────────────── finance ──────────────

def test_financial_summary_and_stock(client, auth_headers):
    resp = client.post("/customer/", json={"name": _unique("February Customer")}, headers=auth_headers)
    client.post("/order/", json={
        "customer_id": resp.json()["id"], "date": "2024-02-10", "order_type": "Calendars",
        "total_amount": 600, "amount_received": 250, "payment_method": "Cash",
    }, headers=auth_headers)
    client.post("/finance/expenses", json={"date": "2024-02-15", "expense_type": "Ink", "amount": 100},
                headers=auth_headers)

    summary = client.get("/finance/summary", params={"month": "2024-02-01"}, headers=auth_headers).json()
    assert summary == {"month": "2024-02", "total_revenue": 250, "total_expenses": 100, "net_profit": 150}
    assert client.get("/finance/summary", params={"month": "Feb"}, headers=auth_headers).status_code == 400

    name = _unique("Art paper 300gsm")
    material = client.post("/finance/materials", json={
        "name": name, "unit": "sheets", "current_quantity": 10, "minimum_stock_level": 5,
    }, headers=auth_headers).json()

    used = client.post(f"/finance/materials/{material['id']}/adjust", json={"change": -6}, headers=auth_headers)
    assert used.json()["current_quantity"] == 4
    over = client.post(f"/finance/materials/{material['id']}/adjust", json={"change": -10}, headers=auth_headers)
    assert over.status_code == 400

    low = client.get("/finance/materials", params={"low_stock": True}, headers=auth_headers).json()
    assert name in [m["name"] for m in low]


# ────────────── chat agent ──────────────

class _ScriptedModel:
    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests = []

    async def complete(self, messages, tools):
        self.requests.append([dict(m) for m in messages])
        return self.replies.pop(0)


@pytest.fixture
def scripted_model(client):
    model = _ScriptedModel()
    client.app.dependency_overrides[get_chat_model] = lambda: model
    yield model
    client.app.dependency_overrides.pop(get_chat_model, None)


CHAT_BODY = {"history": [{"role": "user", "parts": [{"text": "What is the balance on my order?"}]}]}


def test_chat_without_token_never_reaches_model(client, scripted_model):
    resp = client.post("/functions/custom-ai-agent", json=CHAT_BODY)

    assert resp.status_code == 401
    assert resp.json() == {"error": "Authorization header required"}
    assert resp.headers["access-control-allow-origin"] == "*"
    assert scripted_model.requests == []


def test_chat_with_bad_token(client, scripted_model):
    resp = client.post("/functions/custom-ai-agent", json=CHAT_BODY, headers={"Authorization": "Bearer x.y.z"})
    assert resp.status_code == 401
    assert "error" in resp.json()
    assert scripted_model.requests == []


@pytest.mark.parametrize("body", [b"{broken", b"[]", json.dumps({"history": []}).encode()])
def test_chat_bad_body(client, auth_headers, scripted_model, body):
    resp = client.post(
        "/functions/custom-ai-agent",
        content=body,
        headers={**auth_headers, "Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert "error" in resp.json()
    assert scripted_model.requests == []


def test_chat_preflight(client):
    resp = client.options("/functions/custom-ai-agent")
    assert resp.status_code == 200
    assert resp.text == "ok"
    assert "apikey" in resp.headers["access-control-allow-headers"]


def test_chat_runs_tools_against_records(client, auth_headers, scripted_model, shop):
    scripted_model.replies = [
        ModelReply(tool_calls=[
            ToolCall(id="c1", name="getSingleOrderDetails", arguments=json.dumps({"order_id": shop["order_id"]})),
            ToolCall(id="c2", name="getInvoicePdf", arguments="{}"),
        ]),
        ModelReply(text="Your order has ₹300 left to pay."),
    ]

    resp = client.post("/functions/custom-ai-agent", json=CHAT_BODY, headers=auth_headers)

    assert resp.status_code == 200, resp.text
    assert resp.json() == {"response": "Your order has ₹300 left to pay."}

    tool_messages = [m for m in scripted_model.requests[1] if m["role"] == "tool"]
    details = json.loads(tool_messages[0]["content"])
    assert details["id"] == shop["order_id"]
    assert details["customer_id"] == shop["customer_id"]
    assert tool_messages[1]["content"] == "Unknown function: getInvoicePdf"


def test_chat_prompt_is_appended(client, auth_headers, scripted_model):
    scripted_model.replies = [ModelReply(text="Hello!")]

    resp = client.post("/functions/custom-ai-agent", json={"history": [], "prompt": "Hi"}, headers=auth_headers)

    assert resp.json() == {"response": "Hello!"}
    assert scripted_model.requests[0][-1] == {"role": "user", "content": "Hi"}


def test_chat_model_failure_is_500(client, auth_headers, scripted_model):
    resp = client.post("/functions/custom-ai-agent", json=CHAT_BODY, headers=auth_headers)
    # no scripted replies left: the model call itself raises
    assert resp.status_code == 500
    assert "error" in resp.json()
