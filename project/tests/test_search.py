import json

import httpx

from printdesk.services.search import WebSearchClient


def _client(handler, **kwargs):
    return WebSearchClient(
        api_url="https://search.test/v1/search",
        api_key="secret",
        timeout=1.0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


async def test_search_formats_results():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"results": [
            {"title": "Art paper rates", "url": "https://paper.test/rates", "content": "300 gsm at ₹12/sheet"},
            {"title": None, "url": "https://paper.test/other", "snippet": "Bulk discounts"},
        ]})

    text = await _client(handler).search("art paper price")

    assert seen == {"auth": "Bearer secret", "body": {"query": "art paper price", "max_results": 5}}
    assert text == (
        "1. Art paper rates (https://paper.test/rates)\n300 gsm at ₹12/sheet\n\n"
        "2. Untitled (https://paper.test/other)\nBulk discounts"
    )


async def test_search_failures_are_text():
    def server_error(request):
        return httpx.Response(500, json={"error": "boom"})

    def no_results(request):
        return httpx.Response(200, json={"results": []})

    def not_json(request):
        return httpx.Response(200, content=b"<html>")

    def unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)

    assert await _client(server_error).search("x") == "Web search failed with status 500."
    assert await _client(no_results).search("x") == 'No web results found for "x".'
    assert await _client(not_json).search("x") == "Web search returned an unreadable response."
    assert (await _client(unreachable).search("x")).startswith("Web search failed: ConnectError")


async def test_search_not_configured():
    assert await WebSearchClient(api_url="").search("x") == "Web search is not configured."
