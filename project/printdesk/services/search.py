# printdesk/services/search.py

import httpx

from printdesk.config import settings


class WebSearchClient:
    """
    Pass-through to the third-party search API.

    search() always returns text: results, "nothing found", or a sentence
    describing why the search failed.
    """

    def __init__(
        self,
        api_url: str = settings.SEARCH_API_URL,
        api_key: str = settings.SEARCH_API_KEY,
        timeout: float = settings.SEARCH_TIMEOUT_SECONDS,
        max_results: int = 5,
        transport: httpx.AsyncBaseTransport = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout
        self.max_results = max_results
        self.transport = transport

    @staticmethod
    def format_results(results: list[dict]) -> str:
        lines = []
        for i, r in enumerate(results, start=1):
            snippet = (r.get("content") or r.get("snippet") or "").strip()
            lines.append(f"{i}. {r.get('title') or 'Untitled'} ({r.get('url') or '-'})\n{snippet}".rstrip())
        return "\n\n".join(lines)

    async def search(self, query: str) -> str:
        if not self.api_url:
            return "Web search is not configured."
        if not query or not query.strip():
            return "Web search needs a query."

        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        payload = {"query": query, "max_results": self.max_results}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as http:
                response = await http.post(self.api_url, json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            return f"Web search failed with status {e.response.status_code}."
        except httpx.HTTPError as e:
            return f"Web search failed: {e.__class__.__name__}: {e}"
        except ValueError:
            return "Web search returned an unreadable response."

        results = (data.get("results") or []) if isinstance(data, dict) else []
        if not results:
            return f'No web results found for "{query}".'
        return self.format_results(results[: self.max_results])
