from typing import Any

import httpx

from foundation_tools.tools.errors import WebSearchError
from foundation_tools.tools.web.search_provider import SearchResult

_EXA_SEARCH_URL = "https://api.exa.ai/search"
_TIMEOUT_SECONDS = 30
_MAX_TEXT_CHARS = 1_000


class ExaSearchProvider:
    def __init__(self, api_key: str) -> None:
        self._api_key = api_key

    @property
    def provider_name(self) -> str:
        return "Exa"

    async def search(
        self,
        query: str,
        count: int,
        *,
        search_type: str = "auto",
        category: str | None = None,
        include_contents: bool = True,
    ) -> list[SearchResult]:
        headers = {
            "x-api-key": self._api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        body: dict[str, Any] = {
            "query": query,
            "numResults": count,
            "type": search_type,
        }
        if category:
            body["category"] = category
        if include_contents:
            body["contents"] = {
                "text": {"maxCharacters": _MAX_TEXT_CHARS},
                "summary": {"query": query},
            }

        async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS) as client:
            response = await client.post(_EXA_SEARCH_URL, headers=headers, json=body)

        if response.status_code >= 400:
            raise httpx.HTTPStatusError(
                f"HTTP {response.status_code} from Exa search API",
                request=response.request,
                response=response,
            )

        try:
            data = response.json()
        except ValueError as ex:
            raise WebSearchError.invalid_response() from ex
        if not isinstance(data, dict):
            raise WebSearchError.invalid_response()

        return [
            SearchResult(
                title=r.get("title") or "(no title)",
                url=r.get("url", ""),
                author=r.get("author") or "",
                text=r.get("text") or "",
                summary=r.get("summary") or "",
            )
            for r in data.get("results", [])
        ]
