from typing import Any

import httpx
from loguru import logger

from foundation_tools.tool import error_result, success_result
from foundation_tools.tools.errors import WebSearchError
from foundation_tools.tools.web.search_provider import SearchProvider, SearchResult

_DEFAULT_COUNT = 5
_MAX_COUNT = 10
_MAX_QUERY_CHARS = 400
_SUMMARY_RESULTS = 3
_TEXT_PREVIEW_CHARS = 300
_SEARCH_TYPES = ("auto", "neural", "keyword")


class WebSearchTool:
    def __init__(self, provider: SearchProvider | None) -> None:
        self._provider = provider

    @property
    def name(self) -> str:
        return "web_search"

    @property
    def description(self) -> str:
        return (
            "Search the web for relevant content and information. Returns an "
            "abstract from the top result, its source and URL, related result "
            "titles, and a summary of the top results."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The search query to execute (max 400 characters).",
                },
                "numResults": {
                    "type": "number",
                    "description": "Number of results to return (1-10, default 5).",
                },
                "type": {
                    "type": "string",
                    "enum": list(_SEARCH_TYPES),
                    "description": "Search type: 'neural', 'keyword' or 'auto' (default 'auto').",
                },
                "includeContents": {
                    "type": "boolean",
                    "description": "Whether to include page contents (default true).",
                },
                "category": {
                    "type": "string",
                    "description": "Category filter, e.g. 'news', 'research paper', 'company'.",
                },
            },
            "required": ["query"],
        }

    async def execute(self, tool_input: dict[str, Any]) -> dict[str, Any]:
        query = str(tool_input.get("query", "")).strip()[:_MAX_QUERY_CHARS]
        try:
            if not query:
                raise WebSearchError.empty_query()
            if self._provider is None:
                raise WebSearchError.missing_api_key()

            count = _result_count(tool_input.get("numResults"))
            search_type = str(tool_input.get("type") or "auto").lower()
            if search_type not in _SEARCH_TYPES:
                search_type = "auto"
            include_contents = tool_input.get("includeContents")
            if include_contents is None:
                include_contents = True

            results = await self._provider.search(
                query,
                count,
                search_type=search_type,
                category=tool_input.get("category") or None,
                include_contents=bool(include_contents),
            )
        except WebSearchError as ex:
            return _search_error(query, ex)
        except httpx.TimeoutException:
            return _search_error(query, WebSearchError("Search request timed out"))
        except httpx.HTTPError as ex:
            logger.error(f"web_search error: {ex}")
            return _search_error(query, WebSearchError(f"Network error: {ex}"))

        return _search_success(query, results)


def _result_count(value: Any) -> int:
    try:
        count = int(value or _DEFAULT_COUNT)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring invalid numResults {value!r}")
        count = _DEFAULT_COUNT
    return max(1, min(_MAX_COUNT, count))


def _search_success(query: str, results: list[SearchResult]) -> dict[str, Any]:
    first = results[0] if results else None
    related = [r.title for r in results[:_SUMMARY_RESULTS]]
    return success_result(
        f"Found {len(results)} result(s)" if results else "No results found",
        query=query,
        abstract=(first.summary or first.text) if first else "",
        abstractSource=(first.author or first.title) if first else "",
        abstractURL=first.url if first else "",
        relatedTopics=related,
        relatedTopicsCount=len(related),
        summary=_build_summary(query, results),
    )


def _build_summary(query: str, results: list[SearchResult]) -> str:
    header = f"Information about '{query}':\n\n"
    if not results:
        return header + "No results found for this query."

    parts = []
    for result in results[:_SUMMARY_RESULTS]:
        if result.summary:
            parts.append(result.summary)
        elif result.text:
            parts.append(result.text[:_TEXT_PREVIEW_CHARS] + "...")

    if not parts:
        return header + "No detailed text content available."
    return header + "\n\n".join(parts)


def _search_error(query: str, error: Exception) -> dict[str, Any]:
    return error_result(
        f"Search failed for query: '{query}'",
        f"Unable to perform web search: {error}",
        query=query,
        abstract="",
        abstractSource="",
        relatedTopicsCount=0,
        summary="",
    )
