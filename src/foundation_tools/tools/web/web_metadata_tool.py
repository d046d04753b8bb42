from typing import Any
from urllib.parse import urlparse

import httpx
from loguru import logger

from foundation_tools.tool import error_result, success_result
from foundation_tools.tools.errors import WebMetadataError
from foundation_tools.tools.html_utilities import extract_page_metadata

_MAX_RESPONSE_BYTES = 2_000_000  # 2 MB
_TIMEOUT_SECONDS = 30
_MAX_REDIRECTS = 5

_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_HEADERS = {
    "User-Agent": _USER_AGENT,
    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


class WebMetadataTool:
    @property
    def name(self) -> str:
        return "web_metadata"

    @property
    def description(self) -> str:
        return (
            "Extract metadata from a web page: title, description, preview image "
            "URL and site name. No API key required."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": "The HTTP or HTTPS URL to extract metadata from",
                },
            },
            "required": ["url"],
        }

    async def execute(self, tool_input: dict[str, Any]) -> dict[str, Any]:
        url = str(tool_input.get("url", "")).strip()
        try:
            return await self._fetch_metadata(url)
        except WebMetadataError as ex:
            logger.error(f"web_metadata error: {ex}")
            return error_result("Failed to fetch web metadata", ex, url=url)

    async def _fetch_metadata(self, url: str) -> dict[str, Any]:
        if not url:
            raise WebMetadataError.empty_url()

        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise WebMetadataError.invalid_url()

        try:
            async with httpx.AsyncClient(
                headers=_HEADERS,
                timeout=_TIMEOUT_SECONDS,
                follow_redirects=True,
                max_redirects=_MAX_REDIRECTS,
            ) as client:
                response = await client.get(url)
        except httpx.TimeoutException:
            raise WebMetadataError.fetch_failed(f"request timed out after {_TIMEOUT_SECONDS} seconds")
        except httpx.TooManyRedirects:
            raise WebMetadataError.fetch_failed(f"too many redirects (max {_MAX_REDIRECTS})")
        except httpx.HTTPError as ex:
            raise WebMetadataError.fetch_failed(ex) from ex

        if response.status_code >= 400:
            raise WebMetadataError.fetch_failed(f"HTTP {response.status_code}")

        if len(response.content) > _MAX_RESPONSE_BYTES:
            raise WebMetadataError.fetch_failed(
                f"response too large ({len(response.content):,} bytes, max {_MAX_RESPONSE_BYTES:,})"
            )

        content_type = response.headers.get("content-type", "")
        if "text/html" not in content_type and "application/xhtml" not in content_type:
            raise WebMetadataError.fetch_failed(f"unsupported content type {content_type or '(none)'}")

        final_url = str(response.url)
        metadata = extract_page_metadata(response.text, final_url)

        return success_result(
            "Successfully extracted web metadata",
            url=final_url,
            title=metadata.title,
            description=metadata.description,
            imageURL=metadata.image_url,
            siteName=metadata.site_name,
        )
