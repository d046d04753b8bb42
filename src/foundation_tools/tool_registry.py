from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from foundation_tools.tool import Tool
from foundation_tools.tools.weather.weather_tool import WeatherTool
from foundation_tools.tools.web.web_metadata_tool import WebMetadataTool


@dataclass(frozen=True)
class ToolGroup:
    enabled: Callable[[dict], bool]
    build: Callable[[dict], list[Tool]]


def _always(_: dict) -> bool:
    return True


def _base_tools(ctx: dict) -> list[Tool]:
    return [
        WebMetadataTool(),
        WeatherTool(),
    ]


def _web_search_enabled(ctx: dict) -> bool:
    return bool(ctx.get("exa_api_key"))


def _web_search_tools(ctx: dict) -> list[Tool]:
    from foundation_tools.tools.web.exa_search_provider import ExaSearchProvider
    from foundation_tools.tools.web.web_search_tool import WebSearchTool

    return [WebSearchTool(ExaSearchProvider(ctx["exa_api_key"]))]


_GROUPS = [
    ToolGroup(enabled=_always, build=_base_tools),
    ToolGroup(enabled=_web_search_enabled, build=_web_search_tools),
]


def get_all(exa_api_key: str | None = None) -> list[Tool]:
    ctx = {
        "exa_api_key": exa_api_key,
    }

    tools: list[Tool] = []
    for group in _GROUPS:
        if group.enabled(ctx):
            tools.extend(group.build(ctx))
    return tools
