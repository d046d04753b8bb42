from __future__ import annotations

import json
from typing import Any, Sequence

import anthropic
from loguru import logger
from tenacity import retry

from foundation_tools.providers.common import default_retry_kwargs
from foundation_tools.tool import Tool
from foundation_tools.transcript import (
    Instructions,
    Prompt,
    Response,
    StructuredSegment,
    TextSegment,
    ToolCall,
    ToolCalls,
    ToolOutput,
    Transcript,
)

_TRIMMED_HISTORY_NOTE = "(Earlier conversation was trimmed to fit the context window.)"


class AnthropicResponder:
    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        max_tokens: int = 1024,
        temperature: float = 1.0,
    ):
        self._client = anthropic.AsyncAnthropic(api_key=api_key)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    def convert_tools(self, tools: Sequence[Tool]) -> list[dict]:
        return [
            {
                "name": t.name,
                "description": t.description,
                "input_schema": t.input_schema,
            }
            for t in tools
        ]

    async def respond(self, transcript: Transcript, tools: Sequence[Tool]) -> Response | ToolCalls:
        system_prompt, messages = to_anthropic_messages(transcript)
        response = await self._create(system_prompt, messages, self.convert_tools(tools))
        return from_anthropic_content(response.content)

    @retry(**default_retry_kwargs((
        anthropic.RateLimitError,
        anthropic.APIConnectionError,
        anthropic.APITimeoutError,
    )))
    async def _create(self, system_prompt: str, messages: list[dict], tools: list[dict]) -> Any:
        logger.debug(
            f"API request: model={self._model}, max_tokens={self._max_tokens}, "
            f"messages={len(messages)}, tools={len(tools)}"
        )
        kwargs: dict[str, Any] = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
            "messages": messages,
        }
        if system_prompt:
            kwargs["system"] = system_prompt
        if tools:
            kwargs["tools"] = tools

        response = await self._client.messages.create(**kwargs)

        usage = response.usage
        logger.debug(
            f"API response: stop_reason={response.stop_reason}, "
            f"input_tokens={usage.input_tokens}, output_tokens={usage.output_tokens}"
        )
        return response


def _segments_to_text(segments: Sequence[Any]) -> str:
    parts = []
    for segment in segments:
        if isinstance(segment, TextSegment):
            parts.append(segment.content)
        elif isinstance(segment, StructuredSegment):
            parts.append(json.dumps(segment.content, ensure_ascii=False, default=str))
    return "\n".join(p for p in parts if p)


def _append(messages: list[dict], role: str, blocks: list[dict]) -> None:
    if not blocks:
        return
    if messages and messages[-1]["role"] == role:
        messages[-1]["content"].extend(blocks)
    else:
        messages.append({"role": role, "content": list(blocks)})


def to_anthropic_messages(transcript: Transcript) -> tuple[str, list[dict]]:
    """Convert a transcript to a (system prompt, messages) pair.

    Tool calls and outputs are only sent as ``tool_use``/``tool_result``
    blocks when both halves survived trimming; an orphaned half is sent as
    plain text so the request stays valid.
    """
    entries = list(transcript)
    call_ids = {
        call.call_id for e in entries if isinstance(e, ToolCalls) for call in e.calls if call.call_id
    }
    output_ids = {e.call_id for e in entries if isinstance(e, ToolOutput) and e.call_id}

    system_parts: list[str] = []
    messages: list[dict] = []

    for entry in entries:
        if isinstance(entry, Instructions):
            system_parts.append(_segments_to_text(entry.segments))
        elif isinstance(entry, Prompt):
            text = _segments_to_text(entry.segments)
            _append(messages, "user", [{"type": "text", "text": text}] if text else [])
        elif isinstance(entry, Response):
            text = _segments_to_text(entry.segments)
            _append(messages, "assistant", [{"type": "text", "text": text}] if text else [])
        elif isinstance(entry, ToolCalls):
            blocks = []
            for call in entry.calls:
                if call.call_id and call.call_id in output_ids:
                    blocks.append({
                        "type": "tool_use",
                        "id": call.call_id,
                        "name": call.tool_name,
                        "input": call.arguments,
                    })
                else:
                    args = json.dumps(call.arguments, ensure_ascii=False, default=str)
                    blocks.append({"type": "text", "text": f"[Tool call: {call.tool_name}({args})]"})
            _append(messages, "assistant", blocks)
        elif isinstance(entry, ToolOutput):
            text = _segments_to_text(entry.segments)
            if entry.call_id and entry.call_id in call_ids:
                block = {"type": "tool_result", "tool_use_id": entry.call_id, "content": text}
            else:
                block = {"type": "text", "text": f"[Tool result ({entry.tool_name})]: {text}"}
            _append(messages, "user", [block])

    if messages and messages[0]["role"] == "assistant":
        messages.insert(0, {"role": "user", "content": [{"type": "text", "text": _TRIMMED_HISTORY_NOTE}]})

    return "\n\n".join(p for p in system_parts if p), messages


def from_anthropic_content(content: Sequence[Any]) -> Response | ToolCalls:
    texts: list[str] = []
    calls: list[ToolCall] = []
    for block in content:
        if block.type == "text":
            texts.append(block.text)
        elif block.type == "tool_use":
            calls.append(ToolCall(tool_name=block.name, arguments=dict(block.input or {}), call_id=block.id))

    if calls:
        if texts:
            logger.debug(f"Text alongside tool calls: {' '.join(texts)[:200]}")
        return ToolCalls(tuple(calls))
    return Response.from_text("".join(texts))
