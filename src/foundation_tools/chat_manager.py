from __future__ import annotations

import asyncio
from typing import Any, Sequence

from loguru import logger

from foundation_tools.responder import Responder
from foundation_tools.token_counting import (
    DEFAULT_POLICY,
    TokenPolicy,
    entries_within_token_budget,
    estimated_token_count,
    is_approaching_limit,
    safe_estimated_token_count,
)
from foundation_tools.tool import Tool, error_result
from foundation_tools.transcript import (
    Instructions,
    Prompt,
    Response,
    ToolCall,
    ToolOutput,
    Transcript,
)


class ChatManager:
    """Owns a conversation transcript and keeps it inside the context window.

    Before every model call the transcript is checked against
    ``threshold * max_tokens``; when it gets close, history is trimmed to
    ``history_budget_ratio * max_tokens`` tokens, keeping the system
    instructions and the most recent entries.
    """

    def __init__(
        self,
        responder: Responder,
        instructions: str = "",
        tools: Sequence[Tool] = (),
        *,
        max_tokens: int = 4096,
        threshold: float = 0.70,
        history_budget_ratio: float = 0.50,
        max_tool_rounds: int = 8,
        policy: TokenPolicy = DEFAULT_POLICY,
    ):
        self._responder = responder
        self._instructions = instructions
        self._tools = list(tools)
        self._tool_map: dict[str, Tool] = {t.name: t for t in self._tools}
        self._max_tokens = max_tokens
        self._threshold = threshold
        self._history_budget_ratio = history_budget_ratio
        self._max_tool_rounds = max_tool_rounds
        self._policy = policy
        self._transcript = self._initial_transcript()
        self._lock = asyncio.Lock()

    @property
    def transcript(self) -> Transcript:
        return self._transcript

    @property
    def tools(self) -> list[Tool]:
        return list(self._tools)

    @property
    def history_budget(self) -> int:
        return int(self._max_tokens * self._history_budget_ratio)

    def _initial_transcript(self) -> Transcript:
        if self._instructions:
            return Transcript([Instructions.from_text(self._instructions)])
        return Transcript()

    def reset(self) -> None:
        self._transcript = self._initial_transcript()

    def current_token_count(self) -> int:
        return safe_estimated_token_count(self._transcript, policy=self._policy)

    def trim_if_needed(self, keep_last: int = 0) -> bool:
        """Trim history when the transcript nears the limit.

        The last ``keep_last`` entries (the turn in progress) always survive;
        their cost is reserved before the rest of the history is selected.
        """
        if not is_approaching_limit(self._transcript, self._threshold, self._max_tokens, policy=self._policy):
            return False

        entries = list(self._transcript)
        split = max(0, len(entries) - keep_last)
        history, pinned = entries[:split], entries[split:]
        pinned_tokens = estimated_token_count(pinned, policy=self._policy)
        if pinned_tokens > self.history_budget:
            logger.warning(
                f"Current turn alone is ~{pinned_tokens:,} tokens, over the history budget of "
                f"{self.history_budget:,}"
            )

        kept = entries_within_token_budget(
            history, max(0, self.history_budget - pinned_tokens), policy=self._policy
        )
        kept.extend(pinned)
        self._transcript = Transcript(kept)

        logger.info(
            f"Approaching token limit: trimmed transcript from {len(entries)} entries "
            f"(~{estimated_token_count(entries, policy=self._policy):,} tokens) to {len(kept)} entries "
            f"(~{estimated_token_count(self._transcript, policy=self._policy):,} tokens), "
            f"budget {self.history_budget:,}"
        )
        return True

    async def send(self, message: str) -> str:
        async with self._lock:
            return await self._send_inner(message)

    async def _send_inner(self, message: str) -> str:
        self._transcript.append(Prompt.from_text(message))

        tool_rounds = 0
        current_turn = 1
        while True:
            self.trim_if_needed(keep_last=current_turn)
            entry = await self._responder.respond(self._transcript, self._tools)

            if isinstance(entry, Response):
                self._transcript.append(entry)
                return entry.text

            if tool_rounds >= self._max_tool_rounds:
                logger.warning(f"Stopped after {tool_rounds} tool rounds without a final response")
                return f"[Stopped: no final response after {tool_rounds} rounds of tool calls.]"
            tool_rounds += 1

            self._transcript.append(entry)
            outputs = await asyncio.gather(*(self.call_tool(call) for call in entry.calls))
            for output in outputs:
                self._transcript.append(output)
            current_turn = 1 + len(outputs)

    async def call_tool(self, call: ToolCall) -> ToolOutput:
        tool = self._tool_map.get(call.tool_name)
        result: dict[str, Any]
        if tool is None:
            result = error_result("Tool call failed", f'unknown tool "{call.tool_name}"')
        else:
            logger.debug(f"Running tool {call.tool_name} ({call.call_id})")
            try:
                result = await tool.execute(call.arguments)
            except Exception as ex:
                logger.error(f"{call.tool_name} raised: {ex}")
                result = error_result("Tool call failed", f'Error executing tool "{call.tool_name}": {ex}')
        return ToolOutput.from_result(result, tool_name=call.tool_name, call_id=call.call_id)
