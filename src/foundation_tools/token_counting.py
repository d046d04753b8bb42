"""Token estimation and context-window budgeting for transcripts.

Costs use a characters-per-token heuristic rather than a real tokenizer.
Every function takes an optional ``policy`` so tests can override the
constants.
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from foundation_tools.transcript import (
    Entry,
    Instructions,
    Prompt,
    Response,
    StructuredSegment,
    TextSegment,
    ToolCalls,
    ToolOutput,
)


@dataclass(frozen=True)
class TokenPolicy:
    chars_per_token: float = 4.5
    conservative_chars_per_token: float = 3.5
    safety_buffer_ratio: float = 0.25
    system_overhead_tokens: int = 100
    tool_call_overhead_tokens: int = 5
    tool_output_overhead_tokens: int = 3
    default_threshold: float = 0.70
    default_max_tokens: int = 4096


DEFAULT_POLICY = TokenPolicy()


class StructuredContentError(ValueError):
    """Raised when a structured payload cannot be serialized for sizing."""


def _tokens_for_length(length: int, chars_per_token: float) -> int:
    return max(1, math.ceil(length / chars_per_token))


def serialize_structured(payload: Any) -> str:
    try:
        return json.dumps(payload, separators=(",", ":"), sort_keys=True, ensure_ascii=False)
    except (TypeError, ValueError) as ex:
        raise StructuredContentError(
            f"Cannot serialize {type(payload).__name__} payload for token estimation: {ex}"
        ) from ex


def estimate_text_tokens(text: str, *, policy: TokenPolicy = DEFAULT_POLICY) -> int:
    if not text:
        return 0
    return _tokens_for_length(len(text), policy.chars_per_token)


def estimate_structured_tokens(payload: Any, *, policy: TokenPolicy = DEFAULT_POLICY) -> int:
    """Size a payload by the length of its compact JSON form (minimum 1)."""
    return _tokens_for_length(len(serialize_structured(payload)), policy.chars_per_token)


def estimate_tokens(content: Any, *, policy: TokenPolicy = DEFAULT_POLICY) -> int:
    """Estimate tokens for a string, or for any other JSON-serializable payload."""
    if isinstance(content, str):
        return estimate_text_tokens(content, policy=policy)
    return estimate_structured_tokens(content, policy=policy)


def estimate_tokens_conservative(text: str, *, policy: TokenPolicy = DEFAULT_POLICY) -> int:
    if not text:
        return 0
    return _tokens_for_length(len(text), policy.conservative_chars_per_token)


def segment_token_count(segment: Any, *, policy: TokenPolicy = DEFAULT_POLICY) -> int:
    if isinstance(segment, TextSegment):
        return estimate_text_tokens(segment.content, policy=policy)
    if isinstance(segment, StructuredSegment):
        return estimate_structured_tokens(segment.content, policy=policy)
    # Unrecognized segment kinds cost nothing
    return 0


def _segments_token_count(segments: Iterable[Any], policy: TokenPolicy) -> int:
    return sum(segment_token_count(s, policy=policy) for s in segments)


def entry_token_count(entry: Any, *, policy: TokenPolicy = DEFAULT_POLICY) -> int:
    if isinstance(entry, (Instructions, Prompt, Response)):
        return _segments_token_count(entry.segments, policy)

    if isinstance(entry, ToolCalls):
        return sum(
            estimate_text_tokens(call.tool_name, policy=policy)
            + estimate_structured_tokens(call.arguments, policy=policy)
            + policy.tool_call_overhead_tokens
            for call in entry.calls
        )

    if isinstance(entry, ToolOutput):
        return _segments_token_count(entry.segments, policy) + policy.tool_output_overhead_tokens

    # Unrecognized entry kinds cost nothing
    return 0


def estimated_token_count(entries: Iterable[Entry], *, policy: TokenPolicy = DEFAULT_POLICY) -> int:
    return sum(entry_token_count(e, policy=policy) for e in entries)


def safe_estimated_token_count(entries: Iterable[Entry], *, policy: TokenPolicy = DEFAULT_POLICY) -> int:
    """Base estimate plus a proportional buffer and a flat system overhead."""
    base = estimated_token_count(entries, policy=policy)
    buffer = math.floor(base * policy.safety_buffer_ratio)
    return base + buffer + policy.system_overhead_tokens


def is_approaching_limit(
    entries: Iterable[Entry],
    threshold: float | None = None,
    max_tokens: int | None = None,
    *,
    policy: TokenPolicy = DEFAULT_POLICY,
) -> bool:
    if threshold is None:
        threshold = policy.default_threshold
    if max_tokens is None:
        max_tokens = policy.default_max_tokens

    # No clamping: out-of-range values flow straight through the comparison
    if not 0 <= threshold <= 1 or max_tokens <= 0:
        logger.debug(f"Unusual limit settings: threshold={threshold}, max_tokens={max_tokens}")

    limit = math.floor(max_tokens * threshold)
    return safe_estimated_token_count(entries, policy=policy) > limit


def entries_within_token_budget(
    entries: Iterable[Entry],
    budget: int,
    *,
    policy: TokenPolicy = DEFAULT_POLICY,
) -> list[Entry]:
    """Select the entries to keep when history must fit within ``budget`` tokens.

    The first ``Instructions`` entry is kept if it fits on its own. The
    remaining budget is then filled greedily from the most recent entry
    backwards, skipping (but not stopping at) entries that do not fit. Later
    ``Instructions`` entries are never kept. The result is in chronological
    order and the input is not modified.
    """
    all_entries = list(entries)

    anchor: Entry | None = None
    token_count = 0
    for entry in all_entries:
        if isinstance(entry, Instructions):
            anchor_tokens = entry_token_count(entry, policy=policy)
            if anchor_tokens <= budget:
                anchor = entry
                token_count = anchor_tokens
            break

    recent: list[Entry] = []
    for entry in reversed(all_entries):
        if isinstance(entry, Instructions):
            continue
        entry_tokens = entry_token_count(entry, policy=policy)
        if token_count + entry_tokens <= budget:
            token_count += entry_tokens
            recent.append(entry)

    result: list[Entry] = [anchor] if anchor is not None else []
    result.extend(reversed(recent))

    logger.debug(
        f"Token budget {budget:,}: kept {len(result)} of {len(all_entries)} entries"
        f" (~{token_count:,} tokens)"
    )
    return result
