from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class TextSegment:
    content: str


@dataclass(frozen=True)
class StructuredSegment:
    """A JSON-serializable payload (tool results, generated objects)."""

    content: Any


Segment = Union[TextSegment, StructuredSegment]


def _text_segments(text: str) -> tuple[Segment, ...]:
    return (TextSegment(text),)


@dataclass(frozen=True)
class Instructions:
    segments: tuple[Segment, ...] = ()

    @classmethod
    def from_text(cls, text: str) -> Instructions:
        return cls(_text_segments(text))


@dataclass(frozen=True)
class Prompt:
    segments: tuple[Segment, ...] = ()

    @classmethod
    def from_text(cls, text: str) -> Prompt:
        return cls(_text_segments(text))


@dataclass(frozen=True)
class Response:
    segments: tuple[Segment, ...] = ()

    @classmethod
    def from_text(cls, text: str) -> Response:
        return cls(_text_segments(text))

    @property
    def text(self) -> str:
        return "".join(s.content for s in self.segments if isinstance(s, TextSegment))


@dataclass(frozen=True)
class ToolCall:
    tool_name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    call_id: str = ""


@dataclass(frozen=True)
class ToolCalls:
    calls: tuple[ToolCall, ...] = ()


@dataclass(frozen=True)
class ToolOutput:
    segments: tuple[Segment, ...] = ()
    tool_name: str = ""
    call_id: str = ""

    @classmethod
    def from_text(cls, text: str, tool_name: str = "", call_id: str = "") -> ToolOutput:
        return cls(_text_segments(text), tool_name=tool_name, call_id=call_id)

    @classmethod
    def from_result(cls, result: Any, tool_name: str = "", call_id: str = "") -> ToolOutput:
        return cls((StructuredSegment(result),), tool_name=tool_name, call_id=call_id)


Entry = Union[Instructions, Prompt, Response, ToolCalls, ToolOutput]


class Transcript:
    """Ordered, append-only log of conversational entries.

    Trimming never happens in place: build a new ``Transcript`` from the
    entries returned by :meth:`entries_within_token_budget`.
    """

    def __init__(self, entries: Iterable[Entry] = ()) -> None:
        self._entries: list[Entry] = list(entries)

    def append(self, entry: Entry) -> None:
        self._entries.append(entry)

    @property
    def entries(self) -> tuple[Entry, ...]:
        return tuple(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> Entry:
        return self._entries[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Transcript):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"Transcript({self._entries!r})"

    def estimated_token_count(self) -> int:
        from foundation_tools.token_counting import estimated_token_count

        return estimated_token_count(self)

    def safe_estimated_token_count(self) -> int:
        from foundation_tools.token_counting import safe_estimated_token_count

        return safe_estimated_token_count(self)

    def is_approaching_limit(self, threshold: float | None = None, max_tokens: int | None = None) -> bool:
        from foundation_tools.token_counting import is_approaching_limit

        return is_approaching_limit(self, threshold, max_tokens)

    def entries_within_token_budget(self, budget: int) -> list[Entry]:
        from foundation_tools.token_counting import entries_within_token_budget

        return entries_within_token_budget(self, budget)
