import asyncio
import unittest
from types import SimpleNamespace
from typing import Any

from foundation_tools.providers.anthropic_provider import (
    AnthropicResponder,
    from_anthropic_content,
    to_anthropic_messages,
)
from foundation_tools.responder import create_responder
from foundation_tools.transcript import (
    Instructions,
    Prompt,
    Response,
    ToolCall,
    ToolCalls,
    ToolOutput,
    Transcript,
)


class _FakeMessages:
    def __init__(self, create_response: object) -> None:
        self._create_response = create_response
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        return self._create_response


class _FakeClient:
    def __init__(self, create_response: object) -> None:
        self.messages = _FakeMessages(create_response)


class _FakeTool:
    @property
    def name(self) -> str:
        return "weather"

    @property
    def description(self) -> str:
        return "Current weather"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {"type": "object", "properties": {"location": {"type": "string"}}}

    async def execute(self, tool_input: dict[str, Any]) -> dict[str, Any]:
        return {"status": "success", "message": "ok"}


def _api_response(content: list[object], stop_reason: str = "end_turn") -> SimpleNamespace:
    return SimpleNamespace(
        stop_reason=stop_reason,
        usage=SimpleNamespace(input_tokens=10, output_tokens=5),
        content=content,
    )


class ToAnthropicMessagesTests(unittest.TestCase):
    def test_instructions_become_system_prompt(self) -> None:
        transcript = Transcript([
            Instructions.from_text("Be brief"),
            Prompt.from_text("hi"),
            Response.from_text("hello"),
        ])

        system, messages = to_anthropic_messages(transcript)

        self.assertEqual("Be brief", system)
        self.assertEqual(
            [
                {"role": "user", "content": [{"type": "text", "text": "hi"}]},
                {"role": "assistant", "content": [{"type": "text", "text": "hello"}]},
            ],
            messages,
        )

    def test_paired_tool_call_and_output(self) -> None:
        transcript = Transcript([
            Prompt.from_text("weather in Paris?"),
            ToolCalls((ToolCall("weather", {"location": "Paris"}, "c1"),)),
            ToolOutput.from_result({"status": "success", "temperature": 21}, "weather", "c1"),
        ])

        _, messages = to_anthropic_messages(transcript)

        self.assertEqual(
            {"type": "tool_use", "id": "c1", "name": "weather", "input": {"location": "Paris"}},
            messages[1]["content"][0],
        )
        result_block = messages[2]["content"][0]
        self.assertEqual("tool_result", result_block["type"])
        self.assertEqual("c1", result_block["tool_use_id"])
        self.assertIn('"temperature": 21', result_block["content"])

    def test_orphaned_halves_are_sent_as_text(self) -> None:
        transcript = Transcript([
            Prompt.from_text("go"),
            ToolCalls((ToolCall("weather", {"location": "Oslo"}, "c1"),)),
            ToolOutput.from_text("cloudy", "weather", "c2"),
        ])

        _, messages = to_anthropic_messages(transcript)

        self.assertEqual("text", messages[1]["content"][0]["type"])
        self.assertIn("[Tool call: weather", messages[1]["content"][0]["text"])
        self.assertEqual({"type": "text", "text": "[Tool result (weather)]: cloudy"}, messages[2]["content"][0])

    def test_consecutive_same_role_entries_are_merged(self) -> None:
        transcript = Transcript([Prompt.from_text("one"), Prompt.from_text("two")])
        _, messages = to_anthropic_messages(transcript)

        self.assertEqual(1, len(messages))
        self.assertEqual(2, len(messages[0]["content"]))

    def test_trimmed_history_starting_with_assistant_gets_user_note(self) -> None:
        transcript = Transcript([Instructions.from_text("sys"), Response.from_text("earlier answer")])
        _, messages = to_anthropic_messages(transcript)

        self.assertEqual("user", messages[0]["role"])
        self.assertEqual("assistant", messages[1]["role"])


class FromAnthropicContentTests(unittest.TestCase):
    def test_text_only_becomes_response(self) -> None:
        entry = from_anthropic_content([SimpleNamespace(type="text", text="Done")])
        self.assertEqual(Response.from_text("Done"), entry)

    def test_tool_use_becomes_tool_calls(self) -> None:
        entry = from_anthropic_content([
            SimpleNamespace(type="text", text="Let me check."),
            SimpleNamespace(type="tool_use", id="t1", name="weather", input={"location": "Rome"}),
        ])
        self.assertEqual(ToolCalls((ToolCall("weather", {"location": "Rome"}, "t1"),)), entry)


class AnthropicResponderTests(unittest.TestCase):
    def _make_responder(self, create_response: object) -> AnthropicResponder:
        responder = AnthropicResponder.__new__(AnthropicResponder)
        responder._client = _FakeClient(create_response)
        responder._model = "m"
        responder._max_tokens = 256
        responder._temperature = 0.5
        return responder

    def test_convert_tools(self) -> None:
        responder = self._make_responder(None)
        result = responder.convert_tools([_FakeTool()])
        self.assertEqual("weather", result[0]["name"])
        self.assertEqual("Current weather", result[0]["description"])
        self.assertIn("properties", result[0]["input_schema"])

    def test_respond_sends_system_messages_and_tools(self) -> None:
        responder = self._make_responder(_api_response([SimpleNamespace(type="text", text="Hello")]))
        transcript = Transcript([Instructions.from_text("sys"), Prompt.from_text("hi")])

        entry = asyncio.run(responder.respond(transcript, [_FakeTool()]))

        self.assertEqual(Response.from_text("Hello"), entry)
        kwargs = responder._client.messages.calls[0]
        self.assertEqual("m", kwargs["model"])
        self.assertEqual(256, kwargs["max_tokens"])
        self.assertEqual("sys", kwargs["system"])
        self.assertEqual("weather", kwargs["tools"][0]["name"])

    def test_respond_omits_empty_system_and_tools(self) -> None:
        responder = self._make_responder(_api_response([SimpleNamespace(type="text", text="ok")]))

        asyncio.run(responder.respond(Transcript([Prompt.from_text("hi")]), []))

        kwargs = responder._client.messages.calls[0]
        self.assertNotIn("system", kwargs)
        self.assertNotIn("tools", kwargs)


class CreateResponderTests(unittest.TestCase):
    def test_creates_anthropic_responder(self) -> None:
        responder = create_responder("Anthropic", "key", "m", max_tokens=100)
        self.assertIsInstance(responder, AnthropicResponder)

    def test_unknown_provider_raises(self) -> None:
        with self.assertRaises(ValueError):
            create_responder("openai", "key", "m")


if __name__ == "__main__":
    unittest.main()
