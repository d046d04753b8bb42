from typing import Protocol, Sequence, runtime_checkable

from foundation_tools.tool import Tool
from foundation_tools.transcript import Response, ToolCalls, Transcript


@runtime_checkable
class Responder(Protocol):
    async def respond(self, transcript: Transcript, tools: Sequence[Tool]) -> Response | ToolCalls:
        """Produce the next model entry for the transcript.

        Returns a ``ToolCalls`` entry when the model wants tools run, otherwise
        a ``Response``.
        """
        ...


def create_responder(
    provider_name: str,
    api_key: str,
    model: str,
    max_tokens: int = 1024,
    temperature: float = 1.0,
) -> Responder:
    """Factory: create a Responder by provider name."""
    name = provider_name.strip().lower()
    if name == "anthropic":
        from foundation_tools.providers.anthropic_provider import AnthropicResponder
        return AnthropicResponder(api_key, model, max_tokens=max_tokens, temperature=temperature)
    raise ValueError(f"Unknown provider: {provider_name!r}. Supported: 'anthropic'")
