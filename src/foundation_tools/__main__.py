import asyncio
import sys

from dotenv import load_dotenv
from loguru import logger

from foundation_tools.app_config import load_json_config, parse_app_config, resolve_runtime_env
from foundation_tools.chat_manager import ChatManager
from foundation_tools.logging_config import setup_logging
from foundation_tools.responder import create_responder
from foundation_tools.system_prompt import build_system_prompt
from foundation_tools.tool_registry import get_all

_USER_PROMPT = "you> "
_LINE_PREFIX = "assistant> "


def _print_token_usage(chat: ChatManager) -> None:
    transcript = chat.transcript
    print(
        f"{_LINE_PREFIX}{len(transcript)} entries, ~{transcript.estimated_token_count():,} tokens "
        f"(safe estimate {chat.current_token_count():,})"
    )


async def main() -> None:
    load_dotenv()

    app = parse_app_config(load_json_config())

    log_descriptions = setup_logging(level=app.log_level, consumers=app.log_consumers)

    env = resolve_runtime_env(app.provider_name)
    if not env.provider_api_key:
        logger.error(f"{env.provider_env_var} environment variable is required.")
        sys.exit(1)

    tools = get_all(exa_api_key=env.exa_api_key)
    responder = create_responder(
        app.provider_name,
        env.provider_api_key,
        app.model,
        max_tokens=app.max_tokens,
        temperature=app.temperature,
    )
    chat = ChatManager(
        responder,
        instructions=app.system_instructions or build_system_prompt([t.name for t in tools]),
        tools=tools,
        max_tokens=app.context_window_tokens,
        threshold=app.limit_threshold,
        history_budget_ratio=app.history_budget_ratio,
        max_tool_rounds=app.max_tool_rounds,
    )

    print("foundation-tools (type 'exit' to quit, '/tokens' for usage, '/reset' to clear)")
    print("Tools:")
    for t in tools:
        print(f"  - {t.name}")
    print(
        f"Context window: {app.context_window_tokens:,} tokens "
        f"(trim at {app.limit_threshold:.0%}, keep {app.history_budget_ratio:.0%})"
    )
    if log_descriptions:
        print(f"Logging: {', '.join(log_descriptions)}")
    print()

    while True:
        try:
            user_input = input(_USER_PROMPT)
        except (EOFError, KeyboardInterrupt):
            break

        trimmed = user_input.strip()

        if trimmed in ("exit", "quit"):
            break

        if not trimmed:
            continue

        if trimmed == "/tokens":
            _print_token_usage(chat)
            continue

        if trimmed == "/reset":
            chat.reset()
            print(f"{_LINE_PREFIX}Conversation cleared.")
            continue

        try:
            reply = await chat.send(trimmed)
            print(f"{_LINE_PREFIX}{reply}\n")
        except Exception as ex:
            logger.error(f"Unhandled error: {ex}")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
