from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

_PROVIDER_ENV_VARS = {
    "anthropic": "ANTHROPIC_API_KEY",
}


@dataclass
class RuntimeEnv:
    provider_api_key: str
    provider_env_var: str
    exa_api_key: str | None


@dataclass
class AppConfig:
    provider_name: str
    model: str
    max_tokens: int
    temperature: float
    context_window_tokens: int
    limit_threshold: float
    history_budget_ratio: float
    max_tool_rounds: int
    system_instructions: str | None
    log_level: str
    log_consumers: list | None


def load_json_config(path: Path | None = None) -> dict:
    config_path = path or Path.cwd() / "config.json"
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


def parse_app_config(config: dict) -> AppConfig:
    return AppConfig(
        provider_name=config.get("Provider", "anthropic").strip().lower(),
        model=config.get("Model", "claude-sonnet-4-5-20250929"),
        max_tokens=int(config.get("MaxTokens", 1024)),
        temperature=float(config.get("Temperature", 1.0)),
        context_window_tokens=int(config.get("ContextWindowTokens", 4096)),
        limit_threshold=float(config.get("LimitThreshold", 0.70)),
        history_budget_ratio=float(config.get("HistoryBudgetRatio", 0.50)),
        max_tool_rounds=int(config.get("MaxToolRounds", 8)),
        system_instructions=str(config.get("SystemInstructions", "")).strip() or None,
        log_level=config.get("LogLevel", "INFO"),
        log_consumers=config.get("LogConsumers"),
    )


def resolve_runtime_env(provider_name: str) -> RuntimeEnv:
    provider_env_var = _PROVIDER_ENV_VARS.get(provider_name, f"{provider_name.upper()}_API_KEY")
    return RuntimeEnv(
        provider_api_key=os.environ.get(provider_env_var, ""),
        provider_env_var=provider_env_var,
        exa_api_key=os.environ.get("EXA_API_KEY") or None,
    )
