import sys
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from loguru import logger

_PACKAGE = "foundation_tools"


@runtime_checkable
class LogConsumer(Protocol):
    def register(self, level: str) -> None: ...
    def describe(self, level: str) -> str: ...


def _package_only(record: dict) -> bool:
    return (record["name"] or "").startswith(_PACKAGE)


class ConsoleLogConsumer:
    def __init__(self, package_only: bool = True):
        self._package_only = package_only

    def register(self, level: str) -> None:
        logger.add(
            sys.stderr,
            level=level,
            filter=_package_only if self._package_only else None,
            format="<level>{level:<8}</level> | <cyan>{name}</cyan> - <level>{message}</level>",
        )

    def describe(self, level: str) -> str:
        return f"console (stderr, {level})"


class FileLogConsumer:
    def __init__(
        self,
        path: str = "foundation_tools.log",
        rotation: str = "5 MB",
        retention: int = 3,
        serialize: bool = False,
    ):
        self._path = path
        self._rotation = rotation
        self._retention = retention
        self._serialize = serialize

    def register(self, level: str) -> None:
        Path(self._path).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            self._path,
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} - {message}",
            rotation=self._rotation,
            retention=self._retention,
            serialize=self._serialize,
        )

    def describe(self, level: str) -> str:
        kind = "json" if self._serialize else "text"
        return f"file ({self._path}, {kind}, {level})"


_CONSUMER_TYPES: dict[str, type] = {
    "console": ConsoleLogConsumer,
    "file": FileLogConsumer,
}

# Console stays at WARNING so log lines don't interleave with the chat
_DEFAULT_CONSUMERS = [
    {"type": "console", "level": "WARNING"},
    {"type": "file", "path": "foundation_tools.log"},
]


def setup_logging(
    level: str = "INFO",
    consumers: list[dict[str, Any]] | None = None,
) -> list[str]:
    """Replace loguru's default sink with the configured consumers.

    Each consumer dict has a ``type`` (``console`` or ``file``), an optional
    ``level`` overriding ``level``, and consumer-specific options. Returns a
    description of each registered consumer.
    """
    logger.remove()

    descriptions: list[str] = []

    for config in consumers if consumers is not None else _DEFAULT_CONSUMERS:
        sink_type = config.get("type", "")
        cls = _CONSUMER_TYPES.get(sink_type)
        if cls is None:
            logger.warning(f"Unknown log consumer type: {sink_type!r}")
            continue

        options = {k: v for k, v in config.items() if k not in ("type", "level")}
        sink_level = config.get("level", level)

        consumer = cls(**options)
        consumer.register(sink_level)
        descriptions.append(consumer.describe(sink_level))

    return descriptions
