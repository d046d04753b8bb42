from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Tool(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def input_schema(self) -> dict[str, Any]: ...

    async def execute(self, tool_input: dict[str, Any]) -> dict[str, Any]: ...


def success_result(message: str, **fields: Any) -> dict[str, Any]:
    return {**fields, "status": "success", "message": message}


def error_result(message: str, error: BaseException | str, **fields: Any) -> dict[str, Any]:
    return {**fields, "status": "error", "error": str(error), "message": message}
