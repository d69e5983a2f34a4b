from typing import ContextManager, Protocol, Any, runtime_checkable


@runtime_checkable
class TelemetryPort(Protocol):
    """Port for tracing provisioning phases and counting ensured resources."""

    def phase(self, name: str, **attributes: str) -> ContextManager[Any]: ...

    def record_resource(self, kind: str, created: bool) -> None: ...
