from typing import Protocol, runtime_checkable


@runtime_checkable
class HttpProbePort(Protocol):
    """Port for checking that the website answers over HTTP."""

    async def status(self, url: str, timeout: int = 10) -> int:
        """Return the HTTP status code, or 0 when no response was received."""
        ...
