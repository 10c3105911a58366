"""
Exception types shared by every client.

- RequestFailed: the transport gave up (connection errors, timeouts) after retries
- ServiceError: the remote answered with an error status or an error field
- ParseError: the answer did not have the shape the client reads
- MissingCredential: an API key/token is not configured
- JobFailed / JobTimeout / JobCancelled: outcomes of a polling job
"""
from __future__ import annotations

from typing import Any, Optional


class WebglueError(Exception):
    """Base class for all errors raised by webglue clients."""


class RequestFailed(WebglueError):
    def __init__(self, service: str, url: str, cause: Optional[BaseException] = None) -> None:
        self.service = service
        self.url = url
        self.cause = cause
        super().__init__(f"[{service}] request to {url} failed: {cause}")


class ServiceError(WebglueError):
    """The remote service reported an error (HTTP status or error payload)."""

    def __init__(
        self,
        service: str,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        self.service = service
        self.message = message
        self.status_code = status_code
        self.payload = payload
        status = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(f"[{service}] {message}{status}")


class ParseError(WebglueError):
    def __init__(self, service: str, message: str) -> None:
        self.service = service
        self.message = message
        super().__init__(f"[{service}] unexpected response: {message}")


class MissingCredential(WebglueError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"{name} is not configured; set it in the environment or in an api keys file (KEY=VALUE lines)"
        )


class JobFailed(WebglueError):
    def __init__(self, name: str, error: Any) -> None:
        self.name = name
        self.error = error
        super().__init__(f"[{name}] job failed: {error}")


class JobTimeout(WebglueError):
    def __init__(self, name: str, attempts: int, elapsed: float) -> None:
        self.name = name
        self.attempts = attempts
        self.elapsed = elapsed
        super().__init__(f"[{name}] job not finished after {attempts} polls ({elapsed:.1f}s)")


class JobCancelled(WebglueError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"[{name}] job cancelled")
