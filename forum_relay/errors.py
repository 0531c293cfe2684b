"""Exceptions raised by the forum transport and client."""

from typing import Any, Optional


class ForumError(Exception):
    """Base class for forum communication failures."""


class UpstreamHTTPError(ForumError):
    """The forum answered with a non-2xx status."""

    def __init__(self, url: str, status: int, body: Any = None):
        self.url = url
        self.status = status
        self.body = body
        super().__init__(f"HTTP {status} from {url}: {str(body)[:200]}")

    @classmethod
    def from_error(cls, error: "UpstreamHTTPError") -> "UpstreamHTTPError":
        """Re-type a generic upstream error as a more specific one."""
        return cls(error.url, error.status, error.body)


class NotFound(UpstreamHTTPError):
    """The requested forum record does not exist."""


class Conflict(UpstreamHTTPError):
    """The forum already holds a record with the same email or username."""


class NetworkError(ForumError):
    """The request never produced an HTTP response."""

    def __init__(self, url: str, cause: Optional[BaseException] = None):
        self.url = url
        self.cause = cause
        super().__init__(f"Request to {url} failed: {cause}")
