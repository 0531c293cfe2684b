"""Shared fixtures: a recording stand-in for the forum transport."""

from dataclasses import dataclass, field
from typing import Any

import pytest

from forum_relay.forums.discourse import DiscourseClient
from forum_relay.forums.identity import AdminCheck

SYSTEM = "system"
ADMIN = "boss"
MEMBER = "alice"


@dataclass
class Call:
    method: str
    path: str
    kwargs: dict = field(default_factory=dict)

    @property
    def acting(self):
        """api_username sent with the call, None when the default applies."""
        return (self.kwargs.get("params") or {}).get("api_username")


class RecordingHttp:
    """Records every request instead of sending it."""

    def __init__(self, response: Any = None, error: Exception = None):
        self.calls: list[Call] = []
        self.response = {} if response is None else response
        self.error = error
        self.closed = False

    async def request(self, method, path, **kwargs):
        self.calls.append(Call(method, path, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    async def get(self, path, **kwargs):
        return await self.request("GET", path, **kwargs)

    async def post(self, path, **kwargs):
        return await self.request("POST", path, **kwargs)

    async def put(self, path, **kwargs):
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path, **kwargs):
        return await self.request("DELETE", path, **kwargs)

    async def close(self):
        self.closed = True

    @property
    def last(self) -> Call:
        return self.calls[-1]


@pytest.fixture
def http():
    return RecordingHttp()


@pytest.fixture
def client(http):
    return DiscourseClient(http, SYSTEM, AdminCheck([ADMIN]))
