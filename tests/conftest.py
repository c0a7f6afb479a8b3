"""Test configuration and fixtures for matrix_link tests."""

from __future__ import annotations

from collections.abc import Generator

import httpx
import pytest

from matrix_link.client import MatrixSessionClient
from matrix_link.config import Config

__all__ = [
    "ROOM_ID",
    "SERVER_URL",
    "TEST_ACCESS_TOKEN",
    "TEST_PASSWORD",
    "FakeHomeserver",
    "endpoint_of",
]

# Test credentials constants - not real credentials, safe for testing
TEST_PASSWORD = "mock_test_password"  # noqa: S105
TEST_ACCESS_TOKEN = "mock_test_token"  # noqa: S105
SERVER_URL = "https://matrix.example.org"
ROOM_ID = "!abcdef:example.org"

_PREFIX = "/_matrix/client/r0/"


def endpoint_of(request: httpx.Request) -> str:
    """Name the Matrix endpoint a request was sent to (login, join, send, logout)."""
    path = request.url.raw_path.decode("ascii").split("?", 1)[0]
    first = path.removeprefix(_PREFIX).split("/", 1)[0]
    return "send" if first == "rooms" else first


class FakeHomeserver:
    """In-process homeserver behind an ``httpx.MockTransport``.

    Every endpoint answers with a well-formed 2xx body unless a response or an
    exception was registered for it in ``responses``.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: dict[str, httpx.Response | Exception] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = endpoint_of(request)
        override = self.responses.get(endpoint)
        if isinstance(override, Exception):
            raise override
        if override is not None:
            return override
        return self._default(endpoint)

    @staticmethod
    def _default(endpoint: str) -> httpx.Response:
        if endpoint == "login":
            return httpx.Response(
                200,
                json={
                    "access_token": TEST_ACCESS_TOKEN,
                    "device_id": "TESTDEVICE",
                    "user_id": "@bot:example.org",
                    "home_server": "example.org",
                },
            )
        if endpoint == "join":
            return httpx.Response(200, json={"room_id": ROOM_ID})
        if endpoint == "send":
            return httpx.Response(200, json={"event_id": "$event1"})
        return httpx.Response(200, json={})

    @property
    def endpoints(self) -> list[str]:
        return [endpoint_of(request) for request in self.requests]

    def http_client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def homeserver() -> FakeHomeserver:
    """A fresh fake homeserver."""
    return FakeHomeserver()


@pytest.fixture
def session_client(homeserver: FakeHomeserver) -> Generator[MatrixSessionClient, None, None]:
    """A session client wired to the fake homeserver."""
    with homeserver.http_client() as http_client:
        yield MatrixSessionClient(http_client)


@pytest.fixture
def config() -> Config:
    """A valid configuration pointing at the fake homeserver."""
    return Config(
        username="bot",
        password=TEST_PASSWORD,
        server_url=SERVER_URL,
        room_name="#ops:example.org",
    )
