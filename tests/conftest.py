"""Shared test fixtures for wxapi.

Provides an in-process fake of the remote API built on
:class:`httpx.MockTransport`, a fixed clock, config isolation and output
reset. These fixtures are discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx
import pytest

from wxapi.auth.credential_store import MemoryCredentialStore
from wxapi.models import AccessToken
from wxapi.output import reset_output

T0 = datetime(2026, 1, 1, 8, 0, 0, tzinfo=timezone.utc)

Route = Callable[[httpx.Request], httpx.Response]


# ---------------------------------------------------------------------------
# Fake remote API
# ---------------------------------------------------------------------------


class FakeWeChat:
    """Records every request and serves the token endpoint plus registered routes.

    Each token request hands out the next value of :attr:`tokens`
    (``T1``, ``T2``, ...). Requests to unknown paths get a 404.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[str, Route] = {}
        self.token_calls = 0
        self.token_response: Optional[dict[str, Any]] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/cgi-bin/token":
            self.token_calls += 1
            body = self.token_response or {
                "access_token": f"T{self.token_calls}",
                "expires_in": 7200,
            }
            return httpx.Response(200, json=body)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, text="not found")
        return route(request)

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def service_requests(self) -> list[httpx.Request]:
        """Requests other than token acquisitions."""
        return [r for r in self.requests if r.url.path != "/cgi-bin/token"]


class SpyStore(MemoryCredentialStore):
    """In-memory store that records every save."""

    def __init__(self, token: Optional[AccessToken] = None) -> None:
        super().__init__()
        self._token = token
        self.saved: list[Optional[AccessToken]] = []

    async def save(self, token: Optional[AccessToken]) -> None:
        self.saved.append(token)
        await super().save(token)

    @property
    def invalidations(self) -> int:
        return sum(1 for token in self.saved if token is None)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


def json_route(body: Any, status_code: int = 200) -> Route:
    def _route(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=body)

    return _route


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake() -> FakeWeChat:
    return FakeWeChat()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def store() -> SpyStore:
    return SpyStore()


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> Iterator[None]:
    """Reset the global OutputManager after every test.

    The manager caches sys.stdout/sys.stderr at creation time; CliRunner
    swaps those streams, so a stale manager would write to closed files.
    """
    yield
    reset_output()


@pytest.fixture
def isolated_config(tmp_path: Any, monkeypatch: pytest.MonkeyPatch) -> Any:
    """Point XDG dirs at *tmp_path* and clear all WXAPI_* environment variables."""
    monkeypatch.setattr("wxapi.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "WXAPI_APPID",
        "WXAPI_SECRET",
        "WXAPI_SECRET_SOURCE",
        "WXAPI_CREDENTIAL_MODE",
        "WXAPI_TIMEOUT",
        "WXAPI_ENV",
    ]:
        monkeypatch.delenv(var, raising=False)
    return tmp_path
