"""Tests for the credential stores."""

from __future__ import annotations

import logging
import os
import stat
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

import pytest

from wxapi.auth.credential_store import (
    CallbackCredentialStore,
    FileCredentialStore,
    MemoryCredentialStore,
)
from wxapi.models import AccessToken

T0 = datetime(2026, 1, 1, 8, 0, 0, tzinfo=timezone.utc)


def _token(value: str = "T1") -> AccessToken:
    return AccessToken(access_token=value, expire_time=T0 + timedelta(hours=2))


class TestMemoryCredentialStore:
    @pytest.mark.asyncio
    async def test_empty_by_default(self) -> None:
        assert await MemoryCredentialStore().load() is None

    @pytest.mark.asyncio
    async def test_save_load_clear(self) -> None:
        store = MemoryCredentialStore()
        await store.save(_token())
        assert await store.load() == _token()
        await store.save(None)
        assert await store.load() is None

    @pytest.mark.asyncio
    async def test_production_warning_logged_once(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.setenv("WXAPI_ENV", "production")
        store = MemoryCredentialStore()
        with caplog.at_level(logging.WARNING, logger="wxapi"):
            await store.save(_token("T1"))
            await store.save(_token("T2"))
        warnings = [r for r in caplog.records if "stored in memory" in r.getMessage()]
        assert len(warnings) == 1

    @pytest.mark.asyncio
    async def test_no_warning_outside_production(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.delenv("WXAPI_ENV", raising=False)
        with caplog.at_level(logging.WARNING, logger="wxapi"):
            await MemoryCredentialStore().save(_token())
        assert caplog.records == []


class TestCallbackCredentialStore:
    @pytest.mark.asyncio
    async def test_delegates_to_callbacks(self) -> None:
        saved: list[Optional[AccessToken]] = []
        backing: dict[str, Any] = {}

        async def load_token() -> Any:
            return backing.get("token")

        async def save_token(token: Optional[AccessToken]) -> None:
            saved.append(token)
            backing["token"] = token

        store = CallbackCredentialStore(load_token, save_token)
        assert await store.load() is None
        await store.save(_token())
        assert saved == [_token()]
        assert await store.load() == _token()

    @pytest.mark.asyncio
    async def test_mapping_is_coerced(self) -> None:
        async def load_token() -> Any:
            return {"accessToken": "T9", "expireTime": (T0 + timedelta(hours=1)).isoformat()}

        async def save_token(token: Optional[AccessToken]) -> None:
            pass

        token = await CallbackCredentialStore(load_token, save_token).load()
        assert token is not None
        assert token.access_token == "T9"
        assert token.is_valid(T0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "value",
        [{"accessToken": ""}, {"accessToken": None, "expireTime": None}, {}],
    )
    async def test_malformed_mapping_loads_none(self, value: dict[str, Any]) -> None:
        async def load_token() -> Any:
            return value

        async def save_token(token: Optional[AccessToken]) -> None:
            pass

        assert await CallbackCredentialStore(load_token, save_token).load() is None


class TestFileCredentialStore:
    @pytest.mark.asyncio
    async def test_missing_file_loads_none(self, isolated_config: Path) -> None:
        assert await FileCredentialStore("wx1").load() is None

    @pytest.mark.asyncio
    async def test_roundtrip(self, isolated_config: Path) -> None:
        store = FileCredentialStore("wx1")
        await store.save(_token())
        assert store.path == isolated_config / "data" / "wxapi" / "credentials" / "wx1.json"
        assert await FileCredentialStore("wx1").load() == _token()

    @pytest.mark.asyncio
    async def test_file_is_private(self, isolated_config: Path) -> None:
        store = FileCredentialStore("wx1")
        await store.save(_token())
        assert stat.S_IMODE(os.stat(store.path).st_mode) == 0o600

    @pytest.mark.asyncio
    async def test_save_none_removes_file(self, isolated_config: Path) -> None:
        store = FileCredentialStore("wx1")
        await store.save(_token())
        await store.save(None)
        assert not store.path.exists()
        await store.save(None)

    @pytest.mark.asyncio
    async def test_corrupt_file_loads_none(self, isolated_config: Path) -> None:
        store = FileCredentialStore("wx1")
        store.path.write_text("{broken", encoding="utf-8")
        assert await store.load() is None

    @pytest.mark.asyncio
    async def test_apps_are_isolated(self, isolated_config: Path) -> None:
        await FileCredentialStore("wx1").save(_token("A"))
        await FileCredentialStore("wx2").save(_token("B"))
        first = await FileCredentialStore("wx1").load()
        assert first is not None and first.access_token == "A"
