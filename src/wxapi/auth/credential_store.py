"""Pluggable storage for the cached access token.

The client never keeps the token itself: every lookup and every update goes
through a :class:`CredentialStore`. Swapping the store is how a deployment
shares one token between several processes or machines.

Implementations:

- :class:`MemoryCredentialStore` -- in-process holder, the default.
  Single-process only.
- :class:`CallbackCredentialStore` -- wraps embedder-supplied coroutine
  functions, e.g. ones backed by Redis or a database.
- :class:`FileCredentialStore` -- JSON file under the data directory,
  written atomically with ``0o600`` permissions. Used by the CLI.

``load`` and ``save`` may be awaited concurrently by many in-flight requests.
None of these stores provides cross-process mutual exclusion around token
acquisition; that is the embedder's responsibility.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from wxapi.config import atomic_write, get_data_dir
from wxapi.models import AccessToken

logger = logging.getLogger(__name__)

LoadHook = Callable[[], Awaitable[Any]]
SaveHook = Callable[[Optional[AccessToken]], Awaitable[None]]


class CredentialStore(ABC):
    """Abstract load/save interface for the cached :class:`AccessToken`."""

    @abstractmethod
    async def load(self) -> Optional[AccessToken]:
        """Return the cached token, or ``None`` when nothing is stored."""
        ...

    @abstractmethod
    async def save(self, token: Optional[AccessToken]) -> None:
        """Replace the cached token. ``None`` clears it."""
        ...


class MemoryCredentialStore(CredentialStore):
    """Keep the token in this object.

    Suitable for a single process only. When ``WXAPI_ENV=production`` a
    warning is logged on the first save, since cluster or multi-machine
    deployments each end up fetching their own token and invalidating
    each other's.
    """

    def __init__(self) -> None:
        self._token: Optional[AccessToken] = None
        self._warned = False

    async def load(self) -> Optional[AccessToken]:
        return self._token

    async def save(self, token: Optional[AccessToken]) -> None:
        self._token = token
        if not self._warned and os.environ.get("WXAPI_ENV") == "production":
            self._warned = True
            logger.warning(
                "Access token is stored in memory; use a shared credential "
                "store when running in a cluster or on several machines"
            )


class CallbackCredentialStore(CredentialStore):
    """Adapt a pair of embedder coroutine functions to :class:`CredentialStore`.

    *load_token* may return an :class:`AccessToken`, a mapping (for
    instance one decoded from JSON) or ``None``; mappings are converted
    with :meth:`AccessToken.coerce`. A mapping that does not describe a
    token (missing or null fields) loads as ``None``.

    Example::

        async def load_token():
            raw = await redis.get("wx:token")
            return json.loads(raw) if raw else None

        async def save_token(token):
            if token is None:
                await redis.delete("wx:token")
            else:
                await redis.set("wx:token", token.model_dump_json())

        store = CallbackCredentialStore(load_token, save_token)
    """

    def __init__(self, load_token: LoadHook, save_token: SaveHook) -> None:
        self._load_token = load_token
        self._save_token = save_token

    async def load(self) -> Optional[AccessToken]:
        value = await self._load_token()
        try:
            return AccessToken.coerce(value)
        except ValidationError as exc:
            logger.debug("Ignoring malformed stored access token: %s", exc)
            return None

    async def save(self, token: Optional[AccessToken]) -> None:
        await self._save_token(token)


def _credentials_dir() -> Path:
    """Return the credentials directory, creating it if needed."""
    path = get_data_dir() / "credentials"
    path.mkdir(parents=True, exist_ok=True)
    return path


class FileCredentialStore(CredentialStore):
    """Persist the token as JSON in ``<data_dir>/credentials/<name>.json``.

    Writes are atomic (temp file, fsync, rename) and the file is created
    with ``0o600`` permissions. Saving ``None`` removes the file. A file
    that cannot be read or parsed loads as ``None`` so the client simply
    acquires a fresh token. File access runs in a worker thread via
    :func:`asyncio.to_thread` so the event loop is not blocked.

    Args:
        name: Identifier used to derive the file name, typically the app id.
    """

    def __init__(self, name: str) -> None:
        self._path = _credentials_dir() / f"{name}.json"

    @property
    def path(self) -> Path:
        """The filesystem path of the credential file."""
        return self._path

    async def load(self) -> Optional[AccessToken]:
        return await asyncio.to_thread(self._read)

    async def save(self, token: Optional[AccessToken]) -> None:
        await asyncio.to_thread(self._write, token)

    def _read(self) -> Optional[AccessToken]:
        if not self._path.is_file():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return AccessToken.model_validate(data)
        except (json.JSONDecodeError, ValueError, OSError) as exc:
            logger.debug("Ignoring unreadable credential file %s: %s", self._path, exc)
            return None

    def _write(self, token: Optional[AccessToken]) -> None:
        if token is None:
            if self._path.is_file():
                self._path.unlink()
            return
        text = json.dumps(token.model_dump(mode="json"), indent=2) + "\n"
        atomic_write(self._path, text, mode=0o600)
        logger.debug("Saved access token to %s", self._path)
