"""Asynchronous transport for the request pipeline.

:class:`AsyncClient` wraps :class:`httpx.AsyncClient` and performs exactly
one HTTP exchange per :meth:`~AsyncClient.send` call: it merges the
instance-wide transport defaults with the per-call options, checks the
status code, and decodes the body with
:func:`~wxapi.client.response.decode_body`.

It knows nothing about access tokens. Credential handling and the
refresh-and-retry loop live in :meth:`wxapi.api.API.request`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

import httpx

from wxapi.client.response import decode_body
from wxapi.exceptions import ConfigError, TransportError

logger = logging.getLogger(__name__)

_SEND_OPTIONS = ("params", "headers", "json", "content", "data", "files", "timeout")


def merge_options(
    defaults: Optional[Mapping[str, Any]],
    options: Optional[Mapping[str, Any]],
) -> dict[str, Any]:
    """Merge per-call *options* over *defaults*.

    Per-call values win, except ``headers``, which are merged key by key
    so a call can add a header without dropping the default ones. Neither
    input is mutated.
    """
    merged: dict[str, Any] = dict(defaults or {})
    if merged.get("headers") is not None:
        merged["headers"] = dict(merged["headers"])
    for key, value in (options or {}).items():
        if key != "headers":
            merged[key] = value
        elif value:
            merged["headers"] = {**(merged.get("headers") or {}), **value}
    return merged


def post_json(data: Any) -> dict[str, Any]:
    """Return request options for POSTing *data* as a JSON body."""
    return {
        "method": "POST",
        "json": data,
        "headers": {"Content-Type": "application/json"},
    }


class AsyncClient:
    """Asynchronous HTTP transport.

    Args:
        transport_defaults: Request options applied to every call
            (``timeout``, ``headers``, ...). See :func:`merge_options`.
        http_client: Optional pre-built :class:`httpx.AsyncClient`. When
            omitted one is created on first use and closed by
            :meth:`aclose`. An injected client is never closed here.

    Example::

        async with AsyncClient({"timeout": 15}) as client:
            body = await client.send("https://example.com/api?x=1")
    """

    def __init__(
        self,
        transport_defaults: Optional[Mapping[str, Any]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.defaults: dict[str, Any] = dict(transport_defaults or {})
        self._client = http_client
        self._owns_client = http_client is None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncClient:
        self._ensure_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying :class:`httpx.AsyncClient` if this object created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=True)
            self._owns_client = True
        return self._client

    # ------------------------------------------------------------------ #
    # Sending
    # ------------------------------------------------------------------ #

    async def send(self, url: str, options: Optional[Mapping[str, Any]] = None) -> Any:
        """Perform one HTTP exchange and return the decoded body.

        Args:
            url: Absolute request URL, query string included.
            options: Per-call options. ``method`` (default ``GET``) plus any
                of ``params``, ``headers``, ``json``, ``content``, ``data``,
                ``files`` and ``timeout``.

        Returns:
            A decoded JSON value, a string, or raw bytes.

        Raises:
            TransportError: On network errors, timeouts, or a status code
                outside 200-204.
            ConfigError: If the merged options contain an unsupported key.
            DecodeError: If a JSON response cannot be decoded.
        """
        merged = merge_options(self.defaults, options)
        method = str(merged.pop("method", "GET")).upper()
        unknown = sorted(set(merged) - set(_SEND_OPTIONS))
        if unknown:
            raise ConfigError(f"Unsupported request option(s): {', '.join(unknown)}")
        kwargs = {key: merged[key] for key in _SEND_OPTIONS if merged.get(key) is not None}

        client = self._ensure_client()
        logger.debug("%s %s", method, _redact(url))
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportError(f"url: {_redact(url)}, {exc.__class__.__name__}: {exc}", url=_redact(url)) from exc

        if response.status_code < 200 or response.status_code > 204:
            raise TransportError(
                f"url: {_redact(url)}, status code: {response.status_code}",
                url=_redact(url),
                status_code=response.status_code,
            )

        content_type = response.headers.get("content-type", "")
        return decode_body(response.content, content_type)


def _redact(url: str) -> str:
    """Hide secrets in *url* before it is logged or put in an error message."""
    parsed = httpx.URL(url)
    for name in ("access_token", "secret"):
        if name in parsed.params:
            parsed = parsed.copy_set_param(name, "***")
    return str(parsed)
