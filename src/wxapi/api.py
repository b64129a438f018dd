"""The shared API client -- credential lifecycle plus the retrying request pipeline.

:class:`API` is what endpoint modules extend. It owns three collaborators:

* an :class:`~wxapi.client.async_client.AsyncClient` that performs one
  HTTP exchange and decodes the body,
* a :class:`~wxapi.auth.manager.CredentialManager` that hands out valid
  access tokens,
* a per-class :class:`~wxapi.extensions.registry.ExtensionRegistry` that
  installs capability sets without letting them overwrite each other.

:meth:`API.request` is the single authenticated-request primitive. When the
server rejects the access token (``errcode`` 40001 or 42001) it invalidates
the cached token, acquires a new one, rewrites the ``access_token`` query
parameter and tries again, at most ``retries`` times.

Example::

    async with API("appid", "secret") as api:
        token = await api.ensure_access_token()
        url = f"{api.endpoints.prefix}menu/get?access_token={token.access_token}"
        menu = await api.request(url)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any, Optional

import httpx

from wxapi.auth.acquirer import TokenAcquirer
from wxapi.auth.credential_store import CredentialStore, MemoryCredentialStore
from wxapi.auth.manager import CredentialManager
from wxapi.client.async_client import AsyncClient
from wxapi.client.response import error_from_body
from wxapi.crypto import decrypt_payload, verify_origin_signature
from wxapi.extensions import ExtensionRegistry, MethodSet, install_builtin_extensions
from wxapi.models import AccessToken, ClientConfig, CredentialMode, Endpoints

logger = logging.getLogger(__name__)

DEFAULT_RETRIES = 3


class API:
    """Client for the platform API.

    Args:
        app_id: Application id.
        app_secret: Application secret.
        store: Where the access token is cached. Defaults to a
            :class:`~wxapi.auth.credential_store.MemoryCredentialStore`,
            which only suits a single process.
        credential_mode: ``SELF_MANAGED`` lets the client fetch tokens;
            ``EXTERNALLY_SUPPLIED`` only reads *store* and fails when it has
            no valid token.
        transport_defaults: Default request options (``timeout``,
            ``headers``, ...). Per-call options win; headers merge.
        endpoints: Base URL prefixes of the remote services.
        max_retries: Default token-refresh budget of :meth:`request`.
        http_client: Optional :class:`httpx.AsyncClient` to send requests with.
        clock: Returns the current timezone-aware UTC time.
    """

    def __init__(
        self,
        app_id: str,
        app_secret: str,
        store: Optional[CredentialStore] = None,
        *,
        credential_mode: CredentialMode = CredentialMode.SELF_MANAGED,
        transport_defaults: Optional[Mapping[str, Any]] = None,
        endpoints: Optional[Endpoints] = None,
        max_retries: int = DEFAULT_RETRIES,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.app_id = app_id
        self.endpoints = endpoints or Endpoints()
        self.max_retries = max_retries
        self._client = AsyncClient(transport_defaults, http_client=http_client)
        acquirer = TokenAcquirer(app_id, app_secret, self.endpoints.prefix, self._client)
        self.credentials = CredentialManager(
            store or MemoryCredentialStore(),
            acquirer,
            mode=credential_mode,
            clock=clock,
        )

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        store: Optional[CredentialStore] = None,
        **kwargs: Any,
    ) -> API:
        """Build a client from a :class:`~wxapi.models.ClientConfig`."""
        return cls(
            config.app_id,
            config.app_secret,
            store,
            credential_mode=config.credential_mode,
            transport_defaults=config.transport_defaults,
            endpoints=config.endpoints,
            max_retries=config.max_retries,
            **kwargs,
        )

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> API:
        await self._client.__aenter__()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    @property
    def credential_mode(self) -> CredentialMode:
        return self.credentials.mode

    @property
    def transport_defaults(self) -> dict[str, Any]:
        return self._client.defaults

    def set_opts(self, opts: Mapping[str, Any]) -> None:
        """Replace the default request options, e.g. ``api.set_opts({"timeout": 15})``."""
        self._client.defaults = dict(opts)

    # ------------------------------------------------------------------ #
    # Access token
    # ------------------------------------------------------------------ #

    async def ensure_access_token(self) -> AccessToken:
        """Return a valid access token, acquiring one if allowed.

        Raises:
            CredentialUnavailable: In externally-supplied mode without a
                valid stored token.
        """
        return await self.credentials.ensure_credential()

    async def get_access_token(self) -> AccessToken:
        """Fetch a new access token and store it, regardless of the cached one."""
        return await self.credentials.acquire_credential()

    async def get_access_token_from_remote(self) -> dict[str, Any]:
        """Fetch a token response from the server without storing it."""
        return await self.credentials.fetch_access_token_from_remote()

    async def invalidate_access_token(self) -> None:
        """Clear the cached access token."""
        await self.credentials.invalidate_credential()

    # ------------------------------------------------------------------ #
    # Request pipeline
    # ------------------------------------------------------------------ #

    async def request(
        self,
        url: str,
        options: Optional[Mapping[str, Any]] = None,
        retries: Optional[int] = None,
    ) -> Any:
        """Perform an API call, refreshing the access token when it is rejected.

        Args:
            url: Absolute URL, normally carrying an ``access_token`` query
                parameter.
            options: Per-call request options (``method``, ``json``,
                ``headers``, ``timeout``, ...).
            retries: Maximum number of token refreshes for this call.
                Defaults to :attr:`max_retries`.

        Returns:
            The decoded JSON body, the body text for undecodable
            ``text/plain``, or raw bytes for other content types.

        Raises:
            APIError: For any non-zero ``errcode`` that is not retried.
            TransportError: On network failure or a status outside 200-204.
            DecodeError: If a JSON response cannot be decoded.
        """
        remaining = self.max_retries if retries is None else retries
        while True:
            data = await self._client.send(url, options)
            error = error_from_body(data)
            if error is None:
                return data

            if not (error.is_credential_rejection and remaining > 0 and self.credentials.self_managed):
                raise error

            remaining -= 1
            logger.warning(
                "Access token rejected (errcode %s), refreshing; %d retries left",
                error.code,
                remaining,
            )
            await self.credentials.invalidate_credential()
            token = await self.credentials.acquire_credential()
            url = replace_access_token(url, token.access_token)

    # ------------------------------------------------------------------ #
    # Stateless helpers
    # ------------------------------------------------------------------ #

    def check_signature(self, token: str, timestamp: str, nonce: str, signature: str) -> bool:
        """Verify that a callback originates from the platform server."""
        return verify_origin_signature(token, timestamp, nonce, signature)

    def decrypt_data_for_mini_program(self, session_key: str, iv: str, encrypted_data: str) -> Any:
        """Decrypt mini-program user data. See :func:`wxapi.crypto.decrypt_payload`."""
        return decrypt_payload(session_key, iv, encrypted_data)

    # ------------------------------------------------------------------ #
    # Extensions
    # ------------------------------------------------------------------ #

    @classmethod
    def extensions(cls) -> ExtensionRegistry:
        """Return the registry for this exact class, creating it on first use.

        Subclasses get their own registry, so extending a subclass never
        changes :class:`API` itself.
        """
        registry = cls.__dict__.get("_extension_registry")
        if registry is None:
            registry = ExtensionRegistry(cls)
            cls._extension_registry = registry
        return registry

    @classmethod
    def extend(cls, method_set: MethodSet, source: Optional[str] = None) -> list[str]:
        """Install a capability set on this class.

        Raises:
            DuplicateMethodError: If any name already exists on the class.
                Nothing from the batch is installed.
        """
        return cls.extensions().register(method_set, source=source)


def replace_access_token(url: str, access_token: str) -> str:
    """Return *url* with its ``access_token`` query parameter set to *access_token*.

    Other query parameters and the path are kept. A URL without an
    ``access_token`` parameter is returned unchanged.
    """
    parsed = httpx.URL(url)
    if "access_token" not in parsed.params:
        return url
    return str(parsed.copy_set_param("access_token", access_token))


install_builtin_extensions(API.extensions())
