"""Access token lifecycle -- ensure, acquire and invalidate.

:class:`CredentialManager` is the only component that decides where a
usable token comes from:

* :meth:`~CredentialManager.ensure_credential` is the fast path. It asks
  the :class:`~wxapi.auth.credential_store.CredentialStore` and returns the
  cached token when it is still valid, without touching the network.
* :meth:`~CredentialManager.acquire_credential` is the slow path. One call
  to the authorization endpoint, then an explicit save.
* :meth:`~CredentialManager.invalidate_credential` clears the store after
  the server rejected a token.

In :attr:`~wxapi.models.CredentialMode.EXTERNALLY_SUPPLIED` mode the manager
never acquires: a missing or expired token raises
:class:`~wxapi.exceptions.CredentialUnavailable`.

See Also:
    :meth:`wxapi.api.API.request` -- the only caller of
    :meth:`~CredentialManager.invalidate_credential`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, Optional

from wxapi.auth.acquirer import TokenAcquirer
from wxapi.auth.credential_store import CredentialStore
from wxapi.exceptions import CredentialUnavailable
from wxapi.models import AccessToken, CredentialMode, utcnow

logger = logging.getLogger(__name__)


class CredentialManager:
    """Produce a currently valid :class:`AccessToken` on demand.

    Args:
        store: Where the token is cached.
        acquirer: Fetches new tokens from the remote endpoint.
        mode: Whether this client may acquire tokens itself.
        clock: Returns the current timezone-aware UTC time.
    """

    def __init__(
        self,
        store: CredentialStore,
        acquirer: TokenAcquirer,
        mode: CredentialMode = CredentialMode.SELF_MANAGED,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.store = store
        self.mode = mode
        self._acquirer = acquirer
        self._clock = clock or utcnow

    @property
    def self_managed(self) -> bool:
        return self.mode is CredentialMode.SELF_MANAGED

    async def ensure_credential(self) -> AccessToken:
        """Return the cached token if valid, otherwise obtain a new one.

        Raises:
            CredentialUnavailable: In externally-supplied mode when the store
                holds no valid token. No network call is made.
        """
        token = AccessToken.coerce(await self.store.load())
        if token is not None and token.is_valid(self._clock()):
            return token
        if not self.self_managed:
            raise CredentialUnavailable("access token missing or expired in credential store")
        logger.debug("No valid cached access token, acquiring a new one")
        return await self.acquire_credential()

    async def acquire_credential(self) -> AccessToken:
        """Fetch a new token from the authorization endpoint and store it.

        Errors from the transport or the endpoint propagate unchanged.
        """
        token = await self._acquirer.acquire(self._clock())
        await self.store.save(token)
        return token

    async def invalidate_credential(self) -> None:
        """Clear the cached token."""
        await self.store.save(None)

    async def fetch_access_token_from_remote(self) -> dict[str, Any]:
        """Fetch a token response without storing it."""
        return await self._acquirer.fetch()
