"""Token acquisition from the remote authorization endpoint.

:class:`TokenAcquirer` exchanges the application identity (app id and
secret) for a fresh access token. It performs a single unauthenticated
request and never retries: a rejected identity must surface immediately
rather than loop through the token-refresh path of the request pipeline.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional

from wxapi.client.async_client import AsyncClient
from wxapi.client.response import error_from_body
from wxapi.exceptions import DecodeError
from wxapi.models import AccessToken

logger = logging.getLogger(__name__)


class TokenAcquirer:
    """Fetch access tokens with the ``client_credential`` grant.

    Args:
        app_id: Application id.
        app_secret: Application secret.
        prefix: Base URL of the core API; the token endpoint is
            ``<prefix>token``.
        client: Transport used for the call.
    """

    def __init__(self, app_id: str, app_secret: str, prefix: str, client: AsyncClient) -> None:
        self._app_id = app_id
        self._app_secret = app_secret
        self._prefix = prefix
        self._client = client

    @property
    def token_url(self) -> str:
        return (
            f"{self._prefix}token?grant_type=client_credential"
            f"&appid={self._app_id}&secret={self._app_secret}"
        )

    async def fetch(self) -> dict[str, Any]:
        """Request a token and return the raw response without storing it.

        Returns:
            ``{"access_token": "...", "expires_in": 7200}``.

        Raises:
            APIError: If the endpoint answers with an ``errcode``.
            DecodeError: If the answer is not a token object with a numeric
                ``expires_in``.
            TransportError: On network failure or an unexpected status.
        """
        data = await self._client.send(self.token_url)
        error = error_from_body(data)
        if error is not None:
            raise error
        if not isinstance(data, Mapping) or "access_token" not in data:
            raise DecodeError(str(data))
        try:
            int(data["expires_in"])
        except (KeyError, TypeError, ValueError):
            raise DecodeError(str(data)) from None
        return dict(data)

    async def acquire(self, now: Optional[datetime] = None) -> AccessToken:
        """Fetch a token and wrap it in an :class:`AccessToken`.

        The expiry is ``now + expires_in - 10`` seconds.
        """
        data = await self.fetch()
        token = AccessToken.from_response(data, now)
        logger.info("Acquired access token for %s, valid until %s", self._app_id, token.expire_time.isoformat())
        return token
