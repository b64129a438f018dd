"""Pydantic models shared across wxapi.

**Credential model**:
    :class:`AccessToken` -- a token value plus its absolute expiry.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`CredentialMode`, :class:`Endpoints` and :class:`ClientConfig`.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

EXPIRY_SAFETY_MARGIN = 10
"""Seconds subtracted from the server-declared lifetime of a new token."""


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- Credential ---


class AccessToken(BaseModel):
    """A short-lived access token and the instant it stops being usable.

    Example::

        token = AccessToken(access_token="T1", expire_time=utcnow() + timedelta(hours=2))
        assert token.is_valid()
    """

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    expire_time: datetime = Field(alias="expireTime")

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """Return ``True`` if the token is non-empty and not yet expired.

        Args:
            now: The instant to compare against. Defaults to the current
                UTC time.
        """
        if not self.access_token:
            return False
        now = now or utcnow()
        expires = self.expire_time
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return now < expires

    @classmethod
    def from_response(cls, data: Mapping[str, Any], now: Optional[datetime] = None) -> AccessToken:
        """Build a token from an authorization response.

        The expiry is pulled forward by :data:`EXPIRY_SAFETY_MARGIN` seconds
        to absorb network latency and clock skew.

        Args:
            data: ``{"access_token": ..., "expires_in": seconds}``.
            now: The instant the response was received.
        """
        now = now or utcnow()
        lifetime = int(data["expires_in"]) - EXPIRY_SAFETY_MARGIN
        return cls(
            access_token=data["access_token"],
            expire_time=now + timedelta(seconds=lifetime),
        )

    @classmethod
    def coerce(cls, value: Any) -> Optional[AccessToken]:
        """Normalise whatever a credential store returned into a token.

        Accepts an :class:`AccessToken`, a mapping using either snake_case
        or camelCase keys, or ``None``. A ``expire_time`` given as a number
        is read as epoch milliseconds.
        """
        if value is None or isinstance(value, AccessToken):
            return value
        if isinstance(value, Mapping):
            data = dict(value)
            for key in ("expire_time", "expireTime"):
                if isinstance(data.get(key), (int, float)):
                    data[key] = datetime.fromtimestamp(data[key] / 1000, tz=timezone.utc)
            return cls.model_validate(data)
        raise TypeError(f"Cannot build an AccessToken from {type(value).__name__}")


# --- Configuration ---


class CredentialMode(str, enum.Enum):
    """Whether the client may obtain access tokens on its own."""

    SELF_MANAGED = "self_managed"
    EXTERNALLY_SUPPLIED = "externally_supplied"


class Endpoints(BaseModel):
    """Base URL prefixes of the remote services."""

    prefix: str = "https://api.weixin.qq.com/cgi-bin/"
    sns_prefix: str = "https://api.weixin.qq.com/sns/"
    mp_prefix: str = "https://mp.weixin.qq.com/cgi-bin/"
    file_server_prefix: str = "http://file.api.weixin.qq.com/cgi-bin/"
    pay_prefix: str = "https://api.weixin.qq.com/pay/"
    merchant_prefix: str = "https://api.weixin.qq.com/merchant/"
    customservice_prefix: str = "https://api.weixin.qq.com/customservice/"
    wxa_prefix: str = "https://api.weixin.qq.com/wxa/"


class ClientConfig(BaseModel):
    """Per-instance client configuration.

    Loaded and saved by :func:`~wxapi.config.load_client_config` and
    :func:`~wxapi.config.save_client_config`.
    """

    app_id: str = Field(default="", description="Application id")
    app_secret: str = Field(default="", description="Application secret")
    credential_mode: CredentialMode = Field(
        default=CredentialMode.SELF_MANAGED,
        description="self_managed or externally_supplied",
    )
    transport_defaults: dict[str, Any] = Field(
        default_factory=dict,
        description="Default httpx request options, e.g. {'timeout': 15}",
    )
    endpoints: Endpoints = Field(default_factory=Endpoints)
    max_retries: int = Field(default=3, ge=0, description="Token refresh retry budget")
