"""wxapi -- access-token management and a self-healing request pipeline for the WeChat API.

The package keeps a short-lived access token valid on behalf of every
endpoint call. Endpoint modules build a URL and a body, then call
:meth:`API.request`; the client obtains and caches the token, and
transparently refreshes it when the server reports it invalid or expired.

Typical usage::

    from wxapi import API, FileCredentialStore

    async with API("appid", "secret", store=FileCredentialStore("appid")) as api:
        token = await api.ensure_access_token()

Modules:
    api: The :class:`API` client and its request pipeline.
    auth: Token acquisition, lifecycle and pluggable stores.
    client: HTTP transport and response decoding.
    extensions: Conflict-free capability sets composed onto :class:`API`.
    crypto: Signature verification and payload decryption.
    config: XDG-aware configuration with precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
"""

__version__ = "0.1.0"

from wxapi.api import API
from wxapi.auth import (
    CallbackCredentialStore,
    CredentialStore,
    FileCredentialStore,
    MemoryCredentialStore,
)
from wxapi.client import post_json
from wxapi.crypto import decrypt_payload, verify_origin_signature
from wxapi.exceptions import (
    APIError,
    ConfigError,
    CredentialUnavailable,
    DecodeError,
    DecryptionError,
    DuplicateMethodError,
    ExtensionError,
    TransportError,
    WxAPIError,
)
from wxapi.extensions import Extension
from wxapi.models import AccessToken, ClientConfig, CredentialMode, Endpoints

__all__ = [
    "API",
    "APIError",
    "AccessToken",
    "CallbackCredentialStore",
    "ClientConfig",
    "ConfigError",
    "CredentialMode",
    "CredentialStore",
    "CredentialUnavailable",
    "DecodeError",
    "DecryptionError",
    "DuplicateMethodError",
    "Endpoints",
    "Extension",
    "ExtensionError",
    "FileCredentialStore",
    "MemoryCredentialStore",
    "TransportError",
    "WxAPIError",
    "decrypt_payload",
    "post_json",
    "verify_origin_signature",
]
