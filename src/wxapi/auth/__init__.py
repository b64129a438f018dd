"""Access token management for wxapi.

The main entry points are:

- :class:`CredentialManager` -- ensures a valid token, acquiring one when
  allowed, and invalidates it after a rejection.
- :class:`TokenAcquirer` -- fetches tokens from the authorization endpoint.
- :class:`CredentialStore` -- pluggable token storage, with
  :class:`MemoryCredentialStore`, :class:`CallbackCredentialStore` and
  :class:`FileCredentialStore` implementations.

Typical usage::

    from wxapi.auth import FileCredentialStore

    api = API("appid", "secret", store=FileCredentialStore("appid"))
    token = await api.ensure_access_token()
"""

from wxapi.auth.acquirer import TokenAcquirer
from wxapi.auth.credential_store import (
    CallbackCredentialStore,
    CredentialStore,
    FileCredentialStore,
    MemoryCredentialStore,
)
from wxapi.auth.manager import CredentialManager

__all__ = [
    "CallbackCredentialStore",
    "CredentialManager",
    "CredentialStore",
    "FileCredentialStore",
    "MemoryCredentialStore",
    "TokenAcquirer",
]
