"""Exception hierarchy for wxapi.

All exceptions inherit from :class:`WxAPIError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`wxapi.exit_codes`.
The CLI entry point in :func:`wxapi.app.main` catches ``WxAPIError`` and
exits with that code.

Subclass hierarchy::

    WxAPIError (exit 1)
    +-- TransportError          (exit 6)
    +-- DecodeError             (exit 5)
    +-- APIError                (exit 5)
    |   +-- CredentialUnavailable (exit 3)
    +-- ExtensionError          (exit 10)
    |   +-- DuplicateMethodError  (exit 10)
    +-- DecryptionError         (exit 1)
    +-- ConfigError             (exit 1)
"""

from __future__ import annotations

from typing import Optional

from wxapi.exit_codes import (
    EXIT_API_ERROR,
    EXIT_CREDENTIAL_UNAVAILABLE,
    EXIT_EXTENSION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_TRANSPORT_ERROR,
)

INVALID_CREDENTIAL = 40001
"""Remote error code: the access token is invalid or not the latest."""

EXPIRED_CREDENTIAL = 42001
"""Remote error code: the access token has expired."""

CREDENTIAL_REJECTION_CODES = frozenset({INVALID_CREDENTIAL, EXPIRED_CREDENTIAL})
"""Error codes that trigger a transparent token refresh."""


class WxAPIError(Exception):
    """Base exception for all wxapi errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class TransportError(WxAPIError):
    """Raised on network failures, timeouts and HTTP statuses outside 200-204.

    Attributes:
        url: The requested URL.
        status_code: The HTTP status, or ``None`` when no response arrived.
    """

    exit_code = EXIT_TRANSPORT_ERROR

    def __init__(self, message: str, url: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class DecodeError(WxAPIError):
    """Raised when a JSON response body cannot be decoded.

    The raw payload is kept on :attr:`payload` for diagnostics.
    """

    exit_code = EXIT_API_ERROR

    def __init__(self, payload: str):
        super().__init__(f"JSON decode error. body is {payload}")
        self.payload = payload


class APIError(WxAPIError):
    """A well-formed error response (``{"errcode": ..., "errmsg": ...}``).

    Attributes:
        code: The remote ``errcode``.
        message: The remote ``errmsg``.
    """

    exit_code = EXIT_API_ERROR

    def __init__(self, code: int, message: str = ""):
        super().__init__(f"[{code}] {message}" if message else f"[{code}]")
        self.code = code
        self.message = message

    @property
    def is_credential_rejection(self) -> bool:
        """Whether the code means the presented access token was rejected."""
        return self.code in CREDENTIAL_REJECTION_CODES


class CredentialUnavailable(APIError):
    """No valid access token and the client may not acquire one itself.

    Carries :data:`INVALID_CREDENTIAL` as its code so callers can treat it
    like a server-side rejection.
    """

    exit_code = EXIT_CREDENTIAL_UNAVAILABLE

    def __init__(self, message: str = "access token unavailable"):
        super().__init__(INVALID_CREDENTIAL, message)


class ExtensionError(WxAPIError):
    """Raised when an extension cannot be loaded or has an invalid method set."""

    exit_code = EXIT_EXTENSION_ERROR


class DuplicateMethodError(ExtensionError):
    """Raised when an extension tries to install a name that already exists."""

    def __init__(self, name: str):
        super().__init__(f"Don't allow override existed method. method: {name}")
        self.name = name


class DecryptionError(WxAPIError):
    """Raised when encrypted data cannot be decrypted or parsed."""

    def __init__(self, message: str = "decryption failed"):
        super().__init__(message)


class ConfigError(WxAPIError):
    """Raised for configuration problems (missing identity, bad files, bad sources)."""
