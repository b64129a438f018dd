"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for wxapi:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.wxapi/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Client config** -- A single :class:`~wxapi.models.ClientConfig` JSON
  file holding the application identity, credential mode and transport
  defaults.
* **Precedence resolution** -- :func:`load_client_config` merges explicit
  overrides, environment variables and the config file.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars, files or interactive prompts.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional

from wxapi.exceptions import ConfigError
from wxapi.models import ClientConfig, CredentialMode

_APP_NAME = "wxapi"
_CONFIG_FILENAME = "config.json"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/wxapi/`` (default ``~/.config/wxapi/``).
    On macOS/Windows: ``~/.wxapi/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (stored credentials), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/wxapi/`` (default ``~/.local/share/wxapi/``).
    On macOS/Windows: ``~/.wxapi/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. When *mode* is
    given, permissions are applied before any content is written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Client config ---


def config_path() -> Path:
    """Path to the client config file."""
    return get_config_dir() / _CONFIG_FILENAME


def read_config_file() -> ClientConfig:
    """Load the client configuration file.

    Returns:
        The deserialised :class:`~wxapi.models.ClientConfig`, or a default
        instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = config_path()
    if not path.is_file():
        return ClientConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ClientConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_client_config(config: ClientConfig) -> None:
    """Persist the client configuration atomically with ``0o600`` permissions.

    The file may contain the application secret, so it is never
    world-readable.
    """
    data = config.model_dump(mode="json")
    atomic_write(config_path(), json.dumps(data, indent=2) + "\n", mode=0o600)


def load_client_config(
    app_id: Optional[str] = None,
    secret_source: Optional[str] = None,
    credential_mode: Optional[str] = None,
    timeout: Optional[float] = None,
) -> ClientConfig:
    """Resolve the effective client configuration.

    Precedence (high to low):
        1. Explicit arguments (CLI flags)
        2. Environment variables (``WXAPI_APPID``, ``WXAPI_SECRET``,
           ``WXAPI_SECRET_SOURCE``, ``WXAPI_CREDENTIAL_MODE``,
           ``WXAPI_TIMEOUT``)
        3. The config file
        4. Defaults

    Args:
        app_id: Application id override.
        secret_source: Credential source descriptor for the secret
            (see :func:`resolve_credential`).
        credential_mode: ``self_managed`` or ``externally_supplied``.
        timeout: Default transport timeout in seconds.

    Raises:
        ConfigError: If a value is malformed or a secret source cannot be
            resolved.
    """
    config = read_config_file()

    env_app_id = os.environ.get("WXAPI_APPID")
    if app_id is not None:
        config.app_id = app_id
    elif env_app_id:
        config.app_id = env_app_id

    source = secret_source or os.environ.get("WXAPI_SECRET_SOURCE")
    env_secret = os.environ.get("WXAPI_SECRET")
    if source:
        config.app_secret = resolve_credential(source)
    elif env_secret:
        config.app_secret = env_secret

    mode = credential_mode or os.environ.get("WXAPI_CREDENTIAL_MODE")
    if mode:
        try:
            config.credential_mode = CredentialMode(mode)
        except ValueError:
            choices = ", ".join(m.value for m in CredentialMode)
            raise ConfigError(f"Unknown credential mode '{mode}' (expected one of: {choices})") from None

    env_timeout = os.environ.get("WXAPI_TIMEOUT")
    if timeout is None and env_timeout:
        try:
            timeout = float(env_timeout)
        except ValueError:
            raise ConfigError(f"WXAPI_TIMEOUT must be a number, got '{env_timeout}'") from None
    if timeout is not None:
        config.transport_defaults = {**config.transport_defaults, "timeout": timeout}

    return config


def update_config_file(values: dict[str, Any]) -> ClientConfig:
    """Apply top-level field updates to the config file and save it.

    Raises:
        ConfigError: If a key is unknown or the result fails validation.
    """
    config = read_config_file()
    data = config.model_dump(mode="json")
    for key in values:
        if key not in ClientConfig.model_fields:
            raise ConfigError(f"Unknown config key '{key}'")
    data.update(values)
    try:
        updated = ClientConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid config value: {exc}") from exc
    save_client_config(updated)
    return updated


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a secret from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts user interactively (requires a TTY)

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter app secret: ")

    raise ConfigError(f"Unknown credential source format: {source}")
