"""Built-in CLI sub-commands for wxapi.

Shared helpers used by every command module: building an :class:`~wxapi.api.API`
from the options stored on the Typer context, and running work with
:class:`~wxapi.exceptions.WxAPIError` mapped to the matching exit code.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import typer

from wxapi.api import API
from wxapi.auth.credential_store import FileCredentialStore
from wxapi.config import load_client_config
from wxapi.exceptions import ConfigError, WxAPIError
from wxapi.models import ClientConfig
from wxapi.output import error


def config_from_context(ctx: typer.Context, require_identity: bool = True) -> ClientConfig:
    """Resolve the client config from root options, env vars and the config file."""
    obj = ctx.obj or {}
    config = load_client_config(
        app_id=obj.get("appid"),
        secret_source=obj.get("secret_source"),
        credential_mode=obj.get("mode"),
        timeout=obj.get("timeout"),
    )
    if require_identity and not config.app_id:
        raise ConfigError(
            "No app id configured. Use --appid, WXAPI_APPID or 'wxapi config set app_id ...'"
        )
    return config


def api_from_context(ctx: typer.Context) -> API:
    """Build a client whose token is cached in the per-app credential file."""
    config = config_from_context(ctx)
    return API.from_config(config, store=FileCredentialStore(config.app_id))


def guard(call: Callable[[], Any]) -> Any:
    """Invoke *call*, turning a :class:`WxAPIError` into an error message and exit code."""
    try:
        return call()
    except WxAPIError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def run(factory: Callable[[], Awaitable[Any]]) -> Any:
    """Run the coroutine returned by *factory* under :func:`guard`."""
    return guard(lambda: asyncio.run(factory()))
