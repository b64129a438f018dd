"""Token commands -- fetch, inspect and clear the cached access token.

The token is cached in ``<data_dir>/credentials/<appid>.json``. The file
can be shared with long-running processes that use
:class:`~wxapi.auth.credential_store.FileCredentialStore` in
externally-supplied mode, so an operator or a cron job can keep it fresh::

    wxapi token fetch            # acquire and store a new token
    wxapi token show             # validity and expiry of the cached token
    wxapi token clear            # remove it
"""

from __future__ import annotations

import typer

from wxapi.auth.credential_store import FileCredentialStore
from wxapi.commands import api_from_context, config_from_context, guard, run
from wxapi.models import AccessToken
from wxapi.output import info, print_table, success, suggest, warning

token_app = typer.Typer(no_args_is_help=True)


def _mask(value: str) -> str:
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}...{value[-4:]}"


def _rows(app_id: str, token: AccessToken, reveal: bool) -> list[list[str]]:
    return [
        ["app_id", app_id],
        ["access_token", token.access_token if reveal else _mask(token.access_token)],
        ["expire_time", token.expire_time.isoformat()],
        ["valid", "yes" if token.is_valid() else "no"],
    ]


@token_app.command("fetch")
def token_fetch(
    ctx: typer.Context,
    reveal: bool = typer.Option(False, "--reveal", help="Print the full token value."),
) -> None:
    """Acquire a new access token and store it, replacing any cached one."""

    async def _fetch() -> AccessToken:
        async with api_from_context(ctx) as api:
            return await api.get_access_token()

    token = run(_fetch)
    app_id = guard(lambda: config_from_context(ctx).app_id)
    print_table(["field", "value"], _rows(app_id, token, reveal), title="Access token")
    success("Access token stored.")


@token_app.command("show")
def token_show(
    ctx: typer.Context,
    reveal: bool = typer.Option(False, "--reveal", help="Print the full token value."),
) -> None:
    """Show the cached access token and whether it is still valid."""
    app_id = guard(lambda: config_from_context(ctx).app_id)
    token = run(FileCredentialStore(app_id).load)
    if token is None:
        info(f"No access token cached for {app_id}.")
        suggest("Fetch one: wxapi token fetch")
        raise typer.Exit(code=1)
    print_table(["field", "value"], _rows(app_id, token, reveal), title="Access token")
    if not token.is_valid():
        warning(f"Cached access token for {app_id} has expired.")
        suggest("Fetch a new one: wxapi token fetch")


@token_app.command("clear")
def token_clear(ctx: typer.Context) -> None:
    """Remove the cached access token."""
    app_id = guard(lambda: config_from_context(ctx).app_id)
    run(lambda: FileCredentialStore(app_id).save(None))
    success(f"Cleared access token for {app_id}.")
