"""Config commands -- view and edit ``~/.config/wxapi/config.json``.

Example::

    wxapi config set app_id wx1234567890
    wxapi config set transport_defaults '{"timeout": 15}'
    wxapi config show
"""

from __future__ import annotations

import json
from typing import Any

import typer

from wxapi.commands import config_from_context, guard
from wxapi.config import config_path, update_config_file
from wxapi.output import info, print_table, success

config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration (flags, env vars and file combined)."""
    config = guard(lambda: config_from_context(ctx, require_identity=False))
    data = config.model_dump(mode="json")
    if data.get("app_secret"):
        data["app_secret"] = "********"
    rows = [
        [key, json.dumps(value) if isinstance(value, (dict, list)) else str(value)]
        for key, value in data.items()
    ]
    print_table(["key", "value"], rows, title="wxapi config")
    info(f"Config file: {config_path()}")


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key, e.g. app_id or credential_mode."),
    value: str = typer.Argument(help="New value. JSON is accepted for objects and numbers."),
) -> None:
    """Set a value in the config file."""
    guard(lambda: update_config_file({key: _parse_value(key, value)}))
    success(f"Set {key}.")


_STRING_KEYS = ("app_id", "app_secret", "credential_mode")


def _parse_value(key: str, value: str) -> Any:
    """Parse *value* as JSON when possible, otherwise keep the string."""
    if key in _STRING_KEYS:
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value
