"""Typer application and CLI entry point for wxapi.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It registers the built-in sub-commands, invokes the
Typer app and maps :class:`~wxapi.exceptions.WxAPIError` to its exit code.

See Also:
    :mod:`wxapi.config`: Configuration precedence used by every command.
    :mod:`wxapi.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any, Optional

import typer

from wxapi import __version__
from wxapi.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="wxapi",
    help="Access-token aware client for the WeChat API.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"wxapi {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    appid: Optional[str] = typer.Option(None, "--appid", help="Application id."),
    secret_source: Optional[str] = typer.Option(
        None, "--secret-source", help="Where to read the app secret: env:VAR, file:/path or prompt."
    ),
    mode: Optional[str] = typer.Option(
        None, "--mode", help="Credential mode: self_managed or externally_supplied."
    ),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Request timeout in seconds."),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~wxapi.output.OutputManager`, configures
    logging, and stores the identity options in ``ctx.obj`` for
    :func:`~wxapi.commands.config_from_context`.
    """
    from wxapi.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["appid"] = appid
    ctx.obj["secret_source"] = secret_source
    ctx.obj["mode"] = mode
    ctx.obj["timeout"] = timeout


def _configure_logging(verbose: bool) -> None:
    """Send library logs to stderr: DEBUG with ``--verbose``, WARNING otherwise."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("wxapi").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def register_commands() -> None:
    """Attach the built-in sub-commands to :data:`app`. Safe to call repeatedly."""
    if getattr(app, "_wxapi_registered", False):
        return

    from wxapi.commands.config import config_app
    from wxapi.commands.token import token_app
    from wxapi.commands.tools import call_command, decrypt_command, verify_signature_command

    app.add_typer(token_app, name="token", help="Access token management.")
    app.add_typer(config_app, name="config", help="Configuration management.")
    app.command("call")(call_command)
    app.command("verify-signature")(verify_signature_command)
    app.command("decrypt")(decrypt_command)
    app._wxapi_registered = True  # type: ignore[attr-defined]


def main() -> None:
    """CLI entry point invoked by the ``wxapi`` console script.

    Unhandled :class:`~wxapi.exceptions.WxAPIError` instances cause a clean
    exit with the error's ``exit_code``; anything else exits with
    :data:`~wxapi.exit_codes.EXIT_GENERIC_FAILURE`.
    """
    _setup_signal_handlers()
    try:
        register_commands()
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from wxapi.exceptions import WxAPIError
        from wxapi.output import error

        if isinstance(exc, WxAPIError):
            error(str(exc))
            sys.exit(exc.exit_code)
        logging.getLogger(__name__).exception("Unexpected error")
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
