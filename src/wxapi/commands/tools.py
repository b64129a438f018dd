"""Request and helper commands.

* ``wxapi call`` -- authenticated call through the request pipeline.
* ``wxapi verify-signature`` -- check a callback signature.
* ``wxapi decrypt`` -- decrypt mini-program user data.

Example::

    wxapi call menu/get
    wxapi call https://api.weixin.qq.com/wxa/getwxacode --method POST --data '{"path": "pages/index"}'
"""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx
import typer

from wxapi.client.async_client import post_json
from wxapi.commands import api_from_context, guard, run
from wxapi.crypto import decrypt_payload, verify_origin_signature
from wxapi.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE
from wxapi.output import debug, error, format_response, success


def call_command(
    ctx: typer.Context,
    target: str = typer.Argument(help="Absolute URL, or a path relative to the core API prefix."),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="JSON request body."),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-P", help="Extra query parameter as key=value. Repeatable."
    ),
) -> None:
    """Call an endpoint with the access token appended as a query parameter."""
    body = _parse_body(data)
    params = _parse_params(param or [])

    async def _call() -> Any:
        async with api_from_context(ctx) as api:
            base = target if "://" in target else f"{api.endpoints.prefix}{target.lstrip('/')}"
            token = await api.ensure_access_token()
            params["access_token"] = token.access_token
            # The token must live in the URL itself so a refresh can rewrite it.
            url = str(httpx.URL(base).copy_merge_params(params))
            options: dict[str, Any] = post_json(body) if body is not None else {}
            options["method"] = method.upper()
            debug(f"{options['method']} {base}")
            return await api.request(url, options)

    format_response(run(_call))


def verify_signature_command(
    token: str = typer.Argument(help="Token configured on the platform console."),
    timestamp: str = typer.Argument(help="timestamp query parameter."),
    nonce: str = typer.Argument(help="nonce query parameter."),
    signature: str = typer.Argument(help="signature query parameter."),
) -> None:
    """Check that a callback signature was produced by the platform server."""
    if verify_origin_signature(token, timestamp, nonce, signature):
        success("Signature is valid.")
        return
    error("Signature does not match.")
    raise typer.Exit(code=EXIT_GENERIC_FAILURE)


def decrypt_command(
    session_key: str = typer.Argument(help="Base64 session key."),
    iv: str = typer.Argument(help="Base64 initialisation vector."),
    encrypted_data: str = typer.Argument(help="Base64 encrypted data."),
) -> None:
    """Decrypt mini-program user data and print it as JSON."""
    format_response(guard(lambda: decrypt_payload(session_key, iv, encrypted_data)))


def _parse_body(data: Optional[str]) -> Any:
    if data is None:
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError:
        error("--data must be valid JSON.")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None


def _parse_params(pairs: list[str]) -> dict[str, str]:
    params: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            error(f"Invalid --param '{pair}', expected key=value.")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        params[key] = value
    return params
