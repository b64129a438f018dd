"""HTTP transport and response decoding for wxapi.

Classes and helpers:
    :class:`AsyncClient` -- one-shot async transport backed by :class:`httpx.AsyncClient`.
    :func:`merge_options` -- merges transport defaults with per-call options.
    :func:`post_json` -- request options for a JSON POST.
    :func:`decode_body` -- content-type aware body decoding.
"""

from wxapi.client.async_client import AsyncClient, merge_options, post_json
from wxapi.client.response import decode_body, error_from_body

__all__ = ["AsyncClient", "decode_body", "error_from_body", "merge_options", "post_json"]
