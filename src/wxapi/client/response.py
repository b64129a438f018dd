"""Response body decoding.

Turns the raw bytes of an HTTP response into what the request pipeline
hands back to callers, following the declared ``Content-Type``:

* ``application/json`` / ``text/plain`` -- decoded as JSON. Integers keep
  full precision, so 19-digit identifiers round-trip exactly. A body that
  is not JSON comes back as text for ``text/plain`` and raises
  :class:`~wxapi.exceptions.DecodeError` for ``application/json``.
* anything else (images, media downloads, ...) -- the raw ``bytes``.

Some endpoints emit literal control characters inside string values,
which strict JSON forbids; :func:`replace_json_ctl_chars` strips them
before parsing.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any, Optional

from wxapi.exceptions import APIError, DecodeError

_JSON_TYPES = ("application/json", "text/plain")

# Control characters other than TAB, LF and CR, which are valid JSON whitespace.
_CTL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def replace_json_ctl_chars(text: str) -> str:
    """Remove control characters that would make a JSON document invalid."""
    return _CTL_CHARS_RE.sub("", text)


def loads(text: str) -> Any:
    """Parse *text* as JSON, tolerating raw TAB/LF/CR inside string values."""
    return json.loads(replace_json_ctl_chars(text), strict=False)


def decode_body(content: bytes, content_type: str) -> Any:
    """Decode a response body according to its content type.

    Args:
        content: The full response body.
        content_type: The ``Content-Type`` header value (may be empty).

    Returns:
        A decoded JSON value, the body text, or the raw bytes.

    Raises:
        DecodeError: If a JSON body cannot be parsed.
    """
    content_type = content_type.lower()
    if not any(kind in content_type for kind in _JSON_TYPES):
        return content

    text = content.decode("utf-8", errors="replace")
    try:
        return loads(text)
    except ValueError:
        if "text/plain" in content_type:
            return text
        raise DecodeError(text) from None


def error_from_body(data: Any) -> Optional[APIError]:
    """Return an :class:`APIError` if *data* carries a non-zero ``errcode``."""
    if not isinstance(data, Mapping):
        return None
    code = data.get("errcode")
    if not code:
        return None
    return APIError(code, data.get("errmsg", ""))
