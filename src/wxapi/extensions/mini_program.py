"""Mini-program capability set.

Installed on :class:`~wxapi.api.API` by
:func:`~wxapi.extensions.install_builtin_extensions`.
"""

from __future__ import annotations

from typing import Any

from wxapi.client.async_client import post_json
from wxapi.extensions.base import Extension


async def get_phone_number_for_mini_program(self: Any, code: str) -> Any:
    """Exchange a ``getPhoneNumber`` button code for the user's phone number.

    Each code can be used once and is valid for five minutes.
    """
    token = await self.ensure_access_token()
    url = f"{self.endpoints.wxa_prefix}business/getuserphonenumber?access_token={token.access_token}"
    return await self.request(url, post_json({"code": code}))


class MiniProgramExtension(Extension):
    @property
    def name(self) -> str:
        return "mini_program"

    def methods(self) -> dict[str, Any]:
        return {"get_phone_number_for_mini_program": get_phone_number_for_mini_program}
