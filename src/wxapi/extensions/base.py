"""Abstract base class for wxapi extensions.

An extension is a named capability set: a group of methods contributed
by an independent module (media, payments, customer service, ...) that
are installed onto the shared client class. Every method receives the
client instance as ``self`` and builds its calls on two primitives,
:meth:`~wxapi.api.API.ensure_access_token` and
:meth:`~wxapi.api.API.request`.

Example:
    Minimal extension::

        class MediaExtension(Extension):
            @property
            def name(self) -> str:
                return "media"

            def methods(self):
                return {"get_media": get_media}

        async def get_media(self, media_id):
            token = await self.ensure_access_token()
            url = f"{self.endpoints.prefix}media/get?access_token={token.access_token}&media_id={media_id}"
            return await self.request(url)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any


class Extension(ABC):
    """Base class for capability sets installed by
    :class:`~wxapi.extensions.registry.ExtensionRegistry`."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the extension name used in logs and error messages."""
        ...

    @abstractmethod
    def methods(self) -> Mapping[str, Callable[..., Any]]:
        """Return the method table this extension contributes.

        Returns:
            A mapping of attribute name to function. Functions take the
            client instance as their first argument.
        """
        ...
