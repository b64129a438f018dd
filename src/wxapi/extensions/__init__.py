"""Extension system for wxapi -- capability sets composed onto one client class.

Key names:

* :class:`Extension` -- base class for a named method table.
* :class:`ExtensionRegistry` -- validates and installs method tables,
  rejecting name collisions, and discovers ``wxapi.extensions`` entry points.
* :func:`install_builtin_extensions` -- installs the capability sets that
  ship with wxapi.

Example::

    from wxapi import API

    async def get_menu(self):
        token = await self.ensure_access_token()
        return await self.request(f"{self.endpoints.prefix}menu/get?access_token={token.access_token}")

    API.extend({"get_menu": get_menu})
"""

from __future__ import annotations

from wxapi.extensions.base import Extension
from wxapi.extensions.mini_program import MiniProgramExtension
from wxapi.extensions.registry import ENTRY_POINT_GROUP, ExtensionRegistry, MethodSet

BUILTIN_EXTENSIONS: tuple[type[Extension], ...] = (MiniProgramExtension,)


def install_builtin_extensions(registry: ExtensionRegistry) -> None:
    """Register every built-in capability set with *registry*, in order."""
    for extension_cls in BUILTIN_EXTENSIONS:
        registry.register(extension_cls())


__all__ = [
    "BUILTIN_EXTENSIONS",
    "ENTRY_POINT_GROUP",
    "Extension",
    "ExtensionRegistry",
    "MethodSet",
    "install_builtin_extensions",
]
