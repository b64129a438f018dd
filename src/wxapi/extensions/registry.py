"""Extension registry -- conflict-free composition of capability sets.

:class:`ExtensionRegistry` installs method tables onto one client class.
Registration is append-only: a name that already exists on the class,
whether defined by the class itself or installed by an earlier
extension, raises :class:`~wxapi.exceptions.DuplicateMethodError`. A
batch is validated in full before anything is installed, so a rejected
batch leaves the class untouched.

Third-party packages can ship extensions as entry points in the
``wxapi.extensions`` group::

    [project.entry-points."wxapi.extensions"]
    media = "my_package.media:MediaExtension"

Registration is meant to happen at startup, before requests are issued.
It is not safe to call concurrently with itself.
"""

from __future__ import annotations

import importlib.metadata
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Optional, Union

from wxapi.exceptions import DuplicateMethodError, ExtensionError
from wxapi.extensions.base import Extension

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "wxapi.extensions"
"""The entry-point group name used for extension discovery."""

MethodSet = Union[Extension, Mapping[str, Callable[..., Any]]]


class ExtensionRegistry:
    """Installs capability sets onto *target* and remembers where each came from.

    Args:
        target: The client class that receives the methods.

    Example::

        registry = ExtensionRegistry(API)
        registry.register({"get_menu": get_menu}, source="menu")
    """

    def __init__(self, target: type) -> None:
        self._target = target
        self._installed: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, method_set: MethodSet, source: Optional[str] = None) -> list[str]:
        """Install every method of *method_set* on the target class.

        Args:
            method_set: An :class:`Extension` or a mapping of name to function.
            source: Label recorded for the installed names. Defaults to the
                extension name, or ``"anonymous"`` for plain mappings.

        Returns:
            The installed names, in registration order.

        Raises:
            DuplicateMethodError: If any name already exists on the target
                or appears twice in the batch. Nothing is installed.
            ExtensionError: If a name is not an identifier or a value is
                not callable. Nothing is installed.
        """
        if isinstance(method_set, Extension):
            source = source or method_set.name
            methods = method_set.methods()
        elif isinstance(method_set, Mapping):
            methods = method_set
        else:
            raise ExtensionError(
                f"Expected an Extension or a mapping of methods, got {type(method_set).__name__}"
            )
        source = source or "anonymous"

        batch = list(methods.items())
        self._validate(batch)

        for name, func in batch:
            setattr(self._target, name, func)
            self._installed[name] = source
            logger.debug("Installed %s.%s from '%s'", self._target.__name__, name, source)
        return [name for name, _ in batch]

    def _validate(self, batch: list[tuple[str, Any]]) -> None:
        seen: set[str] = set()
        for name, func in batch:
            if not isinstance(name, str) or not name.isidentifier():
                raise ExtensionError(f"Invalid method name: {name!r}")
            if not callable(func):
                raise ExtensionError(f"Method '{name}' is not callable")
            if name in seen or hasattr(self._target, name):
                raise DuplicateMethodError(name)
            seen.add(name)

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def discover(
        self,
        enabled: Iterable[str] = (),
        disabled: Iterable[str] = (),
    ) -> list[str]:
        """Load and register extensions declared as ``wxapi.extensions`` entry points.

        When *enabled* is non-empty only those entry points are loaded;
        otherwise everything not in *disabled* is. An entry point may
        resolve to an :class:`Extension` subclass, an instance, or a plain
        mapping.

        Returns:
            Names of the entry points that were registered.

        Raises:
            DuplicateMethodError: If a discovered extension collides with an
                existing method. Collisions are configuration errors and are
                not skipped.
        """
        enabled_set = set(enabled)
        disabled_set = set(disabled)
        loaded: list[str] = []

        for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
            name = ep.name
            if enabled_set and name not in enabled_set:
                logger.debug("Extension '%s' not in enabled list, skipping", name)
                continue
            if name in disabled_set:
                logger.debug("Extension '%s' is disabled, skipping", name)
                continue

            try:
                obj = ep.load()
                if isinstance(obj, type) and issubclass(obj, Extension):
                    obj = obj()
            except Exception as exc:
                logger.warning("Failed to load extension '%s': %s", name, exc)
                continue

            self.register(obj, source=name)
            loaded.append(name)

        if loaded:
            logger.info("Loaded extensions: %s", ", ".join(loaded))
        return loaded

    # ------------------------------------------------------------------
    # Querying
    # ------------------------------------------------------------------

    def installed(self) -> dict[str, str]:
        """Return a copy of the method-name to source mapping."""
        return dict(self._installed)

    def __contains__(self, name: object) -> bool:
        return name in self._installed
