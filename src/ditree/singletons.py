from __future__ import annotations

import logging
from typing import Any

from ditree.bindings import ClassBinding
from ditree.keys import key_name, same_key

logger = logging.getLogger(__name__)


class SingletonRegistry:
    """Bindings registered before any root injector exists.

    Every root injector drains the registry when it is created and adds each
    binding whose key it does not already hold. Draining does not consume the
    registry: every root injector sees the same bindings.
    """

    def __init__(self) -> None:
        self._bindings: list[tuple[Any, ClassBinding]] = []

    def register(self, key: Any, concrete_type: type[Any], *, lazy: bool = False) -> None:
        """Register ``concrete_type`` under ``key``, replacing any previous registration.

        Args:
            key: Class or identifier.
            concrete_type: Class constructed on first request.
            lazy: Defer construction until first use of the returned instance.

        """
        binding = ClassBinding(concrete_type, lazy=lazy)
        for index, (existing_key, _) in enumerate(self._bindings):
            if same_key(existing_key, key):
                logger.warning("Duplicated singleton registration of %s.", key_name(key))
                self._bindings[index] = (key, binding)
                return
        self._bindings.append((key, binding))

    def drain(self) -> list[tuple[Any, ClassBinding]]:
        """Return the registered ``(key, binding)`` pairs in registration order."""
        return list(self._bindings)

    def clear(self) -> None:
        self._bindings.clear()

    def __len__(self) -> int:
        return len(self._bindings)


singleton_registry = SingletonRegistry()
"""Process-wide registry drained by root injectors by default."""


def register_singleton(key: Any, concrete_type: type[Any], lazy: bool = False) -> None:  # noqa: FBT001, FBT002
    """Register a process-wide singleton binding, see ``SingletonRegistry.register``."""
    singleton_registry.register(key, concrete_type, lazy=lazy)


def drain_singletons() -> list[tuple[Any, ClassBinding]]:
    return singleton_registry.drain()
