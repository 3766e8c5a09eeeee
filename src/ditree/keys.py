from __future__ import annotations

import logging
from typing import Any, Generic, TypeAlias, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Identifier(Generic[T]):
    """Named dependency key.

    Identifiers compare by identity, so two identifiers are the same key only
    when they are the same object. Create them with ``create_identifier`` to get
    process-wide deduplication by name.

    An identifier can also be placed in ``typing.Annotated`` metadata to declare
    a required constructor dependency on it.

    Examples:
        .. code-block:: python

            ILogger = create_identifier("logger")


            @injectable
            class Service:
                def __init__(self, log: Annotated[Logger, ILogger]) -> None:
                    self.log = log

    """

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"Identifier({self.name!r})"


DependencyKey: TypeAlias = "type[Any] | Identifier[Any]"
"""A key that a binding is registered under: a class or a named identifier."""


class IdentifierRegistry:
    """Process-wide table of named identifiers."""

    def __init__(self) -> None:
        self._identifiers: dict[str, Identifier[Any]] = {}

    def create(self, name: str) -> Identifier[Any]:
        """Return the identifier registered under ``name``, creating it if missing.

        Re-creating an existing name is not an error: the existing identifier is
        returned and a warning is logged.
        """
        existing = self._identifiers.get(name)
        if existing is not None:
            logger.warning("Duplicated identifier name %r, reusing the existing identifier.", name)
            return existing

        identifier: Identifier[Any] = Identifier(name)
        self._identifiers[name] = identifier
        return identifier

    def get(self, name: str) -> Identifier[Any] | None:
        return self._identifiers.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._identifiers

    def __len__(self) -> int:
        return len(self._identifiers)


identifiers = IdentifierRegistry()
"""Default identifier table used by ``create_identifier``."""


def create_identifier(name: str) -> Identifier[Any]:
    """Create (or reuse) the process-wide identifier for ``name``.

    Args:
        name: Human readable, globally unique identifier name.

    Returns:
        The identifier bound to ``name``.

    """
    return identifiers.create(name)


def is_identifier(candidate: object) -> bool:
    return isinstance(candidate, Identifier)


def key_name(key: Any) -> str:
    """Return a readable name for a dependency key, used in messages."""
    if isinstance(key, Identifier):
        return key.name
    return getattr(key, "__name__", None) or repr(key)


def same_key(left: Any, right: Any) -> bool:
    """Compare keys by identity, falling back to identifier names."""
    if left is right:
        return True
    return isinstance(left, Identifier) and isinstance(right, Identifier) and left.name == right.name
