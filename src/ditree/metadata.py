from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ditree._internal.type_checks import is_runtime_class
from ditree.exceptions import DITreeInvalidDeclarationError
from ditree.keys import key_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DependencyRequirement:
    """A constructor parameter that is filled from the injector."""

    key: Any
    """Dependency key resolved for this parameter."""
    index: int
    """Positional index of the parameter, ``self`` excluded."""
    optional: bool = False
    """Pass ``None`` instead of failing when the key cannot be resolved."""


class MetadataRegistry:
    """Side table mapping classes to their declared constructor requirements.

    Records are keyed by exact class identity. A subclass without a record of its
    own reuses the record of its nearest ancestor (by MRO). Declaring anything on
    a subclass starts a separate record for it, so unrelated subclasses never
    share requirement lists.
    """

    def __init__(self) -> None:
        self._requirements: dict[type[Any], list[DependencyRequirement]] = {}

    def declare(
        self,
        target: type[Any],
        key: Any,
        index: int,
        *,
        optional: bool = False,
    ) -> DependencyRequirement:
        """Declare that positional parameter ``index`` of ``target`` requires ``key``.

        Args:
            target: Class whose constructor receives the dependency.
            key: Dependency key to resolve.
            index: Positional index of the parameter, ``self`` excluded.
            optional: Whether a missing dependency is passed as ``None``.

        Returns:
            The recorded requirement.

        Raises:
            DITreeInvalidDeclarationError: If ``target`` is not a class or
                ``index`` is negative.

        """
        if not is_runtime_class(target):
            msg = f"Dependencies can only be declared on classes, got {target!r}."
            raise DITreeInvalidDeclarationError(msg)
        if index < 0:
            msg = f'Parameter index of "{key_name(key)}" on "{target.__name__}" must not be negative.'
            raise DITreeInvalidDeclarationError(msg)

        requirement = DependencyRequirement(key=key, index=index, optional=optional)
        record = self._requirements.get(target)
        if record is None:
            self._requirements[target] = [requirement]
        else:
            record.append(requirement)

        logger.debug(
            "Declared %s dependency %r at index %d on %s",
            "optional" if optional else "required",
            key_name(key),
            index,
            target.__name__,
        )
        return requirement

    def get_requirements(self, target: type[Any]) -> list[DependencyRequirement]:
        """Return the requirements of ``target`` sorted by ascending index."""
        for klass in getattr(target, "__mro__", (target,)):
            record = self._requirements.get(klass)
            if record is not None:
                return sorted(record, key=lambda requirement: requirement.index)
        return []

    def has_own_record(self, target: type[Any]) -> bool:
        return target in self._requirements

    def forget(self, target: type[Any]) -> None:
        """Drop the record owned by ``target`` (ancestors are untouched)."""
        self._requirements.pop(target, None)

    def clear(self) -> None:
        self._requirements.clear()


dependency_metadata = MetadataRegistry()
"""Process-wide metadata registry used by default."""


def declare_dependency(
    target: type[Any],
    key: Any,
    index: int,
    *,
    optional: bool = False,
    registry: MetadataRegistry | None = None,
) -> DependencyRequirement:
    """Declare a constructor requirement on the default (or given) registry."""
    return (registry or dependency_metadata).declare(target, key, index, optional=optional)
