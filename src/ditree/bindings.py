from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeAlias, TypeGuard, runtime_checkable

from ditree._internal.type_checks import is_constructible, is_runtime_class
from ditree.exceptions import DITreeInvalidDeclarationError
from ditree.keys import key_name


@dataclass(frozen=True, slots=True)
class PendingConstruction:
    """Construct ``type`` the first time its key is requested."""

    type: type[Any]


@dataclass(frozen=True, slots=True)
class ValueBinding:
    """A precomputed value, returned as is."""

    value: Any


@dataclass(frozen=True, slots=True)
class ClassBinding:
    """Construct ``type`` on request, optionally deferring construction."""

    type: type[Any]
    lazy: bool = False
    """Return a lazy handle instead of constructing immediately."""


@dataclass(frozen=True, slots=True)
class FactoryBinding:
    """Call ``factory`` with resolved ``deps`` and cache the result as a value."""

    factory: Callable[..., Any]
    deps: tuple[Any, ...] = field(default=())
    """Keys resolved (optionally) and passed to the factory as one ordered list."""

    def __post_init__(self) -> None:
        if not isinstance(self.deps, tuple):
            object.__setattr__(self, "deps", tuple(self.deps))


Binding: TypeAlias = PendingConstruction | ValueBinding | ClassBinding | FactoryBinding
"""The registered recipe for satisfying a dependency key."""

BINDING_TYPES: tuple[type[Any], ...] = (
    PendingConstruction,
    ValueBinding,
    ClassBinding,
    FactoryBinding,
)


def as_binding(key: Any, item: Any = None) -> Binding:
    """Normalize user input into a binding for ``key``.

    - ``None`` registers ``key`` itself for construction (``key`` must be a class).
    - A bare class registers that class for construction.
    - A binding is kept unchanged.
    - Any other object is treated as a precomputed value.

    Raises:
        DITreeInvalidDeclarationError: If ``item`` is ``None`` and ``key`` is not
            a class, or the class to construct is abstract.

    """
    if item is None:
        if not is_runtime_class(key):
            msg = f'Cannot construct "{key_name(key)}": provide a binding for non-class keys.'
            raise DITreeInvalidDeclarationError(msg)
        return _pending(key)

    if isinstance(item, BINDING_TYPES):
        return item

    if is_runtime_class(item):
        return _pending(item)

    return ValueBinding(item)


def _pending(concrete_type: type[Any]) -> PendingConstruction:
    if not is_constructible(concrete_type):
        msg = f'"{key_name(concrete_type)}" is abstract and cannot be constructed.'
        raise DITreeInvalidDeclarationError(msg)
    return PendingConstruction(concrete_type)


@runtime_checkable
class Disposable(Protocol):
    """Anything holding resources released by ``dispose``."""

    def dispose(self) -> None: ...


def is_disposable(candidate: object) -> TypeGuard[Disposable]:
    """Return whether ``candidate`` implements ``Disposable``.

    Checks the type rather than the instance, so a pending ``LazyProxy`` is
    never constructed by the check.
    """
    return callable(getattr(type(candidate), "dispose", None))
