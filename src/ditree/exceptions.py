from __future__ import annotations

from typing import Any

from ditree.keys import key_name


class DITreeError(Exception):
    """Represent a base class for all ditree-specific failures.

    Catch this type when you want to handle any ditree error path without
    matching each concrete exception class individually.
    """


class DITreeCollectionDisposedError(DITreeError):
    """Signal access to a dependency collection after it was disposed.

    Raised by ``DependencyCollection.add``/``has``/``get`` and therefore by any
    ``Injector`` call that reaches a disposed collection.

    A disposed collection never becomes usable again. Typical fix is creating a
    fresh injector (or child injector) instead of reusing a disposed one.
    """

    def __init__(self) -> None:
        super().__init__("Dependency collection is not accessible after it disposes.")


class DITreeUnresolvedDependencyError(DITreeError):
    """Signal that a key has no binding anywhere in the injector chain.

    Raised by ``Injector.resolve`` when ``optional`` is false.

    Typical fixes include adding the key to the injector (or one of its parents),
    registering it as a singleton before the root injector is created, or
    resolving with ``optional=True``.
    """

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(f'"{key_name(key)}" is not provided by any injector.')


class DITreeMissingDependencyError(DITreeError):
    """Signal that a declared constructor requirement could not be satisfied.

    Raised while constructing a class whose non-optional requirement resolves to
    ``None`` in the whole injector chain.

    Typical fixes include providing the required key or declaring the
    requirement with ``Maybe(...)`` when ``None`` is acceptable.
    """

    def __init__(self, target: type, key: Any) -> None:
        self.target = target
        self.key = key
        super().__init__(
            f'"{key_name(target)}" relies on a not provided dependency "{key_name(key)}".',
        )


class DITreeCircularDependencyError(DITreeError):
    """Signal that nested construction exceeded the recursion limit.

    Detection is a depth heuristic: the error names the last key being entered,
    not the full cycle.

    Typical fixes include breaking the cycle with a lazy binding
    (``ClassBinding(..., lazy=True)``) or a factory, or raising
    ``InjectorSettings.max_recursion_depth`` for legitimately deep graphs.
    """

    def __init__(self, key: Any, limit: int) -> None:
        self.key = key
        self.limit = limit
        super().__init__(
            f'"create_instance" exceeds the limitation of recursion ({limit}x). '
            "There might be a circular dependency among your dependency items. "
            f'Last target was "{key_name(key)}".',
        )


class DITreeInvalidDeclarationError(DITreeError):
    """Signal invalid dependency declaration or binding input.

    Raised by ``injectable``/``declare_dependency`` when markers are attached to
    parameters that cannot be filled positionally, or when annotations cannot
    be evaluated, and by collections when a binding cannot be derived from the
    given item (for example adding a non-class key without a binding).
    """


class DITreeLazyReentryError(DITreeError):
    """Signal that a lazy instance was used while it was still being constructed.

    Raised when a dependency of a lazily bound class touches the lazy handle of
    that same class from its own constructor, which would otherwise observe a
    half-built target.

    Typical fixes include deferring the call until after construction, or
    making the dependency itself lazy.
    """

    def __init__(self) -> None:
        super().__init__("Lazy instance was accessed while it was being constructed.")
