from __future__ import annotations

import inspect
import types
from collections.abc import Callable
from dataclasses import dataclass
from typing import Annotated, Any, TypeVar, Union, get_args, get_origin, get_type_hints, overload

from ditree.exceptions import DITreeInvalidDeclarationError
from ditree.keys import Identifier
from ditree.metadata import MetadataRegistry, dependency_metadata

C = TypeVar("C", bound=type[Any])

_ANNOTATED_MARKER_MIN_ARGS = 2
_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


@dataclass(frozen=True, slots=True)
class Need:
    """Declare a required constructor dependency in ``typing.Annotated`` metadata.

    When ``key`` is omitted the annotated type itself is the key.

    Examples:
        .. code-block:: python

            @injectable
            class Service:
                def __init__(
                    self,
                    name: str,
                    repo: Annotated[Repository, Need()],
                    log: Annotated[Logger, Need(ILogger)],
                ) -> None: ...

    """

    key: Any = None


@dataclass(frozen=True, slots=True)
class Maybe:
    """Declare an optional constructor dependency, passed as ``None`` when missing."""

    key: Any = None


def _strip_none(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) == 1:
            return members[0]
    return annotation


def extract_marker(annotation: Any) -> tuple[Any, bool] | None:
    """Return ``(key, optional)`` for an annotation carrying a dependency marker.

    Recognizes ``Need``, ``Maybe`` and bare ``Identifier`` metadata. Returns
    ``None`` for annotations without a marker.
    """
    # Python 3.10 wraps hints of parameters defaulting to None in Optional.
    annotation = _strip_none(annotation)
    if get_origin(annotation) is not Annotated:
        return None
    annotation_args = get_args(annotation)
    if len(annotation_args) < _ANNOTATED_MARKER_MIN_ARGS:
        return None  # pragma: no cover - Annotated requires at least 2 args

    base_type = _strip_none(annotation_args[0])
    for item in annotation_args[1:]:
        if isinstance(item, Identifier):
            return item, False
        if isinstance(item, Need):
            return (base_type if item.key is None else item.key), False
        if isinstance(item, Maybe):
            return (base_type if item.key is None else item.key), True
    return None


def _declare_from_signature(target: type[Any], registry: MetadataRegistry) -> None:
    init = target.__dict__.get("__init__")
    if init is None:
        # Nothing declared here: the nearest ancestor's record applies.
        return

    try:
        hints = get_type_hints(init, include_extras=True)
    except (NameError, TypeError) as error:
        msg = f'Cannot evaluate constructor annotations of "{target.__name__}": {error}'
        raise DITreeInvalidDeclarationError(msg) from error

    parameters = list(inspect.signature(init).parameters.values())[1:]
    declared: list[tuple[Any, int, bool]] = []
    for index, parameter in enumerate(parameters):
        marker = extract_marker(hints.get(parameter.name))
        if marker is None:
            continue
        if parameter.kind not in _POSITIONAL_KINDS:
            msg = (
                f'Parameter "{parameter.name}" of "{target.__name__}" cannot be injected: '
                "dependencies are passed positionally."
            )
            raise DITreeInvalidDeclarationError(msg)
        key, optional = marker
        declared.append((key, index, optional))

    registry.forget(target)
    for key, index, optional in declared:
        registry.declare(target, key, index, optional=optional)


@overload
def injectable(target: C, /) -> C: ...


@overload
def injectable(*, registry: MetadataRegistry | None = None) -> Callable[[C], C]: ...


def injectable(
    target: C | None = None,
    /,
    *,
    registry: MetadataRegistry | None = None,
) -> C | Callable[[C], C]:
    """Record the constructor requirements marked on a class.

    Scans the class's own ``__init__`` for ``Need``/``Maybe``/``Identifier``
    markers and stores them, with their positional index, in the metadata
    registry. Unmarked parameters before the first marked one are filled from
    ``Injector.create_instance`` extra arguments.

    Args:
        target: Class to scan, when used as a bare decorator.
        registry: Metadata registry to record into, defaults to the process-wide one.

    Returns:
        The class itself, or a decorator when called with keyword arguments only.

    Raises:
        DITreeInvalidDeclarationError: If a marked parameter is keyword-only or
            variadic, or annotations cannot be evaluated.

    """

    def decorator(cls: C) -> C:
        if not inspect.isclass(cls):
            msg = f"@injectable can only decorate classes, got {cls!r}."
            raise DITreeInvalidDeclarationError(msg)
        _declare_from_signature(cls, registry or dependency_metadata)
        return cls

    if target is None:
        return decorator
    return decorator(target)
