from __future__ import annotations

import inspect
import types
from typing import Any, TypeGuard


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a runtime class safe for class-only operations.

    Parametrized generics such as ``list[int]`` are rejected even though they
    behave like classes in some checks.

    Args:
        candidate: Value being checked.

    """
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def is_constructible(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a concrete runtime class that can be instantiated."""
    return is_runtime_class(candidate) and not inspect.isabstract(candidate)


__all__ = ["is_constructible", "is_runtime_class"]
