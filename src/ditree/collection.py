from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from ditree.bindings import Binding, ValueBinding, as_binding, is_disposable
from ditree.exceptions import DITreeCollectionDisposedError, DITreeInvalidDeclarationError
from ditree.keys import key_name

logger = logging.getLogger(__name__)

_PAIR_LENGTH = 2


class DependencyCollection:
    """Ordered mapping from dependency keys to bindings, owned by one injector.

    Items are either bare classes (constructed on first request) or
    ``(key, binding_or_value)`` pairs. Later items for the same key overwrite
    earlier ones.

    The collection owns every value stored in it: ``dispose`` calls ``dispose()``
    on each of them in insertion order, after which the collection rejects every
    further access.

    Examples:
        .. code-block:: python

            collection = DependencyCollection(
                [
                    Repository,
                    (ILogger, ClassBinding(ConsoleLogger)),
                    (IConfig, {"debug": True}),
                ],
            )

    """

    def __init__(self, items: Iterable[Any] = ()) -> None:
        self._items: dict[Any, Binding] = {}
        self._disposed = False

        for item in items:
            if isinstance(item, tuple | list):
                if len(item) != _PAIR_LENGTH:
                    msg = f"Dependency items must be a class or a (key, binding) pair, got {item!r}."
                    raise DITreeInvalidDeclarationError(msg)
                key, binding = item
                self.add(key, binding)
            else:
                self.add(item)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def add(self, key: Any, binding: Any = None) -> None:
        """Insert or overwrite the binding for ``key``.

        Args:
            key: Class or identifier.
            binding: A binding, a class, or a plain value. Omit it to register
                ``key`` itself for construction.

        Raises:
            DITreeCollectionDisposedError: If the collection was disposed.
            DITreeInvalidDeclarationError: If ``binding`` is omitted for a
                non-class key.

        """
        self._ensure_not_disposed()
        self._items[key] = as_binding(key, binding)

    def has(self, key: Any) -> bool:
        self._ensure_not_disposed()
        return key in self._items

    def get(self, key: Any) -> Binding | None:
        self._ensure_not_disposed()
        return self._items.get(key)

    def keys(self) -> list[Any]:
        self._ensure_not_disposed()
        return list(self._items)

    def dispose(self) -> None:
        """Dispose every owned value exposing ``dispose()`` and lock the collection.

        Disposal follows insertion order and never reaches parent collections.
        Calling it again is a no-op.
        """
        if self._disposed:
            return
        self._disposed = True

        for key, binding in self._items.items():
            if not isinstance(binding, ValueBinding) or not is_disposable(binding.value):
                continue
            logger.debug("Disposing %s", key_name(key))
            binding.value.dispose()

    def __contains__(self, key: object) -> bool:
        return self.has(key)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.keys())

    def __len__(self) -> int:
        self._ensure_not_disposed()
        return len(self._items)

    def _ensure_not_disposed(self) -> None:
        if self._disposed:
            raise DITreeCollectionDisposedError
