from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from types import TracebackType
from typing import TYPE_CHECKING, Any, TypeVar, overload

from typing_extensions import assert_never

from ditree.bindings import (
    Binding,
    ClassBinding,
    FactoryBinding,
    PendingConstruction,
    ValueBinding,
    is_disposable,
)
from ditree.collection import DependencyCollection
from ditree.exceptions import (
    DITreeCircularDependencyError,
    DITreeMissingDependencyError,
    DITreeUnresolvedDependencyError,
)
from ditree.keys import Identifier, key_name
from ditree.lazy import IdleScheduler, IdleValue, LazyProxy, asyncio_idle_scheduler, never_scheduler
from ditree.metadata import MetadataRegistry, dependency_metadata
from ditree.settings import InjectorSettings
from ditree.singletons import SingletonRegistry, singleton_registry

if TYPE_CHECKING:
    from typing_extensions import Self

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ResolutionContext:
    """Construction depth of one resolution call chain.

    Each public entry point starts a fresh context, so depth never leaks between
    unrelated resolutions. Only class constructions count towards ``limit``;
    factory calls are tracked separately to catch factory-only cycles.
    """

    limit: int
    depth: int = 0
    factories: set[Any] = field(default_factory=set)

    @contextmanager
    def entering(self, key: Any) -> Iterator[None]:
        """Count one nested construction of ``key`` for the duration of the block.

        Raises:
            DITreeCircularDependencyError: If the depth exceeds ``limit``.

        """
        self.depth += 1
        try:
            if self.depth > self.limit:
                raise DITreeCircularDependencyError(key, self.limit)
            yield
        finally:
            self.depth -= 1

    @contextmanager
    def invoking(self, key: Any) -> Iterator[None]:
        """Mark the factory of ``key`` as running for the duration of the block.

        Raises:
            DITreeCircularDependencyError: If that factory is already running.

        """
        if key in self.factories:
            raise DITreeCircularDependencyError(key, self.limit)
        self.factories.add(key)
        try:
            yield
        finally:
            self.factories.discard(key)


class Injector:
    """Resolve dependencies from a collection, falling back to parent injectors.

    A root injector (one without a parent) adds every registered singleton
    whose key its collection does not already hold. Child injectors, created
    with ``create_child``, hold their own collection for overrides and look up
    missing keys in their parents.

    Constructed instances are cached in the collection that holds their binding,
    so a key is constructed at most once per owning collection. Factory results
    are cached in the injector that invoked the factory.

    Examples:
        .. code-block:: python

            injector = Injector(DependencyCollection([Repository, Service]))
            service = injector.resolve(Service)

            with injector.create_child(DependencyCollection([(Repository, FakeRepository)])) as child:
                assert isinstance(child.resolve(Repository), FakeRepository)

    """

    def __init__(
        self,
        collection: DependencyCollection | None = None,
        parent: Injector | None = None,
        *,
        settings: InjectorSettings | None = None,
        singletons: SingletonRegistry | None = None,
        metadata: MetadataRegistry | None = None,
        idle_scheduler: IdleScheduler | None = None,
    ) -> None:
        """Initialize an injector.

        Args:
            collection: Bindings owned by this injector. A fresh empty collection
                is used when omitted.
            parent: Injector consulted for keys missing here. Never owned:
                disposing this injector leaves the parent untouched.
            settings: Resolver settings. Defaults to the parent's settings, or
                ``InjectorSettings()`` for root injectors.
            singletons: Singleton registry merged into root injectors. Defaults
                to the process-wide registry. Ignored for child injectors.
            metadata: Registry of constructor requirements. Defaults to the
                parent's registry, or the process-wide one.
            idle_scheduler: Scheduler for deferred lazy construction. Defaults
                to the parent's scheduler, or one derived from ``settings``.

        """
        if collection is None:
            collection = DependencyCollection()

        if parent is None:
            registry = singleton_registry if singletons is None else singletons
            for key, binding in registry.drain():
                if not collection.has(key):
                    logger.debug("Adding singleton %s to root injector", key_name(key))
                    collection.add(key, binding)

        self._collection = collection
        self._parent = parent
        if settings is None:
            settings = parent.settings if parent is not None else InjectorSettings()
        self._settings = settings
        if metadata is None:
            metadata = parent.metadata if parent is not None else dependency_metadata
        self._metadata = metadata
        if idle_scheduler is None:
            idle_scheduler = (
                parent.idle_scheduler if parent is not None else self._default_idle_scheduler()
            )
        self._idle_scheduler = idle_scheduler

    @property
    def collection(self) -> DependencyCollection:
        return self._collection

    @property
    def parent(self) -> Injector | None:
        return self._parent

    @property
    def settings(self) -> InjectorSettings:
        return self._settings

    @property
    def metadata(self) -> MetadataRegistry:
        return self._metadata

    @property
    def idle_scheduler(self) -> IdleScheduler:
        return self._idle_scheduler

    # region Tree Management

    def create_child(self, collection: DependencyCollection | None = None) -> Injector:
        """Create a child injector that falls back to this one.

        Singletons are not merged again into children.

        Args:
            collection: Bindings owned by the child, a fresh empty collection
                when omitted.

        Returns:
            The child injector.

        """
        return Injector(collection, self)

    def add(self, key: Any, binding: Any = None) -> None:
        """Add or replace a binding in this injector's own collection.

        See ``DependencyCollection.add`` for accepted ``binding`` forms.
        """
        self._collection.add(key, binding)

    def dispose(self) -> None:
        """Dispose this injector's own collection. Children and parents are untouched."""
        self._collection.dispose()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.dispose()

    # endregion Tree Management

    # region Resolution

    @overload
    def resolve(self, key: type[T], optional: bool = False) -> T | None: ...  # noqa: FBT001, FBT002

    @overload
    def resolve(self, key: Identifier[T], optional: bool = False) -> T | None: ...  # noqa: FBT001, FBT002

    def resolve(self, key: Any, optional: bool = False) -> Any:  # noqa: FBT001, FBT002
        """Resolve ``key``, constructing it when needed.

        Args:
            key: Class or identifier to resolve.
            optional: Return ``None`` instead of failing when no injector in the
                chain provides ``key``.

        Returns:
            The resolved value, or ``None`` for a missing optional key.

        Raises:
            DITreeUnresolvedDependencyError: If ``key`` is missing and not optional.
            DITreeMissingDependencyError: If a required constructor dependency of
                a constructed class is missing.
            DITreeCircularDependencyError: If nested construction gets too deep.
            DITreeCollectionDisposedError: If a disposed collection is reached.

        """
        return self._resolve(key, optional=optional, context=self._new_context())

    def get(self, key: Any) -> Any:
        """Return the value of ``key`` if it is already available, without constructing it.

        Returns ``None`` when ``key`` is missing or its binding still needs
        construction or a factory call.
        """
        binding = self._lookup(key)
        if isinstance(binding, ValueBinding):
            return binding.value
        return None

    def has(self, key: Any) -> bool:
        """Return whether any injector in the chain holds a binding for ``key``."""
        return self._lookup(key) is not None

    def create_instance(self, concrete_type: type[T], *extra_args: Any) -> T:
        """Construct ``concrete_type`` with dependencies resolved from this injector.

        Extra arguments fill the positional parameters before the first injected
        one. A count mismatch is corrected (padded with ``None`` or truncated)
        and logged as a warning.

        Args:
            concrete_type: Class to construct. It is not cached.
            *extra_args: Non-injected leading positional arguments.

        Returns:
            The new instance.

        Raises:
            DITreeMissingDependencyError: If a required dependency is missing.

        """
        return self._create_instance(concrete_type, extra_args, self._new_context())

    def _resolve(self, key: Any, *, optional: bool, context: ResolutionContext) -> Any:
        binding = self._lookup(key)
        if binding is None:
            if optional:
                return None
            raise DITreeUnresolvedDependencyError(key)

        match binding:
            case ValueBinding(value=value):
                return value
            case PendingConstruction(type=concrete_type):
                return self._create_and_cache_instance(key, concrete_type, lazy=False, context=context)
            case ClassBinding(type=concrete_type, lazy=lazy):
                return self._create_and_cache_instance(key, concrete_type, lazy=lazy, context=context)
            case FactoryBinding():
                return self._invoke_factory(key, binding, context)
            case _:
                assert_never(binding)

    def _lookup(self, key: Any) -> Binding | None:
        injector: Injector | None = self
        while injector is not None:
            binding = injector._collection.get(key)
            if binding is not None:
                return binding
            injector = injector._parent
        return None

    def _owner_of(self, key: Any) -> Injector:
        injector: Injector | None = self
        while injector is not None:
            if injector._collection.has(key):
                return injector
            injector = injector._parent
        # The binding disappeared while being constructed: keep the value here.
        return self

    def _create_and_cache_instance(
        self,
        key: Any,
        concrete_type: type[Any],
        *,
        lazy: bool,
        context: ResolutionContext,
    ) -> Any:
        with context.entering(key):
            if lazy:
                return self._create_lazy_instance(key, concrete_type)

            instance = self._create_instance(concrete_type, (), context)
            self._owner_of(key)._collection.add(key, ValueBinding(instance))
            return instance

    def _create_lazy_instance(self, key: Any, concrete_type: type[Any]) -> LazyProxy:
        owner = self._owner_of(key)
        idle_value: IdleValue[Any] = IdleValue(
            lambda: self._materialize_lazy_instance(key, concrete_type, owner, proxy),
        )
        proxy = LazyProxy(idle_value)
        owner._collection.add(key, ValueBinding(proxy))
        logger.debug("Deferred construction of %s", key_name(key))
        idle_value.schedule(self._idle_scheduler)
        return proxy

    def _materialize_lazy_instance(
        self,
        key: Any,
        concrete_type: type[Any],
        owner: Injector,
        proxy: LazyProxy,
    ) -> Any:
        instance = self._create_instance(concrete_type, (), self._new_context())

        collection = owner._collection
        if collection.disposed:
            # No collection owns the late instance, so it is released right away.
            logger.debug("Lazy %s constructed after its collection was disposed", key_name(key))
            if is_disposable(instance):
                instance.dispose()
            return instance

        current = collection.get(key)
        if isinstance(current, ValueBinding) and current.value is proxy:
            collection.add(key, ValueBinding(instance))
        return instance

    def _create_instance(
        self,
        concrete_type: type[T],
        extra_args: tuple[Any, ...],
        context: ResolutionContext,
    ) -> T:
        requirements = self._metadata.get_requirements(concrete_type)

        resolved_args: list[Any] = []
        for requirement in requirements:
            value = self._resolve(requirement.key, optional=True, context=context)
            if value is None and not requirement.optional:
                raise DITreeMissingDependencyError(concrete_type, requirement.key)
            resolved_args.append(value)

        args = list(extra_args)
        first_injected_index = requirements[0].index if requirements else len(args)
        if len(args) != first_injected_index:
            logger.warning(
                "Expected %d non-injected parameters for %s but %d were provided.",
                first_injected_index,
                concrete_type.__name__,
                len(args),
            )
            if len(args) < first_injected_index:
                args.extend([None] * (first_injected_index - len(args)))
            else:
                del args[first_injected_index:]

        logger.debug("Constructing %s", concrete_type.__name__)
        return concrete_type(*args, *resolved_args)

    def _invoke_factory(self, key: Any, binding: FactoryBinding, context: ResolutionContext) -> Any:
        with context.invoking(key):
            dependencies = [
                self._resolve(dependency, optional=True, context=context) for dependency in binding.deps
            ]
            logger.debug("Invoking factory for %s", key_name(key))
            value = binding.factory(dependencies)

        self._collection.add(key, ValueBinding(value))
        return value

    def _new_context(self) -> ResolutionContext:
        return ResolutionContext(limit=self._settings.max_recursion_depth)

    def _default_idle_scheduler(self) -> IdleScheduler:
        if not self._settings.schedule_lazy_construction:
            return never_scheduler
        return asyncio_idle_scheduler(self._settings.lazy_idle_delay)

    # endregion Resolution

    def __repr__(self) -> str:
        state = "disposed" if self._collection.disposed else f"{len(self._collection)} bindings"
        return f"Injector({state}, root={self._parent is None})"
