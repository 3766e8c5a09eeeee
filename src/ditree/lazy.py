from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any, Generic, Protocol, TypeVar

from ditree.exceptions import DITreeLazyReentryError

T = TypeVar("T")

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class IdleScheduler(Protocol):
    """Run ``callback`` at some later, opportune moment."""

    def __call__(self, callback: Callable[[], Any], /) -> None: ...


def asyncio_idle_scheduler(delay: float = 0.0) -> IdleScheduler:
    """Build a scheduler that defers callbacks on the running asyncio loop.

    Without a running loop nothing is scheduled and the value is computed on
    first access instead.

    Args:
        delay: Seconds to wait before running the callback.

    """

    def schedule(callback: Callable[[], Any], /) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, lazy value is computed on first use")
            return
        loop.call_later(delay, callback)

    return schedule


def immediate_scheduler(callback: Callable[[], Any], /) -> None:
    """Run ``callback`` right away, letting its errors reach the caller."""
    callback()


def never_scheduler(callback: Callable[[], Any], /) -> None:  # noqa: ARG001
    """Never run ``callback``, leaving computation to the first access."""


class IdleValue(Generic[T]):
    """Compute a value at most once: when scheduled, or on first access.

    A failing executor is not retried. The error is stored and raised again on
    every later access. Reading the value while the executor is still running
    raises ``DITreeLazyReentryError``.
    """

    def __init__(self, executor: Callable[[], T], scheduler: IdleScheduler | None = None) -> None:
        self._executor = executor
        self._value: T = _UNSET
        self._error: BaseException | None = None
        self._did_run = False
        self._running = False

        if scheduler is not None:
            self.schedule(scheduler)

    @property
    def is_initialized(self) -> bool:
        return self._did_run

    @property
    def failed(self) -> bool:
        return self._error is not None

    @property
    def value(self) -> T:
        if self._running:
            raise DITreeLazyReentryError
        if not self._did_run:
            self._running = True
            try:
                self._value = self._executor()
            except BaseException as error:
                self._error = error
                raise
            finally:
                self._running = False
                self._did_run = True
        if self._error is not None:
            raise self._error
        return self._value

    def schedule(self, scheduler: IdleScheduler) -> None:
        """Ask ``scheduler`` to compute the value ahead of first access."""
        scheduler(self._run_when_idle)

    def _run_when_idle(self) -> None:
        # Errors reach the scheduler (the loop's exception handler) and stay stored.
        if not self._did_run and not self._running:
            _ = self.value


class LazyProxy:
    """Stand-in for an instance whose construction is deferred.

    Reading an attribute (or calling the proxy) constructs the target on first
    use. Bound methods are cached on the proxy so later calls skip forwarding.
    Attribute writes and deletes go to the target.
    """

    __slots__ = ("__dict__", "_ditree_idle")

    def __init__(self, idle_value: IdleValue[Any]) -> None:
        object.__setattr__(self, "_ditree_idle", idle_value)

    def __getattr__(self, name: str) -> Any:
        target = self._ditree_idle.value
        member = getattr(target, name)
        if inspect.ismethod(member) or inspect.isbuiltin(member):
            object.__setattr__(self, name, member)
        return member

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(self._ditree_idle.value, name, value)
        self.__dict__.pop(name, None)

    def __delattr__(self, name: str) -> None:
        delattr(self._ditree_idle.value, name)
        self.__dict__.pop(name, None)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._ditree_idle.value(*args, **kwargs)

    def __repr__(self) -> str:
        idle_value = self._ditree_idle
        if idle_value.failed:
            return "LazyProxy(<failed>)"
        if idle_value.is_initialized:
            return f"LazyProxy({idle_value.value!r})"
        return "LazyProxy(<pending>)"


def is_lazy_proxy(candidate: object) -> bool:
    return isinstance(candidate, LazyProxy)


def is_lazy_initialized(proxy: LazyProxy) -> bool:
    """Return whether the target behind ``proxy`` was already constructed."""
    return object.__getattribute__(proxy, "_ditree_idle").is_initialized


def resolve_lazy(candidate: T) -> T:
    """Return the target behind a lazy proxy, constructing it if needed.

    Non-proxy values are returned unchanged.
    """
    if isinstance(candidate, LazyProxy):
        return object.__getattribute__(candidate, "_ditree_idle").value
    return candidate
