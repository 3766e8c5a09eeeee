"""Shared pytest fixtures for ditree tests."""

from collections.abc import Callable, Iterable, Iterator
from typing import Any

import pytest

from ditree.collection import DependencyCollection
from ditree.injector import Injector
from ditree.lazy import never_scheduler
from ditree.singletons import SingletonRegistry, singleton_registry

pytest_plugins = ["ditree.integrations.pytest_plugin"]


@pytest.fixture(autouse=True)
def _reset_process_singletons() -> Iterator[None]:
    """Keep process-wide singleton registrations from leaking between tests."""
    yield
    singleton_registry.clear()


@pytest.fixture()
def make_injector(ditree_singletons: SingletonRegistry) -> Callable[..., Injector]:
    """Build root injectors isolated from process-wide singletons."""

    def factory(items: Iterable[Any] = (), **kwargs: Any) -> Injector:
        kwargs.setdefault("singletons", ditree_singletons)
        kwargs.setdefault("idle_scheduler", never_scheduler)
        return Injector(DependencyCollection(items), **kwargs)

    return factory
