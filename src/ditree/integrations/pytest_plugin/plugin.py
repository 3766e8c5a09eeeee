from __future__ import annotations

from collections.abc import Iterator

import pytest

from ditree.injector import Injector
from ditree.lazy import never_scheduler
from ditree.singletons import SingletonRegistry


@pytest.fixture()
def ditree_singletons() -> SingletonRegistry:
    """Create a per-test singleton registry.

    Root injectors built by ``ditree_injector`` drain this registry instead of
    the process-wide one, so singleton registrations never leak between tests.

    Returns:
        A new, empty ``SingletonRegistry``.

    """
    return SingletonRegistry()


@pytest.fixture()
def ditree_injector(
    ditree_singletons: SingletonRegistry,
) -> Iterator[Injector]:
    """Create an isolated root injector, disposed after the test.

    The injector drains ``ditree_singletons``. Lazy bindings are constructed on
    first use only, which keeps tests deterministic.

    Yields:
        A root ``Injector`` with an empty collection.

    """
    injector = Injector(
        singletons=ditree_singletons,
        idle_scheduler=never_scheduler,
    )
    yield injector
    if not injector.collection.disposed:
        injector.dispose()
