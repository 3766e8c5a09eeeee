"""Tests for the singleton registry and its merge into root injectors."""

import logging
from collections.abc import Callable

import pytest

from ditree import (
    ClassBinding,
    DependencyCollection,
    Injector,
    SingletonRegistry,
    create_identifier,
    drain_singletons,
    register_singleton,
)
from ditree.lazy import never_scheduler

ILog = create_identifier("test-singleton-log")
ILogAgain = create_identifier("test-singleton-log-again")
ICounter = create_identifier("test-singleton-counter")


class ClassA:
    def log(self) -> str:
        return "[ditree]"


class ClassB:
    def log(self) -> str:
        return "[other]"


class Counter:
    created = 0

    def __init__(self) -> None:
        Counter.created += 1


class TestSingletonRegistry:
    def test_register_and_drain(self, ditree_singletons: SingletonRegistry) -> None:
        ditree_singletons.register(ILog, ClassA)

        assert ditree_singletons.drain() == [(ILog, ClassBinding(ClassA))]

    def test_duplicate_registration_replaces_and_warns(
        self,
        ditree_singletons: SingletonRegistry,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        ditree_singletons.register(ILog, ClassA)
        ditree_singletons.register(ICounter, Counter)

        with caplog.at_level(logging.WARNING, logger="ditree"):
            ditree_singletons.register(ILog, ClassB, lazy=True)

        assert ditree_singletons.drain() == [
            (ILog, ClassBinding(ClassB, lazy=True)),
            (ICounter, ClassBinding(Counter)),
        ]
        assert "Duplicated singleton registration of test-singleton-log" in caplog.text

    def test_drain_is_repeatable(self, ditree_singletons: SingletonRegistry) -> None:
        ditree_singletons.register(ILog, ClassA)

        first = ditree_singletons.drain()
        first.clear()

        assert ditree_singletons.drain() == [(ILog, ClassBinding(ClassA))]
        assert len(ditree_singletons) == 1

    def test_module_functions_use_the_process_wide_registry(self) -> None:
        register_singleton(ILog, ClassA)

        assert drain_singletons() == [(ILog, ClassBinding(ClassA))]


class TestRootInjectorMerge:
    def test_root_injector_resolves_registered_singleton(
        self,
        make_injector: Callable[..., Injector],
        ditree_singletons: SingletonRegistry,
    ) -> None:
        ditree_singletons.register(ILog, ClassA)

        injector = make_injector()

        assert isinstance(injector.resolve(ILog), ClassA)

    def test_latest_registration_wins(
        self,
        make_injector: Callable[..., Injector],
        ditree_singletons: SingletonRegistry,
    ) -> None:
        ditree_singletons.register(ILogAgain, ClassA)
        ditree_singletons.register(ILogAgain, ClassB)

        injector = make_injector()

        assert injector.resolve(ILogAgain).log() == "[other]"

    def test_process_wide_singletons_reach_default_root_injectors(self) -> None:
        register_singleton(ILog, ClassA)

        injector = Injector(idle_scheduler=never_scheduler)

        assert isinstance(injector.resolve(ILog), ClassA)

    def test_caller_bindings_win_over_singletons(
        self,
        make_injector: Callable[..., Injector],
        ditree_singletons: SingletonRegistry,
    ) -> None:
        ditree_singletons.register(ILog, ClassA)

        injector = make_injector([(ILog, ClassBinding(ClassB))])

        assert isinstance(injector.resolve(ILog), ClassB)

    def test_children_do_not_merge_singletons(
        self,
        make_injector: Callable[..., Injector],
        ditree_singletons: SingletonRegistry,
    ) -> None:
        ditree_singletons.register(ILog, ClassA)
        root = make_injector()

        child = root.create_child()

        assert not child.collection.has(ILog)
        assert child.resolve(ILog) is root.resolve(ILog)

    def test_singleton_is_constructed_once_per_root(
        self,
        ditree_singletons: SingletonRegistry,
    ) -> None:
        Counter.created = 0
        ditree_singletons.register(ICounter, Counter)
        root = Injector(DependencyCollection(), singletons=ditree_singletons)

        for _ in range(3):
            root.create_child().resolve(ICounter)

        assert Counter.created == 1

    def test_every_root_injector_gets_its_own_instance(
        self,
        ditree_singletons: SingletonRegistry,
    ) -> None:
        ditree_singletons.register(ICounter, Counter)

        first = Injector(singletons=ditree_singletons).resolve(ICounter)
        second = Injector(singletons=ditree_singletons).resolve(ICounter)

        assert first is not second
