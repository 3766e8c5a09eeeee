from ditree.bindings import (
    Binding,
    ClassBinding,
    Disposable,
    FactoryBinding,
    PendingConstruction,
    ValueBinding,
    is_disposable,
)
from ditree.collection import DependencyCollection
from ditree.exceptions import (
    DITreeCircularDependencyError,
    DITreeCollectionDisposedError,
    DITreeError,
    DITreeInvalidDeclarationError,
    DITreeLazyReentryError,
    DITreeMissingDependencyError,
    DITreeUnresolvedDependencyError,
)
from ditree.injector import Injector
from ditree.keys import DependencyKey, Identifier, create_identifier
from ditree.lazy import LazyProxy, is_lazy_proxy, resolve_lazy
from ditree.markers import Maybe, Need, injectable
from ditree.metadata import DependencyRequirement, MetadataRegistry, declare_dependency
from ditree.settings import InjectorSettings
from ditree.singletons import SingletonRegistry, drain_singletons, register_singleton

__all__ = [
    "Binding",
    "ClassBinding",
    "DITreeCircularDependencyError",
    "DITreeCollectionDisposedError",
    "DITreeError",
    "DITreeInvalidDeclarationError",
    "DITreeLazyReentryError",
    "DITreeMissingDependencyError",
    "DITreeUnresolvedDependencyError",
    "DependencyCollection",
    "DependencyKey",
    "DependencyRequirement",
    "Disposable",
    "FactoryBinding",
    "Identifier",
    "Injector",
    "InjectorSettings",
    "LazyProxy",
    "Maybe",
    "MetadataRegistry",
    "Need",
    "PendingConstruction",
    "SingletonRegistry",
    "ValueBinding",
    "create_identifier",
    "declare_dependency",
    "drain_singletons",
    "injectable",
    "is_disposable",
    "is_lazy_proxy",
    "register_singleton",
    "resolve_lazy",
]
