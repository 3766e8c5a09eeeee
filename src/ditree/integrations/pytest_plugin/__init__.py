from ditree.integrations.pytest_plugin.plugin import ditree_injector, ditree_singletons

__all__ = ["ditree_injector", "ditree_singletons"]
