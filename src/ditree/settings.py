from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MAX_RECURSION_DEPTH = 10


class InjectorSettings(BaseSettings):
    """Resolver tuning shared by an injector and its children.

    Values are read from ``DITREE_*`` environment variables when not passed
    explicitly, for example ``DITREE_MAX_RECURSION_DEPTH=20``.
    """

    model_config = SettingsConfigDict(env_prefix="DITREE_", frozen=True)

    max_recursion_depth: int = Field(default=DEFAULT_MAX_RECURSION_DEPTH, ge=1)
    """Nested construction depth above which a circular dependency is reported."""

    lazy_idle_delay: float = Field(default=0.0, ge=0.0)
    """Seconds before a lazy binding is constructed on the running event loop."""

    schedule_lazy_construction: bool = True
    """Construct lazy bindings opportunistically instead of only on first use."""
