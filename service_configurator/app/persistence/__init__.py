"""
Template storage for the Configurator Service.

The store is the only owner of template data. Two backends share the
TemplateStore contract: an in-memory one (default) and PostgreSQL.
"""

from shared.config import ServiceConfig

from .base import TemplateStore
from .memory import InMemoryTemplateStore
from .postgres import PostgreSQLTemplateStore


def create_template_store(config: ServiceConfig) -> TemplateStore:
    """Build the store selected by ``store_backend``."""
    backend = config.store_backend.lower()
    if backend == "memory":
        return InMemoryTemplateStore()
    if backend == "postgres":
        return PostgreSQLTemplateStore(
            config.postgres_dsn,
            min_size=config.postgres_min_pool_size,
            max_size=config.postgres_max_pool_size,
        )
    raise ValueError(f"Unknown template store backend: {config.store_backend}")


__all__ = [
    "TemplateStore",
    "InMemoryTemplateStore",
    "PostgreSQLTemplateStore",
    "create_template_store",
]
