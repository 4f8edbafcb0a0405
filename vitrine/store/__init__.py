"""Data store adapters for the hosted storefront database."""

from vitrine.config import StoreConfig
from vitrine.store.base import BaseStore
from vitrine.store.rest import RestStore
from vitrine.store.sql import SqlStore

STORES: dict[str, type[BaseStore]] = {
    "sql": SqlStore,
    "rest": RestStore,
}


def get_store(config: StoreConfig) -> BaseStore:
    """Build the store configured by `config.backend`."""
    if config.backend not in STORES:
        raise ValueError(f"Unknown store backend: {config.backend}. Available: {list(STORES.keys())}")
    return STORES[config.backend](config)
