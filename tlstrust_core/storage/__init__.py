# tlstrust_core/storage/__init__.py

from .models import Decision, LookupResult, TrustDecision
from .provider import TrustStoreProvider
from .providers.memory_provider import InMemoryStorage
from .providers.sqlite_provider import SQLiteStorage
from tlstrust_core.constants import (
    DEFAULT_DB_PATH, DEFAULT_PROVIDER, ENV_DB_PATH, ENV_STORAGE_PROVIDER,
)
import os


def load_storage_provider(config: dict | None = None) -> TrustStoreProvider:
    """
    Factory resolver for selecting the runtime trust-store backend.

    For now:
        - sqlite (default)
        - memory
    """
    config = config or {}
    provider = config.get("provider") or os.getenv(ENV_STORAGE_PROVIDER, DEFAULT_PROVIDER)

    if provider == "memory":
        return InMemoryStorage()

    if provider == "sqlite":
        db_path = config.get("sqlite_path") or os.getenv(ENV_DB_PATH, DEFAULT_DB_PATH)
        return SQLiteStorage(os.path.expanduser(str(db_path)))

    raise ValueError(f"Unknown storage provider: {provider}")


__all__ = [
    "Decision",
    "LookupResult",
    "TrustDecision",
    "TrustStoreProvider",
    "InMemoryStorage",
    "SQLiteStorage",
    "load_storage_provider",
]
