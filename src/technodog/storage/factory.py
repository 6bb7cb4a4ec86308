"""Document store factory — registry, lazy import, singleton cache."""

from __future__ import annotations

import importlib
import logging

from technodog.storage.base import DocumentStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Store registry: (store_key, module_path, class_name)
# ---------------------------------------------------------------------------

_STORE_REGISTRY: list[tuple[str, str, str]] = [
    ("memory", "technodog.storage.memory_store", "InMemoryStore"),
    ("supabase", "technodog.storage.supabase_store", "SupabaseStore"),
]

# Singleton cache
_store_cache: dict[str, DocumentStore] = {}


def get_document_store(
    backend: str = "memory",
    **kwargs,
) -> DocumentStore:
    """Get a document store by name.

    Args:
        backend: One of ``memory``, ``supabase``.
        **kwargs: Passed to the store constructor.

    Returns:
        A ``DocumentStore`` instance.
    """
    key = backend.lower()

    if not kwargs and key in _store_cache:
        return _store_cache[key]

    for reg_key, module_path, cls_name in _STORE_REGISTRY:
        if reg_key == key:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, cls_name)
            instance = cls(**kwargs)
            if not kwargs:
                _store_cache[key] = instance
            return instance

    available = [k for k, _, _ in _STORE_REGISTRY]
    raise ValueError(f"Unknown document store '{backend}'. Available: {available}")


def available_stores() -> list[str]:
    """Return names of registered document stores."""
    return [k for k, _, _ in _STORE_REGISTRY]


def clear_cache() -> None:
    """Clear singleton cache (for testing)."""
    _store_cache.clear()
