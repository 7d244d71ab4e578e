"""Interface to the external memory search manager."""

from __future__ import annotations

from clawdbot.memory.manager import (
    MEMORY_DISABLED_MESSAGE,
    MemorySearchManager,
    MemorySearchManagerResult,
    SyncProgressObserver,
    get_memory_search_manager,
    load_manager_factory,
)
from clawdbot.memory.models import (
    CacheStatus,
    EmbeddingProbe,
    FallbackInfo,
    FtsStatus,
    MemorySearchResult,
    MemoryStatus,
    SourceCount,
    SyncProgress,
    VectorStatus,
)

__all__ = [
    "MEMORY_DISABLED_MESSAGE",
    "CacheStatus",
    "EmbeddingProbe",
    "FallbackInfo",
    "FtsStatus",
    "MemorySearchManager",
    "MemorySearchManagerResult",
    "MemorySearchResult",
    "MemoryStatus",
    "SourceCount",
    "SyncProgress",
    "SyncProgressObserver",
    "VectorStatus",
    "get_memory_search_manager",
    "load_manager_factory",
]
