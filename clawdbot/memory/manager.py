"""Contract of the memory search manager and how one is obtained for an agent.

The indexing and search engine lives outside this package. A config names a
factory (``[memory] manager = "package.module:create_manager"``) which is
called as ``factory(config=cfg, agent_id=agent_id)`` and returns a manager
(or an awaitable resolving to one).
"""

from __future__ import annotations

import importlib
import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from clawdbot.core.utils import format_error_message

if TYPE_CHECKING:
    from collections.abc import Callable

    from clawdbot.config import ClawdbotConfig
    from clawdbot.memory.models import (
        EmbeddingProbe,
        MemorySearchResult,
        MemoryStatus,
        SyncProgress,
    )

logger = logging.getLogger(__name__)

MEMORY_DISABLED_MESSAGE = "Memory search disabled."


class SyncProgressObserver(Protocol):
    """Receives progress updates while a manager indexes."""

    def on_progress(self, update: SyncProgress) -> None: ...


@runtime_checkable
class MemorySearchManager(Protocol):
    """What the CLI needs from a memory index for one agent."""

    def status(self) -> MemoryStatus: ...

    async def sync(
        self,
        *,
        reason: str,
        force: bool = False,
        progress: SyncProgressObserver | None = None,
    ) -> None: ...

    async def search(
        self,
        query: str,
        *,
        max_results: int | None = None,
        min_score: float | None = None,
    ) -> list[MemorySearchResult]: ...

    async def probe_vector_availability(self) -> bool: ...

    async def probe_embedding_availability(self) -> EmbeddingProbe: ...

    async def close(self) -> None: ...


@dataclass
class MemorySearchManagerResult:
    """A manager, or the reason there is none."""

    manager: MemorySearchManager | None = None
    error: str | None = None


def load_manager_factory(reference: str) -> Callable[..., Any]:
    """Import the callable named by ``module:attribute``."""
    module_name, sep, attribute = reference.partition(":")
    if not sep or not module_name or not attribute:
        msg = f"Invalid memory manager reference {reference!r} (expected 'module:callable')"
        raise ValueError(msg)
    module = importlib.import_module(module_name)
    factory = module
    for part in attribute.split("."):
        factory = getattr(factory, part)
    if not callable(factory):
        msg = f"Memory manager reference {reference!r} is not callable"
        raise TypeError(msg)
    return factory


async def get_memory_search_manager(
    cfg: ClawdbotConfig,
    agent_id: str,
) -> MemorySearchManagerResult:
    """Build the memory search manager for ``agent_id``.

    Never raises: a disabled, unconfigured or broken manager is reported
    through ``error``.
    """
    if not cfg.memory.enabled:
        return MemorySearchManagerResult(error=MEMORY_DISABLED_MESSAGE)
    if not cfg.memory.manager:
        return MemorySearchManagerResult(
            error="Memory search is not configured (set memory.manager in the config).",
        )
    try:
        factory = load_manager_factory(cfg.memory.manager)
        manager = factory(config=cfg, agent_id=agent_id)
        if inspect.isawaitable(manager):
            manager = await manager
    except Exception as e:
        logger.debug("Memory manager factory failed", exc_info=True)
        return MemorySearchManagerResult(
            error=f"Memory search unavailable: {format_error_message(e)}",
        )
    if manager is None:
        return MemorySearchManagerResult(error=MEMORY_DISABLED_MESSAGE)
    return MemorySearchManagerResult(manager=manager)
