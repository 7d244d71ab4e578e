"""Memory status, index and search commands."""

from __future__ import annotations

import asyncio
import json
import logging
import math
import os
import time
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.markup import escape

from clawdbot.config import resolve_agent, resolve_agent_ids, resolve_sessions_dir
from clawdbot.config_guard import ensure_config_ready
from clawdbot.core.progress import track_progress
from clawdbot.core.utils import console, err_console, format_error_message
from clawdbot.memory import MEMORY_DISABLED_MESSAGE, get_memory_search_manager

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from clawdbot.config import ClawdbotConfig
    from clawdbot.context import CommandContext
    from clawdbot.core.progress import ProgressReporter
    from clawdbot.memory import (
        EmbeddingProbe,
        MemorySearchManager,
        MemoryStatus,
        SyncProgress,
    )

logger = logging.getLogger(__name__)

INDEX_LABEL = "Indexing memory…"
_LABEL_REFRESH_SECONDS = 1.0


@dataclass(frozen=True)
class MemoryStatusCommand:
    """``memory status``."""

    agent: str | None = None
    json: bool = False
    deep: bool = False
    index: bool = False
    verbose: bool = False


@dataclass(frozen=True)
class MemoryIndexCommand:
    """``memory index``."""

    agent: str | None = None
    force: bool = False
    verbose: bool = False


@dataclass(frozen=True)
class MemorySearchCommand:
    """``memory search <query>``."""

    query: str
    agent: str | None = None
    max_results: int | None = None
    min_score: float | None = None
    json: bool = False


@dataclass
class AgentMemoryStatus:
    """Everything ``memory status`` learned about one agent."""

    agent_id: str
    status: MemoryStatus
    embedding_probe: EmbeddingProbe | None = None
    index_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "status": self.status.model_dump(mode="json", by_alias=True),
            "embedding_probe": (
                self.embedding_probe.model_dump(mode="json") if self.embedding_probe else None
            ),
            "index_error": self.index_error,
        }


@asynccontextmanager
async def open_manager(
    cfg: ClawdbotConfig,
    agent_id: str,
    context: CommandContext,
) -> AsyncIterator[MemorySearchManager | None]:
    """Acquire the memory manager for ``agent_id`` and always release it.

    Yields None (after printing why) when no manager is available. A failing
    ``close()`` is reported and marks the invocation as failed.
    """
    result = await get_memory_search_manager(cfg, agent_id)
    manager = result.manager
    if manager is None:
        console.print(escape(result.error or MEMORY_DISABLED_MESSAGE))
        yield None
        return
    try:
        yield manager
    finally:
        try:
            await manager.close()
        except Exception as e:
            message = escape(format_error_message(e))
            err_console.print(f"[bold red]Memory manager close failed:[/bold red] {message}")
            context.fail()


def format_source_label(
    source: str,
    workspace_dir: str,
    agent_id: str,
    state_dir: Path | None = None,
) -> str:
    """Describe where an indexed source reads its files from."""
    if source == "memory":
        return f"memory (MEMORY.md + {Path(workspace_dir) / 'memory'}{os.sep}*.md)"
    if source == "sessions":
        return f"sessions ({resolve_sessions_dir(agent_id, state_dir)}{os.sep}*.jsonl)"
    return source


def _label(text: str) -> str:
    return f"[dim]{escape(text)}:[/dim]"


def _state_style(state: str) -> str:
    return {"ready": "green", "unavailable": "yellow"}.get(state, "dim")


def format_status_lines(result: AgentMemoryStatus) -> list[str]:
    """Render one agent's memory status as Rich markup lines."""
    status = result.status
    lines = [
        f"[bold]Memory Search[/bold] [dim]({escape(result.agent_id)})[/dim]",
        f"{_label('Provider')} [cyan]{escape(status.provider)}[/cyan] "
        f"[dim](requested: {escape(status.requested_provider)})[/dim]",
        f"{_label('Model')} [cyan]{escape(status.model)}[/cyan]",
    ]
    if status.sources:
        lines.append(f"{_label('Sources')} [cyan]{escape(', '.join(status.sources))}[/cyan]")
    lines.extend(
        [
            f"{_label('Indexed')} [green]{status.files} files · {status.chunks} chunks[/green]",
            f"{_label('Dirty')} {'[yellow]yes[/yellow]' if status.dirty else '[dim]no[/dim]'}",
            f"{_label('Store')} [cyan]{escape(status.db_path)}[/cyan]",
            f"{_label('Workspace')} [cyan]{escape(status.workspace_dir)}[/cyan]",
        ],
    )
    probe = result.embedding_probe
    if probe is not None:
        state = "ready" if probe.ok else "unavailable"
        lines.append(f"{_label('Embeddings')} [{_state_style(state)}]{state}[/]")
        if probe.error:
            lines.append(f"{_label('Embeddings error')} [yellow]{escape(probe.error)}[/yellow]")
    if status.source_counts:
        lines.append(_label("By source"))
        for entry in status.source_counts:
            counts = f"{entry.files} files · {entry.chunks} chunks"
            lines.append(f"  [magenta]{escape(entry.source)}[/magenta] [dim]· {counts}[/dim]")
    if status.fallback:
        lines.append(f"{_label('Fallback')} [yellow]{escape(status.fallback.from_)}[/yellow]")
    if status.vector:
        state = status.vector.state
        lines.append(f"{_label('Vector')} [{_state_style(state)}]{state}[/]")
        if status.vector.dims:
            lines.append(f"{_label('Vector dims')} [cyan]{status.vector.dims}[/cyan]")
        if status.vector.extension_path:
            lines.append(
                f"{_label('Vector path')} [cyan]{escape(status.vector.extension_path)}[/cyan]",
            )
        if status.vector.load_error:
            lines.append(
                f"{_label('Vector error')} [yellow]{escape(status.vector.load_error)}[/yellow]",
            )
    if status.fts:
        state = status.fts.state
        lines.append(f"{_label('FTS')} [{_state_style(state)}]{state}[/]")
        if status.fts.error:
            lines.append(f"{_label('FTS error')} [yellow]{escape(status.fts.error)}[/yellow]")
    if status.cache:
        cache = status.cache
        state = "enabled" if cache.enabled else "disabled"
        suffix = (
            f" ({cache.entries} entries)" if cache.enabled and cache.entries is not None else ""
        )
        style = "green" if cache.enabled else "dim"
        lines.append(f"{_label('Embedding cache')} [{style}]{state}[/{style}]{suffix}")
        if cache.enabled and cache.max_entries is not None:
            lines.append(f"{_label('Cache cap')} [cyan]{cache.max_entries}[/cyan]")
    if status.fallback and status.fallback.reason:
        lines.append(f"[dim]{escape(status.fallback.reason)}[/dim]")
    if result.index_error:
        lines.append(f"{_label('Index error')} [yellow]{escape(result.index_error)}[/yellow]")
    return lines


async def _probe(manager: MemorySearchManager) -> EmbeddingProbe:
    with track_progress("Checking memory…", total=2) as progress:
        progress.set_label("Probing vector…")
        await manager.probe_vector_availability()
        progress.tick()
        progress.set_label("Probing embeddings…")
        probe = await manager.probe_embedding_availability()
        progress.tick()
    return probe


async def run_memory_status(opts: MemoryStatusCommand, context: CommandContext) -> None:
    """Show the memory index status of one or all agents."""
    cfg = await ensure_config_ready(context, migrate_state=False)
    context.set_verbose(opts.verbose)
    deep = opts.deep or opts.index
    results: list[AgentMemoryStatus] = []

    for agent_id in resolve_agent_ids(cfg, opts.agent):
        async with open_manager(cfg, agent_id, context) as manager:
            if manager is None:
                continue
            embedding_probe = None
            index_error = None
            try:
                if deep:
                    embedding_probe = await _probe(manager)
                else:
                    await manager.probe_vector_availability()
            except Exception as e:
                err_console.print(
                    f"[bold red]Memory probe failed ({escape(agent_id)}):[/bold red] "
                    f"{escape(format_error_message(e))}",
                )
                context.fail()
                continue
            if opts.index:
                with track_progress(INDEX_LABEL, line_fallback=opts.verbose) as progress:
                    try:
                        await manager.sync(reason="cli", progress=progress)
                    except Exception as e:
                        index_error = format_error_message(e)
                        err_console.print(
                            f"[bold red]Memory index failed:[/bold red] {escape(index_error)}",
                        )
                        context.fail()
            results.append(
                AgentMemoryStatus(
                    agent_id=agent_id,
                    status=manager.status(),
                    embedding_probe=embedding_probe,
                    index_error=index_error,
                ),
            )

    if opts.json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
        return

    for result in results:
        if opts.index:
            if result.index_error:
                console.print(f"Memory index failed: {escape(result.index_error)}")
            else:
                console.print("Memory index complete.")
        console.print("\n".join(format_status_lines(result)), soft_wrap=True)
        console.print()


def _format_clock(seconds: float) -> str:
    whole = max(0, math.floor(seconds))
    minutes, remaining = divmod(whole, 60)
    return f"{minutes}:{remaining:02d}"


class IndexProgressLabel:
    """Builds ``<label> · elapsed m:ss · eta m:ss`` for a running sync."""

    def __init__(self, label: str = INDEX_LABEL, *, clock: Any = time.monotonic) -> None:
        self._clock = clock
        self.started_at = clock()
        self.label = label
        self.completed = 0
        self.total = 0

    def record(self, update: SyncProgress) -> None:
        if update.label:
            self.label = update.label
        self.completed = update.completed
        self.total = update.total

    def elapsed(self) -> str:
        return _format_clock(self._clock() - self.started_at)

    def eta(self) -> str | None:
        if self.total <= 0 or self.completed <= 0:
            return None
        elapsed = max(1e-3, self._clock() - self.started_at)
        rate = self.completed / elapsed
        if not math.isfinite(rate) or rate <= 0:
            return None
        return _format_clock(max(0, self.total - self.completed) / rate)

    def build(self) -> str:
        eta = self.eta()
        if eta:
            return f"{self.label} · elapsed {self.elapsed()} · eta {eta}"
        return f"{self.label} · elapsed {self.elapsed()}"


class _IndexObserver:
    """Forwards sync progress to the reporter with an elapsed/eta label."""

    def __init__(self, reporter: ProgressReporter, label: IndexProgressLabel) -> None:
        self._reporter = reporter
        self._label = label

    def on_progress(self, update: SyncProgress) -> None:
        self._label.record(update)
        self._reporter.update(
            completed=update.completed,
            total=update.total,
            label=self._label.build(),
        )


async def _refresh_label(reporter: ProgressReporter, label: IndexProgressLabel) -> None:
    while True:
        await asyncio.sleep(_LABEL_REFRESH_SECONDS)
        reporter.set_label(label.build())


def _print_index_header(manager: MemorySearchManager, agent_id: str) -> None:
    status = manager.status()
    source_labels = [
        format_source_label(source, status.workspace_dir, agent_id) for source in status.sources
    ]
    lines = [
        f"[bold]Memory Index[/bold] [dim]({escape(agent_id)})[/dim]",
        f"{_label('Provider')} [cyan]{escape(status.provider)}[/cyan] "
        f"[dim](requested: {escape(status.requested_provider)})[/dim]",
        f"{_label('Model')} [cyan]{escape(status.model)}[/cyan]",
    ]
    if source_labels:
        lines.append(f"{_label('Sources')} [cyan]{escape(', '.join(source_labels))}[/cyan]")
    if status.fallback:
        lines.append(f"{_label('Fallback')} [yellow]{escape(status.fallback.from_)}[/yellow]")
    console.print("\n".join(lines), soft_wrap=True)
    console.print()


async def _sync_with_progress(manager: MemorySearchManager, *, force: bool, verbose: bool) -> None:
    label = IndexProgressLabel()
    with track_progress(INDEX_LABEL, line_fallback=verbose) as reporter:
        refresher = asyncio.create_task(_refresh_label(reporter, label))
        try:
            await manager.sync(
                reason="cli",
                force=force,
                progress=_IndexObserver(reporter, label),
            )
        finally:
            refresher.cancel()
            with suppress(asyncio.CancelledError):
                await refresher


async def run_memory_index(opts: MemoryIndexCommand, context: CommandContext) -> None:
    """Reindex the memory files of one or all agents."""
    cfg = await ensure_config_ready(context, migrate_state=False)
    context.set_verbose(opts.verbose)

    for agent_id in resolve_agent_ids(cfg, opts.agent):
        async with open_manager(cfg, agent_id, context) as manager:
            if manager is None:
                continue
            try:
                if opts.verbose:
                    _print_index_header(manager, agent_id)
                await _sync_with_progress(manager, force=opts.force, verbose=opts.verbose)
            except Exception as e:
                err_console.print(
                    f"[bold red]Memory index failed ({escape(agent_id)}):[/bold red] "
                    f"{escape(format_error_message(e))}",
                )
                context.fail()
                continue
            console.print(f"Memory index updated ({escape(agent_id)}).")


async def run_memory_search(opts: MemorySearchCommand, context: CommandContext) -> None:
    """Search the memory index of a single agent."""
    cfg = await ensure_config_ready(context, migrate_state=False)
    agent_id = resolve_agent(cfg, opts.agent)

    async with open_manager(cfg, agent_id, context) as manager:
        if manager is None:
            return
        try:
            results = await manager.search(
                opts.query,
                max_results=opts.max_results,
                min_score=opts.min_score,
            )
        except Exception as e:
            err_console.print(
                f"[bold red]Memory search failed:[/bold red] {escape(format_error_message(e))}",
            )
            context.fail()
            return

        if opts.json:
            print(json.dumps({"results": [r.model_dump(mode="json") for r in results]}, indent=2))
            return
        if not results:
            console.print("No matches.")
            return
        blocks = [
            f"[green]{r.score:.3f}[/green] "
            f"[magenta]{escape(f'{r.path}:{r.start_line}-{r.end_line}')}[/magenta]"
            f"\n[dim]{escape(r.snippet)}[/dim]"
            for r in results
        ]
        console.print("\n\n".join(blocks), soft_wrap=True)
