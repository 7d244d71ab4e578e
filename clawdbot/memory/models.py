"""Data exchanged with a memory search manager."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SourceCount(BaseModel):
    """Indexed files and chunks for one source."""

    source: str
    files: int = 0
    chunks: int = 0


class VectorStatus(BaseModel):
    """State of the vector extension."""

    enabled: bool = False
    available: bool | None = None
    dims: int | None = None
    extension_path: str | None = None
    load_error: str | None = None

    @property
    def state(self) -> str:
        if not self.enabled:
            return "disabled"
        return "ready" if self.available else "unavailable"


class FtsStatus(BaseModel):
    """State of the full-text index."""

    enabled: bool = False
    available: bool = False
    error: str | None = None

    @property
    def state(self) -> str:
        if not self.enabled:
            return "disabled"
        return "ready" if self.available else "unavailable"


class CacheStatus(BaseModel):
    """State of the embedding cache."""

    enabled: bool = False
    entries: int | None = None
    max_entries: int | None = None


class FallbackInfo(BaseModel):
    """Set when the requested embedding provider was replaced."""

    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    reason: str | None = None


class MemoryStatus(BaseModel):
    """Snapshot returned by ``manager.status()``."""

    provider: str
    requested_provider: str
    model: str
    sources: list[str] = Field(default_factory=list)
    files: int = 0
    chunks: int = 0
    dirty: bool = False
    db_path: str
    workspace_dir: str
    source_counts: list[SourceCount] = Field(default_factory=list)
    fallback: FallbackInfo | None = None
    vector: VectorStatus | None = None
    fts: FtsStatus | None = None
    cache: CacheStatus | None = None


class EmbeddingProbe(BaseModel):
    """Result of ``manager.probe_embedding_availability()``."""

    ok: bool
    error: str | None = None


class SyncProgress(BaseModel):
    """One progress update emitted while indexing."""

    completed: int = 0
    total: int = 0
    label: str | None = None


class MemorySearchResult(BaseModel):
    """A single search hit."""

    path: str
    start_line: int
    end_line: int
    score: float
    snippet: str
    source: str | None = None
