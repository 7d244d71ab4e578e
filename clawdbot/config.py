"""Pydantic models for the clawdbot configuration and config file loading."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from clawdbot.constants import (
    CONFIG_FILENAME,
    DEFAULT_AGENT_ID,
    ENV_CONFIG_PATH,
    ENV_STATE_DIR,
    SESSION_STORE_FILENAME,
)

# --- Paths ---


def resolve_state_dir(env: dict[str, str] | None = None) -> Path:
    """Return the directory holding persisted clawdbot state."""
    env = os.environ if env is None else env
    override = env.get(ENV_STATE_DIR, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".clawdbot"


def resolve_config_path(config_path_str: str | None = None) -> Path | None:
    """Pick the config file to load, or None when there is none."""
    if config_path_str:
        return Path(config_path_str).expanduser()
    override = os.environ.get(ENV_CONFIG_PATH, "").strip()
    if override:
        return Path(override).expanduser()
    for candidate in (resolve_state_dir() / CONFIG_FILENAME, Path(CONFIG_FILENAME)):
        if candidate.exists():
            return candidate
    return None


def _replace_dashed_keys_recursive(d: dict[str, Any]) -> dict[str, Any]:
    """Recursively replace dashed keys with underscores in a dictionary."""
    new_dict: dict[str, Any] = {}
    for k, v in d.items():
        new_key = k.replace("-", "_")
        if isinstance(v, dict):
            new_dict[new_key] = _replace_dashed_keys_recursive(v)
        elif isinstance(v, list):
            new_dict[new_key] = [
                _replace_dashed_keys_recursive(item) if isinstance(item, dict) else item
                for item in v
            ]
        else:
            new_dict[new_key] = v
    return new_dict


def load_raw_config(config_path: Path | None) -> dict[str, Any]:
    """Load the TOML file at ``config_path`` with normalized keys.

    A missing path yields an empty mapping; parse errors propagate as
    `tomllib.TOMLDecodeError`.
    """
    if config_path is None or not config_path.exists():
        return {}
    with config_path.open("rb") as f:
        return _replace_dashed_keys_recursive(tomllib.load(f))


# --- Pydantic Models for Configuration ---


class AgentEntry(BaseModel):
    """A configured agent."""

    model_config = ConfigDict(extra="allow")

    id: str
    name: str | None = None
    workspace: Path | None = None
    default: bool = False

    @field_validator("id")
    @classmethod
    def _strip_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "agent id must not be empty"
            raise ValueError(msg)
        return v

    @field_validator("workspace", mode="before")
    @classmethod
    def _expand_user_path(cls, v: str | None) -> Path | None:
        if v:
            return Path(v).expanduser()
        return None


class AgentsConfig(BaseModel):
    """The ``[agents]`` section. ``list`` in the file maps to ``entries``."""

    model_config = ConfigDict(populate_by_name=True)

    default: str | None = None
    workspace: Path | None = None
    entries: list[AgentEntry] = Field(default_factory=list, alias="list")

    @field_validator("workspace", mode="before")
    @classmethod
    def _expand_user_path(cls, v: str | None) -> Path | None:
        if v:
            return Path(v).expanduser()
        return None


class Binding(BaseModel):
    """Routes messages from a channel (and optionally a peer) to an agent."""

    agent_id: str
    channel: str
    account_id: str | None = None
    peer: str | None = None

    def describe(self) -> str:
        """Render the binding as ``channel[:account] (peer <peer>)``."""
        target = self.channel
        if self.account_id:
            target = f"{target}:{self.account_id}"
        if self.peer:
            target = f"{target} (peer {self.peer})"
        return target


class MemorySearchConfig(BaseModel):
    """The ``[memory]`` section.

    ``manager`` names the factory (``module:callable``) that builds a memory
    search manager for an agent.
    """

    model_config = ConfigDict(extra="allow")

    enabled: bool = True
    manager: str | None = None
    provider: str = "auto"
    model: str | None = None
    sources: list[str] = Field(default_factory=lambda: ["memory"])


class SessionConfig(BaseModel):
    """The ``[session]`` section."""

    store: Path | None = None

    @field_validator("store", mode="before")
    @classmethod
    def _expand_user_path(cls, v: str | None) -> Path | None:
        if v:
            return Path(v).expanduser()
        return None


class ClawdbotConfig(BaseModel):
    """The full configuration file."""

    model_config = ConfigDict(extra="allow")

    agents: AgentsConfig = Field(default_factory=AgentsConfig)
    bindings: list[Binding] = Field(default_factory=list)
    memory: MemorySearchConfig = Field(default_factory=MemorySearchConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)


def load_config(config_path_str: str | None = None) -> ClawdbotConfig:
    """Load and validate the configuration file.

    Raises `pydantic.ValidationError` or `tomllib.TOMLDecodeError` for an
    invalid file.
    """
    raw = load_raw_config(resolve_config_path(config_path_str))
    return ClawdbotConfig.model_validate(raw)


# --- Agent resolution ---


def resolve_default_agent_id(cfg: ClawdbotConfig) -> str:
    """Return the id of the default agent."""
    if cfg.agents.default and cfg.agents.default.strip():
        return cfg.agents.default.strip()
    for entry in cfg.agents.entries:
        if entry.default:
            return entry.id
    if cfg.agents.entries:
        return cfg.agents.entries[0].id
    return DEFAULT_AGENT_ID


def resolve_agent_ids(cfg: ClawdbotConfig, agent: str | None = None) -> list[str]:
    """Return the agents a command should act on.

    An explicit ``agent`` wins; otherwise every configured agent, or the
    default agent when none are configured.
    """
    trimmed = agent.strip() if agent else ""
    if trimmed:
        return [trimmed]
    ids = [entry.id for entry in cfg.agents.entries if entry.id]
    if ids:
        return ids
    return [resolve_default_agent_id(cfg)]


def resolve_agent(cfg: ClawdbotConfig, agent: str | None = None) -> str:
    """Return a single agent id: ``agent`` if given, else the default."""
    trimmed = agent.strip() if agent else ""
    return trimmed or resolve_default_agent_id(cfg)


def find_agent(cfg: ClawdbotConfig, agent_id: str) -> AgentEntry | None:
    """Return the configured entry for ``agent_id``."""
    for entry in cfg.agents.entries:
        if entry.id == agent_id:
            return entry
    return None


def resolve_agent_dir(agent_id: str, state_dir: Path | None = None) -> Path:
    """Return ``<state>/agents/<agent_id>``."""
    return (state_dir or resolve_state_dir()) / "agents" / agent_id


def resolve_agent_workspace(cfg: ClawdbotConfig, agent_id: str) -> Path:
    """Return the workspace directory of an agent."""
    entry = find_agent(cfg, agent_id)
    if entry is not None and entry.workspace is not None:
        return entry.workspace
    if cfg.agents.workspace is not None:
        if agent_id == resolve_default_agent_id(cfg):
            return cfg.agents.workspace
        return cfg.agents.workspace.parent / f"{cfg.agents.workspace.name}-{agent_id}"
    if agent_id == DEFAULT_AGENT_ID:
        return resolve_state_dir() / "workspace"
    return resolve_state_dir() / f"workspace-{agent_id}"


def resolve_sessions_dir(agent_id: str, state_dir: Path | None = None) -> Path:
    """Return the directory holding an agent's session transcripts."""
    return resolve_agent_dir(agent_id, state_dir) / "sessions"


def resolve_session_store_path(
    cfg: ClawdbotConfig,
    agent_id: str,
    override: str | None = None,
) -> Path:
    """Return the session store file for an agent."""
    if override:
        return Path(override).expanduser()
    if cfg.session.store is not None:
        return cfg.session.store
    return resolve_sessions_dir(agent_id) / SESSION_STORE_FILENAME
