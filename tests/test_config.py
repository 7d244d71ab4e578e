"""Test the config loading."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import typer

from clawdbot.config import (
    ClawdbotConfig,
    load_config,
    resolve_agent,
    resolve_agent_ids,
    resolve_agent_workspace,
    resolve_config_path,
    resolve_default_agent_id,
    resolve_session_store_path,
    resolve_state_dir,
)
from clawdbot.config_guard import ensure_config_ready, migrate_legacy_state
from clawdbot.context import CommandContext

if TYPE_CHECKING:
    from collections.abc import Callable


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Provides a config file with dashed keys."""
    config_content = """
[agents]
workspace = "~/clawd"

[[agents.list]]
id = " main "
name = "Main"

[[agents.list]]
id = "ops"
default = true
workspace = "/srv/ops"

[[bindings]]
agent-id = "ops"
channel = "slack"
account-id = "T123"
peer = "C42"

[memory]
manager = "my_memory:create_manager"
sources = ["memory", "sessions"]

[session]
store = "~/sessions.json"
"""
    config_path = tmp_path / "custom.toml"
    config_path.write_text(config_content)
    return config_path


def test_load_config(config_file: Path) -> None:
    cfg = load_config(str(config_file))
    assert [entry.id for entry in cfg.agents.entries] == ["main", "ops"]
    assert cfg.agents.workspace == Path("~/clawd").expanduser()
    assert cfg.bindings[0].agent_id == "ops"
    assert cfg.bindings[0].describe() == "slack:T123 (peer C42)"
    assert cfg.memory.manager == "my_memory:create_manager"
    assert cfg.memory.sources == ["memory", "sessions"]
    assert cfg.session.store == Path("~/sessions.json").expanduser()


def test_load_missing_config() -> None:
    cfg = load_config()
    assert cfg == ClawdbotConfig()
    assert cfg.memory.enabled is True
    assert cfg.memory.manager is None


class TestResolveConfigPath:
    """Where the config file is looked up."""

    def test_explicit(self, tmp_path: Path) -> None:
        assert resolve_config_path(str(tmp_path / "x.toml")) == tmp_path / "x.toml"

    def test_env(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("CLAWDBOT_CONFIG_PATH", str(tmp_path / "env.toml"))
        assert resolve_config_path() == tmp_path / "env.toml"

    def test_state_dir(self, write_config: Callable[[str], Path]) -> None:
        path = write_config("")
        assert resolve_config_path() == path

    def test_working_directory(self, tmp_path: Path) -> None:
        (tmp_path / "clawdbot.toml").write_text("")
        assert resolve_config_path() == Path("clawdbot.toml")

    def test_none(self) -> None:
        assert resolve_config_path() is None


def test_resolve_state_dir() -> None:
    assert resolve_state_dir({"CLAWDBOT_STATE_DIR": "/var/clawd"}) == Path("/var/clawd")
    assert resolve_state_dir({}) == Path.home() / ".clawdbot"


class TestAgentResolution:
    """Default agent and agent lists."""

    def test_entry_marked_default(self, config_file: Path) -> None:
        cfg = load_config(str(config_file))
        assert resolve_default_agent_id(cfg) == "ops"

    def test_explicit_default_wins(self) -> None:
        cfg = ClawdbotConfig.model_validate(
            {"agents": {"default": " main ", "list": [{"id": "ops", "default": True}]}},
        )
        assert resolve_default_agent_id(cfg) == "main"

    def test_first_entry(self) -> None:
        cfg = ClawdbotConfig.model_validate({"agents": {"list": [{"id": "a"}, {"id": "b"}]}})
        assert resolve_default_agent_id(cfg) == "a"

    def test_fallback(self) -> None:
        assert resolve_default_agent_id(ClawdbotConfig()) == "main"

    def test_agent_ids(self, config_file: Path) -> None:
        cfg = load_config(str(config_file))
        assert resolve_agent_ids(cfg) == ["main", "ops"]
        assert resolve_agent_ids(cfg, " other ") == ["other"]
        assert resolve_agent_ids(ClawdbotConfig()) == ["main"]

    def test_single_agent(self, config_file: Path) -> None:
        cfg = load_config(str(config_file))
        assert resolve_agent(cfg) == "ops"
        assert resolve_agent(cfg, "  ") == "ops"
        assert resolve_agent(cfg, "main") == "main"


class TestWorkspaces:
    """Workspace and session store paths."""

    def test_configured_workspaces(self, config_file: Path) -> None:
        cfg = load_config(str(config_file))
        home_ws = Path("~/clawd").expanduser()
        assert resolve_agent_workspace(cfg, "ops") == Path("/srv/ops")
        assert resolve_agent_workspace(cfg, "main") == home_ws.parent / "clawd-main"

    def test_default_workspaces(self, state_dir: Path) -> None:
        cfg = ClawdbotConfig()
        assert resolve_agent_workspace(cfg, "main") == state_dir / "workspace"
        assert resolve_agent_workspace(cfg, "ops") == state_dir / "workspace-ops"

    def test_session_store(self, state_dir: Path) -> None:
        cfg = ClawdbotConfig()
        expected = state_dir / "agents" / "ops" / "sessions" / "sessions.json"
        assert resolve_session_store_path(cfg, "ops") == expected
        assert resolve_session_store_path(cfg, "ops", "/tmp/s.json") == Path("/tmp/s.json")


class TestMigrateLegacyState:
    """Moving ``<state>/sessions`` under the default agent."""

    def test_moves_files(self, state_dir: Path) -> None:
        legacy = state_dir / "sessions"
        legacy.mkdir(parents=True)
        (legacy / "sessions.json").write_text("{}")
        (legacy / "abc.jsonl").write_text("")
        moved = migrate_legacy_state(ClawdbotConfig())
        target = state_dir / "agents" / "main" / "sessions"
        assert moved == [target / "abc.jsonl", target / "sessions.json"]
        assert not legacy.exists()

    def test_keeps_conflicting_files(self, state_dir: Path) -> None:
        legacy = state_dir / "sessions"
        legacy.mkdir(parents=True)
        (legacy / "sessions.json").write_text("old")
        target = state_dir / "agents" / "main" / "sessions"
        target.mkdir(parents=True)
        (target / "sessions.json").write_text("new")
        assert migrate_legacy_state(ClawdbotConfig()) == []
        assert (target / "sessions.json").read_text() == "new"
        assert (legacy / "sessions.json").read_text() == "old"

    def test_nothing_to_do(self) -> None:
        assert migrate_legacy_state(ClawdbotConfig()) == []


class TestEnsureConfigReady:
    """Loading the config once per invocation."""

    @pytest.mark.asyncio
    async def test_caches_config(
        self,
        write_config: Callable[[str], Path],
        make_context: Callable[..., CommandContext],
    ) -> None:
        path = write_config('[agents]\ndefault = "ops"\n')
        context = make_context("status")
        cfg = await ensure_config_ready(context, migrate_state=False)
        assert resolve_default_agent_id(cfg) == "ops"
        assert context.config_path == path
        path.write_text("[broken\n")
        assert await ensure_config_ready(context, migrate_state=False) is cfg

    @pytest.mark.asyncio
    async def test_migrates_once(
        self,
        state_dir: Path,
        make_context: Callable[..., CommandContext],
    ) -> None:
        legacy = state_dir / "sessions"
        legacy.mkdir(parents=True)
        (legacy / "sessions.json").write_text("{}")
        context = make_context("agents", "list")
        await ensure_config_ready(context, migrate_state=True)
        assert context.state_migrated
        assert len(context.migrated_paths) == 1
        legacy.mkdir()
        (legacy / "late.json").write_text("{}")
        await ensure_config_ready(context, migrate_state=True)
        assert (legacy / "late.json").exists()

    @pytest.mark.asyncio
    async def test_no_migration_for_read_only(
        self,
        state_dir: Path,
        make_context: Callable[..., CommandContext],
    ) -> None:
        legacy = state_dir / "sessions"
        legacy.mkdir(parents=True)
        (legacy / "sessions.json").write_text("{}")
        context = make_context("status")
        await ensure_config_ready(context, migrate_state=False)
        assert (legacy / "sessions.json").exists()
        assert not context.state_migrated

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "content",
        ["[agents\n", '[[agents.list]]\nname = "no id"\n', "[memory]\nenabled = 'maybe'\n"],
    )
    async def test_invalid_config_exits(
        self,
        content: str,
        write_config: Callable[[str], Path],
        make_context: Callable[..., CommandContext],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        write_config(content)
        context = make_context("status")
        with pytest.raises(typer.Exit) as exc_info:
            await ensure_config_ready(context, migrate_state=False)
        assert exc_info.value.exit_code == 1
        assert "Config invalid" in capsys.readouterr().err
        assert context.config is None
