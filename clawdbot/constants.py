"""Default settings for the clawdbot CLI."""

from __future__ import annotations

PROGRAM_NAME = "clawdbot"
# Runtime element inserted in front of direct-binary invocations.
DEFAULT_RUNTIME = "python"

DEFAULT_AGENT_ID = "main"

# --- Environment ---
ENV_DISABLE_ROUTE_FIRST = "CLAWDBOT_DISABLE_ROUTE_FIRST"
ENV_STATE_DIR = "CLAWDBOT_STATE_DIR"
ENV_CONFIG_PATH = "CLAWDBOT_CONFIG_PATH"

CONFIG_FILENAME = "clawdbot.toml"
SESSION_STORE_FILENAME = "sessions.json"

# --- Flags ---
TERMINATOR = "--"
HELP_FLAGS = ("-h", "--help")
VERSION_FLAGS = ("-V", "--version")

DEFAULT_HEALTH_TIMEOUT_MS = 10_000

PLUGIN_ENTRY_POINT_GROUP = "clawdbot.plugins"
