"""Plugin discovery through the ``clawdbot.plugins`` entry point group."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Any

from clawdbot.constants import PLUGIN_ENTRY_POINT_GROUP
from clawdbot.core.utils import format_error_message

if TYPE_CHECKING:
    from clawdbot.context import CommandContext

logger = logging.getLogger(__name__)


@dataclass
class LoadedPlugin:
    """One entry point, loaded or failed."""

    name: str
    value: str
    plugin: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class PluginRegistry:
    """Plugins discovered for this invocation."""

    plugins: list[LoadedPlugin] = field(default_factory=list)

    @property
    def loaded(self) -> list[LoadedPlugin]:
        return [p for p in self.plugins if p.ok]

    @property
    def failed(self) -> list[LoadedPlugin]:
        return [p for p in self.plugins if not p.ok]


def load_plugin_registry(group: str = PLUGIN_ENTRY_POINT_GROUP) -> PluginRegistry:
    """Load every entry point in ``group``; failures are recorded, not raised."""
    registry = PluginRegistry()
    for ep in entry_points(group=group):
        try:
            plugin = ep.load()
        except Exception as e:
            message = format_error_message(e)
            logger.warning("Failed to load plugin %s (%s): %s", ep.name, ep.value, message)
            registry.plugins.append(LoadedPlugin(name=ep.name, value=ep.value, error=message))
            continue
        logger.debug("Loaded plugin %s from %s", ep.name, ep.value)
        registry.plugins.append(LoadedPlugin(name=ep.name, value=ep.value, plugin=plugin))
    return registry


def ensure_plugin_registry_loaded(context: CommandContext) -> PluginRegistry:
    """Load the plugin registry once per invocation."""
    if context.plugins is None:
        context.plugins = load_plugin_registry()
    return context.plugins
