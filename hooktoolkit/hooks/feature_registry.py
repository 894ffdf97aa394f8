"""
Feature Registry: maps feature names to descriptors and lazily loaded handlers.

The catalog in feature_config is the default content. Handlers are imported
only when a run actually needs them, once per process.
"""

import importlib
import logging
from collections.abc import Callable, Iterable

from hooktoolkit.hooks.feature_config import BUILTIN_FEATURES, FeatureDescriptor
from hooktoolkit.hooks.schemas import HookContext, HookEvent
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import HandlerResult

logger = logging.getLogger(__name__)

Handler = Callable[[HookContext, ToolkitConfig], HandlerResult | None]

HANDLER_ATTRIBUTE = "handle"


def is_enabled(descriptor: FeatureDescriptor, config: ToolkitConfig) -> bool:
    """Whether a feature is switched on.

    Features without a config path are always on. Otherwise the node at the
    path decides through its ``enabled`` field; a missing node, or one with no
    ``enabled`` field, counts as enabled.
    """
    if not descriptor.config_path:
        return True
    section = config.section(descriptor.config_path)
    if section is None:
        return True
    enabled = getattr(section, "enabled", None)
    if enabled is None:
        return True
    return bool(enabled)


class FeatureRegistry:
    def __init__(self, descriptors: Iterable[FeatureDescriptor] = BUILTIN_FEATURES):
        self._descriptors: dict[str, FeatureDescriptor] = {}
        self._handlers: dict[str, Handler] = {}
        for descriptor in descriptors:
            self.register(descriptor)

    def register(self, descriptor: FeatureDescriptor, handler: Handler | None = None) -> None:
        """Add or replace a feature. An explicit handler skips the lazy import."""
        self._descriptors[descriptor.name] = descriptor
        self._handlers.pop(descriptor.name, None)
        if handler is not None:
            self._handlers[descriptor.name] = handler

    def get(self, name: str) -> FeatureDescriptor | None:
        return self._descriptors.get(name)

    def all(self) -> list[FeatureDescriptor]:
        return sorted(self._descriptors.values(), key=lambda d: d.sort_key)

    def descriptors_for(self, event: HookEvent | str) -> list[FeatureDescriptor]:
        """Descriptors participating in ``event``, ordered by (priority, name)."""
        return sorted(
            (d for d in self._descriptors.values() if event in d.hook_types),
            key=lambda d: d.sort_key,
        )

    def enabled_for(self, event: HookEvent | str, config: ToolkitConfig) -> list[FeatureDescriptor]:
        return [d for d in self.descriptors_for(event) if is_enabled(d, config)]

    def is_enabled(self, descriptor: FeatureDescriptor, config: ToolkitConfig) -> bool:
        return is_enabled(descriptor, config)

    def load(self, descriptor: FeatureDescriptor) -> Handler:
        """Import the feature's module (first use only) and return its handler."""
        handler = self._handlers.get(descriptor.name)
        if handler is None:
            logger.debug("Loading feature '%s' from %s", descriptor.name, descriptor.module)
            module = importlib.import_module(descriptor.module)
            handler = getattr(module, HANDLER_ATTRIBUTE)
            self._handlers[descriptor.name] = handler
        return handler

    def is_loaded(self, name: str) -> bool:
        return name in self._handlers

    def reset(self) -> None:
        """Restore the built-in catalog and forget loaded handlers."""
        self._descriptors.clear()
        self._handlers.clear()
        for descriptor in BUILTIN_FEATURES:
            self.register(descriptor)


_registry: FeatureRegistry | None = None


def get_registry() -> FeatureRegistry:
    """Process-wide registry."""
    global _registry
    if _registry is None:
        _registry = FeatureRegistry()
    return _registry
