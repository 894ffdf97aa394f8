"""Tests for the feature catalog and registry."""

import sys

import pytest

from hooktoolkit.hooks.feature_config import (
    BUILTIN_FEATURES,
    FeatureCategory,
    FeatureDescriptor,
)
from hooktoolkit.hooks.feature_registry import FeatureRegistry, get_registry, is_enabled
from hooktoolkit.hooks.schemas import ALL_HOOK_EVENTS, HookEvent


def _descriptor(name, priority, events=(HookEvent.PRE_TOOL_USE,), config_path=""):
    return FeatureDescriptor(
        name=name,
        hook_types=frozenset(events),
        priority=priority,
        category=FeatureCategory.SECURITY,
        config_path=config_path,
        module="hooktoolkit.lib.features.command_guard",
    )


def test_builtin_names_are_unique():
    names = [d.name for d in BUILTIN_FEATURES]

    assert len(names) == len(set(names))


def test_every_builtin_module_exposes_a_handler():
    registry = FeatureRegistry()

    for descriptor in registry.all():
        assert callable(registry.load(descriptor)), descriptor.name


def test_descriptor_requires_hook_types():
    with pytest.raises(ValueError):
        _descriptor("empty", 1, events=())


def test_pre_tool_use_order():
    registry = FeatureRegistry()

    names = [d.name for d in registry.descriptors_for(HookEvent.PRE_TOOL_USE)]

    assert names == [
        "rate-limiter",
        "file-backup",
        "branch-guard",
        "command-guard",
        "file-guard",
        "secret-leak-guard",
        "path-guard",
        "scope-guard",
        "diff-size-guard",
        "logger",
    ]


def test_stop_order():
    registry = FeatureRegistry()

    names = [d.name for d in registry.descriptors_for(HookEvent.STOP)]

    assert names == [
        "session-tracker",
        "change-summary",
        "todo-tracker",
        "cost-tracker",
        "logger",
        "notification-webhook",
    ]


def test_priority_ties_break_by_name():
    """Equal priorities fall back to alphabetical order."""
    registry = FeatureRegistry(
        [_descriptor("zeta", 5), _descriptor("alpha", 5), _descriptor("first", 1)]
    )

    names = [d.name for d in registry.descriptors_for(HookEvent.PRE_TOOL_USE)]

    assert names == ["first", "alpha", "zeta"]


@pytest.mark.parametrize("event", ALL_HOOK_EVENTS)
def test_ordering_is_stable_and_sorted(event):
    registry = FeatureRegistry()

    first = registry.descriptors_for(event)
    second = registry.descriptors_for(event)

    assert first == second
    keys = [(d.priority, d.name) for d in first]
    assert keys == sorted(keys)
    assert all(event in d.hook_types for d in first)


def test_logger_runs_for_every_event():
    registry = FeatureRegistry()

    for event in ALL_HOOK_EVENTS:
        assert "logger" in [d.name for d in registry.descriptors_for(event)]


def test_descriptors_for_accepts_plain_strings():
    registry = FeatureRegistry()

    assert registry.descriptors_for("PermissionRequest")[0].name == "permission-handler"


def test_is_enabled_reads_enabled_flag(make_config):
    registry = FeatureRegistry()
    diff_size = registry.get("diff-size-guard")

    assert is_enabled(diff_size, make_config()) is False
    assert is_enabled(diff_size, make_config({"guards": {"diffSize": {"enabled": True}}})) is True


def test_is_enabled_without_config_path_is_always_true(make_config):
    logger_feature = FeatureRegistry().get("logger")

    assert is_enabled(logger_feature, make_config()) is True


def test_is_enabled_tolerates_missing_path_and_missing_flag(make_config):
    config = make_config()

    assert is_enabled(_descriptor("ghost", 1, config_path="no.such.path"), config) is True
    # "permissions" exists but has no enabled field
    assert is_enabled(_descriptor("perm", 1, config_path="permissions"), config) is True


def test_enabled_for_filters_disabled_features(make_config):
    registry = FeatureRegistry()

    names = [d.name for d in registry.enabled_for(HookEvent.PRE_TOOL_USE, make_config())]

    assert "diff-size-guard" not in names
    assert "rate-limiter" not in names
    assert "command-guard" in names


def test_load_is_lazy_and_cached(monkeypatch):
    registry = FeatureRegistry()
    descriptor = registry.get("scope-guard")
    monkeypatch.delitem(sys.modules, descriptor.module, raising=False)

    assert not registry.is_loaded("scope-guard")
    handler = registry.load(descriptor)

    assert registry.is_loaded("scope-guard")
    assert registry.load(descriptor) is handler
    assert descriptor.module in sys.modules


def test_register_replaces_by_name_and_reset_restores():
    registry = FeatureRegistry()
    replacement = _descriptor("command-guard", 999)

    registry.register(replacement, handler=lambda ctx, config: None)

    assert registry.get("command-guard").priority == 999
    assert registry.is_loaded("command-guard")

    registry.reset()

    assert registry.get("command-guard").priority == 10
    assert not registry.is_loaded("command-guard")


def test_get_registry_is_shared():
    assert get_registry() is get_registry()
