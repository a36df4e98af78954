# tests/unit/core/test_registry_hooks.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from unittest.mock import MagicMock

import pytest

from classkit.core.hooks import HookManager
from classkit.interfaces import Loader, RegistryHook, ValueContext


def test_hooks_receive_notifications(registry_hook):
    manager = HookManager([registry_hook])
    class_type = object()
    instance = object()
    manager.notify_class_resolved(class_type)
    manager.notify_instance_created(class_type, instance)
    registry_hook.on_class_resolved.assert_called_once_with(class_type)
    registry_hook.on_instance_created.assert_called_once_with(class_type, instance)


def test_hooks_without_method_are_skipped():
    class OnlyResolved:
        def __init__(self):
            self.seen = []

        def on_class_resolved(self, class_type):
            self.seen.append(class_type)

    hook = OnlyResolved()
    manager = HookManager([hook])
    manager.notify_instance_created("X", "instance")
    manager.notify_class_resolved("X")
    assert hook.seen == ["X"]


def test_register_and_unregister():
    hook = MagicMock()
    manager = HookManager()
    manager.register_hook(hook)
    manager.register_hook(hook)
    assert manager.hooks == [hook]
    manager.unregister_hook(hook)
    manager.notify_class_resolved("X")
    hook.on_class_resolved.assert_not_called()


def test_hook_errors_propagate():
    hook = MagicMock()
    hook.on_class_resolved.side_effect = RuntimeError("boom")
    manager = HookManager([hook])
    with pytest.raises(RuntimeError, match="boom"):
        manager.notify_class_resolved("X")


def test_collaborators_satisfy_protocols(animal_hierarchy, dict_loader, owner, registry_hook):
    assert isinstance(dict_loader, Loader)
    assert isinstance(registry_hook, RegistryHook)
    assert isinstance(owner, ValueContext)
    assert isinstance(animal_hierarchy.create_instance("Dog"), ValueContext)
    assert not isinstance(object(), Loader)
