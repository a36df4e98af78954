# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from unittest.mock import MagicMock

import pytest

from classkit.core.settings import RegistrySettings


@pytest.fixture
def settings():
    """Settings with a fixed hash token so slot names are predictable."""
    return RegistrySettings(hash_token="test1234")


@pytest.fixture
def property_manager(settings):
    """A PropertyManager using the fixed hash token."""
    from classkit.property.manager import PropertyManager

    return PropertyManager(hash_token=settings.hash_token)


@pytest.fixture
def registry_hook():
    """A hook mock recording registry notifications."""
    hook = MagicMock()
    hook.on_class_resolved = MagicMock()
    hook.on_instance_created = MagicMock()
    return hook


@pytest.fixture
def class_manager(settings, registry_hook):
    """A fresh registry with one recording hook."""
    from classkit.core.manager import ClassManager

    return ClassManager(settings=settings, hooks=[registry_hook])


@pytest.fixture
def dict_loader():
    """
    A loader backed by a dict of pending declarations. Each entry is
    ``name -> (kind, spec)`` and is registered on first request.
    """

    class DictLoader:
        def __init__(self):
            self.pending = {}
            self.requested = []
            self.manager = None

        def load_by_name(self, name, on_loaded):
            self.requested.append(name)
            if name in self.pending:
                kind, spec = self.pending.pop(name)
                self.manager.register(name, kind, spec)
                on_loaded()

    return DictLoader()


@pytest.fixture
def owner():
    """A minimal ValueContext for exercising property types without a class."""

    class Owner:
        def __init__(self):
            self.slots = {}
            self.modified = set()

        def _read_slot(self, key):
            return self.slots.get(key)

        def _write_slot(self, key, value):
            self.slots[key] = value

        def _mark_modified(self, name):
            self.modified.add(name)

    return Owner()


@pytest.fixture
def animal_hierarchy(class_manager):
    """AbstractClass Animal with an abstract speak(), plus Dog and Cat."""
    class_manager.register(
        "Animal",
        "AbstractClass",
        {
            "abstract_methods": ["speak"],
            "properties": {"name": {"type": "string", "default": "anonymous"}},
            "describe": lambda self: f"{self.name} says {self.speak()}",
        },
    )
    class_manager.register("Dog", "Class", {"extends": "Animal", "speak": lambda self: "woof"})
    class_manager.register("Cat", "Class", {"extends": "Animal"})
    return class_manager
