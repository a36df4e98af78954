# classkit/interfaces/protocols.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Any, Callable, Protocol, runtime_checkable


@runtime_checkable
class Loader(Protocol):
    """
    Collaborator that makes an unknown class name known to the registry.
    The registry calls it synchronously and checks for the class afterwards.
    """

    def load_by_name(self, name: str, on_loaded: Callable[[], None]) -> None:
        """
        Register the class called ``name`` and invoke ``on_loaded`` once done.
        """
        ...


@runtime_checkable
class RegistryHook(Protocol):
    """
    Listener for registry notifications. Both methods are optional on a
    concrete hook; missing ones are skipped.
    """

    def on_class_resolved(self, class_type: Any) -> None:
        ...

    def on_instance_created(self, class_type: Any, instance: Any) -> None:
        ...


@runtime_checkable
class ValueContext(Protocol):
    """
    Owner of property value storage. Instances implement it; property types,
    maps and collections read and write through it.
    """

    def _read_slot(self, key: str) -> Any:
        ...

    def _write_slot(self, key: str, value: Any) -> None:
        ...

    def _mark_modified(self, name: str) -> None:
        ...
