# classkit/core/hooks.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, List, Optional

if TYPE_CHECKING:
    from classkit.core.class_type import ClassType
    from classkit.interfaces.protocols import RegistryHook

logger = logging.getLogger(__name__)


class HookManager:
    """
    Manages the registration and execution of hooks that listen to registry
    lifecycle events (class resolved, instance created). Users can attach
    containers, event buses or custom side effects without altering core logic.

    Notifications are delivered synchronously. An exception raised by a hook
    propagates to the caller of the registry operation.
    """

    def __init__(self, hooks: Optional[Iterable["RegistryHook"]] = None) -> None:
        """
        Initialize with an optional list of hook objects.
        """
        self._hooks: List[Any] = list(hooks or [])
        self._invoker = _HookInvoker(self._hooks)

    @property
    def hooks(self) -> List[Any]:
        return list(self._hooks)

    def register_hook(self, hook: "RegistryHook") -> None:
        """
        Add a new hook to the manager's list of hooks.

        :param hook: An object implementing some of the RegistryHook methods.
        """
        if hook not in self._hooks:
            self._hooks.append(hook)

    def unregister_hook(self, hook: "RegistryHook") -> None:
        """
        Remove a previously registered hook. Unknown hooks are ignored.
        """
        if hook in self._hooks:
            self._hooks.remove(hook)

    def notify_class_resolved(self, class_type: "ClassType") -> None:
        """
        Run all hooks' on_class_resolved logic after a class is resolved.
        """
        self._invoker.invoke("on_class_resolved", class_type)

    def notify_instance_created(self, class_type: "ClassType", instance: Any) -> None:
        """
        Run all hooks' on_instance_created logic after an instance is built.
        """
        self._invoker.invoke("on_instance_created", class_type, instance)


class _HookInvoker:
    """
    Internal helper that iterates through a list of hooks and invokes their
    lifecycle methods in registration order.
    """

    def __init__(self, hooks: List[Any]) -> None:
        self._hooks = hooks

    def invoke(self, method_name: str, *args: Any) -> None:
        for hook in list(self._hooks):
            method = getattr(hook, method_name, None)
            if callable(method):
                logger.debug("Invoking %s on %r", method_name, hook)
                method(*args)
