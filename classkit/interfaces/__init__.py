"""Protocols of the collaborators the registry talks to."""

from .protocols import Loader, RegistryHook, ValueContext

__all__ = ["Loader", "RegistryHook", "ValueContext"]
