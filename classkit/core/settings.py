# classkit/core/settings.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import uuid
from dataclasses import dataclass, field


def _new_hash_token() -> str:
    return uuid.uuid4().hex[:8]


@dataclass(frozen=True)
class RegistrySettings:
    """
    Configuration for a ClassManager and the PropertyManager it creates.

    :param hash_token: Suffix used to build the internal storage name of every
        property value (``_<name>_<token>``). Random per registry by default.
    :param accessors: Whether properties generate ``get_``/``set_``/``is_``
        accessor methods unless their definition says otherwise.
    :param max_resolution_depth: Upper bound on the length of the active
        resolution path. Deeper graphs fail with a ResolutionError.
    """

    hash_token: str = field(default_factory=_new_hash_token)
    accessors: bool = True
    max_resolution_depth: int = 256

    def __post_init__(self) -> None:
        if not isinstance(self.hash_token, str) or not self.hash_token.isalnum():
            raise ValueError("hash_token must be a non-empty alphanumeric string")
        if not isinstance(self.accessors, bool):
            raise ValueError("accessors must be a bool")
        if not isinstance(self.max_resolution_depth, int) or self.max_resolution_depth < 1:
            raise ValueError("max_resolution_depth must be a positive integer")
