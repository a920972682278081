# Copyright 2026 Ant Group Co., Ltd.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Homomorphic arithmetic backends.

Built-in backends are imported lazily so that hecore itself imports without
tenseal installed; only building a ``seal`` scheme needs it.
"""

import importlib
import logging
from collections.abc import Callable

from hecore.backend.base import Backend

__all__ = ["Backend", "available_backends", "get_backend", "register_backend"]

logger = logging.getLogger(__name__)

_REGISTRY: dict[str, type[Backend]] = {}

_BUILTIN_BACKENDS = {
    "seal": "hecore.backend.seal",
    "reference": "hecore.backend.reference",
}


def register_backend(name: str) -> Callable[[type[Backend]], type[Backend]]:
    """Class decorator adding a :class:`Backend` subclass to the registry."""

    def deco(cls: type[Backend]) -> type[Backend]:
        if name in _REGISTRY and _REGISTRY[name] is not cls:
            raise ValueError(f"Backend '{name}' is already registered")
        cls.name = name
        _REGISTRY[name] = cls
        return cls

    return deco


def load_backend(module_name: str) -> None:
    """Import a backend module for its registration side effect."""
    try:
        importlib.import_module(module_name)
        logger.debug(f"Loaded backend: {module_name}")
    except ImportError as e:
        raise ImportError(f"Failed to load backend '{module_name}': {e}") from e


def get_backend(name: str) -> type[Backend]:
    """Look up a backend class by name, importing built-ins on first use."""
    if name not in _REGISTRY and name in _BUILTIN_BACKENDS:
        load_backend(_BUILTIN_BACKENDS[name])
    try:
        return _REGISTRY[name]
    except KeyError:
        raise ValueError(
            f"Unknown backend '{name}'; available: {available_backends()}"
        ) from None


def available_backends() -> list[str]:
    return sorted(set(_REGISTRY) | set(_BUILTIN_BACKENDS))
