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

"""Backend interface.

A backend owns the scheme parameters and key material and performs the raw
primitives on opaque payloads. It does not reconcile operands: every binary
primitive assumes its inputs already share a level (and, for CKKS, a scale)
and fails if they do not. Payloads are never mutated; each primitive returns
a new one.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, ClassVar

import numpy as np

from hecore.types import MulMode, SchemeContext

__all__ = ["KEY_KINDS", "Backend"]

KEY_KINDS = ("secret", "public", "relin", "galois")


class Backend(ABC):
    """Raw homomorphic primitives for one scheme instance."""

    name: ClassVar[str] = ""

    def __init__(self, context: SchemeContext):
        self._context = context

    @property
    def context(self) -> SchemeContext:
        return self._context

    def has_key(self, kind: str) -> bool:
        """Whether key material of ``kind`` (one of ``KEY_KINDS``) exists."""
        keys = self._context.keys
        if kind not in KEY_KINDS:
            raise ValueError(f"Unknown key kind: {kind!r}")
        return bool(getattr(keys, kind))

    # --- parameters ---

    @property
    @abstractmethod
    def slot_count(self) -> int: ...

    @property
    @abstractmethod
    def plain_modulus(self) -> int:
        """Plain modulus value; integer schemes only."""

    @property
    @abstractmethod
    def first_level_modulus_bits(self) -> int:
        """Total coefficient modulus width at the first data level."""

    @property
    @abstractmethod
    def last_level_modulus_bits(self) -> int:
        """Total coefficient modulus width at the terminal level."""

    # --- encoding ---

    @abstractmethod
    def encode(
        self,
        values: Sequence[Any],
        mode: MulMode,
        parms_id: Any = None,
        scale: float | None = None,
    ) -> Any:
        """Encode values into a plaintext payload.

        ``parms_id`` and ``scale`` apply to CKKS only and default to the
        first data level and the context scale.
        """

    @abstractmethod
    def decode(self, plain: Any, mode: MulMode) -> np.ndarray:
        """Decode a plaintext payload.

        Integer schemes return int64 values centered around zero, CKKS
        returns complex128.
        """

    @abstractmethod
    def encrypt(self, plain: Any) -> Any: ...

    @abstractmethod
    def decrypt(self, cipher: Any) -> Any: ...

    # --- arithmetic ---

    @abstractmethod
    def add(self, a: Any, b: Any) -> Any: ...

    @abstractmethod
    def sub(self, a: Any, b: Any) -> Any: ...

    @abstractmethod
    def multiply(self, a: Any, b: Any) -> Any: ...

    @abstractmethod
    def add_plain(self, a: Any, plain: Any) -> Any: ...

    @abstractmethod
    def sub_plain(self, a: Any, plain: Any) -> Any: ...

    @abstractmethod
    def multiply_plain(self, a: Any, plain: Any) -> Any: ...

    @abstractmethod
    def negate(self, a: Any) -> Any: ...

    # --- maintenance ---

    @abstractmethod
    def relinearize(self, a: Any) -> Any: ...

    @abstractmethod
    def mod_switch_to_next(self, a: Any) -> Any: ...

    @abstractmethod
    def rescale_to_next(self, a: Any) -> Any: ...

    @abstractmethod
    def mod_switch_plain_to(self, plain: Any, parms_id: Any) -> Any: ...

    # --- rotation ---

    @abstractmethod
    def rotate_rows(self, a: Any, steps: int) -> Any: ...

    @abstractmethod
    def rotate_columns(self, a: Any) -> Any: ...

    # --- introspection ---

    @abstractmethod
    def level(self, payload: Any) -> int | None:
        """Number of primes left in the payload's modulus.

        None for integer-scheme plaintexts, which carry no level binding.
        """

    @abstractmethod
    def scale(self, payload: Any) -> float: ...

    @abstractmethod
    def size(self, cipher: Any) -> int: ...

    @abstractmethod
    def parms_id(self, payload: Any) -> Any:
        """Hashable identity of the payload's parameter set."""
