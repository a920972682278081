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

"""Ciphertext and plaintext handles."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from hecore.backend.base import Backend
from hecore.types import SchemeKind

__all__ = ["Ciphertext", "HEValue", "Plaintext"]


@dataclass(frozen=True, eq=False)
class HEValue:
    """Backend payload plus the backend that produced it.

    Level, scale and parameter-set identity are read from the payload on
    demand, so a handle never disagrees with the data it wraps.
    """

    data: Any
    backend: Backend

    @property
    def kind(self) -> SchemeKind:
        return self.backend.context.kind

    @property
    def level(self) -> int | None:
        return self.backend.level(self.data)

    @property
    def scale(self) -> float:
        return self.backend.scale(self.data)

    @property
    def parms_id(self) -> Any:
        return self.backend.parms_id(self.data)


class Ciphertext(HEValue):
    """Encrypted vector."""

    @property
    def size(self) -> int:
        """Number of polynomial components; 2 once relinearized."""
        return self.backend.size(self.data)

    def __repr__(self) -> str:
        if self.kind.is_approximate:
            return f"Ciphertext<{self.kind.value}, level={self.level}, scale=2^{math.log2(self.scale):.2f}>"
        return f"Ciphertext<{self.kind.value}, level={self.level}>"


class Plaintext(HEValue):
    """Encoded, unencrypted vector."""

    def __repr__(self) -> str:
        if self.kind.is_approximate:
            return f"Plaintext<{self.kind.value}, level={self.level}, scale=2^{math.log2(self.scale):.2f}>"
        return f"Plaintext<{self.kind.value}>"
