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

"""Scheme descriptors shared by every hecore component."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any

from hecore.errors import UnsupportedKind, UnsupportedMulMode

__all__ = [
    "KeyFlags",
    "MulMode",
    "SchemeContext",
    "SchemeKind",
    "SecLevel",
]


class SchemeKind(Enum):
    """Leveled homomorphic scheme families.

    BFV and BGV are the integer schemes; binary operations on them need equal
    levels. CKKS is the approximate real/complex scheme; binary operations on
    it need equal levels and equal scales.
    """

    BFV = "bfv"
    BGV = "bgv"
    CKKS = "ckks"

    @property
    def is_integer(self) -> bool:
        return self is not SchemeKind.CKKS

    @property
    def is_approximate(self) -> bool:
        return self is SchemeKind.CKKS

    @classmethod
    def coerce(cls, value: Any) -> SchemeKind:
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                pass
        raise UnsupportedKind(f"Unknown scheme kind: {value!r}")


class SecLevel(IntEnum):
    """Classical security levels of the HomomorphicEncryption.org standard."""

    TC128 = 128
    TC192 = 192
    TC256 = 256

    @classmethod
    def coerce(cls, value: Any) -> SecLevel:
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.upper().startswith("TC"):
            value = value[2:]
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise UnsupportedKind(f"Unknown security level: {value!r}") from None


class MulMode(Enum):
    """How encoded vectors combine under multiplication.

    ELEMENT_WISE packs values into SIMD slots and multiplies slot by slot.
    CONVOLUTION treats values as polynomial coefficients, so a product is a
    negacyclic convolution.
    """

    ELEMENT_WISE = "element_wise"
    CONVOLUTION = "convolution"

    @classmethod
    def coerce(cls, value: Any) -> MulMode:
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                pass
        raise UnsupportedMulMode(f"Unknown multiplication mode: {value!r}")


@dataclass(frozen=True)
class KeyFlags:
    """Which key material a scheme instance carries.

    ``rotation_steps`` narrows Galois key generation to explicit offsets; an
    empty tuple means the backend default (every power-of-two step and the
    row swap).
    """

    secret: bool = True
    public: bool = True
    relin: bool = True
    galois: bool = True
    rotation_steps: tuple[int, ...] = ()


@dataclass(frozen=True)
class SchemeContext:
    """Immutable description of one configured scheme instance."""

    kind: SchemeKind
    sec_level: SecLevel
    poly_modulus_degree: int
    coeff_modulus_bits: tuple[int, ...]
    plain_modulus_bits: int | None = None
    scale: float | None = None
    mul_mode: MulMode = MulMode.ELEMENT_WISE
    keys: KeyFlags = field(default_factory=KeyFlags)

    @property
    def chain_length(self) -> int:
        return len(self.coeff_modulus_bits)
