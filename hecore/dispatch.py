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

"""Arithmetic dispatch.

Each operation checks operand alignment first and reconciles only on a
mismatch, then calls the raw backend primitive. Multiplication additionally
relinearizes an oversized result and consumes exactly one level.
"""

from __future__ import annotations

import logging
from typing import Any

from hecore.backend.base import Backend
from hecore.errors import ExhaustedLevels, MissingKey
from hecore.reconcile import Reconciler
from hecore.types import MulMode
from hecore.values import Ciphertext, HEValue, Plaintext

__all__ = ["Dispatcher"]

logger = logging.getLogger(__name__)

# Component count of a relinearized ciphertext.
CANONICAL_SIZE = 2


class Dispatcher:
    """add/sub/multiply/negate over one backend."""

    def __init__(self, backend: Backend, reconciler: Reconciler):
        self._backend = backend
        self._reconciler = reconciler
        self._kind = backend.context.kind

    def _own(self, *values: HEValue) -> None:
        for v in values:
            if not isinstance(v, HEValue):
                raise TypeError(f"Expected Ciphertext or Plaintext, got {type(v)}")
            if v.backend is not self._backend:
                raise ValueError("Operand belongs to a different scheme instance")

    def _cipher(self, value: Any) -> Ciphertext:
        if not isinstance(value, Ciphertext):
            raise TypeError(f"Expected Ciphertext, got {type(value)}")
        return value

    def _align(
        self, c1: Ciphertext, c2: Ciphertext, mul_mode: MulMode
    ) -> tuple[Ciphertext, Ciphertext]:
        r = self._reconciler
        if self._kind.is_integer:
            if r.levels_equal(c1, c2):
                return c1, c2
            return r.match_levels(c1, c2)
        if r.level_scale_equal(c1, c2):
            return c1, c2
        return r.match_levels_and_scales(c1, c2, mul_mode)

    def _align_plain(
        self, ct: Ciphertext, pt: Plaintext, mul_mode: MulMode
    ) -> Plaintext:
        # Integer-scheme plaintexts carry no level binding.
        if self._kind.is_integer:
            return pt
        r = self._reconciler
        if r.level_scale_equal(ct, pt):
            return pt
        return r.match_level_and_scale(ct, pt, mul_mode)

    def _binary(
        self,
        a: Ciphertext,
        b: Ciphertext | Plaintext,
        mul_mode: MulMode,
        cipher_op: Any,
        plain_op: Any,
    ) -> Ciphertext:
        a = self._cipher(a)
        self._own(a, b)
        if isinstance(b, Plaintext):
            pt = self._align_plain(a, b, mul_mode)
            return Ciphertext(plain_op(a.data, pt.data), self._backend)
        c1, c2 = self._align(a, b, mul_mode)
        return Ciphertext(cipher_op(c1.data, c2.data), self._backend)

    def add(
        self,
        a: Ciphertext,
        b: Ciphertext | Plaintext,
        mul_mode: MulMode = MulMode.ELEMENT_WISE,
    ) -> Ciphertext:
        backend = self._backend
        return self._binary(a, b, mul_mode, backend.add, backend.add_plain)

    def sub(
        self,
        a: Ciphertext,
        b: Ciphertext | Plaintext,
        mul_mode: MulMode = MulMode.ELEMENT_WISE,
    ) -> Ciphertext:
        backend = self._backend
        return self._binary(a, b, mul_mode, backend.sub, backend.sub_plain)

    def negate(self, a: Ciphertext) -> Ciphertext:
        a = self._cipher(a)
        self._own(a)
        return Ciphertext(self._backend.negate(a.data), self._backend)

    def multiply(
        self,
        a: Ciphertext,
        b: Ciphertext | Plaintext,
        mul_mode: MulMode = MulMode.ELEMENT_WISE,
    ) -> Ciphertext:
        """Multiply, relinearize if needed, then consume one level.

        Raises:
            ExhaustedLevels: if an operand is already at the terminal level.
            MissingKey: if two ciphertexts are multiplied without relin keys.
        """
        a = self._cipher(a)
        self._own(a, b)
        backend = self._backend

        levels = [a.level] if isinstance(b, Plaintext) else [a.level, b.level]
        if min(levels) <= 1:
            raise ExhaustedLevels(
                "Cannot multiply at the terminal level: no level left to consume"
            )

        if isinstance(b, Plaintext):
            pt = self._align_plain(a, b, mul_mode)
            data = backend.multiply_plain(a.data, pt.data)
        else:
            if not backend.has_key("relin"):
                raise MissingKey("Ciphertext multiplication requires relin keys")
            c1, c2 = self._align(a, b, mul_mode)
            data = backend.multiply(c1.data, c2.data)

        if backend.size(data) > CANONICAL_SIZE:
            if not backend.has_key("relin"):
                raise MissingKey("Relinearization requires relin keys")
            data = backend.relinearize(data)

        if self._kind.is_integer:
            data = backend.mod_switch_to_next(data)
        else:
            data = backend.rescale_to_next(data)
        logger.debug(f"Multiply result at level {backend.level(data)}")
        return Ciphertext(data, backend)
