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

"""Rotation-based aggregation for the batched integer schemes.

BFV/BGV batching lays slots out as a 2 x (N/2) matrix. Row rotation shifts
slots cyclically within each row (positive steps shift left), column rotation
swaps the two rows.
"""

from __future__ import annotations

import logging

from hecore.backend.base import Backend
from hecore.dispatch import Dispatcher
from hecore.errors import InvalidRange, MissingKey, WrongSchemeKind
from hecore.ntheory import is_power_of_two
from hecore.values import Ciphertext

__all__ = ["RotationAggregator"]

logger = logging.getLogger(__name__)


class RotationAggregator:
    def __init__(self, backend: Backend, dispatcher: Dispatcher):
        self._backend = backend
        self._dispatcher = dispatcher

    def _check(self, op: str, ct: Ciphertext) -> None:
        kind = self._backend.context.kind
        if not kind.is_integer:
            raise WrongSchemeKind(
                f"{op} is only supported for BFV and BGV schemes, not {kind.value}"
            )
        if not isinstance(ct, Ciphertext):
            raise TypeError(f"Expected Ciphertext, got {type(ct)}")
        if ct.backend is not self._backend:
            raise ValueError("Operand belongs to a different scheme instance")
        if not self._backend.has_key("galois"):
            raise MissingKey(f"{op} requires Galois keys")

    def rotate_rows(self, ct: Ciphertext, steps: int) -> Ciphertext:
        self._check("rotate_rows", ct)
        return Ciphertext(self._backend.rotate_rows(ct.data, steps), self._backend)

    def rotate_columns(self, ct: Ciphertext) -> Ciphertext:
        self._check("rotate_columns", ct)
        return Ciphertext(self._backend.rotate_columns(ct.data), self._backend)

    def row_sum(self, ct: Ciphertext, range_size: int) -> Ciphertext:
        """Sum every ``range_size`` cyclically consecutive slots of each row.

        After the call slot i holds x[i] + x[i+1] + ... + x[i+range_size-1],
        indices taken modulo the row length. Takes log2(range_size)
        rotate-and-add rounds.

        Raises:
            InvalidRange: unless ``range_size`` is a power of two between 2
                and the row length.
        """
        self._check("row_sum", ct)
        half = self._backend.slot_count // 2
        if not (2 <= range_size <= half and is_power_of_two(range_size)):
            raise InvalidRange(
                f"range_size must be a power of two in [2, {half}], got {range_size}"
            )

        acc = ct
        step = 1
        while step < range_size:
            acc = self._dispatcher.add(acc, self.rotate_rows(acc, step))
            step <<= 1
        logger.debug(f"row_sum over {range_size} slots done in {step.bit_length() - 1} rounds")
        return acc

    def column_sum(self, ct: Ciphertext) -> Ciphertext:
        """Add the two rows, leaving the sum in both."""
        return self._dispatcher.add(ct, self.rotate_columns(ct))
