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

"""Level and scale reconciliation.

Binary operations on BFV/BGV ciphertexts need equal levels; on CKKS they need
equal levels and equal scales. The comparison predicates tell whether two
operands are aligned, and the matching algorithms align them by consuming
levels on the operand that has more. Levels only ever go down, so every
matching loop is bounded by the chain length.

Matching is meant for the mismatch path only: calling it on operands that
already align raises :class:`~hecore.errors.AlreadyMatched`.
"""

from __future__ import annotations

import logging
import math
import sys
from typing import Any

from hecore.backend.base import Backend
from hecore.errors import AlreadyMatched, WrongSchemeKind
from hecore.types import MulMode
from hecore.values import Ciphertext, Plaintext

__all__ = ["Reconciler"]

logger = logging.getLogger(__name__)


def _scales_equal(s1: float, s2: float) -> bool:
    # Same closeness rule SEAL applies before add/sub.
    return abs(s1 - s2) < sys.float_info.epsilon * max(abs(s1), abs(s2), 1.0)


class Reconciler:
    """Comparison and matching algorithms over one backend."""

    def __init__(self, backend: Backend):
        self._backend = backend
        self._kind = backend.context.kind

    def _require_integer(self, op: str) -> None:
        if not self._kind.is_integer:
            raise WrongSchemeKind(
                f"{op} is only supported for BFV and BGV schemes, not {self._kind.value}"
            )

    def _require_approximate(self, op: str) -> None:
        if not self._kind.is_approximate:
            raise WrongSchemeKind(
                f"{op} is only supported for the CKKS scheme, not {self._kind.value}"
            )

    def _step_down(self, data: Any, step: Any) -> Any:
        """Apply one level-consuming ``step`` and check that it consumed a level."""
        before = self._backend.level(data)
        data = step(data)
        after = self._backend.level(data)
        if after is None or before is None or after >= before:
            raise RuntimeError(
                f"Level did not decrease during reconciliation ({before} -> {after})"
            )
        return data

    # --- integer schemes ---

    def levels_equal(self, c1: Ciphertext, c2: Ciphertext) -> bool:
        self._require_integer("levels_equal")
        return c1.level == c2.level

    def match_levels(
        self, c1: Ciphertext, c2: Ciphertext
    ) -> tuple[Ciphertext, Ciphertext]:
        """Mod-switch the higher-level operand down to the other's level.

        The lower-level operand is returned unchanged and operand order is
        preserved.
        """
        if self.levels_equal(c1, c2):
            raise AlreadyMatched(f"Both ciphertexts are already at level {c1.level}")

        if c1.level > c2.level:
            return self._switch_down(c1, c2.level), c2
        return c1, self._switch_down(c2, c1.level)

    def _switch_down(self, ct: Ciphertext, target: int) -> Ciphertext:
        logger.debug(f"Mod-switching ciphertext from level {ct.level} to {target}")
        data = ct.data
        while self._backend.level(data) > target:
            data = self._step_down(data, self._backend.mod_switch_to_next)
        return Ciphertext(data, self._backend)

    # --- approximate scheme ---

    def level_scale_equal(self, c1: Ciphertext, other: Ciphertext | Plaintext) -> bool:
        """Compare level and scale of two ciphertexts, or of a ciphertext and plaintext.

        For a plaintext the parameter-set identity is compared rather than the
        bare level.
        """
        self._require_approximate("level_scale_equal")
        if isinstance(other, Plaintext):
            return c1.parms_id == other.parms_id and _scales_equal(
                c1.scale, other.scale
            )
        return c1.level == other.level and _scales_equal(c1.scale, other.scale)

    def match_levels_and_scales(
        self,
        c1: Ciphertext,
        c2: Ciphertext,
        mul_mode: MulMode = MulMode.ELEMENT_WISE,
    ) -> tuple[Ciphertext, Ciphertext]:
        """Bring the higher-level operand down to the other's level.

        Each step multiplies by an encoded 1 at the operand's own parameter
        set and scale, then rescales, which consumes a level while keeping
        the scale close to its nominal value. Rescaling divides by an actual
        chain prime, so scales can drift from each other; the drift is
        logged and left for the caller to normalize.
        """
        if self.level_scale_equal(c1, c2):
            raise AlreadyMatched(
                f"Both ciphertexts are already at level {c1.level} "
                f"with scale {c1.scale}"
            )

        if c1.level > c2.level:
            c1 = self._rescale_down(c1, c2.level, mul_mode)
        elif c2.level > c1.level:
            c2 = self._rescale_down(c2, c1.level, mul_mode)

        if not _scales_equal(c1.scale, c2.scale):
            logger.warning(
                f"Scale drift after level matching at level {c1.level}: "
                f"2^{math.log2(c1.scale):.6f} vs 2^{math.log2(c2.scale):.6f}"
            )
        return c1, c2

    def _rescale_down(self, ct: Ciphertext, target: int, mode: MulMode) -> Ciphertext:
        logger.debug(f"Rescaling ciphertext from level {ct.level} to {target}")
        backend = self._backend
        width = backend.slot_count if mode is MulMode.ELEMENT_WISE else 1

        def identity_step(data: Any) -> Any:
            one = backend.encode(
                [1.0] * width,
                mode,
                parms_id=backend.parms_id(data),
                scale=backend.scale(data),
            )
            data = backend.multiply_plain(data, one)
            if backend.size(data) > 2:
                data = backend.relinearize(data)
            return backend.rescale_to_next(data)

        data = ct.data
        while backend.level(data) > target:
            data = self._step_down(data, identity_step)
        return Ciphertext(data, backend)

    def match_level_and_scale(
        self,
        ct: Ciphertext,
        pt: Plaintext,
        mul_mode: MulMode = MulMode.ELEMENT_WISE,
    ) -> Plaintext:
        """Bring a plaintext to the ciphertext's parameter set and scale.

        When only the parameter set differs the plaintext is mod-switched,
        which is exact. When the scales differ, or the plaintext already sits
        below the ciphertext's level, it is decoded and re-encoded at the
        ciphertext's parameter set and scale. That round trip loses precision;
        encoding at the intended scale up front avoids it.
        """
        if self.level_scale_equal(ct, pt):
            raise AlreadyMatched("Plaintext already matches the ciphertext")

        backend = self._backend
        if not _scales_equal(ct.scale, pt.scale) or pt.level < ct.level:
            logger.warning(
                f"Re-encoding plaintext from level {pt.level} to {ct.level} "
                f"(scale {pt.scale:.6g} -> {ct.scale:.6g}); precision may be lost"
            )
            values = backend.decode(pt.data, mul_mode)
            data = backend.encode(
                list(values), mul_mode, parms_id=ct.parms_id, scale=ct.scale
            )
            return Plaintext(data, backend)

        logger.debug(f"Mod-switching plaintext from level {pt.level} to {ct.level}")
        return Plaintext(backend.mod_switch_plain_to(pt.data, ct.parms_id), backend)
