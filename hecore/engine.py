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

"""Public facade over one configured scheme instance.

Example:
    >>> engine = (
    ...     SchemeBuilder().backend("reference").build_integer_scheme("bfv", 8192, 20)
    ... )
    >>> ct = engine.encrypt([1, 2, 3])
    >>> engine.decode(engine.decrypt(engine.multiply(ct, ct)))[:3]
    array([1, 4, 9])
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Literal

import numpy as np

from hecore.backend.base import Backend
from hecore.dispatch import Dispatcher
from hecore.errors import MissingKey, WrongSchemeKind
from hecore.ntheory import primitive_root
from hecore.reconcile import Reconciler
from hecore.rotation import RotationAggregator
from hecore.types import MulMode, SchemeContext, SchemeKind
from hecore.values import Ciphertext, Plaintext

__all__ = ["HEEngine"]

logger = logging.getLogger(__name__)

DecodeType = Literal["int", "real", "complex"]


class HEEngine:
    """Encoding, encryption, arithmetic and aggregation for one scheme."""

    def __init__(self, context: SchemeContext, backend: Backend):
        self._context = context
        self._backend = backend
        self._mul_mode = context.mul_mode
        self._reconciler = Reconciler(backend)
        self._dispatcher = Dispatcher(backend, self._reconciler)
        self._rotation = RotationAggregator(backend, self._dispatcher)
        logger.info(
            f"Created {context.kind.value} engine: n={context.poly_modulus_degree}, "
            f"chain={list(context.coeff_modulus_bits)}, "
            f"security={int(context.sec_level)}, backend={backend.name}"
        )

    def __repr__(self) -> str:
        return (
            f"HEEngine(scheme={self.scheme!r}, "
            f"poly_modulus_degree={self.poly_modulus_degree}, "
            f"backend={self._backend.name!r})"
        )

    def _require(self, op: str, integer: bool) -> None:
        kind = self._context.kind
        if kind.is_integer != integer:
            expected = "BFV and BGV schemes" if integer else "the CKKS scheme"
            raise WrongSchemeKind(
                f"{op} is only supported for {expected}, not {kind.value}"
            )

    # --- accessors ---

    @property
    def context(self) -> SchemeContext:
        return self._context

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def kind(self) -> SchemeKind:
        return self._context.kind

    @property
    def scheme(self) -> str:
        return self._context.kind.value

    @property
    def sec_level(self) -> int:
        return int(self._context.sec_level)

    @property
    def poly_modulus_degree(self) -> int:
        return self._context.poly_modulus_degree

    @property
    def slot_count(self) -> int:
        return self._backend.slot_count

    @property
    def plain_modulus(self) -> int:
        self._require("plain_modulus", integer=True)
        return self._backend.plain_modulus

    @property
    def plain_modulus_bits(self) -> int:
        return self.plain_modulus.bit_length()

    @property
    def first_level_modulus_bits(self) -> int:
        return self._backend.first_level_modulus_bits

    @property
    def last_level_modulus_bits(self) -> int:
        return self._backend.last_level_modulus_bits

    @property
    def scale(self) -> float:
        self._require("scale", integer=False)
        return float(self._context.scale)

    @property
    def mul_mode(self) -> MulMode:
        """Multiplication convention used when a call does not name one."""
        return self._mul_mode

    @mul_mode.setter
    def mul_mode(self, mode: MulMode | str) -> None:
        self._mul_mode = MulMode.coerce(mode)

    def plain_modulus_primitive_root(self, n: int) -> int:
        """A primitive n-th root of unity modulo the plain modulus."""
        self._require("plain_modulus_primitive_root", integer=True)
        return primitive_root(n, self._backend.plain_modulus)

    # --- encoding ---

    def _mode(self, mul_mode: MulMode | str | None) -> MulMode:
        return self._mul_mode if mul_mode is None else MulMode.coerce(mul_mode)

    def _normalize(self, values: Any, mode: MulMode) -> list[Any]:
        if np.isscalar(values):
            width = self.slot_count if mode is MulMode.ELEMENT_WISE else 1
            values = [values] * width
        flat = np.asarray(values).ravel().tolist()
        if self.kind.is_integer:
            # Floats truncate toward zero, complex values keep the real part.
            return [int(v.real) if isinstance(v, complex) else int(v) for v in flat]
        return [complex(v) for v in flat]

    def encode(
        self,
        values: Any,
        *,
        parms_id: Any = None,
        scale: float | None = None,
        mul_mode: MulMode | str | None = None,
    ) -> Plaintext:
        """Encode a vector, or broadcast a scalar, into a plaintext.

        ``parms_id`` and ``scale`` apply to CKKS only and default to the first
        data level and the context scale.
        """
        mode = self._mode(mul_mode)
        if self.kind.is_integer and (parms_id is not None or scale is not None):
            raise WrongSchemeKind("parms_id and scale only apply to the CKKS scheme")
        data = self._backend.encode(
            self._normalize(values, mode), mode, parms_id=parms_id, scale=scale
        )
        return Plaintext(data, self._backend)

    def decode(
        self,
        pt: Plaintext,
        dtype: DecodeType = "int",
        *,
        mul_mode: MulMode | str | None = None,
    ) -> np.ndarray:
        """Decode a plaintext to int64, float64 or complex128 values.

        CKKS values decoded as ``"int"`` are rounded to the nearest integer.
        """
        if not isinstance(pt, Plaintext):
            raise TypeError(f"Expected Plaintext, got {type(pt)}")
        raw = self._backend.decode(pt.data, self._mode(mul_mode))
        if dtype == "complex":
            return raw.astype(np.complex128)
        if self.kind.is_integer:
            if dtype == "int":
                return raw
            if dtype == "real":
                return raw.astype(np.float64)
        else:
            if dtype == "real":
                return raw.real.copy()
            if dtype == "int":
                return np.rint(raw.real).astype(np.int64)
        raise ValueError(f"Unsupported decode dtype: {dtype!r}")

    def encrypt(
        self, value: Plaintext | Sequence[Any] | np.ndarray | float | complex
    ) -> Ciphertext:
        """Encrypt a plaintext, or encode raw values first and encrypt them."""
        if not self._backend.has_key("public"):
            raise MissingKey("Encryption requires a public key")
        pt = value if isinstance(value, Plaintext) else self.encode(value)
        if pt.backend is not self._backend:
            raise ValueError("Operand belongs to a different scheme instance")
        return Ciphertext(self._backend.encrypt(pt.data), self._backend)

    def decrypt(self, ct: Ciphertext) -> Plaintext:
        if not self._backend.has_key("secret"):
            raise MissingKey("Decryption requires a secret key")
        if not isinstance(ct, Ciphertext):
            raise TypeError(f"Expected Ciphertext, got {type(ct)}")
        if ct.backend is not self._backend:
            raise ValueError("Operand belongs to a different scheme instance")
        return Plaintext(self._backend.decrypt(ct.data), self._backend)

    # --- arithmetic ---

    def add(
        self,
        a: Ciphertext,
        b: Ciphertext | Plaintext,
        *,
        mul_mode: MulMode | str | None = None,
    ) -> Ciphertext:
        return self._dispatcher.add(a, b, self._mode(mul_mode))

    def sub(
        self,
        a: Ciphertext,
        b: Ciphertext | Plaintext,
        *,
        mul_mode: MulMode | str | None = None,
    ) -> Ciphertext:
        return self._dispatcher.sub(a, b, self._mode(mul_mode))

    def multiply(
        self,
        a: Ciphertext,
        b: Ciphertext | Plaintext,
        *,
        mul_mode: MulMode | str | None = None,
    ) -> Ciphertext:
        return self._dispatcher.multiply(a, b, self._mode(mul_mode))

    def negate(self, a: Ciphertext) -> Ciphertext:
        return self._dispatcher.negate(a)

    # --- reconciliation ---

    def levels_equal(self, c1: Ciphertext, c2: Ciphertext) -> bool:
        return self._reconciler.levels_equal(c1, c2)

    def match_levels(
        self, c1: Ciphertext, c2: Ciphertext
    ) -> tuple[Ciphertext, Ciphertext]:
        return self._reconciler.match_levels(c1, c2)

    def level_scale_equal(self, c1: Ciphertext, other: Ciphertext | Plaintext) -> bool:
        return self._reconciler.level_scale_equal(c1, other)

    def match_levels_and_scales(
        self,
        c1: Ciphertext,
        c2: Ciphertext,
        *,
        mul_mode: MulMode | str | None = None,
    ) -> tuple[Ciphertext, Ciphertext]:
        return self._reconciler.match_levels_and_scales(c1, c2, self._mode(mul_mode))

    def match_level_and_scale(
        self,
        ct: Ciphertext,
        pt: Plaintext,
        *,
        mul_mode: MulMode | str | None = None,
    ) -> Plaintext:
        return self._reconciler.match_level_and_scale(ct, pt, self._mode(mul_mode))

    # --- rotation ---

    def rotate_rows(self, ct: Ciphertext, steps: int) -> Ciphertext:
        return self._rotation.rotate_rows(ct, steps)

    def rotate_columns(self, ct: Ciphertext) -> Ciphertext:
        return self._rotation.rotate_columns(ct)

    def row_sum(self, ct: Ciphertext, range_size: int) -> Ciphertext:
        return self._rotation.row_sum(ct, range_size)

    def column_sum(self, ct: Ciphertext) -> Ciphertext:
        return self._rotation.column_sum(ct)

    # --- polynomials ---

    def polyval(
        self,
        ct: Ciphertext,
        coeffs: Sequence[float],
        *,
        mul_mode: MulMode | str | None = None,
    ) -> Ciphertext:
        """Evaluate sum(coeffs[i] * x**i) on an encrypted x with Horner's rule.

        Each Horner step costs one level, so a polynomial of degree d needs
        d levels above the terminal one.

        Raises:
            ValueError: if fewer than two coefficients are given, or if an
                integer scheme is given a non-integral coefficient.
            ExhaustedLevels: if the ciphertext runs out of levels.
        """
        coeffs = list(coeffs)
        if len(coeffs) < 2:
            raise ValueError("polyval requires at least 2 coefficients")
        if self.kind.is_integer:
            for c in coeffs:
                if np.iscomplexobj(c) or not float(c).is_integer():
                    raise ValueError(
                        f"Integer schemes need integral coefficients, got {c!r}"
                    )
        mode = self._mode(mul_mode)

        def const(value: Any, like: Ciphertext) -> Plaintext:
            if self.kind.is_integer:
                return self.encode(value, mul_mode=mode)
            return self.encode(
                value, parms_id=like.parms_id, scale=like.scale, mul_mode=mode
            )

        acc = self.multiply(ct, const(coeffs[-1], ct), mul_mode=mode)
        for i, c in enumerate(reversed(coeffs[:-1])):
            acc = self.add(acc, const(c, acc), mul_mode=mode)
            if i < len(coeffs) - 2:
                acc = self.multiply(acc, ct, mul_mode=mode)
        return acc
