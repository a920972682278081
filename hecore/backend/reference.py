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

"""Insecure in-memory backend for local testing.

Values are kept in the clear. What the backend does model faithfully is the
bookkeeping a real SEAL context enforces: NTT-friendly primes, a modulus
chain whose top prime is reserved for key switching, per-payload levels and
scales, component counts, and the preconditions SEAL checks (parameter
mismatch, scale mismatch, scale out of bounds, end of the modulus chain).
Because rescaling divides by the actual chain primes, CKKS scales drift from
their nominal value exactly as they do under SEAL.

CKKS encoding adds a small Gaussian error (stddev 3.2 / scale) drawn from a
generator seeded by ``HECORE_REFERENCE_SEED``.
"""

from __future__ import annotations

import math
import os
import sys
import warnings
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Any

import numpy as np

from hecore.backend import register_backend
from hecore.backend.base import Backend
from hecore.ntheory import find_ntt_primes
from hecore.types import MulMode, SchemeContext

__all__ = ["RefCiphertext", "RefPlaintext", "ReferenceBackend"]


@dataclass(frozen=True, eq=False)
class RefPlaintext:
    values: np.ndarray
    mode: MulMode
    # CKKS parameter set; None for integer plaintexts.
    moduli: tuple[int, ...] | None = None
    scale: float = 1.0


@dataclass(frozen=True, eq=False)
class RefCiphertext:
    values: np.ndarray
    mode: MulMode
    moduli: tuple[int, ...]
    scale: float = 1.0
    size: int = 2


def _negacyclic(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Product of two polynomials modulo X^n + 1."""
    n = len(a)
    full = np.zeros(2 * n, dtype=a.dtype)
    for i in np.flatnonzero(a):
        full[i : i + n] += a[i] * b
    return full[:n] - full[n:]


def _chain_primes(bits: Sequence[int], poly_modulus_degree: int) -> list[int]:
    # Distinct primes per width, handed out largest first like CoeffModulus::Create.
    pools = {
        width: iter(find_ntt_primes(width, poly_modulus_degree, count))
        for width, count in Counter(bits).items()
    }
    return [next(pools[width]) for width in bits]


def _rng() -> np.random.Generator:
    seed = int(os.environ.get("HECORE_REFERENCE_SEED", "0"))
    return np.random.default_rng(seed)


@register_backend("reference")
class ReferenceBackend(Backend):
    """Cleartext model of a SEAL context."""

    def __init__(self, context: SchemeContext):
        super().__init__(context)
        warnings.warn(
            "Insecure reference backend in use. NOT secure; for local testing only.",
            stacklevel=3,
        )
        n = context.poly_modulus_degree
        self._n = n
        self._kind = context.kind
        self._rng = _rng()

        primes = _chain_primes(context.coeff_modulus_bits, n)
        if len(primes) == 1 and (context.keys.relin or context.keys.galois):
            raise ValueError("keyswitching is not supported by the context")
        # The top prime is the special prime and never holds data.
        self._data_moduli = tuple(primes[:-1] if len(primes) > 1 else primes)

        self._plain: int | None = None
        if self._kind.is_integer:
            if context.plain_modulus_bits is None:
                raise ValueError("plain_modulus_bits is required for integer schemes")
            self._plain = find_ntt_primes(context.plain_modulus_bits, n, 1)[0]
            if self._plain in primes:
                raise ValueError("plain modulus must be coprime to the coeff modulus")

        steps = context.keys.rotation_steps
        half = n // 2
        self._galois_steps: set[int] | None = (
            {s % half for s in steps} if steps else None
        )

    # --- parameters ---

    @property
    def slot_count(self) -> int:
        return self._n if self._kind.is_integer else self._n // 2

    @property
    def plain_modulus(self) -> int:
        if self._plain is None:
            raise ValueError("plain modulus is only defined for integer schemes")
        return self._plain

    @property
    def data_moduli(self) -> tuple[int, ...]:
        return self._data_moduli

    @property
    def first_level_modulus_bits(self) -> int:
        return sum(q.bit_length() for q in self._data_moduli)

    @property
    def last_level_modulus_bits(self) -> int:
        return self._data_moduli[0].bit_length()

    # --- checks ---

    def _check_scale(self, scale: float, moduli: tuple[int, ...]) -> None:
        total = sum(q.bit_length() for q in moduli)
        if not math.isfinite(scale) or scale <= 0 or int(math.log2(scale)) >= total:
            raise ValueError("scale out of bounds")

    @staticmethod
    def _same_scale(s1: float, s2: float) -> bool:
        return abs(s1 - s2) < sys.float_info.epsilon * max(abs(s1), abs(s2), 1.0)

    @staticmethod
    def _check_mode(a: Any, b: Any) -> None:
        if a.mode is not b.mode:
            raise ValueError(
                f"multiplication mode mismatch: {a.mode.value} vs {b.mode.value}"
            )

    def _check_pair(self, a: RefCiphertext, b: RefCiphertext, same_scale: bool) -> None:
        self._check_mode(a, b)
        if a.moduli != b.moduli:
            raise ValueError("encrypted1 and encrypted2 parameter mismatch")
        if same_scale and not self._same_scale(a.scale, b.scale):
            raise ValueError("scale mismatch")

    def _check_plain(self, a: RefCiphertext, p: RefPlaintext, same_scale: bool) -> None:
        self._check_mode(a, p)
        if self._kind.is_approximate:
            if a.moduli != p.moduli:
                raise ValueError("encrypted and plain parameter mismatch")
            if same_scale and not self._same_scale(a.scale, p.scale):
                raise ValueError("scale mismatch")

    def _reduce(self, values: np.ndarray) -> np.ndarray:
        return values % self._plain if self._plain is not None else values

    def _mul(self, a: Any, b: Any) -> np.ndarray:
        if a.mode is MulMode.CONVOLUTION:
            return self._reduce(_negacyclic(a.values, b.values))
        return self._reduce(a.values * b.values)

    # --- encoding ---

    def encode(
        self,
        values: Sequence[Any],
        mode: MulMode,
        parms_id: Any = None,
        scale: float | None = None,
    ) -> RefPlaintext:
        width = self.slot_count if mode is MulMode.ELEMENT_WISE else self._n
        if len(values) > width:
            raise ValueError(
                f"values has size {len(values)} larger than {width} available slots"
            )
        pad = width - len(values)

        if self._kind.is_integer:
            t = self.plain_modulus
            data = np.array([int(v) % t for v in values] + [0] * pad, dtype=object)
            return RefPlaintext(data, mode)

        moduli = self._data_moduli if parms_id is None else tuple(parms_id)
        if moduli != self._data_moduli[: len(moduli)] or not moduli:
            raise ValueError("parms_id is not valid for encryption parameters")
        scale = self.context.scale if scale is None else float(scale)
        self._check_scale(scale, moduli)

        data = np.zeros(width, dtype=np.complex128)
        data[: len(values)] = np.asarray(values, dtype=np.complex128)
        sigma = 3.2 / scale
        data = data + self._rng.normal(0.0, sigma, width)
        if mode is MulMode.ELEMENT_WISE:
            data = data + 1j * self._rng.normal(0.0, sigma, width)
        return RefPlaintext(data, mode, moduli, scale)

    def decode(self, plain: RefPlaintext, mode: MulMode) -> np.ndarray:
        if plain.mode is not mode:
            raise ValueError(
                f"plaintext was encoded under {plain.mode.value}, not {mode.value}"
            )
        if self._kind.is_integer:
            t = self.plain_modulus
            half = t >> 1
            return np.array(
                [int(v) - t if v > half else int(v) for v in plain.values],
                dtype=np.int64,
            )
        return np.array(plain.values, dtype=np.complex128)

    def encrypt(self, plain: RefPlaintext) -> RefCiphertext:
        if not self.has_key("public"):
            raise ValueError("public key is not set")
        moduli = plain.moduli if plain.moduli is not None else self._data_moduli
        return RefCiphertext(plain.values.copy(), plain.mode, moduli, plain.scale)

    def decrypt(self, cipher: RefCiphertext) -> RefPlaintext:
        if not self.has_key("secret"):
            raise ValueError("secret key is not set")
        moduli = cipher.moduli if self._kind.is_approximate else None
        return RefPlaintext(cipher.values.copy(), cipher.mode, moduli, cipher.scale)

    # --- arithmetic ---

    def add(self, a: RefCiphertext, b: RefCiphertext) -> RefCiphertext:
        self._check_pair(a, b, same_scale=True)
        return replace(
            a, values=self._reduce(a.values + b.values), size=max(a.size, b.size)
        )

    def sub(self, a: RefCiphertext, b: RefCiphertext) -> RefCiphertext:
        self._check_pair(a, b, same_scale=True)
        return replace(
            a, values=self._reduce(a.values - b.values), size=max(a.size, b.size)
        )

    def multiply(self, a: RefCiphertext, b: RefCiphertext) -> RefCiphertext:
        self._check_pair(a, b, same_scale=False)
        scale = a.scale * b.scale
        if self._kind.is_approximate:
            self._check_scale(scale, a.moduli)
        return replace(
            a, values=self._mul(a, b), scale=scale, size=a.size + b.size - 1
        )

    def add_plain(self, a: RefCiphertext, plain: RefPlaintext) -> RefCiphertext:
        self._check_plain(a, plain, same_scale=True)
        return replace(a, values=self._reduce(a.values + plain.values))

    def sub_plain(self, a: RefCiphertext, plain: RefPlaintext) -> RefCiphertext:
        self._check_plain(a, plain, same_scale=True)
        return replace(a, values=self._reduce(a.values - plain.values))

    def multiply_plain(self, a: RefCiphertext, plain: RefPlaintext) -> RefCiphertext:
        self._check_plain(a, plain, same_scale=False)
        scale = a.scale * plain.scale
        if self._kind.is_approximate:
            self._check_scale(scale, a.moduli)
        return replace(a, values=self._mul(a, plain), scale=scale)

    def negate(self, a: RefCiphertext) -> RefCiphertext:
        return replace(a, values=self._reduce(-a.values))

    # --- maintenance ---

    def relinearize(self, a: RefCiphertext) -> RefCiphertext:
        if not self.has_key("relin"):
            raise ValueError("relin keys are not set")
        return replace(a, size=2)

    def mod_switch_to_next(self, a: RefCiphertext) -> RefCiphertext:
        if len(a.moduli) == 1:
            raise ValueError("end of modulus switching chain reached")
        return replace(a, moduli=a.moduli[:-1])

    def rescale_to_next(self, a: RefCiphertext) -> RefCiphertext:
        if self._kind.is_integer:
            raise ValueError("unsupported scheme")
        if len(a.moduli) == 1:
            raise ValueError("end of modulus switching chain reached")
        return replace(a, moduli=a.moduli[:-1], scale=a.scale / a.moduli[-1])

    def mod_switch_plain_to(self, plain: RefPlaintext, parms_id: Any) -> RefPlaintext:
        if plain.moduli is None:
            raise ValueError("plain is not valid for encryption parameters")
        target = tuple(parms_id)
        if len(target) > len(plain.moduli) or plain.moduli[: len(target)] != target:
            raise ValueError("cannot switch to higher level modulus")
        return replace(plain, moduli=target)

    # --- rotation ---

    def _rows(self, a: RefCiphertext) -> np.ndarray:
        if self._kind.is_approximate:
            raise ValueError("unsupported scheme")
        if a.mode is not MulMode.ELEMENT_WISE:
            raise ValueError("rotation requires element-wise (batched) encoding")
        if not self.has_key("galois"):
            raise ValueError("Galois keys are not set")
        return a.values.reshape(2, self._n // 2)

    def rotate_rows(self, a: RefCiphertext, steps: int) -> RefCiphertext:
        rows = self._rows(a)
        half = self._n // 2
        if steps % half == 0:
            return replace(a, values=a.values.copy())
        if self._galois_steps is not None and steps % half not in self._galois_steps:
            raise ValueError("Galois key not present")
        return replace(a, values=np.roll(rows, -steps, axis=1).ravel())

    def rotate_columns(self, a: RefCiphertext) -> RefCiphertext:
        rows = self._rows(a)
        # Explicit step lists carry the row swap as step 0.
        if self._galois_steps is not None and 0 not in self._galois_steps:
            raise ValueError("Galois key not present")
        return replace(a, values=rows[::-1].ravel())

    # --- introspection ---

    def level(self, payload: Any) -> int | None:
        return None if payload.moduli is None else len(payload.moduli)

    def scale(self, payload: Any) -> float:
        return payload.scale

    def size(self, cipher: RefCiphertext) -> int:
        return cipher.size

    def parms_id(self, payload: Any) -> Any:
        return payload.moduli
