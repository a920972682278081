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

"""SEAL backend.

Drives Microsoft SEAL through the TenSEAL low-level API (sealapi). Only the
batched (element-wise) encoding is available; the convolution mode needs a
coefficient encoder that sealapi does not expose.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np
import tenseal.sealapi as sealapi

from hecore.backend import register_backend
from hecore.backend.base import Backend
from hecore.errors import UnsupportedMulMode
from hecore.types import MulMode, SchemeContext

__all__ = ["SealBackend"]


def _read(obj: Any, attr: str) -> Any:
    # sealapi exposes some accessors as properties and others as methods.
    value = getattr(obj, attr)
    return value() if callable(value) else value


@register_backend("seal")
class SealBackend(Backend):
    """Backend over a ``sealapi.SEALContext``."""

    def __init__(self, context: SchemeContext):
        super().__init__(context)
        n = context.poly_modulus_degree
        self._kind = context.kind

        parms = sealapi.EncryptionParameters(
            getattr(sealapi.SCHEME_TYPE, context.kind.name)
        )
        parms.set_poly_modulus_degree(n)
        parms.set_coeff_modulus(
            sealapi.CoeffModulus.Create(n, list(context.coeff_modulus_bits))
        )
        if self._kind.is_integer:
            parms.set_plain_modulus(
                sealapi.PlainModulus.Batching(n, context.plain_modulus_bits)
            )
        sec_level = getattr(sealapi.SEC_LEVEL_TYPE, f"TC{int(context.sec_level)}")
        self.cpp_ctx = sealapi.SEALContext(parms, True, sec_level)

        keys = context.keys
        keygen = sealapi.KeyGenerator(self.cpp_ctx)
        self.secret_key = keygen.secret_key() if keys.secret else None
        self.public_key = None
        self.relin_keys = None
        self.galois_keys = None
        if keys.public:
            self.public_key = sealapi.PublicKey()
            keygen.create_public_key(self.public_key)
        if keys.relin:
            self.relin_keys = sealapi.RelinKeys()
            keygen.create_relin_keys(self.relin_keys)
        if keys.galois:
            self.galois_keys = sealapi.GaloisKeys()
            if keys.rotation_steps:
                keygen.create_galois_keys(list(keys.rotation_steps), self.galois_keys)
            else:
                keygen.create_galois_keys(self.galois_keys)

        self.evaluator = sealapi.Evaluator(self.cpp_ctx)
        self.encryptor = (
            sealapi.Encryptor(self.cpp_ctx, self.public_key)
            if self.public_key is not None
            else None
        )
        self.decryptor = (
            sealapi.Decryptor(self.cpp_ctx, self.secret_key)
            if self.secret_key is not None
            else None
        )
        if self._kind.is_integer:
            self.batch_encoder = sealapi.BatchEncoder(self.cpp_ctx)
        else:
            self.ckks_encoder = sealapi.CKKSEncoder(self.cpp_ctx)

    # --- parameters ---

    @property
    def slot_count(self) -> int:
        if self._kind.is_integer:
            return int(self.batch_encoder.slot_count())
        return int(self.ckks_encoder.slot_count())

    @property
    def plain_modulus(self) -> int:
        if not self._kind.is_integer:
            raise ValueError("plain modulus is only defined for integer schemes")
        return int(self.cpp_ctx.key_context_data().parms().plain_modulus().value())

    @property
    def first_level_modulus_bits(self) -> int:
        return int(self.cpp_ctx.first_context_data().total_coeff_modulus_bit_count())

    @property
    def last_level_modulus_bits(self) -> int:
        return int(self.cpp_ctx.last_context_data().total_coeff_modulus_bit_count())

    # --- encoding ---

    def encode(
        self,
        values: Sequence[Any],
        mode: MulMode,
        parms_id: Any = None,
        scale: float | None = None,
    ) -> Any:
        if mode is not MulMode.ELEMENT_WISE:
            raise UnsupportedMulMode(
                f"The seal backend only supports element-wise encoding, got {mode.value}"
            )
        pt = sealapi.Plaintext()
        if self._kind.is_integer:
            self.batch_encoder.encode([int(v) for v in values], pt)
            return pt

        if any(complex(v).imag != 0 for v in values):
            raise ValueError("The seal backend encodes real CKKS slots only")
        if parms_id is None:
            parms_id = self.cpp_ctx.first_parms_id()
        scale = self.context.scale if scale is None else float(scale)
        self.ckks_encoder.encode(
            [complex(v).real for v in values], list(parms_id), scale, pt
        )
        return pt

    def decode(self, plain: Any, mode: MulMode) -> np.ndarray:
        if mode is not MulMode.ELEMENT_WISE:
            raise UnsupportedMulMode(
                f"The seal backend only supports element-wise encoding, got {mode.value}"
            )
        if self._kind.is_integer:
            return np.array(self.batch_encoder.decode_int64(plain), dtype=np.int64)
        return np.array(self.ckks_encoder.decode_double(plain), dtype=np.complex128)

    def encrypt(self, plain: Any) -> Any:
        if self.encryptor is None:
            raise ValueError("public key is not set")
        ct = sealapi.Ciphertext()
        self.encryptor.encrypt(plain, ct)
        return ct

    def decrypt(self, cipher: Any) -> Any:
        if self.decryptor is None:
            raise ValueError("secret key is not set")
        pt = sealapi.Plaintext()
        self.decryptor.decrypt(cipher, pt)
        return pt

    # --- arithmetic ---

    def add(self, a: Any, b: Any) -> Any:
        out = sealapi.Ciphertext()
        self.evaluator.add(a, b, out)
        return out

    def sub(self, a: Any, b: Any) -> Any:
        out = sealapi.Ciphertext()
        self.evaluator.sub(a, b, out)
        return out

    def multiply(self, a: Any, b: Any) -> Any:
        out = sealapi.Ciphertext()
        self.evaluator.multiply(a, b, out)
        return out

    def add_plain(self, a: Any, plain: Any) -> Any:
        out = sealapi.Ciphertext()
        self.evaluator.add_plain(a, plain, out)
        return out

    def sub_plain(self, a: Any, plain: Any) -> Any:
        out = sealapi.Ciphertext()
        self.evaluator.sub_plain(a, plain, out)
        return out

    def multiply_plain(self, a: Any, plain: Any) -> Any:
        out = sealapi.Ciphertext()
        self.evaluator.multiply_plain(a, plain, out)
        return out

    def negate(self, a: Any) -> Any:
        out = sealapi.Ciphertext()
        self.evaluator.negate(a, out)
        return out

    # --- maintenance ---

    def relinearize(self, a: Any) -> Any:
        if self.relin_keys is None:
            raise ValueError("relin keys are not set")
        out = sealapi.Ciphertext()
        self.evaluator.relinearize(a, self.relin_keys, out)
        return out

    def mod_switch_to_next(self, a: Any) -> Any:
        out = sealapi.Ciphertext()
        self.evaluator.mod_switch_to_next(a, out)
        return out

    def rescale_to_next(self, a: Any) -> Any:
        out = sealapi.Ciphertext()
        self.evaluator.rescale_to_next(a, out)
        return out

    def mod_switch_plain_to(self, plain: Any, parms_id: Any) -> Any:
        out = sealapi.Plaintext()
        self.evaluator.mod_switch_to(plain, list(parms_id), out)
        return out

    # --- rotation ---

    def rotate_rows(self, a: Any, steps: int) -> Any:
        if self.galois_keys is None:
            raise ValueError("Galois keys are not set")
        out = sealapi.Ciphertext()
        self.evaluator.rotate_rows(a, steps, self.galois_keys, out)
        return out

    def rotate_columns(self, a: Any) -> Any:
        if self.galois_keys is None:
            raise ValueError("Galois keys are not set")
        out = sealapi.Ciphertext()
        self.evaluator.rotate_columns(a, self.galois_keys, out)
        return out

    # --- introspection ---

    def level(self, payload: Any) -> int | None:
        if self._kind.is_integer and isinstance(payload, sealapi.Plaintext):
            return None
        data = self.cpp_ctx.get_context_data(_read(payload, "parms_id"))
        return len(data.parms().coeff_modulus())

    def scale(self, payload: Any) -> float:
        return float(_read(payload, "scale"))

    def size(self, cipher: Any) -> int:
        return int(cipher.size())

    def parms_id(self, payload: Any) -> Any:
        return tuple(_read(payload, "parms_id"))
