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

"""Fluent construction of scheme instances.

Example:
    >>> engine = (
    ...     SchemeBuilder()
    ...     .sec_level(128)
    ...     .galois_keys(True, steps=[1, 2, 4])
    ...     .build_approximate_scheme("ckks", 8192, 2.0**40)
    ... )
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from hecore.backend import get_backend
from hecore.engine import HEEngine
from hecore.errors import HEError, InvalidParameter, UnsupportedKind
from hecore.params import (
    size_approximate_chain,
    size_integer_chain,
    validate_chain,
)
from hecore.types import KeyFlags, MulMode, SchemeContext, SchemeKind, SecLevel

__all__ = ["SchemeBuilder"]

logger = logging.getLogger(__name__)

DEFAULT_BACKEND = "seal"


class SchemeBuilder:
    """Collects security and key options, then builds an :class:`HEEngine`.

    Every setter returns the builder. Building does not change the builder, so
    one builder can produce several engines.
    """

    def __init__(self) -> None:
        self._sec_level = SecLevel.TC128
        self._mul_mode = MulMode.ELEMENT_WISE
        self._secret = True
        self._public = True
        self._relin = True
        self._galois = True
        self._rotation_steps: tuple[int, ...] = ()
        self._backend = DEFAULT_BACKEND

    def sec_level(self, level: SecLevel | int | str) -> SchemeBuilder:
        self._sec_level = SecLevel.coerce(level)
        return self

    def mul_mode(self, mode: MulMode | str) -> SchemeBuilder:
        self._mul_mode = MulMode.coerce(mode)
        return self

    def secret_key(self, use: bool = True) -> SchemeBuilder:
        self._secret = use
        return self

    def public_key(self, use: bool = True) -> SchemeBuilder:
        self._public = use
        return self

    def relin_keys(self, use: bool = True) -> SchemeBuilder:
        self._relin = use
        return self

    def galois_keys(
        self, use: bool = True, steps: Sequence[int] | None = None
    ) -> SchemeBuilder:
        """Enable rotation keys, optionally only for explicit ``steps``.

        Step 0 stands for the row swap used by column rotation.
        """
        self._galois = use
        self._rotation_steps = tuple(int(s) for s in steps) if steps else ()
        return self

    def backend(self, name: str) -> SchemeBuilder:
        self._backend = name
        return self

    def _keys(self) -> KeyFlags:
        return KeyFlags(
            secret=self._secret,
            public=self._public,
            relin=self._relin,
            galois=self._galois,
            rotation_steps=self._rotation_steps,
        )

    def build_integer_scheme(
        self,
        kind: SchemeKind | str,
        poly_modulus_degree: int,
        plain_modulus_bits: int,
        coeff_modulus_bits: Sequence[int] | None = None,
    ) -> HEEngine:
        """Build a BFV or BGV engine.

        Without ``coeff_modulus_bits`` the chain is sized from the plain
        modulus width; otherwise the given chain is validated as-is.
        """
        kind = SchemeKind.coerce(kind)
        if not kind.is_integer:
            raise UnsupportedKind(f"{kind.value} is not an integer scheme")
        if coeff_modulus_bits is None:
            chain = size_integer_chain(
                self._sec_level, poly_modulus_degree, plain_modulus_bits
            )
        else:
            chain = validate_chain(
                coeff_modulus_bits, self._sec_level, poly_modulus_degree
            )

        context = SchemeContext(
            kind=kind,
            sec_level=self._sec_level,
            poly_modulus_degree=poly_modulus_degree,
            coeff_modulus_bits=chain,
            plain_modulus_bits=plain_modulus_bits,
            mul_mode=self._mul_mode,
            keys=self._keys(),
        )
        return self._build(context)

    def build_approximate_scheme(
        self,
        kind: SchemeKind | str,
        poly_modulus_degree: int,
        scale: float,
        coeff_modulus_bits: Sequence[int] | None = None,
    ) -> HEEngine:
        """Build a CKKS engine.

        Without ``coeff_modulus_bits`` the chain is sized from ``scale``;
        otherwise the given chain is validated as-is.
        """
        kind = SchemeKind.coerce(kind)
        if not kind.is_approximate:
            raise UnsupportedKind(f"{kind.value} is not an approximate scheme")
        if not scale > 0:
            raise InvalidParameter(f"scale must be positive, got {scale}")
        if coeff_modulus_bits is None:
            chain = size_approximate_chain(self._sec_level, poly_modulus_degree, scale)
        else:
            chain = validate_chain(
                coeff_modulus_bits, self._sec_level, poly_modulus_degree
            )

        context = SchemeContext(
            kind=kind,
            sec_level=self._sec_level,
            poly_modulus_degree=poly_modulus_degree,
            coeff_modulus_bits=chain,
            scale=float(scale),
            mul_mode=self._mul_mode,
            keys=self._keys(),
        )
        return self._build(context)

    def _build(self, context: SchemeContext) -> HEEngine:
        backend_cls = get_backend(self._backend)
        logger.debug(
            f"Building {context.kind.value} scheme on '{self._backend}': "
            f"chain={list(context.coeff_modulus_bits)}, keys={context.keys}"
        )
        try:
            backend = backend_cls(context)
        except HEError:
            raise
        except Exception as e:
            raise RuntimeError(
                f"Failed to build {context.kind.value} scheme: {e}"
            ) from e
        return HEEngine(context, backend)
