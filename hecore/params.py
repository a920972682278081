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

"""Modulus chain sizing and validation.

Bounds follow the HomomorphicEncryption.org security standard as tabulated by
SEAL's ``CoeffModulus::MaxBitCount``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from hecore.errors import EmptyChain, InvalidParameter, ParameterOverflow
from hecore.types import SecLevel

__all__ = [
    "GUARD_PRIME_BITS",
    "MAX_PRIME_BITS",
    "MIN_PRIME_BITS",
    "max_bit_count",
    "size_approximate_chain",
    "size_integer_chain",
    "validate_chain",
]

logger = logging.getLogger(__name__)

MIN_PRIME_BITS = 2
MAX_PRIME_BITS = 60
# Width of the two primes that bracket an approximate-scheme chain.
GUARD_PRIME_BITS = 60

_MAX_BIT_COUNT: dict[SecLevel, dict[int, int]] = {
    SecLevel.TC128: {
        1024: 27,
        2048: 54,
        4096: 109,
        8192: 218,
        16384: 438,
        32768: 881,
    },
    SecLevel.TC192: {
        1024: 19,
        2048: 37,
        4096: 75,
        8192: 152,
        16384: 305,
        32768: 611,
    },
    SecLevel.TC256: {
        1024: 14,
        2048: 29,
        4096: 58,
        8192: 118,
        16384: 237,
        32768: 476,
    },
}


def max_bit_count(sec_level: SecLevel | int, poly_modulus_degree: int) -> int:
    """Largest secure total coefficient modulus width, in bits.

    Raises:
        UnsupportedKind: for an unknown security level.
        InvalidParameter: for a polynomial degree outside 1024..32768.
    """
    table = _MAX_BIT_COUNT[SecLevel.coerce(sec_level)]
    try:
        return table[poly_modulus_degree]
    except KeyError:
        raise InvalidParameter(
            f"Unsupported poly_modulus_degree {poly_modulus_degree}; "
            f"expected one of {sorted(table)}"
        ) from None


def validate_chain(
    bits: Sequence[int], sec_level: SecLevel | int, poly_modulus_degree: int
) -> tuple[int, ...]:
    """Check a modulus chain against the security bound and return it as a tuple.

    Raises:
        EmptyChain: if ``bits`` is empty.
        InvalidParameter: if a prime width is outside SEAL's supported range.
        ParameterOverflow: if the total width exceeds :func:`max_bit_count`.
    """
    sec_level = SecLevel.coerce(sec_level)
    chain = tuple(int(b) for b in bits)
    if not chain:
        raise EmptyChain("The bit sizes list must not be empty")

    for b in chain:
        if not MIN_PRIME_BITS <= b <= MAX_PRIME_BITS:
            raise InvalidParameter(
                f"Each coeff modulus bit size must be in "
                f"[{MIN_PRIME_BITS}, {MAX_PRIME_BITS}], got {b}"
            )

    limit = max_bit_count(sec_level, poly_modulus_degree)
    total = sum(chain)
    if total > limit:
        raise ParameterOverflow(
            f"Sum of the coeff bit sizes ({total}) must not exceed {limit} "
            f"for poly_modulus_degree={poly_modulus_degree} and "
            f"security level {sec_level.value}"
        )
    return chain


def size_integer_chain(
    sec_level: SecLevel | int, poly_modulus_degree: int, plain_modulus_bits: int
) -> tuple[int, ...]:
    """Size a BFV/BGV chain from the plaintext precision.

    Every prime is twice as wide as the plain modulus, and as many are used
    as fit under the bound once the plain modulus width is set aside.
    """
    if plain_modulus_bits < 1:
        raise InvalidParameter(
            f"plain_modulus_bits must be positive, got {plain_modulus_bits}"
        )
    width = 2 * plain_modulus_bits
    limit = max_bit_count(sec_level, poly_modulus_degree)
    count = max((limit - plain_modulus_bits) // width, 0)
    logger.debug(
        f"Integer chain for n={poly_modulus_degree}, t={plain_modulus_bits} bits: "
        f"{count} x {width} bits (bound {limit})"
    )
    return validate_chain([width] * count, sec_level, poly_modulus_degree)


def size_approximate_chain(
    sec_level: SecLevel | int, poly_modulus_degree: int, scale: float
) -> tuple[int, ...]:
    """Size a CKKS chain from the encoding scale.

    Middle primes are floor(log2(scale)) bits wide and the chain is bracketed
    by two 60-bit guard primes.
    """
    if not scale >= 2:
        raise InvalidParameter(f"scale must be at least 2, got {scale}")
    width = int(scale).bit_length() - 1
    limit = max_bit_count(sec_level, poly_modulus_degree)
    count = max((limit - 2 * GUARD_PRIME_BITS) // width, 0)
    logger.debug(
        f"Approximate chain for n={poly_modulus_degree}, scale=2^{width}: "
        f"{count} x {width} bits between guards (bound {limit})"
    )
    bits = [GUARD_PRIME_BITS] + [width] * count + [GUARD_PRIME_BITS]
    return validate_chain(bits, sec_level, poly_modulus_degree)
