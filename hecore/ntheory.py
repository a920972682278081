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

"""Number-theory helpers for NTT-friendly moduli."""

from __future__ import annotations

from hecore.errors import InvalidParameter, InvalidRange

__all__ = ["find_ntt_primes", "is_power_of_two", "is_prime", "primitive_root"]

# Deterministic Miller-Rabin witnesses for every n < 3.3e24.
_WITNESSES = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37)


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def is_prime(n: int) -> bool:
    """Miller-Rabin primality test, deterministic below 2**64."""
    if n < 2:
        return False
    for p in _WITNESSES:
        if n % p == 0:
            return n == p

    d, r = n - 1, 0
    while d % 2 == 0:
        d //= 2
        r += 1

    for a in _WITNESSES:
        x = pow(a, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(r - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


def find_ntt_primes(bit_size: int, poly_modulus_degree: int, count: int = 1) -> list[int]:
    """Find the ``count`` largest primes of ``bit_size`` bits with q = 1 mod 2N.

    Such primes admit a negacyclic NTT of length N, which is what both
    coefficient moduli and batching plain moduli require.

    Raises:
        InvalidParameter: if not enough primes exist in the bit range.
    """
    if count < 1:
        return []
    m = 2 * poly_modulus_degree
    lower = 1 << (bit_size - 1)
    # Largest candidate strictly below 2**bit_size that is 1 mod m.
    q = (((1 << bit_size) - 2) // m) * m + 1

    primes: list[int] = []
    while q > lower and len(primes) < count:
        if is_prime(q):
            primes.append(q)
        q -= m
    if len(primes) < count:
        raise InvalidParameter(
            f"Not enough {bit_size}-bit primes congruent to 1 mod {m}"
        )
    return primes


def primitive_root(n: int, modulus: int) -> int:
    """Return a primitive ``n``-th root of unity modulo the prime ``modulus``.

    The search is deterministic: candidates g = 2, 3, ... are raised to
    (modulus - 1) / n and the first result whose (n/2)-th power is -1 wins.

    Raises:
        InvalidRange: if ``n`` is not a power of two of at least 2.
        InvalidParameter: if ``n`` does not divide ``modulus - 1``.
    """
    if n < 2 or not is_power_of_two(n):
        raise InvalidRange(f"Root order must be a power of two >= 2, got {n}")
    if (modulus - 1) % n != 0:
        raise InvalidParameter(
            f"No primitive {n}-th root of unity modulo {modulus}"
        )

    exponent = (modulus - 1) // n
    for g in range(2, modulus):
        root = pow(g, exponent, modulus)
        if pow(root, n // 2, modulus) == modulus - 1:
            return root
    raise InvalidParameter(f"No primitive {n}-th root of unity modulo {modulus}")
