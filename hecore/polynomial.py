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

"""Plaintext polynomial helpers.

Polynomials are coefficient arrays in ascending degree order, so ``[1, 0, -1]``
is 1 - x^2. The sign approximations ``sign_f`` and ``sign_h`` are the
composite building blocks used to evaluate comparisons homomorphically: both
are odd around their center and push inputs toward +-1 when iterated, and
their coefficient lists feed straight into :meth:`HEEngine.polyval`.
"""

from __future__ import annotations

from collections.abc import Sequence
from math import comb

import numpy as np
from numpy.typing import ArrayLike, NDArray

__all__ = [
    "differentiate",
    "factorial",
    "lagrange",
    "poly_eval",
    "poly_iterate",
    "poly_mul",
    "poly_pow",
    "sample_data",
    "sign_cn",
    "sign_f",
    "sign_h",
    "toeplitz_matrix",
]


def factorial(a: int, b: int = 0) -> int:
    """Falling product a * (a-1) * ... * (b+1); ``factorial(a)`` is a!."""
    res = 1
    for i in range(a, b, -1):
        res *= i
    return res


def differentiate(poly: ArrayLike) -> NDArray[np.float64]:
    p = np.asarray(poly, dtype=np.float64)
    return p[1:] * np.arange(1, len(p))


def sample_data(
    lo: float,
    hi: float,
    epsilon: float = 0.0,
    count: int = 1,
    rng: np.random.Generator | None = None,
) -> NDArray[np.float64]:
    """Sample ``count`` points from [lo, -epsilon] U [epsilon, hi].

    Each point picks one of the two intervals with equal probability, which
    keeps samples away from the discontinuity of sign(x) at zero.
    """
    if not lo <= -epsilon <= epsilon <= hi:
        raise ValueError(
            f"Expected lo <= -epsilon <= epsilon <= hi, got {lo}, {epsilon}, {hi}"
        )
    rng = rng or np.random.default_rng()
    negative = rng.uniform(lo, -epsilon, count)
    positive = rng.uniform(epsilon, hi, count)
    return np.where(rng.integers(0, 2, count) == 0, negative, positive)


def toeplitz_matrix(coeffs: ArrayLike, size: int) -> NDArray[np.float64]:
    """Lower-triangular Toeplitz matrix T with T @ b == coeffs * b (truncated to ``size``)."""
    c = np.asarray(coeffs, dtype=np.float64)
    t = np.zeros((size, size), dtype=np.float64)
    for i, v in enumerate(c[:size]):
        idx = np.arange(size - i)
        t[idx + i, idx] = v
    return t


def poly_mul(a: ArrayLike, b: ArrayLike) -> NDArray[np.float64]:
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    size = len(a) + len(b) - 1
    extended = np.zeros(size, dtype=np.float64)
    extended[: len(b)] = b
    return toeplitz_matrix(a, size) @ extended


def poly_pow(poly: ArrayLike, exponent: int) -> NDArray[np.float64]:
    if exponent < 0:
        raise ValueError(f"exponent must be non-negative, got {exponent}")
    result = np.ones(1, dtype=np.float64)
    for _ in range(exponent):
        result = poly_mul(result, poly)
    return result


def poly_eval(poly: ArrayLike, x: ArrayLike) -> NDArray[np.float64] | float:
    """Evaluate at a point or element-wise over an array of points."""
    p = np.asarray(poly, dtype=np.float64)
    # np.polyval wants the highest degree first.
    result = np.polyval(p[::-1], x)
    return float(result) if np.ndim(result) == 0 else result


def poly_iterate(poly: ArrayLike, x: ArrayLike, depth: int) -> NDArray[np.float64] | float:
    """Apply ``poly`` ``depth`` times: p(p(...p(x)))."""
    for _ in range(depth):
        x = poly_eval(poly, x)
    return x


def lagrange(xs: Sequence[float], ys: Sequence[float]) -> NDArray[np.float64]:
    """Interpolating polynomial through the points (xs[i], ys[i])."""
    if len(xs) != len(ys):
        raise ValueError(f"Got {len(xs)} x values and {len(ys)} y values")
    n = len(xs)
    result = np.zeros(n, dtype=np.float64)
    for i in range(n):
        term = np.ones(1, dtype=np.float64)
        denominator = 1.0
        for j in range(n):
            if i == j:
                continue
            term = poly_mul(term, [-xs[j], 1.0])
            denominator *= xs[i] - xs[j]
        result[: len(term)] += term * (ys[i] / denominator)
    return result


def sign_cn(n: int) -> float:
    """Slope at zero of ``sign_f(n)``, (2n+1) / 4^n * C(2n, n)."""
    return (2 * n + 1) / 4.0**n * comb(2 * n, n)


def sign_f(n: int) -> NDArray[np.float64]:
    """f_n(x) = sum_{i=0..n} C(2i, i) / 4^i * x * (1 - x^2)^i, of degree 2n+1.

    Approximates sign(x) on [-1, 1].
    """
    coeff = np.zeros(2 * n + 2, dtype=np.float64)
    for i in range(n + 1):
        term = poly_mul([0.0, 1.0], poly_pow([1.0, 0.0, -1.0], i))
        coeff[: len(term)] += term * (comb(2 * i, i) / 4.0**i)
    return coeff


def sign_h(n: int) -> NDArray[np.float64]:
    """h_n(x) = sum_{i=0..n} C(2i, i) * (2x - 1) * (x - x^2)^i, of degree 2n+1.

    Equals ``sign_f(n)`` composed with 2x - 1, so it approximates
    sign(2x - 1) on [0, 1].
    """
    coeff = np.zeros(2 * n + 2, dtype=np.float64)
    for i in range(n + 1):
        term = poly_mul([-1.0, 2.0], poly_pow([0.0, 1.0, -1.0], i))
        coeff[: len(term)] += term * comb(2 * i, i)
    return coeff
