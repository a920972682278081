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

"""Error kinds raised by hecore.

Every failure is local and deterministic: it signals either a misuse of the
API or a parameter set that cannot be satisfied. Kinds describing bad
arguments also derive from ``ValueError`` and kinds describing a missing
capability derive from ``RuntimeError``, so callers that only know the
built-in hierarchy still catch them.

Exceptions are the primary channel. :func:`attempt` turns any call into an
:class:`Outcome` value for callers that prefer explicit result handling.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

__all__ = [
    "AlreadyMatched",
    "EmptyChain",
    "ExhaustedLevels",
    "HEError",
    "InvalidParameter",
    "InvalidRange",
    "MissingKey",
    "Outcome",
    "ParameterOverflow",
    "UnsupportedKind",
    "UnsupportedMulMode",
    "WrongSchemeKind",
    "attempt",
]


class HEError(Exception):
    """Base exception for hecore errors."""


class WrongSchemeKind(HEError, TypeError):
    """Raised when an operation is invoked under an incompatible scheme kind."""


class AlreadyMatched(HEError, ValueError):
    """Raised when reconciliation is requested for operands that already align."""


class InvalidRange(HEError, ValueError):
    """Raised for a bad summation range or root-of-unity order."""


class InvalidParameter(HEError, ValueError):
    """Raised when encryption parameters are malformed or insecure."""


class ParameterOverflow(InvalidParameter):
    """Raised when the modulus chain exceeds the security bound."""


class EmptyChain(InvalidParameter):
    """Raised when a modulus chain has no primes."""


class UnsupportedKind(HEError, ValueError):
    """Raised for an unknown scheme kind or security level."""


class ExhaustedLevels(HEError, RuntimeError):
    """Raised when a multiply is attempted at the terminal level."""


class MissingKey(HEError, RuntimeError):
    """Raised when an operation needs key material that was not generated."""


class UnsupportedMulMode(HEError, ValueError):
    """Raised when a backend cannot honor the requested multiplication mode."""


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a call captured by :func:`attempt`.

    Exactly one of ``value`` and ``error`` is meaningful, as told by ``ok``.
    """

    value: T | None = None
    error: HEError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or re-raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def unwrap_or(self, default: T) -> T:
        return default if self.error is not None else self.value  # type: ignore[return-value]


def attempt(fn: Callable[..., T], *args: Any, **kwargs: Any) -> Outcome[T]:
    """Call ``fn`` and capture any :class:`HEError` as an :class:`Outcome`.

    Errors outside the hecore hierarchy are not captured and propagate as-is.

    Example:
        >>> result = attempt(engine.row_sum, ct, 3)
        >>> if not result.ok:
        ...     print(type(result.error).__name__)
        InvalidRange
    """
    try:
        return Outcome(value=fn(*args, **kwargs))
    except HEError as e:
        return Outcome(error=e)
