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

import pytest

from hecore import errors
from hecore.errors import HEError, InvalidRange, Outcome, attempt


@pytest.mark.parametrize(
    "exc,builtin",
    [
        (errors.WrongSchemeKind, TypeError),
        (errors.AlreadyMatched, ValueError),
        (errors.InvalidRange, ValueError),
        (errors.InvalidParameter, ValueError),
        (errors.ParameterOverflow, errors.InvalidParameter),
        (errors.EmptyChain, errors.InvalidParameter),
        (errors.UnsupportedKind, ValueError),
        (errors.UnsupportedMulMode, ValueError),
        (errors.ExhaustedLevels, RuntimeError),
        (errors.MissingKey, RuntimeError),
    ],
)
def test_hierarchy(exc, builtin):
    assert issubclass(exc, HEError)
    assert issubclass(exc, builtin)


def test_attempt_success():
    result = attempt(sum, [1, 2, 3])
    assert result.ok
    assert result.unwrap() == 6
    assert result.unwrap_or(0) == 6


def test_attempt_captures_error(small_bfv):
    ct = small_bfv.encrypt([1])
    result = attempt(small_bfv.row_sum, ct, 3)
    assert not result.ok
    assert isinstance(result.error, InvalidRange)
    assert result.unwrap_or("fallback") == "fallback"
    with pytest.raises(InvalidRange):
        result.unwrap()


def test_attempt_passes_kwargs(ckks):
    result = attempt(ckks.encode, [1.0], scale=2.0**30)
    assert result.ok
    assert result.value.scale == 2.0**30


def test_attempt_does_not_capture_foreign_errors():
    def boom():
        raise KeyError("x")

    with pytest.raises(KeyError):
        attempt(boom)


def test_outcome_is_immutable():
    outcome = Outcome(value=1)
    with pytest.raises(AttributeError):
        outcome.value = 2
