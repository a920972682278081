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

"""Tests for rotation-based aggregation."""

import numpy as np
import pytest

from hecore.errors import InvalidRange, MissingKey, WrongSchemeKind
from tests.helpers import decrypt_values, reference_builder


def _rows(engine, values):
    return np.asarray(values).reshape(2, engine.slot_count // 2)


@pytest.fixture
def tiled(small_bfv):
    values = np.tile(np.arange(1, 9), small_bfv.slot_count // 8)
    return values, small_bfv.encrypt(values)


class TestRowSum:
    def test_window_of_four(self, small_bfv, tiled):
        values, ct = tiled
        result = decrypt_values(small_bfv, small_bfv.row_sum(ct, 4))
        assert list(result[:8]) == [10, 14, 18, 22, 26, 22, 18, 14]

        rows = _rows(small_bfv, values)
        expected = sum(np.roll(rows, -k, axis=1) for k in range(4))
        assert np.array_equal(_rows(small_bfv, result), expected)

    def test_rows_are_independent(self, small_bfv):
        half = small_bfv.slot_count // 2
        values = [0] * small_bfv.slot_count
        values[half - 1] = 7
        result = decrypt_values(small_bfv, small_bfv.row_sum(small_bfv.encrypt(values), 2))
        assert result[half - 2] == 7
        # The last slot of a row wraps to the start of the same row.
        assert result[half - 1] == 7
        assert result[half] == 0
        assert result[0] == 0

    @pytest.mark.parametrize("range_size", [2, 512, 1024])
    def test_valid_ranges(self, small_bfv, tiled, range_size):
        values, ct = tiled
        result = decrypt_values(small_bfv, small_bfv.row_sum(ct, range_size))
        assert result[0] == sum(values[:range_size])

    @pytest.mark.parametrize("range_size", [0, 1, 3, 6, 2048])
    def test_invalid_ranges(self, small_bfv, tiled, range_size):
        _, ct = tiled
        with pytest.raises(InvalidRange):
            small_bfv.row_sum(ct, range_size)

    def test_level_is_kept(self, bfv):
        ct = bfv.encrypt([1, 2, 3, 4])
        assert bfv.row_sum(ct, 4).level == ct.level


class TestRotations:
    def test_rotate_rows_left(self, small_bfv, tiled):
        values, ct = tiled
        result = decrypt_values(small_bfv, small_bfv.rotate_rows(ct, 1))
        assert np.array_equal(
            _rows(small_bfv, result), np.roll(_rows(small_bfv, values), -1, axis=1)
        )

    def test_rotate_rows_negative(self, small_bfv):
        ct = small_bfv.encrypt([1, 2, 3])
        result = decrypt_values(small_bfv, small_bfv.rotate_rows(ct, -1))
        assert list(result[:4]) == [0, 1, 2, 3]

    def test_rotate_columns_swaps_rows(self, small_bfv):
        half = small_bfv.slot_count // 2
        ct = small_bfv.encrypt([5, 6])
        swapped = decrypt_values(small_bfv, small_bfv.rotate_columns(ct))
        assert list(swapped[half : half + 2]) == [5, 6]
        assert not np.any(swapped[:half])

        back = decrypt_values(small_bfv, small_bfv.rotate_columns(small_bfv.rotate_columns(ct)))
        assert list(back[:2]) == [5, 6]

    def test_column_sum(self, small_bfv):
        half = small_bfv.slot_count // 2
        values = [0] * small_bfv.slot_count
        values[0], values[half] = 3, 4
        result = decrypt_values(small_bfv, small_bfv.column_sum(small_bfv.encrypt(values)))
        assert result[0] == result[half] == 7

    def test_approximate_scheme_rejected(self, ckks):
        ct = ckks.encrypt([1.0])
        with pytest.raises(WrongSchemeKind):
            ckks.rotate_rows(ct, 1)
        with pytest.raises(WrongSchemeKind):
            ckks.row_sum(ct, 2)

    def test_missing_galois_keys(self):
        engine = reference_builder().galois_keys(False).build_integer_scheme("bfv", 8192, 20)
        ct = engine.encrypt([1])
        with pytest.raises(MissingKey):
            engine.rotate_rows(ct, 1)
        with pytest.raises(MissingKey):
            engine.column_sum(ct)

    def test_explicit_steps(self):
        engine = (
            reference_builder()
            .galois_keys(True, steps=[1, 2])
            .build_integer_scheme("bfv", 8192, 20)
        )
        ct = engine.encrypt([1, 2, 3, 4])
        assert decrypt_values(engine, engine.row_sum(ct, 4), count=1)[0] == 10
        with pytest.raises(ValueError, match="Galois key"):
            engine.rotate_rows(ct, 3)
        with pytest.raises(ValueError, match="Galois key"):
            engine.rotate_columns(ct)

    def test_foreign_ciphertext(self, bfv, bgv):
        with pytest.raises(ValueError, match="different scheme instance"):
            bfv.rotate_rows(bgv.encrypt([1]), 1)
