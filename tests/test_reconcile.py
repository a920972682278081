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

"""Tests for level and scale reconciliation."""

import numpy as np
import pytest

from hecore.errors import AlreadyMatched, WrongSchemeKind
from hecore.types import MulMode
from tests.helpers import SCALE, decrypt_values, reference_builder


class TestIntegerLevels:
    def test_levels_equal(self, bfv):
        a = bfv.encrypt([1])
        b = bfv.encrypt([2])
        assert bfv.levels_equal(a, b)
        assert not bfv.levels_equal(a, bfv.multiply(a, b))

    def test_match_levels_switches_higher_operand(self, bfv):
        x = bfv.encrypt([1, 2, 3])
        low = bfv.multiply(bfv.multiply(x, x), x)
        assert low.level == 1

        high, same = bfv.match_levels(x, low)
        assert same is low
        assert high.level == low.level == 1
        assert list(decrypt_values(bfv, high, count=3)) == [1, 2, 3]

    def test_match_levels_preserves_order(self, bfv):
        x = bfv.encrypt([5])
        low = bfv.multiply(x, x)
        first, second = bfv.match_levels(low, x)
        assert first is low
        assert second.level == low.level
        assert decrypt_values(bfv, first, count=1)[0] == 25
        assert decrypt_values(bfv, second, count=1)[0] == 5

    def test_already_matched(self, bfv):
        a = bfv.encrypt([1])
        with pytest.raises(AlreadyMatched):
            bfv.match_levels(a, bfv.encrypt([2]))

    def test_integer_only(self, ckks):
        a = ckks.encrypt([1.0])
        with pytest.raises(WrongSchemeKind):
            ckks.levels_equal(a, a)
        with pytest.raises(WrongSchemeKind):
            ckks.match_levels(a, a)

    def test_bgv(self, bgv):
        x = bgv.encrypt([3])
        high, low = bgv.match_levels(x, bgv.multiply(x, x))
        assert high.level == low.level == 2


class TestApproximateLevelsAndScales:
    def test_level_scale_equal(self, ckks):
        a = ckks.encrypt([1.0])
        b = ckks.encrypt([2.0])
        assert ckks.level_scale_equal(a, b)
        assert ckks.level_scale_equal(a, ckks.encode([3.0]))
        assert not ckks.level_scale_equal(a, ckks.encode([3.0], scale=2.0**30))
        assert not ckks.level_scale_equal(a, ckks.multiply(a, b))

    def test_match_converges(self, ckks):
        x = ckks.encrypt([0.5, -0.75])
        x2 = ckks.multiply(x, x)

        c1, c2 = ckks.match_levels_and_scales(x, x2)
        assert c2 is x2
        assert c1.level == c2.level == 2
        assert abs(c1.scale / c2.scale - 1) < 2**-10
        assert np.allclose(decrypt_values(ckks, c1, "real", 2), [0.5, -0.75], atol=1e-6)

    def test_identical_paths_give_identical_scales(self, ckks):
        x = ckks.encrypt([0.5])
        x3 = ckks.multiply(ckks.multiply(x, x), ckks.multiply(x, x))
        c1, c2 = ckks.match_levels_and_scales(x3, x)
        assert c1 is x3
        assert c2.level == 1
        assert ckks.level_scale_equal(c1, c2)

    def test_convolution_identity(self):
        engine = (
            reference_builder()
            .mul_mode("convolution")
            .build_approximate_scheme("ckks", 8192, SCALE)
        )
        x = engine.encrypt([0.5, 0.25])
        c1, c2 = engine.match_levels_and_scales(x, engine.multiply(x, x))
        assert c1.level == c2.level
        assert np.allclose(decrypt_values(engine, c1, "real", 2), [0.5, 0.25], atol=1e-6)

    def test_already_matched(self, ckks):
        a = ckks.encrypt([1.0])
        with pytest.raises(AlreadyMatched):
            ckks.match_levels_and_scales(a, ckks.encrypt([2.0]))

    def test_approximate_only(self, bfv):
        a = bfv.encrypt([1])
        with pytest.raises(WrongSchemeKind):
            bfv.level_scale_equal(a, a)
        with pytest.raises(WrongSchemeKind):
            bfv.match_levels_and_scales(a, a)


class TestPlaintextMatching:
    def test_lossless_mod_switch(self, ckks):
        x = ckks.encrypt([1.0, 2.0])
        ct = ckks.multiply(x, x)
        pt = ckks.encode([0.125, 0.5], scale=ct.scale)
        assert pt.level == 3

        matched = ckks.match_level_and_scale(ct, pt)
        assert matched.level == ct.level
        assert matched.parms_id == ct.parms_id
        assert np.array_equal(ckks.decode(matched, "complex"), ckks.decode(pt, "complex"))

    def test_scale_mismatch_reencodes(self, ckks):
        ct = ckks.encrypt([1.0])
        pt = ckks.encode([0.125, 0.5], scale=2.0**30)

        matched = ckks.match_level_and_scale(ct, pt)
        assert matched.scale == ct.scale
        assert matched.parms_id == ct.parms_id
        assert np.allclose(ckks.decode(matched, "real")[:2], [0.125, 0.5], atol=1e-6)

    def test_plaintext_below_ciphertext_reencodes(self, ckks):
        x = ckks.encrypt([1.0])
        deepest = ckks.multiply(ckks.multiply(x, x), x)
        pt = ckks.encode([0.75], parms_id=deepest.parms_id, scale=x.scale)
        assert pt.level < x.level

        matched = ckks.match_level_and_scale(x, pt)
        assert matched.level == x.level
        assert np.allclose(ckks.decode(matched, "real")[0], 0.75, atol=1e-6)

    def test_already_matched(self, ckks):
        ct = ckks.encrypt([1.0])
        with pytest.raises(AlreadyMatched):
            ckks.match_level_and_scale(ct, ckks.encode([1.0]))

    def test_explicit_mul_mode(self, ckks):
        ct = ckks.encrypt([1.0])
        pt = ckks.encode([0.5], scale=2.0**30, mul_mode=MulMode.CONVOLUTION)
        matched = ckks.match_level_and_scale(ct, pt, mul_mode="convolution")
        assert np.allclose(
            ckks.decode(matched, "real", mul_mode="convolution")[0], 0.5, atol=1e-6
        )
