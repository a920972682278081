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

from tests.helpers import SCALE, reference_builder


@pytest.fixture
def bfv():
    # chain (40, 40, 40, 40): three data levels
    return reference_builder().build_integer_scheme("bfv", 8192, 20)


@pytest.fixture
def bgv():
    return reference_builder().build_integer_scheme("bgv", 8192, 20)


@pytest.fixture
def small_bfv():
    # n=2048 with a (27, 27) chain: 1024-slot rows and a single data level
    return reference_builder().build_integer_scheme("bfv", 2048, 14, [27, 27])


@pytest.fixture
def ckks():
    # chain (60, 40, 40, 60): three data levels
    return reference_builder().build_approximate_scheme("ckks", 8192, SCALE)


@pytest.fixture
def deep_ckks():
    # chain (60, 40 x 7, 60): eight data levels
    return reference_builder().build_approximate_scheme("ckks", 16384, SCALE)
