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

import numpy as np

from hecore import SchemeBuilder

SCALE = 2.0**40


def reference_builder() -> SchemeBuilder:
    """Builder on the in-memory backend, so tests run without tenseal."""
    return SchemeBuilder().backend("reference")


def decrypt_values(engine, ct, dtype="int", count=None) -> np.ndarray:
    """Decrypt and decode, optionally keeping only the first ``count`` slots."""
    values = engine.decode(engine.decrypt(ct), dtype)
    return values if count is None else values[:count]
