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

"""Level and scale reconciliation over leveled homomorphic encryption.

    import hecore

    engine = hecore.SchemeBuilder().build_integer_scheme("bfv", 8192, 20)
    a = engine.encrypt([1, 2, 3])
    b = engine.multiply(a, a)          # consumes one level
    c = engine.add(a, b)               # a is switched down to b's level first
"""

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("hecore")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from hecore.builder import SchemeBuilder
from hecore.config import SchemeConfig, build_from_config, load_config
from hecore.engine import HEEngine
from hecore.errors import (
    AlreadyMatched,
    EmptyChain,
    ExhaustedLevels,
    HEError,
    InvalidParameter,
    InvalidRange,
    MissingKey,
    Outcome,
    ParameterOverflow,
    UnsupportedKind,
    UnsupportedMulMode,
    WrongSchemeKind,
    attempt,
)
from hecore.logging_config import disable_logging, get_logger, setup_logging
from hecore.params import (
    max_bit_count,
    size_approximate_chain,
    size_integer_chain,
    validate_chain,
)
from hecore.types import KeyFlags, MulMode, SchemeContext, SchemeKind, SecLevel
from hecore.values import Ciphertext, Plaintext

__all__ = [
    "AlreadyMatched",
    "Ciphertext",
    "EmptyChain",
    "ExhaustedLevels",
    "HEEngine",
    "HEError",
    "InvalidParameter",
    "InvalidRange",
    "KeyFlags",
    "MissingKey",
    "MulMode",
    "Outcome",
    "ParameterOverflow",
    "Plaintext",
    "SchemeBuilder",
    "SchemeConfig",
    "SchemeContext",
    "SchemeKind",
    "SecLevel",
    "UnsupportedKind",
    "UnsupportedMulMode",
    "WrongSchemeKind",
    "__version__",
    "attempt",
    "build_from_config",
    "disable_logging",
    "get_logger",
    "load_config",
    "max_bit_count",
    "setup_logging",
    "size_approximate_chain",
    "size_integer_chain",
    "validate_chain",
]
