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

"""Declarative scheme configuration.

A scheme can be described in YAML and built in one call:

    scheme: ckks
    poly_modulus_degree: 8192
    scale_bits: 40
    sec_level: 128
    keys:
      galois: false

    >>> engine = build_from_config(load_config("scheme.yaml"))
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel

from hecore.builder import SchemeBuilder
from hecore.engine import HEEngine
from hecore.errors import InvalidParameter

__all__ = ["KeyConfig", "SchemeConfig", "build_from_config", "load_config"]


class KeyConfig(BaseModel):
    secret: bool = True
    public: bool = True
    relin: bool = True
    galois: bool = True
    rotation_steps: list[int] = []


class SchemeConfig(BaseModel):
    scheme: Literal["bfv", "bgv", "ckks"]
    poly_modulus_degree: int
    sec_level: Literal[128, 192, 256] = 128
    # Integer schemes
    plain_modulus_bits: int | None = None
    # CKKS; scale_bits is shorthand for scale = 2**scale_bits
    scale: float | None = None
    scale_bits: int | None = None
    coeff_modulus_bits: list[int] | None = None
    mul_mode: Literal["element_wise", "convolution"] = "element_wise"
    backend: str = "seal"
    keys: KeyConfig = KeyConfig()

    def resolved_scale(self) -> float:
        if self.scale is not None:
            return self.scale
        if self.scale_bits is not None:
            return 2.0**self.scale_bits
        raise InvalidParameter("ckks config needs scale or scale_bits")


def load_config(path: str | Path) -> SchemeConfig:
    """Read a :class:`SchemeConfig` from a YAML file."""
    with open(path, encoding="utf-8") as f:
        conf: dict[str, Any] = yaml.safe_load(f) or {}
    return SchemeConfig(**conf)


def build_from_config(config: SchemeConfig | dict[str, Any]) -> HEEngine:
    if not isinstance(config, SchemeConfig):
        config = SchemeConfig(**config)

    builder = (
        SchemeBuilder()
        .sec_level(config.sec_level)
        .mul_mode(config.mul_mode)
        .secret_key(config.keys.secret)
        .public_key(config.keys.public)
        .relin_keys(config.keys.relin)
        .galois_keys(config.keys.galois, config.keys.rotation_steps)
        .backend(config.backend)
    )

    if config.scheme == "ckks":
        return builder.build_approximate_scheme(
            config.scheme,
            config.poly_modulus_degree,
            config.resolved_scale(),
            config.coeff_modulus_bits,
        )
    if config.plain_modulus_bits is None:
        raise InvalidParameter(f"{config.scheme} config needs plain_modulus_bits")
    return builder.build_integer_scheme(
        config.scheme,
        config.poly_modulus_degree,
        config.plain_modulus_bits,
        config.coeff_modulus_bits,
    )
