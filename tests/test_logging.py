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

"""Tests for hecore logging functionality."""

import io
import logging

import pytest

import hecore
from hecore.logging_config import get_logger
from tests.helpers import SCALE, reference_builder


@pytest.fixture
def log_stream():
    stream = io.StringIO()
    yield stream
    hecore.disable_logging()


def test_logging_disabled_by_default():
    """Library mode: a NullHandler and no propagation."""
    logger = logging.getLogger("hecore")
    assert any(isinstance(h, logging.NullHandler) for h in logger.handlers)
    assert logger.propagate is False


def test_setup_logging_basic(log_stream):
    hecore.setup_logging(level="INFO", stream=log_stream, force=True)

    logging.getLogger("hecore.test").info("Test message")

    log_output = log_stream.getvalue()
    assert "Test message" in log_output
    assert "INFO" in log_output


def test_setup_logging_levels(log_stream):
    hecore.setup_logging(level="WARNING", stream=log_stream, force=True)

    logger = logging.getLogger("hecore.test")
    logger.debug("Debug message")
    logger.info("Info message")
    logger.warning("Warning message")
    logger.error("Error message")

    log_output = log_stream.getvalue()
    assert "Debug message" not in log_output
    assert "Info message" not in log_output
    assert "Warning message" in log_output
    assert "Error message" in log_output


def test_disable_logging():
    log_stream = io.StringIO()
    hecore.setup_logging(level="DEBUG", stream=log_stream, force=True)
    hecore.disable_logging()

    logging.getLogger("hecore.test").error("This should not appear")

    assert "This should not appear" not in log_stream.getvalue()


def test_get_logger_helper():
    assert get_logger("hecore.reconcile").name == "hecore.reconcile"
    assert get_logger("myapp").name == "hecore.myapp"
    assert get_logger("hecore").name == "hecore"


def test_logging_with_custom_format(log_stream):
    hecore.setup_logging(
        level="INFO", format="CUSTOM: %(message)s", stream=log_stream, force=True
    )

    logging.getLogger("hecore.test").info("Test message")

    assert "CUSTOM: Test message" in log_stream.getvalue()


def test_engine_creation_is_logged(log_stream):
    hecore.setup_logging(level="INFO", stream=log_stream, force=True)

    reference_builder().build_integer_scheme("bfv", 4096, 20)

    log_output = log_stream.getvalue()
    assert "Created bfv engine" in log_output
    assert "hecore.engine" in log_output


def test_reconciliation_steps_are_logged(log_stream, bfv):
    hecore.setup_logging(level="DEBUG", stream=log_stream, force=True)

    x = bfv.encrypt([1, 2, 3])
    bfv.add(x, bfv.multiply(x, x))

    assert "Mod-switching ciphertext from level 3 to 2" in log_stream.getvalue()


def test_lossy_reencode_warns(log_stream, ckks):
    hecore.setup_logging(level="WARNING", stream=log_stream, force=True)

    x = ckks.encrypt([0.5, 0.25])
    pt = ckks.encode([1.0, 2.0], scale=2.0**30)
    ckks.add(x, pt)

    log_output = log_stream.getvalue()
    assert "WARNING" in log_output
    assert "precision may be lost" in log_output


def test_scale_drift_warns(log_stream, ckks):
    hecore.setup_logging(level="WARNING", stream=log_stream, force=True)

    x = ckks.encrypt([0.5, 0.25])
    # Multiplying by a plaintext at 2^30 leaves x2 at roughly 2^30, while the
    # identity step keeps x near 2^40.
    x2 = ckks.multiply(x, ckks.encode(1.0, scale=2.0**30))
    assert x2.level == x.level - 1
    c1, c2 = ckks.match_levels_and_scales(x, x2)

    assert c1.level == c2.level
    assert abs(c1.scale / SCALE - 1) < 2**-10
    assert "Scale drift after level matching" in log_stream.getvalue()


def test_propagate_to_root_logger(tmp_path):
    temp_log = tmp_path / "app.log"
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        logging.basicConfig(
            level=logging.INFO,
            filename=str(temp_log),
            format="%(levelname)s:%(name)s:%(message)s",
            force=True,
        )
        hecore.setup_logging(level="INFO", propagate=True, force=True)

        logging.getLogger("test_app").info("App message")
        logging.getLogger("hecore.test").info("hecore message")

        log_content = temp_log.read_text()
        assert "App message" in log_content
        assert "hecore message" in log_content
    finally:
        hecore.disable_logging()
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)


def test_stream_false_only_file(tmp_path):
    temp_log = tmp_path / "hecore.log"
    try:
        hecore.setup_logging(
            level="INFO", filename=str(temp_log), stream=False, force=True
        )

        logger = logging.getLogger("hecore.test")
        logger.info("File only message")
        for handler in logging.getLogger("hecore").handlers:
            handler.flush()

        assert "File only message" in temp_log.read_text()
    finally:
        hecore.disable_logging()
