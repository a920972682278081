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

"""
Logging configuration for hecore.

hecore stays silent when imported as a library: the ``hecore`` logger carries
a NullHandler and does not propagate. Applications opt in by calling
:func:`setup_logging`.

Reconciliation steps are logged at DEBUG. Lossy plaintext re-encoding and
scale drift are logged at WARNING, since both change the numeric result.

Example usage:
    >>> import hecore
    >>> hecore.setup_logging(level="DEBUG")
    >>> hecore.setup_logging(level="INFO", filename="hecore.log", stream=False)
"""

import logging
import sys
from typing import Any, Literal

HECORE_LOGGER_NAME = "hecore"

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _make_handler(
    handler: logging.Handler, level: int, formatter: logging.Formatter
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO",
    format: str | None = None,
    date_format: str | None = None,
    filename: str | None = None,
    stream: Any = None,
    force: bool = False,
    propagate: bool = False,
) -> None:
    """
    Enable hecore log output.

    Args:
        level: Log level name. Default is INFO.
        format: Log format string. If None, uses ``DEFAULT_FORMAT``.
        date_format: Date format string. If None, uses ``DEFAULT_DATE_FORMAT``.
        filename: If provided, also log to this file.
        stream: Stream to log to. Default is sys.stderr. Pass False to skip
            stream output entirely (file or propagation only).
        force: Remove handlers installed earlier before adding new ones.
        propagate: Let records reach the application's root logger. With no
            filename and no stream, hecore then only sets its level and
            defers to the application's handlers.
    """
    logger = logging.getLogger(HECORE_LOGGER_NAME)
    log_level = getattr(logging, level.upper())
    logger.setLevel(log_level)

    # A lone NullHandler from library mode would only confuse propagation.
    only_null = len(logger.handlers) == 1 and isinstance(
        logger.handlers[0], logging.NullHandler
    )
    if force or (propagate and only_null):
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)

    logger.propagate = propagate
    if propagate and not filename and stream is None:
        return

    formatter = logging.Formatter(
        format or DEFAULT_FORMAT, datefmt=date_format or DEFAULT_DATE_FORMAT
    )
    if stream is not False:
        target = sys.stderr if stream is None else stream
        logger.addHandler(
            _make_handler(logging.StreamHandler(target), log_level, formatter)
        )
    if filename:
        logger.addHandler(
            _make_handler(logging.FileHandler(filename), log_level, formatter)
        )


def disable_logging() -> None:
    """Drop every hecore handler and go back to library mode."""
    logger = logging.getLogger(HECORE_LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger placed under the ``hecore`` hierarchy.

    Args:
        name: Module name, typically ``__name__``.

    Returns:
        ``logging.getLogger(name)`` when ``name`` already lives under
        ``hecore``, otherwise the logger ``hecore.<name>``.
    """
    if name != HECORE_LOGGER_NAME and not name.startswith(HECORE_LOGGER_NAME + "."):
        name = f"{HECORE_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


# Library mode until the application calls setup_logging().
_root_logger = logging.getLogger(HECORE_LOGGER_NAME)
if not _root_logger.handlers:
    _root_logger.addHandler(logging.NullHandler())
    _root_logger.propagate = False
