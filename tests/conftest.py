from __future__ import annotations

import logging

import pytest

from storygraph.config import (
    DEFAULT_MAX_AUTO_STEPS,
    DEFAULT_MAX_INCLUDE_DEPTH,
    DEFAULT_MAX_REPEATS,
    settings,
)
from storygraph.utils.log import PACKAGE_LOGGER


@pytest.fixture(autouse=True)
def _reset_settings_defaults() -> None:
    settings.log_level = "INFO"
    settings.runtime_max_auto_steps = DEFAULT_MAX_AUTO_STEPS
    settings.runtime_max_include_depth = DEFAULT_MAX_INCLUDE_DEPTH
    settings.runtime_max_repeats = DEFAULT_MAX_REPEATS
    settings.validator_short_content_chars = 10
    yield
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)
