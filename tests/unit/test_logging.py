"""
Tests for the logging helpers.

This test suite covers:
1. Component tagging of child loggers
2. Importing the package leaving the global logger untouched
"""

import importlib

from loguru import logger

import bespoke.logging_utils
from bespoke.logging_utils import get_logger


class TestGetLogger:
    """Test component-bound loggers."""

    def test_component_is_bound(self):
        lines = []
        sink = logger.add(lambda m: lines.append(m.strip()), format="{extra[component]}|{message}")
        try:
            get_logger("resolver").info("ranked")
            get_logger().info("started")
        finally:
            logger.remove(sink)

        assert lines == ["resolver|ranked", "bespoke|started"]

    def test_import_does_not_tag_host_records(self):
        logger.configure(extra={})
        importlib.reload(bespoke.logging_utils)
        extras = []
        sink = logger.add(lambda m: extras.append(dict(m.record["extra"])))
        try:
            logger.info("host message")
        finally:
            logger.remove(sink)

        assert extras == [{}]
