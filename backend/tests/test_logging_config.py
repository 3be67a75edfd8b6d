"""Tests for logging configuration."""

import logging

import pytest
import structlog

from app.config import Settings
from core.logging_config import QUIET_LOGGERS, add_app_context, build_renderer, setup_logging


@pytest.mark.unit
class TestLoggingConfig:

    def test_app_context_processor(self):
        processor = add_app_context(Settings(APP_NAME="Sim", ENVIRONMENT="testing"))
        event = processor(None, "info", {"event": "hello", "env": "override"})
        assert event == {"event": "hello", "app": "Sim", "env": "override"}

    def test_renderer_follows_log_format(self):
        json_settings = Settings(ENVIRONMENT="production", LOG_FORMAT="json")
        text_settings = Settings(ENVIRONMENT="production", LOG_FORMAT="text")
        assert isinstance(build_renderer(json_settings), structlog.processors.JSONRenderer)
        assert isinstance(build_renderer(text_settings), structlog.dev.ConsoleRenderer)

    def test_setup_replaces_root_handler(self):
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            setup_logging(Settings(ENVIRONMENT="production", LOG_LEVEL="warning"))
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
            assert root.level == logging.WARNING
            assert all(logging.getLogger(name).level == logging.WARNING for name in QUIET_LOGGERS)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
