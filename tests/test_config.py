"""
Tests for configuration and logging setup
"""

import importlib
import logging

import pytest
import taglang.config
from taglang.config import Config, env_flag
from taglang.logging_setup import configure_logging


class TestConfig:
    """Environment-driven settings"""

    def test_defaults(self):
        assert Config.DRY_RUN_PLACEHOLDER == '1'
        assert Config.MAX_NESTING_DEPTH > 0
        assert Config.MAX_INPUT_LENGTH > 0

    @pytest.mark.parametrize('value,expected', [
        ('1', True),
        ('true', True),
        ('Yes', True),
        ('0', False),
        ('off', False),
    ])
    def test_env_flag(self, monkeypatch, value, expected):
        monkeypatch.setenv('TAGLANG_TEST_FLAG', value)

        assert env_flag('TAGLANG_TEST_FLAG') is expected

    def test_env_flag_default(self, monkeypatch):
        monkeypatch.delenv('TAGLANG_TEST_FLAG', raising=False)

        assert env_flag('TAGLANG_TEST_FLAG', default=True) is True

    def test_values_read_from_environment(self, monkeypatch):
        monkeypatch.setenv('TAGLANG_TAG_KEYWORD', 'HRZ')
        monkeypatch.setenv('TAGLANG_MAX_NESTING_DEPTH', '7')
        try:
            reloaded = importlib.reload(taglang.config)
            assert reloaded.Config.TAG_KEYWORD == 'HRZ'
            assert reloaded.Config.MAX_NESTING_DEPTH == 7
        finally:
            monkeypatch.delenv('TAGLANG_TAG_KEYWORD')
            monkeypatch.delenv('TAGLANG_MAX_NESTING_DEPTH')
            importlib.reload(taglang.config)


class TestConfigureLogging:
    """configure_logging picks the level"""

    def test_debug_flag(self):
        class DebugConfig(Config):
            DEBUG = True

        assert configure_logging(DebugConfig) == logging.DEBUG

    def test_log_level(self):
        class QuietConfig(Config):
            DEBUG = False
            LOG_LEVEL = 'warning'

        assert configure_logging(QuietConfig) == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        class OddConfig(Config):
            DEBUG = False
            LOG_LEVEL = 'chatty'

        assert configure_logging(OddConfig) == logging.INFO
