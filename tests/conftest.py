"""
Pytest fixtures for tag language tests
"""

import pytest
from typing import List

from taglang import TagProcessor
from taglang.api import create_app
from taglang.config import Config
from taglang.context.processing import ProcessingContext
from taglang.engine.functions import TagFunction, create_default_function_registry


class SpyFunction(TagFunction):
    """Records every call; returns its params joined by '|'"""
    name = 'spy'

    def __init__(self):
        self.calls: List[List[str]] = []

    def execute(self, params, context):
        self.calls.append(list(params))
        return '|'.join(params)


class BoomFunction(TagFunction):
    """Crashes with a plain exception"""
    name = 'boom'

    def execute(self, params, context):
        raise ValueError('bad input')


class ReportingFunction(TagFunction):
    """Fails the documented way: report, then raise"""
    name = 'reporting'

    def execute(self, params, context):
        raise self.fail(context, 'reporting failed', params)


class FlagFunction(TagFunction):
    """Returns its first param, or 'True'"""
    name = 'flag'

    def execute(self, params, context):
        return params[0] if params else 'True'


class TestConfig(Config):
    TESTING = True
    CORS_ORIGINS = 'http://localhost:5173'


class SmallLimitsConfig(Config):
    MAX_INPUT_LENGTH = 40
    MAX_NESTING_DEPTH = 3


class HrzConfig(Config):
    TAG_KEYWORD = 'HRZ'


@pytest.fixture
def processor():
    """Processor with the built-in functions"""
    return TagProcessor()


@pytest.fixture
def spy():
    return SpyFunction()


@pytest.fixture
def registry(spy):
    """Built-in functions plus the test functions above"""
    registry = create_default_function_registry()
    registry.register(spy)
    registry.register(BoomFunction())
    registry.register(ReportingFunction())
    registry.register(FlagFunction())
    return registry


@pytest.fixture
def custom_processor(registry):
    return TagProcessor(registry=registry)


@pytest.fixture
def context():
    return ProcessingContext({'price': '1234', 'qty': '7'})


@pytest.fixture
def app(registry):
    app = create_app(TestConfig, registry=registry)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def hrz_config():
    """Config using the HRZ keyword"""
    return HrzConfig


@pytest.fixture
def small_limits_config():
    return SmallLimitsConfig
