"""
================================================================================
Suite Framework
================================================================================

Components shared by the OGC API - Processes Part 2 test suite.

Modules:
    - config_loader: YAML configuration management
    - suite_logger: Loguru setup with the CONFIG severity
    - run_args: Run parameter names and best-effort parsers
    - uri_utils: Dereferencing of the implementation under test
    - http_client: Shared HTTP client with Allure logging
    - fixture_listener: Suite fixture setup and teardown

Author: Automation Team
License: MIT
================================================================================
"""

from .config_loader import ConfigLoader, ConfigurationError
from .fixture_listener import (
    RunConfig,
    SuiteFixture,
    SuiteFixtureListener,
    SuiteInitializationError,
)
from .http_client import HttpClient, HttpClientError, build_client
from .run_args import RunArg, SuiteAttribute
from .uri_utils import DereferenceError, dereference_uri

__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "DereferenceError",
    "HttpClient",
    "HttpClientError",
    "RunArg",
    "RunConfig",
    "SuiteAttribute",
    "SuiteFixture",
    "SuiteFixtureListener",
    "SuiteInitializationError",
    "build_client",
    "dereference_uri",
]
