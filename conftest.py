"""
Repository-level pytest configuration.

Keeps unit test runs independent of the developer's shell: suite settings
taken from ETS_* / LOGGING_* environment variables are cleared, and the
configuration singleton is rebuilt for every test.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest

from ogc_processes_ets.framework import suite_logger
from ogc_processes_ets.framework.config_loader import ConfigLoader

pytest_plugins = ["pytester"]


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(autouse=True)
def _isolated_suite_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Clear suite environment overrides and reset shared singletons."""
    for key in list(os.environ):
        if key.startswith(("ETS_", "CLIENT_", "LOGGING_")):
            monkeypatch.delenv(key, raising=False)

    ConfigLoader.reset()
    yield
    ConfigLoader.reset()
    suite_logger.shutdown_logger()
