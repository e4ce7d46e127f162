"""
================================================================================
Pytest Plugin
================================================================================

Binds the suite fixture lifecycle to the pytest session.

    - pytest_sessionstart: build the SuiteFixture from the run parameters
    - pytest_sessionfinish: delete temporary files, close the HTTP client

Run parameters come from command-line options first, then from the
configuration file / environment (ets.* keys, e.g. ETS_IUT).

Enable with:
    pytest -p ogc_processes_ets.plugin --iut https://example.org/ogcapi

Fixtures:
    - suite_fixture: the SuiteFixture of the run
    - iut: URI of the implementation under test
    - subject_file: local copy of the IUT resource
    - http_client: shared HttpClient (test is skipped if none was built)

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Dict, List, Optional

import httpx
import pytest
from loguru import logger

from .framework import suite_logger
from .framework.config_loader import ConfigLoader, ConfigurationError
from .framework.fixture_listener import (
    RunConfig,
    SuiteFixture,
    SuiteFixtureListener,
    SuiteInitializationError,
)
from .framework.http_client import HttpClient
from .framework.run_args import RunArg


# RunArg -> (command-line option, option dest, configuration key, help)
RUN_ARG_OPTIONS = {
    RunArg.IUT: (
        "--iut", "ets_iut", "ets.iut",
        "URI of the implementation under test (required)",
    ),
    RunArg.ECHO_PROCESS_ID: (
        "--echo-process-id", "ets_echo_process_id", "ets.echo_process_id",
        "Identifier of the echo process",
    ),
    RunArg.URL_APP_PKG: (
        "--url-app-pkg", "ets_url_app_pkg", "ets.url_app_pkg",
        "URL of an application package to deploy",
    ),
    RunArg.PROCESS_TEST_LIMIT: (
        "--process-test-limit", "ets_process_test_limit", "ets.process_test_limit",
        "Maximum number of processes to test",
    ),
}

SETTINGS_KEY = pytest.StashKey[ConfigLoader]()
LISTENER_KEY = pytest.StashKey[SuiteFixtureListener]()
FIXTURE_KEY = pytest.StashKey[SuiteFixture]()
RUN_CONFIG_KEY = pytest.StashKey[RunConfig]()


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register the suite's run parameters as command-line options."""
    group = parser.getgroup("ogcapi-processes", description="OGC API - Processes Part 2 suite")
    for option, dest, key, help_text in RUN_ARG_OPTIONS.values():
        group.addoption(
            option,
            action="store",
            dest=dest,
            default=None,
            help=f"{help_text} (default: {key} from configuration)",
        )
    group.addoption(
        "--test-all-processes",
        action="store",
        dest="ets_test_all_processes",
        nargs="?",
        const="on",
        default=None,
        help='Test every process offered by the IUT ("on" enables)',
    )
    group.addoption(
        "--delete-subject-on-finish",
        action="store_true",
        dest="ets_delete_subject_on_finish",
        default=False,
        help="Delete the local copy of the IUT resource when the run ends",
    )
    group.addoption(
        "--ets-config",
        action="store",
        dest="ets_config",
        default=None,
        help="Path to the suite configuration YAML",
    )
    group.addoption(
        "--ets-log-level",
        action="store",
        dest="ets_log_level",
        default=None,
        help="Suite log level (DEBUG, CONFIG, INFO, WARNING, ...)",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Load configuration, set up logging and register markers."""
    config.addinivalue_line(
        "markers", "conformance: OGC API - Processes Part 2 conformance test"
    )

    ConfigLoader.reset()
    try:
        settings = ConfigLoader(config_path=config.getoption("ets_config"))
    except ConfigurationError as e:
        raise pytest.UsageError(str(e)) from e
    config.stash[SETTINGS_KEY] = settings

    suite_logger.init_logger(level=config.getoption("ets_log_level"), config=settings)


def _as_param(value: object) -> Optional[str]:
    if value is None:
        return None
    # YAML reads a bare `on` as True
    if isinstance(value, bool):
        return "on" if value else "off"
    return str(value)


def collect_run_params(config: pytest.Config, settings: ConfigLoader) -> Dict[str, Optional[str]]:
    """Gather run parameters from options, falling back to configuration."""
    params: Dict[str, Optional[str]] = {}
    for arg, (_, dest, key, _) in RUN_ARG_OPTIONS.items():
        value = config.getoption(dest)
        params[arg.value] = _as_param(value if value is not None else settings.get(key))

    test_all = config.getoption("ets_test_all_processes")
    if test_all is None:
        test_all = settings.get("ets.test_all_processes")
    params[RunArg.TEST_ALL_PROCESSES.value] = _as_param(test_all)
    return params


def build_run_config(config: pytest.Config, settings: ConfigLoader) -> RunConfig:
    delete_subject = config.getoption("ets_delete_subject_on_finish") or bool(
        settings.get("ets.delete_subject_on_finish", False)
    )
    return RunConfig(delete_subject_on_finish=delete_subject)


def pytest_sessionstart(session: pytest.Session) -> None:
    """Prepare the suite fixture. No test runs if this fails."""
    config = session.config
    settings = config.stash[SETTINGS_KEY]
    listener = SuiteFixtureListener(settings)
    config.stash[LISTENER_KEY] = listener
    config.stash[RUN_CONFIG_KEY] = build_run_config(config, settings)

    try:
        fixture = listener.on_start(collect_run_params(config, settings))
    except ConfigurationError as e:
        raise pytest.UsageError(str(e)) from e
    except SuiteInitializationError as e:
        logger.error(f"{e}: {e.__cause__}")
        pytest.exit(f"{e}: {e.__cause__}", returncode=pytest.ExitCode.INTERNAL_ERROR)

    config.stash[FIXTURE_KEY] = fixture
    logger.info(f"Suite fixture ready for {fixture.iut}")


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    """Tear the suite fixture down and release the HTTP client."""
    config = session.config
    listener = config.stash.get(LISTENER_KEY, None)
    fixture = config.stash.get(FIXTURE_KEY, None)
    if listener is None:
        return

    listener.on_finish(fixture, config.stash[RUN_CONFIG_KEY])
    if fixture is not None and fixture.client is not None:
        fixture.client.close()


def pytest_unconfigure(config: pytest.Config) -> None:
    suite_logger.shutdown_logger()


def pytest_report_header(config: pytest.Config) -> List[str]:
    """Show the implementation under test in the pytest header."""
    settings = config.stash.get(SETTINGS_KEY, None)
    iut = config.getoption("ets_iut")
    if iut is None and settings is not None:
        iut = settings.get("ets.iut")
    return [f"OGC API - Processes Part 2 suite, IUT: {iut or '<not set>'}"]


# =============================================================================
# Session-Scoped Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def suite_fixture(request: pytest.FixtureRequest) -> SuiteFixture:
    """Provide the SuiteFixture built at session start."""
    fixture = request.config.stash.get(FIXTURE_KEY, None)
    if fixture is None:
        pytest.fail("Suite fixture was not initialized", pytrace=False)
    return fixture


@pytest.fixture(scope="session")
def iut(suite_fixture: SuiteFixture) -> httpx.URL:
    """URI of the implementation under test."""
    return suite_fixture.iut


@pytest.fixture(scope="session")
def subject_file(suite_fixture: SuiteFixture):
    """Local copy of the resource at the IUT."""
    return suite_fixture.test_subject_file


@pytest.fixture(scope="session")
def http_client(suite_fixture: SuiteFixture) -> HttpClient:
    """
    Provide the shared HTTP client.

    Usage:
        def test_landing_page(http_client, iut):
            response = http_client.get(str(iut))
            assert response.status_code == 200
    """
    if suite_fixture.client is None:
        pytest.skip("No HTTP client available for this run")
    return suite_fixture.client
