"""
================================================================================
Suite Fixture Listener
================================================================================

Prepares the shared fixture of a suite run and cleans up after it.

On start:
    - resolves the implementation under test (IUT) from the run parameters
    - saves a local copy of the IUT resource (the test subject file)
    - parses the optional run parameters
    - registers the shared HTTP client

On finish:
    - deletes the test subject file when the run asked for it, unless the
      suite logs at CONFIG verbosity or lower (files are kept for debugging)

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import httpx
from loguru import logger

from . import suite_logger
from .config_loader import ConfigLoader
from .http_client import HttpClient, build_client
from .run_args import (
    ParsedValue,
    RunArg,
    SuiteAttribute,
    parse_echo_process_id,
    parse_iut,
    parse_process_test_limit,
    parse_test_all_processes,
    parse_url_app_pkg,
)
from .uri_utils import dereference_uri


Dereferencer = Callable[[httpx.URL], Path]
ClientBuilder = Callable[[], Optional[HttpClient]]


class SuiteInitializationError(RuntimeError):
    """Raised when the suite fixture cannot be prepared. No test may run."""
    pass


@dataclass
class RunConfig:
    """
    Per-run settings consumed when the suite finishes.

    Attributes:
        delete_subject_on_finish: Delete the test subject file at teardown.
            Cleared once the teardown has handled it.
    """
    delete_subject_on_finish: bool = False


@dataclass
class SuiteFixture:
    """Typed view of everything the suite publishes to its test cases."""

    iut: httpx.URL
    test_subject_file: Path
    echo_process_id: Optional[str] = None
    url_app_pkg: Optional[str] = None
    process_test_limit: Optional[int] = None
    use_local_schema: bool = True
    test_all_processes: bool = False
    client: Optional[HttpClient] = None
    warnings: List[str] = field(default_factory=list)

    def attributes(self) -> Dict[str, Any]:
        """Return the set attributes keyed by their suite attribute name."""
        values = {
            SuiteAttribute.IUT: self.iut,
            SuiteAttribute.TEST_SUBJ_FILE: self.test_subject_file,
            SuiteAttribute.ECHO_PROCESS_ID: self.echo_process_id,
            SuiteAttribute.URL_APP_PKG: self.url_app_pkg,
            SuiteAttribute.PROCESS_TEST_LIMIT: self.process_test_limit,
            SuiteAttribute.USE_LOCAL_SCHEMA: self.use_local_schema,
            SuiteAttribute.TEST_ALL_PROCESSES: self.test_all_processes,
            SuiteAttribute.CLIENT: self.client,
        }
        return {attr.value: value for attr, value in values.items() if value is not None}


class SuiteFixtureListener:
    """
    Builds the SuiteFixture at suite start and tears it down at suite finish.

    The dereferencer and client builder are injectable so harnesses and tests
    can substitute their own transport.

    Usage:
        >>> listener = SuiteFixtureListener()
        >>> fixture = listener.on_start({"iut": "https://example.org/ogcapi"})
        >>> ...
        >>> listener.on_finish(fixture, RunConfig(delete_subject_on_finish=True))
    """

    def __init__(
        self,
        config: Optional[ConfigLoader] = None,
        dereferencer: Optional[Dereferencer] = None,
        client_builder: Optional[ClientBuilder] = None,
    ) -> None:
        self.config = config if config is not None else ConfigLoader()
        self.dereferencer = dereferencer or self._default_dereferencer
        self.client_builder = client_builder or self._default_client_builder

    def _default_dereferencer(self, iut: httpx.URL) -> Path:
        return dereference_uri(iut, timeout=float(self.config.get("client.timeout", 30)))

    def _default_client_builder(self) -> Optional[HttpClient]:
        return build_client(self.config)

    def on_start(self, params: Mapping[str, Optional[str]]) -> SuiteFixture:
        """
        Prepare the suite fixture from the run parameters.

        Raises:
            ConfigurationError: If the iut parameter is missing, blank or not a URI
            SuiteInitializationError: If the IUT cannot be dereferenced
        """
        fixture = self.process_suite_parameters(params)
        self.register_client_component(fixture)
        return fixture

    def process_suite_parameters(self, params: Mapping[str, Optional[str]]) -> SuiteFixture:
        """Resolve the IUT, save the test subject and parse optional parameters."""
        logger.log(suite_logger.CONFIG_LEVEL, f"Suite parameters\n{dict(params)}")

        iut = parse_iut(params.get(RunArg.IUT.value))
        try:
            subject_file = Path(self.dereferencer(iut))
        except Exception as e:
            raise SuiteInitializationError(
                f"Failed to dereference resource located at {iut}"
            ) from e

        try:
            logger.debug(
                f"Wrote test subject to file: {subject_file.resolve()} "
                f"({subject_file.stat().st_size} bytes)"
            )
        except OSError as e:
            logger.debug(f"Wrote test subject to file: {subject_file} (size unknown: {e})")

        fixture = SuiteFixture(iut=iut, test_subject_file=subject_file)

        fixture.echo_process_id = self._accept(
            fixture, parse_echo_process_id(params.get(RunArg.ECHO_PROCESS_ID.value))
        )
        fixture.url_app_pkg = self._accept(
            fixture, parse_url_app_pkg(params.get(RunArg.URL_APP_PKG.value))
        )
        fixture.process_test_limit = self._accept(
            fixture, parse_process_test_limit(params.get(RunArg.PROCESS_TEST_LIMIT.value))
        )
        fixture.test_all_processes = bool(
            self._accept(
                fixture, parse_test_all_processes(params.get(RunArg.TEST_ALL_PROCESSES.value))
            )
        )
        fixture.use_local_schema = True
        return fixture

    @staticmethod
    def _accept(fixture: SuiteFixture, parsed: ParsedValue) -> Any:
        if parsed.warning:
            logger.warning(parsed.warning)
            fixture.warnings.append(parsed.warning)
        return parsed.value

    def register_client_component(self, fixture: SuiteFixture) -> None:
        """Attach the shared HTTP client, if one can be built."""
        client = self.client_builder()
        if client is not None:
            fixture.client = client

    def on_finish(self, fixture: Optional[SuiteFixture], run_config: RunConfig) -> None:
        """Delete temporary files if the run asked for it, then clear the request."""
        if not run_config.delete_subject_on_finish:
            return
        try:
            if fixture is not None:
                self.delete_temp_files(fixture)
        finally:
            run_config.delete_subject_on_finish = False

    def delete_temp_files(self, fixture: SuiteFixture) -> None:
        """
        Delete the test subject file unless the suite logs at CONFIG or lower.

        A file that no longer exists is not an error.
        """
        if suite_logger.is_loggable(suite_logger.CONFIG_LEVEL):
            logger.debug(f"Keeping test subject file: {fixture.test_subject_file}")
            return
        fixture.test_subject_file.unlink(missing_ok=True)


__all__ = [
    "RunConfig",
    "SuiteFixture",
    "SuiteFixtureListener",
    "SuiteInitializationError",
]
