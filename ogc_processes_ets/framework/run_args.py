"""
================================================================================
Run Arguments and Suite Attributes
================================================================================

Names of the run parameters accepted by the suite, names of the suite
attributes it publishes, and the parsers turning raw parameter strings into
typed values.

Optional parameters are parsed best-effort: a parser never raises, it returns
a ParsedValue carrying either the value or a warning explaining why the
attribute stays unset. Only the IUT is mandatory.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

import httpx

from .config_loader import ConfigurationError


T = TypeVar("T")

_INTEGER = re.compile(r"[+-]?[0-9]+")


class RunArg(str, Enum):
    """Run parameters recognised by the suite."""

    IUT = "iut"
    ECHO_PROCESS_ID = "echoProcessId"
    URL_APP_PKG = "urlAppPkg"
    PROCESS_TEST_LIMIT = "processTestLimit"
    TEST_ALL_PROCESSES = "testAllProcesses"

    def __str__(self) -> str:
        return self.value


class SuiteAttribute(str, Enum):
    """Attribute names published by the suite fixture."""

    IUT = "iut"
    TEST_SUBJ_FILE = "testSubjectFile"
    ECHO_PROCESS_ID = "echoProcessId"
    URL_APP_PKG = "urlAppPkg"
    PROCESS_TEST_LIMIT = "processTestLimit"
    USE_LOCAL_SCHEMA = "useLocalSchema"
    TEST_ALL_PROCESSES = "testAllProcesses"
    CLIENT = "httpClient"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ParsedValue(Generic[T]):
    """
    Outcome of parsing one optional run parameter.

    Attributes:
        value: Parsed value, or None when the attribute stays unset
        warning: Why the raw value was rejected, if it was
    """
    value: Optional[T] = None
    warning: Optional[str] = None

    @property
    def is_set(self) -> bool:
        return self.value is not None


def _invalid(arg: RunArg, raw: str, expected: str) -> str:
    return f"Could not parse parameter {arg}: {raw!r}. Expected {expected}"


def parse_iut(raw: Optional[str]) -> httpx.URL:
    """
    Parse the mandatory IUT reference.

    Only syntactic URI parsing happens here; an unreachable or otherwise
    unusable reference surfaces when it is dereferenced.

    Raises:
        ConfigurationError: If the value is missing, blank or not a URI
    """
    if raw is None or not raw.strip():
        raise ConfigurationError(f"Required test run parameter not found: {RunArg.IUT}")
    try:
        return httpx.URL(raw.strip())
    except httpx.InvalidURL as e:
        raise ConfigurationError(
            f"Test run parameter {RunArg.IUT} is not a valid URI: {raw.strip()!r}"
        ) from e


def parse_echo_process_id(raw: Optional[str]) -> ParsedValue[str]:
    """Non-empty values are kept verbatim."""
    return ParsedValue(raw or None)


def parse_url_app_pkg(raw: Optional[str]) -> ParsedValue[str]:
    """Non-empty values are kept verbatim."""
    return ParsedValue(raw or None)


def parse_process_test_limit(raw: Optional[str]) -> ParsedValue[int]:
    """Parse the process limit as a base-10 integer."""
    if raw is None:
        return ParsedValue()
    # ASCII digits only; int() would also take "1_000" and non-ASCII digits
    if not _INTEGER.fullmatch(raw.strip()):
        return ParsedValue(
            warning=_invalid(RunArg.PROCESS_TEST_LIMIT, raw, "a valid integer")
        )
    return ParsedValue(int(raw.strip()))


def parse_test_all_processes(raw: Optional[str]) -> ParsedValue[bool]:
    """Only the literal "on" enables exhaustive process testing."""
    return ParsedValue(raw == "on")


__all__ = [
    "ParsedValue",
    "RunArg",
    "SuiteAttribute",
    "parse_echo_process_id",
    "parse_iut",
    "parse_process_test_limit",
    "parse_test_all_processes",
    "parse_url_app_pkg",
]
