"""
================================================================================
HTTP Client with Allure Integration
================================================================================

The HTTP client shared by every conformance test in a suite run.

Features:
    - One httpx session per suite run, configured from ConfigLoader
    - Allure step per exchange with cURL command for reproduction
    - Sensitive header and body values masked before reporting

Requests are attempted exactly once: a conformance check must observe the
server's real first answer.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

import allure
import httpx
from allure_commons.types import AttachmentType
from loguru import logger

from .config_loader import ConfigLoader


# Maximum response length to include in Allure reports
MAX_RESPONSE_LENGTH = 3000

DEFAULT_TIMEOUT = 30
DEFAULT_USER_AGENT = "ets-ogcapi-processes10-part2"

SENSITIVE_HEADERS = {"authorization", "x-api-key", "cookie", "set-cookie"}
SENSITIVE_FIELDS = ("password", "secret", "token", "api_key", "authorization")


class HttpClientError(Exception):
    """Raised when the client is used outside of an open session."""
    pass


class HttpClient:
    """
    HTTP client for conformance requests against the implementation under test.

    Usage:
        >>> with HttpClient(base_url="https://example.org/ogcapi") as client:
        ...     response = client.get("/processes")
        ...     print(response.status_code)
    """

    def __init__(
        self,
        config: Optional[ConfigLoader] = None,
        base_url: str = "",
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Initialize HTTP client with configuration.

        Args:
            config: Configuration loader instance. Creates new one if None.
            base_url: Prefix for relative request URLs
            transport: Optional httpx transport (used by tests)
        """
        if config is None:
            config = ConfigLoader()

        self.config = config
        self.base_url = str(base_url)
        self.timeout = float(config.get("client.timeout", DEFAULT_TIMEOUT))
        self.follow_redirects = bool(config.get("client.follow_redirects", True))
        self.user_agent = config.get("client.user_agent", DEFAULT_USER_AGENT)
        self.transport = transport

        self.session: Optional[httpx.Client] = None

    def open(self) -> "HttpClient":
        """Create the underlying httpx session."""
        if self.session is None:
            self.session = httpx.Client(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=self.follow_redirects,
                headers={"User-Agent": self.user_agent},
                transport=self.transport,
            )
        return self

    def close(self) -> None:
        """Close the underlying httpx session."""
        if self.session:
            self.session.close()
            self.session = None

    @property
    def is_open(self) -> bool:
        return self.session is not None

    def __enter__(self) -> "HttpClient":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def request(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Execute an HTTP request and report it to Allure.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE, PATCH)
            url: Absolute URL, or path relative to base_url
            **kwargs: Additional arguments passed to httpx.Client.request

        Returns:
            httpx.Response object

        Raises:
            HttpClientError: If the session is not open
            httpx.HTTPError: On transport failure
        """
        if self.session is None:
            raise HttpClientError(
                "HttpClient session is closed. "
                "Use 'with HttpClient() as client:' or call open() first."
            )

        try:
            response = self.session.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise

        logger.debug(f"{method} {response.request.url} -> {response.status_code}")
        self._log_to_allure(method, str(response.request.url), kwargs, response)
        return response

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Execute GET request."""
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> httpx.Response:
        """Execute POST request."""
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> httpx.Response:
        """Execute PUT request."""
        return self.request("PUT", url, **kwargs)

    def patch(self, url: str, **kwargs: Any) -> httpx.Response:
        """Execute PATCH request."""
        return self.request("PATCH", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        """Execute DELETE request."""
        return self.request("DELETE", url, **kwargs)

    def _log_to_allure(
        self,
        method: str,
        full_url: str,
        kwargs: Dict[str, Any],
        response: httpx.Response,
    ) -> None:
        """
        Log HTTP request/response to Allure report.

        Attaches the request URL, headers and body, a cURL command, the
        response status and the (truncated) response body.
        """
        status_mark = "PASS" if response.status_code < 400 else "FAIL"
        step_title = f"[{status_mark}] {method} {full_url} -> {response.status_code}"

        with allure.step(step_title):
            allure.attach(
                full_url,
                name="Request URL",
                attachment_type=AttachmentType.TEXT
            )

            safe_headers = self._redact_headers(dict(response.request.headers))
            if safe_headers:
                allure.attach(
                    json.dumps(safe_headers, ensure_ascii=False, indent=2),
                    name="Request Headers",
                    attachment_type=AttachmentType.JSON
                )

            safe_body = self._redact_body(kwargs.get("json"))
            if safe_body:
                allure.attach(
                    json.dumps(safe_body, ensure_ascii=False, indent=2),
                    name="Request Body",
                    attachment_type=AttachmentType.JSON
                )

            allure.attach(
                self._build_curl(method, full_url, safe_headers, safe_body),
                name="cURL Command",
                attachment_type=AttachmentType.TEXT
            )

            allure.attach(
                str(response.status_code),
                name="Response Status",
                attachment_type=AttachmentType.TEXT
            )

            try:
                response_content = json.dumps(
                    response.json(), ensure_ascii=False, indent=2
                )
            except (json.JSONDecodeError, ValueError):
                response_content = response.text or "<empty>"

            if len(response_content) > MAX_RESPONSE_LENGTH:
                response_content = (
                    f"{response_content[:MAX_RESPONSE_LENGTH]}\n\n"
                    f"... [Truncated, full length: {len(response_content)} chars] ..."
                )

            allure.attach(
                response_content,
                name="Response Body",
                attachment_type=AttachmentType.TEXT
            )

    def _redact_headers(self, headers: Dict[str, Any]) -> Dict[str, Any]:
        """Mask sensitive header values before logging."""
        return {
            key: "***MASKED***" if key.lower() in SENSITIVE_HEADERS else value
            for key, value in headers.items()
        }

    def _redact_body(self, payload: Any) -> Any:
        """Recursively mask sensitive fields in request bodies."""
        if isinstance(payload, dict):
            return {
                key: "***MASKED***"
                if any(token in key.lower() for token in SENSITIVE_FIELDS)
                else self._redact_body(value)
                for key, value in payload.items()
            }
        if isinstance(payload, list):
            return [self._redact_body(item) for item in payload]
        return payload

    def _build_curl(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[Any],
    ) -> str:
        """Build a copy-paste ready cURL command for the request."""
        parts = [f"curl -X {method}"]
        for key, value in headers.items():
            parts.append(f"-H '{key}: {value}'")
        if body:
            parts.append(f"-d '{json.dumps(body, ensure_ascii=False)}'")
        parts.append(f"'{url}'")
        return " \\\n  ".join(parts)


def build_client(
    config: Optional[ConfigLoader] = None,
    base_url: str = "",
    transport: Optional[httpx.BaseTransport] = None,
) -> Optional[HttpClient]:
    """
    Build and open the suite's shared HTTP client.

    Returns:
        An open HttpClient, or None if it could not be constructed
    """
    try:
        return HttpClient(config, base_url=base_url, transport=transport).open()
    except (ValueError, TypeError, httpx.HTTPError) as e:
        logger.debug(f"HTTP client unavailable: {e}")
        return None


__all__ = [
    "HttpClient",
    "HttpClientError",
    "build_client",
]
