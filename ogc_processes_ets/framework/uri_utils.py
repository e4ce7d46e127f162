"""
================================================================================
URI Utilities
================================================================================

Dereferences a URI to a local file owned by the test suite.

Supported schemes:
    - http / https: single GET, body streamed to a temporary file
    - file: the referenced file is copied to a temporary file

The returned file is always a fresh copy, so the suite may delete it when the
run finishes without touching the original resource.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Union

import httpx
from loguru import logger


ACCEPT_HEADER = "application/json, */*;q=0.8"
DEFAULT_TIMEOUT = 30.0
TEMP_FILE_PREFIX = "entity-"


class DereferenceError(IOError):
    """Raised when a URI cannot be retrieved and saved locally."""
    pass


def suffix_for_media_type(content_type: Optional[str]) -> str:
    """
    Pick a file suffix for the given Content-Type header value.

    Examples:
        >>> suffix_for_media_type("application/vnd.oai.openapi+json;version=3.0")
        '.json'
        >>> suffix_for_media_type("text/xml")
        '.xml'
    """
    media_type = (content_type or "").split(";")[0].strip().lower()
    if media_type.endswith("json"):
        return ".json"
    if media_type.endswith("xml"):
        return ".xml"
    if media_type == "text/html":
        return ".html"
    return ".dat"


def _new_temp_file(suffix: str, temp_dir: Optional[Path]) -> Path:
    fd, name = tempfile.mkstemp(prefix=TEMP_FILE_PREFIX, suffix=suffix, dir=temp_dir)
    os.close(fd)
    return Path(name)


def _fetch_http(
    uri: httpx.URL,
    temp_dir: Optional[Path],
    transport: Optional[httpx.BaseTransport],
    timeout: float,
) -> Path:
    with httpx.Client(
        transport=transport,
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
    ) as client:
        with client.stream("GET", uri, headers={"Accept": ACCEPT_HEADER}) as response:
            response.raise_for_status()
            target = _new_temp_file(
                suffix_for_media_type(response.headers.get("Content-Type")), temp_dir
            )
            try:
                with open(target, "wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
            except BaseException:
                target.unlink(missing_ok=True)
                raise
    return target


def _copy_local(uri: httpx.URL, temp_dir: Optional[Path]) -> Path:
    # httpx.URL.path is already percent-decoded
    source = Path(uri.path)
    if not source.is_file():
        raise FileNotFoundError(f"No such file: {source}")
    target = _new_temp_file(source.suffix or ".dat", temp_dir)
    shutil.copyfile(source, target)
    return target


def dereference_uri(
    uri: Union[str, httpx.URL],
    temp_dir: Optional[Path] = None,
    transport: Optional[httpx.BaseTransport] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Path:
    """
    Retrieve the resource identified by ``uri`` and save it to a local file.

    Args:
        uri: Absolute http, https or file URI
        temp_dir: Directory for the local copy (system temp dir if None)
        transport: Optional httpx transport, e.g. a MockTransport in tests
        timeout: Network timeout in seconds

    Returns:
        Path of the newly written file

    Raises:
        DereferenceError: On unsupported scheme, network or HTTP error, or
            local I/O failure. The original exception is chained.
    """
    uri = httpx.URL(str(uri))
    scheme = uri.scheme.lower()
    logger.debug(f"Dereferencing {uri}")

    try:
        if scheme in ("http", "https"):
            return _fetch_http(uri, temp_dir, transport, timeout)
        if scheme == "file":
            return _copy_local(uri, temp_dir)
    except httpx.HTTPStatusError as e:
        raise DereferenceError(
            f"Unexpected status {e.response.status_code} retrieving {uri}"
        ) from e
    except (httpx.HTTPError, OSError) as e:
        raise DereferenceError(f"Failed to retrieve {uri}: {e}") from e

    raise DereferenceError(f"Unsupported URI scheme {scheme!r}: {uri}")


__all__ = [
    "DereferenceError",
    "dereference_uri",
    "suffix_for_media_type",
]
