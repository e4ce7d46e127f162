import httpx
import pytest

from ogc_processes_ets.framework.uri_utils import (
    DereferenceError,
    dereference_uri,
    suffix_for_media_type,
)


LANDING_PAGE = b'{"title": "Demo processes server", "links": []}'


def landing_page_transport(status_code=200, content=LANDING_PAGE, content_type="application/json"):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            status_code, content=content, headers={"Content-Type": content_type}
        )

    transport = httpx.MockTransport(handler)
    transport.requests = requests
    return transport


def test_http_resource_is_saved_to_temp_file(tmp_path):
    transport = landing_page_transport()

    path = dereference_uri("https://example.org/ogcapi", temp_dir=tmp_path, transport=transport)

    assert path.parent == tmp_path
    assert path.name.startswith("entity-")
    assert path.suffix == ".json"
    assert path.read_bytes() == LANDING_PAGE
    assert path.stat().st_size == len(LANDING_PAGE)
    assert transport.requests[0].headers["Accept"].startswith("application/json")


def test_http_error_status_is_a_dereference_error(tmp_path):
    transport = landing_page_transport(status_code=404, content=b"not found")

    with pytest.raises(DereferenceError, match="404") as excinfo:
        dereference_uri("https://example.org/missing", temp_dir=tmp_path, transport=transport)

    assert isinstance(excinfo.value.__cause__, httpx.HTTPStatusError)
    assert list(tmp_path.iterdir()) == []


def test_network_error_is_a_dereference_error(tmp_path):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DereferenceError) as excinfo:
        dereference_uri(
            "http://localhost:9/ogcapi", temp_dir=tmp_path, transport=httpx.MockTransport(handler)
        )

    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_file_uri_is_copied(tmp_path):
    source = tmp_path / "landing.json"
    source.write_bytes(LANDING_PAGE)
    out_dir = tmp_path / "out"
    out_dir.mkdir()

    path = dereference_uri(source.as_uri(), temp_dir=out_dir)

    assert path != source
    assert path.parent == out_dir
    assert path.suffix == ".json"
    assert path.read_bytes() == LANDING_PAGE


def test_missing_file_is_a_dereference_error(tmp_path):
    with pytest.raises(DereferenceError):
        dereference_uri((tmp_path / "nope.json").as_uri(), temp_dir=tmp_path)


@pytest.mark.parametrize("uri", ["ftp://example.org/landing", "landing.json"])
def test_unsupported_scheme_is_a_dereference_error(uri, tmp_path):
    with pytest.raises(DereferenceError, match="Unsupported URI scheme"):
        dereference_uri(uri, temp_dir=tmp_path)


@pytest.mark.parametrize(
    "content_type, suffix",
    [
        ("application/json", ".json"),
        ("application/vnd.oai.openapi+json;version=3.0", ".json"),
        ("application/xml; charset=utf-8", ".xml"),
        ("text/html", ".html"),
        ("application/octet-stream", ".dat"),
        (None, ".dat"),
    ],
)
def test_suffix_for_media_type(content_type, suffix):
    assert suffix_for_media_type(content_type) == suffix


def test_file_uri_with_escaped_name_is_decoded_once(tmp_path):
    # as_uri() encodes the "%" so the URI reads landing%2520page.json
    source = tmp_path / "landing%20page.json"
    source.write_bytes(LANDING_PAGE)

    path = dereference_uri(source.as_uri(), temp_dir=tmp_path)

    assert path.read_bytes() == LANDING_PAGE


def test_file_uri_with_space_in_name(tmp_path):
    source = tmp_path / "landing page.json"
    source.write_bytes(LANDING_PAGE)

    path = dereference_uri(source.as_uri(), temp_dir=tmp_path)

    assert path.read_bytes() == LANDING_PAGE
