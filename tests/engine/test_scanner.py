from __future__ import annotations

import httpx
import pytest

from endpoint_shuffle.config import ScanConfig
from endpoint_shuffle.engine.scanner import ShodanScanSource
from endpoint_shuffle.errors import FetchError


def make_client(pages: dict[int, object], requests: list[httpx.Request]) -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        page = int(request.url.params["page"])
        payload = pages.get(page, {"matches": []})
        if isinstance(payload, httpx.Response):
            return payload
        return httpx.Response(200, json=payload)

    return httpx.Client(base_url="https://api.shodan.io", transport=httpx.MockTransport(handler))


def test_fetch_paginates_until_empty_page() -> None:
    requests: list[httpx.Request] = []
    pages = {
        1: {"matches": [{"ip_str": "1.2.3.4", "port": 8000}, {"ip_str": "5.6.7.8", "port": 80}]},
        2: {"matches": [{"ip_str": "9.9.9.9", "port": 8080}]},
    }
    source = ShodanScanSource("secret", client=make_client(pages, requests))

    urls = source.fetch()

    assert urls == ["http://1.2.3.4:8000", "http://5.6.7.8:80", "http://9.9.9.9:8080"]
    assert [int(r.url.params["page"]) for r in requests] == [1, 2, 3]
    first = requests[0]
    assert first.url.path == "/shodan/host/search"
    assert first.url.params["key"] == "secret"
    assert first.url.params["query"] == "product:SimpleHTTPServer"


def test_fetch_respects_max_pages() -> None:
    requests: list[httpx.Request] = []
    pages = {n: {"matches": [{"ip_str": f"10.0.0.{n}", "port": 80}]} for n in range(1, 10)}
    source = ShodanScanSource("secret", max_pages=2, client=make_client(pages, requests))
    assert source.fetch() == ["http://10.0.0.1:80", "http://10.0.0.2:80"]
    assert len(requests) == 2


def test_missing_key_fails_without_request() -> None:
    requests: list[httpx.Request] = []
    source = ShodanScanSource(None, client=make_client({}, requests))
    with pytest.raises(FetchError):
        source.fetch()
    assert requests == []


@pytest.mark.parametrize(
    "bad_page",
    [
        httpx.Response(500, text="upstream down"),
        httpx.Response(401, json={"error": "Invalid API key"}),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json=["not", "a", "mapping"]),
        httpx.Response(200, json={"matches": [{"ip_str": "1.1.1.1"}]}),
    ],
)
def test_any_bad_page_aborts_whole_fetch(bad_page: httpx.Response) -> None:
    requests: list[httpx.Request] = []
    pages = {1: {"matches": [{"ip_str": "1.2.3.4", "port": 8000}]}, 2: bad_page}
    source = ShodanScanSource("secret", client=make_client(pages, requests))
    with pytest.raises(FetchError):
        source.fetch()


def test_transport_error_becomes_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.Client(base_url="https://api.shodan.io", transport=httpx.MockTransport(handler))
    source = ShodanScanSource("secret", client=client)
    with pytest.raises(FetchError, match="page 1"):
        source.fetch()


def test_from_config_reads_credential_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CUSTOM_SHODAN_KEY", "from-env")
    config = ScanConfig(api_key_env="CUSTOM_SHODAN_KEY", query="port:8000", max_pages=3)
    source = ShodanScanSource.from_config(config)
    try:
        assert source.api_key == "from-env"
        assert source.query == "port:8000"
        assert source.max_pages == 3
    finally:
        source.close()


def test_close_releases_owned_client_once() -> None:
    source = ShodanScanSource("secret")
    source.close()
    assert source._client.is_closed
    source.close()


def test_close_leaves_injected_client_open() -> None:
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    ShodanScanSource("secret", client=client).close()
    assert not client.is_closed
    client.close()
