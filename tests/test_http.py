import pytest
import requests

from webglue import _http
from webglue.errors import ParseError, RequestFailed, ServiceError

from conftest import FakeResponse


def test_request_sends_browser_headers_and_merges_custom(http):
    http.add(FakeResponse(200, text="ok"))
    resp = _http.request("GET", "https://example.com", service="test", headers={"X-Extra": "1"})
    assert resp.text == "ok"
    headers = http.calls[0]["headers"]
    assert headers["User-Agent"] == _http.USER_AGENT
    assert headers["X-Extra"] == "1"
    assert http.calls[0]["timeout"] == _http.DEFAULT_TIMEOUT


def test_request_retries_connection_errors_then_succeeds(http):
    http.add(requests.exceptions.ConnectionError("boom"), FakeResponse(200, text="fine"))
    resp = _http.request("GET", "https://example.com", service="test", tries=3)
    assert resp.text == "fine"
    assert len(http.calls) == 2


def test_request_gives_up_after_tries(http):
    http.add(*(requests.exceptions.Timeout("slow") for _ in range(2)))
    with pytest.raises(RequestFailed) as exc:
        _http.request("GET", "https://example.com", service="test", tries=2)
    assert isinstance(exc.value.cause, requests.exceptions.Timeout)
    assert len(http.calls) == 2


def test_request_waits_once_on_429(http):
    http.add(FakeResponse(429, text="slow down"), FakeResponse(200, text="ok"))
    assert _http.request("GET", "https://example.com", service="test").text == "ok"
    assert len(http.calls) == 2


def test_second_429_is_an_error(http):
    http.add(FakeResponse(429, text="slow down"), FakeResponse(429, text="still slow"))
    with pytest.raises(ServiceError) as exc:
        _http.request("GET", "https://example.com", service="test")
    assert exc.value.status_code == 429


def test_error_status_uses_json_error_message(http):
    http.add(FakeResponse(403, json_data={"error": "bad key"}))
    with pytest.raises(ServiceError) as exc:
        _http.request("GET", "https://example.com", service="svc")
    assert exc.value.message == "bad key"
    assert exc.value.payload == {"error": "bad key"}
    assert "[svc]" in str(exc.value)


def test_check_false_returns_error_responses(http):
    http.add(FakeResponse(500, text="oops"))
    resp = _http.request("GET", "https://example.com", service="svc", check=False)
    assert resp.status_code == 500


def test_get_json_rejects_non_json(http):
    http.add(FakeResponse(200, text="<html>"))
    with pytest.raises(ParseError):
        _http.get_json("https://example.com", service="svc")


def test_save_stream_writes_chunks(tmp_path):
    resp = FakeResponse(200, content=b"x" * 3000)
    out = _http.save_stream(resp, tmp_path / "sub" / "file.bin")
    assert out.read_bytes() == b"x" * 3000


def test_save_stream_removes_partial_file(tmp_path):
    class Broken(FakeResponse):
        def iter_content(self, chunk_size: int = 1024):
            yield b"half"
            raise requests.exceptions.ChunkedEncodingError("reset")

    with pytest.raises(requests.exceptions.ChunkedEncodingError):
        _http.save_stream(Broken(200), tmp_path / "file.bin")
    assert list(tmp_path.iterdir()) == []
