import json
import time
from typing import Any, Callable, List, Optional, Union

import pytest

from webglue import config

_MISSING = object()


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        json_data: Any = _MISSING,
        text: Optional[str] = None,
        content: bytes = b"",
        headers: Optional[dict] = None,
    ) -> None:
        self.status_code = status_code
        self._json = json_data
        if text is None and json_data is not _MISSING:
            text = json.dumps(json_data)
        self.text = text if text is not None else content.decode("latin-1")
        self.content = content if content else self.text.encode("utf-8")
        self.headers = headers or {}
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def json(self) -> Any:
        if self._json is _MISSING:
            return json.loads(self.text)
        return self._json

    def iter_content(self, chunk_size: int = 1024):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i: i + chunk_size]


Answer = Union[FakeResponse, BaseException, Callable[..., FakeResponse]]


class FakeHttp:
    """Stands in for requests.request: answers come from a queue, calls are recorded."""

    def __init__(self) -> None:
        self.queue: List[Answer] = []
        self.calls: List[dict] = []

    def add(self, *answers: Answer) -> "FakeHttp":
        self.queue.extend(answers)
        return self

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self.queue:
            raise AssertionError(f"unexpected request: {method} {url}")
        answer = self.queue.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        if callable(answer) and not isinstance(answer, FakeResponse):
            return answer(method, url, **kwargs)
        return answer


@pytest.fixture
def http(monkeypatch) -> FakeHttp:
    fake = FakeHttp()
    monkeypatch.setattr("webglue._http.requests.request", fake.request)
    return fake


@pytest.fixture(autouse=True)
def _no_sleep_no_keys(monkeypatch):
    monkeypatch.setattr(time, "sleep", lambda s: None)
    for name in config.KEY_NAMES.values():
        monkeypatch.delenv(name, raising=False)
    config.set_api_keys(None)
    yield
    config.set_api_keys(None)
