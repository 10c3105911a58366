import json
from pathlib import Path

import pytest
import requests

from webglue import scihub

from conftest import FakeResponse

EMBED_PAGE = """
<html><body><div id="article">
  <embed type="application/pdf" src="//zero.sci-hub.se/1234/abcd/smith2013.pdf#navpanes=0&view=FitH" id="pdf">
</div></body></html>
"""

BUTTON_PAGE = """
<html><body><div id="buttons">
  <button onclick="location.href='/downloads/2020-01-01/ab/jones2019.pdf?download=true'">save</button>
</div></body></html>
"""

NOT_FOUND_PAGE = "<html><body><p>Unfortunately, Sci-Hub doesn't have the requested document</p></body></html>"


def test_normalize_doi():
    assert scihub.normalize_doi("https://doi.org/10.1038/nature12373") == "10.1038/nature12373"
    assert scihub.normalize_doi("doi:10.1000/xyz ") == "10.1000/xyz"
    assert scihub.normalize_doi("10.1000/xyz") == "10.1000/xyz"


def test_parse_pdf_url_embed_protocol_relative_without_fragment():
    url = scihub.parse_pdf_url(EMBED_PAGE, "https://sci-hub.se")
    assert url == "https://zero.sci-hub.se/1234/abcd/smith2013.pdf"


def test_parse_pdf_url_button_root_relative():
    url = scihub.parse_pdf_url(BUTTON_PAGE, "https://sci-hub.st")
    assert url == "https://sci-hub.st/downloads/2020-01-01/ab/jones2019.pdf?download=true"


def test_parse_pdf_url_none():
    assert scihub.parse_pdf_url(NOT_FOUND_PAGE, "https://sci-hub.se") is None


def test_find_scihub_pdf_tries_mirrors_in_order(http):
    http.add(
        requests.exceptions.ConnectionError("down"),
        requests.exceptions.ConnectionError("down"),
        requests.exceptions.ConnectionError("down"),
        FakeResponse(200, text=NOT_FOUND_PAGE),
        FakeResponse(200, text=BUTTON_PAGE),
    )
    url = scihub.find_scihub_pdf("doi:10.1/abc", mirrors=("https://m1", "https://m2", "https://m3"))
    assert url == "https://m3/downloads/2020-01-01/ab/jones2019.pdf?download=true"
    assert [c["url"] for c in http.calls][-2:] == ["https://m2/10.1/abc", "https://m3/10.1/abc"]


def test_find_scihub_pdf_returns_none_when_no_mirror_has_it(http):
    http.add(FakeResponse(200, text=NOT_FOUND_PAGE), FakeResponse(404, text="gone"))
    assert scihub.find_scihub_pdf("10.1/abc", mirrors=("https://m1", "https://m2")) is None


def test_download_scihub_pdf_saves_file(http, tmp_path: Path):
    http.add(
        FakeResponse(200, text=EMBED_PAGE),
        FakeResponse(200, content=b"%PDF-1.4 data", headers={"Content-Type": "application/pdf"}),
    )
    path, source = scihub.download_scihub_pdf("10.1038/nature12373", tmp_path, mirrors=("https://sci-hub.se",))
    assert source == "Sci-Hub"
    assert path == tmp_path / "10.1038_nature12373.pdf"
    assert path.read_bytes() == b"%PDF-1.4 data"
    assert http.calls[1]["stream"] is True

    # second call short-circuits on the existing file
    again, source = scihub.download_scihub_pdf("10.1038/nature12373", tmp_path)
    assert again == path
    assert source == "Sci-Hub (already exists)"
    assert len(http.calls) == 2


def test_download_scihub_pdf_rejects_html(http, tmp_path: Path):
    http.add(
        FakeResponse(200, text=EMBED_PAGE),
        FakeResponse(200, text="<html>captcha</html>", headers={"Content-Type": "text/html"}),
    )
    assert scihub.download_scihub_pdf("10.1/x", tmp_path, mirrors=("https://sci-hub.se",)) == (None, None)
    assert not (tmp_path / "10.1_x.pdf").exists()


def test_save_scihub_pdfs_from_jsonl(http, tmp_path: Path):
    dump = tmp_path / "results.jsonl"
    dump.write_text(
        json.dumps({"DOI": "10.1/found", "title": "A"}) + "\n\n" + json.dumps({"doi": "10.1/missing", "title": "B"}) + "\n"
    )
    http.add(
        FakeResponse(200, text=EMBED_PAGE),
        FakeResponse(200, content=b"%PDF", headers={"Content-Type": "application/pdf"}),
        FakeResponse(200, text=NOT_FOUND_PAGE),
    )
    out = tmp_path / "pdfs"
    stats = scihub.save_scihub_pdfs(dump, out, mirrors=("https://sci-hub.se",), sleep_seconds=0)
    assert stats == {"saved": 1, "existing": 0, "missing": 1}
    missing = [json.loads(l) for l in (out / "not_found.jsonl").read_text().splitlines()]
    assert missing == [{"doi": "10.1/missing", "title": "B"}]


def test_save_scihub_pdfs_rejects_missing_path(tmp_path: Path):
    with pytest.raises(ValueError):
        scihub.save_scihub_pdfs(tmp_path / "nope.jsonl", tmp_path / "out", sleep_seconds=0)


class BrokenStream(FakeResponse):
    def iter_content(self, chunk_size: int = 1024):
        yield b"%PDF-1.4 partial"
        raise requests.exceptions.ChunkedEncodingError("connection reset")


def test_interrupted_download_leaves_no_file(http, tmp_path: Path):
    broken = BrokenStream(200, headers={"Content-Type": "application/pdf"})
    http.add(FakeResponse(200, text=EMBED_PAGE), broken)
    assert scihub.download_scihub_pdf("10.1/x", tmp_path, mirrors=("https://sci-hub.se",)) == (None, None)
    assert list(tmp_path.iterdir()) == []
    assert broken.closed

    # a retry downloads again instead of trusting a partial file
    http.add(
        FakeResponse(200, text=EMBED_PAGE),
        FakeResponse(200, content=b"%PDF-1.4 full", headers={"Content-Type": "application/pdf"}),
    )
    path, source = scihub.download_scihub_pdf("10.1/x", tmp_path, mirrors=("https://sci-hub.se",))
    assert source == "Sci-Hub"
    assert path.read_bytes() == b"%PDF-1.4 full"


def test_non_pdf_response_is_closed(http, tmp_path: Path):
    html = FakeResponse(200, text="<html>captcha</html>", headers={"Content-Type": "text/html"})
    http.add(FakeResponse(200, text=EMBED_PAGE), html)
    scihub.download_scihub_pdf("10.1/x", tmp_path, mirrors=("https://sci-hub.se",))
    assert html.closed


def test_save_scihub_pdfs_keeps_going_after_a_failure(http, tmp_path: Path, monkeypatch):
    def fail_first(doi, outdir, *, mirrors):
        if doi == "10.1/bad":
            raise requests.exceptions.ChunkedEncodingError("reset")
        return None, None

    monkeypatch.setattr(scihub, "download_scihub_pdf", fail_first)
    out = tmp_path / "pdfs"
    stats = scihub.save_scihub_pdfs(["10.1/bad", "10.1/none"], out, sleep_seconds=0)
    assert stats == {"saved": 0, "existing": 0, "missing": 2}
    missing = [json.loads(l) for l in (out / "not_found.jsonl").read_text().splitlines()]
    assert missing == [{"doi": "10.1/bad"}, {"doi": "10.1/none"}]
