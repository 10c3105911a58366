import json
import threading

import pytest

from webglue import grammar
from webglue.errors import JobCancelled, JobFailed, JobTimeout, ParseError, ServiceError
from webglue.grammar import GrammarCorrection
from webglue.polling import PollSettings

from conftest import FakeResponse

TEXT = "I has a apple."

GINGER_PAYLOAD = {
    "Corrections": [
        {"From": 2, "To": 4, "Suggestions": [{"Text": "have", "CategoryId": 3}], "TopCategoryId": 3},
        {"From": 6, "To": 6, "Suggestions": [{"Text": "an"}]},
    ],
    "Sentences": [{"FromIndex": 0, "ToIndex": 13, "IsEnglish": True}],
}


def test_strip_jsonp_variants():
    assert grammar.strip_jsonp('jQuery({"a": 1});') == {"a": 1}
    assert grammar.strip_jsonp('  cb_123.x ({"a": [1, 2]})  ') == {"a": [1, 2]}
    assert grammar.strip_jsonp('{"a": 1}') == {"a": 1}
    with pytest.raises(ParseError):
        grammar.strip_jsonp("jQuery();")


def test_apply_corrections_right_to_left_and_skips_overlaps():
    corrections = [
        GrammarCorrection(start=2, end=5, original="has", suggestions=["have"]),
        GrammarCorrection(start=3, end=7, original="as a", suggestions=["XX"]),
        GrammarCorrection(start=6, end=7, original="a", suggestions=["an"]),
        GrammarCorrection(start=8, end=13, original="apple", suggestions=[]),
    ]
    assert grammar.apply_corrections(TEXT, corrections) == "I have an apple."


def test_ginger_check(http):
    http.add(FakeResponse(200, text="jQuery(" + json.dumps(GINGER_PAYLOAD) + ");"))
    result = grammar.ginger_check(TEXT)
    assert result.corrected == "I have an apple."
    assert [c.original for c in result.corrections] == ["has", "a"]
    assert result.corrections[0].category == "3"
    params = http.calls[0]["params"]
    assert params["apiKey"] == grammar.GINGER_API_KEY
    assert params["callback"] == grammar.GINGER_CALLBACK
    assert params["lang"] == "US"


def test_ginger_check_empty_text_makes_no_request(http):
    result = grammar.ginger_check("  ")
    assert result.corrected == "  "
    assert http.calls == []


def _cram_status(status, issues=None, error=None):
    body = {"status": status, "issues": issues or []}
    if error:
        body["error"] = error
    return FakeResponse(200, json_data=body)


def test_cram_check_polls_until_complete(http):
    http.add(
        FakeResponse(200, json_data={"id": "job-1"}),
        _cram_status("pending"),
        _cram_status("pending"),
        _cram_status(
            "complete",
            issues=[{"offset": 2, "length": 3, "message": "Agreement", "category": "grammar", "replacements": ["have"]}],
        ),
    )
    result = grammar.cram_check(TEXT, settings=PollSettings(interval=0.0))
    assert result.corrected == "I have a apple."
    assert result.corrections[0].message == "Agreement"
    assert http.calls[0]["method"] == "POST"
    assert http.calls[0]["json"] == {"text": TEXT}
    assert http.calls[1]["url"].endswith("/check/job-1")
    assert len(http.calls) == 4


def test_cram_check_error_field_fails_job(http):
    http.add(FakeResponse(200, json_data={"id": "job-2"}), _cram_status("pending", error="text too long"))
    with pytest.raises(JobFailed) as exc:
        grammar.cram_check(TEXT, settings=PollSettings(interval=0.0))
    assert exc.value.error == "text too long"


def test_cram_check_respects_max_attempts(http):
    http.add(FakeResponse(200, json_data={"id": "job-3"}), _cram_status("pending"), _cram_status("pending"))
    with pytest.raises(JobTimeout):
        grammar.cram_check(TEXT, settings=PollSettings(interval=0.0, max_attempts=2))


def test_cram_submit_error(http):
    http.add(FakeResponse(200, json_data={"error": "quota exceeded"}))
    with pytest.raises(ServiceError):
        grammar.cram_check(TEXT)


def test_cram_check_cancelled_while_waiting(http):
    cancel = threading.Event()

    def pending(method, url, **kwargs):
        cancel.set()
        return _cram_status("pending")

    http.add(FakeResponse(200, json_data={"id": "job-4"}), pending)
    with pytest.raises(JobCancelled):
        grammar.cram_check(TEXT, settings=PollSettings(interval=60.0), cancel_event=cancel)
    assert len(http.calls) == 2
