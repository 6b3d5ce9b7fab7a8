import copy
import json
import math

import pytest

from scamcheck.services.errors import InvalidResponseError, ReportValidationError
from scamcheck.services.sanitizer import (
    LIST_FIELDS,
    clamp_confidence,
    normalize,
    parse_completion,
    sanitize,
    validate_report,
)

from conftest import FULL_REPORT


# ---------------------------------------------------------------------------
# Parsing and brace extraction
# ---------------------------------------------------------------------------

def test_plain_json_is_parsed():
    report = sanitize(json.dumps(FULL_REPORT))
    assert report == FULL_REPORT


def test_json_wrapped_in_prose_is_recovered():
    raw = 'Sure! Here is the result: {"risk_level":"high"} Hope that helps.'
    report = sanitize(raw)
    assert report == {
        "risk_level": "high",
        "confidence": 0.0,
        "red_flags": [],
        "inconsistencies": [],
        "next_steps": [],
        "safety_notes": [],
    }


def test_markdown_fence_is_recovered():
    raw = "```json\n" + json.dumps(FULL_REPORT, indent=2) + "\n```"
    assert sanitize(raw) == FULL_REPORT


def test_extraction_spans_first_open_to_last_close_brace():
    raw = 'Result: {"summary": "nested {braces} ok", "red_flags": []} -- end'
    assert sanitize(raw)["summary"] == "nested {braces} ok"


@pytest.mark.parametrize(
    "raw",
    [
        "I cannot help with that.",
        "",
        "} backwards {",
        "{not json at all}",
        'Here: {"a": 1} and then {"b": 2}',
        '{"confidence": NaN}',
        "[1, 2",
    ],
)
def test_unrecoverable_replies_raise_invalid_response(raw):
    with pytest.raises(InvalidResponseError) as exc_info:
        sanitize(raw)
    assert exc_info.value.raw == raw


@pytest.mark.parametrize("raw", ["null", "false", "0", '""'])
def test_empty_json_values_are_rejected(raw):
    with pytest.raises(InvalidResponseError):
        parse_completion(raw)


def test_overflowing_numbers_become_null():
    report = sanitize('{"confidence": 1e400, "risk_score": 1e400, "red_flags": [{"score": -1e400}]}')
    assert report["confidence"] == 0.0
    assert report["risk_score"] is None
    assert report["red_flags"] == [{"score": None}]
    json.dumps(report, allow_nan=False)


@pytest.mark.parametrize(
    "raw",
    ["[" * 100000, "{" * 100000 + "}", "Result: " + "{" * 100000 + "}"],
    ids=["array", "object", "wrapped-object"],
)
def test_deeply_nested_replies_raise_invalid_response(raw):
    with pytest.raises(InvalidResponseError) as exc_info:
        parse_completion(raw)
    assert exc_info.value.raw == raw


def test_fallback_only_runs_when_strict_parse_fails():
    # A JSON string that happens to contain braces is a successful strict parse.
    raw = json.dumps('{"risk_level": "high"}')
    assert sanitize(raw) == '{"risk_level": "high"}'


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "value, expected",
    [
        ("2.5", 1.0),
        (-3, 0.0),
        ("abc", 0.0),
        ("", 0.0),
        (None, 0.0),
        ("NaN", 0.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
        (10 ** 400, 0.0),
        ([0.5], 0.0),
        ({"value": 0.5}, 0.0),
        (True, 1.0),
        (0.42, 0.42),
        (" 0.7 ", 0.7),
        (1, 1.0),
    ],
)
def test_confidence_is_coerced_into_unit_interval(value, expected):
    result = clamp_confidence(value)
    assert math.isfinite(result)
    assert result == pytest.approx(expected)


def test_missing_confidence_defaults_to_zero():
    assert normalize({"risk_level": "low"})["confidence"] == 0.0


@pytest.mark.parametrize("bad", ["none", 3, {"title": "x"}, None, True])
def test_non_list_fields_become_empty_lists(bad):
    report = normalize({field: bad for field in LIST_FIELDS})
    for field in LIST_FIELDS:
        assert report[field] == []


def test_list_elements_are_not_repaired():
    flags = [{"title": 42}, "just a string", None]
    report = normalize({"red_flags": flags, "safety_notes": [1, 2]})
    assert report["red_flags"] == flags
    assert report["safety_notes"] == [1, 2]


@pytest.mark.parametrize("value", [[1, 2], 42, "text", 3.5])
def test_non_object_values_pass_through(value):
    assert normalize(copy.deepcopy(value)) == value
    assert sanitize(json.dumps(value)) == value


def test_unknown_fields_are_kept():
    report = sanitize('{"risk_level": "medium", "model_notes": "extra"}')
    assert report["model_notes"] == "extra"


@pytest.mark.parametrize(
    "raw",
    [
        {"confidence": "7", "red_flags": "none"},
        {"confidence": -1, "safety_notes": {"a": 1}},
        {},
        FULL_REPORT,
    ],
)
def test_normalize_is_idempotent(raw):
    once = normalize(copy.deepcopy(raw))
    twice = normalize(copy.deepcopy(once))
    assert twice == once


# ---------------------------------------------------------------------------
# Strict schema validation (opt-in enhancement, not part of the base contract)
# ---------------------------------------------------------------------------

def test_validate_report_accepts_a_well_formed_report():
    report = validate_report(sanitize(json.dumps(FULL_REPORT)))
    assert report.scenario == "romance"
    assert report.next_steps[1].category == "reporting"


def test_validate_report_rejects_bad_nested_elements():
    normalized = sanitize('{"red_flags": [{"title": "x", "severity": "extreme"}]}')
    # The shallow sanitizer lets this through...
    assert normalized["red_flags"][0]["severity"] == "extreme"
    # ...only strict validation catches it.
    with pytest.raises(ReportValidationError):
        validate_report(normalized)


def test_validate_report_rejects_unknown_scenario():
    with pytest.raises(ReportValidationError):
        validate_report(normalize({"scenario": "lottery"}))
