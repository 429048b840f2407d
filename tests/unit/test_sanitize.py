import json
import re

import pytest

from suburb_ingest.fetch.sanitize import sanitize_json_text

STANDALONE_LITERAL_RE = re.compile(r"(?<![A-Za-z0-9_$])(-?infinity|nan|undefined)(?![A-Za-z0-9_$])", re.IGNORECASE)

SAMPLES = [
    '{"a": NaN, "b": [1, 2,]}',
    '{"lat": Infinity, "lng": -Infinity, "x": undefined}',
    '{"note": "NaN, Infinity, undefined,]", "v": nan}',
    '{"undefinedCount": 3, "NaNa": NAN}',
    '[{"a": 1,}, {"b": "x\\",]"},]',
    '{"s": "unterminated NaN,]',
    "<html><body>Service unavailable</body></html>",
    "[1,,]",
    "a-Infinity NaNNaN $NaN _undefined",
    "",
]


def _strip_strings(text: str) -> str:
    return re.sub(r'"(?:\\.|[^"\\])*"', '""', text)


def test_example_payload_is_cleaned():
    assert sanitize_json_text('{"a": NaN, "b": [1, 2,]}') == '{"a": null, "b": [1, 2]}'


def test_literals_replaced_case_insensitively():
    text = '{"a": nan, "b": INFINITY, "c": -infinity, "d": Undefined}'
    assert json.loads(sanitize_json_text(text)) == {"a": None, "b": None, "c": None, "d": None}


def test_identifiers_containing_literals_are_untouched():
    text = "{undefinedCount: 1, myNaN: 2, Infinity2: 3, $undefined: 4}"
    assert sanitize_json_text(text) == text


def test_string_content_is_preserved_byte_for_byte():
    text = '{"label": "NaN, not a number,]", "escaped": "say \\"Infinity,}\\"", "k": NaN}'
    out = sanitize_json_text(text)
    assert json.loads(out) == {"label": "NaN, not a number,]", "escaped": 'say "Infinity,}"', "k": None}


def test_trailing_commas_before_closers_removed_across_whitespace():
    assert sanitize_json_text('{"a": [1, 2 ,\n ],\n}') == '{"a": [1, 2 \n ]\n}'


def test_inner_commas_are_kept():
    assert sanitize_json_text("[1, 2, 3]") == "[1, 2, 3]"


def test_html_passes_through():
    html = "<html><body>502 Bad Gateway</body></html>"
    assert sanitize_json_text(html) == html


@pytest.mark.parametrize("text", SAMPLES)
def test_sanitize_is_idempotent(text):
    once = sanitize_json_text(text)
    assert sanitize_json_text(once) == once


@pytest.mark.parametrize("text", SAMPLES)
def test_no_standalone_literals_outside_strings(text):
    outside = _strip_strings(sanitize_json_text(text))
    # An unterminated string swallows the rest of the text.
    outside = outside.split('"', 1)[0] if outside.count('"') % 2 else outside
    assert not STANDALONE_LITERAL_RE.search(outside)


def test_comma_run_before_bracket_is_removed_whole():
    assert sanitize_json_text("[1,,]") == "[1]"
    assert sanitize_json_text('{"a": 1, ,\n}') == '{"a": 1 \n}'
