"""
Cloud Relay — Tolerant JSON Extraction Tests
==============================================

What:  parse_embedded_object / parse_embedded_array against the provider
       quirks seen in practice: BOMs, junk prefixes, wrapper text.
"""

import pytest

from cloudrelay.exceptions import MalformedResponseError
from cloudrelay.parsing import parse_embedded_array, parse_embedded_json, parse_embedded_object

OCR_JSON = '{"language": "de", "regions": [{"lines": [{"words": [{"text": "Hallo"}]}]}]}'
TRANSLATION_JSON = '[{"translations": [{"text": "Hello", "to": "en"}]}]'


class TestParseEmbeddedObject:

    def test_clean_payload(self):
        assert parse_embedded_object(OCR_JSON)["language"] == "de"

    def test_three_junk_bytes_prefix(self):
        """A junk prefix before the first '{' parses to the same result."""
        assert parse_embedded_object(b"\x00\x01\x02" + OCR_JSON.encode()) == parse_embedded_object(OCR_JSON)

    def test_byte_order_mark(self):
        assert parse_embedded_object(b"\xef\xbb\xbf" + OCR_JSON.encode())["regions"]

    def test_text_prefix_and_suffix(self):
        assert parse_embedded_object("garbage " + OCR_JSON + "\r\n")["language"] == "de"

    def test_no_opening_brace(self):
        with pytest.raises(MalformedResponseError, match="No JSON found"):
            parse_embedded_object("<html>Service Unavailable</html>")

    def test_no_closing_brace(self):
        with pytest.raises(MalformedResponseError, match="Unterminated"):
            parse_embedded_object('{"regions": [')

    def test_invalid_json_between_braces(self):
        with pytest.raises(MalformedResponseError, match="could not be decoded"):
            parse_embedded_object("{not json}")


class TestParseEmbeddedArray:

    def test_clean_payload(self):
        assert parse_embedded_array(TRANSLATION_JSON)[0]["translations"][0]["text"] == "Hello"

    def test_wrapper_text(self):
        """Text around the array is ignored."""
        wrapped = 'result: ' + TRANSLATION_JSON + ' -- end of response'
        assert parse_embedded_array(wrapped) == parse_embedded_array(TRANSLATION_JSON)

    def test_bytes_with_trailing_whitespace(self):
        assert parse_embedded_array(TRANSLATION_JSON.encode() + b"\n\n  ")[0]["translations"]

    def test_object_body_is_rejected(self):
        with pytest.raises(MalformedResponseError):
            parse_embedded_array('{"error": {"code": "401000"}}')


def test_closing_delimiter_before_opener_is_rejected():
    with pytest.raises(MalformedResponseError):
        parse_embedded_json("] junk [", "[", "]")
