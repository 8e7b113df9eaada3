"""
Cloud Relay — Tolerant JSON Extraction
========================================

What:  Parses a JSON document embedded in a provider body that may carry
       junk around it (a byte-order mark, a stray prefix, wrapper text).
How:   Slice from the first opening delimiter to the last matching closing
       delimiter, then hand the slice to the strict `json` parser.
Who:   The OCR client (objects) and the translator client (arrays).
"""

import json
from typing import Any, Union

from cloudrelay.exceptions import MalformedResponseError

RawBody = Union[str, bytes, bytearray]


def _as_text(raw: RawBody) -> str:
    if isinstance(raw, (bytes, bytearray)):
        # utf-8-sig drops a leading BOM; undecodable bytes are junk anyway
        return bytes(raw).decode("utf-8-sig", errors="replace")
    return raw


def parse_embedded_json(raw: RawBody, opener: str, closer: str) -> Any:
    """
    Parse the JSON value delimited by `opener` ... `closer` inside `raw`.

    Args:
        raw:     Provider response body (text or bytes).
        opener:  "{" or "[".
        closer:  "}" or "]".

    Returns:
        The decoded JSON value.

    Raises:
        MalformedResponseError: no delimiters found, or the slice is not JSON.
    """
    text = _as_text(raw)

    start = text.find(opener)
    if start == -1:
        raise MalformedResponseError(
            message=f"No JSON found in the response (missing '{opener}')",
            context={"body_preview": text[:120]},
        )

    end = text.rfind(closer)
    if end < start:
        raise MalformedResponseError(
            message=f"Unterminated JSON in the response (missing '{closer}')",
            context={"body_preview": text[:120]},
        )

    try:
        return json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise MalformedResponseError(
            message=f"Response JSON could not be decoded: {e.msg}",
            context={"position": e.pos, "body_preview": text[:120]},
        ) from e


def parse_embedded_object(raw: RawBody) -> Any:
    """Parse the `{...}` document embedded in `raw`."""
    return parse_embedded_json(raw, "{", "}")


def parse_embedded_array(raw: RawBody) -> Any:
    """Parse the `[...]` document embedded in `raw`."""
    return parse_embedded_json(raw, "[", "]")
