"""
Cloud Relay — Azure Computer Vision OCR Client
================================================

What:  Submits image bytes to the Vision v3.2 OCR endpoint and turns the
       recognised regions into one text blob.
How:   A thin wrapper over a shared httpx.AsyncClient. The response body is
       parsed from its first '{' onward, because the provider has been seen
       to prefix the JSON with a BOM or stray bytes.

OCR payload shape (abridged):
    {"language": "de", "orientation": "Up",
     "regions": [{"lines": [{"words": [{"text": "Hallo"}, {"text": "Welt"}]}]}]}
"""

import logging
from typing import Any, Dict

import httpx

from cloudrelay.exceptions import MalformedResponseError, PipelineError
from cloudrelay.parsing import parse_embedded_object

logger = logging.getLogger(__name__)

OCR_PATH = "/vision/v3.2/ocr"
OCR_PARAMS = {"language": "unk", "detectOrientation": "true"}


def extract_text(payload: Dict[str, Any]) -> str:
    """
    Concatenate recognised words: space-separated within a line, lines
    space-separated across all regions, trimmed.

    Raises:
        MalformedResponseError: `regions` is missing or not a list, or a
            region/line/word is not shaped as expected.
    """
    regions = payload.get("regions") if isinstance(payload, dict) else None
    if not isinstance(regions, list):
        raise MalformedResponseError(message="Invalid response from Vision API.", stage="ocr")

    lines = []
    try:
        for region in regions:
            for line in region.get("lines", []):
                lines.append(" ".join(word["text"] for word in line.get("words", [])))
    except (AttributeError, KeyError, TypeError) as e:
        raise MalformedResponseError(
            message=f"Unexpected OCR region structure: {e}", stage="ocr"
        ) from e

    return " ".join(lines).strip()


class VisionOcrClient:
    """OCR calls against one Azure Computer Vision resource."""

    def __init__(self, http_client: httpx.AsyncClient, endpoint: str, key: str):
        self.http_client = http_client
        self.endpoint = endpoint
        self.key = key

    async def recognize(self, image: bytes) -> Dict[str, Any]:
        """
        Run OCR over `image`.

        Returns:
            The decoded OCR payload, guaranteed to expose a `regions` list.

        Raises:
            PipelineError: not configured, transport failure or non-2xx status.
            MalformedResponseError: body is not the expected JSON object.
        """
        if not self.endpoint or not self.key:
            raise PipelineError(message="Vision endpoint or key is not configured", stage="ocr")

        try:
            response = await self.http_client.post(
                f"{self.endpoint}{OCR_PATH}",
                params=OCR_PARAMS,
                content=image,
                headers={
                    "Ocp-Apim-Subscription-Key": self.key,
                    "Content-Type": "application/octet-stream",
                },
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PipelineError(
                message=f"Vision API returned HTTP {e.response.status_code}",
                stage="ocr",
                code=e.response.status_code,
                context={"body": e.response.text[:500]},
            ) from e
        except httpx.HTTPError as e:
            raise PipelineError(
                message=f"Vision API request failed: {e}", stage="ocr"
            ) from e

        payload = parse_embedded_object(response.content)
        if not isinstance(payload, dict) or not isinstance(payload.get("regions"), list):
            raise MalformedResponseError(message="Invalid response from Vision API.", stage="ocr")

        logger.info(
            "OCR returned %d region(s), language=%s",
            len(payload["regions"]),
            payload.get("language", "unknown"),
        )
        return payload
