"""
Cloud Relay — Azure Translator Client
=======================================

What:  Translates extracted text through Translator v3.0.
How:   POSTs [{"text": ...}] to /translate and reads the first translation.
       The body is parsed between its first '[' and last ']', tolerating
       wrapper text around the array.

Translator payload shape:
    [{"detectedLanguage": {"language": "de", "score": 1.0},
      "translations": [{"text": "Hello world", "to": "en"}]}]
"""

import logging
from typing import Any

import httpx

from cloudrelay.exceptions import MalformedResponseError, PipelineError
from cloudrelay.parsing import parse_embedded_array

logger = logging.getLogger(__name__)

TRANSLATE_PATH = "/translate"
API_VERSION = "3.0"


def first_translation_text(data: Any) -> str:
    """
    Return data[0]["translations"][0]["text"].

    Raises:
        MalformedResponseError: any level of that path is missing or empty.
    """
    if not isinstance(data, list) or not data:
        raise MalformedResponseError(
            message="Invalid or empty response from Azure Translator API.",
            stage="translate",
        )

    first = data[0]
    translations = first.get("translations") if isinstance(first, dict) else None
    entry = translations[0] if isinstance(translations, list) and translations else None
    text = entry.get("text") if isinstance(entry, dict) else None
    if not text or not isinstance(text, str):
        raise MalformedResponseError(
            message="Translation response does not contain text.",
            stage="translate",
        )
    return text


class TranslatorClient:
    """Text translation against one Azure Translator resource."""

    def __init__(self, http_client: httpx.AsyncClient, endpoint: str, key: str, region: str):
        self.http_client = http_client
        self.endpoint = endpoint
        self.key = key
        self.region = region

    async def translate(self, text: str, to: str) -> str:
        """
        Translate `text` into language `to`.

        Raises:
            PipelineError: not configured, transport failure or non-2xx status.
            MalformedResponseError: body is not a usable translation array.
        """
        if not self.endpoint or not self.key:
            raise PipelineError(message="Translator endpoint or key is not configured", stage="translate")

        try:
            response = await self.http_client.post(
                f"{self.endpoint}{TRANSLATE_PATH}",
                params={"api-version": API_VERSION, "to": to},
                json=[{"text": text}],
                headers={
                    "Ocp-Apim-Subscription-Key": self.key,
                    "Ocp-Apim-Subscription-Region": self.region,
                },
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PipelineError(
                message=f"Translator API returned HTTP {e.response.status_code}",
                stage="translate",
                code=e.response.status_code,
                context={"body": e.response.text[:500]},
            ) from e
        except httpx.HTTPError as e:
            raise PipelineError(
                message=f"Translator API request failed: {e}", stage="translate"
            ) from e

        translated = first_translation_text(parse_embedded_array(response.content))
        logger.info("Translated %d chars into %d chars (to=%s)", len(text), len(translated), to)
        return translated
