"""Content-generation API adapter (one-shot JSON answer)."""

import json
import time

import httpx
import logfire

from src.constants import EMPTY_ANSWER_PLACEHOLDER
from src.logging_config import mask_pii
from src.models.analysis_models import ContentProviderConfig
from src.services.providers.base import (
    SingleDeltaStream,
    unavailable_error,
    upstream_error,
)


def extract_candidate_text(body: bytes) -> str:
    """
    Concatenate the ``text`` of every part of the first candidate.

    Returns '' when the body is not JSON or has no such parts.
    """
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return ""
    if not isinstance(data, dict):
        return ""
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    first = candidates[0]
    content = first.get("content") if isinstance(first, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    return "".join(
        part["text"]
        for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    )


class ContentGenerationProvider:
    """Answers with a single non-streamed content-generation call.

    The whole answer becomes one delta. When the text cannot be extracted
    the raw response body is used instead, and an empty body becomes a
    fixed placeholder.
    """

    name = "content"

    def __init__(self, config: ContentProviderConfig, timeout_seconds: float):
        if not config.api_key:
            raise ValueError("api_key is required")
        self._api_key = config.api_key
        self.base_url = config.base_url.rstrip("/")
        self.model = config.model
        self.timeout_seconds = timeout_seconds

    async def open(self, prompt: str) -> SingleDeltaStream:
        start_time = time.time()
        logfire.info(
            "Requesting content generation",
            model=self.model,
            api_key=mask_pii(self._api_key),
            prompt_length=len(prompt),
        )
        url = f"{self.base_url}/models/{self.model}:generateContent"
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(
                    url,
                    params={"key": self._api_key},
                    json={"contents": [{"parts": [{"text": prompt}]}]},
                )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise unavailable_error(self.name, e, time.time() - start_time) from e

        elapsed = time.time() - start_time
        body = response.content
        if not response.is_success:
            raise upstream_error(self.name, response.status_code, body, elapsed)

        text = extract_candidate_text(body)
        if not text:
            logfire.warn(
                "No candidate text in content-generation answer, using raw body",
                model=self.model,
                response_length=len(body),
            )
            text = response.text or EMPTY_ANSWER_PLACEHOLDER

        logfire.info(
            "Content generation completed",
            model=self.model,
            status_code=response.status_code,
            response_length=len(text),
            response_time_ms=elapsed * 1000,
        )
        return SingleDeltaStream(text, provider=self.name)
