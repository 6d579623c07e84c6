"""Local generate-style API adapter (newline-delimited JSON stream)."""

import re
from typing import Any

import logfire

from src.constants import FOREIGN_MODEL_PATTERN
from src.models.analysis_models import LocalProviderConfig
from src.services.providers.base import HttpDeltaStream, open_streaming_response
from src.services.stream_normalizer import LineFramer

_FOREIGN_MODEL = re.compile(FOREIGN_MODEL_PATTERN, re.IGNORECASE)


def resolve_local_model(model: str, default_model: str) -> str:
    """Replace a hosted-provider model name with the local default.

    >>> resolve_local_model("gpt-4o", "deepseek-r1:14b")
    'deepseek-r1:14b'
    >>> resolve_local_model("llama3", "deepseek-r1:14b")
    'llama3'
    """
    if not model or _FOREIGN_MODEL.search(model):
        return default_model
    return model


def extract_generate_fragment(frame: Any) -> str | None:
    """Text fragment of one generate frame: its ``response`` field."""
    if not isinstance(frame, dict):
        return None
    fragment = frame.get("response")
    return fragment if isinstance(fragment, str) else None


class LocalGenerateProvider:
    """Streams answers from a local generate endpoint.

    The upstream emits one JSON object per line; each may carry a
    ``response`` text fragment.
    """

    name = "local"

    def __init__(self, config: LocalProviderConfig, timeout_seconds: float):
        self.base_url = config.base_url.rstrip("/")
        self.model = resolve_local_model(config.model, config.default_model)
        self.timeout_seconds = timeout_seconds
        if self.model != config.model:
            logfire.info(
                "Replaced non-local model name with local default",
                requested_model=config.model,
                model=self.model,
            )

    async def open(self, prompt: str) -> HttpDeltaStream:
        client, response = await open_streaming_response(
            self.name,
            f"{self.base_url}/api/generate",
            {"model": self.model, "prompt": prompt, "stream": True},
            timeout_seconds=self.timeout_seconds,
        )
        return HttpDeltaStream(
            client,
            response,
            LineFramer,
            extract_generate_fragment,
            provider=self.name,
        )
