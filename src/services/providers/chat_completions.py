"""Chat-completions API adapter (Server-Sent-Events stream)."""

from typing import Any

import logfire

from src.constants import SSE_DONE_SENTINEL
from src.logging_config import mask_pii
from src.models.analysis_models import ChatProviderConfig
from src.services.providers.base import HttpDeltaStream, open_streaming_response
from src.services.stream_normalizer import SSEFramer


def extract_chat_fragment(frame: Any) -> str | None:
    """Text fragment of one completion chunk: ``choices[0].delta.content``."""
    if not isinstance(frame, dict):
        return None
    choices = frame.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


class ChatCompletionsProvider:
    """Streams answers from a chat-completions endpoint.

    Frames are SSE events whose ``data:`` payload is a JSON chunk; a
    ``[DONE]`` payload marks the normal end of the answer.
    """

    name = "chat"

    def __init__(self, config: ChatProviderConfig, timeout_seconds: float):
        if not config.api_key:
            raise ValueError("api_key is required")
        self._api_key = config.api_key
        self.base_url = config.base_url.rstrip("/")
        self.model = config.model
        self.timeout_seconds = timeout_seconds

    async def open(self, prompt: str) -> HttpDeltaStream:
        logfire.info(
            "Opening chat-completions stream",
            model=self.model,
            api_key=mask_pii(self._api_key),
            prompt_length=len(prompt),
        )
        client, response = await open_streaming_response(
            self.name,
            f"{self.base_url}/chat/completions",
            {
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "stream": True,
            },
            timeout_seconds=self.timeout_seconds,
            headers={"Authorization": f"Bearer {self._api_key}"},
        )
        return HttpDeltaStream(
            client,
            response,
            SSEFramer,
            extract_chat_fragment,
            provider=self.name,
            skip_frames=frozenset({SSE_DONE_SENTINEL}),
        )
