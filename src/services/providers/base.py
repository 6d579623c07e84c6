"""Shared plumbing for model provider adapters.

Each adapter turns a prompt into an opened ``DeltaSource``. Incremental
adapters return an ``HttpDeltaStream`` over a live upstream response;
one-shot adapters return a ``SingleDeltaStream`` holding the whole answer.
Failures before the answer starts are raised as ``ProviderError``s so the
route can shape the HTTP response.
"""

from __future__ import annotations

import time
from typing import Any, AsyncGenerator, Callable, Protocol

import httpx
import logfire

from src.services.stream_normalizer import (
    DeltaSource,
    Framer,
    FragmentExtractor,
    iter_frame_deltas,
)


class ProviderError(Exception):
    """Base exception for model provider failures."""

    pass


class UpstreamError(ProviderError):
    """Provider answered with a non-success status.

    Carries the upstream status and raw body so they can be forwarded
    verbatim.
    """

    def __init__(self, provider: str, status_code: int, body: bytes):
        super().__init__(f"{provider} provider returned HTTP {status_code}")
        self.provider = provider
        self.status_code = status_code
        self.body = body


class ProviderUnavailableError(ProviderError):
    """Provider could not be reached (connect, timeout or protocol failure)."""

    pass


class ModelProvider(Protocol):
    """A model backend that answers a prompt as a stream of text fragments."""

    name: str

    async def open(self, prompt: str) -> DeltaSource:
        """Send the prompt and return the opened answer stream."""
        ...


class HttpDeltaStream:
    """Live upstream HTTP response re-framed into text fragments."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        response: httpx.Response,
        framer_factory: Callable[[], Framer],
        extract: FragmentExtractor,
        *,
        provider: str,
        skip_frames: frozenset[str] = frozenset(),
    ):
        self._client = client
        self._response = response
        self._framer_factory = framer_factory
        self._extract = extract
        self._skip_frames = skip_frames
        self.provider = provider

    async def deltas(self) -> AsyncGenerator[str, None]:
        async for fragment in iter_frame_deltas(
            self._response.aiter_bytes(),
            self._framer_factory(),
            self._extract,
            skip_frames=self._skip_frames,
            source=self.provider,
        ):
            yield fragment

    async def aclose(self) -> None:
        await self._response.aclose()
        await self._client.aclose()


class SingleDeltaStream:
    """A complete answer exposed as a stream of exactly one fragment.

    The fragment is yielded even when empty, so the outbound stream always
    carries one record.
    """

    def __init__(self, text: str, *, provider: str):
        self.text = text
        self.provider = provider
        self.closed = False

    async def deltas(self) -> AsyncGenerator[str, None]:
        yield self.text

    async def aclose(self) -> None:
        self.closed = True


def upstream_error(provider: str, status_code: int, body: bytes, elapsed: float) -> UpstreamError:
    """Log a non-success upstream answer and build the error to raise."""
    logfire.error(
        "Model provider returned error status",
        provider=provider,
        status_code=status_code,
        response_body=body[:500].decode("utf-8", errors="replace"),
        response_time_ms=elapsed * 1000,
    )
    return UpstreamError(provider, status_code, body)


def unavailable_error(provider: str, error: Exception, elapsed: float) -> ProviderUnavailableError:
    """Log a transport failure and build the error to raise."""
    logfire.error(
        "Model provider request failed",
        provider=provider,
        error=str(error),
        error_type=type(error).__name__,
        response_time_ms=elapsed * 1000,
    )
    return ProviderUnavailableError(
        f"Could not reach {provider} provider: {type(error).__name__}"
    )


async def open_streaming_response(
    provider: str,
    url: str,
    payload: dict[str, Any],
    *,
    timeout_seconds: float,
    headers: dict[str, str] | None = None,
) -> tuple[httpx.AsyncClient, httpx.Response]:
    """
    POST payload and return the response with its body still unread.

    The caller owns both the client and the response on success. On a
    non-success status the full body is read and ``UpstreamError`` raised;
    on transport failure ``ProviderUnavailableError`` is raised. Both
    failure paths close everything they opened.
    """
    start_time = time.time()
    client = httpx.AsyncClient(timeout=timeout_seconds)
    try:
        request = client.build_request("POST", url, json=payload, headers=headers)
        response = await client.send(request, stream=True)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        await client.aclose()
        raise unavailable_error(provider, e, time.time() - start_time) from e

    if response.is_success:
        logfire.info(
            "Model provider stream opened",
            provider=provider,
            status_code=response.status_code,
            response_time_ms=(time.time() - start_time) * 1000,
        )
        return client, response

    try:
        body = await response.aread()
    except httpx.HTTPError as e:
        raise unavailable_error(provider, e, time.time() - start_time) from e
    finally:
        await response.aclose()
        await client.aclose()
    raise upstream_error(provider, response.status_code, body, time.time() - start_time)
