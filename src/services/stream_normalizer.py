"""Re-framing of upstream model streams into newline-delimited delta records.

Upstream providers speak different framings (one JSON object per line,
or Server-Sent-Events blocks). This module turns any of them into the
single outbound protocol: one ``{"delta": ...}`` JSON object per line.

The pipeline has two halves:
- ``iter_frame_deltas`` decodes bytes incrementally, splits frames with a
  framer, parses each frame in isolation and yields text fragments
- ``stream_delta_records`` runs a producer task that reads fragments from
  a ``DeltaSource`` into a bounded queue, and yields encoded records to
  the HTTP response. A full queue suspends the producer, so a slow client
  throttles upstream reads; closing the consumer cancels the producer and
  releases the upstream connection.
"""

from __future__ import annotations

import asyncio
import codecs
import json
import time
from contextlib import aclosing
from typing import Any, AsyncGenerator, AsyncIterable, AsyncIterator, Callable, Protocol

import logfire

from src.models.analysis_models import DeltaRecord, ErrorRecord

FragmentExtractor = Callable[[Any], str | None]


class DeltaSource(Protocol):
    """An opened upstream answer that yields text fragments in order."""

    def deltas(self) -> AsyncGenerator[str, None]:
        """Iterate text fragments in emission order."""
        ...

    async def aclose(self) -> None:
        """Release the upstream connection. Safe to call more than once."""
        ...


class Framer(Protocol):
    """Splits decoded upstream text into complete frames."""

    def feed(self, text: str) -> list[str]:
        """Add text and return every frame it completed."""
        ...

    def flush(self) -> list[str]:
        """Return whatever remains buffered at end of stream."""
        ...


class LineFramer:
    """One frame per non-blank line. Partial lines wait for the next read."""

    def __init__(self) -> None:
        self._buffer = ""

    def feed(self, text: str) -> list[str]:
        self._buffer += text
        *lines, self._buffer = self._buffer.split("\n")
        return [line.rstrip("\r") for line in lines if line.strip()]

    def flush(self) -> list[str]:
        tail, self._buffer = self._buffer, ""
        return [tail.rstrip("\r")] if tail.strip() else []


class SSEFramer:
    """Server-Sent-Events framing.

    Events are separated by a blank line. Each event's ``data:`` lines are
    joined with newlines to form the frame payload; comments and other
    fields are ignored, and events without data produce no frame.
    """

    def __init__(self) -> None:
        self._buffer = ""

    def feed(self, text: str) -> list[str]:
        buffered = self._buffer + text
        # A trailing \r may be the first half of a \r\n split across reads
        held = "\r" if buffered.endswith("\r") else ""
        if held:
            buffered = buffered[:-1]
        *events, tail = self._normalize(buffered).split("\n\n")
        self._buffer = tail + held
        return [payload for payload in map(self._event_data, events) if payload is not None]

    def flush(self) -> list[str]:
        tail, self._buffer = self._buffer, ""
        payload = self._event_data(self._normalize(tail))
        return [payload] if payload is not None else []

    @staticmethod
    def _normalize(text: str) -> str:
        """Map CRLF and lone CR line endings to LF."""
        return text.replace("\r\n", "\n").replace("\r", "\n")

    @staticmethod
    def _event_data(event: str) -> str | None:
        data_lines = []
        for line in event.split("\n"):
            if not line.startswith("data:"):
                continue
            value = line[len("data:"):]
            data_lines.append(value[1:] if value.startswith(" ") else value)
        if not data_lines:
            return None
        return "\n".join(data_lines)


def _parse_frame(
    frame: str,
    extract: FragmentExtractor,
    skip_frames: frozenset[str],
    source: str,
) -> str | None:
    """Parse one frame; unparseable frames are dropped, never raised."""
    stripped = frame.strip()
    if not stripped or stripped in skip_frames:
        return None
    try:
        payload = json.loads(stripped)
    except json.JSONDecodeError as e:
        logfire.debug(
            "Dropped unparseable upstream frame",
            source=source,
            error=str(e),
            frame_preview=stripped[:200],
        )
        return None
    return extract(payload) or None


async def iter_frame_deltas(
    chunks: AsyncIterable[bytes],
    framer: Framer,
    extract: FragmentExtractor,
    *,
    skip_frames: frozenset[str] = frozenset(),
    source: str = "upstream",
) -> AsyncIterator[str]:
    """
    Turn a raw upstream byte stream into text fragments.

    Multi-byte UTF-8 sequences split across reads are held back until
    complete. Each frame is parsed on its own, so a malformed frame only
    loses itself.

    Args:
        chunks: Raw upstream bytes in arrival order
        framer: Framing rules of the upstream protocol
        extract: Pulls the text fragment out of a parsed frame (None to skip)
        skip_frames: Literal frames that are control markers, not data
        source: Provider name for log context

    Yields:
        Non-empty text fragments in upstream order
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    async for chunk in chunks:
        for frame in framer.feed(decoder.decode(chunk)):
            fragment = _parse_frame(frame, extract, skip_frames, source)
            if fragment:
                yield fragment

    remaining = framer.feed(decoder.decode(b"", final=True)) + framer.flush()
    for frame in remaining:
        fragment = _parse_frame(frame, extract, skip_frames, source)
        if fragment:
            yield fragment


def encode_delta(text: str) -> bytes:
    """Encode one fragment as a newline-terminated delta record."""
    return (DeltaRecord(delta=text).model_dump_json() + "\n").encode("utf-8")


def encode_error(message: str) -> bytes:
    """Encode a newline-terminated error record."""
    return (ErrorRecord(error=message).model_dump_json() + "\n").encode("utf-8")


# Marks the end of the queue; never sent to the client
_END_OF_STREAM = object()


async def _produce_records(
    source: DeltaSource,
    queue: asyncio.Queue,
    source_name: str,
) -> None:
    """Read fragments from source into queue, then close the source."""
    start_time = time.time()
    delta_count = 0
    try:
        async with aclosing(source.deltas()) as fragments:
            async for fragment in fragments:
                await queue.put(encode_delta(fragment))
                delta_count += 1
    except Exception as e:
        logfire.error(
            "Upstream stream interrupted",
            source=source_name,
            delta_count=delta_count,
            error=str(e),
            error_type=type(e).__name__,
        )
        await queue.put(encode_error(f"Upstream stream interrupted: {type(e).__name__}"))
    finally:
        await source.aclose()

    logfire.info(
        "Delta stream drained",
        source=source_name,
        delta_count=delta_count,
        response_time_ms=(time.time() - start_time) * 1000,
    )
    await queue.put(_END_OF_STREAM)


async def stream_delta_records(
    source: DeltaSource,
    queue_size: int,
    source_name: str = "upstream",
) -> AsyncIterator[bytes]:
    """
    Outbound response body for an opened upstream.

    Args:
        source: Opened upstream answer; owned and closed by this stream
        queue_size: Max encoded records buffered ahead of the client
        source_name: Provider name for log context

    Yields:
        Encoded delta records, ending once the upstream is drained
    """
    queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
    producer = asyncio.create_task(_produce_records(source, queue, source_name))
    try:
        while True:
            record = await queue.get()
            if record is _END_OF_STREAM:
                break
            yield record
    finally:
        if not producer.done():
            logfire.info("Client stopped reading, cancelling upstream", source=source_name)
            producer.cancel()
        await asyncio.gather(producer, return_exceptions=True)
