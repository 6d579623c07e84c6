"""Shared pytest fixtures and configuration.

Fixture Categories:
1. Infrastructure: respx_mock, mock_settings, mock_logfire, logfire_capture
2. Sample Data: sample_html, sample_request
3. Test Doubles: FakeDeltaSource, make_delta_source
4. Application: test_client
"""

import asyncio
import os
from unittest.mock import Mock, patch

import pytest

try:
    import respx
except ImportError:
    respx = None

try:
    import logfire
except ImportError:
    logfire = None

# Suppress "not configured" warnings; tests never send telemetry
os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

from src.config import Settings
from src.models.analysis_models import AnalysisRequest

TEST_LOCAL_BASE_URL = "http://ollama.test"
TEST_CHAT_BASE_URL = "https://chat.test/v1"
TEST_CONTENT_BASE_URL = "https://content.test/v1beta"


# =============================================================================
# Test Doubles
# =============================================================================


class FakeDeltaSource:
    """In-memory DeltaSource that records reads and closing.

    Args:
        fragments: Fragments to yield in order
        endless: Keep yielding numbered fragments forever
        error: Exception raised after all fragments are yielded
    """

    def __init__(
        self,
        fragments: list[str] | None = None,
        endless: bool = False,
        error: Exception | None = None,
    ):
        self.fragments = fragments or []
        self.endless = endless
        self.error = error
        self.reads = 0
        self.closed = False

    async def deltas(self):
        index = 0
        while self.endless or index < len(self.fragments):
            await asyncio.sleep(0)
            self.reads += 1
            yield self.fragments[index] if not self.endless else f"chunk-{index} "
            index += 1
        if self.error is not None:
            raise self.error

    async def aclose(self) -> None:
        self.closed = True


# =============================================================================
# Infrastructure
# =============================================================================


@pytest.fixture
def respx_mock():
    """Respx mock fixture for HTTP mocking."""
    if respx is None:
        pytest.skip("respx not available")
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture
def test_settings():
    """Settings with test endpoints and no credentials, ignoring .env files."""
    return Settings(
        _env_file=None,
        env="local",
        logfire_token=None,
        sentry_dsn=None,
        google_api_key=None,
        openai_api_key=None,
        local_model="deepseek-r1:14b",
        chat_model="gpt-4o-mini",
        content_model="gemini-2.5-flash-lite",
        local_base_url=TEST_LOCAL_BASE_URL,
        chat_base_url=TEST_CHAT_BASE_URL,
        content_base_url=TEST_CONTENT_BASE_URL,
        page_fetch_timeout_seconds=5.0,
        provider_timeout_seconds=5.0,
        stream_queue_size=4,
    )


@pytest.fixture
def mock_settings(monkeypatch, test_settings):
    """Patch get_settings everywhere it is imported."""
    get = lambda: test_settings  # noqa: E731
    monkeypatch.setattr("src.config.get_settings", get)
    monkeypatch.setattr("src.main.get_settings", get)
    monkeypatch.setattr("src.logging_config.get_settings", get)
    monkeypatch.setattr("src.services.page_fetcher.get_settings", get)
    monkeypatch.setattr("src.services.analysis_dispatcher.get_settings", get)
    return test_settings


@pytest.fixture
def mock_logfire(monkeypatch):
    """
    Replace Logfire calls with mocks.

    Patches attributes on the logfire module itself, so every module that
    did ``import logfire`` sees the mocks.
    """
    from contextlib import contextmanager

    if logfire is None:
        pytest.skip("logfire not available")

    @contextmanager
    def mock_span(*args, **kwargs):
        yield Mock()

    mocks = {
        "debug": Mock(),
        "info": Mock(),
        "warn": Mock(),
        "error": Mock(),
        "span": mock_span,
        "configure": Mock(),
        "instrument_fastapi": Mock(),
        "instrument_pydantic": Mock(),
    }
    for name, value in mocks.items():
        monkeypatch.setattr(logfire, name, value)
    return mocks


@pytest.fixture
def logfire_capture():
    """
    Capture Logfire logs for testing.

    Yields a list of (level, args, kwargs) tuples.
    """
    if logfire is None:
        pytest.skip("logfire not available")

    captured_logs = []

    def _capture(level):
        def capture(*args, **kwargs):
            captured_logs.append((level, args, kwargs))

        return capture

    with (
        patch("logfire.debug", side_effect=_capture("debug")),
        patch("logfire.info", side_effect=_capture("info")),
        patch("logfire.warn", side_effect=_capture("warn")),
        patch("logfire.error", side_effect=_capture("error")),
    ):
        yield captured_logs


# =============================================================================
# Sample Data
# =============================================================================


@pytest.fixture
def sample_html():
    """Small checkout page exercising every signal."""
    return """
    <html>
      <head>
        <title>  Checkout  </title>
        <meta name="viewport" content="width=device-width, initial-scale=1">
      </head>
      <body>
        <ol><li class="step" aria-current="step">Details</li><li class="step">Pay</li></ol>
        <form>
          <label for="email">Email</label>
          <input id="email" type="email" aria-invalid="true">
          <span class="error-message">Enter a valid email</span>
          <select name="country"></select>
          <textarea name="notes"></textarea>
          <button type="submit">Place order</button>
        </form>
        <a class="btn" href="/help">Help</a>
      </body>
    </html>
    """


@pytest.fixture
def sample_request():
    """Minimal local-provider request from the worked example."""
    return AnalysisRequest(
        html="<html><title>Shop</title><button type=submit>Buy</button></html>",
        provider="local",
    )


# =============================================================================
# Application
# =============================================================================


@pytest.fixture
def test_client(mock_settings, mock_logfire):
    """FastAPI TestClient for E2E tests (lifespan not run)."""
    from fastapi.testclient import TestClient

    from src.main import app

    return TestClient(app)


@pytest.fixture
def make_delta_source():
    """Factory for FakeDeltaSource instances."""
    return FakeDeltaSource
