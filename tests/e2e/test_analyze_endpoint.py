"""End-to-end tests for the analysis endpoint."""

import json
from unittest.mock import AsyncMock

import httpx

from src.main import app
from src.services.analysis_dispatcher import AnalysisDispatcher, get_analysis_dispatcher

SHOP_HTML = "<html><title>Shop</title><button type=submit>Buy</button></html>"
LOCAL_URL = "http://ollama.test/api/generate"
CHAT_URL = "https://chat.test/v1/chat/completions"
CONTENT_URL = "https://content.test/v1beta/models/gemini-2.5-flash-lite:generateContent"


def _records(response) -> list[dict]:
    return [json.loads(line) for line in response.text.splitlines()]


class TestAnalyzeStreaming:
    """Test successful analyses."""

    def test_local_provider_streams_delta_lines(self, test_client, respx_mock):
        """Test the worked example end to end."""
        respx_mock.post(LOCAL_URL).mock(
            return_value=httpx.Response(
                200,
                content=(
                    b'{"response": "## High\\n", "done": false}\n'
                    b'{"response": "- Issue: no labels", "done": false}\n'
                    b'{"response": "", "done": true}\n'
                ),
            )
        )

        response = test_client.post(
            "/api/analyze", json={"html": SHOP_HTML, "provider": "local"}
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert _records(response) == [
            {"delta": "## High\n"},
            {"delta": "- Issue: no labels"},
        ]
        prompt = json.loads(respx_mock.calls.last.request.content)["prompt"]
        assert 'primaryCtaGuess: "Buy"' in prompt

    def test_chat_provider_streams_delta_lines(self, test_client, respx_mock):
        events = [
            {"choices": [{"delta": {"content": "Add "}}]},
            {"choices": [{"delta": {"content": "labels."}}]},
        ]
        body = "".join(f"data: {json.dumps(e)}\n\n" for e in events) + "data: [DONE]\n\n"
        respx_mock.post(CHAT_URL).mock(
            return_value=httpx.Response(200, content=body.encode())
        )

        response = test_client.post(
            "/api/analyze",
            json={"html": SHOP_HTML, "provider": "openai", "key": "sk-test"},
        )

        assert response.status_code == 200
        assert _records(response) == [{"delta": "Add "}, {"delta": "labels."}]

    def test_content_provider_single_delta(self, test_client, respx_mock):
        """Test that a one-shot answer arrives as exactly one record."""
        respx_mock.post(CONTENT_URL).mock(
            return_value=httpx.Response(
                200,
                json={"candidates": [{"content": {"parts": [{"text": "Full audit"}]}}]},
            )
        )

        response = test_client.post(
            "/api/analyze",
            json={"html": SHOP_HTML, "provider": "content", "key": "g-test"},
        )

        assert response.status_code == 200
        assert _records(response) == [{"delta": "Full audit"}]

    def test_content_provider_empty_answer_is_one_record(self, test_client, respx_mock):
        """Test that an empty one-shot answer still yields exactly one record."""
        respx_mock.post(CONTENT_URL).mock(return_value=httpx.Response(200, content=b""))

        response = test_client.post(
            "/api/analyze",
            json={"html": SHOP_HTML, "provider": "content", "key": "g-test"},
        )

        assert response.status_code == 200
        assert _records(response) == [{"delta": "[empty text]"}]

    def test_url_is_fetched_when_no_html(self, test_client, respx_mock):
        respx_mock.get("https://shop.example/").mock(
            return_value=httpx.Response(
                200, text=SHOP_HTML, headers={"Content-Type": "text/html"}
            )
        )
        respx_mock.post(LOCAL_URL).mock(
            return_value=httpx.Response(200, content=b'{"response": "ok"}\n')
        )

        response = test_client.post(
            "/api/analyze", json={"url": "https://shop.example/", "provider": "local"}
        )

        assert response.status_code == 200
        assert _records(response) == [{"delta": "ok"}]

    def test_mid_stream_failure_ends_with_error_record(
        self, test_client, test_settings, make_delta_source
    ):
        """Test that a broken upstream still ends the response cleanly."""
        source = make_delta_source(["partial"], error=httpx.ReadError("reset"))
        dispatcher = AnalysisDispatcher(settings=test_settings)
        dispatcher.dispatch = AsyncMock(return_value=source)
        app.dependency_overrides[get_analysis_dispatcher] = lambda: dispatcher
        try:
            response = test_client.post(
                "/api/analyze", json={"html": SHOP_HTML, "provider": "local"}
            )
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 200
        assert _records(response) == [
            {"delta": "partial"},
            {"error": "Upstream stream interrupted: ReadError"},
        ]
        assert source.closed is True


class TestAnalyzeRejections:
    """Test requests rejected before any provider call."""

    def test_no_input_returns_400(self, test_client, respx_mock):
        response = test_client.post("/api/analyze", json={"provider": "local"})

        assert response.status_code == 400
        assert response.json() == {"error": "No URL/HTML provided."}
        assert respx_mock.calls.call_count == 0

    def test_unfetchable_url_returns_400(self, test_client, respx_mock):
        respx_mock.get("https://down.example/").mock(
            side_effect=httpx.ConnectError("refused")
        )

        response = test_client.post(
            "/api/analyze", json={"url": "https://down.example/", "provider": "local"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "No URL/HTML provided."}

    def test_unknown_provider_returns_400(self, test_client, respx_mock):
        response = test_client.post(
            "/api/analyze", json={"html": SHOP_HTML, "provider": "mystery"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Unknown provider"}

    def test_missing_key_returns_400_without_outbound_call(
        self, test_client, respx_mock
    ):
        response = test_client.post(
            "/api/analyze", json={"html": SHOP_HTML, "provider": "gemini"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Missing Google API key."}
        assert respx_mock.calls.call_count == 0

    def test_invalid_json_returns_400(self, test_client):
        response = test_client.post(
            "/api/analyze",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Request body must be a JSON object."}

    def test_non_object_body_returns_400(self, test_client):
        response = test_client.post("/api/analyze", json=["html"])

        assert response.status_code == 400


class TestAnalyzeProviderFailures:
    """Test provider failures before the answer starts."""

    def test_upstream_error_forwarded_verbatim(self, test_client, respx_mock):
        """Test that status and body pass through unchanged."""
        body = b'{"error": {"code": 403, "message": "API key not valid."}}'
        respx_mock.post(CONTENT_URL).mock(return_value=httpx.Response(403, content=body))

        response = test_client.post(
            "/api/analyze",
            json={"html": SHOP_HTML, "provider": "content", "key": "bad-key"},
        )

        assert response.status_code == 403
        assert response.content == body

    def test_streaming_provider_error_forwarded(self, test_client, respx_mock):
        respx_mock.post(LOCAL_URL).mock(
            return_value=httpx.Response(404, content=b'{"error":"model not found"}')
        )

        response = test_client.post(
            "/api/analyze", json={"html": SHOP_HTML, "provider": "local"}
        )

        assert response.status_code == 404
        assert response.content == b'{"error":"model not found"}'

    def test_unreachable_provider_returns_502(self, test_client, respx_mock):
        respx_mock.post(LOCAL_URL).mock(side_effect=httpx.ConnectError("refused"))

        response = test_client.post(
            "/api/analyze", json={"html": SHOP_HTML, "provider": "local"}
        )

        assert response.status_code == 502
        assert "error" in response.json()
