import json

import httpx
import pytest

from app.core.exceptions import AnalysisError
from app.services.reasoning_client import AnthropicReasoningClient


def _client(handler, api_key="test-key") -> AnthropicReasoningClient:
    return AnthropicReasoningClient(
        api_key=api_key,
        model="claude-test",
        base_url="https://reasoning.test",
        max_tokens=512,
        temperature=0.1,
        timeout=5,
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def _message(*texts, stop_reason="end_turn"):
    return {
        "id": "msg_1",
        "type": "message",
        "role": "assistant",
        "model": "claude-test",
        "content": [{"type": "text", "text": t} for t in texts],
        "stop_reason": stop_reason,
        "stop_sequence": None,
        "usage": {"input_tokens": 10, "output_tokens": 5},
    }


class TestAnthropicReasoningClient:
    @pytest.mark.asyncio
    async def test_sends_messages_request_and_joins_text(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_message('{"summary": ', '"ok"}'))

        text = await _client(handler).complete("system prompt", "user prompt")

        assert text == '{"summary": "ok"}'
        assert seen["url"] == "https://reasoning.test/v1/messages"
        assert seen["headers"]["x-api-key"] == "test-key"
        assert seen["headers"]["anthropic-version"]
        assert seen["body"]["model"] == "claude-test"
        assert seen["body"]["max_tokens"] == 512
        assert seen["body"]["system"] == "system prompt"
        assert seen["body"]["messages"] == [{"role": "user", "content": "user prompt"}]

    @pytest.mark.asyncio
    async def test_missing_api_key_fails_without_calling_out(self):
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(AnalysisError, match="not configured"):
            await _client(handler, api_key="").complete("s", "p")

    @pytest.mark.asyncio
    async def test_error_status_becomes_analysis_error(self):
        def handler(request):
            return httpx.Response(529, json={"error": {"type": "overloaded_error"}})

        with pytest.raises(AnalysisError, match="529"):
            await _client(handler).complete("s", "p")

    @pytest.mark.asyncio
    async def test_timeout_becomes_analysis_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(AnalysisError, match="timed out"):
            await _client(handler).complete("s", "p")

    @pytest.mark.asyncio
    async def test_connection_failure_becomes_analysis_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(AnalysisError, match="unavailable"):
            await _client(handler).complete("s", "p")

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        def handler(request):
            return httpx.Response(200, text="<html>gateway</html>")

        with pytest.raises(AnalysisError):
            await _client(handler).complete("s", "p")

    @pytest.mark.asyncio
    async def test_empty_text_content(self):
        def handler(request):
            return httpx.Response(200, json=_message("   "))

        with pytest.raises(AnalysisError, match="empty"):
            await _client(handler).complete("s", "p")

    @pytest.mark.asyncio
    async def test_truncated_response_is_still_returned(self):
        def handler(request):
            return httpx.Response(200, json=_message('{"summary"', stop_reason="max_tokens"))

        assert await _client(handler).complete("s", "p") == '{"summary"'
