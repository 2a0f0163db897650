"""Tests for the upstream HTTP clients using httpx.MockTransport.

Tests cover:
- Request shape per provider (path, auth headers, body)
- Response decoding (Anthropic tool_use/text, DeepSeek JSON content)
- HTTP error classification (status code first, body markers for other 4xx)
- Timeouts, connection failures and non-JSON bodies
- Bocha in-body error codes
- Exa query augmentation and JSON extraction from model text
"""

import json

import httpx
import pytest

from hallucination_detector.upstream import (
    AnthropicClient,
    BochaClient,
    DeepSeekClient,
    ExaClient,
    build_search_query,
    extract_json_from_text,
)
from hallucination_detector.verification.errors import (
    AuthError,
    QuotaExceeded,
    RateLimited,
    UpstreamError,
    UpstreamTimeout,
    classify_status,
)
from hallucination_detector.verification.schemas import Evidence


# ── Helpers ──────────────────────────────────────────────────────────────


class CapturingHandler:
    """MockTransport handler returning a fixed response and keeping requests."""

    def __init__(self, status_code: int = 200, body=None, text: str | None = None) -> None:
        self.status_code = status_code
        self.body = body
        self.text = text
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


def _http(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


EVIDENCE = [Evidence(url="https://example.com", title="Example", text="Example body")]


# ── Anthropic ─────────────────────────────────────────────────────────────


class TestAnthropicClient:
    @pytest.mark.asyncio
    async def test_extract_claims_returns_tool_input(self) -> None:
        tool_input = {"claims": [{"claim": "A", "original_text": "A."}]}
        handler = CapturingHandler(
            body={"content": [{"type": "tool_use", "name": "record_claims", "input": tool_input}]}
        )
        async with _http(handler) as http:
            client = AnthropicClient(http_client=http)
            result = await client.extract_claims("A.", "sk-ant-test")

        assert result == tool_input
        request = handler.requests[0]
        assert request.url.path == "/v1/messages"
        assert request.headers["x-api-key"] == "sk-ant-test"
        assert request.headers["anthropic-version"] == "2023-06-01"
        body = handler.last_json
        assert body["model"] == "claude-3-5-haiku-20241022"
        assert body["tool_choice"] == {"type": "tool", "name": "record_claims"}

    @pytest.mark.asyncio
    async def test_stringified_claims_passed_through(self) -> None:
        tool_input = {"claims": '[{"claim": "A"}]'}
        handler = CapturingHandler(body={"content": [{"type": "tool_use", "input": tool_input}]})
        async with _http(handler) as http:
            result = await AnthropicClient(http_client=http).extract_claims("A.", "k")
        assert result == tool_input

    @pytest.mark.asyncio
    async def test_adjudicate_uses_adjudication_model_and_sources(self) -> None:
        verdict = {"assessment": "True", "confidence_score": 88, "summary": "ok"}
        handler = CapturingHandler(body={"content": [{"type": "tool_use", "input": verdict}]})
        async with _http(handler) as http:
            result = await AnthropicClient(http_client=http).adjudicate(
                "claim", "original", EVIDENCE, "k"
            )
        assert result == verdict
        body = handler.last_json
        assert body["model"] == "claude-3-5-sonnet-20241022"
        assert "https://example.com" in body["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_text_block_fallback(self) -> None:
        handler = CapturingHandler(
            body={"content": [{"type": "text", "text": '```json\n{"claims": []}\n```'}]}
        )
        async with _http(handler) as http:
            result = await AnthropicClient(http_client=http).extract_claims("A.", "k")
        assert result == {"claims": []}

    @pytest.mark.asyncio
    async def test_empty_content_raises(self) -> None:
        handler = CapturingHandler(body={"content": []})
        async with _http(handler) as http:
            with pytest.raises(UpstreamError):
                await AnthropicClient(http_client=http).extract_claims("A.", "k")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "body", "error_type"),
        [
            (401, {"error": {"message": "invalid x-api-key"}}, AuthError),
            (403, {"error": {"message": "forbidden"}}, AuthError),
            (429, {"error": {"message": "slow down"}}, RateLimited),
            (402, {"error": {"message": "payment required"}}, QuotaExceeded),
            (400, {"error": {"type": "insufficient_quota"}}, QuotaExceeded),
            (400, {"error": {"message": "Invalid API key provided"}}, AuthError),
            (500, {"error": {"message": "overloaded"}}, UpstreamError),
            (429, {"error": {"message": "Rate limit exceeded for this API key"}}, RateLimited),
            (503, {"error": {"message": "upstream unauthorized proxy"}}, UpstreamError),
            (502, {"error": {"type": "insufficient_quota"}}, UpstreamError),
            (401, {"error": {"message": "rate limit and bad key"}}, AuthError),
            (400, {"error": {"message": "rate limit reached"}}, RateLimited),
        ],
    )
    async def test_http_errors_classified(self, status, body, error_type) -> None:
        handler = CapturingHandler(status_code=status, body=body)
        async with _http(handler) as http:
            with pytest.raises(error_type) as exc_info:
                await AnthropicClient(http_client=http).extract_claims("A.", "k")
        assert exc_info.value.status_code == status
        assert exc_info.value.provider == "anthropic"


# ── DeepSeek ──────────────────────────────────────────────────────────────


class TestDeepSeekClient:
    @pytest.mark.asyncio
    async def test_extract_claims_parses_message_content(self) -> None:
        content = json.dumps({"claims": [{"claim": "北京是中国的首都"}]}, ensure_ascii=False)
        handler = CapturingHandler(body={"choices": [{"message": {"content": content}}]})
        async with _http(handler) as http:
            result = await DeepSeekClient(http_client=http).extract_claims("北京是中国的首都。", "sk-ds")

        assert result["claims"][0]["claim"] == "北京是中国的首都"
        request = handler.requests[0]
        assert request.url.path == "/chat/completions"
        assert request.headers["authorization"] == "Bearer sk-ds"
        assert handler.last_json["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_missing_choices_raises(self) -> None:
        handler = CapturingHandler(body={"choices": []})
        async with _http(handler) as http:
            with pytest.raises(UpstreamError):
                await DeepSeekClient(http_client=http).adjudicate("c", "o", EVIDENCE, "k")

    @pytest.mark.asyncio
    async def test_non_json_content_raises_with_provider(self) -> None:
        handler = CapturingHandler(body={"choices": [{"message": {"content": "I cannot help"}}]})
        async with _http(handler) as http:
            with pytest.raises(UpstreamError) as exc_info:
                await DeepSeekClient(http_client=http).adjudicate("c", "o", EVIDENCE, "k")
        assert exc_info.value.provider == "deepseek"


# ── Search clients ────────────────────────────────────────────────────────


class TestExaClient:
    @pytest.mark.asyncio
    async def test_search_request(self) -> None:
        handler = CapturingHandler(body={"results": []})
        async with _http(handler) as http:
            result = await ExaClient(http_client=http).search("Paris is in France", "exa-key", limit=4)

        assert result == {"results": []}
        request = handler.requests[0]
        assert request.url.path == "/search"
        assert request.headers["x-api-key"] == "exa-key"
        body = handler.last_json
        assert body["numResults"] == 4
        assert body["contents"] == {"text": True}
        assert body["query"].startswith("Paris is in France facts verification truth")

    def test_chinese_query_keywords(self) -> None:
        assert "事实 真相 验证" in build_search_query("长城是世界上最长的城墙")
        assert "facts verification truth" in build_search_query("The Wall is long")


class TestBochaClient:
    @pytest.mark.asyncio
    async def test_search_request(self) -> None:
        body = {"code": 200, "data": {"webPages": {"value": []}}}
        handler = CapturingHandler(body=body)
        async with _http(handler) as http:
            result = await BochaClient(http_client=http).search("长城", "sk-bocha", limit=5)

        assert result == body
        request = handler.requests[0]
        assert request.url.path == "/v1/web-search"
        assert request.headers["authorization"] == "Bearer sk-bocha"
        assert handler.last_json["count"] == 5

    @pytest.mark.asyncio
    async def test_in_body_error_code(self) -> None:
        handler = CapturingHandler(body={"code": 401, "msg": "Invalid API KEY"})
        async with _http(handler) as http:
            with pytest.raises(AuthError):
                await BochaClient(http_client=http).search("q", "k")


# ── Status classification ─────────────────────────────────────────────────


class TestClassifyStatus:
    @pytest.mark.parametrize(
        ("status", "body", "error_type"),
        [
            (429, "Rate limit exceeded for this API key", RateLimited),
            (402, "unauthorized plan", QuotaExceeded),
            (403, "insufficient_quota", AuthError),
            (500, "Unauthorized upstream", UpstreamError),
            (400, "Unauthorized", AuthError),
            (404, "not found", UpstreamError),
        ],
    )
    def test_status_code_decides_before_body(self, status, body, error_type) -> None:
        error = classify_status(status, body, provider="exa")
        assert type(error) is error_type
        assert error.status_code == status

    def test_server_error_is_retryable_kind(self) -> None:
        error = classify_status(503, "Invalid API key header forwarded")
        assert error.kind == "upstream_error"


# ── Transport failures ────────────────────────────────────────────────────


class TestTransportFailures:
    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with _http(handler) as http:
            with pytest.raises(UpstreamTimeout):
                await ExaClient(http_client=http).search("q", "k")

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with _http(handler) as http:
            with pytest.raises(UpstreamError) as exc_info:
                await BochaClient(http_client=http).search("q", "k")
        assert not isinstance(exc_info.value, UpstreamTimeout)

    @pytest.mark.asyncio
    async def test_non_json_body(self) -> None:
        handler = CapturingHandler(text="<html>gateway</html>")
        async with _http(handler) as http:
            with pytest.raises(UpstreamError):
                await ExaClient(http_client=http).search("q", "k")

    @pytest.mark.asyncio
    async def test_shared_client_not_closed(self) -> None:
        handler = CapturingHandler(body={"results": []})
        http = _http(handler)
        client = ExaClient(http_client=http)
        await client.close()
        assert not http.is_closed
        await http.aclose()


class TestExtractJsonFromText:
    def test_plain_json(self) -> None:
        assert extract_json_from_text('{"a": 1}') == {"a": 1}

    def test_fenced_json(self) -> None:
        assert extract_json_from_text('Here:\n```json\n[1, 2]\n```') == [1, 2]

    def test_embedded_object(self) -> None:
        assert extract_json_from_text('Result: {"claims": []} done') == {"claims": []}

    def test_no_json(self) -> None:
        with pytest.raises(UpstreamError):
            extract_json_from_text("nothing here")
