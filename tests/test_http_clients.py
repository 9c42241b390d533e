"""Tests for HTTP-based adapters."""

import asyncio
import json

import httpx
import pytest

from calorie_tracker.adapters.anthropic_vision_client import AnthropicVisionClient
from calorie_tracker.adapters.display_refresh_client import HttpxDisplayRefreshClient
from calorie_tracker.adapters.openai_vision_client import OpenAIVisionClient
from calorie_tracker.domain.vision import (
    AnalysisApiError,
    AnalysisNetworkError,
    InvalidAnalysisResponseError,
)


def _chat_completion(content: str) -> dict[str, object]:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-4o",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


def _openai_client(handler) -> OpenAIVisionClient:  # type: ignore[no-untyped-def]
    transport = httpx.MockTransport(handler)
    return OpenAIVisionClient(http_client=httpx.AsyncClient(transport=transport))


def _anthropic_client(handler) -> AnthropicVisionClient:  # type: ignore[no-untyped-def]
    transport = httpx.MockTransport(handler)
    return AnthropicVisionClient(http_client=httpx.AsyncClient(transport=transport))


def _complete(client) -> str:  # type: ignore[no-untyped-def]
    return asyncio.run(
        client.complete(api_key="sk-test", prompt="Estimate", image_base64="ZmFrZQ==")
    )


def test_openai_client_sends_chat_completion_request() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_chat_completion('{"calories": 100}'))

    reply = _complete(_openai_client(handler))

    assert reply == '{"calories": 100}'
    request = seen[0]
    assert str(request.url) == "https://api.openai.com/v1/chat/completions"
    assert request.headers["authorization"] == "Bearer sk-test"
    payload = json.loads(request.content.decode())
    assert payload["model"] == "gpt-4o"
    assert payload["max_tokens"] == 300
    content = payload["messages"][0]["content"]
    assert content[0] == {"type": "text", "text": "Estimate"}
    assert content[1]["image_url"]["url"] == "data:image/jpeg;base64,ZmFrZQ=="


def test_openai_client_maps_error_envelope() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"message": "invalid_api_key"}})

    with pytest.raises(AnalysisApiError) as exc_info:
        _complete(_openai_client(handler))

    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "invalid_api_key"


def test_openai_client_maps_transport_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(AnalysisNetworkError):
        _complete(_openai_client(handler))


def test_openai_client_maps_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(AnalysisNetworkError):
        _complete(_openai_client(handler))


def test_openai_client_rejects_reply_without_choices() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": "chatcmpl-1", "choices": []})

    with pytest.raises(InvalidAnalysisResponseError):
        _complete(_openai_client(handler))


def test_anthropic_client_sends_messages_request() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "id": "msg_1",
                "type": "message",
                "content": [{"type": "text", "text": "About 300 calories"}],
            },
        )

    reply = _complete(_anthropic_client(handler))

    assert reply == "About 300 calories"
    request = seen[0]
    assert str(request.url) == "https://api.anthropic.com/v1/messages"
    assert request.headers["x-api-key"] == "sk-test"
    assert request.headers["anthropic-version"] == "2023-06-01"
    payload = json.loads(request.content.decode())
    assert payload["model"] == "claude-3-5-sonnet-20241022"
    assert payload["max_tokens"] == 300
    image, text = payload["messages"][0]["content"]
    assert image["source"] == {
        "type": "base64",
        "media_type": "image/jpeg",
        "data": "ZmFrZQ==",
    }
    assert text == {"type": "text", "text": "Estimate"}


def test_anthropic_client_maps_error_envelope() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            401,
            json={
                "type": "error",
                "error": {
                    "type": "authentication_error",
                    "message": "invalid x-api-key",
                },
            },
        )

    with pytest.raises(AnalysisApiError) as exc_info:
        _complete(_anthropic_client(handler))

    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "invalid x-api-key"


def test_anthropic_client_uses_generic_message_for_unparseable_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(529, content=b"<html>overloaded</html>")

    with pytest.raises(AnalysisApiError) as exc_info:
        _complete(_anthropic_client(handler))

    assert exc_info.value.status_code == 529
    assert exc_info.value.message == "Unknown error from API"


def test_anthropic_client_rejects_malformed_envelope() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"not json")

    with pytest.raises(InvalidAnalysisResponseError):
        _complete(_anthropic_client(handler))


def test_anthropic_client_rejects_empty_content() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"content": []})

    with pytest.raises(InvalidAnalysisResponseError):
        _complete(_anthropic_client(handler))


def test_anthropic_client_maps_transport_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(AnalysisNetworkError) as exc_info:
        _complete(_anthropic_client(handler))

    assert isinstance(exc_info.value.underlying, httpx.ConnectTimeout)
    assert "check your connection" in exc_info.value.user_message


def test_anthropic_client_maps_read_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(AnalysisNetworkError) as exc_info:
        _complete(_anthropic_client(handler))

    assert isinstance(exc_info.value.underlying, httpx.ReadTimeout)


def test_display_refresh_client_posts_event() -> None:
    seen: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content.decode()))
        return httpx.Response(204)

    transport = httpx.MockTransport(handler)
    client = HttpxDisplayRefreshClient(
        url="https://display.test/refresh",
        http_client=httpx.AsyncClient(transport=transport),
    )

    asyncio.run(client.request_refresh())

    assert seen == [{"event": "calories_updated"}]
