import asyncio
import json

import httpx
import pytest

import llm_client
from llm_client import ChatCompletionClient


def make_client(handler):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ChatCompletionClient(
        api_key="sk-test",
        model="test-model",
        base_url="https://llm.test/v1/",
        http_client=http_client,
    )


def test_complete_sends_json_mode_request():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": '{"results": []}'}}]})

    content = asyncio.run(make_client(handler).complete("sistema", "usuario"))
    assert content == '{"results": []}'
    assert seen["url"] == "https://llm.test/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"] == {
        "model": "test-model",
        "temperature": 0,
        "messages": [
            {"role": "system", "content": "sistema"},
            {"role": "user", "content": "usuario"},
        ],
        "response_format": {"type": "json_object"},
    }


def test_complete_empty_content_becomes_empty_object():
    def handler(request):
        return httpx.Response(200, json={"choices": [{"message": {"content": None}}]})

    assert asyncio.run(make_client(handler).complete("s", "u")) == "{}"


def test_complete_without_choices_is_value_error():
    def handler(request):
        return httpx.Response(200, json={"error": "nope"})

    with pytest.raises(ValueError):
        asyncio.run(make_client(handler).complete("s", "u"))


def test_complete_http_error_status_raises():
    def handler(request):
        return httpx.Response(429, json={"error": "rate limited"})

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(make_client(handler).complete("s", "u"))


def test_get_llm_client_requires_key_and_flag(monkeypatch):
    monkeypatch.setattr(llm_client, "OPENAI_API_KEY", "")
    monkeypatch.setattr(llm_client, "LLM_ENABLED", True)
    assert llm_client.get_llm_client() is None

    monkeypatch.setattr(llm_client, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(llm_client, "LLM_ENABLED", False)
    assert llm_client.get_llm_client() is None

    monkeypatch.setattr(llm_client, "LLM_ENABLED", True)
    client = llm_client.get_llm_client()
    assert isinstance(client, ChatCompletionClient)
    assert client.api_key == "sk-test"
