import json

import pytest
import requests

from quizmachine.services.llm_adapter import (
    LLMServiceError,
    MockLLMAdapter,
    OpenAICompatibleAdapter,
    get_llm_adapter,
)


class _FakeResp:
    def __init__(self, payload, status=200, text=""):
        self._payload = payload
        self.status_code = status
        self.text = text

    def json(self):
        return self._payload


def test_openai_compatible_extracts_message_content_and_sends_payload(monkeypatch):
    captured = {}

    def fake_post(url, headers=None, json=None, timeout=None):
        captured.update(url=url, headers=headers, json=json, timeout=timeout)
        return _FakeResp({"choices": [{"message": {"content": "  {\"q\": 1}  "}}], "usage": {"total_tokens": 7}})

    monkeypatch.setattr("quizmachine.services.llm_adapter.requests.post", fake_post)

    adapter = OpenAICompatibleAdapter(endpoint="https://example.com/v1/", key="k", model="m")
    out = adapter.generate("hi", temperature=1.1, system="json only")

    assert out["text"] == '{"q": 1}'
    assert out["usage"]["total_tokens"] == 7
    assert captured["url"] == "https://example.com/v1/chat/completions"
    assert captured["headers"]["Authorization"] == "Bearer k"
    assert captured["json"]["model"] == "m"
    assert captured["json"]["temperature"] == 1.1
    assert captured["json"]["messages"][0] == {"role": "system", "content": "json only"}
    assert captured["json"]["messages"][1] == {"role": "user", "content": "hi"}
    assert "stream" not in captured["json"]


def test_openai_compatible_extracts_content_text_list(monkeypatch):
    payload = {
        "choices": [
            {
                "message": {
                    "content": [
                        {"type": "output_text", "text": "alpha"},
                        {"type": "output_text", "text": "beta"},
                    ]
                }
            }
        ]
    }

    monkeypatch.setattr(
        "quizmachine.services.llm_adapter.requests.post",
        lambda *args, **kwargs: _FakeResp(payload),
    )

    adapter = OpenAICompatibleAdapter(endpoint="https://example.com", key="k", model="m")
    assert adapter.generate("hi")["text"] == "alpha beta"


def test_non_success_status_raises_service_error_without_retry(monkeypatch):
    calls = []

    def fake_post(*args, **kwargs):
        calls.append(1)
        return _FakeResp({}, status=503, text="unavailable")

    monkeypatch.setattr("quizmachine.services.llm_adapter.requests.post", fake_post)

    adapter = OpenAICompatibleAdapter(endpoint="https://example.com", key="k", model="m")
    with pytest.raises(LLMServiceError) as excinfo:
        adapter.generate("hi")
    assert excinfo.value.status_code == 503
    assert len(calls) == 1


def test_transport_error_raises_service_error(monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.exceptions.ConnectionError("boom")

    monkeypatch.setattr("quizmachine.services.llm_adapter.requests.post", fake_post)

    adapter = OpenAICompatibleAdapter(endpoint="https://example.com", key="k", model="m")
    with pytest.raises(LLMServiceError) as excinfo:
        adapter.generate("hi")
    assert excinfo.value.status_code is None


def test_mock_adapter_returns_distinct_valid_quizzes():
    adapter = MockLLMAdapter()
    first = json.loads(adapter.generate("p")["text"])
    second = json.loads(adapter.generate("p")["text"])
    assert first["question"] != second["question"]
    assert len(first["options"]) == 4
    assert first["explanation"].endswith(f"= {first['options'][first['correctIndex']]}.")


def test_get_llm_adapter_selects_provider(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "mock")
    assert isinstance(get_llm_adapter(), MockLLMAdapter)

    monkeypatch.setenv("LLM_PROVIDER", "openai")
    monkeypatch.delenv("OpenAIKey", raising=False)
    with pytest.raises(RuntimeError):
        get_llm_adapter()

    monkeypatch.setenv("OpenAIKey", "secret")
    monkeypatch.delenv("OpenAIEndpoint", raising=False)
    monkeypatch.delenv("OpenAIDeploymentName", raising=False)
    monkeypatch.delenv("OpenAIDeplymentName", raising=False)
    adapter = get_llm_adapter()
    assert isinstance(adapter, OpenAICompatibleAdapter)
    assert adapter.endpoint == "https://api.openai.com/v1"
    assert adapter.model == "gpt-4o-mini"

    monkeypatch.setenv("LLM_PROVIDER", "nope")
    with pytest.raises(RuntimeError):
        get_llm_adapter()
