"""LLM adapter interface and the text-generation providers the quiz generator can use."""

from typing import List, Dict, Any, Optional
import itertools
import json
import os
import logging
import requests

logger = logging.getLogger("llm_adapter")

DEFAULT_OPENAI_ENDPOINT = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"


class LLMServiceError(Exception):
    """The generation service could not be reached or answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _extract_usage(data: Dict[str, Any]) -> Dict[str, int]:
    """Extract token usage from API response if available."""
    usage = data.get("usage") or {}
    return {
        "prompt_tokens": int(usage.get("prompt_tokens", 0)),
        "completion_tokens": int(usage.get("completion_tokens", 0)),
        "total_tokens": int(usage.get("total_tokens", 0)),
    }


class LLMAdapter:
    """Interface for LLM providers."""

    def generate(self, prompt: str, max_tokens: int = 500, temperature: float = 1.0,
                 system: Optional[str] = None) -> Dict[str, Any]:
        raise NotImplementedError()


class MockLLMAdapter(LLMAdapter):
    """Offline provider: a different, well-formed arithmetic quiz on every call."""

    def __init__(self):
        self._counter = itertools.count()

    def generate(self, prompt: str, max_tokens: int = 500, temperature: float = 1.0,
                 system: Optional[str] = None) -> Dict[str, Any]:
        n = next(self._counter)
        a, b = 3 + n, 4 + 2 * n
        total = a + b
        quiz = {
            "category": "Mathematics",
            "question": f"What is {a} + {b}?",
            "options": [str(total), str(total + 1), str(total - 1), str(total + 10)],
            "correctIndex": 0,
            "explanation": f"{a} + {b} = {total}.",
        }
        text = json.dumps(quiz)
        return {"text": text, "raw": {}, "usage": {"prompt_tokens": 0, "completion_tokens": len(text), "total_tokens": len(text)}}


class OpenAICompatibleAdapter(LLMAdapter):
    """Adapter for OpenAI-compatible chat APIs (including Groq-style endpoints).

    One request per call. Transport failures and non-2xx statuses raise
    LLMServiceError; retry policy belongs to the caller.
    """

    def __init__(self, endpoint: str, key: str, model: str, timeout: float = 30):
        self.endpoint = endpoint.rstrip("/")
        self.key = key
        self.model = model
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
        }

    def _extract_text(self, data: Dict[str, Any]) -> str:
        choices = data.get("choices") or []
        if not isinstance(choices, list) or not choices:
            return ""

        choice0 = choices[0] or {}
        message = choice0.get("message") or {}

        content = message.get("content")
        if isinstance(content, str) and content.strip():
            return content.strip()
        if isinstance(content, list):
            parts: List[str] = []
            for item in content:
                if isinstance(item, dict):
                    txt = item.get("text")
                    if isinstance(txt, str) and txt.strip():
                        parts.append(txt.strip())
            if parts:
                return " ".join(parts)

        text = choice0.get("text")
        if isinstance(text, str) and text.strip():
            return text.strip()

        return ""

    def generate(self, prompt: str, max_tokens: int = 500, temperature: float = 1.0,
                 system: Optional[str] = None) -> Dict[str, Any]:
        url = f"{self.endpoint}/chat/completions"
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        try:
            resp = requests.post(url, headers=self._headers(), json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise LLMServiceError(f"request to {url} failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            logger.error("Generation service returned HTTP %d: %s", resp.status_code, (resp.text or "")[:200])
            raise LLMServiceError(f"API error: {resp.status_code}", status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMServiceError("API returned a non-JSON body", status_code=resp.status_code) from e
        return {"text": self._extract_text(data), "raw": data, "usage": _extract_usage(data)}


def get_llm_adapter() -> LLMAdapter:
    provider = os.getenv("LLM_PROVIDER", "mock").strip().lower()

    if provider == "mock":
        return MockLLMAdapter()

    if provider in ("openai-compatible", "openai", "groq"):
        endpoint = os.getenv("OpenAIEndpoint") or DEFAULT_OPENAI_ENDPOINT
        key = os.getenv("OpenAIKey")
        # Support both corrected and legacy (typo) env var names
        model = os.getenv("OpenAIDeploymentName") or os.getenv("OpenAIDeplymentName") or DEFAULT_MODEL
        if not key:
            raise RuntimeError("OpenAI-compatible settings not configured in env (OpenAIKey)")
        return OpenAICompatibleAdapter(endpoint=endpoint, key=key, model=model)

    raise RuntimeError(f"LLM provider '{provider}' not implemented")
