from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any, List

import pytest

from blueprint_core.llm.ollama_client import OllamaClient, OllamaServiceError


@dataclass
class _FakeCompletions:
    outcomes: List[Any]
    calls: List[dict] = field(default_factory=list)

    def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _fake_openai(outcomes):
    completions = _FakeCompletions(outcomes)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _chunk(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


def _client(fake, *, retries=3, stream=False, sleeps=None):
    return OllamaClient(
        base_url="http://ollama.test:11434/",
        model="qwen-test",
        temperature=0.1,
        max_tokens=4096,
        retries=retries,
        stream=stream,
        client=fake,
        sleep=(sleeps.append if sleeps is not None else lambda _s: None),
    )


def test_generate_blueprint_requests_json_output():
    fake, completions = _fake_openai([_completion('{"a": 1}')])
    client = _client(fake)

    assert client.generate_blueprint("sys", "prompt") == '{"a": 1}'
    call = completions.calls[0]
    assert call["model"] == "qwen-test"
    assert call["response_format"] == {"type": "json_object"}
    assert call["messages"][0] == {"role": "system", "content": "sys"}
    assert call["max_tokens"] == 4096
    assert client.base_url == "http://ollama.test:11434"


def test_generate_blueprint_retries_with_backoff():
    sleeps: list = []
    fake, completions = _fake_openai([RuntimeError("connection refused"), _completion(""), _completion('{"a": 1}')])

    out = _client(fake, sleeps=sleeps).generate_blueprint("sys", "prompt")

    assert out == '{"a": 1}'
    assert len(completions.calls) == 3
    assert len(sleeps) == 2
    assert 1.0 <= sleeps[0] <= 1.2
    assert 2.0 <= sleeps[1] <= 2.2


def test_generate_blueprint_raises_after_last_attempt():
    fake, _ = _fake_openai([RuntimeError("down"), RuntimeError("still down")])
    with pytest.raises(OllamaServiceError) as exc:
        _client(fake, retries=2).generate_blueprint("sys", "prompt")
    assert "still down" in str(exc.value)


def test_empty_content_is_an_error():
    fake, _ = _fake_openai([_completion("   ")])
    with pytest.raises(OllamaServiceError):
        _client(fake, retries=1).generate_blueprint("sys", "prompt")


def test_streaming_chunks_are_joined():
    fake, completions = _fake_openai([iter([_chunk('{"a"'), _chunk(": 1}")])])

    assert _client(fake, stream=True).generate_blueprint("sys", "prompt") == '{"a": 1}'
    assert completions.calls[0]["stream"] is True


def test_zero_retries_still_makes_one_attempt():
    fake, completions = _fake_openai([_completion('{"a": 1}')])
    assert _client(fake, retries=0).generate_blueprint("sys", "prompt") == '{"a": 1}'
    assert len(completions.calls) == 1


def test_health(monkeypatch):
    import requests

    from blueprint_core.llm import ollama_client

    urls = []

    def fake_get(url, timeout=None):
        urls.append(url)
        return SimpleNamespace(ok=True)

    monkeypatch.setattr(ollama_client.requests, "get", fake_get)
    fake, _ = _fake_openai([])
    assert _client(fake).health() is True
    assert urls == ["http://ollama.test:11434/api/tags"]

    def refuse(url, timeout=None):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(ollama_client.requests, "get", refuse)
    assert _client(fake).health() is False
