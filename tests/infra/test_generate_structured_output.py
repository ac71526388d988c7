from __future__ import annotations

import importlib
from contextlib import contextmanager
from types import SimpleNamespace
from typing import Any

import pytest
from pydantic import BaseModel, ValidationError

gso = importlib.import_module("src.infra.llm.generate_structured_output")


class Answer(BaseModel):
    ids: list[str]


class FakeGeneration:
    def __init__(self) -> None:
        self.updates: list[dict[str, Any]] = []

    def update(self, **kwargs: Any) -> None:
        self.updates.append(kwargs)


class FakeClient:
    def __init__(self) -> None:
        self.generation = FakeGeneration()
        self.started: list[dict[str, Any]] = []

    @contextmanager
    def start_as_current_observation(self, **kwargs: Any):
        self.started.append(kwargs)
        yield self.generation


def _response(content: Any) -> SimpleNamespace:
    return SimpleNamespace(
        usage=SimpleNamespace(prompt_tokens=10, completion_tokens=5, total_tokens=15),
        choices=[SimpleNamespace(message=SimpleNamespace(content=content, tool_calls=None))],
    )


@pytest.fixture
def client(monkeypatch) -> FakeClient:
    client = FakeClient()
    monkeypatch.setattr(gso, "get_client", lambda: client)
    return client


def _call(**overrides: Any) -> Answer:
    kwargs: dict[str, Any] = {
        "model": "gemini/gemini-2.0-flash",
        "system_prompt": "system",
        "prompt": "prompt",
        "output_schema": Answer,
        "generation_name": "test_generation",
    }
    kwargs.update(overrides)
    return gso.generate_structured_output(**kwargs)


def test_parses_json_content(monkeypatch, client: FakeClient) -> None:
    captured: dict[str, Any] = {}

    def fake_completion(**kwargs: Any) -> SimpleNamespace:
        captured.update(kwargs)
        return _response('{"ids": ["a", "b"]}')

    monkeypatch.setattr(gso.litellm, "completion", fake_completion)

    result = _call(temperature=0.2, metadata={"k": "v"})

    assert result == Answer(ids=["a", "b"])
    assert captured["model"] == "gemini/gemini-2.0-flash"
    assert captured["messages"][0] == {"role": "system", "content": "system"}
    assert captured["temperature"] == 0.2
    started = client.started[0]
    assert started["model"] == "google/gemini-2.0-flash"
    assert started["metadata"]["k"] == "v"
    assert started["metadata"]["temperature"] == 0.2
    assert {"usage_details": {"input": 10, "output": 5, "total": 15}} in client.generation.updates
    assert {"output": {"ids": ["a", "b"]}} in client.generation.updates


def test_caller_metadata_is_not_mutated(monkeypatch, client: FakeClient) -> None:
    monkeypatch.setattr(gso.litellm, "completion", lambda **kw: _response({"ids": []}))
    metadata = {"k": "v"}

    _call(metadata=metadata)

    assert metadata == {"k": "v"}


def test_nests_under_parent_span(monkeypatch) -> None:
    parent = FakeClient()
    monkeypatch.setattr(gso, "get_client", lambda: pytest.fail("global client used"))
    monkeypatch.setattr(gso.litellm, "completion", lambda **kw: _response('{"ids": []}'))

    _call(parent_span=parent)

    assert parent.started[0]["name"] == "test_generation"
    assert parent.started[0]["as_type"] == "generation"


def test_empty_content_raises_and_marks_error(monkeypatch, client: FakeClient) -> None:
    monkeypatch.setattr(gso.litellm, "completion", lambda **kw: _response(None))

    with pytest.raises(ValueError, match="No content"):
        _call()

    assert client.generation.updates[-1]["level"] == "ERROR"


def test_schema_mismatch_raises(monkeypatch, client: FakeClient) -> None:
    monkeypatch.setattr(gso.litellm, "completion", lambda **kw: _response('{"other": 1}'))

    with pytest.raises(ValidationError):
        _call()
