from __future__ import annotations

import pytest

from src.infra.llm.registry import get_model, model_from_env


def test_provider_specific_names() -> None:
    gemini = get_model("gemini/gemini-2.0-flash")
    assert gemini.get_litellm_model_name() == "gemini/gemini-2.0-flash"
    assert gemini.get_langfuse_model_name() == "google/gemini-2.0-flash"

    openai = get_model("openai/gpt-5-mini")
    assert openai.get_litellm_model_name() == "openai/gpt-5-mini"
    assert openai.get_langfuse_model_name() == "openai/gpt-5-mini"


def test_unknown_model_is_rejected() -> None:
    with pytest.raises(ValueError):
        get_model("anthropic/unknown")  # type: ignore[arg-type]


def test_model_from_env(monkeypatch) -> None:
    monkeypatch.delenv("SOME_MODEL", raising=False)
    assert model_from_env("SOME_MODEL", "openai/gpt-5-mini") == "openai/gpt-5-mini"

    monkeypatch.setenv("SOME_MODEL", " gemini/gemini-2.5-flash-lite ")
    assert model_from_env("SOME_MODEL", "openai/gpt-5-mini") == "gemini/gemini-2.5-flash-lite"

    monkeypatch.setenv("SOME_MODEL", "gpt-4")
    with pytest.raises(ValueError):
        model_from_env("SOME_MODEL", "openai/gpt-5-mini")
