from __future__ import annotations

import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("LANGFUSE_TRACING_ENABLED", "false")


class FakeObservation:
    def __init__(self, span_name: str, span_context: Any) -> None:
        self.span_name = span_name
        self.span_context = span_context
        self.span = None
        self.inputs: list[Any] = []
        self.outputs: list[Any] = []
        self.errors: list[BaseException] = []

    def set_input(self, input: Any) -> None:
        self.inputs.append(input)

    def set_output(self, output: Any) -> None:
        self.outputs.append(output)

    def finish(self, value: Any) -> Any:
        self.set_output(value)
        return value

    def error(self, exc: BaseException) -> None:
        self.errors.append(exc)


@pytest.fixture
def fake_spans(monkeypatch) -> list[FakeObservation]:
    from src.link_suggestion import workflow

    observations: list[FakeObservation] = []

    @contextmanager
    def _fake_span(span_name: str, span_context: Any = None):
        obs = FakeObservation(span_name, span_context)
        observations.append(obs)
        yield obs

    monkeypatch.setattr(workflow, "with_langfuse_span", _fake_span)
    return observations
