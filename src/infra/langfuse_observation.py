from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, TypedDict, TypeVar

from langfuse import LangfuseSpan, get_client
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class TraceInit(TypedDict, total=False):
    name: str | None
    user_id: str | None
    session_id: str | None
    version: str | None
    metadata: Any | None
    tags: list[str] | None
    public: bool | None


class WithSpanContext(TypedDict, total=False):
    """
    Where a new span should hang in the Langfuse trace tree.

    - `trace_init` only: the span starts a new trace and the trace attributes
      (name, session_id, metadata, ...) are set from it. Trace input/output
      mirror the span's.
    - `parent_span`: the span is created as a child of that span.
    - Neither: the span attaches to whatever observation is current.
    """

    parent_span: LangfuseSpan | None
    trace_init: TraceInit | None


T = TypeVar("T")


def _to_trace_payload(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


@dataclass(frozen=True)
class ObservationHandle:
    span: LangfuseSpan
    _is_trace_root: bool

    def set_input(self, input: Any) -> None:
        payload = _to_trace_payload(input)
        self.span.update(input=payload)
        if self._is_trace_root:
            self.span.update_trace(input=payload)

    def set_output(self, output: Any) -> None:
        payload = _to_trace_payload(output)
        self.span.update(output=payload)
        if self._is_trace_root:
            self.span.update_trace(output=payload)

    def finish(self, value: T) -> T:
        """Record `value` as the span output and hand it back to the caller."""
        self.set_output(value)
        return value

    def error(self, exc: BaseException) -> None:
        self.span.update(level="ERROR", status_message=f"{type(exc).__name__}: {exc}")


@contextmanager
def with_langfuse_span(
    span_name: str,
    span_context: WithSpanContext | None = None,
) -> Iterator[ObservationHandle]:
    """Open a Langfuse span, nested or as a trace root depending on `span_context`.

    ```
    with with_langfuse_span(
        span_name="run_link_suggestion_workflow",
        span_context={"trace_init": {"name": "suggest_links_cli", "session_id": sid}},
    ) as obs:
        obs.set_input(criteria)
        ...
        return obs.finish(outcome)
    ```
    """

    parent_span = span_context.get("parent_span") if span_context else None
    trace_init = span_context.get("trace_init") if span_context else None

    if parent_span is not None:
        cm = parent_span.start_as_current_observation(name=span_name, as_type="span")
    else:
        cm = get_client().start_as_current_observation(name=span_name, as_type="span")

    with cm as span:
        if trace_init is not None:
            span.update_trace(**trace_init)
        logger.debug("Opened span %s", span_name)

        yield ObservationHandle(span=span, _is_trace_root=trace_init is not None)
