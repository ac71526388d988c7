from __future__ import annotations

from typing import Any, Callable, Sequence, Union

from src.link_suggestion.schema import (
    CandidateLink,
    SuggestionBatch,
    SuggestionBatchRequest,
)

Response = Union[SuggestionBatch, Exception, None, dict, Callable[[SuggestionBatchRequest], Any]]


def candidate(url: str, category: str = "Tools", title: str | None = None) -> CandidateLink:
    return CandidateLink(
        title=title or f"Title for {url}",
        url=url,
        description=f"Description for {url}",
        category=category,
    )


def batch(*urls: str, category: str = "Tools") -> SuggestionBatch:
    return SuggestionBatch(suggested_links=[candidate(url, category) for url in urls])


class ScriptedSource:
    """Replays `responses` in order, repeating the last one once the script runs out."""

    def __init__(self, responses: Sequence[Response]) -> None:
        self.responses = list(responses)
        self.requests: list[SuggestionBatchRequest] = []

    def fetch_batch(self, request: SuggestionBatchRequest) -> Any:
        self.requests.append(request)
        index = min(len(self.requests), len(self.responses)) - 1
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(request)
        return response


class FreshLinksSource:
    """Always answers with `per_call` URLs never seen before (or `request.count` when None)."""

    def __init__(self, per_call: int | None = None, category: str = "Learning") -> None:
        self.per_call = per_call
        self.category = category
        self.requests: list[SuggestionBatchRequest] = []
        self._counter = 0

    def fetch_batch(self, request: SuggestionBatchRequest) -> SuggestionBatch:
        self.requests.append(request)
        n = request.count if self.per_call is None else self.per_call
        urls = []
        for _ in range(n):
            self._counter += 1
            urls.append(f"https://fresh.example.com/{self._counter}")
        return batch(*urls, category=self.category)
