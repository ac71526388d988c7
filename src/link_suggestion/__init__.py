from .accumulate import AccumulationFailedError, accumulate
from .categories import normalize_category
from .collection import LinkCollection, SuggestionInProgressError
from .keyword_filter import filter_links_by_keyword
from .schema import (
    AcceptedLink,
    AccumulationResult,
    CategoryId,
    LinkIdentity,
    LinkItem,
    SuggestionCriteria,
    SuggestionOutcome,
)
from .source import LLMSuggestionSource, SuggestionSource, SuggestionSourceError
from .workflow import run_link_suggestion_workflow

__all__ = [
    "accumulate",
    "run_link_suggestion_workflow",
    "filter_links_by_keyword",
    "normalize_category",
    "AccumulationFailedError",
    "SuggestionInProgressError",
    "SuggestionSourceError",
    "LLMSuggestionSource",
    "SuggestionSource",
    "LinkCollection",
    "AcceptedLink",
    "AccumulationResult",
    "CategoryId",
    "LinkIdentity",
    "LinkItem",
    "SuggestionCriteria",
    "SuggestionOutcome",
]
