import logging
from typing import Iterable, List, Optional

from src.infra.langfuse_observation import WithSpanContext, with_langfuse_span

from .accumulate import accumulate
from .collection import LinkCollection
from .dedupe import merge_known_links
from .schema import (
    AccumulationResult,
    LinkIdentity,
    LinkItem,
    OutcomeStatus,
    SuggestionCriteria,
    SuggestionOutcome,
)
from .source import LLMSuggestionSource, SuggestionSource

logger = logging.getLogger(__name__)


def run_link_suggestion_workflow(
    collection: LinkCollection,
    *,
    link_count: int,
    keywords: Optional[str] = None,
    preferred_categories: Iterable[str] = (),
    uploaded_links: Iterable[LinkIdentity] = (),
    source: SuggestionSource | None = None,
    span_context: WithSpanContext | None = None,
) -> SuggestionOutcome:
    """
    Suggest new links for a session and add them to its collection.

    Links already in the collection or in `uploaded_links` are never suggested.
    Getting fewer links than asked for is reported through `status` and
    `message`; a failing suggestion source raises AccumulationFailedError and
    leaves the collection untouched.

    Args:
        collection: The session's link collection. Held busy during the call.
        link_count: How many new links to add (0..50).
        keywords: Optional free-text topic.
        preferred_categories: Category names to favour. Empty means any.
        uploaded_links: Links parsed from a user-supplied file.
        source: Suggestion source. The LLM-backed source when None.

    Returns:
        SuggestionOutcome: What was added and how the request ended.
    """
    with collection.request_guard():
        with with_langfuse_span(
            span_name="run_link_suggestion_workflow",
            span_context=span_context,
        ) as obs:
            try:
                criteria = SuggestionCriteria(
                    keywords=(keywords or "").strip() or None,
                    preferred_categories=tuple(preferred_categories),
                    target_count=link_count,
                    known_links=tuple(
                        merge_known_links(collection.known_links(), uploaded_links)
                    ),
                )
                obs.set_input(
                    {
                        "keywords": criteria.keywords,
                        "preferred_categories": [
                            c.value for c in criteria.preferred_categories
                        ],
                        "link_count": criteria.target_count,
                        "num_known_links": len(criteria.known_links),
                    }
                )

                if source is None:
                    source = LLMSuggestionSource(parent_span=obs.span)

                result = accumulate(criteria, source)
                added = collection.add_suggestions(result.links)
                return obs.finish(_build_outcome(criteria, result, added))
            except Exception as e:
                obs.error(e)
                raise


def _build_outcome(
    criteria: SuggestionCriteria,
    result: AccumulationResult,
    added: List[LinkItem],
) -> SuggestionOutcome:
    requested = criteria.target_count
    num_added = len(added)
    status: OutcomeStatus
    if num_added >= requested:
        status = "complete"
        message = (
            f"Added {num_added} new AI-suggested links."
            if requested
            else "No links were requested."
        )
    elif num_added == 0:
        status = "empty"
        message = (
            "No new unique links were found for these criteria and existing links."
        )
    else:
        status = "partial"
        message = (
            f"Added {num_added} of {requested} requested links; "
            "no further unique suggestions were found."
        )

    logger.info(
        "Suggestion workflow %s: %d/%d added after %d attempts (%s)",
        status,
        num_added,
        requested,
        result.attempts_used,
        result.stop_reason,
    )
    return SuggestionOutcome(
        status=status,
        requested=requested,
        added=added,
        attempts_used=result.attempts_used,
        message=message,
    )
