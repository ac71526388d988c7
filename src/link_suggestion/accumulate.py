import logging
import math
from typing import Any, List

from pydantic import ValidationError

from .categories import normalize_category
from .dedupe import KnownUrlSet
from .schema import (
    ALL_CATEGORIES,
    MAX_BATCH_SIZE,
    AcceptedLink,
    AccumulationResult,
    LinkIdentity,
    StopReason,
    SuggestionBatch,
    SuggestionBatchRequest,
    SuggestionCriteria,
)
from .source import SuggestionSource, SuggestionSourceError

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 50
OVER_REQUEST_FACTOR = 1.5
MAX_CONSECUTIVE_EMPTY_BATCHES = 3
MAX_CONSECUTIVE_MALFORMED_RESPONSES = 2


class AccumulationFailedError(Exception):
    """
    The suggestion source kept failing, so the request as a whole failed.

    `links` holds whatever had been accepted before the failure. It is exposed
    for diagnostics only; callers should treat the request as failed.
    """

    def __init__(self, message: str, *, attempts_used: int, links: List[AcceptedLink]):
        super().__init__(message)
        self.attempts_used = attempts_used
        self.links = links


def batch_size_for(remaining: int) -> int:
    """Over-request by 50% to absorb duplicates, within 1..MAX_BATCH_SIZE."""
    return min(MAX_BATCH_SIZE, max(1, math.ceil(remaining * OVER_REQUEST_FACTOR)))


def _as_batch(payload: Any) -> SuggestionBatch:
    if isinstance(payload, SuggestionBatch):
        return payload
    if payload is None:
        raise SuggestionSourceError("Suggestion source returned no payload")
    try:
        return SuggestionBatch.model_validate(payload)
    except ValidationError as e:
        raise SuggestionSourceError(f"Malformed suggestion payload: {e}") from e


def accumulate(
    criteria: SuggestionCriteria,
    source: SuggestionSource,
) -> AccumulationResult:
    """
    Query `source` repeatedly until `criteria.target_count` new unique links are collected.

    Each attempt excludes every URL known so far (caller-supplied plus accepted
    in earlier attempts). The loop stops when the target is reached, after
    MAX_CONSECUTIVE_EMPTY_BATCHES non-empty batches in a row contribute nothing
    new, or after MAX_ATTEMPTS calls. Those are all successful outcomes, possibly
    with fewer links than requested.

    Raises:
        AccumulationFailedError: MAX_CONSECUTIVE_MALFORMED_RESPONSES calls in a
            row raised or returned an unusable payload.
    """
    target = criteria.target_count
    known = KnownUrlSet(criteria.known_links)
    preferred = [c.value for c in criteria.preferred_categories]

    accepted: List[AcceptedLink] = []
    attempts = 0
    consecutive_empty_batches = 0
    consecutive_malformed_responses = 0
    source_exhausted = False

    while len(accepted) < target and attempts < MAX_ATTEMPTS:
        attempts += 1
        remaining = target - len(accepted)
        request = SuggestionBatchRequest(
            keywords=criteria.keywords,
            preferred_categories=preferred,
            valid_categories=list(ALL_CATEGORIES),
            count=batch_size_for(remaining),
            exclude_urls=known.snapshot(),
        )

        try:
            batch = _as_batch(source.fetch_batch(request))
        except Exception as e:
            consecutive_malformed_responses += 1
            logger.warning(
                "Attempt %d: suggestion source failed (%d in a row): %s",
                attempts,
                consecutive_malformed_responses,
                e,
            )
            if consecutive_malformed_responses >= MAX_CONSECUTIVE_MALFORMED_RESPONSES:
                raise AccumulationFailedError(
                    f"Suggestion source failed {consecutive_malformed_responses} "
                    f"times in a row: {e}",
                    attempts_used=attempts,
                    links=list(accepted),
                ) from e
            continue

        consecutive_malformed_responses = 0

        added = 0
        for candidate in batch.suggested_links:
            if len(accepted) >= target:
                break
            if not candidate.url or candidate.url in known:
                continue
            accepted.append(
                AcceptedLink(
                    title=candidate.title,
                    url=candidate.url,
                    description=candidate.description,
                    category=normalize_category(candidate.category),
                )
            )
            known.add(LinkIdentity(url=candidate.url, title=candidate.title))
            added += 1

        logger.debug(
            "Attempt %d: requested=%d received=%d new=%d total=%d/%d",
            attempts,
            request.count,
            len(batch.suggested_links),
            added,
            len(accepted),
            target,
        )

        if added == 0 and batch.suggested_links:
            consecutive_empty_batches += 1
        else:
            consecutive_empty_batches = 0

        if consecutive_empty_batches >= MAX_CONSECUTIVE_EMPTY_BATCHES:
            source_exhausted = True
            break

    stop_reason: StopReason
    if target == 0:
        stop_reason = "nothing_requested"
    elif len(accepted) >= target:
        stop_reason = "target_reached"
    elif source_exhausted:
        stop_reason = "source_exhausted"
    else:
        stop_reason = "attempt_budget_exhausted"

    logger.info(
        "Accumulation finished: %s, %d/%d links in %d attempts",
        stop_reason,
        len(accepted),
        target,
        attempts,
    )
    return AccumulationResult(
        links=accepted[:target],
        attempts_used=attempts,
        stop_reason=stop_reason,
    )
