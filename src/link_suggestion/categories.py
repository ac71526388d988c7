import logging

from .schema import FALLBACK_CATEGORY, CategoryId

logger = logging.getLogger(__name__)

_CATEGORY_BY_LOWER: dict[str, CategoryId] = {c.value.lower(): c for c in CategoryId}


def normalize_category(raw_category: str | None) -> CategoryId:
    """
    Map a free-text category label onto the closed category set.

    Matching is exact but case-insensitive ("tools" -> Tools, "project repos" ->
    Project Repos). Anything else, including None or an empty string, becomes
    the fallback `Other`. Never raises.
    """
    if raw_category is not None:
        category = _CATEGORY_BY_LOWER.get(raw_category.lower())
        if category is not None:
            return category

    logger.warning(
        "Unrecognised category %r, defaulting to %s",
        raw_category,
        FALLBACK_CATEGORY.value,
    )
    return FALLBACK_CATEGORY
