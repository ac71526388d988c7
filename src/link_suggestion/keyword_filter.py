import json
import logging
from typing import List

from pydantic import BaseModel, Field

from src.infra.langfuse_observation import WithSpanContext
from src.infra.llm import ModelName, generate_structured_output, model_from_env

from .schema import LinkItem

logger = logging.getLogger(__name__)

DEFAULT_FILTER_MODEL: ModelName = "gemini/gemini-2.5-flash-lite"


class KeywordFilterResult(BaseModel):
    relevant_link_ids: List[str] = Field(
        ...,
        description="IDs of the links relevant to the search keywords",
    )


def filter_links_by_keyword(
    links: List[LinkItem],
    keywords: str,
    *,
    model: ModelName | None = None,
    span_context: WithSpanContext | None = None,
) -> set[str]:
    """
    Ask the model which links in the collection match free-text keywords.

    Blank keywords match everything; an empty collection matches nothing.
    IDs the model makes up are dropped.
    """
    if not keywords.strip():
        return {link.id for link in links}
    if not links:
        return set()

    links_for_prompt = [
        {
            "id": link.id,
            "title": link.title,
            "description": link.description,
            "url": link.url,
            "category": link.category.value,
        }
        for link in links
    ]

    filter_prompt = f"""
Search Keywords: "{keywords.strip()}"

Links to filter:
{json.dumps(links_for_prompt, ensure_ascii=False, indent=2)}
"""

    result = generate_structured_output(
        model=model or model_from_env("LINK_FILTER_MODEL", DEFAULT_FILTER_MODEL),
        system_prompt="""
Role: Link filtering assistant. Given a list of links and search keywords, identify which links are relevant to the keywords.

Rules:
- Consider the title, description, URL and category of each link
- Choose ONLY from the provided IDs
- Return an empty list if no link is relevant

Output:
- Return ONLY a JSON object that matches the output schema
- No explanations, no markdown, no extra keys
""",
        prompt=filter_prompt,
        output_schema=KeywordFilterResult,
        generation_name="filter_links_by_keyword",
        metadata={"keywords": keywords, "num_links": len(links)},
        parent_span=span_context.get("parent_span") if span_context else None,
    )

    valid_ids = {link.id for link in links}
    relevant = {link_id for link_id in result.relevant_link_ids if link_id in valid_ids}
    dropped = len(set(result.relevant_link_ids)) - len(relevant)
    if dropped:
        logger.warning("Keyword filter returned %d unknown link ids", dropped)
    return relevant
