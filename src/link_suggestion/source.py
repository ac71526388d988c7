import logging
from typing import Any, Dict, Protocol

from langfuse import LangfuseSpan

from src.infra.llm import ModelName, generate_structured_output, model_from_env

from .schema import SuggestionBatch, SuggestionBatchRequest

logger = logging.getLogger(__name__)

DEFAULT_SUGGESTION_MODEL: ModelName = "gemini/gemini-2.0-flash"

# Bounds the prompt; the accumulation loop re-checks every URL anyway.
MAX_EXCLUDED_URLS_IN_PROMPT = 300


class SuggestionSourceError(Exception):
    """The suggestion source failed or returned a payload that does not fit the contract."""


class SuggestionSource(Protocol):
    def fetch_batch(self, request: SuggestionBatchRequest) -> SuggestionBatch:
        """
        Return roughly `request.count` candidate links avoiding `request.exclude_urls`.

        Raises SuggestionSourceError when no usable payload could be produced.
        """
        ...


SUGGEST_LINKS_SYSTEM_PROMPT = """
Role: Suggest useful web links for a personal link collection.

Hard constraints:
- Every link MUST point to an open-source project or a free online resource
  (free e-books, tutorials, documentation, open-source software tools, free videos).
- Never suggest a URL listed under "Already Known URLs".
- Never repeat a URL within one response.
- Use real, complete, absolute URLs. Do not invent pages.
- category MUST be exactly one value from "Valid Categories".

Selection:
- If keywords are given, every link must be clearly relevant to them.
- If no keywords are given, suggest interesting and useful random resources.
- If preferred categories are given, favour them; otherwise pick whichever valid
  category fits each link best.

Output:
- Return ONLY a JSON object that matches the output schema
- Each item has title, url, description (one or two sentences), category
- No explanations, no markdown, no extra keys
"""


def build_suggestion_prompt(request: SuggestionBatchRequest) -> str:
    keywords = (request.keywords or "").strip()
    preferred = ", ".join(request.preferred_categories) or "(any)"
    excluded = request.exclude_urls[-MAX_EXCLUDED_URLS_IN_PROMPT:]
    if excluded:
        excluded_text = "\n".join(
            f"- {link.url}" + (f" ({link.title})" if link.title else "")
            for link in excluded
        )
    else:
        excluded_text = "(none)"

    return f"""
Request:
- keywords: {keywords or "(none, suggest random resources)"}
- preferred_categories: {preferred}
- count: {request.count}

Valid Categories:
{", ".join(request.valid_categories)}

Already Known URLs:
{excluded_text}
"""


class LLMSuggestionSource:
    """Suggestion source backed by a generative model through LiteLLM."""

    def __init__(
        self,
        model: ModelName | None = None,
        *,
        temperature: float | None = 0.9,
        parent_span: LangfuseSpan | None = None,
    ):
        self.model: ModelName = model or model_from_env(
            "LINK_SUGGESTION_MODEL", DEFAULT_SUGGESTION_MODEL
        )
        self.temperature = temperature
        self.parent_span = parent_span

    def fetch_batch(self, request: SuggestionBatchRequest) -> SuggestionBatch:
        metadata: Dict[str, Any] = {
            "count": request.count,
            "num_excluded_urls": len(request.exclude_urls),
            "preferred_categories": request.preferred_categories,
        }
        try:
            return generate_structured_output(
                model=self.model,
                system_prompt=SUGGEST_LINKS_SYSTEM_PROMPT,
                prompt=build_suggestion_prompt(request),
                output_schema=SuggestionBatch,
                generation_name="suggest_links_batch",
                temperature=self.temperature,
                metadata=metadata,
                parent_span=self.parent_span,
            )
        except Exception as e:
            logger.warning("Suggestion batch failed: model=%s, error=%s", self.model, e)
            raise SuggestionSourceError(str(e)) from e
