from typing import Any, Dict, Literal, Optional, Type, TypeVar

import litellm
from langfuse import LangfuseSpan, get_client
from pydantic import BaseModel

from .registry import ModelName, get_model

T = TypeVar("T", bound=BaseModel)


def generate_structured_output(
    model: ModelName,
    system_prompt: Optional[str],
    prompt: str,
    output_schema: Type[T],
    generation_name: str,
    max_tokens: Optional[int] = None,
    temperature: Optional[float] = None,
    reasoning_effort: Optional[
        Literal["none", "minimal", "low", "medium", "high", "xhigh", "default"]
    ] = None,
    metadata: Optional[Dict[str, Any]] = None,
    parent_span: LangfuseSpan | None = None,
) -> T:
    """
    Generate structured output using LiteLLM and trace as a Langfuse Generation.

    Args:
        model: The model name (suggested from registry).
        system_prompt: Optional system prompt.
        prompt: User prompt.
        output_schema: Pydantic model class defining the structure.
        generation_name: Name of the Langfuse generation.
        max_tokens: The maximum number of tokens to generate.
        temperature: Sampling temperature. Provider default when None.
        reasoning_effort: The reasoning effort for reasoning models.
        metadata: Optional metadata for the Langfuse generation.
        parent_span: Span to nest the generation under. A top-level
            observation on the current trace context is created when None.

    Returns:
        Instance of output_schema.

    Raises:
        ValueError: The model returned no content.
        pydantic.ValidationError: The content does not match output_schema.
    """
    model_adapter = get_model(model)

    metadata = dict(metadata or {})
    if max_tokens is not None:
        metadata["max_tokens"] = max_tokens
    if temperature is not None:
        metadata["temperature"] = temperature
    if reasoning_effort is not None:
        metadata["reasoning_effort"] = reasoning_effort
    metadata["output_schema"] = output_schema.model_json_schema()

    observation_kwargs: Dict[str, Any] = {
        "name": generation_name,
        "as_type": "generation",
        "model": model_adapter.get_langfuse_model_name(),
        "input": {"system": system_prompt, "prompt": prompt},
        "metadata": metadata,
    }
    if parent_span is not None:
        cm = parent_span.start_as_current_observation(**observation_kwargs)
    else:
        cm = get_client().start_as_current_observation(**observation_kwargs)

    with cm as generation:
        try:
            messages = []
            if system_prompt:
                messages.append({"role": "system", "content": system_prompt})
            messages.append({"role": "user", "content": prompt})

            response = litellm.completion(
                model=model_adapter.get_litellm_model_name(),
                messages=messages,
                response_format=output_schema,
                drop_params=True,
                temperature=temperature,
                reasoning_effort=reasoning_effort,
                max_completion_tokens=max_tokens,
            )

            if hasattr(response, "usage"):
                usage = response.usage
                generation.update(
                    usage_details={
                        "input": getattr(usage, "prompt_tokens", 0),
                        "output": getattr(usage, "completion_tokens", 0),
                        "total": getattr(usage, "total_tokens", 0),
                    }
                )

            content = response.choices[0].message.content

            # Some providers answer structured requests through a tool call
            if not content and hasattr(response.choices[0].message, "tool_calls"):
                tool_calls = response.choices[0].message.tool_calls
                if tool_calls:
                    content = tool_calls[0].function.arguments

            if not content:
                raise ValueError("No content received from LLM")

            if isinstance(content, dict):
                parsed_output = output_schema.model_validate(content)
            else:
                parsed_output = output_schema.model_validate_json(content)

            generation.update(output=parsed_output.model_dump())

            return parsed_output

        except Exception as e:
            generation.update(status_message=str(e), level="ERROR")
            raise
