import os
from abc import ABC, abstractmethod
from typing import Literal, cast

Provider = Literal["openai", "google"]


class BaseLLMModel(ABC):
    provider: Provider

    def __init__(self, model_name: str):
        self._model_name = model_name

    @abstractmethod
    def get_litellm_model_name(self) -> str:
        pass

    @abstractmethod
    def get_langfuse_model_name(self) -> str:
        pass


class OpenAILLMModel(BaseLLMModel):
    provider: Provider = "openai"

    def get_litellm_model_name(self) -> str:
        return f"openai/{self._model_name}"

    def get_langfuse_model_name(self) -> str:
        return f"openai/{self._model_name}"


class GoogleLLMModel(BaseLLMModel):
    provider: Provider = "google"

    def get_litellm_model_name(self) -> str:
        # LiteLLM routes Google AI Studio models through the 'gemini/' prefix
        return f"gemini/{self._model_name}"

    def get_langfuse_model_name(self) -> str:
        return f"google/{self._model_name}"


ModelName = Literal[
    "gemini/gemini-2.0-flash",
    "gemini/gemini-2.5-flash-lite",
    "openai/gpt-5-mini",
]

MODELS: dict[ModelName, BaseLLMModel] = {
    "gemini/gemini-2.0-flash": GoogleLLMModel("gemini-2.0-flash"),
    "gemini/gemini-2.5-flash-lite": GoogleLLMModel("gemini-2.5-flash-lite"),
    "openai/gpt-5-mini": OpenAILLMModel("gpt-5-mini"),
}


def get_model(model_name: ModelName) -> BaseLLMModel:
    try:
        return MODELS[model_name]
    except KeyError:
        raise ValueError(
            f"Unknown model '{model_name}'. Available: {', '.join(MODELS)}"
        ) from None


def model_from_env(env_var: str, default: ModelName) -> ModelName:
    """
    Resolve a model name from an environment variable, falling back to `default`.

    Unknown names are rejected up front so a typo in `.env` fails at startup
    instead of on the first LLM call.
    """
    value = os.environ.get(env_var, "").strip()
    if not value:
        return default
    if value not in MODELS:
        raise ValueError(
            f"{env_var}={value!r} is not a registered model. "
            f"Available: {', '.join(MODELS)}"
        )
    return cast(ModelName, value)
