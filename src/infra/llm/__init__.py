from .generate_structured_output import generate_structured_output
from .registry import ModelName, get_model, model_from_env

__all__ = [
    "generate_structured_output",
    "ModelName",
    "get_model",
    "model_from_env",
]
