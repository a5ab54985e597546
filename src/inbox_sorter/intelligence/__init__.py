"""LLM-powered intelligence services."""

from .category import LLMCategoryService, normalize_category
from .llm import LLMClient, ModelError, OpenAIChatClient
from .prompts import build_classification_prompt

__all__ = [
    "LLMCategoryService",
    "LLMClient",
    "ModelError",
    "OpenAIChatClient",
    "build_classification_prompt",
    "normalize_category",
]
