"""
LLM integration module for the File Assistant.

Provides:
- Gemini API client and command translation
- Image labeling sessions
- Prompt builders
- Model configurations
"""

from .client import call_llm, configure_gemini, extract_command, translate_request
from .models import GEMINI_MODELS, DEFAULT_MODEL, default_model_name
from .prompts import build_command_prompt, IMAGE_LABEL_PROMPT
from .vision import GeminiImageLabeler, LabelingContext

__all__ = [
    "call_llm",
    "configure_gemini",
    "extract_command",
    "translate_request",
    "GEMINI_MODELS",
    "DEFAULT_MODEL",
    "default_model_name",
    "build_command_prompt",
    "IMAGE_LABEL_PROMPT",
    "GeminiImageLabeler",
    "LabelingContext",
]
