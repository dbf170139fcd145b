"""
LLM model configurations.
"""

import os

# Supported Gemini models with their full identifiers
GEMINI_MODELS = {
    "flash": "gemini-2.0-flash",           # Best for free tier (15 RPM)
    "flash-lite": "gemini-2.0-flash-lite", # Even faster/cheaper
    "pro": "gemini-2.5-pro",               # Best quality, limited free tier
}

# Default model for API calls
DEFAULT_MODEL = "flash"

# Model-specific configuration
MODEL_CONFIG = {
    "flash": {
        "command_max_tokens": 128,
        "label_max_tokens": 16,
        "temperature": 0.0,  # Deterministic command translation
        "label_temperature": 0.1,
        "top_p": 0.1,
    },
    "flash-lite": {
        "command_max_tokens": 128,
        "label_max_tokens": 16,
        "temperature": 0.0,
        "label_temperature": 0.1,
        "top_p": 0.1,
    },
    "pro": {
        "command_max_tokens": 256,
        "label_max_tokens": 32,
        "temperature": 0.0,
        "label_temperature": 0.1,
        "top_p": 0.1,
    },
}


def get_model_config(model_name: str) -> dict:
    """
    Get configuration for a specific model.
    
    Args:
        model_name: Short model name (flash, flash-lite, pro).
        
    Returns:
        Configuration dict with token limits and sampling settings.
    """
    return MODEL_CONFIG.get(model_name, MODEL_CONFIG["flash"])


def default_model_name() -> str:
    """Model selected by FILE_ASSISTANT_MODEL, else DEFAULT_MODEL."""
    name = os.environ.get("FILE_ASSISTANT_MODEL", DEFAULT_MODEL)
    return name if name in GEMINI_MODELS else DEFAULT_MODEL
