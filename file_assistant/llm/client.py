"""
Gemini API client for the File Assistant.
"""

import os
import re

from dotenv import load_dotenv

from .models import GEMINI_MODELS, DEFAULT_MODEL, get_model_config
from .prompts import build_command_prompt

load_dotenv()

# Try to import Gemini API
try:
    import google.generativeai as genai
    GEMINI_AVAILABLE = True
except ImportError:
    GEMINI_AVAILABLE = False
    genai = None


_configured = False

BRACKET_LINE_RE = re.compile(r"^\s*(\[[A-Z ]+\].*)$", re.MULTILINE)


def configure_gemini() -> bool:
    """
    Configure the Gemini API client with the API key from environment.

    Returns:
        True if configuration succeeded, False otherwise.
    """
    global _configured
    if _configured:
        return True

    if not GEMINI_AVAILABLE:
        print("[ERROR] google-generativeai package not installed.")
        print("        Run: pip install google-generativeai")
        return False

    api_key = os.environ.get("GEMINI_API_KEY")
    if not api_key:
        print("[ERROR] GEMINI_API_KEY environment variable not set.")
        print("        Create a .env file with: GEMINI_API_KEY=your-key-here")
        return False

    genai.configure(api_key=api_key)
    _configured = True
    return True


def get_model(model_name: str = DEFAULT_MODEL):
    """
    Create a GenerativeModel for a short model name.

    Raises:
        RuntimeError: If the package is missing or the API is not configured.
    """
    if not GEMINI_AVAILABLE:
        raise RuntimeError("google-generativeai package not installed")

    # Configure API if not already done
    if not configure_gemini():
        raise RuntimeError("Failed to configure Gemini API")

    model_id = GEMINI_MODELS.get(model_name, GEMINI_MODELS[DEFAULT_MODEL])
    return genai.GenerativeModel(model_id)


def call_llm(prompt: str, model_name: str = DEFAULT_MODEL) -> str:
    """
    Call the Gemini LLM with a prompt.

    Args:
        prompt: The prompt text to send.
        model_name: Short model name (flash, flash-lite, pro).

    Returns:
        The raw response text from the LLM.

    Raises:
        RuntimeError: If the API call cannot be made.
    """
    model = get_model(model_name)
    config = get_model_config(model_name)

    generation_config = genai.types.GenerationConfig(
        max_output_tokens=config["command_max_tokens"],
        temperature=config["temperature"],
        top_p=config["top_p"],
    )

    response = model.generate_content(prompt, generation_config=generation_config)

    return response.text


def extract_command(response_text: str) -> str:
    """
    Pull the bracketed command out of an LLM response.

    Handles markdown code fences and chatty preambles by taking the first
    line that starts with a bracket tag.

    Args:
        response_text: Raw response text from LLM.

    Returns:
        The command line, or the trimmed response when none is found.
    """
    text = (response_text or "").strip()

    # Try to extract from markdown code blocks
    if "```" in text:
        fence_match = re.search(r'```(?:\w+)?\s*([\s\S]*?)```', text)
        if fence_match:
            text = fence_match.group(1).strip()

    match = BRACKET_LINE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text


def translate_request(user_request: str, model_name: str = DEFAULT_MODEL) -> str:
    """Ask the model to turn a free-text request into one bracket command."""
    response = call_llm(build_command_prompt(user_request), model_name)
    return extract_command(response)
