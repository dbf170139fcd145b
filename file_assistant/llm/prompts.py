"""
Prompt builders for the File Assistant.

Provides prompts for:
- Command translation: user request -> one bracketed command
- Image labeling: image -> one short label
"""

from ..commands import command_vocabulary

IMAGE_LABEL_PROMPT = (
    "Provide a single short label (e.g. 'animal', 'invoice', 'text', 'nature', "
    "'person', 'screenshot', 'art', 'other') describing the main content of the "
    "image. Only output the label."
)


def build_command_prompt(user_request: str) -> str:
    """
    Build the prompt that maps a free-text request to a bracket command.

    Args:
        user_request: What the user typed.

    Returns:
        Prompt string for the LLM.
    """
    commands = "\n".join(
        f"- {tag} {usage}".rstrip() for tag, usage in command_vocabulary()
    )

    return f"""You are a file organization assistant.
The user may refer to directories by common names such as 'Downloads', 'Documents', or 'Desktop', or by explicit paths.
You can also refer to the previous file list using the word 'previous'.

Interpret the user's intent and respond with exactly one of:
{commands}

## Rules

- Only respond with the bracketed command and its arguments.
- Copy paths exactly as the user wrote them.
- Do NOT add explanations, quotes around the whole answer, or markdown.

## User request

{user_request}
"""
