"""
Bracket command grammar for the File Assistant.

The language model is constrained to answer with one of a closed set of
bracketed commands, e.g. "[LIST FILES] Downloads". This module turns such a
string into a ParsedCommand.
"""

import re
from dataclasses import dataclass
from enum import Enum

from .utils import clean_arg


class ArgStyle(Enum):
    """How the payload after a tag is split into arguments."""
    NONE = "none"
    DIRECTORY = "directory"
    PAIR = "pair"
    SIZE = "size"


class Action(Enum):
    LIST_FILES = "[LIST FILES]"
    MOVE_FILE = "[MOVE FILE]"
    ORGANIZE_FILES = "[ORGANIZE FILES]"
    CATEGORIZE_FILES = "[CATEGORIZE FILES]"
    CATEGORIZE_BY_NAME_CONTEXT = "[CATEGORIZE BY NAME CONTEXT]"
    CATEGORIZE_BY_CONTENT_CONTEXT = "[CATEGORIZE BY CONTENT CONTEXT]"
    CATEGORIZE_IMAGES_BY_CONTEXT = "[CATEGORIZE IMAGES BY CONTEXT]"
    ORGANIZE_IMAGES_BY_CONTEXT = "[ORGANIZE IMAGES BY CONTEXT]"
    ORGANIZE_IMAGES_BY_DATE_AND_CONTEXT = "[ORGANIZE IMAGES BY DATE AND CONTEXT]"
    CATEGORIZE_FOLDERS_BY_PATTERN = "[CATEGORIZE FOLDERS BY PATTERN]"
    ORGANIZE_FOLDERS_BY_PATTERN = "[ORGANIZE FOLDERS BY PATTERN]"
    CATEGORIZE_FOLDERS_BY_SIZE = "[CATEGORIZE FOLDERS BY SIZE]"
    ORGANIZE_FOLDERS_BY_SIZE = "[ORGANIZE FOLDERS BY SIZE]"
    CATEGORIZE_ALL_BY_TYPE = "[CATEGORIZE ALL BY TYPE]"
    ORGANIZE_ALL_BY_TYPE = "[ORGANIZE ALL BY TYPE]"
    COUNT_PREVIOUS_FILES = "[COUNT PREVIOUS FILES]"
    UNRECOGNIZED = ""

    @property
    def tag(self) -> str:
        return self.value

    @property
    def arg_style(self) -> ArgStyle:
        return ARG_STYLES.get(self, ArgStyle.DIRECTORY)

    @property
    def requires_confirmation(self) -> bool:
        """Everything but listing and counting goes through the confirmation gate."""
        return self not in (Action.LIST_FILES, Action.COUNT_PREVIOUS_FILES, Action.UNRECOGNIZED)


ARG_STYLES = {
    Action.MOVE_FILE: ArgStyle.PAIR,
    Action.CATEGORIZE_FOLDERS_BY_PATTERN: ArgStyle.PAIR,
    Action.ORGANIZE_FOLDERS_BY_PATTERN: ArgStyle.PAIR,
    Action.ORGANIZE_FOLDERS_BY_SIZE: ArgStyle.SIZE,
    Action.COUNT_PREVIOUS_FILES: ArgStyle.NONE,
    Action.UNRECOGNIZED: ArgStyle.NONE,
}

# Usage strings shown to the model and in `commands` output
USAGE = {
    Action.LIST_FILES: "{directory}",
    Action.MOVE_FILE: "{sourceFilePath} {destinationDirectory}",
    Action.CATEGORIZE_FILES: "{directory}",
    Action.ORGANIZE_FILES: "{directory}",
    Action.CATEGORIZE_BY_NAME_CONTEXT: "{directory}",
    Action.CATEGORIZE_BY_CONTENT_CONTEXT: "{directory}",
    Action.CATEGORIZE_IMAGES_BY_CONTEXT: "{directory}",
    Action.ORGANIZE_IMAGES_BY_CONTEXT: "{directory}",
    Action.ORGANIZE_IMAGES_BY_DATE_AND_CONTEXT: "{directory}",
    Action.CATEGORIZE_FOLDERS_BY_PATTERN: "{directory} {pattern}",
    Action.ORGANIZE_FOLDERS_BY_PATTERN: "{directory} {pattern}",
    Action.CATEGORIZE_FOLDERS_BY_SIZE: "{directory}",
    Action.ORGANIZE_FOLDERS_BY_SIZE: "{directory} {smallThreshold} {largeThreshold}",
    Action.CATEGORIZE_ALL_BY_TYPE: "{directory}",
    Action.ORGANIZE_ALL_BY_TYPE: "{directory}",
    Action.COUNT_PREVIOUS_FILES: "",
}

# Longest tag first so that no tag can shadow a longer one sharing its prefix
_TAGS_BY_LENGTH = sorted(
    (a for a in Action if a is not Action.UNRECOGNIZED),
    key=lambda a: len(a.tag),
    reverse=True,
)

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class ParsedCommand:
    action: Action
    args: tuple[str, ...]
    raw: str

    @property
    def recognized(self) -> bool:
        return self.action is not Action.UNRECOGNIZED


def split_args(payload: str, style: ArgStyle) -> tuple[str, ...]:
    """
    Split a command payload according to its argument style.

    Args:
        payload: Text after the tag, already trimmed.
        style: ArgStyle of the matched action.

    Returns:
        Argument tokens. PAIR payloads split on the first whitespace run only,
        so the second token may contain spaces; SIZE payloads yield up to
        three tokens. Callers check the token count.
    """
    if style is ArgStyle.NONE:
        return ()
    if style is ArgStyle.DIRECTORY:
        return (clean_arg(payload),)
    if not payload:
        return ()
    if style is ArgStyle.PAIR:
        return tuple(clean_arg(t) for t in _WHITESPACE_RE.split(payload, maxsplit=1))
    return tuple(clean_arg(t) for t in payload.split(maxsplit=2))


def parse_command(raw: str) -> ParsedCommand:
    """Parse a model response into a ParsedCommand; never raises."""
    text = (raw or "").strip()
    for action in _TAGS_BY_LENGTH:
        if text.startswith(action.tag):
            payload = text[len(action.tag):].strip()
            return ParsedCommand(action, split_args(payload, action.arg_style), raw)
    return ParsedCommand(Action.UNRECOGNIZED, (), raw)


def parse_threshold(token: str | None, default: int) -> int:
    """Parse an optional integer argument, falling back to default."""
    if token is None:
        return default
    try:
        return int(token)
    except ValueError:
        return default


def command_vocabulary() -> list[tuple[str, str]]:
    """(tag, usage) pairs for every command, in declaration order."""
    return [(a.tag, USAGE[a]) for a in Action if a is not Action.UNRECOGNIZED]
