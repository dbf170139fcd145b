"""
File Assistant
==============

A command-line assistant that lets a language model translate plain
requests ("sort my downloads by type") into bracketed commands, and runs
those commands against the local filesystem after confirmation.
"""

__version__ = "1.0.0"

from .commands import Action, ParsedCommand, parse_command, command_vocabulary
from .dates import resolve_date_taken
from .dispatcher import Dispatcher
from .grouping import LabelMap
from .utils import resolve_dir

__all__ = [
    "Action",
    "ParsedCommand",
    "parse_command",
    "command_vocabulary",
    "resolve_date_taken",
    "Dispatcher",
    "LabelMap",
    "resolve_dir",
]
