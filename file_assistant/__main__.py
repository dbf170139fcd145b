#!/usr/bin/env python3
"""
File Assistant - CLI Entry Point
================================

Usage:
    python -m file_assistant chat --model flash
    python -m file_assistant run "[CATEGORIZE FILES] Downloads"
    python -m file_assistant commands
"""

import argparse
import logging
import sys

from rich.logging import RichHandler
from rich.prompt import Confirm

from .commands import command_vocabulary
from .dispatcher import Dispatcher
from .llm import GEMINI_MODELS, GeminiImageLabeler, default_model_name, translate_request
from .utils import console, print_commands_table, print_error, print_header, print_warning


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def make_confirm(auto_yes: bool):
    """Build the confirmation callback used by the dispatcher."""
    def confirm(description: str) -> bool:
        if auto_yes:
            console.print(f"[dim]Auto-confirmed: {description}[/dim]")
            return True
        if not sys.stdin.isatty():
            print_warning(f"Non-interactive mode detected. Declining: {description} (use --yes)")
            return False
        return Confirm.ask(f"Confirm action: {description}?", default=False)
    return confirm


def build_dispatcher(args) -> Dispatcher:
    labeler = None if args.no_vision else GeminiImageLabeler(args.model)
    return Dispatcher(confirm=make_confirm(args.yes), labeler=labeler)


def cmd_commands(args) -> int:
    """Commands command - print the bracket command vocabulary."""
    print_commands_table(command_vocabulary())
    return 0


def cmd_run(args) -> int:
    """Run command - execute one bracket command without the model."""
    dispatcher = build_dispatcher(args)
    console.print(dispatcher.dispatch(args.command_text), markup=False, highlight=False)
    return 0


def cmd_chat(args) -> int:
    """Chat command - interactive loop: request -> model -> command -> result."""
    dispatcher = build_dispatcher(args)
    vision = "off" if args.no_vision else "on"

    print_header("File Assistant", f"Model: {args.model}\nVision labeling: {vision}")
    console.print("Type 'exit' to quit, 'commands' to list commands.")

    while True:
        try:
            text = console.input("\n[bold cyan]> [/bold cyan]").strip()
        except (EOFError, KeyboardInterrupt):
            console.print()
            return 0

        if not text:
            continue
        if text.lower() == "exit":
            return 0
        if text.lower() == "commands":
            print_commands_table(command_vocabulary())
            continue

        # Bracket commands typed directly skip the model
        if text.startswith("["):
            response = text
        else:
            try:
                with console.status("[bold green]Thinking...[/bold green]"):
                    response = translate_request(text, args.model)
            except Exception as e:
                print_error(f"Model request failed: {e}")
                continue
            console.print(f"[dim]{response}[/dim]", highlight=False)

        console.print(dispatcher.dispatch(response), markup=False, highlight=False)


# =============================================================================
# Main
# =============================================================================

def main() -> int:
    parser = argparse.ArgumentParser(
        description="File Assistant - Organize files with plain-language requests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--model", type=str, default=default_model_name(),
                        choices=list(GEMINI_MODELS.keys()),
                        help="Gemini model to use (default: FILE_ASSISTANT_MODEL or flash)")
    parser.add_argument("--no-vision", action="store_true",
                        help="Disable image labeling; images are grouped by extension")
    parser.add_argument("--yes", "-y", action="store_true",
                        help="Confirm every action automatically")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Show progress and diagnostic messages")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- CHAT command ---
    chat_parser = subparsers.add_parser("chat", help="Interactive assistant (default)")
    chat_parser.set_defaults(func=cmd_chat)

    # --- RUN command ---
    run_parser = subparsers.add_parser("run", help="Execute one bracket command directly")
    run_parser.add_argument("command_text", type=str,
                            help='Bracket command, e.g. "[LIST FILES] Downloads"')
    run_parser.set_defaults(func=cmd_run)

    # --- COMMANDS command ---
    commands_parser = subparsers.add_parser("commands", help="List the bracket commands")
    commands_parser.set_defaults(func=cmd_commands)

    args = parser.parse_args()
    setup_logging(args.verbose)

    if args.command is None:
        return cmd_chat(args)

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
