"""
Action dispatch for the File Assistant.

Routes parsed bracket commands to the grouping and organizing operations,
asks for confirmation before anything that acts on a directory, and keeps
the per-session state (last file listing, last image label map).
"""

import logging
from pathlib import Path
from typing import Callable, Protocol

from .commands import Action, ParsedCommand, parse_command, parse_threshold
from .executor import (
    DEFAULT_LARGE_THRESHOLD,
    DEFAULT_SMALL_THRESHOLD,
    move_file,
    organize_all_by_type,
    organize_by_extension,
    organize_folders_by_pattern,
    organize_folders_by_size,
    organize_images_by_context,
    organize_images_by_date_and_context,
)
from .grouping import (
    DIRECTORY_NOT_FOUND,
    IMAGE_ANALYSIS_HEADER,
    LabelMap,
    categorize_all_by_type,
    categorize_by_content_context,
    categorize_by_extension,
    categorize_by_name_context,
    categorize_folders_by_pattern,
    categorize_folders_by_size,
    categorize_images_by_context,
    filter_images,
    list_files,
)
from .utils import default_known_dirs, resolve_dir

logger = logging.getLogger(__name__)

ACTION_CANCELLED = "Action cancelled."
ORGANIZATION_CANCELLED = "Organization action cancelled."
NO_FILES_FOUND = "No files found."
NO_PREVIOUS_LIST = "No previous file list found."
NO_CONTEXT_MAP = "No image context map available. Please run image categorization first."
NO_LABELED_IMAGES = "No images were successfully labeled with context."

INVALID_LABEL_MARKERS = ("error_", "unknown_")


class LabelingSession(Protocol):
    def reset(self) -> None: ...

    def label(self, image_path: Path | str) -> str: ...


class ImageLabeler(Protocol):
    """Vision collaborator; session() yields a LabelingSession."""

    def session(self): ...


def is_valid_label(label: str | None) -> bool:
    """False for empty labels and for error/unknown markers."""
    if not label or not label.strip():
        return False
    lowered = label.lower()
    return not any(marker in lowered for marker in INVALID_LABEL_MARKERS)


def invalid_command(name: str) -> str:
    return f"Invalid {name} command."


def command_name(action: Action) -> str:
    """Readable name of an action, e.g. "organize files"."""
    return action.tag.strip("[]").lower()


class Dispatcher:
    """
    Executes bracket commands for one interactive session.

    Args:
        confirm: Called with a description of the action; returns True to
            proceed.
        labeler: Optional image labeler. Its presence is what makes the
            session multimodal.
        known_dirs: Alias table for directory arguments.
    """

    def __init__(
        self,
        confirm: Callable[[str], bool],
        labeler: ImageLabeler | None = None,
        known_dirs: dict[str, Path] | None = None,
    ):
        self.confirm = confirm
        self.labeler = labeler
        self.known_dirs = known_dirs if known_dirs is not None else default_known_dirs()

        self.previous_files: list[str] | None = None
        self.last_image_context_map: LabelMap | None = None

        self._handlers: dict[Action, Callable[[ParsedCommand], str]] = {
            Action.LIST_FILES: self._list_files,
            Action.COUNT_PREVIOUS_FILES: self._count_previous_files,
            Action.MOVE_FILE: self._move_file,
            Action.ORGANIZE_FILES: self._directory_action(
                "Organize files in '{directory}' by extension", organize_by_extension),
            Action.CATEGORIZE_FILES: self._directory_action(
                "Categorize files in '{directory}' by extension", categorize_by_extension),
            Action.CATEGORIZE_BY_NAME_CONTEXT: self._directory_action(
                "Categorize files in '{directory}' by name context", categorize_by_name_context),
            Action.CATEGORIZE_BY_CONTENT_CONTEXT: self._directory_action(
                "Categorize files in '{directory}' by content context", categorize_by_content_context),
            Action.CATEGORIZE_IMAGES_BY_CONTEXT: self._categorize_images,
            Action.ORGANIZE_IMAGES_BY_CONTEXT: self._organize_images_by_context,
            Action.ORGANIZE_IMAGES_BY_DATE_AND_CONTEXT: self._organize_images_by_date,
            Action.CATEGORIZE_FOLDERS_BY_PATTERN: self._pattern_action(
                "categorize folders by pattern",
                "Categorize folders in '{directory}' by pattern '{pattern}'",
                categorize_folders_by_pattern),
            Action.ORGANIZE_FOLDERS_BY_PATTERN: self._pattern_action(
                "organize folders by pattern",
                "Organize folders in '{directory}' by pattern '{pattern}'",
                organize_folders_by_pattern),
            Action.CATEGORIZE_FOLDERS_BY_SIZE: self._directory_action(
                "Categorize folders in '{directory}' by size", categorize_folders_by_size),
            Action.ORGANIZE_FOLDERS_BY_SIZE: self._organize_folders_by_size,
            Action.CATEGORIZE_ALL_BY_TYPE: self._directory_action(
                "Categorize all items in '{directory}' by type", categorize_all_by_type),
            Action.ORGANIZE_ALL_BY_TYPE: self._directory_action(
                "Organize all items in '{directory}' by type", organize_all_by_type),
        }

    @property
    def multimodal(self) -> bool:
        return self.labeler is not None

    def handles(self, action: Action) -> bool:
        return action in self._handlers

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def dispatch(self, raw: str) -> str:
        """Parse and execute one model response. Never raises."""
        return self.execute(parse_command(raw))

    def execute(self, command: ParsedCommand) -> str:
        if not command.recognized:
            return f"Unrecognized command: {command.raw}"

        handler = self._handlers[command.action]
        try:
            return handler(command)
        except (OSError, RuntimeError) as e:
            logger.error("%s failed: %s", command.action.tag, e)
            return f"Operation failed: {e}"
        except Exception as e:
            logger.exception("Unexpected error in %s", command.action.tag)
            return f"Operation failed: {e}"

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _resolve(self, name: str) -> str:
        return resolve_dir(name, self.known_dirs)

    def _directory_arg(self, command: ParsedCommand) -> str | None:
        """Resolved directory argument, or None when it is missing or blank."""
        if not command.args or not command.args[0].strip():
            return None
        return self._resolve(command.args[0])

    def _gated(self, description: str, operation: Callable[[], str]) -> str:
        if not self.confirm(description):
            return ACTION_CANCELLED
        return operation()

    def _directory_action(self, description: str, operation: Callable[[str], str]):
        def handler(command: ParsedCommand) -> str:
            directory = self._directory_arg(command)
            if directory is None:
                return invalid_command(command_name(command.action))
            return self._gated(
                description.format(directory=directory),
                lambda: operation(directory),
            )
        return handler

    def _pattern_action(self, name: str, description: str, operation: Callable[[str, str], str]):
        def handler(command: ParsedCommand) -> str:
            if len(command.args) != 2 or not all(command.args):
                return invalid_command(name)
            directory = self._resolve(command.args[0])
            pattern = command.args[1]
            return self._gated(
                description.format(directory=directory, pattern=pattern),
                lambda: operation(directory, pattern),
            )
        return handler

    def _label_images(self, images: list[Path]) -> LabelMap:
        """
        Label images one at a time with the borrowed labeling context.

        The context is reset before every image. Images whose label is empty
        or an error marker are left out of the map.
        """
        label_map = LabelMap()
        logger.info("Found %d image(s) to label.", len(images))

        with self.labeler.session() as context:
            for image in images:
                context.reset()
                label = context.label(image)
                if is_valid_label(label):
                    label_map[str(image)] = label.strip()
                else:
                    logger.warning(
                        "Skipping image %s due to invalid or error label: '%s'", image.name, label)
        return label_map

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _list_files(self, command: ParsedCommand) -> str:
        directory = self._directory_arg(command)
        if directory is None:
            return invalid_command(command_name(command.action))
        directory = Path(directory)
        files = [str(p) for p in list_files(directory)] if directory.is_dir() else []
        self.previous_files = files
        return "\n".join(files) if files else NO_FILES_FOUND

    def _count_previous_files(self, command: ParsedCommand) -> str:
        if self.previous_files is None:
            return NO_PREVIOUS_LIST
        return f"There are {len(self.previous_files)} files."

    def _move_file(self, command: ParsedCommand) -> str:
        if len(command.args) != 2 or not all(command.args):
            return invalid_command("move")
        source = command.args[0]
        destination = self._resolve(command.args[1])
        return self._gated(
            f"Move file '{source}' to '{destination}'",
            lambda: move_file(source, destination),
        )

    def _organize_folders_by_size(self, command: ParsedCommand) -> str:
        if not command.args or not command.args[0]:
            return invalid_command("organize folders by size")
        directory = self._resolve(command.args[0])
        small = parse_threshold(command.args[1] if len(command.args) > 1 else None,
                                DEFAULT_SMALL_THRESHOLD)
        large = parse_threshold(command.args[2] if len(command.args) > 2 else None,
                                DEFAULT_LARGE_THRESHOLD)
        return self._gated(
            f"Organize folders in '{directory}' by size (small: {small}, large: {large})",
            lambda: organize_folders_by_size(directory, small, large),
        )

    def _categorize_images(self, command: ParsedCommand) -> str:
        self.last_image_context_map = None
        directory = self._directory_arg(command)
        if directory is None:
            return invalid_command(command_name(command.action))
        if not self.confirm(f"Categorize images in '{directory}' by context"):
            return ACTION_CANCELLED

        output = categorize_images_by_context(directory, self.multimodal)
        if not self.multimodal or not output.startswith(IMAGE_ANALYSIS_HEADER):
            return output

        images = filter_images(list_files(Path(directory)))
        label_map = self._label_images(images)
        self.last_image_context_map = label_map

        lines = [output.rstrip("\n")]
        if not label_map:
            lines.append(NO_LABELED_IMAGES)
            return "\n".join(lines)

        lines.append(f"Successfully labeled {len(label_map)} image(s).")
        if self.confirm(
            f"Organize these {len(label_map)} images in '{directory}' by detected context labels"
        ):
            lines.append(organize_images_by_context(directory, label_map))
        else:
            lines.append(ORGANIZATION_CANCELLED)
        return "\n".join(lines)

    def _organize_images_by_context(self, command: ParsedCommand) -> str:
        directory = self._directory_arg(command)
        if directory is None:
            return invalid_command(command_name(command.action))
        label_map = self.last_image_context_map
        if not label_map:
            return NO_CONTEXT_MAP
        return self._gated(
            f"Organize images in '{directory}' by last detected context labels",
            lambda: organize_images_by_context(directory, label_map),
        )

    def _organize_images_by_date(self, command: ParsedCommand) -> str:
        directory = self._directory_arg(command)
        if directory is None:
            return invalid_command(command_name(command.action))
        if not self.confirm(f"Organize images in '{directory}' by date and context"):
            return ACTION_CANCELLED

        if not Path(directory).is_dir():
            return DIRECTORY_NOT_FOUND

        label_map = None
        if self.multimodal:
            self.last_image_context_map = None
            images = filter_images(list_files(Path(directory)))
            if images:
                label_map = self._label_images(images)
                self.last_image_context_map = label_map

        return organize_images_by_date_and_context(directory, label_map)
